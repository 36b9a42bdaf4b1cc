"""LinkWeaver FastAPI application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from pydantic import BaseModel

from linkweaver.config import settings
from linkweaver.core.exceptions import NoteNotFoundError, VaultIOError
from linkweaver.core.models import (
    BatchResult,
    HubPage,
    LinkRecord,
    LinkStats,
    NoteRef,
    PreviewItem,
    SequenceInfo,
    ValidationResult,
)
from linkweaver.core.navigator import position_label
from linkweaver.core.service import LinkWeaver


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: index the vault and consume vault events."""
    await service.start()
    yield
    service.stop()


# Initialize app
app = FastAPI(
    title=settings.app_title,
    debug=settings.debug,
    lifespan=lifespan,
)

# Initialize engines
service = LinkWeaver(settings)


class ReplaceRequest(BaseModel):
    old_link: str
    new_link: str
    dry_run: bool = False


class RenameRequest(BaseModel):
    old_path: str
    new_path: str
    dry_run: bool = False


async def _existing_note(path: str) -> NoteRef:
    if not await service.store.note_exists(path):
        raise HTTPException(status_code=404, detail="Note not found")
    return NoteRef(path=path)


# ========== Sequences ==========


@app.get("/api/sequence", response_model=SequenceInfo)
async def get_sequence(note: str):
    """Detect the sequence a note belongs to."""
    info = await service.detector.detect_sequence(await _existing_note(note))
    if info is None:
        raise HTTPException(status_code=404, detail="No sequence detected for this file")
    return info


@app.get("/api/sequence/next")
async def next_in_sequence(note: str):
    target = await service.navigator.next_note(await _existing_note(note))
    if target is None:
        raise HTTPException(status_code=404, detail="No next note in sequence")
    info = await service.detector.detect_sequence(target)
    position = position_label(info, info.current_index) if info else ""
    return {"note": target, "position": position}


@app.get("/api/sequence/previous")
async def previous_in_sequence(note: str):
    target = await service.navigator.previous_note(await _existing_note(note))
    if target is None:
        raise HTTPException(status_code=404, detail="No previous note in sequence")
    info = await service.detector.detect_sequence(target)
    position = position_label(info, info.current_index) if info else ""
    return {"note": target, "position": position}


@app.post("/api/sequence/links")
async def insert_sequence_links(note: str, all_notes: bool = False):
    """Write navigation footers into a note, or into its whole sequence."""
    ref = await _existing_note(note)
    try:
        if all_notes:
            updated = await service.inserter.update_all_sequence_links(ref)
        else:
            updated = int(await service.inserter.insert_sequence_links(ref))
    except NoteNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    except VaultIOError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"updated": updated}


# ========== Link analysis ==========


@app.get("/api/links/validate", response_model=ValidationResult)
async def validate_all_links():
    return await service.links.validate_all_links()


@app.get("/api/links/file", response_model=list[LinkRecord])
async def validate_file_links(note: str):
    return await service.links.validate_file_links(await _existing_note(note))


@app.get("/api/links/orphans", response_model=list[NoteRef])
async def orphaned_notes():
    return await service.links.get_orphaned_notes()


@app.get("/api/links/stats")
async def link_stats(note: str):
    stats: LinkStats = await service.links.get_link_stats(await _existing_note(note))
    return {**stats.model_dump(), "total": stats.total}


@app.get("/api/links/hubs", response_model=list[HubPage])
async def hub_pages(threshold: int | None = None):
    return await service.links.get_hub_pages(threshold)


@app.get("/api/links/export.csv")
async def export_csv():
    return PlainTextResponse(await service.links.export_stats_to_csv(), media_type="text/csv")


@app.get("/api/links/export.json")
async def export_json():
    return Response(await service.links.export_stats_to_json(), media_type="application/json")


# ========== Batch operations ==========


@app.post("/api/batch/replace", response_model=BatchResult)
async def batch_replace(request: ReplaceRequest):
    return await service.batch.batch_replace_link(
        request.old_link, request.new_link, request.dry_run
    )


@app.post("/api/batch/rename", response_model=BatchResult)
async def batch_rename(request: RenameRequest):
    return await service.batch.rename_all_instances(
        request.old_path, request.new_path, request.dry_run
    )


@app.post("/api/batch/undo")
async def batch_undo():
    return {"undone": await service.batch.undo_last_operation()}


@app.get("/api/batch/preview", response_model=list[PreviewItem])
async def batch_preview(old: str, new: str):
    return await service.batch.preview_changes(old, new)


@app.get("/api/batch/history")
async def batch_history():
    return service.batch.get_undo_history()


# ========== Link previews ==========


@app.get("/api/preview", response_class=HTMLResponse)
async def link_preview(note: str):
    """Render the hover preview for a note's first link."""
    preview = await service.previews.compute_preview(await _existing_note(note))
    if preview is None:
        return HTMLResponse("")
    return HTMLResponse(service.previews.render_preview_html(preview))
