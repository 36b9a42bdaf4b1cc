"""Vault-wide link rewriting with an undo stack."""

import logging
import re
from collections import deque
from datetime import datetime

from linkweaver.config import Settings
from linkweaver.core.exceptions import LinkWeaverError
from linkweaver.core.models import (
    BatchOperation,
    BatchResult,
    FileEdit,
    NoteRef,
    PreviewItem,
    UndoEntry,
)
from linkweaver.core.storage import FileVaultStore, VaultStore

logger = logging.getLogger(__name__)


def link_patterns(link: str) -> tuple[re.Pattern, re.Pattern]:
    """Patterns matching ``[[link]]``/``[[link|text]]`` and ``[text](link)``."""
    escaped = re.escape(link)
    wiki = re.compile(r"\[\[" + escaped + r"(\|[^\]]+)?\]\]")
    markdown = re.compile(r"\[([^\]]+)\]\(" + escaped + r"\)")
    return wiki, markdown


def replace_link(content: str, old_link: str, new_link: str) -> str:
    """Rewrite every occurrence of ``old_link``, keeping display text."""
    wiki, markdown = link_patterns(old_link)
    content = wiki.sub(lambda m: f"[[{new_link}{m.group(1) or ''}]]", content)
    return markdown.sub(lambda m: f"[{m.group(1)}]({new_link})", content)


def count_link_occurrences(content: str, link: str) -> int:
    """Count wiki and Markdown occurrences of ``link`` in content."""
    return sum(1 for pattern in link_patterns(link) for _ in pattern.finditer(content))


def note_title(path: str) -> str:
    """Final path segment without a trailing ``.md``."""
    name = NoteRef(path=path).name
    suffix = FileVaultStore.NOTE_SUFFIX
    return name[: -len(suffix)] if name.endswith(suffix) else name


class BatchOperations:
    """Find/replace of link targets across every note.

    Each non-preview call that changes at least one note pushes one
    UndoEntry; only the most recent ``settings.undo_limit`` are kept.
    """

    def __init__(self, store: VaultStore, settings: Settings):
        self.store = store
        self.settings = settings
        self.undo_stack: deque[UndoEntry] = deque(maxlen=settings.undo_limit)

    def update_configuration(self, settings: Settings) -> None:
        self.settings = settings
        if settings.undo_limit != self.undo_stack.maxlen:
            self.undo_stack = deque(self.undo_stack, maxlen=settings.undo_limit)

    async def batch_replace_link(
        self,
        old_link: str,
        new_link: str,
        dry_run: bool = False,
    ) -> BatchResult:
        """Replace all instances of a link across the vault.

        Notes are processed in store enumeration order. A failure on one
        note is counted and logged; the batch carries on.
        """
        result = BatchResult()
        edits: list[FileEdit] = []
        if not old_link:
            logger.warning("Refusing to replace an empty link")
            return result

        for note in await self.store.list_notes():
            try:
                content = await self.store.read_note(note.path)
                new_content = replace_link(content, old_link, new_link)
                if content == new_content:
                    continue
                if not dry_run:
                    await self.store.write_note(note.path, new_content)
                    edits.append(
                        FileEdit(note=note, prior_content=content, new_content=new_content)
                    )
            except (LinkWeaverError, OSError):
                logger.exception("batch_replace_link failed for %s", note.path)
                result.failed += 1
                result.operations.append(BatchOperation(note=note, success=False))
                continue

            result.success += 1
            result.operations.append(
                BatchOperation(
                    note=note,
                    success=True,
                    prior_content=content,
                    new_content=new_content,
                )
            )

        if edits:
            self.undo_stack.append(UndoEntry(file_edits=edits))

        logger.info(
            "%s %r -> %r: %d changed, %d failed",
            "Previewed" if dry_run else "Replaced",
            old_link,
            new_link,
            result.success,
            result.failed,
        )
        return result

    async def rename_all_instances(
        self,
        old_path: str,
        new_path: str,
        dry_run: bool = False,
    ) -> BatchResult:
        """Rewrite links after a rename, by title substitution."""
        return await self.batch_replace_link(note_title(old_path), note_title(new_path), dry_run)

    async def update_links_on_rename(self, old_path: str, new_path: str) -> BatchResult:
        result = await self.rename_all_instances(old_path, new_path)
        if result.success > 0:
            logger.info("Updated %d link(s) to %s", result.success, note_title(new_path))
        return result

    async def undo_last_operation(self) -> bool:
        """Restore the notes touched by the most recent batch.

        A failure part-way leaves earlier notes restored; the entry is not
        pushed back.
        """
        if not self.undo_stack:
            logger.info("No operations to undo")
            return False

        entry = self.undo_stack.pop()
        try:
            for edit in entry.file_edits:
                await self.store.write_note(edit.note.path, edit.prior_content)
        except (LinkWeaverError, OSError):
            logger.exception("Failed to undo batch operation from %s", entry.timestamp)
            return False

        logger.info("Undid %d operation(s)", len(entry.file_edits))
        return True

    async def preview_changes(self, old_link: str, new_link: str) -> list[PreviewItem]:
        """Dry-run a replacement and count occurrences per affected note."""
        result = await self.batch_replace_link(old_link, new_link, dry_run=True)
        return [
            PreviewItem(note=op.note, change_count=count_link_occurrences(op.prior_content, old_link))
            for op in result.operations
            if op.success
        ]

    def get_undo_history(self) -> list[dict[str, datetime | int]]:
        return [
            {"timestamp": entry.timestamp, "operation_count": len(entry.file_edits)}
            for entry in self.undo_stack
        ]

    def clear_undo_history(self) -> None:
        self.undo_stack.clear()
