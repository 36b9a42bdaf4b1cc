"""Link previews: surrounding context for outgoing and incoming links."""

import logging

from linkweaver.config import Settings
from linkweaver.core.exceptions import LinkWeaverError
from linkweaver.core.index import ReferenceIndex
from linkweaver.core.models import LinkPreview, NoteRef
from linkweaver.core.parser import render_markdown
from linkweaver.core.storage import VaultStore

logger = logging.getLogger(__name__)


def extract_context(content: str, line_number: int, context_length: int = 200) -> str:
    """Text around ``line_number``, about ``context_length`` characters long.

    Neighbouring lines are added before and after the target line until
    the length is reached; overly long context is cut around the target
    line and marked with ``...``.
    """
    lines = content.split("\n")
    if line_number < 0 or line_number >= len(lines):
        return ""

    target = lines[line_number]
    context = target
    length = len(target)

    before = line_number - 1
    while before >= 0 and length < context_length:
        context = lines[before] + "\n" + context
        length += len(lines[before]) + 1
        before -= 1

    after = line_number + 1
    while after < len(lines) and length < context_length:
        context = context + "\n" + lines[after]
        length += len(lines[after]) + 1
        after += 1

    if len(context) > context_length:
        half = context_length // 2
        pos = context.find(target)
        start = max(0, pos - half)
        end = min(len(context), pos + len(target) + half)
        context = (
            ("..." if start > 0 else "")
            + context[start:end]
            + ("..." if end < len(context) else "")
        )

    return context


class LinkPreviewManager:
    """Builds LinkPreview records for a note's outgoing and incoming links."""

    def __init__(self, store: VaultStore, index: ReferenceIndex, settings: Settings):
        self.store = store
        self.index = index
        self.settings = settings

    def update_configuration(self, settings: Settings) -> None:
        self.settings = settings

    async def get_link_context(
        self,
        note: NoteRef,
        line_number: int,
        context_length: int | None = None,
    ) -> str:
        if context_length is None:
            context_length = self.settings.link_preview_length
        content = await self.store.read_note(note.path)
        return extract_context(content, line_number, context_length)

    async def get_file_link_previews(
        self,
        note: NoteRef,
        filter_type: str | None = None,
    ) -> list[LinkPreview]:
        """Previews of links from and to ``note``.

        Args:
            note: The note to preview.
            filter_type: Optional "outgoing", "incoming" or "unresolved".
        """
        previews: list[LinkPreview] = []
        if filter_type in (None, "outgoing", "unresolved"):
            previews.extend(await self._outgoing(note, filter_type))
        if filter_type in (None, "incoming"):
            previews.extend(await self._incoming(note))
        return previews

    async def _outgoing(self, note: NoteRef, filter_type: str | None) -> list[LinkPreview]:
        refs = self.index.get_references(note.path)
        if refs is None:
            return []
        live = {n.path for n in await self.store.list_notes()}

        previews = []
        for ref in refs.all():
            target = self.index.resolve(ref.link, note.path)
            unresolved = target is None or target.path not in live
            if filter_type == "unresolved" and not unresolved:
                continue
            if filter_type == "outgoing" and unresolved:
                continue
            previews.append(
                LinkPreview(
                    link_text=ref.link,
                    source_note=note,
                    target_note=None if unresolved else target,
                    context=await self.get_link_context(note, ref.line),
                    line_number=ref.line,
                    type="unresolved" if unresolved else "outgoing",
                )
            )
        return previews

    async def _incoming(self, note: NoteRef) -> list[LinkPreview]:
        previews = []
        for source in await self.store.list_notes():
            if source.path == note.path:
                continue
            refs = self.index.get_references(source.path)
            if refs is None:
                continue
            for ref in refs.all():
                target = self.index.resolve(ref.link, source.path)
                if target is None or target.path != note.path:
                    continue
                try:
                    context = await self.get_link_context(source, ref.line)
                except LinkWeaverError:
                    logger.warning("Skipping preview from vanished note %s", source.path)
                    break
                previews.append(
                    LinkPreview(
                        link_text=source.basename,
                        source_note=source,
                        target_note=note,
                        context=context,
                        line_number=ref.line,
                        type="incoming",
                    )
                )
        return previews

    async def compute_preview(self, note: NoteRef) -> LinkPreview | None:
        """The first preview for ``note``, as shown on hover."""
        previews = await self.get_file_link_previews(note)
        return previews[0] if previews else None

    def render_preview_html(self, preview: LinkPreview) -> str:
        """Render a preview's context to HTML, marking unresolved links.

        Links resolve from the note the context was taken from.
        """
        source = preview.source_note.path
        return render_markdown(
            preview.context,
            note_exists=lambda link: self.index.resolve(link, source) is not None,
        )
