"""Next/previous navigation within detected sequences."""

import logging
import re

from linkweaver.config import Settings
from linkweaver.core.models import NoteRef, SequenceInfo
from linkweaver.core.sequence import SequenceDetector
from linkweaver.core.storage import VaultStore

logger = logging.getLogger(__name__)

HORIZONTAL_RULES = {"---", "***", "___"}
NAV_SEPARATOR = "\n\n---\n\n"
_WIKI_LINK = re.compile(r"\[\[.+?\]\]")
_NAV_MARKERS = ("←", "→", "Previous", "Next", "|")


def position_label(info: SequenceInfo, index: int) -> str:
    """Human-readable position, e.g. ``"2 of 5 | Chapter "``."""
    return f"{index + 1} of {len(info.ordered_notes)} | {info.pattern_label}"


class Navigator:
    """Moves through a note's sequence, optionally wrapping around."""

    def __init__(self, detector: SequenceDetector, settings: Settings):
        self.detector = detector
        self.settings = settings

    def next_index(self, info: SequenceInfo) -> int:
        """Index after the current note, or -1 at the end."""
        nxt = info.current_index + 1
        if nxt >= len(info.ordered_notes):
            return 0 if self.settings.circular_navigation else -1
        return nxt

    def previous_index(self, info: SequenceInfo) -> int:
        """Index before the current note, or -1 at the start."""
        prev = info.current_index - 1
        if prev < 0:
            return len(info.ordered_notes) - 1 if self.settings.circular_navigation else -1
        return prev

    async def _step(self, note: NoteRef, forward: bool) -> NoteRef | None:
        info = await self.detector.detect_sequence(note)
        if info is None:
            logger.info("No sequence detected for %s", note.path)
            return None
        index = self.next_index(info) if forward else self.previous_index(info)
        if index == -1:
            logger.info(
                "Already at the %s of the sequence",
                "end" if forward else "beginning",
            )
            return None
        if self.settings.show_visual_indicators:
            logger.info("%s", position_label(info, index))
        return info.ordered_notes[index]

    async def next_note(self, note: NoteRef) -> NoteRef | None:
        return await self._step(note, forward=True)

    async def previous_note(self, note: NoteRef) -> NoteRef | None:
        return await self._step(note, forward=False)

    async def note_at(self, note: NoteRef, index: int) -> NoteRef | None:
        """Note at an absolute position in ``note``'s sequence."""
        info = await self.detector.detect_sequence(note)
        if info is None or not 0 <= index < len(info.ordered_notes):
            return None
        return info.ordered_notes[index]

    def update_configuration(self, settings: Settings) -> None:
        self.settings = settings


class LinkInserter:
    """Writes ``← [[prev]] | [[next]] →`` footers into sequence notes."""

    def __init__(self, store: VaultStore, detector: SequenceDetector, settings: Settings):
        self.store = store
        self.detector = detector
        self.settings = settings

    def _neighbours(self, info: SequenceInfo, index: int) -> tuple[NoteRef | None, NoteRef | None]:
        notes = info.ordered_notes
        prev = notes[index - 1] if index > 0 else None
        nxt = notes[index + 1] if index < len(notes) - 1 else None
        if self.settings.circular_navigation and len(notes) > 1:
            prev = prev or notes[-1]
            nxt = nxt or notes[0]
        return prev, nxt

    async def insert_sequence_links(self, note: NoteRef) -> bool:
        """Add or replace the navigation footer of a single note.

        Returns False when there is no sequence or no neighbour. Read and
        write failures propagate to the caller.
        """
        info = await self.detector.detect_sequence(note)
        if info is None or info.current_index < 0:
            logger.info("No sequence detected for %s", note.path)
            return False

        prev, nxt = self._neighbours(info, info.current_index)
        if prev is None and nxt is None:
            return False

        await self._write_links(note, prev, nxt)
        logger.info("Sequence links added to %s", note.path)
        return True

    async def update_all_sequence_links(self, note: NoteRef) -> int:
        """Rewrite the footer of every note in ``note``'s sequence."""
        info = await self.detector.detect_sequence(note)
        if info is None:
            return 0

        updated = 0
        for index, member in enumerate(info.ordered_notes):
            prev, nxt = self._neighbours(info, index)
            if prev is None and nxt is None:
                continue
            await self._write_links(member, prev, nxt)
            updated += 1
        logger.info("Updated links in %d files", updated)
        return updated

    async def _write_links(self, note: NoteRef, prev: NoteRef | None, nxt: NoteRef | None) -> None:
        content = await self.store.read_note(note.path)
        cleaned = remove_navigation_section(content)
        new_content = cleaned.strip() + NAV_SEPARATOR + navigation_links(prev, nxt)
        await self.store.write_note(note.path, new_content)

    def update_configuration(self, settings: Settings) -> None:
        self.settings = settings


def navigation_links(prev: NoteRef | None, nxt: NoteRef | None) -> str:
    parts = []
    if prev is not None:
        parts.append(f"← [[{prev.basename}]]")
    if nxt is not None:
        parts.append(f"[[{nxt.basename}]] →")
    return " | ".join(parts)


def _looks_like_navigation(text: str) -> bool:
    text = text.strip()
    return bool(_WIKI_LINK.search(text)) and any(marker in text for marker in _NAV_MARKERS)


def remove_navigation_section(content: str) -> str:
    """Strip a trailing navigation footer introduced by a horizontal rule."""
    lines = content.split("\n")
    for i in range(len(lines) - 1, -1, -1):
        if lines[i].strip() in HORIZONTAL_RULES:
            if _looks_like_navigation("\n".join(lines[i + 1 :])):
                return "\n".join(lines[:i])
            break
    return content
