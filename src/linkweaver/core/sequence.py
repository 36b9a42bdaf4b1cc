"""Sequence detection among sibling notes."""

import locale
import logging
from functools import cmp_to_key

from linkweaver.config import Settings
from linkweaver.core.cache import TimedCache
from linkweaver.core.models import DateMatch, NoteRef, SequenceInfo
from linkweaver.core.natural import natural_compare
from linkweaver.core.patterns import TitlePatternParser, parse_iso_date
from linkweaver.core.storage import VaultStore

logger = logging.getLogger(__name__)


def _compare_notes(a: NoteRef, b: NoteRef) -> int:
    """Natural order of filenames, with deterministic tie-breaks."""
    result = natural_compare(a.name, b.name)
    if result == 0:
        result = locale.strcoll(a.name, b.name)
    if result == 0:
        result = (a.path > b.path) - (a.path < b.path)
    return result


_note_key = cmp_to_key(_compare_notes)


def sort_notes_naturally(notes: list[NoteRef]) -> list[NoteRef]:
    return sorted(notes, key=_note_key)


class SequenceDetector:
    """Finds the ordered sequence a note belongs to.

    Only siblings in the note's own folder are considered. Results are
    cached per note path for ``settings.cache_max_age_ms``.
    """

    def __init__(self, store: VaultStore, settings: Settings):
        self.store = store
        self.settings = settings
        self.parser = TitlePatternParser(settings.active_patterns)
        self.cache: TimedCache[str, SequenceInfo] = TimedCache(settings.cache_max_age_ms)

    async def _siblings(self, note: NoteRef) -> list[NoteRef]:
        return [n for n in await self.store.list_notes() if n.parent == note.parent]

    async def detect_sequence(self, note: NoteRef) -> SequenceInfo | None:
        """Return the sequence containing ``note``, or None if there is none."""
        cached = self.cache.get(note.path)
        if cached is not None:
            return cached

        parsed = self.parser.parse(note.basename)
        if parsed is None:
            return None

        siblings = await self._siblings(note)

        if isinstance(parsed, DateMatch):
            dated = []
            for sibling in siblings:
                found = parse_iso_date(sibling.basename)
                if found is not None:
                    dated.append((found[0], sibling))
            if len(dated) < 2:
                return None
            dated.sort(key=lambda item: (item[0], _note_key(item[1])))
            ordered = [sibling for _, sibling in dated]
            label = "date"
            kind = "date"
        else:
            members = []
            for sibling in siblings:
                other = self.parser.parse(sibling.basename)
                if (
                    other is not None
                    and other.strategy_id == parsed.strategy_id
                    and other.prefix == parsed.prefix
                    and other.suffix == parsed.suffix
                ):
                    members.append(sibling)
            if len(members) < 2:
                return None
            ordered = sort_notes_naturally(members)
            if parsed.kind == "custom":
                strategy = self.parser.strategy_for(parsed.strategy_id)
                label = strategy.label if strategy else parsed.strategy_id
            else:
                label = parsed.prefix or "numeric"
            kind = parsed.kind

        current_index = next(
            (i for i, n in enumerate(ordered) if n.path == note.path),
            -1,
        )
        info = SequenceInfo(
            ordered_notes=ordered,
            current_index=current_index,
            pattern_label=label,
            strategy_id=parsed.strategy_id,
            kind=kind,
        )
        self.cache.set(note.path, info)
        logger.debug(
            "Detected %s sequence of %d notes for %s",
            info.strategy_id,
            len(info.ordered_notes),
            note.path,
        )
        return info

    def update_configuration(self, settings: Settings) -> None:
        """Apply new settings; changing patterns invalidates every entry."""
        self.settings = settings
        self.parser.update_patterns(settings.active_patterns)
        self.cache = TimedCache(settings.cache_max_age_ms)

    def clear_cache(self) -> None:
        self.cache.clear()

    def invalidate_file(self, path: str) -> None:
        self.cache.delete(path)

    def invalidate_folder(self, folder: str) -> None:
        """Drop cached sequences of every note directly inside ``folder``."""
        for path in self.cache.keys():
            if NoteRef(path=path).parent == folder:
                self.cache.delete(path)
