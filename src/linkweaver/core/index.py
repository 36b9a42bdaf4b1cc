"""Reference index: which links each note contains and where they point."""

import logging
import posixpath
from abc import ABC, abstractmethod
from collections import defaultdict

from linkweaver.core.exceptions import LinkWeaverError
from linkweaver.core.models import NoteRef, NoteReferences
from linkweaver.core.parser import clean_link, extract_references
from linkweaver.core.storage import VaultStore

logger = logging.getLogger(__name__)


class ReferenceIndex(ABC):
    """Abstract base class for the host's precomputed reference index."""

    @abstractmethod
    def get_references(self, path: str) -> NoteReferences | None:
        """Outbound references of a note, or None if it is not indexed."""
        ...

    @abstractmethod
    def resolve(self, link: str, source_path: str) -> NoteRef | None:
        """Resolve a raw link from ``source_path`` to a target note."""
        ...


class MarkdownReferenceIndex(ReferenceIndex):
    """In-memory index built by parsing every note in a VaultStore.

    Resolution runs against the set of notes known when the index was last
    updated, so a target deleted without a refresh still resolves. Callers
    compare against the live listing to detect broken links.
    """

    def __init__(self, store: VaultStore):
        self.store = store
        self._references: dict[str, NoteReferences] = {}
        self._known: set[str] = set()
        self._by_name: dict[str, set[str]] = defaultdict(set)

    @property
    def note_count(self) -> int:
        return len(self._known)

    @property
    def link_count(self) -> int:
        return sum(len(refs.all()) for refs in self._references.values())

    def _add_known(self, path: str) -> None:
        self._known.add(path)
        self._by_name[posixpath.basename(path).lower()].add(path)

    def _remove_known(self, path: str) -> None:
        self._known.discard(path)
        self._by_name[posixpath.basename(path).lower()].discard(path)

    async def rebuild(self) -> None:
        """Re-read every note in the store."""
        self._references.clear()
        self._known.clear()
        self._by_name.clear()

        for note in await self.store.list_notes():
            self._add_known(note.path)
            try:
                content = await self.store.read_note(note.path)
            except LinkWeaverError:
                logger.warning("Note %s vanished while indexing", note.path)
                self._remove_known(note.path)
                continue
            self._references[note.path] = extract_references(content)

        logger.info(
            "Reference index built: %d notes, %d links",
            self.note_count,
            self.link_count,
        )

    async def refresh(self, path: str) -> None:
        """Re-index a single note, dropping it if it no longer exists."""
        try:
            content = await self.store.read_note(path)
        except LinkWeaverError:
            self.remove(path)
            return
        self._add_known(path)
        self._references[path] = extract_references(content)

    def remove(self, path: str) -> None:
        self._references.pop(path, None)
        self._remove_known(path)

    def get_references(self, path: str) -> NoteReferences | None:
        return self._references.get(path)

    def resolve(self, link: str, source_path: str) -> NoteRef | None:
        linkpath = clean_link(link)
        if not linkpath:
            # [[#Heading]] points back at the source note
            return NoteRef(path=source_path) if source_path in self._known else None

        linkpath = linkpath.lstrip("/")
        candidates = [linkpath] if linkpath.endswith(".md") else [f"{linkpath}.md", linkpath]
        source_dir = posixpath.dirname(source_path)

        for candidate in candidates:
            relative = posixpath.normpath(posixpath.join(source_dir, candidate))
            if relative in self._known:
                return NoteRef(path=relative)
            exact = posixpath.normpath(candidate)
            if exact in self._known:
                return NoteRef(path=exact)

        for candidate in candidates:
            matches = self._match_by_name(candidate)
            if matches:
                best = min(
                    matches,
                    key=lambda p: (posixpath.dirname(p) != source_dir, len(p), p),
                )
                return NoteRef(path=best)

        return None

    def _match_by_name(self, candidate: str) -> list[str]:
        lowered = candidate.lower()
        name = posixpath.basename(lowered)
        return [
            path
            for path in self._by_name.get(name, ())
            if path.lower() == lowered or path.lower().endswith("/" + lowered)
        ]
