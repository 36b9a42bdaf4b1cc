"""Document store abstraction for vault notes."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

from linkweaver.core.exceptions import NoteNotFoundError, VaultIOError
from linkweaver.core.models import NoteRef, VaultEvent

logger = logging.getLogger(__name__)


class VaultStore(ABC):
    """Abstract base class for the host document store."""

    @abstractmethod
    async def list_notes(self) -> list[NoteRef]:
        """Enumerate all text notes in a stable order."""
        ...

    @abstractmethod
    async def read_note(self, path: str) -> str:
        """Read full note content. Raises NoteNotFoundError if missing."""
        ...

    @abstractmethod
    async def write_note(self, path: str, content: str) -> None:
        """Replace note content.

        Raises NoteNotFoundError if the note is gone and VaultIOError on
        any other write failure.
        """
        ...

    @abstractmethod
    async def note_exists(self, path: str) -> bool:
        """Check if a note exists."""
        ...


class FileVaultStore(VaultStore):
    """File-based store.

    Notes are Markdown files anywhere below ``base_path``; a note's path is
    its POSIX path relative to the base, e.g. ``"Journal/2025-01-15.md"``.
    """

    NOTE_SUFFIX = ".md"

    def __init__(
        self,
        base_path: Path,
        on_event: Callable[[VaultEvent], None] | None = None,
    ):
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.on_event = on_event

    def _get_path(self, path: str) -> Path:
        """Get the filesystem path for a note, refusing to leave the vault."""
        full = (self.base_path / path).resolve()
        base = self.base_path.resolve()
        if full != base and base not in full.parents:
            raise NoteNotFoundError(path)
        return full

    def _to_note_path(self, file: Path) -> str:
        return file.relative_to(self.base_path).as_posix()

    def _emit(self, event: VaultEvent) -> None:
        if self.on_event is not None:
            self.on_event(event)

    async def list_notes(self) -> list[NoteRef]:
        notes = [
            NoteRef(path=self._to_note_path(file))
            for file in self.base_path.rglob(f"*{self.NOTE_SUFFIX}")
            if file.is_file()
        ]
        return sorted(notes, key=lambda n: n.path)

    async def read_note(self, path: str) -> str:
        file = self._get_path(path)
        try:
            return file.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise NoteNotFoundError(path) from e

    async def write_note(self, path: str, content: str) -> None:
        file = self._get_path(path)
        if not file.exists():
            raise NoteNotFoundError(path)
        try:
            file.write_text(content, encoding="utf-8")
        except OSError as e:
            raise VaultIOError(path, str(e)) from e
        self._emit(VaultEvent(kind="modify", path=path))

    async def note_exists(self, path: str) -> bool:
        try:
            return self._get_path(path).is_file()
        except NoteNotFoundError:
            return False

    async def create_note(self, path: str, content: str = "") -> NoteRef:
        """Create (or overwrite) a note, creating parent folders."""
        file = self._get_path(path)
        try:
            file.parent.mkdir(parents=True, exist_ok=True)
            file.write_text(content, encoding="utf-8")
        except OSError as e:
            raise VaultIOError(path, str(e)) from e
        self._emit(VaultEvent(kind="create", path=path))
        return NoteRef(path=path)

    async def rename_note(self, old_path: str, new_path: str) -> NoteRef:
        """Move a note. Does not touch links pointing at it."""
        source = self._get_path(old_path)
        target = self._get_path(new_path)
        if not source.exists():
            raise NoteNotFoundError(old_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            source.rename(target)
        except OSError as e:
            raise VaultIOError(new_path, str(e)) from e
        self._emit(VaultEvent(kind="rename", path=new_path, old_path=old_path))
        return NoteRef(path=new_path)

    async def delete_note(self, path: str) -> bool:
        """Delete a note. Returns True if deleted, False if not found."""
        file = self._get_path(path)
        if not file.exists():
            return False
        file.unlink()
        self._emit(VaultEvent(kind="delete", path=path))
        return True
