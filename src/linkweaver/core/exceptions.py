"""Exceptions raised by LinkWeaver components."""


class LinkWeaverError(Exception):
    """Base class for all LinkWeaver errors."""


class NoteNotFoundError(LinkWeaverError):
    """A note vanished between enumeration and read/write."""

    def __init__(self, path: str):
        super().__init__(f"Note not found: {path}")
        self.path = path


class VaultIOError(LinkWeaverError):
    """Underlying write failure in the document store."""

    def __init__(self, path: str, reason: str = ""):
        message = f"Failed to write note: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.path = path


class InvalidPatternError(LinkWeaverError, ValueError):
    """A user-supplied regular expression failed to compile."""

    def __init__(self, pattern: str, reason: str = ""):
        super().__init__(f"Invalid regex pattern: {pattern!r} {reason}".rstrip())
        self.pattern = pattern
