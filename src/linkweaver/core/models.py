"""Data models for LinkWeaver."""

import posixpath
from datetime import date, datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class NoteRef(BaseModel):
    """Opaque reference to a note, addressed by its vault-relative path."""

    model_config = ConfigDict(frozen=True)

    path: str

    @property
    def name(self) -> str:
        """Final path segment, including the extension."""
        return posixpath.basename(self.path)

    @property
    def basename(self) -> str:
        """Human-facing title: the final segment without its extension."""
        stem, _ = posixpath.splitext(self.name)
        return stem

    @property
    def extension(self) -> str:
        """Extension without the leading dot."""
        return posixpath.splitext(self.name)[1].lstrip(".")

    @property
    def parent(self) -> str:
        """Parent folder path ("" for the vault root)."""
        return posixpath.dirname(self.path)


# ============================================================
# Title patterns
# ============================================================


class NumericMatch(BaseModel):
    """Integer ordering key from one of the built-in numeric strategies."""

    kind: Literal["numeric"] = "numeric"
    prefix: str = ""
    value: int
    suffix: str = ""
    matched_text: str
    strategy_id: str


class DateMatch(BaseModel):
    """Calendar date ordering key. Prefix and suffix are always empty."""

    kind: Literal["date"] = "date"
    prefix: str = ""
    value: date
    suffix: str = ""
    matched_text: str
    strategy_id: str


class CustomMatch(BaseModel):
    """Raw captured text from a user-supplied pattern."""

    kind: Literal["custom"] = "custom"
    prefix: str = ""
    value: str
    suffix: str = ""
    matched_text: str
    strategy_id: str


ParsedPattern = Annotated[
    Union[NumericMatch, DateMatch, CustomMatch],
    Field(discriminator="kind"),
]


class SequenceInfo(BaseModel):
    """An ordered run of sibling notes sharing a title pattern."""

    ordered_notes: list[NoteRef] = Field(min_length=2)
    current_index: int = Field(ge=-1)
    pattern_label: str
    strategy_id: str
    kind: Literal["numeric", "date", "custom"]

    @property
    def current(self) -> NoteRef | None:
        if self.current_index < 0:
            return None
        return self.ordered_notes[self.current_index]


# ============================================================
# References and links
# ============================================================


class ReferenceOccurrence(BaseModel):
    """One link or embed occurrence as reported by the reference index."""

    link: str
    display_text: str | None = None
    line: int = Field(default=0, ge=0)


class NoteReferences(BaseModel):
    """Outbound references of a single note."""

    links: list[ReferenceOccurrence] = Field(default_factory=list)
    embeds: list[ReferenceOccurrence] = Field(default_factory=list)

    def all(self) -> list[ReferenceOccurrence]:
        return [*self.links, *self.embeds]


class RuleViolation(BaseModel):
    rule: str
    message: str
    severity: Literal["error", "warning"] = "error"


class LinkRecord(BaseModel):
    """A resolved or unresolved link from one note.

    ``resolved`` is only True when the target exists in the live vault.
    A record whose index-time target has since vanished keeps that stale
    target in ``target_note`` and is reported as broken.
    """

    source_note: NoteRef
    raw_text: str
    display_text: str
    line_number: int = Field(ge=0)
    resolved: bool
    target_note: NoteRef | None = None
    rule_violations: list[RuleViolation] = Field(default_factory=list)

    @property
    def broken(self) -> bool:
        return not self.resolved and self.target_note is not None


class ValidationResult(BaseModel):
    """Vault-wide link validation summary."""

    broken_links: list[LinkRecord] = Field(default_factory=list)
    unresolved_links: list[LinkRecord] = Field(default_factory=list)
    total_files: int = 0
    total_links: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)


class LinkStats(BaseModel):
    outgoing: int = Field(default=0, ge=0)
    incoming: int = Field(default=0, ge=0)
    unresolved: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.outgoing + self.incoming


class HubPage(BaseModel):
    note: NoteRef
    total: int


# ============================================================
# Batch operations
# ============================================================


class FileEdit(BaseModel):
    note: NoteRef
    prior_content: str
    new_content: str


class UndoEntry(BaseModel):
    """One reversible batch call; edits are kept in processing order."""

    timestamp: datetime = Field(default_factory=datetime.now)
    file_edits: list[FileEdit] = Field(default_factory=list)


class BatchOperation(BaseModel):
    note: NoteRef
    success: bool
    prior_content: str = ""
    new_content: str = ""


class BatchResult(BaseModel):
    success: int = 0
    failed: int = 0
    operations: list[BatchOperation] = Field(default_factory=list)


class PreviewItem(BaseModel):
    note: NoteRef
    change_count: int


# ============================================================
# Previews and events
# ============================================================


class LinkPreview(BaseModel):
    link_text: str
    source_note: NoteRef
    target_note: NoteRef | None = None
    context: str
    line_number: int
    type: Literal["outgoing", "incoming", "unresolved"]


class VaultEvent(BaseModel):
    """Create/modify/rename/delete notification from the host store."""

    kind: Literal["create", "modify", "rename", "delete"]
    path: str
    old_path: str | None = None
