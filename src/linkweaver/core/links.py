"""Link extraction, validation and graph statistics."""

import json
import logging
import re
from collections import Counter
from datetime import datetime, timezone

from linkweaver.config import Settings, ValidationRuleConfig
from linkweaver.core.exceptions import InvalidPatternError
from linkweaver.core.index import ReferenceIndex
from linkweaver.core.models import (
    HubPage,
    LinkRecord,
    LinkStats,
    NoteRef,
    ReferenceOccurrence,
    RuleViolation,
    ValidationResult,
)
from linkweaver.core.patterns import compile_pattern
from linkweaver.core.storage import VaultStore

logger = logging.getLogger(__name__)

CSV_HEADER = "File,Outgoing Links,Incoming Links,Unresolved Links,Total Links"


def _csv_quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


class LinkManager:
    """Derives link records and statistics from the reference index.

    Nothing here is cached: every call reflects the live index and the
    live note listing.
    """

    def __init__(self, store: VaultStore, index: ReferenceIndex, settings: Settings):
        self.store = store
        self.index = index
        self.settings = settings

    def update_configuration(self, settings: Settings) -> None:
        self.settings = settings

    async def _live_paths(self) -> set[str]:
        return {n.path for n in await self.store.list_notes()}

    def _make_record(
        self,
        note: NoteRef,
        occurrence: ReferenceOccurrence,
        live: set[str],
    ) -> LinkRecord:
        target = self.index.resolve(occurrence.link, note.path)
        return LinkRecord(
            source_note=note,
            raw_text=occurrence.link,
            display_text=occurrence.display_text or occurrence.link,
            line_number=occurrence.line,
            resolved=target is not None and target.path in live,
            target_note=target,
        )

    def _extract(self, note: NoteRef, live: set[str]) -> list[LinkRecord]:
        refs = self.index.get_references(note.path)
        if refs is None:
            return []
        return [self._make_record(note, occ, live) for occ in refs.all()]

    async def _all_records(self) -> tuple[list[NoteRef], dict[str, list[LinkRecord]]]:
        notes = await self.store.list_notes()
        live = {n.path for n in notes}
        return notes, {n.path: self._extract(n, live) for n in notes}

    # ========== Validation ==========

    async def validate_file_links(self, note: NoteRef) -> list[LinkRecord]:
        """All link records of one note, with validation rules applied."""
        records = self._extract(note, await self._live_paths())
        return self.apply_validation_rules(records, self.settings.active_rules)

    async def validate_all_links(self) -> ValidationResult:
        """Partition every link in the vault into unresolved and broken."""
        notes, by_note = await self._all_records()
        result = ValidationResult(total_files=len(notes))

        for records in by_note.values():
            result.total_links += len(records)
            for record in records:
                if record.broken:
                    result.broken_links.append(record)
                elif not record.resolved:
                    result.unresolved_links.append(record)

        logger.info(
            "Validated %d links in %d files: %d unresolved, %d broken",
            result.total_links,
            result.total_files,
            len(result.unresolved_links),
            len(result.broken_links),
        )
        return result

    def apply_validation_rules(
        self,
        records: list[LinkRecord],
        rules: list[ValidationRuleConfig],
    ) -> list[LinkRecord]:
        """Attach rule violations to each record that breaks an enabled rule."""
        checks = []
        for rule in rules:
            if not rule.enabled:
                continue
            regex = None
            if rule.type == "pattern" and rule.pattern:
                try:
                    regex = compile_pattern(rule.pattern)
                except InvalidPatternError:
                    logger.warning("Skipping rule %r: invalid regex %r", rule.name, rule.pattern)
                    continue
            checks.append((rule, regex))

        for record in records:
            for rule, regex in checks:
                if self._violates(record, rule, regex):
                    record.rule_violations.append(
                        RuleViolation(rule=rule.name, message=rule.error, severity=rule.severity)
                    )
        return records

    @staticmethod
    def _violates(record: LinkRecord, rule: ValidationRuleConfig, regex: re.Pattern | None) -> bool:
        target = record.target_note
        if rule.type == "pattern":
            return regex is not None and regex.search(record.raw_text) is not None
        if rule.type == "folder" and rule.folder and target is not None:
            folder = rule.folder if rule.folder.endswith("/") else rule.folder + "/"
            return target.path.startswith(folder)
        if rule.type == "extension" and rule.extensions and target is not None:
            return target.extension not in rule.extensions
        return False

    # ========== Graph statistics ==========

    async def get_link_stats(self, note: NoteRef) -> LinkStats:
        """Outgoing, incoming and unresolved counts for one note.

        Incoming links are counted by scanning every other note.
        """
        _, by_note = await self._all_records()
        own = by_note.get(note.path, [])
        incoming = sum(
            1
            for path, records in by_note.items()
            if path != note.path
            for record in records
            if record.resolved and record.target_note.path == note.path
        )
        return LinkStats(
            outgoing=len(own),
            incoming=incoming,
            unresolved=sum(1 for r in own if not r.resolved),
        )

    async def get_all_stats(self) -> list[tuple[NoteRef, LinkStats]]:
        """Stats for every note from a single pass over the vault."""
        notes, by_note = await self._all_records()
        incoming: Counter[str] = Counter()
        for path, records in by_note.items():
            for record in records:
                if record.resolved and record.target_note.path != path:
                    incoming[record.target_note.path] += 1

        return [
            (
                note,
                LinkStats(
                    outgoing=len(by_note[note.path]),
                    incoming=incoming[note.path],
                    unresolved=sum(1 for r in by_note[note.path] if not r.resolved),
                ),
            )
            for note in notes
        ]

    async def get_orphaned_notes(self) -> list[NoteRef]:
        """Notes with no outgoing and no incoming links."""
        return [
            note
            for note, stats in await self.get_all_stats()
            if stats.outgoing == 0 and stats.incoming == 0
        ]

    async def get_hub_pages(self, threshold: int | None = None) -> list[HubPage]:
        """Notes whose combined link degree meets ``threshold``, busiest first."""
        if threshold is None:
            threshold = self.settings.hub_threshold
        hubs = [
            HubPage(note=note, total=stats.total)
            for note, stats in await self.get_all_stats()
            if stats.total >= threshold
        ]
        return sorted(hubs, key=lambda h: h.total, reverse=True)

    # ========== Export ==========

    async def export_stats_to_csv(self) -> str:
        rows = [CSV_HEADER]
        for note, stats in await self.get_all_stats():
            rows.append(
                f"{_csv_quote(note.path)},{stats.outgoing},{stats.incoming},"
                f"{stats.unresolved},{stats.total}"
            )
        return "\n".join(rows)

    async def export_stats_to_json(self) -> str:
        all_stats = await self.get_all_stats()
        export_date = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        return json.dumps(
            {
                "exportDate": export_date.replace("+00:00", "Z"),
                "totalFiles": len(all_stats),
                "statistics": [
                    {
                        "file": note.path,
                        "outgoing": stats.outgoing,
                        "incoming": stats.incoming,
                        "unresolved": stats.unresolved,
                        "total": stats.total,
                    }
                    for note, stats in all_stats
                ],
            },
            indent=2,
            ensure_ascii=False,
        )
