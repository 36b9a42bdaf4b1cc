"""Tests for link validation, graph statistics and export."""

import json

import pytest
import pytest_asyncio

from linkweaver.config import ValidationRuleConfig
from linkweaver.core.links import CSV_HEADER
from linkweaver.core.models import NoteRef


@pytest_asyncio.fixture
async def links(make_vault, weaver):
    make_vault(
        {
            "Hub.md": "[[A]] [[B]] [[C]]\n![[A]]\n[[Nowhere]]",
            "A.md": "[[Hub]]",
            "B.md": "[[Hub#Intro|back]]",
            "C.md": "",
            "Lonely.md": "no links here",
        }
    )
    await weaver.index.rebuild()
    return weaver.links


# ============================================================
# Validation
# ============================================================


class TestValidation:
    @pytest.mark.asyncio
    async def test_file_records(self, links):
        records = await links.validate_file_links(NoteRef(path="B.md"))
        assert len(records) == 1
        record = records[0]
        assert record.raw_text == "Hub#Intro"
        assert record.display_text == "back"
        assert record.resolved is True
        assert record.target_note.path == "Hub.md"
        assert record.line_number == 0

    @pytest.mark.asyncio
    async def test_unresolved_vs_broken(self, links, weaver, settings):
        (settings.vault_dir / "C.md").unlink()
        result = await links.validate_all_links()

        unresolved = [r.raw_text for r in result.unresolved_links]
        broken = [r.raw_text for r in result.broken_links]
        assert unresolved == ["Nowhere"]
        assert broken == ["C"]
        assert result.broken_links[0].resolved is False
        assert result.broken_links[0].target_note.path == "C.md"
        assert result.total_links == 7
        assert result.total_files == 4

    @pytest.mark.asyncio
    async def test_partitions_disjoint(self, links, settings):
        (settings.vault_dir / "A.md").unlink()
        result = await links.validate_all_links()
        unresolved = {(r.source_note.path, r.raw_text, r.line_number) for r in result.unresolved_links}
        broken = {(r.source_note.path, r.raw_text, r.line_number) for r in result.broken_links}
        assert unresolved.isdisjoint(broken)
        assert ("Hub.md", "A", 1) in broken

    @pytest.mark.asyncio
    async def test_rules_applied(self, links, settings, weaver):
        rules = [
            ValidationRuleConfig(
                name="no-hub", type="pattern", pattern=r"^Hub", error="Avoid hub links"
            ),
            ValidationRuleConfig(name="bad", type="pattern", pattern=r"(", error="x"),
        ]
        weaver.update_configuration(settings.model_copy(update={"validation_rules": rules}))
        records = await links.validate_file_links(NoteRef(path="A.md"))
        assert [v.rule for v in records[0].rule_violations] == ["no-hub"]
        assert records[0].rule_violations[0].message == "Avoid hub links"

    @pytest.mark.asyncio
    async def test_folder_and_extension_rules(self, links):
        records = await links.validate_file_links(NoteRef(path="Hub.md"))
        rules = [
            ValidationRuleConfig(name="only-pdf", type="extension", extensions=["pdf"]),
            ValidationRuleConfig(name="root", type="folder", folder="Archive"),
            ValidationRuleConfig(name="later", type="custom"),
        ]
        checked = links.apply_validation_rules(records, rules)
        resolved = [r for r in checked if r.resolved]
        assert all([v.rule for v in r.rule_violations] == ["only-pdf"] for r in resolved)
        unresolved = [r for r in checked if not r.resolved]
        assert unresolved[0].rule_violations == []


# ============================================================
# Statistics
# ============================================================


class TestStats:
    @pytest.mark.asyncio
    async def test_hub_stats(self, links):
        stats = await links.get_link_stats(NoteRef(path="Hub.md"))
        assert stats.outgoing == 5
        assert stats.incoming == 2
        assert stats.unresolved == 1
        assert stats.total == 7

    @pytest.mark.asyncio
    async def test_incoming_counts_every_occurrence(self, links):
        stats = await links.get_link_stats(NoteRef(path="A.md"))
        assert stats.incoming == 2
        assert stats.outgoing == 1

    @pytest.mark.asyncio
    async def test_orphans(self, links):
        orphans = await links.get_orphaned_notes()
        assert [n.path for n in orphans] == ["Lonely.md"]

    @pytest.mark.asyncio
    async def test_self_link_is_not_incoming(self, make_vault, weaver):
        make_vault({"Self.md": "[[#Top]]"})
        await weaver.index.rebuild()
        stats = await weaver.links.get_link_stats(NoteRef(path="Self.md"))
        assert stats.outgoing == 1
        assert stats.incoming == 0

    @pytest.mark.asyncio
    async def test_hub_pages(self, links):
        hubs = await links.get_hub_pages(3)
        assert [(h.note.path, h.total) for h in hubs] == [("Hub.md", 7), ("A.md", 3)]

    @pytest.mark.asyncio
    async def test_hub_default_threshold(self, links):
        assert await links.get_hub_pages() == []


# ============================================================
# Export
# ============================================================


class TestExport:
    @pytest.mark.asyncio
    async def test_csv(self, links):
        lines = (await links.export_stats_to_csv()).split("\n")
        assert lines[0] == CSV_HEADER
        assert '"Hub.md",5,2,1,7' in lines
        assert '"Lonely.md",0,0,0,0' in lines
        assert len(lines) == 6

    @pytest.mark.asyncio
    async def test_csv_escapes_quotes(self, make_vault, weaver):
        make_vault({'Say "hi".md': ""})
        await weaver.index.rebuild()
        csv = await weaver.links.export_stats_to_csv()
        assert '"Say ""hi"".md",0,0,0,0' in csv

    @pytest.mark.asyncio
    async def test_json(self, links):
        data = json.loads(await links.export_stats_to_json())
        assert data["totalFiles"] == 5
        assert data["exportDate"].endswith("Z")
        hub = next(s for s in data["statistics"] if s["file"] == "Hub.md")
        assert hub == {"file": "Hub.md", "outgoing": 5, "incoming": 2, "unresolved": 1, "total": 7}
