"""Tests for sequence detection over a real vault directory."""

import pytest

from linkweaver.config import PatternConfig
from linkweaver.core.models import NoteRef
from linkweaver.core.sequence import SequenceDetector


def _names(info):
    return [n.basename for n in info.ordered_notes]


@pytest.fixture
def detector(weaver):
    return weaver.detector


# ============================================================
# Numeric sequences
# ============================================================


class TestNumericSequences:
    @pytest.mark.asyncio
    async def test_natural_order_and_index(self, make_vault, detector):
        make_vault({"Note 1.md": "", "Note 2.md": "", "Note 10.md": ""})
        info = await detector.detect_sequence(NoteRef(path="Note 2.md"))
        assert _names(info) == ["Note 1", "Note 2", "Note 10"]
        assert info.current_index == 1
        assert info.pattern_label == "Note "
        assert info.kind == "numeric"

    @pytest.mark.asyncio
    async def test_superscript_in_prefix(self, make_vault, detector):
        make_vault({"A1²2.md": "", "A1²1.md": ""})
        info = await detector.detect_sequence(NoteRef(path="A1²1.md"))
        assert _names(info) == ["A1²1", "A1²2"]
        assert info.current_index == 0

    @pytest.mark.asyncio
    async def test_single_member_is_no_sequence(self, make_vault, detector):
        make_vault({"Note 1.md": "", "Other.md": ""})
        assert await detector.detect_sequence(NoteRef(path="Note 1.md")) is None

    @pytest.mark.asyncio
    async def test_unpatterned_title(self, make_vault, detector):
        make_vault({"Intro.md": "", "Note 1.md": "", "Note 2.md": ""})
        assert await detector.detect_sequence(NoteRef(path="Intro.md")) is None

    @pytest.mark.asyncio
    async def test_different_prefixes_do_not_mix(self, make_vault, detector):
        make_vault(
            {
                "Chapter 1.md": "",
                "Chapter 2.md": "",
                "Appendix 1.md": "",
                "Appendix 3.md": "",
            }
        )
        info = await detector.detect_sequence(NoteRef(path="Appendix 3.md"))
        assert _names(info) == ["Appendix 1", "Appendix 3"]
        assert info.current_index == 1

    @pytest.mark.asyncio
    async def test_pure_integers(self, make_vault, detector):
        make_vault({"1.md": "", "2.md": "", "11.md": "", "Page 3.md": ""})
        info = await detector.detect_sequence(NoteRef(path="11.md"))
        assert _names(info) == ["1", "2", "11"]
        assert info.pattern_label == "numeric"

    @pytest.mark.asyncio
    async def test_siblings_only(self, make_vault, detector):
        make_vault({"a/Note 1.md": "", "a/Note 2.md": "", "b/Note 3.md": ""})
        info = await detector.detect_sequence(NoteRef(path="a/Note 2.md"))
        assert [n.path for n in info.ordered_notes] == ["a/Note 1.md", "a/Note 2.md"]

    @pytest.mark.asyncio
    async def test_ties_are_stable(self, make_vault, detector):
        make_vault({"Note 01.md": "", "Note 1.md": "", "Note 2.md": ""})
        first = await detector.detect_sequence(NoteRef(path="Note 1.md"))
        detector.clear_cache()
        second = await detector.detect_sequence(NoteRef(path="Note 1.md"))
        assert _names(first) == _names(second)
        assert len(first.ordered_notes) == 3
        assert first.ordered_notes[2].basename == "Note 2"


# ============================================================
# Date sequences
# ============================================================


class TestDateSequences:
    @pytest.mark.asyncio
    async def test_chronological_order(self, make_vault, detector):
        make_vault(
            {
                "2025-01-15.md": "",
                "2024-12-31.md": "",
                "Daily 2025-01-02.md": "",
                "Ideas.md": "",
            }
        )
        info = await detector.detect_sequence(NoteRef(path="2025-01-15.md"))
        assert _names(info) == ["2024-12-31", "Daily 2025-01-02", "2025-01-15"]
        assert info.current_index == 2
        assert info.kind == "date"
        assert info.pattern_label == "date"

    @pytest.mark.asyncio
    async def test_single_date_is_no_sequence(self, make_vault, detector):
        make_vault({"2025-01-15.md": "", "Note 1.md": ""})
        assert await detector.detect_sequence(NoteRef(path="2025-01-15.md")) is None


# ============================================================
# Custom patterns
# ============================================================


class TestCustomSequences:
    @pytest.mark.asyncio
    async def test_custom_pattern_sequence(self, make_vault, settings, weaver):
        make_vault({"Lesson A.md": "", "Lesson C.md": "", "Lesson B.md": ""})
        weaver.update_configuration(
            settings.model_copy(
                update={"custom_patterns": [PatternConfig(name="Lesson", regex=r"^(Lesson )([A-Z])$")]}
            )
        )
        info = await weaver.detector.detect_sequence(NoteRef(path="Lesson B.md"))
        assert _names(info) == ["Lesson A", "Lesson B", "Lesson C"]
        assert info.pattern_label == "Lesson"
        assert info.strategy_id == "custom:Lesson"


# ============================================================
# Caching
# ============================================================


class TestSequenceCache:
    @pytest.mark.asyncio
    async def test_repeated_calls_are_identical(self, make_vault, detector):
        make_vault({"Note 1.md": "", "Note 2.md": "", "Note 3.md": ""})
        note = NoteRef(path="Note 3.md")
        assert await detector.detect_sequence(note) == await detector.detect_sequence(note)

    @pytest.mark.asyncio
    async def test_cached_until_invalidated(self, make_vault, detector):
        vault = make_vault({"Note 1.md": "", "Note 2.md": ""})
        note = NoteRef(path="Note 1.md")
        assert len((await detector.detect_sequence(note)).ordered_notes) == 2

        (vault / "Note 3.md").write_text("")
        assert len((await detector.detect_sequence(note)).ordered_notes) == 2

        detector.invalidate_file(note.path)
        assert len((await detector.detect_sequence(note)).ordered_notes) == 3

    @pytest.mark.asyncio
    async def test_invalidate_folder(self, make_vault, detector):
        make_vault({"x/Note 1.md": "", "x/Note 2.md": "", "Note 1.md": "", "Note 2.md": ""})
        await detector.detect_sequence(NoteRef(path="x/Note 1.md"))
        await detector.detect_sequence(NoteRef(path="Note 1.md"))
        detector.invalidate_folder("x")
        assert detector.cache.keys() == ["Note 1.md"]

    @pytest.mark.asyncio
    async def test_expiry_from_settings(self, settings, weaver):
        detector = SequenceDetector(weaver.store, settings.model_copy(update={"cache_max_age_ms": 5}))
        assert detector.cache.max_age_ms == 5
