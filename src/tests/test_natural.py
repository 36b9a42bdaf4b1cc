"""Unit tests for natural order comparison."""

import pytest

from linkweaver.core.natural import natural_compare, natural_sorted, natural_sorted_by


class TestNaturalCompare:
    def test_numeric_runs_compare_by_value(self):
        assert natural_compare("Note 2", "Note 10") < 0
        assert natural_compare("Note 10", "Note 11") < 0

    def test_equal_strings(self):
        assert natural_compare("Chapter 3", "Chapter 3") == 0

    def test_leading_zeros_equal_value(self):
        assert natural_compare("Note 01", "Note 1") == 0

    def test_shorter_sorts_first(self):
        assert natural_compare("Note", "Note 1") < 0

    def test_text_segments(self):
        assert natural_compare("Apple 1", "Banana 1") < 0

    def test_large_numbers(self):
        assert natural_compare("v99999999999999999999", "v100000000000000000000") < 0

    def test_non_ascii_digits_compare_as_text(self):
        assert natural_compare("1²2", "1²3") < 0
        assert natural_compare("x²", "x²") == 0

    @pytest.mark.parametrize(
        "a,b",
        [
            ("Note 2", "Note 10"),
            ("a", "b"),
            ("x1y2", "x1y10"),
            ("", "1"),
            ("abc", "abc"),
            ("Note 10", "Note"),
        ],
    )
    def test_antisymmetric(self, a, b):
        assert natural_compare(a, b) == -natural_compare(b, a)


class TestNaturalSorted:
    def test_sort_notes(self):
        assert natural_sorted(["Note 10", "Note 2", "Note 1"]) == ["Note 1", "Note 2", "Note 10"]

    def test_sort_does_not_mutate(self):
        values = ["b2", "b10", "b1"]
        natural_sorted(values)
        assert values == ["b2", "b10", "b1"]

    def test_sort_by_key(self):
        items = [{"name": "Part 10"}, {"name": "Part 9"}]
        result = natural_sorted_by(items, key=lambda i: i["name"])
        assert [i["name"] for i in result] == ["Part 9", "Part 10"]
