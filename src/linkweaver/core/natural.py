"""Natural order string comparison.

Runs of digits compare by integer value, everything else by locale-aware
string comparison, so "Note 2" sorts before "Note 10".
"""

import locale
import re
from functools import cmp_to_key
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")

_SEGMENT_PATTERN = re.compile(r"[0-9]+|[^0-9]+")
_DIGITS_PATTERN = re.compile(r"[0-9]+")


def _segments(value: str) -> list[str]:
    return _SEGMENT_PATTERN.findall(value)


def _sign(n: int) -> int:
    return (n > 0) - (n < 0)


def natural_compare(a: str, b: str) -> int:
    """Compare two strings segment by segment.

    Returns a negative number, zero, or a positive number. The shorter
    segment list is padded with empty strings.
    """
    a_parts = _segments(a)
    b_parts = _segments(b)

    for i in range(max(len(a_parts), len(b_parts))):
        a_part = a_parts[i] if i < len(a_parts) else ""
        b_part = b_parts[i] if i < len(b_parts) else ""

        if _DIGITS_PATTERN.fullmatch(a_part) and _DIGITS_PATTERN.fullmatch(b_part):
            a_num, b_num = int(a_part), int(b_part)
            if a_num != b_num:
                return _sign(a_num - b_num)
        elif a_part != b_part:
            result = _sign(locale.strcoll(a_part, b_part))
            if result == 0:
                # Collation-equal but distinct strings still need an order
                result = -1 if a_part < b_part else 1
            return result

    return 0


natural_key = cmp_to_key(natural_compare)


def natural_sorted(values: Iterable[str]) -> list[str]:
    """Return a new list sorted in natural order."""
    return sorted(values, key=natural_key)


def natural_sorted_by(items: Iterable[T], key: Callable[[T], str]) -> list[T]:
    """Sort arbitrary items by the natural order of ``key(item)``."""
    return sorted(items, key=lambda item: natural_key(key(item)))
