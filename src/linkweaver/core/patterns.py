"""Title pattern strategies for sequence detection.

Each strategy recognizes a note title and extracts an ordering key. The
parser tries strategies in a fixed priority order and stops at the first
hit:

1. pure integer titles ("12")
2. prefixed integers ("Chapter 12")
3. ISO dates anywhere in the title ("Journal 2025-01-15")
4. user-supplied custom patterns, in declaration order
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import date

from linkweaver.config import PatternConfig
from linkweaver.core.exceptions import InvalidPatternError
from linkweaver.core.models import CustomMatch, DateMatch, NumericMatch, ParsedPattern

logger = logging.getLogger(__name__)


PURE_INTEGER_PATTERN = re.compile(r"^(\d+)$")
PREFIXED_INTEGER_PATTERN = re.compile(r"^(.+?)(\d+)$")
ISO_DATE_PATTERN = re.compile(r"(\d{4})-(\d{2})-(\d{2})")

INTEGER_STRATEGY = "integer"
PREFIXED_INTEGER_STRATEGY = "prefixed-integer"
DATE_STRATEGY = "iso-date"


def compile_pattern(regex: str) -> re.Pattern:
    """Compile a user-supplied regex, raising InvalidPatternError on failure."""
    try:
        return re.compile(regex)
    except re.error as e:
        raise InvalidPatternError(regex, str(e)) from e


def _to_date(m: re.Match) -> date | None:
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def parse_iso_date(title: str) -> tuple[date, str] | None:
    """Find the first valid ISO calendar date in ``title``.

    Returns (date, matched_text) or None. Tokens shaped like a date but
    naming an impossible day ("2025-02-30") are skipped.
    """
    for m in ISO_DATE_PATTERN.finditer(title):
        value = _to_date(m)
        if value is not None:
            return value, m.group(0)
    return None


class TitleStrategy(ABC):
    """A single way of extracting an ordering key from a title."""

    strategy_id: str
    label: str

    @abstractmethod
    def test(self, title: str) -> bool:
        """Return True if this strategy recognizes the title."""
        ...

    @abstractmethod
    def extract(self, title: str) -> ParsedPattern | None:
        """Extract the ordering key, or None if the title is not recognized."""
        ...


class PureIntegerStrategy(TitleStrategy):
    strategy_id = INTEGER_STRATEGY
    label = "numeric"

    def test(self, title: str) -> bool:
        return PURE_INTEGER_PATTERN.match(title) is not None

    def extract(self, title: str) -> NumericMatch | None:
        m = PURE_INTEGER_PATTERN.match(title)
        if not m:
            return None
        return NumericMatch(
            value=int(m.group(1)),
            matched_text=m.group(0),
            strategy_id=self.strategy_id,
        )


class PrefixedIntegerStrategy(TitleStrategy):
    """``<prefix><digits>`` titles.

    Titles ending in a valid ISO date are left to the date strategy so that
    "2025-01-15" is not read as the number 15 with prefix "2025-01-".
    """

    strategy_id = PREFIXED_INTEGER_STRATEGY
    label = "numeric"

    def _match(self, title: str) -> re.Match | None:
        m = PREFIXED_INTEGER_PATTERN.match(title)
        if not m:
            return None
        for date_match in ISO_DATE_PATTERN.finditer(title):
            if date_match.end() == len(title) and _to_date(date_match) is not None:
                return None
        return m

    def test(self, title: str) -> bool:
        return self._match(title) is not None

    def extract(self, title: str) -> NumericMatch | None:
        m = self._match(title)
        if not m:
            return None
        return NumericMatch(
            prefix=m.group(1),
            value=int(m.group(2)),
            matched_text=m.group(2),
            strategy_id=self.strategy_id,
        )


class IsoDateStrategy(TitleStrategy):
    strategy_id = DATE_STRATEGY
    label = "date"

    def test(self, title: str) -> bool:
        return parse_iso_date(title) is not None

    def extract(self, title: str) -> DateMatch | None:
        parsed = parse_iso_date(title)
        if parsed is None:
            return None
        value, matched = parsed
        return DateMatch(value=value, matched_text=matched, strategy_id=self.strategy_id)


class CustomStrategy(TitleStrategy):
    """User-defined regex strategy.

    Capture groups map positionally: the first group is the prefix, the
    second the ordering value, and any further groups are joined into the
    suffix. A pattern with a single group uses it as the value; a pattern
    without groups uses the whole match.
    """

    def __init__(self, config: PatternConfig):
        self.config = config
        self.regex = compile_pattern(config.regex)
        self.strategy_id = f"custom:{config.name}"
        self.label = config.name

    def test(self, title: str) -> bool:
        return self.regex.search(title) is not None

    def extract(self, title: str) -> CustomMatch | None:
        m = self.regex.search(title)
        if not m:
            return None

        groups = [g or "" for g in m.groups()]
        if len(groups) >= 2:
            prefix, value, suffix = groups[0], groups[1], "".join(groups[2:])
        elif len(groups) == 1:
            prefix, value, suffix = "", groups[0], ""
        else:
            prefix, value, suffix = "", m.group(0), ""

        return CustomMatch(
            prefix=prefix,
            value=value,
            suffix=suffix,
            matched_text=m.group(0),
            strategy_id=self.strategy_id,
        )


def build_custom_strategies(patterns: list[PatternConfig]) -> list[CustomStrategy]:
    """Build strategies for enabled patterns, skipping invalid regexes."""
    strategies = []
    for config in patterns:
        if not config.enabled:
            continue
        try:
            strategies.append(CustomStrategy(config))
        except InvalidPatternError:
            logger.warning(
                "Skipping custom pattern %r: invalid regex %r",
                config.name,
                config.regex,
            )
    return strategies


class TitlePatternParser:
    """Applies title strategies in priority order."""

    def __init__(self, custom_patterns: list[PatternConfig] | None = None):
        self.builtin: list[TitleStrategy] = [
            PureIntegerStrategy(),
            PrefixedIntegerStrategy(),
            IsoDateStrategy(),
        ]
        self.custom: list[CustomStrategy] = build_custom_strategies(custom_patterns or [])

    @property
    def strategies(self) -> list[TitleStrategy]:
        return [*self.builtin, *self.custom]

    def update_patterns(self, custom_patterns: list[PatternConfig]) -> None:
        self.custom = build_custom_strategies(custom_patterns)

    def parse(self, title: str) -> ParsedPattern | None:
        """Return the first strategy hit for ``title``, or None."""
        for strategy in self.strategies:
            parsed = strategy.extract(title)
            if parsed is not None:
                return parsed
        return None

    def strategy_for(self, strategy_id: str) -> TitleStrategy | None:
        for strategy in self.strategies:
            if strategy.strategy_id == strategy_id:
                return strategy
        return None
