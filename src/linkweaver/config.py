"""Application configuration."""

import logging
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class PatternConfig(BaseModel):
    """A user-defined title pattern for sequence detection."""

    name: str
    regex: str
    enabled: bool = True


class ValidationRuleConfig(BaseModel):
    """A custom rule checked against every extracted link."""

    name: str
    type: Literal["pattern", "folder", "extension", "custom"]
    pattern: str | None = None
    folder: str | None = None
    extensions: list[str] = Field(default_factory=list)
    error: str = ""
    severity: Literal["error", "warning"] = "error"
    enabled: bool = True


# Optional patterns users can opt into; not active unless listed in settings.
PRESET_PATTERNS: list[PatternConfig] = [
    PatternConfig(name="Date Compact", regex=r"\d{8}", enabled=False),
    PatternConfig(name="Semantic Version", regex=r"v?(\d+)\.(\d+)\.(\d+)", enabled=False),
]


def is_valid_pattern(regex: str) -> bool:
    """Return True if ``regex`` compiles."""
    try:
        re.compile(regex)
    except re.error:
        return False
    return True


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    vault_dir: Path = Path("vault")
    debug: bool = False
    app_title: str = "LinkWeaver"

    # Sequential navigation
    cache_max_age_ms: int = 60_000
    circular_navigation: bool = False
    show_visual_indicators: bool = True
    custom_patterns: list[PatternConfig] = Field(default_factory=list)

    # Link management
    auto_update_links: bool = True
    link_preview_length: int = 200
    hub_threshold: int = 10
    undo_limit: int = 10
    validation_rules: list[ValidationRuleConfig] = Field(default_factory=list)

    patterns_file: Path | None = None

    model_config = SettingsConfigDict(
        env_prefix="LINKWEAVER_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def active_patterns(self) -> list[PatternConfig]:
        """Enabled custom patterns in declaration order."""
        return [p for p in self.custom_patterns if p.enabled]

    @property
    def active_rules(self) -> list[ValidationRuleConfig]:
        return [r for r in self.validation_rules if r.enabled]


def load_patterns_file(path: Path) -> tuple[list[PatternConfig], list[ValidationRuleConfig]]:
    """Read custom patterns and validation rules from a YAML file.

    The file may contain top-level ``patterns`` and ``rules`` lists.
    A missing or malformed file yields empty lists.
    """
    if not path.exists():
        logger.warning("Patterns file %s does not exist", path)
        return [], []
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError:
        logger.warning("Could not parse patterns file %s", path, exc_info=True)
        return [], []
    if not isinstance(data, dict):
        return [], []

    patterns = [PatternConfig(**item) for item in data.get("patterns") or []]
    rules = [ValidationRuleConfig(**item) for item in data.get("rules") or []]
    return patterns, rules


def load_settings(**overrides) -> Settings:
    """Build settings from the environment and merge the YAML patterns file."""
    loaded = Settings(**overrides)
    if loaded.patterns_file is None:
        return loaded

    patterns, rules = load_patterns_file(loaded.patterns_file)
    return loaded.model_copy(
        update={
            "custom_patterns": [*loaded.custom_patterns, *patterns],
            "validation_rules": [*loaded.validation_rules, *rules],
        }
    )


settings = load_settings()
