"""Shared fixtures: temporary vaults and wired-up engines."""

import pytest
import pytest_asyncio

from linkweaver.config import Settings
from linkweaver.core.service import LinkWeaver


@pytest.fixture
def settings(tmp_path):
    return Settings(vault_dir=tmp_path / "vault")


@pytest.fixture
def make_vault(settings):
    """Write ``{relative_path: content}`` into the vault directory."""

    def _make(files: dict[str, str]):
        for path, content in files.items():
            full = settings.vault_dir / path
            full.parent.mkdir(parents=True, exist_ok=True)
            full.write_text(content, encoding="utf-8")
        return settings.vault_dir

    return _make


@pytest_asyncio.fixture
async def weaver(settings):
    """A LinkWeaver over the temporary vault, without the event loop task."""
    settings.vault_dir.mkdir(parents=True, exist_ok=True)
    return LinkWeaver(settings)
