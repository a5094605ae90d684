"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def entry_config_dir() -> Path:
    """Return the directory holding descriptor fixtures.

    Returns
    -------
    Path
        Fixture directory.
    """
    return FIXTURES_DIR / "entryconfig"
