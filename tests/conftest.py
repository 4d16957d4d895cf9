from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure tests always import the local package tree, not an older installed wheel.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from table_builders import StubStorage  # noqa: E402


@pytest.fixture
def table_root(tmp_path: Path) -> Path:
    root = tmp_path / "warehouse" / "db" / "events"
    (root / "metadata").mkdir(parents=True)
    return root


@pytest.fixture
def stub_storage() -> StubStorage:
    return StubStorage()
