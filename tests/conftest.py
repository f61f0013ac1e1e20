from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Return an empty workspace root for diff generation."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root
