"""Shared fixtures for diskextract tests."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

# Allow running the tests from a source checkout without installing
SRC = Path(__file__).resolve().parent.parent / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture
def isolated_tempdir(tmp_path, monkeypatch) -> Path:
    """Point `tempfile` at an empty directory so leftover temp dirs are visible."""
    temp_root = tmp_path / "system-tmp"
    temp_root.mkdir()
    monkeypatch.setattr("tempfile.tempdir", str(temp_root))
    return temp_root


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo handler changes made by the CLI's logging setup."""
    logger = logging.getLogger("diskextract")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
