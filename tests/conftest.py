"""Pytest configuration for test isolation.

``JsonFileStore`` writes save payloads under a default project-relative
directory (``./.statement_recon``). To keep tests hermetic and avoid leaving
files in the working tree, the store root is redirected to a per-test
temporary directory via an autouse fixture.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_store_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Force a per-test store root through ``STATEMENT_RECON_STORE_DIR``."""

    store_root = tmp_path / "store"
    store_root.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("STATEMENT_RECON_STORE_DIR", os.fspath(store_root))
    return store_root
