from __future__ import annotations

import importlib
from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def backend():
    from counterstore import MemoryCounterBackend

    return MemoryCounterBackend()


@pytest.fixture
def sandbox_data(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Point the disk backend at a temp file so tests never touch real ./data.
    """
    path = tmp_path / "data" / "counters.json"
    monkeypatch.setenv("COUNTERSTORE_BACKEND", "disk")
    monkeypatch.setenv("COUNTERSTORE_DATA_PATH", str(path))
    monkeypatch.delenv("COUNTERSTORE_MAX_CHUNK_LENGTH", raising=False)
    return path


@pytest.fixture
def reload_endpoints(sandbox_data: Path) -> None:
    """
    Endpoints create the backend at import time; reload after sandboxing the data path.
    """
    import endpoints.db_endpoints as db_endpoints

    importlib.reload(db_endpoints)
