from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from .memory_backend import MemoryCounterBackend

logger = logging.getLogger(__name__)


class CounterSnapshot(BaseModel):
    """
    On-disk schema:
      { "version": 1, "tables": { "<table>": { "<entry name>": <int> } } }
    """

    version: int = 1
    tables: dict[str, dict[str, int]] = Field(default_factory=dict)


def read_snapshot(path: Path) -> CounterSnapshot:
    """
    Read the counter snapshot.

    Missing, empty or invalid files yield an empty snapshot.
    """
    if not path.exists():
        return CounterSnapshot()
    try:
        raw = path.read_text(encoding="utf-8")
        if not raw.strip():
            return CounterSnapshot()
        return CounterSnapshot.model_validate(json.loads(raw))
    except (OSError, ValueError, ValidationError) as e:
        logger.warning("COUNTER SNAPSHOT LOAD: failed to load %s: %r", path, e)
        return CounterSnapshot()


def atomic_write_snapshot(path: Path, snapshot: CounterSnapshot) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    payload: dict[str, Any] = snapshot.model_dump(mode="json")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True, ensure_ascii=False)
        f.write("\n")
    tmp_path.replace(path)


class DiskCounterBackend(MemoryCounterBackend):
    """
    Counter tables persisted to a single JSON file.

    - Starts empty on missing/invalid file.
    - Rewrites the file atomically after every mutation.
    - A failed write rolls the change back and returns a failed CommandResult.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        super().__init__(read_snapshot(self._path).tables)

    @property
    def path(self) -> Path:
        return self._path

    def _commit(self) -> str | None:
        try:
            atomic_write_snapshot(self._path, CounterSnapshot(tables=self._tables))
        except OSError as e:
            logger.warning("COUNTER SNAPSHOT SAVE: failed to write %s: %r", self._path, e)
            return f"failed to write {self._path}: {e}"
        return None
