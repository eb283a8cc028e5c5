from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from counterstore.layout import MAX_CHUNK_LENGTH


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class Settings:
    # Backing system: "memory" (process-local) or "disk" (JSON snapshot file)
    backend: str
    data_path: Path

    # Raw characters of serialized JSON per chunk table
    max_chunk_length: int


def get_settings() -> Settings:
    backend = os.getenv("COUNTERSTORE_BACKEND", "disk").strip().lower()
    if backend not in ("memory", "disk"):
        raise ValueError(f"COUNTERSTORE_BACKEND must be 'memory' or 'disk', got {backend!r}")

    data_path = Path(os.getenv("COUNTERSTORE_DATA_PATH", "data/counters.json"))

    max_chunk_length = _env_int("COUNTERSTORE_MAX_CHUNK_LENGTH", MAX_CHUNK_LENGTH)
    if max_chunk_length < 1:
        raise ValueError("COUNTERSTORE_MAX_CHUNK_LENGTH must be >= 1")

    return Settings(
        backend=backend,
        data_path=data_path,
        max_chunk_length=max_chunk_length,
    )
