from __future__ import annotations

from .command_backend import CommandCounterBackend
from .database import Database
from .disk_backend import DiskCounterBackend
from .interfaces import BackendError, CommandResult, CounterBackend, KeyValueDocumentStore
from .layout import MAX_CHUNK_LENGTH, Chunk
from .memory_backend import MemoryCounterBackend

__all__ = [
    "BackendError",
    "Chunk",
    "CommandCounterBackend",
    "CommandResult",
    "CounterBackend",
    "Database",
    "DiskCounterBackend",
    "KeyValueDocumentStore",
    "MAX_CHUNK_LENGTH",
    "MemoryCounterBackend",
]
