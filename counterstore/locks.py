from __future__ import annotations

import threading


class TableLockRegistry:
    """
    One lock per table name, for callers that share a backend across threads.

    Database itself never locks; hold lock_for(table) around every call on that table.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, table: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(table)
            if lock is None:
                lock = threading.Lock()
                self._locks[table] = lock
            return lock
