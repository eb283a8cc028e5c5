from __future__ import annotations

import threading

from .interfaces import CommandResult, CounterBackend


class MemoryCounterBackend(CounterBackend):
    """
    Process-local scoreboard: tables of named integer counters.

    Mirrors the host's rules: tables must be created before entries are set,
    creating an existing table or dropping a missing one is rejected.
    """

    def __init__(self, tables: dict[str, dict[str, int]] | None = None) -> None:
        self._lock = threading.Lock()
        self._tables: dict[str, dict[str, int]] = {
            name: dict(entries) for name, entries in (tables or {}).items()
        }

    def tables(self) -> dict[str, dict[str, int]]:
        with self._lock:
            return self._copy()

    def _copy(self) -> dict[str, dict[str, int]]:
        return {name: dict(entries) for name, entries in self._tables.items()}

    def _commit(self) -> str | None:
        """
        Called with the lock held after every mutation.

        Returns an error message if the change could not be kept.
        """
        return None

    def _finish(self, previous: dict[str, dict[str, int]], result: CommandResult) -> CommandResult:
        error = self._commit()
        if error is None:
            return result
        self._tables = previous
        return CommandResult.failure(error)

    def create_table(self, name: str) -> CommandResult:
        with self._lock:
            if name in self._tables:
                return CommandResult.failure(f"An objective already exists by that name: {name}")
            previous = self._copy()
            self._tables[name] = {}
            return self._finish(previous, CommandResult.success(f"Added new objective '{name}' successfully"))

    def drop_table(self, name: str) -> CommandResult:
        with self._lock:
            if name not in self._tables:
                return CommandResult.failure(f"No objective was found by the name '{name}'")
            previous = self._copy()
            del self._tables[name]
            return self._finish(previous, CommandResult.success(f"Removed objective '{name}' successfully"))

    def set_counter(self, table: str, entry_name: str, value: int) -> CommandResult:
        with self._lock:
            if table not in self._tables:
                return CommandResult.failure(f"No objective was found by the name '{table}'")
            previous = self._copy()
            self._tables[table][entry_name] = int(value)
            return self._finish(
                previous,
                CommandResult.success(f"Set score of {table} for player {entry_name} to {int(value)}"),
            )

    def list_all_counters(self) -> str:
        with self._lock:
            rows = sorted(
                (entry, value, table)
                for table, entries in self._tables.items()
                for entry, value in entries.items()
            )
        if not rows:
            return "There are no tracked entries"
        lines = [f"There are {len(rows)} tracked entries:"]
        lines.extend(f"- {entry}: {value} ({table})" for entry, value, table in rows)
        return "\n".join(lines)

    def test_counter(
        self,
        table: str,
        entry_name: str,
        minimum: int | None = None,
        maximum: int | None = None,
    ) -> int | None:
        with self._lock:
            value = self._tables.get(table, {}).get(entry_name)
        if value is None:
            return None
        if minimum is not None and value < minimum:
            return None
        if maximum is not None and value > maximum:
            return None
        return value
