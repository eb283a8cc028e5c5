from __future__ import annotations

from typing import Any, Protocol

from pydantic import BaseModel


class BackendError(RuntimeError):
    """Raised when the backing system rejects a read."""


class CommandResult(BaseModel):
    ok: bool
    message: str = ""

    @classmethod
    def success(cls, message: str = "") -> "CommandResult":
        return cls(ok=True, message=message)

    @classmethod
    def failure(cls, message: str) -> "CommandResult":
        return cls(ok=False, message=message)


class CounterBackend(Protocol):
    """
    Named counters grouped into named tables: the only durable primitive available.

    Writes never raise for rejected commands; they return a failed CommandResult instead.
    """

    def create_table(self, name: str) -> CommandResult:
        ...

    def drop_table(self, name: str) -> CommandResult:
        ...

    def set_counter(self, table: str, entry_name: str, value: int) -> CommandResult:
        """Create or update entry_name inside table."""
        ...

    def list_all_counters(self) -> str:
        """Render every entry name across all tables as a single text blob."""
        ...

    def test_counter(
        self,
        table: str,
        entry_name: str,
        minimum: int | None = None,
        maximum: int | None = None,
    ) -> int | None:
        """Return the entry's value if it exists and lies in [minimum, maximum], else None."""
        ...


class KeyValueDocumentStore(Protocol):
    """
    A single JSON-like document persisted under a table name.
    """

    def load(self) -> Any:
        """Load and return the full document (never None)."""
        ...

    def save(self, doc: Any) -> None:
        """Persist the full document, replacing whatever was stored."""
        ...
