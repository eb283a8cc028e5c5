from __future__ import annotations

import json
import logging
from typing import Any

from .codec import decode, encode, split
from .interfaces import BackendError, CommandResult, CounterBackend, KeyValueDocumentStore
from .layout import (
    CHUNK_COUNT_ENTRY,
    MAX_CHUNK_LENGTH,
    PLACEHOLDER_VALUE,
    Chunk,
    chunk_entry_name,
    chunk_table_name,
    extract_chunk_payload,
    validate_table_name,
)

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT_TEXT = "{}"


class NoSavedDocument(LookupError):
    """The table has never been written (or was cleared by someone else)."""


class Database(KeyValueDocumentStore):
    """
    One JSON document persisted under a table name on a counter-only backend.

    Storage layout for table T:
      - table T holds entry DB_SAVE = highest chunk index
      - table DB_T_<i> holds a single entry named DB_T_<i>(<binary payload>)

    Every mutation reloads, rewrites the whole document and replaces all chunk tables.
    Single writer per table is assumed; nothing here locks.
    Corrupt or missing data loads as {} instead of raising.
    """

    def __init__(
        self,
        table_name: str,
        backend: CounterBackend,
        *,
        max_chunk_length: int = MAX_CHUNK_LENGTH,
    ) -> None:
        if int(max_chunk_length) < 1:
            raise ValueError("max_chunk_length must be >= 1")
        self._table = validate_table_name(table_name)
        self._backend = backend
        self._max_chunk_length = int(max_chunk_length)
        self._memory: list[Chunk] = []
        # Set once a count existed before we built the table, or once we saved.
        self._expect_document = self._chunk_count() is not None
        self._build()
        self.load()

    @property
    def table_name(self) -> str:
        return self._table

    @property
    def max_chunk_length(self) -> int:
        return self._max_chunk_length

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return tuple(self._memory)

    @property
    def data(self) -> Any:
        """Document decoded from the cached chunks, without reading the backend."""
        try:
            return json.loads(_join(self._memory))
        except ValueError:
            return {}

    # ---- storage ----

    def _build(self) -> None:
        if self._chunk_count() is not None:
            return
        self._check("create table", self._backend.create_table(self._table), quiet=True)
        self._check(
            "init chunk count",
            self._backend.set_counter(self._table, CHUNK_COUNT_ENTRY, 0),
        )

    def _chunk_count(self) -> int | None:
        return self._backend.test_counter(self._table, CHUNK_COUNT_ENTRY, 0, None)

    def _check(self, action: str, result: CommandResult, *, quiet: bool = False) -> bool:
        if not result.ok and not quiet:
            logger.warning("DB %s: %s failed: %s", self._table, action, result.message)
        return result.ok

    def _fetch(self) -> list[Chunk]:
        count = self._chunk_count()
        if count is None:
            raise LookupError(f"no chunk count recorded for table {self._table!r}")
        listing = self._backend.list_all_counters()
        chunks: list[Chunk] = []
        for i in range(count + 1):
            payload = extract_chunk_payload(listing, self._table, i)
            if payload is None:
                if i == 0 and count == 0:
                    raise NoSavedDocument(self._table)
                raise LookupError(f"chunk {i} of {count + 1} missing for table {self._table!r}")
            chunks.append(Chunk(index=i, payload=payload))
        return chunks

    def _wipe(self) -> None:
        previous = self._chunk_count() or 0
        for i in range(previous + 1):
            self._backend.drop_table(chunk_table_name(self._table, i))
        self._backend.drop_table(self._table)
        self._memory = []
        self._build()

    # ---- whole document ----

    def load(self) -> Any:
        try:
            chunks = self._fetch()
            doc = json.loads(_join(chunks))
        except NoSavedDocument:
            if self._expect_document:
                logger.warning("DB %s: chunk 0 is missing, treating as empty", self._table)
            else:
                logger.debug("DB %s: no saved document", self._table)
        except (BackendError, LookupError, ValueError) as e:
            logger.warning("DB %s: failed to load, treating as empty: %r", self._table, e)
        else:
            self._memory = chunks
            return doc
        self._memory = [Chunk(index=0, payload=encode(EMPTY_DOCUMENT_TEXT))]
        return {}

    def save(self, doc: Any) -> None:
        # Serialize before wiping so an unserializable doc leaves storage untouched.
        text = json.dumps(doc, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        pieces = split(text, self._max_chunk_length) or [EMPTY_DOCUMENT_TEXT]
        chunks = [Chunk(index=i, payload=encode(piece)) for i, piece in enumerate(pieces)]

        self._wipe()
        ok = True
        for chunk in chunks:
            name = chunk_table_name(self._table, chunk.index)
            ok &= self._check(f"create {name}", self._backend.create_table(name))
            ok &= self._check(
                f"set chunk count {chunk.index}",
                self._backend.set_counter(self._table, CHUNK_COUNT_ENTRY, chunk.index),
            )
            ok &= self._check(
                f"write {name}",
                self._backend.set_counter(
                    name, chunk_entry_name(self._table, chunk.index, chunk.payload), PLACEHOLDER_VALUE
                ),
            )
        if ok:
            self._memory = chunks
            self._expect_document = True
        else:
            self._memory = [Chunk(index=0, payload=encode(EMPTY_DOCUMENT_TEXT))]

    # ---- keys ----

    def _mapping(self) -> dict[str, Any]:
        doc = self.load()
        return doc if isinstance(doc, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._mapping().get(key, default)

    def set(self, key: str, value: Any) -> None:
        doc = self._mapping()
        doc[key] = value
        self.save(doc)

    def has(self, key: str) -> bool:
        return key in self.keys()

    def delete(self, key: str) -> bool:
        doc = self._mapping()
        present = key in doc
        doc.pop(key, None)
        self.save(doc)
        return present

    def keys(self) -> list[str]:
        return list(self._mapping().keys())

    def values(self) -> list[Any]:
        return list(self._mapping().values())

    def entries(self) -> list[tuple[str, Any]]:
        return list(self._mapping().items())

    def size(self) -> int:
        return len(self.keys())

    def get_collection(self) -> Any:
        return self.load()

    def clear(self) -> None:
        self.save({})


def _join(chunks: list[Chunk]) -> str:
    return "".join(decode(c.payload) for c in sorted(chunks, key=lambda c: c.index))
