from __future__ import annotations

import re

from pydantic import BaseModel, Field

# Per-string limit of the backing system is 32767; stay under it.
MAX_CHUNK_LENGTH = 32000

# Entry in the coordination table whose value is the highest chunk index.
CHUNK_COUNT_ENTRY = "DB_SAVE"

# Value stored on chunk entries; the payload lives in the entry name.
PLACEHOLDER_VALUE = 0

CHUNK_TABLE_PREFIX = "DB_"

_RESERVED_CHARS_RE = re.compile(r"[\s\"'(),:]")


class Chunk(BaseModel):
    index: int = Field(ge=0)
    payload: str


def validate_table_name(name: str) -> str:
    if not isinstance(name, str) or not name:
        raise ValueError("table name must be a non-empty string")
    if _RESERVED_CHARS_RE.search(name):
        raise ValueError(f"table name may not contain whitespace, quotes, parentheses, commas or colons: {name!r}")
    if name.startswith(CHUNK_TABLE_PREFIX):
        # would alias another table's chunk tables
        raise ValueError(f"table name may not start with {CHUNK_TABLE_PREFIX!r}: {name!r}")
    return name


def chunk_table_name(table: str, index: int) -> str:
    return f"{CHUNK_TABLE_PREFIX}{table}_{index}"


def chunk_entry_name(table: str, index: int, payload: str) -> str:
    """
    DB_{table}_{index}({payload})

    payload is binary code (0, 1 and spaces) so it can never contain the template's delimiters.
    """
    return f"{chunk_table_name(table, index)}({payload})"


def _chunk_entry_pattern(table: str, index: int) -> re.Pattern[str]:
    # Name must start a token in the listing so "DB_T_0(" never matches inside "DB_X_DB_T_0(".
    name = re.escape(chunk_table_name(table, index))
    return re.compile(rf'(?<![^\s,:"]){name}\(([01 ]*)\)')


def extract_chunk_payload(listing: str, table: str, index: int) -> str | None:
    """
    Pull the encoded payload for one chunk out of the list-all text blob.

    Returns None when the chunk's entry is not present.
    """
    m = _chunk_entry_pattern(table, index).search(listing)
    if m is None:
        return None
    return m.group(1)
