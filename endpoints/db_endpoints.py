from __future__ import annotations

import logging
import threading
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from counterstore import CounterBackend, Database, DiskCounterBackend, MemoryCounterBackend
from counterstore.locks import TableLockRegistry
from settings import get_settings

router = APIRouter(tags=["tables"])
logger = logging.getLogger(__name__)

SETTINGS = get_settings()


class PutValueRequest(BaseModel):
    value: Any = None


def _make_backend() -> CounterBackend:
    if SETTINGS.backend == "memory":
        return MemoryCounterBackend()
    logger.info("COUNTER BACKEND: disk snapshot at %s", SETTINGS.data_path)
    return DiskCounterBackend(SETTINGS.data_path)


BACKEND = _make_backend()

# Sync handlers run in a threadpool; every Database call holds its table's lock
# because the store assumes a single writer per table.
TABLE_LOCKS = TableLockRegistry()
DATABASES: dict[str, Database] = {}
DATABASES_LOCK = threading.Lock()


def _database(table: str) -> Database:
    """Call with TABLE_LOCKS.lock_for(table) held."""
    with DATABASES_LOCK:
        db = DATABASES.get(table)
    if db is None:
        try:
            db = Database(table, BACKEND, max_chunk_length=SETTINGS.max_chunk_length)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        with DATABASES_LOCK:
            DATABASES[table] = db
    return db


@router.get("/tables/{table}")
def get_document(table: str) -> Any:
    with TABLE_LOCKS.lock_for(table):
        return _database(table).get_collection()


@router.delete("/tables/{table}")
def clear_document(table: str) -> dict[str, Any]:
    with TABLE_LOCKS.lock_for(table):
        _database(table).clear()
    return {"table": table, "cleared": True}


@router.get("/tables/{table}/keys")
def list_keys(table: str) -> dict[str, Any]:
    with TABLE_LOCKS.lock_for(table):
        keys = _database(table).keys()
    return {"table": table, "keys": keys, "size": len(keys)}


@router.get("/tables/{table}/keys/{key}")
def get_value(table: str, key: str) -> dict[str, Any]:
    with TABLE_LOCKS.lock_for(table):
        doc = _database(table).load()
    if not isinstance(doc, dict) or key not in doc:
        raise HTTPException(status_code=404, detail="unknown_key")
    return {"key": key, "value": doc[key]}


@router.put("/tables/{table}/keys/{key}")
def put_value(table: str, key: str, body: PutValueRequest) -> dict[str, Any]:
    with TABLE_LOCKS.lock_for(table):
        db = _database(table)
        try:
            db.set(key, body.value)
        except (TypeError, ValueError) as e:
            raise HTTPException(status_code=400, detail=f"value is not JSON-serializable: {e}") from e
    return {"key": key, "value": body.value}


@router.delete("/tables/{table}/keys/{key}")
def delete_value(table: str, key: str) -> dict[str, Any]:
    with TABLE_LOCKS.lock_for(table):
        deleted = _database(table).delete(key)
    return {"key": key, "deleted": deleted}
