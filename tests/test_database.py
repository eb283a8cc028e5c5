from __future__ import annotations

import json

import pytest

from counterstore import CommandResult, Database, MemoryCounterBackend
from counterstore.codec import encode


def _chunk_tables(backend: MemoryCounterBackend, table: str) -> list[str]:
    return sorted(name for name in backend.tables() if name.startswith(f"DB_{table}_"))


def test_fresh_table_loads_empty_and_builds_coordination_table(backend):
    db = Database("fresh", backend)
    assert db.load() == {}
    assert backend.tables()["fresh"] == {"DB_SAVE": 0}


def test_roundtrip_nested_document(backend):
    db = Database("t", backend)
    doc = {"a": 1, "b": [1, 2.5, None, True], "c": {"nested": "héllo ☃"}, "d": ""}
    db.save(doc)
    assert db.load() == doc
    assert db.data == doc


def test_roundtrip_survives_new_instance(backend):
    Database("t", backend).save({"x": "y"})
    assert Database("t", backend).load() == {"x": "y"}


def test_construction_does_not_reset_existing_count(backend):
    db = Database("t", backend, max_chunk_length=4)
    db.save({"k": "value"})
    count = backend.test_counter("t", "DB_SAVE")
    assert count is not None and count > 0
    again = Database("t", backend, max_chunk_length=4)
    assert backend.test_counter("t", "DB_SAVE") == count
    assert again.load() == {"k": "value"}


def test_save_empty_document(backend):
    db = Database("t", backend)
    db.save({"a": 1})
    db.save({})
    assert db.load() == {}
    assert _chunk_tables(backend, "t") == ["DB_t_0"]


def test_chunk_entry_name_carries_payload(backend):
    db = Database("t", backend)
    db.save({})
    assert backend.tables()["DB_t_0"] == {f"DB_t_0({encode('{}')})": 0}


def _doc_of_length(n: int) -> dict:
    # '{"a":"' + x * k + '"}' is k + 8 characters
    doc = {"a": "x" * (n - 8)}
    assert len(json.dumps(doc, separators=(",", ":"))) == n
    return doc


def test_exact_chunk_length_produces_one_chunk(backend):
    db = Database("t", backend)
    doc = _doc_of_length(32000)
    db.save(doc)
    assert _chunk_tables(backend, "t") == ["DB_t_0"]
    assert backend.test_counter("t", "DB_SAVE") == 0
    assert db.load() == doc


def test_one_over_chunk_length_produces_two_chunks(backend):
    db = Database("t", backend)
    doc = _doc_of_length(32001)
    db.save(doc)
    assert _chunk_tables(backend, "t") == ["DB_t_0", "DB_t_1"]
    assert backend.test_counter("t", "DB_SAVE") == 1
    assert [len(c.payload.split(" ")) for c in db.chunks] == [32000, 1]
    assert db.load() == doc


def test_configurable_chunk_length(backend):
    db = Database("t", backend, max_chunk_length=5)
    doc = {"key": "a longer value than five"}
    db.save(doc)
    text = json.dumps(doc, separators=(",", ":"))
    assert len(_chunk_tables(backend, "t")) == -(-len(text) // 5)
    assert db.load() == doc


def test_wipe_removes_stale_chunk_tables(backend):
    db = Database("t", backend, max_chunk_length=4)
    db.save({"long": "x" * 40})
    assert len(_chunk_tables(backend, "t")) > 2
    db.save({"s": 1})
    assert _chunk_tables(backend, "t") == ["DB_t_0", "DB_t_1"]
    assert backend.test_counter("t", "DB_SAVE") == 1
    assert db.load() == {"s": 1}


def test_key_operations(backend):
    db = Database("t", backend)
    db.set("a", 1)
    assert db.get("a") == 1
    assert db.has("a") is True
    assert db.delete("a") is True
    assert db.has("a") is False
    assert db.delete("a") is False
    assert db.get("a") is None
    assert db.get("a", "fallback") == "fallback"


def test_collection_views(backend):
    db = Database("t", backend)
    db.set("a", 1)
    db.set("b", {"c": [2]})
    assert db.keys() == ["a", "b"]
    assert db.values() == [1, {"c": [2]}]
    assert db.entries() == [("a", 1), ("b", {"c": [2]})]
    assert db.size() == 2
    assert db.get_collection() == {"a": 1, "b": {"c": [2]}}
    db.clear()
    assert db.size() == 0
    assert db.load() == {}


def test_stores_are_isolated_by_table_name(backend):
    a = Database("a", backend)
    b = Database("b", backend)
    a.set("k", "from a")
    b.set("k", "from b")
    assert a.get("k") == "from a"
    assert b.get("k") == "from b"


def test_externally_dropped_chunk_table_degrades_to_empty(backend):
    db = Database("t", backend)
    db.set("a", 1)
    backend.drop_table("DB_t_0")
    assert db.load() == {}


def test_truncated_chunk_range_degrades_to_empty(backend):
    db = Database("t", backend, max_chunk_length=3)
    db.save({"abc": "def"})
    backend.drop_table("DB_t_1")
    assert db.load() == {}


def test_missing_coordination_record_degrades_to_empty(backend):
    db = Database("t", backend)
    db.set("a", 1)
    backend.drop_table("t")
    assert db.load() == {}


def test_malformed_payload_degrades_to_empty(backend):
    db = Database("t", backend)
    db.set("a", 1)
    # valid binary, invalid JSON
    backend.drop_table("DB_t_0")
    backend.create_table("DB_t_0")
    backend.set_counter("DB_t_0", f"DB_t_0({encode('{oops')})", 0)
    assert db.load() == {}
    assert db.data == {}


def test_mutation_after_corruption_rewrites_cleanly(backend):
    db = Database("t", backend)
    db.set("a", 1)
    backend.drop_table("DB_t_0")
    db.set("b", 2)
    assert db.load() == {"b": 2}


def test_unserializable_document_leaves_storage_untouched(backend):
    db = Database("t", backend)
    db.set("a", 1)
    with pytest.raises(TypeError):
        db.save({"bad": object()})
    with pytest.raises(ValueError):
        db.save({"nan": float("nan")})
    assert db.load() == {"a": 1}


def test_non_mapping_document(backend):
    db = Database("t", backend)
    db.save([1, 2, 3])
    assert db.load() == [1, 2, 3]
    assert db.keys() == []
    assert db.has("0") is False


@pytest.mark.parametrize("bad", ["", "two words", "x(y)"])
def test_rejects_bad_table_names(backend, bad):
    with pytest.raises(ValueError):
        Database(bad, backend)


def test_rejects_bad_chunk_length(backend):
    with pytest.raises(ValueError):
        Database("t", backend, max_chunk_length=0)


def test_failed_writes_are_logged(caplog):
    class RejectingWrites(MemoryCounterBackend):
        def set_counter(self, table, entry_name, value):
            if entry_name.startswith("DB_t_"):
                return CommandResult.failure("rejected")
            return super().set_counter(table, entry_name, value)

    backend = RejectingWrites()
    db = Database("t", backend)
    with caplog.at_level("WARNING", logger="counterstore.database"):
        db.save({"a": 1})
    assert "rejected" in caplog.text
    assert db.load() == {}
    assert db.data == {}


def test_overlong_binary_token_degrades_to_empty(backend):
    db = Database("t", backend)
    db.set("a", 1)
    backend.drop_table("DB_t_0")
    backend.create_table("DB_t_0")
    backend.set_counter("DB_t_0", "DB_t_0(" + "1" * 80 + ")", 0)
    assert db.load() == {}


def test_chunk_table_name_cannot_be_used_as_table(backend):
    a = Database("a", backend)
    a.set("k", "v")
    with pytest.raises(ValueError):
        Database("DB_a_0", backend)
    assert a.get("k") == "v"


def test_lost_chunk_table_is_logged_as_warning(backend, caplog):
    db = Database("t", backend)
    db.set("a", 1)
    backend.drop_table("DB_t_0")
    with caplog.at_level("WARNING", logger="counterstore.database"):
        assert Database("t", backend).load() == {}
        assert db.load() == {}
    assert caplog.text.count("chunk 0 is missing") == 3


def test_fresh_table_is_not_logged_as_warning(backend, caplog):
    with caplog.at_level("WARNING", logger="counterstore.database"):
        db = Database("fresh", backend)
        assert db.load() == {}
    assert caplog.text == ""
