"""Tests for the JSON file store and its in-memory cache."""

import asyncio
import json
import os

import pytest

from items_api.errors import DataUnavailable
from items_api.store import DataStore, next_id


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_load_records_reads_file_once(tmp_path, monkeypatch):
    """Later loads come from memory while the file is unchanged."""

    data = tmp_path / "items.json"
    _write(data, [{"id": 1, "name": "a", "price": 1}])
    store = DataStore(data)

    first = asyncio.run(store.load_records())

    def fail(*_args, **_kwargs):
        raise AssertionError("file should not be re-read")

    monkeypatch.setattr("items_api.store._read_file", fail)
    second = asyncio.run(store.load_records())

    assert second is first
    assert store.is_loaded


def test_load_records_reloads_after_file_change(tmp_path):
    data = tmp_path / "items.json"
    _write(data, [{"id": 1, "name": "a", "price": 1}])
    store = DataStore(data)
    asyncio.run(store.load_records())

    _write(data, [{"id": 1, "name": "a", "price": 1}, {"id": 2, "name": "b", "price": 2}])
    stat = data.stat()
    os.utime(data, (stat.st_atime, stat.st_mtime + 10))

    assert len(asyncio.run(store.load_records())) == 2


def test_invalidate_drops_cache(tmp_path):
    data = tmp_path / "items.json"
    _write(data, [])
    store = DataStore(data)
    asyncio.run(store.load_records())

    store.invalidate()

    assert not store.is_loaded


def test_missing_file_is_data_unavailable(tmp_path):
    with pytest.raises(DataUnavailable):
        asyncio.run(DataStore(tmp_path / "missing.json").load_records())


@pytest.mark.parametrize(
    "content",
    [b"{not json", b"\xff\xfe\x00garbage", b'{"id": 1}', b"[1, 2, 3]"],
)
def test_malformed_file_is_data_unavailable(tmp_path, content):
    data = tmp_path / "items.json"
    data.write_bytes(content)

    with pytest.raises(DataUnavailable):
        asyncio.run(DataStore(data).load_records())


def test_add_record_assigns_next_id_and_persists(tmp_path):
    data = tmp_path / "items.json"
    _write(data, [{"id": 7, "name": "a", "price": 1}])
    store = DataStore(data)

    record = asyncio.run(store.add_record({"id": 1, "name": "b", "price": 2.5, "tag": "x"}))

    assert record == {"id": 8, "name": "b", "price": 2.5, "tag": "x"}
    assert json.loads(data.read_text(encoding="utf-8"))[-1] == record
    assert asyncio.run(store.load_records())[-1] == record


def test_add_record_into_empty_store_starts_at_one(tmp_path):
    data = tmp_path / "items.json"
    _write(data, [])

    assert asyncio.run(DataStore(data).add_record({"name": "first", "price": 0}))["id"] == 1


def test_next_id_skips_non_integer_ids():
    assert next_id([{"id": "abc"}, {"id": True}, {"id": 3}]) == 4


@pytest.mark.parametrize("constant", ["Infinity", "-Infinity", "NaN"])
def test_non_finite_constants_are_data_unavailable(tmp_path, constant):
    data = tmp_path / "items.json"
    data.write_text(f'[{{"id": 1, "name": "a", "price": {constant}}}]', encoding="utf-8")

    with pytest.raises(DataUnavailable):
        asyncio.run(DataStore(data).load_records())


def test_add_record_refuses_non_finite_price(tmp_path):
    """The file stays valid JSON when a non-finite value slips through."""

    data = tmp_path / "items.json"
    _write(data, [{"id": 1, "name": "a", "price": 1}])
    store = DataStore(data)

    with pytest.raises(DataUnavailable):
        asyncio.run(store.add_record({"name": "b", "price": float("inf")}))

    assert json.loads(data.read_text(encoding="utf-8")) == [{"id": 1, "name": "a", "price": 1}]
    assert list(tmp_path.iterdir()) == [data]


def test_next_id_ignores_records_without_id():
    assert next_id([{"name": "a"}, {"id": 2}]) == 3
