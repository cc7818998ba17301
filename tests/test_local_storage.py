"""Tests for the durable key-value slots"""

import json

from crud_app.storage.local_storage import JsonFileStorage, MemoryStorage


def test_memory_storage():
    storage = MemoryStorage()
    assert storage.get_item("a") is None
    storage.set_item("a", "1")
    assert storage.get_item("a") == "1"
    storage.remove_item("a")
    storage.remove_item("a")
    assert storage.keys() == []


def test_json_file_storage_survives_restart(tmp_path):
    path = tmp_path / "data" / "local_storage.json"
    storage = JsonFileStorage(path)
    storage.set_item("auth_token", "abc")
    storage.set_item("user_id", "1")
    storage.remove_item("user_id")

    assert json.loads(path.read_text(encoding="utf-8")) == {"auth_token": "abc"}
    assert JsonFileStorage(path).get_item("auth_token") == "abc"


def test_json_file_storage_ignores_corrupt_file(tmp_path):
    path = tmp_path / "local_storage.json"
    path.write_text("{broken", encoding="utf-8")
    storage = JsonFileStorage(path)
    assert storage.keys() == []
    storage.set_item("k", "v")
    assert JsonFileStorage(path).get_item("k") == "v"


def test_clear(tmp_path):
    storage = JsonFileStorage(tmp_path / "s.json")
    storage.set_item("a", "1")
    storage.set_item("b", "2")
    storage.clear()
    assert storage.keys() == []


def test_json_file_storage_ignores_invalid_utf8(tmp_path):
    path = tmp_path / "local_storage.json"
    path.write_bytes(b'{"crud_app_database": "\xff\xfe"}')
    storage = JsonFileStorage(path)
    assert storage.get_item("crud_app_database") is None
