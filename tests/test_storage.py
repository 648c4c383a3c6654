"""Tests for upload blob storage."""

import pytest

from menu_import.exceptions import MenuImportError
from menu_import.services.storage import FileNotStored, StorageService


def test_new_key_layout(storage):
    key = storage.new_file_key("store-1", "xlsx")

    prefix, store, name = key.split("/")
    assert (prefix, store) == ("imports", "store-1")
    assert name.endswith(".xlsx")
    assert key != storage.new_file_key("store-1", "xlsx")


def test_save_and_read_back(storage):
    key = storage.new_file_key("store-1", "txt")

    assert storage.save_file(key, b"Cola 2.50") == key
    assert storage.exists(key)
    assert storage.get_file(key) == b"Cola 2.50"
    assert storage.path_for(key).is_file()


def test_missing_blob(storage):
    assert not storage.exists("imports/store-1/nothing.txt")
    with pytest.raises(FileNotStored):
        storage.get_file("imports/store-1/nothing.txt")


def test_keys_cannot_escape_root(tmp_path):
    storage = StorageService(tmp_path / "root")

    with pytest.raises(MenuImportError, match="Invalid storage key"):
        storage.save_file("../outside.txt", b"x")
    assert not (tmp_path / "outside.txt").exists()
