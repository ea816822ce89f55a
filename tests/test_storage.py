# tests/test_storage.py
import os

import pytest

from sshkim_core.crypto import KeyContext
from sshkim_core.errors import DecryptError, EncodingError, KeystoreIOError
from sshkim_core.storage import (
    EncryptedFileStorage, InMemoryStorage, StoreLocation, decode_collection,
    default_keys_path, encode_collection, load_storage_provider,
)


def test_file_storage_roundtrip(tmp_path, keys, make_record):
    path = tmp_path / "nested" / "dir" / "keys.enc"
    s = EncryptedFileStorage(StoreLocation(default=path), keys)
    records = [make_record("work", tag="prod"), make_record("home")]

    s.save(records)
    assert path.exists()  # parent directories created on demand
    assert s.load() == records


def test_missing_file_loads_empty(tmp_path, keys):
    s = EncryptedFileStorage(StoreLocation(default=tmp_path / "nope.enc"), keys)
    assert s.load() == []


def test_file_is_base64_ciphertext(tmp_path, keys, make_record):
    path = tmp_path / "keys.enc"
    EncryptedFileStorage(StoreLocation(default=path), keys).save([make_record("secret-name")])
    content = path.read_text(encoding="ascii")
    assert "secret-name" not in content
    assert "\n" not in content.strip()


def test_load_with_wrong_key_is_decrypt_error(tmp_path, keys, make_record):
    path = tmp_path / "keys.enc"
    EncryptedFileStorage(StoreLocation(default=path), keys).save([make_record("a")])

    other = EncryptedFileStorage(StoreLocation(default=path), KeyContext(machine_id="other-box"))
    with pytest.raises(DecryptError):
        other.load()


def test_failed_save_keeps_previous_file(tmp_path, keys, make_record, monkeypatch):
    path = tmp_path / "keys.enc"
    s = EncryptedFileStorage(StoreLocation(default=path), keys)
    s.save([make_record("first")])
    before = path.read_bytes()

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", boom)
    with pytest.raises(KeystoreIOError, match="disk full"):
        s.save([make_record("second")])

    assert path.read_bytes() == before
    assert [p.name for p in tmp_path.iterdir()] == ["keys.enc"]  # temp file cleaned up


def test_serialization_field_order_and_timestamps(make_record):
    text = encode_collection([make_record("a", tag=None)])
    keys_in_order = [line.strip().split(":")[0].strip('"') for line in text.splitlines()
                     if line.startswith("    ")]
    assert keys_in_order == ["id", "name", "tag", "key", "key_type", "created", "last_modified"]
    assert '"2024-05-01T10:00:00.123456Z"' in text


def test_decode_accepts_nanosecond_timestamps():
    text = """[{"id": "1", "name": "n", "tag": null, "key": "ssh-rsa AAA", "key_type": "rsa",
               "created": "2024-05-01T10:00:00.123456789Z",
               "last_modified": "2024-05-01T10:00:01Z"}]"""
    (rec,) = decode_collection(text)
    assert rec.created.microsecond == 123456
    assert rec.last_modified > rec.created


@pytest.mark.parametrize("text", ["{", "{}", "[1, 2]", '[{"id": "1"}]',
                                  '[{"id": "1", "name": "n", "key": "k", "key_type": "rsa", '
                                  '"created": "yesterday", "last_modified": "today"}]'])
def test_decode_rejects_malformed(text):
    with pytest.raises(EncodingError):
        decode_collection(text)


def test_memory_provider_roundtrip(keys, make_record):
    s = InMemoryStorage(keys)
    assert s.load() == []
    records = [make_record("mem")]
    s.save(records)
    assert s.blob and s.saves == 1
    assert s.load() == records


def test_storage_factory_modes(monkeypatch, tmp_path):
    monkeypatch.delenv("SSHKIM_STORAGE_PROVIDER", raising=False)
    assert isinstance(load_storage_provider({"keys_file": tmp_path / "k.enc"}), EncryptedFileStorage)

    monkeypatch.setenv("SSHKIM_STORAGE_PROVIDER", "memory")
    assert isinstance(load_storage_provider(), InMemoryStorage)

    with pytest.raises(ValueError):
        load_storage_provider({"provider": "floppy"})


def test_default_keys_path(monkeypatch, tmp_path):
    monkeypatch.delenv("SSHKIM_KEYS_FILE", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_keys_path() == tmp_path / ".ssh-kim" / "keys.enc"

    monkeypatch.setenv("SSHKIM_KEYS_FILE", str(tmp_path / "elsewhere.enc"))
    assert default_keys_path() == tmp_path / "elsewhere.enc"


def test_store_location_switching(tmp_path):
    loc = StoreLocation(default=tmp_path / "default.enc")
    assert loc.path == tmp_path / "default.enc" and not loc.is_custom
    loc.set(tmp_path / "custom.enc")
    assert loc.path == tmp_path / "custom.enc" and loc.is_custom
    assert loc.reset() == tmp_path / "default.enc"
    assert not loc.is_custom
