from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Sequence
import os, tempfile

from sshkim_core.crypto import KeyContext, decrypt, encrypt
from sshkim_core.errors import KeystoreIOError
from sshkim_core.logger import get_logger
from sshkim_core.storage.location import StoreLocation
from sshkim_core.storage.models import KeyRecord, decode_collection, encode_collection
from sshkim_core.storage.provider import StorageProvider

log = get_logger("sshkim.storage.file")


def read_blob(path: Path) -> Optional[bytes]:
    """Encrypted file contents, or None when there is no file."""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise KeystoreIOError(f"Failed to read keys file {path}: {e}", path) from e


def write_atomic(path: Path, text: str) -> None:
    """Write text next to path, fsync, then rename over it."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as e:
        raise KeystoreIOError(f"Failed to prepare keys file {path}: {e}", path) from e
    try:
        with os.fdopen(fd, "w", encoding="ascii") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except OSError as e:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise KeystoreIOError(f"Failed to write keys file {path}: {e}", path) from e


def decode_blob(blob, key: bytes) -> List[KeyRecord]:
    return decode_collection(decrypt(blob, key))


def encode_blob(records: Sequence[KeyRecord], key: bytes) -> str:
    return encrypt(encode_collection(records), key)


def read_collection(path, key: bytes) -> Optional[List[KeyRecord]]:
    """Decrypt and parse the file at path; None when it does not exist."""
    path = Path(path)
    blob = read_blob(path)
    if blob is None:
        return None
    return decode_blob(blob, key)


def write_collection(path, records: Sequence[KeyRecord], key: bytes) -> None:
    write_atomic(Path(path), encode_blob(records, key))


class EncryptedFileStorage(StorageProvider):
    def __init__(self, location: Optional[StoreLocation] = None, keys: Optional[KeyContext] = None):
        self.location = location or StoreLocation()
        self.keys = keys or KeyContext()

    @property
    def path(self) -> Path:
        return self.location.path

    def load(self) -> List[KeyRecord]:
        path = self.path
        records = read_collection(path, self.keys.active_key())
        if records is None:
            log.debug(f"[LOAD] no keys file at {path}")
            return []
        log.debug(f"[LOAD] {len(records)} keys from {path}")
        return records

    def save(self, records: Sequence[KeyRecord]) -> None:
        path = self.path
        write_collection(path, records, self.keys.active_key())
        log.debug(f"[SAVE] {len(records)} keys to {path}")
