# sshkim_core/keystore.py
from __future__ import annotations
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from sshkim_core.cache import KeystoreCache
from sshkim_core.crypto import KeyContext, password_key
from sshkim_core.discovery import detect_key_type
from sshkim_core.errors import DecryptError, DuplicateError, KeystoreIOError, NotFoundError
from sshkim_core.logger import get_logger, log_event
from sshkim_core.merge import merge, open_with_fallback
from sshkim_core.storage import (
    EncryptedFileStorage, ImportResult, KeyRecord, KeyUpdate, StorageProvider,
    StoreLocation, load_storage_provider,
)
from sshkim_core.storage.providers.file_provider import decode_blob, read_blob, write_collection
from sshkim_core.utils import advance_ts, new_id, now_utc

log = get_logger("sshkim.keystore")

Hook = Callable[[str, Dict[str, Any]], None]


def _same_name(a: str, b: str) -> bool:
    return a.strip().lower() == b.strip().lower()


class Keystore:
    """
    Encrypted SSH key store.

    Owns the active location, the key context and the write-through cache.
    Construct one per process and share it between command handlers; every
    public method is safe to call from several threads.

    Every operation reports ``<op>.start`` followed by ``<op>.ok`` or
    ``<op>.error`` to the hook (log_event by default).
    """

    def __init__(
        self,
        location: Optional[StoreLocation] = None,
        keys: Optional[KeyContext] = None,
        provider: Optional[StorageProvider] = None,
        classify: Callable[[str], str] = detect_key_type,
        hook: Optional[Hook] = None,
    ):
        self.location = location or StoreLocation()
        self.keys = keys or KeyContext()
        self.provider = provider or EncryptedFileStorage(self.location, self.keys)
        self.cache = KeystoreCache(self.provider)
        self.classify = classify
        self.hook = hook or log_event

    @classmethod
    def from_config(cls, config: Optional[dict] = None, **kwargs) -> "Keystore":
        config = config or {}
        location = StoreLocation(default=config.get("keys_file"))
        keys = KeyContext(machine_id=config.get("machine_id"))
        provider = load_storage_provider(config, location=location, keys=keys)
        return cls(location=location, keys=keys, provider=provider, **kwargs)

    @contextmanager
    def _operation(self, op: str, **payload):
        self.hook(f"{op}.start", payload)
        outcome: Dict[str, Any] = {}
        try:
            yield outcome
        except Exception as e:
            log.error(f"[{op.upper()}] {type(e).__name__}: {e}")
            self.hook(f"{op}.error", {**payload, "error": type(e).__name__, "message": str(e)})
            raise
        self.hook(f"{op}.ok", {**payload, **outcome})

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    def list(self) -> List[KeyRecord]:
        with self._operation("list") as out:
            records = self.cache.get()
            out["count"] = len(records)
            return records

    def get(self, key_id: str) -> KeyRecord:
        for rec in self.cache.get():
            if rec.id == key_id:
                return rec
        raise NotFoundError(key_id)

    def add(self, name: str, key_content: str, *, tag: Optional[str] = None) -> KeyRecord:
        with self._operation("add") as out:
            trimmed = key_content.strip()

            def apply(records):
                if any(r.key.strip() == trimmed for r in records):
                    raise DuplicateError("key")
                if any(_same_name(r.name, name) for r in records):
                    raise DuplicateError("name")
                now = now_utc()
                rec = KeyRecord(
                    id=new_id(),
                    name=name,
                    tag=tag,
                    key=trimmed,
                    key_type=self.classify(trimmed),
                    created=now,
                    last_modified=now,
                )
                return records + [rec], rec

            rec = self.cache.update(apply)
            out["id"] = rec.id
            out["key_type"] = rec.key_type
            return rec

    def update(self, key_id: str, update: Union[KeyUpdate, Mapping[str, Any]]) -> KeyRecord:
        if not isinstance(update, KeyUpdate):
            update = KeyUpdate.from_dict(update)

        with self._operation("update", id=key_id) as out:
            def apply(records):
                index = next((i for i, r in enumerate(records) if r.id == key_id), None)
                if index is None:
                    raise NotFoundError(key_id)
                if update.name is not None and any(
                        r.id != key_id and _same_name(r.name, update.name) for r in records):
                    raise DuplicateError("name")
                if update.key is not None and any(
                        r.id != key_id and r.key.strip() == update.key.strip() for r in records):
                    raise DuplicateError("key")

                current = records[index]
                changes: Dict[str, Any] = {}
                if update.name is not None:
                    changes["name"] = update.name
                if update.tag is not None:
                    changes["tag"] = update.tag
                if update.key is not None:
                    changes["key"] = update.key.strip()
                    changes["key_type"] = self.classify(changes["key"])
                changes["last_modified"] = advance_ts(current.last_modified)

                updated = replace(current, **changes)
                records[index] = updated
                return records, updated

            if update.is_empty():
                rec = self.get(key_id)
                out["changed"] = False
                return rec

            rec = self.cache.update(apply)
            out["changed"] = True
            return rec

    def remove(self, key_id: str) -> None:
        with self._operation("remove", id=key_id) as out:
            def apply(records):
                kept = [r for r in records if r.id != key_id]
                if len(kept) == len(records):
                    raise NotFoundError(key_id)
                return kept, len(kept)

            out["remaining"] = self.cache.update(apply)

    def reload(self) -> List[KeyRecord]:
        with self._operation("reload") as out:
            self.cache.invalidate()
            records = self.cache.get()
            out["count"] = len(records)
            return records

    def clear_cache(self) -> None:
        self.cache.invalidate()

    # ------------------------------------------------------------------
    # Location
    # ------------------------------------------------------------------
    def current_location(self) -> Path:
        return self.location.path

    def set_location(self, path) -> Path:
        with self._operation("set_location", path=str(path)):
            return self.cache.invalidate(lambda: self.location.set(path))

    def reset_location(self) -> Path:
        with self._operation("reset_location") as out:
            path = self.cache.invalidate(self.location.reset)
            out["path"] = str(path)
            return path

    def load_from_file(self, path) -> List[KeyRecord]:
        """Make path the active keystore and load it.

        If the file cannot be read or decrypted the previous location is
        restored, so a failed open never strands the store on a bad file.
        """
        with self._operation("load_from_file", path=str(path)) as out:
            if not Path(path).expanduser().is_file():
                raise KeystoreIOError(f"Keys file not found: {path}", path)
            previous = self.location.path if self.location.is_custom else None
            self.cache.invalidate(lambda: self.location.set(path))
            try:
                records = self.cache.get()
            except Exception:
                if previous is None:
                    self.cache.invalidate(self.location.reset)
                else:
                    self.cache.invalidate(lambda: self.location.set(previous))
                raise
            out["count"] = len(records)
            return records

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------
    def export(self, path) -> None:
        with self._operation("export", path=str(path)) as out:
            records = self.cache.get()
            write_collection(path, records, self.keys.active_key())
            out["count"] = len(records)

    def export_with_password(self, path, password: str) -> None:
        if not password:
            raise ValueError("password must not be empty")
        with self._operation("export_with_password", path=str(path)) as out:
            records = self.cache.get()
            write_collection(path, records, password_key(password))
            out["count"] = len(records)

    def _read_import(self, path):
        blob = read_blob(Path(path))
        if blob is None:
            raise KeystoreIOError(f"Import file not found: {path}", path)
        return blob

    def _merge_in(self, incoming: List[KeyRecord], out: Dict[str, Any]) -> ImportResult:
        def apply(records):
            result = merge(records, incoming)
            return result.merged, result

        result = self.cache.update(apply)
        out["imported"] = result.imported_count
        out["duplicates"] = result.duplicate_count
        return ImportResult(
            keys=list(result.merged),
            imported_count=result.imported_count,
            duplicate_count=result.duplicate_count,
            total_in_store=len(result.merged),
        )

    def import_merge(self, path) -> ImportResult:
        with self._operation("import_merge", path=str(path)) as out:
            incoming = open_with_fallback(self._read_import(path), self.keys)
            return self._merge_in(incoming, out)

    def import_with_password(self, path, password: str) -> ImportResult:
        if not password:
            raise ValueError("password must not be empty")
        with self._operation("import_with_password", path=str(path)) as out:
            blob = self._read_import(path)
            try:
                incoming = decode_blob(blob, password_key(password))
            except DecryptError as e:
                raise DecryptError("Failed to decrypt file: wrong password or corrupted file") from e
            return self._merge_in(incoming, out)

    # ------------------------------------------------------------------
    # Encryption mode
    # ------------------------------------------------------------------
    def set_password(self, password: str) -> None:
        with self._operation("set_password"):
            self.cache.invalidate(lambda: self.keys.set_password(password))

    def clear_password(self) -> None:
        with self._operation("clear_password"):
            self.cache.invalidate(self.keys.clear_password)

    def encryption_mode(self) -> str:
        return self.keys.mode
