"""
sshkim_core.cache
-----------------
Write-through mirror of the persisted key collection.

States: Empty -> Loaded on get() (file read), Loaded -> Loaded on commit()
(file write, then replace), Loaded -> Empty on invalidate(). The resident
collection is a tuple of immutable records and callers only receive copies.
"""

from __future__ import annotations
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar
import threading

from sshkim_core.logger import get_logger
from sshkim_core.storage.models import KeyCollection, KeyRecord
from sshkim_core.storage.provider import StorageProvider

log = get_logger("sshkim.cache")

T = TypeVar("T")


class KeystoreCache:
    def __init__(self, provider: StorageProvider):
        self.provider = provider
        self._lock = threading.Lock()
        self._value: Optional[KeyCollection] = None
        # bumped by invalidate(); a load that started before an invalidation
        # must not populate the cache afterwards
        self._generation = 0

    @property
    def is_loaded(self) -> bool:
        with self._lock:
            return self._value is not None

    def get(self) -> List[KeyRecord]:
        with self._lock:
            if self._value is not None:
                return list(self._value)
            generation = self._generation

        loaded = tuple(self.provider.load())

        with self._lock:
            if self._value is None and self._generation == generation:
                self._value = loaded
                log.debug(f"[CACHE] loaded {len(loaded)} keys")
        return list(loaded)

    def commit(self, records: Sequence[KeyRecord]) -> None:
        snapshot = tuple(records)
        with self._lock:
            self.provider.save(snapshot)
            self._value = snapshot

    def update(self, fn: Callable[[List[KeyRecord]], Tuple[Sequence[KeyRecord], T]]) -> T:
        """
        Atomic read-modify-write.

        fn receives a copy of the current collection and returns the new
        collection plus a result for the caller. Nothing is saved if fn
        raises; the cache is replaced only after the save succeeds.
        """
        with self._lock:
            current = self._value if self._value is not None else tuple(self.provider.load())
            records, result = fn(list(current))
            snapshot = tuple(records)
            self.provider.save(snapshot)
            self._value = snapshot
            return result

    def invalidate(self, change: Optional[Callable[[], T]] = None) -> Optional[T]:
        """Drop the resident collection.

        change, when given, runs under the cache lock first. Location and key
        switches use it so no write-through lands on the new target with data
        read under the old one.
        """
        with self._lock:
            result = change() if change is not None else None
            self._value = None
            self._generation += 1
        log.debug("[CACHE] invalidated")
        return result
