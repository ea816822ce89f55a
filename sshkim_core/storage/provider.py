# sshkim_core/storage/provider.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Sequence

from sshkim_core.storage.models import KeyRecord


class StorageProvider(ABC):
    """
    Persistence contract used by KeystoreCache.

    load() returns the full collection (empty when nothing is stored yet);
    save() replaces it wholesale and must leave the previous state intact on
    failure.
    """

    @abstractmethod
    def load(self) -> List[KeyRecord]:
        ...

    @abstractmethod
    def save(self, records: Sequence[KeyRecord]) -> None:
        ...

    @property
    def path(self):
        return None
