from typing import List, Optional, Sequence

from sshkim_core.crypto import KeyContext
from sshkim_core.storage.models import KeyRecord
from sshkim_core.storage.providers.file_provider import decode_blob, encode_blob
from sshkim_core.storage.provider import StorageProvider


class InMemoryStorage(StorageProvider):
    """Keeps the encrypted blob in memory instead of on disk."""

    def __init__(self, keys: Optional[KeyContext] = None, blob: Optional[str] = None):
        self.keys = keys or KeyContext()
        self.blob = blob
        self.saves = 0

    def load(self) -> List[KeyRecord]:
        if self.blob is None:
            return []
        return decode_blob(self.blob, self.keys.active_key())

    def save(self, records: Sequence[KeyRecord]):
        self.blob = encode_blob(records, self.keys.active_key())
        self.saves += 1
