# sshkim_core/storage/__init__.py

from .models import KeyRecord, KeyUpdate, ImportResult, encode_collection, decode_collection
from .provider import StorageProvider
from .location import StoreLocation, default_keys_path
from .providers.memory_provider import InMemoryStorage
from .providers.file_provider import EncryptedFileStorage, read_collection, write_collection
from sshkim_core.constants import ENV_STORAGE_PROVIDER
import os


def load_storage_provider(config: dict | None = None, location=None, keys=None) -> StorageProvider:
    """
    Factory resolver for selecting the keystore backend.

    For now:
        - file (default)
        - memory
    """
    config = config or {}
    provider = config.get("provider") or os.getenv(ENV_STORAGE_PROVIDER, "file")

    if provider == "memory":
        return InMemoryStorage(keys=keys)

    if provider == "file":
        if location is None:
            location = StoreLocation(default=config.get("keys_file"))
        return EncryptedFileStorage(location=location, keys=keys)

    raise ValueError(f"Unknown storage provider: {provider}")


__all__ = [
    "KeyRecord",
    "KeyUpdate",
    "ImportResult",
    "encode_collection",
    "decode_collection",
    "StorageProvider",
    "StoreLocation",
    "default_keys_path",
    "InMemoryStorage",
    "EncryptedFileStorage",
    "read_collection",
    "write_collection",
    "load_storage_provider",
]
