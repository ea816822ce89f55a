"""
SSH Kim Core Package
====================
Encrypted keystore engine behind the SSH Kim key manager.

Provides:
- AES-256 cipher engine with machine- and password-bound key derivation
- Encrypted single-file persistence (default ~/.ssh-kim/keys.enc)
- Write-through cache and id-based merge/import across stores
- Keystore: the facade command handlers call
"""

from sshkim_core.errors import (
    KeystoreError, NotFoundError, DuplicateError, DecryptError,
    EncodingError, EncryptError, KeystoreIOError,
)
from sshkim_core.storage import KeyRecord, KeyUpdate, ImportResult, StoreLocation
from sshkim_core.crypto import KeyContext
from sshkim_core.keystore import Keystore

__version__ = "0.2.0"

__all__ = [
    "Keystore",
    "KeyContext",
    "KeyRecord",
    "KeyUpdate",
    "ImportResult",
    "StoreLocation",
    "KeystoreError",
    "NotFoundError",
    "DuplicateError",
    "DecryptError",
    "EncodingError",
    "EncryptError",
    "KeystoreIOError",
]
