# sshkim_core/errors.py
from __future__ import annotations
from typing import Optional


class KeystoreError(Exception):
    pass


class NotFoundError(KeystoreError):
    def __init__(self, key_id: str):
        super().__init__(f"Key not found: {key_id}")
        self.key_id = key_id


class DuplicateError(KeystoreError):
    """Raised when a name or key payload collides with an existing record."""

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"A key with this {'content' if field == 'key' else field} already exists")
        self.field = field  # "name" | "key"


class DecryptError(KeystoreError):
    pass


class EncodingError(DecryptError):
    """Malformed base64, UTF-8 or record serialization.

    Subclasses DecryptError: under a wrong key the symptom is usually garbage
    text, and callers offering a retry-with-another-key flow catch both.
    """


class EncryptError(KeystoreError):
    pass


class KeystoreIOError(KeystoreError):
    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path
