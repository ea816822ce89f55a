from __future__ import annotations
from typing import Optional, Tuple
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
import binascii, hashlib, os, socket, threading
from .constants import (
    BLOCK_SIZE, KEY_SIZE, MACHINE_KEY_SEPARATOR, PASSWORD_KEY_SEPARATOR,
    UNKNOWN_MACHINE, MODE_MACHINE, MODE_PASSWORD,
)
from .errors import DecryptError, EncodingError, EncryptError
from .utils import b64e, b64d

"""
sshkim_core.crypto
------------------
Cipher engine and key derivation for the keystore file:

- AES-256 over 16-byte blocks with PKCS#7 padding; a random 16-byte iv is
  prepended and the whole blob is base64 encoded
- machine_key() / password_key(): SHA-256 with distinct domain separators
- KeyContext: the process-local choice between the two

Blocks are encrypted independently (ECB) and the stored iv is not chained
into them. This keeps files written by earlier SSH Kim releases readable;
see DESIGN.md before changing it.
"""

# --------- Cipher engine ----------
def _check_key(key: bytes) -> None:
    if len(key) != KEY_SIZE:
        raise ValueError(f"key must be {KEY_SIZE} bytes, got {len(key)}")

def pad(data: bytes) -> bytes:
    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    return padder.update(data) + padder.finalize()

def unpad(data: bytes) -> bytes:
    # lenient: an out-of-range pad byte leaves the data untouched
    if not data:
        return data
    count = data[-1]
    if 1 <= count <= BLOCK_SIZE:
        return data[:-count]
    return data

def encrypt(plaintext: bytes | str, key: bytes) -> str:
    _check_key(key)
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")
    iv = os.urandom(BLOCK_SIZE)
    try:
        enc = Cipher(algorithms.AES(key), modes.ECB()).encryptor()
        ct = enc.update(pad(plaintext)) + enc.finalize()
    except ValueError as e:
        raise EncryptError(f"encryption failed: {e}") from e
    return b64e(iv + ct)

def decrypt_bytes(blob: str | bytes, key: bytes) -> bytes:
    _check_key(key)
    try:
        raw = b64d(blob)
    except (binascii.Error, ValueError) as e:
        raise EncodingError("invalid encoding") from e
    if len(raw) < BLOCK_SIZE:
        raise EncodingError("invalid encoding")

    body = raw[BLOCK_SIZE:]  # leading iv is not used by block-independent decryption
    if len(body) % BLOCK_SIZE:
        raise DecryptError("ciphertext is not a whole number of blocks")
    dec = Cipher(algorithms.AES(key), modes.ECB()).decryptor()
    return unpad(dec.update(body) + dec.finalize())

def decrypt(blob: str | bytes, key: bytes) -> str:
    data = decrypt_bytes(blob, key)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError("decrypted data is not valid UTF-8 text") from e

# --------- Key derivation ----------
_machine_id: Optional[str] = None
_machine_id_lock = threading.Lock()

def machine_identifier() -> str:
    """Stable machine identifier, looked up once per process."""
    global _machine_id
    with _machine_id_lock:
        if _machine_id is None:
            try:
                host = socket.gethostname()
            except OSError:
                host = ""
            _machine_id = (
                host
                or os.getenv("COMPUTERNAME")
                or os.getenv("HOSTNAME")
                or UNKNOWN_MACHINE
            )
        return _machine_id

def machine_key(identifier: Optional[str] = None) -> bytes:
    ident = identifier if identifier is not None else machine_identifier()
    return hashlib.sha256(ident.encode("utf-8") + MACHINE_KEY_SEPARATOR).digest()

def password_key(password: str) -> bytes:
    return hashlib.sha256(password.encode("utf-8") + PASSWORD_KEY_SEPARATOR).digest()


class KeyContext:
    """
    Active encryption key for a keystore.

    The machine key is derived lazily and kept; a password key set through
    set_password() wins until clear_password() is called.
    """

    def __init__(self, machine_id: Optional[str] = None):
        self._lock = threading.Lock()
        self._machine_id = machine_id
        self._machine_key: Optional[bytes] = None
        self._password_key: Optional[bytes] = None

    @property
    def machine_key(self) -> bytes:
        with self._lock:
            if self._machine_key is None:
                self._machine_key = machine_key(self._machine_id)
            return self._machine_key

    def set_password(self, password: str) -> None:
        if not password:
            raise ValueError("password must not be empty")
        derived = password_key(password)
        with self._lock:
            self._password_key = derived

    def clear_password(self) -> None:
        with self._lock:
            self._password_key = None

    def active(self) -> Tuple[bytes, str]:
        with self._lock:
            if self._password_key is not None:
                return self._password_key, MODE_PASSWORD
        return self.machine_key, MODE_MACHINE

    def active_key(self) -> bytes:
        return self.active()[0]

    @property
    def mode(self) -> str:
        return self.active()[1]
