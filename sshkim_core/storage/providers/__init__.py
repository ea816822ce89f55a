from .file_provider import EncryptedFileStorage, decode_blob, encode_blob, read_collection, write_collection
from .memory_provider import InMemoryStorage

__all__ = [
    "EncryptedFileStorage", "InMemoryStorage",
    "decode_blob", "encode_blob", "read_collection", "write_collection",
]
