# sshkim_core/storage/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple
import json

from sshkim_core.errors import EncodingError
from sshkim_core.utils import format_ts, parse_ts

# Field order of the serialized form; kept stable so files diff cleanly.
FIELDS = ("id", "name", "tag", "key", "key_type", "created", "last_modified")


@dataclass(frozen=True)
class KeyRecord:
    """
    One stored SSH key.

    Records are immutable; updates produce a new record through
    dataclasses.replace so a collection handed out by the cache can never be
    changed behind its back.
    """
    id: str
    name: str
    key: str
    key_type: str
    created: datetime
    last_modified: datetime
    tag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tag": self.tag,
            "key": self.key,
            "key_type": self.key_type,
            "created": format_ts(self.created),
            "last_modified": format_ts(self.last_modified),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeyRecord":
        missing = [f for f in FIELDS if f != "tag" and f not in data]
        if missing:
            raise EncodingError(f"key record is missing fields: {', '.join(missing)}")
        try:
            return cls(
                id=str(data["id"]),
                name=str(data["name"]),
                tag=None if data.get("tag") is None else str(data["tag"]),
                key=str(data["key"]),
                key_type=str(data["key_type"]),
                created=parse_ts(data["created"]),
                last_modified=parse_ts(data["last_modified"]),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise EncodingError(f"invalid key record: {e}") from e


@dataclass
class KeyUpdate:
    """Partial update; None leaves the field as it is."""
    name: Optional[str] = None
    tag: Optional[str] = None
    key: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeyUpdate":
        unknown = set(data) - {"name", "tag", "key"}
        if unknown:
            raise ValueError(f"unknown update fields: {', '.join(sorted(unknown))}")
        return cls(name=data.get("name"), tag=data.get("tag"), key=data.get("key"))

    def is_empty(self) -> bool:
        return self.name is None and self.tag is None and self.key is None


@dataclass
class ImportResult:
    keys: List[KeyRecord] = field(default_factory=list)
    imported_count: int = 0
    duplicate_count: int = 0
    total_in_store: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keys": [k.to_dict() for k in self.keys],
            "imported_count": self.imported_count,
            "duplicate_count": self.duplicate_count,
            "total_in_store": self.total_in_store,
        }


def encode_collection(records) -> str:
    return json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)


def decode_collection(text: str) -> List[KeyRecord]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise EncodingError(f"failed to parse keys: {e}") from e
    if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
        raise EncodingError("failed to parse keys: expected a list of records")
    return [KeyRecord.from_dict(d) for d in data]


KeyCollection = Tuple[KeyRecord, ...]
