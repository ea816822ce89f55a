"""
sshkim_core.merge
-----------------
Reconciles an incoming key collection with the current one.

Identity is the record id only: an incoming record whose id already exists is
a duplicate even if its name or key differ, and a record with a fresh id is
kept even if its content matches an existing one.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Sequence

from sshkim_core.crypto import KeyContext
from sshkim_core.errors import DecryptError
from sshkim_core.logger import get_logger
from sshkim_core.storage.models import KeyRecord
from sshkim_core.storage.providers.file_provider import decode_blob

log = get_logger("sshkim.merge")


@dataclass
class MergeResult:
    merged: List[KeyRecord] = field(default_factory=list)
    imported_count: int = 0
    duplicate_count: int = 0


def merge(current: Sequence[KeyRecord], incoming: Sequence[KeyRecord]) -> MergeResult:
    seen = {rec.id for rec in current}
    merged = list(current)
    imported = 0
    for rec in incoming:
        if rec.id in seen:
            continue
        seen.add(rec.id)
        merged.append(rec)
        imported += 1
    return MergeResult(merged=merged, imported_count=imported,
                       duplicate_count=len(incoming) - imported)


def open_with_fallback(blob: str | bytes, keys: KeyContext) -> List[KeyRecord]:
    """
    Decrypt an import file whose key is unknown.

    Tries the active key, then the machine key once if that is a different
    key. The final error points the caller at password-based import.
    """
    active, mode = keys.active()
    try:
        return decode_blob(blob, active)
    except DecryptError as first:
        machine = keys.machine_key
        if machine == active:
            raise DecryptError(
                "Failed to decrypt file with the current key. "
                "If it was exported with a password, use password import."
            ) from first
        log.info(f"[IMPORT] {mode} key failed ({first}); retrying with machine key")
        try:
            return decode_blob(blob, machine)
        except DecryptError as second:
            raise DecryptError(
                "Failed to decrypt file with the current or machine key. "
                "If it was exported with a password, use password import."
            ) from second
