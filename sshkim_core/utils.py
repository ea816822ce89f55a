"""
sshkim_core.utils
-----------------
Lightweight helpers for id generation, UTC timestamps, base64 utilities and
canonical JSON. Timestamps are kept as aware datetimes in memory and written
as RFC 3339 strings with a trailing ``Z``.
"""

from __future__ import annotations
import base64, json, re, uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

_FRACTION = re.compile(r"\.(\d+)")


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def b64d(s: str | bytes) -> bytes:
    if isinstance(s, str):
        s = s.strip().encode("ascii")
    # validate=True rejects stray characters instead of silently skipping them
    return base64.b64decode(s.strip(), validate=True)

def now_utc() -> datetime:
    return datetime.now(timezone.utc)

def advance_ts(previous: datetime) -> datetime:
    # coarse clocks can return the same instant twice in a row
    now = now_utc()
    if now <= previous:
        now = previous + timedelta(microseconds=1)
    return now

def format_ts(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")

def parse_ts(value: str) -> datetime:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # files written by other tools may carry nanoseconds
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)

def new_id() -> str:
    return str(uuid.uuid4())

def canonical_json(obj: Dict[str, Any]) -> str:
    # Deterministic, minimal JSON for log payloads
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False, default=str)


__all__ = [
    "b64e", "b64d", "now_utc", "advance_ts", "format_ts", "parse_ts",
    "new_id", "canonical_json",
]
