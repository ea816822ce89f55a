"""
sshkim_core.discovery
---------------------
Default collaborators the keystore consumes: SSH key type classification and
filesystem discovery (home directory, well-known public key locations).
Both are replaceable; Keystore takes the classifier as a constructor argument.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List
import os, sys

from sshkim_core.errors import KeystoreIOError

# Checked in order; the first marker found wins.
_KEY_TYPE_MARKERS = (
    ("ssh-rsa", "rsa"),
    ("ssh-dss", "dsa"),
    ("ecdsa-", "ecdsa"),
    ("ssh-ed25519", "ed25519"),
)


def detect_key_type(key_text: str) -> str:
    for marker, key_type in _KEY_TYPE_MARKERS:
        if marker in key_text:
            return key_type
    return "unknown"


def home_dir() -> Path:
    home = os.getenv("HOME") or os.getenv("USERPROFILE")
    return Path(home) if home else Path.home()


def default_ssh_dir() -> Path:
    return home_dir() / ".ssh"


def common_ssh_locations() -> List[Path]:
    locations = [default_ssh_dir()]
    if sys.platform == "win32":
        app_data = os.getenv("APPDATA")
        if app_data:
            # PuTTY keeps public keys here
            locations.append(Path(app_data) / "PuTTY")
    return locations


def scan_directory(dir_path: Path) -> List[str]:
    """Paths of single-line ``*.pub`` files in dir_path that look like SSH keys."""
    dir_path = Path(dir_path)
    if not dir_path.is_dir():
        return []
    found = []
    try:
        entries = sorted(dir_path.iterdir())
    except OSError as e:
        raise KeystoreIOError(f"Failed to read directory {dir_path}: {e}", dir_path) from e
    for path in entries:
        if not path.is_file() or not path.name.endswith(".pub"):
            continue
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue  # unreadable files are simply not candidates
        if "ssh-" in content and len(content.splitlines()) == 1:
            found.append(str(path))
    return found


@dataclass
class SshKeyLocation:
    path: str
    exists: bool
    keys: List[str] = field(default_factory=list)


def scan_ssh_locations() -> List[SshKeyLocation]:
    results = []
    for location in common_ssh_locations():
        exists = location.exists()
        results.append(SshKeyLocation(
            path=str(location),
            exists=exists,
            keys=scan_directory(location) if exists else [],
        ))
    return results


def read_key_file(file_path) -> str:
    try:
        return Path(file_path).read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        raise KeystoreIOError(f"Failed to read file {file_path}: {e}", file_path) from e
