# sshkim_core/storage/location.py
from __future__ import annotations
from pathlib import Path
from typing import Callable, Optional
import os, threading

from sshkim_core.constants import APP_DIR_NAME, KEYS_FILE_NAME, ENV_KEYS_FILE
from sshkim_core.discovery import home_dir


def default_keys_path(home: Optional[Path] = None) -> Path:
    override = os.getenv(ENV_KEYS_FILE)
    if override:
        return Path(override).expanduser()
    return Path(home or home_dir()) / APP_DIR_NAME / KEYS_FILE_NAME


class StoreLocation:
    """
    The active keystore path: the default one or a custom one.

    Location changes do not touch the cache themselves; Keystore pairs every
    change with a cache invalidation.
    """

    def __init__(self, default: Optional[Path] = None,
                 default_factory: Callable[[], Path] = default_keys_path):
        self._lock = threading.Lock()
        self._default = Path(default) if default is not None else None
        self._default_factory = default_factory
        self._custom: Optional[Path] = None

    @property
    def default(self) -> Path:
        return self._default if self._default is not None else self._default_factory()

    @property
    def path(self) -> Path:
        with self._lock:
            custom = self._custom
        return custom if custom is not None else self.default

    @property
    def is_custom(self) -> bool:
        with self._lock:
            return self._custom is not None

    def set(self, path) -> Path:
        resolved = Path(path).expanduser()
        with self._lock:
            self._custom = resolved
        return resolved

    def reset(self) -> Path:
        with self._lock:
            self._custom = None
        return self.default
