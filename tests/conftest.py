# tests/conftest.py
import pytest

from sshkim_core import Keystore, KeyContext, StoreLocation


@pytest.fixture
def keys():
    return KeyContext(machine_id="test-machine")


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "keystore" / "keys.enc"


@pytest.fixture
def store(store_path, keys):
    return Keystore(location=StoreLocation(default=store_path), keys=keys)


@pytest.fixture
def make_record():
    from datetime import datetime, timezone
    from sshkim_core.storage import KeyRecord
    from sshkim_core.utils import new_id

    def _make(name, key=None, tag=None, id=None):
        ts = datetime(2024, 5, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)
        return KeyRecord(
            id=id or new_id(),
            name=name,
            tag=tag,
            key=key or f"ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAA{name} {name}@host",
            key_type="ed25519",
            created=ts,
            last_modified=ts,
        )

    return _make
