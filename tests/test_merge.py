# tests/test_merge.py
import pytest

from sshkim_core.crypto import KeyContext, password_key
from sshkim_core.errors import DecryptError
from sshkim_core.merge import merge, open_with_fallback
from sshkim_core.storage.providers import encode_blob


def test_merge_counts_shared_ids(make_record):
    a = [make_record(f"a{i}") for i in range(4)]
    shared = [make_record(f"changed{i}", id=a[i].id) for i in range(2)]
    fresh = [make_record(f"b{i}") for i in range(3)]
    b = [fresh[0], shared[0], fresh[1], shared[1], fresh[2]]

    result = merge(a, b)
    assert len(result.merged) == len(a) + len(b) - 2
    assert result.imported_count == 3
    assert result.duplicate_count == 2
    assert result.imported_count + result.duplicate_count == len(b)
    # current first, then new incoming records in their original order
    assert result.merged == a + fresh


def test_merge_ignores_name_and_content(make_record):
    a = [make_record("same")]
    b = [make_record("same", key=a[0].key)]  # different id, same everything else
    result = merge(a, b)
    assert result.imported_count == 1
    assert len(result.merged) == 2


def test_merge_drops_repeated_incoming_ids(make_record):
    rec = make_record("dup")
    result = merge([], [rec, rec])
    assert result.merged == [rec]
    assert (result.imported_count, result.duplicate_count) == (1, 1)


def test_merge_empty_sides(make_record):
    a = [make_record("a")]
    assert merge(a, []).merged == a
    assert merge([], a).imported_count == 1


def test_fallback_to_machine_key(make_record):
    keys = KeyContext(machine_id="box")
    blob = encode_blob([make_record("m")], keys.machine_key)

    keys.set_password("active-password")
    (rec,) = open_with_fallback(blob, keys)
    assert rec.name == "m"


def test_fallback_exhausted_points_to_password_import(make_record):
    keys = KeyContext(machine_id="box")
    blob = encode_blob([make_record("p")], password_key("export-pw"))

    with pytest.raises(DecryptError, match="password import"):
        open_with_fallback(blob, keys)

    keys.set_password("another-pw")
    with pytest.raises(DecryptError, match="password import"):
        open_with_fallback(blob, keys)
