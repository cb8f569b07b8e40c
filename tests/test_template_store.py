"""
Tests for the TemplateStore module.

This test suite verifies:
- Upsert / lookup / remove / clear
- Sorted, repeatable enumeration order
- Copy-in / copy-out record semantics
- User id validation
- Fixed descriptor length
- Edge cases and error handling

Run with: pytest tests/test_template_store.py -v
"""

import os
import sys
import threading

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from faceprints.faceprint import Faceprint
from faceprints.statuses import FeaturesType
from faceprints.template_store import (
    TemplateStore,
    UserNotFoundError,
    validate_user_id,
)


def make_faceprint(value: int, length: int = 16) -> Faceprint:
    vector = np.full(length, value, dtype=np.int16)
    return Faceprint(5, length, FeaturesType.W10, vector, vector)


class TestValidateUserId:
    """Tests for user id validation."""

    def test_valid_id(self):
        assert validate_user_id("alice") == "alice"

    def test_empty_id(self):
        with pytest.raises(ValueError):
            validate_user_id("")

    def test_non_string_id(self):
        with pytest.raises(ValueError):
            validate_user_id(None)

    def test_too_long_id(self):
        with pytest.raises(ValueError, match="at most 30"):
            validate_user_id("x" * 31)

    def test_max_length_id(self):
        assert validate_user_id("x" * 30) == "x" * 30


class TestTemplateStore:
    """Tests for the TemplateStore class."""

    @pytest.fixture
    def store(self):
        """Create an empty store."""
        return TemplateStore()

    def test_initially_empty(self, store):
        """Test that a new store has no users."""
        assert store.list_users() == []
        assert len(store) == 0

    def test_upsert_and_lookup(self, store):
        """Test storing and reading back a faceprint."""
        faceprint = make_faceprint(3)
        store.upsert("alice", faceprint)

        loaded = store.lookup("alice")
        assert loaded is not None
        assert loaded.same_as(faceprint)
        assert "alice" in store

    def test_lookup_nonexistent(self, store):
        """Test looking up a user that doesn't exist."""
        assert store.lookup("nobody") is None

    def test_upsert_replaces(self, store):
        """Test that upsert replaces the whole record."""
        store.upsert("alice", make_faceprint(1))
        store.upsert("alice", make_faceprint(2))

        assert len(store) == 1
        assert store.lookup("alice").avg_descriptor[0] == 2

    def test_upsert_rejects_invalid_id(self, store):
        """Test that invalid ids never reach the store."""
        with pytest.raises(ValueError):
            store.upsert("", make_faceprint(1))
        assert len(store) == 0

    def test_custom_id_length(self):
        """Test a store with a shorter id limit."""
        store = TemplateStore(max_user_id_length=4)
        with pytest.raises(ValueError):
            store.upsert("alice", make_faceprint(1))

    def test_configured_descriptor_length(self):
        """Test that a store with a fixed length rejects other lengths."""
        store = TemplateStore(descriptor_length=16)
        store.upsert("alice", make_faceprint(1))

        with pytest.raises(ValueError, match="store requires 16"):
            store.upsert("bob", make_faceprint(2, length=8))
        with pytest.raises(ValueError):
            store.upsert("alice", make_faceprint(2, length=32))

        assert store.list_users() == ["alice"]
        assert store.lookup("alice").same_as(make_faceprint(1))

    def test_length_follows_first_record(self, store):
        """Test that without a configured length all records share the first one's."""
        store.upsert("alice", make_faceprint(1, length=8))

        with pytest.raises(ValueError):
            store.upsert("bob", make_faceprint(2, length=16))

        store.upsert("bob", make_faceprint(2, length=8))
        assert store.list_users() == ["alice", "bob"]

    def test_empty_descriptors_rejected(self, store):
        """Test that a record with zero-length vectors is never stored."""
        with pytest.raises(ValueError):
            store.upsert("alice", make_faceprint(1, length=0))
        assert len(store) == 0

    def test_stored_record_is_a_copy(self, store):
        """Test that the caller's record and lookups can't modify the store."""
        faceprint = make_faceprint(1)
        store.upsert("alice", faceprint)

        faceprint.avg_descriptor[:] = 9
        store.lookup("alice").avg_descriptor[:] = 9

        assert store.lookup("alice").avg_descriptor[0] == 1

    def test_list_users_sorted(self, store):
        """Test that users are listed in sorted order regardless of insertion."""
        for user_id in ["carol", "alice", "bob"]:
            store.upsert(user_id, make_faceprint(len(user_id)))

        assert store.list_users() == ["alice", "bob", "carol"]
        # restartable: same result on repeated calls
        assert store.list_users() == store.list_users()

    def test_items_snapshot(self, store):
        """Test that items() follows enumeration order."""
        store.upsert("b", make_faceprint(2))
        store.upsert("a", make_faceprint(1))

        items = store.items()
        assert [user_id for user_id, _ in items] == ["a", "b"]
        assert items[0][1].avg_descriptor[0] == 1

    def test_remove(self, store):
        """Test deleting a user."""
        store.upsert("alice", make_faceprint(1))
        store.upsert("bob", make_faceprint(2))

        store.remove("alice")

        assert store.list_users() == ["bob"]
        assert store.lookup("alice") is None

    def test_remove_nonexistent(self, store):
        """Test removing a user id that isn't stored."""
        store.upsert("alice", make_faceprint(1))

        with pytest.raises(UserNotFoundError) as exc_info:
            store.remove("bob")

        assert exc_info.value.user_id == "bob"
        assert isinstance(exc_info.value, KeyError)
        assert store.list_users() == ["alice"]
        assert store.lookup("alice").same_as(make_faceprint(1))

    def test_clear(self, store):
        """Test that clear empties the store."""
        store.upsert("alice", make_faceprint(1))
        store.upsert("bob", make_faceprint(2))

        assert store.clear() == 2
        assert store.list_users() == []

    def test_clear_empty(self, store):
        """Test clearing an empty store."""
        assert store.clear() == 0

    def test_lock_is_reentrant(self, store):
        """Test that store operations work while the lock is held."""
        with store.lock:
            store.upsert("alice", make_faceprint(1))
            assert store.list_users() == ["alice"]

    def test_lock_blocks_other_threads(self, store):
        """Test that a held lock keeps other writers out."""
        finished = threading.Event()

        def writer():
            store.upsert("bob", make_faceprint(2))
            finished.set()

        with store.lock:
            thread = threading.Thread(target=writer)
            thread.start()
            assert not finished.wait(timeout=0.1)
            assert store.list_users() == []

        thread.join(timeout=1.0)
        assert finished.is_set()
        assert store.list_users() == ["bob"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
