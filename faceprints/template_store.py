"""
Template Store Module

This module holds the faceprints of all enrolled users for the running
process. It is the single source of truth for known users: the matcher
scans it on authentication and the service writes to it on enrollment.

The store is volatile. Nothing is written to disk; a restart starts empty.

Enumeration order is sorted by user_id. This order is also the order in
which the matcher offers entries to the match oracle, so with two users
that would both match, the one whose id sorts first wins.

The TemplateStore class provides:
- upsert: Create or replace a user's faceprint (whole record, atomic)
- lookup: Get a copy of one user's faceprint
- list_users: All user ids in enumeration order
- remove: Delete one user (UserNotFoundError if absent)
- clear: Delete everybody

All operations take the store's re-entrant lock. Callers that need a
read-decide-write cycle (the matcher) hold `store.lock` for the whole cycle.

Usage:
    from faceprints.template_store import TemplateStore

    store = TemplateStore()
    store.upsert("alice", faceprint)
    for user_id in store.list_users():
        print(user_id)
"""

import logging
import threading
from typing import Dict, List, Optional, Tuple

from faceprints.faceprint import Faceprint

logger = logging.getLogger(__name__)

DEFAULT_MAX_USER_ID_LENGTH = 30


class UserNotFoundError(KeyError):
    """Raised when an operation names a user id that is not in the store."""

    def __init__(self, user_id: str):
        super().__init__(user_id)
        self.user_id = user_id

    def __str__(self) -> str:
        return f"User {self.user_id} not found"


def validate_user_id(user_id: str, max_length: int = DEFAULT_MAX_USER_ID_LENGTH) -> str:
    """
    Check that a user id can be stored.

    Args:
        user_id: Candidate id.
        max_length: Longest accepted id (the device buffer minus terminator).

    Returns:
        The id unchanged.

    Raises:
        ValueError: If the id is empty, not a string, or too long.
    """
    if not isinstance(user_id, str) or not user_id:
        raise ValueError("user_id must be a non-empty string")
    if len(user_id) > max_length:
        raise ValueError(
            f"user_id must be at most {max_length} characters, got {len(user_id)}"
        )
    return user_id


class TemplateStore:
    """
    In-memory registry of enrolled users' faceprints.

    Records go in and come out as copies, so a caller can never modify a
    stored faceprint except through upsert().

    Attributes:
        max_user_id_length: Longest user id accepted by upsert().
        descriptor_length: Required vector length, or None to accept the
                           length of whatever record comes first.
        lock: Re-entrant lock guarding every operation.
    """

    def __init__(
        self,
        max_user_id_length: int = DEFAULT_MAX_USER_ID_LENGTH,
        descriptor_length: Optional[int] = None,
    ):
        self.max_user_id_length = max_user_id_length
        self.descriptor_length = descriptor_length
        self.lock = threading.RLock()
        self._faceprints: Dict[str, Faceprint] = {}

    def upsert(self, user_id: str, faceprint: Faceprint) -> None:
        """
        Create or replace the faceprint stored for a user.

        Args:
            user_id: The user's unique identifier.
            faceprint: Complete record to store (copied).

        Raises:
            ValueError: If user_id is invalid, or the descriptors do not
                        have the store's length.
        """
        validate_user_id(user_id, self.max_user_id_length)
        record = faceprint.copy()

        with self.lock:
            self._check_length(record)
            replaced = user_id in self._faceprints
            self._faceprints[user_id] = record

        logger.info(f"{'Updated' if replaced else 'Saved'} faceprint for user {user_id}")

    def _check_length(self, record: Faceprint) -> None:
        # all records share one length; an empty store with no configured
        # length takes the length of its first record
        expected = self.descriptor_length
        if expected is None and self._faceprints:
            expected = next(iter(self._faceprints.values())).descriptor_length
        if record.descriptor_length == 0 or (
            expected is not None and record.descriptor_length != expected
        ):
            raise ValueError(
                f"Faceprint descriptors have length {record.descriptor_length}, "
                f"store requires {expected}"
            )

    def lookup(self, user_id: str) -> Optional[Faceprint]:
        """
        Get a copy of one user's faceprint.

        Returns:
            Faceprint copy, or None if the user is not enrolled.
        """
        with self.lock:
            faceprint = self._faceprints.get(user_id)
            return faceprint.copy() if faceprint is not None else None

    def list_users(self) -> List[str]:
        """List all enrolled user ids, sorted."""
        with self.lock:
            return sorted(self._faceprints)

    def items(self) -> List[Tuple[str, Faceprint]]:
        """Snapshot of (user_id, faceprint copy) pairs in enumeration order."""
        with self.lock:
            return [(user_id, self._faceprints[user_id].copy()) for user_id in sorted(self._faceprints)]

    def remove(self, user_id: str) -> None:
        """
        Delete one user's faceprint.

        Raises:
            UserNotFoundError: If the user is not enrolled. The store is
                               left unchanged.
        """
        with self.lock:
            if user_id not in self._faceprints:
                logger.warning(f"Cannot remove: user {user_id} not found")
                raise UserNotFoundError(user_id)
            del self._faceprints[user_id]

        logger.info(f"Removed faceprint for user {user_id}")

    def clear(self) -> int:
        """
        Delete every stored faceprint.

        Returns:
            Number of users that were removed.
        """
        with self.lock:
            count = len(self._faceprints)
            self._faceprints.clear()

        logger.info(f"Cleared {count} faceprint(s)")
        return count

    def __contains__(self, user_id: object) -> bool:
        with self.lock:
            return user_id in self._faceprints

    def __len__(self) -> int:
        with self.lock:
            return len(self._faceprints)
