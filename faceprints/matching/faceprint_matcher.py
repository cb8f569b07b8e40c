"""
Faceprint Matcher: identify a scanned faceprint against the template store.

The scan is first-match, not best-match: stored entries are offered to the
oracle in the store's enumeration order (sorted user ids) and the first
success ends the scan. Entries after the hit are never evaluated, even if
they would also match.

On a hit that the oracle flags with should_update, the stored record is
replaced by the oracle's updated record. The original descriptor of the
stored record always survives the update.

The store lock is held for the whole scan-and-update so a concurrent
clear or upsert cannot invalidate a decision before it is written.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from faceprints.faceprint import Faceprint
from faceprints.matching.interfaces import MatchOracle
from faceprints.statuses import AuthenticateStatus, Status
from faceprints.template_store import TemplateStore

logger = logging.getLogger(__name__)


@dataclass
class AuthOutcome:
    """
    Result of an authentication scan.

    Attributes:
        matched: True if a stored user matched. False means NoMatchFound.
        user_id: Matched user id (None when not matched).
        updated: True if the matched user's average descriptor was refreshed.
        candidates: Number of stored entries offered to the oracle.
        status: Connection status of the extraction call.
        auth_status: Terminal extraction status (None if the call failed
                     before the extraction started).
    """

    matched: bool
    user_id: Optional[str] = None
    updated: bool = False
    candidates: int = 0
    status: Status = Status.OK
    auth_status: Optional[AuthenticateStatus] = AuthenticateStatus.SUCCESS

    @classmethod
    def no_match(cls, candidates: int = 0) -> "AuthOutcome":
        return cls(matched=False, candidates=candidates)

    @property
    def no_match_found(self) -> bool:
        """True when a scan completed without any stored user matching."""
        return (
            not self.matched
            and self.status == Status.OK
            and self.auth_status == AuthenticateStatus.SUCCESS
        )


class FaceprintMatcher:
    """
    Scan the template store with a match oracle.

    Args:
        store: Template store to scan (shared with the enrollment path).
        oracle: Match oracle deciding success and update need.
    """

    def __init__(self, store: TemplateStore, oracle: MatchOracle):
        self.store = store
        self.oracle = oracle

    def match(self, scanned: Faceprint) -> AuthOutcome:
        """
        Identify a scanned faceprint.

        Args:
            scanned: Faceprint from a successful authentication extraction.

        Returns:
            AuthOutcome. The store is modified only on a matched,
            update-flagged verdict.
        """
        with self.store.lock:
            entries = self.store.items()
            logger.info(f"Searching {len(entries)} faceprints")

            for evaluated, (user_id, existing) in enumerate(entries, start=1):
                result = self.oracle.match(scanned, existing)

                if not result.success:
                    logger.debug(f"Forbidden (no faceprint matched) for user {user_id}")
                    continue

                logger.info(f"Match success. user_id: {user_id}")

                updated = False
                if result.should_update:
                    updated = self._apply_update(user_id, existing, result.updated)

                return AuthOutcome(
                    matched=True,
                    user_id=user_id,
                    updated=updated,
                    candidates=evaluated,
                )

        logger.info("Forbidden (no faceprint matched)")
        return AuthOutcome.no_match(candidates=len(entries))

    def _apply_update(
        self, user_id: str, existing: Faceprint, updated: Optional[Faceprint]
    ) -> bool:
        """
        Write the oracle's refreshed record for a matched user.

        Only the average descriptor is taken from the oracle. If the oracle
        returned a different original descriptor, the stored one is kept.

        Returns:
            True if the store was written.
        """
        if updated is None:
            logger.warning(f"Oracle asked to update {user_id} without an updated faceprint")
            return False

        if not np.array_equal(updated.orig_descriptor, existing.orig_descriptor):
            logger.warning(
                f"Oracle update for {user_id} altered orig_descriptor; keeping stored original"
            )

        record = Faceprint(
            version=updated.version,
            number_of_descriptors=updated.number_of_descriptors,
            features_type=updated.features_type,
            orig_descriptor=existing.orig_descriptor,
            avg_descriptor=updated.avg_descriptor,
        )
        self.store.upsert(user_id, record)
        logger.info(f"Updated avg faceprint in db for user {user_id}")
        return True
