"""
Matching Interfaces Module

This module defines the interface to the match oracle: the vendor function
that decides whether a freshly scanned faceprint belongs to the same person
as a stored one, and whether the stored average descriptor should be
refreshed.

The oracle is opaque. The host never looks inside descriptor vectors; it
only copies whole records and trusts the oracle's verdict. A real device
provides the oracle through DeviceSession.match_faceprints (see
faceprints.device.DeviceMatchOracle).

A stub implementation with a fixed verdict table is provided for tests and
demos.

Usage:
    from faceprints.matching.interfaces import MatchResult, StubMatchOracle

    oracle = StubMatchOracle(verdicts={"bob": MatchResult(True, False, None)})
    result = oracle.match(scanned, existing)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from faceprints.faceprint import Faceprint

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """
    Verdict of one oracle comparison.

    Attributes:
        success: True if the scanned faceprint belongs to the stored user.
        should_update: True if the stored average descriptor should be
                       replaced by the one in `updated`.
        updated: The stored record with a refreshed avg_descriptor.
                 Only meaningful when success and should_update are True.
                 orig_descriptor must be carried over unchanged.
    """

    success: bool
    should_update: bool = False
    updated: Optional[Faceprint] = None


class MatchOracle(ABC):
    """
    Abstract base class for the faceprint match oracle.

    Typical device behaviour:
        1. Compare the scanned vector against both stored vectors
        2. Accept if the similarity clears the security threshold
        3. Ask for an update when the user has drifted from the average
    """

    @abstractmethod
    def match(self, scanned: Faceprint, existing: Faceprint) -> MatchResult:
        """
        Compare a scanned faceprint with a stored one.

        Args:
            scanned: Faceprint from the authentication extraction.
            existing: Faceprint currently stored for one user.

        Returns:
            MatchResult with the oracle's verdict.
        """
        pass


# ============================================================
# Stub Implementation (deterministic verdicts)
# ============================================================


class StubMatchOracle(MatchOracle):
    """
    Oracle with deterministic verdicts.

    Verdicts are looked up by identity of the stored record: `key_fn` maps
    the existing faceprint to a key (by default its avg_descriptor bytes),
    and `verdicts` maps keys to MatchResults. Unknown keys get
    `default`, which rejects unless configured otherwise.

    Every call is recorded in `calls` so tests can check which stored
    entries were evaluated.
    """

    def __init__(
        self,
        verdicts: Optional[Dict[object, MatchResult]] = None,
        default: Optional[MatchResult] = None,
        key_fn: Optional[Callable[[Faceprint], object]] = None,
    ):
        """
        Initialize stub oracle.

        Args:
            verdicts: Mapping from record key to verdict.
            default: Verdict for records not in the mapping.
            key_fn: Function computing a record key.
        """
        self.verdicts = dict(verdicts or {})
        self.default = default or MatchResult(success=False)
        self.key_fn = key_fn or (lambda faceprint: faceprint.avg_descriptor.tobytes())
        self.calls: List[Tuple[Faceprint, Faceprint]] = []

    def match(self, scanned: Faceprint, existing: Faceprint) -> MatchResult:
        """Return the configured verdict for the stored record."""
        self.calls.append((scanned, existing))
        return self.verdicts.get(self.key_fn(existing), self.default)
