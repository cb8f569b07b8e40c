"""
Matching Module for Faceprint Authentication

This package contains the faceprint match pipeline:

Components:
    - interfaces: MatchResult, the MatchOracle interface and a stub oracle
    - faceprint_matcher: First-match scan of the template store with
      conditional average-descriptor update

Usage:
    from faceprints.matching import FaceprintMatcher, StubMatchOracle
"""

from faceprints.matching.interfaces import (
    MatchResult,
    MatchOracle,
    StubMatchOracle,
)
from faceprints.matching.faceprint_matcher import (
    AuthOutcome,
    FaceprintMatcher,
)

__all__ = [
    # Data classes
    "MatchResult",
    "AuthOutcome",
    # Abstract interfaces
    "MatchOracle",
    # Stub implementations
    "StubMatchOracle",
    # Matcher
    "FaceprintMatcher",
]
