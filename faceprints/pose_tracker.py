"""
Pose coverage guidance for enrollment.

Tracks which head poses the user still has to show the sensor and tells
the UI where to look next. The tracker is purely advisory: the sensor alone
decides when enrollment is complete, and nothing here blocks or gates the
extraction session.
"""

import logging
from typing import FrozenSet, List, Optional

from faceprints.statuses import FacePose, POSE_ORDER

logger = logging.getLogger(__name__)


class PoseCoverageTracker:
    """
    Guides the user through the required enrollment poses.

    Responsibilities:
    - Keep the set of poses still required (Center, Left, Right at start)
    - Report the next required pose in canonical order
    - Produce the instruction text shown to the user

    The required set only ever shrinks; observing a pose twice is a no-op.
    """

    def __init__(self):
        self._required = set(POSE_ORDER)
        self._observed: List[FacePose] = []

    def reset(self) -> None:
        """Reset guidance state for a new enrollment."""
        self._required = set(POSE_ORDER)
        self._observed = []

    def on_pose_observed(self, pose: FacePose) -> Optional[FacePose]:
        """
        Record a pose reported by the sensor.

        Args:
            pose: Pose detected in the latest progress callback.

        Returns:
            The next pose the user should turn to, or None once every
            required pose has been observed.
        """
        self._observed.append(pose)
        self._required.discard(pose)

        next_pose = self.next_required()
        if next_pose is not None:
            logger.debug(f"Pose {pose} observed, next required: {next_pose}")
        else:
            logger.debug(f"Pose {pose} observed, coverage complete")
        return next_pose

    def next_required(self) -> Optional[FacePose]:
        """Get the first still-required pose in canonical order."""
        for pose in POSE_ORDER:
            if pose in self._required:
                return pose
        return None

    def format_guidance(self) -> Optional[str]:
        """Get the instruction text for the UI, or None when complete."""
        next_pose = self.next_required()
        if next_pose is None:
            return None
        return f"Please look to the {next_pose}"

    @property
    def required(self) -> FrozenSet[FacePose]:
        """Poses not yet observed."""
        return frozenset(self._required)

    @property
    def observed(self) -> List[FacePose]:
        """Every pose reported so far, in arrival order."""
        return list(self._observed)

    @property
    def is_complete(self) -> bool:
        return not self._required
