"""
Faceprints Service Module

Application-facing operations of server-mode faceprint handling:

- enroll_faceprints: Extract a faceprint and store it for a user
- authenticate_faceprints: Extract a faceprint and identify it against the store
- list_users / remove_user / clear_users: Store management

The service owns the template store and the matcher, and keeps the last
terminal extraction status of each kind. It is constructed once and passed
to whatever drives it (CLI, API); there is no module-level instance.

A listener can observe an extraction as it happens: progress poses, pose
guidance text, hints and the terminal status.

Usage:
    from faceprints.device import SimulatedDeviceSession
    from faceprints.service import FaceprintsService

    device = SimulatedDeviceSession(seed=1)
    device.connect()
    service = FaceprintsService(device)

    outcome = service.enroll_faceprints("alice")
    auth = service.authenticate_faceprints()
    if auth.matched:
        print(f"Hello {auth.user_id}")
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from faceprints.device import DeviceMatchOracle, DeviceSession, create_device
from faceprints.extraction import (
    AuthExtractionCallback,
    EnrollExtractionCallback,
    ExtractionSession,
)
from faceprints.faceprint import DEFAULT_DESCRIPTOR_LENGTH, Faceprint
from faceprints.matching import AuthOutcome, FaceprintMatcher, MatchOracle
from faceprints.pose_tracker import PoseCoverageTracker
from faceprints.statuses import AuthenticateStatus, EnrollStatus, FacePose, Status
from faceprints.template_store import (
    DEFAULT_MAX_USER_ID_LENGTH,
    TemplateStore,
    validate_user_id,
)

logger = logging.getLogger(__name__)


class FaceprintsListener:
    """
    Observer of one enroll or authenticate operation. All methods are no-ops;
    override the ones you need.
    """

    def on_progress(self, pose: FacePose) -> None:
        pass

    def on_guidance(self, text: str) -> None:
        pass

    def on_hint(self, hint) -> None:
        pass

    def on_result(self, status) -> None:
        pass


@dataclass
class EnrollOutcome:
    """
    Result of an enroll_faceprints call.

    Attributes:
        user_id: User that was being enrolled.
        status: Connection status of the extraction call.
        enroll_status: Terminal extraction status (None if the call failed
                       before the extraction started).
        guidance: Pose guidance messages shown during the extraction.
        hints: Hints received during the extraction.
    """

    user_id: str
    status: Status
    enroll_status: Optional[EnrollStatus] = None
    guidance: List[str] = field(default_factory=list)
    hints: List[EnrollStatus] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == Status.OK and self.enroll_status == EnrollStatus.SUCCESS


class _EnrollRelay(EnrollExtractionCallback):
    """Feeds the pose tracker and forwards events to the listener."""

    def __init__(self, tracker: PoseCoverageTracker, listener: Optional[FaceprintsListener]):
        self.tracker = tracker
        self.listener = listener
        self.guidance: List[str] = []

    def on_progress(self, pose):
        logger.info(f"Detected pose {pose}")
        self.tracker.on_pose_observed(pose)
        text = self.tracker.format_guidance()
        if self.listener is not None:
            self.listener.on_progress(pose)
        if text is not None:
            self.guidance.append(text)
            logger.info(text)
            if self.listener is not None:
                self.listener.on_guidance(text)

    def on_hint(self, hint):
        if self.listener is not None:
            self.listener.on_hint(hint)

    def on_result(self, status, faceprint):
        if self.listener is not None:
            self.listener.on_result(status)


class _AuthRelay(AuthExtractionCallback):
    """Forwards authentication events to the listener."""

    def __init__(self, listener: Optional[FaceprintsListener]):
        self.listener = listener

    def on_hint(self, hint):
        if self.listener is not None:
            self.listener.on_hint(hint)

    def on_result(self, status, faceprint):
        if self.listener is not None:
            self.listener.on_result(status)


class FaceprintsService:
    """
    Server-mode enrollment and authentication against a local store.

    Attributes:
        device: Connected device session.
        store: Template store owned by this service.
        matcher: First-match scanner over the store.
        last_enroll_status: Terminal status of the latest enrollment extraction.
        last_auth_status: Terminal status of the latest authentication extraction.
    """

    def __init__(
        self,
        device: DeviceSession,
        store: Optional[TemplateStore] = None,
        oracle: Optional[MatchOracle] = None,
        max_user_id_length: int = DEFAULT_MAX_USER_ID_LENGTH,
        descriptor_length: Optional[int] = None,
    ):
        """
        Initialize the service.

        Args:
            device: Device session used for extraction (and matching, unless
                    an oracle is given).
            store: Template store to use. A new empty store by default.
            oracle: Match oracle. Defaults to the device's match function.
            max_user_id_length: Longest user id accepted (new store only).
            descriptor_length: Descriptor length every stored record must
                               have (new store only).
        """
        self.device = device
        self.store = store if store is not None else TemplateStore(max_user_id_length, descriptor_length)
        self.matcher = FaceprintMatcher(self.store, oracle or DeviceMatchOracle(device))
        self.last_enroll_status: Optional[EnrollStatus] = None
        self.last_auth_status: Optional[AuthenticateStatus] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "FaceprintsService":
        """
        Build a service and its device from a loaded configuration.

        The device is created but not connected.
        """
        faceprints_config = config.get("faceprints", {})
        device = create_device(
            config.get("device", {}),
            faceprints_config,
            config.get("simulator", {}),
        )
        return cls(
            device,
            max_user_id_length=faceprints_config.get("max_user_id_length", DEFAULT_MAX_USER_ID_LENGTH),
            descriptor_length=faceprints_config.get("descriptor_length", DEFAULT_DESCRIPTOR_LENGTH),
        )

    def enroll_faceprints(
        self, user_id: str, listener: Optional[FaceprintsListener] = None
    ) -> EnrollOutcome:
        """
        Enroll a user from one extraction.

        On success a new faceprint is stored for the user (replacing any
        previous one) with both descriptors seeded from the extracted
        vector. On any failure the store is not touched.

        Args:
            user_id: Id to enroll under.
            listener: Optional observer of the extraction.

        Returns:
            EnrollOutcome.

        Raises:
            ValueError: If user_id is invalid (checked before the device
                        is used).
            DeviceBusyError: If another extraction is running.
        """
        validate_user_id(user_id, self.store.max_user_id_length)

        tracker = PoseCoverageTracker()
        relay = _EnrollRelay(tracker, listener)
        self.last_enroll_status = EnrollStatus.CAMERA_STARTED

        # the device stays locked until the new record is stored
        with ExtractionSession(self.device) as session:
            status, result = session.run_enroll(relay)

            if status != Status.OK or result is None:
                logger.error(f"Enroll extraction for {user_id} failed: status {status}")
                return EnrollOutcome(user_id=user_id, status=status, guidance=relay.guidance)

            self.last_enroll_status = result.status
            outcome = EnrollOutcome(
                user_id=user_id,
                status=status,
                enroll_status=result.status,
                guidance=relay.guidance,
                hints=list(result.hints),
            )

            if not result.success:
                logger.warning(f"Enroll extraction for {user_id} ended with {result.status}")
                return outcome

            self.store.upsert(user_id, Faceprint.from_extraction(result.faceprint))
            return outcome

    def authenticate_faceprints(
        self, listener: Optional[FaceprintsListener] = None
    ) -> AuthOutcome:
        """
        Identify the user in front of the sensor.

        Returns:
            AuthOutcome. `matched` with `user_id` on a hit; `no_match_found`
            when the scan completed without a hit; otherwise `status` /
            `auth_status` carry the failure and the store is untouched.

        Raises:
            DeviceBusyError: If another extraction is running.
        """
        self.last_auth_status = AuthenticateStatus.CAMERA_STARTED

        # lock order: device extraction lock, then the store lock inside match()
        with ExtractionSession(self.device) as session:
            status, result = session.run_auth(_AuthRelay(listener))

            if status != Status.OK or result is None:
                logger.error(f"Auth extraction failed: status {status}")
                return AuthOutcome(matched=False, status=status, auth_status=None)

            self.last_auth_status = result.status

            if not result.success:
                logger.warning(f"ExtractFaceprints failed with status {result.status}")
                return AuthOutcome(matched=False, status=status, auth_status=result.status)

            return self.matcher.match(result.faceprint)

    def lookup(self, user_id: str) -> Optional[Faceprint]:
        """Get a copy of a user's stored faceprint, or None."""
        return self.store.lookup(user_id)

    def list_users(self) -> List[str]:
        """List enrolled user ids in enumeration (sorted) order."""
        return self.store.list_users()

    def remove_user(self, user_id: str) -> None:
        """
        Remove one user.

        Raises:
            UserNotFoundError: If the user is not enrolled.
        """
        self.store.remove(user_id)

    def clear_users(self) -> int:
        """Remove every user. Returns how many were removed."""
        return self.store.clear()

    def get_stats(self) -> Dict[str, Any]:
        """Summary used by health checks and the CLI."""
        return {
            "total_users": len(self.store),
            "device_connected": self.device.is_connected,
            "last_enroll_status": self.last_enroll_status.name if self.last_enroll_status is not None else None,
            "last_auth_status": self.last_auth_status.name if self.last_auth_status is not None else None,
        }
