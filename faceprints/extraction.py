"""
Extraction Session Module

One extraction session wraps one blocking request to the sensor: capture a
face and extract its faceprint, either for enrollment or for authentication.
While the call blocks, the device reports progress through callbacks:

    on_progress(pose)          zero or more times (enrollment only)
    on_hint(status)            zero or more times
    on_result(status, fp)      exactly once, terminal

Progress and hints are advisory; they never change the protocol state. The
faceprint accompanies the result only when the status is SUCCESS.

ExtractionSession places a guard in front of the caller's callback that
enforces the protocol whatever the device does:
- callbacks after the terminal result are dropped
- a faceprint delivered with a non-success status is dropped
- a device call that returns OK without a result gets a FAILURE result
- unknown hint codes are dropped; an unknown result code becomes FAILURE

Only one extraction may run per device connection at a time; a second
concurrent start raises DeviceBusyError.

Usage:
    with ExtractionSession(device) as session:
        status, result = session.run_enroll(my_callback)
        if status == Status.OK and result.success:
            store.upsert(user_id, Faceprint.from_extraction(result.faceprint))
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from faceprints.faceprint import Faceprint
from faceprints.statuses import AuthenticateStatus, EnrollStatus, FacePose, Status

logger = logging.getLogger(__name__)

ExtractionStatus = Union[EnrollStatus, AuthenticateStatus]


class DeviceBusyError(RuntimeError):
    """Raised when an extraction is started while another one is running."""


# ============================================================
# Callback Interfaces
# ============================================================


class EnrollExtractionCallback(ABC):
    """
    Receives the events of one enrollment extraction.

    One instance serves exactly one extraction call. State that outlives
    the call (such as pose guidance) belongs to the caller.
    """

    def on_progress(self, pose: FacePose) -> None:
        """A pose was detected. Advisory."""

    def on_hint(self, hint: EnrollStatus) -> None:
        """Non-terminal guidance from the sensor. Advisory."""

    @abstractmethod
    def on_result(self, status: EnrollStatus, faceprint: Optional[Faceprint]) -> None:
        """
        Terminal result, delivered exactly once.

        Args:
            status: SUCCESS or the failure reason.
            faceprint: Extracted faceprint, only when status is SUCCESS.
        """
        pass


class AuthExtractionCallback(ABC):
    """Receives the events of one authentication extraction."""

    def on_hint(self, hint: AuthenticateStatus) -> None:
        """Non-terminal guidance from the sensor. Advisory."""

    @abstractmethod
    def on_result(self, status: AuthenticateStatus, faceprint: Optional[Faceprint]) -> None:
        """Terminal result, delivered exactly once."""
        pass


# ============================================================
# Session
# ============================================================


class SessionState(Enum):
    IDLE = "idle"
    STARTED = "started"
    TERMINAL = "terminal"


@dataclass
class ExtractionResult:
    """
    Terminal outcome of one extraction.

    Attributes:
        status: Terminal EnrollStatus or AuthenticateStatus.
        faceprint: Extracted faceprint (None unless status is SUCCESS).
        hints: Hints received before the result, in order.
        poses: Poses reported before the result (enrollment only).
    """

    status: ExtractionStatus
    faceprint: Optional[Faceprint] = None
    hints: List[ExtractionStatus] = field(default_factory=list)
    poses: List[FacePose] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == type(self.status).SUCCESS and self.faceprint is not None


class _ProtocolGuard(EnrollExtractionCallback, AuthExtractionCallback):
    """Callback handed to the device; filters events through the session."""

    def __init__(self, session: "ExtractionSession"):
        self._session = session

    def on_progress(self, pose):
        self._session._handle_progress(pose)

    def on_hint(self, hint):
        self._session._handle_hint(hint)

    def on_result(self, status, faceprint=None):
        self._session._handle_result(status, faceprint)


class ExtractionSession:
    """
    Drives one enroll or authenticate extraction on a device.

    A session can be run once. Create a new session for every extraction.

    Used as a context manager, the session holds the device's extraction
    lock until the block exits, so work that follows the result (matching,
    storing) finishes before another extraction can start on the device.

    Attributes:
        device: Connected device session (see faceprints.device).
        state: Current protocol state.
        result: Terminal result once the session has ended.
    """

    def __init__(self, device):
        self.device = device
        self.state = SessionState.IDLE
        self.result: Optional[ExtractionResult] = None
        self._callback = None
        self._status_type = None
        self._hints: List[ExtractionStatus] = []
        self._poses: List[FacePose] = []
        self._holds_lock = False

    def __enter__(self) -> "ExtractionSession":
        self._acquire()
        self._holds_lock = True
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self._holds_lock = False
        self.device.extraction_lock.release()

    def _acquire(self) -> None:
        if not self.device.extraction_lock.acquire(blocking=False):
            raise DeviceBusyError("Another extraction is already running on this device")

    def run_enroll(
        self, callback: Optional[EnrollExtractionCallback] = None
    ) -> Tuple[Status, Optional[ExtractionResult]]:
        """
        Run an enrollment extraction. Blocks until the device call returns.

        Args:
            callback: Optional observer of progress, hints and the result.

        Returns:
            (connection status, terminal result). The result is None when the
            device call failed before the extraction started.
        """
        return self._run(self.device.start_enroll_extraction, callback, EnrollStatus)

    def run_auth(
        self, callback: Optional[AuthExtractionCallback] = None
    ) -> Tuple[Status, Optional[ExtractionResult]]:
        """Run an authentication extraction. Blocks until the device call returns."""
        return self._run(self.device.start_auth_extraction, callback, AuthenticateStatus)

    def _run(self, start, callback, status_type) -> Tuple[Status, Optional[ExtractionResult]]:
        if self.state is not SessionState.IDLE:
            raise RuntimeError("ExtractionSession can only be run once")

        owns_lock = not self._holds_lock
        if owns_lock:
            self._acquire()

        try:
            self._callback = callback
            self._status_type = status_type
            self.state = SessionState.STARTED
            logger.debug(f"{status_type.__name__} extraction started")

            status = start(_ProtocolGuard(self))

            if status != Status.OK:
                logger.warning(f"Extraction call failed with status {status}")
                self.state = SessionState.TERMINAL
                return status, self.result

            if self.result is None:
                logger.warning("Device returned without a result; reporting FAILURE")
                self._handle_result(status_type.FAILURE, None)

            return status, self.result
        finally:
            self.state = SessionState.TERMINAL
            if owns_lock:
                self.device.extraction_lock.release()

    def _handle_progress(self, pose: FacePose) -> None:
        if self.state is not SessionState.STARTED:
            logger.warning(f"Dropping progress {pose} received after the result")
            return
        self._poses.append(pose)
        logger.debug(f"on_progress: pose: {pose}")
        if self._callback is not None and hasattr(self._callback, "on_progress"):
            self._callback.on_progress(pose)

    def _handle_hint(self, hint: ExtractionStatus) -> None:
        if self.state is not SessionState.STARTED:
            logger.warning(f"Dropping hint {hint} received after the result")
            return
        try:
            hint = self._status_type(hint)
        except ValueError:
            logger.warning(f"Dropping unknown hint code {hint!r}")
            return
        self._hints.append(hint)
        logger.info(f"on_hint: hint: {hint}")
        if self._callback is not None:
            self._callback.on_hint(hint)

    def _handle_result(self, status: ExtractionStatus, faceprint: Optional[Faceprint]) -> None:
        if self.state is not SessionState.STARTED:
            logger.warning(f"Dropping extra result {status} received after the result")
            return

        try:
            status = self._status_type(status)
        except ValueError:
            logger.warning(f"Unknown result code {status!r}; reporting FAILURE")
            status = self._status_type.FAILURE

        if status == self._status_type.SUCCESS:
            if faceprint is None:
                logger.warning("SUCCESS result without a faceprint; reporting FAILURE")
                status = self._status_type.FAILURE
            else:
                faceprint = faceprint.copy()
        elif faceprint is not None:
            logger.warning(f"Dropping faceprint delivered with status {status}")
            faceprint = None

        self.state = SessionState.TERMINAL
        self.result = ExtractionResult(
            status=status,
            faceprint=faceprint,
            hints=list(self._hints),
            poses=list(self._poses),
        )
        logger.info(f"on_result: status: {status}")

        if self._callback is not None:
            self._callback.on_result(status, faceprint)
