"""
Device Session Module

The sensor is an external collaborator. This module defines the interface
the faceprints core needs from it, an adapter that exposes the device's
match function as a MatchOracle, and a simulated device for demos and tests.

Interface (DeviceSession):
    connect() / disconnect()
    start_enroll_extraction(callback) -> Status
    start_auth_extraction(callback) -> Status
    match_faceprints(scanned, existing) -> MatchResult

start_* calls block until the extraction ends. A non-OK Status means the
call failed at connection level before any callback fired.

The simulated device replays scripted extractions, or, when nothing is
scripted, performs a Center/Left/Right sweep that yields a random face.
Unscripted authentication shows the most recently enrolled face again with
some noise, so an enroll-then-authenticate demo matches.

Usage:
    from faceprints.device import SimulatedDeviceSession, ScriptedExtraction

    device = SimulatedDeviceSession(seed=1)
    device.connect()
    device.script_enroll(ScriptedExtraction(status=EnrollStatus.SPOOF))
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import numpy as np

from faceprints.faceprint import (
    DEFAULT_DESCRIPTOR_DTYPE,
    DEFAULT_DESCRIPTOR_LENGTH,
    Faceprint,
)
from faceprints.matching.interfaces import MatchOracle, MatchResult
from faceprints.statuses import (
    AuthenticateStatus,
    EnrollStatus,
    FacePose,
    FeaturesType,
    POSE_ORDER,
    Status,
)

logger = logging.getLogger(__name__)

# Range of simulated descriptor element values
_DESCRIPTOR_SPAN = 2000


class DeviceSession(ABC):
    """
    Abstract base class for a connection to the sensor.

    Subclasses must call super().__init__() so the per-connection
    extraction lock exists.

    Attributes:
        extraction_lock: Held by ExtractionSession while an extraction runs.
    """

    def __init__(self):
        self.extraction_lock = threading.Lock()

    @abstractmethod
    def connect(self) -> Status:
        """Open the connection."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection."""
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @abstractmethod
    def start_enroll_extraction(self, callback) -> Status:
        """Capture a face and extract a faceprint for enrollment (blocking)."""
        pass

    @abstractmethod
    def start_auth_extraction(self, callback) -> Status:
        """Capture a face and extract a faceprint for authentication (blocking)."""
        pass

    @abstractmethod
    def match_faceprints(self, scanned: Faceprint, existing: Faceprint) -> MatchResult:
        """Vendor similarity verdict for a scanned and a stored faceprint."""
        pass


class DeviceMatchOracle(MatchOracle):
    """Expose a device's match function as a MatchOracle."""

    def __init__(self, device: DeviceSession):
        self.device = device

    def match(self, scanned: Faceprint, existing: Faceprint) -> MatchResult:
        return self.device.match_faceprints(scanned, existing)


# ============================================================
# Simulated Device
# ============================================================


Event = Union[FacePose, EnrollStatus, AuthenticateStatus]


@dataclass
class ScriptedExtraction:
    """
    One canned extraction for the simulated device.

    Attributes:
        status: Terminal status delivered with on_result.
        faceprint: Payload delivered with the result.
        events: Poses (progress) and statuses (hints) emitted before the
                result, in order.
        connection_status: If not OK, the call fails with this status
                           before any callback.
        extra_events: Events emitted after the result, to exercise the
                      protocol guard.
    """

    status: Union[EnrollStatus, AuthenticateStatus]
    faceprint: Optional[Faceprint] = None
    events: List[Event] = field(default_factory=list)
    connection_status: Status = Status.OK
    extra_events: List[Event] = field(default_factory=list)


class SimulatedDeviceSession(DeviceSession):
    """
    In-process stand-in for the sensor.

    Args:
        descriptor_length: Length of generated descriptor vectors.
        version: Faceprint version stamped on generated faceprints.
        seed: Seed for the random generator.
        match_threshold: Cosine similarity of average descriptors needed
                         for a match.
        update_threshold: Matches below this similarity ask for an update.
        rescan_noise: Std-dev of the noise added when re-showing a face.
    """

    def __init__(
        self,
        descriptor_length: int = DEFAULT_DESCRIPTOR_LENGTH,
        version: int = 5,
        seed: Optional[int] = None,
        match_threshold: float = 0.90,
        update_threshold: float = 0.98,
        rescan_noise: float = 300.0,
    ):
        super().__init__()
        self.descriptor_length = descriptor_length
        self.version = version
        self.match_threshold = match_threshold
        self.update_threshold = update_threshold
        self.rescan_noise = rescan_noise

        self._rng = np.random.default_rng(seed)
        self._connected = False
        self._enroll_script: deque = deque()
        self._auth_script: deque = deque()
        self._last_enrolled: Optional[np.ndarray] = None

    @classmethod
    def from_config(cls, faceprints_config: Dict[str, Any], simulator_config: Dict[str, Any]):
        """Build a simulated device from the faceprints and simulator config sections."""
        return cls(
            descriptor_length=faceprints_config.get("descriptor_length", DEFAULT_DESCRIPTOR_LENGTH),
            version=faceprints_config.get("version", 5),
            seed=simulator_config.get("seed"),
            match_threshold=simulator_config.get("match_threshold", 0.90),
            update_threshold=simulator_config.get("update_threshold", 0.98),
            rescan_noise=simulator_config.get("rescan_noise", 300.0),
        )

    # ----- connection -----

    def connect(self) -> Status:
        self._connected = True
        logger.info("Simulated device connected")
        return Status.OK

    def disconnect(self) -> None:
        self._connected = False
        logger.info("Simulated device disconnected")

    @property
    def is_connected(self) -> bool:
        return self._connected

    # ----- scripting -----

    def script_enroll(self, *extractions: ScriptedExtraction) -> None:
        """Queue canned enrollment extractions (consumed in order)."""
        self._enroll_script.extend(extractions)

    def script_auth(self, *extractions: ScriptedExtraction) -> None:
        """Queue canned authentication extractions (consumed in order)."""
        self._auth_script.extend(extractions)

    def make_faceprint(self, descriptor: Optional[np.ndarray] = None) -> Faceprint:
        """Build a faceprint payload carrying one vector in both fields."""
        if descriptor is None:
            descriptor = self._random_descriptor()
        return Faceprint(
            version=self.version,
            number_of_descriptors=self.descriptor_length,
            features_type=FeaturesType.W10,
            orig_descriptor=descriptor,
            avg_descriptor=descriptor,
        )

    # ----- extraction -----

    def start_enroll_extraction(self, callback) -> Status:
        if not self._connected:
            return Status.SERIAL_ERROR

        if self._enroll_script:
            return self._replay(self._enroll_script.popleft(), callback)

        descriptor = self._random_descriptor()
        self._last_enrolled = descriptor
        scripted = ScriptedExtraction(
            status=EnrollStatus.SUCCESS,
            faceprint=self.make_faceprint(descriptor),
            events=list(POSE_ORDER),
        )
        return self._replay(scripted, callback)

    def start_auth_extraction(self, callback) -> Status:
        if not self._connected:
            return Status.SERIAL_ERROR

        if self._auth_script:
            return self._replay(self._auth_script.popleft(), callback)

        if self._last_enrolled is None:
            # nobody known in front of the camera: a stranger
            descriptor = self._random_descriptor()
        else:
            noise = self._rng.normal(0.0, self.rescan_noise, self.descriptor_length)
            descriptor = np.clip(self._last_enrolled + noise, -32768, 32767)

        scripted = ScriptedExtraction(
            status=AuthenticateStatus.SUCCESS,
            faceprint=self.make_faceprint(descriptor),
        )
        return self._replay(scripted, callback)

    def _replay(self, scripted: ScriptedExtraction, callback) -> Status:
        if scripted.connection_status != Status.OK:
            return scripted.connection_status

        self._emit(scripted.events, callback)
        callback.on_result(scripted.status, scripted.faceprint)
        self._emit(scripted.extra_events, callback)
        return Status.OK

    @staticmethod
    def _emit(events: List[Event], callback) -> None:
        for event in events:
            if isinstance(event, FacePose):
                callback.on_progress(event)
            else:
                callback.on_hint(event)

    def _random_descriptor(self) -> np.ndarray:
        return self._rng.integers(
            -_DESCRIPTOR_SPAN, _DESCRIPTOR_SPAN, self.descriptor_length
        ).astype(DEFAULT_DESCRIPTOR_DTYPE)

    # ----- matching -----

    def match_faceprints(self, scanned: Faceprint, existing: Faceprint) -> MatchResult:
        """
        Cosine similarity of the average descriptors.

        A refreshed average is the element-wise mean of the stored and
        scanned averages; the stored original descriptor is carried over.
        """
        a = scanned.avg_descriptor.astype(np.float64)
        b = existing.avg_descriptor.astype(np.float64)

        if a.shape != b.shape:
            logger.error(f"Descriptor length mismatch: scanned={a.shape[0]}, stored={b.shape[0]}")
            return MatchResult(success=False)

        norm = np.linalg.norm(a) * np.linalg.norm(b)
        if norm < 1e-8:
            return MatchResult(success=False)

        similarity = float(np.dot(a, b) / norm)
        success = similarity >= self.match_threshold
        should_update = success and similarity < self.update_threshold

        updated = None
        if should_update:
            updated = Faceprint(
                version=existing.version,
                number_of_descriptors=existing.number_of_descriptors,
                features_type=existing.features_type,
                orig_descriptor=existing.orig_descriptor,
                avg_descriptor=np.round((a + b) / 2.0).astype(DEFAULT_DESCRIPTOR_DTYPE),
            )

        logger.debug(f"Simulated match: similarity={similarity:.4f}, success={success}, update={should_update}")
        return MatchResult(success=success, should_update=should_update, updated=updated)


def create_device(
    device_config: Dict[str, Any],
    faceprints_config: Optional[Dict[str, Any]] = None,
    simulator_config: Optional[Dict[str, Any]] = None,
) -> DeviceSession:
    """
    Create the device session named by the device config section.

    Raises:
        ValueError: If the backend is not supported.
    """
    backend = device_config.get("backend", "simulated")
    if backend == "simulated":
        return SimulatedDeviceSession.from_config(faceprints_config or {}, simulator_config or {})
    raise ValueError(f"Unsupported device backend: {backend}")
