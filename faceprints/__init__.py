"""
Faceprints: server-mode faceprint handling for a remote face sensor.

The sensor extracts faceprints; this package keeps them in a local store,
identifies scanned faceprints against the store with the sensor's match
function, and guides users through enrollment poses.

Main components:
    - config: Configuration loading
    - faceprint: Faceprint record and binary codec
    - pose_tracker: Enrollment pose guidance
    - template_store: In-memory store of enrolled users
    - extraction: Extraction callback protocol
    - matching: Match oracle interface and first-match scanner
    - device: Device session interface and simulated device
    - service: Enroll / authenticate / list / clear operations

Usage:
    from faceprints import FaceprintsService, SimulatedDeviceSession
"""

from faceprints.config import (
    get_config,
    get_section,
    get_faceprints_config,
    get_device_config,
    get_simulator_config,
    get_api_config,
    get_logging_config,
    get_server_config,
)

from faceprints.statuses import (
    FacePose,
    FeaturesType,
    Status,
    EnrollStatus,
    AuthenticateStatus,
)

from faceprints.faceprint import Faceprint

from faceprints.pose_tracker import PoseCoverageTracker

from faceprints.template_store import (
    TemplateStore,
    UserNotFoundError,
    validate_user_id,
)

from faceprints.extraction import (
    EnrollExtractionCallback,
    AuthExtractionCallback,
    ExtractionSession,
    ExtractionResult,
    DeviceBusyError,
)

from faceprints.matching import (
    MatchResult,
    MatchOracle,
    StubMatchOracle,
    AuthOutcome,
    FaceprintMatcher,
)

from faceprints.device import (
    DeviceSession,
    DeviceMatchOracle,
    SimulatedDeviceSession,
    ScriptedExtraction,
    create_device,
)

from faceprints.service import (
    FaceprintsService,
    FaceprintsListener,
    EnrollOutcome,
)

__all__ = [
    # Configuration
    "get_config",
    "get_section",
    "get_faceprints_config",
    "get_device_config",
    "get_simulator_config",
    "get_api_config",
    "get_logging_config",
    "get_server_config",
    # Statuses
    "FacePose",
    "FeaturesType",
    "Status",
    "EnrollStatus",
    "AuthenticateStatus",
    # Records and store
    "Faceprint",
    "PoseCoverageTracker",
    "TemplateStore",
    "UserNotFoundError",
    "validate_user_id",
    # Extraction
    "EnrollExtractionCallback",
    "AuthExtractionCallback",
    "ExtractionSession",
    "ExtractionResult",
    "DeviceBusyError",
    # Matching
    "MatchResult",
    "MatchOracle",
    "StubMatchOracle",
    "AuthOutcome",
    "FaceprintMatcher",
    # Device
    "DeviceSession",
    "DeviceMatchOracle",
    "SimulatedDeviceSession",
    "ScriptedExtraction",
    "create_device",
    # Service
    "FaceprintsService",
    "FaceprintsListener",
    "EnrollOutcome",
]
