"""
Status and tag enumerations shared by the faceprints modules.

The numeric values follow the sensor's wire codes so statuses can be
logged and compared against device traces unchanged.
"""

from enum import Enum, IntEnum


class FacePose(Enum):
    """Head orientation reported during enrollment."""
    CENTER = "Center"
    LEFT = "Left"
    RIGHT = "Right"

    def __str__(self) -> str:
        return self.value


# Canonical order used when asking the user for the next pose
POSE_ORDER = (FacePose.CENTER, FacePose.LEFT, FacePose.RIGHT)


class FeaturesType(IntEnum):
    """Descriptor encoding / algorithm tag carried in every faceprint."""
    W10 = 0
    RGB = 1


class _NamedStatus(IntEnum):
    """Integer status that prints as its name, in str() and in f-strings."""

    def __str__(self) -> str:
        return self.name

    def __format__(self, format_spec: str) -> str:
        return format(self.name, format_spec)


class Status(_NamedStatus):
    """Connection-level status of a device call."""
    OK = 100
    ERROR = 101
    SERIAL_ERROR = 102
    SECURITY_ERROR = 103
    VERSION_MISMATCH = 104
    CRC_ERROR = 105
    TOO_MANY_SPOOFS = 106
    NOT_SUPPORTED = 107


class EnrollStatus(_NamedStatus):
    """Terminal results and hints of an enrollment extraction."""
    SUCCESS = 0
    NO_FACE_DETECTED = 1
    FACE_DETECTED = 2
    LED_FLOW_SUCCESS = 3
    FACE_IS_TOO_FAR_TO_THE_TOP = 4
    FACE_IS_TOO_FAR_TO_THE_BOTTOM = 5
    FACE_IS_TOO_FAR_TO_THE_RIGHT = 6
    FACE_IS_TOO_FAR_TO_THE_LEFT = 7
    FACE_TILT_IS_TOO_UP = 8
    FACE_TILT_IS_TOO_DOWN = 9
    FACE_TILT_IS_TOO_RIGHT = 10
    FACE_TILT_IS_TOO_LEFT = 11
    FACE_IS_NOT_FRONTAL = 12
    CAMERA_STARTED = 13
    CAMERA_STOPPED = 14
    MULTIPLE_FACES_DETECTED = 15
    FAILURE = 16
    DEVICE_ERROR = 17
    ENROLL_WITH_MASK_IS_FORBIDDEN = 18
    SPOOF = 19


class AuthenticateStatus(_NamedStatus):
    """Terminal results and hints of an authentication extraction."""
    SUCCESS = 0
    NO_FACE_DETECTED = 1
    FACE_DETECTED = 2
    LED_FLOW_SUCCESS = 3
    FACE_IS_TOO_FAR_TO_THE_TOP = 4
    FACE_IS_TOO_FAR_TO_THE_BOTTOM = 5
    FACE_IS_TOO_FAR_TO_THE_RIGHT = 6
    FACE_IS_TOO_FAR_TO_THE_LEFT = 7
    FACE_TILT_IS_TOO_UP = 8
    FACE_TILT_IS_TOO_DOWN = 9
    FACE_TILT_IS_TOO_RIGHT = 10
    FACE_TILT_IS_TOO_LEFT = 11
    CAMERA_STARTED = 12
    CAMERA_STOPPED = 13
    MASK_DETECTED_IN_HIGH_SECURITY = 14
    SPOOF = 15
    FORBIDDEN = 16
    DEVICE_ERROR = 17
    FAILURE = 18
