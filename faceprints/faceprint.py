"""
Faceprint Record Module

A faceprint is the host-side biometric record of one enrolled user. It holds
two fixed-length descriptor vectors produced by the sensor:

- orig_descriptor: captured at enrollment, never modified afterwards
- avg_descriptor: running average that follows the user's appearance drift

Both vectors are numpy arrays with value semantics: every constructor and
copy takes its own buffer, so a stored record can never be changed through
an array the caller still holds.

The binary record layout (little-endian) is:

    version              int32
    numberOfDescriptors  int32
    featuresType         int32
    origDescriptor       descriptor_length * itemsize bytes
    avgDescriptor        descriptor_length * itemsize bytes

Usage:
    from faceprints.faceprint import Faceprint

    stored = Faceprint.from_extraction(extracted)
    blob = stored.to_bytes()
    again = Faceprint.from_bytes(blob)
"""

import struct
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from faceprints.statuses import FeaturesType

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTOR_LENGTH = 515
DEFAULT_DESCRIPTOR_DTYPE = np.dtype("<i2")

_HEADER = struct.Struct("<iii")


@dataclass
class Faceprint:
    """
    Data class representing one user's faceprint.

    Attributes:
        version: Template format version, opaque to the host.
        number_of_descriptors: Count of encoded descriptor elements.
        features_type: Descriptor encoding tag.
        orig_descriptor: Enrollment descriptor. Shape: (L,).
        avg_descriptor: Running-average descriptor. Shape: (L,).
    """

    version: int
    number_of_descriptors: int
    features_type: FeaturesType
    orig_descriptor: np.ndarray  # (L,) int16
    avg_descriptor: np.ndarray   # (L,) int16

    def __post_init__(self):
        """Take private copies of the vectors and validate their shape."""
        self.features_type = FeaturesType(self.features_type)
        self.orig_descriptor = np.array(self.orig_descriptor, dtype=DEFAULT_DESCRIPTOR_DTYPE, copy=True)
        self.avg_descriptor = np.array(self.avg_descriptor, dtype=DEFAULT_DESCRIPTOR_DTYPE, copy=True)

        assert self.orig_descriptor.ndim == 1, \
            f"orig_descriptor must be 1-D, got shape {self.orig_descriptor.shape}"
        assert self.avg_descriptor.shape == self.orig_descriptor.shape, \
            f"avg_descriptor must match orig_descriptor shape {self.orig_descriptor.shape}, " \
            f"got {self.avg_descriptor.shape}"

    @property
    def descriptor_length(self) -> int:
        """Return the fixed length of each descriptor vector."""
        return len(self.orig_descriptor)

    @classmethod
    def from_extraction(cls, extracted: "Faceprint") -> "Faceprint":
        """
        Build the record stored for a newly enrolled user.

        The enrollment extraction yields a single vector (carried in the
        payload's average field) that seeds both the original and the
        average descriptor.

        Args:
            extracted: Faceprint payload delivered with a successful
                       enrollment result.

        Returns:
            New Faceprint with orig_descriptor == avg_descriptor.
        """
        return cls(
            version=extracted.version,
            number_of_descriptors=extracted.number_of_descriptors,
            features_type=extracted.features_type,
            orig_descriptor=extracted.avg_descriptor,
            avg_descriptor=extracted.avg_descriptor,
        )

    def copy(self) -> "Faceprint":
        """Return an independent copy (vectors are copied in __post_init__)."""
        return Faceprint(
            version=self.version,
            number_of_descriptors=self.number_of_descriptors,
            features_type=self.features_type,
            orig_descriptor=self.orig_descriptor,
            avg_descriptor=self.avg_descriptor,
        )

    def same_as(self, other: "Faceprint") -> bool:
        """Bit-for-bit comparison of header fields and both vectors."""
        return (
            self.version == other.version
            and self.number_of_descriptors == other.number_of_descriptors
            and self.features_type == other.features_type
            and np.array_equal(self.orig_descriptor, other.orig_descriptor)
            and np.array_equal(self.avg_descriptor, other.avg_descriptor)
        )

    def to_bytes(self) -> bytes:
        """Serialize to the fixed binary record layout."""
        header = _HEADER.pack(
            int(self.version),
            int(self.number_of_descriptors),
            int(self.features_type),
        )
        return header + self.orig_descriptor.tobytes() + self.avg_descriptor.tobytes()

    @classmethod
    def from_bytes(cls, data: bytes, descriptor_length: Optional[int] = None) -> "Faceprint":
        """
        Parse a binary record produced by to_bytes().

        The descriptor length is derived from the payload size.

        Args:
            data: Binary record.
            descriptor_length: If given, the length both vectors must have.

        Raises:
            ValueError: If the payload is truncated, carries no descriptor
                        data, the two blobs cannot be of equal size, or
                        the length differs from descriptor_length.
        """
        if len(data) < _HEADER.size:
            raise ValueError(f"Faceprint record too short: {len(data)} bytes")

        version, number_of_descriptors, features_type = _HEADER.unpack_from(data)
        body = data[_HEADER.size:]

        blob_size, remainder = divmod(len(body), 2)
        if blob_size == 0:
            raise ValueError("Faceprint record has no descriptor data")
        if remainder or blob_size % DEFAULT_DESCRIPTOR_DTYPE.itemsize:
            raise ValueError(
                f"Faceprint body of {len(body)} bytes does not hold two "
                f"{DEFAULT_DESCRIPTOR_DTYPE} vectors"
            )

        orig = np.frombuffer(body[:blob_size], dtype=DEFAULT_DESCRIPTOR_DTYPE)
        avg = np.frombuffer(body[blob_size:], dtype=DEFAULT_DESCRIPTOR_DTYPE)
        if descriptor_length is not None and len(orig) != descriptor_length:
            raise ValueError(
                f"Faceprint descriptors have length {len(orig)}, expected {descriptor_length}"
            )

        return cls(
            version=version,
            number_of_descriptors=number_of_descriptors,
            features_type=FeaturesType(features_type),
            orig_descriptor=orig,
            avg_descriptor=avg,
        )

    def summary(self) -> dict:
        """Header fields for listings and API responses."""
        return {
            "version": int(self.version),
            "number_of_descriptors": int(self.number_of_descriptors),
            "features_type": self.features_type.name,
            "descriptor_length": self.descriptor_length,
        }
