"""
Tests for the device session layer.

This test suite verifies:
- SimulatedDeviceSession connection handling
- Simulated match verdicts (accept, update, reject)
- DeviceMatchOracle delegation
- create_device backend selection

Run with: pytest tests/test_device.py -v
"""

import os
import sys
from unittest.mock import MagicMock

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from faceprints.device import (
    DeviceMatchOracle,
    DeviceSession,
    SimulatedDeviceSession,
    create_device,
)
from faceprints.faceprint import Faceprint
from faceprints.matching.interfaces import MatchResult
from faceprints.statuses import FeaturesType, Status


@pytest.fixture
def device():
    device = SimulatedDeviceSession(descriptor_length=32, seed=11)
    device.connect()
    return device


class TestSimulatedDeviceSession:
    """Tests for the simulated sensor."""

    def test_connect_disconnect(self):
        device = SimulatedDeviceSession()
        assert not device.is_connected

        assert device.connect() == Status.OK
        assert device.is_connected

        device.disconnect()
        assert not device.is_connected

    def test_is_device_session(self, device):
        assert isinstance(device, DeviceSession)
        assert device.extraction_lock is not None

    def test_make_faceprint(self, device):
        faceprint = device.make_faceprint()

        assert faceprint.descriptor_length == 32
        assert faceprint.version == 5
        assert np.array_equal(faceprint.orig_descriptor, faceprint.avg_descriptor)

    def test_seeded_generator_is_repeatable(self):
        a = SimulatedDeviceSession(descriptor_length=32, seed=5).make_faceprint()
        b = SimulatedDeviceSession(descriptor_length=32, seed=5).make_faceprint()
        assert a.same_as(b)

    def test_identical_faces_match_without_update(self, device):
        faceprint = device.make_faceprint()

        result = device.match_faceprints(faceprint, faceprint.copy())

        assert result.success
        assert not result.should_update
        assert result.updated is None

    def test_different_faces_rejected(self, device):
        result = device.match_faceprints(device.make_faceprint(), device.make_faceprint())
        assert not result.success

    def test_drifted_face_requests_update(self):
        """A close but not identical face matches and asks for an update."""
        device = SimulatedDeviceSession(descriptor_length=4)
        stored = Faceprint(5, 4, FeaturesType.W10, [100, 0, 0, 0], [100, 0, 0, 0])
        scanned = device.make_faceprint(np.array([100, 30, 0, 0]))

        result = device.match_faceprints(scanned, stored)

        assert result.success
        assert result.should_update
        assert np.array_equal(result.updated.orig_descriptor, stored.orig_descriptor)
        assert list(result.updated.avg_descriptor) == [100, 15, 0, 0]

    def test_length_mismatch_rejected(self, device):
        other = SimulatedDeviceSession(descriptor_length=8, seed=1).make_faceprint()
        assert not device.match_faceprints(other, device.make_faceprint()).success

    def test_zero_vector_rejected(self, device):
        zero = device.make_faceprint(np.zeros(32))
        assert not device.match_faceprints(zero, device.make_faceprint()).success

    def test_from_config(self):
        device = SimulatedDeviceSession.from_config(
            {"descriptor_length": 64, "version": 7},
            {"seed": 1, "match_threshold": 0.5, "update_threshold": 0.6},
        )

        assert device.descriptor_length == 64
        assert device.version == 7
        assert device.match_threshold == 0.5
        assert device.update_threshold == 0.6


class TestDeviceMatchOracle:
    """Tests for the oracle adapter."""

    def test_delegates_to_device(self):
        device = MagicMock()
        device.match_faceprints.return_value = MatchResult(True)
        scanned, existing = object(), object()

        result = DeviceMatchOracle(device).match(scanned, existing)

        assert result.success
        device.match_faceprints.assert_called_once_with(scanned, existing)


class TestCreateDevice:
    """Tests for backend selection."""

    def test_simulated(self):
        device = create_device({"backend": "simulated"}, {"descriptor_length": 16}, {"seed": 2})
        assert isinstance(device, SimulatedDeviceSession)
        assert device.descriptor_length == 16

    def test_default_backend(self):
        assert isinstance(create_device({}), SimulatedDeviceSession)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_device({"backend": "usb-magic"})
