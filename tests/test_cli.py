"""
Tests for the interactive faceprints console.

The menu loop is driven with scripted input and captured output, against a
service backed by the simulated device.

Run with: pytest tests/test_cli.py -v
"""

import os
import sys

import pytest

# Add project root and scripts directory to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)
sys.path.insert(0, os.path.join(PROJECT_ROOT, "scripts"))

import faceprints_cli
from faceprints.device import ScriptedExtraction, SimulatedDeviceSession
from faceprints.service import FaceprintsService
from faceprints.statuses import AuthenticateStatus, EnrollStatus


class Console:
    """Scripted input and captured output."""

    def __init__(self, *lines):
        self.lines = list(lines)
        self.output = []

    def read(self, prompt=""):
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)

    def out(self, text=""):
        self.output.append(text)

    @property
    def text(self):
        return "\n".join(self.output)


@pytest.fixture
def device():
    device = SimulatedDeviceSession(seed=8)
    device.connect()
    return device


@pytest.fixture
def service(device):
    return FaceprintsService(device)


class TestHandleKey:
    """Tests for individual menu selections."""

    def test_enroll(self, service):
        console = Console("alice")

        assert faceprints_cli.handle_key(service, "E", console.read, console.out)

        assert service.list_users() == ["alice"]
        assert "  *** Detected Pose Center" in console.output
        assert "  *** Please look to the Left" in console.output
        assert "  *** Result SUCCESS" in console.output

    def test_enroll_prompts_until_non_empty(self, service):
        console = Console("", "  ", "bob")
        faceprints_cli.handle_key(service, "E", console.read, console.out)
        assert service.list_users() == ["bob"]

    def test_enroll_invalid_id(self, service):
        console = Console("x" * 31)
        faceprints_cli.handle_key(service, "E", console.read, console.out)

        assert service.list_users() == []
        assert "Error:" in console.text

    def test_authenticate_match_and_update(self, service):
        service.enroll_faceprints("alice")
        console = Console()

        faceprints_cli.handle_key(service, "A", console.read, console.out)

        assert "Match success. user_id: alice" in console.text
        assert "Updated avg faceprint in db." in console.text

    def test_authenticate_forbidden(self, service, device):
        service.store.upsert("alice", device.make_faceprint())
        device.script_auth(ScriptedExtraction(
            status=AuthenticateStatus.SUCCESS,
            faceprint=device.make_faceprint(),
        ))
        console = Console()

        faceprints_cli.handle_key(service, "A", console.read, console.out)

        assert "Forbidden (no faceprint matched)" in console.text

    def test_authenticate_extraction_failure(self, service, device):
        device.script_auth(ScriptedExtraction(status=AuthenticateStatus.SPOOF))
        console = Console()

        faceprints_cli.handle_key(service, "A", console.read, console.out)

        assert "ExtractFaceprints failed with status SPOOF" in console.text

    def test_list_users(self, service, device):
        service.store.upsert("bob", device.make_faceprint())
        service.store.upsert("alice", device.make_faceprint())
        console = Console()

        faceprints_cli.handle_key(service, "U", console.read, console.out)

        assert "\n2 users" in console.output
        assert console.output.index(" * alice") < console.output.index(" * bob")

    def test_remove_user(self, service, device):
        service.store.upsert("alice", device.make_faceprint())
        console = Console("alice")

        faceprints_cli.handle_key(service, "R", console.read, console.out)

        assert service.list_users() == []
        assert "User alice removed" in console.text

    def test_remove_missing_user(self, service):
        console = Console("ghost")
        faceprints_cli.handle_key(service, "R", console.read, console.out)
        assert "User ghost not found" in console.text

    def test_delete_all(self, service, device):
        service.store.upsert("alice", device.make_faceprint())
        console = Console()

        faceprints_cli.handle_key(service, "D", console.read, console.out)

        assert service.list_users() == []
        assert "Faceprints deleted.." in console.text

    def test_quit(self, service):
        assert faceprints_cli.handle_key(service, "q") is False

    def test_unknown_key(self, service):
        console = Console()
        assert faceprints_cli.handle_key(service, "x", console.read, console.out)
        assert console.output == []


class TestSampleLoop:
    """Tests for the menu loop."""

    def test_enroll_authenticate_quit(self, service):
        console = Console("E", "alice", "A", "q")

        faceprints_cli.sample_loop(service, console.read, console.out)

        assert service.list_users() == ["alice"]
        assert "Match success. user_id: alice" in console.text

    def test_ignores_multi_character_input(self, service):
        console = Console("Enroll", "", "q")
        faceprints_cli.sample_loop(service, console.read, console.out)
        assert service.list_users() == []

    def test_stops_at_end_of_input(self, service):
        console = Console("U")
        faceprints_cli.sample_loop(service, console.read, console.out)
        assert "\n0 users" in console.output

    def test_enroll_failure_message(self, service, device):
        device.script_enroll(ScriptedExtraction(status=EnrollStatus.SPOOF))
        console = Console("E", "alice", "q")

        faceprints_cli.sample_loop(service, console.read, console.out)

        assert "Enrollment failed: SPOOF" in console.text
