"""
Faceprints Console - server-mode enrollment and authentication menu

Interactive console that enrolls users into a local faceprint store and
authenticates them against it, with the sensor doing capture and matching.

Menu:
    'E' to enroll with faceprints.
    'A' to authenticate with faceprints.
    'U' to list enrolled users.
    'R' to remove one user.
    'D' to delete all users.
    'q' to quit.

Usage:
    # Simulated sensor (default backend in config.yaml)
    python scripts/faceprints_cli.py

    # Explicit config file and verbose logging
    python scripts/faceprints_cli.py --config my_config.yaml --verbose
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from faceprints.config import get_config, load_config
from faceprints.extraction import DeviceBusyError
from faceprints.service import FaceprintsListener, FaceprintsService
from faceprints.statuses import Status
from faceprints.template_store import UserNotFoundError

logger = logging.getLogger("faceprints_cli")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

MENU = [
    "'E' to enroll with faceprints.",
    "'A' to authenticate with faceprints.",
    "'U' to list enrolled users.",
    "'R' to remove one user.",
    "'D' to delete all users.",
    "'q' to quit.",
]


class ConsoleListener(FaceprintsListener):
    """Prints extraction events as they arrive."""

    def __init__(self, out: Callable[[str], None] = print):
        self.out = out

    def on_progress(self, pose):
        self.out(f"  *** Detected Pose {pose}")

    def on_guidance(self, text):
        self.out(f"  *** {text}")

    def on_hint(self, hint):
        self.out(f"  *** Hint {hint}")

    def on_result(self, status):
        self.out(f"  *** Result {status}")


def print_menu(out: Callable[[str], None] = print) -> None:
    out("Please select an option:\n")
    for line in MENU:
        out(f"  {line}")
    out("")


def prompt_user_id(read: Callable[[str], str]) -> str:
    """Ask until a non-empty user id is entered."""
    user_id = ""
    while not user_id:
        user_id = read("User id to enroll: ").strip()
    return user_id


def enroll(service: FaceprintsService, user_id: str, out: Callable[[str], None] = print) -> bool:
    """Run one enrollment and print the outcome. Returns True on success."""
    try:
        outcome = service.enroll_faceprints(user_id, ConsoleListener(out))
    except (ValueError, DeviceBusyError) as e:
        out(f"Error: {e}\n")
        return False

    if outcome.status != Status.OK:
        out(f"Status: {outcome.status}\n")
        return False

    if outcome.ok:
        out(f"\nEnrolled faceprints for user {user_id}\n")
    else:
        out(f"\nEnrollment failed: {outcome.enroll_status}\n")
    return outcome.ok


def authenticate(service: FaceprintsService, out: Callable[[str], None] = print) -> bool:
    """Run one authentication and print the outcome. Returns True on a match."""
    try:
        outcome = service.authenticate_faceprints(ConsoleListener(out))
    except DeviceBusyError as e:
        out(f"Error: {e}\n")
        return False

    if outcome.status != Status.OK:
        out(f"Status: {outcome.status}\n")
        return False

    if outcome.matched:
        out(f"\n******* Match success. user_id: {outcome.user_id} *******\n")
        if outcome.updated:
            out("Updated avg faceprint in db.\n")
    elif outcome.no_match_found:
        out("\n******* Forbidden (no faceprint matched) *******\n")
    else:
        out(f"ExtractFaceprints failed with status {outcome.auth_status}\n")
    return outcome.matched


def list_users(service: FaceprintsService, out: Callable[[str], None] = print) -> None:
    users = service.list_users()
    out(f"\n{len(users)} users")
    for user_id in users:
        out(f" * {user_id}")
    out("")


def handle_key(
    service: FaceprintsService,
    key: str,
    read: Callable[[str], str] = input,
    out: Callable[[str], None] = print,
) -> bool:
    """
    Execute one menu selection.

    Returns:
        False when the user chose to quit, True otherwise.
    """
    if key == "E":
        enroll(service, prompt_user_id(read), out)
    elif key == "A":
        authenticate(service, out)
    elif key == "U":
        list_users(service, out)
    elif key == "R":
        user_id = read("User id to remove: ").strip()
        try:
            service.remove_user(user_id)
            out(f"\nUser {user_id} removed\n")
        except UserNotFoundError as e:
            out(f"\n{e}\n")
    elif key == "D":
        service.clear_users()
        out("\nFaceprints deleted..\n")
    elif key == "q":
        return False
    return True


def sample_loop(
    service: FaceprintsService,
    read: Callable[[str], str] = input,
    out: Callable[[str], None] = print,
) -> None:
    """Show the menu and execute selections until 'q' or end of input."""
    while True:
        print_menu(out)
        try:
            key = read("> ")
        except EOFError:
            break

        # single-character selections only
        if len(key) != 1:
            continue

        if not handle_key(service, key, read, out):
            break


def main():
    parser = argparse.ArgumentParser(
        description="Server-mode faceprints console",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml (default: project root config.yaml)",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    config = load_config(args.config) if args.config else get_config()
    logging_config = config.get("logging") or {}
    level = "DEBUG" if args.verbose else logging_config.get("level", "INFO")
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=logging_config.get("format", LOG_FORMAT),
    )

    service = FaceprintsService.from_config(config)
    status = service.device.connect()
    if status != Status.OK:
        port = config.get("device", {}).get("port")
        print(f"Failed connecting to port {port} status: {status}")
        sys.exit(1)
    logger.info(f"Connected to {config.get('device', {}).get('backend', 'simulated')} device")

    try:
        sample_loop(service)
    finally:
        service.device.disconnect()


if __name__ == "__main__":
    main()
