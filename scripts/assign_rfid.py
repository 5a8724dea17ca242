"""Attach an RFID card UID to a user, looked up by email.

Usage: python scripts/assign_rfid.py staff@latex.local 04A1B2C3
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.latex_manager.latex_manager.container import build_container
from src.latex_manager.latex_manager.core.exceptions import DomainError


def main() -> None:
    parser = argparse.ArgumentParser(description="Attach an RFID card UID to a user")
    parser.add_argument("email")
    parser.add_argument("uid")
    args = parser.parse_args()

    container = build_container(settings=importlib.import_module(get_settings_module()))
    try:
        user = container.user_service.assign_rfid_by_email(email=args.email, rfid_uid=args.uid)
    except DomainError as e:
        raise SystemExit(f"FAILED: {e}")

    print(f"OK: {user.full_name} <{user.email}> now uses card {user.rfid_uid}")


if __name__ == "__main__":
    main()
