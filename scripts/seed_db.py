from __future__ import annotations

import importlib
import sys
from pathlib import Path

import mysql.connector

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.latex_manager.latex_manager.database.bootstrap import DEMO_ACCOUNTS, ensure_demo_users


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    try:
        touched = ensure_demo_users(db_config)
    except mysql.connector.Error as e:
        raise SystemExit(f"FAILED: could not seed demo accounts: {e}")

    print(
        "OK: Seeded database -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )
    passwords = {email: password for _, email, password, _, _ in DEMO_ACCOUNTS}
    for email in touched:
        print(f"  {email} / {passwords[email]}")


if __name__ == "__main__":
    main()
