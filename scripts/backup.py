"""Dump the configured database to BACKUP_DIR with mysqldump."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.latex_manager.latex_manager.database.backup import BackupError, run_backup


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    out_dir = Path(getattr(settings, "BACKUP_DIR", "backups"))
    if not out_dir.is_absolute():
        out_dir = REPO_ROOT / out_dir

    try:
        out_file = run_backup(dict(settings.DB_CONFIG), out_dir=out_dir)
    except BackupError as e:
        raise SystemExit(f"FAILED: {e}")
    print(f"OK: Backup created: {out_file}")


if __name__ == "__main__":
    main()
