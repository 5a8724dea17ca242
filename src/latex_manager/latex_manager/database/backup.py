"""mysqldump wrapper used by scripts/backup.py."""

from __future__ import annotations

import logging
import os
import subprocess
from datetime import datetime
from pathlib import Path

from .connection import DBConfig

logger = logging.getLogger(__name__)


class BackupError(RuntimeError):
    pass


def dump_command(config: DBConfig) -> list[str]:
    # Password goes through MYSQL_PWD so it never shows up in the process list.
    return [
        "mysqldump",
        f"--host={config.host}",
        f"--port={config.port}",
        f"--user={config.user}",
        "--single-transaction",
        "--routines",
        config.database,
    ]


def backup_path(out_dir: Path, config: DBConfig, now: datetime) -> Path:
    return Path(out_dir) / f"{config.database}_{now:%Y%m%d_%H%M%S}.sql"


def run_backup(db_config: dict, *, out_dir: str | Path, now: datetime | None = None) -> Path:
    config = DBConfig.from_dict(db_config)
    out_file = backup_path(Path(out_dir), config, now or datetime.now())
    out_file.parent.mkdir(parents=True, exist_ok=True)

    env = dict(os.environ, MYSQL_PWD=config.password)
    try:
        with out_file.open("wb") as f:
            subprocess.run(dump_command(config), stdout=f, stderr=subprocess.PIPE, env=env, check=True)
    except FileNotFoundError:
        out_file.unlink(missing_ok=True)
        raise BackupError("`mysqldump` not found. Install the MySQL client tools.")
    except subprocess.CalledProcessError as e:
        out_file.unlink(missing_ok=True)
        stderr = (e.stderr or b"").decode(errors="replace").strip()
        raise BackupError(f"mysqldump exited {e.returncode}: {stderr}")

    logger.info("Backup of %s written to %s", config.database, out_file)
    return out_file
