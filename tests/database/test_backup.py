from __future__ import annotations

import subprocess
from datetime import datetime

import pytest

from src.latex_manager.latex_manager.database import backup
from src.latex_manager.latex_manager.database.backup import BackupError, run_backup

DB_CONFIG = {"host": "db.local", "port": 3307, "user": "latex", "password": "s3cret", "database": "latex_manager"}
NOW = datetime(2026, 3, 2, 23, 15, 0)


def test_backup_writes_dump_without_password_on_command_line(tmp_path, monkeypatch):
    calls = []

    def fake_run(cmd, *, stdout, stderr, env, check):
        calls.append((cmd, env))
        stdout.write(b"-- dump\n")

    monkeypatch.setattr(backup.subprocess, "run", fake_run)

    out_file = run_backup(DB_CONFIG, out_dir=tmp_path / "dumps", now=NOW)

    assert out_file == tmp_path / "dumps" / "latex_manager_20260302_231500.sql"
    assert out_file.read_bytes() == b"-- dump\n"
    cmd, env = calls[0]
    assert cmd[0] == "mysqldump"
    assert "--host=db.local" in cmd and "--port=3307" in cmd and cmd[-1] == "latex_manager"
    assert not any("s3cret" in part for part in cmd)
    assert env["MYSQL_PWD"] == "s3cret"


def test_missing_mysqldump_reported(tmp_path, monkeypatch):
    def fake_run(*args, **kwargs):
        raise FileNotFoundError("mysqldump")

    monkeypatch.setattr(backup.subprocess, "run", fake_run)

    with pytest.raises(BackupError):
        run_backup(DB_CONFIG, out_dir=tmp_path, now=NOW)
    assert list(tmp_path.iterdir()) == []


def test_failed_dump_leaves_no_partial_file(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(2, cmd, stderr=b"Access denied")

    monkeypatch.setattr(backup.subprocess, "run", fake_run)

    with pytest.raises(BackupError, match="Access denied"):
        run_backup(DB_CONFIG, out_dir=tmp_path, now=NOW)
    assert list(tmp_path.iterdir()) == []
