from __future__ import annotations

import importlib
import sys
from pathlib import Path

import mysql.connector

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.latex_manager.latex_manager.database.bootstrap import apply_schema, list_tables


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    schema_path = REPO_ROOT / "database" / "schema.sql"
    try:
        apply_schema(db_config, schema_path=schema_path)
        tables = list_tables(db_config)
    except mysql.connector.Error as e:
        raise SystemExit(f"FAILED: could not apply schema.sql: {e}")

    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
