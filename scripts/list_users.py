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
from src.latex_manager.latex_manager.core.enums import Role


def main() -> None:
    parser = argparse.ArgumentParser(description="Print user accounts")
    parser.add_argument("--role", choices=[r.value for r in Role], help="only show this role")
    parser.add_argument("--all", action="store_true", help="include deactivated accounts")
    args = parser.parse_args()

    roles = [Role(args.role)] if args.role else list(Role)
    container = build_container(settings=importlib.import_module(get_settings_module()))
    users = container.users_repo.list_by_roles(roles, active_only=not args.all)

    for u in users:
        print(f"{u.user_id:>5}  {u.role.value:<10}  {u.staff_id or '-':<12}  {u.full_name}  <{u.email}>")
    print(f"{len(users)} user(s)")


if __name__ == "__main__":
    main()
