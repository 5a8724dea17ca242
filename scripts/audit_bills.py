"""Re-derive every bill's amounts from its stored inputs and report drift."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.latex_manager.latex_manager.container import build_container


def main() -> None:
    container = build_container(settings=importlib.import_module(get_settings_module()))
    mismatches = container.bill_service.audit_totals()

    for m in mismatches:
        print(f"MISMATCH {m.bill_number} (id={m.bill_id}) {m.field}: stored={m.stored} expected={m.expected}")

    if mismatches:
        raise SystemExit(f"FAILED: {len(mismatches)} mismatched field(s)")
    print("OK: all bill totals match their inputs")


if __name__ == "__main__":
    main()
