"""Copy every collection between backends, keeping record ids.

Usage: python scripts/migrate_store.py --from firebase --to mysql [--clear-target]
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_admin.attendance_admin.common.logging_utils import configure_logging
from src.attendance_admin.attendance_admin.container import build_store
from src.attendance_admin.attendance_admin.core.enums import StoreBackend
from src.attendance_admin.attendance_admin.exports.migration import migrate_store, verify_migration


def main() -> None:
    backends = [b.value for b in StoreBackend]
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--from", dest="source", choices=backends, required=True)
    parser.add_argument("--to", dest="target", choices=backends, required=True)
    parser.add_argument("--clear-target", action="store_true")
    args = parser.parse_args()
    if args.source == args.target:
        raise SystemExit("--from and --to must differ")

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    def store_for(backend: str):
        return build_store(
            backend,
            db_config=getattr(settings, "DB_CONFIG", None),
            firebase_config=getattr(settings, "FIREBASE_CONFIG", None),
        )

    source = store_for(args.source)
    target = store_for(args.target)

    report = migrate_store(source, target, clear_target=args.clear_target)
    for collection, counts in verify_migration(source, target).items():
        flag = "OK" if counts["match"] else "MISMATCH"
        print(f"{collection:<16} {counts['source']:>6} -> {counts['target']:<6} {flag}")
    print(f"OK: {report}" if report.ok else f"PARTIAL: {report}")


if __name__ == "__main__":
    main()
