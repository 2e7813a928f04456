"""Import a backup (.zip or .json) into the configured record store.

Usage: python scripts/import_data.py backup.zip [--mode merge]
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_admin.attendance_admin.common.logging_utils import configure_logging
from src.attendance_admin.attendance_admin.container import build_container
from src.attendance_admin.attendance_admin.core.enums import ImportMode
from src.attendance_admin.attendance_admin.core.exceptions import DomainError
from src.attendance_admin.attendance_admin.imports.detector import UploadedFile

logger = logging.getLogger("import_data")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", type=Path)
    parser.add_argument("--mode", choices=[m.value for m in ImportMode], default=ImportMode.REPLACE.value)
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(
        store_backend=settings.STORE_BACKEND,
        db_config=getattr(settings, "DB_CONFIG", None),
        firebase_config=getattr(settings, "FIREBASE_CONFIG", None),
    )

    try:
        report = container.import_service.run(
            UploadedFile.from_path(args.path),
            progress=lambda percent: logger.info("progress %d%%", percent),
            mode=ImportMode(args.mode),
        )
    except DomainError as e:
        raise SystemExit(f"Import failed: {e}")

    for outcome in report.outcomes:
        line = f"{outcome.collection:<16} {outcome.status.value:<8} {outcome.count}"
        if outcome.passthrough:
            line += f" (unfiltered: {outcome.passthrough})"
        if outcome.reason:
            line += f" - {outcome.reason}"
        print(line)
    print(f"OK: {report}" if report.ok else f"PARTIAL: {report}")


if __name__ == "__main__":
    main()
