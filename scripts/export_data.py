"""Export every collection to a .zip (one JSON file per collection) or a structured .json.

Usage: python scripts/export_data.py [--format json|zip] [--out DIR]
"""

from __future__ import annotations

import argparse
import importlib
import sys
from datetime import datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_admin.attendance_admin.common.logging_utils import configure_logging
from src.attendance_admin.attendance_admin.container import build_container


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--format", choices=["zip", "json"], default="zip")
    parser.add_argument("--out", type=Path, default=REPO_ROOT / "backups")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(
        store_backend=settings.STORE_BACKEND,
        db_config=getattr(settings, "DB_CONFIG", None),
        firebase_config=getattr(settings, "FIREBASE_CONFIG", None),
    )

    args.out.mkdir(parents=True, exist_ok=True)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_file = args.out / f"attendance_backup_{ts}.{args.format}"

    if args.format == "json":
        with out_file.open("w", encoding="utf-8") as f:
            document = container.export_service.write_json(f)
        counts = {k: len(v) for k, v in document["data"].items()}
    else:
        with out_file.open("wb") as f:
            counts = container.export_service.write_archive(f)

    print(f"OK: Backup created: {out_file} {counts}")


if __name__ == "__main__":
    main()
