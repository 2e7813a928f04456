"""Example: use the service layer without Flask.

Prints record counts per collection, then a few students of one department.
"""

import importlib

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_admin.attendance_admin.container import build_container


def main():
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        store_backend=settings.STORE_BACKEND,
        db_config=getattr(settings, "DB_CONFIG", None),
        firebase_config=getattr(settings, "FIREBASE_CONFIG", None),
    )
    print(container.export_service.collection_stats())
    print(container.store.query_by_field("students", "department", "CSE")[:5])


if __name__ == "__main__":
    main()
