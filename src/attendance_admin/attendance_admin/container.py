from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.enums import StoreBackend
from .core.exceptions import ValidationError
from .database.connection import DatabaseConnection, db_config_from_settings
from .database.firebase_app import FirebaseConnection, firebase_config_from_settings
from .exports.service import ExportService
from .imports.service import ImportService
from .records.firebase_record_store import FirebaseRecordStore
from .records.mysql_record_store import MySQLRecordStore
from .records.repository import RecordStore


@dataclass(frozen=True)
class Container:
    backend: Optional[StoreBackend]
    store: RecordStore

    import_service: ImportService
    export_service: ExportService


def build_store(
    backend: StoreBackend | str,
    *,
    db_config: Optional[dict] = None,
    firebase_config: Optional[dict] = None,
) -> RecordStore:
    """Strategy selection: one adapter per backend, same ``RecordStore`` contract."""

    try:
        backend = StoreBackend(str(backend).lower())
    except ValueError:
        raise ValidationError(f"Unknown STORE_BACKEND: {backend!r}") from None

    if backend == StoreBackend.FIREBASE:
        if not firebase_config:
            raise ValidationError("FIREBASE_CONFIG is required for the firebase backend")
        conn = FirebaseConnection.get_instance(firebase_config_from_settings(firebase_config))
        return FirebaseRecordStore(conn.root())

    if not db_config:
        raise ValidationError("DB_CONFIG is required for the mysql backend")
    return MySQLRecordStore(DatabaseConnection.get_instance(db_config_from_settings(db_config)))


def build_container(
    *,
    store_backend: StoreBackend | str = StoreBackend.FIREBASE,
    db_config: Optional[dict] = None,
    firebase_config: Optional[dict] = None,
    store: Optional[RecordStore] = None,
) -> Container:
    backend: Optional[StoreBackend] = None
    if store is None:
        store = build_store(store_backend, db_config=db_config, firebase_config=firebase_config)
        backend = StoreBackend(str(store_backend).lower())

    return Container(
        backend=backend,
        store=store,
        import_service=ImportService(store),
        export_service=ExportService(store),
    )
