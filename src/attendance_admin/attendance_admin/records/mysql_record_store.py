from __future__ import annotations

import json
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import mysql.connector

from ..common.datetime_utils import iso_now, next_timestamp
from ..common.validators import require_collection_name, require_record_data, require_record_id
from ..core.constants import MYSQL_RECORDS_TABLE
from ..core.exceptions import BackendError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .listeners import ListenerRegistry, Subscription
from .model import strip_system_fields
from .repository import OnUpdate, Record, RecordStore

logger = logging.getLogger(__name__)

_COLUMNS = "record_id, data, created_at, updated_at"

# System fields are real columns; everything else lives in the JSON document.
_SYSTEM_COLUMNS = {"id": "record_id", "createdAt": "created_at", "updatedAt": "updated_at"}


def _dumps(data: Dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, default=str)


def _row_to_record(row: Dict[str, Any]) -> Record:
    data = row.get("data")
    if isinstance(data, (bytes, bytearray)):
        data = data.decode("utf-8")
    if isinstance(data, str):
        data = json.loads(data)
    record = dict(data or {})
    record["id"] = row["record_id"]
    record["createdAt"] = row["created_at"]
    record["updatedAt"] = row["updated_at"]
    return record


def _json_path(field: str) -> str:
    return '$."' + field.replace("\\", "\\\\").replace('"', '\\"') + '"'


@dataclass(eq=False)
class _Watch:
    callback: OnUpdate
    field: Optional[str] = None
    value: Any = None


class MySQLRecordStore(RecordStore):
    """Record store over a single MySQL ``records`` table.

    MySQL has no push channel, so live subscriptions are fed in-process: after
    every successful write made through this store, watchers of the touched
    collection get a fresh snapshot. Writes from other processes are not seen
    until the next local write.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, listeners: Optional[ListenerRegistry] = None):
        self._conn_factory = conn_factory
        self.listeners = listeners or ListenerRegistry()
        self._watches: Dict[str, List[_Watch]] = {}
        self._watch_lock = threading.Lock()

    @contextmanager
    def _cursor(self, action: str):
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                yield cur
        except mysql.connector.Error as e:
            logger.error("MySQL %s failed: %s", action, e)
            raise BackendError(f"{action} failed: {e}") from e

    def add_record(self, collection: str, data: Record) -> str:
        collection = require_collection_name(collection)
        data = require_record_data(data)
        record_id = uuid.uuid4().hex
        stamp = iso_now()

        with self._cursor(f"add to {collection}") as cur:
            cur.execute(
                f"""
                INSERT INTO {MYSQL_RECORDS_TABLE}(collection, record_id, data, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (collection, record_id, _dumps(strip_system_fields(data)), stamp, stamp),
            )

        logger.info("Record added to %s: %s", collection, record_id)
        self._notify(collection)
        return record_id

    def get_record(self, collection: str, record_id: str) -> Optional[Record]:
        collection = require_collection_name(collection)
        record_id = require_record_id({"id": record_id})

        with self._cursor(f"read {collection}/{record_id}") as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM {MYSQL_RECORDS_TABLE} WHERE collection=%s AND record_id=%s",
                (collection, record_id),
            )
            row = fetchone(cur)
        return _row_to_record(row) if row else None

    def get_all(self, collection: str, on_update: Optional[OnUpdate] = None) -> List[Record]:
        records = self._select(collection)
        if on_update is not None:
            try:
                self.subscribe(collection, on_update)
            except BackendError:
                logger.warning("Live subscription to %s failed; returning empty snapshot", collection)
                return []
        return records

    def update_record(self, collection: str, data: Record) -> str:
        collection = require_collection_name(collection)
        record_id = require_record_id(data)

        with self._cursor(f"update {collection}/{record_id}") as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM {MYSQL_RECORDS_TABLE}
                WHERE collection=%s AND record_id=%s
                FOR UPDATE
                """,
                (collection, record_id),
            )
            row = fetchone(cur)
            if not row:
                raise NotFoundError(f"Record not found: {collection}/{record_id}")

            current = _row_to_record(row)
            merged = strip_system_fields({**current, **data})
            cur.execute(
                f"""
                UPDATE {MYSQL_RECORDS_TABLE}
                SET data=%s, updated_at=%s
                WHERE collection=%s AND record_id=%s
                """,
                (_dumps(merged), next_timestamp(current["updatedAt"]), collection, record_id),
            )

        logger.info("Record updated in %s: %s", collection, record_id)
        self._notify(collection)
        return record_id

    def delete_record(self, collection: str, record_id: str) -> None:
        collection = require_collection_name(collection)
        record_id = require_record_id({"id": record_id})

        with self._cursor(f"delete {collection}/{record_id}") as cur:
            cur.execute(
                f"DELETE FROM {MYSQL_RECORDS_TABLE} WHERE collection=%s AND record_id=%s",
                (collection, record_id),
            )
            deleted = cur.rowcount > 0

        logger.info("Record deleted from %s: %s", collection, record_id)
        if deleted:
            self._notify(collection)

    def clear_store(self, collection: str) -> None:
        collection = require_collection_name(collection)
        with self._cursor(f"clear {collection}") as cur:
            cur.execute(f"DELETE FROM {MYSQL_RECORDS_TABLE} WHERE collection=%s", (collection,))
        logger.info("Collection cleared: %s", collection)
        self._notify(collection)

    def query_by_field(
        self,
        collection: str,
        field: str,
        value: Any,
        on_update: Optional[OnUpdate] = None,
    ) -> List[Record]:
        records = self._select(collection, field=field, value=value)
        if on_update is not None:
            try:
                self.subscribe(collection, on_update, field=field, value=value)
            except BackendError:
                logger.warning("Live query on %s.%s failed; returning empty snapshot", collection, field)
                return []
        return records

    def batch_upsert(self, collection: str, records: Iterable[Record]) -> int:
        collection = require_collection_name(collection)
        stamp = iso_now()
        rows = []
        for record in records:
            record_id = require_record_id(record, context="Every batch record")
            rows.append(
                (
                    collection,
                    record_id,
                    _dumps(strip_system_fields(record)),
                    record.get("createdAt") or stamp,
                    stamp,
                )
            )

        if not rows:
            return 0

        # created_at is only written on insert; updated_at never moves backwards.
        with self._cursor(f"batch upsert into {collection}") as cur:
            cur.executemany(
                f"""
                INSERT INTO {MYSQL_RECORDS_TABLE}(collection, record_id, data, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE data=VALUES(data), updated_at=GREATEST(updated_at, VALUES(updated_at))
                """,
                rows,
            )

        logger.info("Batch upsert completed for %s (%d records)", collection, len(rows))
        self._notify(collection)
        return len(rows)

    def subscribe(
        self,
        collection: str,
        on_update: OnUpdate,
        *,
        field: Optional[str] = None,
        value: Any = None,
    ) -> Subscription:
        collection = require_collection_name(collection)
        watch = _Watch(callback=on_update, field=field, value=value)

        # Read the initial state first so a broken backend fails the setup.
        initial = self._select(collection, field=field, value=value)

        with self._watch_lock:
            self._watches.setdefault(collection, []).append(watch)
        subscription = self.listeners.register(collection, on_update, lambda: self._drop_watch(collection, watch))
        self._deliver(collection, watch, initial)
        return subscription

    def count(self, collection: str) -> int:
        collection = require_collection_name(collection)
        with self._cursor(f"count {collection}") as cur:
            cur.execute(f"SELECT COUNT(*) AS n FROM {MYSQL_RECORDS_TABLE} WHERE collection=%s", (collection,))
            row = fetchone(cur)
        return int(row["n"]) if row else 0

    def _select(self, collection: str, *, field: Optional[str] = None, value: Any = None) -> List[Record]:
        collection = require_collection_name(collection)
        clauses = ["collection=%s"]
        params: list[object] = [collection]

        if field is not None:
            column = _SYSTEM_COLUMNS.get(field)
            if column:
                clauses.append(f"{column}=%s")
                params.append(str(value))
            else:
                clauses.append("JSON_EXTRACT(data, %s) = CAST(%s AS JSON)")
                params.extend([_json_path(field), json.dumps(value)])

        where = " AND ".join(clauses)
        with self._cursor(f"read {collection}") as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM {MYSQL_RECORDS_TABLE}
                WHERE {where}
                ORDER BY created_at ASC, record_id ASC
                """,
                tuple(params),
            )
            rows = fetchall(cur)
        return [_row_to_record(r) for r in rows]

    def _drop_watch(self, collection: str, watch: _Watch) -> None:
        with self._watch_lock:
            items = self._watches.get(collection, [])
            if watch in items:
                items.remove(watch)
            if not items:
                self._watches.pop(collection, None)

    def _notify(self, collection: str) -> None:
        with self._watch_lock:
            watches = list(self._watches.get(collection, []))

        for watch in watches:
            try:
                records = self._select(collection, field=watch.field, value=watch.value)
            except BackendError:
                logger.warning("Could not refresh subscribers of %s", collection)
                continue
            self._deliver(collection, watch, records)

    @staticmethod
    def _deliver(collection: str, watch: _Watch, records: List[Record]) -> None:
        try:
            watch.callback(records)
        except Exception:
            logger.exception("Subscriber callback for %s failed", collection)
