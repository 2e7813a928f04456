from __future__ import annotations

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterable, List, Optional

from firebase_admin.exceptions import FirebaseError

from ..common.datetime_utils import iso_now, next_timestamp
from ..common.validators import require_collection_name, require_record_data, require_record_id
from ..core.exceptions import BackendError, NotFoundError
from .listeners import ListenerRegistry, Subscription
from .model import filter_records, strip_system_fields
from .repository import OnUpdate, Record, RecordStore

logger = logging.getLogger(__name__)


@contextmanager
def _backend_call(action: str):
    try:
        yield
    except FirebaseError as e:
        logger.error("Firebase %s failed: %s", action, e)
        raise BackendError(f"{action} failed: {e}") from e


def _records_from(value: Any) -> List[Record]:
    """Flatten a collection node ({key: record}) into a record list."""

    if isinstance(value, dict):
        items = value.items()
    elif isinstance(value, list):
        # The database returns numeric-keyed nodes as arrays.
        items = ((str(i), v) for i, v in enumerate(value))
    else:
        return []

    records = []
    for key, item in items:
        if isinstance(item, dict):
            record = dict(item)
            record.setdefault("id", key)
            records.append(record)
    return records


class _CollectionMirror:
    """Local copy of one collection node, kept current from listener events.

    ``Reference.listen`` delivers an initial ``put`` at ``/`` followed by
    ``put``/``patch`` events at sub-paths; subscribers always get the full list.
    """

    def __init__(self, field: Optional[str] = None, value: Any = None):
        self._tree: dict = {}
        self._field = field
        self._value = value
        self._lock = threading.Lock()

    def apply(self, event_type: str, path: str, data: Any) -> List[Record]:
        parts = [p for p in (path or "/").split("/") if p]
        with self._lock:
            if event_type == "patch" and isinstance(data, dict):
                for key, item in data.items():
                    self._put(parts + [p for p in str(key).split("/") if p], item)
            else:
                self._put(parts, data)
            records = _records_from(self._tree)
        return filter_records(records, self._field, self._value)

    def _put(self, parts: List[str], data: Any) -> None:
        if not parts:
            if isinstance(data, dict):
                self._tree = copy.deepcopy(data)
            elif isinstance(data, list):
                self._tree = {str(i): copy.deepcopy(v) for i, v in enumerate(data) if v is not None}
            else:
                self._tree = {}
            return

        node = self._tree
        for key in parts[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                if data is None:
                    return
                child = {}
                node[key] = child
            node = child

        if data is None:
            node.pop(parts[-1], None)
        else:
            node[parts[-1]] = copy.deepcopy(data)


class FirebaseRecordStore(RecordStore):
    """Record store over a Firebase Realtime Database tree.

    Layout: ``/<collection>/<push-id>`` holds one record, the record also
    carries its own ``id``. ``root`` is a ``firebase_admin.db.Reference``.
    """

    def __init__(self, root, *, listeners: Optional[ListenerRegistry] = None):
        self._root = root
        self.listeners = listeners or ListenerRegistry()

    def _ref(self, collection: str, record_id: Optional[str] = None):
        ref = self._root.child(require_collection_name(collection))
        if record_id is not None:
            ref = ref.child(record_id)
        return ref

    def add_record(self, collection: str, data: Record) -> str:
        ref = self._ref(collection)
        payload = strip_system_fields(require_record_data(data))

        with _backend_call(f"add to {collection}"):
            new_ref = ref.push()
            stamp = iso_now()
            new_ref.set({**payload, "id": new_ref.key, "createdAt": stamp, "updatedAt": stamp})

        logger.info("Record added to %s: %s", collection, new_ref.key)
        return new_ref.key

    def get_record(self, collection: str, record_id: str) -> Optional[Record]:
        record_id = require_record_id({"id": record_id})
        with _backend_call(f"read {collection}/{record_id}"):
            value = self._ref(collection, record_id).get()

        if not isinstance(value, dict):
            logger.debug("Record not found: %s/%s", collection, record_id)
            return None
        record = dict(value)
        record.setdefault("id", record_id)
        return record

    def get_all(self, collection: str, on_update: Optional[OnUpdate] = None) -> List[Record]:
        with _backend_call(f"read {collection}"):
            records = _records_from(self._ref(collection).get())

        if on_update is not None:
            try:
                self.subscribe(collection, on_update)
            except BackendError:
                logger.warning("Live subscription to %s failed; returning empty snapshot", collection)
                return []
        return records

    def update_record(self, collection: str, data: Record) -> str:
        record_id = require_record_id(data)
        ref = self._ref(collection, record_id)

        with _backend_call(f"update {collection}/{record_id}"):
            current = ref.get()
            if not isinstance(current, dict):
                raise NotFoundError(f"Record not found: {collection}/{record_id}")
            changes = strip_system_fields(data)
            changes["updatedAt"] = next_timestamp(current.get("updatedAt"))
            ref.update(changes)

        logger.info("Record updated in %s: %s", collection, record_id)
        return record_id

    def delete_record(self, collection: str, record_id: str) -> None:
        record_id = require_record_id({"id": record_id})
        with _backend_call(f"delete {collection}/{record_id}"):
            self._ref(collection, record_id).delete()
        logger.info("Record deleted from %s: %s", collection, record_id)

    def clear_store(self, collection: str) -> None:
        with _backend_call(f"clear {collection}"):
            self._ref(collection).delete()
        logger.info("Collection cleared: %s", collection)

    def query_by_field(
        self,
        collection: str,
        field: str,
        value: Any,
        on_update: Optional[OnUpdate] = None,
    ) -> List[Record]:
        with _backend_call(f"query {collection} by {field}"):
            found = self._ref(collection).order_by_child(field).equal_to(value).get()
        records = filter_records(_records_from(found), field, value)

        if on_update is not None:
            try:
                self.subscribe(collection, on_update, field=field, value=value)
            except BackendError:
                logger.warning("Live query on %s.%s failed; returning empty snapshot", collection, field)
                return []
        return records

    def batch_upsert(self, collection: str, records: Iterable[Record]) -> int:
        collection = require_collection_name(collection)
        batch = [(require_record_id(record, context="Every batch record"), record) for record in records]
        if not batch:
            return 0

        with _backend_call(f"batch upsert into {collection}"):
            existing = {r["id"]: r for r in _records_from(self._ref(collection).get())}

        # Existing records keep their createdAt; updatedAt never moves backwards.
        stamp = iso_now()
        updates = {}
        for record_id, record in batch:
            current = existing.get(record_id)
            payload = strip_system_fields(record)
            payload["id"] = record_id
            if current is not None:
                payload["createdAt"] = current.get("createdAt") or stamp
                payload["updatedAt"] = next_timestamp(current.get("updatedAt"))
            else:
                payload["createdAt"] = record.get("createdAt") or stamp
                payload["updatedAt"] = stamp
            updates[f"{collection}/{record_id}"] = payload

        with _backend_call(f"batch upsert into {collection}"):
            self._root.update(updates)

        logger.info("Batch upsert completed for %s (%d records)", collection, len(updates))
        return len(updates)

    def subscribe(
        self,
        collection: str,
        on_update: OnUpdate,
        *,
        field: Optional[str] = None,
        value: Any = None,
    ) -> Subscription:
        ref = self._ref(collection)
        mirror = _CollectionMirror(field, value)

        def _on_event(event) -> None:
            records = mirror.apply(event.event_type, event.path, event.data)
            try:
                on_update(records)
            except Exception:
                logger.exception("Subscriber callback for %s failed", collection)

        with _backend_call(f"subscribe to {collection}"):
            registration = ref.listen(_on_event)

        return self.listeners.register(collection, on_update, registration.close)

    def count(self, collection: str) -> int:
        with _backend_call(f"count {collection}"):
            keys = self._ref(collection).get(shallow=True)
        return len(keys) if isinstance(keys, (dict, list)) else 0
