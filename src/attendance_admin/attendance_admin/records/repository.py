from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Protocol

from .listeners import ListenerRegistry, Subscription

Record = dict
OnUpdate = Callable[[List[Record]], None]


class RecordStore(Protocol):
    """Backend-agnostic record store.

    Services (import/export/migration) depend on this interface only; the
    concrete adapter (Firebase or MySQL) is chosen when the container is built.
    Timestamps and ids are always assigned by the store.
    """

    listeners: ListenerRegistry

    def add_record(self, collection: str, data: Record) -> str:
        raise NotImplementedError

    def get_record(self, collection: str, record_id: str) -> Optional[Record]:
        raise NotImplementedError

    def get_all(self, collection: str, on_update: Optional[OnUpdate] = None) -> List[Record]:
        """Current snapshot; with ``on_update`` also keeps a live subscription."""

        raise NotImplementedError

    def update_record(self, collection: str, data: Record) -> str:
        """Merge ``data`` into the record identified by ``data["id"]``."""

        raise NotImplementedError

    def delete_record(self, collection: str, record_id: str) -> None:
        raise NotImplementedError

    def clear_store(self, collection: str) -> None:
        raise NotImplementedError

    def query_by_field(
        self,
        collection: str,
        field: str,
        value: Any,
        on_update: Optional[OnUpdate] = None,
    ) -> List[Record]:
        raise NotImplementedError

    def batch_upsert(self, collection: str, records: Iterable[Record]) -> int:
        """Write all records (each with an ``id``) as one logical write."""

        raise NotImplementedError

    def subscribe(
        self,
        collection: str,
        on_update: OnUpdate,
        *,
        field: Optional[str] = None,
        value: Any = None,
    ) -> Subscription:
        raise NotImplementedError

    def count(self, collection: str) -> int:
        raise NotImplementedError
