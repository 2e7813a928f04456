from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Subscription:
    """One live callback registered against a collection.

    ``handle`` tears down the backend listener. Identity equality: two
    subscriptions with the same collection and callback are still distinct.
    """

    collection: str
    callback: Callable
    handle: Callable[[], None]
    registry: Optional["ListenerRegistry"] = field(default=None, repr=False)

    def unsubscribe(self) -> None:
        if self.registry is not None:
            self.registry.unsubscribe(self)
        else:
            self.handle()


class ListenerRegistry:
    """Tracks active subscriptions per collection for one record store.

    Identical (collection, callback) pairs are not deduplicated: every
    subscribing call creates a new backend listener, so callers that subscribe
    repeatedly must unsubscribe or rely on ``cleanup_all``.
    """

    def __init__(self):
        self._by_collection: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()

    def register(self, collection: str, callback: Callable, unsubscribe: Callable[[], None]) -> Subscription:
        subscription = Subscription(collection=collection, callback=callback, handle=unsubscribe, registry=self)
        with self._lock:
            self._by_collection.setdefault(collection, []).append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Tear down one subscription. Returns False if it was already gone."""

        with self._lock:
            items = self._by_collection.get(subscription.collection, [])
            if subscription not in items:
                return False
            items.remove(subscription)
            if not items:
                del self._by_collection[subscription.collection]
        self._invoke(subscription)
        return True

    def subscriptions(self, collection: Optional[str] = None) -> List[Subscription]:
        with self._lock:
            if collection is not None:
                return list(self._by_collection.get(collection, []))
            return [s for items in self._by_collection.values() for s in items]

    def active_count(self, collection: Optional[str] = None) -> int:
        return len(self.subscriptions(collection))

    def cleanup_all(self) -> int:
        """Unsubscribe everything. Safe to call repeatedly."""

        with self._lock:
            snapshot = self._by_collection
            self._by_collection = {}

        closed = 0
        for collection, items in snapshot.items():
            for subscription in items:
                self._invoke(subscription)
                closed += 1
            logger.info("Cleaned up %d listener(s) for %s", len(items), collection)
        return closed

    @staticmethod
    def _invoke(subscription: Subscription) -> None:
        try:
            subscription.handle()
        except Exception:
            # Keep tearing down the rest; a dead backend listener is already closed.
            logger.exception("Error closing listener for %s", subscription.collection)
