"""
Durable FIFO of orders that have not yet been confirmed by the remote store.

The queue is persisted to the local store on every mutation. It is
append-only except for a full clear after a successful drain probe and the
removal of entries whose remote creation has been confirmed. It never
reorders or deduplicates on its own; keeping an order from being enqueued
twice is the sync engine's job.
"""

import logging
from typing import Iterator

from cafe.metrics import OFFLINE_QUEUE_DEPTH
from cafe.models import Order
from cafe.storage.local_store import LocalStore

logger = logging.getLogger(__name__)


class OfflineQueue:
    def __init__(self, store: LocalStore) -> None:
        self._store = store
        self._entries: list[Order] = store.load_queue()
        OFFLINE_QUEUE_DEPTH.set(len(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Order]:
        return iter(list(self._entries))

    def __bool__(self) -> bool:
        return bool(self._entries)

    def entries(self) -> list[Order]:
        return list(self._entries)

    def head(self) -> Order | None:
        return self._entries[0] if self._entries else None

    def contains(self, order_id: str) -> bool:
        return any(entry.id == order_id for entry in self._entries)

    def append(self, order: Order) -> None:
        self._entries.append(order)
        self._persist()
        logger.info(
            "Order queued for later sync",
            extra={"order_id": order.id, "queue_size": len(self._entries)},
        )

    def remove(self, order_id: str) -> bool:
        """Drop an entry whose remote creation has been confirmed."""
        remaining = [entry for entry in self._entries if entry.id != order_id]
        if len(remaining) == len(self._entries):
            return False
        self._entries = remaining
        self._persist()
        return True

    def clear(self) -> None:
        self._entries = []
        self._persist()

    def reload(self) -> None:
        self._entries = self._store.load_queue()
        OFFLINE_QUEUE_DEPTH.set(len(self._entries))

    def _persist(self) -> None:
        self._store.save_queue(self._entries)
        OFFLINE_QUEUE_DEPTH.set(len(self._entries))
