"""
Synchronization engine: reconciles local state with the remote store.

Reactive processes, all on the one event loop:
  - bootstrap       once per online session: read the menu, seed it if the
                    remote store is empty, then pull orders and event config
  - poll loop       while live, re-read orders and event config every
                    poll_interval seconds
  - queue drain     while live and the offline queue is non-empty, replay
                    queued orders in submission order
  - recovery loop   while online but permission-denied, retry bootstrap

Every mutation is applied to memory and the local store first, before any
network attempt. Only order creation is queued structurally when the remote
write cannot go out; menu and event-config edits stay local until the next
connected push (``resync_local`` or the next edit).

Remote order snapshots are authoritative on every successful full read,
except that orders still waiting in the offline queue stay visible.
"""

import asyncio
import logging
from collections import Counter
from contextlib import contextmanager
from typing import Any, Coroutine, Iterator

from cafe.config import DrainStrategy, Settings, settings as default_settings
from cafe.events import ChangeSource, Resource
from cafe.gateway.remote import RemoteGateway, RemoteResult
from cafe.metrics import QUEUE_DRAINS, SYNC_CYCLES
from cafe.models import (
    EventConfig,
    InvalidTransitionError,
    MenuItem,
    Order,
    OrderStatus,
    can_transition,
)
from cafe.services.state import AppState, UnknownMenuItemError, UnknownOrderError
from cafe.sync.connectivity import ConnectivityMonitor, ConnectivityState, DbStatus
from cafe.sync.offline_queue import OfflineQueue

logger = logging.getLogger(__name__)


class SyncEngine:
    def __init__(
        self,
        state: AppState,
        gateway: RemoteGateway,
        monitor: ConnectivityMonitor,
        queue: OfflineQueue,
        settings: Settings = default_settings,
    ) -> None:
        self._state = state
        self._gateway = gateway
        self._monitor = monitor
        self._queue = queue
        self._poll_interval = settings.poll_interval
        self._retry_interval = settings.bootstrap_retry_interval
        self._drain_strategy = settings.drain_strategy

        # Serializes remote reconciliation of orders (bootstrap pull, poll tick,
        # drain). Local mutations stay outside it; see orders_revision.
        self._orders_lock = asyncio.Lock()
        # Orders whose remote create or status patch is still on the wire.
        self._writes_in_flight: Counter[str] = Counter()

        self._tasks: set[asyncio.Task] = set()
        self._bootstrap_task: asyncio.Task | None = None
        self._poll_task: asyncio.Task | None = None
        self._recovery_task: asyncio.Task | None = None
        self._drain_task: asyncio.Task | None = None
        self._started = False

    @property
    def queue(self) -> OfflineQueue:
        return self._queue

    @property
    def polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._monitor.add_listener(self._on_connectivity_change)
        logger.info(
            "Sync engine started",
            extra={
                "online": self._monitor.is_online,
                "poll_interval_s": self._poll_interval,
                "drain_strategy": self._drain_strategy.value,
                "queued_orders": len(self._queue),
            },
        )
        if self._monitor.is_online:
            self._schedule_bootstrap()

    async def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        self._monitor.remove_listener(self._on_connectivity_change)
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Sync engine stopped")

    async def wait_idle(self) -> None:
        """Wait for in-flight bootstrap and drain work; the long-running loops are not awaited."""
        while True:
            loops = (self._poll_task, self._recovery_task)
            pending = [t for t in self._tasks if t not in loops and not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background sync task failed",
                extra={"task": task.get_name(), "error": repr(exc)},
            )

    # ------------------------------------------------------------------
    # Reacting to connectivity
    # ------------------------------------------------------------------

    def _on_connectivity_change(self, previous: ConnectivityState, current: ConnectivityState) -> None:
        self._state.notify(Resource.CONNECTIVITY, ChangeSource.LOCAL)
        if not self._started:
            return

        if not current.is_online:
            self._cancel_loops()
            if self._bootstrap_task is not None:
                self._bootstrap_task.cancel()
            return

        if not previous.is_online:
            self._schedule_bootstrap()

        if current.is_live:
            self._cancel(self._recovery_task)
            self._ensure_poll_loop()
            if self._queue:
                self._schedule_drain()
        else:
            self._cancel(self._poll_task)
            if current.db_status == DbStatus.PERMISSION_DENIED:
                self._ensure_recovery_loop()

    @staticmethod
    def _cancel(task: asyncio.Task | None) -> None:
        if task is not None and not task.done():
            task.cancel()

    def _cancel_loops(self) -> None:
        self._cancel(self._poll_task)
        self._cancel(self._recovery_task)

    def _schedule_bootstrap(self) -> None:
        if self._bootstrap_task is not None and not self._bootstrap_task.done():
            return
        self._bootstrap_task = self._spawn(self.bootstrap(), "cafe-bootstrap")

    def _ensure_poll_loop(self) -> None:
        # One loop at most: a reconnect never stacks a second poller.
        if self.polling:
            return
        self._poll_task = self._spawn(self.run_poll_loop(), "cafe-poll")

    def _ensure_recovery_loop(self) -> None:
        if self._retry_interval <= 0:
            return
        if self._recovery_task is not None and not self._recovery_task.done():
            return
        self._recovery_task = self._spawn(self._run_recovery_loop(), "cafe-recovery")

    def _schedule_drain(self) -> None:
        if self._drain_task is not None and not self._drain_task.done():
            return
        self._drain_task = self._spawn(self.drain_queue(), "cafe-drain")

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    async def bootstrap(self) -> None:
        if not self._monitor.is_online:
            return
        epoch = self._monitor.epoch

        menu_result = await self._gateway.fetch_menu()
        if not self._monitor.is_current(epoch):
            return

        if not menu_result.available:
            SYNC_CYCLES.labels("bootstrap", "unavailable").inc()
            self._monitor.mark_permission_denied()
            return

        if menu_result.is_empty:
            logger.info(
                "Remote menu is empty, seeding it from the local menu",
                extra={"item_count": len(self._state.menu)},
            )
            seed = await self._gateway.sync_menu(self._state.menu)
            if not seed.available:
                logger.warning("Seeding the remote menu failed")
            if not self._monitor.is_current(epoch):
                return
            SYNC_CYCLES.labels("bootstrap", "seeded").inc()
        else:
            self._state.replace_menu(menu_result.data, ChangeSource.REMOTE)
            SYNC_CYCLES.labels("bootstrap", "pulled").inc()

        self._monitor.mark_connected()

        async with self._orders_lock:
            await self._refresh_orders(epoch)
        await self._refresh_event_config(epoch)
        logger.info(
            "Bootstrap complete",
            extra={"menu_items": len(self._state.menu), "orders": len(self._state.orders)},
        )

    async def _run_recovery_loop(self) -> None:
        while self._monitor.is_online and self._monitor.db_status == DbStatus.PERMISSION_DENIED:
            await asyncio.sleep(self._retry_interval)
            logger.info("Retrying bootstrap after permission failure")
            await self.bootstrap()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def run_poll_loop(self) -> None:
        while self._monitor.is_live:
            await asyncio.sleep(self._poll_interval)
            if not self._monitor.is_live:
                break
            try:
                await self.poll_once()
            except Exception as exc:
                # A broken tick must not end polling for the rest of the session.
                logger.error("Poll tick failed", extra={"error": repr(exc)})

    async def poll_once(self) -> None:
        if not self._monitor.is_live:
            return
        epoch = self._monitor.epoch

        async with self._orders_lock:
            orders_result = await self._refresh_orders(epoch)
        if not self._monitor.record_read(orders_result, epoch):
            return
        if not orders_result.available:
            SYNC_CYCLES.labels("poll", "unavailable").inc()
            return

        event_result = await self._refresh_event_config(epoch)
        self._monitor.record_read(event_result, epoch)
        SYNC_CYCLES.labels("poll", "ok" if event_result.available else "unavailable").inc()

        if self._queue and self._monitor.is_live:
            self._schedule_drain()

    async def _refresh_orders(self, epoch: int) -> RemoteResult[list[Order]]:
        """Caller holds the orders lock."""
        revision = self._state.orders_revision
        result = await self._gateway.fetch_orders()
        if not self._monitor.is_current(epoch) or not result.available:
            return result
        if self._state.orders_revision != revision:
            # A local order mutation landed while the read was out; the next tick catches up.
            logger.debug("Discarding orders snapshot older than a local change")
            return result
        self._apply_remote_orders(result.data or [])
        return result

    def _apply_remote_orders(self, remote: list[Order]) -> None:
        # The local copy wins while its own write has not been answered yet.
        writing = [
            order
            for order in map(self._state.find_order, sorted(self._writes_in_flight))
            if order is not None
        ]
        writing_ids = {order.id for order in writing}
        confirmed = [order for order in remote if order.id not in writing_ids]
        seen = writing_ids | {order.id for order in remote}
        # Queued orders have not reached the remote store yet; keep them in view.
        unsent = [self._outgoing(order) for order in self._queue if order.id not in seen]
        self._state.replace_orders([*confirmed, *writing, *unsent], ChangeSource.REMOTE)

    async def _refresh_event_config(self, epoch: int) -> RemoteResult[EventConfig]:
        result = await self._gateway.fetch_event_config()
        if self._monitor.is_current(epoch) and result.available:
            self._state.replace_event_config(result.data, ChangeSource.REMOTE)
        return result

    # ------------------------------------------------------------------
    # Offline queue drain
    # ------------------------------------------------------------------

    def _outgoing(self, order: Order) -> Order:
        # Items are frozen, but the status may have moved on while the order sat in the queue.
        return self._state.find_order(order.id) or order

    async def drain_queue(self) -> None:
        if not self._monitor.is_live or not self._queue:
            return

        async with self._orders_lock:
            if not self._monitor.is_live or not self._queue:
                return
            epoch = self._monitor.epoch
            entries = self._queue.entries()
            head, rest = entries[0], entries[1:]

            probe = await self._gateway.create_order(self._outgoing(head))
            if not probe.available or not self._monitor.is_current(epoch):
                QUEUE_DRAINS.labels("probe_failed").inc()
                logger.warning(
                    "Offline queue probe failed, queue left intact",
                    extra={"order_id": head.id, "queue_size": len(entries)},
                )
                return

            if self._drain_strategy == DrainStrategy.ONE_AT_A_TIME:
                failed = await self._drain_one_at_a_time(head, rest)
            else:
                failed = await self._drain_after_probe(rest)
            self._state.notify(Resource.OFFLINE_QUEUE, ChangeSource.LOCAL)

            if failed:
                QUEUE_DRAINS.labels("partial").inc()
            else:
                QUEUE_DRAINS.labels("drained").inc()
            logger.info(
                "Offline queue drained",
                extra={
                    "sent": len(entries) - len(failed),
                    "failed": failed,
                    "remaining": len(self._queue),
                },
            )

            await self._refresh_orders(epoch)

    async def _drain_after_probe(self, rest: list[Order]) -> list[str]:
        # The probe went through: clear optimistically, then fan out the rest in order.
        self._queue.clear()
        failed: list[str] = []
        for order in rest:
            result = await self._gateway.create_order(self._outgoing(order))
            if not result.available:
                failed.append(order.id)
        if failed:
            logger.error(
                "Queued orders failed after a successful probe and were not re-queued",
                extra={"order_ids": failed},
            )
        return failed

    async def _drain_one_at_a_time(self, head: Order, rest: list[Order]) -> list[str]:
        self._queue.remove(head.id)
        for index, order in enumerate(rest):
            result = await self._gateway.create_order(self._outgoing(order))
            if not result.available:
                # Stop at the first failure; this and later entries stay queued in order.
                return [o.id for o in rest[index:]]
            self._queue.remove(order.id)
        return []

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @contextmanager
    def _remote_write(self, order_id: str) -> Iterator[None]:
        self._writes_in_flight[order_id] += 1
        try:
            yield
        finally:
            self._writes_in_flight[order_id] -= 1
            if not self._writes_in_flight[order_id]:
                del self._writes_in_flight[order_id]

    def _enqueue(self, order: Order) -> None:
        if self._queue.contains(order.id):
            logger.debug("Order already queued", extra={"order_id": order.id})
            return
        self._queue.append(order)
        self._state.notify(Resource.OFFLINE_QUEUE, ChangeSource.LOCAL)

    async def add_order(self, order: Order) -> Order:
        self._state.add_order(order)
        logger.info(
            "Order placed",
            extra={
                "order_id": order.id,
                "table_number": order.table_number,
                "amount": order.total_amount,
                "item_count": len(order.items),
                "live": self._monitor.is_live,
            },
        )

        if not self._monitor.is_live:
            self._enqueue(order)
            return order

        with self._remote_write(order.id):
            result = await self._gateway.create_order(order)
        if not result.available:
            logger.warning("Remote order write failed, queueing", extra={"order_id": order.id})
            self._enqueue(order)
            if self._monitor.is_live:
                self._schedule_drain()
        return order

    async def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        current = self._state.find_order(order_id)
        if current is None:
            raise UnknownOrderError(order_id)
        if not can_transition(current.status, status):
            raise InvalidTransitionError(
                f"Cannot move order {order_id} from {current.status.value} to {status.value}"
            )
        updated = self._state.set_order_status(order_id, status)

        # A queued order is sent whole by the drain, with its latest status.
        if self._monitor.is_live and not self._queue.contains(order_id):
            with self._remote_write(order_id):
                result = await self._gateway.patch_order_status(order_id, status)
            if not result.available:
                logger.warning(
                    "Remote status update failed, local state kept until next sync",
                    extra={"order_id": order_id, "status": status.value},
                )
        return updated

    async def update_event_config(self, config: EventConfig) -> EventConfig:
        self._state.replace_event_config(config, ChangeSource.LOCAL)
        if self._monitor.is_live:
            result = await self._gateway.replace_event_config(config)
            if not result.available:
                logger.warning("Remote event config write failed, kept locally")
        return config

    async def set_menu(self, menu: list[MenuItem]) -> list[MenuItem]:
        self._state.replace_menu(menu, ChangeSource.LOCAL)
        await self._push_menu()
        return self._state.menu

    async def add_menu_item(self, item: MenuItem) -> MenuItem:
        menu = self._state.menu
        if any(existing.id == item.id for existing in menu):
            raise ValueError(f"Menu item {item.id} already exists")
        await self.set_menu([*menu, item])
        return item

    async def update_menu_item(self, item: MenuItem) -> MenuItem:
        self._state.find_menu_item(item.id)
        await self.set_menu([item if existing.id == item.id else existing for existing in self._state.menu])
        return item

    async def delete_menu_item(self, item_id: str) -> None:
        menu = self._state.menu
        remaining = [item for item in menu if item.id != item_id]
        if len(remaining) == len(menu):
            raise UnknownMenuItemError(item_id)
        await self.set_menu(remaining)

    async def _push_menu(self) -> bool:
        if not self._monitor.is_live:
            logger.info("Menu change kept local until the next connected sync")
            return False
        result = await self._gateway.sync_menu(self._state.menu)
        if not result.available:
            logger.warning("Remote menu write failed, kept locally")
        return result.available

    async def resync_local(self) -> bool:
        """Re-send the local menu and event config; only meaningful in a connected window."""
        if not self._monitor.is_live:
            return False
        menu_ok = await self._push_menu()
        event_result = await self._gateway.replace_event_config(self._state.event_config)
        if not event_result.available:
            logger.warning("Remote event config write failed during resync")
        return menu_ok and event_result.available
