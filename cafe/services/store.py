"""
Application state facade.

The only surface the UI layer talks to: it reads the converged state and
calls mutations, and gets StateChangedEvent notifications to re-render.
Everything is explicitly constructed per session by ``build_store``; there
is no module-level state.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from cafe.config import Settings, settings as default_settings
from cafe.events import ChangeSource, Resource, StateChangedEvent
from cafe.gateway.remote import RemoteGateway
from cafe.models import (
    EventConfig,
    Language,
    MenuItem,
    Order,
    OrderStatus,
    PaymentMethod,
    Role,
)
from cafe.services.cart import Cart
from cafe.services.state import AppState
from cafe.storage.local_store import LocalStore
from cafe.sync.connectivity import ConnectivityMonitor, ConnectivityState
from cafe.sync.engine import SyncEngine
from cafe.sync.offline_queue import OfflineQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalesSummary:
    total_sales: int
    total_orders: int
    pending_orders: int
    preparing_orders: int


class CafeStore:
    def __init__(
        self,
        state: AppState,
        engine: SyncEngine,
        monitor: ConnectivityMonitor,
        gateway: RemoteGateway | None = None,
    ) -> None:
        self._state = state
        self._engine = engine
        self._monitor = monitor
        self._gateway = gateway

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self._engine.start()

    async def close(self) -> None:
        await self._engine.stop()
        if self._gateway is not None:
            await self._gateway.aclose()
        self._state.store.close()

    @property
    def engine(self) -> SyncEngine:
        return self._engine

    @property
    def monitor(self) -> ConnectivityMonitor:
        return self._monitor

    @property
    def local_store(self) -> LocalStore:
        return self._state.store

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def menu(self) -> list[MenuItem]:
        return self._state.menu

    @property
    def orders(self) -> list[Order]:
        return self._state.orders

    @property
    def event_config(self) -> EventConfig:
        return self._state.event_config

    @property
    def connectivity(self) -> ConnectivityState:
        return self._monitor.state()

    @property
    def offline_queue(self) -> list[Order]:
        return self._engine.queue.entries()

    def find_order(self, order_id: str) -> Order | None:
        return self._state.find_order(order_id)

    def menu_item(self, item_id: str) -> MenuItem:
        return self._state.find_menu_item(item_id)

    def sales_summary(self) -> SalesSummary:
        orders = self._state.orders
        return SalesSummary(
            total_sales=sum(o.total_amount for o in orders if o.status != OrderStatus.CANCELLED),
            total_orders=len(orders),
            pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
            preparing_orders=sum(1 for o in orders if o.status == OrderStatus.PREPARING),
        )

    def subscribe(self, subscriber: Callable[[StateChangedEvent], None]) -> Callable[[], None]:
        return self._state.subscribe(subscriber)

    # ------------------------------------------------------------------
    # Customer session
    # ------------------------------------------------------------------

    def validate_table(self, table_number: int) -> int:
        table_count = self._state.event_config.table_count
        if not 1 <= table_number <= table_count:
            raise ValueError(f"Table {table_number} is outside 1..{table_count}")
        return table_number

    def open_cart(self, table_number: int) -> Cart:
        return Cart(self.validate_table(table_number))

    async def checkout(self, cart: Cart, payment_method: PaymentMethod = PaymentMethod.CASH) -> Order:
        self.validate_table(cart.table_number)
        order = cart.checkout(payment_method)
        return await self._engine.add_order(order)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_order(self, order: Order) -> Order:
        return await self._engine.add_order(order)

    async def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        return await self._engine.update_order_status(order_id, status)

    async def update_event_config(self, config: EventConfig) -> EventConfig:
        return await self._engine.update_event_config(config)

    async def set_menu(self, menu: list[MenuItem]) -> list[MenuItem]:
        return await self._engine.set_menu(menu)

    async def add_menu_item(self, item: MenuItem) -> MenuItem:
        return await self._engine.add_menu_item(item)

    async def update_menu_item(self, item: MenuItem) -> MenuItem:
        return await self._engine.update_menu_item(item)

    async def delete_menu_item(self, item_id: str) -> None:
        await self._engine.delete_menu_item(item_id)

    async def resync(self) -> bool:
        return await self._engine.resync_local()

    def set_online(self, online: bool) -> None:
        self._monitor.set_online(online)

    # ------------------------------------------------------------------
    # Preferences and maintenance
    # ------------------------------------------------------------------

    def language(self, role: Role) -> Language:
        return self._state.store.load_language(role)

    def set_language(self, role: Role, language: Language) -> None:
        self._state.store.save_language(role, language)
        self._state.notify(Resource.LANGUAGE, ChangeSource.LOCAL)

    def reset_data(self) -> None:
        """Admin reset: defaults back in memory, local storage wiped, offline queue dropped."""
        self._state.reset()
        self._engine.queue.reload()
        self._state.notify(Resource.OFFLINE_QUEUE, ChangeSource.RESET)


def build_store(settings: Settings = default_settings, gateway: RemoteGateway | None = None) -> CafeStore:
    """Wire one session's worth of collaborators. Call ``start()`` inside the event loop."""
    local_store = LocalStore(settings.local_db_path)
    state = AppState(local_store)
    queue = OfflineQueue(local_store)
    monitor = ConnectivityMonitor(is_online=settings.start_online)
    gateway = gateway or RemoteGateway(settings.remote_db_url, timeout=settings.request_timeout)
    engine = SyncEngine(state, gateway, monitor, queue, settings)
    logger.info(
        "Cafe store built",
        extra={"remote_db_url": settings.remote_db_url, "local_db_path": settings.local_db_path},
    )
    return CafeStore(state, engine, monitor, gateway)
