"""
Explicitly owned container for the converged app state.

Built once per session and handed to the sync engine and the facade. Every
replace_* call compares by value first: an equal snapshot causes neither a
local-store write nor a change notification.
"""

import logging
from typing import Callable

from cafe.events import ChangeSource, Resource, StateChangedEvent
from cafe.models import EventConfig, MenuItem, Order, OrderStatus, initial_menu
from cafe.storage.local_store import LocalStore

logger = logging.getLogger(__name__)

Subscriber = Callable[[StateChangedEvent], None]


class UnknownOrderError(LookupError):
    pass


class UnknownMenuItemError(LookupError):
    pass


def sort_orders(orders: list[Order]) -> list[Order]:
    """Newest first; id breaks timestamp ties so equal content always sorts the same."""
    return sorted(orders, key=lambda order: (order.timestamp, order.id), reverse=True)


class AppState:
    def __init__(self, store: LocalStore) -> None:
        self._store = store
        self._menu: list[MenuItem] = store.load_menu()
        self._orders: list[Order] = sort_orders(store.load_orders())
        self._event_config: EventConfig = store.load_event_config()
        self._subscribers: list[Subscriber] = []
        # Bumped by every local orders mutation; a remote snapshot fetched
        # under an older revision is out of date.
        self._orders_revision = 0

    @property
    def store(self) -> LocalStore:
        return self._store

    @property
    def menu(self) -> list[MenuItem]:
        return list(self._menu)

    @property
    def orders(self) -> list[Order]:
        return list(self._orders)

    @property
    def event_config(self) -> EventConfig:
        return self._event_config

    @property
    def orders_revision(self) -> int:
        return self._orders_revision

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def notify(self, resource: Resource, source: ChangeSource) -> None:
        event = StateChangedEvent(resource=resource, source=source)
        for subscriber in list(self._subscribers):
            subscriber(event)

    # ------------------------------------------------------------------
    # Menu
    # ------------------------------------------------------------------

    def replace_menu(self, menu: list[MenuItem], source: ChangeSource = ChangeSource.LOCAL) -> bool:
        if menu == self._menu:
            return False
        self._menu = list(menu)
        self._store.save_menu(self._menu)
        self.notify(Resource.MENU, source)
        return True

    def find_menu_item(self, item_id: str) -> MenuItem:
        for item in self._menu:
            if item.id == item_id:
                return item
        raise UnknownMenuItemError(item_id)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def replace_orders(self, orders: list[Order], source: ChangeSource = ChangeSource.REMOTE) -> bool:
        ordered = sort_orders(orders)
        if ordered == self._orders:
            return False
        self._orders = ordered
        self._store.save_orders(self._orders)
        self.notify(Resource.ORDERS, source)
        return True

    def add_order(self, order: Order) -> None:
        self._orders_revision += 1
        self.replace_orders([order, *(o for o in self._orders if o.id != order.id)], ChangeSource.LOCAL)

    def find_order(self, order_id: str) -> Order | None:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def set_order_status(self, order_id: str, status: OrderStatus) -> Order:
        current = self.find_order(order_id)
        if current is None:
            raise UnknownOrderError(order_id)
        updated = current.with_status(status)
        self._orders_revision += 1
        self.replace_orders(
            [updated if o.id == order_id else o for o in self._orders], ChangeSource.LOCAL
        )
        return updated

    # ------------------------------------------------------------------
    # Event config
    # ------------------------------------------------------------------

    def replace_event_config(
        self, config: EventConfig, source: ChangeSource = ChangeSource.LOCAL
    ) -> bool:
        if config == self._event_config:
            return False
        self._event_config = config
        self._store.save_event_config(config)
        self.notify(Resource.EVENT_CONFIG, source)
        return True

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Wipe the local store and go back to compiled-in defaults."""
        self._store.clear()
        self._menu = initial_menu()
        self._orders = []
        self._orders_revision += 1
        self._event_config = self._store.load_event_config()
        for resource in (Resource.MENU, Resource.ORDERS, Resource.EVENT_CONFIG):
            self.notify(resource, ChangeSource.RESET)
        logger.info("App state reset to defaults")
