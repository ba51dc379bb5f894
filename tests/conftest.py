import json
from dataclasses import dataclass
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio

from cafe.config import DrainStrategy, Settings
from cafe.gateway.remote import RemoteGateway
from cafe.models import CartItem, MenuItem, Order, initial_menu
from cafe.services.state import AppState
from cafe.services.store import CafeStore
from cafe.storage.local_store import LocalStore
from cafe.sync.connectivity import ConnectivityMonitor
from cafe.sync.engine import SyncEngine
from cafe.sync.offline_queue import OfflineQueue

REMOTE_URL = "https://remote.test"


class FakeRemoteStore:
    """
    In-memory stand-in for the key-path JSON document store.

    Paths map onto a nested dict the way the real store does:
    ``PUT /orders/AB12.json`` writes ``data["orders"]["AB12"]``.
    """

    def __init__(self) -> None:
        self.data: dict = {}
        self.requests: list[tuple[str, str, object]] = []
        self.denied = False
        self.fail_order_writes = False
        self.failing_order_ids: set[str] = set()
        self.menu_as_array = False

    def calls(self, method: str, path: str | None = None) -> list[tuple[str, str, object]]:
        return [r for r in self.requests if r[0] == method and (path is None or r[1] == path)]

    def _get(self, keys: list[str]):
        node = self.data
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        if keys == ["menu"] and self.menu_as_array and isinstance(node, dict):
            return list(node.values())
        return node

    def _put(self, keys: list[str], value) -> None:
        node = self.data
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        if value is None:
            node.pop(keys[-1], None)
        else:
            node[keys[-1]] = value

    @staticmethod
    def _json(status_code: int, value) -> httpx.Response:
        return httpx.Response(
            status_code,
            content=json.dumps(value).encode(),
            headers={"Content-Type": "application/json"},
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))

        if self.denied:
            return self._json(401, {"error": "Permission denied"})

        keys = [key for key in path.removesuffix(".json").split("/") if key]
        is_order_write = request.method == "PUT" and len(keys) == 2 and keys[0] == "orders"
        if is_order_write and (self.fail_order_writes or keys[1] in self.failing_order_ids):
            return self._json(503, {"error": "Service unavailable"})

        if request.method == "GET":
            return self._json(200, self._get(keys))
        if request.method == "PUT":
            self._put(keys, body)
            return self._json(200, body)
        if request.method == "PATCH":
            current = self._get(keys) or {}
            self._put(keys, {**current, **(body or {})})
            return self._json(200, body)
        return self._json(405, {"error": "Method not allowed"})


def make_order(
    order_id: str,
    timestamp: int = 1_700_000_000_000,
    table_number: int = 3,
    cart_id: str = "line00001",
) -> Order:
    # Fixed cart id: two calls with the same arguments build equal orders.
    latte = initial_menu()[0]
    line = CartItem(**latte.model_dump(), quantity=2, cart_id=cart_id)
    return Order.create(
        table_number=table_number,
        items=[line],
        order_id=order_id,
        timestamp=timestamp,
    )


def make_menu_item(item_id: str = "x1", price: int = 12000) -> MenuItem:
    return MenuItem(
        id=item_id,
        name_en="Iced Tea",
        name_id="Es Teh",
        price=price,
        category="Non-Coffee",
        description="Cold black tea.",
        healthy_score=7,
        ingredients=["Tea", "Ice"],
    )


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest_asyncio.fixture
async def gateway(remote: FakeRemoteStore) -> AsyncGenerator[RemoteGateway, None]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(remote.handler))
    yield RemoteGateway(REMOTE_URL, timeout=1.0, client=client)
    await client.aclose()


@pytest.fixture
def local_store() -> LocalStore:
    store = LocalStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        poll_interval=3600.0,
        bootstrap_retry_interval=0.0,
        drain_strategy=DrainStrategy.PROBE,
        local_db_path=":memory:",
        start_online=False,
    )


@dataclass
class Stack:
    remote: FakeRemoteStore
    local_store: LocalStore
    state: AppState
    queue: OfflineQueue
    monitor: ConnectivityMonitor
    engine: SyncEngine
    store: CafeStore

    async def go_online(self) -> None:
        self.monitor.set_online(True)
        await self.engine.wait_idle()

    async def go_offline(self) -> None:
        self.monitor.set_online(False)
        await self.engine.wait_idle()


def build_stack(
    remote: FakeRemoteStore,
    gateway: RemoteGateway,
    local_store: LocalStore,
    settings: Settings,
) -> Stack:
    state = AppState(local_store)
    queue = OfflineQueue(local_store)
    monitor = ConnectivityMonitor(is_online=False)
    engine = SyncEngine(state, gateway, monitor, queue, settings)
    store = CafeStore(state, engine, monitor)
    return Stack(remote, local_store, state, queue, monitor, engine, store)


@pytest_asyncio.fixture
async def stack(
    remote: FakeRemoteStore,
    gateway: RemoteGateway,
    local_store: LocalStore,
    test_settings: Settings,
) -> AsyncGenerator[Stack, None]:
    built = build_stack(remote, gateway, local_store, test_settings)
    await built.engine.start()
    yield built
    await built.engine.stop()
