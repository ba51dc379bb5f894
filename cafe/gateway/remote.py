"""
Thin client for the remote JSON document store.

The store is addressed by key path (``/menu.json``, ``/orders/{id}.json``)
over GET/PUT/PATCH. It has no transactions and no change notifications,
and it may encode a keyed collection either as an array or as an object of
values.

Every call returns a RemoteResult and never raises to the caller:
  - OK          2xx with a non-null JSON body
  - EMPTY       2xx with a ``null`` body (path holds no value)
  - UNAVAILABLE non-2xx, network failure, timeout or undecodable body

Telling a permission problem apart from a network outage is not done here;
the connectivity monitor decides that from the device's own online signal.
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx
from opentelemetry import trace
from pydantic import BaseModel, ValidationError

from cafe.metrics import REMOTE_LATENCY, REMOTE_REQUESTS
from cafe.models import REMOTE_DEFAULT_EVENT_CONFIG, EventConfig, MenuItem, Order, OrderStatus

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

DEFAULT_TIMEOUT = 5.0

_RESOURCE_PATTERNS = [
    (re.compile(r"^/orders/[^/]+\.json$"), "/orders/{order_id}.json"),
]


def _normalise_path(path: str) -> str:
    for pattern, replacement in _RESOURCE_PATTERNS:
        path = pattern.sub(replacement, path)
    return path


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class ResultKind(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class RemoteResult(Generic[T]):
    kind: ResultKind
    data: T | None = None

    @classmethod
    def ok(cls, data: T) -> "RemoteResult[T]":
        return cls(ResultKind.OK, data)

    @classmethod
    def empty(cls) -> "RemoteResult[T]":
        return cls(ResultKind.EMPTY)

    @classmethod
    def unavailable(cls) -> "RemoteResult[T]":
        return cls(ResultKind.UNAVAILABLE)

    @property
    def available(self) -> bool:
        return self.kind != ResultKind.UNAVAILABLE

    @property
    def is_empty(self) -> bool:
        return self.kind == ResultKind.EMPTY


# ---------------------------------------------------------------------------
# Collection normalisation
# ---------------------------------------------------------------------------


def normalise_collection(data: Any) -> list[Any]:
    """Turn an array or an object-of-values into an ordered list, skipping holes."""
    if isinstance(data, list):
        values = data
    elif isinstance(data, dict):
        values = list(data.values())
    else:
        return []
    return [value for value in values if value is not None]


def _parse_entries(model: type[M], raw_entries: list[Any], resource: str) -> list[M]:
    parsed: list[M] = []
    for raw in raw_entries:
        try:
            parsed.append(model.model_validate(raw))
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed remote entry",
                extra={"resource": resource, "error": str(exc)},
            )
    return parsed


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class RemoteGateway:
    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def request(self, method: str, path: str, body: Any = None) -> RemoteResult[Any]:
        resource = _normalise_path(path)
        start = time.perf_counter()
        result = await self._send(method, path, body)
        elapsed = time.perf_counter() - start

        REMOTE_REQUESTS.labels(method=method, resource=resource, outcome=result.kind.value).inc()
        REMOTE_LATENCY.labels(method=method, resource=resource).observe(elapsed)
        return result

    async def _send(self, method: str, path: str, body: Any) -> RemoteResult[Any]:
        url = f"{self._base_url}{path}"
        with tracer.start_as_current_span("remote.request") as span:
            span.set_attribute("http.method", method)
            span.set_attribute("cafe.resource", _normalise_path(path))
            try:
                response = await asyncio.wait_for(
                    self._client.request(
                        method,
                        url,
                        json=body,
                        headers={"Content-Type": "application/json"},
                    ),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError:
                logger.info(
                    "Remote request timed out",
                    extra={"method": method, "path": path, "timeout_s": self._timeout},
                )
                return RemoteResult.unavailable()
            except httpx.HTTPError as exc:
                logger.info(
                    "Remote request failed",
                    extra={"method": method, "path": path, "error": str(exc)},
                )
                return RemoteResult.unavailable()

            span.set_attribute("http.status_code", response.status_code)
            if not response.is_success:
                # 401/403: rules locked. 404: database not created.
                logger.info(
                    "Remote store rejected request",
                    extra={"method": method, "path": path, "status": response.status_code},
                )
                return RemoteResult.unavailable()

            try:
                data = response.json()
            except ValueError as exc:
                logger.warning(
                    "Remote store returned a non-JSON body",
                    extra={"method": method, "path": path, "error": str(exc)},
                )
                return RemoteResult.unavailable()

        if data is None:
            return RemoteResult.empty()
        return RemoteResult.ok(data)

    # ------------------------------------------------------------------
    # Menu
    # ------------------------------------------------------------------

    async def fetch_menu(self) -> RemoteResult[list[MenuItem]]:
        """EMPTY tells the caller to seed defaults; UNAVAILABLE to keep the local cache."""
        result = await self.request("GET", "/menu.json")
        if not result.available:
            return result
        entries = normalise_collection(result.data)
        if not entries:
            return RemoteResult.empty()
        menu = _parse_entries(MenuItem, entries, "menu")
        if not menu:
            # Something is stored but nothing is readable: neither seed over it nor adopt it.
            logger.warning("Remote menu has no readable entries", extra={"entries": len(entries)})
            return RemoteResult.unavailable()
        return RemoteResult.ok(menu)

    async def sync_menu(self, menu: list[MenuItem]) -> RemoteResult[Any]:
        """Replace the whole remote menu, keyed by item id."""
        menu_map = {item.id: item.to_wire() for item in menu}
        return await self.request("PUT", "/menu.json", menu_map)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def fetch_orders(self) -> RemoteResult[list[Order]]:
        result = await self.request("GET", "/orders.json")
        if not result.available:
            return result
        # An empty orders path is a valid, empty collection.
        entries = normalise_collection(result.data)
        return RemoteResult.ok(_parse_entries(Order, entries, "orders"))

    async def create_order(self, order: Order) -> RemoteResult[Any]:
        # PUT on the order's own path: resubmitting the same order is an idempotent upsert.
        return await self.request("PUT", f"/orders/{order.id}.json", order.to_wire())

    async def patch_order_status(self, order_id: str, status: OrderStatus) -> RemoteResult[Any]:
        return await self.request("PATCH", f"/orders/{order_id}.json", {"status": status.value})

    # ------------------------------------------------------------------
    # Event config
    # ------------------------------------------------------------------

    async def fetch_event_config(self) -> RemoteResult[EventConfig]:
        result = await self.request("GET", "/eventConfig.json")
        if not result.available:
            return result
        if result.is_empty:
            return RemoteResult.ok(REMOTE_DEFAULT_EVENT_CONFIG.model_copy())
        try:
            return RemoteResult.ok(EventConfig.model_validate(result.data))
        except ValidationError as exc:
            logger.warning(
                "Malformed remote event config, using default",
                extra={"error": str(exc)},
            )
            return RemoteResult.ok(REMOTE_DEFAULT_EVENT_CONFIG.model_copy())

    async def replace_event_config(self, config: EventConfig) -> RemoteResult[Any]:
        return await self.request("PUT", "/eventConfig.json", config.to_wire())
