import asyncio

import httpx
import pytest

from conftest import REMOTE_URL, FakeRemoteStore, make_menu_item, make_order

from cafe.gateway.remote import RemoteGateway, RemoteResult, ResultKind, normalise_collection
from cafe.models import REMOTE_DEFAULT_EVENT_CONFIG, EventConfig, OrderStatus


def _gateway_for(handler, timeout: float = 1.0) -> tuple[RemoteGateway, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteGateway(REMOTE_URL, timeout=timeout, client=client), client


@pytest.mark.parametrize(
    "data,expected",
    [
        ([{"a": 1}, None, {"b": 2}], [{"a": 1}, {"b": 2}]),
        ({"k1": {"a": 1}, "k2": None}, [{"a": 1}]),
        (None, []),
        ("scalar", []),
    ],
)
def test_normalise_collection(data, expected):
    assert normalise_collection(data) == expected


@pytest.mark.parametrize("as_array", [False, True])
async def test_menu_round_trip_in_either_encoding(remote: FakeRemoteStore, gateway: RemoteGateway, as_array):
    menu = [make_menu_item("x1"), make_menu_item("x2", price=9000)]
    remote.menu_as_array = as_array

    written = await gateway.sync_menu(menu)
    fetched = await gateway.fetch_menu()

    assert written.available
    assert set(remote.data["menu"]) == {"x1", "x2"}
    assert fetched.kind == ResultKind.OK
    assert sorted(fetched.data, key=lambda item: item.id) == menu


async def test_missing_menu_is_empty_not_unavailable(gateway: RemoteGateway):
    result = await gateway.fetch_menu()

    assert result.kind == ResultKind.EMPTY
    assert result.available


async def test_empty_menu_container_is_empty(remote: FakeRemoteStore, gateway: RemoteGateway):
    remote.data["menu"] = {}

    result = await gateway.fetch_menu()

    assert result.is_empty


async def test_malformed_entries_are_dropped(remote: FakeRemoteStore, gateway: RemoteGateway):
    remote.data["orders"] = {
        "GOOD00001": make_order("GOOD00001").to_wire(),
        "BAD000001": {"id": "BAD000001", "tableNumber": "not a number"},
    }

    result = await gateway.fetch_orders()

    assert [o.id for o in result.data] == ["GOOD00001"]


async def test_missing_orders_are_an_empty_list(gateway: RemoteGateway):
    result = await gateway.fetch_orders()

    assert result.kind == ResultKind.OK
    assert result.data == []


async def test_create_order_puts_on_its_own_path(remote: FakeRemoteStore, gateway: RemoteGateway):
    order = make_order("PUTPATH01")

    await gateway.create_order(order)
    await gateway.create_order(order)

    assert len(remote.calls("PUT", "/orders/PUTPATH01.json")) == 2
    assert list(remote.data["orders"]) == ["PUTPATH01"]


async def test_patch_status_sends_only_the_status(remote: FakeRemoteStore, gateway: RemoteGateway):
    order = make_order("PATCH0001")
    remote.data["orders"] = {order.id: order.to_wire()}

    result = await gateway.patch_order_status(order.id, OrderStatus.PREPARING)

    assert result.available
    assert remote.calls("PATCH") == [("PATCH", "/orders/PATCH0001.json", {"status": "preparing"})]
    assert remote.data["orders"]["PATCH0001"]["status"] == "preparing"
    assert remote.data["orders"]["PATCH0001"]["tableNumber"] == order.table_number


async def test_missing_event_config_uses_remote_default(gateway: RemoteGateway):
    result = await gateway.fetch_event_config()

    assert result.kind == ResultKind.OK
    assert result.data == REMOTE_DEFAULT_EVENT_CONFIG
    assert result.data.event_name == "Event"


async def test_malformed_event_config_uses_remote_default(remote: FakeRemoteStore, gateway: RemoteGateway):
    remote.data["eventConfig"] = {"tableCount": 0}

    result = await gateway.fetch_event_config()

    assert result.data == REMOTE_DEFAULT_EVENT_CONFIG


async def test_event_config_replace(remote: FakeRemoteStore, gateway: RemoteGateway):
    config = EventConfig(is_active=True, event_name="Launch", table_count=12, discount_percentage=15)

    await gateway.replace_event_config(config)

    assert remote.data["eventConfig"] == config.to_wire()
    assert (await gateway.fetch_event_config()).data == config


async def test_rejected_request_is_unavailable(remote: FakeRemoteStore, gateway: RemoteGateway):
    remote.denied = True

    assert (await gateway.fetch_menu()).kind == ResultKind.UNAVAILABLE
    assert (await gateway.create_order(make_order("DENIED001"))).kind == ResultKind.UNAVAILABLE


async def test_network_error_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    gateway, client = _gateway_for(handler)
    try:
        result = await gateway.fetch_orders()
    finally:
        await client.aclose()

    assert result == RemoteResult.unavailable()


async def test_slow_request_times_out_as_unavailable():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1.0)
        return httpx.Response(200, json=[])

    gateway, client = _gateway_for(handler, timeout=0.05)
    try:
        result = await gateway.fetch_menu()
    finally:
        await client.aclose()

    assert result.kind == ResultKind.UNAVAILABLE


async def test_non_json_body_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>maintenance</html>")

    gateway, client = _gateway_for(handler)
    try:
        result = await gateway.fetch_menu()
    finally:
        await client.aclose()

    assert result.kind == ResultKind.UNAVAILABLE


async def test_injected_client_is_left_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    gateway = RemoteGateway(REMOTE_URL, client=client)

    await gateway.aclose()

    assert not client.is_closed
    await client.aclose()


async def test_menu_with_no_readable_entries_is_unavailable(remote: FakeRemoteStore, gateway: RemoteGateway):
    remote.data["menu"] = {"m1": {"id": "m1", "price": "free"}, "m2": {"name_en": "No id"}}

    result = await gateway.fetch_menu()

    assert result.kind == ResultKind.UNAVAILABLE
