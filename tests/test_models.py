import pytest
from pydantic import ValidationError

from conftest import make_menu_item

from cafe.models import (
    CartItem,
    Category,
    EventConfig,
    MenuItem,
    Order,
    OrderStatus,
    can_transition,
    initial_menu,
)
from cafe.models.order import ORDER_ID_ALPHABET, generate_order_id


@pytest.mark.parametrize(
    "current,new,allowed",
    [
        (OrderStatus.PENDING, OrderStatus.PREPARING, True),
        (OrderStatus.PENDING, OrderStatus.DELIVERED, True),
        (OrderStatus.PREPARING, OrderStatus.DELIVERED, True),
        (OrderStatus.PENDING, OrderStatus.CANCELLED, True),
        (OrderStatus.PREPARING, OrderStatus.PENDING, False),
        (OrderStatus.DELIVERED, OrderStatus.PREPARING, False),
        (OrderStatus.PREPARING, OrderStatus.CANCELLED, False),
        (OrderStatus.CANCELLED, OrderStatus.PENDING, False),
        (OrderStatus.DELIVERED, OrderStatus.DELIVERED, True),
    ],
)
def test_status_transitions(current, new, allowed):
    assert can_transition(current, new) is allowed


def test_order_ids_are_short_uppercase_tokens():
    ids = {generate_order_id() for _ in range(50)}
    assert len(ids) == 50
    for order_id in ids:
        assert len(order_id) == 9
        assert set(order_id) <= set(ORDER_ID_ALPHABET)


def test_order_total_is_sum_of_line_totals():
    latte, espresso = initial_menu()[0], initial_menu()[1]
    lines = [
        CartItem(**latte.model_dump(), quantity=2),
        CartItem(**espresso.model_dump(), quantity=1),
    ]

    order = Order.create(table_number=4, items=lines)

    assert order.total_amount == latte.price * 2 + espresso.price
    assert order.status == OrderStatus.PENDING
    assert order.table_number == 4


def test_order_lines_are_frozen_copies():
    line = CartItem(**make_menu_item("x1", price=10000).model_dump(), quantity=1)
    order = Order.create(table_number=1, items=[line])

    line.price = 99999
    line.quantity = 5

    assert order.items[0].price == 10000
    assert order.total_amount == 10000


def test_order_without_items_is_rejected():
    with pytest.raises(ValueError):
        Order.create(table_number=1, items=[])


def test_wire_format_uses_camel_case_and_round_trips():
    line = CartItem(**initial_menu()[0].model_dump(), quantity=1, extra_shot=True)
    order = Order.create(table_number=2, items=[line], order_id="ABCDEFGH1", timestamp=5)

    wire = order.to_wire()

    assert wire["tableNumber"] == 2
    assert wire["totalAmount"] == line.price
    assert wire["items"][0]["extraShot"] is True
    assert wire["items"][0]["healthyScore"] == line.healthy_score
    assert Order.model_validate(wire) == order


def test_menu_item_ignores_unknown_remote_fields():
    wire = make_menu_item("x9").to_wire()
    wire["legacyField"] = "whatever"

    item = MenuItem.model_validate(wire)

    assert item.id == "x9"
    assert item.is_available is True


def test_menu_item_rejects_unknown_category():
    wire = make_menu_item("x9").to_wire()
    wire["category"] = "Desserts"

    with pytest.raises(ValidationError):
        MenuItem.model_validate(wire)


def test_only_snacks_are_not_drinks():
    categories = {item.category for item in initial_menu() if not item.is_drink}
    assert categories == {Category.SNACKS}


def test_initial_menu_has_unique_ids():
    ids = [item.id for item in initial_menu()]
    assert len(ids) == len(set(ids))


def test_event_config_bounds():
    with pytest.raises(ValidationError):
        EventConfig(table_count=0)
    with pytest.raises(ValidationError):
        EventConfig(discount_percentage=101)
    assert EventConfig.model_validate({"tableCount": 40}).table_count == 40
