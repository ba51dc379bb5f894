import pytest

from cafe.models import EXTRA_SHOT_SURCHARGE, IceLevel, PaymentMethod, SugarLevel, initial_menu
from cafe.services.cart import Cart


@pytest.fixture
def menu():
    return {item.id: item for item in initial_menu()}


def _snack(menu):
    return next(item for item in menu.values() if not item.is_drink)


def test_extra_shot_adds_surcharge_to_drinks(menu):
    cart = Cart(table_number=2)
    latte = menu["c1"]

    line = cart.add(latte, sugar_level=SugarLevel.HALF, ice_level=IceLevel.LESS, extra_shot=True, quantity=2)

    assert line.price == latte.price + EXTRA_SHOT_SURCHARGE
    assert line.sugar_level == SugarLevel.HALF
    assert cart.total == (latte.price + EXTRA_SHOT_SURCHARGE) * 2


def test_snacks_ignore_drink_modifiers(menu):
    cart = Cart(table_number=2)
    snack = _snack(menu)

    line = cart.add(snack, sugar_level=SugarLevel.NONE, ice_level=IceLevel.EXTRA, extra_shot=True)

    assert line.price == snack.price
    assert line.sugar_level == SugarLevel.FULL
    assert line.ice_level == IceLevel.NORMAL
    assert line.extra_shot is False


def test_same_item_with_different_modifiers_gets_separate_lines(menu):
    cart = Cart(table_number=1)

    first = cart.add(menu["c1"])
    second = cart.add(menu["c1"], extra_shot=True)

    assert len(cart) == 2
    assert first.cart_id != second.cart_id


def test_unavailable_item_cannot_be_added(menu):
    cart = Cart(table_number=1)
    sold_out = menu["c1"].model_copy(update={"is_available": False})

    with pytest.raises(ValueError):
        cart.add(sold_out)


def test_quantity_never_drops_below_one(menu):
    cart = Cart(table_number=1)
    line = cart.add(menu["c2"], quantity=2)

    assert cart.update_quantity(line.cart_id, 3).quantity == 5
    assert cart.update_quantity(line.cart_id, -10).quantity == 1
    with pytest.raises(KeyError):
        cart.update_quantity("nope", 1)


def test_remove_and_clear(menu):
    cart = Cart(table_number=1)
    line = cart.add(menu["c1"])
    cart.add(menu["c2"])

    cart.remove(line.cart_id)
    assert [item.id for item in cart.items] == ["c2"]

    cart.clear()
    assert len(cart) == 0


def test_checkout_freezes_cart_into_order(menu):
    cart = Cart(table_number=6)
    cart.add(menu["c1"], quantity=2)
    cart.add(_snack(menu))
    expected_total = cart.total

    order = cart.checkout(PaymentMethod.QRIS)

    assert order.table_number == 6
    assert order.total_amount == expected_total
    assert order.payment_method == PaymentMethod.QRIS
    assert len(order.id) == 9
    assert len(cart) == 0


def test_empty_cart_cannot_check_out():
    with pytest.raises(ValueError):
        Cart(table_number=1).checkout()
