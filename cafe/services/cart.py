"""In-progress cart for one table session. Checkout freezes it into an Order."""

import logging

from cafe.models import (
    EXTRA_SHOT_SURCHARGE,
    CartItem,
    IceLevel,
    MenuItem,
    Order,
    PaymentMethod,
    SugarLevel,
)

logger = logging.getLogger(__name__)


class Cart:
    def __init__(self, table_number: int) -> None:
        self.table_number = table_number
        self._items: list[CartItem] = []

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    @property
    def total(self) -> int:
        return sum(item.line_total for item in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def add(
        self,
        item: MenuItem,
        sugar_level: SugarLevel = SugarLevel.FULL,
        ice_level: IceLevel = IceLevel.NORMAL,
        extra_shot: bool = False,
        notes: str | None = None,
        quantity: int = 1,
    ) -> CartItem:
        if not item.is_available:
            raise ValueError(f"Menu item {item.id} is not available")

        # Drink modifiers only apply to drinks; snacks keep the neutral defaults.
        if not item.is_drink:
            sugar_level, ice_level, extra_shot = SugarLevel.FULL, IceLevel.NORMAL, False
        price = item.price + (EXTRA_SHOT_SURCHARGE if extra_shot else 0)

        cart_item = CartItem(
            **item.model_dump(exclude={"price"}),
            price=price,
            quantity=quantity,
            sugar_level=sugar_level,
            ice_level=ice_level,
            extra_shot=extra_shot,
            notes=notes or None,
        )
        self._items.append(cart_item)
        return cart_item

    def remove(self, cart_id: str) -> None:
        self._items = [item for item in self._items if item.cart_id != cart_id]

    def update_quantity(self, cart_id: str, delta: int) -> CartItem:
        for index, item in enumerate(self._items):
            if item.cart_id == cart_id:
                updated = item.model_copy(update={"quantity": max(1, item.quantity + delta)})
                self._items[index] = updated
                return updated
        raise KeyError(cart_id)

    def clear(self) -> None:
        self._items = []

    def checkout(self, payment_method: PaymentMethod = PaymentMethod.CASH) -> Order:
        if not self._items:
            raise ValueError("Cart is empty")
        order = Order.create(
            table_number=self.table_number,
            items=self._items,
            payment_method=payment_method,
        )
        self._items = []
        logger.info(
            "Cart checked out",
            extra={"order_id": order.id, "table_number": order.table_number, "amount": order.total_amount},
        )
        return order
