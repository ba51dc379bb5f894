import secrets
import string
import time
import uuid
from enum import Enum
from typing import Iterable

from pydantic import BaseModel, Field

from cafe.models.menu_item import MenuItem

ORDER_ID_ALPHABET = string.ascii_uppercase + string.digits
ORDER_ID_LENGTH = 9

EXTRA_SHOT_SURCHARGE = 5000


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class SugarLevel(str, Enum):
    NONE = "0%"
    QUARTER = "25%"
    HALF = "50%"
    THREE_QUARTERS = "75%"
    FULL = "100%"


class IceLevel(str, Enum):
    NO_ICE = "No Ice"
    LESS = "Less"
    NORMAL = "Normal"
    EXTRA = "Extra"


class PaymentMethod(str, Enum):
    CASH = "cash"
    QRIS = "qris"


_FORWARD_RANK = {
    OrderStatus.PENDING: 0,
    OrderStatus.PREPARING: 1,
    OrderStatus.DELIVERED: 2,
}


class InvalidTransitionError(ValueError):
    """Requested status change is not a forward move (or cancel from pending)."""


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    if current == new:
        return True
    if new == OrderStatus.CANCELLED:
        return current == OrderStatus.PENDING
    if current == OrderStatus.CANCELLED:
        return False
    return _FORWARD_RANK[new] > _FORWARD_RANK[current]


def generate_order_id() -> str:
    """Short uppercase token that staff can read off a screen."""
    return "".join(secrets.choice(ORDER_ID_ALPHABET) for _ in range(ORDER_ID_LENGTH))


def generate_cart_id() -> str:
    return uuid.uuid4().hex[:9]


def now_ms() -> int:
    return int(time.time() * 1000)


class CartItem(MenuItem):
    cart_id: str = Field(default_factory=generate_cart_id, alias="cartId")
    quantity: int = Field(default=1, ge=1)
    sugar_level: SugarLevel = Field(default=SugarLevel.FULL, alias="sugarLevel")
    ice_level: IceLevel = Field(default=IceLevel.NORMAL, alias="iceLevel")
    extra_shot: bool = Field(default=False, alias="extraShot")
    notes: str | None = None

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


class Order(BaseModel):
    id: str = Field(min_length=1)
    table_number: int = Field(ge=1, alias="tableNumber")
    items: list[CartItem]
    total_amount: int = Field(ge=0, alias="totalAmount")
    status: OrderStatus = OrderStatus.PENDING
    timestamp: int
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH, alias="paymentMethod")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @classmethod
    def create(
        cls,
        table_number: int,
        items: Iterable[CartItem],
        payment_method: PaymentMethod = PaymentMethod.CASH,
        order_id: str | None = None,
        timestamp: int | None = None,
    ) -> "Order":
        # Line items are deep copies: later cart or menu edits never reach a placed order.
        frozen = [item.model_copy(deep=True) for item in items]
        if not frozen:
            raise ValueError("Cannot place an order without items")
        return cls(
            id=order_id or generate_order_id(),
            table_number=table_number,
            items=frozen,
            total_amount=sum(item.line_total for item in frozen),
            status=OrderStatus.PENDING,
            timestamp=timestamp if timestamp is not None else now_ms(),
            payment_method=payment_method,
        )

    def with_status(self, status: OrderStatus) -> "Order":
        return self.model_copy(update={"status": status})

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
