from cafe.models.event_config import (
    LOCAL_DEFAULT_EVENT_CONFIG,
    REMOTE_DEFAULT_EVENT_CONFIG,
    EventConfig,
)
from cafe.models.menu_item import DRINK_CATEGORIES, Category, MenuItem
from cafe.models.menu_seed import initial_menu
from cafe.models.order import (
    EXTRA_SHOT_SURCHARGE,
    CartItem,
    IceLevel,
    InvalidTransitionError,
    Order,
    OrderStatus,
    PaymentMethod,
    SugarLevel,
    can_transition,
)
from cafe.models.preferences import DEFAULT_LANGUAGE, Language, Role

__all__ = [
    "Category",
    "CartItem",
    "DEFAULT_LANGUAGE",
    "DRINK_CATEGORIES",
    "EXTRA_SHOT_SURCHARGE",
    "EventConfig",
    "IceLevel",
    "InvalidTransitionError",
    "LOCAL_DEFAULT_EVENT_CONFIG",
    "Language",
    "MenuItem",
    "Order",
    "OrderStatus",
    "PaymentMethod",
    "REMOTE_DEFAULT_EVENT_CONFIG",
    "Role",
    "SugarLevel",
    "can_transition",
    "initial_menu",
]
