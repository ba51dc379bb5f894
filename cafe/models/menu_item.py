from enum import Enum

from pydantic import BaseModel, Field


class Category(str, Enum):
    COFFEE = "Coffee"
    NON_COFFEE = "Non-Coffee"
    SNACKS = "Snacks"
    EVENT = "Event"
    BEST_SELLER = "Best Seller"


DRINK_CATEGORIES = frozenset(
    {Category.COFFEE, Category.NON_COFFEE, Category.EVENT, Category.BEST_SELLER}
)

DEFAULT_MENU_IMAGE = "https://picsum.photos/400/400"


class MenuItem(BaseModel):
    id: str = Field(min_length=1)
    name_en: str
    name_id: str
    price: int = Field(ge=0)  # smallest currency unit
    category: Category
    description: str = ""
    image: str = DEFAULT_MENU_IMAGE  # URL or data URI
    healthy_score: int = Field(default=5, ge=1, le=10, alias="healthyScore")
    ingredients: list[str] = Field(default_factory=list)
    is_available: bool = Field(default=True, alias="isAvailable")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def is_drink(self) -> bool:
        return self.category in DRINK_CATEGORIES

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
