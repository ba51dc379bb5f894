from pydantic import BaseModel, Field

from cafe.models import IceLevel, Language, OrderStatus, PaymentMethod, SugarLevel


class CartLineCreate(BaseModel):
    menu_item_id: str
    quantity: int = Field(default=1, ge=1)
    sugar_level: SugarLevel = SugarLevel.FULL
    ice_level: IceLevel = IceLevel.NORMAL
    extra_shot: bool = False
    notes: str | None = None


class CheckoutRequest(BaseModel):
    table_number: int = Field(ge=1)
    payment_method: PaymentMethod = PaymentMethod.CASH
    items: list[CartLineCreate] = Field(min_length=1)


class StatusUpdate(BaseModel):
    status: OrderStatus


class OnlineUpdate(BaseModel):
    online: bool


class LanguageUpdate(BaseModel):
    language: Language
