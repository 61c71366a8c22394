# checkout_core/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """JSON w camelCase, wejscie przyjmuje tez snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# requests


class AddItemIn(CamelModel):
    """Schema dla dodawania produktu do koszyka."""

    item_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(1, ge=1, description="Ilość produktu (minimum 1)")


class UpdateQuantityIn(CamelModel):
    """Schema dla zmiany ilości pozycji koszyka."""

    quantity: int = Field(..., ge=1, description="Nowa ilość (minimum 1)")


class CheckoutIn(CamelModel):
    """Wybór pozycji do checkoutu. cartItemIds ma pierwszeństwo przed itemIds."""

    item_ids: List[int] | None = None
    cart_item_ids: List[int] | None = None
    notes: str | None = Field(None, max_length=2000)
    payment_terms: str | None = Field(None, max_length=100)


# cart responses


class ItemSummaryOut(CamelModel):
    id: int
    item_name: str
    item_code: str | None = None
    price: Decimal
    quantity: int
    description: str | None = None


class CartLineOut(CamelModel):
    id: int
    quantity: int
    unit_price: Decimal | None = None
    added_at: datetime | None = None
    item: ItemSummaryOut | None = None


class CartHeaderOut(CamelModel):
    id: int
    customer_id: int
    status: str
    last_updated: datetime | None = None
    item_count: int


class CartOut(CamelModel):
    cart: CartHeaderOut
    items: List[CartLineOut]


class CartStatusOut(CamelModel):
    id: int
    customer_id: int
    status: str


class ClearCartOut(CamelModel):
    customer_id: int
    removed: int


# checkout responses


class ClientLineOut(CamelModel):
    item_id: int
    name: str
    price: Decimal
    quantity: int
    total: Decimal


class PricingOut(CamelModel):
    applied: str
    tier_percent: Decimal
    base_subtotal: Decimal
    product_total: Decimal
    tier_total: Decimal
    chosen_total: Decimal
    savings_amount: Decimal
    savings_percent_of_product: Decimal


class DraftOrderOut(CamelModel):
    order_number: str
    status: str
    order_date: datetime
    items: List[ClientLineOut]
    total_amount: Decimal
    pricing: PricingOut


class ProfileWarnings(CamelModel):
    profile_incomplete: bool
    missing_fields: List[str]


class OrderItemOut(CamelModel):
    id: int
    item_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class OrderOut(CamelModel):
    id: int
    order_number: str
    customer_id: int
    user_id: int
    status: str
    total_amount: Decimal
    final_amount: Decimal
    shipping_address: Dict[str, Any] | None = None
    billing_address: Dict[str, Any] | None = None
    notes: str | None = None
    payment_terms: str | None = None
    order_date: datetime
    items: List[OrderItemOut]


class ClientOrderView(CamelModel):
    """Widok zamówienia dla klienta, pozycje z nazwami produktów."""

    id: int
    order_number: str
    order_date: datetime
    status: str
    total_amount: Decimal
    items: List[ClientLineOut]


class ConfirmOut(CamelModel):
    order: OrderOut
    client_view: ClientOrderView


class HealthOut(CamelModel):
    status: str
    database: str


# envelope


class Envelope(CamelModel, Generic[T]):
    """Wspólna koperta odpowiedzi: {success, data?, message?, warnings?}."""

    success: bool = True
    data: T | None = None
    message: str | None = None
    warnings: ProfileWarnings | None = None
