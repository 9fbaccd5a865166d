# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CustomerTier(str, Enum):
    RETAIL = "retail"
    WHOLESALE = "wholesale"
    ADMIN = "admin"

    @property
    def is_wholesale_eligible(self) -> bool:
        return self is CustomerTier.WHOLESALE


class PaymentMethod(str, Enum):
    MTN_MOBILE_MONEY = "mtn_mobile_money"
    AIRTEL_MONEY = "airtel_money"
    CASH_ON_DELIVERY = "cash_on_delivery"

    @property
    def is_mobile_money(self) -> bool:
        return self is not PaymentMethod.CASH_ON_DELIVERY

    @property
    def label(self) -> str:
        return _PAYMENT_LABELS[self]


_PAYMENT_LABELS = {
    PaymentMethod.MTN_MOBILE_MONEY: "MTN Mobile Money",
    PaymentMethod.AIRTEL_MONEY: "Airtel Money",
    PaymentMethod.CASH_ON_DELIVERY: "Cash on Delivery",
}


class Product(BaseModel):
    """Catalog snapshot of a product, as read from the `products` table."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    title: str
    price: Decimal = Field(..., ge=0)
    wholesale_price: Decimal | None = Field(default=None, ge=0)
    wholesale_min_qty: int | None = None
    stock: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _wholesale_needs_threshold(self):
        if self.wholesale_price is not None and (
            self.wholesale_min_qty is None or self.wholesale_min_qty < 1
        ):
            raise ValueError("wholesale_price requires wholesale_min_qty >= 1")
        return self


class CartLine(BaseModel):
    product: Product
    quantity: int = Field(..., ge=1)


class StoredCart(BaseModel):
    """Blob persisted in local storage under the cart key."""

    customer_id: str | None = None
    lines: List[CartLine] = Field(default_factory=list)


class Customer(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    tier: CustomerTier = CustomerTier.RETAIL
    full_name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None


class ShippingInfo(BaseModel):
    address: str = ""
    city: str = ""
    phone: str = ""
    notes: str | None = None


# --- API payloads ---

class ItemIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0, description="must be > 0")


class QuantityIn(BaseModel):
    # <= 0 removes the line
    quantity: int


class CartLineOut(BaseModel):
    product_id: str
    title: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    wholesale_applied: bool


class CartOut(BaseModel):
    customer_id: str
    tier: CustomerTier
    items: List[CartLineOut]
    total_items: int
    total_amount: Decimal


class CheckoutIn(BaseModel):
    address: str = ""
    city: str = ""
    phone: str = ""
    notes: str | None = None
    payment_method: PaymentMethod = PaymentMethod.MTN_MOBILE_MONEY
    payment_phone: str | None = None


class OrderItemOut(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    product_id: str
    quantity: int
    unit_price: Decimal


class OrderOut(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    user_id: str
    total_amount: Decimal
    payment_method: str | None = None
    payment_status: str
    order_status: str
    shipping_address: str | None = None
    shipping_city: str | None = None
    shipping_phone: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    items: List[OrderItemOut] = Field(default_factory=list)
