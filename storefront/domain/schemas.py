# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.domain.status import CartStatus, OrderStatus, PaymentStatus
from storefront.utils.settings import MAX_QUANTITY_PER_ITEM, MIN_QUANTITY_PER_ITEM


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------- cart in

class CreateCartIn(ApiModel):
    session_id: str = Field(..., min_length=1, max_length=255)


class MergeCartsIn(ApiModel):
    source_session_id: str = Field(..., min_length=1, max_length=255)
    target_session_id: str = Field(..., min_length=1, max_length=255)


class ItemIn(ApiModel):
    """Schema for adding a product to the cart."""

    product_id: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(MIN_QUANTITY_PER_ITEM, ge=MIN_QUANTITY_PER_ITEM, le=MAX_QUANTITY_PER_ITEM)
    variant_id: str | None = Field(None, max_length=64)


class ItemQuantityIn(ApiModel):
    quantity: int = Field(..., ge=MIN_QUANTITY_PER_ITEM, le=MAX_QUANTITY_PER_ITEM)


# ---------------------------------------------------------------- cart out

class TotalsOut(ApiModel):
    subtotal: Decimal
    tax: Decimal
    total: Decimal


class CartItemOut(ApiModel):
    id: str
    product_id: str
    variant_id: str | None = None
    quantity: int
    price: Decimal


class CartOut(ApiModel):
    id: int
    session_id: str
    status: CartStatus
    items: List[CartItemOut]
    totals: TotalsOut
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------- product service

class InventoryInfo(ApiModel):
    quantity: int = 0
    reserved: int = 0

    @property
    def available(self) -> int:
        return self.quantity - self.reserved


class ProductInfo(ApiModel):
    """What the cart needs to know about a product, nothing more."""

    id: str
    price: Decimal
    is_active: bool = True
    inventory: InventoryInfo = Field(default_factory=InventoryInfo)


# ---------------------------------------------------------------- orders in

class CustomerIn(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str | None = Field(None, max_length=50)


class ShippingIn(ApiModel):
    method: str = Field(..., min_length=1, max_length=100)
    cost: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class OrderCreate(ApiModel):
    """Schema for creating an order from the session's cart."""

    session_id: str = Field(..., min_length=1, max_length=255)
    customer: CustomerIn
    payment_method: str = Field(..., min_length=1, max_length=50)
    shipping: ShippingIn
    notes: str | None = Field(None, max_length=2000)


class OrderStatusIn(ApiModel):
    status: OrderStatus


class PaymentStatusIn(ApiModel):
    payment_status: PaymentStatus


# ---------------------------------------------------------------- orders out

class CustomerOut(ApiModel):
    name: str
    email: str
    phone: str | None = None


class ShippingOut(ApiModel):
    method: str
    cost: Decimal


class OrderItemOut(ApiModel):
    product_id: str
    variant_id: str | None = None
    quantity: int
    price: Decimal


class OrderOut(ApiModel):
    order_number: str
    session_id: str | None = None
    customer: CustomerOut
    items: List[OrderItemOut]
    subtotal: Decimal
    tax: Decimal
    shipping: ShippingOut
    total: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: str
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
