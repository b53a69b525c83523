# ecofinds/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime

from ecofinds.domain.status import OrderStatus, PaymentMethod
from ecofinds.utils.settings import CART_MAX_QUANTITY


class UserCreate(BaseModel):
    """Schema for registering a user."""

    id: int = Field(..., gt=0, description="User ID (must be > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: str | None = Field(None, max_length=255)


class UserRead(BaseModel):
    id: int
    name: str
    email: str | None = None
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)


class ProductCreate(BaseModel):
    """Schema for listing a product for sale."""

    seller_id: int = Field(..., gt=0)
    title: str = Field(..., min_length=3, max_length=255)
    description: str | None = Field(None, max_length=2000)
    price: Decimal = Field(..., gt=0, max_digits=8, decimal_places=2)
    category: str = Field("Other", max_length=64)
    condition: str = Field("Good", max_length=32)
    image: str | None = Field(None, max_length=500)


class SellerOut(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    id: int
    seller_id: int
    title: str
    description: str | None = None
    price: Decimal
    category: str
    condition: str
    image: str | None = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class ProductSummary(BaseModel):
    id: int
    title: str
    price: Decimal
    image: str | None = None
    category: str
    status: str
    seller: SellerOut | None = None


class ItemIn(BaseModel):
    """Schema for adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product ID (must be > 0)")
    quantity: int = Field(1, gt=0, le=CART_MAX_QUANTITY)


class QuantityIn(BaseModel):
    quantity: int = Field(..., gt=0, le=CART_MAX_QUANTITY)


class CartItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    price_at_time: Decimal
    product: ProductSummary


class CartOut(BaseModel):
    user_id: int
    items: List[CartItemOut]
    item_count: int
    total: Decimal


class ShippingAddress(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str | None = Field(None, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)


class CheckoutIn(BaseModel):
    """Schema for checking out the current cart. Both fields are optional."""

    shipping_address: ShippingAddress | None = None
    payment_method: PaymentMethod | None = None


class StatusUpdateIn(BaseModel):
    status: OrderStatus
    tracking_number: str | None = Field(None, max_length=100)


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    seller_id: int
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    product_snapshot: dict | None = None
    product: ProductSummary | None = None


class OrderOut(BaseModel):
    """Schema for an order (response)."""

    id: int
    order_number: str
    buyer_id: int
    status: str
    payment_status: str
    payment_method: str | None = None
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    shipping_address: dict | None = None
    tracking_number: str | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOut]


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class OrderListOut(BaseModel):
    orders: List[OrderOut]
    pagination: Pagination


class SaleOut(BaseModel):
    id: int
    order_id: int
    order_number: str
    order_status: str
    buyer_id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    product_snapshot: dict | None = None
    created_at: datetime


class SaleListOut(BaseModel):
    sales: List[SaleOut]
    pagination: Pagination
