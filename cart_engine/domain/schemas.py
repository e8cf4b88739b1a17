# cart_engine/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ItemIn(BaseModel):
    """Body for adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product id (must be > 0)")
    quantity: int = Field(..., gt=0, description="Quantity to add (must be > 0)")


class QuantityIn(BaseModel):
    """Body for setting an item quantity, 0 or less removes the item."""

    quantity: int


class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class CartOut(BaseModel):
    """Cart view returned by every cart endpoint."""

    id: int
    items: List[CartItemOut]
    total_price: Decimal
    total_items: int
    owner_id: str
    owner_type: str
    status: str
    expires_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CartCountOut(BaseModel):
    total_items: int


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    cart_id: int
    user_id: int
    status: str
    total_amount: Decimal
    order_date: datetime
    items: List[OrderItemOut]

    model_config = ConfigDict(from_attributes=True)


class OrderPageOut(BaseModel):
    items: List[OrderOut]
    page: int
    size: int
    total: int


class HealthOut(BaseModel):
    status: str
    database: str
