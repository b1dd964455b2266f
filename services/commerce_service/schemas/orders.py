"""Order and line item request/response schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from services.commerce_service.models.enums import (
    OrderItemStatus,
    OrderStatus,
    PaymentStatus,
)


class OrderItemCreate(BaseModel):
    product_id: Optional[uuid.UUID] = None
    product_name: str = Field(..., min_length=1, max_length=500)
    product_sku: Optional[str] = None
    variant_name: Optional[str] = None
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    status: OrderItemStatus = OrderItemStatus.PENDING
    is_returnable: bool = True
    return_period_days: Optional[int] = Field(None, ge=0)


class OrderItemUpdate(BaseModel):
    product_name: Optional[str] = Field(None, min_length=1, max_length=500)
    product_sku: Optional[str] = None
    variant_name: Optional[str] = None
    unit_price: Optional[Decimal] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=1)
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    status: Optional[OrderItemStatus] = None
    is_returnable: Optional[bool] = None
    return_period_days: Optional[int] = Field(None, ge=0)
    returned_quantity: Optional[int] = Field(None, ge=0)


class OrderItemResponse(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    product_name: str
    product_sku: Optional[str] = None
    variant_name: Optional[str] = None
    unit_price: Decimal
    quantity: int
    discount_amount: Decimal
    total_price: Decimal
    status: OrderItemStatus
    is_returnable: bool
    return_period_days: int
    returned_quantity: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderCreate(BaseModel):
    """Used by the platform sync to record an order with its items."""

    store_id: uuid.UUID
    order_number: str = Field(..., min_length=1, max_length=100)
    customer_id: Optional[uuid.UUID] = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[str] = None
    payment_gateway: Optional[str] = None
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    shipping_address: Optional[dict[str, Any]] = None
    notes: Optional[str] = None
    items: list[OrderItemCreate] = Field(default_factory=list)


class OrderUpdate(BaseModel):
    """Partial update. Totals are derived and cannot be set."""

    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[str] = None
    payment_gateway: Optional[str] = None
    tax_amount: Optional[Decimal] = Field(None, ge=0)
    shipping_cost: Optional[Decimal] = Field(None, ge=0)
    discount_amount: Optional[Decimal] = Field(None, ge=0)
    tracking_number: Optional[str] = None
    shipping_address: Optional[dict[str, Any]] = None
    notes: Optional[str] = None


class OrderResponse(BaseModel):
    id: uuid.UUID
    store_id: uuid.UUID
    order_number: str
    status: OrderStatus
    payment_status: PaymentStatus
    subtotal: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str
    payment_date: Optional[datetime] = None
    shipped_date: Optional[datetime] = None
    delivered_date: Optional[datetime] = None
    cancelled_date: Optional[datetime] = None
    tracking_number: Optional[str] = None
    items: list[OrderItemResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReturnEligibilityResponse(BaseModel):
    item_id: uuid.UUID
    returnable: bool
