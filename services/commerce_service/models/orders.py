"""Order models: orders synced from the storefront platform and their line items."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.commerce_service.models.enums import (
    OrderItemStatus,
    OrderStatus,
    PaymentStatus,
    enum_values,
)
from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import (
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Order(Base):
    """Orders. subtotal and total_amount are derived from the line items."""

    __tablename__ = "commerce_orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    # Platform identifiers
    external_order_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    order_number: Mapped[str] = mapped_column(String(100), nullable=False)
    reference_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Status
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="commerce_order_status_enum",
        ),
        default=OrderStatus.PENDING,
        server_default="pending",
        index=True,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(
            PaymentStatus,
            values_callable=enum_values,
            name="commerce_payment_status_enum",
        ),
        default=PaymentStatus.PENDING,
        server_default="pending",
        index=True,
    )
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    payment_gateway: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Amounts (store currency)
    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), server_default="0", nullable=False
    )
    tax_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), server_default="0", nullable=False
    )
    shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), server_default="0", nullable=False
    )
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), server_default="0", nullable=False
    )
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), server_default="0", nullable=False
    )
    currency: Mapped[str] = mapped_column(String(3), default="SAR", server_default="SAR")

    # Customer snapshot
    customer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    shipping_address: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    tracking_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Status event dates (stamped on the transition into the status)
    order_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    payment_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    shipped_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    delivered_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cancelled_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint("store_id", "order_number", name="uq_commerce_orders_store_number"),
        CheckConstraint("subtotal >= 0", name="subtotal_non_negative"),
        CheckConstraint("total_amount >= 0", name="total_non_negative"),
    )

    # Relationships
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="OrderItem.created_at",
    )

    def __repr__(self):
        return f"<Order {self.order_number} status={self.status}>"


class OrderItem(Base):
    """Order line items (product snapshot at order time)."""

    __tablename__ = "commerce_order_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("commerce_orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    product_name: Mapped[str] = mapped_column(String(500), nullable=False)
    product_sku: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    variant_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    # unit_price * quantity - discount_amount, never below zero
    total_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )

    status: Mapped[OrderItemStatus] = mapped_column(
        SAEnum(
            OrderItemStatus,
            values_callable=enum_values,
            name="commerce_order_item_status_enum",
        ),
        default=OrderItemStatus.PENDING,
        server_default="pending",
    )

    # Returns
    is_returnable: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true"
    )
    return_period_days: Mapped[int] = mapped_column(
        Integer, default=14, server_default="14"
    )
    returned_quantity: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0"
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="positive_quantity"),
        CheckConstraint("total_price >= 0", name="total_price_non_negative"),
        Index("ix_commerce_order_items_order_id", "order_id"),
    )

    # Relationships
    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.product_name} qty={self.quantity}>"
