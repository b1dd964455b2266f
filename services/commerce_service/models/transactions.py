"""Financial transaction model: payments, refunds, fees and other money movements."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.commerce_service.models.enums import (
    TransactionStatus,
    TransactionType,
    enum_values,
)
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Transaction(Base):
    """Store transactions. net_amount and processed_at are derived."""

    __tablename__ = "commerce_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)

    # Optional: not every transaction belongs to an order
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("commerce_orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    external_transaction_id: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )
    transaction_number: Mapped[str] = mapped_column(String(100), nullable=False)
    reference_number: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    transaction_type: Mapped[TransactionType] = mapped_column(
        SAEnum(
            TransactionType,
            values_callable=enum_values,
            name="commerce_transaction_type_enum",
        ),
        nullable=False,
    )
    transaction_status: Mapped[TransactionStatus] = mapped_column(
        SAEnum(
            TransactionStatus,
            values_callable=enum_values,
            name="commerce_transaction_status_enum",
        ),
        default=TransactionStatus.PENDING,
        server_default="pending",
        nullable=False,
    )

    # Amounts (transaction currency)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 4), nullable=False)
    currency_code: Mapped[str] = mapped_column(
        String(3), default="SAR", server_default="SAR", nullable=False
    )
    gateway_fee: Mapped[Decimal] = mapped_column(
        Numeric(15, 4), default=Decimal("0"), server_default="0", nullable=False
    )
    platform_fee: Mapped[Decimal] = mapped_column(
        Numeric(15, 4), default=Decimal("0"), server_default="0", nullable=False
    )
    tax_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 4), default=Decimal("0"), server_default="0", nullable=False
    )
    # amount - fees - tax unless supplied; may be negative
    net_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 4), nullable=True)

    payment_method: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payment_gateway: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    transaction_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Reconciliation against bank statements
    reconciled: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    reconciled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reconciliation_reference: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        Index("ix_commerce_transactions_store_status", "store_id", "transaction_status"),
    )

    def __repr__(self):
        return f"<Transaction {self.transaction_number} {self.transaction_status}>"
