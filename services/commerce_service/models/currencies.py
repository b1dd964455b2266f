"""Currency model: per-store currencies, exchange rates and rate history."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.commerce_service.models.enums import RoundingMethod, enum_values
from services.commerce_service.models.orders import JSONType
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, Integer, Numeric, String, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column


class Currency(Base):
    """Store currencies.

    ``exchange_rate`` is relative to the store's base currency (rate 1.0).
    ``historical_rates`` holds ``{rate, timestamp, source, provider}`` entries,
    oldest first, pruned to ``rate_history_retention_days``.
    """

    __tablename__ = "commerce_currencies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    external_currency_id: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )

    # ISO 4217
    code: Mapped[str] = mapped_column(String(3), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    symbol: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    decimal_places: Mapped[int] = mapped_column(Integer, default=2, server_default="2")
    rounding_method: Mapped[RoundingMethod] = mapped_column(
        SAEnum(
            RoundingMethod,
            values_callable=enum_values,
            name="commerce_rounding_method_enum",
        ),
        default=RoundingMethod.ROUND,
        server_default="round",
    )

    # Exchange rate
    exchange_rate: Mapped[Decimal] = mapped_column(
        Numeric(15, 8), default=Decimal("1"), server_default="1", nullable=False
    )
    rate_source: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )  # manual, api, bank
    rate_provider: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_rate_update: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    historical_rates: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    rate_history_retention_days: Mapped[int] = mapped_column(
        Integer, default=365, server_default="365"
    )

    # Flags
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    is_default: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    is_base_currency: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )

    # Volume metrics
    total_transactions: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0"
    )
    total_volume: Mapped[Decimal] = mapped_column(
        Numeric(20, 8), default=Decimal("0"), server_default="0"
    )
    average_transaction_amount: Mapped[Decimal] = mapped_column(
        Numeric(20, 8), default=Decimal("0"), server_default="0"
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
    activated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    deactivated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("store_id", "code", name="uq_commerce_currencies_store_code"),
        # At most one default and one base currency per store
        Index(
            "uq_commerce_currencies_store_default",
            "store_id",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default = 1"),
        ),
        Index(
            "uq_commerce_currencies_store_base",
            "store_id",
            unique=True,
            postgresql_where=text("is_base_currency"),
            sqlite_where=text("is_base_currency = 1"),
        ),
        Index("ix_commerce_currencies_store_active", "store_id", "is_active"),
    )

    def __repr__(self):
        return f"<Currency {self.code} rate={self.exchange_rate}>"
