"""Catalog models: product images."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime
from sqlalchemy import Index, Integer, Numeric, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column


class ProductImage(Base):
    """Product images. One image per product may be the main image."""

    __tablename__ = "commerce_product_images"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)
    external_image_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    alt_text: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # File metadata
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)  # bytes
    file_format: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    is_main: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    sort_order: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")

    # Engagement
    view_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    click_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    optimization_score: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(3, 2), nullable=True
    )
    conversion_rate: Mapped[Decimal] = mapped_column(
        Numeric(5, 4), default=Decimal("0"), server_default="0"
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("sort_order >= 0", name="sort_order_non_negative"),
        CheckConstraint("width > 0 AND height > 0", name="dimensions_positive"),
        CheckConstraint("file_size > 0", name="file_size_positive"),
        # At most one main image per product
        Index(
            "uq_commerce_product_images_main",
            "product_id",
            unique=True,
            postgresql_where=text("is_main"),
            sqlite_where=text("is_main = 1"),
        ),
        Index("ix_commerce_product_images_product_sort", "product_id", "sort_order"),
    )

    def __repr__(self):
        return f"<ProductImage {self.id} main={self.is_main}>"
