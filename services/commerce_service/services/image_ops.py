"""Product image operations: main image, ordering and engagement metrics."""

import uuid
from decimal import Decimal
from typing import Any, Iterable, Optional

from libs.common.errors import NotFoundError, ValidationError, check_update_fields
from libs.common.logging import get_logger
from libs.common.money import ZERO, quantize, to_decimal
from libs.db.session import atomic
from services.commerce_service.models import ProductImage
from services.commerce_service.services.singleton_flags import enforce_single_flag
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

ONE = Decimal("1")

# Rough uncompressed size: 3 bytes per pixel
BYTES_PER_PIXEL = 3

IMAGE_UPDATABLE_FIELDS = frozenset(
    {
        "image_url",
        "alt_text",
        "title",
        "width",
        "height",
        "file_size",
        "file_format",
        "is_main",
        "sort_order",
        "is_active",
        "view_count",
        "click_count",
    }
)

IMAGE_REQUIRED_FIELDS = frozenset(
    {
        "image_url",
        "is_main",
        "sort_order",
        "is_active",
        "view_count",
        "click_count",
    }
)


def compute_image_metrics(image: ProductImage) -> ProductImage:
    """Derive optimization_score and conversion_rate from the stored counters.

    The score is only computed when size and both dimensions are known; the
    rate only once the image has been viewed.
    """
    if image.file_size is not None and image.width and image.height:
        raw = image.width * image.height * BYTES_PER_PIXEL
        score = ONE - Decimal(image.file_size) / Decimal(raw)
        image.optimization_score = quantize(min(ONE, max(ZERO, score)), 2)

    if image.view_count and image.view_count > 0:
        image.conversion_rate = quantize(
            Decimal(image.click_count or 0) / Decimal(image.view_count), 4
        )
    return image


async def _lock_image(db: AsyncSession, image_id: uuid.UUID) -> ProductImage:
    result = await db.execute(
        select(ProductImage)
        .where(ProductImage.id == image_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    image = result.scalar_one_or_none()
    if image is None:
        raise NotFoundError(f"Image {image_id} not found", field="image_id")
    return image


async def create_product_image(
    db: AsyncSession,
    *,
    product_id: uuid.UUID,
    store_id: uuid.UUID,
    image_url: str,
    **fields: Any,
) -> ProductImage:
    """Add an image; flagging it main demotes the product's current main image."""
    fields.setdefault("is_main", False)
    fields.setdefault("is_active", True)
    fields.setdefault("sort_order", 0)
    fields.setdefault("view_count", 0)
    fields.setdefault("click_count", 0)
    if fields["sort_order"] < 0:
        raise ValidationError("Sort order cannot be negative", field="sort_order")

    async with atomic(db):
        image = ProductImage(
            id=uuid.uuid4(),
            product_id=product_id,
            store_id=store_id,
            image_url=image_url,
            **fields,
        )
        compute_image_metrics(image)
        if image.is_main:
            await enforce_single_flag(
                db, image, group_attr="product_id", flag_attr="is_main"
            )
        db.add(image)
        await db.flush()

    await db.refresh(image)

    logger.info(
        "Added image %s to product %s (main=%s)", image.id, product_id, image.is_main
    )
    return image


async def update_product_image(
    db: AsyncSession,
    image_id: uuid.UUID,
    changes: dict[str, Any],
) -> ProductImage:
    """Apply ``changes`` to an image and re-derive its metrics."""
    check_update_fields(changes, IMAGE_UPDATABLE_FIELDS, IMAGE_REQUIRED_FIELDS)
    if changes.get("sort_order") is not None and changes["sort_order"] < 0:
        raise ValidationError("Sort order cannot be negative", field="sort_order")

    async with atomic(db):
        image = await _lock_image(db, image_id)
        if changes.get("is_main") and not image.is_main:
            await enforce_single_flag(
                db, image, group_attr="product_id", flag_attr="is_main"
            )
        for field, value in changes.items():
            setattr(image, field, value)
        compute_image_metrics(image)
        await db.flush()

    await db.refresh(image)

    logger.info("Updated image %s (main=%s)", image.id, image.is_main)
    return image


async def set_main_image(db: AsyncSession, image_id: uuid.UUID) -> ProductImage:
    """Make ``image_id`` its product's only main image."""
    return await update_product_image(db, image_id, {"is_main": True})


async def record_image_engagement(
    db: AsyncSession,
    image_id: uuid.UUID,
    *,
    views: int = 0,
    clicks: int = 0,
) -> ProductImage:
    """Add views and clicks to an image and refresh its conversion rate."""
    async with atomic(db):
        image = await _lock_image(db, image_id)
        image.view_count = (image.view_count or 0) + views
        image.click_count = (image.click_count or 0) + clicks
        compute_image_metrics(image)
        await db.flush()

    await db.refresh(image)
    return image


async def list_product_images(
    db: AsyncSession, product_id: uuid.UUID, *, active_only: bool = True
) -> list[ProductImage]:
    """A product's images: main first, then by sort_order, then oldest first."""
    stmt = select(ProductImage).where(ProductImage.product_id == product_id)
    if active_only:
        stmt = stmt.where(ProductImage.is_active.is_(True))
    result = await db.execute(
        stmt.order_by(
            ProductImage.is_main.desc(),
            ProductImage.sort_order.asc(),
            ProductImage.created_at.asc(),
        )
    )
    return list(result.scalars().all())


async def get_main_image(
    db: AsyncSession, product_id: uuid.UUID
) -> Optional[ProductImage]:
    """The product's active main image, if it has one."""
    result = await db.execute(
        select(ProductImage)
        .where(
            ProductImage.product_id == product_id,
            ProductImage.is_main.is_(True),
            ProductImage.is_active.is_(True),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def reorder_images(
    db: AsyncSession,
    product_id: uuid.UUID,
    orders: Iterable[dict[str, Any]],
) -> int:
    """Set ``sort_order`` from ``[{id, sort_order}, ...]``.

    Ids that do not belong to the product are ignored. Returns how many
    images were reordered.
    """
    orders = list(orders)
    for entry in orders:
        if int(entry["sort_order"]) < 0:
            raise ValidationError("Sort order cannot be negative", field="sort_order")

    wanted = {uuid.UUID(str(entry["id"])): int(entry["sort_order"]) for entry in orders}
    if not wanted:
        return 0

    async with atomic(db):
        result = await db.execute(
            select(ProductImage)
            .where(
                ProductImage.product_id == product_id,
                ProductImage.id.in_(list(wanted)),
            )
            .with_for_update()
        )
        images = list(result.scalars().all())
        for image in images:
            image.sort_order = wanted[image.id]
        await db.flush()

    logger.info(
        "Reordered %d of %d image(s) for product %s",
        len(images),
        len(wanted),
        product_id,
    )
    return len(images)
