"""Order total aggregation: line item totals and order subtotal/total.

Every line item write runs in two phases inside one transaction:

1. the item's own ``total_price`` is derived and the item is flushed;
2. the parent order's ``subtotal`` is re-read with ``SUM()`` over its items
   and ``total_amount`` is rebuilt from it.

Lock order is always parent first: the order row is locked with
``SELECT ... FOR UPDATE``, then the line item is re-read under its own row
lock, so the item total is derived from the committed item state. Writers
to the same order serialize; writers to different orders never contend.
"""

import uuid
from typing import Any, Optional

from libs.common.config import get_settings
from libs.common.errors import NotFoundError, ValidationError, check_update_fields
from libs.common.logging import get_logger
from libs.common.money import (
    ZERO,
    add,
    clamp_non_negative,
    multiply,
    quantize,
    subtract,
    to_decimal,
)
from libs.db.session import atomic
from services.commerce_service.models import Order, OrderItem
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

ITEM_UPDATABLE_FIELDS = frozenset(
    {
        "product_id",
        "product_name",
        "product_sku",
        "variant_name",
        "unit_price",
        "quantity",
        "discount_amount",
        "status",
        "is_returnable",
        "return_period_days",
        "returned_quantity",
    }
)

ITEM_REQUIRED_FIELDS = frozenset(
    {
        "product_name",
        "unit_price",
        "quantity",
        "discount_amount",
        "status",
        "is_returnable",
        "return_period_days",
        "returned_quantity",
    }
)


# ---------------------------------------------------------------------------
# Derivations
# ---------------------------------------------------------------------------


def compute_item_total(item: OrderItem) -> OrderItem:
    """Set ``item.total_price = max(0, unit_price * quantity - discount_amount)``."""
    if item.quantity is None or item.quantity < 1:
        raise ValidationError("Quantity must be at least 1", field="quantity")
    gross = multiply(item.unit_price, item.quantity)
    item.total_price = quantize(
        clamp_non_negative(subtract(gross, item.discount_amount))
    )
    return item


async def recompute_order_totals(db: AsyncSession, order: Order) -> Order:
    """Rebuild subtotal and total_amount from the items stored for ``order``.

    Must run after the triggering item write has been flushed. Only the two
    derived columns are touched.
    """
    result = await db.execute(
        select(func.coalesce(func.sum(OrderItem.total_price), 0)).where(
            OrderItem.order_id == order.id
        )
    )
    subtotal = quantize(to_decimal(result.scalar_one()))

    total = add(subtotal, order.tax_amount, order.shipping_cost)
    order.subtotal = subtotal
    order.total_amount = quantize(
        clamp_non_negative(subtract(total, order.discount_amount))
    )
    await db.flush()
    return order


async def lock_order(db: AsyncSession, order_id: uuid.UUID) -> Order:
    """Load an order with ``SELECT ... FOR UPDATE``."""
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFoundError(f"Order {order_id} not found", field="order_id")
    return order


async def _get_item(db: AsyncSession, item_id: uuid.UUID) -> OrderItem:
    item = await db.get(OrderItem, item_id)
    if item is None:
        raise NotFoundError(f"Order item {item_id} not found", field="item_id")
    return item


async def _lock_item(
    db: AsyncSession, item_id: uuid.UUID
) -> tuple[Order, OrderItem]:
    """Lock the parent order, then re-read the item under its own row lock."""
    item = await _get_item(db, item_id)
    order = await lock_order(db, item.order_id)
    result = await db.execute(
        select(OrderItem)
        .where(OrderItem.id == item_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFoundError(f"Order item {item_id} not found", field="item_id")
    return order, item


# ---------------------------------------------------------------------------
# Line item operations
# ---------------------------------------------------------------------------


async def add_order_item(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    product_name: str,
    unit_price: Any,
    quantity: int = 1,
    discount_amount: Any = ZERO,
    **fields: Any,
) -> OrderItem:
    """Add a line item to an order and refresh the order totals."""
    fields.setdefault("return_period_days", get_settings().DEFAULT_RETURN_PERIOD_DAYS)
    async with atomic(db):
        order = await lock_order(db, order_id)
        item = OrderItem(
            order_id=order.id,
            store_id=order.store_id,
            product_name=product_name,
            unit_price=to_decimal(unit_price),
            quantity=quantity,
            discount_amount=to_decimal(discount_amount),
            **fields,
        )
        compute_item_total(item)
        db.add(item)
        await db.flush()

        await recompute_order_totals(db, order)

    await db.refresh(item)
    await db.refresh(order)

    logger.info(
        "Added item %s to order %s (item_total=%s, order_total=%s)",
        item.id,
        order.order_number,
        item.total_price,
        order.total_amount,
    )
    return item


async def update_order_item(
    db: AsyncSession,
    item_id: uuid.UUID,
    changes: dict[str, Any],
) -> OrderItem:
    """Apply ``changes`` to a line item and refresh the order totals."""
    check_update_fields(changes, ITEM_UPDATABLE_FIELDS, ITEM_REQUIRED_FIELDS)

    async with atomic(db):
        order, item = await _lock_item(db, item_id)

        for field, value in changes.items():
            if field in ("unit_price", "discount_amount"):
                value = to_decimal(value)
            setattr(item, field, value)

        compute_item_total(item)
        await db.flush()

        await recompute_order_totals(db, order)

    await db.refresh(item)
    await db.refresh(order)

    logger.info(
        "Updated item %s on order %s (item_total=%s, order_total=%s)",
        item.id,
        order.order_number,
        item.total_price,
        order.total_amount,
    )
    return item


async def delete_order_item(db: AsyncSession, item_id: uuid.UUID) -> Order:
    """Delete a line item; returns the parent order with refreshed totals."""
    async with atomic(db):
        order, item = await _lock_item(db, item_id)

        await db.delete(item)
        await db.flush()

        await recompute_order_totals(db, order)

    await db.refresh(order)

    logger.info(
        "Deleted item %s from order %s (order_total=%s)",
        item_id,
        order.order_number,
        order.total_amount,
    )
    return order


async def get_order_item(
    db: AsyncSession, item_id: uuid.UUID, order_id: Optional[uuid.UUID] = None
) -> OrderItem:
    """Fetch a line item, optionally checking it belongs to ``order_id``."""
    item = await _get_item(db, item_id)
    if order_id is not None and item.order_id != order_id:
        raise NotFoundError(
            f"Order item {item_id} not found on order {order_id}", field="item_id"
        )
    return item
