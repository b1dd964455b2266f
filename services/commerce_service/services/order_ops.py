"""Order lifecycle operations: create, update, fetch, return eligibility."""

import uuid
from datetime import datetime
from typing import Any, Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.errors import NotFoundError, check_update_fields
from libs.common.logging import get_logger
from libs.common.money import to_decimal
from libs.db.session import atomic
from services.commerce_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from services.commerce_service.services.order_totals import (
    compute_item_total,
    lock_order,
    recompute_order_totals,
)
from services.commerce_service.services.status_timestamps import (
    apply_status_timestamps,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

MONEY_FIELDS = ("tax_amount", "shipping_cost", "discount_amount")

# subtotal and total_amount are derived and never written directly
ORDER_UPDATABLE_FIELDS = frozenset(
    {
        "status",
        "payment_status",
        "payment_method",
        "payment_gateway",
        "tax_amount",
        "shipping_cost",
        "discount_amount",
        "currency",
        "customer_id",
        "customer_name",
        "customer_email",
        "customer_phone",
        "shipping_address",
        "tracking_number",
        "reference_id",
        "notes",
    }
)

ORDER_REQUIRED_FIELDS = frozenset(
    {"status", "payment_status", "currency", *MONEY_FIELDS}
)


def _check_fields(changes: dict[str, Any]) -> None:
    check_update_fields(changes, ORDER_UPDATABLE_FIELDS, ORDER_REQUIRED_FIELDS)


async def create_order(
    db: AsyncSession,
    *,
    store_id: uuid.UUID,
    order_number: str,
    items: Optional[list[dict[str, Any]]] = None,
    **fields: Any,
) -> Order:
    """Create an order with its line items in one transaction.

    Status dates are stamped for an order created directly in a target
    status (e.g. imported already shipped).
    """
    _check_fields(fields)
    for field in MONEY_FIELDS:
        if field in fields:
            fields[field] = to_decimal(fields[field])
    fields.setdefault("currency", get_settings().DEFAULT_CURRENCY_CODE)

    async with atomic(db):
        order = Order(store_id=store_id, order_number=order_number, **fields)
        if order.status is None:
            order.status = OrderStatus.PENDING
        if order.payment_status is None:
            order.payment_status = PaymentStatus.PENDING
        apply_status_timestamps(order, None, None)
        db.add(order)
        await db.flush()

        for item_data in items or []:
            item_data = dict(item_data)
            item_data.setdefault("quantity", 1)
            item_data.setdefault(
                "return_period_days", get_settings().DEFAULT_RETURN_PERIOD_DAYS
            )
            item = OrderItem(
                order_id=order.id,
                store_id=store_id,
                unit_price=to_decimal(item_data.pop("unit_price", None)),
                discount_amount=to_decimal(item_data.pop("discount_amount", None)),
                **item_data,
            )
            compute_item_total(item)
            db.add(item)
        await db.flush()

        await recompute_order_totals(db, order)

    await db.refresh(order)

    logger.info(
        "Created order %s for store %s (items=%d, total=%s %s)",
        order.order_number,
        store_id,
        len(order.items),
        order.total_amount,
        order.currency,
    )
    return order


async def get_order(db: AsyncSession, order_id: uuid.UUID) -> Order:
    """Fetch an order with its items."""
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFoundError(f"Order {order_id} not found", field="order_id")
    return order


async def update_order(
    db: AsyncSession,
    order_id: uuid.UUID,
    changes: dict[str, Any],
    *,
    now: Optional[datetime] = None,
) -> Order:
    """Apply ``changes`` to an order.

    Status edges stamp their event dates; tax, shipping or discount changes
    rebuild the total from the stored items.
    """
    _check_fields(changes)

    async with atomic(db):
        order = await lock_order(db, order_id)
        old_status = order.status
        old_payment_status = order.payment_status

        for field, value in changes.items():
            if field in MONEY_FIELDS:
                value = to_decimal(value)
            setattr(order, field, value)

        stamped = apply_status_timestamps(order, old_status, old_payment_status, now)
        await db.flush()

        if any(field in changes for field in MONEY_FIELDS):
            await recompute_order_totals(db, order)

    await db.refresh(order)

    if stamped:
        logger.info(
            "Order %s moved to %s/%s, stamped %s",
            order.order_number,
            order.status.value,
            order.payment_status.value,
            ", ".join(stamped),
        )
    else:
        logger.info("Updated order %s", order.order_number)
    return order


def can_item_be_returned(
    item: OrderItem, order: Order, now: Optional[datetime] = None
) -> bool:
    """Whether ``item`` is still eligible for a return.

    The item must be returnable and not fully returned, and the order must be
    delivered no more than ``return_period_days`` whole days ago.
    """
    if not item.is_returnable:
        return False

    if order.status != OrderStatus.DELIVERED or order.delivered_date is None:
        return False

    now = now or utc_now()
    days_since_delivery = (now - ensure_utc(order.delivered_date)).days
    if days_since_delivery > item.return_period_days:
        return False

    return (item.returned_quantity or 0) < item.quantity
