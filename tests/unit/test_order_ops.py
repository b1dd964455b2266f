"""Unit tests for order lifecycle operations and return eligibility."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from libs.common.datetime_utils import ensure_utc
from libs.common.errors import NotFoundError, ValidationError
from services.commerce_service.models import OrderStatus, PaymentStatus
from services.commerce_service.services.order_ops import (
    can_item_be_returned,
    create_order,
    get_order,
    update_order,
)
from tests.factories import OrderFactory, OrderItemFactory

T0 = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


async def _make_order(db, store_id, **fields):
    return await create_order(
        db,
        store_id=store_id,
        order_number=f"ORD-{uuid.uuid4().hex[:8]}",
        items=[{"product_name": "Widget", "unit_price": Decimal("12.00")}],
        **fields,
    )


# ---------------------------------------------------------------------------
# Status timestamps through update_order
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_shipped_date_restamped_on_reentry(db_session, store_id):
    """pending -> shipped -> processing -> shipped keeps the latest shipment."""
    order = await _make_order(db_session, store_id)
    assert order.shipped_date is None

    first = T0
    second = T0 + timedelta(days=3)

    order = await update_order(
        db_session, order.id, {"status": OrderStatus.SHIPPED}, now=first
    )
    assert ensure_utc(order.shipped_date) == first

    order = await update_order(
        db_session, order.id, {"status": OrderStatus.PROCESSING}, now=T0 + timedelta(days=1)
    )
    assert ensure_utc(order.shipped_date) == first

    order = await update_order(
        db_session, order.id, {"status": OrderStatus.SHIPPED}, now=second
    )
    assert ensure_utc(order.shipped_date) == second


@pytest.mark.asyncio
@pytest.mark.unit
async def test_payment_date_stamped_once_per_edge(db_session, store_id):
    order = await _make_order(db_session, store_id)

    order = await update_order(
        db_session, order.id, {"payment_status": PaymentStatus.PAID}, now=T0
    )
    order = await update_order(
        db_session,
        order.id,
        {"notes": "gift wrap", "payment_status": PaymentStatus.PAID},
        now=T0 + timedelta(hours=5),
    )

    assert ensure_utc(order.payment_date) == T0
    assert order.notes == "gift wrap"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_created_delivered_is_stamped(db_session, store_id):
    order = await _make_order(db_session, store_id, status=OrderStatus.DELIVERED)

    assert order.delivered_date is not None
    assert order.shipped_date is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_rejects_derived_fields(db_session, store_id):
    order = await _make_order(db_session, store_id)

    with pytest.raises(ValidationError) as exc_info:
        await update_order(db_session, order.id, {"total_amount": Decimal("1.00")})

    assert exc_info.value.field == "total_amount"


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize("field", ["status", "payment_status", "tax_amount"])
async def test_update_rejects_null_required_field(db_session, store_id, field):
    order = await _make_order(db_session, store_id, tax_amount=Decimal("2.00"))

    with pytest.raises(ValidationError) as exc_info:
        await update_order(db_session, order.id, {field: None})

    assert exc_info.value.field == field
    order = await get_order(db_session, order.id)
    assert order.status == OrderStatus.PENDING
    assert order.total_amount == Decimal("14.00")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_order_missing(db_session):
    with pytest.raises(NotFoundError):
        await get_order(db_session, uuid.uuid4())


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_order_uses_default_currency(db_session, store_id):
    order = await _make_order(db_session, store_id)

    assert order.currency == "SAR"
    assert order.items[0].return_period_days == 14


# ---------------------------------------------------------------------------
# can_item_be_returned
# ---------------------------------------------------------------------------


def _delivered_order(days_ago: int):
    return OrderFactory.create(
        status=OrderStatus.DELIVERED, delivered_date=T0 - timedelta(days=days_ago)
    )


@pytest.mark.unit
def test_item_returnable_within_period():
    order = _delivered_order(days_ago=10)
    item = OrderItemFactory.create(order_id=order.id, quantity=2)

    assert can_item_be_returned(item, order, now=T0) is True


@pytest.mark.unit
def test_item_returnable_on_last_day():
    order = _delivered_order(days_ago=14)
    item = OrderItemFactory.create(order_id=order.id, return_period_days=14)

    assert can_item_be_returned(item, order, now=T0) is True


@pytest.mark.unit
def test_item_not_returnable_after_period():
    order = _delivered_order(days_ago=15)
    item = OrderItemFactory.create(order_id=order.id, return_period_days=14)

    assert can_item_be_returned(item, order, now=T0) is False


@pytest.mark.unit
def test_item_not_returnable_before_delivery():
    order = OrderFactory.create(status=OrderStatus.SHIPPED)
    item = OrderItemFactory.create(order_id=order.id)

    assert can_item_be_returned(item, order, now=T0) is False


@pytest.mark.unit
def test_item_not_returnable_when_flag_off():
    order = _delivered_order(days_ago=1)
    item = OrderItemFactory.create(order_id=order.id, is_returnable=False)

    assert can_item_be_returned(item, order, now=T0) is False


@pytest.mark.unit
def test_item_not_returnable_when_fully_returned():
    order = _delivered_order(days_ago=1)
    item = OrderItemFactory.create(order_id=order.id, quantity=2, returned_quantity=2)

    assert can_item_be_returned(item, order, now=T0) is False
