"""Unit tests for edge-triggered order status timestamps."""

from datetime import datetime, timedelta, timezone

import pytest
from services.commerce_service.models import Order, OrderStatus, PaymentStatus
from services.commerce_service.services.status_timestamps import (
    apply_status_timestamps,
)

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _order(status=OrderStatus.PENDING, payment_status=PaymentStatus.PENDING):
    return Order(status=status, payment_status=payment_status)


@pytest.mark.unit
def test_paid_edge_stamps_payment_date():
    order = _order(payment_status=PaymentStatus.PAID)

    stamped = apply_status_timestamps(
        order, OrderStatus.PENDING, PaymentStatus.PENDING, now=T0
    )

    assert stamped == ["payment_date"]
    assert order.payment_date == T0
    assert order.shipped_date is None


@pytest.mark.unit
def test_no_stamp_when_status_unchanged():
    order = _order(status=OrderStatus.SHIPPED)
    order.shipped_date = T0

    stamped = apply_status_timestamps(
        order, OrderStatus.SHIPPED, PaymentStatus.PENDING, now=T0 + timedelta(hours=1)
    )

    assert stamped == []
    assert order.shipped_date == T0


@pytest.mark.unit
def test_creation_in_target_state_stamps_immediately():
    order = _order(status=OrderStatus.DELIVERED, payment_status=PaymentStatus.PAID)

    stamped = apply_status_timestamps(order, None, None, now=T0)

    assert set(stamped) == {"payment_date", "delivered_date"}
    assert order.delivered_date == T0
    assert order.payment_date == T0


@pytest.mark.unit
def test_leaving_target_state_keeps_timestamp():
    order = _order(status=OrderStatus.PROCESSING)
    order.cancelled_date = T0

    apply_status_timestamps(order, OrderStatus.CANCELLED, PaymentStatus.PENDING)

    assert order.cancelled_date == T0


@pytest.mark.unit
def test_reentering_target_state_restamps():
    order = _order(status=OrderStatus.SHIPPED)
    apply_status_timestamps(order, OrderStatus.PENDING, PaymentStatus.PENDING, now=T0)

    order.status = OrderStatus.PROCESSING
    apply_status_timestamps(order, OrderStatus.SHIPPED, PaymentStatus.PENDING)

    later = T0 + timedelta(days=2)
    order.status = OrderStatus.SHIPPED
    stamped = apply_status_timestamps(
        order, OrderStatus.PROCESSING, PaymentStatus.PENDING, now=later
    )

    assert stamped == ["shipped_date"]
    assert order.shipped_date == later


@pytest.mark.unit
def test_status_and_payment_edges_fire_together():
    order = _order(status=OrderStatus.CANCELLED, payment_status=PaymentStatus.PAID)

    stamped = apply_status_timestamps(
        order, OrderStatus.PENDING, PaymentStatus.AUTHORIZED, now=T0
    )

    assert set(stamped) == {"payment_date", "cancelled_date"}
