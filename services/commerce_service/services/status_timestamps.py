"""Edge-triggered status timestamps for orders.

A timestamp is stamped when its status changes *into* the target value
(``old != target and new == target``). Creation counts as a change from no
status at all. Timestamps are never cleared; re-entering a target status
overwrites the previous stamp with the latest occurrence.
"""

from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from services.commerce_service.models import Order, OrderStatus, PaymentStatus

# (attribute watched, target value, timestamp attribute)
STATUS_TIMESTAMP_RULES: tuple[tuple[str, str, str], ...] = (
    ("payment_status", PaymentStatus.PAID.value, "payment_date"),
    ("status", OrderStatus.SHIPPED.value, "shipped_date"),
    ("status", OrderStatus.DELIVERED.value, "delivered_date"),
    ("status", OrderStatus.CANCELLED.value, "cancelled_date"),
)


def _value(status) -> Optional[str]:
    if status is None:
        return None
    return getattr(status, "value", status)


def apply_status_timestamps(
    order: Order,
    old_status: Optional[OrderStatus],
    old_payment_status: Optional[PaymentStatus],
    now: Optional[datetime] = None,
) -> list[str]:
    """Stamp the event dates whose status edge fired; return the stamped fields.

    Pass ``None`` for both old values when the order is being created.
    """
    now = now or utc_now()
    previous = {"status": _value(old_status), "payment_status": _value(old_payment_status)}

    stamped = []
    for attribute, target, timestamp_field in STATUS_TIMESTAMP_RULES:
        new_value = _value(getattr(order, attribute))
        if new_value == target and previous[attribute] != target:
            setattr(order, timestamp_field, now)
            stamped.append(timestamp_field)
    return stamped
