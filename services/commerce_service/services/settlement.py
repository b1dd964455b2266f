"""Transaction settlement: net amount derivation and processing timestamps."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from libs.common.datetime_utils import utc_now
from libs.common.errors import NotFoundError, check_update_fields
from libs.common.logging import get_logger
from libs.common.money import subtract, to_decimal
from libs.db.session import atomic
from services.commerce_service.models import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

FEE_FIELDS = ("amount", "gateway_fee", "platform_fee", "tax_amount")

TRANSACTION_UPDATABLE_FIELDS = frozenset(
    {
        "transaction_status",
        "amount",
        "gateway_fee",
        "platform_fee",
        "tax_amount",
        "net_amount",
        "reference_number",
        "payment_method",
        "payment_gateway",
        "description",
    }
)

TRANSACTION_REQUIRED_FIELDS = frozenset({"transaction_status", *FEE_FIELDS})


def derive_net_amount(
    amount: Any, gateway_fee: Any = None, platform_fee: Any = None, tax_amount: Any = None
) -> Decimal:
    """``amount - gateway_fee - platform_fee - tax_amount``.

    Not clamped: fees larger than the gross amount give a negative net.
    """
    return subtract(amount, gateway_fee, platform_fee, tax_amount)


def apply_settlement(
    txn: Transaction,
    old_status: Optional[TransactionStatus],
    *,
    net_supplied: bool,
    amounts_changed: bool = True,
    now: Optional[datetime] = None,
) -> list[str]:
    """Derive the settlement fields on ``txn``; return the names written.

    ``old_status`` is ``None`` for a new transaction. ``processed_at`` is only
    stamped on an update that moves the transaction into ``completed``.
    """
    written = []

    if not net_supplied and (txn.net_amount is None or amounts_changed):
        txn.net_amount = derive_net_amount(
            txn.amount, txn.gateway_fee, txn.platform_fee, txn.tax_amount
        )
        written.append("net_amount")

    if (
        old_status is not None
        and old_status != TransactionStatus.COMPLETED
        and txn.transaction_status == TransactionStatus.COMPLETED
    ):
        txn.processed_at = now or utc_now()
        written.append("processed_at")

    return written


# ---------------------------------------------------------------------------
# Unit-of-work operations
# ---------------------------------------------------------------------------


async def _lock_transaction(db: AsyncSession, transaction_id: uuid.UUID) -> Transaction:
    result = await db.execute(
        select(Transaction)
        .where(Transaction.id == transaction_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    txn = result.scalar_one_or_none()
    if txn is None:
        raise NotFoundError(
            f"Transaction {transaction_id} not found", field="transaction_id"
        )
    return txn


async def get_transaction(db: AsyncSession, transaction_id: uuid.UUID) -> Transaction:
    txn = await db.get(Transaction, transaction_id)
    if txn is None:
        raise NotFoundError(
            f"Transaction {transaction_id} not found", field="transaction_id"
        )
    return txn


async def create_transaction(
    db: AsyncSession,
    *,
    store_id: uuid.UUID,
    transaction_number: str,
    transaction_type: TransactionType,
    amount: Any,
    net_amount: Any = None,
    **fields: Any,
) -> Transaction:
    """Record a new transaction, deriving ``net_amount`` when not supplied."""
    for field in FEE_FIELDS[1:]:
        fields[field] = to_decimal(fields.get(field))

    async with atomic(db):
        txn = Transaction(
            store_id=store_id,
            transaction_number=transaction_number,
            transaction_type=transaction_type,
            amount=to_decimal(amount),
            net_amount=to_decimal(net_amount) if net_amount is not None else None,
            **fields,
        )
        if txn.transaction_status is None:
            txn.transaction_status = TransactionStatus.PENDING
        apply_settlement(txn, None, net_supplied=net_amount is not None)
        db.add(txn)
        await db.flush()

    await db.refresh(txn)

    logger.info(
        "Recorded %s transaction %s (amount=%s, net=%s %s)",
        txn.transaction_type.value,
        txn.transaction_number,
        txn.amount,
        txn.net_amount,
        txn.currency_code,
    )
    return txn


async def update_transaction(
    db: AsyncSession,
    transaction_id: uuid.UUID,
    changes: dict[str, Any],
    *,
    now: Optional[datetime] = None,
) -> Transaction:
    """Apply ``changes``; re-derive the net when amounts move without one."""
    check_update_fields(
        changes, TRANSACTION_UPDATABLE_FIELDS, TRANSACTION_REQUIRED_FIELDS
    )

    async with atomic(db):
        txn = await _lock_transaction(db, transaction_id)
        old_status = txn.transaction_status

        amounts_changed = False
        for field, value in changes.items():
            if field in FEE_FIELDS:
                value = to_decimal(value)
                amounts_changed = amounts_changed or value != getattr(txn, field)
            elif field == "net_amount" and value is not None:
                value = to_decimal(value)
            setattr(txn, field, value)

        written = apply_settlement(
            txn,
            old_status,
            net_supplied=changes.get("net_amount") is not None,
            amounts_changed=amounts_changed,
            now=now,
        )
        await db.flush()

    await db.refresh(txn)

    logger.info(
        "Updated transaction %s (status=%s, derived=%s)",
        txn.transaction_number,
        txn.transaction_status.value,
        ", ".join(written) or "none",
    )
    return txn


async def reconcile_transaction(
    db: AsyncSession,
    transaction_id: uuid.UUID,
    *,
    reference: Optional[str] = None,
) -> Transaction:
    """Mark a transaction as matched against a bank statement."""
    async with atomic(db):
        txn = await _lock_transaction(db, transaction_id)
        txn.reconciled = True
        txn.reconciled_at = utc_now()
        txn.reconciliation_reference = reference
        await db.flush()

    await db.refresh(txn)

    logger.info(
        "Reconciled transaction %s (reference=%s)", txn.transaction_number, reference
    )
    return txn
