"""Currency exchange ledger: validation, rate history, conversion, bulk rates.

Every exchange rate is expressed against the store's base currency, so a
conversion goes through the base: ``amount / from_rate * to_rate``.

Each rate change appends ``{rate, timestamp, source, provider}`` to the
currency's ``historical_rates`` and drops entries older than the currency's
``rate_history_retention_days``.
"""

import re
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable, Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import parse_timestamp, utc_now
from libs.common.errors import NotFoundError, ValidationError, check_update_fields
from libs.common.logging import get_logger
from libs.common.money import MAX_SCALE, ZERO, quantize, to_decimal
from libs.db.session import atomic
from services.commerce_service.models import Currency, RoundingMethod
from services.commerce_service.services.singleton_flags import enforce_single_flag
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

CURRENCY_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")

SINGLETON_FLAGS = ("is_default", "is_base_currency")

CURRENCY_UPDATABLE_FIELDS = frozenset(
    {
        "code",
        "name",
        "symbol",
        "decimal_places",
        "rounding_method",
        "exchange_rate",
        "rate_source",
        "rate_provider",
        "rate_history_retention_days",
        "is_active",
        "is_default",
        "is_base_currency",
    }
)

CURRENCY_REQUIRED_FIELDS = CURRENCY_UPDATABLE_FIELDS - {
    "symbol",
    "rate_source",
    "rate_provider",
}


# ---------------------------------------------------------------------------
# Validation and derivations
# ---------------------------------------------------------------------------


def validate_currency_fields(code: str, decimal_places: int, exchange_rate: Any) -> None:
    """Raise ``ValidationError`` for a malformed code, scale or rate."""
    if not isinstance(code, str) or not CURRENCY_CODE_PATTERN.match(code):
        raise ValidationError(
            "Currency code must be 3 uppercase letters (ISO 4217 format)",
            field="code",
        )
    if decimal_places is None or not 0 <= decimal_places <= MAX_SCALE:
        raise ValidationError(
            f"Decimal places must be between 0 and {MAX_SCALE}",
            field="decimal_places",
        )
    if exchange_rate is None or to_decimal(exchange_rate) <= ZERO:
        raise ValidationError(
            "Exchange rate must be greater than 0", field="exchange_rate"
        )


def prune_rate_history(
    history: Iterable[dict], retention_days: int, now: Optional[datetime] = None
) -> list[dict]:
    """Keep only entries newer than ``retention_days`` before ``now``."""
    cutoff = (now or utc_now()) - timedelta(days=retention_days)
    return [
        entry for entry in history if parse_timestamp(entry["timestamp"]) > cutoff
    ]


def record_rate_change(currency: Currency, now: Optional[datetime] = None) -> list[dict]:
    """Append the current rate to the history, prune it and stamp the update.

    The history list is replaced rather than mutated so the JSON column is
    marked dirty.
    """
    now = now or utc_now()
    entry = {
        "rate": str(to_decimal(currency.exchange_rate)),
        "timestamp": now.isoformat(),
        "source": currency.rate_source,
        "provider": currency.rate_provider,
    }
    history = [*(currency.historical_rates or []), entry]
    currency.historical_rates = prune_rate_history(
        history, currency.rate_history_retention_days, now
    )
    currency.last_rate_update = now
    return currency.historical_rates


def apply_activation_timestamps(
    currency: Currency, was_active: Optional[bool], now: Optional[datetime] = None
) -> None:
    """Stamp activated_at / deactivated_at on an is_active edge.

    ``was_active`` is ``None`` for a new currency.
    """
    now = now or utc_now()
    if currency.is_active and not was_active:
        currency.activated_at = now
    elif not currency.is_active and was_active:
        currency.deactivated_at = now


def _rounding(currency: Currency) -> str:
    method = currency.rounding_method or RoundingMethod.ROUND
    return getattr(method, "value", method)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_currency(db: AsyncSession, currency_id: uuid.UUID) -> Currency:
    currency = await db.get(Currency, currency_id)
    if currency is None:
        raise NotFoundError(f"Currency {currency_id} not found", field="currency_id")
    return currency


async def _find_currency(
    db: AsyncSession,
    store_id: uuid.UUID,
    code: str,
    *,
    active_only: bool = False,
    lock: bool = False,
) -> Optional[Currency]:
    stmt = select(Currency).where(Currency.store_id == store_id, Currency.code == code)
    if active_only:
        stmt = stmt.where(Currency.is_active.is_(True))
    if lock:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_currencies(
    db: AsyncSession, store_id: uuid.UUID, *, active_only: bool = False
) -> list[Currency]:
    """Store currencies, default first then by code."""
    stmt = select(Currency).where(Currency.store_id == store_id)
    if active_only:
        stmt = stmt.where(Currency.is_active.is_(True))
    result = await db.execute(
        stmt.order_by(Currency.is_default.desc(), Currency.code)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Unit-of-work operations
# ---------------------------------------------------------------------------


async def create_currency(
    db: AsyncSession,
    *,
    store_id: uuid.UUID,
    code: str,
    name: str,
    exchange_rate: Any = Decimal("1"),
    decimal_places: Optional[int] = None,
    **fields: Any,
) -> Currency:
    """Add a currency to a store.

    The opening rate is the first history entry; a new active currency is
    stamped as activated.
    """
    settings = get_settings()
    if decimal_places is None:
        decimal_places = settings.DEFAULT_DECIMAL_PLACES
    validate_currency_fields(code, decimal_places, exchange_rate)

    fields.setdefault("rate_history_retention_days", settings.RATE_HISTORY_RETENTION_DAYS)
    fields.setdefault("rounding_method", RoundingMethod.ROUND)
    fields.setdefault("is_active", True)
    fields.setdefault("is_default", False)
    fields.setdefault("is_base_currency", False)

    async with atomic(db):
        if await _find_currency(db, store_id, code) is not None:
            raise ValidationError(
                f"Currency {code} already exists for this store", field="code"
            )

        now = utc_now()
        currency = Currency(
            id=uuid.uuid4(),
            store_id=store_id,
            code=code,
            name=name,
            decimal_places=decimal_places,
            exchange_rate=to_decimal(exchange_rate),
            historical_rates=[],
            **fields,
        )
        apply_activation_timestamps(currency, None, now)
        record_rate_change(currency, now)

        for flag in SINGLETON_FLAGS:
            if getattr(currency, flag):
                await enforce_single_flag(
                    db, currency, group_attr="store_id", flag_attr=flag
                )

        db.add(currency)
        await db.flush()

    await db.refresh(currency)

    logger.info(
        "Created currency %s for store %s (rate=%s, default=%s, base=%s)",
        currency.code,
        store_id,
        currency.exchange_rate,
        currency.is_default,
        currency.is_base_currency,
    )
    return currency


async def update_currency(
    db: AsyncSession,
    currency_id: uuid.UUID,
    changes: dict[str, Any],
    *,
    now: Optional[datetime] = None,
) -> Currency:
    """Apply ``changes`` to a currency, recording rate history on a rate change."""
    check_update_fields(
        changes, CURRENCY_UPDATABLE_FIELDS, CURRENCY_REQUIRED_FIELDS
    )

    now = now or utc_now()
    async with atomic(db):
        result = await db.execute(
            select(Currency)
            .where(Currency.id == currency_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        currency = result.scalar_one_or_none()
        if currency is None:
            raise NotFoundError(
                f"Currency {currency_id} not found", field="currency_id"
            )

        was_active = currency.is_active
        old_rate = currency.exchange_rate
        if "exchange_rate" in changes:
            changes = {**changes, "exchange_rate": to_decimal(changes["exchange_rate"])}

        validate_currency_fields(
            changes.get("code", currency.code),
            changes.get("decimal_places", currency.decimal_places),
            changes.get("exchange_rate", currency.exchange_rate),
        )

        for flag in SINGLETON_FLAGS:
            if changes.get(flag) and not getattr(currency, flag):
                await enforce_single_flag(
                    db, currency, group_attr="store_id", flag_attr=flag
                )

        for field, value in changes.items():
            setattr(currency, field, value)

        apply_activation_timestamps(currency, was_active, now)
        rate_changed = to_decimal(currency.exchange_rate) != to_decimal(old_rate)
        if rate_changed:
            record_rate_change(currency, now)
        await db.flush()

    await db.refresh(currency)

    if rate_changed:
        logger.info(
            "Currency %s rate %s -> %s (history=%d)",
            currency.code,
            old_rate,
            currency.exchange_rate,
            len(currency.historical_rates),
        )
    else:
        logger.info("Updated currency %s", currency.code)
    return currency


async def convert_amount(
    db: AsyncSession,
    amount: Any,
    from_code: str,
    to_code: str,
    store_id: uuid.UUID,
) -> Decimal:
    """Convert ``amount`` between two active currencies of a store.

    The result is rounded to the target currency's decimal places with its
    rounding method.
    """
    source = await _find_currency(db, store_id, from_code, active_only=True)
    target = await _find_currency(db, store_id, to_code, active_only=True)
    if source is None or target is None:
        missing = from_code if source is None else to_code
        raise NotFoundError(
            f"Currency {missing} not found or inactive",
            field="from_code" if source is None else "to_code",
        )

    base_amount = to_decimal(amount) / to_decimal(source.exchange_rate)
    converted = base_amount * to_decimal(target.exchange_rate)
    return quantize(converted, target.decimal_places, _rounding(target))


async def bulk_update_rates(
    db: AsyncSession,
    store_id: uuid.UUID,
    rates: Iterable[dict[str, Any]],
) -> int:
    """Apply many ``{code, rate, source, provider}`` entries in one transaction.

    Codes with no active currency in the store are skipped. Returns how many
    currencies matched. An invalid rate rejects the whole batch.
    """
    rates = list(rates)
    for entry in rates:
        if entry.get("rate") is None or to_decimal(entry["rate"]) <= ZERO:
            raise ValidationError(
                f"Exchange rate for {entry.get('code')} must be greater than 0",
                field="rate",
            )

    updated = 0
    skipped = []
    now = utc_now()
    async with atomic(db):
        for entry in rates:
            code = entry.get("code") or entry.get("currency_code")
            currency = await _find_currency(
                db, store_id, code, active_only=True, lock=True
            )
            if currency is None:
                skipped.append(code)
                continue

            old_rate = currency.exchange_rate
            currency.exchange_rate = to_decimal(entry["rate"])
            if entry.get("source") is not None:
                currency.rate_source = entry["source"]
            if entry.get("provider") is not None:
                currency.rate_provider = entry["provider"]
            if to_decimal(currency.exchange_rate) != to_decimal(old_rate):
                record_rate_change(currency, now)
            updated += 1
        await db.flush()

    logger.info(
        "Bulk rate update for store %s: %d updated, %d skipped%s",
        store_id,
        updated,
        len(skipped),
        f" ({', '.join(str(c) for c in skipped)})" if skipped else "",
    )
    return updated


async def get_rate_history(
    db: AsyncSession,
    store_id: uuid.UUID,
    code: str,
    days_back: Optional[int] = None,
) -> list[dict[str, Any]]:
    """Rate history entries from the last ``days_back`` days, newest first."""
    if days_back is None:
        days_back = get_settings().RATE_HISTORY_LOOKBACK_DAYS

    currency = await _find_currency(db, store_id, code)
    if currency is None:
        raise NotFoundError(f"Currency {code} not found", field="code")

    cutoff = utc_now() - timedelta(days=days_back)
    entries = []
    for entry in currency.historical_rates or []:
        timestamp = parse_timestamp(entry["timestamp"])
        if timestamp > cutoff:
            entries.append(
                {
                    "rate": to_decimal(entry["rate"]),
                    "timestamp": timestamp,
                    "source": entry.get("source"),
                    "provider": entry.get("provider"),
                }
            )
    entries.sort(key=lambda e: e["timestamp"], reverse=True)
    return entries


async def record_currency_volume(
    db: AsyncSession,
    currency_id: uuid.UUID,
    amount: Any,
    *,
    transactions: int = 1,
) -> Currency:
    """Add settled volume to a currency and refresh its average amount.

    Both figures are rounded to the currency's own decimal places.
    """
    async with atomic(db):
        result = await db.execute(
            select(Currency)
            .where(Currency.id == currency_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        currency = result.scalar_one_or_none()
        if currency is None:
            raise NotFoundError(
                f"Currency {currency_id} not found", field="currency_id"
            )

        currency.total_transactions = (currency.total_transactions or 0) + transactions
        places = currency.decimal_places
        currency.total_volume = quantize(
            to_decimal(currency.total_volume) + to_decimal(amount),
            places,
            _rounding(currency),
        )
        if currency.total_transactions > 0:
            currency.average_transaction_amount = quantize(
                currency.total_volume / currency.total_transactions,
                places,
                _rounding(currency),
            )
        else:
            currency.average_transaction_amount = ZERO
        await db.flush()

    await db.refresh(currency)

    logger.info(
        "Currency %s volume now %s over %d transaction(s)",
        currency.code,
        currency.total_volume,
        currency.total_transactions,
    )
    return currency
