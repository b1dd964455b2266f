"""Unit tests for the currency exchange ledger."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from libs.common.errors import NotFoundError, ValidationError
from services.commerce_service.models import Currency, RoundingMethod
from services.commerce_service.services.exchange_ledger import (
    bulk_update_rates,
    convert_amount,
    create_currency,
    get_rate_history,
    prune_rate_history,
    record_currency_volume,
    update_currency,
    validate_currency_fields,
)
from sqlalchemy import func, select
from tests.factories import CurrencyFactory, rate_entry

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _make_usd_sar(db, store_id):
    """USD as the base currency (rate 1) and SAR at 3.75."""
    usd = await create_currency(
        db,
        store_id=store_id,
        code="USD",
        name="US Dollar",
        exchange_rate=Decimal("1"),
        is_base_currency=True,
    )
    sar = await create_currency(
        db,
        store_id=store_id,
        code="SAR",
        name="Saudi Riyal",
        exchange_rate=Decimal("3.75"),
        is_default=True,
    )
    return usd, sar


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "code, places, rate, field",
    [
        ("usd", 2, "1", "code"),
        ("US", 2, "1", "code"),
        ("USDT", 2, "1", "code"),
        ("USD", 9, "1", "decimal_places"),
        ("USD", -1, "1", "decimal_places"),
        ("USD", 2, "0", "exchange_rate"),
        ("USD", 2, "-3.75", "exchange_rate"),
    ],
)
def test_validate_currency_fields_rejects(code, places, rate, field):
    with pytest.raises(ValidationError) as exc_info:
        validate_currency_fields(code, places, Decimal(rate))

    assert exc_info.value.field == field


@pytest.mark.unit
def test_validate_currency_fields_accepts_bounds():
    validate_currency_fields("JPY", 0, Decimal("0.00000001"))
    validate_currency_fields("BTC", 8, Decimal("1"))


@pytest.mark.asyncio
@pytest.mark.unit
async def test_invalid_currency_is_not_persisted(db_session, store_id):
    with pytest.raises(ValidationError):
        await create_currency(
            db_session, store_id=store_id, code="sar", name="Saudi Riyal"
        )

    count = await db_session.scalar(select(func.count()).select_from(Currency))
    assert count == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_duplicate_code_rejected(db_session, store_id):
    await create_currency(db_session, store_id=store_id, code="SAR", name="Riyal")

    with pytest.raises(ValidationError):
        await create_currency(db_session, store_id=store_id, code="SAR", name="Riyal")


# ---------------------------------------------------------------------------
# Activation and rate history
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_new_currency_records_opening_rate(db_session, store_id):
    currency = await create_currency(
        db_session,
        store_id=store_id,
        code="EUR",
        name="Euro",
        exchange_rate=Decimal("0.92"),
        rate_source="manual",
    )

    assert currency.activated_at is not None
    assert currency.last_rate_update is not None
    assert len(currency.historical_rates) == 1
    assert Decimal(currency.historical_rates[0]["rate"]) == Decimal("0.92")
    assert currency.historical_rates[0]["source"] == "manual"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_deactivation_and_reactivation_stamped(db_session, store_id):
    currency = await create_currency(
        db_session, store_id=store_id, code="EUR", name="Euro"
    )

    currency = await update_currency(db_session, currency.id, {"is_active": False})
    assert currency.deactivated_at is not None

    first_activation = currency.activated_at
    currency = await update_currency(db_session, currency.id, {"is_active": True})
    assert currency.activated_at != first_activation


@pytest.mark.asyncio
@pytest.mark.unit
async def test_same_rate_does_not_grow_history(db_session, store_id):
    currency = await create_currency(
        db_session, store_id=store_id, code="EUR", name="Euro", exchange_rate="0.92"
    )

    currency = await update_currency(
        db_session, currency.id, {"exchange_rate": Decimal("0.92"), "symbol": "€"}
    )

    assert len(currency.historical_rates) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rate_change_prunes_history_to_retention(db_session, store_id):
    """Entries older than the retention window are dropped on the next change."""
    currency = CurrencyFactory.create(
        store_id=store_id,
        code="SAR",
        exchange_rate=Decimal("3.72"),
        rate_history_retention_days=365,
        historical_rates=[rate_entry("3.70", days_ago=400), rate_entry("3.72", days_ago=10)],
    )
    db_session.add(currency)
    await db_session.commit()

    currency = await update_currency(
        db_session, currency.id, {"exchange_rate": Decimal("3.75")}
    )

    rates = [Decimal(entry["rate"]) for entry in currency.historical_rates]
    assert rates == [Decimal("3.72"), Decimal("3.75")]


@pytest.mark.unit
def test_prune_rate_history_keeps_recent_entries():
    now = datetime(2026, 1, 31, tzinfo=timezone.utc)
    history = [
        {"rate": "1", "timestamp": (now - timedelta(days=31)).isoformat()},
        {"rate": "2", "timestamp": (now - timedelta(days=29)).isoformat()},
    ]

    assert [e["rate"] for e in prune_rate_history(history, 30, now)] == ["2"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rate_history_newest_first_within_window(db_session, store_id):
    currency = CurrencyFactory.create(
        store_id=store_id,
        code="EUR",
        exchange_rate=Decimal("0.93"),
        historical_rates=[
            rate_entry("0.90", days_ago=45),
            rate_entry("0.91", days_ago=20),
            rate_entry("0.93", days_ago=2),
        ],
    )
    db_session.add(currency)
    await db_session.commit()

    history = await get_rate_history(db_session, store_id, "EUR", days_back=30)

    assert [entry["rate"] for entry in history] == [Decimal("0.93"), Decimal("0.91")]
    assert history[0]["timestamp"] > history[1]["timestamp"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rate_history_unknown_currency(db_session, store_id):
    with pytest.raises(NotFoundError):
        await get_rate_history(db_session, store_id, "XYZ")


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_convert_usd_to_sar(db_session, store_id):
    await _make_usd_sar(db_session, store_id)

    converted = await convert_amount(db_session, Decimal("100"), "USD", "SAR", store_id)

    assert converted == Decimal("375.00")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_convert_goes_through_base_currency(db_session, store_id):
    await _make_usd_sar(db_session, store_id)

    converted = await convert_amount(db_session, Decimal("375"), "SAR", "USD", store_id)

    assert converted == Decimal("100.00")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_convert_inactive_currency_fails(db_session, store_id):
    _, sar = await _make_usd_sar(db_session, store_id)
    await update_currency(db_session, sar.id, {"is_active": False})

    with pytest.raises(NotFoundError):
        await convert_amount(db_session, Decimal("100"), "USD", "SAR", store_id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_convert_other_store_currency_fails(db_session, store_id):
    await _make_usd_sar(db_session, store_id)

    with pytest.raises(NotFoundError):
        await convert_amount(db_session, Decimal("100"), "USD", "SAR", uuid.uuid4())


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "method, expected",
    [
        (RoundingMethod.ROUND, Decimal("152")),
        (RoundingMethod.FLOOR, Decimal("151")),
        (RoundingMethod.CEIL, Decimal("152")),
    ],
)
async def test_convert_uses_target_rounding(db_session, store_id, method, expected):
    """1.01 USD at 150 JPY is 151.5; JPY has no minor unit."""
    await _make_usd_sar(db_session, store_id)
    await create_currency(
        db_session,
        store_id=store_id,
        code="JPY",
        name="Yen",
        exchange_rate=Decimal("150"),
        decimal_places=0,
        rounding_method=method,
    )

    converted = await convert_amount(db_session, Decimal("1.01"), "USD", "JPY", store_id)

    assert converted == expected


# ---------------------------------------------------------------------------
# Bulk rates
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_bulk_update_skips_unknown_codes(db_session, store_id):
    usd, sar = await _make_usd_sar(db_session, store_id)

    updated = await bulk_update_rates(
        db_session,
        store_id,
        [
            {"code": "SAR", "rate": Decimal("3.76"), "source": "api", "provider": "ecb"},
            {"code": "USD", "rate": Decimal("1")},
            {"code": "GBP", "rate": Decimal("0.79")},
        ],
    )

    assert updated == 2
    await db_session.refresh(sar)
    assert sar.exchange_rate == Decimal("3.76")
    assert sar.rate_provider == "ecb"
    assert len(sar.historical_rates) == 2
    await db_session.refresh(usd)
    assert len(usd.historical_rates) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_bulk_update_ignores_inactive(db_session, store_id):
    _, sar = await _make_usd_sar(db_session, store_id)
    await update_currency(db_session, sar.id, {"is_active": False})

    updated = await bulk_update_rates(
        db_session, store_id, [{"code": "SAR", "rate": Decimal("3.80")}]
    )

    assert updated == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_bulk_update_rejects_whole_batch_on_bad_rate(db_session, store_id):
    _, sar = await _make_usd_sar(db_session, store_id)
    sar_id = sar.id

    with pytest.raises(ValidationError):
        await bulk_update_rates(
            db_session,
            store_id,
            [{"code": "SAR", "rate": Decimal("3.80")}, {"code": "USD", "rate": Decimal("0")}],
        )

    stored = await db_session.get(Currency, sar_id)
    assert stored.exchange_rate == Decimal("3.75")


# ---------------------------------------------------------------------------
# Default / base flags
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_single_default_currency_per_store(db_session, store_id):
    _, sar = await _make_usd_sar(db_session, store_id)

    eur = await create_currency(
        db_session, store_id=store_id, code="EUR", name="Euro", is_default=True
    )

    await db_session.refresh(sar)
    assert eur.is_default is True
    assert sar.is_default is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_single_base_currency_per_store(db_session, store_id):
    usd, sar = await _make_usd_sar(db_session, store_id)

    await update_currency(db_session, sar.id, {"is_base_currency": True})

    base_count = await db_session.scalar(
        select(func.count())
        .select_from(Currency)
        .where(Currency.store_id == store_id, Currency.is_base_currency.is_(True))
    )
    assert base_count == 1
    await db_session.refresh(usd)
    assert usd.is_base_currency is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_default_flags_are_per_store(db_session, store_id):
    await _make_usd_sar(db_session, store_id)
    other_store = uuid.uuid4()

    other = await create_currency(
        db_session, store_id=other_store, code="SAR", name="Riyal", is_default=True
    )

    default_count = await db_session.scalar(
        select(func.count()).select_from(Currency).where(Currency.is_default.is_(True))
    )
    assert other.is_default is True
    assert default_count == 2


# ---------------------------------------------------------------------------
# Volume metrics
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_record_volume_updates_average(db_session, store_id):
    _, sar = await _make_usd_sar(db_session, store_id)

    await record_currency_volume(db_session, sar.id, Decimal("100"))
    sar = await record_currency_volume(db_session, sar.id, Decimal("50"))

    assert sar.total_transactions == 2
    assert sar.total_volume == Decimal("150")
    assert sar.average_transaction_amount == Decimal("75")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_record_volume_uses_currency_decimal_places(db_session, store_id):
    kwd = await create_currency(
        db_session,
        store_id=store_id,
        code="KWD",
        name="Kuwaiti Dinar",
        exchange_rate=Decimal("0.307"),
        decimal_places=3,
    )

    await record_currency_volume(db_session, kwd.id, Decimal("10.1234"))
    kwd = await record_currency_volume(db_session, kwd.id, Decimal("5"))

    assert kwd.total_volume == Decimal("15.123")
    assert kwd.average_transaction_amount == Decimal("7.562")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_rejects_null_name(db_session, store_id):
    _, sar = await _make_usd_sar(db_session, store_id)

    with pytest.raises(ValidationError) as exc_info:
        await update_currency(db_session, sar.id, {"name": None})

    assert exc_info.value.field == "name"
