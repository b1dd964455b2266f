"""Currency and exchange rate endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.db.session import get_async_db
from services.commerce_service.schemas import (
    BulkRatesRequest,
    BulkRatesResponse,
    ConvertRequest,
    ConvertResponse,
    CurrencyCreate,
    CurrencyResponse,
    CurrencyUpdate,
    RateHistoryEntry,
    VolumeRequest,
)
from services.commerce_service.services.exchange_ledger import (
    bulk_update_rates,
    convert_amount,
    create_currency,
    get_currency,
    get_rate_history,
    list_currencies,
    record_currency_volume,
    update_currency,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/commerce/currencies", tags=["currencies"])


@router.post("", response_model=CurrencyResponse, status_code=status.HTTP_201_CREATED)
async def create_currency_endpoint(
    payload: CurrencyCreate,
    db: AsyncSession = Depends(get_async_db),
):
    return await create_currency(db, **payload.model_dump(exclude_none=True))


@router.get("", response_model=list[CurrencyResponse])
async def list_currencies_endpoint(
    store_id: uuid.UUID = Query(...),
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_currencies(db, store_id, active_only=active_only)


@router.post("/convert", response_model=ConvertResponse)
async def convert_endpoint(
    payload: ConvertRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Convert an amount between two active store currencies."""
    converted = await convert_amount(
        db, payload.amount, payload.from_code, payload.to_code, payload.store_id
    )
    return ConvertResponse(
        amount=payload.amount,
        from_code=payload.from_code,
        to_code=payload.to_code,
        converted_amount=converted,
    )


@router.post("/rates", response_model=BulkRatesResponse)
async def bulk_rates_endpoint(
    payload: BulkRatesRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Apply a batch of rates. Unknown or inactive codes are skipped."""
    updated = await bulk_update_rates(
        db, payload.store_id, [entry.model_dump() for entry in payload.rates]
    )
    return BulkRatesResponse(updated=updated)


@router.get("/history/{code}", response_model=list[RateHistoryEntry])
async def rate_history_endpoint(
    code: str,
    store_id: uuid.UUID = Query(...),
    days_back: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_async_db),
):
    return await get_rate_history(db, store_id, code, days_back)


@router.get("/{currency_id}", response_model=CurrencyResponse)
async def get_currency_endpoint(
    currency_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    return await get_currency(db, currency_id)


@router.patch("/{currency_id}", response_model=CurrencyResponse)
async def update_currency_endpoint(
    currency_id: uuid.UUID,
    payload: CurrencyUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    return await update_currency(
        db, currency_id, payload.model_dump(exclude_unset=True)
    )


@router.post("/{currency_id}/volume", response_model=CurrencyResponse)
async def record_volume_endpoint(
    currency_id: uuid.UUID,
    payload: VolumeRequest,
    db: AsyncSession = Depends(get_async_db),
):
    return await record_currency_volume(
        db, currency_id, payload.amount, transactions=payload.transactions
    )
