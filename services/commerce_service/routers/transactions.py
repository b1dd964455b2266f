"""Transaction endpoints."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.db.session import get_async_db
from services.commerce_service.schemas import (
    ReconcileRequest,
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
)
from services.commerce_service.services.settlement import (
    create_transaction,
    get_transaction,
    reconcile_transaction,
    update_transaction,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/commerce/transactions", tags=["transactions"])


@router.post(
    "", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED
)
async def create_transaction_endpoint(
    payload: TransactionCreate,
    db: AsyncSession = Depends(get_async_db),
):
    """Record a transaction. net_amount is derived when omitted."""
    data = payload.model_dump(exclude_none=True)
    return await create_transaction(db, **data)


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction_endpoint(
    transaction_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    return await get_transaction(db, transaction_id)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction_endpoint(
    transaction_id: uuid.UUID,
    payload: TransactionUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    return await update_transaction(
        db, transaction_id, payload.model_dump(exclude_unset=True)
    )


@router.post("/{transaction_id}/reconcile", response_model=TransactionResponse)
async def reconcile_transaction_endpoint(
    transaction_id: uuid.UUID,
    payload: ReconcileRequest,
    db: AsyncSession = Depends(get_async_db),
):
    return await reconcile_transaction(
        db, transaction_id, reference=payload.reference
    )
