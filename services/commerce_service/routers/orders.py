"""Order and line item endpoints."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.db.session import get_async_db
from services.commerce_service.schemas import (
    OrderCreate,
    OrderItemCreate,
    OrderItemResponse,
    OrderItemUpdate,
    OrderResponse,
    OrderUpdate,
    ReturnEligibilityResponse,
)
from services.commerce_service.services.order_ops import (
    can_item_be_returned,
    create_order,
    get_order,
    update_order,
)
from services.commerce_service.services.order_totals import (
    add_order_item,
    delete_order_item,
    get_order_item,
    update_order_item,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/commerce/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order_endpoint(
    payload: OrderCreate,
    db: AsyncSession = Depends(get_async_db),
):
    """Record an order and its items; totals are computed server-side."""
    data = payload.model_dump(exclude={"items"}, exclude_none=True)
    items = [item.model_dump(exclude_none=True) for item in payload.items]
    return await create_order(db, items=items, **data)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order_endpoint(
    order_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    return await get_order(db, order_id)


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order_endpoint(
    order_id: uuid.UUID,
    payload: OrderUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    """Update status or charges. Status changes stamp their event dates."""
    return await update_order(db, order_id, payload.model_dump(exclude_unset=True))


@router.post(
    "/{order_id}/items",
    response_model=OrderItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_item_endpoint(
    order_id: uuid.UUID,
    payload: OrderItemCreate,
    db: AsyncSession = Depends(get_async_db),
):
    return await add_order_item(
        db, order_id=order_id, **payload.model_dump(exclude_none=True)
    )


@router.patch("/{order_id}/items/{item_id}", response_model=OrderItemResponse)
async def update_item_endpoint(
    order_id: uuid.UUID,
    item_id: uuid.UUID,
    payload: OrderItemUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    await get_order_item(db, item_id, order_id)
    return await update_order_item(db, item_id, payload.model_dump(exclude_unset=True))


@router.delete("/{order_id}/items/{item_id}", response_model=OrderResponse)
async def delete_item_endpoint(
    order_id: uuid.UUID,
    item_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    """Remove an item; returns the order with its new totals."""
    await get_order_item(db, item_id, order_id)
    return await delete_order_item(db, item_id)


@router.get(
    "/{order_id}/items/{item_id}/returnable",
    response_model=ReturnEligibilityResponse,
)
async def item_returnable_endpoint(
    order_id: uuid.UUID,
    item_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    item = await get_order_item(db, item_id, order_id)
    order = await get_order(db, order_id)
    return ReturnEligibilityResponse(
        item_id=item.id, returnable=can_item_be_returned(item, order)
    )
