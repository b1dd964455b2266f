"""Product image endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from libs.db.session import get_async_db
from services.commerce_service.schemas import (
    EngagementRequest,
    ProductImageCreate,
    ProductImageResponse,
    ProductImageUpdate,
    ReorderImagesRequest,
    ReorderImagesResponse,
)
from services.commerce_service.services.image_ops import (
    create_product_image,
    list_product_images,
    record_image_engagement,
    reorder_images,
    set_main_image,
    update_product_image,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/commerce", tags=["images"])


@router.post(
    "/images", response_model=ProductImageResponse, status_code=status.HTTP_201_CREATED
)
async def create_image_endpoint(
    payload: ProductImageCreate,
    db: AsyncSession = Depends(get_async_db),
):
    return await create_product_image(db, **payload.model_dump(exclude_none=True))


@router.patch("/images/{image_id}", response_model=ProductImageResponse)
async def update_image_endpoint(
    image_id: uuid.UUID,
    payload: ProductImageUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    return await update_product_image(
        db, image_id, payload.model_dump(exclude_unset=True)
    )


@router.post("/images/{image_id}/main", response_model=ProductImageResponse)
async def set_main_image_endpoint(
    image_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    """Make this the product's main image; the previous one is demoted."""
    return await set_main_image(db, image_id)


@router.post("/images/{image_id}/engagement", response_model=ProductImageResponse)
async def engagement_endpoint(
    image_id: uuid.UUID,
    payload: EngagementRequest,
    db: AsyncSession = Depends(get_async_db),
):
    return await record_image_engagement(
        db, image_id, views=payload.views, clicks=payload.clicks
    )


@router.get(
    "/products/{product_id}/images", response_model=list[ProductImageResponse]
)
async def list_images_endpoint(
    product_id: uuid.UUID,
    active_only: bool = Query(True),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_product_images(db, product_id, active_only=active_only)


@router.put(
    "/products/{product_id}/images/order", response_model=ReorderImagesResponse
)
async def reorder_images_endpoint(
    product_id: uuid.UUID,
    payload: ReorderImagesRequest,
    db: AsyncSession = Depends(get_async_db),
):
    reordered = await reorder_images(
        db, product_id, [entry.model_dump() for entry in payload.orders]
    )
    return ReorderImagesResponse(reordered=reordered)
