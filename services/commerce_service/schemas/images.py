"""Product image request/response schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProductImageCreate(BaseModel):
    product_id: uuid.UUID
    store_id: uuid.UUID
    image_url: str = Field(..., min_length=1)
    alt_text: Optional[str] = Field(None, max_length=255)
    title: Optional[str] = Field(None, max_length=255)
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)
    file_size: Optional[int] = Field(None, gt=0)
    file_format: Optional[str] = Field(None, max_length=10)
    is_main: bool = False
    sort_order: int = Field(0, ge=0)
    is_active: bool = True


class ProductImageUpdate(BaseModel):
    image_url: Optional[str] = Field(None, min_length=1)
    alt_text: Optional[str] = Field(None, max_length=255)
    title: Optional[str] = Field(None, max_length=255)
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)
    file_size: Optional[int] = Field(None, gt=0)
    file_format: Optional[str] = Field(None, max_length=10)
    is_main: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ProductImageResponse(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    store_id: uuid.UUID
    image_url: str
    alt_text: Optional[str] = None
    title: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    file_size: Optional[int] = None
    is_main: bool
    sort_order: int
    is_active: bool
    view_count: int
    click_count: int
    optimization_score: Optional[Decimal] = None
    conversion_rate: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ImageOrderEntry(BaseModel):
    id: uuid.UUID
    sort_order: int = Field(..., ge=0)


class ReorderImagesRequest(BaseModel):
    orders: list[ImageOrderEntry]


class ReorderImagesResponse(BaseModel):
    reordered: int


class EngagementRequest(BaseModel):
    views: int = Field(0, ge=0)
    clicks: int = Field(0, ge=0)
