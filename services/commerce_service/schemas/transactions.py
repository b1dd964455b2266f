"""Transaction request/response schemas."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.commerce_service.models.enums import TransactionStatus, TransactionType


class TransactionCreate(BaseModel):
    store_id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    transaction_number: str = Field(..., min_length=1, max_length=100)
    external_transaction_id: Optional[str] = None
    transaction_type: TransactionType
    transaction_status: TransactionStatus = TransactionStatus.PENDING
    amount: Decimal
    currency_code: str = Field("SAR", min_length=3, max_length=3)
    gateway_fee: Decimal = Field(Decimal("0"), ge=0)
    platform_fee: Decimal = Field(Decimal("0"), ge=0)
    tax_amount: Decimal = Field(Decimal("0"), ge=0)
    # Derived from amount and fees when omitted
    net_amount: Optional[Decimal] = None
    payment_method: Optional[str] = None
    payment_gateway: Optional[str] = None
    description: Optional[str] = None


class TransactionUpdate(BaseModel):
    transaction_status: Optional[TransactionStatus] = None
    amount: Optional[Decimal] = None
    gateway_fee: Optional[Decimal] = Field(None, ge=0)
    platform_fee: Optional[Decimal] = Field(None, ge=0)
    tax_amount: Optional[Decimal] = Field(None, ge=0)
    net_amount: Optional[Decimal] = None
    reference_number: Optional[str] = None
    description: Optional[str] = None


class ReconcileRequest(BaseModel):
    reference: Optional[str] = Field(None, max_length=255)


class TransactionResponse(BaseModel):
    id: uuid.UUID
    store_id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    transaction_number: str
    transaction_type: TransactionType
    transaction_status: TransactionStatus
    amount: Decimal
    currency_code: str
    gateway_fee: Decimal
    platform_fee: Decimal
    tax_amount: Decimal
    net_amount: Optional[Decimal] = None
    transaction_date: datetime
    processed_at: Optional[datetime] = None
    reconciled: bool
    reconciled_at: Optional[datetime] = None
    reconciliation_reference: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
