"""Currency request/response schemas.

Code format, decimal places and rate sign are checked by the exchange
ledger so the same rules apply to every writer.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from services.commerce_service.models.enums import RoundingMethod


class CurrencyCreate(BaseModel):
    store_id: uuid.UUID
    code: str
    name: str = Field(..., min_length=1, max_length=255)
    symbol: Optional[str] = Field(None, max_length=10)
    decimal_places: Optional[int] = None
    rounding_method: RoundingMethod = RoundingMethod.ROUND
    exchange_rate: Decimal = Decimal("1")
    rate_source: Optional[str] = None
    rate_provider: Optional[str] = None
    rate_history_retention_days: Optional[int] = Field(None, ge=1)
    is_active: bool = True
    is_default: bool = False
    is_base_currency: bool = False


class CurrencyUpdate(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    symbol: Optional[str] = Field(None, max_length=10)
    decimal_places: Optional[int] = None
    rounding_method: Optional[RoundingMethod] = None
    exchange_rate: Optional[Decimal] = None
    rate_source: Optional[str] = None
    rate_provider: Optional[str] = None
    rate_history_retention_days: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None
    is_base_currency: Optional[bool] = None


class CurrencyResponse(BaseModel):
    id: uuid.UUID
    store_id: uuid.UUID
    code: str
    name: str
    symbol: Optional[str] = None
    decimal_places: int
    rounding_method: RoundingMethod
    exchange_rate: Decimal
    rate_source: Optional[str] = None
    rate_provider: Optional[str] = None
    last_rate_update: Optional[datetime] = None
    historical_rates: list[dict[str, Any]] = []
    rate_history_retention_days: int
    is_active: bool
    is_default: bool
    is_base_currency: bool
    activated_at: Optional[datetime] = None
    deactivated_at: Optional[datetime] = None
    total_transactions: int
    total_volume: Decimal
    average_transaction_amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class ConvertRequest(BaseModel):
    store_id: uuid.UUID
    amount: Decimal
    from_code: str
    to_code: str


class ConvertResponse(BaseModel):
    amount: Decimal
    from_code: str
    to_code: str
    converted_amount: Decimal


class RateEntry(BaseModel):
    code: str
    rate: Decimal
    source: Optional[str] = None
    provider: Optional[str] = None


class BulkRatesRequest(BaseModel):
    store_id: uuid.UUID
    rates: list[RateEntry]


class BulkRatesResponse(BaseModel):
    updated: int


class RateHistoryEntry(BaseModel):
    rate: Decimal
    timestamp: datetime
    source: Optional[str] = None
    provider: Optional[str] = None


class VolumeRequest(BaseModel):
    amount: Decimal
    transactions: int = Field(1, ge=1)
