"""Commerce Service schemas package.

Re-exports all schemas so routers import from one place.
Every schema class must be listed here.
"""

from services.commerce_service.schemas.currencies import (  # noqa: F401
    BulkRatesRequest,
    BulkRatesResponse,
    ConvertRequest,
    ConvertResponse,
    CurrencyCreate,
    CurrencyResponse,
    CurrencyUpdate,
    RateEntry,
    RateHistoryEntry,
    VolumeRequest,
)
from services.commerce_service.schemas.images import (  # noqa: F401
    EngagementRequest,
    ImageOrderEntry,
    ProductImageCreate,
    ProductImageResponse,
    ProductImageUpdate,
    ReorderImagesRequest,
    ReorderImagesResponse,
)
from services.commerce_service.schemas.orders import (  # noqa: F401
    OrderCreate,
    OrderItemCreate,
    OrderItemResponse,
    OrderItemUpdate,
    OrderResponse,
    OrderUpdate,
    ReturnEligibilityResponse,
)
from services.commerce_service.schemas.transactions import (  # noqa: F401
    ReconcileRequest,
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
)

__all__ = [
    # Currencies
    "BulkRatesRequest",
    "BulkRatesResponse",
    "ConvertRequest",
    "ConvertResponse",
    "CurrencyCreate",
    "CurrencyResponse",
    "CurrencyUpdate",
    "RateEntry",
    "RateHistoryEntry",
    "VolumeRequest",
    # Images
    "EngagementRequest",
    "ImageOrderEntry",
    "ProductImageCreate",
    "ProductImageResponse",
    "ProductImageUpdate",
    "ReorderImagesRequest",
    "ReorderImagesResponse",
    # Orders
    "OrderCreate",
    "OrderItemCreate",
    "OrderItemResponse",
    "OrderItemUpdate",
    "OrderResponse",
    "OrderUpdate",
    "ReturnEligibilityResponse",
    # Transactions
    "ReconcileRequest",
    "TransactionCreate",
    "TransactionResponse",
    "TransactionUpdate",
]
