"""Commerce service routers."""

from services.commerce_service.routers.currencies import router as currencies_router
from services.commerce_service.routers.images import router as images_router
from services.commerce_service.routers.orders import router as orders_router
from services.commerce_service.routers.transactions import (
    router as transactions_router,
)

__all__ = [
    "currencies_router",
    "images_router",
    "orders_router",
    "transactions_router",
]
