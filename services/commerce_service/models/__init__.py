"""Commerce Service models package.

Re-exports all models and enums so that:
  - ``from services.commerce_service.models import Order`` works
  - Alembic env.py sees every table through one import
  - SQLAlchemy's mapper registry resolves string relationships on import

Every model class AND enum must be listed here.
"""

from services.commerce_service.models.catalog import ProductImage  # noqa: F401
from services.commerce_service.models.currencies import Currency  # noqa: F401

# Enums
from services.commerce_service.models.enums import (  # noqa: F401
    OrderItemStatus,
    OrderStatus,
    PaymentStatus,
    RoundingMethod,
    TransactionStatus,
    TransactionType,
)
from services.commerce_service.models.orders import Order, OrderItem  # noqa: F401
from services.commerce_service.models.transactions import Transaction  # noqa: F401

__all__ = [
    # Enums
    "OrderItemStatus",
    "OrderStatus",
    "PaymentStatus",
    "RoundingMethod",
    "TransactionStatus",
    "TransactionType",
    # Orders
    "Order",
    "OrderItem",
    # Money movements
    "Transaction",
    "Currency",
    # Catalog
    "ProductImage",
]
