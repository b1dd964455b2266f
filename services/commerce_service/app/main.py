"""FastAPI application for the Commerce Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.logging import configure_logging
from services.commerce_service.routers import (
    currencies_router,
    images_router,
    orders_router,
    transactions_router,
)


def create_app() -> FastAPI:
    """Create and configure the Commerce Service FastAPI app."""
    configure_logging()

    app = FastAPI(
        title="StoreSync Commerce Service",
        version="0.1.0",
        description="Orders, transactions, currencies and product images with derived financial state.",
    )

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "commerce"}

    add_exception_handlers(app)

    # Written by the platform sync worker and admin tooling
    app.include_router(orders_router)
    app.include_router(transactions_router)
    app.include_router(currencies_router)
    app.include_router(images_router)

    return app


app = create_app()
