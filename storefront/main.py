"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.api.middleware.error_handler import error_handler_middleware, request_validation_handler
from storefront.api.middleware.latency_logging import latency_logging_middleware
from storefront.api.routes import carts, checkout, health, purchases, webhooks
from storefront.core.config import get_settings
from storefront.core.mercadopago import configure_mercadopago

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control back to the application.
    """
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    configure_mercadopago()
    logger.info("Mercado Pago SDK configured (notifications to %s)", settings.notification_url)

    yield
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Storefront Payments API",
        description="Mercado Pago checkout, payment notifications, carts and purchase history",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add error handler middleware (turns service errors into JSON error bodies)
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)

    # Add latency logging middleware (outermost - times and logs every response)
    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)

    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Health, preference and webhook routes keep the paths the frontend and
    # the registered notification URL already use
    app.include_router(health.router)
    app.include_router(checkout.router)
    app.include_router(webhooks.router)

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(carts.router)
    api_v1_router.include_router(purchases.router)
    app.include_router(api_v1_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
