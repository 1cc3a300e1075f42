"""Mercado Pago SDK configuration and singleton."""

import logging
from functools import lru_cache
from typing import Any

import mercadopago
from mercadopago.config import RequestOptions

from storefront.core.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def get_mercadopago_sdk() -> mercadopago.SDK:
    """Get the cached Mercado Pago SDK instance.

    Returns:
        mercadopago.SDK: SDK bound to the configured access token.

    Note:
        The SDK keeps its token on the instance, so unlike module-level
        SDKs a single cached instance is shared across requests.
    """
    settings = get_settings()
    if not settings.mercadopago_access_token:
        logger.warning("Mercado Pago access token not configured. Payment features will not work.")
    return mercadopago.SDK(settings.mercadopago_access_token)


def get_request_options() -> RequestOptions:
    """Build per-call request options from settings.

    Returns:
        RequestOptions: Timeout and retry policy applied to every processor call.
    """
    settings = get_settings()
    return RequestOptions(
        connection_timeout=settings.processor_timeout_seconds,
        max_retries=settings.processor_max_retries,
    )


def configure_mercadopago() -> None:
    """Warm the SDK singleton at application startup."""
    get_mercadopago_sdk()


def check_processor_configuration() -> dict[str, Any]:
    """Report whether the processor credentials look usable.

    Returns:
        dict: 'healthy' boolean and optional 'error' message.
    """
    settings = get_settings()
    if not settings.mercadopago_access_token:
        return {"healthy": False, "error": "MERCADOPAGO_ACCESS_TOKEN is empty"}
    return {"healthy": True}
