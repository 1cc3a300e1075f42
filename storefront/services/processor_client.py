"""Async client for the Mercado Pago REST API."""

import asyncio
import logging
from typing import Any, Callable

import mercadopago
from mercadopago.config import RequestOptions

from storefront.api.middleware.error_handler import PaymentProcessorError
from storefront.core.config import get_settings
from storefront.core.mercadopago import get_mercadopago_sdk, get_request_options

logger = logging.getLogger(__name__)


class PaymentProcessorClient:
    """Creates preferences and looks up payments.

    The SDK is blocking, so every call runs in a worker thread and is bounded
    by ``timeout_seconds``. A timeout is reported as a processor failure and
    never interpreted as a payment outcome.
    """

    def __init__(
        self,
        sdk: mercadopago.SDK | None = None,
        request_options: RequestOptions | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            sdk: Mercado Pago SDK instance. Defaults to the cached singleton.
            request_options: Per-call SDK options. Defaults to settings-derived options.
            timeout_seconds: Overall bound per call. Defaults to settings.
        """
        self.sdk = sdk if sdk is not None else get_mercadopago_sdk()
        self.request_options = request_options if request_options is not None else get_request_options()
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else get_settings().processor_timeout_seconds
        )

    async def create_preference(self, body: dict[str, Any]) -> dict[str, Any]:
        """Create a checkout preference.

        Args:
            body: Preference payload (items, back_urls, notification_url, ...).

        Returns:
            dict: The created preference, including 'id' and 'init_point'.

        Raises:
            PaymentProcessorError: On timeout, transport error or non-2xx answer.
        """
        return await self._call(
            "create_preference",
            lambda: self.sdk.preference().create(body, self.request_options),
        )

    async def get_payment(self, payment_id: str) -> dict[str, Any]:
        """Fetch the authoritative state of a payment.

        Args:
            payment_id: Processor payment id taken from the notification.

        Returns:
            dict: Payment details ('id', 'status', 'external_reference', ...).

        Raises:
            PaymentProcessorError: On timeout, transport error or non-2xx answer.
        """
        return await self._call(
            "get_payment",
            lambda: self.sdk.payment().get(payment_id, self.request_options),
        )

    async def _call(self, operation: str, fn: Callable[[], dict[str, Any]]) -> dict[str, Any]:
        try:
            result = await asyncio.wait_for(asyncio.to_thread(fn), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.warning("Processor %s timed out after %ss", operation, self.timeout_seconds)
            raise PaymentProcessorError(
                processor_message=f"{operation} timed out after {self.timeout_seconds}s",
            ) from e
        except Exception as e:
            logger.warning("Processor %s failed: %s", operation, e)
            raise PaymentProcessorError(processor_message=str(e)) from e

        status_code = result.get("status") if isinstance(result, dict) else None
        response = result.get("response") if isinstance(result, dict) else None
        if not isinstance(status_code, int) or not 200 <= status_code < 300 or not isinstance(response, dict):
            message = response.get("message") if isinstance(response, dict) else None
            logger.warning(
                "Processor %s rejected: status=%s message=%s",
                operation,
                status_code,
                message,
            )
            raise PaymentProcessorError(
                processor_status=status_code if isinstance(status_code, int) else None,
                processor_message=message or "unexpected processor response",
            )

        return response
