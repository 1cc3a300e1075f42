"""Webhook API routes for payment processor notifications."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Request, status

from storefront.api.deps import NotificationHandlerDep
from storefront.schemas.checkout import WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks"])


async def _read_json_body(request: Request) -> dict[str, Any]:
    payload = await request.body()
    if not payload:
        return {}
    try:
        body = json.loads(payload)
    except ValueError:
        logger.debug("Webhook body is not JSON (%d bytes)", len(payload))
        return {}
    return body if isinstance(body, dict) else {}


def resolve_notification(query: dict[str, str], body: dict[str, Any]) -> tuple[str | None, str | None]:
    """Pick the topic and resource id out of a notification.

    Mercado Pago sends ``?topic=&id=`` (IPN) or ``?type=&data.id=`` (webhooks),
    and webhooks repeat both in the JSON body. Query values win.

    Returns:
        tuple: (topic, id), either of which may be None.
    """
    data = body.get("data") if isinstance(body.get("data"), dict) else {}
    topic = query.get("topic") or query.get("type") or body.get("topic") or body.get("type")
    resource_id = query.get("id") or query.get("data.id") or data.get("id")
    return topic, str(resource_id) if resource_id is not None else None


@router.post(
    "/mercadopago",
    response_model=WebhookAck,
    status_code=status.HTTP_200_OK,
    responses={500: {"description": "Payment lookup or purchase commit failed; the processor retries"}},
    summary="Handle Mercado Pago notifications",
    description="Re-reads the notified payment from Mercado Pago and records approved purchases exactly once.",
)
async def mercadopago_webhook(request: Request, handler: NotificationHandlerDep) -> WebhookAck:
    """Handle a Mercado Pago notification.

    Every outcome that retrying cannot change is acknowledged with 200.
    Lookup or commit failures surface as 500 through the error middleware
    so the processor redelivers; redelivery is safe because recording is
    keyed by payment id.

    Args:
        request: FastAPI request object for reading query and body.
        handler: Notification handler.

    Returns:
        WebhookAck: The notification outcome.
    """
    body = await _read_json_body(request)
    topic, notification_id = resolve_notification(dict(request.query_params), body)
    logger.info("Received notification topic=%s id=%s", topic, notification_id)

    result = await handler.handle_notification(topic, notification_id)

    logger.info(
        "Notification %s handled: %s",
        notification_id,
        result.outcome,
        extra={
            "payment_id": result.payment_id,
            "user_id": result.user_id,
            "cart_cleared": result.cart_cleared,
        },
    )
    return WebhookAck(status=result.outcome)
