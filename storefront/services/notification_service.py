"""Idempotent handling of Mercado Pago payment notifications."""

import logging
from dataclasses import dataclass

from storefront.schemas.checkout import NotificationOutcome
from storefront.services.cart_store import CartClearError, CartStore
from storefront.services.order_recorder import OrderRecorder
from storefront.services.order_store import DuplicateOrderError, OrderStore
from storefront.services.processor_client import PaymentProcessorClient

logger = logging.getLogger(__name__)

PAYMENT_TOPIC = "payment"
APPROVED = "approved"


@dataclass
class NotificationResult:
    """What a notification led to."""

    outcome: NotificationOutcome
    payment_id: str | None = None
    user_id: str | None = None
    cart_cleared: bool = False


class PaymentNotificationHandler:
    """Turns processor notifications into purchase records.

    Notifications are at-least-once and may arrive out of order, so the
    payload is never trusted: the payment is always re-read from the
    processor. Recording is keyed by the payment id, so a redelivered
    notification is a no-op. The cart is cleared only after a fresh record
    is committed.
    """

    def __init__(
        self,
        processor: PaymentProcessorClient | None = None,
        order_recorder: OrderRecorder | None = None,
        order_store: OrderStore | None = None,
        cart_store: CartStore | None = None,
    ) -> None:
        """Initialize notification handler.

        Args:
            processor: Processor client used for the authoritative status lookup.
            order_recorder: Purchase writer. Defaults to one over order_store.
            order_store: Purchase storage used for the duplicate check.
            cart_store: Cart storage cleared after a recorded purchase.
        """
        self.processor = processor if processor is not None else PaymentProcessorClient()
        self.order_store = order_store if order_store is not None else OrderStore()
        self.order_recorder = order_recorder if order_recorder is not None else OrderRecorder(self.order_store)
        self.cart_store = cart_store if cart_store is not None else CartStore()

    async def handle_notification(self, topic: str | None, notification_id: str | None) -> NotificationResult:
        """Process one notification delivery.

        Args:
            topic: Notification topic; only "payment" is processed.
            notification_id: Processor payment id.

        Returns:
            NotificationResult: Outcome to acknowledge with.

        Raises:
            PaymentProcessorError: If the payment lookup fails. Nothing was
                written, so the delivery must be retried.
            Exception: Any order store failure other than a duplicate.
        """
        if topic != PAYMENT_TOPIC:
            logger.info("Ignoring notification with topic %r", topic)
            return NotificationResult(outcome="ignored")

        payment_id = str(notification_id).strip() if notification_id is not None else ""
        if not payment_id:
            logger.warning("Payment notification without an id, ignoring")
            return NotificationResult(outcome="ignored")

        payment = await self.processor.get_payment(payment_id)
        status = payment.get("status")
        if status != APPROVED:
            logger.info("Payment %s has status %r, nothing to record", payment_id, status)
            return NotificationResult(outcome="not_approved", payment_id=payment_id)

        user_id = str(payment.get("external_reference") or "").strip()
        if not user_id:
            logger.error(
                "Approved payment %s has no external reference; cannot attribute purchase",
                payment_id,
                extra={"payment_id": payment_id},
            )
            return NotificationResult(outcome="ignored", payment_id=payment_id)

        purchase_id = str(payment.get("id") or payment_id)

        existing = await self.order_store.get(user_id, purchase_id)
        if existing is not None:
            logger.info("Purchase %s already recorded for user %s", purchase_id, user_id)
            return NotificationResult(outcome="duplicate", payment_id=purchase_id, user_id=user_id)

        try:
            await self.order_recorder.record_from_payment(user_id, payment)
        except DuplicateOrderError:
            logger.info("Purchase %s recorded by a concurrent delivery", purchase_id)
            return NotificationResult(outcome="duplicate", payment_id=purchase_id, user_id=user_id)

        cart_cleared = True
        try:
            await self.cart_store.clear(user_id)
        except CartClearError as e:
            cart_cleared = False
            logger.warning(
                "Purchase %s recorded but cart was not cleared: %s",
                purchase_id,
                e.cause,
                extra={"user_id": user_id, "purchase_id": purchase_id, "cart_cleared": False},
            )

        return NotificationResult(
            outcome="recorded",
            payment_id=purchase_id,
            user_id=user_id,
            cart_cleared=cart_cleared,
        )
