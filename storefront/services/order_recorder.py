"""Turns approved payments into immutable purchase records."""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from storefront.schemas.purchase import PurchaseItem, PurchaseRecord
from storefront.services.order_store import OrderStore

logger = logging.getLogger(__name__)

# Largest difference between the charged total and the item sum that is not reported
TOTAL_TOLERANCE = Decimal("0.01")


def _to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def _to_int(value: Any) -> int:
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, ValueError, OverflowError):
        return 0


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            logger.warning("Unparseable approval date %r, using current time", value)
    return datetime.now(timezone.utc)


def items_from_payment(payment: dict[str, Any]) -> list[PurchaseItem]:
    """Build the item snapshot from a processor payment payload.

    The processor reports quantities and prices as strings under
    additional_info.items.
    """
    raw_items = (payment.get("additional_info") or {}).get("items") or []
    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        items.append(
            PurchaseItem(
                product_id=str(raw["id"]) if raw.get("id") else None,
                name=raw.get("title") or "",
                unit_price=_to_decimal(raw.get("unit_price")),
                quantity=max(_to_int(raw.get("quantity")), 0),
            )
        )
    return items


class OrderRecorder:
    """Writes one PurchaseRecord per purchase id.

    Duplicate writes fail loudly with DuplicateOrderError (raised by the
    store); callers treat that as "already recorded".
    """

    def __init__(self, order_store: OrderStore | None = None) -> None:
        """Initialize order recorder.

        Args:
            order_store: Purchase storage. Defaults to a Supabase-backed store.
        """
        self.order_store = order_store if order_store is not None else OrderStore()

    async def record(
        self,
        user_id: str,
        purchase_id: str,
        items: list[PurchaseItem],
        total: Decimal,
        timestamp: datetime,
        status: str = "approved",
        currency: str | None = None,
    ) -> PurchaseRecord:
        """Write a purchase record.

        Args:
            user_id: Buyer.
            purchase_id: Stable id supplied by the caller (the processor payment id).
            items: Item snapshot.
            total: Amount charged; trusted over the recomputed item sum.
            timestamp: Approval time.
            status: Processor payment status.
            currency: Processor currency id.

        Returns:
            PurchaseRecord: The stored record.

        Raises:
            ValueError: If user_id or purchase_id is blank.
            DuplicateOrderError: If the purchase was already recorded.
        """
        if not purchase_id:
            raise ValueError("purchase_id must be supplied by the caller")
        if not user_id:
            raise ValueError("user_id is required to record a purchase")

        record = PurchaseRecord(
            purchase_id=purchase_id,
            user_id=user_id,
            items=list(items),
            total=total,
            currency=currency,
            status=status,
            timestamp=timestamp,
        )

        computed = record.items_total()
        if abs(computed - record.total) > TOTAL_TOLERANCE:
            logger.warning(
                "Purchase %s total %s does not match item sum %s; keeping processor total",
                purchase_id,
                record.total,
                computed,
                extra={"user_id": user_id, "purchase_id": purchase_id},
            )

        stored = await self.order_store.insert(record)
        logger.info("Purchase %s recorded for user %s (total=%s)", purchase_id, user_id, record.total)
        return stored

    async def record_from_payment(self, user_id: str, payment: dict[str, Any]) -> PurchaseRecord:
        """Record a purchase from an approved processor payment payload."""
        return await self.record(
            user_id=user_id,
            purchase_id=str(payment.get("id") or ""),
            items=items_from_payment(payment),
            total=_to_decimal(payment.get("transaction_amount")),
            timestamp=_parse_timestamp(payment.get("date_approved")),
            status=payment.get("status") or "approved",
            currency=payment.get("currency_id"),
        )
