"""Unit tests for PaymentNotificationHandler."""

from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest

from storefront.api.middleware.error_handler import PaymentProcessorError
from storefront.schemas.cart import CartItem
from storefront.services.notification_service import PaymentNotificationHandler
from storefront.services.order_recorder import OrderRecorder
from storefront.services.order_store import DuplicateOrderError


@pytest.fixture
def handler(processor: AsyncMock, order_store: Any, cart_store: Any) -> PaymentNotificationHandler:
    """Create a handler over in-memory stores."""
    return PaymentNotificationHandler(processor=processor, order_store=order_store, cart_store=cart_store)


class TestIgnoredNotifications:
    """Notifications that never touch state."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("topic", ["merchant_order", "chargebacks", None, ""])
    async def test_non_payment_topic_is_ignored(
        self, handler: PaymentNotificationHandler, processor: AsyncMock, order_store: Any, topic: Any
    ) -> None:
        """Test that other topics are acknowledged without a lookup."""
        result = await handler.handle_notification(topic, "123")

        assert result.outcome == "ignored"
        processor.get_payment.assert_not_called()
        assert order_store.records == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("notification_id", [None, "", "  "])
    async def test_payment_without_id_is_ignored(
        self, handler: PaymentNotificationHandler, processor: AsyncMock, notification_id: Any
    ) -> None:
        """Test that a payment notification without an id is acknowledged and dropped."""
        result = await handler.handle_notification("payment", notification_id)

        assert result.outcome == "ignored"
        processor.get_payment.assert_not_called()

    @pytest.mark.asyncio
    async def test_approved_without_reference_is_ignored(
        self,
        handler: PaymentNotificationHandler,
        processor: AsyncMock,
        order_store: Any,
        approved_payment: dict,
    ) -> None:
        """Test that an approved payment with no user reference records nothing."""
        processor.get_payment.return_value = {**approved_payment, "external_reference": None}

        result = await handler.handle_notification("payment", "pay_123")

        assert result.outcome == "ignored"
        assert result.payment_id == "pay_123"
        assert order_store.records == {}


class TestNonApprovedPayments:
    """Payments the processor reports as anything but approved."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["pending", "in_process", "rejected", "cancelled", None])
    async def test_records_nothing_and_keeps_cart(
        self,
        handler: PaymentNotificationHandler,
        processor: AsyncMock,
        order_store: Any,
        cart_store: Any,
        approved_payment: dict,
        margherita: CartItem,
        status: Any,
    ) -> None:
        """Test that non-approved payments leave both stores untouched."""
        cart_store.seed("u1", margherita)
        processor.get_payment.return_value = {**approved_payment, "status": status}

        result = await handler.handle_notification("payment", "pay_123")

        assert result.outcome == "not_approved"
        assert order_store.records == {}
        assert await cart_store.get("u1") == [margherita]


class TestApprovedPayments:
    """Approved payments: record once, then clear the cart."""

    @pytest.mark.asyncio
    async def test_records_purchase_and_clears_cart(
        self,
        handler: PaymentNotificationHandler,
        processor: AsyncMock,
        order_store: Any,
        cart_store: Any,
        approved_payment: dict,
        margherita: CartItem,
    ) -> None:
        """Test the happy path: one record with the charged total, empty cart."""
        cart_store.seed("u1", margherita)
        processor.get_payment.return_value = approved_payment

        result = await handler.handle_notification("payment", "pay_123")

        assert result.outcome == "recorded"
        assert result.user_id == "u1"
        assert result.cart_cleared is True
        processor.get_payment.assert_awaited_once_with("pay_123")

        record = order_store.records["pay_123"]
        assert record.user_id == "u1"
        assert record.total == Decimal("500")
        assert record.items[0].name == "Margherita"
        assert record.items[0].quantity == 2
        assert await cart_store.get("u1") == []

    @pytest.mark.asyncio
    async def test_redelivery_is_a_no_op(
        self,
        handler: PaymentNotificationHandler,
        processor: AsyncMock,
        order_store: Any,
        cart_store: Any,
        approved_payment: dict,
        margherita: CartItem,
    ) -> None:
        """Test that a second delivery neither duplicates the record nor clears a refilled cart."""
        processor.get_payment.return_value = approved_payment
        await handler.handle_notification("payment", "pay_123")

        cart_store.seed("u1", margherita)
        result = await handler.handle_notification("payment", "pay_123")

        assert result.outcome == "duplicate"
        assert len(order_store.records) == 1
        assert await cart_store.get("u1") == [margherita]

    @pytest.mark.asyncio
    async def test_lost_insert_race_is_duplicate(
        self,
        processor: AsyncMock,
        order_store: Any,
        cart_store: Any,
        approved_payment: dict,
    ) -> None:
        """Test that a concurrent writer winning the insert is treated as duplicate."""
        recorder = OrderRecorder(order_store)
        recorder.record_from_payment = AsyncMock(side_effect=DuplicateOrderError("u1", "pay_123"))
        handler = PaymentNotificationHandler(
            processor=processor, order_recorder=recorder, order_store=order_store, cart_store=cart_store
        )
        processor.get_payment.return_value = approved_payment

        result = await handler.handle_notification("payment", "pay_123")

        assert result.outcome == "duplicate"
        assert cart_store.clear_calls == []

    @pytest.mark.asyncio
    async def test_cart_clear_failure_still_acknowledges(
        self,
        handler: PaymentNotificationHandler,
        processor: AsyncMock,
        order_store: Any,
        cart_store: Any,
        approved_payment: dict,
        margherita: CartItem,
    ) -> None:
        """Test that a failed cart clear keeps the record and reports cart_cleared=False."""
        cart_store.seed("u1", margherita)
        cart_store.clear_error = ConnectionError("store down")
        processor.get_payment.return_value = approved_payment

        result = await handler.handle_notification("payment", "pay_123")

        assert result.outcome == "recorded"
        assert result.cart_cleared is False
        assert "pay_123" in order_store.records

    @pytest.mark.asyncio
    async def test_order_store_failure_propagates(
        self,
        handler: PaymentNotificationHandler,
        processor: AsyncMock,
        order_store: Any,
        cart_store: Any,
        approved_payment: dict,
        margherita: CartItem,
    ) -> None:
        """Test that a failed commit surfaces and leaves the cart alone."""
        cart_store.seed("u1", margherita)
        order_store.insert_error = ConnectionError("store down")
        processor.get_payment.return_value = approved_payment

        with pytest.raises(ConnectionError):
            await handler.handle_notification("payment", "pay_123")

        assert cart_store.clear_calls == []


class TestLookupFailures:
    """Processor lookup failures."""

    @pytest.mark.asyncio
    async def test_lookup_failure_propagates_without_writes(
        self,
        handler: PaymentNotificationHandler,
        processor: AsyncMock,
        order_store: Any,
        cart_store: Any,
        margherita: CartItem,
    ) -> None:
        """Test that a failed lookup raises and touches no state."""
        cart_store.seed("u1", margherita)
        processor.get_payment.side_effect = PaymentProcessorError(processor_message="connection reset")

        with pytest.raises(PaymentProcessorError):
            await handler.handle_notification("payment", "pay_123")

        assert order_store.records == {}
        assert await cart_store.get("u1") == [margherita]
