"""Unit tests for PaymentProcessorClient."""

import time
from unittest.mock import MagicMock

import pytest

from storefront.api.middleware.error_handler import PaymentProcessorError
from storefront.services.processor_client import PaymentProcessorClient


@pytest.fixture
def mock_sdk() -> MagicMock:
    """Create a mock Mercado Pago SDK."""
    return MagicMock()


@pytest.fixture
def client(mock_sdk: MagicMock) -> PaymentProcessorClient:
    """Create a PaymentProcessorClient over the mocked SDK."""
    return PaymentProcessorClient(sdk=mock_sdk, request_options=MagicMock(), timeout_seconds=0.5)


class TestCreatePreference:
    """Tests for create_preference."""

    @pytest.mark.asyncio
    async def test_returns_response_body(self, client: PaymentProcessorClient, mock_sdk: MagicMock) -> None:
        """Test that the SDK response body is returned on 201."""
        mock_sdk.preference.return_value.create.return_value = {
            "status": 201,
            "response": {"id": "pref_1", "init_point": "https://mp.example/pref_1"},
        }

        result = await client.create_preference({"items": []})

        assert result["id"] == "pref_1"
        mock_sdk.preference.return_value.create.assert_called_once_with({"items": []}, client.request_options)

    @pytest.mark.asyncio
    async def test_non_2xx_raises(self, client: PaymentProcessorClient, mock_sdk: MagicMock) -> None:
        """Test that a rejected request carries the processor status and message."""
        mock_sdk.preference.return_value.create.return_value = {
            "status": 400,
            "response": {"message": "invalid items"},
        }

        with pytest.raises(PaymentProcessorError) as exc_info:
            await client.create_preference({"items": []})

        assert exc_info.value.processor_status == 400
        assert exc_info.value.processor_message == "invalid items"
        assert exc_info.value.status_code == 500


class TestGetPayment:
    """Tests for get_payment."""

    @pytest.mark.asyncio
    async def test_returns_payment(self, client: PaymentProcessorClient, mock_sdk: MagicMock) -> None:
        """Test that the payment body is returned on 200."""
        mock_sdk.payment.return_value.get.return_value = {"status": 200, "response": {"id": 1, "status": "approved"}}

        result = await client.get_payment("1")

        assert result["status"] == "approved"

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, client: PaymentProcessorClient, mock_sdk: MagicMock) -> None:
        """Test that SDK exceptions become PaymentProcessorError."""
        mock_sdk.payment.return_value.get.side_effect = ConnectionError("connection reset")

        with pytest.raises(PaymentProcessorError) as exc_info:
            await client.get_payment("1")

        assert "connection reset" in exc_info.value.processor_message

    @pytest.mark.asyncio
    async def test_timeout_raises(self, mock_sdk: MagicMock) -> None:
        """Test that a slow SDK call is cut off and reported as a processor failure."""
        mock_sdk.payment.return_value.get.side_effect = lambda *args: time.sleep(0.3) or {"status": 200, "response": {}}
        client = PaymentProcessorClient(sdk=mock_sdk, request_options=MagicMock(), timeout_seconds=0.05)

        with pytest.raises(PaymentProcessorError) as exc_info:
            await client.get_payment("1")

        assert "timed out" in exc_info.value.processor_message

    @pytest.mark.asyncio
    async def test_unexpected_shape_raises(self, client: PaymentProcessorClient, mock_sdk: MagicMock) -> None:
        """Test that a response without a body is not mistaken for a payment."""
        mock_sdk.payment.return_value.get.return_value = {"status": 200, "response": None}

        with pytest.raises(PaymentProcessorError):
            await client.get_payment("1")
