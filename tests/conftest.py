"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("MERCADOPAGO_ACCESS_TOKEN", "TEST-0000000000000000-000000-test")
os.environ.setdefault("MERCADOPAGO_WEBHOOK_URL", "https://api.test-shop.example")
os.environ.setdefault("FRONTEND_URL", "https://test-shop.example")

from storefront.schemas.cart import CartItem  # noqa: E402
from storefront.schemas.purchase import PurchaseRecord  # noqa: E402
from storefront.services.cart_store import CartClearError  # noqa: E402
from storefront.services.order_store import DuplicateOrderError  # noqa: E402
from storefront.services.processor_client import PaymentProcessorClient  # noqa: E402


class FakeCartStore:
    """In-memory stand-in for CartStore with the same async surface."""

    def __init__(self) -> None:
        self.carts: dict[str, dict[str, CartItem]] = {}
        self.clear_error: Exception | None = None
        self.clear_calls: list[str] = []

    def seed(self, user_id: str, *items: CartItem) -> None:
        self.carts.setdefault(user_id, {}).update({item.product_id: item for item in items})

    async def get(self, user_id: str) -> list[CartItem]:
        lines = self.carts.get(user_id, {})
        return [lines[key] for key in sorted(lines) if lines[key].quantity > 0]

    async def get_item(self, user_id: str, product_id: str) -> CartItem | None:
        return self.carts.get(user_id, {}).get(product_id)

    async def add(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        name: str | None = None,
        unit_price: Decimal | None = None,
    ) -> int:
        from storefront.api.middleware.error_handler import InvalidCartError

        current = await self.get_item(user_id, product_id)
        if current is not None:
            item = current.model_copy(update={"quantity": current.quantity + quantity})
        else:
            if not name or unit_price is None:
                raise InvalidCartError("A name and unit price are required for a new cart line", field="name")
            item = CartItem(product_id=product_id, name=name, unit_price=unit_price, quantity=quantity)
        self.seed(user_id, item)
        return item.quantity

    async def update(self, user_id: str, product_id: str, quantity: int) -> None:
        from storefront.api.middleware.error_handler import NotFoundError

        if quantity <= 0:
            await self.remove(user_id, product_id)
            return
        current = await self.get_item(user_id, product_id)
        if current is None:
            raise NotFoundError(f"Item {product_id} is not in the cart")
        self.seed(user_id, current.model_copy(update={"quantity": quantity}))

    async def remove(self, user_id: str, product_id: str) -> None:
        self.carts.get(user_id, {}).pop(product_id, None)

    async def clear(self, user_id: str) -> None:
        self.clear_calls.append(user_id)
        if self.clear_error is not None:
            raise CartClearError(user_id, self.clear_error)
        self.carts.pop(user_id, None)


class FakeOrderStore:
    """In-memory stand-in for OrderStore keyed by purchase id."""

    def __init__(self) -> None:
        self.records: dict[str, PurchaseRecord] = {}
        self.insert_error: Exception | None = None

    async def get(self, user_id: str, purchase_id: str) -> PurchaseRecord | None:
        record = self.records.get(purchase_id)
        return record if record is not None and record.user_id == user_id else None

    async def insert(self, record: PurchaseRecord) -> PurchaseRecord:
        if self.insert_error is not None:
            raise self.insert_error
        if record.purchase_id in self.records:
            raise DuplicateOrderError(record.user_id, record.purchase_id)
        self.records[record.purchase_id] = record
        return record

    async def list_for_user(self, user_id: str) -> list[PurchaseRecord]:
        records = [r for r in self.records.values() if r.user_id == user_id]
        return sorted(records, key=lambda r: r.timestamp, reverse=True)

    async def has_purchases(self, user_id: str) -> bool:
        return any(r.user_id == user_id for r in self.records.values())


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from storefront.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def cart_store() -> FakeCartStore:
    """Provide an empty in-memory cart store."""
    return FakeCartStore()


@pytest.fixture
def order_store() -> FakeOrderStore:
    """Provide an empty in-memory order store."""
    return FakeOrderStore()


@pytest.fixture
def processor() -> AsyncMock:
    """Provide a mocked payment processor client."""
    return AsyncMock(spec=PaymentProcessorClient)


@pytest.fixture
def margherita() -> CartItem:
    """Two Margheritas at 250 each."""
    return CartItem(product_id="pz-1", name="Margherita", unit_price=Decimal("250"), quantity=2)


@pytest.fixture
def approved_payment() -> dict[str, Any]:
    """Approved payment as returned by the processor lookup."""
    return {
        "id": "pay_123",
        "status": "approved",
        "external_reference": "u1",
        "transaction_amount": 500,
        "currency_id": "UYU",
        "date_approved": "2024-05-01T12:30:00.000-03:00",
        "additional_info": {
            "items": [
                {"id": "pz-1", "title": "Margherita", "quantity": "2", "unit_price": "250"},
            ]
        },
    }


@pytest.fixture
def mock_supabase_client() -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()

    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )

    with patch("storefront.core.supabase.get_supabase_client", return_value=mock_client):
        yield mock_client


@pytest.fixture
def client(
    mock_supabase_client: MagicMock,
    test_settings: Any,
    cart_store: FakeCartStore,
    order_store: FakeOrderStore,
    processor: AsyncMock,
) -> Generator[TestClient, None, None]:
    """Provide a test client wired to in-memory stores and a mocked processor.

    Yields:
        TestClient: FastAPI test client.
    """
    from storefront.api import deps
    from storefront.main import app
    from storefront.services.intent_service import PaymentIntentCreator
    from storefront.services.notification_service import PaymentNotificationHandler

    app.dependency_overrides[deps.get_cart_store] = lambda: cart_store
    app.dependency_overrides[deps.get_order_store] = lambda: order_store
    app.dependency_overrides[deps.get_intent_creator] = lambda: PaymentIntentCreator(
        processor=processor,
        cart_store=cart_store,
        settings=test_settings,
    )
    app.dependency_overrides[deps.get_notification_handler] = lambda: PaymentNotificationHandler(
        processor=processor,
        order_store=order_store,
        cart_store=cart_store,
    )

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
