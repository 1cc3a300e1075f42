"""Payment intent (Mercado Pago preference) creation."""

import logging
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

from storefront.api.middleware.error_handler import InvalidCartError, PaymentProcessorError
from storefront.core.config import Settings, get_settings
from storefront.schemas.cart import CartItem
from storefront.schemas.checkout import PaymentIntentResponse
from storefront.services.cart_store import CartStore
from storefront.services.processor_client import PaymentProcessorClient

logger = logging.getLogger(__name__)

# Field names seen for the same cart line across frontend versions
NAME_KEYS = ("name", "title", "nombre")
QUANTITY_KEYS = ("quantity", "cantidad")
PRICE_KEYS = ("unitPrice", "unit_price", "precio", "price")
PRODUCT_ID_KEYS = ("productId", "product_id", "pizzaId", "id")


def _first(raw: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _parse_quantity(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _parse_price(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite():
        return None
    # The processor takes a JSON number; values that do not survive float are unusable
    as_float = float(price)
    if not math.isfinite(as_float) or as_float <= 0:
        return None
    return price


def normalize_cart_items(raw_items: Sequence[Any] | None) -> list[CartItem]:
    """Validate and normalize cart lines into CartItem records.

    Accepts CartItem instances or dicts using any of the known field name
    variants. The first invalid line stops normalization.

    Args:
        raw_items: Cart lines as read from the store or sent by a client.

    Returns:
        list[CartItem]: Normalized lines, in input order.

    Raises:
        InvalidCartError: If the cart is empty or a line is invalid.
    """
    if not isinstance(raw_items, (list, tuple)) or not raw_items:
        raise InvalidCartError("The cart is empty or malformed")

    items: list[CartItem] = []
    for index, raw in enumerate(raw_items):
        if isinstance(raw, CartItem):
            raw = raw.model_dump()
        if not isinstance(raw, dict):
            raise InvalidCartError("Cart item must be an object", index=index)

        name = _first(raw, NAME_KEYS)
        if not isinstance(name, str) or not name.strip():
            raise InvalidCartError("Item title is missing", field="name", index=index)

        quantity = _parse_quantity(_first(raw, QUANTITY_KEYS))
        if quantity is None or quantity <= 0:
            raise InvalidCartError("Quantity must be a positive integer", field="quantity", index=index)

        unit_price = _parse_price(_first(raw, PRICE_KEYS))
        if unit_price is None or unit_price <= 0:
            raise InvalidCartError("Unit price must be a positive number", field="unitPrice", index=index)

        product_id = _first(raw, PRODUCT_ID_KEYS)
        items.append(
            CartItem(
                product_id=str(product_id) if product_id is not None else name.strip(),
                name=name.strip(),
                unit_price=unit_price,
                quantity=quantity,
            )
        )

    return items


class PaymentIntentCreator:
    """Builds preferences for validated carts and hands them to the processor.

    Never touches the cart or order stores except for the read in
    checkout_cart.
    """

    def __init__(
        self,
        processor: PaymentProcessorClient | None = None,
        cart_store: CartStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize intent creator.

        Args:
            processor: Processor client. Defaults to a Mercado Pago client.
            cart_store: Cart storage, used only by checkout_cart.
            settings: Application settings. Defaults to cached settings.
        """
        self.processor = processor if processor is not None else PaymentProcessorClient()
        self._cart_store = cart_store
        self.settings = settings if settings is not None else get_settings()

    @property
    def cart_store(self) -> CartStore:
        if self._cart_store is None:
            self._cart_store = CartStore()
        return self._cart_store

    def build_preference(self, user_id: str, items: list[CartItem]) -> dict[str, Any]:
        """Build the preference payload for a validated cart."""
        return {
            "items": [
                {
                    "id": item.product_id,
                    "title": item.name,
                    "quantity": item.quantity,
                    "unit_price": float(item.unit_price),
                    "currency_id": self.settings.payment_currency,
                }
                for item in items
            ],
            "back_urls": self.settings.back_urls,
            "auto_return": "approved",
            "external_reference": user_id,
            "notification_url": self.settings.notification_url,
        }

    async def create_intent(self, user_id: Any, cart_items: Sequence[Any] | None) -> PaymentIntentResponse:
        """Create a payment intent for a user's cart.

        Args:
            user_id: Buyer; echoed back by the processor as external_reference.
                Surrounding whitespace is stripped before use.
            cart_items: Cart lines (CartItem or loosely shaped dicts).

        Returns:
            PaymentIntentResponse: Preference id and the redirect URL.

        Raises:
            InvalidCartError: If validation fails; the processor is not called.
            PaymentProcessorError: If the processor call fails.
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise InvalidCartError("A user id is required to create a payment", field="userId")
        user_id = user_id.strip()

        items = normalize_cart_items(cart_items)
        preference = await self.processor.create_preference(self.build_preference(user_id, items))

        intent_id = preference.get("id")
        redirect_url = preference.get("init_point")
        if not intent_id or not redirect_url:
            raise PaymentProcessorError(processor_message="Preference response is missing id or init_point")

        logger.info("Preference %s created for user %s (%d items)", intent_id, user_id, len(items))
        return PaymentIntentResponse(intent_id=str(intent_id), redirect_url=redirect_url)

    async def checkout_cart(self, user_id: str) -> PaymentIntentResponse:
        """Create a payment intent from the user's stored cart."""
        items = await self.cart_store.get(user_id)
        return await self.create_intent(user_id, items)
