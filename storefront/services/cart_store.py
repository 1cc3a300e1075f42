"""Durable, user-scoped cart storage backed by Supabase."""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from supabase import Client

from storefront.api.middleware.error_handler import InvalidCartError, NotFoundError
from storefront.core.config import get_settings
from storefront.core.supabase import get_supabase_client
from storefront.models.cart import CartItemRow, CartItemUpsert
from storefront.schemas.cart import CartItem

logger = logging.getLogger(__name__)


class CartClearError(Exception):
    """Clearing a cart failed. Best-effort cleanup; callers log and move on."""

    def __init__(self, user_id: str, cause: Exception) -> None:
        self.user_id = user_id
        self.cause = cause
        super().__init__(f"Failed to clear cart for user {user_id}: {cause}")


def _to_item(row: CartItemRow) -> CartItem:
    return CartItem(
        product_id=str(row["product_id"]),
        name=row.get("name") or "",
        unit_price=Decimal(str(row["unit_price"])),
        quantity=int(row["quantity"]),
    )


class CartStore:
    """Cart lines keyed by (user_id, product_id).

    Mutations are last-write-wins per line; there is no cross-line transaction.
    """

    def __init__(self, client: Client | None = None, table: str | None = None) -> None:
        """Initialize cart store with Supabase client.

        Args:
            client: Supabase client. Defaults to the cached singleton.
            table: Table name. Defaults to settings.carts_table.
        """
        self.client = client if client is not None else get_supabase_client()
        self.table = table or get_settings().carts_table

    async def get(self, user_id: str) -> list[CartItem]:
        """Get the current cart lines for a user.

        Args:
            user_id: Cart owner.

        Returns:
            list[CartItem]: Lines with a positive quantity, ordered by product id.
        """
        if not user_id:
            return []

        response = (
            self.client.table(self.table)
            .select("*")
            .eq("user_id", user_id)
            .order("product_id")
            .execute()
        )

        rows: list[CartItemRow] = response.data or []
        return [_to_item(row) for row in rows if int(row.get("quantity") or 0) > 0]

    async def get_item(self, user_id: str, product_id: str) -> CartItem | None:
        """Get a single cart line, or None if absent."""
        response = (
            self.client.table(self.table)
            .select("*")
            .eq("user_id", user_id)
            .eq("product_id", product_id)
            .maybe_single()
            .execute()
        )
        row = response.data if response and response.data else None
        if not row or int(row.get("quantity") or 0) <= 0:
            return None
        return _to_item(row)

    async def add(
        self,
        user_id: str,
        product_id: str,
        quantity: int,
        name: str | None = None,
        unit_price: Decimal | None = None,
    ) -> int:
        """Add units of a product, creating the line if needed.

        Args:
            user_id: Cart owner.
            product_id: Product to add.
            quantity: Units to add; must be positive.
            name: Display name, required when the line does not exist yet.
            unit_price: Unit price, required when the line does not exist yet.

        Returns:
            int: Quantity of the line after the operation.

        Raises:
            InvalidCartError: If the input cannot produce a valid line.
        """
        if not user_id:
            raise InvalidCartError("A user id is required to modify a cart", field="userId")
        if quantity <= 0:
            raise InvalidCartError("Quantity to add must be positive", field="quantity")

        current = await self.get_item(user_id, product_id)
        if current is not None:
            item = current.model_copy(update={"quantity": current.quantity + quantity})
        else:
            if not name:
                raise InvalidCartError("A name is required for a new cart line", field="name")
            if unit_price is None or unit_price <= 0:
                raise InvalidCartError("A positive unit price is required for a new cart line", field="unitPrice")
            item = CartItem(product_id=product_id, name=name, unit_price=unit_price, quantity=quantity)

        self._upsert(user_id, item)
        logger.info("Cart %s: %s now at quantity %d", user_id, product_id, item.quantity)
        return item.quantity

    async def update(self, user_id: str, product_id: str, quantity: int) -> None:
        """Set the quantity of an existing line.

        A quantity of zero or less removes the line.

        Raises:
            NotFoundError: If the line does not exist.
        """
        if quantity <= 0:
            await self.remove(user_id, product_id)
            return

        current = await self.get_item(user_id, product_id)
        if current is None:
            raise NotFoundError(f"Item {product_id} is not in the cart")

        self._upsert(user_id, current.model_copy(update={"quantity": quantity}))

    async def remove(self, user_id: str, product_id: str) -> None:
        """Delete one line. Removing an absent line is a no-op."""
        (
            self.client.table(self.table)
            .delete()
            .eq("user_id", user_id)
            .eq("product_id", product_id)
            .execute()
        )

    async def clear(self, user_id: str) -> None:
        """Delete every line of a user's cart.

        Clearing an empty cart is a no-op.

        Raises:
            CartClearError: If the store could not be reached.
        """
        try:
            self.client.table(self.table).delete().eq("user_id", user_id).execute()
        except Exception as e:
            raise CartClearError(user_id, e) from e

    def _upsert(self, user_id: str, item: CartItem) -> None:
        row: CartItemUpsert = {
            "user_id": user_id,
            "product_id": item.product_id,
            "name": item.name,
            "unit_price": str(item.unit_price),
            "quantity": item.quantity,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        self.client.table(self.table).upsert(row, on_conflict="user_id,product_id").execute()
