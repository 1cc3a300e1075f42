"""Database model type definitions."""

from storefront.models.cart import CartItemRow, CartItemUpsert
from storefront.models.purchase import PaymentStatus, PurchaseItemRow, PurchaseRow

__all__ = [
    "CartItemRow",
    "CartItemUpsert",
    "PaymentStatus",
    "PurchaseItemRow",
    "PurchaseRow",
]
