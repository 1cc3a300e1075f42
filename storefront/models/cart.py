"""Cart model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict


class CartItemRow(TypedDict):
    """cart_items table row representation.

    One row per product per user; (user_id, product_id) is unique.
    """

    user_id: str
    product_id: str
    name: str
    unit_price: str
    quantity: int
    updated_at: datetime


class CartItemUpsert(TypedDict, total=False):
    """Data written when a cart line is created or replaced."""

    user_id: str
    product_id: str
    name: str
    unit_price: str
    quantity: int
    updated_at: str
