"""Purchase model type definitions for database operations."""

from datetime import datetime
from typing import Literal, TypedDict


# Payment statuses reported by the processor
PaymentStatus = Literal[
    "approved",
    "pending",
    "authorized",
    "in_process",
    "in_mediation",
    "rejected",
    "cancelled",
    "refunded",
    "charged_back",
]


class PurchaseItemRow(TypedDict):
    """Structure for a single purchased line.

    Stored as part of the items JSONB array, copied at purchase time.
    """

    product_id: str | None
    name: str
    unit_price: str
    quantity: int


class PurchaseRow(TypedDict):
    """purchases table row representation.

    The primary key is the processor's payment id, which is what makes
    a second insert for the same payment fail instead of duplicating.
    """

    id: str
    user_id: str
    items: list[PurchaseItemRow]
    total: str
    currency: str | None
    status: PaymentStatus
    timestamp: datetime
    created_at: datetime
