"""Purchase record Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from storefront.models.purchase import PurchaseRow


class PurchaseItem(BaseModel):
    """Snapshot of one purchased line, copied at purchase time."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    product_id: str | None = Field(default=None, description="Catalog entry identifier, if the processor echoed it")
    name: str = Field(description="Item title")
    unit_price: Decimal = Field(description="Unit price charged")
    quantity: int = Field(ge=0, description="Units purchased")


class PurchaseRecord(BaseModel):
    """Immutable record of one approved payment."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    purchase_id: str = Field(min_length=1, description="Processor payment id, also the idempotency key")
    user_id: str = Field(min_length=1, description="Buyer, taken from the payment's external reference")
    items: list[PurchaseItem] = Field(default_factory=list, description="Item snapshot")
    total: Decimal = Field(description="Amount charged, as reported by the processor")
    currency: str | None = Field(default=None, description="Currency id reported by the processor")
    status: str = Field(default="approved", description="Processor payment status")
    timestamp: datetime = Field(description="Approval time")

    def items_total(self) -> Decimal:
        """Recompute the total from the item snapshot."""
        return sum((item.unit_price * item.quantity for item in self.items), Decimal("0"))

    def to_row(self) -> dict[str, Any]:
        """Serialize to a purchases table row."""
        data = self.model_dump(mode="json")
        data["id"] = data.pop("purchase_id")
        return data

    @classmethod
    def from_row(cls, row: PurchaseRow | dict[str, Any]) -> "PurchaseRecord":
        """Build a record from a purchases table row."""
        data = dict(row)
        data["purchase_id"] = str(data.pop("id"))
        data.pop("created_at", None)
        return cls.model_validate(data)


class PurchaseListResponse(BaseModel):
    """Schema for purchase history responses."""

    model_config = ConfigDict(from_attributes=True)

    items: list[PurchaseRecord] = Field(description="Purchases, newest first")


class PurchaseHistoryStatus(BaseModel):
    """Whether a user has bought anything yet."""

    user_id: str = Field(description="Buyer")
    has_purchases: bool = Field(description="True once at least one approved payment is recorded")
