"""Cart Pydantic schemas for API request/response models."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field


class CartItem(BaseModel):
    """A single cart line.

    This is the one item shape used past the API boundary; loosely shaped
    client payloads are normalized into it before reaching any service.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    product_id: str = Field(min_length=1, description="Catalog entry identifier")
    name: str = Field(description="Display name, used as the preference item title")
    unit_price: Decimal = Field(gt=0, description="Unit price in the store currency")
    quantity: int = Field(ge=0, description="Units in the cart; 0 means the line is gone")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def line_total(self) -> Decimal:
        """Unit price times quantity."""
        return self.unit_price * self.quantity


class CartItemAdd(BaseModel):
    """Schema for adding units of a product via POST /carts/{user_id}/items."""

    product_id: str = Field(min_length=1, description="Catalog entry identifier")
    name: str | None = Field(default=None, description="Required when the product is not in the cart yet")
    unit_price: Decimal | None = Field(default=None, gt=0, description="Required when the product is not in the cart yet")
    quantity: int = Field(default=1, ge=1, description="Units to add")


class CartItemQuantityUpdate(BaseModel):
    """Schema for setting a line quantity via PATCH. Zero or less removes the line."""

    quantity: int = Field(description="New quantity")


class CartResponse(BaseModel):
    """Schema for cart API responses."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(description="Cart owner")
    items: list[CartItem] = Field(default_factory=list, description="Cart lines")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> Decimal:
        """Sum of all line totals."""
        return sum((item.line_total for item in self.items), Decimal("0"))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def item_count(self) -> int:
        """Total units across all lines."""
        return sum(item.quantity for item in self.items)
