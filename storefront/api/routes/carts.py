"""Cart API routes."""

from fastapi import APIRouter, status

from storefront.api.deps import CartStoreDep, IntentCreatorDep
from storefront.schemas.cart import CartItemAdd, CartItemQuantityUpdate, CartResponse
from storefront.schemas.checkout import PaymentIntentResponse

router = APIRouter(prefix="/carts", tags=["carts"])


@router.get(
    "/{user_id}",
    response_model=CartResponse,
    summary="Get cart",
    description="Returns the user's current cart lines. An unknown user has an empty cart.",
)
async def get_cart(user_id: str, store: CartStoreDep) -> CartResponse:
    """Get a user's cart.

    Args:
        user_id: Cart owner.
        store: Cart storage.

    Returns:
        CartResponse: Current lines with totals.
    """
    return CartResponse(user_id=user_id, items=await store.get(user_id))


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear cart",
)
async def clear_cart(user_id: str, store: CartStoreDep) -> None:
    """Remove every line from a user's cart."""
    await store.clear(user_id)


@router.post(
    "/{user_id}/items",
    response_model=CartResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"description": "Name or price missing for a new line"}},
    summary="Add to cart",
    description="Adds units of a product, creating the line when it is not in the cart yet.",
)
async def add_item(user_id: str, data: CartItemAdd, store: CartStoreDep) -> CartResponse:
    """Add units of a product to a cart.

    Args:
        user_id: Cart owner.
        data: Product and units to add.
        store: Cart storage.

    Returns:
        CartResponse: The cart after the change.
    """
    await store.add(
        user_id,
        data.product_id,
        data.quantity,
        name=data.name,
        unit_price=data.unit_price,
    )
    return CartResponse(user_id=user_id, items=await store.get(user_id))


@router.patch(
    "/{user_id}/items/{product_id}",
    response_model=CartResponse,
    responses={404: {"description": "Line not in cart"}},
    summary="Set line quantity",
    description="Sets the quantity of a line. Zero or less removes it.",
)
async def update_item(
    user_id: str,
    product_id: str,
    data: CartItemQuantityUpdate,
    store: CartStoreDep,
) -> CartResponse:
    """Set the quantity of a cart line."""
    await store.update(user_id, product_id, data.quantity)
    return CartResponse(user_id=user_id, items=await store.get(user_id))


@router.delete(
    "/{user_id}/items/{product_id}",
    response_model=CartResponse,
    summary="Remove line",
)
async def remove_item(user_id: str, product_id: str, store: CartStoreDep) -> CartResponse:
    """Remove a line from a cart. Removing an absent line is a no-op."""
    await store.remove(user_id, product_id)
    return CartResponse(user_id=user_id, items=await store.get(user_id))


@router.post(
    "/{user_id}/checkout",
    response_model=PaymentIntentResponse,
    responses={
        400: {"description": "Cart empty or invalid"},
        500: {"description": "Payment processor unavailable"},
    },
    summary="Check out stored cart",
    description="Creates a payment intent from the server-side cart. The cart is cleared once payment is approved.",
)
async def checkout_cart(user_id: str, creator: IntentCreatorDep) -> PaymentIntentResponse:
    """Create a payment intent from a user's stored cart.

    Args:
        user_id: Cart owner.
        creator: Payment intent creator.

    Returns:
        PaymentIntentResponse: Preference id and checkout URL.
    """
    return await creator.checkout_cart(user_id)
