"""Checkout routes: payment intent creation for the storefront frontend."""

import logging

from fastapi import APIRouter, status

from storefront.api.deps import IntentCreatorDep
from storefront.schemas.checkout import CreatePreferenceRequest, PaymentIntentResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["checkout"])


@router.post(
    "/create_preference",
    response_model=PaymentIntentResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Cart or user id invalid"},
        500: {"description": "Payment processor unavailable"},
    },
    summary="Create Mercado Pago preference",
    description="Validates the cart and creates a payment intent. The frontend redirects to redirectUrl.",
)
async def create_preference(
    data: CreatePreferenceRequest,
    creator: IntentCreatorDep,
) -> PaymentIntentResponse:
    """Create a payment intent for the submitted cart.

    No cart or purchase state is written here; the purchase is recorded when
    the processor notifies an approved payment.

    Args:
        data: Cart lines and buyer id.
        creator: Payment intent creator.

    Returns:
        PaymentIntentResponse: Preference id and checkout URL.
    """
    return await creator.create_intent(data.user_id, data.items)
