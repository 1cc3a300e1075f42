"""Purchase history API routes."""

from fastapi import APIRouter

from storefront.api.deps import OrderStoreDep
from storefront.api.middleware.error_handler import NotFoundError
from storefront.schemas.purchase import PurchaseHistoryStatus, PurchaseListResponse, PurchaseRecord

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.get(
    "/{user_id}",
    response_model=PurchaseListResponse,
    summary="List purchases",
    description="Returns the user's recorded purchases, newest first.",
)
async def list_purchases(user_id: str, store: OrderStoreDep) -> PurchaseListResponse:
    """List a user's purchases.

    Args:
        user_id: Buyer.
        store: Purchase storage.

    Returns:
        PurchaseListResponse: Purchases, newest first.
    """
    return PurchaseListResponse(items=await store.list_for_user(user_id))


@router.get(
    "/{user_id}/exists",
    response_model=PurchaseHistoryStatus,
    summary="Check purchase history",
    description="Tells whether the user has any recorded purchase.",
)
async def purchase_history_status(user_id: str, store: OrderStoreDep) -> PurchaseHistoryStatus:
    """Report whether a user has purchased before."""
    return PurchaseHistoryStatus(user_id=user_id, has_purchases=await store.has_purchases(user_id))

@router.get(
    "/{user_id}/{purchase_id}",
    response_model=PurchaseRecord,
    responses={404: {"description": "Purchase not found"}},
    summary="Get purchase",
)
async def get_purchase(user_id: str, purchase_id: str, store: OrderStoreDep) -> PurchaseRecord:
    """Get one purchase of a user.

    Raises:
        NotFoundError: If the user has no purchase with this id.
    """
    record = await store.get(user_id, purchase_id)
    if record is None:
        raise NotFoundError(f"Purchase {purchase_id} not found")
    return record
