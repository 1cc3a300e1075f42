"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends

from storefront.services.cart_store import CartStore
from storefront.services.intent_service import PaymentIntentCreator
from storefront.services.notification_service import PaymentNotificationHandler
from storefront.services.order_store import OrderStore


def get_cart_store() -> CartStore:
    """Cart storage bound to the shared Supabase client."""
    return CartStore()


def get_order_store() -> OrderStore:
    """Purchase storage bound to the shared Supabase client."""
    return OrderStore()


def get_intent_creator(cart_store: Annotated[CartStore, Depends(get_cart_store)]) -> PaymentIntentCreator:
    """Intent creator wired to the Mercado Pago client and the cart store."""
    return PaymentIntentCreator(cart_store=cart_store)


def get_notification_handler(
    cart_store: Annotated[CartStore, Depends(get_cart_store)],
    order_store: Annotated[OrderStore, Depends(get_order_store)],
) -> PaymentNotificationHandler:
    """Notification handler sharing the request's stores.

    Args:
        cart_store: Cart storage cleared after a recorded purchase.
        order_store: Purchase storage used for recording and duplicate checks.

    Returns:
        PaymentNotificationHandler: Handler for one webhook delivery.
    """
    return PaymentNotificationHandler(order_store=order_store, cart_store=cart_store)


# Type aliases for cleaner dependency injection
CartStoreDep = Annotated[CartStore, Depends(get_cart_store)]
OrderStoreDep = Annotated[OrderStore, Depends(get_order_store)]
IntentCreatorDep = Annotated[PaymentIntentCreator, Depends(get_intent_creator)]
NotificationHandlerDep = Annotated[PaymentNotificationHandler, Depends(get_notification_handler)]
