"""Checkout and webhook Pydantic schemas."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


NotificationOutcome = Literal["ignored", "not_approved", "recorded", "duplicate"]


class CreatePreferenceRequest(BaseModel):
    """Body of POST /create_preference.

    Items are kept loose: field-level checks happen in the intent
    creator so a bad line is reported as an invalid cart, not a schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    items: Any = Field(default=None, description="Cart lines as sent by the frontend")
    user_id: Any = Field(default=None, alias="userId", description="Buyer identifier")


class PaymentIntentResponse(BaseModel):
    """Result of creating a payment intent with the processor."""

    model_config = ConfigDict(populate_by_name=True)

    intent_id: str = Field(alias="intentId", description="Processor preference id")
    redirect_url: str = Field(alias="redirectUrl", description="Checkout URL the buyer must be sent to")


class WebhookAck(BaseModel):
    """Acknowledgement returned to the processor."""

    status: NotificationOutcome = Field(description="What the notification resulted in")
