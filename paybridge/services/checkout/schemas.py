"""API request/response schemas for checkout endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CheckoutRequest(BaseModel):
    """Body of the create-session endpoints; `subject` comes from the path."""

    model_config = ConfigDict(populate_by_name=True)

    price: int = Field(ge=0, strict=True)
    user_id: str | None = Field(default=None, alias="userId")


class SessionLookupRequest(BaseModel):
    """Body of the session/payment/subscription lookup endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(default=None, alias="sessionId")


class CancelSubscriptionRequest(BaseModel):
    """Body of `POST /cancel-subscription`."""

    model_config = ConfigDict(populate_by_name=True)

    stripe_session_id: str | None = Field(default=None, alias="stripeSessionId")


class CheckoutUrlResponse(BaseModel):
    """Stripe-hosted checkout page the client redirects to."""

    url: str


class PaymentDetailsResponse(BaseModel):
    """Payment intent behind a checkout session, as Stripe returned it."""

    model_config = ConfigDict(populate_by_name=True)

    payment_intent: dict[str, Any] = Field(alias="paymentIntent")


class SubscriptionDetailsResponse(BaseModel):
    """Subscription behind a checkout session, as Stripe returned it."""

    subscription: dict[str, Any]


class SessionDetailsResponse(BaseModel):
    """Raw checkout session."""

    session: dict[str, Any]


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


class MirrorRecord(BaseModel):
    """Denormalized copy of a checkout registered with the database service."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    stripe_session_id: str
    payment_method: str = "Stripe"
    amount_paid: float
    status: str = "active"

    @classmethod
    def for_session(cls, user_id: str, session_id: str, price_minor_units: int) -> "MirrorRecord":
        return cls(user_id=user_id, stripe_session_id=session_id, amount_paid=price_minor_units / 100)
