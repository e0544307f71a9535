"""Thin async adapter over the Stripe SDK.

The secret key travels with every request instead of living in `stripe.api_key`
so several adapters (or a fake in tests) can coexist in one process. Stripe
failures are re-raised as `DependencyError`.
"""

from typing import Any

import stripe

from paybridge.common.config import settings
from paybridge.common.errors import DependencyError
from paybridge.common.logging import logger
from paybridge.common.metrics import provider_errors_total


class StripeProvider:
    """Checkout, product, price, payment intent and subscription calls."""

    def __init__(self, api_key: str, currency: str = "eur", service_name: str = "checkout") -> None:
        self.api_key = api_key
        self.currency = currency
        self.service_name = service_name

    def _failed(self, operation: str, exc: stripe.StripeError) -> DependencyError:
        provider_errors_total.labels(service=self.service_name, operation=operation).inc()
        logger.warning("provider_call_failed operation=%s error=%s", operation, exc)
        return DependencyError(exc.user_message or str(exc))

    async def create_payment_session(
        self, subject: str, amount: int, success_url: str, cancel_url: str
    ) -> dict[str, Any]:
        """One-time payment session with a single inline-priced line item."""

        try:
            session = await stripe.checkout.Session.create_async(
                api_key=self.api_key,
                payment_method_types=["card"],
                mode="payment",
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "product_data": {"name": subject},
                            "unit_amount": amount,
                        },
                        "quantity": 1,
                    }
                ],
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as exc:
            raise self._failed("session_create", exc) from exc
        return session.to_dict()

    async def create_monthly_price(self, subject: str, amount: int) -> dict[str, Any]:
        """Create a product named `subject` and a monthly recurring price for it."""

        try:
            product = await stripe.Product.create_async(api_key=self.api_key, name=subject)
        except stripe.StripeError as exc:
            raise self._failed("product_create", exc) from exc
        try:
            price = await stripe.Price.create_async(
                api_key=self.api_key,
                product=product.id,
                currency=self.currency,
                recurring={"interval": "month"},
                unit_amount=amount,
            )
        except stripe.StripeError as exc:
            raise self._failed("price_create", exc) from exc
        return price.to_dict()

    async def create_subscription_session(
        self, price_id: str, success_url: str, cancel_url: str
    ) -> dict[str, Any]:
        try:
            session = await stripe.checkout.Session.create_async(
                api_key=self.api_key,
                payment_method_types=["card"],
                mode="subscription",
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as exc:
            raise self._failed("session_create", exc) from exc
        return session.to_dict()

    async def retrieve_session(self, session_id: str) -> dict[str, Any]:
        try:
            session = await stripe.checkout.Session.retrieve_async(session_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            raise self._failed("session_retrieve", exc) from exc
        return session.to_dict()

    async def expire_session(self, session_id: str) -> dict[str, Any]:
        try:
            session = await stripe.checkout.Session.expire_async(session_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            raise self._failed("session_expire", exc) from exc
        return session.to_dict()

    async def retrieve_payment_intent(self, payment_intent_id: str) -> dict[str, Any]:
        try:
            intent = await stripe.PaymentIntent.retrieve_async(payment_intent_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            raise self._failed("payment_intent_retrieve", exc) from exc
        return intent.to_dict()

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        try:
            subscription = await stripe.Subscription.retrieve_async(subscription_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            raise self._failed("subscription_retrieve", exc) from exc
        return subscription.to_dict()

    async def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        """Cancel immediately; Stripe has no undo for this."""

        try:
            subscription = await stripe.Subscription.cancel_async(subscription_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            raise self._failed("subscription_cancel", exc) from exc
        return subscription.to_dict()


def build_provider() -> StripeProvider:
    """Provider wired from process settings."""

    return StripeProvider(settings.stripe_secret_key, currency=settings.currency, service_name=settings.service_name)
