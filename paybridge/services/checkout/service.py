"""Checkout orchestration.

Creates Stripe checkout sessions, optionally mirrors them into the internal
database service, and expires the session again when that mirror write fails.
Read endpoints are straight passthroughs to Stripe.
"""

import functools
from typing import Any

import httpx

from paybridge.common.errors import CheckoutError, DependencyError, UnknownError, ValidationError
from paybridge.common.logging import bind_session, logger
from paybridge.common.metrics import checkout_sessions_created_total, compensations_total, mirror_failures_total
from paybridge.services.checkout.mirror import MirrorClient
from paybridge.services.checkout.schemas import MirrorRecord


def boundary(operation: str):
    """Let `CheckoutError` through and wrap anything else in `UnknownError`."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except CheckoutError as exc:
                logger.warning("%s_failed kind=%s error=%s", operation, type(exc).__name__, exc.message)
                raise
            except Exception as exc:
                logger.exception("%s_failed kind=UnknownError", operation)
                raise UnknownError(str(exc) or type(exc).__name__) from exc

        return wrapper

    return decorator


class CheckoutOrchestrator:
    """Owns the create-then-mirror saga and the Stripe passthrough reads.

    `mirror` is None for deployments without the internal database service;
    in that case `user_id` is optional and nothing is compensated.
    """

    def __init__(
        self,
        provider,
        mirror: MirrorClient | None,
        success_url: str,
        cancel_url: str,
        service_name: str = "checkout",
    ) -> None:
        self.provider = provider
        self.mirror = mirror
        self.success_url = success_url
        self.cancel_url = cancel_url
        self.service_name = service_name

    @property
    def mirror_enabled(self) -> bool:
        return self.mirror is not None

    def _require_user(self, user_id: str | None) -> None:
        if self.mirror_enabled and not (user_id and user_id.strip()):
            raise ValidationError("userId is required")

    async def _expire(self, session_id: str) -> None:
        """Best-effort compensation; a failure here is logged, never raised."""

        try:
            await self.provider.expire_session(session_id)
        except Exception:
            compensations_total.labels(service=self.service_name, outcome="failed").inc()
            logger.exception("session_expire_failed session_id=%s", session_id)
            return
        compensations_total.labels(service=self.service_name, outcome="expired").inc()
        logger.info("session_expired session_id=%s", session_id)

    async def _mirror_or_compensate(self, session: dict[str, Any], user_id: str, price: int) -> None:
        if self.mirror is None:
            return
        session_id = session["id"]
        record = MirrorRecord.for_session(user_id, session_id, price)
        try:
            response = await self.mirror.register(record)
        except httpx.HTTPError as exc:
            mirror_failures_total.labels(service=self.service_name, operation="register").inc()
            logger.error("mirror_register_error session_id=%s error=%s", session_id, exc)
            await self._expire(session_id)
            raise DependencyError(f"database service unavailable: {exc}") from exc
        if response.status_code != 201:
            mirror_failures_total.labels(service=self.service_name, operation="register").inc()
            logger.error("mirror_register_rejected session_id=%s status=%s", session_id, response.status_code)
            await self._expire(session_id)
            raise DependencyError(f"database service rejected the record (status {response.status_code})")
        logger.info("mirror_registered session_id=%s user_id=%s", session_id, user_id)

    async def _session(self, session_id: str | None) -> dict[str, Any]:
        if not session_id:
            raise DependencyError("no checkout session id given")
        bind_session(session_id)
        return await self.provider.retrieve_session(session_id)

    def _require_url(self, session: dict[str, Any]) -> None:
        if not session.get("url"):
            raise DependencyError(f"checkout session {session.get('id')} has no redirect url")

    @boundary("create_payment_session")
    async def create_payment_session(self, subject: str, price: int, user_id: str | None = None) -> str:
        """Create a one-time payment session and return its redirect URL."""

        self._require_user(user_id)
        session = await self.provider.create_payment_session(subject, price, self.success_url, self.cancel_url)
        bind_session(session["id"])
        self._require_url(session)
        checkout_sessions_created_total.labels(service=self.service_name, mode="payment").inc()
        logger.info("session_created mode=payment subject=%s amount=%s", subject, price)
        await self._mirror_or_compensate(session, user_id, price)
        return session["url"]

    @boundary("create_subscription_session")
    async def create_subscription_session(self, subject: str, price: int, user_id: str | None = None) -> str:
        """Create product + monthly price, then a subscription-mode session."""

        self._require_user(user_id)
        stripe_price = await self.provider.create_monthly_price(subject, price)
        session = await self.provider.create_subscription_session(
            stripe_price["id"], self.success_url, self.cancel_url
        )
        bind_session(session["id"])
        self._require_url(session)
        checkout_sessions_created_total.labels(service=self.service_name, mode="subscription").inc()
        logger.info("session_created mode=subscription subject=%s amount=%s", subject, price)
        await self._mirror_or_compensate(session, user_id, price)
        return session["url"]

    @boundary("get_payment_details")
    async def get_payment_details(self, session_id: str | None) -> dict[str, Any]:
        session = await self._session(session_id)
        payment_intent_id = session.get("payment_intent")
        if not payment_intent_id:
            raise DependencyError("checkout session has no payment intent")
        return await self.provider.retrieve_payment_intent(payment_intent_id)

    @boundary("get_subscription_details")
    async def get_subscription_details(self, session_id: str | None) -> dict[str, Any]:
        session = await self._session(session_id)
        subscription_id = session.get("subscription")
        if not subscription_id:
            raise DependencyError("checkout session has no subscription")
        return await self.provider.retrieve_subscription(subscription_id)

    @boundary("get_session_details")
    async def get_session_details(self, session_id: str | None) -> dict[str, Any]:
        return await self._session(session_id)

    @boundary("cancel_subscription")
    async def cancel_subscription(self, stripe_session_id: str | None) -> str:
        """Cancel the session's subscription on Stripe, then drop its mirror record.

        The Stripe cancellation is not undone when the mirror delete fails.
        """

        if not stripe_session_id:
            raise ValidationError("stripeSessionId is required")
        session = await self._session(stripe_session_id)
        subscription_id = session.get("subscription")
        if not subscription_id:
            raise ValidationError("no subscription attached to this checkout session")

        await self.provider.cancel_subscription(subscription_id)
        logger.info("subscription_cancelled subscription_id=%s", subscription_id)

        if self.mirror is not None:
            try:
                response = await self.mirror.delete(stripe_session_id)
            except httpx.HTTPError as exc:
                mirror_failures_total.labels(service=self.service_name, operation="delete").inc()
                logger.error("mirror_delete_error subscription_id=%s error=%s", subscription_id, exc)
                raise DependencyError(f"database service unavailable: {exc}") from exc
            if response.status_code != 200:
                mirror_failures_total.labels(service=self.service_name, operation="delete").inc()
                logger.error(
                    "mirror_delete_rejected subscription_id=%s status=%s", subscription_id, response.status_code
                )
                raise DependencyError(
                    f"subscription cancelled but its record could not be deleted (status {response.status_code})"
                )
        return "Subscription cancelled"
