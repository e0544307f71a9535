"""Shared fakes for Stripe and the internal database service."""

import os

os.environ.setdefault("OTEL_EXPORTER_OTLP_ENDPOINT", "")
os.environ.setdefault("MIRROR_ENABLED", "false")

import json

import httpx
import pytest

from paybridge.common.errors import DependencyError
from paybridge.services.checkout.mirror import MirrorClient
from paybridge.services.checkout.service import CheckoutOrchestrator


class FakeProvider:
    """In-memory stand-in for `StripeProvider` that records every call."""

    def __init__(self):
        self.calls = []
        self.sessions = {}
        self.payment_intents = {"pi_1": {"id": "pi_1", "object": "payment_intent", "amount": 500}}
        self.subscriptions = {"sub_1": {"id": "sub_1", "object": "subscription", "status": "active"}}
        self.fail_on = set()
        self.session_overrides = {}
        self._counter = 0

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail_on:
            raise DependencyError(f"{name} failed")

    def _new_session(self, mode, **extra):
        self._counter += 1
        session_id = f"cs_test_{self._counter}"
        session = {
            "id": session_id,
            "object": "checkout.session",
            "mode": mode,
            "url": f"https://checkout.stripe.test/{session_id}",
            "status": "open",
            "payment_intent": None,
            "subscription": None,
        }
        session.update(extra)
        session.update(self.session_overrides)
        self.sessions[session_id] = session
        return session

    def names(self):
        return [name for name, _ in self.calls]

    async def create_payment_session(self, subject, amount, success_url, cancel_url):
        self._record("create_payment_session", subject, amount, success_url, cancel_url)
        return self._new_session("payment", payment_intent="pi_1")

    async def create_monthly_price(self, subject, amount):
        self._record("create_monthly_price", subject, amount)
        return {"id": "price_1", "unit_amount": amount, "recurring": {"interval": "month"}}

    async def create_subscription_session(self, price_id, success_url, cancel_url):
        self._record("create_subscription_session", price_id, success_url, cancel_url)
        return self._new_session("subscription", subscription="sub_1")

    async def retrieve_session(self, session_id):
        self._record("retrieve_session", session_id)
        if session_id not in self.sessions:
            raise DependencyError(f"No such checkout.session: '{session_id}'")
        return self.sessions[session_id]

    async def expire_session(self, session_id):
        self._record("expire_session", session_id)
        self.sessions[session_id]["status"] = "expired"
        return self.sessions[session_id]

    async def retrieve_payment_intent(self, payment_intent_id):
        self._record("retrieve_payment_intent", payment_intent_id)
        return self.payment_intents[payment_intent_id]

    async def retrieve_subscription(self, subscription_id):
        self._record("retrieve_subscription", subscription_id)
        return self.subscriptions[subscription_id]

    async def cancel_subscription(self, subscription_id):
        self._record("cancel_subscription", subscription_id)
        self.subscriptions[subscription_id]["status"] = "canceled"
        return self.subscriptions[subscription_id]


class FakeDatabaseService:
    """`httpx.MockTransport` handler emulating `/api/subscriptions`."""

    def __init__(self):
        self.records = {}
        self.requests = []
        self.register_status = 201
        self.delete_status = None
        self.raise_error = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error is not None:
            raise self.raise_error
        if request.method == "POST" and request.url.path == "/api/subscriptions":
            if self.register_status != 201:
                return httpx.Response(self.register_status, json={"error": "rejected"})
            record = json.loads(request.content)
            self.records[record["stripeSessionId"]] = record
            return httpx.Response(201, json=record)
        if request.method == "DELETE" and request.url.path.startswith("/api/subscriptions/"):
            session_id = request.url.path.rsplit("/", 1)[-1]
            if self.delete_status is not None:
                return httpx.Response(self.delete_status, json={"error": "rejected"})
            if self.records.pop(session_id, None) is None:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, json={"message": "deleted"})
        return httpx.Response(404)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def database():
    return FakeDatabaseService()


@pytest.fixture
def mirror(database):
    return MirrorClient("http://db.internal", transport=httpx.MockTransport(database))


@pytest.fixture
def orchestrator(provider, mirror):
    return CheckoutOrchestrator(
        provider,
        mirror,
        success_url="http://front.test/profile?session_id={CHECKOUT_SESSION_ID}",
        cancel_url="http://front.test/souscription",
    )


@pytest.fixture
def plain_orchestrator(provider):
    """Orchestrator without the database mirror step."""

    return CheckoutOrchestrator(
        provider,
        None,
        success_url="http://front.test/profile?session_id={CHECKOUT_SESSION_ID}",
        cancel_url="http://front.test/souscription",
    )
