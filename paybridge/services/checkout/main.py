"""HTTP surface for checkout session creation, lookups and cancellation."""

from time import perf_counter

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from paybridge.common.config import settings
from paybridge.common.errors import CheckoutError
from paybridge.common.logging import bind_request, configure_logging, logger
from paybridge.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from paybridge.common.startup import log_startup_config
from paybridge.common.tracing import instrument_app, setup_tracing
from paybridge.services.checkout.mirror import build_mirror
from paybridge.services.checkout.provider import build_provider
from paybridge.services.checkout.schemas import (
    CancelSubscriptionRequest,
    CheckoutRequest,
    CheckoutUrlResponse,
    MessageResponse,
    PaymentDetailsResponse,
    SessionDetailsResponse,
    SessionLookupRequest,
    SubscriptionDetailsResponse,
)
from paybridge.services.checkout.service import CheckoutOrchestrator


def build_orchestrator() -> CheckoutOrchestrator:
    return CheckoutOrchestrator(
        build_provider(),
        build_mirror(),
        success_url=settings.success_url,
        cancel_url=settings.cancel_url,
        service_name=settings.service_name,
    )


def create_app(orchestrator: CheckoutOrchestrator, tracing: bool = False) -> FastAPI:
    """Build the FastAPI app around an injected orchestrator."""

    app = FastAPI(title="PayBridge Checkout")
    app.state.orchestrator = orchestrator
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if tracing:
        instrument_app(app)

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Bind a correlation id and record request count and latency."""

        bind_request(request.headers.get("x-correlation-id"))
        start = perf_counter()
        route = request.url.path
        method = request.method
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=settings.service_name,
                route=route,
                method=method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=settings.service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()

    @app.exception_handler(CheckoutError)
    async def checkout_error_handler(_: Request, exc: CheckoutError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError):
        logger.warning("request_rejected errors=%s", exc.errors())
        return JSONResponse(status_code=400, content={"error": "invalid request body"})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception):
        logger.exception("unhandled_error kind=%s", type(exc).__name__)
        return JSONResponse(status_code=500, content={"error": str(exc) or "internal error"})

    @app.post("/create-checkout-session/{subject}", response_model=CheckoutUrlResponse)
    async def create_checkout_session(subject: str, req: CheckoutRequest, request: Request):
        """Create a one-time payment session for `subject`."""

        url = await request.app.state.orchestrator.create_payment_session(subject, req.price, req.user_id)
        return CheckoutUrlResponse(url=url)

    @app.post("/create-subscription/{subject}", response_model=CheckoutUrlResponse)
    async def create_subscription(subject: str, req: CheckoutRequest, request: Request):
        """Create a monthly subscription session for `subject`."""

        url = await request.app.state.orchestrator.create_subscription_session(subject, req.price, req.user_id)
        return CheckoutUrlResponse(url=url)

    @app.post("/get-payment-details", response_model=PaymentDetailsResponse)
    async def get_payment_details(req: SessionLookupRequest, request: Request):
        intent = await request.app.state.orchestrator.get_payment_details(req.session_id)
        return PaymentDetailsResponse(payment_intent=intent)

    @app.post("/get-subscription-details", response_model=SubscriptionDetailsResponse)
    async def get_subscription_details(req: SessionLookupRequest, request: Request):
        subscription = await request.app.state.orchestrator.get_subscription_details(req.session_id)
        return SubscriptionDetailsResponse(subscription=subscription)

    @app.post("/get-session-details", response_model=SessionDetailsResponse)
    async def get_session_details(req: SessionLookupRequest, request: Request):
        session = await request.app.state.orchestrator.get_session_details(req.session_id)
        return SessionDetailsResponse(session=session)

    @app.post("/cancel-subscription", response_model=MessageResponse)
    async def cancel_subscription(req: CancelSubscriptionRequest, request: Request):
        """Cancel the subscription behind a checkout session and drop its record."""

        message = await request.app.state.orchestrator.cancel_subscription(req.stripe_session_id)
        return MessageResponse(message=message)

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    @app.get("/health")
    def health():
        """Container health probe endpoint."""

        return {"ok": True}

    return app


configure_logging()
tracing_enabled = setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    [
        "SERVICE_NAME",
        "STRIPE_SECRET_KEY",
        "CLIENT_URL",
        "MIRROR_ENABLED",
        "DATABASE_SERVICE_URL",
        "PORT",
    ],
)
app = create_app(build_orchestrator(), tracing=tracing_enabled)


def run() -> None:
    """Serve the app on the configured port."""

    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
