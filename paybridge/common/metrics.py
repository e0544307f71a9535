"""Prometheus metric definitions for the checkout service."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
checkout_sessions_created_total = Counter(
    "checkout_sessions_created_total",
    "Checkout sessions created on the provider",
    ["service", "mode"],
)
provider_errors_total = Counter(
    "provider_errors_total",
    "Failed provider calls",
    ["service", "operation"],
)
mirror_failures_total = Counter(
    "mirror_failures_total",
    "Failed calls to the internal database service",
    ["service", "operation"],
)
compensations_total = Counter(
    "compensations_total",
    "Session expiries issued after a failed mirror write",
    ["service", "outcome"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
