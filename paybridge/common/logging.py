"""Structured JSON logging with request context fields."""

import logging
import sys
from contextvars import ContextVar
from uuid import uuid4

from pythonjsonlogger.json import JsonFormatter

from paybridge.common.config import settings


trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
session_id_ctx: ContextVar[str] = ContextVar("session_id", default="")


class ContextFilter(logging.Filter):
    """Inject service and correlation identifiers into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.trace_id = trace_id_ctx.get()
        record.session_id = session_id_ctx.get()
        return True


def configure_logging() -> None:
    """Configure root logger once per service process."""

    handler = logging.StreamHandler(sys.stdout)
    context_filter = ContextFilter()
    handler.addFilter(context_filter)
    formatter = JsonFormatter("%(asctime)s %(levelname)s %(service_name)s %(trace_id)s %(session_id)s %(message)s")
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)
    root.addFilter(context_filter)


def bind_request(correlation_id: str | None) -> str:
    """Start the log context of one HTTP request and return its trace id.

    A missing correlation id gets a fresh uuid4; the session id is cleared
    until the request touches a checkout session.
    """

    trace_id = correlation_id or str(uuid4())
    trace_id_ctx.set(trace_id)
    session_id_ctx.set("")
    return trace_id


def bind_session(session_id: str) -> None:
    """Tag the remaining log lines of this request with a Stripe session id."""

    session_id_ctx.set(session_id)


logger = logging.getLogger("paybridge")
