"""Startup-time helpers for safe config logging."""

import os

from paybridge.common.logging import logger

SECRET_MARKERS = ("KEY", "SECRET", "PASSWORD", "TOKEN")


def _safe_env(name: str) -> str:
    """Return env value, masking secrets down to their Stripe key prefix."""

    value = os.getenv(name)
    if value is None:
        return "<unset>"
    if any(marker in name for marker in SECRET_MARKERS):
        # sk_test_... / sk_live_... / rk_live_... tell test and live mode apart
        prefix = "_".join(value.split("_")[:2]) if value.count("_") >= 2 else ""
        return f"{prefix}_<redacted>" if prefix else "<redacted>"
    return value


def log_startup_config(service_name: str, keys: list[str]) -> None:
    """Log selected startup config keys and flag an unusable Stripe setup."""

    config = {"service": service_name}
    for key in keys:
        config[key] = _safe_env(key)
    logger.info("startup_config=%s", config)
    if not os.getenv("STRIPE_SECRET_KEY"):
        logger.warning("stripe_secret_key_missing every provider call will be rejected")
