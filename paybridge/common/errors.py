"""Error taxonomy surfaced by the checkout orchestrator.

Every failure reaching the HTTP layer is one of these; the app maps
`status_code` onto the response and `message` onto the `error` field.
"""


class CheckoutError(Exception):
    """Base class for failures translated into an HTTP error response."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CheckoutError):
    """A required field is missing or the referenced resource lacks data."""

    status_code = 400


class DependencyError(CheckoutError):
    """Stripe or the internal database service failed or answered unexpectedly."""

    status_code = 500


class UnknownError(CheckoutError):
    """Anything not classified above."""

    status_code = 500
