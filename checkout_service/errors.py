"""
errors.py — Error types raised while pricing a cart or creating a checkout.

Every failure the HTTP layer is expected to report is an OrderError. Each
subclass carries the status code and the human-readable message sent back
to the caller, so the handlers can translate them uniformly.
"""


class OrderError(Exception):
    """Base class for all errors surfaced to the caller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# --- Cart validation (400) ---

class ValidationError(OrderError):
    """The cart violates a catalog or quantity rule."""

    status_code = 400


class InvalidCart(ValidationError):
    def __init__(self, message: str = "Cart required"):
        super().__init__(message)


class UnknownItem(ValidationError):
    def __init__(self, name: str):
        super().__init__(f"Unknown item: {name}")
        self.name = name


class TooManyFlavours(ValidationError):
    def __init__(self, name: str, max_flavours: int):
        super().__init__(f"{name} allows up to {max_flavours} flavour(s)")
        self.name = name
        self.max_flavours = max_flavours


class InvalidQuantity(ValidationError):
    def __init__(self, name: str):
        super().__init__(f"Invalid quantity for {name}")
        self.name = name


# --- Payment provider / internal (500) ---

class ProviderError(OrderError):
    """
    The payment provider rejected the request or could not be reached.

    Attributes:
        details: Parsed provider response body (or raw text) for diagnostics.
    """

    def __init__(self, message: str = "Square API error", details=None):
        super().__init__(message)
        self.details = details


class MalformedProviderResponse(OrderError):
    def __init__(self, message: str = "Square response did not contain a checkout URL"):
        super().__init__(message)


class InternalError(OrderError):
    def __init__(self, message: str = "Server error"):
        super().__init__(message)
