"""
config.py — Payment provider configuration.

Square credentials and the sandbox/production switch are supplied through
environment variables. They are read once into a SquareSettings instance that
is handed to the SquareClient, so tests can substitute their own values.
"""

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field

from .logging_config import get_logger

log = get_logger(__name__)

SANDBOX_BASE_URL = "https://connect.squareupsandbox.com"
PRODUCTION_BASE_URL = "https://connect.squareup.com"
DEFAULT_TIMEOUT_SECONDS = 10.0


class SquareSettings(BaseModel):
    """
    Connection settings for the Square Checkout API.

    Attributes:
        access_token (str): Bearer token. Never logged or returned to callers.
        location_id (str): Square location the orders are created for.
        environment (str): 'sandbox' or 'production'; selects the base URL.
        currency (str): ISO 4217 currency of the catalog prices.
        square_version (str): Value of the Square-Version request header.
        timeout_seconds (float): Upper bound for one provider call.
    """
    access_token: Optional[str] = None
    location_id: Optional[str] = None
    environment: Literal["sandbox", "production"] = "sandbox"
    currency: str = "CAD"
    square_version: str = "2024-07-17"
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    @property
    def base_url(self) -> str:
        if self.environment == "production":
            return PRODUCTION_BASE_URL
        return SANDBOX_BASE_URL

    @property
    def is_configured(self) -> bool:
        return bool(self.access_token and self.location_id)


def load_settings(environ: Mapping[str, str] = os.environ) -> SquareSettings:
    """
    Builds SquareSettings from environment variables.

    Missing credentials are only logged: the service still starts, and
    checkout requests fail until the variables are set. An unknown SQUARE_ENV
    or a non-positive SQUARE_TIMEOUT_SECONDS falls back to the default.
    """
    environment = environ.get("SQUARE_ENV", "sandbox").strip().lower()
    if environment not in ("sandbox", "production"):
        log.warning(f"Unknown SQUARE_ENV '{environment}', falling back to sandbox.")
        environment = "sandbox"

    raw_timeout = environ.get("SQUARE_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
    try:
        timeout_seconds = float(raw_timeout)
    except ValueError:
        timeout_seconds = 0
    if not timeout_seconds > 0:
        log.warning(f"Invalid SQUARE_TIMEOUT_SECONDS '{raw_timeout}', falling back to {DEFAULT_TIMEOUT_SECONDS}s.")
        timeout_seconds = DEFAULT_TIMEOUT_SECONDS

    settings = SquareSettings(
        access_token=environ.get("SQUARE_ACCESS_TOKEN") or None,
        location_id=environ.get("SQUARE_LOCATION_ID") or None,
        environment=environment,
        timeout_seconds=timeout_seconds,
    )

    if not settings.is_configured:
        log.warning("Missing Square env vars. Set SQUARE_ACCESS_TOKEN and SQUARE_LOCATION_ID.")
    return settings
