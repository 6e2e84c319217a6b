"""
This module provides the communication client for the external payment provider
used by the checkout service:
- Square Checkout API (REST), payment link creation
The class encapsulates the protocol details, error translation and connection management.
"""

import uuid
import random
import time

import httpx

from .config import SquareSettings
from .errors import MalformedProviderResponse, ProviderError
from .logging_config import get_logger

PAYMENT_LINKS_PATH = "/v2/online-checkout/payment-links"

log = get_logger(__name__)


def new_idempotency_key() -> str:
    """
    Returns a fresh idempotency key for one checkout request.

    A retry of the identical request must reuse the key it was first sent with;
    every new checkout gets a new one.
    """
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        # uuid4 needs os.urandom; fall back to a time-based token without it
        return f"{time.time_ns()}-{random.random()}"


def _response_details(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return response.text


# --- Square Client (REST) ---
class SquareClient:
    """
    Client for the Square Checkout API (REST).
    Creates hosted payment links and translates transport and HTTP failures
    into ProviderError / MalformedProviderResponse.
    """
    def __init__(self, settings: SquareSettings, client: httpx.Client = None):
        """
        Initializes the HTTP client with the configured base URL and timeout.

        Args:
            settings (SquareSettings): Credentials, environment and timeout.
            client (httpx.Client, optional): Pre-built client, e.g. one bound to a
                mock transport. It is used as-is and not closed by this instance.
        """
        self.settings = settings
        self._owns_client = client is None
        if client is None:
            timeout_config = httpx.Timeout(settings.timeout_seconds)
            client = httpx.Client(base_url=settings.base_url, timeout=timeout_config)
        self.client = client

    def close(self):
        """Closes the HTTP client session if this instance created it."""
        if self._owns_client:
            self.client.close()

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.settings.access_token}",
            "Accept": "application/json",
            "Square-Version": self.settings.square_version,
        }

    def create_payment_link(self, idempotency_key: str, line_items: list, redirect_url: str = None) -> dict:
        """
        Creates a hosted checkout page via the Square payment links endpoint.

        Args:
            idempotency_key (str): Unique key for this request.
            line_items (list): Square order line items.
            redirect_url (str, optional): Where Square sends the customer after payment.

        Returns:
            dict: The 'payment_link' object of the Square response. Contains at least 'url'.

        Raises:
            ProviderError: Missing credentials, timeout, transport error or non-2xx status.
            MalformedProviderResponse: 2xx status without a payment link URL.
        """
        log_prefix = f"[Checkout: {idempotency_key}]"
        if not self.settings.is_configured:
            log.error(f"{log_prefix} Square credentials missing, request not sent.")
            raise ProviderError("payment provider is not configured")

        body = {
            "idempotency_key": idempotency_key,
            "order": {
                "location_id": self.settings.location_id,
                "line_items": line_items,
            },
            "checkout_options": {},
        }
        if redirect_url:
            body["checkout_options"]["redirect_url"] = redirect_url

        try:
            response = self.client.post(PAYMENT_LINKS_PATH, json=body, headers=self._headers())
            response.raise_for_status()
        except httpx.TimeoutException:
            # Outcome unknown at Square. A caller retry must reuse this idempotency key.
            log.error(f"{log_prefix} Square timeout after {self.settings.timeout_seconds}s. Status unknown.")
            raise ProviderError("Square API timeout", details="timeout")
        except httpx.HTTPStatusError as e:
            details = _response_details(e.response)
            log.error(f"{log_prefix} Square error (HTTP {e.response.status_code}): {details}")
            raise ProviderError("Square API error", details=details)
        except httpx.RequestError as e:
            log.error(f"{log_prefix} Square not reachable: {e!r}")
            raise ProviderError("Square API unreachable", details=type(e).__name__)

        try:
            payload = response.json()
        except ValueError:
            log.error(f"{log_prefix} Square returned a non-JSON body.")
            raise MalformedProviderResponse()

        payment_link = payload.get("payment_link") if isinstance(payload, dict) else None
        if not isinstance(payment_link, dict) or not payment_link.get("url"):
            log.error(f"{log_prefix} Square response without payment link URL: {payload}")
            raise MalformedProviderResponse()
        return payment_link
