"""
checkout.py — Orchestration Logic for Checkout Creation

Coordinates the two steps behind the create-payment endpoint:

1. Validate and price the cart (OrderValidator). Carts are untrusted on every
   request, so validation always runs again here.
2. Create a hosted payment link at Square (SquareClient).

No provider call is made for an invalid cart, and no state survives the request:
the idempotency key is logged and then discarded.
"""

from typing import Any, List, Optional

from .clients import SquareClient, new_idempotency_key
from .logging_config import get_logger
from .models import CheckoutSession, OrderSummary
from .validator import OrderValidator

log = get_logger(__name__)


def build_line_items(summary: OrderSummary, currency: str = "CAD") -> List[dict]:
    """
    Maps validated order lines to Square order line items.

    The note is only set for lines that carry flavours.
    """
    line_items = []
    for line in summary.lines:
        item = {
            "name": line.name,
            "quantity": str(line.quantity),
            "base_price_money": {
                "amount": line.unit_price_cents,
                "currency": currency,
            },
        }
        if line.flavours:
            item["note"] = "Flavours: " + ", ".join(line.flavours)
        line_items.append(item)
    return line_items


class CheckoutLinkBuilder:
    """
    Creates Square checkout sessions for raw carts.

    Args:
        validator (OrderValidator): Prices the cart.
        square_client (SquareClient): Talks to the Square Checkout API.
    """

    def __init__(self, validator: OrderValidator, square_client: SquareClient):
        self.validator = validator
        self.square_client = square_client

    def create_checkout(self, raw_cart: Any, redirect_url: Optional[str] = None) -> CheckoutSession:
        """
        Validates the cart and creates a hosted payment link for it.

        Args:
            raw_cart: The cart in any form accepted by OrderValidator.
            redirect_url (str, optional): Post-payment redirect target.

        Returns:
            CheckoutSession: The idempotency key used and the checkout URL.

        Raises:
            ValidationError: Propagated unchanged from the validator.
            ProviderError: Square rejected the request or was unreachable.
            MalformedProviderResponse: Square answered without a checkout URL.
        """
        summary = self.validator.validate(raw_cart)
        line_items = build_line_items(summary, self.square_client.settings.currency)

        idempotency_key = new_idempotency_key()
        log_prefix = f"[Checkout: {idempotency_key}]"
        log.info(f"{log_prefix} Creating payment link for {len(line_items)} line(s), total {summary.total_display}.")

        payment_link = self.square_client.create_payment_link(
            idempotency_key=idempotency_key,
            line_items=line_items,
            redirect_url=redirect_url,
        )

        log.info(f"{log_prefix} Payment link created (ID: {payment_link.get('id')}).")
        return CheckoutSession(
            idempotency_key=idempotency_key,
            checkout_url=payment_link["url"],
            payment_link_id=payment_link.get("id"),
            order_id=payment_link.get("order_id"),
        )
