"""
models.py — Data Models for Cart Pricing and Checkout

This module defines the data structures produced while pricing a cart and
creating a hosted checkout. They are Pydantic models so the HTTP layer can
serialize them directly.

Models:
    - CatalogEntry: Price and flavour limit of one sellable item.
    - OrderLine: A validated, priced cart line.
    - OrderSummary: All validated lines plus the order total.
    - CheckoutSession: The result of creating a Square payment link.
    - OrderResponse / CheckoutResponse: Success payloads of the HTTP endpoints.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class CatalogEntry(BaseModel):
    """
    Represents one item of the fixed product catalog.

    Attributes:
        item_name (str): Canonical item name, as shown to customers.
        unit_price_cents (int): Price of one unit in cents.
        max_flavours (int): Maximum number of flavours a single unit may carry.
    """
    model_config = ConfigDict(frozen=True)

    item_name: str
    unit_price_cents: int = Field(..., ge=0)
    max_flavours: int = Field(..., ge=0)


class OrderLine(BaseModel):
    """
    Represents a single validated line of a cart.

    Attributes:
        name (str): Canonical catalog name.
        quantity (int): Number of units, at least 1.
        flavours (tuple[str, ...]): Selected flavours.
        unit_price_cents (int): Catalog price at validation time.
        line_total_cents (int): unit_price_cents * quantity.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    quantity: int = Field(..., ge=1)
    flavours: Tuple[str, ...] = ()
    unit_price_cents: int
    line_total_cents: int


class OrderSummary(BaseModel):
    """
    Represents a fully priced cart.

    Attributes:
        lines (tuple[OrderLine, ...]): Validated lines in cart order.
        total_cents (int): Sum of all line totals.
        total_display (str): Total formatted as currency, e.g. '$10.00'.
    """
    model_config = ConfigDict(frozen=True)

    lines: Tuple[OrderLine, ...]
    total_cents: int
    total_display: str


class CheckoutSession(BaseModel):
    """
    Represents a hosted checkout created at the payment provider.

    Attributes:
        idempotency_key (str): Key sent with the provider request.
        checkout_url (str): URL the customer is redirected to for payment.
        payment_link_id (str, optional): Provider id of the payment link.
        order_id (str, optional): Provider id of the order behind the link.
    """
    model_config = ConfigDict(frozen=True)

    idempotency_key: str
    checkout_url: str
    payment_link_id: Optional[str] = None
    order_id: Optional[str] = None


class OrderResponse(BaseModel):
    success: bool = True
    items: List[OrderLine]
    total_cents: int
    total_display: str

    @classmethod
    def from_summary(cls, summary: OrderSummary) -> "OrderResponse":
        return cls(
            items=list(summary.lines),
            total_cents=summary.total_cents,
            total_display=summary.total_display,
        )


class CheckoutResponse(BaseModel):
    success: bool = True
    checkoutUrl: str
