"""
validator.py — Cart validation and pricing.

Turns an untrusted cart payload into an OrderSummary, or raises the first
ValidationError it encounters. Validation is fail-fast: one bad line rejects
the whole cart, and no partial summary is ever returned.

Accepted raw cart forms:
    - a list of line objects
    - an object with a 'cart' field holding one of these forms
    - a string holding JSON of one of these forms
"""

import json
from typing import Any, List

from .catalog import DEFAULT_CATALOG, Catalog
from .errors import InvalidCart, InvalidQuantity, TooManyFlavours, UnknownItem, ValidationError
from .logging_config import get_logger
from .models import OrderLine, OrderSummary

log = get_logger(__name__)

MAX_QUANTITY = 50

# A string may wrap an object which wraps a string again; deeper nesting is rejected.
_MAX_UNWRAP = 3


def extract_cart(payload: Any, _depth: int = 0) -> List[dict]:
    """
    Maps every accepted raw cart form to a plain list of line dicts.

    Raises:
        InvalidCart: If no non-empty list of objects can be recovered.
    """
    if isinstance(payload, list):
        cart = payload
    elif _depth >= _MAX_UNWRAP:
        raise InvalidCart()
    elif isinstance(payload, str):
        try:
            parsed = json.loads(payload)
        except (ValueError, RecursionError):
            raise InvalidCart()
        return extract_cart(parsed, _depth + 1)
    elif isinstance(payload, dict):
        return extract_cart(payload.get("cart"), _depth + 1)
    else:
        raise InvalidCart()

    if not cart:
        raise InvalidCart()
    if not all(isinstance(entry, dict) for entry in cart):
        raise InvalidCart("Cart items must be objects")
    return cart


def count_flavours(name: str, flavours: Any) -> int:
    """0 if absent, 1 for a single string, the length for a list of strings."""
    if flavours is None or flavours == "":
        return 0
    if isinstance(flavours, str):
        return 1
    if isinstance(flavours, list) and all(isinstance(f, str) for f in flavours):
        return len(flavours)
    raise InvalidCart(f"Invalid flavours for {name}")


def parse_quantity(name: str, quantity: Any) -> int:
    if quantity is None:
        return 1
    # bool is a subclass of int, but true/false is never a quantity
    if isinstance(quantity, bool):
        raise InvalidQuantity(name)
    if isinstance(quantity, float) and quantity.is_integer():
        quantity = int(quantity)
    if not isinstance(quantity, int) or quantity < 1 or quantity > MAX_QUANTITY:
        raise InvalidQuantity(name)
    return quantity


def format_cents(cents: int) -> str:
    return f"${cents / 100:.2f}"


class OrderValidator:
    """
    Validates and prices carts against a Catalog.

    The validator holds no per-request state; one instance is shared by all
    requests and validate() is a pure function of its input and the catalog.
    """

    def __init__(self, catalog: Catalog = DEFAULT_CATALOG):
        self.catalog = catalog

    def validate(self, raw_cart: Any) -> OrderSummary:
        """
        Validates a raw cart payload and computes the order total.

        Args:
            raw_cart: The cart in any accepted raw form (list, wrapped object, JSON string).

        Returns:
            OrderSummary: Priced lines and the formatted total.

        Raises:
            InvalidCart: Cart missing, empty, or not made of objects.
            UnknownItem: A line names an item outside the catalog.
            TooManyFlavours: A line carries more flavours than its item allows.
            InvalidQuantity: A quantity is not an integer between 1 and MAX_QUANTITY.
        """
        try:
            cart = extract_cart(raw_cart)
            lines = [self._validate_line(entry) for entry in cart]
        except ValidationError as e:
            log.warning(f"[Cart] Rejected: {e.message}")
            raise

        total_cents = sum(line.line_total_cents for line in lines)
        return OrderSummary(
            lines=tuple(lines),
            total_cents=total_cents,
            total_display=format_cents(total_cents),
        )

    def _validate_line(self, entry: dict) -> OrderLine:
        raw_name = entry.get("name")
        if not isinstance(raw_name, str):
            raise UnknownItem("<missing name>" if raw_name is None else str(raw_name))

        name = self.catalog.canonical_name(raw_name)
        item = self.catalog.get(name)
        if item is None:
            raise UnknownItem(name)

        flavours = entry.get("flavours")
        if count_flavours(name, flavours) > item.max_flavours:
            raise TooManyFlavours(name, item.max_flavours)

        quantity = parse_quantity(name, entry.get("quantity"))

        if isinstance(flavours, str):
            flavours = [flavours] if flavours else []
        return OrderLine(
            name=name,
            quantity=quantity,
            flavours=tuple(flavours or ()),
            unit_price_cents=item.unit_price_cents,
            line_total_cents=item.unit_price_cents * quantity,
        )
