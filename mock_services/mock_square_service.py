"""
mock_square_service.py — Mock Implementation of the Square Checkout API (REST)

This module provides a simulated Square payment-links endpoint for local runs
and tests of the checkout service. It mimics the request validation, error
format and idempotency behavior of the real API.

Simulation Scenarios (selected by the order's location_id):
    • Successful payment link creation
    • Rejected request (HTTP 400), location_id starts with "loc_decline_"
    • 200 response without a checkout URL, location_id starts with "loc_malformed_"
    • Slow response beyond the client timeout, location_id starts with "loc_timeout_"

Endpoints:
    POST /v2/online-checkout/payment-links — Creates a payment link.

Port:
    Default: 8001 (HTTP)
"""

from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from collections import OrderedDict
from typing import List, Optional
import logging
import time
import uuid

app = FastAPI(title="Mock Square Service")
log = logging.getLogger(__name__)

TIMEOUT_DELAY_SECONDS = 15

MAX_STORED_RESPONSES = 1000

# idempotency_key -> (request body, first response body), oldest first
_responses = OrderedDict()


class Money(BaseModel):
    amount: int = Field(..., ge=0)
    currency: str


class LineItem(BaseModel):
    name: str
    quantity: str
    base_price_money: Money
    note: Optional[str] = None


class Order(BaseModel):
    location_id: str
    line_items: List[LineItem] = Field(..., min_length=1)


class CheckoutOptions(BaseModel):
    redirect_url: Optional[str] = None


class CreatePaymentLinkRequest(BaseModel):
    """
    Represents a Square CreatePaymentLink request payload.

    Attributes:
        idempotency_key (str): Client-chosen key; repeating it returns the first result.
        order (Order): Location and line items of the order to pay.
        checkout_options (CheckoutOptions, optional): Redirect URL after payment.
    """
    idempotency_key: str = Field(..., min_length=1)
    order: Order
    checkout_options: Optional[CheckoutOptions] = None


def square_error(status_code: int, category: str, code: str, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"errors": [{"category": category, "code": code, "detail": detail}]},
    )


@app.post("/v2/online-checkout/payment-links")
def create_payment_link(
        request: CreatePaymentLinkRequest,
        authorization: Optional[str] = Header(None),
):
    """
    Processes a payment link request.

    Args:
        request (CreatePaymentLinkRequest): Order and checkout options.
        authorization (str): 'Bearer <token>' header.

    Returns:
        dict: {"payment_link": {"id", "version", "order_id", "url", "created_at"}} on success,
        or a Square-style {"errors": [...]} body with a 4xx status.
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme != "Bearer" or not token.strip():
        return square_error(401, "AUTHENTICATION_ERROR", "UNAUTHORIZED", "This request could not be authorized.")

    key = request.idempotency_key
    location_id = request.order.location_id
    log.info(f"[SQ] Payment link request for {location_id} (Idempotency: {key})")

    request_body = request.model_dump()
    if key in _responses:
        stored_body, stored_response = _responses[key]
        if stored_body != request_body:
            log.warning(f"[SQ] Idempotency key {key} reused with a different request.")
            return square_error(
                400, "INVALID_REQUEST_ERROR", "IDEMPOTENCY_KEY_REUSED",
                "The idempotency key can only be retried with the same request data.",
            )
        log.info(f"[SQ] Replaying stored response for idempotency key {key}.")
        return stored_response

    # Scenario simulation
    if location_id.startswith("loc_decline_"):
        log.warning(f"[SQ] Request for {location_id} rejected.")
        return square_error(400, "INVALID_REQUEST_ERROR", "NOT_FOUND", f"Location `{location_id}` not found.")

    if location_id.startswith("loc_timeout_"):
        log.info(f"[SQ] Simulating timeout for {location_id}...")
        time.sleep(TIMEOUT_DELAY_SECONDS)

    link_id = uuid.uuid4().hex[:16].upper()
    payment_link = {
        "id": link_id,
        "version": 1,
        "order_id": uuid.uuid4().hex,
        "created_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
    }
    if not location_id.startswith("loc_malformed_"):
        payment_link["url"] = f"https://sandbox.square.link/u/{link_id}"
    if request.checkout_options and request.checkout_options.redirect_url:
        payment_link["checkout_options"] = {"redirect_url": request.checkout_options.redirect_url}

    response = {"payment_link": payment_link}
    _responses[key] = (request_body, response)
    while len(_responses) > MAX_STORED_RESPONSES:
        _responses.popitem(last=False)
    log.info(f"[SQ] Payment link {link_id} created.")
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
