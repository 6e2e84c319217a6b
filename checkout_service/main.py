"""
main.py — FastAPI Entry Point for the Checkout Service

This module provides the HTTP interface of the online ordering flow.

Responsibilities:
    • Price a cart without starting payment (POST /api/create-order)
    • Create a hosted Square checkout for a cart (POST /api/create-payment)
    • Answer CORS pre-flight requests and reject other methods with 405
    • Provide system health information
"""

import json
from functools import lru_cache

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from .checkout import CheckoutLinkBuilder
from .clients import SquareClient
from .config import SquareSettings, load_settings
from .errors import InternalError, OrderError, ProviderError
from .logging_config import get_logger, setup_logging
from .models import CheckoutResponse, OrderResponse
from .validator import OrderValidator

# Initialization
setup_logging()
log = get_logger(__name__)
app = FastAPI(title="Order Checkout Service")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


# Dependencies
@lru_cache
def get_settings() -> SquareSettings:
    return load_settings()


@lru_cache
def get_validator() -> OrderValidator:
    return OrderValidator()


@lru_cache
def get_square_client() -> SquareClient:
    return SquareClient(get_settings())


def get_checkout_builder(
        validator: OrderValidator = Depends(get_validator),
        square_client: SquareClient = Depends(get_square_client),
) -> CheckoutLinkBuilder:
    return CheckoutLinkBuilder(validator, square_client)


@app.on_event("startup")
def on_startup():
    """Loads the Square settings once so missing credentials are reported at startup."""
    log.info("Checkout service starting...")
    get_settings()


@app.on_event("shutdown")
def on_shutdown():
    get_square_client().close()


@app.middleware("http")
async def add_cors_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        return JSONResponse(status_code=405, content={"error": "Method not allowed"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


def error_response(error: OrderError) -> JSONResponse:
    """Translates an OrderError into the {error, details?} JSON body."""
    content = {"error": error.message}
    if isinstance(error, ProviderError) and error.details is not None:
        content["details"] = error.details
    return JSONResponse(status_code=error.status_code, content=content)


async def read_payload(request: Request):
    """
    Returns the request body as parsed JSON, or as text if it is not valid JSON.

    Clients send the cart as JSON, as a raw array, or as a stringified
    payload with a text content type; all of these end up in the validator.
    """
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (ValueError, RecursionError):
        return raw.decode("utf-8", errors="replace")


def read_redirect_url(payload):
    """Returns the optional redirectUrl, also when the whole body arrived as a JSON string."""
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except (ValueError, RecursionError):
            return None
    redirect_url = payload.get("redirectUrl") if isinstance(payload, dict) else None
    if not isinstance(redirect_url, str) or not redirect_url:
        return None
    return redirect_url


# API Endpoint: cart pricing
@app.api_route("/api/create-order", methods=["POST", "OPTIONS"])
async def create_order(request: Request, validator: OrderValidator = Depends(get_validator)):
    """
    Validates a cart and returns the priced order summary.

    Returns:
        200: {"success": true, "items": [...], "total_cents": int, "total_display": str}
        400: {"error": str} for an invalid cart.
        500: {"error": "Server error"} for unexpected failures.
    """
    if request.method == "OPTIONS":
        return Response(status_code=200)

    try:
        payload = await read_payload(request)
        summary = validator.validate(payload)
        log.info(f"[Cart] Priced {len(summary.lines)} line(s), total {summary.total_display}.")
        return OrderResponse.from_summary(summary)
    except OrderError as e:
        return error_response(e)
    except Exception as e:
        log.critical(f"Unexpected error while pricing cart: {e}", exc_info=True)
        return error_response(InternalError())


# API Endpoint: checkout creation
@app.api_route("/api/create-payment", methods=["POST", "OPTIONS"])
async def create_payment(request: Request, builder: CheckoutLinkBuilder = Depends(get_checkout_builder)):
    """
    Validates a cart and creates a Square payment link for it.

    Expects {"cart": [...], "redirectUrl": "https://..."} where redirectUrl is optional.

    Returns:
        200: {"success": true, "checkoutUrl": str}
        400: {"error": str} for an invalid cart (Square is not called).
        500: {"error": str, "details": ...} for Square failures, or {"error": "Server error"}.
    """
    if request.method == "OPTIONS":
        return Response(status_code=200)

    try:
        payload = await read_payload(request)
        redirect_url = read_redirect_url(payload)
        # The Square call blocks, keep it off the event loop
        session = await run_in_threadpool(builder.create_checkout, payload, redirect_url)
        return CheckoutResponse(checkoutUrl=session.checkout_url)
    except OrderError as e:
        return error_response(e)
    except Exception as e:
        log.critical(f"Unexpected error while creating checkout: {e}", exc_info=True)
        return error_response(InternalError())


# Health Check Endpoint
@app.get("/health")
def health_check():
    """
    Simple health check endpoint.

    Returns:
        dict: A basic JSON object indicating service availability.
    """
    return {"status": "ok"}
