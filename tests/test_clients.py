"""Tests for the Square client, against fake transports and the mock Square service."""

import json
import logging

import httpx
import pytest

from checkout_service.clients import PAYMENT_LINKS_PATH, SquareClient, new_idempotency_key
from checkout_service.config import SquareSettings
from checkout_service.errors import MalformedProviderResponse, ProviderError
from mock_services import mock_square_service
from tests.fakes import ACCESS_TOKEN, make_settings, make_square_client

LINE_ITEMS = [{
    "name": "Mini stick",
    "quantity": "2",
    "base_price_money": {"amount": 500, "currency": "CAD"},
    "note": "Flavours: Mango",
}]


def ok(request):
    return httpx.Response(200, json={"payment_link": {"id": "PL1", "url": "https://pay.example/abc", "order_id": "O1"}})


class TestRequest:

    def test_request_shape(self):
        client, transport = make_square_client(ok)
        client.create_payment_link("key-1", LINE_ITEMS, redirect_url="https://shop.example/thanks")

        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url == "https://connect.squareupsandbox.com" + PAYMENT_LINKS_PATH
        assert request.headers["Authorization"] == f"Bearer {ACCESS_TOKEN}"
        assert request.headers["Accept"] == "application/json"
        assert "Square-Version" in request.headers

        body = json.loads(request.content)
        assert body == {
            "idempotency_key": "key-1",
            "order": {"location_id": "LOC123", "line_items": LINE_ITEMS},
            "checkout_options": {"redirect_url": "https://shop.example/thanks"},
        }

    def test_redirect_url_is_optional(self):
        client, transport = make_square_client(ok)
        client.create_payment_link("key-1", LINE_ITEMS)
        assert json.loads(transport.requests[0].content)["checkout_options"] == {}

    def test_production_base_url(self):
        client, transport = make_square_client(ok, environment="production")
        client.create_payment_link("key-1", LINE_ITEMS)
        assert transport.requests[0].url.host == "connect.squareup.com"

    def test_default_client_has_bounded_timeout(self):
        client = SquareClient(make_settings(timeout_seconds=3))
        try:
            assert client.client.timeout == httpx.Timeout(3)
            assert client.client.base_url.host == "connect.squareupsandbox.com"
            assert client.client.base_url.scheme == "https"
        finally:
            client.close()

    def test_unconfigured_client_does_not_call_square(self):
        client, transport = make_square_client(ok, access_token=None)
        with pytest.raises(ProviderError) as exc:
            client.create_payment_link("key-1", LINE_ITEMS)
        assert exc.value.message == "payment provider is not configured"
        assert transport.requests == []


class TestResponses:

    def test_returns_payment_link(self):
        client, _ = make_square_client(ok)
        link = client.create_payment_link("key-1", LINE_ITEMS)
        assert link["url"] == "https://pay.example/abc"
        assert link["id"] == "PL1"

    def test_error_status_carries_provider_body(self):
        errors = {"errors": [{"category": "INVALID_REQUEST_ERROR", "code": "NOT_FOUND"}]}
        client, _ = make_square_client(lambda r: httpx.Response(400, json=errors))
        with pytest.raises(ProviderError) as exc:
            client.create_payment_link("key-1", LINE_ITEMS)
        assert exc.value.details == errors
        assert exc.value.status_code == 500

    def test_error_status_with_text_body(self):
        client, _ = make_square_client(lambda r: httpx.Response(503, text="upstream down"))
        with pytest.raises(ProviderError) as exc:
            client.create_payment_link("key-1", LINE_ITEMS)
        assert exc.value.details == "upstream down"

    def test_timeout(self):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client, _ = make_square_client(slow)
        with pytest.raises(ProviderError) as exc:
            client.create_payment_link("key-1", LINE_ITEMS)
        assert exc.value.details == "timeout"

    def test_connection_error(self):
        def down(request):
            raise httpx.ConnectError("refused", request=request)

        client, _ = make_square_client(down)
        with pytest.raises(ProviderError):
            client.create_payment_link("key-1", LINE_ITEMS)

    @pytest.mark.parametrize("body", [{}, {"payment_link": {}}, {"payment_link": {"url": ""}}, []])
    def test_missing_url(self, body):
        client, _ = make_square_client(lambda r: httpx.Response(200, json=body))
        with pytest.raises(MalformedProviderResponse):
            client.create_payment_link("key-1", LINE_ITEMS)

    def test_non_json_success_body(self):
        client, _ = make_square_client(lambda r: httpx.Response(200, text="<html>"))
        with pytest.raises(MalformedProviderResponse):
            client.create_payment_link("key-1", LINE_ITEMS)

    def test_token_never_logged(self, caplog):
        client, _ = make_square_client(lambda r: httpx.Response(401, json={"errors": []}))
        with caplog.at_level(logging.INFO):
            with pytest.raises(ProviderError):
                client.create_payment_link("key-1", LINE_ITEMS)
        assert "key-1" in caplog.text
        assert ACCESS_TOKEN not in caplog.text


class TestAgainstMockSquare:

    def test_success(self, mock_square):
        client = SquareClient(make_settings(), client=mock_square)
        link = client.create_payment_link(new_idempotency_key(), LINE_ITEMS)
        assert link["url"].startswith("https://sandbox.square.link/u/")

    def test_same_key_replays_first_response(self, mock_square):
        client = SquareClient(make_settings(), client=mock_square)
        key = new_idempotency_key()
        first = client.create_payment_link(key, LINE_ITEMS)
        assert client.create_payment_link(key, LINE_ITEMS) == first

    def test_same_key_with_different_request_rejected(self, mock_square):
        client = SquareClient(make_settings(), client=mock_square)
        key = new_idempotency_key()
        client.create_payment_link(key, LINE_ITEMS)
        with pytest.raises(ProviderError) as exc:
            client.create_payment_link(key, LINE_ITEMS, redirect_url="https://shop.example/other")
        assert exc.value.details["errors"][0]["code"] == "IDEMPOTENCY_KEY_REUSED"

    def test_stored_responses_are_bounded(self, mock_square, monkeypatch):
        monkeypatch.setattr(mock_square_service, "MAX_STORED_RESPONSES", 2)
        client = SquareClient(make_settings(), client=mock_square)
        keys = [new_idempotency_key() for _ in range(3)]
        for key in keys:
            client.create_payment_link(key, LINE_ITEMS)
        assert keys[0] not in mock_square_service._responses
        assert all(key in mock_square_service._responses for key in keys[1:])
        assert len(mock_square_service._responses) <= 2

    def test_decline(self, mock_square):
        client = SquareClient(make_settings(location_id="loc_decline_1"), client=mock_square)
        with pytest.raises(ProviderError) as exc:
            client.create_payment_link(new_idempotency_key(), LINE_ITEMS)
        assert exc.value.details["errors"][0]["category"] == "INVALID_REQUEST_ERROR"

    def test_malformed(self, mock_square):
        client = SquareClient(make_settings(location_id="loc_malformed_1"), client=mock_square)
        with pytest.raises(MalformedProviderResponse):
            client.create_payment_link(new_idempotency_key(), LINE_ITEMS)

    def test_unauthorized(self, mock_square):
        settings = SquareSettings(access_token=" ", location_id="LOC123")
        client = SquareClient(settings, client=mock_square)
        with pytest.raises(ProviderError) as exc:
            client.create_payment_link(new_idempotency_key(), LINE_ITEMS)
        assert exc.value.details["errors"][0]["code"] == "UNAUTHORIZED"


def test_idempotency_keys_are_unique():
    keys = {new_idempotency_key() for _ in range(100)}
    assert len(keys) == 100
