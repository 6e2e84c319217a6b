import pytest
from fastapi.testclient import TestClient

from checkout_service.checkout import CheckoutLinkBuilder
from checkout_service.clients import SquareClient
from checkout_service.validator import OrderValidator
from mock_services.mock_square_service import app as mock_square_app
from tests.fakes import make_settings


@pytest.fixture
def validator():
    return OrderValidator()


@pytest.fixture
def mock_square():
    """HTTP client talking to the in-process mock Square service."""
    with TestClient(mock_square_app) as client:
        yield client


@pytest.fixture
def builder_for(validator, mock_square):
    """Factory: CheckoutLinkBuilder against the mock Square service for a given location."""
    def build(location_id="LOC123", **overrides):
        settings = make_settings(location_id=location_id, **overrides)
        return CheckoutLinkBuilder(validator, SquareClient(settings, client=mock_square))
    return build
