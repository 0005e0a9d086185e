"""
Pytest fixtures for settlement provider adapter tests.

Sections:
    - Request Fixtures
    - Mock Stripe Response Fixtures
    - Mock Stripe Error Fixtures
    - Mock HTTP Fixtures
"""

import uuid
from dataclasses import dataclass
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests
import stripe

from payments.adapters import PayoutRequest, RefundRequest

# =============================================================================
# Request Fixtures
# =============================================================================


@pytest.fixture
def payout_request():
    def _create(destination: str = "acct_seller123", **overrides) -> PayoutRequest:
        payout_id = str(uuid.uuid4())
        values = {
            "payout_id": payout_id,
            "seller_id": "42",
            "amount_cents": 4500,
            "currency": "RON",
            "destination": destination,
            "idempotency_key": f"payout:{payout_id}:1:abcd1234",
        }
        values.update(overrides)
        return PayoutRequest(**values)

    return _create


@pytest.fixture
def refund_request():
    def _create(payment_reference: str = "pi_test123456", **overrides) -> RefundRequest:
        refund_id = str(uuid.uuid4())
        values = {
            "refund_id": refund_id,
            "order_id": str(uuid.uuid4()),
            "amount_cents": 5000,
            "currency": "RON",
            "payment_reference": payment_reference,
            "idempotency_key": f"refund:{refund_id}:1:abcd1234",
        }
        values.update(overrides)
        return RefundRequest(**values)

    return _create


# =============================================================================
# Mock Stripe Response Fixtures
# =============================================================================


@dataclass
class MockStripeObject:
    """Mock Stripe API object with to_dict support."""

    data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            return self.__dict__["data"]
        return self.data.get(name)

    def to_dict(self) -> dict[str, Any]:
        return self.data


@pytest.fixture
def mock_transfer():
    def _create(id: str = "tr_test123456", amount: int = 4500) -> MockStripeObject:
        return MockStripeObject(
            {"id": id, "object": "transfer", "amount": amount, "currency": "ron"}
        )

    return _create


@pytest.fixture
def mock_refund():
    def _create(id: str = "re_test123456", status: str = "succeeded") -> MockStripeObject:
        return MockStripeObject(
            {"id": id, "object": "refund", "amount": 5000, "status": status}
        )

    return _create


@pytest.fixture
def mock_stripe_transfer(mock_transfer):
    with patch("stripe.Transfer") as mock:
        mock.create.return_value = mock_transfer()
        yield mock


@pytest.fixture
def mock_stripe_refund(mock_refund):
    with patch("stripe.Refund") as mock:
        mock.create.return_value = mock_refund()
        yield mock


@pytest.fixture
def mock_stripe_http_client():
    with patch("stripe.RequestsClient") as mock:
        yield mock


# =============================================================================
# Mock Stripe Error Fixtures
# =============================================================================


@pytest.fixture
def invalid_request_error():
    return stripe.InvalidRequestError(
        message="No such destination: 'acct_gone'",
        param="destination",
        code="resource_missing",
    )


@pytest.fixture
def rate_limit_error():
    return stripe.RateLimitError(message="Too many requests hit the API too quickly.")


@pytest.fixture
def api_connection_error():
    return stripe.APIConnectionError(message="Could not connect to Stripe.")


@pytest.fixture
def api_error():
    return stripe.APIError(message="Something went wrong on Stripe's end.")


@pytest.fixture
def authentication_error():
    return stripe.AuthenticationError(message="Invalid API Key provided.")


# =============================================================================
# Mock HTTP Fixtures
# =============================================================================


@pytest.fixture
def http_response():
    """Build a requests.Response-like mock."""

    def _create(status_code: int = 200, body: dict | None = None) -> MagicMock:
        response = MagicMock(spec=requests.Response)
        response.status_code = status_code
        response.json.return_value = body or {}
        response.text = ""
        return response

    return _create


@pytest.fixture
def http_session():
    return MagicMock(spec=requests.Session)
