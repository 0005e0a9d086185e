"""
Tests for the Stripe settlement provider.

Tests cover:
- Transfers and refunds with idempotency keys
- Error translation into transient / rejected provider errors
- Local validation before any API call
"""

import pytest
from django.test import override_settings

from payments.adapters import StripeSettlementProvider
from payments.exceptions import ProviderRejectedError, ProviderTransientError


@pytest.fixture
def provider():
    with override_settings(STRIPE_SECRET_KEY="sk_test_123", STRIPE_API_TIMEOUT_SECONDS=5):
        yield StripeSettlementProvider()


class TestConfiguration:
    @override_settings(STRIPE_SECRET_KEY="")
    def test_missing_key_is_rejected(self):
        with pytest.raises(ProviderRejectedError) as exc_info:
            StripeSettlementProvider()

        assert exc_info.value.error_code == "PROVIDER_MISCONFIGURED"


class TestSendPayout:
    @pytest.fixture(autouse=True)
    def setup_mocks(self, mock_stripe_http_client):
        pass

    def test_creates_transfer(self, provider, mock_stripe_transfer, payout_request):
        request = payout_request()

        result = provider.send_payout(request)

        assert result.provider_ref == "tr_test123456"
        assert result.raw_response["object"] == "transfer"
        kwargs = mock_stripe_transfer.create.call_args.kwargs
        assert kwargs["amount"] == 4500
        assert kwargs["currency"] == "ron"
        assert kwargs["destination"] == "acct_seller123"
        assert kwargs["idempotency_key"] == request.idempotency_key
        assert kwargs["metadata"]["payout_id"] == request.payout_id

    def test_iban_destination_rejected_without_call(
        self, provider, mock_stripe_transfer, payout_request
    ):
        with pytest.raises(ProviderRejectedError) as exc_info:
            provider.send_payout(payout_request(destination="RO49AAAA1B31007593840000"))

        assert exc_info.value.error_code == "INVALID_DESTINATION"
        mock_stripe_transfer.create.assert_not_called()

    def test_rate_limit_is_rejected(
        self, provider, mock_stripe_transfer, payout_request, rate_limit_error
    ):
        mock_stripe_transfer.create.side_effect = rate_limit_error

        with pytest.raises(ProviderRejectedError) as exc_info:
            provider.send_payout(payout_request())

        assert exc_info.value.is_retryable is False
        assert exc_info.value.error_code == "PROVIDER_RATE_LIMITED"

    def test_connection_error_is_transient(
        self, provider, mock_stripe_transfer, payout_request, api_connection_error
    ):
        mock_stripe_transfer.create.side_effect = api_connection_error

        with pytest.raises(ProviderTransientError):
            provider.send_payout(payout_request())

    def test_api_error_is_transient(
        self, provider, mock_stripe_transfer, payout_request, api_error
    ):
        mock_stripe_transfer.create.side_effect = api_error

        with pytest.raises(ProviderTransientError):
            provider.send_payout(payout_request())

    def test_invalid_request_is_rejected(
        self, provider, mock_stripe_transfer, payout_request, invalid_request_error
    ):
        mock_stripe_transfer.create.side_effect = invalid_request_error

        with pytest.raises(ProviderRejectedError) as exc_info:
            provider.send_payout(payout_request())

        assert exc_info.value.is_retryable is False
        assert exc_info.value.details["stripe_code"] == "resource_missing"

    def test_authentication_error_is_rejected(
        self, provider, mock_stripe_transfer, payout_request, authentication_error
    ):
        mock_stripe_transfer.create.side_effect = authentication_error

        with pytest.raises(ProviderRejectedError):
            provider.send_payout(payout_request())


class TestSendRefund:
    @pytest.fixture(autouse=True)
    def setup_mocks(self, mock_stripe_http_client):
        pass

    def test_refunds_payment_intent(self, provider, mock_stripe_refund, refund_request):
        request = refund_request()

        result = provider.send_refund(request)

        assert result.provider_ref == "re_test123456"
        kwargs = mock_stripe_refund.create.call_args.kwargs
        assert kwargs["payment_intent"] == "pi_test123456"
        assert kwargs["amount"] == 5000
        assert kwargs["idempotency_key"] == request.idempotency_key

    def test_missing_payment_reference_rejected(
        self, provider, mock_stripe_refund, refund_request
    ):
        with pytest.raises(ProviderRejectedError) as exc_info:
            provider.send_refund(refund_request(payment_reference=""))

        assert exc_info.value.error_code == "MISSING_PAYMENT_REFERENCE"
        mock_stripe_refund.create.assert_not_called()

    def test_failed_refund_status_rejected(
        self, provider, mock_stripe_refund, mock_refund, refund_request
    ):
        mock_stripe_refund.create.return_value = mock_refund(status="failed")

        with pytest.raises(ProviderRejectedError):
            provider.send_refund(refund_request())
