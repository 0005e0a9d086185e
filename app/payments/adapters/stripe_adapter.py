"""
Stripe settlement provider.

Payouts are Stripe Connect transfers to the seller's connected account
(Order.payout_destination, acct_xxx). Refunds are Stripe refunds of the
buyer's PaymentIntent (Order.payment_reference, pi_xxx).

Features:
- Configurable timeout, SDK-level retries disabled (retry.py owns retries)
- Stripe SDK errors translated to ProviderTransientError / ProviderRejectedError
- Structured logging with timing
- Idempotency keys on every call

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
"""

from __future__ import annotations

import logging
import time
from typing import Any, NoReturn

import stripe
from django.conf import settings

from payments.adapters.base import PayoutRequest, RefundRequest, SettlementResult
from payments.exceptions import ProviderRejectedError, ProviderTransientError

PROVIDER_NAME = "stripe"


class StripeSettlementProvider:
    """
    Settlement provider backed by the Stripe API.

    Usage:
        provider = StripeSettlementProvider()
        result = provider.send_payout(request)
    """

    name = PROVIDER_NAME

    def __init__(self):
        if not settings.STRIPE_SECRET_KEY:
            raise ProviderRejectedError(
                "STRIPE_SECRET_KEY is not configured",
                error_code="PROVIDER_MISCONFIGURED",
                provider=PROVIDER_NAME,
            )

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(
            timeout=settings.STRIPE_API_TIMEOUT_SECONDS
        )

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Operations
    # =========================================================================

    def send_payout(self, request: PayoutRequest) -> SettlementResult:
        """
        Create a transfer to the seller's connected account.

        Raises:
            ProviderRejectedError: Missing/invalid destination, bad request
            ProviderTransientError: Connection or server error
        """
        if not request.destination.startswith("acct_"):
            raise ProviderRejectedError(
                "Seller has no Stripe connected account",
                error_code="INVALID_DESTINATION",
                provider=PROVIDER_NAME,
            )

        log_context = {
            "operation": "create_transfer",
            "payout_id": request.payout_id,
            "amount_cents": request.amount_cents,
            "idempotency_key": request.idempotency_key,
        }
        transfer = self._call(
            lambda: stripe.Transfer.create(
                amount=request.amount_cents,
                currency=request.currency.lower(),
                destination=request.destination,
                metadata={"payout_id": request.payout_id, "seller_id": request.seller_id},
                idempotency_key=request.idempotency_key,
            ),
            log_context,
        )
        return SettlementResult(provider_ref=transfer.id, raw_response=transfer.to_dict())

    def send_refund(self, request: RefundRequest) -> SettlementResult:
        """
        Refund the buyer's PaymentIntent.

        Raises:
            ProviderRejectedError: Missing payment reference, bad request
            ProviderTransientError: Connection or server error
        """
        if not request.payment_reference:
            raise ProviderRejectedError(
                "Order has no payment reference to refund",
                error_code="MISSING_PAYMENT_REFERENCE",
                provider=PROVIDER_NAME,
            )

        log_context = {
            "operation": "create_refund",
            "refund_id": request.refund_id,
            "amount_cents": request.amount_cents,
            "idempotency_key": request.idempotency_key,
        }
        refund = self._call(
            lambda: stripe.Refund.create(
                payment_intent=request.payment_reference,
                amount=request.amount_cents,
                metadata={"refund_id": request.refund_id, "order_id": request.order_id},
                idempotency_key=request.idempotency_key,
            ),
            log_context,
        )
        if refund.status == "failed":
            raise ProviderRejectedError(
                f"Stripe refund {refund.id} failed",
                provider=PROVIDER_NAME,
            )
        return SettlementResult(provider_ref=refund.id, raw_response=refund.to_dict())

    # =========================================================================
    # Helpers
    # =========================================================================

    def _call(self, func, log_context: dict[str, Any]):
        self._configure_stripe()
        logger = self.get_logger()
        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            response = func()
        except stripe.StripeError as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)

        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "provider_ref": response.id,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )
        return response

    def _handle_stripe_error(
        self,
        error: stripe.StripeError,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> NoReturn:
        """
        Translate Stripe exceptions to provider exceptions.

        Raises:
            ProviderTransientError: Connection error, 5xx API error
            ProviderRejectedError: Everything the same request cannot fix
        """
        logger = self.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}
        status_code = getattr(error, "http_status", None)

        if isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise ProviderRejectedError(
                "Stripe rate limit exceeded",
                error_code="PROVIDER_RATE_LIMITED",
                provider=PROVIDER_NAME,
                status_code=status_code,
            ) from error

        if isinstance(error, stripe.APIConnectionError):
            logger.error("Connection error to Stripe", extra=log_context, exc_info=True)
            raise ProviderTransientError(
                "Could not connect to Stripe",
                provider=PROVIDER_NAME,
            ) from error

        if isinstance(error, stripe.APIError) or (status_code or 0) >= 500:
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise ProviderTransientError(
                "Stripe service error",
                provider=PROVIDER_NAME,
                status_code=status_code,
            ) from error

        if isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key", extra=log_context
            )
        else:
            logger.error(
                "Stripe rejected request",
                extra={**log_context, "stripe_code": getattr(error, "code", None)},
            )
        raise ProviderRejectedError(
            str(getattr(error, "user_message", None) or error),
            provider=PROVIDER_NAME,
            status_code=status_code,
            details={"stripe_code": getattr(error, "code", None)},
        ) from error
