"""
Bank transfer settlement provider.

Talks to the bank's transfer API over HTTPS with `requests`:

    POST {BANK_TRANSFER_API_URL}/transfers   (seller payouts)
    POST {BANK_TRANSFER_API_URL}/refunds     (buyer refunds)

Classification:
    - Timeout / connection error / HTTP 5xx -> ProviderTransientError
    - Any HTTP 4xx, 429 included -> ProviderRejectedError
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests
from django.conf import settings

from payments.adapters.base import PayoutRequest, RefundRequest, SettlementResult
from payments.exceptions import ProviderRejectedError, ProviderTransientError

logger = logging.getLogger(__name__)

PROVIDER_NAME = "bank_transfer"


class BankTransferSettlementProvider:
    """Settlement provider backed by the bank transfer API."""

    name = PROVIDER_NAME

    def __init__(self, session: requests.Session | None = None):
        self.base_url = settings.BANK_TRANSFER_API_URL.rstrip("/")
        self.api_key = settings.BANK_TRANSFER_API_KEY
        self.sender_iban = settings.BANK_TRANSFER_SENDER_IBAN
        self.timeout = settings.BANK_TRANSFER_TIMEOUT_SECONDS
        if not self.api_key or not self.sender_iban:
            raise ProviderRejectedError(
                "BANK_TRANSFER_API_KEY and BANK_TRANSFER_SENDER_IBAN are required",
                error_code="PROVIDER_MISCONFIGURED",
                provider=PROVIDER_NAME,
            )
        self.session = session or requests.Session()

    def send_payout(self, request: PayoutRequest) -> SettlementResult:
        if not request.destination:
            raise ProviderRejectedError(
                "Seller has no payout IBAN",
                error_code="INVALID_DESTINATION",
                provider=PROVIDER_NAME,
            )
        body = {
            "fromIban": self.sender_iban,
            "toIban": request.destination,
            "amount": request.amount_cents,
            "currency": request.currency,
            "reference": f"PAYOUT-{request.payout_id}",
            "description": f"Seller payout {request.seller_id}",
        }
        data = self._post("/transfers", body, request.idempotency_key)
        return SettlementResult(
            provider_ref=data.get("transferId") or f"TRANSFER-{request.payout_id}",
            raw_response=data,
        )

    def send_refund(self, request: RefundRequest) -> SettlementResult:
        body = {
            "amount": request.amount_cents,
            "currency": request.currency,
            "paymentReference": request.payment_reference,
            "reference": f"REFUND-{request.refund_id}",
        }
        data = self._post("/refunds", body, request.idempotency_key)
        return SettlementResult(
            provider_ref=data.get("refundId") or f"REFUND-{request.refund_id}",
            raw_response=data,
        )

    def _post(self, path: str, body: dict[str, Any], idempotency_key: str) -> dict:
        url = f"{self.base_url}{path}"
        log_context = {"url": url, "idempotency_key": idempotency_key}
        start_time = time.time()

        try:
            response = self.session.post(
                url,
                json=body,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Idempotency-Key": idempotency_key,
                },
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise ProviderTransientError(
                f"Bank API timeout: {e}", provider=PROVIDER_NAME
            ) from e
        except requests.ConnectionError as e:
            raise ProviderTransientError(
                f"Bank API connection error: {e}", provider=PROVIDER_NAME
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        status_code = response.status_code
        if status_code >= 500:
            logger.warning(
                "Bank API transient error",
                extra={**log_context, "status_code": status_code, "duration_ms": duration_ms},
            )
            raise ProviderTransientError(
                f"Bank API error: {status_code} - {_error_message(response)}",
                provider=PROVIDER_NAME,
                status_code=status_code,
            )
        if status_code >= 400:
            logger.error(
                "Bank API rejected request",
                extra={**log_context, "status_code": status_code, "duration_ms": duration_ms},
            )
            raise ProviderRejectedError(
                f"Bank API error: {status_code} - {_error_message(response)}",
                provider=PROVIDER_NAME,
                status_code=status_code,
            )

        logger.info(
            "Bank API call completed",
            extra={**log_context, "status_code": status_code, "duration_ms": duration_ms},
        )
        try:
            return response.json()
        except ValueError:
            return {}


def _error_message(response: requests.Response) -> str:
    try:
        return response.json().get("message", "Unknown error")
    except ValueError:
        return response.text[:200] or "Unknown error"
