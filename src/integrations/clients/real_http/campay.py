"""
Real Campay HTTP Client.

Used when Campay application credentials are configured.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import httpx

from src.integrations.contracts.errors import AuthenticationError, InitiationError, TransientQueryError
from src.integrations.contracts.interfaces import (
    AccessToken,
    CollectResponse,
    MobileMoneyProvider,
    PaymentRequest,
    Provider,
    TransactionStatusResponse,
)
from src.integrations.policy.response_wrappers import (
    IntegrationResponseError,
    normalize_collect_response,
    normalize_status_response,
    normalize_token_response,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://demo.campay.net/api"


class CampayClient(MobileMoneyProvider):
    def __init__(
        self,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("CAMPAY_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.username = username if username is not None else os.getenv("CAMPAY_APP_USER", "")
        self.password = password if password is not None else os.getenv("CAMPAY_APP_PASSWORD", "")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def provider(self) -> Provider:
        return Provider.CAMPAY

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport)

    @staticmethod
    def _auth_headers(token: str) -> Dict[str, str]:
        return {"Authorization": f"Token {token}", "Content-Type": "application/json"}

    @staticmethod
    def _json_body(response: httpx.Response) -> Dict[str, Any]:
        data = response.json() if response.content else {}
        if not isinstance(data, dict):
            raise IntegrationResponseError("Expected a JSON object from Campay", payload={"body": data})
        return data

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def request_token(self) -> AccessToken:
        if not self.username or not self.password:
            raise AuthenticationError("CAMPAY_APP_USER / CAMPAY_APP_PASSWORD are not configured.")

        url = f"{self.base_url}/token/"
        try:
            async with self._client() as client:
                response = await client.post(url, json={"username": self.username, "password": self.password})
                response.raise_for_status()
                normalized = normalize_token_response(self._json_body(response))
        except httpx.HTTPStatusError as e:
            logger.error("Campay auth error: %s %s", e.response.status_code, e.response.text)
            raise AuthenticationError(
                "Failed to authenticate with payment provider",
                details={"status_code": e.response.status_code},
            ) from e
        except (httpx.HTTPError, IntegrationResponseError, ValueError) as e:
            logger.error("Campay auth error: %s", e)
            raise AuthenticationError("Failed to authenticate with payment provider") from e

        return AccessToken(token=normalized.token, expires_in=normalized.expires_in)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def collect(self, request: PaymentRequest, token: str) -> CollectResponse:
        payload: Dict[str, Any] = {
            "amount": request.amount,
            "currency": request.currency,
            "from": request.phone_number,
            "description": request.description,
            "external_reference": request.external_reference,
        }

        url = f"{self.base_url}/collect/"
        try:
            logger.info("Submitting Campay collection external_reference=%s", request.external_reference)
            async with self._client() as client:
                response = await client.post(url, json=payload, headers=self._auth_headers(token))
                response.raise_for_status()
                normalized = normalize_collect_response(self._json_body(response))
        except httpx.HTTPStatusError as e:
            logger.error("Campay collect error: %s %s", e.response.status_code, e.response.text)
            raise InitiationError(
                "Payment initiation failed.",
                details={"status_code": e.response.status_code},
            ) from e
        except (httpx.HTTPError, IntegrationResponseError, ValueError) as e:
            logger.error("Campay collect error: %s", e)
            raise InitiationError("Payment initiation failed.") from e

        return CollectResponse(
            reference=normalized.reference,
            external_reference=request.external_reference,
            operator=normalized.operator,
            ussd_code=normalized.ussd_code,
            raw=normalized.raw,
        )

    async def get_transaction_status(self, reference: str, token: str) -> TransactionStatusResponse:
        url = f"{self.base_url}/transaction/{reference}/"
        try:
            async with self._client() as client:
                response = await client.get(url, headers=self._auth_headers(token))
                response.raise_for_status()
                normalized = normalize_status_response(self._json_body(response), fallback_reference=reference)
        except httpx.HTTPStatusError as e:
            logger.warning("Campay status error for %s: %s", reference, e.response.status_code)
            raise TransientQueryError(
                f"Status query failed for {reference}",
                details={"status_code": e.response.status_code},
            ) from e
        except (httpx.HTTPError, IntegrationResponseError, ValueError) as e:
            logger.warning("Campay status error for %s: %s", reference, e)
            raise TransientQueryError(f"Status query failed for {reference}") from e

        return TransactionStatusResponse(
            reference=normalized.reference,
            status=normalized.status,
            amount=normalized.amount,
            operator=normalized.operator,
            operator_code=normalized.operator_code,
            external_reference=normalized.external_reference,
            raw=normalized.raw,
        )
