"""
Resume builder backend HTTP client.

Lets a remote caller (CLI, another service) start a payment through
`POST /api/pay` and feed `GET /api/status/{reference}` into
PaymentStatusPoller, the same way the browser UI does.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import httpx

from src.integrations.contracts.errors import InitiationError, PaymentValidationError, TransientQueryError
from src.integrations.contracts.interfaces import InitiationResult, PaymentStatus

logger = logging.getLogger(__name__)


class ResumeBackendClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("BACKEND_URL", "http://localhost:3001")).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout_seconds, transport=self._transport)

    async def pay(self, amount: Any, phone_number: str, description: Optional[str] = None) -> InitiationResult:
        payload: Dict[str, Any] = {"amount": str(amount), "from": phone_number, "description": description}
        try:
            async with self._client() as client:
                response = await client.post("/api/pay", json=payload)
                body = response.json() if response.content else {}
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Could not reach backend at %s: %s", self.base_url, e)
            raise InitiationError(f"Connection failed. Could not reach {self.base_url}.") from e

        message = (body or {}).get("message") or f"Server error: {response.status_code}"
        if response.status_code == 400:
            raise PaymentValidationError(message)
        if response.status_code >= 400 or not body.get("success"):
            raise InitiationError(message, details={"status_code": response.status_code})

        return InitiationResult(
            reference=str(body["reference"]),
            external_reference=str(body.get("external_reference") or ""),
            message=message,
        )

    async def get_status(self, reference: str) -> PaymentStatus:
        try:
            async with self._client() as client:
                response = await client.get(f"/api/status/{reference}")
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TransientQueryError(f"Status query failed for {reference}") from e

        raw = str((body or {}).get("status") or "").upper()
        try:
            return PaymentStatus(raw)
        except ValueError:
            return PaymentStatus.UNKNOWN
