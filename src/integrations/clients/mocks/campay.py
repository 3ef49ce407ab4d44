"""
Campay mobile money: MOCK client.

⚠️  This is a mock implementation for development and testing.
    It never moves money. Collections resolve after a configurable number of
    PENDING status checks, with a configurable success rate, or follow an
    explicit status script per reference.
"""

import logging
import random
import uuid
from typing import Dict, List, Optional, Sequence

from src.integrations.contracts.interfaces import (
    AccessToken,
    CollectResponse,
    MobileMoneyProvider,
    PaymentRequest,
    PaymentStatus,
    Provider,
    TransactionStatusResponse,
)
from src.integrations.contracts.errors import TransientQueryError

logger = logging.getLogger(__name__)


class CampayMockClient(MobileMoneyProvider):
    """
    Mock Campay client.

    Parameters
    ----------
    pending_polls : int
        Number of status checks answered with PENDING before the collection
        resolves. Default 2.
    payment_success_rate : float
        Probability (0–1) that a collection resolves to SUCCESSFUL. Default 1.0.
    status_script : sequence of str, optional
        Explicit statuses returned in order for every new collection; the
        last entry repeats once the script is exhausted. Overrides the two
        options above.
    """

    def __init__(
        self,
        pending_polls: int = 2,
        payment_success_rate: float = 1.0,
        status_script: Optional[Sequence[str]] = None,
    ):
        self._pending_polls = pending_polls
        self._success_rate = payment_success_rate
        self._status_script = [PaymentStatus(s) for s in status_script] if status_script else None

        # In-memory stores (reset on restart)
        self._collections: Dict[str, PaymentRequest] = {}
        self._scripts: Dict[str, List[PaymentStatus]] = {}
        self.token_requests = 0
        self.status_queries = 0

        logger.info("[CAMPAY MOCK] Client initialised (success_rate=%.0f%%)", payment_success_rate * 100)

    # ------------------------------------------------------------------
    # Provider identity
    # ------------------------------------------------------------------

    @property
    def provider(self) -> Provider:
        return Provider.CAMPAY

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _new_reference(self) -> str:
        return f"CAMPAY-{uuid.uuid4().hex[:12].upper()}"

    def _script_for_new_collection(self) -> List[PaymentStatus]:
        if self._status_script:
            return list(self._status_script)
        final = PaymentStatus.SUCCESSFUL if random.random() < self._success_rate else PaymentStatus.FAILED
        return [PaymentStatus.PENDING] * self._pending_polls + [final]

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def request_token(self) -> AccessToken:
        self.token_requests += 1
        return AccessToken(token=f"mock-token-{self.token_requests}", expires_in=3600)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def collect(self, request: PaymentRequest, token: str) -> CollectResponse:
        reference = self._new_reference()
        logger.info("[CAMPAY MOCK] Collection ref=%s amount=%s %s",
                    reference, request.amount, request.currency)

        self._collections[reference] = request
        self._scripts[reference] = self._script_for_new_collection()
        return CollectResponse(
            reference=reference,
            external_reference=request.external_reference,
            operator="MTN",
            ussd_code="*126#",
        )

    async def get_transaction_status(self, reference: str, token: str) -> TransactionStatusResponse:
        self.status_queries += 1
        script = self._scripts.get(reference)
        if script is None:
            raise TransientQueryError(f"[CAMPAY MOCK] Unknown reference '{reference}'")

        status = script.pop(0) if len(script) > 1 else script[0]
        request = self._collections[reference]
        logger.info("[CAMPAY MOCK] Status ref=%s → %s", reference, status.value)
        return TransactionStatusResponse(
            reference=reference,
            status=status,
            amount=request.amount,
            operator="MTN",
            external_reference=request.external_reference,
        )
