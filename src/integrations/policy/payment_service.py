"""
Payment services used by the API routes.

PaymentInitiator starts a mobile money collection and records it in the
ledger. PaymentStatusService answers status queries, syncing the ledger with
the provider until the transaction reaches a terminal state.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Optional

from src.integrations.contracts.errors import (
    AuthenticationError,
    InitiationError,
    PaymentError,
    PaymentValidationError,
    TransientQueryError,
)
from src.integrations.contracts.interfaces import (
    InitiationResult,
    MobileMoneyProvider,
    PaymentRequest,
    PaymentStatus,
)
from src.integrations.contracts.payments import (
    is_terminal_status,
    normalize_amount,
    normalize_phone_number,
    validate_payment_input,
)
from src.integrations.policy.token_cache import TokenCache

logger = logging.getLogger(__name__)

INITIATED_MESSAGE = "Payment request sent. Confirm the prompt on your phone to continue."


def _invalidate_on_unauthorized(token_cache: TokenCache, error: PaymentError) -> None:
    if error.details.get("status_code") == 401:
        token_cache.invalidate()


class PaymentInitiator:
    def __init__(
        self,
        provider: MobileMoneyProvider,
        token_cache: TokenCache,
        db,
        *,
        currency: str = "XAF",
        country_code: Optional[str] = "237",
        default_description: str = "Resume Builder",
        reference_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self.provider = provider
        self.token_cache = token_cache
        self.db = db
        self.currency = currency
        self.country_code = country_code
        self.default_description = default_description
        self._new_external_reference = reference_factory

    async def initiate(self, amount: Any, payer_phone: Any, description: Any = None) -> InitiationResult:
        errors = validate_payment_input(amount, payer_phone)
        if errors:
            raise PaymentValidationError("; ".join(errors), details={"errors": errors})

        request = PaymentRequest(
            amount=normalize_amount(amount),
            phone_number=normalize_phone_number(str(payer_phone), self.country_code),
            currency=self.currency,
            description=str(description or "").strip() or self.default_description,
            external_reference=self._new_external_reference(),
        )

        try:
            token = await self.token_cache.get_token()
            collection = await self.provider.collect(request, token)
        except AuthenticationError as e:
            raise InitiationError("Payment initiation failed.", details={"cause": "authentication"}) from e
        except InitiationError as e:
            _invalidate_on_unauthorized(self.token_cache, e)
            raise

        # The payer has been prompted: a ledger failure must not cost the caller the reference.
        try:
            self.db.upsert_transaction(
                collection.reference,
                status=PaymentStatus.PENDING,
                external_reference=request.external_reference,
                amount=request.amount,
                phone=request.phone_number,
                operator=collection.operator,
            )
        except Exception as e:
            logger.error(
                "Could not record transaction reference=%s external_reference=%s: %s",
                collection.reference,
                request.external_reference,
                e,
                exc_info=e,
            )
        logger.info(
            "Payment initiated reference=%s external_reference=%s amount=%s %s",
            collection.reference,
            request.external_reference,
            request.amount,
            request.currency,
        )
        return InitiationResult(
            reference=collection.reference,
            external_reference=request.external_reference,
            message=INITIATED_MESSAGE,
            operator=collection.operator,
            ussd_code=collection.ussd_code,
        )


class PaymentStatusService:
    def __init__(self, provider: MobileMoneyProvider, token_cache: TokenCache, db) -> None:
        self.provider = provider
        self.token_cache = token_cache
        self.db = db

    async def get_status(self, reference: str) -> PaymentStatus:
        local = self.db.get_transaction(reference)
        local_status = PaymentStatus(local.status) if local is not None else None

        # Known terminal locally: no need to ask the provider again.
        if is_terminal_status(local_status):
            return local_status

        try:
            token = await self.token_cache.get_token()
            remote = await self.provider.get_transaction_status(reference, token)
        except (AuthenticationError, TransientQueryError) as e:
            if isinstance(e, TransientQueryError):
                _invalidate_on_unauthorized(self.token_cache, e)
            logger.warning("Status query for %s failed, answering from ledger: %s", reference, e)
            return local_status or PaymentStatus.UNKNOWN

        if local is not None and local_status != remote.status:
            self.db.upsert_transaction(
                reference,
                status=remote.status,
                operator=remote.operator,
                operator_code=remote.operator_code,
            )
            logger.info("Transaction %s moved %s -> %s", reference, local_status.value, remote.status.value)
        return remote.status
