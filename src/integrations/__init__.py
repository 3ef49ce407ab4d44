"""
Integrations layer.
This package contains all code used to communicate with external systems:
- The mobile money payment provider (Campay)
- The resume builder backend itself, for callers that poll it remotely

Key rule:
- API routes MUST NOT call external APIs directly.
- Routes call services (under src/integrations/policy), which call clients
  (under src/integrations/clients).
- We use MOCK clients during development and swap to REAL_HTTP clients when
  provider credentials are configured.

Switching implementations:
- The selection of mock vs real clients happens in ONE place (src/api/endpoints/payments.py).
"""

from .contracts.interfaces import (
    AccessToken,
    CollectResponse,
    InitiationResult,
    MobileMoneyProvider,
    PaymentRequest,
    PaymentStatus,
    Provider,
    TransactionStatusResponse,
)
from .contracts.errors import (
    AuthenticationError,
    InitiationError,
    PaymentError,
    PaymentTimeoutError,
    PaymentValidationError,
    TransientQueryError,
)
from .contracts.payments import (
    is_terminal_status,
    normalize_phone_number,
    resolve_status_transition,
    validate_payment_input,
)

__all__ = [
    # interfaces
    "AccessToken", "CollectResponse", "InitiationResult", "MobileMoneyProvider",
    "PaymentRequest", "PaymentStatus", "Provider", "TransactionStatusResponse",
    # errors
    "AuthenticationError", "InitiationError", "PaymentError",
    "PaymentTimeoutError", "PaymentValidationError", "TransientQueryError",
    # payments
    "is_terminal_status", "normalize_phone_number",
    "resolve_status_transition", "validate_payment_input",
]
