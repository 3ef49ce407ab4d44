"""
Payment error taxonomy.

Initiation-side errors propagate to the caller so the UI can show an
immediate message. Polling-side errors are recovered where they happen,
except the poll budget running out, which is reported as a terminal outcome.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class PaymentError(Exception):
    """Base class for every error raised by the payment subsystem."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.details = details or {}


class PaymentValidationError(PaymentError, ValueError):
    """Bad input. Raised before any network call, never retried."""


class AuthenticationError(PaymentError):
    """Provider token could not be obtained. The caller must re-invoke."""


class InitiationError(PaymentError):
    """Provider rejected or never received the collection request.

    Never retried automatically: a retry could prompt the payer twice.
    """


class TransientQueryError(PaymentError):
    """A status query failed (network, non-2xx, unreadable body)."""


class PaymentTimeoutError(PaymentError, TimeoutError):
    """Poll budget exhausted without a terminal provider status.

    Not a negative result: the provider-side transaction may still resolve.
    """
