"""Error handling helpers: map payment and internal errors to API responses."""
from typing import Any, Dict, Optional, Tuple
import logging

from src.integrations.contracts.errors import (
    AuthenticationError,
    InitiationError,
    PaymentError,
    PaymentTimeoutError,
    PaymentValidationError,
    TransientQueryError,
)
from src.integrations.policy.status_poller import TIMED_OUT_MESSAGE

logger = logging.getLogger(__name__)

INITIATION_FAILED_MESSAGE = "Payment initiation failed."
INTERNAL_ERROR_MESSAGE = "An internal error occurred while processing your request. Please try again later."


class ErrorHandler:
    def payment_error_response(self, exc: PaymentError) -> Tuple[int, Dict[str, Any]]:
        """Return (HTTP status, JSON body) for an error raised by the payment services."""
        if isinstance(exc, PaymentValidationError):
            logger.info("Rejected payment request: %s", exc)
            return 400, {"success": False, "message": str(exc)}
        if isinstance(exc, (AuthenticationError, InitiationError)):
            logger.error("Payment initiation failed: %s (cause: %r)", exc, exc.__cause__)
            return 500, {"success": False, "message": INITIATION_FAILED_MESSAGE}
        if isinstance(exc, PaymentTimeoutError):
            return 504, {"success": False, "message": TIMED_OUT_MESSAGE}
        if isinstance(exc, TransientQueryError):
            return 502, {"success": False, "message": str(exc)}
        return self.internal_error_response(exc)

    def internal_error_response(
        self, exc: Exception, context: Optional[Dict[str, Any]] = None
    ) -> Tuple[int, Dict[str, Any]]:
        logger.error("Unhandled exception: %s context=%s", exc, context or {}, exc_info=exc)
        return 500, {"success": False, "message": INTERNAL_ERROR_MESSAGE}
