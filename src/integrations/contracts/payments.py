from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from .interfaces import PaymentStatus

"""
Payment contract: validation helpers and status rules specific to the
mobile money collection flow.

These helpers are shared by:
- the payment initiator (input validation, phone normalization)
- both ledger implementations (monotonic status transitions)
- the status poller (terminal state detection)
"""

TERMINAL_STATUSES = frozenset({PaymentStatus.SUCCESSFUL, PaymentStatus.FAILED})

# Largest amount accepted: 12 integer digits.
MAX_AMOUNT_EXPONENT = 11


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def validate_payment_input(amount: Any, phone_number: Any) -> List[str]:
    """
    Return a list of validation errors.
    Empty list means the input is valid.
    """
    errors: List[str] = []

    amount_text = "" if amount is None else str(amount).strip()
    if not amount_text:
        errors.append("amount is required")
    else:
        try:
            value = Decimal(amount_text)
        except InvalidOperation:
            errors.append(f"amount '{amount_text}' is not a number")
        else:
            if not value.is_finite() or value <= 0:
                errors.append("amount must be greater than zero")
            elif value.adjusted() > MAX_AMOUNT_EXPONENT:
                errors.append("amount is too large")

    phone_text = "" if phone_number is None else str(phone_number).strip()
    if not phone_text:
        errors.append("phone number is required")
    elif not normalize_phone_number(phone_text).isdigit():
        errors.append(f"phone number '{phone_text}' is not valid")

    return errors


def normalize_amount(amount: Any) -> str:
    """Render an amount the way the provider expects it: '300', not '300.0'."""
    return format(Decimal(str(amount).strip()).normalize(), "f")


def normalize_phone_number(phone_number: str, country_code: Optional[str] = None) -> str:
    """
    Strip formatting and make sure the number carries the country code.

    '677 00 00 00' -> '237677000000' when country_code is '237'.
    """
    digits = "".join(ch for ch in str(phone_number) if ch not in " -().").lstrip("+")
    if digits.startswith("00"):
        digits = digits[2:]
    if country_code and not digits.startswith(country_code):
        digits = f"{country_code}{digits}"
    return digits


# ---------------------------------------------------------------------------
# Status rules
# ---------------------------------------------------------------------------

def is_terminal_status(status: Optional[PaymentStatus]) -> bool:
    """Return True if the payment has reached a final, non-changeable state."""
    return status in TERMINAL_STATUSES


def resolve_status_transition(current: Optional[PaymentStatus], incoming: Optional[PaymentStatus]) -> PaymentStatus:
    """
    Status that should be stored when `incoming` arrives for a row at `current`.

    Terminal states never reverse, and UNKNOWN is never written.
    """
    if current is None:
        if incoming is None or incoming == PaymentStatus.UNKNOWN:
            return PaymentStatus.PENDING
        return incoming
    if is_terminal_status(current):
        return current
    if incoming is None or incoming == PaymentStatus.UNKNOWN:
        return current
    return incoming
