from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    # Query-side only: returned when neither the provider nor the ledger
    # knows the reference. Never persisted.
    UNKNOWN = "UNKNOWN"


class Provider(str, Enum):
    CAMPAY = "CAMPAY"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Shared data models
# ---------------------------------------------------------------------------

@dataclass
class AccessToken:
    token: str
    expires_in: Optional[int] = None     # seconds, as reported by the provider


@dataclass
class PaymentRequest:
    amount: str
    phone_number: str
    currency: str
    description: str
    external_reference: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CollectResponse:
    reference: str                       # provider-side transaction reference
    external_reference: str
    operator: Optional[str] = None
    ussd_code: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TransactionStatusResponse:
    reference: str
    status: PaymentStatus
    amount: Optional[str] = None
    operator: Optional[str] = None
    operator_code: Optional[str] = None
    external_reference: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class InitiationResult:
    reference: str
    external_reference: str
    message: str
    operator: Optional[str] = None
    ussd_code: Optional[str] = None


# ---------------------------------------------------------------------------
# Abstract provider interface
# ---------------------------------------------------------------------------

class MobileMoneyProvider(ABC):
    """Every mobile money provider client must implement this interface."""

    @property
    @abstractmethod
    def provider(self) -> Provider:
        """Return the provider enum value."""

    @abstractmethod
    async def request_token(self) -> AccessToken:
        """Authenticate with the configured application credentials."""

    @abstractmethod
    async def collect(self, request: PaymentRequest, token: str) -> CollectResponse:
        """Initiate a mobile money collection (debit prompt on the payer's phone)."""

    @abstractmethod
    async def get_transaction_status(self, reference: str, token: str) -> TransactionStatusResponse:
        """Query the status of a previously initiated collection."""
