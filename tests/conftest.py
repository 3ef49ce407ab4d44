"""Pytest fixtures for the payment and generation tests."""

from typing import List, Optional

import pytest

from src.database.postgres import PostgresDB
from src.database.redis import RedisCache
from src.integrations.contracts.interfaces import (
    AccessToken,
    CollectResponse,
    MobileMoneyProvider,
    PaymentStatus,
    Provider,
    TransactionStatusResponse,
)
from src.integrations.policy.token_cache import TokenCache


class VirtualTime:
    """Clock and sleep pair that only advances when someone sleeps or calls advance()."""

    def __init__(self, now: float = 0.0):
        self.now = now
        self.sleeps: List[float] = []

    def clock(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class StubProvider(MobileMoneyProvider):
    def __init__(
        self,
        reference: str = "abc123",
        statuses: Optional[List[PaymentStatus]] = None,
        collect_error: Optional[Exception] = None,
        status_error: Optional[Exception] = None,
        token_error: Optional[Exception] = None,
    ):
        self.reference = reference
        self.statuses = list(statuses or [PaymentStatus.PENDING])
        self.collect_error = collect_error
        self.status_error = status_error
        self.token_error = token_error
        self.collect_calls = []
        self.status_calls = []
        self.token_calls = 0

    @property
    def provider(self) -> Provider:
        return Provider.CAMPAY

    async def request_token(self) -> AccessToken:
        self.token_calls += 1
        if self.token_error:
            raise self.token_error
        return AccessToken(token=f"token-{self.token_calls}", expires_in=3600)

    async def collect(self, request, token):
        self.collect_calls.append((request, token))
        if self.collect_error:
            raise self.collect_error
        return CollectResponse(reference=self.reference, external_reference=request.external_reference, operator="MTN")

    async def get_transaction_status(self, reference, token):
        self.status_calls.append((reference, token))
        if self.status_error:
            raise self.status_error
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return TransactionStatusResponse(reference=reference, status=status, operator="MTN", operator_code="OK")


@pytest.fixture
def db():
    """In-memory PostgresDB stub for tests."""
    return PostgresDB()


@pytest.fixture
def vtime():
    return VirtualTime()


@pytest.fixture
def token_store(vtime):
    return RedisCache(clock=vtime.clock)


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def make_provider():
    return StubProvider


@pytest.fixture
def token_cache_for(token_store):
    def _build(provider: MobileMoneyProvider) -> TokenCache:
        return TokenCache(provider.request_token, token_store)

    return _build
