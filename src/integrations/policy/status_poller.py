"""
Payment status poller.

Resolves one pending transaction to a terminal state within a bounded time
budget. The poller is a small state machine advanced by `tick()`; `run()`
drives ticks on a fixed interval. Clock and sleep are injected so the whole
machine can be exercised on virtual time.

States:
    PENDING -> SUCCESSFUL   provider confirmed the payment
    PENDING -> FAILED       provider reported failure or cancellation
    PENDING -> TIMED_OUT    budget exhausted; provider may still resolve later
    PENDING -> CANCELLED    caller abandoned the flow
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol

from src.integrations.contracts.errors import PaymentTimeoutError
from src.integrations.contracts.interfaces import PaymentStatus
from src.integrations.policy.response_wrappers import IntegrationResponseError, map_payment_status

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 3.0
DEFAULT_TIMEOUT_SECONDS = 180.0

SUCCESS_MESSAGE = "Payment confirmed. Your download is unlocked."
FAILED_MESSAGE = "Transaction failed or cancelled. Please try again."
TIMED_OUT_MESSAGE = "Transaction timed out. Please check your phone for any pending prompts and try again."
CANCELLED_MESSAGE = "Payment check cancelled."


class PollState(str, Enum):
    PENDING = "PENDING"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    CANCELLED = "CANCELLED"


TERMINAL_POLL_STATES = frozenset({PollState.SUCCESSFUL, PollState.FAILED, PollState.TIMED_OUT, PollState.CANCELLED})

_MESSAGES = {
    PollState.SUCCESSFUL: SUCCESS_MESSAGE,
    PollState.FAILED: FAILED_MESSAGE,
    PollState.TIMED_OUT: TIMED_OUT_MESSAGE,
    PollState.CANCELLED: CANCELLED_MESSAGE,
}


class StatusSource(Protocol):
    async def get_status(self, reference: str) -> Any:
        """Return the current provider status for `reference` (enum or string)."""


@dataclass
class PollOutcome:
    reference: str
    state: PollState
    queries: int
    elapsed_seconds: float
    message: str

    @property
    def succeeded(self) -> bool:
        return self.state == PollState.SUCCESSFUL

    def raise_for_timeout(self) -> None:
        if self.state == PollState.TIMED_OUT:
            raise PaymentTimeoutError(self.message, details={"reference": self.reference, "queries": self.queries})


# Plain functions or coroutine functions.
Callback = Callable[[PollOutcome], Any]


class PaymentStatusPoller:
    def __init__(
        self,
        reference: str,
        source: StatusSource,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        on_success: Optional[Callback] = None,
        on_failure: Optional[Callback] = None,
        on_timeout: Optional[Callback] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval_seconds <= 0 or timeout_seconds <= 0:
            raise ValueError("interval_seconds and timeout_seconds must be positive")
        self.reference = reference
        self.source = source
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds
        self._callbacks = {
            PollState.SUCCESSFUL: on_success,
            PollState.FAILED: on_failure,
            PollState.TIMED_OUT: on_timeout,
        }
        self._clock = clock
        self._sleep = sleep

        self.state = PollState.PENDING
        self.queries = 0
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_POLL_STATES

    @property
    def elapsed_seconds(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._finished_at if self._finished_at is not None else self._clock()
        return end - self._started_at

    def outcome(self) -> PollOutcome:
        return PollOutcome(
            reference=self.reference,
            state=self.state,
            queries=self.queries,
            elapsed_seconds=self.elapsed_seconds,
            message=_MESSAGES.get(self.state, ""),
        )

    def start(self) -> None:
        """Start the budget clock. Idempotent."""
        if self._started_at is None:
            self._started_at = self._clock()
            logger.info("Polling payment %s every %.1fs for up to %.0fs",
                        self.reference, self.interval_seconds, self.timeout_seconds)

    def cancel(self) -> None:
        """Stop polling. No query is issued after this returns."""
        if self.is_terminal:
            return
        logger.info("Polling for payment %s cancelled after %d queries", self.reference, self.queries)
        self._finish(PollState.CANCELLED)

    # ------------------------------------------------------------------
    # Driving
    # ------------------------------------------------------------------

    def _budget_exhausted(self) -> bool:
        return self.elapsed_seconds >= self.timeout_seconds

    async def tick(self) -> PollState:
        """Issue at most one status query and apply its result."""
        if self.is_terminal:
            return self.state
        self.start()

        if self._budget_exhausted():
            return await self._settle(PollState.TIMED_OUT)

        self.queries += 1
        try:
            raw_status = await self.source.get_status(self.reference)
            status = map_payment_status(getattr(raw_status, "value", raw_status))
        except IntegrationResponseError:
            # UNKNOWN and other non-terminal answers keep the loop going.
            status = PaymentStatus.PENDING
        except Exception as e:
            logger.warning("Status query %d for %s failed: %s", self.queries, self.reference, e)
            status = PaymentStatus.PENDING

        # Cancelled while the query was in flight: discard its result.
        if self.is_terminal:
            return self.state

        if status == PaymentStatus.SUCCESSFUL:
            return await self._settle(PollState.SUCCESSFUL)
        if status == PaymentStatus.FAILED:
            return await self._settle(PollState.FAILED)
        if self._budget_exhausted():
            return await self._settle(PollState.TIMED_OUT)
        return self.state

    async def run(self) -> PollOutcome:
        """Poll until a terminal state, the budget runs out, or cancel() is called."""
        self.start()
        while not self.is_terminal:
            remaining = self.timeout_seconds - self.elapsed_seconds
            await self._sleep(max(0.0, min(self.interval_seconds, remaining)))
            if self.is_terminal:
                break
            await self.tick()
        return self.outcome()

    def _finish(self, state: PollState) -> PollState:
        self.state = state
        self._finished_at = self._clock()
        outcome = self.outcome()
        logger.info("Payment %s resolved locally as %s after %d queries (%.1fs)",
                    self.reference, state.value, self.queries, outcome.elapsed_seconds)
        return state

    async def _settle(self, state: PollState) -> PollState:
        """Finish in `state` and run its callback, awaiting it when it is a coroutine."""
        self._finish(state)
        callback = self._callbacks.get(state)
        if callback is not None:
            result = callback(self.outcome())
            if inspect.isawaitable(result):
                await result
        return state
