"""
Lightweight in-memory PostgresDB replacement for local development.

This provides the transaction ledger interface expected by the payment
services so the system can run without a real database. It is NOT
intended for production use.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import count
from typing import Dict, List, Optional

from src.integrations.contracts.interfaces import PaymentStatus
from src.integrations.contracts.payments import is_terminal_status, resolve_status_transition

logger = logging.getLogger(__name__)

# Columns a caller may set through upsert_transaction.
UPSERT_FIELDS = ("external_reference", "amount", "phone", "operator", "operator_code", "webhook_received")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Transaction:
    id: int
    reference: str
    status: str = PaymentStatus.PENDING.value
    external_reference: Optional[str] = None
    amount: Optional[str] = None
    phone: Optional[str] = None
    operator: Optional[str] = None
    operator_code: Optional[str] = None
    webhook_received: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    last_updated: datetime = field(default_factory=_utcnow)


class PostgresDB:
    """
    In-memory stand‑in for the Postgres-backed transaction ledger.

    One record per reference; writes are idempotent upserts and status
    transitions never leave a terminal state.
    """

    def __init__(self) -> None:
        self._transactions: Dict[str, Transaction] = {}
        self._ids = count(1)

    # ------------------------------------------------------------------ #
    # Schema / lifecycle
    # ------------------------------------------------------------------ #
    def create_tables(self) -> None:
        """
        No-op for the in-memory implementation. Kept for compatibility
        with the startup hook in `src/api/main.py`.
        """
        return None

    def ping(self) -> bool:
        return True

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def get_transaction(self, reference: str) -> Optional[Transaction]:
        return self._transactions.get(reference)

    def list_transactions(self, limit: int = 50) -> List[Transaction]:
        txs = sorted(self._transactions.values(), key=lambda t: t.created_at, reverse=True)
        return txs[:limit]

    def upsert_transaction(
        self,
        reference: str,
        *,
        status: Optional[PaymentStatus] = None,
        **fields,
    ) -> Transaction:
        unknown = set(fields) - set(UPSERT_FIELDS)
        if unknown:
            raise TypeError(f"Unknown transaction fields: {sorted(unknown)}")

        status = PaymentStatus(status) if status is not None else None
        now = _utcnow()
        tx = self._transactions.get(reference)
        if tx is None:
            tx = Transaction(
                id=next(self._ids),
                reference=reference,
                status=resolve_status_transition(None, status).value,
                created_at=now,
                last_updated=now,
            )
            self._transactions[reference] = tx
        else:
            current = PaymentStatus(tx.status)
            resolved = resolve_status_transition(current, status)
            if status is not None and is_terminal_status(current) and status != current:
                logger.warning(
                    "Ignoring status %s for transaction %s already at %s", status.value, reference, current.value
                )
            tx.status = resolved.value
            tx.last_updated = now

        for name, value in fields.items():
            if value is not None:
                setattr(tx, name, value)
        return tx
