"""
Real Postgres-backed ledger for production when DATABASE_URL is set.
Implements the same interface as src.database.postgres (in-memory stub).
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import create_engine, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.database.models import Base, Transaction
from src.database.postgres import UPSERT_FIELDS
from src.integrations.contracts.interfaces import PaymentStatus
from src.integrations.contracts.payments import is_terminal_status, resolve_status_transition

logger = logging.getLogger(__name__)


def _normalize_connection_string(s: str) -> str:
    """Strip common mistakes: 'psql \'...\'', extra quotes, whitespace, legacy scheme."""
    s = s.strip()
    if re.match(r"^psql\s+", s, re.IGNORECASE):
        s = re.sub(r"^psql\s+", "", s, flags=re.IGNORECASE).strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    # Hosted providers hand out postgres:// URLs; route them to the psycopg 3 driver.
    if s.startswith("postgres://"):
        s = "postgresql+psycopg://" + s[len("postgres://"):]
    elif s.startswith("postgresql://"):
        s = "postgresql+psycopg://" + s[len("postgresql://"):]
    return s


def _engine_kwargs(connection_string: str) -> Dict[str, Any]:
    if connection_string.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


class PostgresDB:
    """
    Postgres data access using SQLAlchemy. Use when DATABASE_URL is set.
    """

    def __init__(self, connection_string: str) -> None:
        connection_string = _normalize_connection_string(connection_string)
        self.engine = create_engine(connection_string, **_engine_kwargs(connection_string))
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed: %s", e)
            return False

    @contextmanager
    def _session(self) -> Iterator[Session]:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def get_transaction(self, reference: str) -> Optional[Transaction]:
        with self._session() as s:
            stmt = select(Transaction).where(Transaction.reference == reference)
            return s.execute(stmt).scalar_one_or_none()

    def list_transactions(self, limit: int = 50) -> List[Transaction]:
        with self._session() as s:
            stmt = select(Transaction).order_by(Transaction.created_at.desc()).limit(limit)
            return list(s.execute(stmt).scalars().all())

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

        try:
            return self._upsert(reference, status, fields)
        except IntegrityError:
            # Lost an insert race on the unique reference; the row exists now.
            logger.info("Concurrent insert for transaction %s, retrying as update", reference)
            return self._upsert(reference, status, fields)

    def _upsert(self, reference: str, status: Optional[PaymentStatus], fields: Dict[str, Any]) -> Transaction:
        now = datetime.now(timezone.utc)
        with self._session() as s:
            stmt = select(Transaction).where(Transaction.reference == reference).with_for_update()
            tx = s.execute(stmt).scalar_one_or_none()
            if tx is None:
                tx = Transaction(
                    reference=reference,
                    status=resolve_status_transition(None, status).value,
                    webhook_received=False,
                    created_at=now,
                    last_updated=now,
                )
                s.add(tx)
            else:
                current = PaymentStatus(tx.status)
                if status is not None and is_terminal_status(current) and status != current:
                    logger.warning(
                        "Ignoring status %s for transaction %s already at %s", status.value, reference, current.value
                    )
                tx.status = resolve_status_transition(current, status).value
                tx.last_updated = now

            for name, value in fields.items():
                if value is not None:
                    setattr(tx, name, value)
            s.flush()
            s.refresh(tx)
            return tx
