import pytest

from src.database import postgres, postgres_real
from src.integrations.contracts.interfaces import PaymentStatus


@pytest.fixture(params=["memory", "sqlalchemy"])
def ledger(request, tmp_path):
    if request.param == "memory":
        return postgres.PostgresDB()
    db = postgres_real.PostgresDB(f"sqlite:///{tmp_path / 'ledger.db'}")
    db.create_tables()
    return db


def test_new_row_defaults_to_pending(ledger):
    tx = ledger.upsert_transaction("abc123", amount="300", phone="237677000000")

    assert tx.status == "PENDING"
    assert tx.webhook_received is False
    assert ledger.get_transaction("abc123").amount == "300"


def test_upsert_is_idempotent(ledger):
    ledger.upsert_transaction("abc123", status=PaymentStatus.PENDING, amount="300")
    ledger.upsert_transaction("abc123", status=PaymentStatus.PENDING, amount="300")

    assert len(ledger.list_transactions()) == 1


def test_terminal_status_never_reverses(ledger):
    ledger.upsert_transaction("abc123", status=PaymentStatus.PENDING)
    ledger.upsert_transaction("abc123", status=PaymentStatus.SUCCESSFUL)
    tx = ledger.upsert_transaction("abc123", status=PaymentStatus.PENDING)

    assert tx.status == "SUCCESSFUL"
    assert ledger.upsert_transaction("abc123", status=PaymentStatus.FAILED).status == "SUCCESSFUL"


def test_unknown_is_never_persisted(ledger):
    ledger.upsert_transaction("abc123", status=PaymentStatus.UNKNOWN)
    assert ledger.get_transaction("abc123").status == "PENDING"


def test_none_fields_do_not_overwrite(ledger):
    ledger.upsert_transaction("abc123", operator="MTN")
    tx = ledger.upsert_transaction("abc123", status="FAILED", operator=None, operator_code="E01")

    assert tx.operator == "MTN"
    assert tx.operator_code == "E01"
    assert tx.status == "FAILED"


def test_unknown_field_is_rejected(ledger):
    with pytest.raises(TypeError):
        ledger.upsert_transaction("abc123", colour="blue")


def test_missing_reference_returns_none(ledger):
    assert ledger.get_transaction("nope") is None
    assert ledger.ping() is True


def test_connection_string_normalization():
    assert (
        postgres_real._normalize_connection_string("  'postgres://u:p@host/db'  ")
        == "postgresql+psycopg://u:p@host/db"
    )
    assert (
        postgres_real._normalize_connection_string("psql 'postgresql://u:p@host/db?sslmode=require'")
        == "postgresql+psycopg://u:p@host/db?sslmode=require"
    )
    assert postgres_real._normalize_connection_string("sqlite:///x.db") == "sqlite:///x.db"
