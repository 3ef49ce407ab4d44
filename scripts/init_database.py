#!/usr/bin/env python3
"""
Create the transactions ledger table in Postgres.

Uses DATABASE_URL environment variable. Does NOT drop existing tables.
"""

from __future__ import annotations
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

# Make sure src is on sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from src.database.postgres_real import PostgresDB


def main() -> int:
    url = os.environ.get("DATABASE_URL")
    if not url:
        print("DATABASE_URL is not set", file=sys.stderr)
        return 1

    try:
        db = PostgresDB(connection_string=url)
        if not db.ping():
            print("❌ Failed to connect to database", file=sys.stderr)
            return 2
        print("✅ Database connection OK")

        db.create_tables()
        tables = inspect(db.engine).get_table_names()
        print("✅ Ledger tables now exist:", sorted(tables))
        return 0

    except OperationalError as e:
        print(f"❌ Failed to connect to database: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
