#!/usr/bin/env python3
"""
Start a mobile money payment and poll it to a terminal state, printing each stage.

Without --backend-url the flow runs in-process against the Campay mock client
and the in-memory ledger. With --backend-url it drives a deployed backend
through POST /api/pay and GET /api/status/{reference}.

Usage (from repo root):
  python scripts/run_payment_demo.py --amount 300 --phone 677000000
  python scripts/run_payment_demo.py --backend-url http://localhost:3001 --amount 300 --phone 677000000
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv

load_dotenv()

from src.api.endpoints.payments import build_payment_services
from src.database.postgres import PostgresDB
from src.database.redis import RedisCache
from src.integrations.clients.mocks.campay import CampayMockClient
from src.integrations.clients.real_http.backend import ResumeBackendClient
from src.integrations.contracts.errors import PaymentError, PaymentTimeoutError
from src.integrations.policy.status_poller import PaymentStatusPoller
from src.utils.config_loader import load_app_config


def setup_logging():
    """Log to terminal at INFO so every stage is visible."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


def print_stage(title: str, data):
    """Print a stage header and data to the terminal."""
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)
    if isinstance(data, (dict, list)):
        print(json.dumps(data, indent=2, default=str))
    else:
        print(data)
    print()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--amount", default="300")
    parser.add_argument("--phone", default="677000000")
    parser.add_argument("--description", default="Download resume")
    parser.add_argument("--backend-url", default=None, help="Drive a deployed backend instead of the local mock")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between status queries")
    parser.add_argument("--timeout", type=float, default=None, help="Polling budget in seconds")
    parser.add_argument("--pending-polls", type=int, default=2, help="Mock only: PENDING answers before success")
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    setup_logging()
    args = parse_args(argv)
    config = load_app_config()
    interval = args.interval or config.polling.interval_seconds
    timeout = args.timeout or config.polling.timeout_seconds

    if args.backend_url:
        backend = ResumeBackendClient(base_url=args.backend_url)
        initiate = backend.pay
        source = backend
    else:
        services = build_payment_services(
            PostgresDB(), RedisCache(), config, provider=CampayMockClient(pending_polls=args.pending_polls)
        )
        initiate = services.initiator.initiate
        source = services.status

    try:
        result = await initiate(args.amount, args.phone, args.description)
    except PaymentError as e:
        print_stage("INITIATION FAILED", str(e))
        return 1
    print_stage("PAYMENT INITIATED", {"reference": result.reference, "message": result.message})

    poller = PaymentStatusPoller(
        result.reference,
        source,
        interval_seconds=interval,
        timeout_seconds=timeout,
        on_success=lambda outcome: print_stage("PAYMENT SUCCESSFUL", outcome.message),
        on_failure=lambda outcome: print_stage("PAYMENT FAILED", outcome.message),
    )
    outcome = await poller.run()
    print_stage(
        "POLLING FINISHED",
        {"state": outcome.state.value, "queries": outcome.queries, "elapsed_seconds": round(outcome.elapsed_seconds, 1)},
    )

    try:
        outcome.raise_for_timeout()
    except PaymentTimeoutError as e:
        print_stage("PAYMENT TIMED OUT", str(e))
        return 2
    return 0 if outcome.succeeded else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
