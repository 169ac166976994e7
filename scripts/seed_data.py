#!/usr/bin/env python3
"""
Seed the database with a chart of accounts, master data and a few orders.

Drops all tables, recreates them, creates the default chart of accounts from
the active configuration, adds items, customers and suppliers, then submits
a handful of purchase and sale orders through OrderSubmissionService.

Usage:
    python3 scripts/seed_data.py [--db-url sqlite:///inventory.db]
"""

import argparse
import logging
import sys
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

DEFAULT_DB_URL = "sqlite:///inventory.db"

ITEMS = [
    # name, sku, opening qty, cost, selling price, shipment threshold
    ("Widget", "WID-001", 40, Decimal("6.00"), Decimal("10.00"), 50),
    ("Gadget", "GAD-001", 10, Decimal("12.50"), Decimal("20.00"), 40),
    ("Sprocket", "SPR-001", 0, Decimal("1.25"), Decimal("2.50"), 200),
]


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--db-url", default=DEFAULT_DB_URL, help="SQLAlchemy database URL")
    parser.add_argument("--verbose", action="store_true", help="emit structured logs to stderr")
    args = parser.parse_args()

    if not args.verbose:
        logging.disable(logging.CRITICAL)

    from inventory_config import get_active_config
    from inventory_config.bridges import build_account_mapping
    from inventory_kernel.db.engine import (
        create_tables,
        drop_tables,
        get_session,
        init_engine_from_url,
    )
    from inventory_kernel.db.immutability import register_immutability_listeners
    from inventory_kernel.domain.clock import DeterministicClock
    from inventory_kernel.domain.dtos import CounterpartyRef
    from inventory_kernel.domain.order import OrderBuilder
    from inventory_kernel.exceptions import InventoryLedgerError
    from inventory_kernel.services.ledger_store import SqlLedgerStore
    from inventory_kernel.services.master_data_service import MasterDataService
    from inventory_kernel.services.order_submission import OrderSubmissionService

    print()
    print(f"  [1/5] Connecting to {args.db_url} ...")
    init_engine_from_url(args.db_url, echo=False)

    print("  [2/5] Dropping old tables and recreating schema...")
    drop_tables()
    create_tables()
    register_immutability_listeners()

    config = get_active_config()
    session = get_session()
    master = MasterDataService(session)

    print(f"  [3/5] Creating chart of accounts ({len(config.accounts)} accounts)...")
    for account in config.accounts:
        master.create_account(account.code, account.name, account.account_type)

    print(f"  [4/5] Creating {len(ITEMS)} items, customers and suppliers...")
    items = {}
    for name, sku, qty, cost, price, threshold in ITEMS:
        items[sku] = master.create_item(
            name=name,
            sku=sku,
            quantity=qty,
            cost_price=cost,
            selling_price=price,
            shipment_threshold=threshold,
        )
    acme = master.create_customer("Acme Retail", email="orders@acme.example")
    bolt = master.create_customer("Bolt Hardware")
    supplier = master.create_supplier("Northwind Supply", phone="555-0100")
    session.commit()

    store = SqlLedgerStore(session)
    clock = DeterministicClock(datetime(2025, 6, 15, 12, 0, 0, tzinfo=UTC))
    service = OrderSubmissionService(
        store,
        build_account_mapping(config, store.list_accounts()),
        clock=clock,
        max_cas_attempts=config.engine.max_cas_attempts,
    )

    print("  [5/5] Submitting orders...")
    orders = [
        ("purchase", supplier, "credit", [("SPR-001", 180, Decimal("1.10"))]),
        ("purchase", supplier, "cash", [("GAD-001", 20, None)]),
        ("sale", acme, "cash", [("WID-001", 5, None), ("GAD-001", 2, None)]),
        ("sale", bolt, "credit", [("WID-001", 8, Decimal("9.50"))]),
    ]
    for kind, party, method, lines in orders:
        builder = OrderBuilder(kind)
        builder.select_counterparty(CounterpartyRef(id=party.id, name=party.name))
        builder.select_payment_method(method)
        for sku, qty, price in lines:
            builder.add_line(store.get_item(items[sku].id), qty, price)
        try:
            result = builder.submit(service.submit)
        except InventoryLedgerError as exc:
            print(f"        {kind:<8} {party.name:<20} FAILED [{exc.code}] {exc}", file=sys.stderr)
            session.close()
            return 1
        clock.advance(3600)
        print(
            f"        {kind:<8} {party.name:<20} {method:<6} "
            f"revenue={result.revenue:>8} cost={result.cost:>8}"
        )

    session.close()
    print()
    print("  Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
