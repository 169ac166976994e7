#!/usr/bin/env python3
"""
Print the financial summary, trial balance, shipment alerts and recent activity.

Usage:
    python3 scripts/view_reports.py [--db-url sqlite:///inventory.db] [--search TEXT]
"""

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

DEFAULT_DB_URL = "sqlite:///inventory.db"


def _money(value) -> str:
    from inventory_kernel.db.types import round_money

    return f"{round_money(value):>12,}"


def print_summary(reports) -> None:
    summary = reports.financial_summary()
    print()
    print("  FINANCIAL SUMMARY")
    print(f"    Revenue          {_money(summary.revenue)}")
    print(f"    Cost of goods    {_money(summary.cogs)}")
    print(f"    Net profit       {_money(summary.net_profit)}")
    print(f"    Receivables      {_money(summary.receivables)}")
    print(f"    Payables         {_money(summary.payables)}")
    print(f"    Cash             {_money(summary.cash)}")


def print_trial_balance(ledger) -> None:
    trial = ledger.trial_balance()
    print()
    print("  TRIAL BALANCE")
    for row in trial.rows:
        print(f"    {row.code:<6} {row.name:<24} {_money(row.debit_total)} {_money(row.credit_total)}")
    print(f"    {'':<31} {_money(trial.total_debits)} {_money(trial.total_credits)}")
    if not trial.is_balanced:
        print("    ** OUT OF BALANCE **", file=sys.stderr)


def print_alerts(reports, evaluator) -> None:
    print()
    print("  SHIPMENT ALERTS")
    alerts = reports.shipment_alerts(evaluator)
    if not alerts:
        print("    (none)")
    for alert in alerts:
        flag = "READY TO SHIP" if alert.ready_to_ship else ""
        print(
            f"    {alert.sku:<10} {alert.name:<20} {alert.quantity:>6}/{alert.shipment_threshold:<6} "
            f"{alert.ratio_display:>7}%  {flag}"
        )


def print_activity(activity, search: str | None, limit: int) -> None:
    print()
    print("  INVENTORY MOVEMENTS")
    for record in activity.inventory_movements(search=search, limit=limit):
        print(
            f"    {record.occurred_at:%Y-%m-%d %H:%M}  {record.type:<8} {record.item_sku or '':<10} "
            f"{record.quantity:>6}  {record.entity_name}"
        )

    print()
    print("  JOURNAL")
    for entry in activity.journal_log(search=search, limit=limit):
        print(f"    {entry.posted_at:%Y-%m-%d %H:%M}  [{entry.source}] {entry.description}")
        for line in entry.lines:
            side = f"Dr {line.debit}" if line.debit else f"    Cr {line.credit}"
            print(f"        {line.account_name or line.account_id:<24} {side}")


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--db-url", default=DEFAULT_DB_URL, help="SQLAlchemy database URL")
    parser.add_argument("--search", default=None, help="filter activity by counterparty/description")
    parser.add_argument("--limit", type=int, default=20, help="rows of activity to show")
    args = parser.parse_args()

    logging.disable(logging.CRITICAL)

    from inventory_config import get_active_config
    from inventory_config.bridges import build_account_mapping, build_alert_evaluator
    from inventory_kernel.db.engine import init_engine_from_url, session_scope
    from inventory_kernel.exceptions import ConfigurationError
    from inventory_kernel.selectors import ActivitySelector, LedgerSelector, ReportSelector
    from inventory_kernel.services.ledger_store import SqlLedgerStore

    init_engine_from_url(args.db_url, echo=False)
    config = get_active_config()

    with session_scope() as session:
        try:
            mapping = build_account_mapping(config, SqlLedgerStore(session).list_accounts())
        except ConfigurationError as exc:
            print(f"  WARNING: {exc}; using conventional account names", file=sys.stderr)
            mapping = None

        reports = ReportSelector(session, mapping)
        print_summary(reports)
        print_trial_balance(LedgerSelector(session))
        print_alerts(reports, build_alert_evaluator(config))
        print_activity(ActivitySelector(session), args.search, args.limit)

    return 0


if __name__ == "__main__":
    sys.exit(main())
