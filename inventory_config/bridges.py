"""
Config -> Kernel Bridges.

Functions that convert configuration artifacts into kernel inputs.  They
live in inventory_config (the producer) because the kernel must NEVER
import inventory_config.

Usage:
    from inventory_config.bridges import build_account_mapping

    config = get_active_config()
    mapping = build_account_mapping(config, store.list_accounts())
"""

from __future__ import annotations

from collections.abc import Iterable

from inventory_config.schema import InventoryLedgerConfig
from inventory_kernel.domain.account_mapping import AccountMapping, AccountRole
from inventory_kernel.domain.alerts import ShipmentAlertEvaluator
from inventory_kernel.domain.dtos import AccountSnapshot
from inventory_kernel.exceptions import UnknownAccountError


def build_account_mapping(
    config: InventoryLedgerConfig,
    accounts: Iterable[AccountSnapshot],
) -> AccountMapping:
    """
    Resolve every role binding's account code to an account id.

    Raises:
        UnknownAccountError: a bound code has no active account.
    """
    by_code = {account.code: account for account in accounts}
    bindings = {}
    for binding in config.role_bindings:
        account = by_code.get(binding.account_code)
        if account is None or not account.is_active:
            raise UnknownAccountError(binding.account_code, role=binding.role)
        bindings[AccountRole(binding.role)] = account.id
    return AccountMapping(bindings=bindings)


def build_alert_evaluator(config: InventoryLedgerConfig) -> ShipmentAlertEvaluator:
    return ShipmentAlertEvaluator(
        alert_percent=config.engine.alert_threshold_percent,
        ready_percent=config.engine.ready_to_ship_percent,
    )
