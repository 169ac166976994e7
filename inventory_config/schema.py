"""
InventoryLedgerConfig schema.

The human-authored configuration set: which chart-of-accounts codes play
each posting role, the default chart used for seeding, and the engine's
tunables.  YAML files are parsed into these frozen types by the loader.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class AccountDef:
    """One account of the default chart of accounts."""

    code: str
    name: str
    account_type: str  # asset, liability, revenue, expense


@dataclass(frozen=True)
class RoleBinding:
    """Binds a posting role (cash, sales, ...) to an account code."""

    role: str
    account_code: str


@dataclass(frozen=True)
class EngineSettings:
    max_cas_attempts: int = 5
    alert_threshold_percent: Decimal = Decimal("80")
    ready_to_ship_percent: Decimal = Decimal("100")


@dataclass(frozen=True)
class InventoryLedgerConfig:
    """
    A complete configuration set.

    ``checksum`` is the SHA-256 of the canonical JSON form of the source
    document, so two loads of the same file always agree.
    """

    config_id: str
    version: int
    currency: str
    role_bindings: tuple[RoleBinding, ...]
    accounts: tuple[AccountDef, ...] = ()
    engine: EngineSettings = field(default_factory=EngineSettings)
    checksum: str = ""

    def code_for(self, role: str) -> str | None:
        for binding in self.role_bindings:
            if binding.role == role:
                return binding.account_code
        return None
