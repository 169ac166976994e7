"""
AccountMapping -- semantic account roles resolved to concrete accounts.

Responsibility:
    Posting rules speak in roles (CASH, SALES, COGS, ...), never in account
    ids.  AccountMapping is the immutable role -> account binding that one
    submission resolves ONCE and then uses for every leg it posts.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Built from YAML by
    ``inventory_config.bridges.build_account_mapping``.

Invariants enforced:
    - Every role a posting needs must resolve before any store write;
      an unmapped role raises MissingAccountMappingError.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from uuid import UUID

from inventory_kernel.domain.dtos import OrderKind, PaymentMethod
from inventory_kernel.exceptions import MissingAccountMappingError


class AccountRole(str, Enum):
    """The six account roles the engine posts to."""

    CASH = "cash"
    INVENTORY = "inventory"
    SALES = "sales"
    COGS = "cogs"
    RECEIVABLE = "receivable"
    PAYABLE = "payable"


def payment_role(kind: OrderKind, payment_method: PaymentMethod) -> AccountRole:
    """Account role settled by the order's payment method."""
    if payment_method == PaymentMethod.CASH:
        return AccountRole.CASH
    if kind == OrderKind.SALE:
        return AccountRole.RECEIVABLE
    return AccountRole.PAYABLE


def required_roles(kind: OrderKind, payment_method: PaymentMethod) -> tuple[AccountRole, ...]:
    """Roles that must be mapped before an order of this shape can post."""
    if kind == OrderKind.SALE:
        return (
            payment_role(kind, payment_method),
            AccountRole.SALES,
            AccountRole.COGS,
            AccountRole.INVENTORY,
        )
    return (AccountRole.INVENTORY, payment_role(kind, payment_method))


@dataclass(frozen=True)
class AccountMapping:
    """
    Immutable role -> account id binding.

    Contract:
        ``resolve_account(role)`` returns the bound account id or raises
        MissingAccountMappingError.  Roles may be partially mapped; only the
        roles an order actually needs are checked.
    """

    bindings: Mapping[AccountRole, UUID] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = {AccountRole(role): account_id for role, account_id in self.bindings.items()}
        object.__setattr__(self, "bindings", MappingProxyType(frozen))

    @classmethod
    def from_dict(cls, bindings: Mapping[str | AccountRole, UUID]) -> AccountMapping:
        return cls(bindings={AccountRole(role): account_id for role, account_id in bindings.items()})

    def resolve_account(self, role: AccountRole | str) -> UUID:
        role = AccountRole(role)
        account_id = self.bindings.get(role)
        if account_id is None:
            raise MissingAccountMappingError(role.value)
        return account_id

    def account_id_for(self, role: AccountRole | str) -> UUID | None:
        """Lenient lookup for read-side code (reports, dashboard)."""
        return self.bindings.get(AccountRole(role))

    def resolve_all(self, roles: Iterable[AccountRole]) -> dict[AccountRole, UUID]:
        """Resolve every role, raising on the first unmapped one."""
        return {role: self.resolve_account(role) for role in roles}

    def is_mapped(self, role: AccountRole | str) -> bool:
        return AccountRole(role) in self.bindings
