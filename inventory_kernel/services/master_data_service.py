"""
MasterDataService -- maintenance of items, counterparties and accounts.

Responsibility:
    Creates, updates and deletes the reference records orders are built
    from: items (with opening quantity), customers, suppliers, and the chart
    of accounts used for seeding.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only (see BaseService).

Invariants enforced:
    - Item quantity is set once at creation; afterwards only order
      submission changes it.  ``update_item`` refuses a quantity change.
    - SKU is unique across items.
    - An item referenced by any inventory transaction cannot be deleted.

Failure modes:
    - DuplicateSkuError on create/update with a SKU already in use.
    - ItemReferencedError on delete of an item with history.
    - RecordNotFoundError for unknown ids.
    - ValidationError / InvalidPriceError for bad field values.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from inventory_kernel.db.types import money_from_value
from inventory_kernel.domain.dtos import AccountSnapshot, AccountType, ItemSnapshot
from inventory_kernel.exceptions import (
    DuplicateSkuError,
    ItemReferencedError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.account import Account
from inventory_kernel.models.item import Item
from inventory_kernel.models.party import Customer, Supplier
from inventory_kernel.models.transaction import InventoryTransaction
from inventory_kernel.services.base import BaseService

logger = get_logger("services.master_data")

_EDITABLE_ITEM_FIELDS = frozenset(
    {"name", "sku", "description", "uom", "cost_price", "selling_price", "shipment_threshold"}
)
_PARTY_FIELDS = frozenset({"name", "email", "phone", "address"})


@dataclass(frozen=True)
class PartyInfo:
    """Customer or supplier with contact details."""

    id: UUID
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None


def _require_name(value: Any, field: str = "name") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    return value.strip()


def _non_negative_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field} must be a non-negative integer, got {value!r}", field=field)
    return value


class MasterDataService(BaseService[Item]):
    """
    Reference data maintenance.

    Contract:
        All public methods return DTOs (ItemSnapshot, PartyInfo,
        AccountSnapshot), never ORM rows.
    """

    # -- items ---------------------------------------------------------------

    def _get_item(self, item_id: UUID) -> Item:
        item = self.session.get(Item, item_id)
        if item is None:
            raise RecordNotFoundError("item", str(item_id))
        return item

    def _check_sku_free(self, sku: str, exclude_id: UUID | None = None) -> None:
        stmt = select(Item.id).where(Item.sku == sku)
        if exclude_id is not None:
            stmt = stmt.where(Item.id != exclude_id)
        if self.session.scalars(stmt).first() is not None:
            raise DuplicateSkuError(sku)

    def _flush(self, operation: str, sku: str | None = None) -> None:
        try:
            self.session.flush()
        except IntegrityError as exc:
            if sku is not None and "sku" in str(exc.orig).lower():
                raise DuplicateSkuError(sku) from exc
            raise PersistenceError(operation, str(exc.orig)) from exc

    def create_item(
        self,
        name: str,
        sku: str,
        quantity: int = 0,
        cost_price: Decimal | int | str = Decimal("0"),
        selling_price: Decimal | int | str = Decimal("0"),
        shipment_threshold: int = 0,
        uom: str = "pcs",
        description: str | None = None,
    ) -> ItemSnapshot:
        """Create an item with its opening quantity."""
        name = _require_name(name)
        sku = _require_name(sku, "sku")
        self._check_sku_free(sku)

        item = Item(
            name=name,
            sku=sku,
            quantity=_non_negative_int(quantity, "quantity"),
            cost_price=money_from_value(cost_price, field="cost_price"),
            selling_price=money_from_value(selling_price, field="selling_price"),
            shipment_threshold=_non_negative_int(shipment_threshold, "shipment_threshold"),
            uom=uom,
            description=description,
        )
        self.session.add(item)
        self._flush("create_item", sku)
        logger.info(
            "item_created",
            extra={"item_id": str(item.id), "sku": sku, "quantity": item.quantity},
        )
        return ItemSnapshot.from_model(item)

    def update_item(self, item_id: UUID, **changes: Any) -> ItemSnapshot:
        """
        Change item details.

        Raises:
            ValidationError: on ``quantity`` or any unknown field.
        """
        if "quantity" in changes:
            raise ValidationError(
                "Item quantity changes only through sales and purchases",
                field="quantity",
            )
        unknown = set(changes) - _EDITABLE_ITEM_FIELDS
        if unknown:
            raise ValidationError(f"Unknown item field(s): {sorted(unknown)}")

        item = self._get_item(item_id)
        if "name" in changes:
            item.name = _require_name(changes["name"])
        if "sku" in changes:
            sku = _require_name(changes["sku"], "sku")
            self._check_sku_free(sku, exclude_id=item.id)
            item.sku = sku
        if "description" in changes:
            item.description = changes["description"]
        if "uom" in changes:
            item.uom = _require_name(changes["uom"], "uom")
        for price_field in ("cost_price", "selling_price"):
            if price_field in changes:
                setattr(item, price_field, money_from_value(changes[price_field], field=price_field))
        if "shipment_threshold" in changes:
            item.shipment_threshold = _non_negative_int(
                changes["shipment_threshold"], "shipment_threshold"
            )

        self._flush("update_item", changes.get("sku"))
        logger.info(
            "item_updated",
            extra={"item_id": str(item.id), "fields": sorted(changes)},
        )
        return ItemSnapshot.from_model(item)

    def delete_item(self, item_id: UUID) -> None:
        item = self._get_item(item_id)
        count = self.session.scalar(
            select(func.count())
            .select_from(InventoryTransaction)
            .where(InventoryTransaction.item_id == item_id)
        )
        if count:
            raise ItemReferencedError(str(item_id), int(count))
        self.session.delete(item)
        self._flush("delete_item")
        logger.info("item_deleted", extra={"item_id": str(item_id)})

    def get_item(self, item_id: UUID) -> ItemSnapshot:
        return ItemSnapshot.from_model(self._get_item(item_id))

    # -- customers & suppliers -------------------------------------------------

    def _create_party(self, model: type[Customer] | type[Supplier], **fields: Any) -> PartyInfo:
        unknown = set(fields) - _PARTY_FIELDS
        if unknown:
            raise ValidationError(f"Unknown field(s): {sorted(unknown)}")
        fields["name"] = _require_name(fields.get("name"))
        party = model(**fields)
        self.session.add(party)
        self._flush(f"create_{model.__tablename__}")
        logger.info(
            "party_created",
            extra={"party_id": str(party.id), "party_table": model.__tablename__},
        )
        return self._party_info(party)

    def _update_party(
        self,
        model: type[Customer] | type[Supplier],
        party_id: UUID,
        **changes: Any,
    ) -> PartyInfo:
        unknown = set(changes) - _PARTY_FIELDS
        if unknown:
            raise ValidationError(f"Unknown field(s): {sorted(unknown)}")
        party = self.session.get(model, party_id)
        if party is None:
            raise RecordNotFoundError(model.__tablename__.rstrip("s"), str(party_id))
        if "name" in changes:
            changes["name"] = _require_name(changes["name"])
        for field, value in changes.items():
            setattr(party, field, value)
        self._flush(f"update_{model.__tablename__}")
        return self._party_info(party)

    def _delete_party(self, model: type[Customer] | type[Supplier], party_id: UUID) -> None:
        party = self.session.get(model, party_id)
        if party is None:
            raise RecordNotFoundError(model.__tablename__.rstrip("s"), str(party_id))
        self.session.delete(party)
        self._flush(f"delete_{model.__tablename__}")
        logger.info(
            "party_deleted",
            extra={"party_id": str(party_id), "party_table": model.__tablename__},
        )

    @staticmethod
    def _party_info(party: Customer | Supplier) -> PartyInfo:
        return PartyInfo(
            id=party.id,
            name=party.name,
            email=party.email,
            phone=party.phone,
            address=party.address,
        )

    def create_customer(self, name: str, **contact: Any) -> PartyInfo:
        return self._create_party(Customer, name=name, **contact)

    def update_customer(self, customer_id: UUID, **changes: Any) -> PartyInfo:
        return self._update_party(Customer, customer_id, **changes)

    def delete_customer(self, customer_id: UUID) -> None:
        self._delete_party(Customer, customer_id)

    def create_supplier(self, name: str, **contact: Any) -> PartyInfo:
        return self._create_party(Supplier, name=name, **contact)

    def update_supplier(self, supplier_id: UUID, **changes: Any) -> PartyInfo:
        return self._update_party(Supplier, supplier_id, **changes)

    def delete_supplier(self, supplier_id: UUID) -> None:
        self._delete_party(Supplier, supplier_id)

    # -- chart of accounts -----------------------------------------------------

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType | str,
        is_active: bool = True,
    ) -> AccountSnapshot:
        code = _require_name(code, "code")
        account_type = AccountType(account_type)
        existing = self.session.scalars(select(Account).where(Account.code == code)).first()
        if existing is not None:
            raise ValidationError(f"Account code already in use: {code}", field="code")
        account = Account(
            code=code,
            name=_require_name(name),
            account_type=account_type.value,
            is_active=is_active,
        )
        self.session.add(account)
        self._flush("create_account")
        logger.info(
            "account_created",
            extra={"account_id": str(account.id), "code": code, "account_type": account_type.value},
        )
        return AccountSnapshot.from_model(account)
