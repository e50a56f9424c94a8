"""Inspect table, column and foreign-key metadata of dataclass models."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "orm_reflect").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from orm_reflect import (
    ConfigurationError,
    DBInteger,
    DBString,
    MetadataCache,
    column,
    foreign_key,
)


@dataclass
class Customer:
    customerUid: Optional[DBInteger] = field(default=None, metadata={"column": True, "pk": True})
    name: Optional[DBString] = field(default=None, metadata={"column": "customer_name"})
    fkPreviousHistory: Optional[DBInteger] = field(
        default=None, metadata={"column": True, "fk": "Customer"}
    )


@dataclass
class BusinessLine:
    addressUid2: Optional[DBInteger] = field(default=None, metadata={"column": True, "pk": True})
    bl_id: Optional[DBInteger] = field(default=None, metadata={"column": True, "pk": True})


@dataclass
class Order:
    __table__ = "orders"
    uid: Optional[DBInteger] = field(default=None, metadata={"column": True, "pk": True})
    fromBlId: Optional[DBInteger] = field(default=None, metadata={"column": True, "fk": BusinessLine})
    _customer: Optional[DBInteger] = None

    @property
    @column("fk_customer")
    @foreign_key(Customer)
    def customer(self) -> Optional[DBInteger]:
        return self._customer

    @customer.setter
    def customer(self, value: Optional[DBInteger]) -> None:
        self._customer = value


@dataclass
class BrokenOrder:
    uid: Optional[DBInteger] = field(default=None, metadata={"column": True, "pk": True})
    from_: Optional[DBInteger] = field(default=None, metadata={"column": True, "fk": BusinessLine})


def describe(cache: MetadataCache, model: type) -> None:
    metadata = cache.get(model)
    print(f"{model.__name__} -> table {metadata.table_name!r}")
    for descriptor in metadata.property_descriptors:
        line = f"  {descriptor.column_name:<20} {descriptor.effective_type.__name__:<10}"
        if descriptor.is_primary_key:
            line += " PK"
        if descriptor.is_foreign_key:
            line += (
                f" FK -> {descriptor.referenced_table_name}."
                f"{descriptor.referenced_column_name}"
            )
        print(line)


def main() -> None:
    cache = MetadataCache()
    describe(cache, Customer)
    describe(cache, Order)

    order = Order(uid=DBInteger(1))
    metadata = cache.get(Order)
    metadata.descriptor_by_column_name("fk_customer").write(order, DBInteger(7))
    print("customer read back:", metadata.descriptor_by_member_name("customer").read(order))
    print("same metadata instance:", cache.get(Order) is metadata)

    try:
        cache.get(BrokenOrder)
    except ConfigurationError as exc:
        print(f"[OK] {type(exc).__name__}: {exc}")


if __name__ == "__main__":
    main()
