"""Adapt plain Python member types to database-facing datatypes."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from decimal import Decimal
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
    TypeAdaptor,
)


class CsvAdaptor(TypeAdaptor[list, str]):
    def from_database_value(self, value: str) -> list:
        return value.split(",") if value else []

    def to_database_value(self, value: list) -> str:
        return ",".join(value)


class CentsAdaptor(TypeAdaptor[Decimal, int]):
    def from_database_value(self, value: int) -> Decimal:
        return Decimal(value) / 100

    def to_database_value(self, value: Decimal) -> int:
        return int(value * 100)


@dataclass
class Article:
    uid: Optional[DBInteger] = field(default=None, metadata={"column": True, "pk": True})
    tags: Optional[list] = field(default=None, metadata={"column": True, "adapt": CsvAdaptor})
    price: Optional[float] = field(default=None, metadata={"column": True, "adapt": CentsAdaptor})


@dataclass
class Mismatched:
    uid: Optional[DBInteger] = field(default=None, metadata={"column": True, "pk": True})
    count: Optional[int] = field(default=None, metadata={"column": True, "adapt": CsvAdaptor})


def expect_error(label: str, fn) -> None:  # noqa: ANN001
    try:
        fn()
    except ConfigurationError as exc:
        print(f"[OK] {label}: {type(exc).__name__}: {exc}")
    else:
        print(f"[UNEXPECTED] {label}: no exception raised")


def main() -> None:
    cache = MetadataCache()
    metadata = cache.get(Article)
    article = Article(uid=DBInteger(1), tags=["python", "orm"], price=12.5)

    for descriptor in metadata.property_descriptors:
        print(f"{descriptor.member_name}: {descriptor.read(article)!r}")

    metadata.descriptor_by_member_name("tags").write(article, DBString("a,b,c"))
    metadata.descriptor_by_member_name("price").write(article, DBInteger(1999))
    print("after write:", article)

    expect_error("adaptor must fit member type", lambda: cache.get(Mismatched))


if __name__ == "__main__":
    main()
