"""Per-class metadata: one resolved descriptor per mapped member."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Generic, List, Mapping, Optional, Tuple, Type, TypeVar

import structlog

from .codecs import (
    TypeAdaptorFacts,
    read_database_value,
    resolve_type_adaptor,
    write_database_value,
)
from .contracts import PropertyAccessor
from .datatypes import QueryableDatatype
from .errors import DuplicateColumnName
from .finder import DEFAULT_POLICY, PropertyPolicy, find_properties
from .models import require_dataclass_model, resolve_table
from .schema_columns import ColumnFacts, resolve_column
from .schema_foreign_keys import ForeignKeyFacts, resolve_foreign_key

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PropertyDescriptor:
    """Resolved facts of one column member plus value access."""

    accessor: PropertyAccessor
    column: ColumnFacts
    foreign_key: ForeignKeyFacts
    type_adaptor: TypeAdaptorFacts

    def __repr__(self) -> str:
        return f"PropertyDescriptor({self.qualified_name} -> {self.column_name!r})"

    @property
    def member_name(self) -> str:
        return self.accessor.name

    @property
    def qualified_name(self) -> str:
        return self.accessor.qualified_name

    @property
    def declared_type(self) -> Any:
        return self.accessor.declared_type

    @property
    def column_name(self) -> str:
        return self.column.column_name or self.accessor.name

    @property
    def is_primary_key(self) -> bool:
        return self.column.is_primary_key

    @property
    def is_foreign_key(self) -> bool:
        return self.foreign_key.is_foreign_key

    @property
    def referenced_class(self) -> Optional[type]:
        return self.foreign_key.referenced_class

    @property
    def referenced_table_name(self) -> Optional[str]:
        return self.foreign_key.referenced_table_name

    @property
    def referenced_column_name(self) -> Optional[str]:
        return self.foreign_key.referenced_column_name

    @property
    def effective_type(self) -> Type[QueryableDatatype[Any]]:
        return self.type_adaptor.effective_type

    @property
    def has_adaptor(self) -> bool:
        return self.type_adaptor.has_adaptor

    def is_foreign_key_to(self, cls: type) -> bool:
        return self.foreign_key.referenced_class is cls

    def read(self, target: Any) -> Optional[QueryableDatatype[Any]]:
        """Return the member's database-facing value on `target`."""

        return read_database_value(self.accessor, self.type_adaptor, target)

    def write(self, target: Any, value: Optional[QueryableDatatype[Any]]) -> None:
        """Store a database-facing value into the member on `target`."""

        write_database_value(self.accessor, self.type_adaptor, target, value)


@dataclass(frozen=True)
class ClassMetadata(Generic[T]):
    """Immutable metadata for one mapped class, safe to share across threads."""

    model: Type[T]
    table_name: Optional[str]
    is_table: bool
    property_descriptors: Tuple[PropertyDescriptor, ...]
    primary_key_descriptors: Tuple[PropertyDescriptor, ...] = field(init=False)
    _by_column: Mapping[str, PropertyDescriptor] = field(
        init=False, repr=False, compare=False
    )
    _by_folded_column: Mapping[str, PropertyDescriptor] = field(
        init=False, repr=False, compare=False
    )
    _by_member: Mapping[str, PropertyDescriptor] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        descriptors = tuple(self.property_descriptors)
        by_column: Dict[str, PropertyDescriptor] = {}
        by_folded: Dict[str, PropertyDescriptor] = {}
        by_member: Dict[str, PropertyDescriptor] = {}
        for descriptor in descriptors:
            by_column.setdefault(descriptor.column_name, descriptor)
            by_folded.setdefault(descriptor.column_name.casefold(), descriptor)
            by_member.setdefault(descriptor.member_name, descriptor)

        object.__setattr__(self, "property_descriptors", descriptors)
        object.__setattr__(
            self,
            "primary_key_descriptors",
            tuple(d for d in descriptors if d.is_primary_key),
        )
        object.__setattr__(self, "_by_column", MappingProxyType(by_column))
        object.__setattr__(self, "_by_folded_column", MappingProxyType(by_folded))
        object.__setattr__(self, "_by_member", MappingProxyType(by_member))

    @property
    def column_descriptors(self) -> Tuple[PropertyDescriptor, ...]:
        return self.property_descriptors

    @property
    def foreign_key_descriptors(self) -> Tuple[PropertyDescriptor, ...]:
        return tuple(d for d in self.property_descriptors if d.is_foreign_key)

    @property
    def recursive_foreign_key_descriptors(self) -> Tuple[PropertyDescriptor, ...]:
        """Foreign keys that reference this class or one of its base classes."""

        return tuple(
            d
            for d in self.property_descriptors
            if d.referenced_class is not None and issubclass(self.model, d.referenced_class)
        )

    def descriptor_by_column_name(
        self,
        name: str,
        *,
        case_sensitive: bool = True,
    ) -> Optional[PropertyDescriptor]:
        if case_sensitive:
            return self._by_column.get(name)
        return self._by_folded_column.get(name.casefold())

    def descriptor_by_member_name(self, name: str) -> Optional[PropertyDescriptor]:
        return self._by_member.get(name)


def build_class_metadata(
    model: Type[T],
    policy: Optional[PropertyPolicy] = None,
) -> ClassMetadata[T]:
    """Build metadata for a dataclass model.

    Members are scanned under `policy`; every markered column member is
    resolved for column, type adaptor and foreign-key facts, in that order.

    Args:
        model: Dataclass model type.
        policy: Member scanning policy; defaults to `DEFAULT_POLICY`.

    Returns:
        Immutable metadata with descriptors in scan order.

    Raises:
        TypeError: If `model` is not a dataclass.
        ConfigurationError: On the first invalid declaration found.
    """

    require_dataclass_model(model)
    policy = policy or DEFAULT_POLICY

    descriptors: List[PropertyDescriptor] = []
    for accessor in find_properties(model, policy):
        column = resolve_column(accessor)
        if not column.is_column:
            continue
        type_adaptor = resolve_type_adaptor(accessor)
        foreign_key = resolve_foreign_key(accessor, policy)
        descriptors.append(
            PropertyDescriptor(
                accessor=accessor,
                column=column,
                foreign_key=foreign_key,
                type_adaptor=type_adaptor,
            )
        )

    _check_duplicate_columns(model, descriptors)

    table = resolve_table(model)
    metadata = ClassMetadata(
        model=model,
        table_name=table.table_name,
        is_table=table.is_table,
        property_descriptors=tuple(descriptors),
    )
    logger.debug(
        "class_metadata_built",
        model=model.__qualname__,
        table=metadata.table_name,
        columns=len(metadata.property_descriptors),
        primary_keys=[d.column_name for d in metadata.primary_key_descriptors],
    )
    return metadata


def _check_duplicate_columns(model: type, descriptors: List[PropertyDescriptor]) -> None:
    seen: Dict[str, PropertyDescriptor] = {}
    for descriptor in descriptors:
        previous = seen.get(descriptor.column_name)
        if previous is None:
            seen[descriptor.column_name] = descriptor
            continue
        if (
            previous.member_name == descriptor.member_name
            and previous.accessor.is_field != descriptor.accessor.is_field
        ):
            continue
        raise DuplicateColumnName(
            f"Class {model.__qualname__} has multiple properties for column "
            f"{descriptor.column_name!r}: {previous.qualified_name} and "
            f"{descriptor.qualified_name}.",
            owner=model.__qualname__,
            member=descriptor.member_name,
        )
