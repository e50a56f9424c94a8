"""Column facts derived from a member's markers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, cast

from .contracts import PropertyAccessor
from .finder import DEFAULT_POLICY, PropertyPolicy, find_properties
from .markers import Column, MarkerKind


@dataclass(frozen=True)
class ColumnFacts:
    """Whether a member is a column, its column name and primary-key flag."""

    is_column: bool
    column_name: Optional[str]
    is_primary_key: bool


NOT_A_COLUMN = ColumnFacts(is_column=False, column_name=None, is_primary_key=False)


@dataclass(frozen=True)
class ColumnProperty:
    """Identity-only pairing of an accessor with its column facts."""

    accessor: PropertyAccessor
    column: ColumnFacts


def resolve_column(accessor: PropertyAccessor) -> ColumnFacts:
    """Derive column facts.

    An explicit non-empty name on the column marker wins, otherwise the
    member name is used verbatim. A primary-key marker without a column
    marker is ignored.
    """

    marker = accessor.get_marker(MarkerKind.COLUMN)
    if marker is None:
        return NOT_A_COLUMN
    column = cast(Column, marker)

    name = column.name if column.name.strip() else accessor.name
    is_pk = accessor.get_marker(MarkerKind.PRIMARY_KEY) is not None
    return ColumnFacts(is_column=True, column_name=name, is_primary_key=is_pk)


def column_properties(
    cls: type,
    policy: PropertyPolicy = DEFAULT_POLICY,
) -> List[ColumnProperty]:
    """Return column members of a class without resolving types or references."""

    found: List[ColumnProperty] = []
    for accessor in find_properties(cls, policy):
        facts = resolve_column(accessor)
        if facts.is_column:
            found.append(ColumnProperty(accessor=accessor, column=facts))
    return found


def primary_key_properties(
    cls: type,
    policy: PropertyPolicy = DEFAULT_POLICY,
) -> List[ColumnProperty]:
    return [prop for prop in column_properties(cls, policy) if prop.column.is_primary_key]
