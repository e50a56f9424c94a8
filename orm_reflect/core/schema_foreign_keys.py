"""Foreign-key resolution against the referenced class's column facts."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Any, List, Optional, cast

import structlog

from .contracts import PropertyAccessor
from .errors import (
    ReferencedClassNotATable,
    ReferenceToUndefinedColumn,
    ReferenceToUndefinedPrimaryKey,
    UnableToInterpolateReferencedColumn,
)
from .finder import DEFAULT_POLICY, PropertyPolicy
from .markers import ForeignKey, MarkerKind
from .models import resolve_table, type_name
from .schema_columns import ColumnProperty, column_properties

logger = structlog.get_logger(__name__)

_NON_ALNUM = re.compile(r"[^0-9a-z]")


@dataclass(frozen=True)
class ForeignKeyFacts:
    """Referenced class, table and column of a foreign key (all None if absent)."""

    referenced_class: Optional[type]
    referenced_table_name: Optional[str]
    referenced_column_name: Optional[str]
    referenced_member_name: Optional[str] = None

    @property
    def is_foreign_key(self) -> bool:
        return self.referenced_class is not None


NO_FOREIGN_KEY = ForeignKeyFacts(None, None, None)


def resolve_referenced_class(target: Any, owner: type) -> Optional[type]:
    """Resolve a foreign-key target to a class.

    Accepts a class, a class name (the owner's own name, or a name in the
    owner's module; dotted names walk nested classes), or a zero-argument
    callable returning a class. Returns None when nothing matches.
    """

    if isinstance(target, type):
        return target
    if isinstance(target, str):
        name = target.strip()
        if name in (owner.__name__, owner.__qualname__):
            return owner
        found: Any = sys.modules.get(owner.__module__)
        for part in name.split("."):
            found = getattr(found, part, None)
            if found is None:
                return None
        return found if isinstance(found, type) else None
    if callable(target):
        resolved = target()
        return resolved if isinstance(resolved, type) else None
    return None


def resolve_foreign_key(
    accessor: PropertyAccessor,
    policy: PropertyPolicy = DEFAULT_POLICY,
) -> ForeignKeyFacts:
    """Resolve the referenced table and column of a foreign-key member.

    Only table identity and column facts of the referenced class are read, so
    self-references and reference cycles between classes resolve without
    building the referenced class's metadata.
    """

    marker = accessor.get_marker(MarkerKind.FOREIGN_KEY)
    if marker is None:
        return NO_FOREIGN_KEY
    fk = cast(ForeignKey, marker)
    context = {"owner": accessor.owner.__qualname__, "member": accessor.name}

    try:
        referenced = resolve_referenced_class(fk.target, accessor.owner)
    except Exception as exc:
        target_label = getattr(fk.target, "__qualname__", type_name(fk.target))
        raise ReferencedClassNotATable(
            f"Foreign key on {accessor.qualified_name} could not resolve its "
            f"referenced class {target_label}: {type(exc).__name__}: {exc}",
            referenced_class=target_label,
            **context,
        ) from exc
    referenced_label = type_name(referenced if referenced is not None else fk.target)
    table = resolve_table(referenced)
    if referenced is None or not table.is_table:
        raise ReferencedClassNotATable(
            f"Foreign key on {accessor.qualified_name} references class "
            f"{referenced_label}, which is not a table.",
            referenced_class=referenced_label,
            **context,
        )

    candidates = column_properties(referenced, policy)
    if fk.column.strip():
        chosen = _explicit_column(accessor, fk.column, referenced, candidates, context)
    else:
        chosen = _primary_key_column(accessor, referenced, candidates, context)

    return ForeignKeyFacts(
        referenced_class=referenced,
        referenced_table_name=table.table_name,
        referenced_column_name=chosen.column.column_name,
        referenced_member_name=chosen.accessor.name,
    )


def _explicit_column(
    accessor: PropertyAccessor,
    column_name: str,
    referenced: type,
    candidates: List[ColumnProperty],
    context: dict,
) -> ColumnProperty:
    wanted = column_name.casefold()
    matches = [
        prop for prop in candidates
        if (prop.column.column_name or "").casefold() == wanted
    ]
    # A field and its same-named accessor report one column name twice.
    distinct = {prop.column.column_name for prop in matches}
    if len(distinct) == 1:
        return matches[0]

    if not matches:
        reason = "which is not a column"
    else:
        reason = f"which is ambiguous between {sorted(n or '' for n in distinct)}"
    raise ReferenceToUndefinedColumn(
        f"Foreign key on {accessor.qualified_name} references column "
        f"{column_name!r} in class {referenced.__qualname__}, {reason}.",
        referenced_class=referenced.__qualname__,
        referenced_column=column_name,
        **context,
    )


def _primary_key_column(
    accessor: PropertyAccessor,
    referenced: type,
    candidates: List[ColumnProperty],
    context: dict,
) -> ColumnProperty:
    primary_keys = [prop for prop in candidates if prop.column.is_primary_key]
    if not primary_keys:
        raise ReferenceToUndefinedPrimaryKey(
            f"Foreign key on {accessor.qualified_name} references class "
            f"{referenced.__qualname__}, which does not have a primary key. "
            "Please specify the column to reference.",
            referenced_class=referenced.__qualname__,
            **context,
        )
    if len(primary_keys) == 1:
        return primary_keys[0]

    chosen = _interpolate(accessor.name, primary_keys)
    if chosen is None:
        names = [prop.column.column_name for prop in primary_keys]
        raise UnableToInterpolateReferencedColumn(
            f"Foreign key on {accessor.qualified_name} references class "
            f"{referenced.__qualname__}, which has a multi-column primary key "
            f"{names}, and the referenced column could not be inferred from the "
            "member name. Please specify the column to reference.",
            referenced_class=referenced.__qualname__,
            **context,
        )
    logger.debug(
        "foreign_key_interpolated",
        member=accessor.qualified_name,
        referenced_class=referenced.__qualname__,
        referenced_column=chosen.column.column_name,
    )
    return chosen


def _interpolate(member_name: str, primary_keys: List[ColumnProperty]) -> Optional[ColumnProperty]:
    """Pick the only primary key whose name ends the member name.

    Names are compared case-insensitively with punctuation removed, so
    `fromBlId` matches `bl_id`. Either the column name or the member name of
    a key may match. No match, or more than one matching key, is None.
    """

    normalized_member = _normalized(member_name)
    matched: List[ColumnProperty] = []
    for prop in primary_keys:
        names = {_normalized(prop.column.column_name or ""), _normalized(prop.accessor.name)}
        if any(name and normalized_member.endswith(name) for name in names):
            matched.append(prop)
    return matched[0] if len(matched) == 1 else None


def _normalized(name: str) -> str:
    return _NON_ALNUM.sub("", name.casefold())
