"""Declarative markers attached to dataclass fields and property accessors.

Fields carry markers in `dataclasses.field(metadata=...)` under flat keys:

- `"column"`: `True`, an explicit column name, or a `Column` marker.
- `"pk"`: truthy flag or a `PrimaryKey` marker.
- `"fk"`: referenced class (a class, a class name, or a zero-argument
  callable), a `(target, "column")` pair, `{"model": ..., "column": ...}`, or
  a `ForeignKey` marker.
- `"adapt"`: a `TypeAdaptor` class, an `(adaptor, type)` pair,
  `{"adaptor": ..., "type": ...}`, or an `AdaptType` marker.

Property getters and setters carry markers through decorators placed beneath
`@property` / `@name.setter`::

    @property
    @column("fk_address")
    @foreign_key(Address)
    def address_uid(self) -> DBInteger: ...
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Optional, TypeVar, Union

MARKERS_ATTR = "__orm_markers__"

F = TypeVar("F", bound=Callable[..., Any])


class MarkerKind(str, Enum):
    """Supported marker kinds."""

    COLUMN = "column"
    PRIMARY_KEY = "pk"
    FOREIGN_KEY = "fk"
    ADAPT_TYPE = "adapt"
    TABLE_NAME = "table"


class _FunctionMarker:
    kind: ClassVar[MarkerKind]

    def __call__(self, func: F) -> F:
        """Attach this marker to a getter or setter function."""

        if isinstance(func, property):
            raise TypeError(
                f"@{self.kind.value} must be applied beneath @property, not above it."
            )
        if not callable(func):
            raise TypeError(
                f"@{self.kind.value} can only decorate functions, got {type(func).__name__}."
            )
        attached = func.__dict__.setdefault(MARKERS_ATTR, {})
        if self.kind in attached and attached[self.kind] != self:
            raise ValueError(
                f"@{self.kind.value} is declared twice on {func.__qualname__}."
            )
        attached[self.kind] = self
        return func


@dataclass(frozen=True)
class Column(_FunctionMarker):
    """Marks a member as a column; empty `name` means the member name."""

    kind: ClassVar[MarkerKind] = MarkerKind.COLUMN

    name: str = ""


@dataclass(frozen=True)
class PrimaryKey(_FunctionMarker):
    """Marks a column member as part of the primary key."""

    kind: ClassVar[MarkerKind] = MarkerKind.PRIMARY_KEY


@dataclass(frozen=True)
class ForeignKey(_FunctionMarker):
    """Marks a column member as referencing another mapped class.

    `target` is resolved lazily at metadata-build time, so it may be a class
    name or a callable when the class is not defined yet. `column` optionally
    names the referenced column; by default the primary key is used.
    """

    kind: ClassVar[MarkerKind] = MarkerKind.FOREIGN_KEY

    target: Any
    column: str = ""


@dataclass(frozen=True)
class AdaptType(_FunctionMarker):
    """Declares the type adaptor for a member and an optional datatype override."""

    kind: ClassVar[MarkerKind] = MarkerKind.ADAPT_TYPE

    adaptor: Any
    type: Optional[type] = None


@dataclass(frozen=True)
class TableName:
    """Class decorator that sets the table name (stored as `__table__`)."""

    kind: ClassVar[MarkerKind] = MarkerKind.TABLE_NAME

    name: Optional[str]

    def __call__(self, cls: type) -> type:
        cls.__table__ = self.name  # type: ignore[attr-defined]
        return cls


Marker = Union[Column, PrimaryKey, ForeignKey, AdaptType, TableName]
MarkerMap = Dict[MarkerKind, Marker]


def column(name: str = "") -> Column:
    return Column(name)


primary_key = PrimaryKey()


def foreign_key(target: Any, column: str = "") -> ForeignKey:
    return ForeignKey(target, column)


def adapt_type(adaptor: Any, type: Optional[type] = None) -> AdaptType:
    return AdaptType(adaptor, type)


def table(name: Optional[str]) -> TableName:
    return TableName(name)


def function_markers(func: Any) -> MarkerMap:
    """Return markers attached to a getter/setter function (empty if none)."""

    if func is None:
        return {}
    return dict(getattr(func, "__dict__", {}).get(MARKERS_ATTR, {}))


FIELD_MARKER_KINDS = (
    MarkerKind.COLUMN,
    MarkerKind.PRIMARY_KEY,
    MarkerKind.FOREIGN_KEY,
    MarkerKind.ADAPT_TYPE,
)
COLUMN_MARKER_KINDS = (MarkerKind.COLUMN, MarkerKind.PRIMARY_KEY)


def has_field_markers(metadata: Mapping[str, Any]) -> bool:
    """Return True when field metadata declares any marker key."""

    for kind in FIELD_MARKER_KINDS:
        raw = metadata.get(kind.value)
        if raw is not None and raw is not False:
            return True
    return False


def field_markers(
    metadata: Mapping[str, Any],
    *,
    context: str,
    kinds: Iterable[MarkerKind] = FIELD_MARKER_KINDS,
) -> MarkerMap:
    """Normalize dataclass field metadata into marker objects."""

    markers: MarkerMap = {}
    for kind in kinds:
        marker = field_marker(metadata, kind, context=context)
        if marker is not None:
            markers[kind] = marker
    return markers


def field_marker(
    metadata: Mapping[str, Any],
    kind: MarkerKind,
    *,
    context: str,
) -> Optional[Marker]:
    """Parse one marker kind from field metadata (None if absent)."""

    raw = metadata.get(kind.value)
    if kind is MarkerKind.COLUMN:
        return _parse_column(raw, context=context)
    if kind is MarkerKind.PRIMARY_KEY:
        if isinstance(raw, PrimaryKey) or (raw is not None and bool(raw)):
            return primary_key
        return None
    if raw is None:
        return None
    if kind is MarkerKind.FOREIGN_KEY:
        return _parse_foreign_key(raw, context=context)
    if kind is MarkerKind.ADAPT_TYPE:
        return _parse_adapt_type(raw, context=context)
    return None


def _parse_column(raw: Any, *, context: str) -> Optional[Column]:
    if raw is None or raw is False:
        return None
    if isinstance(raw, Column):
        return raw
    if raw is True:
        return Column()
    if isinstance(raw, str):
        if not raw.strip():
            raise ValueError(f"{context} metadata column name must not be empty.")
        return Column(raw)
    raise TypeError(
        f"{context} metadata column must be True, a column name or Column(), "
        f"got {type(raw).__name__}."
    )


def _parse_foreign_key(raw: Any, *, context: str) -> ForeignKey:
    if isinstance(raw, ForeignKey):
        return raw

    if isinstance(raw, Mapping):
        target = raw.get("model")
        if target is None:
            raise TypeError(f"{context} metadata fk mapping requires 'model'.")
        return ForeignKey(target, _fk_column(raw.get("column", ""), context=context))

    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        values = tuple(raw)
        if len(values) != 2:
            raise ValueError(
                f"{context} metadata fk sequence must have exactly 2 items: (model, column)."
            )
        return ForeignKey(values[0], _fk_column(values[1], context=context))

    if isinstance(raw, (type, str)) or callable(raw):
        return ForeignKey(raw)

    raise TypeError(
        f"Unsupported fk format on {context}. Use Model, 'Model', (Model, 'column') "
        "or {'model': Model, 'column': 'id'}."
    )


def _fk_column(raw: Any, *, context: str) -> str:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise TypeError(f"{context} metadata fk column must be a string.")
    return raw


def _parse_adapt_type(raw: Any, *, context: str) -> AdaptType:
    if isinstance(raw, AdaptType):
        return raw
    if isinstance(raw, Mapping):
        adaptor = raw.get("adaptor")
        if adaptor is None:
            raise TypeError(f"{context} metadata adapt mapping requires 'adaptor'.")
        return AdaptType(adaptor, raw.get("type"))
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        values = tuple(raw)
        if len(values) != 2:
            raise ValueError(
                f"{context} metadata adapt sequence must have exactly 2 items: (adaptor, type)."
            )
        return AdaptType(values[0], values[1])
    if isinstance(raw, type):
        return AdaptType(raw)
    raise TypeError(
        f"{context} metadata adapt must be a TypeAdaptor class, got {type(raw).__name__}."
    )
