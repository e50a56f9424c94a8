"""Model utilities: dataclass checks, type hints and table identity."""

from __future__ import annotations

import types
from dataclasses import Field, dataclass, fields, is_dataclass
from typing import Any, ClassVar, Dict, List, Optional, Protocol, Type, Union
from typing import get_args, get_origin, get_type_hints


class DataclassModel(Protocol):
    """Protocol for supported dataclass model types."""

    __dataclass_fields__: ClassVar[dict[str, Any]]


@dataclass(frozen=True)
class TableFacts:
    """Table identity of a class."""

    is_table: bool
    table_name: Optional[str]


NOT_A_TABLE = TableFacts(is_table=False, table_name=None)


def require_dataclass_model(cls: Type[Any]) -> None:
    """Validate that a class is a dataclass model."""

    if not isinstance(cls, type) or not is_dataclass(cls):
        name = getattr(cls, "__name__", repr(cls))
        raise TypeError(f"{name} must be a dataclass.")


def resolve_table(cls: Any) -> TableFacts:
    """Resolve table identity of a class.

    Dataclasses are tables named by their `__table__` override, or by the
    lowercased class name. `__table__ = None` opts a dataclass out; other
    classes never have table identity.
    """

    if not isinstance(cls, type) or not is_dataclass(cls):
        return NOT_A_TABLE
    name = getattr(cls, "__table__", "")
    if name is None:
        return NOT_A_TABLE
    if isinstance(name, str) and name.strip():
        return TableFacts(is_table=True, table_name=name)
    return TableFacts(is_table=True, table_name=cls.__name__.lower())


def is_table(cls: Any) -> bool:
    return resolve_table(cls).is_table


def table_name(model_or_cls: Any) -> Optional[str]:
    """Resolve table name from model class or instance (None if not a table)."""

    cls = model_or_cls if isinstance(model_or_cls, type) else type(model_or_cls)
    return resolve_table(cls).table_name


def model_fields(cls: Type[DataclassModel]) -> List[Field[Any]]:
    """Return dataclass fields for a model type."""

    require_dataclass_model(cls)
    return list(fields(cls))


def model_type_hints(obj: Any) -> Dict[str, Any]:
    """Resolve type hints, falling back to raw annotations on forward refs."""

    try:
        return dict(get_type_hints(obj))
    except Exception:
        return dict(getattr(obj, "__annotations__", {}))


def unwrap_optional(annotation: Any) -> Any:
    """Extract wrapped type from `Optional[T]` style annotations."""

    origin = get_origin(annotation)
    if origin not in {Union, types.UnionType}:
        return annotation

    all_args = get_args(annotation)
    args = [arg for arg in all_args if arg is not type(None)]
    if len(args) == 1 and len(all_args) == 2:
        return args[0]
    return annotation


def type_name(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__name__
    return str(annotation)
