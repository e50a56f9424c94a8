"""Database-facing value wrappers used as effective column types."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from numbers import Number
from typing import Any, ClassVar, Generic, Optional, Type, TypeVar, get_origin

V = TypeVar("V")


class QueryableDatatype(Generic[V]):
    """Mutable wrapper around one literal database value (or no value)."""

    literal_type: ClassVar[type] = object

    def __init__(self, value: Optional[V] = None) -> None:
        self._value: Optional[V] = None
        self.set_value(value)

    @property
    def value(self) -> Optional[V]:
        return self._value

    @property
    def is_null(self) -> bool:
        return self._value is None

    def set_value(self, value: Any) -> None:
        """Replace the wrapped value, coercing it to `literal_type`."""

        self._value = None if value is None else self._coerce(value)

    def _coerce(self, value: Any) -> V:
        if isinstance(value, self.literal_type):
            return value
        raise TypeError(
            f"{type(self).__name__} cannot hold {type(value).__name__} value {value!r}."
        )

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._value == other._value  # type: ignore[attr-defined]

    # Mutable wrappers must not be dict keys.
    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


class DBString(QueryableDatatype[str]):
    literal_type = str


class DBInteger(QueryableDatatype[int]):
    literal_type = int

    def _coerce(self, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"DBInteger cannot hold {type(value).__name__} value {value!r}.")
        return value


class DBNumber(QueryableDatatype[float]):
    literal_type = float

    def _coerce(self, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            raise TypeError(f"DBNumber cannot hold {type(value).__name__} value {value!r}.")
        return float(value)


class DBBoolean(QueryableDatatype[bool]):
    literal_type = bool


class DBDate(QueryableDatatype[datetime]):
    literal_type = datetime

    def _coerce(self, value: Any) -> datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        raise TypeError(f"DBDate cannot hold {type(value).__name__} value {value!r}.")


def is_datatype(tp: Any) -> bool:
    return _is_plain_class(tp) and issubclass(tp, QueryableDatatype)


def inferred_datatype_for(simple_type: Any) -> Optional[Type[QueryableDatatype[Any]]]:
    """Map a plain Python type to the datatype that stores it, or None."""

    if not _is_plain_class(simple_type):
        return None
    if issubclass(simple_type, str):
        return DBString
    # bool is an int subclass.
    if issubclass(simple_type, bool):
        return DBBoolean
    if issubclass(simple_type, int):
        return DBInteger
    if issubclass(simple_type, Number):
        return DBNumber
    if issubclass(simple_type, (datetime, date)):
        return DBDate
    return None


def _is_plain_class(tp: Any) -> bool:
    # `list[int]` passes isinstance(..., type) on Python 3.10.
    return isinstance(tp, type) and get_origin(tp) is None
