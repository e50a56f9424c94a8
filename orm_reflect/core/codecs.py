"""Type adaptors: validation of adaptor declarations and value conversion.

A member is database-facing when its declared type is a `QueryableDatatype`.
Any other member needs a `TypeAdaptor[E, D]` that converts between the
member's object-side value (`E`, "external") and a plain database-side value
(`D`, "internal") which is then wrapped in the datatype inferred from `D`.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Generic, Optional, Type, TypeVar, cast, get_origin

from .contracts import PropertyAccessor
from .datatypes import QueryableDatatype, inferred_datatype_for, is_datatype
from .errors import (
    AdaptorNotConstructible,
    AdaptorUserCodeFailure,
    InvalidDeclaredType,
    UnsupportedDeclaredType,
)
from .generics import ParameterBounds, resolve_bounds
from .markers import AdaptType, MarkerKind
from .models import type_name

E = TypeVar("E")
D = TypeVar("D")

_NUMERIC_TYPES = (int, float, Decimal)


class TypeAdaptor(ABC, Generic[E, D]):
    """Two-way conversion between a member value and a database value.

    Subclasses parameterize the base with concrete types, for example
    `class CsvAdaptor(TypeAdaptor[list, str])`, and must be constructible
    without arguments. Neither method is called with `None`.
    """

    @abstractmethod
    def from_database_value(self, value: D) -> E:
        """Convert a database-side value into the member's value."""

    @abstractmethod
    def to_database_value(self, value: E) -> D:
        """Convert the member's value into a database-side value."""


@dataclass(frozen=True)
class TypeAdaptorFacts:
    """Effective database-facing type of a member and its adaptor, if any."""

    effective_type: Type[QueryableDatatype[Any]]
    has_adaptor: bool
    adaptor: Optional[TypeAdaptor[Any, Any]] = None
    external_type: Optional[type] = None
    internal_type: Optional[type] = None


def resolve_type_adaptor(accessor: PropertyAccessor) -> TypeAdaptorFacts:
    """Validate a member's adaptor declaration and derive its effective type.

    Raises:
        UnsupportedDeclaredType: No adaptor and the member is not a datatype.
        InvalidDeclaredType: The adaptor is not a `TypeAdaptor`, its type
            parameters are unusable, or they do not fit the member.
        AdaptorNotConstructible: The adaptor is abstract or its constructor
            raised.
    """

    declared = accessor.declared_type
    where = accessor.qualified_name
    context = {"owner": accessor.owner.__qualname__, "member": accessor.name}

    marker = accessor.get_marker(MarkerKind.ADAPT_TYPE)
    if marker is None:
        if not is_datatype(declared):
            raise UnsupportedDeclaredType(
                f"{type_name(declared)} is not a supported type on {where}. "
                "Use one of the standard DB types, or use adapt_type() "
                "to adapt from a non-standard type.",
                **context,
            )
        return TypeAdaptorFacts(effective_type=declared, has_adaptor=False)

    adapt = cast(AdaptType, marker)
    adaptor_cls = adapt.adaptor
    if not (isinstance(adaptor_cls, type) and issubclass(adaptor_cls, TypeAdaptor)):
        raise InvalidDeclaredType(
            f"Type adaptor {type_name(adaptor_cls)} must subclass TypeAdaptor, on {where}.",
            **context,
        )
    if inspect.isabstract(adaptor_cls):
        raise AdaptorNotConstructible(
            f"Type adaptor {adaptor_cls.__name__} must not be abstract, on {where}.",
            **context,
        )

    bounds = resolve_bounds(TypeAdaptor, adaptor_cls) or []
    if len(bounds) != 2:
        raise InvalidDeclaredType(
            f"Type adaptor {adaptor_cls.__name__} does not declare its two "
            f"type parameters, on {where}.",
            **context,
        )
    external = _side_type(bounds[0], "external", adaptor_cls, where, context)
    internal = _side_type(bounds[1], "internal", adaptor_cls, where, context)

    if get_origin(bounds[1].upper_type) is not None:
        raise InvalidDeclaredType(
            f"Type adaptor's internal {type_name(bounds[1].upper_type)} type must "
            f"not be generic, on {where}.",
            **context,
        )
    for side, side_type in (("external", external), ("internal", internal)):
        if is_datatype(side_type):
            raise InvalidDeclaredType(
                f"Type adaptor's {side} type must not be a QueryableDatatype, on {where}.",
                **context,
            )

    override = adapt.type
    if override is not None:
        if not is_datatype(override):
            raise InvalidDeclaredType(
                f"adapt_type(type) on {where} is not a supported type. "
                "Use one of the standard DB types.",
                **context,
            )
        if override is QueryableDatatype or inspect.isabstract(override):
            raise InvalidDeclaredType(
                f"adapt_type(type) must be a concrete type, on {where}.", **context
            )

    _check_external(declared, external, where, context)

    inferred = inferred_datatype_for(internal)
    if inferred is None:
        raise InvalidDeclaredType(
            f"Type adaptor's internal {internal.__name__} type is not a supported "
            f"simple type, on {where}.",
            **context,
        )
    if override is not None and not _supports(override, internal):
        raise InvalidDeclaredType(
            f"Type adaptor's internal {internal.__name__} type is not compatible "
            f"with {override.__name__}, on {where}.",
            **context,
        )

    try:
        adaptor = adaptor_cls()
    except Exception as exc:
        raise AdaptorNotConstructible(
            f"Type adaptor {adaptor_cls.__name__} could not be constructed, "
            f"on {where}: {exc}",
            **context,
        ) from exc

    return TypeAdaptorFacts(
        effective_type=override if override is not None else inferred,
        has_adaptor=True,
        adaptor=adaptor,
        external_type=external,
        internal_type=internal,
    )


def read_database_value(
    accessor: PropertyAccessor,
    facts: TypeAdaptorFacts,
    target: Any,
) -> Optional[QueryableDatatype[Any]]:
    """Read a member and return its database-facing value.

    Without an adaptor the member's own wrapper is returned as is. With one, a
    fresh wrapper of the effective type is built on every call.
    """

    raw = accessor.get(target)
    if not facts.has_adaptor:
        return raw

    if isinstance(raw, QueryableDatatype):
        raw = raw.value
    result = facts.effective_type()
    if raw is None:
        return result

    adaptor = cast(TypeAdaptor[Any, Any], facts.adaptor)
    external = simple_cast(raw, facts.external_type)
    try:
        internal = adaptor.to_database_value(external)
    except Exception as exc:
        raise AdaptorUserCodeFailure(
            f"Type adaptor {type(adaptor).__name__} raised {type(exc).__name__} "
            f"converting {accessor.qualified_name} to the database: {exc}",
            member=accessor.name,
        ) from exc

    if internal is not None:
        internal = _checked(internal, facts.internal_type, adaptor, accessor)
        try:
            result.set_value(internal)
        except TypeError as exc:
            raise AdaptorUserCodeFailure(
                f"Type adaptor {type(adaptor).__name__} returned a value that "
                f"{facts.effective_type.__name__} cannot hold, on "
                f"{accessor.qualified_name}: {exc}",
                member=accessor.name,
            ) from exc
    return result


def write_database_value(
    accessor: PropertyAccessor,
    facts: TypeAdaptorFacts,
    target: Any,
    value: Optional[QueryableDatatype[Any]],
) -> None:
    """Write a database-facing value back into a member.

    `value` must be an instance of the effective type, or None. Members that
    are themselves datatypes are updated in place when they hold a wrapper.
    """

    if value is not None and not isinstance(value, facts.effective_type):
        raise TypeError(
            f"{accessor.qualified_name} expects {facts.effective_type.__name__}, "
            f"got {type(value).__name__}."
        )
    if not facts.has_adaptor:
        accessor.set(target, value)
        return

    literal = None if value is None else value.value
    external = None
    if literal is not None:
        adaptor = cast(TypeAdaptor[Any, Any], facts.adaptor)
        internal = simple_cast(literal, facts.internal_type)
        try:
            external = adaptor.from_database_value(internal)
        except Exception as exc:
            raise AdaptorUserCodeFailure(
                f"Type adaptor {type(adaptor).__name__} raised {type(exc).__name__} "
                f"converting {accessor.qualified_name} from the database: {exc}",
                member=accessor.name,
            ) from exc
        if external is not None:
            external = _checked(external, facts.external_type, adaptor, accessor)

    declared = accessor.declared_type
    if is_datatype(declared):
        current = accessor.get(target) if accessor.readable else None
        if isinstance(current, QueryableDatatype):
            current.set_value(external)
        else:
            accessor.set(target, declared(external))
        return

    if external is not None:
        external = simple_cast(external, get_origin(declared) or declared)
    accessor.set(target, external)


def simple_cast(value: Any, target_type: Any) -> Any:
    """Cast between `int`, `float` and `Decimal`; other values pass through."""

    if value is None or not isinstance(target_type, type) or get_origin(target_type):
        return value
    if isinstance(value, target_type) and not isinstance(value, bool):
        return value
    if not _is_numeric_type(target_type) or not _is_numeric_value(value):
        return value
    if issubclass(target_type, Decimal):
        return Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    return target_type(value)


def _side_type(
    bounds: ParameterBounds,
    side: str,
    adaptor_cls: type,
    where: str,
    context: dict,
) -> type:
    if bounds.is_upper_multi:
        raise InvalidDeclaredType(
            f"Type adaptor {adaptor_cls.__name__} must not be declared with multiple "
            f"super types for type variables, on {where}.",
            **context,
        )
    if not bounds.is_concrete:
        raise InvalidDeclaredType(
            f"Type adaptor's {side} type is not specified or not known: "
            f"{adaptor_cls.__name__} must use a concrete type, on {where}.",
            **context,
        )
    return bounds.upper_class


def _check_external(declared: Any, external: type, where: str, context: dict) -> None:
    if is_datatype(declared):
        if inferred_datatype_for(external) is None:
            raise InvalidDeclaredType(
                f"Type adaptor's external {external.__name__} type is not a "
                f"supported simple type, on {where}.",
                **context,
            )
        if not _supports(declared, external):
            raise InvalidDeclaredType(
                f"Type adaptor's external {external.__name__} type is not "
                f"compatible with a {declared.__name__} property, on {where}.",
                **context,
            )
        return

    declared_class = get_origin(declared) or declared
    if declared_class is Any or declared_class is object:
        return
    if isinstance(declared_class, type) and (
        issubclass(declared_class, external)
        or issubclass(external, declared_class)
        or (_is_numeric_type(declared_class) and _is_numeric_type(external))
    ):
        return
    raise InvalidDeclaredType(
        f"Type adaptor's external {external.__name__} type is not compatible "
        f"with the property type {type_name(declared)}, on {where}.",
        **context,
    )


def _supports(datatype: type, simple_type: type) -> bool:
    inferred = inferred_datatype_for(simple_type)
    if inferred is None:
        return False
    return issubclass(datatype, inferred) or issubclass(inferred, datatype)


def _checked(
    value: Any,
    expected: Optional[type],
    adaptor: TypeAdaptor[Any, Any],
    accessor: PropertyAccessor,
) -> Any:
    value = simple_cast(value, expected)
    if expected is not None and not isinstance(value, expected):
        raise AdaptorUserCodeFailure(
            f"Type adaptor {type(adaptor).__name__} returned {type(value).__name__}, "
            f"expected {expected.__name__}, on {accessor.qualified_name}.",
            member=accessor.name,
        )
    return value


def _is_numeric_type(tp: Any) -> bool:
    return (
        isinstance(tp, type)
        and issubclass(tp, _NUMERIC_TYPES)
        and not issubclass(tp, bool)
    )


def _is_numeric_value(value: Any) -> bool:
    return isinstance(value, _NUMERIC_TYPES) and not isinstance(value, bool)
