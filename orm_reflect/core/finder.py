"""Member enumeration for mapped classes."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field, is_dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, FrozenSet, List, Tuple, get_origin

from .accessors import FieldAccessor, MethodAccessor
from .contracts import PropertyAccessor
from .markers import (
    COLUMN_MARKER_KINDS,
    field_markers,
    function_markers,
    has_field_markers,
)
from .models import model_fields, model_type_hints, unwrap_optional


class Visibility(IntEnum):
    """Member visibility derived from Python naming conventions."""

    PUBLIC = 0
    PROTECTED = 1
    PRIVATE = 2


class PropertyKind(str, Enum):
    """Member shapes that can be scanned."""

    FIELD = "field"
    ACCESSOR = "accessor"


@dataclass(frozen=True)
class PropertyPolicy:
    """Which members of a class are considered during metadata builds.

    `field_visibility` and `accessor_visibility` are the most hidden
    visibility still accepted. `include_types` / `exclude_types` filter by
    declared type (subclass check); an empty `include_types` accepts all.
    """

    field_visibility: Visibility = Visibility.PRIVATE
    accessor_visibility: Visibility = Visibility.PUBLIC
    kinds: FrozenSet[PropertyKind] = field(
        default_factory=lambda: frozenset(PropertyKind)
    )
    include_types: Tuple[type, ...] = ()
    exclude_types: Tuple[type, ...] = ()

    def accepts_type(self, declared_type: Any) -> bool:
        if self.include_types and not _is_subclass(declared_type, self.include_types):
            return False
        if self.exclude_types and _is_subclass(declared_type, self.exclude_types):
            return False
        return True


DEFAULT_POLICY = PropertyPolicy()


def visibility_of(name: str) -> Visibility:
    # `_Owner__name` is how `__name` looks after mangling.
    if not name.endswith("__") and (
        name.startswith("__") or (name.startswith("_") and "__" in name[1:])
    ):
        return Visibility.PRIVATE
    if name.startswith("_"):
        return Visibility.PROTECTED
    return Visibility.PUBLIC


def find_properties(
    cls: type,
    policy: PropertyPolicy = DEFAULT_POLICY,
) -> List[PropertyAccessor]:
    """Return one accessor per markered member, fields first.

    A field and a same-named property that both carry markers produce two
    independent accessors.
    """

    properties: List[PropertyAccessor] = []
    if PropertyKind.FIELD in policy.kinds and is_dataclass(cls):
        properties.extend(_field_accessors(cls, policy))
    if PropertyKind.ACCESSOR in policy.kinds:
        properties.extend(_method_accessors(cls, policy))
    return properties


def _field_accessors(cls: type, policy: PropertyPolicy) -> List[FieldAccessor]:
    accessors: List[FieldAccessor] = []
    hints = model_type_hints(cls)
    for model_field in model_fields(cls):
        name = model_field.name
        if not has_field_markers(model_field.metadata):
            continue
        markers = field_markers(
            model_field.metadata,
            context=f"{cls.__qualname__}.{name}",
            kinds=COLUMN_MARKER_KINDS,
        )
        if visibility_of(name) > policy.field_visibility:
            continue
        declared_type = unwrap_optional(hints.get(name, model_field.type))
        if not policy.accepts_type(declared_type):
            continue
        accessors.append(
            FieldAccessor(cls, name, declared_type, markers, model_field.metadata)
        )
    return accessors


def _method_accessors(cls: type, policy: PropertyPolicy) -> List[MethodAccessor]:
    accessors: List[MethodAccessor] = []
    for name, prop in _class_properties(cls).items():
        if not (function_markers(prop.fget) or function_markers(prop.fset)):
            continue
        if visibility_of(name) > policy.accessor_visibility:
            continue
        declared_type = unwrap_optional(_property_type(prop))
        if not policy.accepts_type(declared_type):
            continue
        accessors.append(
            MethodAccessor(cls, name, declared_type, prop.fget, prop.fset)
        )
    return accessors


def _class_properties(cls: type) -> Dict[str, property]:
    # Walk base classes first so subclass definitions override in place.
    found: Dict[str, property] = {}
    for klass in reversed(inspect.getmro(cls)):
        if klass is object:
            continue
        for name, value in vars(klass).items():
            if isinstance(value, property):
                found[name] = value
            elif name in found:
                del found[name]
    return found


def _property_type(prop: property) -> Any:
    if prop.fget is not None:
        hints = model_type_hints(prop.fget)
        if "return" in hints:
            return hints["return"]
    if prop.fset is not None:
        hints = model_type_hints(prop.fset)
        params = list(inspect.signature(prop.fset).parameters)
        if len(params) >= 2 and params[1] in hints:
            return hints[params[1]]
    return Any


def _is_subclass(declared_type: Any, candidates: Tuple[type, ...]) -> bool:
    return (
        isinstance(declared_type, type)
        and get_origin(declared_type) is None
        and issubclass(declared_type, candidates)
    )
