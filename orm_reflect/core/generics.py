"""Recovery of generic type arguments through a class hierarchy.

`resolve_bounds(Interface, Candidate)` walks from `Candidate` through its
declared bases (`__orig_bases__`), substituting the type arguments each step
supplies for the type variables used one level up, until `Interface` is
reached. The result has one `ParameterBounds` per type parameter of
`Interface`:

- a concrete argument yields that type as sole upper bound;
- a type variable left unresolved at the top yields its declared bound
  (`TypeVar("T", bound=X)`), its constraints as multiple upper bounds
  (`TypeVar("T", A, B)`), or `object`;
- `Any` yields `object`.

`None` means the candidate does not implement the interface at all, which
callers must keep apart from an empty list (implements an interface that has
no type parameters).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Protocol, Tuple, TypeVar
from typing import get_args, get_origin

_SKIPPED_BASES = (Generic, Protocol, object)

Arguments = Optional[Dict[Any, "ParameterBounds"]]


@dataclass(frozen=True)
class ParameterBounds:
    """Upper and lower bounds recovered for one type parameter.

    Python has no lower-bounded wildcards, so `lower_types` stays empty; it
    is kept so callers can treat bounds uniformly.
    """

    upper_types: Tuple[Any, ...]
    lower_types: Tuple[Any, ...] = ()

    @property
    def is_upper_multi(self) -> bool:
        return len(self.upper_types) > 1

    @property
    def upper_type(self) -> Any:
        """The single upper bound; raises `TypeError` when there are several."""

        if self.is_upper_multi:
            raise TypeError(f"Parameter has multiple upper bounds: {self.upper_types!r}.")
        return self.upper_types[0] if self.upper_types else object

    @property
    def upper_class(self) -> Any:
        return _class_of(self.upper_type)

    @property
    def upper_classes(self) -> Tuple[Any, ...]:
        return tuple(_class_of(upper) for upper in self.upper_types)

    @property
    def lower_type(self) -> Any:
        return self.lower_types[0] if self.lower_types else None

    @property
    def is_concrete(self) -> bool:
        """True for exactly one upper bound that is a real type other than `object`."""

        if len(self.upper_types) != 1:
            return False
        upper_class = _class_of(self.upper_types[0])
        return isinstance(upper_class, type) and upper_class is not object


def resolve_bounds(interface: type, candidate: type) -> Optional[List[ParameterBounds]]:
    """Return bounds of `interface`'s type parameters as supplied by `candidate`.

    Args:
        interface: Generic class or protocol to look for.
        candidate: Class that may subclass `interface` directly or transitively.

    Returns:
        One `ParameterBounds` per type parameter of `interface` (empty if it
        has none), or `None` if `candidate` does not implement `interface`.

    Raises:
        TypeError: If either argument is not a class.
    """

    for name, value in (("interface", interface), ("candidate", candidate)):
        if not isinstance(value, type):
            raise TypeError(f"{name} must be a class, got {type(value).__name__}.")
    return _bounds_for(interface, candidate, None)


def implements(interface: type, candidate: type) -> bool:
    return resolve_bounds(interface, candidate) is not None


def type_parameters(cls: Any) -> Tuple[Any, ...]:
    return tuple(getattr(cls, "__parameters__", ()))


def _bounds_for(
    interface: type,
    cls: type,
    arguments: Arguments,
) -> Optional[List[ParameterBounds]]:
    if cls is interface:
        return [_bounds_of_variable(var, arguments) for var in type_parameters(cls)]

    for base in _declared_bases(cls):
        origin = get_origin(base) or base
        if not isinstance(origin, type) or origin in _SKIPPED_BASES:
            continue
        args = get_args(base)

        if origin is interface and args:
            return [_bounds_of_argument(arg, arguments) for arg in args]

        params = type_parameters(origin)
        base_arguments: Arguments = None
        if args and len(args) == len(params):
            base_arguments = {
                param: _bounds_of_argument(arg, arguments)
                for param, arg in zip(params, args)
            }

        result = _bounds_for(interface, origin, base_arguments)
        if result is not None:
            return result

    # Plain `object` as interface: every class implements it.
    if interface is object:
        return []
    return None


def _declared_bases(cls: type) -> Tuple[Any, ...]:
    # `__orig_bases__` is inherited through getattr, so read the class's own.
    return tuple(cls.__dict__.get("__orig_bases__", cls.__bases__))


def _bounds_of_variable(var: Any, arguments: Arguments) -> ParameterBounds:
    if arguments is not None and var in arguments:
        return arguments[var]
    constraints = getattr(var, "__constraints__", ())
    if constraints:
        return ParameterBounds(upper_types=tuple(constraints))
    bound = getattr(var, "__bound__", None)
    if bound is not None:
        return ParameterBounds(upper_types=(bound,))
    return ParameterBounds(upper_types=(object,))


def _bounds_of_argument(arg: Any, arguments: Arguments) -> ParameterBounds:
    if isinstance(arg, TypeVar):
        return _bounds_of_variable(arg, arguments)
    if arg is Any:
        return ParameterBounds(upper_types=(object,))
    return ParameterBounds(upper_types=(arg,))


def _class_of(annotation: Any) -> Any:
    origin = get_origin(annotation)
    return origin if origin is not None else annotation
