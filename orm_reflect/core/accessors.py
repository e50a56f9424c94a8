"""Field and getter/setter accessors behind the `PropertyAccessor` contract."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from typing import Any, Callable, List, Mapping, Optional

from .errors import (
    AccessDenied,
    EngineDefect,
    MarkerConflict,
    NotReadable,
    NotWritable,
    UserCodeFailure,
)
from .markers import (
    FIELD_MARKER_KINDS,
    Marker,
    MarkerKind,
    MarkerMap,
    field_marker,
    function_markers,
)


class FieldAccessor:
    """Accessor for a dataclass field; always readable and writable.

    `markers` holds markers parsed up front. Kinds missing from it are parsed
    from the raw field `metadata` on request, so a class scanned only for its
    columns never validates its foreign-key or adaptor entries.
    """

    is_field = True
    readable = True
    writable = True

    def __init__(
        self,
        owner: type,
        name: str,
        declared_type: Any,
        markers: MarkerMap,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.owner = owner
        self.name = name
        self.declared_type = declared_type
        self._markers = dict(markers)
        self._metadata = metadata

    def __repr__(self) -> str:
        return f"FieldAccessor({self.qualified_name})"

    @property
    def qualified_name(self) -> str:
        return f"{self.owner.__qualname__}.{self.name}"

    @property
    def markers(self) -> MarkerMap:
        markers = dict(self._markers)
        for kind in FIELD_MARKER_KINDS:
            marker = self.get_marker(kind)
            if marker is not None:
                markers[kind] = marker
        return markers

    def get(self, target: Any) -> Any:
        _check_target(self, target, "reading")
        try:
            return getattr(target, self.name)
        except AttributeError as exc:
            raise EngineDefect(
                f"Field {self.qualified_name} is not set on object of type "
                f"{type(target).__name__}: {exc}",
                member=self.name,
            ) from exc
        except PermissionError as exc:
            raise AccessDenied(
                f"Access denied reading field {self.qualified_name}: {exc}",
                member=self.name,
            ) from exc
        except Exception as exc:
            raise UserCodeFailure(
                f"Attribute hook raised {type(exc).__name__} reading field "
                f"{self.qualified_name}: {exc}",
                member=self.name,
            ) from exc

    def set(self, target: Any, value: Any) -> None:
        _check_target(self, target, "writing")
        try:
            setattr(target, self.name, value)
        except (FrozenInstanceError, PermissionError) as exc:
            raise AccessDenied(
                f"Access denied writing field {self.qualified_name}: {exc}",
                member=self.name,
            ) from exc
        except Exception as exc:
            raise UserCodeFailure(
                f"Attribute hook raised {type(exc).__name__} writing field "
                f"{self.qualified_name}: {exc}",
                member=self.name,
            ) from exc

    def get_marker(self, kind: MarkerKind) -> Optional[Marker]:
        if kind in self._markers or self._metadata is None:
            return self._markers.get(kind)
        return field_marker(self._metadata, kind, context=self.qualified_name)

    def get_all_marker_instances(self, kind: MarkerKind) -> List[Marker]:
        marker = self.get_marker(kind)
        return [] if marker is None else [marker]


class MethodAccessor:
    """Accessor for a `property`; readable with a getter, writable with a setter.

    Markers may sit on the getter, the setter, or both. When both carry the
    same kind, the values must be equal.
    """

    is_field = False

    def __init__(
        self,
        owner: type,
        name: str,
        declared_type: Any,
        getter: Optional[Callable[[Any], Any]],
        setter: Optional[Callable[[Any, Any], None]],
    ) -> None:
        self.owner = owner
        self.name = name
        self.declared_type = declared_type
        self._getter = getter
        self._setter = setter
        self._getter_markers = function_markers(getter)
        self._setter_markers = function_markers(setter)

    def __repr__(self) -> str:
        return f"MethodAccessor({self.qualified_name})"

    @property
    def readable(self) -> bool:
        return self._getter is not None

    @property
    def writable(self) -> bool:
        return self._setter is not None

    @property
    def qualified_name(self) -> str:
        return f"{self.owner.__qualname__}.{self.name}"

    @property
    def markers(self) -> MarkerMap:
        kinds = [*self._getter_markers, *self._setter_markers]
        merged: MarkerMap = {}
        for kind in kinds:
            marker = self.get_marker(kind)
            if marker is not None:
                merged[kind] = marker
        return merged

    def get(self, target: Any) -> Any:
        if self._getter is None:
            raise NotReadable(
                f"Property {self.qualified_name} has no getter.", member=self.name
            )
        _check_target(self, target, "reading")
        try:
            return self._getter(target)
        except PermissionError as exc:
            raise AccessDenied(
                f"Access denied reading property {self.qualified_name}: {exc}",
                member=self.name,
            ) from exc
        except Exception as exc:
            raise UserCodeFailure(
                f"Getter raised {type(exc).__name__} reading property "
                f"{self.qualified_name}: {exc}",
                member=self.name,
            ) from exc

    def set(self, target: Any, value: Any) -> None:
        if self._setter is None:
            raise NotWritable(
                f"Property {self.qualified_name} has no setter.", member=self.name
            )
        _check_target(self, target, "writing")
        try:
            self._setter(target, value)
        except PermissionError as exc:
            raise AccessDenied(
                f"Access denied writing property {self.qualified_name}: {exc}",
                member=self.name,
            ) from exc
        except Exception as exc:
            raise UserCodeFailure(
                f"Setter raised {type(exc).__name__} writing property "
                f"{self.qualified_name}: {exc}",
                member=self.name,
            ) from exc

    def get_marker(self, kind: MarkerKind) -> Optional[Marker]:
        getter_marker = self._getter_markers.get(kind)
        setter_marker = self._setter_markers.get(kind)
        if (
            getter_marker is not None
            and setter_marker is not None
            and getter_marker != setter_marker
        ):
            raise MarkerConflict(
                kind.value,
                f"{self.qualified_name} getter",
                f"{self.qualified_name} setter",
                owner=self.owner.__qualname__,
                member=self.name,
            )
        return getter_marker if getter_marker is not None else setter_marker

    def get_all_marker_instances(self, kind: MarkerKind) -> List[Marker]:
        found = [self._getter_markers.get(kind), self._setter_markers.get(kind)]
        return [marker for marker in found if marker is not None]


def _check_target(accessor: Any, target: Any, action: str) -> None:
    # A mismatched target means the engine paired metadata with the wrong object.
    if not isinstance(target, accessor.owner):
        raise EngineDefect(
            f"Internal error {action} {accessor.qualified_name} on object of type "
            f"{type(target).__name__}.",
            member=accessor.name,
        )
