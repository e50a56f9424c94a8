"""Core contracts shared by accessors, resolvers and metadata."""

from __future__ import annotations

from typing import Any, List, Optional, Protocol

from .markers import Marker, MarkerKind, MarkerMap


class PropertyAccessor(Protocol):
    """One mapped member, either a dataclass field or a getter/setter pair."""

    owner: type
    name: str
    declared_type: Any
    readable: bool
    writable: bool
    is_field: bool

    @property
    def qualified_name(self) -> str: ...

    @property
    def markers(self) -> MarkerMap: ...

    def get(self, target: Any) -> Any: ...

    def set(self, target: Any, value: Any) -> None: ...

    def get_marker(self, kind: MarkerKind) -> Optional[Marker]: ...

    def get_all_marker_instances(self, kind: MarkerKind) -> List[Marker]: ...
