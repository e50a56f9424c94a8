"""Thread-safe, build-once cache of class metadata."""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Type, TypeVar

import structlog

from .finder import DEFAULT_POLICY, PropertyPolicy
from .metadata import ClassMetadata, build_class_metadata
from .models import require_dataclass_model

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class MetadataCache:
    """Class-keyed cache of `ClassMetadata`.

    Hold one instance per application (or per test) and pass it to the code
    that needs metadata. Concurrent first lookups of a class build once and
    share the result. Failed builds are not cached, so a bad declaration
    raises again on every lookup.
    """

    def __init__(self, *, policy: Optional[PropertyPolicy] = None) -> None:
        self._policy = policy or DEFAULT_POLICY
        self._lock = threading.Lock()
        self._entries: Dict[type, ClassMetadata[Any]] = {}

    @property
    def policy(self) -> PropertyPolicy:
        return self._policy

    def get(self, model: Type[T]) -> ClassMetadata[T]:
        """Return cached metadata for `model`, building it on first use.

        Raises:
            TypeError: If `model` is not a dataclass.
            ConfigurationError: If the class declaration is invalid.
        """

        require_dataclass_model(model)
        with self._lock:
            cached = self._entries.get(model)
            if cached is not None:
                return cached

            logger.debug("metadata_cache_miss", model=model.__qualname__)
            try:
                metadata = build_class_metadata(model, self._policy)
            except Exception as exc:
                logger.debug(
                    "class_metadata_failed",
                    model=model.__qualname__,
                    error=type(exc).__name__,
                )
                raise
            self._entries[model] = metadata
            return metadata

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, model: object) -> bool:
        with self._lock:
            return model in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
