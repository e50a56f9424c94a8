"""Error types raised while building class metadata or accessing members."""

from __future__ import annotations

from typing import Optional


class ConfigurationError(ValueError):
    """Raised at metadata-build time when a class declaration is invalid.

    These errors are permanent for the class: metadata is never cached in a
    failed state, so every later lookup raises again.
    """

    def __init__(
        self,
        message: str,
        *,
        owner: Optional[str] = None,
        member: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.owner = owner
        self.member = member


class MarkerConflict(ConfigurationError):
    """Getter and setter carry the same marker kind with different values."""

    def __init__(
        self,
        kind: str,
        first: str,
        second: str,
        *,
        owner: Optional[str] = None,
        member: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"@{kind} is declared differently on {first} and {second}.",
            owner=owner,
            member=member,
        )
        self.kind = kind
        self.locations = (first, second)


class UnsupportedDeclaredType(ConfigurationError):
    """Column member type is not database-facing and has no type adaptor."""


class InvalidDeclaredType(ConfigurationError):
    """Type adaptor declaration is inconsistent with the member it adapts."""


class AdaptorNotConstructible(ConfigurationError):
    """Type adaptor is abstract or could not be instantiated without arguments."""


class DuplicateColumnName(ConfigurationError):
    """Two members of one class map to the same column name."""


class _ReferenceError(ConfigurationError):
    def __init__(
        self,
        message: str,
        *,
        owner: Optional[str] = None,
        member: Optional[str] = None,
        referenced_class: Optional[str] = None,
        referenced_column: Optional[str] = None,
    ) -> None:
        super().__init__(message, owner=owner, member=member)
        self.referenced_class = referenced_class
        self.referenced_column = referenced_column


class ReferencedClassNotATable(_ReferenceError):
    """Foreign key points at a class without table identity."""


class ReferenceToUndefinedColumn(_ReferenceError):
    """Foreign key names a column that is missing or ambiguous on the target."""


class ReferenceToUndefinedPrimaryKey(_ReferenceError):
    """Foreign key relies on a primary key the target class does not declare."""


class UnableToInterpolateReferencedColumn(_ReferenceError):
    """Target has several primary keys and none matches the foreign key name."""


class RuntimeAccessError(RuntimeError):
    """Raised by a single read or write of a member value."""

    def __init__(self, message: str, *, member: Optional[str] = None) -> None:
        super().__init__(message)
        self.member = member


class NotReadable(RuntimeAccessError):
    """Member has no getter."""


class NotWritable(RuntimeAccessError):
    """Member has no setter."""


class EngineDefect(RuntimeAccessError):
    """Target object does not match the class the accessor was built for."""


class AccessDenied(RuntimeAccessError):
    """The runtime refused the read or write (frozen instance, permissions)."""


class UserCodeFailure(RuntimeAccessError):
    """A getter, setter or attribute hook raised; the cause is chained."""


class AdaptorUserCodeFailure(UserCodeFailure):
    """Type adaptor conversion code raised; the cause is chained."""
