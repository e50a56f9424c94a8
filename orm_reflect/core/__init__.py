"""Public core API for schema reflection, type adaptors and class metadata."""

from .accessors import FieldAccessor, MethodAccessor
from .cache import MetadataCache
from .codecs import TypeAdaptor, TypeAdaptorFacts, resolve_type_adaptor, simple_cast
from .contracts import PropertyAccessor
from .datatypes import (
    DBBoolean,
    DBDate,
    DBInteger,
    DBNumber,
    DBString,
    QueryableDatatype,
    inferred_datatype_for,
    is_datatype,
)
from .errors import (
    AccessDenied,
    AdaptorNotConstructible,
    AdaptorUserCodeFailure,
    ConfigurationError,
    DuplicateColumnName,
    EngineDefect,
    InvalidDeclaredType,
    MarkerConflict,
    NotReadable,
    NotWritable,
    ReferencedClassNotATable,
    ReferenceToUndefinedColumn,
    ReferenceToUndefinedPrimaryKey,
    RuntimeAccessError,
    UnableToInterpolateReferencedColumn,
    UnsupportedDeclaredType,
    UserCodeFailure,
)
from .finder import DEFAULT_POLICY, PropertyKind, PropertyPolicy, Visibility, find_properties
from .generics import ParameterBounds, implements, resolve_bounds
from .markers import (
    AdaptType,
    Column,
    ForeignKey,
    MarkerKind,
    PrimaryKey,
    TableName,
    adapt_type,
    column,
    foreign_key,
    primary_key,
    table,
)
from .metadata import ClassMetadata, PropertyDescriptor, build_class_metadata
from .models import TableFacts, is_table, resolve_table, table_name
from .schema_columns import ColumnFacts, column_properties, primary_key_properties, resolve_column
from .schema_foreign_keys import ForeignKeyFacts, resolve_foreign_key, resolve_referenced_class

__all__ = [
    "AccessDenied",
    "AdaptType",
    "AdaptorNotConstructible",
    "AdaptorUserCodeFailure",
    "ClassMetadata",
    "Column",
    "ColumnFacts",
    "ConfigurationError",
    "DBBoolean",
    "DBDate",
    "DBInteger",
    "DBNumber",
    "DBString",
    "DEFAULT_POLICY",
    "DuplicateColumnName",
    "EngineDefect",
    "FieldAccessor",
    "ForeignKey",
    "ForeignKeyFacts",
    "InvalidDeclaredType",
    "MarkerConflict",
    "MarkerKind",
    "MetadataCache",
    "MethodAccessor",
    "NotReadable",
    "NotWritable",
    "ParameterBounds",
    "PrimaryKey",
    "PropertyAccessor",
    "PropertyDescriptor",
    "PropertyKind",
    "PropertyPolicy",
    "QueryableDatatype",
    "ReferenceToUndefinedColumn",
    "ReferenceToUndefinedPrimaryKey",
    "ReferencedClassNotATable",
    "RuntimeAccessError",
    "TableFacts",
    "TableName",
    "TypeAdaptor",
    "TypeAdaptorFacts",
    "UnableToInterpolateReferencedColumn",
    "UnsupportedDeclaredType",
    "UserCodeFailure",
    "Visibility",
    "adapt_type",
    "build_class_metadata",
    "column",
    "column_properties",
    "find_properties",
    "foreign_key",
    "implements",
    "inferred_datatype_for",
    "is_datatype",
    "is_table",
    "primary_key",
    "primary_key_properties",
    "resolve_bounds",
    "resolve_column",
    "resolve_foreign_key",
    "resolve_referenced_class",
    "resolve_table",
    "resolve_type_adaptor",
    "simple_cast",
    "table",
    "table_name",
]
