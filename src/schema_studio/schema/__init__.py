"""Canonical schema model, live introspection, merging and validation.

Provides the immutable schema models (``SchemaInfo``, ``TableInfo``,
``ColumnInfo``, ``RelationInfo``), live database introspection
(``SchemaIntrospector``), model/catalog merging (``merge_table``,
``merge_tables``, ``build_schema``) and schema comparison
(``validate_schema``).

Usage:
    from schema_studio.schema import SchemaIntrospector, build_schema
    from schema_studio.schema import validate_schema
"""

from schema_studio.schema.comparator import validate_schema
from schema_studio.schema.introspector import SchemaIntrospector
from schema_studio.schema.merge import MergePolicy, build_schema, merge_table, merge_tables
from schema_studio.schema.models import (
    ColumnDiff,
    ColumnInfo,
    RelationInfo,
    RelationKind,
    SchemaInfo,
    SchemaValidationResult,
    TableInfo,
    primary_key_order,
)

__all__ = [
    "validate_schema",
    "SchemaIntrospector",
    "MergePolicy",
    "merge_table",
    "merge_tables",
    "build_schema",
    "SchemaInfo",
    "TableInfo",
    "ColumnInfo",
    "RelationInfo",
    "RelationKind",
    "primary_key_order",
    "SchemaValidationResult",
    "ColumnDiff",
]
