"""schema-studio: one canonical schema model, many representations.

Reads relational schemas from a live database (sqlite, postgres, mysql),
DDL scripts, DBML-style notation and declarative model definitions, merges
them into an immutable ``SchemaInfo``, and emits DDL or model source back.

Usage:
    from schema_studio import parse_ddl, generate_models, SchemaInfo
    from schema_studio import SchemaIntrospector, build_schema
    from schema_studio import load_config, load_live_schema
"""

__version__ = "0.1.0"

# Dialects and errors
from schema_studio.dialects import Dialect
from schema_studio.errors import (
    EmptySchemaError,
    SchemaStudioError,
    UnsupportedDialectError,
    UnsupportedFormatError,
)

# Canonical model
from schema_studio.schema.models import (
    ColumnInfo,
    RelationInfo,
    RelationKind,
    SchemaInfo,
    TableInfo,
)

# Producers
from schema_studio.parsers import parse_ddl, parse_ddl_schema, parse_dsl, parse_models
from schema_studio.schema.introspector import SchemaIntrospector
from schema_studio.schema.merge import MergePolicy, build_schema, merge_table, merge_tables

# Consumers
from schema_studio.emitters import generate_create_table, generate_models, generate_schema_ddl
from schema_studio.schema.comparator import validate_schema

# Import / config / factory
from schema_studio.config.loader import load_config
from schema_studio.factory import ProfileNotFoundError, load_live_schema, resolve_url
from schema_studio.importer import dump_schema, load_schema_file

__all__ = [
    # Dialects and errors
    "Dialect",
    "SchemaStudioError",
    "UnsupportedDialectError",
    "EmptySchemaError",
    "UnsupportedFormatError",
    # Canonical model
    "SchemaInfo",
    "TableInfo",
    "ColumnInfo",
    "RelationInfo",
    "RelationKind",
    # Producers
    "parse_ddl",
    "parse_ddl_schema",
    "parse_dsl",
    "parse_models",
    "SchemaIntrospector",
    "MergePolicy",
    "merge_table",
    "merge_tables",
    "build_schema",
    # Consumers
    "generate_create_table",
    "generate_schema_ddl",
    "generate_models",
    "validate_schema",
    # Import / config / factory
    "load_config",
    "load_live_schema",
    "resolve_url",
    "ProfileNotFoundError",
    "load_schema_file",
    "dump_schema",
]
