"""Text parsers producing canonical tables.

Provides the DDL parser (``parse_ddl``), the DBML-style notation parser
(``parse_dsl``) and the declarative-model parser (``parse_models``), plus
the depth-aware lexer they share.

Usage:
    from schema_studio.parsers import parse_ddl, parse_dsl, parse_models
"""

from schema_studio.parsers.declarative import parse_models
from schema_studio.parsers.ddl import detect_dialect, parse_ddl, parse_ddl_schema
from schema_studio.parsers.dsl import parse_dsl

__all__ = [
    "parse_ddl",
    "parse_ddl_schema",
    "detect_dialect",
    "parse_dsl",
    "parse_models",
]
