"""Emitters turning canonical tables back into text.

Usage:
    from schema_studio.emitters import generate_create_table, generate_models
"""

from schema_studio.emitters.ddl import (
    generate_create_table,
    generate_schema_ddl,
    if_not_exists,
    render_default,
)
from schema_studio.emitters.source import generate_models, generate_struct

__all__ = [
    "generate_create_table",
    "generate_schema_ddl",
    "if_not_exists",
    "render_default",
    "generate_models",
    "generate_struct",
]
