"""Declarative model source generation.

Renders a schema as annotated struct definitions, the same form
``schema_studio.parsers.declarative`` reads::

    package models

    import (
    	"time"
    )

    type User struct {
    	ID uint `gorm:"primaryKey;column:id" json:"id"`
    	CreatedAt time.Time `gorm:"column:created_at;not null" json:"created_at"`
    	Posts []Post `gorm:"foreignKey:AuthorID" json:"posts,omitempty"`
    }

Output is deterministic: the same schema always renders to the same text.
"""

from schema_studio.naming import singularize, to_pascal_name, to_snake_case
from schema_studio.schema.models import (
    ColumnInfo,
    RelationInfo,
    RelationKind,
    SchemaInfo,
    TableInfo,
)
from schema_studio.type_map import extract_size, sql_to_scalar_type

# Import path needed by each qualified scalar, in output order
_IMPORTS = (
    ("json.RawMessage", "encoding/json"),
    ("time.Time", "time"),
)


def field_type(col: ColumnInfo) -> str:
    """Declared field type: the recorded type hint, else mapped from SQL."""
    return col.type_hint or sql_to_scalar_type(col.type, col.is_nullable)


def struct_name(table_name: str) -> str:
    """``blog_posts`` -> ``BlogPost``."""
    return to_pascal_name(singularize(table_name))


def build_column_tag(col: ColumnInfo) -> str:
    """Column annotation: ``gorm:"primaryKey;column:id;size:64;not null;default:x"``."""
    parts: list[str] = []
    if col.is_primary_key:
        parts.append("primaryKey")
    parts.append(f"column:{col.name}")

    size = extract_size(col.type)
    if size:
        parts.append(f"size:{size}")

    if not col.is_nullable and not col.is_primary_key:
        parts.append("not null")

    if col.default:
        parts.append(f"default:{_tag_value(col.default)}")

    return 'gorm:"' + ";".join(parts) + '"'


def _tag_value(value: str) -> str:
    """Quote an option value so it survives the ``;`` split and the tag quotes."""
    if ";" in value or value.startswith("'"):
        value = "'" + value.replace("'", "''") + "'"
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _relation_field(rel: RelationInfo) -> str:
    target = struct_name(rel.table)
    if rel.kind is RelationKind.TO_MANY_THROUGH:
        type_name = f"[]{target}"
        tag = f'gorm:"many2many:{rel.join_table}" '
    else:
        type_name = f"[]{target}" if rel.kind is RelationKind.TO_MANY else target
        tag = f'gorm:"foreignKey:{to_pascal_name(rel.foreign_key)}" ' if rel.foreign_key else ""
    json_name = to_snake_case(rel.name)
    return f'\t{to_pascal_name(rel.name)} {type_name} `{tag}json:"{json_name},omitempty"`\n'


def generate_struct(table: TableInfo) -> str:
    """One struct definition for *table*."""
    lines = [f"type {struct_name(table.name)} struct {{\n"]
    for col in table.columns:
        lines.append(
            f"\t{to_pascal_name(col.name)} {field_type(col)} "
            f'`{build_column_tag(col)} json:"{col.name}"`\n'
        )
    lines.extend(_relation_field(rel) for rel in table.relations)
    lines.append("}\n")
    return "".join(lines)


def generate_models(schema: SchemaInfo, package: str = "models") -> str:
    """Render every table of *schema* as a struct in one source file.

    The import block lists only the packages the emitted field types use.
    """
    used_types = {field_type(col) for table in schema.tables for col in table.columns}
    imports = [
        path
        for qualified, path in _IMPORTS
        if any(qualified in type_name for type_name in used_types)
    ]

    out = [f"package {package}\n\n"]
    if imports:
        out.append("import (\n")
        out.extend(f'\t"{path}"\n' for path in imports)
        out.append(")\n\n")

    out.append("\n".join(generate_struct(table) for table in schema.tables))
    return "".join(out)
