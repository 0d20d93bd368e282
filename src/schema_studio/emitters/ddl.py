"""CREATE TABLE generation from canonical tables.

Usage:
    >>> from schema_studio.schema.models import ColumnInfo, TableInfo
    >>> table = TableInfo(
    ...     name="users",
    ...     columns=[
    ...         ColumnInfo(name="id", type="INTEGER", is_primary_key=True, is_nullable=False),
    ...         ColumnInfo(name="name", type="TEXT", is_nullable=False, default="x"),
    ...     ],
    ...     primary_keys=["id"],
    ... )
    >>> print(generate_create_table(table, "sqlite"))
    CREATE TABLE "users" (
      "id" INTEGER PRIMARY KEY,
      "name" TEXT NOT NULL DEFAULT 'x'
    );
"""

import re
from collections.abc import Iterable

from schema_studio.dialects import Dialect
from schema_studio.naming import quote_ident
from schema_studio.schema.models import SchemaInfo, TableInfo

# Defaults emitted without quoting: numbers, booleans, NULL, CURRENT_*
# keywords and function calls
_RAW_DEFAULT = re.compile(
    r"^(?:[-+]?\d+(?:\.\d+)?|true|false|null|current_\w+|[\w.]+\(.*\))$",
    re.IGNORECASE,
)


def render_default(value: str) -> str:
    """Render a raw default literal for a DEFAULT clause.

        >>> render_default("0"), render_default("CURRENT_TIMESTAMP")
        ('0', 'CURRENT_TIMESTAMP')
        >>> render_default("it's")
        "'it''s'"
    """
    if _RAW_DEFAULT.match(value):
        return value
    if value.startswith("'") or (value.startswith("(") and value.endswith(")")):
        return value  # already a quoted literal or an expression
    return "'" + value.replace("'", "''") + "'"


def generate_create_table(table: TableInfo, dialect: Dialect | str) -> str:
    """Generate the CREATE TABLE statement for one table.

    Columns are emitted in declaration order.  A single-column primary key
    is declared inline; a composite key marks its columns NOT NULL and is
    declared as a trailing ``PRIMARY KEY (...)`` constraint in key order.
    A column without a type is emitted as TEXT.
    """
    dialect = Dialect.from_name(dialect)
    keys = table.key_columns()
    composite = len(keys) > 1
    key_names = {name.casefold() for name in keys}

    clauses: list[str] = []
    for col in table.columns:
        clause = f"{quote_ident(dialect, col.name)} {col.type or 'TEXT'}"
        is_key = col.name.casefold() in key_names
        if is_key and not composite:
            clause += " PRIMARY KEY"
        elif is_key or not col.is_nullable:
            clause += " NOT NULL"
        if col.default is not None:
            clause += f" DEFAULT {render_default(col.default)}"
        clauses.append(clause)

    if composite:
        quoted = ", ".join(quote_ident(dialect, name) for name in keys)
        clauses.append(f"PRIMARY KEY ({quoted})")

    body = ",\n  ".join(clauses)
    return f"CREATE TABLE {quote_ident(dialect, table.name)} (\n  {body}\n);"


def generate_schema_ddl(
    schema: SchemaInfo | Iterable[TableInfo],
    dialect: Dialect | str,
) -> str:
    """CREATE TABLE statements for every table, separated by blank lines."""
    tables = schema.tables if isinstance(schema, SchemaInfo) else schema
    return "\n\n".join(generate_create_table(table, dialect) for table in tables)


def if_not_exists(ddl: str) -> str:
    """Rewrite ``CREATE TABLE`` to ``CREATE TABLE IF NOT EXISTS``.

    Statements that already carry the clause are left alone.
    """
    return re.sub(
        r"\bCREATE TABLE\b(?!\s+IF\s+NOT\s+EXISTS)",
        "CREATE TABLE IF NOT EXISTS",
        ddl,
    )
