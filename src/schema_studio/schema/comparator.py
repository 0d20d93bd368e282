"""Schema comparison using set operations.

Compares the tables and columns an expected schema declares against an
actual schema, e.g. models or a DDL file against the live database.
Pure logic -- no I/O, no database connections.

Usage:
    from schema_studio.parsers import parse_ddl_schema
    from schema_studio.schema.comparator import validate_schema
    from schema_studio.schema.introspector import SchemaIntrospector

    with SchemaIntrospector(database_url) as introspector:
        actual = introspector.introspect_schema()

    expected = parse_ddl_schema(open("schema.sql").read())

    result = validate_schema(actual, expected)
    if result.valid:
        print("Schema is valid")
    else:
        print(result.format_report())
"""

from schema_studio.schema.models import ColumnDiff, SchemaInfo, SchemaValidationResult


def _column_sets(schema: SchemaInfo) -> dict[str, tuple[str, set[str]]]:
    """Folded table name -> (spelled name, folded column names)."""
    return {
        table.name.casefold(): (table.name, {name.casefold() for name in table.column_names})
        for table in schema.tables
    }


def validate_schema(actual: SchemaInfo, expected: SchemaInfo) -> SchemaValidationResult:
    """Validate an actual schema against an expected one.

    Performs pure set operations, comparing names case-insensitively, to find:
    - Missing tables: Tables in *expected* but not in *actual*
    - Missing columns: Columns of *expected* tables absent from the actual table
    - Extra tables: Tables in *actual* but not in *expected*
      (warning only -- does not affect ``valid`` status)

    Names are reported with the spelling of the schema they came from.

    Examples:
        >>> from schema_studio.schema.models import ColumnInfo, TableInfo
        >>> def schema(*tables):
        ...     return SchemaInfo(tables=[
        ...         TableInfo(name=name, columns=[ColumnInfo(name=c) for c in cols])
        ...         for name, cols in tables
        ...     ])
        >>> validate_schema(schema(("users", ["id", "name"])),
        ...                 schema(("users", ["id", "name"]))).valid
        True
        >>> result = validate_schema(schema(("users", ["id"])),
        ...                          schema(("users", ["id", "name"])))
        >>> result.missing_columns[0].column
        'name'
    """
    actual_tables = _column_sets(actual)
    expected_tables = _column_sets(expected)

    # Tables in expected but not in actual
    missing_tables: list[str] = sorted(
        expected_tables[key][0] for key in expected_tables.keys() - actual_tables.keys()
    )

    # Tables in actual but not in expected (warning only)
    extra_tables: list[str] = sorted(
        actual_tables[key][0] for key in actual_tables.keys() - expected_tables.keys()
    )

    # Columns missing from tables that exist on both sides
    missing_columns: list[ColumnDiff] = []
    for key in sorted(expected_tables.keys() & actual_tables.keys()):
        table_name = expected_tables[key][0]
        expected_table = expected.get_table(table_name)
        actual_cols = actual_tables[key][1]

        for col_name in expected_table.column_names:
            if col_name.casefold() in actual_cols:
                continue
            missing_columns.append(
                ColumnDiff(
                    table=table_name,
                    column=col_name,
                    message=f"Column '{col_name}' missing from table '{table_name}'",
                )
            )

    is_valid: bool = len(missing_tables) == 0 and len(missing_columns) == 0

    return SchemaValidationResult(
        valid=is_valid,
        missing_tables=missing_tables,
        missing_columns=missing_columns,
        extra_tables=extra_tables,
    )
