"""Merging of model-derived and catalog-derived tables.

A table described both by declarative models and by the live catalog (or
a DDL script) is merged so that the model side stays authoritative for
structure while the catalog fills the gaps it knows about:

- relations and primary keys come from the model
- an empty model column type is backfilled from the catalog column
- catalog foreign-key targets are adopted for columns the model left
  unmarked
- catalog-only columns are dropped (``MergePolicy.MODEL_AUTHORITATIVE``)
  or appended (``MergePolicy.UNION``)

Pure logic, no I/O.  Merging never fails: a table missing on either side
passes through unchanged.

Usage:
    from schema_studio.schema.merge import build_schema

    schema = build_schema(catalog_tables, model_tables, driver="sqlite")
"""

from collections.abc import Iterable, Mapping
from enum import Enum

from schema_studio.schema.models import SchemaInfo, TableInfo


class MergePolicy(str, Enum):
    """What happens to columns only the catalog knows about."""

    MODEL_AUTHORITATIVE = "model"  # dropped
    UNION = "union"  # appended after the model columns


def merge_table(
    model: TableInfo,
    catalog: TableInfo,
    policy: MergePolicy = MergePolicy.MODEL_AUTHORITATIVE,
) -> TableInfo:
    """Merge one table known to both the models and the catalog.

    Examples:
        >>> from schema_studio.schema.models import ColumnInfo
        >>> model = TableInfo(name="users", columns=[ColumnInfo(name="email")])
        >>> catalog = TableInfo(
        ...     name="users",
        ...     columns=[
        ...         ColumnInfo(name="email", type="TEXT"),
        ...         ColumnInfo(name="legacy_col", type="TEXT"),
        ...     ],
        ... )
        >>> merged = merge_table(model, catalog)
        >>> [(c.name, c.type) for c in merged.columns]
        [('email', 'TEXT')]
    """
    catalog_columns = {col.name: col for col in catalog.columns}

    columns = []
    for col in model.columns:
        db_col = catalog_columns.get(col.name)
        if db_col is not None:
            if not col.type:
                col = col.model_copy(update={"type": db_col.type})
            if not col.is_foreign_key and db_col.is_foreign_key:
                col = col.as_foreign_key(db_col.foreign_table, db_col.foreign_key)
        columns.append(col)

    if policy is MergePolicy.UNION:
        claimed = {col.name for col in model.columns}
        columns.extend(col for col in catalog.columns if col.name not in claimed)

    return TableInfo(
        name=model.name,
        columns=columns,
        relations=model.relations,
        primary_keys=model.primary_keys,
        row_count=catalog.row_count,
    )


def merge_tables(
    model_tables: Iterable[TableInfo],
    catalog_tables: Iterable[TableInfo],
    policy: MergePolicy = MergePolicy.MODEL_AUTHORITATIVE,
) -> list[TableInfo]:
    """Merge two table sets.

    Catalog tables come first in catalog order, merged with their model
    counterpart when one exists (names compared case-insensitively); model
    tables absent from the catalog follow in model order.
    """
    models = {table.name.casefold(): table for table in model_tables}

    merged: list[TableInfo] = []
    seen: set[str] = set()
    for db_table in catalog_tables:
        key = db_table.name.casefold()
        model = models.get(key)
        merged.append(db_table if model is None else merge_table(model, db_table, policy))
        seen.add(key)

    merged.extend(table for key, table in models.items() if key not in seen)
    return merged


def build_schema(
    catalog_tables: Iterable[TableInfo],
    model_tables: Iterable[TableInfo],
    driver: str,
    row_counts: Mapping[str, int] | None = None,
    policy: MergePolicy = MergePolicy.MODEL_AUTHORITATIVE,
    database: str = "",
) -> SchemaInfo:
    """Produce a fresh schema snapshot from both sources.

    Args:
        catalog_tables: Tables from introspection or a DDL script.
        model_tables: Tables from declarative models.
        driver: Dialect tag stored on the snapshot.
        row_counts: Optional advisory row count per table name.
        policy: Catalog-only column policy.
        database: Optional database label.
    """
    tables = merge_tables(model_tables, catalog_tables, policy)
    if row_counts:
        tables = [
            table.model_copy(update={"row_count": row_counts[table.name]})
            if table.name in row_counts
            else table
            for table in tables
        ]
    return SchemaInfo(tables=tables, driver=driver, database=database)
