"""Pydantic models for the canonical schema.

This module contains the schema-domain models every parser produces and
every emitter consumes:
- Canonical models: ColumnInfo, RelationInfo, TableInfo, SchemaInfo
- Validation models: ColumnDiff, SchemaValidationResult

All canonical models are frozen and hold tuples, so a published SchemaInfo
snapshot is never mutated in place.  Producers build new instances
(``model_copy(update=...)``) instead.
"""

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ============================================================================
# Canonical Schema Models
# ============================================================================


class RelationKind(str, Enum):
    """Kind of association between two tables."""

    OWNED_TO_ONE = "has_one"  # FK lives on the target table
    OWNING_TO_ONE = "belongs_to"  # FK lives on this table
    TO_MANY = "has_many"
    TO_MANY_THROUGH = "many_to_many"  # via a join table


class ColumnInfo(BaseModel):
    """A table column.

    ``type`` is the dialect-native type string exactly as the source gave
    it (``VARCHAR(255)``, ``character varying``); it is never normalized.

    Example:
        >>> col = ColumnInfo(name="author_id", type="INTEGER",
        ...                  is_foreign_key=True, foreign_table="users",
        ...                  foreign_key="id")
        >>> col.is_nullable
        True
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = ""
    type_hint: str | None = None  # declared language-level type, if known
    is_primary_key: bool = False
    is_nullable: bool = True
    is_foreign_key: bool = False
    foreign_table: str | None = None
    foreign_key: str | None = None
    default: str | None = None  # raw literal

    @model_validator(mode="after")
    def _check_foreign_key(self) -> "ColumnInfo":
        if self.is_foreign_key != bool(self.foreign_table):
            raise ValueError(
                f"Column '{self.name}': is_foreign_key requires foreign_table "
                f"(and foreign_table requires is_foreign_key)"
            )
        return self

    def as_foreign_key(self, table: str, column: str | None) -> "ColumnInfo":
        """Return a copy marked as referencing ``table.column``."""
        return self.model_copy(
            update={
                "is_foreign_key": True,
                "foreign_table": table,
                "foreign_key": column,
            }
        )

    def as_primary_key(self) -> "ColumnInfo":
        """Return a copy flagged primary and not nullable."""
        return self.model_copy(update={"is_primary_key": True, "is_nullable": False})


class RelationInfo(BaseModel):
    """A named association from one table to another."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: RelationKind
    table: str  # target table
    foreign_key: str = ""
    reference_key: str = ""
    join_table: str | None = None

    @model_validator(mode="after")
    def _check_join_table(self) -> "RelationInfo":
        through = self.kind is RelationKind.TO_MANY_THROUGH
        if through != bool(self.join_table):
            raise ValueError(
                f"Relation '{self.name}': join_table is required for "
                f"{RelationKind.TO_MANY_THROUGH.value} and only allowed there"
            )
        return self


class TableInfo(BaseModel):
    """A table: ordered columns, relations and primary-key names.

    ``row_count`` is advisory and not part of the structural contract.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    columns: tuple[ColumnInfo, ...] = ()
    relations: tuple[RelationInfo, ...] = ()
    primary_keys: tuple[str, ...] = ()
    row_count: int = 0

    @property
    def column_names(self) -> list[str]:
        """Column names in declaration order."""
        return [col.name for col in self.columns]

    def get_column(self, name: str) -> ColumnInfo | None:
        """Look up a column by name, exact match first, then case-insensitive."""
        for col in self.columns:
            if col.name == name:
                return col
        folded = name.casefold()
        for col in self.columns:
            if col.name.casefold() == folded:
                return col
        return None

    def has_column(self, name: str) -> bool:
        return self.get_column(name) is not None

    def key_columns(self) -> list[str]:
        """Primary-key names, falling back to flagged columns."""
        if self.primary_keys:
            return list(self.primary_keys)
        return [col.name for col in self.columns if col.is_primary_key]


class SchemaInfo(BaseModel):
    """A complete schema snapshot.

    Produced wholesale by a refresh; a newer snapshot replaces an older one
    rather than patching it.
    """

    model_config = ConfigDict(frozen=True)

    tables: tuple[TableInfo, ...] = ()
    driver: str = ""
    database: str = ""

    @property
    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]

    def get_table(self, name: str) -> TableInfo | None:
        """Look up a table by name (case-insensitive)."""
        folded = name.casefold()
        for table in self.tables:
            if table.name.casefold() == folded:
                return table
        return None

    def has_table(self, name: str) -> bool:
        return self.get_table(name) is not None


def primary_key_order(
    columns: Iterable[ColumnInfo],
    declared: Iterable[str] | None = None,
) -> tuple[str, ...]:
    """Ordered primary-key names for a table.

    Columns flagged ``is_primary_key`` in declaration order, unless an
    explicit key declaration (``PRIMARY KEY (b, a)``) supplies an order.
    Declared names are matched case-insensitively and reported with the
    column's own spelling.
    """
    columns = list(columns)
    if declared:
        by_name = {col.name.casefold(): col.name for col in columns}
        ordered = [by_name.get(name.casefold(), name) for name in declared]
        return tuple(dict.fromkeys(ordered))
    return tuple(col.name for col in columns if col.is_primary_key)


# ============================================================================
# Validation Result Models
# ============================================================================


class ColumnDiff(BaseModel):
    """A missing column detected during validation."""

    table: str
    column: str
    message: str = ""


class SchemaValidationResult(BaseModel):
    """Result of schema validation.

    Example:
        >>> result = SchemaValidationResult(valid=True)
        >>> result.error_count
        0
        >>> result.format_report()
        'Schema valid'
    """

    valid: bool
    missing_tables: list[str] = Field(default_factory=list)
    missing_columns: list[ColumnDiff] = Field(default_factory=list)
    extra_tables: list[str] = Field(default_factory=list)  # Warning only

    @property
    def error_count(self) -> int:
        """Count of critical errors (missing tables + missing columns)."""
        return len(self.missing_tables) + len(self.missing_columns)

    def format_report(self) -> str:
        """Format validation result as human-readable report."""
        if self.valid:
            return "Schema valid"

        lines = ["Schema validation failed:"]

        if self.missing_tables:
            lines.append(f"\n  Missing tables ({len(self.missing_tables)}):")
            for table in self.missing_tables:
                lines.append(f"    - {table}")

        if self.missing_columns:
            lines.append(f"\n  Missing columns ({len(self.missing_columns)}):")
            for diff in self.missing_columns:
                lines.append(f"    - {diff.table}.{diff.column}")

        if self.extra_tables:
            lines.append(f"\n  Extra tables (warning): {', '.join(self.extra_tables)}")

        return "\n".join(lines)
