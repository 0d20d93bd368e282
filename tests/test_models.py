"""Tests for the canonical schema models."""

import pytest
from pydantic import ValidationError

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


def _users() -> TableInfo:
    columns = [
        ColumnInfo(name="id", type="INTEGER", is_primary_key=True, is_nullable=False),
        ColumnInfo(name="Email", type="TEXT"),
    ]
    return TableInfo(name="users", columns=columns, primary_keys=["id"])


class TestColumnInfo:
    """ColumnInfo defaults, invariants and copy helpers."""

    def test_defaults(self) -> None:
        col = ColumnInfo(name="name")
        assert col.type == ""
        assert col.is_nullable is True
        assert col.is_primary_key is False
        assert col.is_foreign_key is False
        assert col.default is None

    def test_foreign_key_requires_table(self) -> None:
        """is_foreign_key without foreign_table is rejected."""
        with pytest.raises(ValidationError):
            ColumnInfo(name="author_id", is_foreign_key=True)

    def test_foreign_table_requires_flag(self) -> None:
        """foreign_table without is_foreign_key is rejected."""
        with pytest.raises(ValidationError):
            ColumnInfo(name="author_id", foreign_table="users")

    def test_as_foreign_key(self) -> None:
        col = ColumnInfo(name="author_id", type="INTEGER")
        fk = col.as_foreign_key("users", "id")
        assert fk.is_foreign_key is True
        assert fk.foreign_table == "users"
        assert fk.foreign_key == "id"
        assert col.is_foreign_key is False

    def test_as_primary_key_is_not_nullable(self) -> None:
        pk = ColumnInfo(name="id").as_primary_key()
        assert pk.is_primary_key is True
        assert pk.is_nullable is False

    def test_frozen(self) -> None:
        """Published columns cannot be mutated in place."""
        col = ColumnInfo(name="id")
        with pytest.raises(ValidationError):
            col.name = "other"


class TestRelationInfo:
    """RelationInfo join-table invariant."""

    def test_many_to_many_requires_join_table(self) -> None:
        with pytest.raises(ValidationError):
            RelationInfo(name="Tags", kind=RelationKind.TO_MANY_THROUGH, table="tags")

    def test_join_table_only_for_many_to_many(self) -> None:
        with pytest.raises(ValidationError):
            RelationInfo(
                name="Posts",
                kind=RelationKind.TO_MANY,
                table="posts",
                join_table="post_tags",
            )

    def test_valid_many_to_many(self) -> None:
        rel = RelationInfo(
            name="Tags",
            kind=RelationKind.TO_MANY_THROUGH,
            table="tags",
            join_table="post_tags",
        )
        assert rel.kind.value == "many_to_many"

    def test_kind_values(self) -> None:
        assert RelationKind.OWNED_TO_ONE.value == "has_one"
        assert RelationKind.OWNING_TO_ONE.value == "belongs_to"
        assert RelationKind.TO_MANY.value == "has_many"


class TestTableInfo:
    """TableInfo lookups."""

    def test_columns_are_tuples(self) -> None:
        assert isinstance(_users().columns, tuple)
        assert _users().primary_keys == ("id",)

    def test_column_names_keep_order(self) -> None:
        assert _users().column_names == ["id", "Email"]

    def test_get_column_exact_then_case_insensitive(self) -> None:
        table = _users()
        assert table.get_column("Email").name == "Email"
        assert table.get_column("email").name == "Email"
        assert table.get_column("missing") is None
        assert table.has_column("ID")

    def test_key_columns_prefers_explicit_list(self) -> None:
        table = TableInfo(
            name="t",
            columns=[ColumnInfo(name="a", is_primary_key=True)],
            primary_keys=["b"],
        )
        assert table.key_columns() == ["b"]

    def test_key_columns_falls_back_to_flags(self) -> None:
        table = TableInfo(name="t", columns=[ColumnInfo(name="a", is_primary_key=True)])
        assert table.key_columns() == ["a"]


class TestSchemaInfo:
    """SchemaInfo lookups."""

    def test_get_table_is_case_insensitive(self) -> None:
        schema = SchemaInfo(tables=[_users()], driver="sqlite")
        assert schema.get_table("USERS").name == "users"
        assert schema.has_table("users")
        assert not schema.has_table("posts")
        assert schema.table_names == ["users"]


class TestPrimaryKeyOrder:
    """primary_key_order."""

    def test_flagged_columns_in_declaration_order(self) -> None:
        columns = [
            ColumnInfo(name="b", is_primary_key=True),
            ColumnInfo(name="x"),
            ColumnInfo(name="a", is_primary_key=True),
        ]
        assert primary_key_order(columns) == ("b", "a")

    def test_declared_order_wins(self) -> None:
        columns = [ColumnInfo(name="a"), ColumnInfo(name="b")]
        assert primary_key_order(columns, ["B", "a"]) == ("b", "a")

    def test_declared_duplicates_collapse(self) -> None:
        columns = [ColumnInfo(name="a")]
        assert primary_key_order(columns, ["a", "A"]) == ("a",)


class TestSchemaValidationResult:
    """format_report / error_count."""

    def test_valid_report(self) -> None:
        result = SchemaValidationResult(valid=True)
        assert result.format_report() == "Schema valid"
        assert result.error_count == 0

    def test_invalid_report(self) -> None:
        result = SchemaValidationResult(
            valid=False,
            missing_tables=["orders"],
            missing_columns=[ColumnDiff(table="users", column="email")],
            extra_tables=["legacy"],
        )
        report = result.format_report()
        assert result.error_count == 2
        assert "Missing tables (1)" in report
        assert "- orders" in report
        assert "- users.email" in report
        assert "Extra tables (warning): legacy" in report
