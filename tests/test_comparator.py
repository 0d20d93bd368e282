"""Tests for schema comparison."""

from schema_studio.schema.comparator import validate_schema
from schema_studio.schema.models import ColumnInfo, SchemaInfo, TableInfo


def _schema(**tables: list[str]) -> SchemaInfo:
    return SchemaInfo(
        tables=[
            TableInfo(name=name, columns=[ColumnInfo(name=col) for col in columns])
            for name, columns in tables.items()
        ]
    )


class TestValidateSchema:
    """validate_schema."""

    def test_identical_schemas_valid(self) -> None:
        schema = _schema(users=["id", "email"], posts=["id"])
        result = validate_schema(schema, schema)
        assert result.valid
        assert result.error_count == 0

    def test_missing_table(self) -> None:
        result = validate_schema(_schema(users=["id"]), _schema(users=["id"], posts=["id"]))
        assert not result.valid
        assert result.missing_tables == ["posts"]

    def test_missing_columns_in_expected_order(self) -> None:
        result = validate_schema(
            _schema(users=["id"]),
            _schema(users=["id", "name", "email"]),
        )
        assert [d.column for d in result.missing_columns] == ["name", "email"]
        assert result.missing_columns[0].table == "users"
        assert result.error_count == 2

    def test_extra_tables_are_warnings(self) -> None:
        result = validate_schema(_schema(users=["id"], zeta=[], audit=[]), _schema(users=["id"]))
        assert result.valid
        assert result.extra_tables == ["audit", "zeta"]

    def test_names_compared_case_insensitively(self) -> None:
        result = validate_schema(_schema(Users=["ID"]), _schema(users=["id"]))
        assert result.valid
        assert result.extra_tables == []

    def test_report_lists_problems(self) -> None:
        result = validate_schema(_schema(users=["id"]), _schema(users=["id", "name"], posts=[]))
        report = result.format_report()
        assert "posts" in report
        assert "users.name" in report
