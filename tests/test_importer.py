"""Tests for format-dispatching schema import and export."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from schema_studio.errors import EmptySchemaError, UnsupportedFormatError
from schema_studio.importer import (
    detect_format,
    dump_schema,
    load_schema,
    load_schema_file,
    load_tables,
)

DDL = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL
);
CREATE TABLE posts (
    id INTEGER PRIMARY KEY,
    author_id INTEGER REFERENCES users(id)
);
"""

DSL = """
Table users {
  id integer [pk]
}
"""

MODELS = """
type User struct {
	ID    uint   `gorm:"primaryKey"`
	Posts []Post `gorm:"foreignKey:AuthorID"`
}

type Post struct {
	ID       uint `gorm:"primaryKey"`
	AuthorID uint
}
"""


# ============================================================
# Test: Format detection
# ============================================================


class TestDetectFormat:
    """detect_format."""

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("schema.sql", "ddl"),
            ("schema.SQL", "ddl"),
            ("schema.dbml", "dsl"),
            ("models.go", "models"),
            ("dump.json", "json"),
            ("dump.yaml", "yaml"),
            ("dump.yml", "yaml"),
        ],
    )
    def test_known_extensions(self, filename: str, expected: str) -> None:
        assert detect_format(filename) == expected

    def test_unknown_extension(self) -> None:
        with pytest.raises(UnsupportedFormatError, match="Unsupported file type"):
            detect_format("schema.txt")

    def test_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            detect_format("README")


# ============================================================
# Test: Loading
# ============================================================


class TestLoadSchema:
    """load_schema / load_tables."""

    def test_ddl_detects_driver(self) -> None:
        schema = load_schema(DDL, "ddl")
        assert schema.driver == "sqlite"
        assert schema.table_names == ["users", "posts"]

    def test_ddl_explicit_dialect(self) -> None:
        assert load_schema(DDL, "ddl", dialect="postgresql").driver == "postgres"

    def test_dsl_driver(self) -> None:
        assert load_schema(DSL, "dsl").driver == ""
        assert load_schema(DSL, "dsl", dialect="mysql").driver == "mysql"

    def test_models(self) -> None:
        schema = load_schema(MODELS, "models", dialect="postgres")
        assert schema.driver == "postgres"
        assert schema.get_table("users").get_column("id").type == "BIGINT"
        assert schema.get_table("posts").get_column("author_id").is_foreign_key

    def test_load_tables(self) -> None:
        assert [t.name for t in load_tables(DDL, "ddl")] == ["users", "posts"]

    def test_no_tables(self) -> None:
        with pytest.raises(EmptySchemaError, match="ddl"):
            load_schema("CREATE INDEX idx ON users (email);", "ddl")

    def test_unknown_format(self) -> None:
        with pytest.raises(UnsupportedFormatError):
            load_schema(DDL, "xml")

    def test_table_list_dump(self) -> None:
        text = "- name: users\n  columns:\n    - name: id\n      type: INTEGER\n"
        schema = load_schema(text, "yaml")
        assert schema.table_names == ["users"]
        assert schema.tables[0].column_names == ["id"]

    def test_invalid_dump(self) -> None:
        """A dump that breaks a model invariant is rejected."""
        text = '{"tables": [{"name": "t", "columns": [{"name": "a", "is_foreign_key": true}]}]}'
        with pytest.raises(ValidationError):
            load_schema(text, "json")

    def test_empty_dump(self) -> None:
        with pytest.raises(EmptySchemaError):
            load_schema("{}", "json")


class TestDumpSchema:
    """dump_schema and loading a dump back."""

    @pytest.mark.parametrize("fmt", ["json", "yaml"])
    def test_dump_loads_back(self, fmt: str) -> None:
        schema = load_schema(MODELS, "models")
        assert load_schema(dump_schema(schema, fmt), fmt) == schema

    def test_json_shape(self) -> None:
        text = dump_schema(load_schema(DSL, "dsl"), "json")
        assert '"name": "users"' in text

    def test_unknown_dump_format(self) -> None:
        with pytest.raises(UnsupportedFormatError):
            dump_schema(load_schema(DSL, "dsl"), "toml")


class TestLoadSchemaFile:
    """load_schema_file."""

    def test_reads_by_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.dbml"
        path.write_text(DSL, encoding="utf-8")
        assert load_schema_file(path).table_names == ["users"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_schema_file(tmp_path / "missing.sql")
