"""Tests for CREATE TABLE parsing."""

import pytest

from schema_studio.dialects import Dialect
from schema_studio.parsers.ddl import detect_dialect, parse_ddl, parse_ddl_schema

USERS_DDL = """
-- application users
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name VARCHAR(255) NOT NULL,
    email TEXT DEFAULT 'none'
);
"""


class TestDetectDialect:
    """detect_dialect."""

    @pytest.mark.parametrize(
        "sql,expected",
        [
            ("id INTEGER PRIMARY KEY AUTOINCREMENT", Dialect.SQLITE),
            ("id SERIAL PRIMARY KEY", Dialect.POSTGRES),
            ("data BYTEA", Dialect.POSTGRES),
            ("DEFAULT 'x'::text", Dialect.POSTGRES),
            ("id INT AUTO_INCREMENT", Dialect.MYSQL),
            (") ENGINE=InnoDB", Dialect.MYSQL),
            ("id INTEGER", Dialect.SQLITE),
        ],
    )
    def test_detects(self, sql: str, expected: Dialect) -> None:
        assert detect_dialect(sql) is expected


class TestColumns:
    """Column definitions."""

    def test_columns_in_declaration_order(self) -> None:
        """Every column is produced, in the order written."""
        tables = parse_ddl(USERS_DDL)
        assert len(tables) == 1
        assert tables[0].name == "users"
        assert tables[0].column_names == ["id", "name", "email"]

    def test_inline_primary_key(self) -> None:
        table = parse_ddl(USERS_DDL)[0]
        id_col = table.get_column("id")
        assert id_col.is_primary_key
        assert not id_col.is_nullable
        assert table.primary_keys == ("id",)

    def test_type_kept_verbatim(self) -> None:
        table = parse_ddl(USERS_DDL)[0]
        assert table.get_column("name").type == "VARCHAR(255)"
        assert not table.get_column("name").is_nullable

    def test_string_default_unquoted(self) -> None:
        table = parse_ddl(USERS_DDL)[0]
        assert table.get_column("email").default == "none"
        assert table.get_column("email").is_nullable

    def test_numeric_default_stops_at_modifier(self) -> None:
        table = parse_ddl("CREATE TABLE t (n INTEGER DEFAULT 0 NOT NULL)")[0]
        col = table.get_column("n")
        assert col.default == "0"
        assert not col.is_nullable

    def test_function_default(self) -> None:
        table = parse_ddl("CREATE TABLE t (created_at TIMESTAMP DEFAULT now())", "postgres")[0]
        assert table.get_column("created_at").default == "now()"

    def test_multiword_types(self) -> None:
        sql = """
        CREATE TABLE measurements (
            value DOUBLE PRECISION NOT NULL,
            taken_at TIMESTAMP WITH TIME ZONE,
            label CHARACTER VARYING(40)
        )
        """
        table = parse_ddl(sql, Dialect.POSTGRES)[0]
        assert table.get_column("value").type == "DOUBLE PRECISION"
        assert table.get_column("taken_at").type == "TIMESTAMP WITH TIME ZONE"
        assert table.get_column("label").type == "CHARACTER VARYING(40)"

    def test_serial_implies_primary_key(self) -> None:
        table = parse_ddl("CREATE TABLE t (id SERIAL, name TEXT)")[0]
        assert table.get_column("id").is_primary_key
        assert table.primary_keys == ("id",)

    def test_comments_ignored(self) -> None:
        sql = "CREATE TABLE a (id INTEGER /* key */ PRIMARY KEY -- trailing\n)"
        table = parse_ddl(sql)[0]
        assert table.primary_keys == ("id",)


class TestTableConstraints:
    """Table-level PRIMARY KEY / FOREIGN KEY and ignored constraints."""

    def test_composite_primary_key(self) -> None:
        sql = "CREATE TABLE post_tags (post_id INTEGER, tag_id INTEGER, PRIMARY KEY (post_id, tag_id))"
        table = parse_ddl(sql)[0]
        assert table.primary_keys == ("post_id", "tag_id")
        assert all(col.is_primary_key and not col.is_nullable for col in table.columns)

    def test_declared_key_order_kept(self) -> None:
        table = parse_ddl("CREATE TABLE t (a INTEGER, b INTEGER, PRIMARY KEY (b, a))")[0]
        assert table.primary_keys == ("b", "a")

    def test_declared_key_overrides_column_flag(self) -> None:
        table = parse_ddl("CREATE TABLE t (a INTEGER PRIMARY KEY, b INTEGER, PRIMARY KEY (b))")[0]
        assert not table.get_column("a").is_primary_key
        assert table.get_column("b").is_primary_key
        assert table.primary_keys == ("b",)

    def test_foreign_key_constraint(self) -> None:
        sql = """
        CREATE TABLE posts (
            id INTEGER PRIMARY KEY,
            author_id INTEGER NOT NULL,
            FOREIGN KEY (author_id) REFERENCES users (id) ON DELETE CASCADE
        )
        """
        col = parse_ddl(sql)[0].get_column("author_id")
        assert col.is_foreign_key
        assert col.foreign_table == "users"
        assert col.foreign_key == "id"
        assert not col.is_nullable

    def test_inline_references(self) -> None:
        table = parse_ddl("CREATE TABLE posts (user_id INTEGER REFERENCES users(id))")[0]
        col = table.get_column("user_id")
        assert (col.foreign_table, col.foreign_key) == ("users", "id")
        assert col.type == "INTEGER"

    def test_ignored_constraints(self) -> None:
        sql = """
        CREATE TABLE t (
            id INTEGER,
            email TEXT,
            UNIQUE (email),
            CONSTRAINT positive CHECK (id > 0),
            INDEX idx_email (email)
        )
        """
        assert parse_ddl(sql)[0].column_names == ["id", "email"]


class TestStatements:
    """Statement-level behavior."""

    def test_two_statements(self) -> None:
        sql = "CREATE TABLE a (x TEXT); CREATE TABLE b (y INTEGER);"
        assert [t.name for t in parse_ddl(sql)] == ["a", "b"]

    def test_semicolon_inside_literal_and_type_params(self) -> None:
        sql = "CREATE TABLE a (x TEXT DEFAULT 'a;b'); CREATE TABLE b (y NUMERIC(10,2));"
        a, b = parse_ddl(sql)
        assert a.get_column("x").default == "a;b"
        assert b.get_column("y").type == "NUMERIC(10,2)"

    def test_if_not_exists_and_schema_qualified_name(self) -> None:
        table = parse_ddl("CREATE TABLE IF NOT EXISTS public.orders (id SERIAL)")[0]
        assert table.name == "orders"

    def test_other_statements_skipped(self) -> None:
        sql = "CREATE INDEX idx ON users (name); INSERT INTO users VALUES (1);"
        assert parse_ddl(sql) == []

    def test_unparseable_table_skipped(self) -> None:
        """A CREATE TABLE without a column list does not stop the script."""
        tables = parse_ddl("CREATE TABLE broken; CREATE TABLE ok (id INTEGER)")
        assert [t.name for t in tables] == ["ok"]

    def test_empty_script(self) -> None:
        assert parse_ddl("") == []


class TestMySQL:
    """MySQL quoting."""

    SQL = """
    CREATE TABLE `users` (
        `id` INT NOT NULL AUTO_INCREMENT,
        `bio` TEXT DEFAULT "hi",
        PRIMARY KEY (`id`)
    ) ENGINE=InnoDB;
    """

    def test_backtick_identifiers(self) -> None:
        table = parse_ddl(self.SQL)[0]
        assert table.name == "users"
        assert table.column_names == ["id", "bio"]
        assert table.primary_keys == ("id",)

    def test_double_quotes_are_strings(self) -> None:
        table = parse_ddl(self.SQL)[0]
        assert table.get_column("bio").default == "hi"

    def test_schema_driver(self) -> None:
        assert parse_ddl_schema(self.SQL).driver == "mysql"
        assert parse_ddl_schema(self.SQL, "sqlite").driver == "sqlite"
