"""Tests for live catalog introspection.

Runs against real sqlite databases; postgres and mysql share the same
table assembly and are covered through the URL and dialect helpers.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from schema_studio.dialects import Dialect
from schema_studio.errors import UnsupportedDialectError
from schema_studio.schema.introspector import SchemaIntrospector, normalize_url

STATEMENTS = [
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY,
        name VARCHAR(100) NOT NULL,
        status TEXT DEFAULT 'active'
    )
    """,
    """
    CREATE TABLE posts (
        id INTEGER PRIMARY KEY,
        author_id INTEGER NOT NULL REFERENCES users(id),
        title TEXT
    )
    """,
    """
    CREATE TABLE post_tags (
        tag_id INTEGER,
        post_id INTEGER,
        PRIMARY KEY (post_id, tag_id)
    )
    """,
    "CREATE TABLE schema_migrations (version TEXT)",
    "INSERT INTO users (id, name) VALUES (1, 'ada'), (2, 'grace')",
]


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """A sqlite database file holding the sample schema."""
    url = f"sqlite:///{tmp_path / 'app.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        for statement in STATEMENTS:
            conn.exec_driver_sql(statement)
    engine.dispose()
    return url


# ============================================================
# Test: URL handling
# ============================================================


class TestNormalizeUrl:
    """normalize_url."""

    def test_default_drivers(self) -> None:
        assert normalize_url("postgres://u:p@localhost/app").drivername == "postgresql+psycopg"
        assert normalize_url("postgresql://u:p@localhost/app").drivername == "postgresql+psycopg"
        assert normalize_url("mysql://u:p@localhost/app").drivername == "mysql+pymysql"

    def test_explicit_driver_kept(self) -> None:
        url = normalize_url("postgresql+psycopg2://u:p@localhost/app")
        assert url.drivername == "postgresql+psycopg2"

    def test_sqlite_untouched(self) -> None:
        assert normalize_url("sqlite:///app.db").drivername == "sqlite"


# ============================================================
# Test: Connection lifecycle
# ============================================================


class TestConnection:
    """Context manager and connection ownership."""

    def test_not_connected(self) -> None:
        """Queries outside a with block fail clearly."""
        introspector = SchemaIntrospector("sqlite://")
        with pytest.raises(RuntimeError, match="not connected"):
            introspector.list_tables()

    def test_no_url(self) -> None:
        with pytest.raises(RuntimeError):
            with SchemaIntrospector():
                pass

    def test_closes_own_connection(self, database_url: str) -> None:
        introspector = SchemaIntrospector(database_url)
        with introspector:
            assert introspector.dialect is Dialect.SQLITE
        with pytest.raises(RuntimeError):
            introspector.connection

    def test_from_connection_leaves_connection_open(self, database_url: str) -> None:
        engine = create_engine(database_url)
        with engine.connect() as conn:
            with SchemaIntrospector.from_connection(conn) as introspector:
                assert "users" in introspector.list_tables()
            assert not conn.closed
        engine.dispose()


# ============================================================
# Test: Structure
# ============================================================


class TestIntrospectSqlite:
    """Catalog reads against sqlite."""

    def test_list_tables_sorted_and_filtered(self, database_url: str) -> None:
        with SchemaIntrospector(database_url) as introspector:
            assert introspector.list_tables() == ["post_tags", "posts", "users"]

    def test_custom_exclusions(self, database_url: str) -> None:
        with SchemaIntrospector(database_url, excluded_tables={"posts"}) as introspector:
            assert introspector.list_tables() == ["post_tags", "schema_migrations", "users"]

    def test_columns(self, database_url: str) -> None:
        with SchemaIntrospector(database_url) as introspector:
            users = introspector.describe_table("users")
        assert users.column_names == ["id", "name", "status"]
        assert users.get_column("name").type == "VARCHAR(100)"
        assert not users.get_column("name").is_nullable
        assert users.get_column("status").is_nullable
        assert users.get_column("status").default == "'active'"

    def test_primary_key(self, database_url: str) -> None:
        with SchemaIntrospector(database_url) as introspector:
            users = introspector.describe_table("users")
        assert users.primary_keys == ("id",)
        assert users.get_column("id").is_primary_key
        assert not users.get_column("id").is_nullable

    def test_composite_primary_key_in_key_order(self, database_url: str) -> None:
        with SchemaIntrospector(database_url) as introspector:
            post_tags = introspector.describe_table("post_tags")
        assert post_tags.column_names == ["tag_id", "post_id"]
        assert post_tags.primary_keys == ("post_id", "tag_id")

    def test_foreign_key(self, database_url: str) -> None:
        with SchemaIntrospector(database_url) as introspector:
            posts = introspector.describe_table("posts")
        author_id = posts.get_column("author_id")
        assert author_id.is_foreign_key
        assert (author_id.foreign_table, author_id.foreign_key) == ("users", "id")
        assert not posts.get_column("title").is_foreign_key

    def test_introspect_schema(self, database_url: str) -> None:
        with SchemaIntrospector(database_url) as introspector:
            schema = introspector.introspect_schema()
        assert schema.driver == "sqlite"
        assert schema.database.endswith("app.db")
        assert schema.table_names == ["post_tags", "posts", "users"]
        assert schema.get_table("users").row_count == 2
        assert schema.get_table("posts").row_count == 0

    def test_failing_table_skipped(self, database_url: str) -> None:
        """A table whose catalog query fails does not abort the snapshot."""
        with SchemaIntrospector(database_url) as introspector:
            describe = introspector.describe_table

            def flaky(name: str):
                if name == "posts":
                    raise OperationalError("SELECT", {}, Exception("catalog read failed"))
                return describe(name)

            with patch.object(introspector, "describe_table", side_effect=flaky):
                tables = introspector.introspect()
        assert [t.name for t in tables] == ["post_tags", "users"]


# ============================================================
# Test: Row counts
# ============================================================


class TestRowCounts:
    """count_rows / row_counts."""

    def test_row_counts(self, database_url: str) -> None:
        with SchemaIntrospector(database_url) as introspector:
            assert introspector.row_counts() == {"post_tags": 0, "posts": 0, "users": 2}

    def test_missing_table_counts_zero(self, database_url: str) -> None:
        with SchemaIntrospector(database_url) as introspector:
            assert introspector.count_rows("no_such_table") == 0
            assert introspector.count_rows("users") == 2


# ============================================================
# Test: Unsupported backends
# ============================================================


class TestUnsupportedDialect:
    """Backends other than sqlite, postgres and mysql."""

    def test_catalog_queries_refused(self) -> None:
        conn = MagicMock()
        conn.dialect.name = "mssql"
        introspector = SchemaIntrospector.from_connection(conn)
        with pytest.raises(UnsupportedDialectError) as exc_info:
            introspector.list_tables()
        assert exc_info.value.dialect == "mssql"
        conn.execute.assert_not_called()
