"""Live database schema introspection.

This module queries a live database catalog to extract, per table:
- Column names, raw types, nullability and defaults
- Primary keys, in catalog key order
- Single-column foreign keys (target table and column)

Supported backends are sqlite (``sqlite_master`` and the ``pragma_*``
table-valued functions), postgres (``information_schema``) and mysql
(``information_schema`` including ``key_column_usage``).

Uses SQLAlchemy Core; postgres connections go through psycopg (v3) and
mysql connections through pymysql.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from schema_studio.dialects import Dialect
from schema_studio.naming import quote_ident
from schema_studio.schema.models import ColumnInfo, SchemaInfo, TableInfo, primary_key_order

logger = logging.getLogger(__name__)

# Driver used for each backend when a URL names none
_DEFAULT_DRIVERS = {
    "postgres": "postgresql+psycopg",
    "postgresql": "postgresql+psycopg",
    "mysql": "mysql+pymysql",
    "mariadb": "mariadb+pymysql",
}


def normalize_url(database_url: str | URL) -> URL:
    """Parse a database URL, filling in the default driver for its backend.

    Examples:
        >>> normalize_url("postgres://u:p@localhost/app").drivername
        'postgresql+psycopg'
        >>> normalize_url("sqlite:///app.db").drivername
        'sqlite'
    """
    url = make_url(database_url)
    driver = _DEFAULT_DRIVERS.get(url.drivername)
    if driver:
        url = url.set(drivername=driver)
    return url


class SchemaIntrospector:
    """Introspects a live database schema into canonical tables.

    Works on sqlite, postgres and mysql.  All queries are read-only and run
    sequentially on a single connection.

    Usage:
        with SchemaIntrospector(database_url) as introspector:
            # Full snapshot, row counts included
            schema = introspector.introspect_schema()

            # Or one table at a time
            users = introspector.describe_table("users")

        # Reuse a connection you already hold
        introspector = SchemaIntrospector.from_connection(conn)
        tables = introspector.introspect()
    """

    # Tables to exclude from introspection (system tables)
    EXCLUDED_TABLES = {
        "schema_migrations",
        "pg_stat_statements",
        "spatial_ref_sys",
    }

    def __init__(
        self,
        database_url: str | URL | None = None,
        excluded_tables: Iterable[str] | None = None,
        connect_timeout: int = 10,
        schema_name: str = "public",
    ):
        """Initialize with database connection URL.

        Args:
            database_url: SQLAlchemy database URL.  Postgres URLs without a
                driver use psycopg, mysql URLs use pymysql.
            excluded_tables: Table names to skip (default: ``EXCLUDED_TABLES``).
            connect_timeout: Seconds to wait for the connection.
            schema_name: Postgres schema to introspect.
        """
        self._database_url = normalize_url(database_url) if database_url else None
        self._connect_timeout = connect_timeout
        self._schema_name = schema_name
        self._engine: Engine | None = None
        self._conn: Connection | None = None
        if excluded_tables is None:
            excluded_tables = self.EXCLUDED_TABLES
        self.excluded_tables = set(excluded_tables)

    @classmethod
    def from_connection(
        cls,
        conn: Connection,
        excluded_tables: Iterable[str] | None = None,
        schema_name: str = "public",
    ) -> "SchemaIntrospector":
        """Wrap an already open connection; the caller keeps ownership."""
        introspector = cls(excluded_tables=excluded_tables, schema_name=schema_name)
        introspector._conn = conn
        return introspector

    def __enter__(self) -> "SchemaIntrospector":
        """Context manager entry - opens connection."""
        if self._conn is not None:
            return self
        if self._database_url is None:
            raise RuntimeError("No database URL or connection given")

        self._engine = create_engine(
            self._database_url, connect_args=self._connect_args()
        )
        self._conn = self._engine.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes the connection it opened."""
        if self._engine is None:
            return
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        self._engine.dispose()
        self._engine = None

    def _connect_args(self) -> dict[str, int]:
        if self._database_url.get_backend_name() == "sqlite":
            return {"timeout": self._connect_timeout}
        return {"connect_timeout": self._connect_timeout}

    @property
    def connection(self) -> Connection:
        if self._conn is None:
            raise RuntimeError("Introspector not connected. Use with statement.")
        return self._conn

    @property
    def dialect(self) -> Dialect:
        """Dialect of the connected database.

        Raises:
            UnsupportedDialectError: If the backend is not sqlite, postgres
                or mysql.
        """
        return Dialect.from_name(self.connection.dialect.name)

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def list_tables(self) -> list[str]:
        """Base-table names, sorted, without internal or excluded tables."""
        queries = {
            Dialect.SQLITE: """
                SELECT name
                FROM sqlite_master
                WHERE type = 'table'
                  AND name NOT LIKE 'sqlite_%'
                ORDER BY name
            """,
            Dialect.POSTGRES: """
                SELECT table_name
                FROM information_schema.tables
                WHERE table_schema = :schema
                  AND table_type = 'BASE TABLE'
                ORDER BY table_name
            """,
            Dialect.MYSQL: """
                SELECT TABLE_NAME
                FROM information_schema.tables
                WHERE TABLE_SCHEMA = DATABASE()
                  AND TABLE_TYPE = 'BASE TABLE'
                ORDER BY TABLE_NAME
            """,
        }
        dialect = self.dialect
        params = {"schema": self._schema_name} if dialect is Dialect.POSTGRES else {}
        result = self.connection.execute(text(queries[dialect]), params)
        return [row[0] for row in result if row[0] not in self.excluded_tables]

    def describe_table(self, table_name: str) -> TableInfo:
        """Columns, primary keys and foreign keys of one table."""
        describe = {
            Dialect.SQLITE: self._describe_sqlite,
            Dialect.POSTGRES: self._describe_postgres,
            Dialect.MYSQL: self._describe_mysql,
        }[self.dialect]
        return describe(table_name)

    def introspect(self) -> list[TableInfo]:
        """Describe every table.

        A table whose catalog queries fail is logged and skipped; the
        remaining tables are still described.
        """
        tables: list[TableInfo] = []
        for table_name in self.list_tables():
            try:
                tables.append(self.describe_table(table_name))
            except SQLAlchemyError as exc:
                logger.warning("Skipping table %s: %s", table_name, exc)
                self._reset()
        return tables

    def introspect_schema(self) -> SchemaInfo:
        """Full snapshot of the database with row counts applied."""
        tables = self.introspect()
        counts = self.row_counts(table.name for table in tables)
        return SchemaInfo(
            tables=[
                table.model_copy(update={"row_count": counts.get(table.name, 0)})
                for table in tables
            ],
            driver=self.dialect.value,
            database=self.connection.engine.url.database or "",
        )

    # ------------------------------------------------------------------
    # Row counts (advisory)
    # ------------------------------------------------------------------

    def count_rows(self, table_name: str) -> int:
        """Number of rows in a table, or 0 when it cannot be counted."""
        query = f"SELECT COUNT(*) FROM {quote_ident(self.dialect, table_name)}"
        try:
            return int(self.connection.execute(text(query)).scalar() or 0)
        except SQLAlchemyError as exc:
            logger.warning("Could not count rows of %s: %s", table_name, exc)
            self._reset()
            return 0

    def row_counts(self, table_names: Iterable[str] | None = None) -> dict[str, int]:
        """Row count per table (all listed tables by default)."""
        if table_names is None:
            table_names = self.list_tables()
        return {name: self.count_rows(name) for name in table_names}

    def _reset(self) -> None:
        """Clear an aborted transaction so later queries can run."""
        if self.connection.in_transaction():
            self.connection.rollback()

    # ------------------------------------------------------------------
    # Per-dialect catalog queries
    # ------------------------------------------------------------------

    def _describe_sqlite(self, table_name: str) -> TableInfo:
        columns = self.connection.execute(
            text(
                """
                SELECT name, type, "notnull", dflt_value, pk
                FROM pragma_table_info(:table)
                ORDER BY cid
                """
            ),
            {"table": table_name},
        ).all()
        key_positions = {row[0]: row[4] for row in columns if row[4]}
        primary_keys = sorted(key_positions, key=key_positions.__getitem__)

        foreign_keys = {
            row[1]: (row[0], row[2])
            for row in self.connection.execute(
                text(
                    """
                    SELECT "table", "from", "to"
                    FROM pragma_foreign_key_list(:table)
                    ORDER BY id, seq
                    """
                ),
                {"table": table_name},
            )
        }

        return _build_table(
            table_name,
            [(name, col_type, not notnull, default) for name, col_type, notnull, default, _ in columns],
            primary_keys,
            foreign_keys,
        )

    def _describe_postgres(self, table_name: str) -> TableInfo:
        params = {"schema": self._schema_name, "table": table_name}
        columns = self.connection.execute(
            text(
                """
                SELECT
                    column_name,
                    data_type,
                    is_nullable,
                    column_default
                FROM information_schema.columns
                WHERE table_schema = :schema
                  AND table_name = :table
                ORDER BY ordinal_position
                """
            ),
            params,
        ).all()

        constraints = self.connection.execute(
            text(
                """
                SELECT
                    tc.constraint_type,
                    kcu.column_name,
                    ccu.table_name AS references_table,
                    ccu.column_name AS references_column
                FROM information_schema.table_constraints tc
                JOIN information_schema.key_column_usage kcu
                    ON tc.constraint_name = kcu.constraint_name
                    AND tc.table_schema = kcu.table_schema
                LEFT JOIN information_schema.constraint_column_usage ccu
                    ON tc.constraint_name = ccu.constraint_name
                    AND tc.constraint_type = 'FOREIGN KEY'
                WHERE tc.table_schema = :schema
                  AND tc.table_name = :table
                  AND tc.constraint_type IN ('PRIMARY KEY', 'FOREIGN KEY')
                ORDER BY tc.constraint_name, kcu.ordinal_position
                """
            ),
            params,
        ).all()

        primary_keys: list[str] = []
        foreign_keys: dict[str, tuple[str, str | None]] = {}
        for ctype, col_name, ref_table, ref_col in constraints:
            if ctype == "PRIMARY KEY":
                if col_name not in primary_keys:
                    primary_keys.append(col_name)
            elif ref_table:
                foreign_keys.setdefault(col_name, (ref_table, ref_col))

        return _build_table(
            table_name,
            [(name, data_type, nullable == "YES", default) for name, data_type, nullable, default in columns],
            primary_keys,
            foreign_keys,
        )

    def _describe_mysql(self, table_name: str) -> TableInfo:
        params = {"table": table_name}
        columns = self.connection.execute(
            text(
                """
                SELECT COLUMN_NAME, COLUMN_TYPE, IS_NULLABLE, COLUMN_DEFAULT
                FROM information_schema.columns
                WHERE TABLE_SCHEMA = DATABASE()
                  AND TABLE_NAME = :table
                ORDER BY ORDINAL_POSITION
                """
            ),
            params,
        ).all()

        usage = self.connection.execute(
            text(
                """
                SELECT
                    CONSTRAINT_NAME,
                    COLUMN_NAME,
                    REFERENCED_TABLE_NAME,
                    REFERENCED_COLUMN_NAME
                FROM information_schema.key_column_usage
                WHERE TABLE_SCHEMA = DATABASE()
                  AND TABLE_NAME = :table
                ORDER BY CONSTRAINT_NAME, ORDINAL_POSITION
                """
            ),
            params,
        ).all()

        primary_keys = [row[1] for row in usage if row[0] == "PRIMARY"]
        foreign_keys = {row[1]: (row[2], row[3]) for row in usage if row[2]}

        return _build_table(
            table_name,
            [(name, col_type, nullable == "YES", default) for name, col_type, nullable, default in columns],
            primary_keys,
            foreign_keys,
        )


def _build_table(
    table_name: str,
    rows: list[tuple[str, str, bool, str | None]],
    primary_keys: list[str],
    foreign_keys: dict[str, tuple[str, str | None]],
) -> TableInfo:
    """Assemble a TableInfo from normalized catalog rows.

    ``rows`` holds ``(name, type, is_nullable, default)`` per column in
    ordinal order.
    """
    keys = set(primary_keys)
    columns: list[ColumnInfo] = []
    for name, col_type, is_nullable, default in rows:
        column = ColumnInfo(
            name=name,
            type=col_type or "",
            is_nullable=bool(is_nullable),
            default=None if default is None else str(default),
        )
        if name in keys:
            column = column.as_primary_key()
        if name in foreign_keys:
            column = column.as_foreign_key(*foreign_keys[name])
        columns.append(column)

    return TableInfo(
        name=table_name,
        columns=columns,
        primary_keys=primary_key_order(columns, primary_keys),
    )
