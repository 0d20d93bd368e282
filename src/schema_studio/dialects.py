"""SQL dialect tag.

The set of supported dialects is closed: every per-dialect difference in the
package (identifier quoting, scalar-type vocabulary, catalog queries) is a
table lookup keyed by ``Dialect``.

Usage:
    >>> from schema_studio.dialects import Dialect
    >>> Dialect.from_name("postgresql")
    <Dialect.POSTGRES: 'postgres'>
    >>> Dialect.MYSQL.quote_char
    '`'
"""

from enum import Enum

from schema_studio.errors import UnsupportedDialectError


class Dialect(str, Enum):
    """Database family with its own catalog layout, quoting and types."""

    SQLITE = "sqlite"
    POSTGRES = "postgres"
    MYSQL = "mysql"

    @property
    def quote_char(self) -> str:
        """Identifier quote character."""
        return "`" if self is Dialect.MYSQL else '"'

    @classmethod
    def from_name(cls, name: "str | Dialect") -> "Dialect":
        """Resolve a dialect or driver name (case-insensitive).

        Accepts the canonical names plus common driver aliases, including
        SQLAlchemy dialect names (``postgresql``) and driver-qualified URL
        schemes (``postgresql+psycopg``).

        Raises:
            UnsupportedDialectError: If the name is not a known alias.
        """
        if isinstance(name, Dialect):
            return name

        key = (name or "").strip().lower().split("+", 1)[0]
        try:
            return cls(_ALIASES.get(key, key))
        except ValueError:
            raise UnsupportedDialectError(name) from None


_ALIASES = {
    "sqlite3": "sqlite",
    "postgresql": "postgres",
    "pg": "postgres",
    "psql": "postgres",
    "psycopg": "postgres",
    "psycopg2": "postgres",
    "mariadb": "mysql",
    "pymysql": "mysql",
}
