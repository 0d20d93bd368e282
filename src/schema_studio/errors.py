"""Exception types raised by schema-studio.

Parsing is best-effort: individual statements and definitions that cannot
be understood are skipped, never raised.  Only the conditions below are
fatal to the call that hit them.

Usage:
    from schema_studio.errors import EmptySchemaError, UnsupportedDialectError
"""


class SchemaStudioError(Exception):
    """Base class for all schema-studio errors."""

    pass


class UnsupportedDialectError(SchemaStudioError):
    """Raised when a database backend is not sqlite, postgres, or mysql."""

    def __init__(self, dialect: str):
        self.dialect = dialect
        super().__init__(
            f"Unsupported dialect: {dialect!r}. "
            f"Supported dialects: sqlite, postgres, mysql"
        )


class EmptySchemaError(SchemaStudioError):
    """Raised when an input yields no parseable table definitions."""

    def __init__(self, source_format: str, detail: str = ""):
        self.source_format = source_format
        message = f"No tables found in {source_format} input"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UnsupportedFormatError(SchemaStudioError, ValueError):
    """Raised for an unknown schema file extension or dump format."""

    pass
