"""Scalar-type mapping tables.

Two directions are covered:

- declarative scalar -> SQL type, per dialect (used by the declarative-model
  parser when it turns annotated fields into columns)
- SQL type -> declarative scalar (used by the source emitter)

Usage:
    >>> from schema_studio.type_map import scalar_to_sql_type, sql_to_scalar_type
    >>> scalar_to_sql_type("float64", "postgres")
    'DOUBLE PRECISION'
    >>> sql_to_scalar_type("VARCHAR(255)", nullable=True)
    '*string'
"""

from schema_studio.dialects import Dialect

SCALAR_TYPES = frozenset(
    {
        "string",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "float32",
        "float64",
        "bool",
        "byte",
        "rune",
        "time.Time",
        "json.RawMessage",
        "[]byte",
    }
)

# scalar -> (postgres type, sqlite/mysql type)
_SCALAR_SQL_TYPES: dict[str, tuple[str, str]] = {
    "int": ("BIGINT", "INTEGER"),
    "int64": ("BIGINT", "INTEGER"),
    "uint": ("BIGINT", "INTEGER"),
    "uint64": ("BIGINT", "INTEGER"),
    "int8": ("INTEGER", "INTEGER"),
    "int16": ("INTEGER", "INTEGER"),
    "int32": ("INTEGER", "INTEGER"),
    "uint8": ("INTEGER", "INTEGER"),
    "uint16": ("INTEGER", "INTEGER"),
    "uint32": ("INTEGER", "INTEGER"),
    "float32": ("DOUBLE PRECISION", "REAL"),
    "float64": ("DOUBLE PRECISION", "REAL"),
    "bool": ("BOOLEAN", "BOOLEAN"),
    "string": ("TEXT", "TEXT"),
    "byte": ("TEXT", "TEXT"),
    "rune": ("TEXT", "TEXT"),
    "[]byte": ("BYTEA", "BLOB"),
    "time.Time": ("TIMESTAMP", "DATETIME"),
    "json.RawMessage": ("JSONB", "TEXT"),
}

# SQL base type -> scalar
_SQL_SCALARS: dict[str, str] = {
    **dict.fromkeys(
        [
            "INTEGER",
            "INT",
            "BIGINT",
            "INT8",
            "INT4",
            "INT UNSIGNED",
            "INTEGER UNSIGNED",
            "BIGINT UNSIGNED",
        ],
        "int64",
    ),
    **dict.fromkeys(["SMALLINT", "TINYINT", "INT2", "MEDIUMINT"], "int32"),
    **dict.fromkeys(
        ["REAL", "FLOAT", "DOUBLE", "DOUBLE PRECISION", "FLOAT8", "FLOAT4"],
        "float64",
    ),
    **dict.fromkeys(["NUMERIC", "DECIMAL"], "float64"),
    **dict.fromkeys(["BOOLEAN", "BOOL"], "bool"),
    **dict.fromkeys(
        [
            "TEXT",
            "VARCHAR",
            "CHAR",
            "CHARACTER",
            "CHARACTER VARYING",
            "NVARCHAR",
            "LONGTEXT",
            "MEDIUMTEXT",
            "TINYTEXT",
            "STRING",
            "UUID",
        ],
        "string",
    ),
    **dict.fromkeys(
        ["BLOB", "BYTEA", "BINARY", "VARBINARY", "LONGBLOB", "MEDIUMBLOB"],
        "[]byte",
    ),
    **dict.fromkeys(
        [
            "TIMESTAMP",
            "DATETIME",
            "DATE",
            "TIMESTAMPTZ",
            "TIMESTAMP WITHOUT TIME ZONE",
            "TIMESTAMP WITH TIME ZONE",
        ],
        "time.Time",
    ),
    **dict.fromkeys(["JSON", "JSONB"], "json.RawMessage"),
    **dict.fromkeys(["SERIAL", "BIGSERIAL", "SMALLSERIAL"], "int64"),
}

# Scalars that already express absence and never get a pointer
_NILABLE_SCALARS = frozenset({"[]byte", "json.RawMessage"})


def is_scalar_type(type_name: str) -> bool:
    """True for a recognized scalar, with or without a leading ``*``."""
    return type_name.removeprefix("*") in SCALAR_TYPES


def scalar_to_sql_type(scalar: str, dialect: Dialect | str) -> str:
    """Map a declarative scalar type to a SQL column type for *dialect*.

    A leading ``*`` (nullable reference) is ignored.  Unknown scalars,
    including dot-qualified library types, map to ``TEXT``.
    """
    postgres_type, default_type = _SCALAR_SQL_TYPES.get(
        scalar.removeprefix("*"), ("TEXT", "TEXT")
    )
    if Dialect.from_name(dialect) is Dialect.POSTGRES:
        return postgres_type
    return default_type


def base_type(sql_type: str) -> str:
    """Upper-cased SQL type with any size/precision suffix removed."""
    base = sql_type.upper()
    if "(" in base:
        head, _, tail = base.partition("(")
        _, _, after = tail.partition(")")
        base = f"{head} {after}"
    return " ".join(base.split())


def sql_to_scalar_type(sql_type: str, nullable: bool = False) -> str:
    """Map a SQL column type to a declarative scalar type.

    Nullable columns become single references (``*string``), except for
    types that can already hold nothing.  Unknown SQL types map to string.
    """
    scalar = _SQL_SCALARS.get(base_type(sql_type), "string")
    if nullable and scalar not in _NILABLE_SCALARS:
        return "*" + scalar
    return scalar


def extract_size(sql_type: str) -> str:
    """Size/precision of a SQL type: ``VARCHAR(255)`` -> ``"255"``, else ``""``."""
    start = sql_type.find("(")
    end = sql_type.find(")", start + 1)
    if start >= 0 and end > start:
        return sql_type[start + 1 : end].strip()
    return ""
