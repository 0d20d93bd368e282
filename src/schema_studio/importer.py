"""Format-dispatching schema import and export.

Maps a file to the parser for its format and wraps the result in a
``SchemaInfo`` snapshot:

- ``.sql`` -- DDL script (``parsers.ddl``)
- ``.dbml`` -- DBML-style notation (``parsers.dsl``)
- ``.go`` -- declarative models (``parsers.declarative``)
- ``.json`` / ``.yaml`` / ``.yml`` -- a dumped ``SchemaInfo`` (or a bare
  list of tables)

Usage:
    from schema_studio.importer import dump_schema, load_schema_file

    schema = load_schema_file("schema.sql")
    print(dump_schema(schema, "yaml"))
"""

import json
import logging
from pathlib import Path

import yaml

from schema_studio.dialects import Dialect
from schema_studio.errors import EmptySchemaError, UnsupportedFormatError
from schema_studio.parsers.ddl import detect_dialect, parse_ddl
from schema_studio.parsers.declarative import parse_models
from schema_studio.parsers.dsl import parse_dsl
from schema_studio.schema.models import SchemaInfo, TableInfo

logger = logging.getLogger(__name__)

FORMATS = {
    ".sql": "ddl",
    ".dbml": "dsl",
    ".go": "models",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}

DUMP_FORMATS = ("json", "yaml")


def detect_format(filename: str | Path) -> str:
    """Input format implied by a file extension.

    Raises:
        UnsupportedFormatError: If the extension is not recognized.
    """
    suffix = Path(filename).suffix.lower()
    try:
        return FORMATS[suffix]
    except KeyError:
        raise UnsupportedFormatError(
            f"Unsupported file type '{suffix or filename}'. "
            f"Supported: {', '.join(FORMATS)}"
        ) from None


def load_schema(
    content: str,
    fmt: str,
    dialect: Dialect | str | None = None,
    tag: str = "gorm",
) -> SchemaInfo:
    """Parse *content* of the given format into a schema snapshot.

    Args:
        content: Source text.
        fmt: One of ``ddl``, ``dsl``, ``models``, ``json``, ``yaml``.
        dialect: Dialect of the input.  DDL input detects it when omitted;
            declarative models map their scalar types for it (sqlite when
            omitted).
        tag: Annotation tag read from declarative models.

    Raises:
        EmptySchemaError: If the input defines no tables.
        UnsupportedFormatError: If *fmt* is unknown.
        pydantic.ValidationError: If a JSON/YAML dump violates the model.
    """
    resolved = Dialect.from_name(dialect) if dialect else None

    if fmt == "ddl":
        resolved = resolved or detect_dialect(content)
        schema = SchemaInfo(tables=parse_ddl(content, resolved), driver=resolved.value)
    elif fmt == "dsl":
        schema = SchemaInfo(tables=parse_dsl(content), driver=resolved.value if resolved else "")
    elif fmt == "models":
        resolved = resolved or Dialect.SQLITE
        schema = SchemaInfo(tables=parse_models(content, resolved, tag), driver=resolved.value)
    elif fmt in DUMP_FORMATS:
        data = json.loads(content) if fmt == "json" else yaml.safe_load(content)
        if isinstance(data, list):
            data = {"tables": data}
        schema = SchemaInfo.model_validate(data or {})
        if resolved:
            schema = schema.model_copy(update={"driver": resolved.value})
    else:
        raise UnsupportedFormatError(f"Unsupported input format '{fmt}'")

    if not schema.tables:
        raise EmptySchemaError(fmt)
    logger.debug("Loaded %d tables from %s input", len(schema.tables), fmt)
    return schema


def load_tables(
    content: str,
    fmt: str,
    dialect: Dialect | str | None = None,
    tag: str = "gorm",
) -> list[TableInfo]:
    """Like ``load_schema`` but returns just the tables."""
    return list(load_schema(content, fmt, dialect, tag).tables)


def load_schema_file(
    path: str | Path,
    dialect: Dialect | str | None = None,
    tag: str = "gorm",
) -> SchemaInfo:
    """Read and parse a schema file, choosing the parser by extension."""
    path = Path(path)
    fmt = detect_format(path)
    return load_schema(path.read_text(encoding="utf-8"), fmt, dialect, tag)


def dump_schema(schema: SchemaInfo, fmt: str) -> str:
    """Serialize a schema snapshot as ``json`` or ``yaml``."""
    if fmt == "json":
        return schema.model_dump_json(indent=2)
    if fmt == "yaml":
        return yaml.safe_dump(schema.model_dump(mode="json"), sort_keys=False)
    raise UnsupportedFormatError(
        f"Unsupported dump format '{fmt}'. Supported: {', '.join(DUMP_FORMATS)}"
    )
