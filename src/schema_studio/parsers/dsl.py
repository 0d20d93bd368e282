"""Parser for the DBML-style schema notation.

Line-oriented and single pass:

    Table users {
      id integer [pk, increment]
      email varchar(255) [not null, unique]
    }

    Table posts {
      id integer [pk]
      author_id integer [ref: > users.id]
    }

    Ref: posts.author_id > users.id

A top-level ``Ref`` only affects tables that were already closed when the
line is reached.
"""

import logging
import re

from schema_studio.errors import EmptySchemaError
from schema_studio.naming import unquote_ident
from schema_studio.parsers.lexer import split_top_level
from schema_studio.schema.models import ColumnInfo, TableInfo, primary_key_order

logger = logging.getLogger(__name__)

_PART = r'(?:"[^"]+"|`[^`]+`|[^\s{\["`.]+)'
_NAME = rf'(?:{_PART}\.)*(?:"[^"]+"|`[^`]+`|[^\s{{\[]+)'

_TABLE_HEADER = re.compile(
    rf"^table\s+(?P<name>{_NAME})(?:\s+as\s+\S+)?\s*(?:\[[^\]]*\])?\s*\{{$",
    re.IGNORECASE,
)
_REF_LINE = re.compile(r"^ref(?:\s+[^:{]+?)?\s*:\s*(?P<body>.+)$", re.IGNORECASE)
_REF_BLOCK = re.compile(r"^ref(?:\s+[^:{]+?)?\s*\{$", re.IGNORECASE)
_REF_BODY = re.compile(r"^(?P<left>[^\s<>]+?)\s*(?P<op><>|[<>-])\s*(?P<right>[^\s\[]+)")
_COLUMN = re.compile(rf"^(?P<name>{_NAME})\s+(?P<type>[^\[]+?)\s*(?:\[(?P<attrs>.*)\])?$")
_SETTINGS = re.compile(r"\s*\[[^\]]*\]\s*$")
_TABLE_SETTING = re.compile(r"(?:note|ref)\s*:", re.IGNORECASE)


def parse_dsl(text: str) -> list[TableInfo]:
    """Parse DSL text into tables, in the order their blocks close.

    Raises:
        EmptySchemaError: If no table block was found.
    """
    tables: list[TableInfo] = []
    current: str | None = None
    columns: list[ColumnInfo] = []
    skip_depth = 0  # nested or unsupported blocks
    in_ref_block = False

    for raw_line in text.splitlines():
        line = _strip_line_comment(raw_line).strip()
        if not line:
            continue

        if skip_depth:
            skip_depth += line.count("{") - line.count("}")
            continue

        if in_ref_block:
            if line == "}":
                in_ref_block = False
            else:
                tables = _apply_ref(tables, line)
            continue

        if current is not None:
            if line == "}":
                tables.append(
                    TableInfo(
                        name=current,
                        columns=columns,
                        primary_keys=primary_key_order(columns),
                    )
                )
                current, columns = None, []
            elif line.endswith("{"):
                skip_depth = 1  # indexes { ... }, Note { ... }
            elif _TABLE_SETTING.match(line):
                continue
            else:
                column = _parse_column(line)
                if column is None:
                    logger.debug("Skipping line in table %s: %s", current, line)
                else:
                    columns.append(column)
            continue

        header = _TABLE_HEADER.match(line)
        if header:
            current = _table_name(header.group("name"))
            continue

        if _REF_BLOCK.match(line):
            in_ref_block = True
            continue

        ref = _REF_LINE.match(line)
        if ref:
            tables = _apply_ref(tables, ref.group("body"))
            continue

        if line.endswith("{"):
            skip_depth = 1  # Enum, Project, TableGroup
        else:
            logger.debug("Ignoring line: %s", line)

    if current is not None:
        logger.debug("Table %s is never closed, dropping it", current)

    if not tables:
        raise EmptySchemaError("dsl")
    return tables


def _strip_line_comment(line: str) -> str:
    quote = None
    for i, ch in enumerate(line):
        if quote:
            if ch == quote:
                quote = None
        elif ch in "'\"`":
            quote = ch
        elif line.startswith("//", i):
            return line[:i]
    return line


def _table_name(token: str) -> str:
    """``public."order items"`` -> ``order items``."""
    if token.endswith(('"', "`")):
        start = token.rfind(token[-1], 0, len(token) - 1)
        if start >= 0:
            return token[start + 1 : -1]
    return unquote_ident(token.rsplit(".", 1)[-1])


def _split_target(target: str) -> tuple[str, str] | None:
    """``users.id`` (or ``public.users.id``) -> ``("users", "id")``."""
    parts = [unquote_ident(part) for part in target.strip().rstrip(",").split(".")]
    if len(parts) < 2 or not all(parts):
        return None
    return parts[-2], parts[-1]


def _parse_column(line: str) -> ColumnInfo | None:
    match = _COLUMN.match(line)
    if not match:
        return None

    is_primary_key = False
    is_nullable = True
    default = None
    reference = None

    for attr in split_top_level(match.group("attrs") or "", ","):
        key, sep, value = attr.partition(":")
        key = " ".join(key.lower().split())
        if not sep:
            if key in ("pk", "primary key"):
                is_primary_key = True
            elif key == "not null":
                is_nullable = False
        elif key == "default":
            default = value.strip().strip("'\"`")
        elif key == "ref":
            reference = _split_target(value.strip().lstrip("<>-").strip())

    column = ColumnInfo(
        name=unquote_ident(match.group("name")),
        type=match.group("type").strip().strip('"'),
        is_primary_key=is_primary_key,
        is_nullable=is_nullable and not is_primary_key,
        default=default,
    )
    if reference:
        column = column.as_foreign_key(*reference)
    return column


def _apply_ref(tables: list[TableInfo], body: str) -> list[TableInfo]:
    """Mark the left-hand column of a relationship as foreign."""
    match = _REF_BODY.match(_SETTINGS.sub("", body.strip()))
    left = _split_target(match.group("left")) if match else None
    right = _split_target(match.group("right")) if match else None
    if left is None or right is None:
        logger.debug("Ignoring malformed ref: %s", body)
        return tables

    table_name, column_name = left
    for pos, table in enumerate(tables):
        if table.name != table_name:
            continue
        columns = tuple(
            col.as_foreign_key(*right) if col.name == column_name else col
            for col in table.columns
        )
        tables = list(tables)
        tables[pos] = table.model_copy(update={"columns": columns})
        return tables

    logger.debug("Ref to unknown or not yet defined table %s ignored", table_name)
    return tables
