"""Parser for declarative model definitions (annotated struct types).

Reads source text of the form::

    type User struct {
        ID    uint   `gorm:"primaryKey" json:"id"`
        Email string `gorm:"size:255;not null"`
        Posts []Post `gorm:"foreignKey:AuthorID"`
    }

and produces one ``TableInfo`` per struct.  This is a grammar parser over
the text; nothing is compiled or loaded.

Field annotations use the ``key:"value"`` tag convention; the value of the
configured tag (``gorm`` by default) is read as ``;``-separated options,
each either bare (``not null``) or ``key:value`` (``column:email``).
"""

import logging
import re
from dataclasses import dataclass, field

from schema_studio.dialects import Dialect
from schema_studio.naming import pluralize, to_snake_case
from schema_studio.parsers.lexer import extract_balanced
from schema_studio.schema.models import (
    ColumnInfo,
    RelationInfo,
    RelationKind,
    TableInfo,
    primary_key_order,
)
from schema_studio.type_map import is_scalar_type, scalar_to_sql_type

logger = logging.getLogger(__name__)

_STRUCT_HEADER = re.compile(r"\btype\s+(\w+)\s+(?:struct\s*)?\{")
_FIELD = re.compile(r"^(\w+)\s+([\w.*\[\]]+)\s*(?:`([^`]*)`)?\s*$")
_TAG_PAIR = re.compile(r'(\w+):"((?:[^"\\]|\\.)*)"')
_TAG_ESCAPE = re.compile(r"\\(.)")
_TYPE_NAME = re.compile(r"\w+")

# Quote characters of the source language; ' is a rune literal and may
# appear unbalanced in comments, so it is never treated as a quote.
_SOURCE_QUOTES = '"`'


@dataclass
class _Field:
    name: str
    type: str
    options: dict[str, str] = field(default_factory=dict)


@dataclass
class _Struct:
    name: str
    columns: list[_Field] = field(default_factory=list)
    relations: list[_Field] = field(default_factory=list)

    @property
    def table_name(self) -> str:
        return table_name_for(self.name)

    def column_name(self, field_name: str) -> str | None:
        for f in self.columns:
            if f.name == field_name:
                return f.options.get("column") or to_snake_case(f.name)
        return None


# ------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------


def table_name_for(struct_name: str) -> str:
    """Table name for a struct: ``BlogPost`` -> ``blog_posts``."""
    return pluralize(to_snake_case(struct_name))


def parse_models(
    source: str,
    dialect: Dialect | str = Dialect.SQLITE,
    tag: str = "gorm",
) -> list[TableInfo]:
    """Parse every struct definition of *source* into a table.

    Args:
        source: Declarative source text.
        dialect: Dialect used to map scalar field types to SQL types.
        tag: Annotation tag holding column options.

    Returns:
        Tables in source order.  Structs without any column field are
        dropped.
    """
    resolved = Dialect.from_name(dialect)
    structs = _parse_structs(strip_source_comments(source), tag)

    tables = [_build_table(struct, resolved) for struct in structs if struct.columns]
    for struct in structs:
        if not struct.columns:
            logger.debug("Struct %s has no column fields, skipping", struct.name)

    return _mark_target_foreign_keys(tables)


def strip_source_comments(source: str) -> str:
    """Remove ``//`` and ``/* */`` comments outside string literals."""
    out: list[str] = []
    i = 0
    while i < len(source):
        ch = source[i]
        if ch in _SOURCE_QUOTES:
            end = source.find(ch, i + 1)
            end = len(source) if end < 0 else end + 1
            out.append(source[i:end])
            i = end
        elif source.startswith("//", i):
            newline = source.find("\n", i)
            i = len(source) if newline < 0 else newline
        elif source.startswith("/*", i):
            close = source.find("*/", i + 2)
            if close < 0:
                break
            out.append(" ")
            i = close + 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def parse_annotation(annotation: str, tag: str = "gorm") -> dict[str, str]:
    """Parse a field annotation into lower-cased option keys.

        >>> parse_annotation('gorm:"column:email;not null" json:"email"')
        {'column': 'email', 'not null': ''}
        >>> parse_annotation("primaryKey;size:64")
        {'primarykey': '', 'size': '64'}

    A value wrapped in single quotes may contain ``;`` and doubled ``''``.
    """
    pairs = dict(_TAG_PAIR.findall(annotation))
    text = _TAG_ESCAPE.sub(r"\1", pairs.get(tag, "")) if pairs else annotation

    options: dict[str, str] = {}
    for part in _split_options(text):
        key, _, value = part.partition(":")
        key = " ".join(key.lower().split())
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == "'":
            value = value[1:-1].replace("''", "'")
        if key:
            options[key] = value
    return options


def _split_options(text: str) -> list[str]:
    parts: list[str] = []
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "'" and text[:i].rstrip().endswith(":"):
            # quoted value: runs to the next lone quote
            i += 1
            while i < len(text):
                if text[i] == "'":
                    if text.startswith("''", i):
                        i += 2
                        continue
                    break
                i += 1
        elif ch == ";":
            parts.append(text[start:i])
            start = i + 1
        i += 1
    parts.append(text[start:])
    return parts


def is_relation_type(type_name: str) -> bool:
    """True when a declared field type refers to another model.

    ``[]T`` with non-scalar T, ``*T`` with T neither scalar nor
    dot-qualified, and any other non-scalar type without a dot are
    relations.  Dot-qualified library types (``sql.NullString``,
    ``*time.Time``) are not.
    """
    if type_name.startswith("[]"):
        return not is_scalar_type(type_name[2:])
    if type_name.startswith("*"):
        inner = type_name[1:]
        return not is_scalar_type(inner) and "." not in inner
    return not is_scalar_type(type_name) and "." not in type_name


# ------------------------------------------------------------------
# Struct scanning
# ------------------------------------------------------------------


def _parse_structs(source: str, tag: str) -> list[_Struct]:
    structs: list[_Struct] = []
    for match in _STRUCT_HEADER.finditer(source):
        body = extract_balanced(source[match.end() - 1 :], "{", "}", _SOURCE_QUOTES)
        if not body.strip():
            continue

        struct = _Struct(name=match.group(1))
        for line in body.splitlines():
            found = _FIELD.match(line.strip())
            if not found:
                continue  # blank, embedded type, or nested declaration
            name, type_name, annotation = found.groups()
            parsed = _Field(name, type_name, parse_annotation(annotation or "", tag))
            if is_relation_type(type_name):
                struct.relations.append(parsed)
            else:
                struct.columns.append(parsed)
        structs.append(struct)
    return structs


def _build_table(struct: _Struct, dialect: Dialect) -> TableInfo:
    columns = [_build_column(f, dialect) for f in struct.columns]
    relations: list[RelationInfo] = []

    for rel in struct.relations:
        relation = _build_relation(struct, rel)
        relations.append(relation)
        if relation.kind is RelationKind.OWNING_TO_ONE:
            columns = [
                col.as_foreign_key(relation.table, relation.reference_key)
                if col.name == relation.foreign_key and not col.is_foreign_key
                else col
                for col in columns
            ]

    return TableInfo(
        name=struct.table_name,
        columns=columns,
        relations=relations,
        primary_keys=primary_key_order(columns),
    )


def _build_column(f: _Field, dialect: Dialect) -> ColumnInfo:
    opts = f.options
    is_primary_key = "primarykey" in opts or "primary_key" in opts
    not_null = "not null" in opts
    return ColumnInfo(
        name=opts.get("column") or to_snake_case(f.name),
        type=scalar_to_sql_type(f.type, dialect),
        type_hint=f.type,
        is_primary_key=is_primary_key,
        is_nullable=not (is_primary_key or not_null),
        default=opts.get("default") or None,
    )


def _build_relation(owner: _Struct, rel: _Field) -> RelationInfo:
    opts = rel.options
    # blog.Post -> Post, map[string]Tag -> Tag
    target = _TYPE_NAME.findall(rel.type)[-1]
    target_table = table_name_for(target)
    reference_key = to_snake_case(opts.get("references") or "ID")

    if rel.type.startswith("[]"):
        join_table = opts.get("many2many")
        if join_table:
            return RelationInfo(
                name=rel.name,
                kind=RelationKind.TO_MANY_THROUGH,
                table=target_table,
                join_table=join_table,
                foreign_key=to_snake_case(opts.get("foreignkey", "")),
                reference_key=reference_key,
            )
        return RelationInfo(
            name=rel.name,
            kind=RelationKind.TO_MANY,
            table=target_table,
            foreign_key=to_snake_case(opts.get("foreignkey") or f"{owner.name}ID"),
            reference_key=reference_key,
        )

    local_field = opts.get("foreignkey") or f"{rel.name}ID"
    local_column = owner.column_name(local_field)
    if local_column is not None:
        return RelationInfo(
            name=rel.name,
            kind=RelationKind.OWNING_TO_ONE,
            table=target_table,
            foreign_key=local_column,
            reference_key=reference_key,
        )
    return RelationInfo(
        name=rel.name,
        kind=RelationKind.OWNED_TO_ONE,
        table=target_table,
        foreign_key=to_snake_case(opts.get("foreignkey") or f"{owner.name}ID"),
        reference_key=reference_key,
    )


def _mark_target_foreign_keys(tables: list[TableInfo]) -> list[TableInfo]:
    """Flag the target-side column of to-many and owned to-one relations."""
    by_name = {table.name.casefold(): pos for pos, table in enumerate(tables)}
    result = list(tables)

    for owner in tables:
        for relation in owner.relations:
            if relation.kind not in (RelationKind.TO_MANY, RelationKind.OWNED_TO_ONE):
                continue
            pos = by_name.get(relation.table.casefold())
            if pos is None:
                continue
            target = result[pos]
            columns = tuple(
                col.as_foreign_key(owner.name, relation.reference_key)
                if col.name == relation.foreign_key and not col.is_foreign_key
                else col
                for col in target.columns
            )
            result[pos] = target.model_copy(update={"columns": columns})

    return result
