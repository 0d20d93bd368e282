"""CREATE TABLE parsing.

Turns a DDL script into canonical ``TableInfo`` objects.  Parsing is
best-effort: statements that are not CREATE TABLE, or whose table name or
column list cannot be isolated, are skipped and the rest of the script is
still parsed.

Usage:
    from schema_studio.parsers.ddl import parse_ddl

    tables = parse_ddl('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name VARCHAR(100) NOT NULL
        );
    ''')
    tables[0].primary_keys  # ('id',)
"""

import logging

from schema_studio.dialects import Dialect
from schema_studio.naming import unquote_ident
from schema_studio.parsers.lexer import (
    Token,
    TokenKind,
    extract_balanced,
    matching_paren,
    split_definitions,
    split_statements,
    strip_comments,
    tokenize,
)
from schema_studio.schema.models import ColumnInfo, SchemaInfo, TableInfo, primary_key_order

logger = logging.getLogger(__name__)

# Table-level definitions that are recognized but carry nothing we model
IGNORED_CONSTRAINTS = ("UNIQUE", "CHECK", "CONSTRAINT", "INDEX", "KEY", "FULLTEXT", "SPATIAL")

SERIAL_TYPES = ("SERIAL", "BIGSERIAL", "SMALLSERIAL")

# Words after the base type that still belong to the type
TYPE_SUFFIXES = (
    ("PRECISION",),
    ("VARYING",),
    ("UNSIGNED",),
    ("ZEROFILL",),
    ("WITH", "TIME", "ZONE"),
    ("WITHOUT", "TIME", "ZONE"),
)

# Keywords that end a DEFAULT clause
DEFAULT_TERMINATORS = (
    "NOT",
    "NULL",
    "PRIMARY",
    "UNIQUE",
    "CHECK",
    "REFERENCES",
    "CONSTRAINT",
    "COLLATE",
    "AUTO_INCREMENT",
    "AUTOINCREMENT",
    "COMMENT",
    "GENERATED",
    "ON",
)

_NAME_KINDS = (TokenKind.IDENT, TokenKind.QUOTED_IDENT)


# ------------------------------------------------------------------
# Dialect detection
# ------------------------------------------------------------------


def detect_dialect(sql: str) -> Dialect:
    """Guess the dialect of a DDL script from telltale keywords.

    ``AUTOINCREMENT`` means sqlite; ``SERIAL``, ``BYTEA`` or a ``::`` cast
    means postgres; ``AUTO_INCREMENT`` or ``ENGINE=`` means mysql.
    Anything else is treated as sqlite.

    Examples:
        >>> detect_dialect("id INTEGER PRIMARY KEY AUTOINCREMENT")
        <Dialect.SQLITE: 'sqlite'>
        >>> detect_dialect("id SERIAL PRIMARY KEY")
        <Dialect.POSTGRES: 'postgres'>
        >>> detect_dialect("id INT AUTO_INCREMENT")
        <Dialect.MYSQL: 'mysql'>
    """
    upper = sql.upper()
    if "AUTOINCREMENT" in upper:
        return Dialect.SQLITE
    if "SERIAL" in upper or "::" in upper or "BYTEA" in upper:
        return Dialect.POSTGRES
    if "AUTO_INCREMENT" in upper or "ENGINE=" in upper:
        return Dialect.MYSQL
    return Dialect.SQLITE


# ------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------


def parse_ddl(sql: str, dialect: Dialect | str | None = None) -> list[TableInfo]:
    """Parse every CREATE TABLE statement of a script.

    Args:
        sql: DDL script text; comments are allowed anywhere.
        dialect: Dialect of the script.  Detected with ``detect_dialect``
            when omitted.  On mysql, double-quoted text is a string literal
            rather than an identifier.

    Returns:
        One ``TableInfo`` per parseable CREATE TABLE, in script order.
        An empty list when nothing qualified.
    """
    resolved = Dialect.from_name(dialect) if dialect else detect_dialect(sql)

    tables: list[TableInfo] = []
    for statement in split_statements(strip_comments(sql)):
        tokens = _tokenize(statement, resolved)
        if not (
            len(tokens) >= 2
            and tokens[0].is_keyword("CREATE")
            and tokens[1].is_keyword("TABLE")
        ):
            continue

        table = _parse_create_table(statement, tokens, resolved)
        if table is None:
            logger.debug("Skipping unparseable statement: %.60s", statement)
            continue
        tables.append(table)

    return tables


def parse_ddl_schema(sql: str, dialect: Dialect | str | None = None) -> SchemaInfo:
    """Parse a DDL script into a ``SchemaInfo`` tagged with its dialect."""
    resolved = Dialect.from_name(dialect) if dialect else detect_dialect(sql)
    return SchemaInfo(tables=parse_ddl(sql, resolved), driver=resolved.value)


# ------------------------------------------------------------------
# Statement parsing
# ------------------------------------------------------------------


def _tokenize(text: str, dialect: Dialect) -> list[Token]:
    tokens = tokenize(text)
    if dialect is not Dialect.MYSQL:
        return tokens
    return [
        Token(TokenKind.STRING, t.value, t.quote, t.start, t.end)
        if t.kind is TokenKind.QUOTED_IDENT and t.quote == '"'
        else t
        for t in tokens
    ]


def _object_name(token: Token) -> str:
    """Unqualified name of a table token (``public.users`` -> ``users``)."""
    if token.kind is TokenKind.QUOTED_IDENT:
        return token.value
    return unquote_ident(token.value.rsplit(".", 1)[-1])


def _parse_create_table(statement: str, tokens: list[Token], dialect: Dialect) -> TableInfo | None:
    idx = 2
    if (
        len(tokens) > idx + 2
        and tokens[idx].is_keyword("IF")
        and tokens[idx + 1].is_keyword("NOT")
        and tokens[idx + 2].is_keyword("EXISTS")
    ):
        idx += 3

    if idx >= len(tokens) or tokens[idx].kind not in _NAME_KINDS:
        return None
    table_name = _object_name(tokens[idx])
    if not table_name:
        return None

    body = extract_balanced(statement[tokens[idx].end :])
    if not body.strip():
        return None

    columns: list[ColumnInfo] = []
    declared_keys: list[str] = []
    foreign_keys: list[tuple[str, str, str | None]] = []

    for definition in split_definitions(body):
        def_tokens = _tokenize(definition, dialect)
        if not def_tokens:
            continue
        head = def_tokens[0]

        if _starts_with(def_tokens, "PRIMARY", "KEY"):
            declared_keys.extend(_paren_names(def_tokens, 2))
        elif _starts_with(def_tokens, "FOREIGN", "KEY"):
            foreign_keys.extend(_parse_foreign_key_constraint(def_tokens))
        elif head.is_keyword(*IGNORED_CONSTRAINTS):
            continue
        else:
            column = _parse_column(definition, def_tokens)
            if column is None:
                logger.debug("Skipping column definition in %s: %.60s", table_name, definition)
                continue
            columns.append(column)

    if declared_keys:
        # The constraint is authoritative over column-level flags
        declared = {name.casefold() for name in declared_keys}
        columns = [
            col.as_primary_key()
            if col.name.casefold() in declared
            else col.model_copy(update={"is_primary_key": False})
            for col in columns
        ]

    for local, target_table, target_column in foreign_keys:
        columns = [
            col.as_foreign_key(target_table, target_column)
            if col.name.casefold() == local.casefold()
            else col
            for col in columns
        ]

    return TableInfo(
        name=table_name,
        columns=columns,
        primary_keys=primary_key_order(columns, declared_keys or None),
    )


def _starts_with(tokens: list[Token], *words: str) -> bool:
    if len(tokens) < len(words):
        return False
    return all(tok.is_keyword(word) for tok, word in zip(tokens, words))


def _paren_names(tokens: list[Token], start: int) -> list[str]:
    """Names listed in the parenthesized group starting at *start*."""
    if start >= len(tokens) or tokens[start].kind is not TokenKind.LPAREN:
        return []
    close = matching_paren(tokens, start)
    if close < 0:
        return []

    names: list[str] = []
    depth = 0
    for tok in tokens[start + 1 : close]:
        if tok.kind is TokenKind.LPAREN:
            depth += 1  # prefix length, e.g. KEY (name(10))
        elif tok.kind is TokenKind.RPAREN:
            depth -= 1
        elif depth == 0 and tok.kind is TokenKind.QUOTED_IDENT:
            names.append(tok.value)
        elif depth == 0 and tok.kind is TokenKind.IDENT:
            names.extend(unquote_ident(part) for part in tok.value.split(",") if part.strip())
    return names


def _parse_references(tokens: list[Token], start: int) -> tuple[str, list[str]] | None:
    """Target of ``REFERENCES table (col, ...)`` found at or after *start*."""
    for i in range(start, len(tokens)):
        if tokens[i].is_keyword("REFERENCES"):
            if i + 1 >= len(tokens) or tokens[i + 1].kind not in _NAME_KINDS:
                return None
            return _object_name(tokens[i + 1]), _paren_names(tokens, i + 2)
    return None


def _parse_foreign_key_constraint(tokens: list[Token]) -> list[tuple[str, str, str | None]]:
    """``FOREIGN KEY (a) REFERENCES t (b)`` -> ``[("a", "t", "b")]``."""
    local_columns = _paren_names(tokens, 2)
    reference = _parse_references(tokens, 2)
    if not local_columns or reference is None:
        return []

    target_table, target_columns = reference
    pairs: list[tuple[str, str, str | None]] = []
    for pos, local in enumerate(local_columns):
        target = target_columns[pos] if pos < len(target_columns) else None
        pairs.append((local, target_table, target))
    return pairs


# ------------------------------------------------------------------
# Column definitions
# ------------------------------------------------------------------


def _type_suffix_length(tokens: list[Token], start: int) -> int:
    for suffix in TYPE_SUFFIXES:
        end = start + len(suffix)
        if end <= len(tokens) and all(
            tok.is_keyword(word) for tok, word in zip(tokens[start:end], suffix)
        ):
            return len(suffix)
    return 0


def _parse_column(definition: str, tokens: list[Token]) -> ColumnInfo | None:
    if len(tokens) < 2 or tokens[0].kind not in _NAME_KINDS or tokens[1].kind is not TokenKind.IDENT:
        return None

    name = tokens[0].value if tokens[0].kind is TokenKind.QUOTED_IDENT else unquote_ident(tokens[0].value)
    if not name:
        return None

    # Type: base word, recognized suffix words, and a verbatim (size) group
    type_token = tokens[1]
    type_end = type_token.end
    idx = 2
    while idx < len(tokens):
        tok = tokens[idx]
        if tok.kind is TokenKind.LPAREN:
            close = matching_paren(tokens, idx)
            if close < 0:
                break
            type_end = tokens[close].end
            idx = close + 1
            continue
        suffix = _type_suffix_length(tokens, idx)
        if not suffix:
            break
        type_end = tokens[idx + suffix - 1].end
        idx += suffix
    column_type = definition[type_token.start : type_end]

    modifiers = tokens[idx:]
    words = " " + " ".join(tok.upper for tok in modifiers if tok.kind is TokenKind.IDENT) + " "

    is_primary_key = " PRIMARY KEY " in words or type_token.upper in SERIAL_TYPES
    is_nullable = not (is_primary_key or " NOT NULL " in words)

    column = ColumnInfo(
        name=name,
        type=column_type,
        is_primary_key=is_primary_key,
        is_nullable=is_nullable,
        default=_parse_default(definition, modifiers),
    )

    reference = _parse_references(modifiers, 0)
    if reference is not None:
        target_table, target_columns = reference
        column = column.as_foreign_key(target_table, target_columns[0] if target_columns else None)

    return column


def _parse_default(definition: str, tokens: list[Token]) -> str | None:
    """Raw DEFAULT literal, up to the next modifier keyword."""
    for start, tok in enumerate(tokens):
        if tok.is_keyword("DEFAULT"):
            break
    else:
        return None

    first = start + 1
    if first >= len(tokens):
        return None

    end = first
    depth = 0
    while end < len(tokens):
        tok = tokens[end]
        if depth == 0 and end > first and tok.is_keyword(*DEFAULT_TERMINATORS):
            break
        if tok.kind is TokenKind.LPAREN:
            depth += 1
        elif tok.kind is TokenKind.RPAREN:
            if depth == 0:
                break
            depth -= 1
        end += 1

    if end - first == 1 and tokens[first].kind in (TokenKind.STRING, TokenKind.QUOTED_IDENT):
        return tokens[first].value

    raw = definition[tokens[first].start : tokens[end - 1].end].strip().rstrip(",").strip()
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "'\"`":
        raw = raw[1:-1]
    return raw
