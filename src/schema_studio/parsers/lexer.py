"""Depth-aware splitting and tokenizing of SQL text.

Every scanner here tracks quoting, so a ``;``, ``,`` or ``--`` inside a
string literal or quoted identifier is never treated as syntax.  Splitters
also track parenthesis depth, so ``NUMERIC(10,2)`` stays one definition.

Usage:
    from schema_studio.parsers.lexer import split_statements, tokenize

    for statement in split_statements(strip_comments(script)):
        tokens = tokenize(statement)
"""

from dataclasses import dataclass
from enum import Enum

# Single quote: string literal.  Double quote / backtick: quoted identifier.
QUOTES = "'\"`"

_WHITESPACE = " \t\r\n\f\v"


class TokenKind(Enum):
    IDENT = "ident"
    QUOTED_IDENT = "quoted_ident"
    STRING = "string"
    LPAREN = "("
    RPAREN = ")"


@dataclass(frozen=True)
class Token:
    """One lexical token of a statement.

    ``value`` is unquoted for quoted identifiers and string literals;
    ``quote`` remembers the quote character so the original spelling can
    be re-emitted.  ``start``/``end`` are offsets into the tokenized text.
    """

    kind: TokenKind
    value: str
    quote: str | None = None
    start: int = 0
    end: int = 0

    @property
    def upper(self) -> str:
        return self.value.upper()

    def is_keyword(self, *words: str) -> bool:
        """True for a bare identifier equal to one of *words* (any case)."""
        return self.kind is TokenKind.IDENT and self.value.upper() in words


def _skip_quoted(text: str, pos: int) -> int:
    """Return the index just past the quoted run starting at *pos*.

    A doubled closing quote (``'it''s'``) is an escaped quote, not the end.
    An unterminated run extends to the end of *text*.
    """
    close = text[pos]
    i = pos + 1
    while i < len(text):
        if text[i] == close:
            if i + 1 < len(text) and text[i + 1] == close:
                i += 2
                continue
            return i + 1
        i += 1
    return len(text)


def strip_comments(sql: str) -> str:
    """Remove ``--`` line comments and ``/* */`` block comments.

    Line breaks ending a line comment are kept.  An unterminated block
    comment swallows the rest of the text.
    """
    out: list[str] = []
    i = 0
    while i < len(sql):
        ch = sql[i]
        if ch in QUOTES:
            end = _skip_quoted(sql, i)
            out.append(sql[i:end])
            i = end
        elif sql.startswith("--", i):
            newline = sql.find("\n", i)
            i = len(sql) if newline < 0 else newline
        elif sql.startswith("/*", i):
            close = sql.find("*/", i + 2)
            if close < 0:
                break
            out.append(" ")
            i = close + 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def split_top_level(text: str, separator: str) -> list[str]:
    """Split *text* at *separator* characters outside parentheses and quotes."""
    parts: list[str] = []
    depth = 0
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in QUOTES:
            i = _skip_quoted(text, i)
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif ch == separator and depth == 0:
            part = text[start:i].strip()
            if part:
                parts.append(part)
            start = i + 1
        i += 1
    rest = text[start:].strip()
    if rest:
        parts.append(rest)
    return parts


def split_statements(sql: str) -> list[str]:
    """Split a script into statements at top-level ``;`` boundaries.

    A trailing statement without a semicolon is kept; empty statements
    are dropped.
    """
    return split_top_level(sql, ";")


def split_definitions(body: str) -> list[str]:
    """Split a CREATE TABLE body into its top-level comma-separated parts."""
    return split_top_level(body, ",")


def find_balanced(
    text: str,
    open_char: str = "(",
    close_char: str = ")",
    quotes: str = QUOTES,
) -> tuple[int, int] | None:
    """Locate the first balanced ``open_char``/``close_char`` pair.

    Returns ``(open_index, close_index)`` or ``None`` when there is no
    opening character or it is never closed.  Runs quoted with one of
    *quotes* are skipped.
    """
    depth = 0
    opened = -1
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in quotes:
            i = _skip_quoted(text, i)
            continue
        if ch == open_char:
            if depth == 0:
                opened = i
            depth += 1
        elif ch == close_char and depth > 0:
            depth -= 1
            if depth == 0:
                return opened, i
        i += 1
    return None


def extract_balanced(
    text: str,
    open_char: str = "(",
    close_char: str = ")",
    quotes: str = QUOTES,
) -> str:
    """Content between the first balanced pair, or ``""`` if unbalanced.

        >>> extract_balanced("CREATE TABLE t (a INT, b NUMERIC(10,2))")
        'a INT, b NUMERIC(10,2)'
    """
    span = find_balanced(text, open_char, close_char, quotes)
    if span is None:
        return ""
    return text[span[0] + 1 : span[1]]


def tokenize(statement: str) -> list[Token]:
    """Tokenize one statement or definition.

    Produces identifiers (anything not whitespace, quote or paren),
    quoted identifiers (backtick or double quote), string literals
    (single quote) and standalone parentheses.  Quoted values are
    unquoted, with doubled quotes collapsed.
    """
    tokens: list[Token] = []
    i = 0
    word_start = -1

    def flush(end: int) -> None:
        nonlocal word_start
        if word_start >= 0:
            tokens.append(
                Token(TokenKind.IDENT, statement[word_start:end], start=word_start, end=end)
            )
            word_start = -1

    while i < len(statement):
        ch = statement[i]
        if ch in QUOTES:
            flush(i)
            end = _skip_quoted(statement, i)
            closed = end - 1 > i and statement[end - 1] == ch
            inner = statement[i + 1 : end - 1 if closed else end]
            kind = TokenKind.STRING if ch == "'" else TokenKind.QUOTED_IDENT
            tokens.append(Token(kind, inner.replace(ch * 2, ch), quote=ch, start=i, end=end))
            i = end
        elif ch in "()":
            flush(i)
            kind = TokenKind.LPAREN if ch == "(" else TokenKind.RPAREN
            tokens.append(Token(kind, ch, start=i, end=i + 1))
            i += 1
        elif ch in _WHITESPACE:
            flush(i)
            i += 1
        else:
            if word_start < 0:
                word_start = i
            i += 1
    flush(len(statement))
    return tokens


def matching_paren(tokens: list[Token], open_index: int) -> int:
    """Index of the RPAREN closing the LPAREN at *open_index*, or -1."""
    depth = 0
    for i in range(open_index, len(tokens)):
        kind = tokens[i].kind
        if kind is TokenKind.LPAREN:
            depth += 1
        elif kind is TokenKind.RPAREN:
            depth -= 1
            if depth == 0:
                return i
    return -1
