"""Identifier helpers: case conversion, (de)pluralization, quoting.

Pure functions, no I/O.

Usage:
    >>> from schema_studio.naming import to_snake_case, to_pascal_name
    >>> to_snake_case("AuthorID")
    'author_id'
    >>> to_pascal_name("api_key")
    'APIKey'
"""

import re

from schema_studio.dialects import Dialect

# Words rendered fully upper-case in PascalCase names
ACRONYMS = {
    "id": "ID",
    "url": "URL",
    "api": "API",
    "ip": "IP",
    "http": "HTTP",
    "https": "HTTPS",
    "sql": "SQL",
    "ssh": "SSH",
    "uuid": "UUID",
    "uri": "URI",
    "html": "HTML",
    "css": "CSS",
    "json": "JSON",
    "xml": "XML",
    "cpu": "CPU",
    "gpu": "GPU",
}

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")

_IDENT_QUOTES = "`\"'[]"

# Irregular plurals, singular -> plural
IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "foot": "feet",
    "tooth": "teeth",
    "ox": "oxen",
}
_IRREGULAR_SINGULARS = {plural: singular for singular, plural in IRREGULAR_PLURALS.items()}


def to_snake_case(name: str) -> str:
    """Convert PascalCase or camelCase to snake_case.

    Runs of capitals are treated as one word, so ``UserID`` becomes
    ``user_id`` and ``HTTPServer`` becomes ``http_server``.
    """
    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    name = _WORD_BOUNDARY.sub(r"\1_\2", name)
    return name.replace("-", "_").lower()


def to_pascal_name(name: str) -> str:
    """Convert a snake_case or lowercase name to PascalCase.

    Known acronyms (see ``ACRONYMS``) are upper-cased as a whole:

        >>> to_pascal_name("user_id")
        'UserID'
        >>> to_pascal_name("post_tags")
        'PostTags'
    """
    parts: list[str] = []
    for part in name.split("_"):
        if not part:
            continue
        acronym = ACRONYMS.get(part.lower())
        if acronym:
            parts.append(acronym)
        else:
            parts.append(part[0].upper() + part[1:])
    return "".join(parts)


def singularize(name: str) -> str:
    """Naive English singularization of a table name."""
    head, sep, last = name.rpartition("_")
    if last in _IRREGULAR_SINGULARS:
        return head + sep + _IRREGULAR_SINGULARS[last]
    if name.endswith("ies"):
        return name[:-3] + "y"
    if name.endswith(("ses", "xes", "zes")):
        return name[:-2]
    if name.endswith("s") and not name.endswith("ss"):
        return name[:-1]
    return name


def pluralize(name: str) -> str:
    """Naive English pluralization, the inverse of ``singularize``."""
    if not name:
        return name
    head, sep, last = name.rpartition("_")
    if last in IRREGULAR_PLURALS:
        return head + sep + IRREGULAR_PLURALS[last]
    if last in _IRREGULAR_SINGULARS:
        return name
    if name.endswith("y") and name[-2:-1] not in ("a", "e", "i", "o", "u", ""):
        return name[:-1] + "ies"
    if name.endswith(("s", "x", "z")):
        return name + "es"
    return name + "s"


def quote_ident(dialect: Dialect | str, name: str) -> str:
    """Quote an identifier for *dialect*, doubling embedded quote characters.

        >>> quote_ident("mysql", "order")
        '`order`'
        >>> quote_ident("sqlite", 'a"b')
        '"a""b"'
    """
    quote = Dialect.from_name(dialect).quote_char
    return quote + name.replace(quote, quote * 2) + quote


def unquote_ident(text: str) -> str:
    """Strip surrounding identifier quotes (backtick, double, single, brackets)."""
    return text.strip().strip(_IDENT_QUOTES)
