# File: umlforge/naming.py
"""
NexaFlow UMLForge - Identifier & Naming Normalizer
===================================================
Pure string transforms converting class and attribute names between the
conventions every generator needs: PascalCase classes, camelCase fields,
snake_case tables and columns, kebab-case URL segments.

Every generator routes identifiers through this module; none performs
its own string surgery on names.

Performance strategy:
- ALL conversion functions are decorated with ``@lru_cache(maxsize=None)``
  so the thousands of repeated calls made while rendering a large
  diagram are amortised to O(1) after the first invocation.
- Accented letters (``Habitación``) are folded to ASCII before splitting.
"""

from __future__ import annotations

import functools
import logging
import re
import unicodedata
from typing import FrozenSet, List, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.naming")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_NON_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9_]")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)
_VISIBILITY_MARKER_RE: re.Pattern[str] = re.compile(r"^\s*[+\-#~]\s*")

# ---------------------------------------------------------------------------
# Reserved words per target language
# ---------------------------------------------------------------------------

JAVA_RESERVED_WORDS: FrozenSet[str] = frozenset({
    "abstract", "assert", "boolean", "break", "byte", "case", "catch",
    "char", "class", "const", "continue", "default", "do", "double",
    "else", "enum", "extends", "final", "finally", "float", "for", "goto",
    "if", "implements", "import", "instanceof", "int", "interface", "long",
    "native", "new", "package", "private", "protected", "public", "return",
    "short", "static", "strictfp", "super", "switch", "synchronized",
    "this", "throw", "throws", "transient", "try", "void", "volatile",
    "while", "true", "false", "null", "var", "record", "yield",
})

DART_RESERVED_WORDS: FrozenSet[str] = frozenset({
    "abstract", "as", "assert", "async", "await", "break", "case", "catch",
    "class", "const", "continue", "covariant", "default", "deferred", "do",
    "dynamic", "else", "enum", "export", "extends", "extension", "external",
    "factory", "false", "final", "finally", "for", "get", "if",
    "implements", "import", "in", "interface", "is", "late", "library",
    "mixin", "new", "null", "operator", "part", "required", "rethrow",
    "return", "set", "static", "super", "switch", "sync", "this", "throw",
    "true", "try", "typedef", "var", "void", "while", "with", "yield",
})

SQL_RESERVED_WORDS: FrozenSet[str] = frozenset({
    "add", "all", "alter", "and", "as", "asc", "between", "by", "case",
    "check", "column", "constraint", "create", "database", "default",
    "delete", "desc", "distinct", "drop", "exists", "foreign", "from",
    "group", "having", "in", "index", "insert", "into", "is", "join",
    "key", "like", "limit", "not", "null", "or", "order", "primary",
    "references", "select", "set", "table", "to", "union", "unique",
    "update", "values", "view", "where", "user",
})


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def fold_ascii(name: str) -> str:
    """Drop diacritics: ``Habitación`` → ``Habitacion``, ``Año`` → ``Ano``."""
    normalized: str = unicodedata.normalize("NFKD", name)
    return normalized.encode("ascii", "ignore").decode("ascii")


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """
    Extract individual words from any casing style.

    Returns a tuple (hashable for LRU cache) of lowercase word strings.
    """
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", fold_ascii(name))
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("UserProfile")
        'user_profile'
        >>> to_snake_case("usuarioId")
        'usuario_id'
        >>> to_snake_case("Habitación")
        'habitacion'
    """
    if not name:
        return ""
    return "_".join(_extract_words(name))


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert any string to PascalCase.

    Examples:
        >>> to_pascal_case("user_profile")
        'UserProfile'
        >>> to_pascal_case("detalle pedido")
        'DetallePedido'
    """
    if not name:
        return ""
    return "".join(word.capitalize() for word in _extract_words(name))


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("Usuario")
        'usuario'
        >>> to_camel_case("DetallePedido")
        'detallePedido'
    """
    words: Tuple[str, ...] = _extract_words(name) if name else ()
    if not words:
        return ""
    return words[0] + "".join(w.capitalize() for w in words[1:])


@functools.lru_cache(maxsize=None)
def to_kebab_case(name: str) -> str:
    """Convert any string to kebab-case (used in URL paths)."""
    if not name:
        return ""
    return "-".join(_extract_words(name))


@functools.lru_cache(maxsize=None)
def to_title_human(name: str) -> str:
    """
    Convert identifier to human-readable title.

    Examples:
        >>> to_title_human("detallePedido")
        'Detalle Pedido'
    """
    if not name:
        return ""
    return " ".join(w.capitalize() for w in _extract_words(name))


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Plural form used for tables, collections and URL segments.

    Deliberately mechanical so every target agrees: ``s`` is appended,
    ``es`` after a trailing ``s``. ``pedido`` → ``pedidos``,
    ``habitacion`` → ``habitacions``.
    """
    if not name:
        return ""
    if name.endswith(("s", "S")):
        return name + "es"
    return name + "s"


@functools.lru_cache(maxsize=None)
def strip_visibility_marker(text: str) -> str:
    """Remove a leading UML visibility symbol (``+ - # ~``)."""
    return _VISIBILITY_MARKER_RE.sub("", text or "", count=1).strip()


def sanitize_identifier(
    name: str,
    reserved_words: FrozenSet[str] = JAVA_RESERVED_WORDS,
    fallback: str = "field",
    suffix: str = "Field",
) -> str:
    """
    Make *name* a valid identifier for a target language.

    - Drops every character that is not a letter, digit or underscore
    - Prefixes with *fallback* if the result starts with a digit
    - Appends *suffix* if the result is in *reserved_words*
    - Returns *fallback* for an empty result
    """
    result: str = _NON_IDENTIFIER_RE.sub("", fold_ascii(name or ""))
    if not result:
        return fallback
    if result[0].isdigit():
        result = f"{fallback}{result}"
    if result in reserved_words:
        result = f"{result}{suffix}"
    return result


@functools.lru_cache(maxsize=None)
def java_field_name(name: str) -> str:
    """camelCase Java field, sanitised against Java keywords."""
    return sanitize_identifier(to_camel_case(name) or name, JAVA_RESERVED_WORDS)


@functools.lru_cache(maxsize=None)
def dart_field_name(name: str) -> str:
    """camelCase Dart field, sanitised against Dart keywords."""
    return sanitize_identifier(to_camel_case(name) or name, DART_RESERVED_WORDS)


@functools.lru_cache(maxsize=None)
def class_identifier(name: str) -> str:
    """PascalCase type name, sanitised for Java and Dart."""
    return sanitize_identifier(
        to_pascal_case(name) or name,
        JAVA_RESERVED_WORDS | DART_RESERVED_WORDS,
        fallback="Clase",
        suffix="Entity",
    )


@functools.lru_cache(maxsize=None)
def column_name(name: str) -> str:
    """snake_case SQL column, sanitised against SQL keywords."""
    return sanitize_identifier(to_snake_case(name) or name, SQL_RESERVED_WORDS, "col", "_col")


@functools.lru_cache(maxsize=None)
def clash_keys(name: str) -> Tuple[str, str]:
    """
    Forms under which two member names collide in generated code.

    ``usuario_id``, ``UsuarioId`` and ``usuarioId`` all end up as the Java
    field ``usuarioId`` and the column ``usuario_id``.
    """
    return java_field_name(name), column_name(name)


@functools.lru_cache(maxsize=None)
def table_name(class_name: str) -> str:
    """Plural snake_case table: ``Animal`` → ``animals``, ``Perro`` → ``perros``."""
    return to_plural(table_singular(class_name))


@functools.lru_cache(maxsize=None)
def table_singular(class_name: str) -> str:
    """Singular snake_case form of a class name, used for key columns."""
    return to_snake_case(class_name) or "tabla"


@functools.lru_cache(maxsize=None)
def url_segment(class_name: str) -> str:
    """``DetallePedido`` → ``detalle-pedidos``."""
    return to_plural(to_kebab_case(class_name))


# ---------------------------------------------------------------------------
# Project naming (derived from the diagram title)
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def sanitize_project_name(title: str) -> str:
    """``"Tienda Online"`` → ``"TiendaOnline"``; fallback ``DiagramaUML``."""
    words: Tuple[str, ...] = _extract_words(title or "")
    if not words:
        return "DiagramaUML"
    result: str = "".join(w[:1].upper() + w[1:] for w in words)
    if result[0].isdigit():
        result = f"Proyecto{result}"
    return result


@functools.lru_cache(maxsize=None)
def to_artifact_id(title: str) -> str:
    """``"Tienda Online"`` → ``"tienda-online"``."""
    artifact: str = to_kebab_case(title or "")
    if not artifact:
        return "diagramauml"
    if artifact[0].isdigit():
        artifact = f"proyecto-{artifact}"
    return artifact


@functools.lru_cache(maxsize=None)
def to_package_name(title: str) -> str:
    """``"Tienda Online"`` → ``"com.tiendaonline"``."""
    segment: str = to_artifact_id(title).replace("-", "")
    if segment in JAVA_RESERVED_WORDS:
        segment = f"{segment}app"
    return f"com.{segment}"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "JAVA_RESERVED_WORDS",
    "DART_RESERVED_WORDS",
    "SQL_RESERVED_WORDS",
    "fold_ascii",
    "to_snake_case",
    "to_pascal_case",
    "to_camel_case",
    "to_kebab_case",
    "to_title_human",
    "to_plural",
    "strip_visibility_marker",
    "sanitize_identifier",
    "java_field_name",
    "dart_field_name",
    "class_identifier",
    "column_name",
    "clash_keys",
    "table_name",
    "table_singular",
    "url_segment",
    "sanitize_project_name",
    "to_artifact_id",
    "to_package_name",
]

logger.debug("umlforge.naming loaded: %d public symbols.", len(__all__))
