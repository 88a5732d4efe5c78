# File: umlforge/type_mapper.py
"""
NexaFlow UMLForge - Type Mapper
================================
Maps UML attribute type names (``String``, ``int``, ``Date``,
``BigDecimal`` …) onto target-specific types. One independent table per
target language:

- ``sql``:  ``BigDecimal`` → ``DECIMAL(15,2)``, fallback ``VARCHAR(255)``
- ``java``: ``date`` → ``LocalDate``, fallback ``String``
- ``dart``: ``Integer`` → ``int``, fallback ``String``

:meth:`TypeMapper.map` is total: it returns a type for every input,
including ``None`` and unrecognised names.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.type_mapper")


class TargetLanguage(str, Enum):
    """Languages owning a type table."""

    SQL = "sql"
    JAVA = "java"
    DART = "dart"


_TARGET_ALIASES: Dict[str, TargetLanguage] = {
    "sql": TargetLanguage.SQL,
    "schema": TargetLanguage.SQL,
    "mysql": TargetLanguage.SQL,
    "java": TargetLanguage.JAVA,
    "backend": TargetLanguage.JAVA,
    "spring": TargetLanguage.JAVA,
    "dart": TargetLanguage.DART,
    "mobile": TargetLanguage.DART,
    "flutter": TargetLanguage.DART,
}

_GENERIC_RE: re.Pattern[str] = re.compile(r"^\s*(?P<base>[A-Za-z_][\w.]*)\s*<(?P<args>.*)>\s*$")
_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_COLLECTION_NAMES: FrozenSet[str] = frozenset(
    {"list", "set", "collection", "arraylist", "hashset", "iterable"}
)

# ---------------------------------------------------------------------------
# Mapping tables (keys are exact UML spellings unless noted)
# ---------------------------------------------------------------------------

SQL_TYPE_MAP: Dict[str, str] = {
    "String": "VARCHAR(255)",
    "string": "VARCHAR(255)",
    "int": "INT",
    "Integer": "INT",
    "long": "BIGINT",
    "Long": "BIGINT",
    "short": "SMALLINT",
    "Short": "SMALLINT",
    "double": "DECIMAL(10,2)",
    "Double": "DECIMAL(10,2)",
    "float": "FLOAT",
    "Float": "FLOAT",
    "boolean": "BOOLEAN",
    "Boolean": "BOOLEAN",
    "bool": "BOOLEAN",
    "Date": "DATETIME",
    "date": "DATE",
    "LocalDateTime": "DATETIME",
    "DateTime": "DATETIME",
    "datetime": "DATETIME",
    "Timestamp": "TIMESTAMP",
    "timestamp": "TIMESTAMP",
    "LocalDate": "DATE",
    "LocalTime": "TIME",
    "Time": "TIME",
    "BigDecimal": "DECIMAL(15,2)",
    "decimal": "DECIMAL(15,2)",
    "char": "CHAR(1)",
    "Character": "CHAR(1)",
    "byte[]": "BLOB",
    "text": "TEXT",
    "Text": "TEXT",
    "UUID": "CHAR(36)",
}

# Keys are lower-cased before lookup.
JAVA_TYPE_MAP: Dict[str, str] = {
    "string": "String",
    "varchar": "String",
    "text": "String",
    "char": "String",
    "character": "String",
    "int": "Integer",
    "integer": "Integer",
    "short": "Short",
    "long": "Long",
    "double": "Double",
    "float": "Float",
    "boolean": "Boolean",
    "bool": "Boolean",
    "date": "LocalDate",
    "localdate": "LocalDate",
    "datetime": "LocalDateTime",
    "timestamp": "LocalDateTime",
    "localdatetime": "LocalDateTime",
    "localtime": "LocalTime",
    "time": "LocalTime",
    "bigdecimal": "BigDecimal",
    "decimal": "BigDecimal",
    "numeric": "BigDecimal",
    "uuid": "UUID",
    "byte[]": "byte[]",
    "object": "Object",
}

DART_TYPE_MAP: Dict[str, str] = {
    "String": "String",
    "string": "String",
    "text": "String",
    "char": "String",
    "Character": "String",
    "int": "int",
    "Integer": "int",
    "long": "int",
    "Long": "int",
    "short": "int",
    "Short": "int",
    "double": "double",
    "Double": "double",
    "float": "double",
    "Float": "double",
    "BigDecimal": "double",
    "decimal": "double",
    "boolean": "bool",
    "Boolean": "bool",
    "bool": "bool",
    "Date": "DateTime",
    "date": "DateTime",
    "LocalDate": "DateTime",
    "LocalDateTime": "DateTime",
    "DateTime": "DateTime",
    "datetime": "DateTime",
    "Timestamp": "DateTime",
    "UUID": "String",
}

JAVA_TYPE_IMPORTS: Dict[str, str] = {
    "LocalDate": "java.time.LocalDate",
    "LocalDateTime": "java.time.LocalDateTime",
    "LocalTime": "java.time.LocalTime",
    "BigDecimal": "java.math.BigDecimal",
    "UUID": "java.util.UUID",
    "List": "java.util.List",
    "Set": "java.util.Set",
    "Map": "java.util.Map",
    "Collection": "java.util.Collection",
}

SQL_FALLBACK: str = "VARCHAR(255)"
JAVA_FALLBACK: str = "String"
DART_FALLBACK: str = "String"


# ---------------------------------------------------------------------------
# Mapper
# ---------------------------------------------------------------------------


class TypeMapper:
    """
    Pure, total mapping ``(target, uml_type) -> target_type``.

    *known_classes* are the diagram's class names: they are valid type
    references for the backend and pass through unchanged there, while
    every other unknown name falls back to the target's string type.
    """

    __slots__ = ("known_classes",)

    def __init__(self, known_classes: Iterable[str] = ()) -> None:
        self.known_classes: FrozenSet[str] = frozenset(known_classes)

    # -- Public API ------------------------------------------------------

    def map(self, target: Union[str, TargetLanguage], uml_type: Optional[str]) -> str:
        language: TargetLanguage = self._resolve_target(target)
        if language == TargetLanguage.SQL:
            return self.sql(uml_type)
        if language == TargetLanguage.JAVA:
            return self.java(uml_type)
        return self.dart(uml_type)

    def sql(self, uml_type: Optional[str]) -> str:
        raw: str = (uml_type or "").strip()
        if not raw:
            return SQL_FALLBACK
        if raw in SQL_TYPE_MAP:
            return SQL_TYPE_MAP[raw]
        if self.is_container(raw):
            return "JSON"
        lowered: str = raw.lower()
        for key, value in SQL_TYPE_MAP.items():
            if key.lower() == lowered:
                return value
        return SQL_FALLBACK

    def java(self, uml_type: Optional[str]) -> str:
        raw: str = (uml_type or "").strip()
        if not raw:
            return JAVA_FALLBACK
        if "<" in raw and ">" in raw:
            return raw
        if raw.endswith("[]") and raw.lower() != "byte[]":
            return f"{self.java(raw[:-2])}[]"
        mapped: Optional[str] = JAVA_TYPE_MAP.get(raw.lower())
        if mapped is not None:
            return mapped
        if raw in self.known_classes and _IDENTIFIER_RE.match(raw):
            return raw
        logger.debug("Unknown UML type %r mapped to %s.", raw, JAVA_FALLBACK)
        return JAVA_FALLBACK

    def dart(self, uml_type: Optional[str]) -> str:
        raw: str = (uml_type or "").strip()
        if not raw:
            return DART_FALLBACK
        if raw in DART_TYPE_MAP:
            return DART_TYPE_MAP[raw]
        generic: Optional[re.Match[str]] = _GENERIC_RE.match(raw)
        if generic is not None and generic.group("base").lower() == "map":
            return "Map<String, dynamic>"
        if self.is_container(raw):
            return "List<dynamic>"
        if raw.lower() == "map":
            return "Map<String, dynamic>"
        return DART_FALLBACK

    # -- Helpers ---------------------------------------------------------

    @staticmethod
    def is_container(uml_type: Optional[str]) -> bool:
        """Arrays, ``List<X>``, ``Set``, ``Collection``, ``Map`` …"""
        raw: str = (uml_type or "").strip()
        if not raw:
            return False
        if raw.endswith("[]") and raw.lower() != "byte[]":
            return True
        if "<" in raw and ">" in raw:
            return True
        return raw.lower() in _COLLECTION_NAMES or raw.lower() == "map"

    @staticmethod
    def java_imports_for(java_type: str) -> List[str]:
        """Fully-qualified imports a mapped Java type needs."""
        found: List[str] = []
        for token in re.findall(r"[A-Za-z_][A-Za-z0-9_]*", java_type or ""):
            qualified: Optional[str] = JAVA_TYPE_IMPORTS.get(token)
            if qualified and qualified not in found:
                found.append(qualified)
        return found

    @staticmethod
    def _resolve_target(target: Union[str, TargetLanguage]) -> TargetLanguage:
        if isinstance(target, TargetLanguage):
            return target
        language: Optional[TargetLanguage] = _TARGET_ALIASES.get(str(target).strip().lower())
        if language is None:
            raise ValueError(
                f"Unknown target language '{target}'. "
                f"Expected one of: {sorted(_TARGET_ALIASES)}"
            )
        return language

    def __repr__(self) -> str:
        return f"<TypeMapper {len(self.known_classes)} known classes>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TargetLanguage",
    "SQL_TYPE_MAP",
    "JAVA_TYPE_MAP",
    "DART_TYPE_MAP",
    "JAVA_TYPE_IMPORTS",
    "SQL_FALLBACK",
    "JAVA_FALLBACK",
    "DART_FALLBACK",
    "TypeMapper",
]

logger.debug("umlforge.type_mapper loaded.")
