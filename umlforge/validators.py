# File: umlforge/validators.py
"""
NexaFlow UMLForge - Diagram & Configuration Validators
=======================================================
Semantic checks run on the extracted ``DiagramIR`` and the
``TranslationConfig`` before any relationship is resolved.

The extractor already guarantees a well-formed IR (every link has two
known endpoints, every member parsed). What it cannot see is whether the
diagram will translate cleanly: class names that collide with SQL or Java
keywords, attributes shadowing the generated ``id``, a class with two
parents, inheritance loops, multiplicities nobody can read, a base URL
without a scheme.

Errors stop a strict translation, so only problems that leave nothing
sensible to generate are errors: unusable class names and a broken
configuration. Anything the resolver or the generators repair by
dropping a link or a repeated member is a warning. Warnings are printed
in the report; infos only show up in ``format_report(include_info=True)``.
A many-to-many association is a warning: the resolver handles it with a
join table.

    from umlforge.validators import validate_full
    result = validate_full(ir, config)
    if not result:
        print(result.format_report())
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set, Tuple

from umlforge.models import DiagramIR, RelationshipKind, TranslationConfig
from umlforge.naming import (
    JAVA_RESERVED_WORDS,
    SQL_RESERVED_WORDS,
    class_identifier,
    fold_ascii,
    table_name,
    to_pascal_case,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight error descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """
    Accumulates ``ValidationError`` instances produced by the pipeline.

    Provides O(1) access to counts and O(n) filtering.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        """Merge another result into this one. O(k) where k = len(other)."""
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationError]:
        return list(self._items)

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "❌",
                "warning": "⚠️",
                "info": "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            if item.context:
                for k, v in item.context.items():
                    lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_PASCAL_CASE_RE: re.Pattern[str] = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_MULTIPLICITY_RE: re.Pattern[str] = re.compile(r"^(\d+|\*|[nNmM])(\.\.(\d+|\*|[nNmM]))?$")
_SEMANTIC_VERSION_RE: re.Pattern[str] = re.compile(r"^\d+\.\d+\.\d+([a-zA-Z0-9\.\-]+)?$")
_ARTIFACT_ID_RE: re.Pattern[str] = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")


# ---------------------------------------------------------------------------
# Individual validation functions (each is O(n) or better)
# ---------------------------------------------------------------------------


def validate_class_names(ir: DiagramIR) -> ValidationResult:
    """
    Validate all class names for:
    - No duplicates (the extractor drops them, but an IR may be built directly)
    - A usable identifier after normalisation
    - PascalCase convention
    - Java keywords and SQL reserved table names

    Complexity: O(C) where C = number of classes.
    """
    result: ValidationResult = ValidationResult()
    seen: Set[str] = set()

    for cls in ir.classes:
        name: str = cls.name
        ctx: Dict[str, Any] = {"class": name}

        if name in seen:
            result.add_error(
                "DUPLICATE_CLASS_NAME",
                f"Class name '{name}' is defined more than once.",
                ctx,
            )
        seen.add(name)

        if not to_pascal_case(name):
            result.add_error(
                "INVALID_CLASS_NAME",
                f"Class name '{name}' contains no letters or digits.",
                ctx,
            )
            continue

        if not _PASCAL_CASE_RE.match(fold_ascii(name)):
            result.add_warning(
                "CLASS_NAME_NOT_PASCAL_CASE",
                f"Class name '{name}' is not PascalCase; generated code will use "
                f"'{to_pascal_case(name)}'.",
                ctx,
            )

        if name.lower() in JAVA_RESERVED_WORDS:
            result.add_warning(
                "CLASS_NAME_JAVA_RESERVED",
                f"Class name '{name}' is a Java keyword; generated code uses "
                f"'{class_identifier(name)}'.",
                ctx,
            )

        if cls.is_persistable and table_name(name) in SQL_RESERVED_WORDS:
            result.add_warning(
                "TABLE_NAME_SQL_RESERVED",
                f"Class '{name}' maps to table '{table_name(name)}', a SQL reserved word; "
                "the generated DDL quotes it.",
                ctx,
            )

    return result


def validate_attributes(ir: DiagramIR) -> ValidationResult:
    """
    Per-class attribute checks: duplicates, identifiers, keywords and the
    generated ``id`` key.

    Complexity: O(A) where A = total attributes.
    """
    result: ValidationResult = ValidationResult()

    for cls in ir.classes:
        seen: Set[str] = set()
        for attribute in cls.attributes:
            ctx: Dict[str, Any] = {"class": cls.name, "attribute": attribute.name}
            key: str = attribute.name.lower()

            if key in seen:
                result.add_warning(
                    "DUPLICATE_ATTRIBUTE",
                    f"Attribute '{attribute.name}' appears twice in '{cls.name}'; only the "
                    "first is generated.",
                    ctx,
                )
            seen.add(key)

            if key == "id":
                result.add_info(
                    "ATTRIBUTE_ID_GENERATED",
                    f"'{cls.name}.id' is replaced by the generated primary key.",
                    ctx,
                )
                continue

            if not _IDENTIFIER_RE.match(fold_ascii(attribute.name)):
                result.add_warning(
                    "ATTRIBUTE_NAME_NOT_IDENTIFIER",
                    f"Attribute '{attribute.name}' in '{cls.name}' is not a valid "
                    f"identifier; it will be normalised.",
                    ctx,
                )

            if attribute.name in JAVA_RESERVED_WORDS:
                result.add_warning(
                    "ATTRIBUTE_NAME_JAVA_RESERVED",
                    f"Attribute '{attribute.name}' in '{cls.name}' is a Java keyword; "
                    f"it will be renamed '{attribute.name}Field'.",
                    ctx,
                )

        if cls.is_persistable and not cls.attributes:
            result.add_info(
                "ENTITY_WITHOUT_ATTRIBUTES",
                f"Entity '{cls.name}' has no attributes; only keys will be generated.",
                {"class": cls.name},
            )

    return result


def validate_relationships(ir: DiagramIR) -> ValidationResult:
    """
    Check every relationship for:
    - Endpoints that exist in the diagram
    - Self-inheritance and multiple inheritance
    - Many-to-many associations (join table needed)
    - Endpoints that are not entities

    Complexity: O(R) where R = number of relationships.
    """
    result: ValidationResult = ValidationResult()
    parents: Dict[str, str] = {}

    for index, rel in enumerate(ir.relationships):
        ctx: Dict[str, Any] = {
            "relationship": index + 1,
            "source": rel.source,
            "target": rel.target,
        }
        source = ir.get_class(rel.source)
        target = ir.get_class(rel.target)

        if source is None or target is None:
            result.add_warning(
                "DANGLING_RELATIONSHIP",
                f"Relationship #{index + 1} references a class that is not in the "
                "diagram; it is dropped.",
                ctx,
            )
            continue

        if rel.kind == RelationshipKind.INHERITANCE:
            if rel.source == rel.target:
                result.add_warning(
                    "SELF_INHERITANCE",
                    f"Class '{rel.source}' inherits from itself; the link is dropped.",
                    ctx,
                )
            elif rel.source in parents and parents[rel.source] != rel.target:
                result.add_warning(
                    "MULTIPLE_INHERITANCE",
                    f"Class '{rel.source}' extends both '{parents[rel.source]}' and "
                    f"'{rel.target}'; only the first is kept.",
                    ctx,
                )
            else:
                parents.setdefault(rel.source, rel.target)
            continue

        if not (source.is_persistable and target.is_persistable):
            result.add_warning(
                "RELATIONSHIP_NON_ENTITY",
                f"Relationship {rel.source} -> {rel.target} touches a non-entity "
                f"class; no foreign key will be generated.",
                ctx,
            )
            continue

        if (
            rel.kind == RelationshipKind.ASSOCIATION
            and rel.source_many
            and rel.target_many
        ):
            result.add_warning(
                "MANY_TO_MANY_JOIN_TABLE",
                f"Association {rel.source} [{rel.source_multiplicity}] -> "
                f"{rel.target} [{rel.target_multiplicity}] is many-to-many; a join "
                f"table will be generated.",
                ctx,
            )

    return result


def validate_multiplicities(ir: DiagramIR) -> ValidationResult:
    """Multiplicities should read ``1``, ``*``, ``0..1``, ``1..*``, ``2..5`` …"""
    result: ValidationResult = ValidationResult()
    for index, rel in enumerate(ir.relationships):
        if rel.kind == RelationshipKind.INHERITANCE:
            continue
        for side, value, many in (
            ("source", rel.source_multiplicity, rel.source_many),
            ("target", rel.target_multiplicity, rel.target_many),
        ):
            if not _MULTIPLICITY_RE.match(value.strip()):
                result.add_warning(
                    "UNRECOGNISED_MULTIPLICITY",
                    f"Relationship #{index + 1} {side} multiplicity '{value}' is not "
                    f"standard UML; it is read as {'many' if many else 'one'}.",
                    {"relationship": index + 1, "side": side, "value": value},
                )
    return result


def validate_inheritance_cycles(ir: DiagramIR) -> ValidationResult:
    """
    Detect inheritance cycles using iterative DFS.

    Complexity: O(C + R).
    """
    result: ValidationResult = ValidationResult()

    adjacency: Dict[str, Set[str]] = defaultdict(set)
    for rel in ir.relationships:
        if rel.kind == RelationshipKind.INHERITANCE and rel.source != rel.target:
            adjacency[rel.source].add(rel.target)

    visited: Set[str] = set()
    in_stack: Set[str] = set()
    cycles_found: List[List[str]] = []

    for start in ir.class_names:
        if start in visited:
            continue

        stack: List[Tuple[str, bool]] = [(start, False)]
        path: List[str] = []

        while stack:
            node, is_returning = stack.pop()

            if is_returning:
                in_stack.discard(node)
                if path and path[-1] == node:
                    path.pop()
                continue

            if node in in_stack:
                cycle_start_idx: int = path.index(node) if node in path else len(path)
                cycles_found.append(path[cycle_start_idx:] + [node])
                continue

            if node in visited:
                continue

            visited.add(node)
            in_stack.add(node)
            path.append(node)

            stack.append((node, True))
            for neighbour in sorted(adjacency.get(node, set())):
                stack.append((neighbour, False))

    for cycle in cycles_found:
        result.add_warning(
            "INHERITANCE_CYCLE",
            f"Inheritance cycle detected: {' → '.join(cycle)}; the closing link is dropped.",
            {"cycle": cycle},
        )

    if not cycles_found:
        logger.debug("No inheritance cycles detected.")

    return result


def validate_diagram_size(ir: DiagramIR) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    if not ir.classes:
        result.add_warning(
            "EMPTY_DIAGRAM",
            "The diagram has no classes; generated artifacts will be empty.",
        )
    elif not ir.entities:
        result.add_warning(
            "NO_ENTITIES",
            "The diagram has no entity classes; no tables or CRUD code will be generated.",
        )
    return result


def validate_translation_config(config: TranslationConfig) -> ValidationResult:
    """Sanity-check naming and endpoint settings."""
    result: ValidationResult = ValidationResult()

    if not config.base_url.startswith(("http://", "https://")):
        result.add_error(
            "INVALID_BASE_URL",
            f"base_url '{config.base_url}' must start with http:// or https://.",
            {"base_url": config.base_url},
        )

    if not _ARTIFACT_ID_RE.match(config.artifact_id):
        result.add_warning(
            "ARTIFACT_ID_FORMAT",
            f"artifact_id '{config.artifact_id}' is not lower-case kebab-case.",
            {"artifact_id": config.artifact_id},
        )

    if not _SEMANTIC_VERSION_RE.match(config.project_version):
        result.add_warning(
            "PROJECT_VERSION_FORMAT",
            f"project_version '{config.project_version}' is not semantic (x.y.z).",
            {"project_version": config.project_version},
        )

    if not _IDENTIFIER_RE.match(config.project_name):
        result.add_error(
            "INVALID_PROJECT_NAME",
            f"project_name '{config.project_name}' is not a valid class identifier.",
            {"project_name": config.project_name},
        )

    for segment in config.package_name.split("."):
        if segment in JAVA_RESERVED_WORDS:
            result.add_error(
                "PACKAGE_SEGMENT_RESERVED",
                f"Package segment '{segment}' is a Java keyword.",
                {"package_name": config.package_name},
            )

    if not config.vision_endpoint.startswith(("http://", "https://")):
        result.add_warning(
            "INVALID_VISION_ENDPOINT",
            f"vision_endpoint '{config.vision_endpoint}' is not an HTTP(S) URL.",
        )

    return result


# ---------------------------------------------------------------------------
# Aggregate validators
# ---------------------------------------------------------------------------


def validate_diagram(ir: DiagramIR) -> ValidationResult:
    """All diagram-level validators."""
    result: ValidationResult = ValidationResult()
    for validator in (
        validate_diagram_size,
        validate_class_names,
        validate_attributes,
        validate_relationships,
        validate_multiplicities,
        validate_inheritance_cycles,
    ):
        result.merge(validator(ir))
    return result


def validate_full(ir: DiagramIR, config: TranslationConfig) -> ValidationResult:
    """
    **Master validation entry point.**

    Runs all diagram validators and the configuration validator. This is
    the single function that ``generator.py`` and ``cli.py`` call before
    resolving relationships.
    """
    logger.info(
        "Starting full validation: %d classes, %d relationships",
        len(ir.classes),
        len(ir.relationships),
    )

    result: ValidationResult = ValidationResult()
    result.merge(validate_diagram(ir))
    result.merge(validate_translation_config(config))

    if result.has_errors:
        logger.error(
            "Validation FAILED with %d error(s). %s",
            result.error_count,
            result.summary(),
        )
    else:
        logger.info("Validation PASSED. %s", result.summary())

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "validate_class_names",
    "validate_attributes",
    "validate_relationships",
    "validate_multiplicities",
    "validate_inheritance_cycles",
    "validate_diagram_size",
    "validate_translation_config",
    "validate_diagram",
    "validate_full",
]

logger.debug("umlforge.validators loaded: %d public symbols.", len(__all__))
