# File: umlforge/extractor.py
"""
NexaFlow UMLForge - Diagram Model Extractor
============================================
Reads a diagram snapshot (plain ``dict`` / JSON / YAML structure handed
over by the editor) and produces the immutable :class:`DiagramIR`.

Snapshot shape::

    {
      "title": "Tienda",
      "classes": [{"id", "name", "type", "stereotype",
                   "attributes": ["- email: String", ...],
                   "methods": ["+ login(): boolean", ...],
                   "position": {"x", "y"}}],
      "links":   [{"sourceId", "targetId", "kind",
                   "sourceMultiplicity", "targetMultiplicity", "label"}]
    }

Member strings are parsed by ONE grammar (:func:`parse_member`); the
interchange and XMI importers, the vision client and every generator
reuse it. Problems in the snapshot never raise: they are recovered with
a default and reported in :attr:`ExtractionResult.warnings`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from umlforge.models import (
    SYMBOL_VISIBILITIES,
    AttributeSpec,
    ClassEntity,
    ClassKind,
    DiagramIR,
    MethodSpec,
    Position,
    Relationship,
    RelationshipKind,
    Stereotype,
    Visibility,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.extractor")

# ---------------------------------------------------------------------------
# Member grammar
# ---------------------------------------------------------------------------

_MEMBER_RE: re.Pattern[str] = re.compile(
    r"^\s*(?P<vis>[+\-#~])?\s*"
    r"(?P<name>[^:(]+?)\s*"
    r"(?:\((?P<params>[^)]*)\))?\s*"
    r"(?::\s*(?P<type>.+?))?\s*$"
)

DEFAULT_ATTRIBUTE_TYPE: str = "String"
DEFAULT_RETURN_TYPE: str = "void"

_RELATIONSHIP_ALIASES: Dict[str, RelationshipKind] = {
    "inheritance": RelationshipKind.INHERITANCE,
    "generalization": RelationshipKind.INHERITANCE,
    "generalizacion": RelationshipKind.INHERITANCE,
    "herencia": RelationshipKind.INHERITANCE,
    "extends": RelationshipKind.INHERITANCE,
    "realization": RelationshipKind.INHERITANCE,
    "implements": RelationshipKind.INHERITANCE,
    "composition": RelationshipKind.COMPOSITION,
    "composite": RelationshipKind.COMPOSITION,
    "composicion": RelationshipKind.COMPOSITION,
    "composición": RelationshipKind.COMPOSITION,
    "aggregation": RelationshipKind.AGGREGATION,
    "shared": RelationshipKind.AGGREGATION,
    "agregacion": RelationshipKind.AGGREGATION,
    "agregación": RelationshipKind.AGGREGATION,
    "association": RelationshipKind.ASSOCIATION,
    "asociacion": RelationshipKind.ASSOCIATION,
    "asociación": RelationshipKind.ASSOCIATION,
}


# ---------------------------------------------------------------------------
# Parsing primitives
# ---------------------------------------------------------------------------


def _split_parameters(params: str) -> List[str]:
    """Split ``a: int, b: Map<String, Long>`` on top-level commas only."""
    parts: List[str] = []
    depth: int = 0
    current: List[str] = []
    for ch in params:
        if ch in "<[":
            depth += 1
        elif ch in ">]":
            depth = max(0, depth - 1)
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def parse_member(
    text: str,
) -> Optional[Tuple[Optional[str], str, Optional[str], Optional[str]]]:
    """
    Apply the member grammar to *text*.

    Returns ``(visibility_symbol, name, params, type)`` or ``None`` when no
    name can be read.
    """
    if not isinstance(text, str):
        return None
    match: Optional[re.Match[str]] = _MEMBER_RE.match(text)
    if match is None:
        return None
    name: str = match.group("name").strip()
    if not name:
        return None
    type_name: Optional[str] = match.group("type")
    return (
        match.group("vis"),
        name,
        match.group("params"),
        type_name.strip() if type_name else None,
    )


def parse_attribute(text: str) -> Optional[AttributeSpec]:
    """
    Parse ``"- email: String"`` into an :class:`AttributeSpec`.

    Missing type → ``String``; missing visibility → private.
    """
    parsed = parse_member(text)
    if parsed is None:
        return None
    symbol, name, _params, type_name = parsed
    return AttributeSpec(
        visibility=SYMBOL_VISIBILITIES.get(symbol or "-", Visibility.PRIVATE.value),
        name=name,
        type_name=type_name or DEFAULT_ATTRIBUTE_TYPE,
    )


def parse_method(text: str) -> Optional[MethodSpec]:
    """
    Parse ``"+ calcular(x: int): double"`` into a :class:`MethodSpec`.

    Missing return type → ``void``; missing visibility → public.
    """
    parsed = parse_member(text)
    if parsed is None:
        return None
    symbol, name, params, return_type = parsed
    parameters: List[AttributeSpec] = []
    for raw in _split_parameters(params or ""):
        param: Optional[AttributeSpec] = parse_attribute(raw)
        if param is not None:
            parameters.append(param)
    return MethodSpec(
        visibility=SYMBOL_VISIBILITIES.get(symbol or "+", Visibility.PUBLIC.value),
        name=name,
        parameters=tuple(parameters),
        return_type=return_type or DEFAULT_RETURN_TYPE,
    )


def normalize_relationship_kind(raw: Any) -> RelationshipKind:
    """Map the many spellings editors use onto :class:`RelationshipKind`."""
    if not isinstance(raw, str):
        return RelationshipKind.ASSOCIATION
    key: str = raw.strip().lower()
    if key.startswith("uml."):
        key = key[4:]
    return _RELATIONSHIP_ALIASES.get(key, RelationshipKind.ASSOCIATION)


def normalize_multiplicity(raw: Any) -> str:
    """
    Multiplicity as text, kept as the diagram wrote it (``1..N`` stays
    ``1..N``); numbers become strings and a missing value becomes ``1``.
    Reading it as one or many is :func:`umlforge.models.is_many`'s job.
    """
    if raw is None:
        return "1"
    text: str = str(raw).strip()
    return text or "1"


def _classify_element(raw_type: Any) -> Optional[ClassKind]:
    if raw_type is None:
        return ClassKind.CLASS
    if not isinstance(raw_type, str):
        return None
    lowered: str = raw_type.strip().lower()
    if "interface" in lowered:
        return ClassKind.INTERFACE
    if "class" in lowered or "abstract" in lowered:
        return ClassKind.CLASS
    return None


def _normalize_stereotype(raw: Any, warnings: List[str], class_name: str) -> Stereotype:
    if not raw:
        return Stereotype.ENTITY
    key: str = str(raw).strip().strip("<>«»").strip().lower()
    try:
        return Stereotype(key)
    except ValueError:
        warnings.append(
            f"Class '{class_name}': unknown stereotype '{raw}', using 'entity'."
        )
        return Stereotype.ENTITY


def _read_position(raw: Any) -> Position:
    if isinstance(raw, Mapping):
        try:
            return Position(x=float(raw.get("x", 0) or 0), y=float(raw.get("y", 0) or 0))
        except (TypeError, ValueError):
            return Position()
    return Position()


def _member_text(raw: Any) -> Optional[str]:
    """Accept both ``"- a: T"`` strings and ``{visibility, name, type}`` maps."""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, Mapping) and raw.get("name"):
        vis: str = str(raw.get("visibility") or "")
        symbol: str = {
            "public": "+",
            "private": "-",
            "protected": "#",
            "package": "~",
        }.get(vis.lower(), vis if vis in ("+", "-", "#", "~") else "")
        type_name: Any = raw.get("type") or raw.get("returnType")
        params: str = ""
        if "parameters" in raw or "returnType" in raw:
            raw_params: Any = raw.get("parameters") or ""
            if isinstance(raw_params, (list, tuple)):
                raw_params = ", ".join(str(p) for p in raw_params)
            params = f"({raw_params})"
        suffix: str = f": {type_name}" if type_name else ""
        return f"{symbol} {raw['name']}{params}{suffix}".strip()
    return None


# ---------------------------------------------------------------------------
# Extraction result
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """The IR plus every recovered problem, in encounter order."""

    ir: DiagramIR
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    skipped_elements: int = 0
    skipped_links: int = 0


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


def _extract_class(
    raw: Mapping[str, Any],
    kind: ClassKind,
    index: int,
    warnings: List[str],
) -> ClassEntity:
    name: str = str(raw.get("name") or "").strip() or f"Clase{index + 1}"
    element_id: str = str(raw.get("id") or f"class-{index + 1}")

    attributes: List[AttributeSpec] = []
    raw_attributes: Any = raw.get("attributes") or []
    if not isinstance(raw_attributes, list):
        warnings.append(f"Class '{name}': attributes is not a list, ignored.")
        raw_attributes = []
    for item in raw_attributes:
        text: Optional[str] = _member_text(item)
        attribute: Optional[AttributeSpec] = parse_attribute(text) if text else None
        if attribute is None:
            warnings.append(f"Class '{name}': unparseable attribute {item!r} dropped.")
            continue
        attributes.append(attribute)

    methods: List[MethodSpec] = []
    raw_methods: Any = raw.get("methods") or []
    if not isinstance(raw_methods, list):
        warnings.append(f"Class '{name}': methods is not a list, ignored.")
        raw_methods = []
    for item in raw_methods:
        text = _member_text(item)
        method: Optional[MethodSpec] = parse_method(text) if text else None
        if method is None:
            warnings.append(f"Class '{name}': unparseable method {item!r} dropped.")
            continue
        methods.append(method)

    return ClassEntity(
        id=element_id,
        name=name,
        kind=kind,
        stereotype=_normalize_stereotype(raw.get("stereotype"), warnings, name),
        attributes=tuple(attributes),
        methods=tuple(methods),
        position=_read_position(raw.get("position")),
    )


def extract_diagram(snapshot: Any) -> ExtractionResult:
    """
    Build a :class:`DiagramIR` from a diagram snapshot.

    Never raises for diagram content. Non-class elements are ignored,
    duplicate class names and dangling links are skipped with a warning.
    The snapshot is only read.
    """
    warnings: List[str] = []
    if not isinstance(snapshot, Mapping):
        warnings.append("Snapshot is not a mapping; produced an empty diagram.")
        logger.warning("Snapshot of type %s ignored.", type(snapshot).__name__)
        return ExtractionResult(ir=DiagramIR(), warnings=tuple(warnings))

    title: str = str(snapshot.get("title") or snapshot.get("name") or "").strip()

    raw_classes: Any = snapshot.get("classes") or []
    if not isinstance(raw_classes, list):
        warnings.append("'classes' is not a list; no classes extracted.")
        raw_classes = []

    classes: List[ClassEntity] = []
    by_id: Dict[str, str] = {}
    by_name: Dict[str, str] = {}
    skipped_elements: int = 0

    for index, raw in enumerate(raw_classes):
        if not isinstance(raw, Mapping):
            skipped_elements += 1
            logger.debug("Ignoring non-mapping element #%d.", index)
            continue
        kind: Optional[ClassKind] = _classify_element(raw.get("type"))
        if kind is None:
            skipped_elements += 1
            logger.debug("Ignoring element #%d of type %r.", index, raw.get("type"))
            continue
        entity: ClassEntity = _extract_class(raw, kind, index, warnings)
        if entity.name in by_name:
            warnings.append(f"Duplicate class name '{entity.name}' skipped.")
            skipped_elements += 1
            continue
        classes.append(entity)
        by_name[entity.name] = entity.name
        by_id[entity.id] = entity.name

    raw_links: Any = snapshot.get("links")
    if raw_links is None:
        raw_links = snapshot.get("relationships") or []
    if not isinstance(raw_links, list):
        warnings.append("'links' is not a list; no relationships extracted.")
        raw_links = []

    relationships: List[Relationship] = []
    skipped_links: int = 0

    for index, raw in enumerate(raw_links):
        if not isinstance(raw, Mapping):
            skipped_links += 1
            warnings.append(f"Link #{index + 1} is not a mapping; skipped.")
            continue
        source_ref: Any = raw.get("sourceId", raw.get("source", raw.get("from")))
        target_ref: Any = raw.get("targetId", raw.get("target", raw.get("to")))
        source: Optional[str] = by_id.get(str(source_ref)) or by_name.get(str(source_ref))
        target: Optional[str] = by_id.get(str(target_ref)) or by_name.get(str(target_ref))
        if source is None or target is None:
            skipped_links += 1
            message: str = (
                f"Link #{index + 1} ({source_ref!r} -> {target_ref!r}) has an "
                "endpoint without class data; skipped."
            )
            warnings.append(message)
            logger.warning(message)
            continue
        label: Any = raw.get("label") or raw.get("name")
        relationships.append(
            Relationship(
                id=str(raw.get("id") or f"link-{index + 1}"),
                kind=normalize_relationship_kind(
                    raw.get("kind") or raw.get("type") or raw.get("relationType")
                ),
                source=source,
                target=target,
                source_multiplicity=normalize_multiplicity(raw.get("sourceMultiplicity")),
                target_multiplicity=normalize_multiplicity(raw.get("targetMultiplicity")),
                label=str(label).strip() if label and str(label).strip() else None,
            )
        )

    ir: DiagramIR = DiagramIR(
        title=title or "Diagrama UML",
        classes=tuple(classes),
        relationships=tuple(relationships),
    )
    logger.info(
        "Extracted %d classes and %d relationships (%d elements, %d links skipped).",
        len(classes),
        len(relationships),
        skipped_elements,
        skipped_links,
    )
    return ExtractionResult(
        ir=ir,
        warnings=tuple(warnings),
        skipped_elements=skipped_elements,
        skipped_links=skipped_links,
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULT_ATTRIBUTE_TYPE",
    "DEFAULT_RETURN_TYPE",
    "parse_member",
    "parse_attribute",
    "parse_method",
    "normalize_relationship_kind",
    "normalize_multiplicity",
    "ExtractionResult",
    "extract_diagram",
]

logger.debug("umlforge.extractor loaded.")
