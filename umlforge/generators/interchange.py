# File: umlforge/generators/interchange.py
"""
NexaFlow UMLForge - Interchange Document
=========================================
Lossless JSON exchange format for diagrams::

    {
      "classes": [{"name", "type", "stereotype",
                   "attributes": ["- email: String"], "methods": [...],
                   "position": {"x", "y"}}],
      "relationships": [{"type", "from", "to", "sourceMultiplicity",
                         "targetMultiplicity", "label"?}]
    }

Export is a pure function of the IR. Import never raises for document
content: a malformed document becomes an :class:`ImportResult` with
``success=False``, an empty document and an empty snapshot. Members are
re-read through the extractor's grammar, so ``export(import(doc))``
yields the same classes and relationships.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from umlforge.extractor import extract_diagram
from umlforge.generators.base import ArtifactGenerator
from umlforge.models import DiagramIR, ImportResult, TargetKind

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.generators.interchange")

INTERCHANGE_FILE: str = "diagram.json"

_DOCUMENT_CONFIG: ConfigDict = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Document schema (import side)
# ---------------------------------------------------------------------------


class InterchangeClass(BaseModel):
    """One class entry of an interchange document."""

    model_config = _DOCUMENT_CONFIG

    name: str = Field(..., min_length=1)
    type: str = Field(default="class")
    stereotype: Optional[str] = Field(default=None)
    attributes: List[Any] = Field(default_factory=list)
    methods: List[Any] = Field(default_factory=list)
    position: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class InterchangeRelationship(BaseModel):
    """One relationship entry; endpoints are class names."""

    model_config = _DOCUMENT_CONFIG

    type: str = Field(default="association")
    source: str = Field(..., alias="from", min_length=1)
    target: str = Field(..., alias="to", min_length=1)
    source_multiplicity: str = Field(default="1", alias="sourceMultiplicity")
    target_multiplicity: str = Field(default="1", alias="targetMultiplicity")
    label: Optional[str] = Field(default=None)

    @field_validator("source_multiplicity", "target_multiplicity", mode="before")
    @classmethod
    def _multiplicity_as_text(cls, v: Any) -> Any:
        if v is None:
            return "1"
        return str(v) if isinstance(v, (int, float)) else v


class InterchangeDocument(BaseModel):
    model_config = _DOCUMENT_CONFIG

    title: Optional[str] = Field(default=None)
    classes: List[InterchangeClass] = Field(...)
    relationships: List[InterchangeRelationship] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def export_document(ir: DiagramIR) -> Dict[str, Any]:
    """Serialize *ir* to an interchange document (plain ``dict``)."""
    classes: List[Dict[str, Any]] = [
        {
            "name": cls.name,
            "type": cls.kind,
            "stereotype": cls.stereotype,
            "attributes": [a.as_uml() for a in cls.attributes],
            "methods": [m.as_uml() for m in cls.methods],
            "position": {"x": cls.position.x, "y": cls.position.y},
        }
        for cls in ir.classes
    ]
    relationships: List[Dict[str, Any]] = []
    for rel in ir.relationships:
        entry: Dict[str, Any] = {
            "type": rel.kind,
            "from": rel.source,
            "to": rel.target,
            "sourceMultiplicity": rel.source_multiplicity,
            "targetMultiplicity": rel.target_multiplicity,
        }
        if rel.label:
            entry["label"] = rel.label
        relationships.append(entry)
    return {"classes": classes, "relationships": relationships}


def dumps(ir: DiagramIR, indent: int = 2) -> str:
    return json.dumps(export_document(ir), indent=indent, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def _failure(error: str) -> ImportResult:
    logger.warning("Interchange import failed: %s", error)
    return ImportResult(success=False, error=error)


def _to_snapshot(document: InterchangeDocument) -> Dict[str, Any]:
    classes: List[Dict[str, Any]] = []
    for index, cls in enumerate(document.classes):
        classes.append(
            {
                "id": f"class-{index + 1}",
                "name": cls.name,
                "type": cls.type,
                "stereotype": cls.stereotype,
                "attributes": list(cls.attributes),
                "methods": list(cls.methods),
                "position": dict(cls.position),
            }
        )
    links: List[Dict[str, Any]] = [
        {
            "id": f"link-{index + 1}",
            "sourceId": rel.source,
            "targetId": rel.target,
            "kind": rel.type,
            "sourceMultiplicity": rel.source_multiplicity,
            "targetMultiplicity": rel.target_multiplicity,
            "label": rel.label,
        }
        for index, rel in enumerate(document.relationships)
    ]
    snapshot: Dict[str, Any] = {"classes": classes, "links": links}
    if document.title:
        snapshot["title"] = document.title
    return snapshot


def import_document(document: Any) -> ImportResult:
    """
    Turn an interchange document into a diagram snapshot.

    Counts reflect what the extractor keeps: relationships naming an
    unknown class are dropped and reported in the message.
    """
    if not isinstance(document, Mapping):
        return _failure("Interchange document must be a JSON object.")
    try:
        parsed: InterchangeDocument = InterchangeDocument.model_validate(dict(document))
    except ValidationError as exc:
        return _failure(f"Invalid interchange document: {exc.error_count()} problem(s).")

    snapshot: Dict[str, Any] = _to_snapshot(parsed)
    extraction = extract_diagram(snapshot)
    classes: int = len(extraction.ir.classes)
    relationships: int = len(extraction.ir.relationships)
    message: str = f"Imported {classes} classes and {relationships} relationships."
    if extraction.warnings:
        message += f" {len(extraction.warnings)} warning(s): " + "; ".join(extraction.warnings)
    logger.info(message)
    return ImportResult(
        success=True,
        classes_created=classes,
        relationships_created=relationships,
        message=message,
        document=export_document(extraction.ir),
        snapshot=snapshot,
    )


def loads(text: str) -> ImportResult:
    """:func:`import_document` over JSON text."""
    try:
        document: Any = json.loads(text)
    except (TypeError, json.JSONDecodeError) as exc:
        return _failure(f"Not valid JSON: {exc}")
    return import_document(document)


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class InterchangeGenerator(ArtifactGenerator):
    """Writes the diagram as ``diagram.json``."""

    target = TargetKind.INTERCHANGE

    def generate(self) -> Dict[str, str]:
        return {INTERCHANGE_FILE: dumps(self.ir) + "\n"}


__all__: List[str] = [
    "INTERCHANGE_FILE",
    "InterchangeClass",
    "InterchangeRelationship",
    "InterchangeDocument",
    "export_document",
    "import_document",
    "dumps",
    "loads",
    "InterchangeGenerator",
]
