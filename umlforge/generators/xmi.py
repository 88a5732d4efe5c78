# File: umlforge/generators/xmi.py
"""
NexaFlow UMLForge - XMI Export / Import
========================================
XMI 2.0 (Eclipse UML2 namespace) for exchange with modelling tools.

Export layout:
    * ``uml:Model`` → ``uml:Package`` → one ``uml:Class`` / ``uml:Interface``
      per class with ``ownedAttribute`` / ``ownedOperation`` and a
      ``generalization`` per parent.
    * One ``uml:Association`` per non-inheritance relationship. ``end1``
      points at the target and carries the target multiplicity and the
      source-side aggregation kind; ``end2`` points at the source.
    * ``xmi:Extension`` holds class positions.

Import goes through the interchange document, so both importers share one
validation path and one result shape.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional, Tuple

from umlforge.generators.base import ArtifactGenerator
from umlforge.generators.interchange import import_document
from umlforge.models import (
    VISIBILITY_SYMBOLS,
    ClassEntity,
    ClassKind,
    DiagramIR,
    ImportResult,
    RelationshipKind,
    TargetKind,
    is_many,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.generators.xmi")

XMI_NS: str = "http://www.omg.org/XMI"
UML_NS: str = "http://www.eclipse.org/uml2/5.0.0/UML"
XMI_FILE: str = "diagram.xmi"
EXTENDER: str = "NexaFlow UMLForge"

ET.register_namespace("xmi", XMI_NS)
ET.register_namespace("uml", UML_NS)

_XMI_ID: str = f"{{{XMI_NS}}}id"
_XMI_IDREF: str = f"{{{XMI_NS}}}idref"
_XMI_TYPE: str = f"{{{XMI_NS}}}type"

_AGGREGATION_KINDS: Dict[str, str] = {
    RelationshipKind.COMPOSITION.value: "composite",
    RelationshipKind.AGGREGATION.value: "shared",
}
_LOWER_RE: re.Pattern[str] = re.compile(r"^(\d+)")
_UPPER_RE: re.Pattern[str] = re.compile(r"\.\.(\d+|\*|[nNmM])$")


# ---------------------------------------------------------------------------
# Multiplicity <-> lower/upper
# ---------------------------------------------------------------------------


def multiplicity_bounds(multiplicity: str) -> Tuple[str, str]:
    """
    ``"*"`` → ``("0", "*")``, ``"1..*"`` → ``("1", "*")``, ``"3"`` → ``("3", "3")``.

    XMI bounds are numeric, so ``1..N`` and ``many`` are written as ``*``
    and ``one`` as ``1``.
    """
    text: str = (multiplicity or "1").strip()
    if text == "*":
        return "0", "*"
    upper: Optional[re.Match[str]] = _UPPER_RE.search(text)
    lower: Optional[re.Match[str]] = _LOWER_RE.match(text)
    if upper is not None:
        bound: str = upper.group(1)
        return (lower.group(1) if lower else "0"), (bound if bound.isdigit() else "*")
    if text.isdigit():
        return text, text
    if is_many(text):
        return "0", "*"
    return "1", "1"


def multiplicity_from_bounds(lower: Optional[str], upper: Optional[str]) -> str:
    lower = (lower or "").strip() or "0"
    upper = (upper or "").strip() or "1"
    if upper in ("*", "-1"):
        return "*" if lower == "0" else f"{lower}..*"
    if lower == upper:
        return lower
    return f"{lower}..{upper}"


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def _add_bounds(end: ET.Element, multiplicity: str) -> None:
    lower, upper = multiplicity_bounds(multiplicity)
    ET.SubElement(end, "lowerValue", {_XMI_TYPE: "uml:LiteralInteger", "value": lower})
    ET.SubElement(
        end, "upperValue", {_XMI_TYPE: "uml:LiteralUnlimitedNatural", "value": upper}
    )


def _class_element(
    package: ET.Element, cls: ClassEntity, class_id: str, parents: List[str]
) -> None:
    element: ET.Element = ET.SubElement(
        package,
        "packagedElement",
        {
            _XMI_TYPE: "uml:Interface" if cls.kind == ClassKind.INTERFACE else "uml:Class",
            _XMI_ID: class_id,
            "name": cls.name,
            "stereotype": cls.stereotype,
        },
    )
    for index, attribute in enumerate(cls.attributes):
        ET.SubElement(
            element,
            "ownedAttribute",
            {
                _XMI_ID: f"{class_id}_attr_{index}",
                "name": attribute.name,
                "visibility": attribute.visibility,
                "type": attribute.type_name,
            },
        )
    for index, method in enumerate(cls.methods):
        operation: ET.Element = ET.SubElement(
            element,
            "ownedOperation",
            {
                _XMI_ID: f"{class_id}_op_{index}",
                "name": method.name,
                "visibility": method.visibility,
            },
        )
        for p_index, parameter in enumerate(method.parameters):
            ET.SubElement(
                operation,
                "ownedParameter",
                {
                    _XMI_ID: f"{class_id}_op_{index}_p_{p_index}",
                    "name": parameter.name,
                    "type": parameter.type_name,
                    "direction": "in",
                },
            )
        ET.SubElement(
            operation,
            "ownedParameter",
            {
                _XMI_ID: f"{class_id}_op_{index}_return",
                "type": method.return_type,
                "direction": "return",
            },
        )
    for index, parent_id in enumerate(parents):
        ET.SubElement(
            element,
            "generalization",
            {
                _XMI_TYPE: "uml:Generalization",
                _XMI_ID: f"{class_id}_gen_{index}",
                "general": parent_id,
            },
        )


def export_xmi(ir: DiagramIR) -> str:
    """Serialize *ir* to an XMI 2.0 document."""
    ids: Dict[str, str] = {cls.name: f"class_{i + 1}" for i, cls in enumerate(ir.classes)}
    parents: Dict[str, List[str]] = {}
    for rel in ir.relationships:
        if rel.kind == RelationshipKind.INHERITANCE:
            parents.setdefault(rel.source, []).append(ids[rel.target])

    root: ET.Element = ET.Element(f"{{{XMI_NS}}}XMI", {f"{{{XMI_NS}}}version": "2.0"})
    model: ET.Element = ET.SubElement(
        root, f"{{{UML_NS}}}Model", {_XMI_ID: "model_1", "name": ir.title}
    )
    package: ET.Element = ET.SubElement(
        model,
        "packagedElement",
        {_XMI_TYPE: "uml:Package", _XMI_ID: "package_main", "name": ir.title},
    )
    for cls in ir.classes:
        _class_element(package, cls, ids[cls.name], parents.get(cls.name, []))

    for index, rel in enumerate(ir.relationships):
        if rel.kind == RelationshipKind.INHERITANCE:
            continue
        rel_id: str = f"assoc_{index + 1}"
        attributes: Dict[str, str] = {_XMI_TYPE: "uml:Association", _XMI_ID: rel_id}
        if rel.label:
            attributes["name"] = rel.label
        association: ET.Element = ET.SubElement(package, "packagedElement", attributes)
        ET.SubElement(association, "memberEnd", {_XMI_IDREF: f"{rel_id}_end1"})
        ET.SubElement(association, "memberEnd", {_XMI_IDREF: f"{rel_id}_end2"})
        end1: ET.Element = ET.SubElement(
            association,
            "ownedEnd",
            {
                _XMI_ID: f"{rel_id}_end1",
                "type": ids[rel.target],
                "aggregation": _AGGREGATION_KINDS.get(rel.kind, "none"),
            },
        )
        _add_bounds(end1, rel.target_multiplicity)
        end2: ET.Element = ET.SubElement(
            association,
            "ownedEnd",
            {_XMI_ID: f"{rel_id}_end2", "type": ids[rel.source], "aggregation": "none"},
        )
        _add_bounds(end2, rel.source_multiplicity)

    extension: ET.Element = ET.SubElement(
        root, f"{{{XMI_NS}}}Extension", {"extender": EXTENDER}
    )
    layout: ET.Element = ET.SubElement(extension, "diagramLayout")
    for cls in ir.classes:
        ET.SubElement(
            layout,
            "classLayout",
            {"id": ids[cls.name], "x": _number(cls.position.x), "y": _number(cls.position.y)},
        )

    ET.indent(root, space="  ")
    text: str = '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(
        root, encoding="unicode"
    )
    logger.debug("XMI export: %d classes, %d bytes.", len(ir.classes), len(text))
    return text + "\n"


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def _member_symbol(visibility: Optional[str], default: str) -> str:
    return VISIBILITY_SYMBOLS.get((visibility or "").lower(), default)


def _read_operation(operation: ET.Element) -> str:
    parameters: List[str] = []
    return_type: str = operation.get("type") or "void"
    for parameter in operation.findall("ownedParameter"):
        if parameter.get("direction") == "return":
            return_type = parameter.get("type") or return_type
            continue
        parameters.append(f"{parameter.get('name') or 'arg'}: {parameter.get('type') or 'String'}")
    symbol: str = _member_symbol(operation.get("visibility"), "+")
    return f"{symbol} {operation.get('name')}({', '.join(parameters)}): {return_type}"


def _read_bounds(end: ET.Element) -> str:
    lower: Optional[ET.Element] = end.find("lowerValue")
    upper: Optional[ET.Element] = end.find("upperValue")
    if lower is None and upper is None:
        return end.get("multiplicity") or "1"
    return multiplicity_from_bounds(
        lower.get("value") if lower is not None else None,
        upper.get("value") if upper is not None else None,
    )


def xmi_to_document(text: str) -> Dict[str, Any]:
    """
    Read XMI text into an interchange document.

    Raises :class:`xml.etree.ElementTree.ParseError` for malformed XML.
    """
    root: ET.Element = ET.fromstring(text)
    layout: Dict[str, Dict[str, float]] = {}
    for item in root.iter("classLayout"):
        try:
            layout[item.get("id", "")] = {
                "x": float(item.get("x") or 0),
                "y": float(item.get("y") or 0),
            }
        except ValueError:
            continue

    names: Dict[str, str] = {}
    classes: List[Dict[str, Any]] = []
    relationships: List[Dict[str, Any]] = []
    elements: List[ET.Element] = list(root.iter("packagedElement"))

    for element in elements:
        element_type: str = element.get(_XMI_TYPE, "")
        if element_type not in ("uml:Class", "uml:Interface") or not element.get("name"):
            continue
        class_id: str = element.get(_XMI_ID, "")
        names[class_id] = element.get("name", "")
        classes.append(
            {
                "name": element.get("name"),
                "type": "interface" if element_type == "uml:Interface" else "class",
                "stereotype": element.get("stereotype"),
                "attributes": [
                    f"{_member_symbol(a.get('visibility'), '-')} {a.get('name')}: "
                    f"{a.get('type') or 'String'}"
                    for a in element.findall("ownedAttribute")
                    if a.get("name")
                ],
                "methods": [
                    _read_operation(o) for o in element.findall("ownedOperation") if o.get("name")
                ],
                "position": layout.get(class_id, {}),
            }
        )

    for element in elements:
        element_type = element.get(_XMI_TYPE, "")
        if element_type in ("uml:Class", "uml:Interface"):
            child: Optional[str] = names.get(element.get(_XMI_ID, ""))
            if child is None:
                continue
            for generalization in element.findall("generalization"):
                parent: Optional[str] = names.get(generalization.get("general", ""))
                if parent is None:
                    logger.warning(
                        "Generalization towards unknown id %r dropped.",
                        generalization.get("general"),
                    )
                    continue
                relationships.append(
                    {"type": "inheritance", "from": child, "to": parent}
                )
        elif element_type == "uml:Association":
            ends: List[ET.Element] = element.findall("ownedEnd")
            if len(ends) != 2:
                logger.warning("Association %r without two ends dropped.", element.get(_XMI_ID))
                continue
            end1, end2 = ends
            kind: str = "association"
            # end1 carries the aggregation of the whole (source) side.
            if end2.get("aggregation") in ("composite", "shared"):
                end1, end2 = end2, end1
            aggregation: Optional[str] = end1.get("aggregation")
            if aggregation == "composite":
                kind = "composition"
            elif aggregation == "shared":
                kind = "aggregation"
            source: Optional[str] = names.get(end2.get("type", ""))
            target: Optional[str] = names.get(end1.get("type", ""))
            if source is None or target is None:
                logger.warning("Association %r with unknown ends dropped.", element.get(_XMI_ID))
                continue
            entry: Dict[str, Any] = {
                "type": kind,
                "from": source,
                "to": target,
                "sourceMultiplicity": _read_bounds(end2),
                "targetMultiplicity": _read_bounds(end1),
            }
            if element.get("name"):
                entry["label"] = element.get("name")
            relationships.append(entry)

    document: Dict[str, Any] = {"classes": classes, "relationships": relationships}
    model: Optional[ET.Element] = root.find(f"{{{UML_NS}}}Model")
    if model is not None and model.get("name"):
        document["title"] = model.get("name")
    return document


def import_xmi(text: str) -> ImportResult:
    """Import an XMI document; malformed XML yields a failed :class:`ImportResult`."""
    try:
        document: Dict[str, Any] = xmi_to_document(text)
    except ET.ParseError as exc:
        logger.warning("XMI import failed: %s", exc)
        return ImportResult(success=False, error=f"Malformed XMI: {exc}")
    return import_document(document)


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class XmiGenerator(ArtifactGenerator):
    target = TargetKind.XMI

    def generate(self) -> Dict[str, str]:
        return {XMI_FILE: export_xmi(self.ir)}


__all__: List[str] = [
    "XMI_NS",
    "UML_NS",
    "XMI_FILE",
    "multiplicity_bounds",
    "multiplicity_from_bounds",
    "export_xmi",
    "xmi_to_document",
    "import_xmi",
    "XmiGenerator",
]
