"""
tests/test_interchange_xmi.py
Unit tests for the interchange JSON document and the XMI exporter/importer.

Tests cover:
- Export shape of the interchange document
- Import of valid, partial and invalid documents
- XMI multiplicity bounds
- XMI export structure and import back into a snapshot
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from typing import Any, Dict

import pytest

from umlforge.extractor import extract_diagram
from umlforge.generators.base import GenerationContext
from umlforge.generators.interchange import (
    INTERCHANGE_FILE,
    InterchangeGenerator,
    dumps,
    export_document,
    import_document,
    loads,
)
from umlforge.generators.xmi import (
    UML_NS,
    XMI_FILE,
    XMI_NS,
    XmiGenerator,
    export_xmi,
    import_xmi,
    multiplicity_bounds,
    multiplicity_from_bounds,
)
from umlforge.models import DiagramIR


def _sorted_relationships(document: Dict[str, Any]) -> list:
    return sorted(document["relationships"], key=lambda r: json.dumps(r, sort_keys=True))


# ===========================================================================
# Interchange export
# ===========================================================================


class TestInterchangeExport:
    """The document mirrors the IR, nothing more."""

    def test_top_level_keys(self, example_ir: DiagramIR) -> None:
        assert set(export_document(example_ir)) == {"classes", "relationships"}

    def test_class_entry(self, example_ir: DiagramIR) -> None:
        usuario = export_document(example_ir)["classes"][0]
        assert usuario["name"] == "Usuario"
        assert usuario["type"] == "class"
        assert usuario["stereotype"] == "entity"
        assert usuario["attributes"] == ["- email: String", "- password: String", "+ nombre: String"]
        assert usuario["methods"] == ["+ login(email: String, password: String): boolean"]
        assert usuario["position"] == {"x": 40.0, "y": 40.0}

    def test_relationship_entry(self, example_ir: DiagramIR) -> None:
        first = export_document(example_ir)["relationships"][0]
        assert first == {
            "type": "association",
            "from": "Usuario",
            "to": "Pedido",
            "sourceMultiplicity": "1",
            "targetMultiplicity": "*",
        }

    def test_label_only_when_present(self, association_snapshot: Dict[str, Any]) -> None:
        association_snapshot["links"][0]["label"] = "realiza"
        ir = extract_diagram(association_snapshot).ir
        assert export_document(ir)["relationships"][0]["label"] == "realiza"

    def test_generator_writes_json(self, example_context: GenerationContext) -> None:
        files = InterchangeGenerator(example_context).generate()
        assert list(files) == [INTERCHANGE_FILE]
        assert json.loads(files[INTERCHANGE_FILE]) == export_document(example_context.ir)


# ===========================================================================
# Interchange import
# ===========================================================================


class TestInterchangeImport:
    """Import never raises for bad content."""

    def test_export_then_import_preserves_diagram(self, example_ir: DiagramIR) -> None:
        document = export_document(example_ir)
        result = import_document(document)
        assert result.success, result.error
        assert result.classes_created == 6
        assert result.relationships_created == 5
        reimported = extract_diagram(result.snapshot).ir
        assert export_document(reimported) == document
        assert result.document == document

    def test_dangling_relationship_dropped(self) -> None:
        result = import_document(
            {
                "classes": [{"name": "A"}],
                "relationships": [{"type": "association", "from": "A", "to": "Nadie"}],
            }
        )
        assert result.success
        assert result.relationships_created == 0
        assert "warning" in result.message

    def test_numeric_multiplicities_accepted(self) -> None:
        result = import_document(
            {
                "classes": [{"name": "A"}, {"name": "B"}],
                "relationships": [{"from": "A", "to": "B", "sourceMultiplicity": 1, "targetMultiplicity": 3}],
            }
        )
        assert result.snapshot["links"][0]["targetMultiplicity"] == "3"

    def test_letter_multiplicity_kept_through_import(self) -> None:
        document = {
            "classes": [{"name": "Autor"}, {"name": "Libro"}],
            "relationships": [
                {"type": "association", "from": "Autor", "to": "Libro",
                 "sourceMultiplicity": "1", "targetMultiplicity": "1..N"}
            ],
        }
        ir = extract_diagram(import_document(document).snapshot).ir
        assert ir.relationships[0].target_many is True
        assert export_document(ir)["relationships"][0]["targetMultiplicity"] == "1..N"

    @pytest.mark.parametrize(
        "document",
        [
            [],
            "texto",
            {"relationships": []},
            {"classes": [{"name": ""}]},
            {"classes": [{"type": "class"}]},
        ],
    )
    def test_invalid_documents(self, document: Any) -> None:
        result = import_document(document)
        assert result.success is False
        assert result.error
        assert result.document == {"classes": [], "relationships": []}
        assert result.snapshot == {"classes": [], "links": []}

    def test_text_form(self, example_ir: DiagramIR) -> None:
        result = loads(dumps(example_ir))
        assert result.success, result.error
        assert export_document(extract_diagram(result.snapshot).ir) == export_document(example_ir)

    def test_loads_rejects_bad_json(self) -> None:
        result = loads("{not json")
        assert result.success is False
        assert result.error.startswith("Not valid JSON")

    def test_envelope(self) -> None:
        envelope = loads('{"classes": [{"name": "A"}]}').to_envelope()
        assert envelope["success"] is True
        assert envelope["counts"] == {"classes": 1, "relationships": 0}
        assert "error" not in envelope


# ===========================================================================
# XMI
# ===========================================================================


class TestMultiplicityBounds:
    """Multiplicity text <-> (lower, upper)."""

    @pytest.mark.parametrize(
        "text, bounds",
        [("*", ("0", "*")), ("1", ("1", "1")), ("1..*", ("1", "*")), ("0..1", ("0", "1")), ("2..5", ("2", "5"))],
    )
    def test_bounds(self, text: str, bounds: tuple) -> None:
        assert multiplicity_bounds(text) == bounds
        assert multiplicity_from_bounds(*bounds) == text

    def test_unlimited_as_minus_one(self) -> None:
        assert multiplicity_from_bounds("1", "-1") == "1..*"

    def test_missing_bounds(self) -> None:
        assert multiplicity_from_bounds(None, None) == "0..1"

    @pytest.mark.parametrize(
        "text, bounds",
        [("1..N", ("1", "*")), ("0..m", ("0", "*")), ("many", ("0", "*")), ("one", ("1", "1"))],
    )
    def test_letter_and_word_bounds(self, text: str, bounds: tuple) -> None:
        assert multiplicity_bounds(text) == bounds


class TestXmiExport:
    """Structure of the exported document."""

    def test_declaration_and_namespaces(self, example_ir: DiagramIR) -> None:
        text = export_xmi(example_ir)
        assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>\n')
        root = ET.fromstring(text)
        assert root.tag == f"{{{XMI_NS}}}XMI"
        assert root.find(f"{{{UML_NS}}}Model").get("name") == "Tienda Online"

    def test_classes_and_associations(self, example_ir: DiagramIR) -> None:
        root = ET.fromstring(export_xmi(example_ir))
        type_attr = f"{{{XMI_NS}}}type"
        elements = list(root.iter("packagedElement"))
        classes = [e for e in elements if e.get(type_attr) == "uml:Class"]
        associations = [e for e in elements if e.get(type_attr) == "uml:Association"]
        assert len(classes) == 6
        assert len(associations) == 4
        administrador = next(c for c in classes if c.get("name") == "Administrador")
        assert len(administrador.findall("generalization")) == 1

    def test_composition_end(self, example_ir: DiagramIR) -> None:
        root = ET.fromstring(export_xmi(example_ir))
        aggregations = [end.get("aggregation") for end in root.iter("ownedEnd")]
        assert "composite" in aggregations

    def test_generator_file(self, example_context: GenerationContext) -> None:
        assert list(XmiGenerator(example_context).generate()) == [XMI_FILE]


class TestXmiImport:
    """XMI back into a snapshot through the interchange importer."""

    def test_export_then_import(self, example_ir: DiagramIR) -> None:
        result = import_xmi(export_xmi(example_ir))
        assert result.success, result.error
        assert result.classes_created == 6
        assert result.relationships_created == 5
        original = export_document(example_ir)
        reimported = export_document(extract_diagram(result.snapshot).ir)
        assert reimported["classes"] == original["classes"]
        assert _sorted_relationships(reimported) == _sorted_relationships(original)
        assert result.snapshot["title"] == "Tienda Online"

    def test_inheritance_edge(self, inheritance_snapshot: Dict[str, Any]) -> None:
        ir = extract_diagram(inheritance_snapshot).ir
        result = import_xmi(export_xmi(ir))
        [link] = result.snapshot["links"]
        assert (link["sourceId"], link["targetId"], link["kind"]) == ("Perro", "Animal", "inheritance")

    def test_malformed_xml(self) -> None:
        result = import_xmi("<xmi:XMI><unclosed>")
        assert result.success is False
        assert result.error.startswith("Malformed XMI")
        assert result.document == {"classes": [], "relationships": []}
