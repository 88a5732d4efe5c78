"""
tests/test_extractor.py
Unit tests for umlforge.extractor.

Tests cover:
- The member grammar for attributes and methods
- Relationship kind and multiplicity normalisation
- Snapshot extraction: element filtering, duplicates, dangling links
- The IR is immutable and the snapshot is left untouched
"""

from __future__ import annotations

import copy
from typing import Any, Dict

import pytest
from pydantic import ValidationError as PydanticValidationError

from umlforge.extractor import (
    extract_diagram,
    normalize_multiplicity,
    normalize_relationship_kind,
    parse_attribute,
    parse_method,
)
from umlforge.models import ClassKind, RelationshipKind, Stereotype, Visibility, is_many


# ===========================================================================
# Member grammar
# ===========================================================================


class TestParseAttribute:
    """``<vis> name: Type`` with both parts optional."""

    def test_full_attribute(self) -> None:
        attribute = parse_attribute("- email: String")
        assert attribute is not None
        assert attribute.name == "email"
        assert attribute.type_name == "String"
        assert attribute.visibility == Visibility.PRIVATE.value

    def test_missing_type_defaults_to_string(self) -> None:
        attribute = parse_attribute("+ nombre")
        assert attribute is not None
        assert attribute.type_name == "String"
        assert attribute.visibility == Visibility.PUBLIC.value

    def test_missing_visibility_defaults_to_private(self) -> None:
        attribute = parse_attribute("edad: int")
        assert attribute is not None
        assert attribute.visibility == Visibility.PRIVATE.value

    def test_protected_and_package(self) -> None:
        assert parse_attribute("# saldo: Double").visibility == Visibility.PROTECTED.value
        assert parse_attribute("~ nota: String").visibility == Visibility.PACKAGE.value

    def test_generic_type_kept(self) -> None:
        attribute = parse_attribute("- tags: List<String>")
        assert attribute is not None
        assert attribute.type_name == "List<String>"

    def test_blank_text_is_rejected(self) -> None:
        assert parse_attribute("   ") is None
        assert parse_attribute(None) is None  # type: ignore[arg-type]


class TestParseMethod:
    """``<vis> name(params): Return``."""

    def test_method_with_parameters(self) -> None:
        method = parse_method("+ calcular(x: int, y: Map<String, Long>): double")
        assert method is not None
        assert method.name == "calcular"
        assert [p.name for p in method.parameters] == ["x", "y"]
        assert method.parameters[1].type_name == "Map<String, Long>"
        assert method.return_type == "double"

    def test_missing_return_type_is_void(self) -> None:
        method = parse_method("guardar()")
        assert method is not None
        assert method.return_type == "void"
        assert method.visibility == Visibility.PUBLIC.value

    def test_as_uml_round_trip_text(self) -> None:
        method = parse_method("- validar(codigo: String): boolean")
        assert method.as_uml() == "- validar(codigo: String): boolean"


# ===========================================================================
# Normalisation helpers
# ===========================================================================


class TestNormalisation:
    """Editor spellings map onto the canonical vocabulary."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("generalization", RelationshipKind.INHERITANCE),
            ("uml.Generalization", RelationshipKind.INHERITANCE),
            ("herencia", RelationshipKind.INHERITANCE),
            ("Composition", RelationshipKind.COMPOSITION),
            ("agregación", RelationshipKind.AGGREGATION),
            ("dependency", RelationshipKind.ASSOCIATION),
            (None, RelationshipKind.ASSOCIATION),
        ],
    )
    def test_relationship_kind(self, raw: Any, expected: RelationshipKind) -> None:
        assert normalize_relationship_kind(raw) == expected

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("n", "n"),
            ("many", "many"),
            ("1..N", "1..N"),
            (" 0..* ", "0..*"),
            ("", "1"),
            (None, "1"),
            ("0..1", "0..1"),
            (2, "2"),
        ],
    )
    def test_multiplicity_text_kept(self, raw: Any, expected: str) -> None:
        assert normalize_multiplicity(raw) == expected

    @pytest.mark.parametrize(
        "multiplicity, many",
        [
            ("1", False),
            ("*", True),
            ("1..*", True),
            ("0..1", True),
            ("3", False),
            (None, False),
            ("1..N", True),
            ("n", True),
            ("many", True),
            ("muchos", True),
            ("one", False),
            ("Uno", False),
        ],
    )
    def test_is_many(self, multiplicity: Any, many: bool) -> None:
        assert is_many(multiplicity) is many


# ===========================================================================
# Snapshot extraction
# ===========================================================================


class TestExtractDiagram:
    """End-to-end extraction of a snapshot into the IR."""

    def test_example_counts(self, example_dict: Dict[str, Any]) -> None:
        result = extract_diagram(example_dict)
        assert result.ir.title == "Tienda Online"
        assert len(result.ir.classes) == 6
        assert len(result.ir.relationships) == 5
        assert result.warnings == ()

    def test_links_resolved_to_class_names(self, association_snapshot: Dict[str, Any]) -> None:
        ir = extract_diagram(association_snapshot).ir
        rel = ir.relationships[0]
        assert (rel.source, rel.target) == ("Usuario", "Pedido")
        assert rel.kind == RelationshipKind.ASSOCIATION.value
        assert rel.target_multiplicity == "*"

    def test_links_by_name_and_from_to(self) -> None:
        snapshot = {
            "classes": [{"name": "A"}, {"name": "B"}],
            "relationships": [{"from": "A", "to": "B", "type": "aggregation"}],
        }
        ir = extract_diagram(snapshot).ir
        assert ir.relationships[0].kind == RelationshipKind.AGGREGATION.value
        assert ir.relationships[0].source == "A"

    def test_missing_type_is_a_class(self) -> None:
        ir = extract_diagram({"classes": [{"id": "x", "name": "Libro"}]}).ir
        assert ir.class_names == ("Libro",)
        assert ir.classes[0].kind == ClassKind.CLASS.value

    def test_non_class_elements_are_ignored(self) -> None:
        snapshot = {
            "classes": [
                {"id": "n1", "name": "Nota", "type": "uml.Note"},
                {"id": "i1", "name": "Pagable", "type": "uml.Interface"},
                "not-a-mapping",
            ]
        }
        result = extract_diagram(snapshot)
        assert result.ir.class_names == ("Pagable",)
        assert result.ir.classes[0].kind == ClassKind.INTERFACE.value
        assert result.skipped_elements == 2

    def test_duplicate_class_name_skipped(self) -> None:
        snapshot = {"classes": [{"id": "a", "name": "Libro"}, {"id": "b", "name": "Libro"}]}
        result = extract_diagram(snapshot)
        assert len(result.ir.classes) == 1
        assert any("Duplicate class name 'Libro'" in w for w in result.warnings)

    def test_dangling_link_skipped_with_warning(self, association_snapshot: Dict[str, Any]) -> None:
        association_snapshot["links"].append({"sourceId": "c1", "targetId": "ghost"})
        result = extract_diagram(association_snapshot)
        assert len(result.ir.relationships) == 1
        assert result.skipped_links == 1
        assert any("'ghost'" in w for w in result.warnings)

    def test_unknown_stereotype_falls_back_to_entity(self) -> None:
        result = extract_diagram(
            {"classes": [{"id": "a", "name": "Motor", "stereotype": "<<gizmo>>"}]}
        )
        assert result.ir.classes[0].stereotype == Stereotype.ENTITY.value
        assert result.warnings

    def test_known_stereotype(self) -> None:
        ir = extract_diagram(
            {"classes": [{"id": "a", "name": "Calculadora", "stereotype": "«service»"}]}
        ).ir
        assert ir.classes[0].stereotype == Stereotype.SERVICE.value
        assert not ir.classes[0].is_persistable
        assert ir.entities == ()

    def test_member_mappings_accepted(self) -> None:
        snapshot = {
            "classes": [
                {
                    "id": "a",
                    "name": "Cuenta",
                    "attributes": [{"visibility": "private", "name": "saldo", "type": "Double"}],
                    "methods": [
                        {"name": "depositar", "parameters": ["monto: Double"], "returnType": "void"}
                    ],
                }
            ]
        }
        cls = extract_diagram(snapshot).ir.classes[0]
        assert cls.attributes[0].as_uml() == "- saldo: Double"
        assert cls.methods[0].parameters[0].name == "monto"

    def test_default_title(self) -> None:
        assert extract_diagram({"classes": []}).ir.title == "Diagrama UML"

    def test_non_mapping_snapshot(self) -> None:
        result = extract_diagram(["nope"])
        assert result.ir.classes == ()
        assert result.warnings

    def test_snapshot_not_mutated(self, example_dict: Dict[str, Any]) -> None:
        before = copy.deepcopy(example_dict)
        extract_diagram(example_dict)
        assert example_dict == before

    def test_ir_is_frozen(self, example_dict: Dict[str, Any]) -> None:
        ir = extract_diagram(example_dict).ir
        with pytest.raises(PydanticValidationError):
            ir.classes[0].name = "Otro"  # type: ignore[misc]
