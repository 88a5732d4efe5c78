"""
tests/test_validators.py
Unit tests for umlforge.validators.

Tests cover:
- Class and attribute naming checks
- Relationship checks (dangling, self/multiple inheritance, non-entity, many-to-many)
- Multiplicity syntax and inheritance cycle detection
- Translation configuration sanity checks
- The ValidationResult container and validate_full
"""

from __future__ import annotations

from typing import Any, Dict, List

from umlforge.extractor import extract_diagram
from umlforge.models import ClassEntity, DiagramIR, Relationship, TranslationConfig
from umlforge.validators import (
    ValidationError,
    ValidationResult,
    validate_attributes,
    validate_class_names,
    validate_diagram,
    validate_diagram_size,
    validate_full,
    validate_inheritance_cycles,
    validate_multiplicities,
    validate_relationships,
    validate_translation_config,
)


def _ir(classes: List[Dict[str, Any]], links: List[Dict[str, Any]] = ()) -> DiagramIR:
    return extract_diagram({"classes": classes, "links": list(links)}).ir


# ===========================================================================
# Result container
# ===========================================================================


class TestValidationResult:
    """Counting, truthiness and report formatting."""

    def test_empty_result_is_valid(self) -> None:
        result = ValidationResult()
        assert result.is_valid
        assert bool(result) is True
        assert len(result) == 0

    def test_error_makes_result_falsy(self) -> None:
        result = ValidationResult()
        result.add_warning("W", "a warning")
        result.add_error("E", "an error")
        result.add_info("I", "some info")
        assert not result
        assert result.error_count == 1
        assert result.warning_count == 1
        assert result.codes == ["W", "E", "I"]

    def test_merge(self) -> None:
        first, second = ValidationResult(), ValidationResult()
        first.add_error("A", "one")
        second.add_warning("B", "two")
        first.merge(second)
        assert first.codes == ["A", "B"]

    def test_error_string_form(self) -> None:
        item = ValidationError("error", "SELF_INHERITANCE", "Class 'A' inherits from itself.")
        assert str(item) == "[ERROR] SELF_INHERITANCE: Class 'A' inherits from itself."
        assert item.to_dict()["code"] == "SELF_INHERITANCE"

    def test_format_report_hides_info_by_default(self) -> None:
        result = ValidationResult()
        result.add_info("ONLY_INFO", "hidden")
        assert "ONLY_INFO" not in result.format_report()
        assert "ONLY_INFO" in result.format_report(include_info=True)


# ===========================================================================
# Class and attribute names
# ===========================================================================


class TestNames:
    """Naming checks run per class and per attribute."""

    def test_reserved_table_name_warns(self) -> None:
        result = validate_class_names(_ir([{"name": "Value"}]))
        assert "TABLE_NAME_SQL_RESERVED" in result.codes
        assert result.is_valid

    def test_not_pascal_case_warns(self) -> None:
        result = validate_class_names(_ir([{"name": "detalle_pedido"}]))
        assert result.codes == ["CLASS_NAME_NOT_PASCAL_CASE"]
        assert result.is_valid

    def test_accented_pascal_case_is_fine(self) -> None:
        assert len(validate_class_names(_ir([{"name": "Habitación"}]))) == 0

    def test_java_keyword_class(self) -> None:
        result = validate_class_names(_ir([{"name": "Class"}]))
        assert "CLASS_NAME_JAVA_RESERVED" in result.codes

    def test_duplicate_class_in_hand_built_ir(self) -> None:
        ir = DiagramIR(
            classes=(ClassEntity(id="a", name="Libro"), ClassEntity(id="b", name="Libro"))
        )
        assert "DUPLICATE_CLASS_NAME" in validate_class_names(ir).codes

    def test_attribute_checks(self) -> None:
        ir = _ir(
            [
                {
                    "name": "Cuenta",
                    "attributes": ["- id: Long", "- saldo: Double", "+ Saldo: Double", "- class: String"],
                }
            ]
        )
        result = validate_attributes(ir)
        assert result.is_valid, result.format_report()
        codes = result.codes
        assert "ATTRIBUTE_ID_GENERATED" in codes
        assert "DUPLICATE_ATTRIBUTE" in codes
        assert "ATTRIBUTE_NAME_JAVA_RESERVED" in codes

    def test_entity_without_attributes_is_info(self) -> None:
        result = validate_attributes(_ir([{"name": "Vacio"}]))
        assert result.codes == ["ENTITY_WITHOUT_ATTRIBUTES"]
        assert result.warning_count == 0


# ===========================================================================
# Relationships
# ===========================================================================


class TestRelationships:
    """Relationship-level checks."""

    def test_example_has_only_many_to_many_warning(self, example_ir: DiagramIR) -> None:
        result = validate_relationships(example_ir)
        assert result.codes == ["MANY_TO_MANY_JOIN_TABLE"]

    def test_dangling_relationship(self) -> None:
        ir = DiagramIR(
            classes=(ClassEntity(id="a", name="A"),),
            relationships=(Relationship(id="r1", source="A", target="Ghost"),),
        )
        result = validate_relationships(ir)
        assert result.codes == ["DANGLING_RELATIONSHIP"]
        assert result.is_valid

    def test_self_inheritance_warns(self) -> None:
        ir = _ir([{"id": "a", "name": "Nodo"}], [{"sourceId": "a", "targetId": "a", "kind": "inheritance"}])
        result = validate_relationships(ir)
        assert result.codes == ["SELF_INHERITANCE"]
        assert result.warning_count == 1

    def test_multiple_inheritance_warns(self) -> None:
        ir = _ir(
            [{"name": "A"}, {"name": "B"}, {"name": "C"}],
            [
                {"from": "A", "to": "B", "kind": "inheritance"},
                {"from": "A", "to": "C", "kind": "inheritance"},
            ],
        )
        assert validate_relationships(ir).codes == ["MULTIPLE_INHERITANCE"]

    def test_non_entity_endpoint_warns(self) -> None:
        ir = _ir(
            [{"name": "Notificador", "stereotype": "service"}, {"name": "Usuario"}],
            [{"from": "Notificador", "to": "Usuario"}],
        )
        assert validate_relationships(ir).codes == ["RELATIONSHIP_NON_ENTITY"]

    def test_unrecognised_multiplicity(self) -> None:
        ir = _ir(
            [{"name": "A"}, {"name": "B"}],
            [{"from": "A", "to": "B", "sourceMultiplicity": "algunos"}],
        )
        result = validate_multiplicities(ir)
        assert result.codes == ["UNRECOGNISED_MULTIPLICITY"]
        assert result.all_items[0].context["side"] == "source"

    def test_standard_multiplicities_pass(self, example_ir: DiagramIR) -> None:
        assert len(validate_multiplicities(example_ir)) == 0

    def test_inheritance_cycle(self) -> None:
        ir = _ir(
            [{"name": "A"}, {"name": "B"}],
            [
                {"from": "A", "to": "B", "kind": "inheritance"},
                {"from": "B", "to": "A", "kind": "inheritance"},
            ],
        )
        result = validate_inheritance_cycles(ir)
        assert result.codes == ["INHERITANCE_CYCLE"]
        assert result.all_items[0].context["cycle"] == ["A", "B", "A"]
        assert result.is_valid


# ===========================================================================
# Diagram size and configuration
# ===========================================================================


class TestDiagramAndConfig:
    """Whole-diagram and configuration checks."""

    def test_empty_diagram_warns(self) -> None:
        assert validate_diagram_size(DiagramIR()).codes == ["EMPTY_DIAGRAM"]

    def test_no_entities_warns(self) -> None:
        ir = _ir([{"name": "Servicio", "stereotype": "service"}])
        assert validate_diagram_size(ir).codes == ["NO_ENTITIES"]

    def test_default_config_is_clean(self) -> None:
        assert len(validate_translation_config(TranslationConfig())) == 0

    def test_bad_config_values(self) -> None:
        config = TranslationConfig(
            base_url="ftp://localhost",
            artifact_id="Mi_Artefacto",
            project_version="uno",
            project_name="Mi Proyecto",
            package_name="com.new",
        )
        codes = validate_translation_config(config).codes
        assert "INVALID_BASE_URL" in codes
        assert "ARTIFACT_ID_FORMAT" in codes
        assert "PROJECT_VERSION_FORMAT" in codes
        assert "INVALID_PROJECT_NAME" in codes
        assert "PACKAGE_SEGMENT_RESERVED" in codes

    def test_validate_diagram_example(self, example_ir: DiagramIR) -> None:
        result = validate_diagram(example_ir)
        assert result.is_valid, result.format_report()

    def test_validate_full_combines_config(self, example_ir: DiagramIR) -> None:
        config = TranslationConfig.from_title(example_ir.title, base_url="localhost")
        result = validate_full(example_ir, config)
        assert not result
        assert "INVALID_BASE_URL" in result.codes
