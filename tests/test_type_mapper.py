"""
tests/test_type_mapper.py
Unit tests for umlforge.type_mapper.TypeMapper.
"""

from __future__ import annotations

import pytest

from umlforge.type_mapper import TargetLanguage, TypeMapper


@pytest.fixture()
def mapper() -> TypeMapper:
    return TypeMapper(known_classes=("Usuario", "Pedido"))


# ===========================================================================
# SQL
# ===========================================================================


class TestSqlMapping:
    """UML → MySQL column types."""

    @pytest.mark.parametrize(
        "uml, sql",
        [
            ("String", "VARCHAR(255)"),
            ("int", "INT"),
            ("Long", "BIGINT"),
            ("Double", "DECIMAL(10,2)"),
            ("boolean", "BOOLEAN"),
            ("Date", "DATETIME"),
            ("LocalDate", "DATE"),
            ("BigDecimal", "DECIMAL(15,2)"),
            ("UUID", "CHAR(36)"),
        ],
    )
    def test_known_types(self, mapper: TypeMapper, uml: str, sql: str) -> None:
        assert mapper.sql(uml) == sql

    def test_case_insensitive_fallback_lookup(self, mapper: TypeMapper) -> None:
        assert mapper.sql("INTEGER") == "INT"

    def test_containers_become_json(self, mapper: TypeMapper) -> None:
        assert mapper.sql("List<String>") == "JSON"
        assert mapper.sql("int[]") == "JSON"

    def test_unknown_and_empty_fall_back(self, mapper: TypeMapper) -> None:
        assert mapper.sql("Gizmo") == "VARCHAR(255)"
        assert mapper.sql(None) == "VARCHAR(255)"
        assert mapper.sql("") == "VARCHAR(255)"


# ===========================================================================
# Java
# ===========================================================================


class TestJavaMapping:
    """UML → Java field types."""

    @pytest.mark.parametrize(
        "uml, java",
        [
            ("int", "Integer"),
            ("String", "String"),
            ("double", "Double"),
            ("Date", "LocalDate"),
            ("DateTime", "LocalDateTime"),
            ("decimal", "BigDecimal"),
            ("bool", "Boolean"),
        ],
    )
    def test_known_types(self, mapper: TypeMapper, uml: str, java: str) -> None:
        assert mapper.java(uml) == java

    def test_generics_pass_through(self, mapper: TypeMapper) -> None:
        assert mapper.java("List<Pedido>") == "List<Pedido>"

    def test_arrays(self, mapper: TypeMapper) -> None:
        assert mapper.java("int[]") == "Integer[]"
        assert mapper.java("byte[]") == "byte[]"

    def test_known_class_passes_through(self, mapper: TypeMapper) -> None:
        assert mapper.java("Usuario") == "Usuario"

    def test_unknown_falls_back_to_string(self, mapper: TypeMapper) -> None:
        assert mapper.java("Gizmo") == "String"

    def test_imports_for(self) -> None:
        assert TypeMapper.java_imports_for("LocalDate") == ["java.time.LocalDate"]
        assert TypeMapper.java_imports_for("Map<String, BigDecimal>") == [
            "java.util.Map",
            "java.math.BigDecimal",
        ]


# ===========================================================================
# Dart
# ===========================================================================


class TestDartMapping:
    """UML → Dart field types."""

    @pytest.mark.parametrize(
        "uml, dart",
        [
            ("String", "String"),
            ("Integer", "int"),
            ("Long", "int"),
            ("Double", "double"),
            ("Boolean", "bool"),
            ("LocalDateTime", "DateTime"),
        ],
    )
    def test_known_types(self, mapper: TypeMapper, uml: str, dart: str) -> None:
        assert mapper.dart(uml) == dart

    def test_containers(self, mapper: TypeMapper) -> None:
        assert mapper.dart("List<String>") == "List<dynamic>"
        assert mapper.dart("Map<String, int>") == "Map<String, dynamic>"

    def test_unknown_falls_back(self, mapper: TypeMapper) -> None:
        assert mapper.dart("Usuario") == "String"


# ===========================================================================
# Dispatch
# ===========================================================================


class TestDispatch:
    """``map(target, type)`` routes to the right table."""

    def test_map_by_name_and_enum(self, mapper: TypeMapper) -> None:
        assert mapper.map("sql", "int") == "INT"
        assert mapper.map(TargetLanguage.JAVA, "int") == "Integer"
        assert mapper.map("dart", "int") == "int"

    def test_unknown_target_raises(self, mapper: TypeMapper) -> None:
        with pytest.raises(ValueError, match="Unknown target language"):
            mapper.map("cobol", "int")

    def test_is_container(self) -> None:
        assert TypeMapper.is_container("Set")
        assert TypeMapper.is_container("String[]")
        assert not TypeMapper.is_container("byte[]")
        assert not TypeMapper.is_container("String")
