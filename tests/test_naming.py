"""
tests/test_naming.py
Unit tests for umlforge.naming.

Tests cover:
- Case conversions and accent folding
- The mechanical plural shared by tables, collections and URLs
- Identifier sanitisation against Java, Dart and SQL keywords
- Project naming derived from a diagram title
"""

from __future__ import annotations

import pytest

from umlforge.naming import (
    class_identifier,
    column_name,
    dart_field_name,
    fold_ascii,
    java_field_name,
    sanitize_identifier,
    sanitize_project_name,
    strip_visibility_marker,
    table_name,
    table_singular,
    to_artifact_id,
    to_camel_case,
    to_kebab_case,
    to_package_name,
    to_pascal_case,
    to_plural,
    to_snake_case,
    to_title_human,
    url_segment,
)


# ===========================================================================
# Case conversions
# ===========================================================================


class TestCaseConversions:
    """Word splitting and re-joining in every casing style."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("UserProfile", "user_profile"),
            ("usuarioId", "usuario_id"),
            ("DetallePedido", "detalle_pedido"),
            ("Habitación", "habitacion"),
            ("already_snake", "already_snake"),
            ("", ""),
        ],
    )
    def test_to_snake_case(self, raw: str, expected: str) -> None:
        assert to_snake_case(raw) == expected

    def test_to_pascal_case(self) -> None:
        assert to_pascal_case("user_profile") == "UserProfile"
        assert to_pascal_case("detalle pedido") == "DetallePedido"

    def test_to_camel_case(self) -> None:
        assert to_camel_case("Usuario") == "usuario"
        assert to_camel_case("DetallePedido") == "detallePedido"
        assert to_camel_case("") == ""

    def test_to_kebab_case(self) -> None:
        assert to_kebab_case("DetallePedido") == "detalle-pedido"

    def test_to_title_human(self) -> None:
        assert to_title_human("detallePedido") == "Detalle Pedido"

    def test_fold_ascii_drops_diacritics(self) -> None:
        assert fold_ascii("Habitación") == "Habitacion"
        assert fold_ascii("Año") == "Ano"


# ===========================================================================
# Plurals, tables and URL segments
# ===========================================================================


class TestPluralsAndTables:
    """Every target derives its collection names from the same plural."""

    def test_regular_plural_appends_s(self) -> None:
        assert to_plural("pedido") == "pedidos"
        assert to_plural("habitacion") == "habitacions"

    def test_trailing_s_gets_es(self) -> None:
        assert to_plural("mes") == "meses"

    def test_empty_plural(self) -> None:
        assert to_plural("") == ""

    def test_table_name(self) -> None:
        assert table_name("Perro") == "perros"
        assert table_name("Animal") == "animals"
        assert table_name("DetallePedido") == "detalle_pedidos"
        assert table_name("Habitación") == "habitacions"

    def test_table_singular(self) -> None:
        assert table_singular("DetallePedido") == "detalle_pedido"
        assert table_singular("!!!") == "tabla"

    def test_url_segment(self) -> None:
        assert url_segment("DetallePedido") == "detalle-pedidos"
        assert url_segment("Usuario") == "usuarios"


# ===========================================================================
# Identifier sanitisation
# ===========================================================================


class TestIdentifiers:
    """Keywords and invalid characters never reach generated code."""

    def test_java_keyword_gets_suffix(self) -> None:
        assert java_field_name("class") == "classField"

    def test_dart_keyword_gets_suffix(self) -> None:
        assert dart_field_name("required") == "requiredField"

    def test_sql_keyword_column(self) -> None:
        assert column_name("order") == "order_col"
        assert column_name("fechaNacimiento") == "fecha_nacimiento"

    def test_class_identifier(self) -> None:
        assert class_identifier("detalle pedido") == "DetallePedido"
        assert class_identifier("Habitación") == "Habitacion"

    def test_leading_digit_gets_fallback_prefix(self) -> None:
        assert sanitize_identifier("1campo") == "field1campo"

    def test_empty_result_uses_fallback(self) -> None:
        assert sanitize_identifier("@@@") == "field"

    def test_strip_visibility_marker(self) -> None:
        assert strip_visibility_marker("- email") == "email"
        assert strip_visibility_marker("+nombre") == "nombre"
        assert strip_visibility_marker("sin_marca") == "sin_marca"


# ===========================================================================
# Project naming
# ===========================================================================


class TestProjectNaming:
    """Title → project, artifact and package names."""

    def test_sanitize_project_name(self) -> None:
        assert sanitize_project_name("Tienda Online") == "TiendaOnline"
        assert sanitize_project_name("") == "DiagramaUML"

    def test_project_name_leading_digit(self) -> None:
        assert sanitize_project_name("3 Hermanos").startswith("Proyecto")

    def test_artifact_id(self) -> None:
        assert to_artifact_id("Tienda Online") == "tienda-online"
        assert to_artifact_id("") == "diagramauml"

    def test_package_name(self) -> None:
        assert to_package_name("Tienda Online") == "com.tiendaonline"

    def test_package_name_avoids_java_keyword(self) -> None:
        assert to_package_name("Class") == "com.classapp"
