"""
tests/test_auth_detector.py
Unit tests for umlforge.auth_detector.
"""

from __future__ import annotations

from typing import Any, Dict, List

from umlforge.auth_detector import detect, find_user_candidate
from umlforge.extractor import extract_diagram
from umlforge.models import DiagramIR


def _ir(classes: List[Dict[str, Any]]) -> DiagramIR:
    return extract_diagram({"classes": classes}).ir


# ===========================================================================
# Detection
# ===========================================================================


class TestDetect:
    """Class-name gate first, then identifier and secret attributes."""

    def test_user_with_credentials(self, auth_snapshot: Dict[str, Any]) -> None:
        result = detect(extract_diagram(auth_snapshot).ir.classes)
        assert result.needs_auth is True
        assert result.user_entity == "Usuario"
        assert result.credential_field == "email"
        assert result.secret_field == "password"

    def test_example_diagram(self, example_ir: DiagramIR) -> None:
        result = detect(example_ir.classes)
        assert result.needs_auth is True
        assert result.user_entity == "Usuario"

    def test_spanish_and_accented_spellings(self) -> None:
        ir = _ir([{"name": "Cuenta", "attributes": ["- correo: String", "- contraseña: String"]}])
        result = detect(ir.classes)
        assert result.needs_auth is True
        assert (result.credential_field, result.secret_field) == ("correo", "contraseña")

    def test_missing_secret_disables_auth(self) -> None:
        result = detect(_ir([{"name": "Usuario", "attributes": ["- email: String"]}]).classes)
        assert result.needs_auth is False
        assert result.user_entity is None

    def test_credentials_on_non_user_class_ignored(self) -> None:
        ir = _ir([{"name": "Proveedor", "attributes": ["- email: String", "- password: String"]}])
        result = detect(ir.classes)
        assert result.needs_auth is False

    def test_only_first_candidate_is_considered(self) -> None:
        result = detect(
            _ir(
                [
                    {"name": "Usuario", "attributes": ["- nombre: String"]},
                    {"name": "Cliente", "attributes": ["- email: String", "- clave: String"]},
                ]
            ).classes
        )
        assert result.needs_auth is False

    def test_non_entity_user_class_skipped(self) -> None:
        ir = _ir(
            [
                {
                    "name": "UserService",
                    "stereotype": "service",
                    "attributes": ["- email: String", "- password: String"],
                },
                {"name": "Usuario", "attributes": ["- mail: String", "- pwd: String"]},
            ]
        )
        assert find_user_candidate(ir.classes).name == "Usuario"
        assert detect(ir.classes).secret_field == "pwd"

    def test_no_classes(self) -> None:
        assert detect([]).needs_auth is False
