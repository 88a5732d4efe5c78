"""
tests/conftest.py
Shared fixtures for the umlforge test suite.

All fixtures are session-scoped or function-scoped as appropriate.
No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Callable, Dict, List, Optional

import pytest
import yaml

from umlforge.extractor import extract_diagram
from umlforge.generators.base import GenerationContext, build_context
from umlforge.models import DiagramIR


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
DIAGRAM_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "diagram_example.yaml"


# ---------------------------------------------------------------------------
# Snapshot builders
# ---------------------------------------------------------------------------


def _cls(class_id: str, name: str, attributes: List[str], **extra: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": class_id,
        "name": name,
        "type": "class",
        "attributes": list(attributes),
        "methods": [],
    }
    data.update(extra)
    return data


def _link(
    source: str,
    target: str,
    kind: str,
    source_multiplicity: Optional[str] = None,
    target_multiplicity: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    data: Dict[str, Any] = {"sourceId": source, "targetId": target, "kind": kind}
    if source_multiplicity is not None:
        data["sourceMultiplicity"] = source_multiplicity
    if target_multiplicity is not None:
        data["targetMultiplicity"] = target_multiplicity
    data.update(extra)
    return data


# ---------------------------------------------------------------------------
# Reference diagram fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_example_dict() -> Dict[str, Any]:
    """Load the reference diagram_example.yaml once per session and return as dict."""
    assert DIAGRAM_EXAMPLE_PATH.exists(), (
        f"Reference diagram not found at {DIAGRAM_EXAMPLE_PATH}. "
        "Make sure diagram_example.yaml is in the project root."
    )
    with open(DIAGRAM_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def example_dict(raw_example_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_example_dict)


@pytest.fixture()
def example_yaml_path(example_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the example dict to a temporary YAML file and return its path."""
    path = tmp_path / "diagram.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(example_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def example_ir(example_dict: Dict[str, Any]) -> DiagramIR:
    return extract_diagram(example_dict).ir


@pytest.fixture()
def example_context(example_ir: DiagramIR) -> GenerationContext:
    return build_context(example_ir)


@pytest.fixture()
def context_for() -> Callable[[Dict[str, Any]], GenerationContext]:
    """Factory: snapshot dict → fully resolved generation context."""

    def _make(snapshot: Dict[str, Any]) -> GenerationContext:
        return build_context(extract_diagram(snapshot).ir)

    return _make


# ---------------------------------------------------------------------------
# Small scenario snapshots
# ---------------------------------------------------------------------------


@pytest.fixture()
def association_snapshot() -> Dict[str, Any]:
    """Usuario 1 ── * Pedido."""
    return {
        "title": "Pedidos",
        "classes": [
            _cls("c1", "Usuario", ["- nombre: String"]),
            _cls("c2", "Pedido", ["+ total: Double"]),
        ],
        "links": [_link("c1", "c2", "association", "1", "*")],
    }


@pytest.fixture()
def composition_snapshot() -> Dict[str, Any]:
    """Casa ◆── * Habitación (accented name on purpose)."""
    return {
        "title": "Vivienda",
        "classes": [
            _cls("c1", "Casa", ["+ direccion: String"]),
            _cls("c2", "Habitación", ["+ area: Double"]),
        ],
        "links": [_link("c1", "c2", "composition", "1", "*")],
    }


@pytest.fixture()
def inheritance_snapshot() -> Dict[str, Any]:
    """Perro ──▷ Animal, with the child declared first."""
    return {
        "title": "Zoo",
        "classes": [
            _cls("c1", "Perro", ["+ raza: String"]),
            _cls("c2", "Animal", ["- nombre: String"]),
        ],
        "links": [_link("c1", "c2", "generalization")],
    }


@pytest.fixture()
def auth_snapshot() -> Dict[str, Any]:
    """A user class carrying credential and secret attributes."""
    return {
        "title": "Portal",
        "classes": [
            _cls(
                "c1",
                "Usuario",
                ["- email: String", "- password: String", "+ nombre: String"],
            ),
        ],
        "links": [],
    }


@pytest.fixture()
def many_to_many_snapshot() -> Dict[str, Any]:
    """Estudiante * ── * Curso."""
    return {
        "title": "Academia",
        "classes": [
            _cls("c1", "Estudiante", ["- nombre: String"]),
            _cls("c2", "Curso", ["- titulo: String"]),
        ],
        "links": [_link("c1", "c2", "association", "*", "*")],
    }
