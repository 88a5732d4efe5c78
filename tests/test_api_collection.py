"""
tests/test_api_collection.py
Unit tests for umlforge.generators.api_collection.
"""

from __future__ import annotations

import json
import uuid
from typing import Any, Callable, Dict, List

import pytest

from umlforge.generators.api_collection import (
    COLLECTION_FILE,
    POSTMAN_SCHEMA,
    ApiCollectionGenerator,
    sample_value,
)
from umlforge.generators.base import GenerationContext

ContextFactory = Callable[[Dict[str, Any]], GenerationContext]


def _collection(context: GenerationContext) -> Dict[str, Any]:
    return json.loads(ApiCollectionGenerator(context).generate()[COLLECTION_FILE])


def _folder_names(collection: Dict[str, Any]) -> List[str]:
    return [folder["name"] for folder in collection["item"]]


def _folder(collection: Dict[str, Any], name: str) -> Dict[str, Any]:
    for folder in collection["item"]:
        if folder["name"] == name:
            return folder
    raise AssertionError(f"Folder {name!r} not found in {_folder_names(collection)}")


# ===========================================================================
# Sample values
# ===========================================================================


class TestSampleValue:
    """Field-name hints win over the generic type sample."""

    @pytest.mark.parametrize(
        "field, java_type, expected",
        [
            ("email", "String", "usuario@ejemplo.com"),
            ("correoPersonal", "String", "usuario@ejemplo.com"),
            ("nombre", "String", "Ejemplo Nombre"),
            ("precio", "Double", 99.99),
            ("cantidad", "Integer", 10),
            ("total", "Long", 99),
            ("activo", "Boolean", True),
            ("fecha", "LocalDate", "2024-01-15"),
            ("tags", "List<String>", []),
            ("extra", "Map<String, Object>", {}),
            ("misterio", "Gizmo", "Valor de ejemplo"),
        ],
    )
    def test_sample_value(self, field: str, java_type: str, expected: Any) -> None:
        assert sample_value(field, java_type) == expected


# ===========================================================================
# Collection structure
# ===========================================================================


class TestCollection:
    """Postman v2.1 layout."""

    def test_info_block(
        self, context_for: ContextFactory, association_snapshot: Dict[str, Any]
    ) -> None:
        collection = _collection(context_for(association_snapshot))
        info = collection["info"]
        assert info["schema"] == POSTMAN_SCHEMA
        assert info["name"] == "Pedidos - API REST"
        assert info["_postman_id"] == str(uuid.uuid5(uuid.NAMESPACE_URL, "umlforge:pedidos"))

    def test_output_is_reproducible(self, example_context: GenerationContext) -> None:
        first = ApiCollectionGenerator(example_context).generate()
        second = ApiCollectionGenerator(example_context).generate()
        assert first == second

    def test_folders_without_auth(
        self, context_for: ContextFactory, association_snapshot: Dict[str, Any]
    ) -> None:
        collection = _collection(context_for(association_snapshot))
        assert _folder_names(collection) == ["Usuario", "Pedido", "Relationships", "Utilities"]
        utilities = _folder(collection, "Utilities")
        assert [item["name"] for item in utilities["item"]] == ["Health Check"]
        keys = [v["key"] for v in collection["variable"]]
        assert keys == ["baseUrl", "usuarioId", "pedidoId"]

    def test_folders_with_auth(
        self, context_for: ContextFactory, auth_snapshot: Dict[str, Any]
    ) -> None:
        collection = _collection(context_for(auth_snapshot))
        assert _folder_names(collection) == ["Authentication", "Usuario", "Utilities"]
        utilities = _folder(collection, "Utilities")
        assert [item["name"] for item in utilities["item"]] == ["Health Check", "Validate Token"]
        assert "jwtToken" in [v["key"] for v in collection["variable"]]

    def test_no_relationship_folder_for_lone_class(self, context_for: ContextFactory) -> None:
        collection = _collection(context_for({"classes": [{"name": "Libro"}]}))
        assert "Relationships" not in _folder_names(collection)

    def test_many_to_many_only_relationship_folder(
        self, context_for: ContextFactory, many_to_many_snapshot: Dict[str, Any]
    ) -> None:
        collection = _collection(context_for(many_to_many_snapshot))
        folder = _folder(collection, "Relationships")
        assert folder["item"] == []
        assert "curso_estudiante" in folder["description"]


# ===========================================================================
# Requests
# ===========================================================================


class TestRequests:
    """CRUD requests, bodies and navigation."""

    def test_crud_requests(
        self, context_for: ContextFactory, association_snapshot: Dict[str, Any]
    ) -> None:
        folder = _folder(_collection(context_for(association_snapshot)), "Pedido")
        methods = [item["request"]["method"] for item in folder["item"]]
        assert methods == ["GET", "GET", "POST", "PUT", "DELETE"]
        assert folder["item"][1]["request"]["url"]["raw"] == "{{baseUrl}}/api/pedidos/{{pedidoId}}"

    def test_request_body_includes_reference_id(
        self, context_for: ContextFactory, association_snapshot: Dict[str, Any]
    ) -> None:
        context = context_for(association_snapshot)
        pedido = context.ir.get_class("Pedido")
        assert ApiCollectionGenerator(context).request_body(pedido) == {
            "total": 99.99,
            "usuarioId": 1,
        }

    def test_request_body_includes_parent_id(
        self, context_for: ContextFactory, inheritance_snapshot: Dict[str, Any]
    ) -> None:
        context = context_for(inheritance_snapshot)
        body = ApiCollectionGenerator(context).request_body(context.ir.get_class("Perro"))
        assert body["animalId"] == 1

    def test_navigation_request(
        self, context_for: ContextFactory, association_snapshot: Dict[str, Any]
    ) -> None:
        folder = _folder(_collection(context_for(association_snapshot)), "Relationships")
        [request] = folder["item"]
        assert request["name"] == "Pedido by Usuario"
        assert request["request"]["url"]["raw"] == "{{baseUrl}}/api/pedidos/by-usuario/{{usuarioId}}"

    def test_entity_requests_use_bearer_only_with_auth(
        self,
        context_for: ContextFactory,
        association_snapshot: Dict[str, Any],
        auth_snapshot: Dict[str, Any],
    ) -> None:
        plain = _folder(_collection(context_for(association_snapshot)), "Pedido")
        assert "auth" not in plain["item"][0]["request"]
        secured = _folder(_collection(context_for(auth_snapshot)), "Usuario")
        assert secured["item"][0]["request"]["auth"]["type"] == "bearer"

    def test_login_body(self, context_for: ContextFactory, auth_snapshot: Dict[str, Any]) -> None:
        folder = _folder(_collection(context_for(auth_snapshot)), "Authentication")
        login = folder["item"][0]
        assert login["name"] == "Login"
        assert "auth" not in login["request"]
        assert json.loads(login["request"]["body"]["raw"]) == {
            "email": "usuario@ejemplo.com",
            "password": "password123",
        }
