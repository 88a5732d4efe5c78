# File: umlforge/generators/api_collection.py
"""
NexaFlow UMLForge - API Collection Generator
=============================================
Postman v2.1 collection for the generated Spring Boot API.

Folders:
    * Authentication (login / register, token capture) when the diagram
      has an auth entity.
    * One folder per entity with list / get / create / update / delete.
    * Relationships: the ``by-<reference>`` navigation endpoints.
    * Utilities: health check and token validation.

Request bodies carry the same keys as the backend request DTOs, including
the ``<base>Id`` reference fields. The collection id is a UUID5 of the
artifact id, so the output is reproducible.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from umlforge.generators.base import (
    ArtifactGenerator,
    inheritance_key,
    json_key,
    reference_route,
    resource_path,
)
from umlforge.models import AttributeSpec, ClassEntity, ResolvedForeignKey, TargetKind
from umlforge.naming import java_field_name, to_camel_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.generators.api_collection")

POSTMAN_SCHEMA: str = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"
COLLECTION_FILE: str = "postman_collection.json"

_STRING_HINTS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("email", "correo", "mail"), "usuario@ejemplo.com"),
    (("password", "contrasena", "contraseña", "clave", "secret"), "password123"),
    (("telefono", "phone", "celular"), "+1234567890"),
    (("direccion", "address"), "Calle Ejemplo 123"),
    (("descripcion", "description"), "Descripcion de ejemplo"),
    (("codigo", "code"), "ABC123"),
    (("url", "sitio", "web"), "https://ejemplo.com"),
    (("nombre", "name", "titulo", "title"), "Ejemplo Nombre"),
)

_NUMBER_HINTS: Tuple[Tuple[Tuple[str, ...], Any], ...] = (
    (("precio", "price", "monto", "total", "costo"), 99.99),
    (("cantidad", "quantity", "stock"), 10),
)

_JAVA_SAMPLES: Dict[str, Any] = {
    "String": "Valor de ejemplo",
    "Integer": 42,
    "Short": 7,
    "Long": 123456789,
    "Double": 99.99,
    "Float": 99.9,
    "BigDecimal": 999.99,
    "Boolean": True,
    "LocalDate": "2024-01-15",
    "LocalDateTime": "2024-01-15T10:30:00",
    "LocalTime": "14:30:00",
    "UUID": "123e4567-e89b-12d3-a456-426614174000",
}

_NUMERIC_TYPES = frozenset({"Integer", "Short", "Long", "Double", "Float", "BigDecimal"})

_JSON_HEADERS: List[Dict[str, str]] = [
    {"key": "Content-Type", "value": "application/json"},
    {"key": "Accept", "value": "application/json"},
]


def sample_value(field_name: str, java_type: str) -> Any:
    """Example value for a request field: field-name hints first, then the Java type."""
    lowered: str = field_name.lower()
    if java_type == "String":
        for fragments, value in _STRING_HINTS:
            if any(f in lowered for f in fragments):
                return value
    elif java_type in _NUMERIC_TYPES:
        for fragments, value in _NUMBER_HINTS:
            if any(f in lowered for f in fragments):
                return int(value) if java_type in ("Integer", "Short", "Long") else value
    if java_type.startswith(("List", "Set", "Collection")):
        return []
    if java_type.startswith("Map"):
        return {}
    return _JAVA_SAMPLES.get(java_type, "Valor de ejemplo")


def _url(*segments: str) -> Dict[str, Any]:
    path: List[str] = [s for s in "/".join(segments).split("/") if s]
    return {
        "raw": "{{baseUrl}}/" + "/".join(path),
        "host": ["{{baseUrl}}"],
        "path": path,
    }


def _test_event(lines: List[str]) -> Dict[str, Any]:
    return {"listen": "test", "script": {"type": "text/javascript", "exec": lines}}


def _status_test(label: str, *codes: int) -> Dict[str, Any]:
    expectation: str = (
        f"pm.response.to.have.status({codes[0]});"
        if len(codes) == 1
        else f"pm.expect(pm.response.code).to.be.oneOf({list(codes)});"
    )
    return _test_event(
        [
            f"pm.test('{label}', function () {{",
            f"    {expectation}",
            "});",
            "",
            "pm.test('Response time is acceptable', function () {",
            "    pm.expect(pm.response.responseTime).to.be.below(3000);",
            "});",
        ]
    )


class ApiCollectionGenerator(ArtifactGenerator):
    """Postman v2.1 collection; a single JSON artifact."""

    target = TargetKind.API_COLLECTION

    def generate(self) -> Dict[str, str]:
        collection: Dict[str, Any] = self.build_collection()
        text: str = json.dumps(collection, indent=2, ensure_ascii=False) + "\n"
        logger.info(
            "API collection: %d folders, %d requests.",
            len(collection["item"]),
            sum(len(folder["item"]) for folder in collection["item"]),
        )
        return {COLLECTION_FILE: text}

    def build_collection(self) -> Dict[str, Any]:
        """The collection as a plain dict, before serialization."""
        needs_auth: bool = self.context.user_entity is not None
        items: List[Dict[str, Any]] = []
        if needs_auth:
            items.append(self._auth_folder())
        for cls in self.context.entities:
            items.append(self._entity_folder(cls, needs_auth))
        navigation: List[Dict[str, Any]] = self._navigation_requests(needs_auth)
        if navigation or self.resolved.joins:
            items.append(
                {
                    "name": "Relationships",
                    "description": self._relationship_summary(),
                    "item": navigation,
                }
            )
        items.append(self._utils_folder(needs_auth))
        return {
            "info": {
                "_postman_id": str(
                    uuid.uuid5(uuid.NAMESPACE_URL, f"umlforge:{self.config.artifact_id}")
                ),
                "name": f"{self.config.project_name} - API REST",
                "description": self._description(needs_auth),
                "schema": POSTMAN_SCHEMA,
            },
            "item": items,
            "variable": self._variables(needs_auth),
        }

    # -- Collection header -----------------------------------------------

    def _description(self, needs_auth: bool) -> str:
        lines: List[str] = [
            f"REST API generated from the UML diagram \"{self.ir.title}\".",
            "",
            "**Entities:** " + ", ".join(c.name for c in self.context.entities),
            "",
            f"Set `{{{{baseUrl}}}}` (default `{self.config.base_url}`) and start the backend.",
        ]
        if needs_auth:
            lines.extend(
                [
                    "",
                    "**Authentication:** run *Login* first; the token is stored in "
                    "`{{jwtToken}}` and sent as a Bearer header by every entity request.",
                ]
            )
        lines.extend(self._many_to_many_notice())
        return "\n".join(lines)

    def _many_to_many_notice(self) -> List[str]:
        if not self.resolved.joins:
            return []
        lines: List[str] = ["", "**Many-to-many relationships** (join tables, no endpoints):"]
        lines.extend(
            f"- `{j.name}`: {j.left_class} <-> {j.right_class}" for j in self.resolved.joins
        )
        return lines

    def _variables(self, needs_auth: bool) -> List[Dict[str, str]]:
        variables: List[Dict[str, str]] = [
            {"key": "baseUrl", "value": self.config.base_url, "type": "string"},
        ]
        if needs_auth:
            variables.append({"key": "jwtToken", "value": "", "type": "string"})
        variables.extend(
            {"key": self._id_variable(cls.name), "value": "1", "type": "string"}
            for cls in self.context.entities
        )
        return variables

    @staticmethod
    def _id_variable(class_name: str) -> str:
        return f"{to_camel_case(class_name)}Id"

    # -- Requests --------------------------------------------------------

    def _request(
        self,
        name: str,
        method: str,
        url: Dict[str, Any],
        needs_auth: bool,
        body: Optional[Dict[str, Any]] = None,
        description: str = "",
        events: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "method": method,
            "header": list(_JSON_HEADERS) if body is not None else [_JSON_HEADERS[1]],
            "url": url,
        }
        if body is not None:
            request["body"] = {
                "mode": "raw",
                "raw": json.dumps(body, indent=2, ensure_ascii=False),
                "options": {"raw": {"language": "json"}},
            }
        if description:
            request["description"] = description
        if needs_auth:
            request["auth"] = {
                "type": "bearer",
                "bearer": [{"key": "token", "value": "{{jwtToken}}", "type": "string"}],
            }
        item: Dict[str, Any] = {"name": name, "request": request}
        if events:
            item["event"] = events
        return item

    def request_body(self, cls: ClassEntity) -> Dict[str, Any]:
        """Sample body matching ``<Class>RequestDTO``."""
        body: Dict[str, Any] = {}
        for attribute in self._body_attributes(cls):
            java_type: str = self.mapper.java(attribute.type_name)
            body[json_key(attribute.name)] = sample_value(attribute.name, java_type)
        parent: Optional[str] = self.resolved.parent_of(cls.name)
        if parent is not None:
            body[json_key(inheritance_key(parent)[1])] = 1
        for fk in self.resolved.references_for(cls.name):
            body[f"{java_field_name(fk.base_name)}Id"] = 1
        return body

    def _body_attributes(self, cls: ClassEntity) -> List[AttributeSpec]:
        return [a for a in self.persisted(cls) if a.type_name not in self.ir.class_index]

    def _entity_folder(self, cls: ClassEntity, needs_auth: bool) -> Dict[str, Any]:
        base: str = resource_path(cls.name)
        id_var: str = "{{" + self._id_variable(cls.name) + "}}"
        body: Dict[str, Any] = self.request_body(cls)
        capture: Dict[str, Any] = _test_event(
            [
                f"pm.test('{cls.name} created', function () {{",
                "    pm.response.to.have.status(201);",
                "});",
                "",
                "if (pm.response.code === 201) {",
                f"    pm.collectionVariables.set('{self._id_variable(cls.name)}', pm.response.json().id);",
                "}",
            ]
        )
        return {
            "name": cls.name,
            "item": [
                self._request(
                    f"List {cls.name}",
                    "GET",
                    _url(base),
                    needs_auth,
                    description=f"All {cls.name} rows.",
                    events=[_status_test(f"List {cls.name}", 200)],
                ),
                self._request(
                    f"Get {cls.name} by ID",
                    "GET",
                    _url(base, id_var),
                    needs_auth,
                    events=[_status_test(f"Get {cls.name}", 200, 404)],
                ),
                self._request(
                    f"Create {cls.name}",
                    "POST",
                    _url(base),
                    needs_auth,
                    body=body,
                    events=[capture],
                ),
                self._request(
                    f"Update {cls.name}",
                    "PUT",
                    _url(base, id_var),
                    needs_auth,
                    body=body,
                    events=[_status_test(f"Update {cls.name}", 200)],
                ),
                self._request(
                    f"Delete {cls.name}",
                    "DELETE",
                    _url(base, id_var),
                    needs_auth,
                    events=[_status_test(f"Delete {cls.name}", 204)],
                ),
            ],
        }

    # -- Relationships ---------------------------------------------------

    def _navigation_requests(self, needs_auth: bool) -> List[Dict[str, Any]]:
        """One request per owned reference: rows of the owner pointing at one id."""
        requests: List[Dict[str, Any]] = []
        for cls in self.context.entities:
            for fk in self.resolved.references_for(cls.name):
                requests.append(self._navigation_request(cls, fk, needs_auth))
        return requests

    def _navigation_request(
        self, cls: ClassEntity, fk: ResolvedForeignKey, needs_auth: bool
    ) -> Dict[str, Any]:
        related_var: str = "{{" + self._id_variable(fk.related_class) + "}}"
        return self._request(
            f"{cls.name} by {fk.related_class}",
            "GET",
            _url(resource_path(cls.name), reference_route(fk.base_name), related_var),
            needs_auth,
            description=(
                f"{cls.name} rows whose `{fk.field_name}` is the given {fk.related_class}. "
                f"Relationship: {fk.kind}."
            ),
            events=[_status_test(f"{cls.name} by {fk.related_class}", 200)],
        )

    def _relationship_summary(self) -> str:
        lines: List[str] = ["Relationships found in the diagram:", ""]
        for rel in self.ir.relationships:
            lines.append(
                f"- **{rel.source}** {rel.kind} **{rel.target}** "
                f"({rel.source_multiplicity} -> {rel.target_multiplicity})"
            )
        lines.extend(self._many_to_many_notice())
        return "\n".join(lines)

    # -- Authentication --------------------------------------------------

    def _auth_folder(self) -> Dict[str, Any]:
        auth = self.context.auth
        user: ClassEntity = self.context.user_entity  # type: ignore[assignment]
        credential: str = json_key(auth.credential_field or "")
        secret: str = json_key(auth.secret_field or "")
        credential_type: str = "String"
        for attribute in user.attributes:
            if attribute.name == auth.credential_field:
                credential_type = self.mapper.java(attribute.type_name)

        login_body: Dict[str, Any] = {
            credential: sample_value(auth.credential_field or "", credential_type),
            secret: "password123",
        }
        register_body: Dict[str, Any] = {
            json_key(a.name): sample_value(a.name, self.mapper.java(a.type_name))
            for a in self._body_attributes(user)
        }
        register_body[secret] = "password123"
        store_token: Dict[str, Any] = _test_event(
            [
                "pm.test('Token received', function () {",
                "    pm.expect(pm.response.code).to.be.oneOf([200, 201]);",
                "    pm.expect(pm.response.json()).to.have.property('token');",
                "});",
                "",
                "if (pm.response.code === 200 || pm.response.code === 201) {",
                "    pm.collectionVariables.set('jwtToken', pm.response.json().token);",
                "}",
            ]
        )
        return {
            "name": "Authentication",
            "item": [
                self._request(
                    "Login",
                    "POST",
                    _url("api/auth/login"),
                    False,
                    body=login_body,
                    description=(
                        f"Authenticates a {user.name} by `{credential}` and `{secret}`; "
                        "the JWT is stored in `{{jwtToken}}`."
                    ),
                    events=[store_token],
                ),
                self._request(
                    "Register",
                    "POST",
                    _url("api/auth/register"),
                    False,
                    body=register_body,
                    description=f"Creates a {user.name} and returns a JWT.",
                    events=[store_token],
                ),
            ],
        }

    def _utils_folder(self, needs_auth: bool) -> Dict[str, Any]:
        items: List[Dict[str, Any]] = [
            self._request(
                "Health Check",
                "GET",
                _url("actuator/health"),
                False,
                description="Spring Boot actuator health endpoint.",
                events=[
                    _test_event(
                        [
                            "pm.test('Server is up', function () {",
                            "    pm.response.to.have.status(200);",
                            "    pm.expect(pm.response.json().status).to.eql('UP');",
                            "});",
                        ]
                    )
                ],
            )
        ]
        if needs_auth:
            items.append(
                self._request(
                    "Validate Token",
                    "GET",
                    _url("api/auth/validate"),
                    True,
                    description="Checks the stored `{{jwtToken}}`.",
                    events=[_status_test("Token validation", 200)],
                )
            )
        return {"name": "Utilities", "item": items}


__all__: List[str] = [
    "POSTMAN_SCHEMA",
    "COLLECTION_FILE",
    "sample_value",
    "ApiCollectionGenerator",
]
