# File: umlforge/generators/backend.py
"""
NexaFlow UMLForge - Backend Generator (Spring Boot)
====================================================
Renders a complete Maven / Spring Boot 3 project:

    pom.xml, application*.properties, main class
    domain/model       JPA entities (+ join entities for many-to-many)
    domain/repository  Spring Data repositories
    domain/service     transactional services (request/response mapping)
    web/controller     REST controllers under ``/api/<plural>``
    web/dto            request and response DTOs
    exception          EntityNotFoundException + global handler
    config, auth/*     JWT security, only when a user entity is detected

Non-entity classes (service / repository / controller / utility
stereotypes, interfaces) become stand-alone classes whose methods return
a default value.

Each file is assembled as ``List[str]`` and joined once.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from umlforge.generators.base import (
    ArtifactGenerator,
    GenerationContext,
    inheritance_key,
    reference_route,
    resource_path,
)
from umlforge.models import (
    AttributeSpec,
    ClassEntity,
    ClassKind,
    JoinConstruct,
    MethodSpec,
    RelationshipKind,
    ResolvedForeignKey,
    Stereotype,
    TargetKind,
    Visibility,
)
from umlforge.naming import (
    JAVA_RESERVED_WORDS,
    class_identifier,
    column_name,
    java_field_name,
    sanitize_identifier,
    table_name,
    to_camel_case,
    to_pascal_case,
    url_segment,
)
from umlforge.type_mapper import TypeMapper
from umlforge.utils import build_java_imports, indent_lines, java_string

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.generators.backend")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

JAVA_SOURCE_ROOT: str = "src/main/java"
RESOURCES_ROOT: str = "src/main/resources"
JJWT_VERSION: str = "0.11.5"

_DEFAULT_RETURNS: Dict[str, str] = {
    "Integer": "0",
    "Long": "0L",
    "Short": "(short) 0",
    "Double": "0.0",
    "Float": "0.0f",
    "Boolean": "false",
    "String": '""',
    "BigDecimal": "BigDecimal.ZERO",
    "Object": "null",
}

_CONTAINER_DEFAULTS: Dict[str, Tuple[str, str]] = {
    "List": ("new ArrayList<>()", "java.util.ArrayList"),
    "Collection": ("new ArrayList<>()", "java.util.ArrayList"),
    "Set": ("new HashSet<>()", "java.util.HashSet"),
    "Map": ("new HashMap<>()", "java.util.HashMap"),
}

_STEREOTYPE_PACKAGES: Dict[str, str] = {
    Stereotype.ENTITY.value: "domain.model",
    Stereotype.SERVICE.value: "domain.service",
    Stereotype.REPOSITORY.value: "domain.repository",
    Stereotype.CONTROLLER.value: "web.controller",
    Stereotype.UTILITY.value: "util",
}

_STEREOTYPE_ANNOTATIONS: Dict[str, Tuple[str, str]] = {
    Stereotype.SERVICE.value: ("@Service", "org.springframework.stereotype.Service"),
    Stereotype.REPOSITORY.value: ("@Repository", "org.springframework.stereotype.Repository"),
    Stereotype.CONTROLLER.value: (
        "@RestController",
        "org.springframework.web.bind.annotation.RestController",
    ),
}

_EMAIL_FRAGMENTS: Tuple[str, ...] = ("email", "correo", "mail")


def _cap(name: str) -> str:
    return name[:1].upper() + name[1:]


def _getter(field: str) -> str:
    return f"get{_cap(field)}"


def _setter(field: str) -> str:
    return f"set{_cap(field)}"


def _method_name(name: str) -> str:
    return sanitize_identifier(to_camel_case(name) or name, JAVA_RESERVED_WORDS, "method", "Method")


def _repository_var(class_name: str) -> str:
    return f"{to_camel_case(class_identifier(class_name))}Repository"


def _join_field(column: str) -> str:
    return java_field_name(column[: -len("_id")] if column.endswith("_id") else column)


class BackendGenerator(ArtifactGenerator):
    """Spring Boot 3 / JPA / Lombok project for one diagram."""

    target = TargetKind.BACKEND

    def __init__(self, context: GenerationContext) -> None:
        super().__init__(context)
        self._package: str = self.config.package_name
        self._fqcn: Dict[str, str] = {}
        self._join_names: Dict[str, str] = {}
        taken: Set[str] = {class_identifier(c.name) for c in self.ir.classes}
        for join in self.resolved.joins:
            name: str = class_identifier(to_pascal_case(join.name))
            if name in taken:
                name = f"{name}Link"
            taken.add(name)
            self._join_names[join.name] = name

    # -- Public API ------------------------------------------------------

    def archive_name(self) -> Optional[str]:
        return f"{self.config.artifact_id}-SpringBoot.zip"

    def generate(self) -> Dict[str, str]:
        files: Dict[str, str] = {}
        auth = self.context.auth
        self._register_types()

        for cls in self.context.entities:
            name: str = class_identifier(cls.name)
            for sub_package, type_name, content in (
                ("domain.model", name, self._entity(cls)),
                ("domain.repository", f"{name}Repository", self._repository(cls)),
                ("domain.service", f"{name}Service", self._service(cls)),
                ("web.controller", f"{name}Controller", self._controller(cls)),
                ("web.dto", f"{name}RequestDTO", self._request_dto(cls)),
                ("web.dto", f"{name}ResponseDTO", self._response_dto(cls)),
            ):
                files[self._source_path(sub_package, type_name)] = content

        for join in self.resolved.joins:
            join_name: str = self._join_names[join.name]
            files[self._source_path("domain.model", join_name)] = self._join_entity(join)
            files[self._source_path("domain.repository", f"{join_name}Repository")] = (
                self._join_repository(join)
            )

        for cls in self.ir.classes:
            if cls.is_persistable:
                continue
            fqcn: str = self._fqcn[cls.name]
            sub_package: str = fqcn[len(self._package) + 1 : fqcn.rfind(".")]
            files[self._source_path(sub_package, class_identifier(cls.name))] = (
                self._standalone(cls, sub_package)
            )

        files[self._source_path("exception", "EntityNotFoundException")] = (
            self._entity_not_found_exception()
        )
        files[self._source_path("exception", "GlobalExceptionHandler")] = (
            self._global_exception_handler()
        )

        if auth.needs_auth and self.context.user_entity is not None:
            files.update(self._auth_files())

        application: str = f"{to_pascal_case(self.config.project_name)}Application"
        files[self._source_path("", application)] = self._main_class(application)
        files["pom.xml"] = self._pom()
        files[f"{RESOURCES_ROOT}/application.properties"] = self._application_properties()
        files[f"{RESOURCES_ROOT}/application-dev.properties"] = self._dev_properties()
        files[f"{RESOURCES_ROOT}/application-prod.properties"] = self._prod_properties()
        files["README.md"] = self._readme()
        files[".gitignore"] = self._gitignore()

        logger.info("Backend: %d files for %d entities.", len(files), len(self.context.entities))
        return files

    # -- Paths & imports -------------------------------------------------

    def _register_types(self) -> None:
        """Fully-qualified name of every diagram class, before any file is rendered."""
        generated: Set[Tuple[str, str]] = set()
        for cls in self.context.entities:
            name: str = class_identifier(cls.name)
            self._fqcn[cls.name] = f"{self._package}.domain.model.{name}"
            generated.update(
                {
                    ("domain.repository", f"{name}Repository"),
                    ("domain.service", f"{name}Service"),
                    ("web.controller", f"{name}Controller"),
                }
            )
        for cls in self.ir.classes:
            if cls.is_persistable:
                continue
            name = class_identifier(cls.name)
            sub_package: str = _STEREOTYPE_PACKAGES.get(cls.stereotype, "domain.model")
            if (sub_package, name) in generated:
                self.warn(
                    f"Class '{cls.name}' clashes with a generated {sub_package} type; "
                    f"placed in package '{sub_package}.custom'."
                )
                sub_package = f"{sub_package}.custom"
            self._fqcn[cls.name] = f"{self._package}.{sub_package}.{name}"

    def _package_of(self, sub_package: str) -> str:
        return f"{self._package}.{sub_package}" if sub_package else self._package

    def _source_path(self, sub_package: str, type_name: str) -> str:
        directory: str = self._package_of(sub_package).replace(".", "/")
        return f"{JAVA_SOURCE_ROOT}/{directory}/{type_name}.java"

    def _model(self, class_name: str) -> str:
        return f"{self._package}.domain.model.{class_identifier(class_name)}"

    def _type_imports(self, java_type: str, own_package: str) -> List[str]:
        imports: List[str] = TypeMapper.java_imports_for(java_type)
        for class_name, fqcn in self._fqcn.items():
            token: str = class_identifier(class_name)
            if token in _tokens(java_type) and fqcn.rsplit(".", 1)[0] != own_package:
                imports.append(fqcn)
        return imports

    def _file(self, sub_package: str, imports: Iterable[str], body: List[str]) -> str:
        package: str = self._package_of(sub_package)
        lines: List[str] = [f"package {package};", ""]
        own: List[str] = [i for i in imports if i.rsplit(".", 1)[0] != package]
        import_block: List[str] = build_java_imports(own)
        if import_block:
            lines.extend(import_block)
            lines.append("")
        lines.extend(body)
        return "\n".join(lines) + "\n"

    def _is_class_typed(self, attribute: AttributeSpec) -> bool:
        return self.mapper.java(attribute.type_name) in self.ir.class_index

    def _dto_attributes(self, cls: ClassEntity) -> List[AttributeSpec]:
        return [a for a in self.persisted(cls) if not self._is_class_typed(a)]

    def _is_secret(self, cls: ClassEntity, attribute: AttributeSpec) -> bool:
        auth = self.context.auth
        return bool(
            auth.needs_auth
            and auth.user_entity == cls.name
            and auth.secret_field == attribute.name
        )

    def _parent_fields(self, cls: ClassEntity) -> Optional[Tuple[str, str, str, str]]:
        """``(parent class, object field, id field, column)`` or ``None``."""
        parent: Optional[str] = self.resolved.parent_of(cls.name)
        if parent is None:
            return None
        base, id_field, column = inheritance_key(parent)
        return parent, java_field_name(base), java_field_name(id_field), column

    # -- Entities --------------------------------------------------------

    def _entity(self, cls: ClassEntity) -> str:
        name: str = class_identifier(cls.name)
        imports: Set[str] = {
            "jakarta.persistence.*",
            "lombok.AllArgsConstructor",
            "lombok.Data",
            "lombok.NoArgsConstructor",
            "java.time.LocalDateTime",
        }
        fields: List[str] = [
            "@Id",
            "@GeneratedValue(strategy = GenerationType.IDENTITY)",
            "private Long id;",
            "",
        ]

        parent_fields = self._parent_fields(cls)
        if parent_fields is not None:
            parent, field, _id_field, column = parent_fields
            imports.update(("lombok.EqualsAndHashCode", "lombok.ToString"))
            fields.extend(
                [
                    f"// Specialises {parent}; the parent row is referenced by key.",
                    "@OneToOne(fetch = FetchType.LAZY, optional = false)",
                    f'@JoinColumn(name = "{column}", nullable = false, unique = true)',
                    "@ToString.Exclude",
                    "@EqualsAndHashCode.Exclude",
                    f"private {class_identifier(parent)} {field};",
                    "",
                ]
            )

        for attribute in self.persisted(cls):
            fields.extend(self._entity_attribute(cls, attribute, imports))
            fields.append("")

        for fk in self.resolved.references_for(cls.name):
            imports.update(("lombok.EqualsAndHashCode", "lombok.ToString"))
            fields.extend(self._entity_reference(fk))
            fields.append("")

        for fk in self.resolved.collections_for(cls.name):
            imports.update(
                ("lombok.EqualsAndHashCode", "lombok.ToString", "java.util.HashSet", "java.util.Set")
            )
            fields.extend(self._entity_collection(fk))
            fields.append("")

        fields.extend(
            [
                '@Column(name = "created_at", updatable = false)',
                "private LocalDateTime createdAt;",
                "",
                '@Column(name = "updated_at")',
                "private LocalDateTime updatedAt;",
                "",
                "@PrePersist",
                "protected void onCreate() {",
                "    createdAt = LocalDateTime.now();",
                "    updatedAt = createdAt;",
                "}",
                "",
                "@PreUpdate",
                "protected void onUpdate() {",
                "    updatedAt = LocalDateTime.now();",
                "}",
            ]
        )

        body: List[str] = [
            "/**",
            f" * JPA entity for {cls.name}.",
            " */",
            "@Entity",
            f'@Table(name = "{table_name(cls.name)}")',
            "@Data",
            "@NoArgsConstructor",
            "@AllArgsConstructor",
            f"public class {name} {{",
            "",
        ]
        body.extend(indent_lines(fields))
        body.append("}")
        return self._file("domain.model", imports, body)

    def _entity_attribute(
        self, cls: ClassEntity, attribute: AttributeSpec, imports: Set[str]
    ) -> List[str]:
        java_type: str = self.mapper.java(attribute.type_name)
        field: str = java_field_name(attribute.name)
        if self._is_class_typed(attribute):
            self.warn(
                f"Attribute {cls.name}.{attribute.name} is typed with class "
                f"'{java_type}'; model it as a relationship. Rendered as @Transient."
            )
            imports.update(self._type_imports(java_type, f"{self._package}.domain.model"))
            return ["@Transient", f"private {class_identifier(java_type)} {field};"]

        imports.update(TypeMapper.java_imports_for(java_type))
        lines: List[str] = []
        if self.mapper.is_container(attribute.type_name):
            imports.update(("org.hibernate.annotations.JdbcTypeCode", "org.hibernate.type.SqlTypes"))
            lines.append("@JdbcTypeCode(SqlTypes.JSON)")
        if java_type == "byte[]":
            lines.append("@Lob")
        args: List[str] = [f'name = "{column_name(attribute.name)}"']
        if attribute.visibility == Visibility.PRIVATE:
            args.append("nullable = false")
        lines.append(f"@Column({', '.join(args)})")
        lines.append(f"private {java_type} {field};")
        return lines

    def _entity_reference(self, fk: ResolvedForeignKey) -> List[str]:
        field: str = java_field_name(fk.base_name)
        if fk.one_to_one:
            relation: str = "@OneToOne(fetch = FetchType.LAZY)"
            join: str = f'@JoinColumn(name = "{fk.column_name}", unique = true)'
        elif fk.required:
            relation = "@ManyToOne(fetch = FetchType.LAZY, optional = false)"
            join = f'@JoinColumn(name = "{fk.column_name}", nullable = false)'
        else:
            relation = "@ManyToOne(fetch = FetchType.LAZY)"
            join = f'@JoinColumn(name = "{fk.column_name}")'
        return [
            relation,
            join,
            "@ToString.Exclude",
            "@EqualsAndHashCode.Exclude",
            f"private {class_identifier(fk.related_class)} {field};",
        ]

    def _entity_collection(self, fk: ResolvedForeignKey) -> List[str]:
        args: List[str] = [f"mappedBy = {java_string(java_field_name(fk.mapped_by or ''))}"]
        if fk.kind == RelationshipKind.COMPOSITION:
            args.extend(["cascade = CascadeType.ALL", "orphanRemoval = true"])
        elif fk.kind == RelationshipKind.AGGREGATION:
            args.append("cascade = {CascadeType.PERSIST, CascadeType.MERGE}")
        related: str = class_identifier(fk.related_class)
        return [
            f"@OneToMany({', '.join(args)})",
            "@ToString.Exclude",
            "@EqualsAndHashCode.Exclude",
            f"private Set<{related}> {java_field_name(fk.field_name)} = new HashSet<>();",
        ]

    def _join_entity(self, join: JoinConstruct) -> str:
        name: str = self._join_names[join.name]
        left_field: str = _join_field(join.left_column)
        right_field: str = _join_field(join.right_column)
        imports: List[str] = [
            "jakarta.persistence.*",
            "lombok.AllArgsConstructor",
            "lombok.Data",
            "lombok.NoArgsConstructor",
            "java.time.LocalDateTime",
        ]
        fields: List[str] = [
            "@Id",
            "@GeneratedValue(strategy = GenerationType.IDENTITY)",
            "private Long id;",
            "",
            "@ManyToOne(fetch = FetchType.LAZY, optional = false)",
            f'@JoinColumn(name = "{join.left_column}", nullable = false)',
            f"private {class_identifier(join.left_class)} {left_field};",
            "",
            "@ManyToOne(fetch = FetchType.LAZY, optional = false)",
            f'@JoinColumn(name = "{join.right_column}", nullable = false)',
            f"private {class_identifier(join.right_class)} {right_field};",
            "",
            '@Column(name = "created_at", updatable = false)',
            "private LocalDateTime createdAt;",
            "",
            "@PrePersist",
            "protected void onCreate() {",
            "    createdAt = LocalDateTime.now();",
            "}",
        ]
        body: List[str] = [
            "/**",
            f" * Many-to-many link between {join.left_class} and {join.right_class}.",
            " * Neither side holds a direct foreign key for this association.",
            " */",
            "@Entity",
            f'@Table(name = "{join.name}", uniqueConstraints = @UniqueConstraint(',
            f'        columnNames = {{"{join.left_column}", "{join.right_column}"}}))',
            "@Data",
            "@NoArgsConstructor",
            "@AllArgsConstructor",
            f"public class {name} {{",
            "",
        ]
        body.extend(indent_lines(fields))
        body.append("}")
        return self._file("domain.model", imports, body)

    # -- Repositories ----------------------------------------------------

    def _repository(self, cls: ClassEntity) -> str:
        name: str = class_identifier(cls.name)
        imports: Set[str] = {
            self._model(cls.name),
            "org.springframework.data.jpa.repository.JpaRepository",
            "org.springframework.stereotype.Repository",
        }
        methods: List[str] = []
        for fk in self.resolved.references_for(cls.name):
            imports.add("java.util.List")
            field: str = java_field_name(fk.base_name)
            methods.append(f"List<{name}> findBy{_cap(field)}Id(Long {field}Id);")
            methods.append("")

        user = self.context.user_entity
        if user is not None and user.name == cls.name:
            credential: str = java_field_name(self.context.auth.credential_field or "")
            credential_type: str = self._attribute_java_type(cls, self.context.auth.credential_field)
            imports.add("java.util.Optional")
            methods.append(
                f"Optional<{name}> findBy{_cap(credential)}({credential_type} {credential});"
            )
            methods.append("")
            methods.append(f"boolean existsBy{_cap(credential)}({credential_type} {credential});")
            methods.append("")

        body: List[str] = [
            "@Repository",
            f"public interface {name}Repository extends JpaRepository<{name}, Long> {{",
        ]
        if methods:
            body.append("")
            body.extend(indent_lines(methods[:-1]))
        body.append("}")
        return self._file("domain.repository", imports, body)

    def _join_repository(self, join: JoinConstruct) -> str:
        name: str = self._join_names[join.name]
        left_field: str = _join_field(join.left_column)
        right_field: str = _join_field(join.right_column)
        imports: List[str] = [
            f"{self._package}.domain.model.{name}",
            "org.springframework.data.jpa.repository.JpaRepository",
            "org.springframework.stereotype.Repository",
            "java.util.List",
        ]
        body: List[str] = [
            "@Repository",
            f"public interface {name}Repository extends JpaRepository<{name}, Long> {{",
            "",
            f"    List<{name}> findBy{_cap(left_field)}Id(Long {left_field}Id);",
            "",
            f"    List<{name}> findBy{_cap(right_field)}Id(Long {right_field}Id);",
            "}",
        ]
        return self._file("domain.repository", imports, body)

    def _attribute_java_type(self, cls: ClassEntity, attribute_name: Optional[str]) -> str:
        for attribute in cls.attributes:
            if attribute.name == attribute_name:
                return self.mapper.java(attribute.type_name)
        return "String"

    # -- Services --------------------------------------------------------

    def _service(self, cls: ClassEntity) -> str:
        name: str = class_identifier(cls.name)
        own_repo: str = _repository_var(cls.name)
        request_dto: str = f"{name}RequestDTO"
        response_dto: str = f"{name}ResponseDTO"
        imports: Set[str] = {
            self._model(cls.name),
            f"{self._package}.domain.repository.{name}Repository",
            f"{self._package}.web.dto.{request_dto}",
            f"{self._package}.web.dto.{response_dto}",
            f"{self._package}.exception.EntityNotFoundException",
            "lombok.RequiredArgsConstructor",
            "lombok.extern.slf4j.Slf4j",
            "org.springframework.stereotype.Service",
            "org.springframework.transaction.annotation.Transactional",
            "java.util.List",
        }

        related: List[str] = []
        parent_fields = self._parent_fields(cls)
        if parent_fields is not None:
            related.append(parent_fields[0])
        related.extend(fk.related_class for fk in self.resolved.references_for(cls.name))
        repositories: List[str] = []
        for class_name in related:
            if class_name == cls.name or class_name in repositories:
                continue
            repositories.append(class_name)
            imports.add(self._model(class_name))
            imports.add(
                f"{self._package}.domain.repository.{class_identifier(class_name)}Repository"
            )

        encodes_secret: bool = any(self._is_secret(cls, a) for a in cls.attributes)
        if encodes_secret:
            imports.add("org.springframework.security.crypto.password.PasswordEncoder")

        members: List[str] = [f"private final {name}Repository {own_repo};"]
        for class_name in repositories:
            members.append(
                f"private final {class_identifier(class_name)}Repository "
                f"{_repository_var(class_name)};"
            )
        if encodes_secret:
            members.append("private final PasswordEncoder passwordEncoder;")
        members.append("")

        members.extend(
            [
                "@Transactional(readOnly = true)",
                f"public List<{response_dto}> findAll() {{",
                f"    return {own_repo}.findAll().stream()",
                "            .map(this::toResponse)",
                "            .toList();",
                "}",
                "",
                "@Transactional(readOnly = true)",
                f"public {response_dto} findById(Long id) {{",
                "    return toResponse(getEntity(id));",
                "}",
                "",
            ]
        )
        for fk in self.resolved.references_for(cls.name):
            field: str = java_field_name(fk.base_name)
            members.extend(
                [
                    "@Transactional(readOnly = true)",
                    f"public List<{response_dto}> findBy{_cap(field)}Id(Long {field}Id) {{",
                    f"    return {own_repo}.findBy{_cap(field)}Id({field}Id).stream()",
                    "            .map(this::toResponse)",
                    "            .toList();",
                    "}",
                    "",
                ]
            )
        members.extend(
            [
                f"public {response_dto} create({request_dto} request) {{",
                f'    log.debug("Creating {name}");',
                f"    {name} entity = new {name}();",
                "    applyRequest(request, entity);",
                f"    return toResponse({own_repo}.save(entity));",
                "}",
                "",
                f"public {response_dto} update(Long id, {request_dto} request) {{",
                f'    log.debug("Updating {name} {{}}", id);',
                f"    {name} entity = getEntity(id);",
                "    applyRequest(request, entity);",
                f"    return toResponse({own_repo}.save(entity));",
                "}",
                "",
                "public void delete(Long id) {",
                f"    if (!{own_repo}.existsById(id)) {{",
                f'        throw new EntityNotFoundException("{name}", id);',
                "    }",
                f"    {own_repo}.deleteById(id);",
                "}",
                "",
                f"private {name} getEntity(Long id) {{",
                f"    return {own_repo}.findById(id)",
                f'            .orElseThrow(() -> new EntityNotFoundException("{name}", id));',
                "}",
                "",
            ]
        )
        members.extend(self._apply_request(cls, request_dto))
        members.append("")
        members.extend(self._to_response(cls, response_dto))

        body: List[str] = [
            "@Service",
            "@RequiredArgsConstructor",
            "@Slf4j",
            "@Transactional",
            f"public class {name}Service {{",
            "",
        ]
        body.extend(indent_lines(members))
        body.append("}")
        return self._file("domain.service", imports, body)

    def _lookup(self, class_name: str, owner: str, id_expression: str) -> str:
        repository: str = _repository_var(owner if class_name == owner else class_name)
        return (
            f"{repository}.findById({id_expression})"
            f".orElseThrow(() -> new EntityNotFoundException("
            f'"{class_identifier(class_name)}", {id_expression}))'
        )

    def _apply_request(self, cls: ClassEntity, request_dto: str) -> List[str]:
        name: str = class_identifier(cls.name)
        lines: List[str] = [f"private void applyRequest({request_dto} request, {name} entity) {{"]
        for attribute in self._dto_attributes(cls):
            field: str = java_field_name(attribute.name)
            if self._is_secret(cls, attribute):
                lines.extend(
                    [
                        f"    if (request.{_getter(field)}() != null) {{",
                        f"        entity.{_setter(field)}("
                        f"passwordEncoder.encode(request.{_getter(field)}()));",
                        "    }",
                    ]
                )
            else:
                lines.append(f"    entity.{_setter(field)}(request.{_getter(field)}());")

        parent_fields = self._parent_fields(cls)
        if parent_fields is not None:
            parent, field, id_field, _column = parent_fields
            lookup: str = self._lookup(parent, cls.name, f"request.{_getter(id_field)}()")
            lines.append(f"    entity.{_setter(field)}({lookup});")

        for fk in self.resolved.references_for(cls.name):
            field = java_field_name(fk.base_name)
            id_getter: str = f"request.{_getter(field + 'Id')}()"
            lookup = self._lookup(fk.related_class, cls.name, id_getter)
            if fk.required:
                lines.append(f"    entity.{_setter(field)}({lookup});")
            else:
                lines.extend(
                    [
                        f"    entity.{_setter(field)}({id_getter} == null ? null",
                        f"            : {lookup});",
                    ]
                )
        lines.append("}")
        return lines

    def _to_response(self, cls: ClassEntity, response_dto: str) -> List[str]:
        name: str = class_identifier(cls.name)
        lines: List[str] = [
            f"private {response_dto} toResponse({name} entity) {{",
            f"    {response_dto} response = new {response_dto}();",
            "    response.setId(entity.getId());",
        ]
        for attribute in self._dto_attributes(cls):
            if self._is_secret(cls, attribute):
                continue
            field: str = java_field_name(attribute.name)
            lines.append(f"    response.{_setter(field)}(entity.{_getter(field)}());")

        parent_fields = self._parent_fields(cls)
        if parent_fields is not None:
            _parent, field, id_field, _column = parent_fields
            lines.append(
                f"    response.{_setter(id_field)}(entity.{_getter(field)}() != null "
                f"? entity.{_getter(field)}().getId() : null);"
            )
        for fk in self.resolved.references_for(cls.name):
            field = java_field_name(fk.base_name)
            lines.append(
                f"    response.{_setter(field + 'Id')}(entity.{_getter(field)}() != null "
                f"? entity.{_getter(field)}().getId() : null);"
            )
        for fk in self.resolved.collections_for(cls.name):
            field = java_field_name(fk.field_name)
            related: str = class_identifier(fk.related_class)
            lines.append(
                f"    response.{_setter(field)}(entity.{_getter(field)}().stream()"
                f".map({related}::getId).toList());"
            )
        lines.extend(
            [
                "    response.setCreatedAt(entity.getCreatedAt());",
                "    response.setUpdatedAt(entity.getUpdatedAt());",
                "    return response;",
                "}",
            ]
        )
        return lines

    # -- Controllers -----------------------------------------------------

    def _controller(self, cls: ClassEntity) -> str:
        name: str = class_identifier(cls.name)
        service: str = f"{to_camel_case(name)}Service"
        request_dto: str = f"{name}RequestDTO"
        response_dto: str = f"{name}ResponseDTO"
        imports: List[str] = [
            f"{self._package}.domain.service.{name}Service",
            f"{self._package}.web.dto.{request_dto}",
            f"{self._package}.web.dto.{response_dto}",
            "jakarta.validation.Valid",
            "lombok.RequiredArgsConstructor",
            "org.springframework.http.HttpStatus",
            "org.springframework.http.ResponseEntity",
            "org.springframework.web.bind.annotation.*",
            "java.util.List",
        ]
        members: List[str] = [
            f"private final {name}Service {service};",
            "",
            "@GetMapping",
            f"public ResponseEntity<List<{response_dto}>> findAll() {{",
            f"    return ResponseEntity.ok({service}.findAll());",
            "}",
            "",
            '@GetMapping("/{id}")',
            f"public ResponseEntity<{response_dto}> findById(@PathVariable Long id) {{",
            f"    return ResponseEntity.ok({service}.findById(id));",
            "}",
            "",
        ]
        for fk in self.resolved.references_for(cls.name):
            field: str = java_field_name(fk.base_name)
            members.extend(
                [
                    f'@GetMapping("/{reference_route(fk.base_name)}/{{{field}Id}}")',
                    f"public ResponseEntity<List<{response_dto}>> findBy{_cap(field)}("
                    f"@PathVariable Long {field}Id) {{",
                    f"    return ResponseEntity.ok({service}.findBy{_cap(field)}Id({field}Id));",
                    "}",
                    "",
                ]
            )
        members.extend(
            [
                "@PostMapping",
                f"public ResponseEntity<{response_dto}> create("
                f"@Valid @RequestBody {request_dto} request) {{",
                f"    return ResponseEntity.status(HttpStatus.CREATED).body({service}.create(request));",
                "}",
                "",
                '@PutMapping("/{id}")',
                f"public ResponseEntity<{response_dto}> update(",
                f"        @PathVariable Long id, @Valid @RequestBody {request_dto} request) {{",
                f"    return ResponseEntity.ok({service}.update(id, request));",
                "}",
                "",
                '@DeleteMapping("/{id}")',
                "public ResponseEntity<Void> delete(@PathVariable Long id) {",
                f"    {service}.delete(id);",
                "    return ResponseEntity.noContent().build();",
                "}",
            ]
        )
        body: List[str] = [
            "@RestController",
            f'@RequestMapping("{resource_path(cls.name)}")',
            "@RequiredArgsConstructor",
            '@CrossOrigin(origins = "*")',
            f"public class {name}Controller {{",
            "",
        ]
        body.extend(indent_lines(members))
        body.append("}")
        return self._file("web.controller", imports, body)

    # -- DTOs ------------------------------------------------------------

    def _dto_class(self, type_name: str, imports: Set[str], fields: List[str]) -> str:
        imports.update(("lombok.Data", "lombok.NoArgsConstructor"))
        annotations: List[str] = ["@Data", "@NoArgsConstructor"]
        if fields:
            imports.add("lombok.AllArgsConstructor")
            annotations.append("@AllArgsConstructor")
        body: List[str] = annotations + [f"public class {type_name} {{"]
        if fields:
            body.append("")
            body.extend(indent_lines(fields[:-1] if fields[-1] == "" else fields))
        body.append("}")
        return self._file("web.dto", imports, body)

    def _validation_annotations(self, attribute: AttributeSpec, java_type: str) -> List[str]:
        if attribute.visibility != Visibility.PRIVATE:
            return []
        annotations: List[str] = ["@NotBlank" if java_type == "String" else "@NotNull"]
        lowered: str = attribute.name.lower()
        if java_type == "String" and any(f in lowered for f in _EMAIL_FRAGMENTS):
            annotations.append("@Email")
        return annotations

    def _request_dto(self, cls: ClassEntity) -> str:
        type_name: str = f"{class_identifier(cls.name)}RequestDTO"
        imports: Set[str] = set()
        fields: List[str] = []
        for attribute in self._dto_attributes(cls):
            java_type: str = self.mapper.java(attribute.type_name)
            imports.update(TypeMapper.java_imports_for(java_type))
            annotations: List[str] = self._validation_annotations(attribute, java_type)
            if annotations:
                imports.add("jakarta.validation.constraints.*")
            fields.extend(annotations)
            fields.append(f"private {java_type} {java_field_name(attribute.name)};")
            fields.append("")

        parent_fields = self._parent_fields(cls)
        if parent_fields is not None:
            imports.add("jakarta.validation.constraints.*")
            fields.extend(["@NotNull", f"private Long {parent_fields[2]};", ""])
        for fk in self.resolved.references_for(cls.name):
            if fk.required:
                imports.add("jakarta.validation.constraints.*")
                fields.append("@NotNull")
            fields.append(f"private Long {java_field_name(fk.base_name)}Id;")
            fields.append("")
        return self._dto_class(type_name, imports, fields)

    def _response_dto(self, cls: ClassEntity) -> str:
        type_name: str = f"{class_identifier(cls.name)}ResponseDTO"
        imports: Set[str] = {"java.time.LocalDateTime"}
        fields: List[str] = ["private Long id;", ""]
        for attribute in self._dto_attributes(cls):
            if self._is_secret(cls, attribute):
                continue
            java_type: str = self.mapper.java(attribute.type_name)
            imports.update(TypeMapper.java_imports_for(java_type))
            fields.extend([f"private {java_type} {java_field_name(attribute.name)};", ""])
        parent_fields = self._parent_fields(cls)
        if parent_fields is not None:
            fields.extend([f"private Long {parent_fields[2]};", ""])
        for fk in self.resolved.references_for(cls.name):
            fields.extend([f"private Long {java_field_name(fk.base_name)}Id;", ""])
        for fk in self.resolved.collections_for(cls.name):
            imports.add("java.util.List")
            fields.extend([f"private List<Long> {java_field_name(fk.field_name)};", ""])
        fields.extend(["private LocalDateTime createdAt;", "", "private LocalDateTime updatedAt;"])
        return self._dto_class(type_name, imports, fields)

    # -- Stand-alone classes ---------------------------------------------

    def _default_return(self, java_type: str, imports: Set[str]) -> Optional[str]:
        if java_type == "void":
            return None
        if java_type in _DEFAULT_RETURNS:
            return _DEFAULT_RETURNS[java_type]
        container: str = java_type.split("<", 1)[0].strip()
        if container in _CONTAINER_DEFAULTS:
            expression, qualified = _CONTAINER_DEFAULTS[container]
            imports.add(qualified)
            return expression
        return "null"

    def _method_signature(self, method: MethodSpec, own_package: str, imports: Set[str]) -> Tuple[str, str]:
        return_type: str = (
            "void"
            if method.return_type.strip().lower() == "void"
            else self.mapper.java(method.return_type)
        )
        imports.update(self._type_imports(return_type, own_package))
        params: List[str] = []
        for parameter in method.parameters:
            java_type: str = self.mapper.java(parameter.type_name)
            imports.update(self._type_imports(java_type, own_package))
            params.append(f"{java_type} {java_field_name(parameter.name)}")
        return return_type, f"{_method_name(method.name)}({', '.join(params)})"

    def _standalone(self, cls: ClassEntity, sub_package: str) -> str:
        name: str = class_identifier(cls.name)
        own_package: str = self._package_of(sub_package)
        imports: Set[str] = set()
        members: List[str] = []

        if cls.kind == ClassKind.INTERFACE:
            for attribute in cls.attributes:
                java_type: str = self.mapper.java(attribute.type_name)
                imports.update(self._type_imports(java_type, own_package))
                members.append(f"{java_type} {_getter(java_field_name(attribute.name))}();")
            for method in cls.methods:
                return_type, signature = self._method_signature(method, own_package, imports)
                members.append(f"{return_type} {signature};")
            body: List[str] = [
                "/**",
                f" * {cls.name} contract declared in the diagram.",
                " */",
                f"public interface {name} {{",
            ]
            if members:
                body.append("")
                body.extend(indent_lines(_blank_separated(members)))
            body.append("}")
            return self._file(sub_package, imports, body)

        utility: bool = cls.stereotype == Stereotype.UTILITY
        modifier: str = "static " if utility else ""
        for attribute in cls.attributes:
            java_type = self.mapper.java(attribute.type_name)
            imports.update(self._type_imports(java_type, own_package))
            members.append(f"private {modifier}{java_type} {java_field_name(attribute.name)};")
        if members:
            members.append("")
        if utility:
            members.extend([f"private {name}() {{", "}", ""])
        for method in cls.methods:
            return_type, signature = self._method_signature(method, own_package, imports)
            visibility: str = {
                Visibility.PRIVATE.value: "private ",
                Visibility.PROTECTED.value: "protected ",
                Visibility.PACKAGE.value: "",
            }.get(method.visibility, "public ")
            members.append(f"{visibility}{modifier}{return_type} {signature} {{")
            members.append(f"    // TODO: implement {method.name}")
            default: Optional[str] = self._default_return(return_type, imports)
            if default is not None:
                if default.startswith("BigDecimal"):
                    imports.add("java.math.BigDecimal")
                members.append(f"    return {default};")
            members.extend(["}", ""])
        if members and members[-1] == "":
            members.pop()

        annotations: List[str] = []
        annotation = _STEREOTYPE_ANNOTATIONS.get(cls.stereotype)
        if annotation is not None:
            annotations.append(annotation[0])
            imports.add(annotation[1])
        if cls.stereotype == Stereotype.CONTROLLER:
            annotations.append(f'@RequestMapping("/api/{url_segment(cls.name)}")')
            imports.add("org.springframework.web.bind.annotation.RequestMapping")

        body = [
            "/**",
            f" * {cls.name} ({cls.stereotype}) declared in the diagram.",
            " */",
            *annotations,
            f"public {'final ' if utility else ''}class {name} {{",
        ]
        if members:
            body.append("")
            body.extend(indent_lines(members))
        body.append("}")
        return self._file(sub_package, imports, body)

    # -- Exceptions ------------------------------------------------------

    def _entity_not_found_exception(self) -> str:
        body: List[str] = [
            "public class EntityNotFoundException extends RuntimeException {",
            "",
            "    public EntityNotFoundException(String entity, Long id) {",
            '        super(entity + " not found with id " + id);',
            "    }",
            "",
            "    public EntityNotFoundException(String message) {",
            "        super(message);",
            "    }",
            "}",
        ]
        return self._file("exception", [], body)

    def _global_exception_handler(self) -> str:
        needs_auth: bool = self.context.auth.needs_auth
        imports: List[str] = [
            "org.springframework.http.HttpStatus",
            "org.springframework.http.ResponseEntity",
            "org.springframework.validation.FieldError",
            "org.springframework.web.bind.MethodArgumentNotValidException",
            "org.springframework.web.bind.annotation.ExceptionHandler",
            "org.springframework.web.bind.annotation.RestControllerAdvice",
            "java.time.LocalDateTime",
            "java.util.HashMap",
            "java.util.Map",
        ]
        members: List[str] = [
            "@ExceptionHandler(EntityNotFoundException.class)",
            "public ResponseEntity<Map<String, Object>> handleNotFound(EntityNotFoundException ex) {",
            "    return build(HttpStatus.NOT_FOUND, ex.getMessage(), null);",
            "}",
            "",
            "@ExceptionHandler(MethodArgumentNotValidException.class)",
            "public ResponseEntity<Map<String, Object>> handleValidation(",
            "        MethodArgumentNotValidException ex) {",
            "    Map<String, String> errors = new HashMap<>();",
            "    for (FieldError error : ex.getBindingResult().getFieldErrors()) {",
            "        errors.put(error.getField(), error.getDefaultMessage());",
            "    }",
            '    return build(HttpStatus.BAD_REQUEST, "Validation failed", errors);',
            "}",
            "",
        ]
        if needs_auth:
            members.extend(
                [
                    "@ExceptionHandler(AuthenticationException.class)",
                    "public ResponseEntity<Map<String, Object>> handleAuthentication(",
                    "        AuthenticationException ex) {",
                    "    return build(HttpStatus.UNAUTHORIZED, ex.getMessage(), null);",
                    "}",
                    "",
                ]
            )
        members.extend(
            [
                "@ExceptionHandler(Exception.class)",
                "public ResponseEntity<Map<String, Object>> handleGeneric(Exception ex) {",
                "    return build(HttpStatus.INTERNAL_SERVER_ERROR, ex.getMessage(), null);",
                "}",
                "",
                "private ResponseEntity<Map<String, Object>> build(",
                "        HttpStatus status, String message, Object details) {",
                "    Map<String, Object> body = new HashMap<>();",
                '    body.put("timestamp", LocalDateTime.now());',
                '    body.put("status", status.value());',
                '    body.put("error", status.getReasonPhrase());',
                '    body.put("message", message);',
                "    if (details != null) {",
                '        body.put("details", details);',
                "    }",
                "    return ResponseEntity.status(status).body(body);",
                "}",
            ]
        )
        body: List[str] = ["@RestControllerAdvice", "public class GlobalExceptionHandler {", ""]
        body.extend(indent_lines(members))
        body.append("}")
        return self._file("exception", imports, body)

    # -- Authentication --------------------------------------------------

    def _auth_files(self) -> Dict[str, str]:
        user: ClassEntity = self.context.user_entity  # type: ignore[assignment]
        auth = self.context.auth
        credential: str = java_field_name(auth.credential_field or "")
        secret: str = java_field_name(auth.secret_field or "")
        credential_type: str = self._attribute_java_type(user, auth.credential_field)
        register_attributes: List[AttributeSpec] = self._dto_attributes(user)
        logger.info("Generating JWT authentication for entity %s.", user.name)
        return {
            self._source_path("config", "SecurityConfig"): self._security_config(),
            self._source_path("config", "JwtUtil"): self._jwt_util(),
            self._source_path("auth.filter", "JwtAuthenticationFilter"): self._jwt_filter(),
            self._source_path("auth.service", "UserDetailsServiceImpl"): (
                self._user_details_service(user, credential, secret, credential_type)
            ),
            self._source_path("auth.service", "AuthService"): self._auth_service(
                user, credential, secret, credential_type, register_attributes
            ),
            self._source_path("auth.controller", "AuthController"): self._auth_controller(),
            self._source_path("auth.dto", "LoginRequestDTO"): self._login_request(
                credential, secret, credential_type
            ),
            self._source_path("auth.dto", "RegisterRequestDTO"): self._register_request(
                user, register_attributes
            ),
            self._source_path("auth.dto", "AuthResponseDTO"): self._auth_response(
                credential, credential_type
            ),
            self._source_path("exception", "AuthenticationException"): self._file(
                "exception",
                [],
                [
                    "public class AuthenticationException extends RuntimeException {",
                    "",
                    "    public AuthenticationException(String message) {",
                    "        super(message);",
                    "    }",
                    "}",
                ],
            ),
        }

    def _security_config(self) -> str:
        imports: List[str] = [
            f"{self._package}.auth.filter.JwtAuthenticationFilter",
            "lombok.RequiredArgsConstructor",
            "org.springframework.context.annotation.Bean",
            "org.springframework.context.annotation.Configuration",
            "org.springframework.security.authentication.AuthenticationManager",
            "org.springframework.security.config.annotation.authentication.configuration"
            ".AuthenticationConfiguration",
            "org.springframework.security.config.annotation.web.builders.HttpSecurity",
            "org.springframework.security.config.annotation.web.configuration.EnableWebSecurity",
            "org.springframework.security.config.http.SessionCreationPolicy",
            "org.springframework.security.crypto.bcrypt.BCryptPasswordEncoder",
            "org.springframework.security.crypto.password.PasswordEncoder",
            "org.springframework.security.web.SecurityFilterChain",
            "org.springframework.security.web.authentication.UsernamePasswordAuthenticationFilter",
        ]
        body: List[str] = [
            "@Configuration",
            "@EnableWebSecurity",
            "@RequiredArgsConstructor",
            "public class SecurityConfig {",
            "",
            "    private final JwtAuthenticationFilter jwtAuthenticationFilter;",
            "",
            "    @Bean",
            "    public SecurityFilterChain securityFilterChain(HttpSecurity http) throws Exception {",
            "        http",
            "                .csrf(csrf -> csrf.disable())",
            "                .authorizeHttpRequests(auth -> auth",
            '                        .requestMatchers("/api/auth/**", "/actuator/health").permitAll()',
            "                        .anyRequest().authenticated())",
            "                .sessionManagement(session -> session",
            "                        .sessionCreationPolicy(SessionCreationPolicy.STATELESS))",
            "                .addFilterBefore(jwtAuthenticationFilter,",
            "                        UsernamePasswordAuthenticationFilter.class);",
            "        return http.build();",
            "    }",
            "",
            "    @Bean",
            "    public PasswordEncoder passwordEncoder() {",
            "        return new BCryptPasswordEncoder();",
            "    }",
            "",
            "    @Bean",
            "    public AuthenticationManager authenticationManager(",
            "            AuthenticationConfiguration configuration) throws Exception {",
            "        return configuration.getAuthenticationManager();",
            "    }",
            "}",
        ]
        return self._file("config", imports, body)

    def _jwt_util(self) -> str:
        imports: List[str] = [
            "io.jsonwebtoken.Claims",
            "io.jsonwebtoken.JwtException",
            "io.jsonwebtoken.Jwts",
            "io.jsonwebtoken.SignatureAlgorithm",
            "io.jsonwebtoken.security.Keys",
            "org.springframework.beans.factory.annotation.Value",
            "org.springframework.stereotype.Component",
            "java.nio.charset.StandardCharsets",
            "java.security.Key",
            "java.util.Date",
        ]
        body: List[str] = [
            "@Component",
            "public class JwtUtil {",
            "",
            '    @Value("${jwt.secret}")',
            "    private String secret;",
            "",
            '    @Value("${jwt.expiration}")',
            "    private long expiration;",
            "",
            "    public String generateToken(String subject) {",
            "        Date now = new Date();",
            "        return Jwts.builder()",
            "                .setSubject(subject)",
            "                .setIssuedAt(now)",
            "                .setExpiration(new Date(now.getTime() + expiration))",
            "                .signWith(signingKey(), SignatureAlgorithm.HS256)",
            "                .compact();",
            "    }",
            "",
            "    public String extractSubject(String token) {",
            "        return claims(token).getSubject();",
            "    }",
            "",
            "    public boolean isTokenValid(String token) {",
            "        try {",
            "            return claims(token).getExpiration().after(new Date());",
            "        } catch (JwtException | IllegalArgumentException ex) {",
            "            return false;",
            "        }",
            "    }",
            "",
            "    private Claims claims(String token) {",
            "        return Jwts.parserBuilder()",
            "                .setSigningKey(signingKey())",
            "                .build()",
            "                .parseClaimsJws(token)",
            "                .getBody();",
            "    }",
            "",
            "    private Key signingKey() {",
            "        return Keys.hmacShaKeyFor(secret.getBytes(StandardCharsets.UTF_8));",
            "    }",
            "}",
        ]
        return self._file("config", imports, body)

    def _jwt_filter(self) -> str:
        imports: List[str] = [
            f"{self._package}.config.JwtUtil",
            "jakarta.servlet.FilterChain",
            "jakarta.servlet.ServletException",
            "jakarta.servlet.http.HttpServletRequest",
            "jakarta.servlet.http.HttpServletResponse",
            "lombok.RequiredArgsConstructor",
            "org.springframework.security.authentication.UsernamePasswordAuthenticationToken",
            "org.springframework.security.core.context.SecurityContextHolder",
            "org.springframework.security.core.userdetails.UserDetails",
            "org.springframework.security.core.userdetails.UserDetailsService",
            "org.springframework.security.web.authentication.WebAuthenticationDetailsSource",
            "org.springframework.stereotype.Component",
            "org.springframework.web.filter.OncePerRequestFilter",
            "java.io.IOException",
        ]
        body: List[str] = [
            "@Component",
            "@RequiredArgsConstructor",
            "public class JwtAuthenticationFilter extends OncePerRequestFilter {",
            "",
            "    private final JwtUtil jwtUtil;",
            "    private final UserDetailsService userDetailsService;",
            "",
            "    @Override",
            "    protected void doFilterInternal(HttpServletRequest request,",
            "                                    HttpServletResponse response,",
            "                                    FilterChain filterChain)",
            "            throws ServletException, IOException {",
            '        String header = request.getHeader("Authorization");',
            '        if (header == null || !header.startsWith("Bearer ")) {',
            "            filterChain.doFilter(request, response);",
            "            return;",
            "        }",
            "        String token = header.substring(7);",
            "        if (jwtUtil.isTokenValid(token)",
            "                && SecurityContextHolder.getContext().getAuthentication() == null) {",
            "            String subject = jwtUtil.extractSubject(token);",
            "            UserDetails userDetails = userDetailsService.loadUserByUsername(subject);",
            "            UsernamePasswordAuthenticationToken authentication =",
            "                    new UsernamePasswordAuthenticationToken(",
            "                            userDetails, null, userDetails.getAuthorities());",
            "            authentication.setDetails(",
            "                    new WebAuthenticationDetailsSource().buildDetails(request));",
            "            SecurityContextHolder.getContext().setAuthentication(authentication);",
            "        }",
            "        filterChain.doFilter(request, response);",
            "    }",
            "}",
        ]
        return self._file("auth.filter", imports, body)

    def _user_details_service(
        self, user: ClassEntity, credential: str, secret: str, credential_type: str
    ) -> str:
        name: str = class_identifier(user.name)
        repository: str = _repository_var(user.name)
        imports: List[str] = [
            self._model(user.name),
            f"{self._package}.domain.repository.{name}Repository",
            "lombok.RequiredArgsConstructor",
            "org.springframework.security.core.userdetails.User",
            "org.springframework.security.core.userdetails.UserDetails",
            "org.springframework.security.core.userdetails.UserDetailsService",
            "org.springframework.security.core.userdetails.UsernameNotFoundException",
            "org.springframework.stereotype.Service",
        ]
        lookup_argument: str = "username" if credential_type == "String" else (
            f"{credential_type}.valueOf(username)"
        )
        body: List[str] = [
            "@Service",
            "@RequiredArgsConstructor",
            "public class UserDetailsServiceImpl implements UserDetailsService {",
            "",
            f"    private final {name}Repository {repository};",
            "",
            "    @Override",
            "    public UserDetails loadUserByUsername(String username) throws UsernameNotFoundException {",
            f"        {name} user = {repository}.findBy{_cap(credential)}({lookup_argument})",
            "                .orElseThrow(() -> new UsernameNotFoundException(",
            f'                        "{name} not found: " + username));',
            "        return User.withUsername(String.valueOf(user." + _getter(credential) + "()))",
            f"                .password(user.{_getter(secret)}())",
            '                .authorities("ROLE_USER")',
            "                .build();",
            "    }",
            "}",
        ]
        return self._file("auth.service", imports, body)

    def _auth_service(
        self,
        user: ClassEntity,
        credential: str,
        secret: str,
        credential_type: str,
        register_attributes: List[AttributeSpec],
    ) -> str:
        name: str = class_identifier(user.name)
        repository: str = _repository_var(user.name)
        imports: List[str] = [
            self._model(user.name),
            f"{self._package}.domain.repository.{name}Repository",
            f"{self._package}.auth.dto.AuthResponseDTO",
            f"{self._package}.auth.dto.LoginRequestDTO",
            f"{self._package}.auth.dto.RegisterRequestDTO",
            f"{self._package}.config.JwtUtil",
            f"{self._package}.exception.AuthenticationException",
            "lombok.RequiredArgsConstructor",
            "org.springframework.security.authentication.AuthenticationManager",
            "org.springframework.security.authentication.UsernamePasswordAuthenticationToken",
            "org.springframework.security.crypto.password.PasswordEncoder",
            "org.springframework.stereotype.Service",
            "org.springframework.transaction.annotation.Transactional",
        ]
        setters: List[str] = []
        for attribute in register_attributes:
            field: str = java_field_name(attribute.name)
            if field == secret:
                setters.append(
                    f"        user.{_setter(field)}(passwordEncoder.encode(request.{_getter(field)}()));"
                )
            else:
                setters.append(f"        user.{_setter(field)}(request.{_getter(field)}());")
        body: List[str] = [
            "@Service",
            "@RequiredArgsConstructor",
            "public class AuthService {",
            "",
            f"    private final {name}Repository {repository};",
            "    private final PasswordEncoder passwordEncoder;",
            "    private final AuthenticationManager authenticationManager;",
            "    private final JwtUtil jwtUtil;",
            "",
            "    public AuthResponseDTO login(LoginRequestDTO request) {",
            "        try {",
            "            authenticationManager.authenticate(new UsernamePasswordAuthenticationToken(",
            f"                    String.valueOf(request.{_getter(credential)}()), request.{_getter(secret)}()));",
            "        } catch (org.springframework.security.core.AuthenticationException ex) {",
            '            throw new AuthenticationException("Invalid credentials");',
            "        }",
            f"        String token = jwtUtil.generateToken(String.valueOf(request.{_getter(credential)}()));",
            f'        return new AuthResponseDTO(token, "Bearer", request.{_getter(credential)}(), "Login successful");',
            "    }",
            "",
            "    @Transactional",
            "    public AuthResponseDTO register(RegisterRequestDTO request) {",
            f"        if ({repository}.existsBy{_cap(credential)}(request.{_getter(credential)}())) {{",
            f'            throw new AuthenticationException("{_cap(credential)} already registered");',
            "        }",
            f"        {name} user = new {name}();",
            *setters,
            f"        {repository}.save(user);",
            f"        String token = jwtUtil.generateToken(String.valueOf(user.{_getter(credential)}()));",
            f'        return new AuthResponseDTO(token, "Bearer", user.{_getter(credential)}(), "Registration successful");',
            "    }",
            "",
            "    public boolean validate(String token) {",
            "        return jwtUtil.isTokenValid(token);",
            "    }",
            "}",
        ]
        return self._file("auth.service", imports, body)

    def _auth_controller(self) -> str:
        imports: List[str] = [
            f"{self._package}.auth.dto.AuthResponseDTO",
            f"{self._package}.auth.dto.LoginRequestDTO",
            f"{self._package}.auth.dto.RegisterRequestDTO",
            f"{self._package}.auth.service.AuthService",
            "jakarta.validation.Valid",
            "lombok.RequiredArgsConstructor",
            "org.springframework.http.HttpStatus",
            "org.springframework.http.ResponseEntity",
            "org.springframework.web.bind.annotation.*",
            "java.util.Map",
        ]
        body: List[str] = [
            "@RestController",
            '@RequestMapping("/api/auth")',
            "@RequiredArgsConstructor",
            '@CrossOrigin(origins = "*")',
            "public class AuthController {",
            "",
            "    private final AuthService authService;",
            "",
            '    @PostMapping("/login")',
            "    public ResponseEntity<AuthResponseDTO> login(@Valid @RequestBody LoginRequestDTO request) {",
            "        return ResponseEntity.ok(authService.login(request));",
            "    }",
            "",
            '    @PostMapping("/register")',
            "    public ResponseEntity<AuthResponseDTO> register(",
            "            @Valid @RequestBody RegisterRequestDTO request) {",
            "        return ResponseEntity.status(HttpStatus.CREATED).body(authService.register(request));",
            "    }",
            "",
            '    @GetMapping("/validate")',
            "    public ResponseEntity<Map<String, Boolean>> validate(",
            '            @RequestHeader("Authorization") String header) {',
            '        String token = header.startsWith("Bearer ") ? header.substring(7) : header;',
            '        return ResponseEntity.ok(Map.of("valid", authService.validate(token)));',
            "    }",
            "}",
        ]
        return self._file("auth.controller", imports, body)

    def _login_request(self, credential: str, secret: str, credential_type: str) -> str:
        credential_annotations: List[str] = (
            ["@NotBlank"] if credential_type == "String" else ["@NotNull"]
        )
        fields: List[str] = [
            *credential_annotations,
            f"private {credential_type} {credential};",
            "",
            "@NotBlank",
            f"private String {secret};",
        ]
        imports: Set[str] = {"jakarta.validation.constraints.*"}
        imports.update(TypeMapper.java_imports_for(credential_type))
        return self._auth_dto("LoginRequestDTO", imports, fields)

    def _register_request(self, user: ClassEntity, attributes: List[AttributeSpec]) -> str:
        imports: Set[str] = set()
        fields: List[str] = []
        for attribute in attributes:
            java_type: str = self.mapper.java(attribute.type_name)
            imports.update(TypeMapper.java_imports_for(java_type))
            annotations: List[str] = self._validation_annotations(attribute, java_type)
            if self._is_secret(user, attribute) and not annotations:
                annotations = ["@NotBlank"]
            if annotations:
                imports.add("jakarta.validation.constraints.*")
            fields.extend(annotations)
            fields.append(f"private {java_type} {java_field_name(attribute.name)};")
            fields.append("")
        return self._auth_dto("RegisterRequestDTO", imports, fields[:-1])

    def _auth_response(self, credential: str, credential_type: str) -> str:
        imports: Set[str] = set(TypeMapper.java_imports_for(credential_type))
        fields: List[str] = [
            "private String token;",
            "private String type;",
            f"private {credential_type} {credential};",
            "private String message;",
        ]
        return self._auth_dto("AuthResponseDTO", imports, fields)

    def _auth_dto(self, type_name: str, imports: Set[str], fields: List[str]) -> str:
        imports.update(("lombok.AllArgsConstructor", "lombok.Data", "lombok.NoArgsConstructor"))
        body: List[str] = [
            "@Data",
            "@NoArgsConstructor",
            "@AllArgsConstructor",
            f"public class {type_name} {{",
            "",
        ]
        body.extend(indent_lines(fields))
        body.append("}")
        return self._file("auth.dto", imports, body)

    # -- Project files ---------------------------------------------------

    def _main_class(self, application: str) -> str:
        imports: List[str] = [
            "org.springframework.boot.SpringApplication",
            "org.springframework.boot.autoconfigure.SpringBootApplication",
        ]
        body: List[str] = [
            "@SpringBootApplication",
            f"public class {application} {{",
            "",
            "    public static void main(String[] args) {",
            f"        SpringApplication.run({application}.class, args);",
            "    }",
            "}",
        ]
        return self._file("", imports, body)

    def _pom(self) -> str:
        config = self.config
        dependencies: List[Tuple[str, str, Optional[str], Optional[str]]] = [
            ("org.springframework.boot", "spring-boot-starter-web", None, None),
            ("org.springframework.boot", "spring-boot-starter-data-jpa", None, None),
            ("org.springframework.boot", "spring-boot-starter-validation", None, None),
            ("org.springframework.boot", "spring-boot-starter-actuator", None, None),
        ]
        if self.context.auth.needs_auth:
            dependencies.extend(
                [
                    ("org.springframework.boot", "spring-boot-starter-security", None, None),
                    ("io.jsonwebtoken", "jjwt-api", JJWT_VERSION, None),
                    ("io.jsonwebtoken", "jjwt-impl", JJWT_VERSION, "runtime"),
                    ("io.jsonwebtoken", "jjwt-jackson", JJWT_VERSION, "runtime"),
                ]
            )
        dependencies.extend(
            [
                ("com.mysql", "mysql-connector-j", None, "runtime"),
                ("com.h2database", "h2", None, "runtime"),
                ("org.projectlombok", "lombok", None, None),
                ("org.springframework.boot", "spring-boot-starter-test", None, "test"),
            ]
        )
        lines: List[str] = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<project xmlns="http://maven.apache.org/POM/4.0.0"',
            '         xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"',
            '         xsi:schemaLocation="http://maven.apache.org/POM/4.0.0 '
            'https://maven.apache.org/xsd/maven-4.0.0.xsd">',
            "    <modelVersion>4.0.0</modelVersion>",
            "",
            "    <parent>",
            "        <groupId>org.springframework.boot</groupId>",
            "        <artifactId>spring-boot-starter-parent</artifactId>",
            f"        <version>{config.spring_boot_version}</version>",
            "        <relativePath/>",
            "    </parent>",
            "",
            f"    <groupId>{config.resolved_group_id}</groupId>",
            f"    <artifactId>{config.artifact_id}</artifactId>",
            f"    <version>{config.project_version}</version>",
            f"    <name>{_xml_text(config.project_name)}</name>",
            f"    <description>{_xml_text(config.description)}</description>",
            "",
            "    <properties>",
            f"        <java.version>{config.java_version}</java.version>",
            "    </properties>",
            "",
            "    <dependencies>",
        ]
        for group, artifact, version, scope in dependencies:
            lines.append("        <dependency>")
            lines.append(f"            <groupId>{group}</groupId>")
            lines.append(f"            <artifactId>{artifact}</artifactId>")
            if version:
                lines.append(f"            <version>{version}</version>")
            if scope:
                lines.append(f"            <scope>{scope}</scope>")
            if artifact == "lombok":
                lines.append("            <optional>true</optional>")
            lines.append("        </dependency>")
        lines.extend(
            [
                "    </dependencies>",
                "",
                "    <build>",
                "        <plugins>",
                "            <plugin>",
                "                <groupId>org.springframework.boot</groupId>",
                "                <artifactId>spring-boot-maven-plugin</artifactId>",
                "                <configuration>",
                "                    <excludes>",
                "                        <exclude>",
                "                            <groupId>org.projectlombok</groupId>",
                "                            <artifactId>lombok</artifactId>",
                "                        </exclude>",
                "                    </excludes>",
                "                </configuration>",
                "            </plugin>",
                "        </plugins>",
                "    </build>",
                "</project>",
                "",
            ]
        )
        return "\n".join(lines)

    def _application_properties(self) -> str:
        config = self.config
        database: str = config.resolved_database_name
        lines: List[str] = [
            f"spring.application.name={config.artifact_id}",
            f"server.port={config.server_port}",
            "spring.profiles.active=dev",
            "",
            f"spring.datasource.url=jdbc:mysql://localhost:3306/{database}"
            "?createDatabaseIfNotExist=true&useSSL=false&serverTimezone=UTC",
            f"spring.datasource.username={config.database_user}",
            f"spring.datasource.password={config.database_password}",
            "spring.datasource.driver-class-name=com.mysql.cj.jdbc.Driver",
            "",
            "spring.jpa.hibernate.ddl-auto=update",
            "spring.jpa.open-in-view=false",
            "spring.jpa.properties.hibernate.format_sql=true",
        ]
        if self.context.auth.needs_auth:
            lines.extend(
                [
                    "",
                    "jwt.secret=${JWT_SECRET:change-me-to-a-256-bit-secret-key-for-hs256-signing}",
                    f"jwt.expiration={config.jwt_expiration_ms}",
                ]
            )
        lines.append("")
        return "\n".join(lines)

    def _dev_properties(self) -> str:
        database: str = self.config.resolved_database_name
        return "\n".join(
            [
                f"spring.datasource.url=jdbc:h2:mem:{database};MODE=MySQL;DB_CLOSE_DELAY=-1",
                "spring.datasource.username=sa",
                "spring.datasource.password=",
                "spring.datasource.driver-class-name=org.h2.Driver",
                "spring.jpa.hibernate.ddl-auto=create-drop",
                "spring.jpa.show-sql=true",
                "spring.h2.console.enabled=true",
                "logging.level.root=INFO",
                f"logging.level.{self._package}=DEBUG",
                "",
            ]
        )

    def _prod_properties(self) -> str:
        database: str = self.config.resolved_database_name
        return "\n".join(
            [
                f"spring.datasource.url=${{DB_URL:jdbc:mysql://localhost:3306/{database}}}",
                f"spring.datasource.username=${{DB_USERNAME:{self.config.database_user}}}",
                "spring.datasource.password=${DB_PASSWORD:}",
                "spring.jpa.hibernate.ddl-auto=validate",
                "spring.jpa.show-sql=false",
                "logging.level.root=WARN",
                f"logging.level.{self._package}=INFO",
                "",
            ]
        )

    def _readme(self) -> str:
        config = self.config
        lines: List[str] = [
            f"# {config.project_name}",
            "",
            config.description,
            "",
            f"Spring Boot {config.spring_boot_version} / Java {config.java_version} backend "
            f"generated from the UML diagram \"{self.ir.title}\".",
            "",
            "## Run",
            "",
            "```bash",
            "mvn spring-boot:run",
            "```",
            "",
            "The `dev` profile uses an in-memory H2 database; "
            "`--spring.profiles.active=prod` switches to MySQL.",
            "",
            "## Endpoints",
            "",
        ]
        for cls in self.context.entities:
            path: str = resource_path(cls.name)
            lines.append(f"- `{path}`: CRUD for {cls.name}")
        if self.context.auth.needs_auth:
            lines.extend(
                [
                    "",
                    "## Authentication",
                    "",
                    "- `POST /api/auth/register`",
                    "- `POST /api/auth/login` returns a JWT; send it as "
                    "`Authorization: Bearer <token>`.",
                    "- `GET /api/auth/validate`",
                ]
            )
        if self.resolved.joins:
            lines.extend(["", "## Many-to-many links", ""])
            for join in self.resolved.joins:
                lines.append(
                    f"- `{join.name}` links {join.left_class} and {join.right_class} "
                    f"(entity `{self._join_names[join.name]}`)."
                )
        lines.append("")
        return "\n".join(lines)

    @staticmethod
    def _gitignore() -> str:
        return "\n".join(
            [
                "target/",
                "!.mvn/wrapper/maven-wrapper.jar",
                "*.iml",
                ".idea/",
                ".vscode/",
                ".DS_Store",
                "*.log",
                "",
            ]
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _tokens(java_type: str) -> Set[str]:
    cleaned: str = "".join(ch if ch.isalnum() or ch == "_" else " " for ch in java_type)
    return set(cleaned.split())


def _blank_separated(members: List[str]) -> List[str]:
    result: List[str] = []
    for member in members:
        if result:
            result.append("")
        result.append(member)
    return result


def _xml_text(value: str) -> str:
    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


__all__: List[str] = ["JAVA_SOURCE_ROOT", "RESOURCES_ROOT", "BackendGenerator"]
