# File: umlforge/models.py
"""
NexaFlow UMLForge - Core Data Models
=====================================
Pydantic V2 models representing UML class-diagram elements, the derived
relationship-ownership facts and the translation configuration. These
models form the single source of truth for the entire pipeline:
Snapshot Extraction → Validation → Resolution → Generation → Export.

IR models are frozen: a ``DiagramIR`` instance is a value snapshot and
every generator in one pass reads the very same object.
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import cached_property
from typing import Any, Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Visibility(str, Enum):
    """UML member visibility."""

    PUBLIC = "public"
    PRIVATE = "private"
    PROTECTED = "protected"
    PACKAGE = "package"

    @property
    def symbol(self) -> str:
        return VISIBILITY_SYMBOLS[self.value]


VISIBILITY_SYMBOLS: Dict[str, str] = {
    "public": "+",
    "private": "-",
    "protected": "#",
    "package": "~",
}

SYMBOL_VISIBILITIES: Dict[str, str] = {v: k for k, v in VISIBILITY_SYMBOLS.items()}


class Stereotype(str, Enum):
    """Class stereotypes steering which generator template applies."""

    ENTITY = "entity"
    SERVICE = "service"
    REPOSITORY = "repository"
    CONTROLLER = "controller"
    UTILITY = "utility"


class ClassKind(str, Enum):
    """Diagram element kinds that are read as classes."""

    CLASS = "class"
    INTERFACE = "interface"


class RelationshipKind(str, Enum):
    """UML relationship kinds."""

    ASSOCIATION = "association"
    COMPOSITION = "composition"
    AGGREGATION = "aggregation"
    INHERITANCE = "inheritance"


class Cardinality(str, Enum):
    """Binary reduction of a UML multiplicity."""

    ONE = "one"
    MANY = "many"


class TargetKind(str, Enum):
    """Artifact targets the translator can produce."""

    SCHEMA = "schema"
    BACKEND = "backend"
    MOBILE = "mobile"
    API_COLLECTION = "api-collection"
    INTERCHANGE = "interchange"
    XMI = "xmi"


# ---------------------------------------------------------------------------
# Mixin: shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
)

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    frozen=True,
    validate_default=True,
    extra="forbid",
)


_ONE_WORDS: frozenset = frozenset({"one", "uno"})
_MANY_WORDS: frozenset = frozenset({"many", "muchos"})


def is_many(multiplicity: Optional[str]) -> bool:
    """
    Reduce a UML multiplicity string to the binary *is-many* flag.

    Any multiplicity containing ``*`` or ``..`` (or the letters ``n`` /
    ``m`` used as an unbounded upper value) is many. ``0..1`` is therefore
    many as well. The words ``one``/``uno`` and ``many``/``muchos`` are
    read as ``1`` and ``*``; the text itself is never rewritten.
    """
    if not multiplicity:
        return False
    text: str = multiplicity.strip()
    lowered: str = text.lower()
    if lowered in _ONE_WORDS:
        return False
    if lowered in _MANY_WORDS:
        return True
    if "*" in text or ".." in text:
        return True
    return any(ch in text for ch in "nNmM")


# ---------------------------------------------------------------------------
# Class members
# ---------------------------------------------------------------------------


class AttributeSpec(BaseModel):
    """A single parsed UML attribute (``- email: String``)."""

    model_config = _FROZEN_CONFIG

    visibility: Visibility = Field(
        default=Visibility.PRIVATE, description="Member visibility."
    )
    name: str = Field(..., min_length=1, description="Attribute name.")
    type_name: str = Field(
        default="String", alias="type", description="UML type name."
    )

    def as_uml(self) -> str:
        """Render the attribute back into ``<symbol> name: type`` form."""
        return f"{VISIBILITY_SYMBOLS[self.visibility]} {self.name}: {self.type_name}"

    def __repr__(self) -> str:
        return f"<Attribute {self.as_uml()}>"


class MethodSpec(BaseModel):
    """A single parsed UML operation (``+ calcular(x: int): double``)."""

    model_config = _FROZEN_CONFIG

    visibility: Visibility = Field(
        default=Visibility.PUBLIC, description="Member visibility."
    )
    name: str = Field(..., min_length=1, description="Method name.")
    parameters: Tuple[AttributeSpec, ...] = Field(
        default_factory=tuple, description="Parsed parameters."
    )
    return_type: str = Field(
        default="void", alias="returnType", description="Return type name."
    )

    def as_uml(self) -> str:
        params: str = ", ".join(f"{p.name}: {p.type_name}" for p in self.parameters)
        return (
            f"{VISIBILITY_SYMBOLS[self.visibility]} {self.name}({params}): "
            f"{self.return_type}"
        )

    def __repr__(self) -> str:
        return f"<Method {self.as_uml()}>"


class Position(BaseModel):
    """Layout hint carried through interchange formats."""

    model_config = _FROZEN_CONFIG

    x: float = Field(default=0.0, description="Horizontal position.")
    y: float = Field(default=0.0, description="Vertical position.")


# ---------------------------------------------------------------------------
# Classes & relationships (the IR)
# ---------------------------------------------------------------------------


class ClassEntity(BaseModel):
    """
    One UML class of the diagram.

    ``name`` is unique within a diagram and is the PascalCase source of
    truth every generator derives its identifiers from.
    """

    model_config = _FROZEN_CONFIG

    id: str = Field(..., min_length=1, description="Element id in the snapshot.")
    name: str = Field(..., min_length=1, description="Class name.")
    kind: ClassKind = Field(default=ClassKind.CLASS, description="class | interface.")
    stereotype: Stereotype = Field(
        default=Stereotype.ENTITY, description="Generator template selector."
    )
    attributes: Tuple[AttributeSpec, ...] = Field(default_factory=tuple)
    methods: Tuple[MethodSpec, ...] = Field(default_factory=tuple)
    position: Position = Field(default_factory=Position)

    @computed_field  # type: ignore[misc]
    @property
    def is_persistable(self) -> bool:
        """True for entity classes, the only ones that own tables and keys."""
        return self.kind == ClassKind.CLASS and self.stereotype == Stereotype.ENTITY

    @computed_field  # type: ignore[misc]
    @property
    def attribute_names(self) -> Tuple[str, ...]:
        return tuple(a.name for a in self.attributes)

    def __repr__(self) -> str:
        return (
            f"<ClassEntity {self.name} ({self.stereotype}) "
            f"{len(self.attributes)} attrs, {len(self.methods)} methods>"
        )


class Relationship(BaseModel):
    """A typed relationship between two classes, by class name."""

    model_config = _FROZEN_CONFIG

    id: str = Field(..., min_length=1, description="Link id in the snapshot.")
    kind: RelationshipKind = Field(default=RelationshipKind.ASSOCIATION)
    source: str = Field(..., min_length=1, description="Source class name.")
    target: str = Field(..., min_length=1, description="Target class name.")
    source_multiplicity: str = Field(default="1", alias="sourceMultiplicity")
    target_multiplicity: str = Field(default="1", alias="targetMultiplicity")
    label: Optional[str] = Field(default=None, description="Optional role name.")

    @computed_field  # type: ignore[misc]
    @property
    def source_many(self) -> bool:
        return is_many(self.source_multiplicity)

    @computed_field  # type: ignore[misc]
    @property
    def target_many(self) -> bool:
        return is_many(self.target_multiplicity)

    def __repr__(self) -> str:
        return (
            f"<Relationship {self.source} [{self.source_multiplicity}] "
            f"-{self.kind}-> {self.target} [{self.target_multiplicity}]>"
        )


class DiagramIR(BaseModel):
    """
    Normalised, format-agnostic snapshot of a class diagram.

    Produced by the extractor, consumed read-only by the resolver, the
    validators and every generator.
    """

    model_config = _FROZEN_CONFIG

    title: str = Field(default="Diagrama UML", description="Diagram title.")
    classes: Tuple[ClassEntity, ...] = Field(default_factory=tuple)
    relationships: Tuple[Relationship, ...] = Field(default_factory=tuple)

    @cached_property
    def class_index(self) -> Dict[str, ClassEntity]:
        return {c.name: c for c in self.classes}

    def get_class(self, name: str) -> Optional[ClassEntity]:
        """O(1) class lookup by name."""
        return self.class_index.get(name)

    @computed_field  # type: ignore[misc]
    @property
    def class_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.classes)

    @property
    def entities(self) -> Tuple[ClassEntity, ...]:
        """Persistable classes in IR order."""
        return tuple(c for c in self.classes if c.is_persistable)

    def __repr__(self) -> str:
        return (
            f"<DiagramIR '{self.title}' {len(self.classes)} classes, "
            f"{len(self.relationships)} relationships>"
        )


# ---------------------------------------------------------------------------
# Resolved relationship facts
# ---------------------------------------------------------------------------


class ResolvedForeignKey(BaseModel):
    """
    A derived ownership decision: *owning_class* holds a reference to, or a
    collection of, *related_class*.

    ``collection=False`` is an owned reference (``field_name`` is the base
    name plus ``Id``); ``collection=True`` is an owned collection
    (``field_name`` is the plural base name).
    """

    model_config = _FROZEN_CONFIG

    owning_class: str = Field(..., alias="owningClass")
    related_class: str = Field(..., alias="relatedClass")
    relationship_index: int = Field(..., ge=0, alias="relationshipIndex")
    kind: RelationshipKind = Field(...)
    base_name: str = Field(..., min_length=1, alias="baseName")
    field_name: str = Field(..., min_length=1, alias="fieldName")
    required: bool = Field(default=False)
    multiplicity: Cardinality = Field(default=Cardinality.ONE)
    collection: bool = Field(default=False, alias="collectionFlag")
    one_to_one: bool = Field(default=False, alias="oneToOne")
    cascade_delete: bool = Field(default=False, alias="cascadeDelete")
    mapped_by: Optional[str] = Field(
        default=None,
        alias="mappedBy",
        description="Base name of the inverse reference (collections only).",
    )

    @computed_field  # type: ignore[misc]
    @property
    def column_name(self) -> str:
        """snake_case column for a reference (``usuarioId`` → ``usuario_id``)."""
        from umlforge.naming import to_snake_case

        return to_snake_case(self.field_name)

    def __repr__(self) -> str:
        arrow: str = "*" if self.collection else "->"
        return f"<FK {self.owning_class}.{self.field_name} {arrow} {self.related_class}>"


class JoinConstruct(BaseModel):
    """Synthetic linking table standing in for a many-to-many association."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Linking table name.")
    left_class: str = Field(..., alias="leftClass")
    right_class: str = Field(..., alias="rightClass")
    left_column: str = Field(..., alias="leftColumn")
    right_column: str = Field(..., alias="rightColumn")
    relationship_index: int = Field(..., ge=0, alias="relationshipIndex")
    label: Optional[str] = Field(default=None)

    def __repr__(self) -> str:
        return f"<Join {self.name} ({self.left_class} <-> {self.right_class})>"


class GeneralizationEdge(BaseModel):
    """``child`` IS-A ``parent``."""

    model_config = _FROZEN_CONFIG

    child: str = Field(..., min_length=1)
    parent: str = Field(..., min_length=1)
    relationship_index: int = Field(..., ge=0, alias="relationshipIndex")


class ResolvedRelationshipSet(BaseModel):
    """Every ownership decision derived from one ``DiagramIR``."""

    model_config = _FROZEN_CONFIG

    foreign_keys: Tuple[ResolvedForeignKey, ...] = Field(default_factory=tuple)
    joins: Tuple[JoinConstruct, ...] = Field(default_factory=tuple)
    generalizations: Tuple[GeneralizationEdge, ...] = Field(default_factory=tuple)
    warnings: Tuple[str, ...] = Field(default_factory=tuple)

    def references_for(self, class_name: str) -> List[ResolvedForeignKey]:
        """Owned references of *class_name*, in relationship order."""
        return [
            fk
            for fk in self.foreign_keys
            if fk.owning_class == class_name and not fk.collection
        ]

    def collections_for(self, class_name: str) -> List[ResolvedForeignKey]:
        """Owned collections of *class_name*, in relationship order."""
        return [
            fk for fk in self.foreign_keys if fk.owning_class == class_name and fk.collection
        ]

    def parent_of(self, class_name: str) -> Optional[str]:
        for edge in self.generalizations:
            if edge.child == class_name:
                return edge.parent
        return None

    def children_of(self, class_name: str) -> List[str]:
        return [e.child for e in self.generalizations if e.parent == class_name]

    def joins_for(self, class_name: str) -> List[JoinConstruct]:
        return [
            j for j in self.joins if class_name in (j.left_class, j.right_class)
        ]

    def __repr__(self) -> str:
        return (
            f"<ResolvedRelationshipSet {len(self.foreign_keys)} fields, "
            f"{len(self.joins)} joins, {len(self.generalizations)} generalizations>"
        )


class AuthDetection(BaseModel):
    """Outcome of the authentication-entity heuristic."""

    model_config = _FROZEN_CONFIG

    needs_auth: bool = Field(default=False, alias="needsAuth")
    user_entity: Optional[str] = Field(default=None, alias="userEntity")
    credential_field: Optional[str] = Field(default=None, alias="credentialField")
    secret_field: Optional[str] = Field(default=None, alias="secretField")

    @model_validator(mode="after")
    def _fields_present_when_needed(self) -> "AuthDetection":
        if self.needs_auth and not (
            self.user_entity and self.credential_field and self.secret_field
        ):
            raise ValueError(
                "needs_auth requires user_entity, credential_field and secret_field."
            )
        return self


# ---------------------------------------------------------------------------
# Translation configuration
# ---------------------------------------------------------------------------


class TranslationConfig(BaseModel):
    """
    Top-level configuration for a translation run.

    Naming fields are usually derived from the diagram title through
    :meth:`from_title`; every field can be overridden from a diagram file's
    ``config`` mapping or from the CLI.
    """

    model_config = _SHARED_CONFIG

    project_name: str = Field(
        default="DiagramaUML", min_length=1, description="Sanitised project name."
    )
    artifact_id: str = Field(
        default="diagramauml", min_length=1, description="Maven artifactId."
    )
    package_name: str = Field(
        default="com.diagramauml", min_length=1, description="Root Java package."
    )
    group_id: Optional[str] = Field(
        default=None, description="Maven groupId (defaults to the package name)."
    )
    project_version: str = Field(default="1.0.0", description="Generated project version.")
    description: str = Field(
        default="Proyecto generado desde diagrama UML",
        description="Free-text description placed in generated manifests.",
    )

    # HTTP
    base_url: str = Field(
        default="http://localhost:8080", description="Backend base URL."
    )
    mobile_api_host: str = Field(
        default="10.0.2.2:8080",
        description="Host:port the Android emulator uses to reach the backend.",
    )
    server_port: int = Field(default=8080, ge=1, le=65535)

    # Database
    database_name: Optional[str] = Field(
        default=None, description="Database name (defaults to artifact id)."
    )
    database_user: str = Field(default="root")
    database_password: str = Field(default="")

    # Backend toolchain
    java_version: str = Field(default="17")
    spring_boot_version: str = Field(default="3.2.0")
    jwt_expiration_ms: int = Field(default=86_400_000, ge=1)

    # Schema options
    include_sample_data: bool = Field(
        default=True, description="Emit commented INSERT examples."
    )
    include_views: bool = Field(
        default=True, description="Emit one view per inheritance edge."
    )
    indexed_column_fragments: Tuple[str, ...] = Field(
        default=("email", "codigo", "numero_est", "codigo_emp"),
        description="Columns containing one of these fragments get an index.",
    )

    # Vision import
    vision_endpoint: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
        description="OpenAI-compatible chat completions endpoint.",
    )
    vision_model: str = Field(
        default="meta-llama/llama-4-scout-17b-16e-instruct",
        description="Vision-capable model name.",
    )
    vision_timeout_seconds: float = Field(default=60.0, gt=0)

    @field_validator("package_name")
    @classmethod
    def _validate_package_name(cls, v: str) -> str:
        parts: List[str] = v.split(".")
        for part in parts:
            if not part or not (part[0].isalpha() or part[0] == "_") or not all(
                ch.isalnum() or ch == "_" for ch in part
            ):
                raise ValueError(
                    f"Invalid Java package name '{v}'. "
                    "Use dot-separated identifiers, e.g. 'com.tienda'."
                )
        return v

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @computed_field  # type: ignore[misc]
    @property
    def resolved_group_id(self) -> str:
        return self.group_id or self.package_name

    @computed_field  # type: ignore[misc]
    @property
    def resolved_database_name(self) -> str:
        from umlforge.naming import to_snake_case

        return self.database_name or to_snake_case(self.artifact_id) or "uml_db"

    @computed_field  # type: ignore[misc]
    @property
    def package_path(self) -> str:
        return self.package_name.replace(".", "/")

    @classmethod
    def from_title(cls, title: Optional[str], **overrides: Any) -> "TranslationConfig":
        """
        Derive project naming from a diagram title.

        ``"Tienda Online"`` → project ``TiendaOnline``, artifact
        ``tienda-online``, package ``com.tiendaonline``.
        """
        from umlforge.naming import (
            sanitize_project_name,
            to_artifact_id,
            to_package_name,
        )

        seed: str = (title or "").strip() or "Diagrama UML"
        derived: Dict[str, Any] = {
            "project_name": sanitize_project_name(seed),
            "artifact_id": to_artifact_id(seed),
            "package_name": to_package_name(seed),
        }
        derived.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**derived)


# ---------------------------------------------------------------------------
# Result envelopes
# ---------------------------------------------------------------------------


class ResultCounts(BaseModel):
    """Class and relationship counts reported back to the caller."""

    model_config = _SHARED_CONFIG

    classes: int = Field(default=0, ge=0)
    relationships: int = Field(default=0, ge=0)


class GenerationResult(BaseModel):
    """
    Outcome of one generator run.

    ``files`` maps relative paths to text content; writing them out is the
    exporter's job, never the generator's.
    """

    model_config = _SHARED_CONFIG

    target: TargetKind = Field(..., description="Target that was generated.")
    success: bool = Field(default=True)
    message: Optional[str] = Field(default=None)
    error: Optional[str] = Field(default=None)
    counts: ResultCounts = Field(default_factory=ResultCounts)
    files: Dict[str, str] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    archive_name: Optional[str] = Field(
        default=None, description="Suggested zip file name for this target."
    )

    @computed_field  # type: ignore[misc]
    @property
    def total_files(self) -> int:
        return len(self.files)

    @computed_field  # type: ignore[misc]
    @property
    def total_lines(self) -> int:
        return sum(c.count("\n") + (1 if c else 0) for c in self.files.values())

    def to_envelope(self) -> Dict[str, Any]:
        """``{success, message|error, counts: {classes, relationships}}``."""
        envelope: Dict[str, Any] = {"success": self.success}
        if self.success:
            envelope["message"] = self.message or ""
        else:
            envelope["error"] = self.error or "Generation failed."
        envelope["counts"] = self.counts.model_dump()
        return envelope

    def __repr__(self) -> str:
        return (
            f"<GenerationResult {self.target} {self.total_files} files, "
            f"{'OK' if self.success else 'FAILED'}>"
        )


class ImportResult(BaseModel):
    """Outcome of importing a diagram from an interchange document or image."""

    model_config = _SHARED_CONFIG

    success: bool = Field(default=False)
    classes_created: int = Field(default=0, ge=0, alias="classesCreated")
    relationships_created: int = Field(default=0, ge=0, alias="relationshipsCreated")
    message: Optional[str] = Field(default=None)
    error: Optional[str] = Field(default=None)
    document: Dict[str, Any] = Field(
        default_factory=lambda: {"classes": [], "relationships": []},
        description="What was imported, in interchange form; empty on failure.",
    )
    snapshot: Dict[str, Any] = Field(
        default_factory=lambda: {"classes": [], "links": []},
        description="The same diagram as a snapshot ready for the extractor.",
    )

    def to_envelope(self) -> Dict[str, Any]:
        envelope: Dict[str, Any] = {"success": self.success}
        if self.success:
            envelope["message"] = self.message or ""
        else:
            envelope["error"] = self.error or "Import failed."
        envelope["counts"] = {
            "classes": self.classes_created,
            "relationships": self.relationships_created,
        }
        return envelope


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Visibility",
    "VISIBILITY_SYMBOLS",
    "SYMBOL_VISIBILITIES",
    "Stereotype",
    "ClassKind",
    "RelationshipKind",
    "Cardinality",
    "TargetKind",
    "is_many",
    "AttributeSpec",
    "MethodSpec",
    "Position",
    "ClassEntity",
    "Relationship",
    "DiagramIR",
    "ResolvedForeignKey",
    "JoinConstruct",
    "GeneralizationEdge",
    "ResolvedRelationshipSet",
    "AuthDetection",
    "TranslationConfig",
    "ResultCounts",
    "GenerationResult",
    "ImportResult",
]

logger.debug("umlforge.models loaded: %d public symbols.", len(__all__))
