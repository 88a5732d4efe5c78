# File: umlforge/generators/base.py
"""
NexaFlow UMLForge - Generator Base
===================================
Shared contract for every artifact generator.

A generator is a pure function of a :class:`GenerationContext` (frozen IR,
resolved relationships, auth detection, configuration, type mapper) to a
mapping ``relative path -> text``. It never writes files and never
mutates its input.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from umlforge.auth_detector import detect
from umlforge.models import (
    AttributeSpec,
    AuthDetection,
    ClassEntity,
    DiagramIR,
    ResolvedRelationshipSet,
    TargetKind,
    TranslationConfig,
)
from umlforge.naming import (
    clash_keys,
    java_field_name,
    table_singular,
    to_camel_case,
    to_kebab_case,
    url_segment,
)
from umlforge.resolver import RelationshipResolver, shadows_inheritance_key
from umlforge.type_mapper import TypeMapper

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.generators.base")


@dataclass(frozen=True, slots=True)
class GenerationContext:
    """Everything a generator may read. Nothing in it may be changed."""

    ir: DiagramIR
    resolved: ResolvedRelationshipSet
    auth: AuthDetection
    config: TranslationConfig
    mapper: TypeMapper = field(default_factory=TypeMapper)

    @property
    def entities(self) -> Tuple[ClassEntity, ...]:
        return self.ir.entities

    @property
    def user_entity(self) -> Optional[ClassEntity]:
        if not self.auth.needs_auth or not self.auth.user_entity:
            return None
        return self.ir.get_class(self.auth.user_entity)


def build_context(
    ir: DiagramIR,
    config: Optional[TranslationConfig] = None,
    resolved: Optional[ResolvedRelationshipSet] = None,
    auth: Optional[AuthDetection] = None,
) -> GenerationContext:
    """Resolve, detect and bundle; the shortcut tests and scripts use."""
    return GenerationContext(
        ir=ir,
        resolved=resolved if resolved is not None else RelationshipResolver().resolve(ir),
        auth=auth if auth is not None else detect(ir.classes),
        config=config if config is not None else TranslationConfig.from_title(ir.title),
        mapper=TypeMapper(ir.class_names),
    )


def persisted_attributes(cls: ClassEntity, parent: Optional[str] = None) -> List[AttributeSpec]:
    """
    Attributes that become columns / fields.

    ``id`` is always generated; for a child class the ``<parent>Id`` key
    is generated too, so attributes clashing with it are left out. Of two
    attributes that end up with the same field name only the first is kept.
    """
    kept: List[AttributeSpec] = []
    seen: Set[str] = set()
    for a in cls.attributes:
        if a.name.strip().lower() == "id":
            continue
        if parent is not None and shadows_inheritance_key(a.name, parent):
            continue
        keys: Tuple[str, str] = clash_keys(a.name)
        if seen.intersection(keys):
            continue
        seen.update(keys)
        kept.append(a)
    return kept


def inheritance_key(parent: str) -> Tuple[str, str, str]:
    """
    Names of the key a child holds towards its parent.

    ``Animal`` → ``("animal", "animalId", "animal_id")``: object field,
    id field, column.
    """
    base: str = to_camel_case(parent)
    return base, f"{base}Id", f"{table_singular(parent)}_id"


def json_key(name: str) -> str:
    """Wire name of a field: the backend DTO property name."""
    return java_field_name(name)


def resource_path(class_name: str) -> str:
    """REST collection path, shared by backend, mobile and API collection."""
    return f"/api/{url_segment(class_name)}"


def reference_route(base_name: str) -> str:
    """Sub-route listing the rows that point at one related id."""
    return f"by-{to_kebab_case(base_name)}"


class ArtifactGenerator(ABC):
    """Base class for all target generators."""

    target: TargetKind

    def __init__(self, context: GenerationContext) -> None:
        self.context: GenerationContext = context
        self.warnings: List[str] = []

    @property
    def ir(self) -> DiagramIR:
        return self.context.ir

    @property
    def resolved(self) -> ResolvedRelationshipSet:
        return self.context.resolved

    @property
    def config(self) -> TranslationConfig:
        return self.context.config

    @property
    def mapper(self) -> TypeMapper:
        return self.context.mapper

    @abstractmethod
    def generate(self) -> Dict[str, str]:
        """Return ``relative path -> content`` for this target."""

    def persisted(self, cls: ClassEntity) -> List[AttributeSpec]:
        """:func:`persisted_attributes` with the class's resolved parent."""
        return persisted_attributes(cls, self.resolved.parent_of(cls.name))

    def archive_name(self) -> Optional[str]:
        """Suggested zip name; ``None`` for single-file targets."""
        return None

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning("[%s] %s", self.target.value, message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} target={self.target}>"


__all__: List[str] = [
    "GenerationContext",
    "build_context",
    "persisted_attributes",
    "inheritance_key",
    "json_key",
    "resource_path",
    "reference_route",
    "ArtifactGenerator",
]
