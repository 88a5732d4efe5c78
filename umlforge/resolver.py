# File: umlforge/resolver.py
"""
NexaFlow UMLForge - Relationship Resolver
==========================================
Turns every relationship of a :class:`DiagramIR` into ownership facts:
which class holds a reference (foreign key) or a collection, whether the
reference is required, and which associations need a join table.

Rules, applied per relationship in IR order:

* inheritance → generalization edge only, no fields.
* composition / aggregation (source is the whole) → the part (target)
  owns a reference to the whole, required for composition and optional
  for aggregation; the whole owns a collection of parts. Composition
  cascades deletes.
* association ``1 → *`` → target owns a required reference, source a
  collection; ``* → 1`` is the mirror image; ``1 → 1`` gives the source an
  optional one-to-one reference and no collection; ``* → *`` derives no
  field at all and produces a :class:`JoinConstruct` plus a warning.

Every generator reads the result instead of re-deriving names, so schema,
backend, mobile and API-collection artifacts agree on every field.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Set, Tuple

from umlforge.models import (
    Cardinality,
    ClassEntity,
    DiagramIR,
    GeneralizationEdge,
    JoinConstruct,
    Relationship,
    RelationshipKind,
    ResolvedForeignKey,
    ResolvedRelationshipSet,
)
from umlforge.naming import (
    clash_keys,
    table_singular,
    to_camel_case,
    to_pascal_case,
    to_plural,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.resolver")

_KIND_SUFFIXES: Dict[str, str] = {
    RelationshipKind.COMPOSITION.value: "Composition",
    RelationshipKind.AGGREGATION.value: "Aggregation",
    RelationshipKind.ASSOCIATION.value: "Association",
}

_MAX_NUMERIC_SUFFIX: int = 1000


class _ResolutionState:
    """Mutable bookkeeping for one ``resolve`` call."""

    __slots__ = (
        "taken",
        "foreign_keys",
        "joins",
        "join_names",
        "generalizations",
        "warnings",
        "parents",
    )

    def __init__(self, ir: DiagramIR) -> None:
        # Names are held in their clash_keys forms, so ``usuario_id`` and
        # ``usuarioId`` count as the same member.
        self.taken: Dict[str, Set[str]] = {}
        for cls in ir.classes:
            keys: Set[str] = set(clash_keys("id"))
            for attribute in cls.attributes:
                keys.update(clash_keys(attribute.name))
            self.taken[cls.name] = keys
        # Generators render inheritance as a <parent>Id key on the child.
        for rel in ir.relationships:
            if (
                rel.kind == RelationshipKind.INHERITANCE
                and rel.source != rel.target
                and rel.source in self.taken
            ):
                parent_base: str = to_camel_case(rel.target)
                self.claim(rel.source, parent_base, f"{parent_base}Id")
        self.foreign_keys: List[ResolvedForeignKey] = []
        self.joins: List[JoinConstruct] = []
        self.join_names: Set[str] = set()
        self.generalizations: List[GeneralizationEdge] = []
        self.warnings: List[str] = []
        self.parents: Dict[str, str] = {}

    def is_free(self, owner: str, *names: str) -> bool:
        taken: Set[str] = self.taken[owner]
        return not any(key in taken for name in names for key in clash_keys(name))

    def claim(self, owner: str, *names: str) -> None:
        for name in names:
            self.taken[owner].update(clash_keys(name))

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning(message)


class RelationshipResolver:
    """
    Derives the :class:`ResolvedRelationshipSet` of a diagram.

    Stateless between calls: resolving the same IR twice yields identical
    field names, collision suffixes included.
    """

    # -- Public API ------------------------------------------------------

    def resolve(self, ir: DiagramIR) -> ResolvedRelationshipSet:
        state: _ResolutionState = _ResolutionState(ir)

        for index, rel in enumerate(ir.relationships):
            source: Optional[ClassEntity] = ir.get_class(rel.source)
            target: Optional[ClassEntity] = ir.get_class(rel.target)
            if source is None or target is None:
                missing: str = rel.source if source is None else rel.target
                state.warn(
                    f"Relationship #{index + 1} references unknown class "
                    f"'{missing}'; dropped."
                )
                continue

            if rel.kind == RelationshipKind.INHERITANCE:
                self._resolve_inheritance(index, rel, source, target, state)
                continue

            if not (source.is_persistable and target.is_persistable):
                state.warn(
                    f"Relationship #{index + 1} ({rel.source} -> {rel.target}) "
                    "involves a non-entity class; no foreign key derived."
                )
                continue

            if rel.kind in (RelationshipKind.COMPOSITION, RelationshipKind.AGGREGATION):
                self._resolve_whole_part(index, rel, state)
            else:
                self._resolve_association(index, rel, state)

        resolved: ResolvedRelationshipSet = ResolvedRelationshipSet(
            foreign_keys=tuple(state.foreign_keys),
            joins=tuple(state.joins),
            generalizations=tuple(state.generalizations),
            warnings=tuple(state.warnings),
        )
        logger.info(
            "Resolved %d relationships → %d fields, %d joins, %d generalizations.",
            len(ir.relationships),
            len(resolved.foreign_keys),
            len(resolved.joins),
            len(resolved.generalizations),
        )
        return resolved

    # -- Per-kind rules --------------------------------------------------

    def _resolve_inheritance(
        self,
        index: int,
        rel: Relationship,
        source: ClassEntity,
        target: ClassEntity,
        state: _ResolutionState,
    ) -> None:
        if rel.source == rel.target:
            state.warn(f"Class '{rel.source}' cannot inherit from itself; dropped.")
            return
        if not (source.is_persistable and target.is_persistable):
            state.warn(
                f"Inheritance {rel.source} -> {rel.target} involves a non-entity "
                "class; no table inheritance derived."
            )
            return
        if rel.source in state.parents:
            state.warn(
                f"Class '{rel.source}' already extends "
                f"'{state.parents[rel.source]}'; second parent '{rel.target}' ignored."
            )
            return
        if self._creates_cycle(rel.source, rel.target, state.parents):
            state.warn(
                f"Inheritance {rel.source} -> {rel.target} would create a cycle; dropped."
            )
            return
        state.parents[rel.source] = rel.target
        for attribute in source.attributes:
            if shadows_inheritance_key(attribute.name, rel.target):
                state.warn(
                    f"Attribute '{attribute.name}' of '{rel.source}' clashes with its "
                    f"key towards '{rel.target}'; the attribute is not generated."
                )
        state.generalizations.append(
            GeneralizationEdge(child=rel.source, parent=rel.target, relationship_index=index)
        )

    def _resolve_whole_part(self, index: int, rel: Relationship, state: _ResolutionState) -> None:
        composition: bool = rel.kind == RelationshipKind.COMPOSITION
        reference: ResolvedForeignKey = self._add_reference(
            index,
            rel,
            owner=rel.target,
            related=rel.source,
            required=composition,
            cascade=composition,
            one_to_one=False,
            state=state,
        )
        self._add_collection(
            index,
            rel,
            owner=rel.source,
            related=rel.target,
            cascade=composition,
            mapped_by=reference.base_name,
            state=state,
        )

    def _resolve_association(self, index: int, rel: Relationship, state: _ResolutionState) -> None:
        source_many: bool = rel.source_many
        target_many: bool = rel.target_many

        if not source_many and target_many:
            reference = self._add_reference(
                index, rel, owner=rel.target, related=rel.source,
                required=True, cascade=False, one_to_one=False, state=state,
            )
            self._add_collection(
                index, rel, owner=rel.source, related=rel.target,
                cascade=False, mapped_by=reference.base_name, state=state,
            )
        elif source_many and not target_many:
            reference = self._add_reference(
                index, rel, owner=rel.source, related=rel.target,
                required=True, cascade=False, one_to_one=False, state=state,
            )
            self._add_collection(
                index, rel, owner=rel.target, related=rel.source,
                cascade=False, mapped_by=reference.base_name, state=state,
            )
        elif not source_many and not target_many:
            self._add_reference(
                index, rel, owner=rel.source, related=rel.target,
                required=False, cascade=False, one_to_one=True, state=state,
            )
        else:
            self._add_join(index, rel, state)

    # -- Field derivation ------------------------------------------------

    def _candidate_bases(self, related: str, rel: Relationship) -> List[str]:
        """Base names in tie-break priority order."""
        base: str = to_camel_case(related) or "ref"
        candidates: List[str] = [base, base + _KIND_SUFFIXES.get(rel.kind, "Relation")]
        if rel.label:
            label_base: str = to_camel_case(rel.label)
            if label_base:
                candidates.append(label_base)
        return candidates

    def _pick_base(
        self,
        related: str,
        rel: Relationship,
        owner: str,
        state: _ResolutionState,
        names_for: Callable[[str], Tuple[str, ...]],
    ) -> str:
        candidates: List[str] = self._candidate_bases(related, rel)
        for candidate in candidates:
            if state.is_free(owner, *names_for(candidate)):
                return candidate
        root: str = candidates[0]
        for number in range(2, _MAX_NUMERIC_SUFFIX):
            candidate = f"{root}{number}"
            if state.is_free(owner, *names_for(candidate)):
                return candidate
        raise RuntimeError(f"Could not derive a unique field name for '{root}'.")

    def _add_reference(
        self,
        index: int,
        rel: Relationship,
        owner: str,
        related: str,
        required: bool,
        cascade: bool,
        one_to_one: bool,
        state: _ResolutionState,
    ) -> ResolvedForeignKey:
        base: str = self._pick_base(related, rel, owner, state, lambda b: (b, f"{b}Id"))
        state.claim(owner, base, f"{base}Id")
        fk: ResolvedForeignKey = ResolvedForeignKey(
            owning_class=owner,
            related_class=related,
            relationship_index=index,
            kind=rel.kind,
            base_name=base,
            field_name=f"{base}Id",
            required=required,
            multiplicity=Cardinality.ONE,
            collection=False,
            one_to_one=one_to_one,
            cascade_delete=cascade,
        )
        state.foreign_keys.append(fk)
        return fk

    def _add_collection(
        self,
        index: int,
        rel: Relationship,
        owner: str,
        related: str,
        cascade: bool,
        mapped_by: Optional[str],
        state: _ResolutionState,
    ) -> ResolvedForeignKey:
        base: str = self._pick_base(related, rel, owner, state, lambda b: (to_plural(b),))
        field_name: str = to_plural(base)
        state.claim(owner, field_name)
        fk: ResolvedForeignKey = ResolvedForeignKey(
            owning_class=owner,
            related_class=related,
            relationship_index=index,
            kind=rel.kind,
            base_name=base,
            field_name=field_name,
            required=False,
            multiplicity=Cardinality.MANY,
            collection=True,
            one_to_one=False,
            cascade_delete=cascade,
            mapped_by=mapped_by,
        )
        state.foreign_keys.append(fk)
        return fk

    def _add_join(self, index: int, rel: Relationship, state: _ResolutionState) -> None:
        left, right = sorted((rel.source, rel.target), key=table_singular)
        left_singular: str = table_singular(left)
        right_singular: str = table_singular(right)
        name: str = f"{left_singular}_{right_singular}"
        if name in state.join_names:
            label_part: str = table_singular(rel.label) if rel.label else ""
            if label_part and f"{name}_{label_part}" not in state.join_names:
                name = f"{name}_{label_part}"
            else:
                number: int = 2
                while f"{name}_{number}" in state.join_names:
                    number += 1
                name = f"{name}_{number}"
        state.join_names.add(name)

        left_column: str = f"{left_singular}_id"
        right_column: str = f"{right_singular}_id"
        if left_column == right_column:
            right_column = f"related_{right_singular}_id"

        state.joins.append(
            JoinConstruct(
                name=name,
                left_class=left,
                right_class=right,
                left_column=left_column,
                right_column=right_column,
                relationship_index=index,
                label=rel.label,
            )
        )
        state.warn(
            f"Many-to-many association between '{rel.source}' and '{rel.target}' "
            f"has no direct foreign key; join table '{name}' "
            f"({to_pascal_case(name)}) links them."
        )

    @staticmethod
    def _creates_cycle(child: str, parent: str, parents: Dict[str, str]) -> bool:
        seen: Set[str] = {child}
        current: Optional[str] = parent
        while current is not None:
            if current in seen:
                return True
            seen.add(current)
            current = parents.get(current)
        return False


def shadows_inheritance_key(attribute_name: str, parent: str) -> bool:
    """True when a child attribute would collide with its ``<parent>Id`` key."""
    parent_base: str = to_camel_case(parent)
    reserved: Set[str] = set(clash_keys(parent_base)) | set(clash_keys(f"{parent_base}Id"))
    return any(key in reserved for key in clash_keys(attribute_name))


def resolve_relationships(ir: DiagramIR) -> ResolvedRelationshipSet:
    """Convenience wrapper: ``RelationshipResolver().resolve(ir)``."""
    return RelationshipResolver().resolve(ir)


def ownership_summary(resolved: ResolvedRelationshipSet) -> List[Tuple[str, str, str]]:
    """``(owner, field, related)`` triples, handy for logs and reports."""
    return [(fk.owning_class, fk.field_name, fk.related_class) for fk in resolved.foreign_keys]


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "RelationshipResolver",
    "resolve_relationships",
    "shadows_inheritance_key",
    "ownership_summary",
]

logger.debug("umlforge.resolver loaded.")
