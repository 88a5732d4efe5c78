# File: umlforge/generators/__init__.py
"""
NexaFlow UMLForge - Artifact Generators
========================================
One generator per :class:`~umlforge.models.TargetKind`; look them up with
:func:`get_generator`.
"""

from __future__ import annotations

from typing import Dict, List, Type, Union

from umlforge.generators.api_collection import ApiCollectionGenerator
from umlforge.generators.backend import BackendGenerator
from umlforge.generators.base import ArtifactGenerator, GenerationContext, build_context
from umlforge.generators.interchange import InterchangeGenerator
from umlforge.generators.mobile import MobileGenerator
from umlforge.generators.schema import SchemaGenerator
from umlforge.generators.xmi import XmiGenerator
from umlforge.models import TargetKind

GENERATORS: Dict[TargetKind, Type[ArtifactGenerator]] = {
    TargetKind.SCHEMA: SchemaGenerator,
    TargetKind.BACKEND: BackendGenerator,
    TargetKind.MOBILE: MobileGenerator,
    TargetKind.API_COLLECTION: ApiCollectionGenerator,
    TargetKind.INTERCHANGE: InterchangeGenerator,
    TargetKind.XMI: XmiGenerator,
}


def get_generator(target: Union[str, TargetKind]) -> Type[ArtifactGenerator]:
    """Generator class for *target*; unknown names raise :class:`ValueError`."""
    try:
        kind: TargetKind = TargetKind(target)
    except ValueError:
        valid: str = ", ".join(t.value for t in TargetKind)
        raise ValueError(f"Unknown target {target!r}. Valid targets: {valid}") from None
    return GENERATORS[kind]


__all__: List[str] = [
    "GENERATORS",
    "get_generator",
    "ArtifactGenerator",
    "GenerationContext",
    "build_context",
    "ApiCollectionGenerator",
    "BackendGenerator",
    "InterchangeGenerator",
    "MobileGenerator",
    "SchemaGenerator",
    "XmiGenerator",
]
