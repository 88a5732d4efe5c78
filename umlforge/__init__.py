# File: umlforge/__init__.py
"""
NexaFlow UMLForge - UML Class Diagram Translator
=================================================

Turns a UML class diagram (classes, attributes, methods and typed
relationships with multiplicities) into consistent artifacts: a SQL
schema, a Spring Boot backend, a Flutter app, a Postman collection and
interchange documents (JSON and XMI).

Architecture overview::

    ┌──────────────┐     ┌───────────────────┐     ┌──────────────┐
    │  CLI / Entry │────▶│ DiagramTranslator │────▶│  generators/ │
    │   (cli.py)   │     │  (generator.py)   │     │ schema, ...  │
    └──────────────┘     └─────────┬─────────┘     └──────────────┘
                                   │
          ┌──────────┬─────────────┼─────────────┬───────────┐
          ▼          ▼             ▼             ▼           ▼
     ┌─────────┐ ┌──────────┐ ┌──────────┐ ┌───────────┐ ┌────────┐
     │extractor│ │validators│ │ resolver │ │auth_detect│ │exporter│
     └─────────┘ └──────────┘ └──────────┘ └───────────┘ └────────┘

Usage::

    # As a library
    from umlforge import DiagramTranslator
    report = DiagramTranslator().translate(snapshot, targets=["schema"])
    print(report.results["schema"].files["database_schema.sql"])

    # From the command line
    python -m umlforge -d tienda.yaml -o ./out --zip
"""

from __future__ import annotations

__version__: str = "0.1.0"
__author__: str = "NexaFlow Team"
__license__: str = "MIT"

from umlforge.models import (
    AttributeSpec,
    AuthDetection,
    ClassEntity,
    DiagramIR,
    GenerationResult,
    ImportResult,
    MethodSpec,
    Relationship,
    RelationshipKind,
    ResolvedForeignKey,
    ResolvedRelationshipSet,
    ResultCounts,
    TargetKind,
    TranslationConfig,
)
from umlforge.extractor import ExtractionResult, extract_diagram
from umlforge.resolver import RelationshipResolver, resolve_relationships
from umlforge.type_mapper import TypeMapper
from umlforge.auth_detector import detect as detect_auth
from umlforge.validators import ValidationResult, validate_full
from umlforge.generators import build_context, get_generator
from umlforge.exporters import ExportManifest, ExportResult, ProjectExporter
from umlforge.generator import (
    DiagramTranslator,
    TranslationReport,
    load_diagram_file,
    translate,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Core orchestrator
    "DiagramTranslator",
    "TranslationReport",
    "load_diagram_file",
    "translate",
    # Models
    "AttributeSpec",
    "AuthDetection",
    "ClassEntity",
    "DiagramIR",
    "GenerationResult",
    "ImportResult",
    "MethodSpec",
    "Relationship",
    "RelationshipKind",
    "ResolvedForeignKey",
    "ResolvedRelationshipSet",
    "ResultCounts",
    "TargetKind",
    "TranslationConfig",
    # Pipeline stages
    "ExtractionResult",
    "extract_diagram",
    "RelationshipResolver",
    "resolve_relationships",
    "TypeMapper",
    "detect_auth",
    "validate_full",
    "ValidationResult",
    "build_context",
    "get_generator",
    # Exporters
    "ProjectExporter",
    "ExportManifest",
    "ExportResult",
]
