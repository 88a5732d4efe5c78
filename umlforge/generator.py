# File: umlforge/generator.py
"""
NexaFlow UMLForge - Translation Pipeline (Orchestrator)
========================================================

Connects every phase together:

    Diagram Input → Extraction → Validation → Resolution → Generators → Export

The ``DiagramTranslator`` class provides both a programmatic API and the
backend for the CLI.

Workflow::

    1. Load a diagram from a JSON / YAML snapshot or an XMI file
       (or accept an in-memory snapshot).
    2. Extract the immutable ``DiagramIR`` and the ``TranslationConfig``.
    3. Run the validation pipeline (validators.py).
    4. Resolve relationships and detect the authentication entity once.
    5. Run every selected generator over the same frozen context.
    6. Optionally hand the results to ``ProjectExporter`` (exporters.py).
    7. Return a ``TranslationReport`` with metrics and status.

Error handling strategy:
    - Validation errors are collected and surfaced, not swallowed.
    - Generator failures are isolated: one failing target becomes a
      ``GenerationResult(success=False)`` and the others still run.
    - Export errors are recorded in the report.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from umlforge.exporters import ExportManifest, ExportResult, ProjectExporter
from umlforge.extractor import ExtractionResult, extract_diagram
from umlforge.generators import GenerationContext, build_context, get_generator
from umlforge.generators.interchange import import_document
from umlforge.generators.xmi import xmi_to_document
from umlforge.models import (
    DiagramIR,
    GenerationResult,
    ResultCounts,
    TargetKind,
    TranslationConfig,
)
from umlforge.utils import Timer
from umlforge.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.generator")

DEFAULT_TARGETS: Tuple[TargetKind, ...] = (
    TargetKind.SCHEMA,
    TargetKind.BACKEND,
    TargetKind.MOBILE,
    TargetKind.API_COLLECTION,
)

_CONFIG_KEYS: Tuple[str, ...] = ("config", "translation_config")


# ---------------------------------------------------------------------------
# Translation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class TranslationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class TranslationReport:
    """
    Comprehensive report produced by ``DiagramTranslator.translate()``.

    Holds per-target results, timing information and every error or
    warning collected on the way.
    """

    success: bool = False
    project_name: str = ""
    output_directory: str = ""

    # Inputs
    ir: Optional[DiagramIR] = None
    config: Optional[TranslationConfig] = None

    # Metrics
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    results: Dict[str, GenerationResult] = field(default_factory=dict)
    step_metrics: List[TranslationStepMetric] = field(default_factory=list)
    input_errors: List[str] = field(default_factory=list)
    extraction_warnings: List[str] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)

    # Export manifest reference
    manifest: Optional[ExportManifest] = None

    @property
    def counts(self) -> ResultCounts:
        if self.ir is None:
            return ResultCounts()
        return ResultCounts(
            classes=len(self.ir.classes), relationships=len(self.ir.relationships)
        )

    @property
    def total_files(self) -> int:
        return sum(r.total_files for r in self.results.values())

    @property
    def total_lines(self) -> int:
        return sum(r.total_lines for r in self.results.values())

    def envelope(self) -> Dict[str, Any]:
        """``{success, message|error, counts}`` for the whole run."""
        result: Dict[str, Any] = {"success": self.success}
        if self.success:
            targets: str = ", ".join(self.results) or "none"
            result["message"] = (
                f"Generated {self.total_files} files for {targets} from "
                f"{self.counts.classes} classes and "
                f"{self.counts.relationships} relationships."
            )
        else:
            problems: List[str] = (
                self.input_errors
                + self.validation_errors
                + self.generation_errors
                + self.export_errors
            )
            result["error"] = problems[0] if problems else "Translation failed."
        result["counts"] = self.counts.model_dump()
        return result

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'=' * 60}")
        lines.append("  NexaFlow UMLForge - Translation Report")
        lines.append(f"{'=' * 60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Project:          {self.project_name}")
        if self.output_directory:
            lines.append(f"  Output:           {self.output_directory}")
        lines.append(f"  Classes:          {self.counts.classes}")
        lines.append(f"  Relationships:    {self.counts.relationships}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─' * 60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        if self.results:
            lines.append(f"{'─' * 60}")
            lines.append("  Targets:")
            for name, result in self.results.items():
                icon = "✓" if result.success else "✗"
                detail: str = (
                    f"{result.total_files} files"
                    if result.success
                    else (result.error or "failed")
                )
                lines.append(f"    {icon} {name:<28s} {detail}")

        sections: Sequence[Tuple[str, List[str], str]] = (
            ("Input Errors", self.input_errors, "✗"),
            ("Extraction Warnings", self.extraction_warnings, "⚠"),
            ("Validation Errors", self.validation_errors, "✗"),
            ("Validation Warnings", self.validation_warnings, "⚠"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Export Errors", self.export_errors, "✗"),
        )
        for title, items, icon in sections:
            if not items:
                continue
            lines.append(f"{'─' * 60}")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append(f"{'=' * 60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Diagram loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def _load_xmi_file(path: Path) -> Dict[str, Any]:
    """Read an XMI file into a snapshot through the interchange importer."""
    try:
        document: Dict[str, Any] = xmi_to_document(path.read_text(encoding="utf-8"))
    except ET.ParseError as exc:
        raise ValueError(f"Invalid XMI in {path}: {exc}") from exc
    imported = import_document(document)
    if not imported.success:
        raise ValueError(f"Invalid XMI in {path}: {imported.error}")
    return imported.snapshot


def load_diagram_file(path: Path) -> Dict[str, Any]:
    """
    Load a diagram file (JSON, YAML or XMI).

    Dispatches based on file extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Diagram file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Diagram path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)
    if suffix in (".xmi", ".uml", ".xml"):
        return _load_xmi_file(path)

    logger.info("Unknown extension '%s', trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


def parse_raw_diagram(
    raw: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]] = None,
) -> Tuple[ExtractionResult, TranslationConfig]:
    """
    Split a loaded file into the extracted diagram and its configuration.

    The snapshot is either the whole mapping or its ``diagram`` key. A
    ``config`` mapping supplies configuration; *overrides* win over it and
    ``None`` overrides are ignored.

    Raises:
        ValueError: If the configuration is invalid.
    """
    config_data: Dict[str, Any] = {}
    for key in _CONFIG_KEYS:
        value: Any = raw.get(key)
        if isinstance(value, Mapping):
            config_data = dict(value)
            break

    snapshot: Any = raw.get("diagram") if isinstance(raw.get("diagram"), Mapping) else raw
    extraction: ExtractionResult = extract_diagram(snapshot)

    merged: Dict[str, Any] = dict(config_data)
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})
    try:
        config: TranslationConfig = TranslationConfig.from_title(extraction.ir.title, **merged)
    except PydanticValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc

    return extraction, config


def _normalise_targets(targets: Optional[Iterable[Union[str, TargetKind]]]) -> List[TargetKind]:
    selected: List[TargetKind] = []
    for target in targets or DEFAULT_TARGETS:
        get_generator(target)
        kind: TargetKind = TargetKind(target)
        if kind not in selected:
            selected.append(kind)
    return selected


# ---------------------------------------------------------------------------
# Single-target runner
# ---------------------------------------------------------------------------


def run_generator(context: GenerationContext, target: Union[str, TargetKind]) -> GenerationResult:
    """
    Run one generator and wrap its output in a :class:`GenerationResult`.

    Exceptions raised by the generator become a failed result.
    """
    kind: TargetKind = TargetKind(target)
    counts: ResultCounts = ResultCounts(
        classes=len(context.ir.classes), relationships=len(context.ir.relationships)
    )
    generator = get_generator(kind)(context)
    try:
        files: Dict[str, str] = generator.generate()
    except Exception as exc:
        logger.error("Generator '%s' failed: %s", kind.value, exc, exc_info=True)
        return GenerationResult(
            target=kind,
            success=False,
            error=f"{type(exc).__name__}: {exc}",
            counts=counts,
            warnings=list(generator.warnings),
        )

    warnings: List[str] = list(context.resolved.warnings) + list(generator.warnings)
    return GenerationResult(
        target=kind,
        success=True,
        message=(
            f"{kind.value}: {len(files)} file(s) from {counts.classes} classes "
            f"and {counts.relationships} relationships."
        ),
        counts=counts,
        files=files,
        warnings=warnings,
        archive_name=generator.archive_name(),
    )


# ---------------------------------------------------------------------------
# DiagramTranslator: master orchestrator
# ---------------------------------------------------------------------------


class DiagramTranslator:
    """
    Master pipeline orchestrator for UMLForge.

    Usage::

        translator = DiagramTranslator()

        # From a file
        report = translator.translate_file(
            Path("tienda.yaml"),
            targets=["schema", "backend"],
            output_dir=Path("./out"),
        )

        # From an in-memory snapshot
        report = translator.translate(snapshot, targets=["api-collection"])

        print(report.summary())

    The translator is reusable: create once, call translate() many times.
    """

    def __init__(
        self,
        *,
        strict_validation: bool = True,
        fail_on_warnings: bool = False,
        zip_archives: bool = False,
        clean_output: bool = False,
    ) -> None:
        """
        Args:
            strict_validation: If True, abort on any validation error.
            fail_on_warnings: If True, treat validation warnings as errors.
            zip_archives: If True, multi-file targets are exported as zips.
            clean_output: If True, wipe the output directory before writing.
        """
        self._strict_validation: bool = strict_validation
        self._fail_on_warnings: bool = fail_on_warnings
        self._zip_archives: bool = zip_archives
        self._clean_output: bool = clean_output

        logger.debug(
            "DiagramTranslator initialised: strict=%s, fail_on_warnings=%s, zip=%s, clean=%s.",
            strict_validation,
            fail_on_warnings,
            zip_archives,
            clean_output,
        )

    # -----------------------------------------------------------------
    # Public: translate from file
    # -----------------------------------------------------------------

    def translate_file(
        self,
        diagram_path: Path,
        *,
        targets: Optional[Iterable[Union[str, TargetKind]]] = None,
        output_dir: Optional[Path] = None,
        config_overrides: Optional[Mapping[str, Any]] = None,
    ) -> TranslationReport:
        """Full pipeline: load file → extract → validate → generate → export."""
        report: TranslationReport = TranslationReport()
        diagram_path = Path(diagram_path)

        with Timer("load_diagram") as t_load:
            try:
                raw_data: Dict[str, Any] = load_diagram_file(diagram_path)
            except (FileNotFoundError, ValueError) as exc:
                raw_data = {}
                report.input_errors.append(str(exc))

        if report.input_errors:
            report.step_metrics.append(
                TranslationStepMetric("Load Diagram File", False, t_load.elapsed, report.input_errors[0])
            )
            return self._finalise_report(report, t_load.elapsed)

        logger.info("Loaded diagram file: %s (%d top-level keys).", diagram_path, len(raw_data))
        report.step_metrics.append(
            TranslationStepMetric("Load Diagram File", True, t_load.elapsed, f"from {diagram_path.name}")
        )
        return self.translate(
            raw_data,
            targets=targets,
            output_dir=output_dir,
            config_overrides=config_overrides,
            report=report,
        )

    # -----------------------------------------------------------------
    # Public: translate from an in-memory snapshot
    # -----------------------------------------------------------------

    def translate(
        self,
        snapshot: Mapping[str, Any],
        *,
        targets: Optional[Iterable[Union[str, TargetKind]]] = None,
        output_dir: Optional[Path] = None,
        config_overrides: Optional[Mapping[str, Any]] = None,
        report: Optional[TranslationReport] = None,
    ) -> TranslationReport:
        """
        Run the pipeline over a snapshot (optionally carrying ``config``).

        Without *output_dir* nothing is written; the artifacts stay in
        ``report.results``.
        """
        report = report if report is not None else TranslationReport()
        pipeline_start: float = time.perf_counter()

        context, selected = self._prepare(snapshot, targets, config_overrides, report)
        if context is None:
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        with Timer("generate") as t_gen:
            for kind in selected:
                self._record_result(report, run_generator(context, kind))
        self._append_generation_metric(report, t_gen.elapsed)

        if output_dir is not None:
            self._step_export(report, Path(output_dir))

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    async def translate_async(
        self,
        snapshot: Mapping[str, Any],
        *,
        targets: Optional[Iterable[Union[str, TargetKind]]] = None,
        config_overrides: Optional[Mapping[str, Any]] = None,
    ) -> TranslationReport:
        """
        Like :meth:`translate` without export, running the generators in
        worker threads over the same frozen context.
        """
        report: TranslationReport = TranslationReport()
        pipeline_start: float = time.perf_counter()

        context, selected = self._prepare(snapshot, targets, config_overrides, report)
        if context is None:
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        with Timer("generate") as t_gen:
            results: List[GenerationResult] = await asyncio.gather(
                *(asyncio.to_thread(run_generator, context, kind) for kind in selected)
            )
        for result in results:
            self._record_result(report, result)
        self._append_generation_metric(report, t_gen.elapsed)

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    def validate(
        self,
        snapshot: Mapping[str, Any],
        *,
        config_overrides: Optional[Mapping[str, Any]] = None,
    ) -> TranslationReport:
        """Extract and validate only; no generator runs."""
        report: TranslationReport = TranslationReport()
        pipeline_start: float = time.perf_counter()
        self._prepare(snapshot, None, config_overrides, report)
        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    # -----------------------------------------------------------------
    # Internal: pipeline steps
    # -----------------------------------------------------------------

    def _prepare(
        self,
        snapshot: Mapping[str, Any],
        targets: Optional[Iterable[Union[str, TargetKind]]],
        config_overrides: Optional[Mapping[str, Any]],
        report: TranslationReport,
    ) -> Tuple[Optional[GenerationContext], List[TargetKind]]:
        """Parse, validate, resolve. Returns ``(None, [])`` when the run must stop."""
        # --- Step: parse ---
        with Timer("parse") as t_parse:
            try:
                selected: List[TargetKind] = _normalise_targets(targets)
                extraction, config = parse_raw_diagram(snapshot, config_overrides)
            except ValueError as exc:
                report.input_errors.append(str(exc))
                report.step_metrics.append(
                    TranslationStepMetric("Parse Diagram", False, t_parse.elapsed, str(exc))
                )
                return None, []

        report.ir = extraction.ir
        report.config = config
        report.project_name = config.project_name
        report.extraction_warnings.extend(extraction.warnings)
        report.step_metrics.append(
            TranslationStepMetric(
                "Parse Diagram",
                True,
                t_parse.elapsed,
                f"{len(extraction.ir.classes)} classes, "
                f"{len(extraction.ir.relationships)} relationships",
            )
        )

        # --- Step: validation ---
        if not self._step_validate(extraction.ir, config, report) and self._strict_validation:
            return None, []

        # --- Step: resolution + auth detection ---
        with Timer("resolve") as t_resolve:
            context: GenerationContext = build_context(extraction.ir, config)
        report.step_metrics.append(
            TranslationStepMetric(
                "Resolve Relationships",
                True,
                t_resolve.elapsed,
                f"{len(context.resolved.foreign_keys)} keys, "
                f"{len(context.resolved.joins)} joins, "
                f"auth={'yes' if context.auth.needs_auth else 'no'}",
            )
        )
        return context, selected

    def _step_validate(
        self,
        ir: DiagramIR,
        config: TranslationConfig,
        report: TranslationReport,
    ) -> bool:
        with Timer("validate") as t_val:
            result: ValidationResult = validate_full(ir, config)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        ok: bool = result.is_valid
        if self._fail_on_warnings and result.warning_count > 0:
            ok = False
            logger.warning(
                "Treating %d validation warning(s) as errors (fail_on_warnings=True).",
                result.warning_count,
            )

        report.step_metrics.append(
            TranslationStepMetric(
                "Validation",
                ok,
                t_val.elapsed,
                f"{result.error_count} errors, {result.warning_count} warnings",
            )
        )
        if ok:
            logger.info("Validation passed: %s", result.summary())
        else:
            logger.error("Validation failed: %s", result.summary())
        return ok

    @staticmethod
    def _record_result(report: TranslationReport, result: GenerationResult) -> None:
        name: str = str(result.target)
        report.results[name] = result
        if not result.success:
            report.generation_errors.append(f"[{name}] {result.error}")

    @staticmethod
    def _append_generation_metric(report: TranslationReport, elapsed: float) -> None:
        ok: int = sum(1 for r in report.results.values() if r.success)
        report.step_metrics.append(
            TranslationStepMetric(
                "Generate Artifacts",
                ok == len(report.results),
                elapsed,
                f"{ok}/{len(report.results)} targets, {report.total_files} files",
            )
        )

    def _step_export(self, report: TranslationReport, output_dir: Path) -> None:
        assert report.config is not None
        exporter: ProjectExporter = ProjectExporter(
            report.config,
            output_dir,
            zip_archives=self._zip_archives,
            clean_before_export=self._clean_output,
        )
        report.output_directory = str(exporter.output_dir)
        result: ExportResult = exporter.export(list(report.results.values()))
        report.manifest = result.manifest
        report.export_errors.extend(result.errors)
        report.step_metrics.append(
            TranslationStepMetric(
                "Export",
                result.success,
                result.elapsed_seconds,
                f"{result.manifest.total_files} files written",
            )
        )

    def _finalise_report(self, report: TranslationReport, elapsed: float) -> TranslationReport:
        report.total_elapsed_seconds = elapsed
        validation_failed: bool = any(
            step.step_name == "Validation" and not step.success for step in report.step_metrics
        )
        # Non-strict runs that still produced artifacts tolerate validation errors.
        tolerated: bool = not self._strict_validation and bool(report.results)
        report.success = not (
            report.input_errors
            or report.generation_errors
            or report.export_errors
            or (validation_failed and not tolerated)
        )
        level: int = logging.INFO if report.success else logging.ERROR
        logger.log(
            level,
            "Translation %s in %.3fs (%d targets, %d files).",
            "succeeded" if report.success else "failed",
            elapsed,
            len(report.results),
            report.total_files,
        )
        return report


# ---------------------------------------------------------------------------
# Convenience wrapper
# ---------------------------------------------------------------------------


def translate(
    snapshot: Mapping[str, Any],
    targets: Optional[Iterable[Union[str, TargetKind]]] = None,
    **overrides: Any,
) -> TranslationReport:
    """One-shot, non-strict translation of *snapshot*; nothing is written."""
    return DiagramTranslator(strict_validation=False).translate(
        snapshot, targets=targets, config_overrides=overrides
    )


__all__: List[str] = [
    "DEFAULT_TARGETS",
    "DiagramTranslator",
    "TranslationReport",
    "TranslationStepMetric",
    "load_diagram_file",
    "parse_raw_diagram",
    "run_generator",
    "translate",
]

logger.debug("umlforge.generator loaded.")
