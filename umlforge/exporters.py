# File: umlforge/exporters.py
"""
NexaFlow UMLForge - Project Exporter (File-System Manager)
===========================================================

Responsible for:
    1. Writing generated artifacts atomically (write-to-temp then rename).
    2. Packaging multi-file targets into zip archives
       (``<artifactId>-SpringBoot.zip``, ``<project>_flutter.zip``).
    3. Producing an export manifest with checksums for reproducibility.

Generators only return ``relative path -> text``; this is the single place
that touches the file system. Layout under the output root:

    * single-file targets (schema, API collection, interchange, XMI) are
      written directly into the root;
    * multi-file targets go to a directory named after their archive, or
      into the archive itself when zipping is requested.

If a write fails mid-batch, previously written files remain intact; each
individual file is atomic.
"""

from __future__ import annotations

import hashlib
import io
import json
import logging
import os
import shutil
import tempfile
import time
import zipfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Sequence, Tuple

from umlforge.models import GenerationResult, TranslationConfig
from umlforge.utils import Timer, count_lines

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.exporters")

MANIFEST_FILE: str = "umlforge_manifest.json"

# Fixed timestamp for archive entries so identical input gives identical zips.
_ZIP_DATE_TIME: Tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    target: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """
    Complete manifest of all exported files.

    Serialisable to JSON for build reproducibility verification.
    """

    project_name: str = ""
    project_version: str = ""
    generator_version: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    targets: List[str] = field(default_factory=list)
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert manifest to a JSON-serialisable dictionary."""
        return {
            "project_name": self.project_name,
            "project_version": self.project_version,
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "targets": list(self.targets),
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "target": f.target,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Final result returned by ``ProjectExporter.export()``."""

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# Path & archive helpers
# ---------------------------------------------------------------------------


def safe_relative_path(rel_path: str) -> PurePosixPath:
    """
    Validate a generator-supplied path.

    Raises:
        ValueError: If the path is absolute or climbs out of its root.
    """
    path: PurePosixPath = PurePosixPath(rel_path.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts or not path.parts:
        raise ValueError(f"Unsafe artifact path: {rel_path!r}")
    return path


def build_zip(files: Dict[str, str], root: Optional[str] = None) -> bytes:
    """
    Pack ``relative path -> text`` into an in-memory zip archive.

    Entries are sorted and carry a fixed timestamp. *root* prefixes every
    entry with a top-level folder.
    """
    buffer: io.BytesIO = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for rel_path in sorted(files):
            entry: PurePosixPath = safe_relative_path(rel_path)
            if root:
                entry = PurePosixPath(root) / entry
            info: zipfile.ZipInfo = zipfile.ZipInfo(str(entry), date_time=_ZIP_DATE_TIME)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            archive.writestr(info, files[rel_path].encode("utf-8"))
    return buffer.getvalue()


def _archive_stem(archive_name: str) -> str:
    return archive_name[:-4] if archive_name.lower().endswith(".zip") else archive_name


# ---------------------------------------------------------------------------
# ProjectExporter class
# ---------------------------------------------------------------------------


class ProjectExporter:
    """
    Writes generation results to the filesystem.

    Usage::

        exporter = ProjectExporter(config, output_dir=Path("./out"), zip_archives=True)
        result = exporter.export(report.results.values())
        print(result.manifest.to_json())

    Thread-safety: NOT thread-safe.  Use one exporter per output directory.
    """

    def __init__(
        self,
        config: TranslationConfig,
        output_dir: Path,
        *,
        zip_archives: bool = False,
        clean_before_export: bool = False,
        atomic_writes: bool = True,
        generate_manifest: bool = True,
    ) -> None:
        self._config: TranslationConfig = config
        self._output_dir: Path = Path(output_dir).resolve()
        self._zip_archives: bool = zip_archives
        self._clean_before_export: bool = clean_before_export
        self._atomic_writes: bool = atomic_writes
        self._generate_manifest: bool = generate_manifest

        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._file_records: List[FileRecord] = []
        self._targets: List[str] = []

        logger.debug(
            "ProjectExporter initialised: output_dir=%s, zip=%s, atomic=%s.",
            self._output_dir,
            self._zip_archives,
            self._atomic_writes,
        )

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(self, results: Sequence[GenerationResult]) -> ExportResult:
        """
        Export every successful result; failed ones are reported and skipped.

        Returns:
            ExportResult with success flag, manifest, and error details.
        """
        with Timer("export") as timer:
            try:
                self._pre_export_cleanup()
                self._output_dir.mkdir(parents=True, exist_ok=True)
                for result in results:
                    self._export_result(result)
                if self._generate_manifest:
                    self._write_manifest_file()
            except OSError as exc:
                error_msg: str = f"Fatal export error: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        manifest: ExportManifest = self._build_manifest()
        success: bool = len(self._errors) == 0

        if success:
            logger.info(
                "Export completed successfully: %d files, %d bytes, %.3fs.",
                manifest.total_files,
                manifest.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error(
                "Export completed with %d error(s) in %.3fs.",
                len(self._errors),
                timer.elapsed,
            )

        return ExportResult(
            success=success,
            manifest=manifest,
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
            elapsed_seconds=timer.elapsed,
        )

    # -----------------------------------------------------------------
    # Internal: directory management
    # -----------------------------------------------------------------

    def _pre_export_cleanup(self) -> None:
        if not self._clean_before_export or not self._output_dir.exists():
            return

        logger.info("Cleaning output directory: %s", self._output_dir)
        for item in self._output_dir.iterdir():
            if item.name in {".git", ".gitignore", ".gitkeep"}:
                continue
            try:
                if item.is_dir():
                    shutil.rmtree(item)
                else:
                    item.unlink()
            except OSError as exc:
                warning_msg: str = f"Could not remove {item}: {exc}"
                self._warnings.append(warning_msg)
                logger.warning(warning_msg)

    # -----------------------------------------------------------------
    # Internal: per-target export
    # -----------------------------------------------------------------

    def _export_result(self, result: GenerationResult) -> None:
        target: str = str(result.target)
        if not result.success:
            self._warnings.append(f"Target '{target}' failed; nothing exported.")
            return
        self._targets.append(target)

        if result.archive_name and self._zip_archives:
            try:
                data: bytes = build_zip(result.files, root=_archive_stem(result.archive_name))
            except ValueError as exc:
                self._errors.append(f"[{target}] {exc}")
                logger.error("[%s] %s", target, exc)
                return
            self._write_record(result.archive_name, data, target, line_count=0)
            return

        prefix: str = _archive_stem(result.archive_name) if result.archive_name else ""
        for rel_path, content in result.files.items():
            try:
                entry: PurePosixPath = safe_relative_path(rel_path)
            except ValueError as exc:
                self._errors.append(f"[{target}] {exc}")
                logger.error("[%s] %s", target, exc)
                continue
            out_path: str = str(PurePosixPath(prefix) / entry) if prefix else str(entry)
            self._write_record(
                out_path, content.encode("utf-8"), target, line_count=count_lines(content)
            )

    def _write_record(self, rel_path: str, data: bytes, target: str, line_count: int) -> None:
        full_path: Path = self._output_dir / rel_path
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            if self._atomic_writes:
                self._atomic_write(full_path, data)
            else:
                full_path.write_bytes(data)
        except OSError as exc:
            error_msg: str = f"Failed to write {rel_path}: {type(exc).__name__}: {exc}"
            self._errors.append(error_msg)
            logger.error(error_msg)
            return

        self._file_records.append(
            FileRecord(
                relative_path=rel_path,
                absolute_path=str(full_path),
                target=target,
                size_bytes=len(data),
                line_count=line_count,
                sha256=hashlib.sha256(data).hexdigest(),
            )
        )
        logger.debug("Wrote file: %s (%d bytes).", rel_path, len(data))

    @staticmethod
    def _atomic_write(target_path: Path, data: bytes) -> None:
        """
        Write data to target_path through a temporary file in the same
        directory, then ``os.replace`` it into place.
        """
        fd: int = -1
        tmp_path: str = ""
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(target_path.parent),
                prefix=f".{target_path.name}.",
                suffix=".tmp",
            )
            os.write(fd, data)
            os.fsync(fd)
            os.close(fd)
            fd = -1
            os.replace(tmp_path, str(target_path))
        except OSError:
            if fd >= 0:
                os.close(fd)
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    # -----------------------------------------------------------------
    # Internal: manifest
    # -----------------------------------------------------------------

    def _build_manifest(self) -> ExportManifest:
        import umlforge

        return ExportManifest(
            project_name=self._config.project_name,
            project_version=self._config.project_version,
            generator_version=umlforge.__version__,
            export_timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            output_directory=str(self._output_dir),
            targets=list(self._targets),
            total_files=len(self._file_records),
            total_bytes=sum(r.size_bytes for r in self._file_records),
            total_lines=sum(r.line_count for r in self._file_records),
            files=list(self._file_records),
        )

    def _write_manifest_file(self) -> None:
        manifest_path: Path = self._output_dir / MANIFEST_FILE
        try:
            self._atomic_write(manifest_path, self._build_manifest().to_json().encode("utf-8"))
            logger.debug("Wrote manifest to %s.", manifest_path)
        except OSError as exc:
            self._warnings.append(f"Could not write manifest: {exc}")
            logger.warning("Failed to write manifest: %s", exc)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MANIFEST_FILE",
    "ProjectExporter",
    "ExportManifest",
    "ExportResult",
    "FileRecord",
    "build_zip",
    "safe_relative_path",
]

logger.debug("umlforge.exporters loaded.")
