"""
tests/test_generator_exporters.py
Integration tests for umlforge.generator (DiagramTranslator) and
umlforge.exporters (ProjectExporter).

Tests cover:
- Loading diagram files (YAML, JSON, missing, malformed)
- Splitting configuration from the snapshot
- Full in-memory translation and the result envelope
- Strict vs non-strict validation
- Export to disk, with and without zip archives
- Path safety and deterministic archives
"""

from __future__ import annotations

import asyncio
import io
import json
import pathlib
import zipfile
from typing import Any, Dict

import pytest

from umlforge.exporters import MANIFEST_FILE, ProjectExporter, build_zip, safe_relative_path
from umlforge.generator import (
    DEFAULT_TARGETS,
    DiagramTranslator,
    load_diagram_file,
    parse_raw_diagram,
    run_generator,
    translate,
)
from umlforge.generators.base import GenerationContext
from umlforge.models import TargetKind, TranslationConfig

RESERVED_TABLE_SNAPSHOT: Dict[str, Any] = {"classes": [{"name": "Value", "attributes": ["+ x: int"]}]}


# ===========================================================================
# File loading
# ===========================================================================


class TestLoadDiagramFile:
    """load_diagram_file dispatches on the extension."""

    def test_yaml(self, example_yaml_path: pathlib.Path) -> None:
        data = load_diagram_file(example_yaml_path)
        assert data["title"] == "Tienda Online"
        assert len(data["classes"]) == 6

    def test_json(self, example_dict: Dict[str, Any], tmp_path: pathlib.Path) -> None:
        path = tmp_path / "diagram.json"
        path.write_text(json.dumps(example_dict), encoding="utf-8")
        assert load_diagram_file(path) == example_dict

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_diagram_file(tmp_path / "nope.yaml")

    def test_directory_rejected(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ValueError):
            load_diagram_file(tmp_path)

    def test_bad_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_diagram_file(path)

    def test_json_array_rejected(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError, match="JSON object"):
            load_diagram_file(path)


# ===========================================================================
# Configuration
# ===========================================================================


class TestParseRawDiagram:
    """Config comes from the ``config`` key; overrides win."""

    def test_config_from_file(self, example_dict: Dict[str, Any]) -> None:
        extraction, config = parse_raw_diagram(example_dict)
        assert extraction.ir.title == "Tienda Online"
        assert config.package_name == "com.tienda"
        assert config.project_version == "1.0.0"

    def test_overrides_win_and_none_ignored(self, example_dict: Dict[str, Any]) -> None:
        _extraction, config = parse_raw_diagram(
            example_dict, {"package_name": "com.otra", "project_version": None}
        )
        assert config.package_name == "com.otra"
        assert config.project_version == "1.0.0"

    def test_snapshot_under_diagram_key(self, association_snapshot: Dict[str, Any]) -> None:
        extraction, _config = parse_raw_diagram({"diagram": association_snapshot})
        assert [c.name for c in extraction.ir.classes] == ["Usuario", "Pedido"]

    def test_invalid_config_raises_value_error(self, example_dict: Dict[str, Any]) -> None:
        example_dict["config"]["no_such_option"] = True
        with pytest.raises(ValueError, match="Config validation failed"):
            parse_raw_diagram(example_dict)


# ===========================================================================
# Single generator runs
# ===========================================================================


class TestRunGenerator:
    """run_generator wraps files in a GenerationResult."""

    def test_success(self, example_context: GenerationContext) -> None:
        result = run_generator(example_context, "schema")
        assert result.success
        assert result.target == "schema"
        assert result.counts.classes == 6
        assert result.archive_name is None

    def test_archive_name_carried(self, example_context: GenerationContext) -> None:
        result = run_generator(example_context, TargetKind.BACKEND)
        assert result.archive_name == "tienda-online-SpringBoot.zip"

    def test_unknown_target(self, example_context: GenerationContext) -> None:
        with pytest.raises(ValueError):
            run_generator(example_context, "cobol")


# ===========================================================================
# In-memory translation
# ===========================================================================


class TestTranslate:
    """DiagramTranslator.translate without output directory."""

    def test_default_targets(self, example_dict: Dict[str, Any]) -> None:
        report = DiagramTranslator().translate(example_dict)
        assert report.success, report.summary()
        assert list(report.results) == [t.value for t in DEFAULT_TARGETS]
        assert list(report.results) == ["schema", "backend", "mobile", "api-collection"]
        assert report.output_directory == ""
        assert report.manifest is None

    def test_envelope(self, example_dict: Dict[str, Any]) -> None:
        envelope = DiagramTranslator().translate(example_dict).envelope()
        assert envelope["success"] is True
        assert envelope["counts"] == {"classes": 6, "relationships": 5}
        assert "schema" in envelope["message"]

    def test_selected_targets_deduplicated(self, example_dict: Dict[str, Any]) -> None:
        report = DiagramTranslator().translate(
            example_dict, targets=["xmi", "interchange", "xmi"]
        )
        assert list(report.results) == ["xmi", "interchange"]

    def test_unknown_target_is_input_error(self, example_dict: Dict[str, Any]) -> None:
        report = DiagramTranslator().translate(example_dict, targets=["cobol"])
        assert report.success is False
        assert report.results == {}
        assert "Unknown target" in report.input_errors[0]
        assert report.envelope()["error"] == report.input_errors[0]

    def test_strict_validation_stops(self, example_dict: Dict[str, Any]) -> None:
        report = DiagramTranslator().translate(
            example_dict, config_overrides={"base_url": "localhost"}
        )
        assert report.success is False
        assert report.results == {}
        assert report.validation_errors[0].startswith("[ERROR] INVALID_BASE_URL")

    def test_non_strict_validation_continues(self, example_dict: Dict[str, Any]) -> None:
        report = DiagramTranslator(strict_validation=False).translate(
            example_dict, targets=["schema"], config_overrides={"base_url": "localhost"}
        )
        assert report.success, report.summary()
        assert report.validation_errors
        assert "schema" in report.results

    def test_reserved_table_name_only_warns(self) -> None:
        report = DiagramTranslator().translate(RESERVED_TABLE_SNAPSHOT, targets=["schema"])
        assert report.success, report.summary()
        assert any("TABLE_NAME_SQL_RESERVED" in w for w in report.validation_warnings)
        assert "CREATE TABLE `values` (" in report.results["schema"].files["database_schema.sql"]

    def test_dropped_self_inheritance_keeps_valid_links(self) -> None:
        snapshot = {
            "title": "Zoo",
            "classes": [
                {"id": "a", "name": "Animal", "attributes": ["- nombre: String"]},
                {"id": "p", "name": "Perro", "attributes": ["+ raza: String", "+ raza: String"]},
            ],
            "links": [
                {"sourceId": "p", "targetId": "a", "kind": "inheritance"},
                {"sourceId": "a", "targetId": "a", "kind": "inheritance"},
            ],
        }
        report = DiagramTranslator().translate(snapshot, targets=["schema"])
        assert report.success, report.summary()
        assert report.validation_errors == []
        sql = report.results["schema"].files["database_schema.sql"]
        assert "`animal_id` INT NOT NULL UNIQUE" in sql
        assert sql.count("`raza` VARCHAR(255)") == 1

    def test_fail_on_warnings(self, example_dict: Dict[str, Any]) -> None:
        report = DiagramTranslator(fail_on_warnings=True).translate(example_dict)
        assert report.success is False
        assert any("MANY_TO_MANY_JOIN_TABLE" in w for w in report.validation_warnings)

    def test_validate_only(self, example_dict: Dict[str, Any]) -> None:
        report = DiagramTranslator().validate(example_dict)
        assert report.success
        assert report.results == {}
        assert report.counts.classes == 6

    def test_async(self, example_dict: Dict[str, Any]) -> None:
        sync_report = DiagramTranslator().translate(example_dict, targets=["schema", "api-collection"])
        async_report = asyncio.run(
            DiagramTranslator().translate_async(example_dict, targets=["schema", "api-collection"])
        )
        assert async_report.success
        assert (
            async_report.results["api-collection"].files
            == sync_report.results["api-collection"].files
        )

    def test_module_level_translate_is_lenient(self) -> None:
        report = translate(
            RESERVED_TABLE_SNAPSHOT, ["schema"], package_name="com.valores", base_url="localhost"
        )
        assert report.success
        assert report.validation_errors
        assert report.config is not None
        assert report.config.package_name == "com.valores"

    def test_summary_lists_targets(self, example_dict: Dict[str, Any]) -> None:
        summary = DiagramTranslator().translate(example_dict, targets=["schema"]).summary()
        assert "Translation Report" in summary
        assert "schema" in summary


# ===========================================================================
# Export
# ===========================================================================


class TestExport:
    """Writing artifacts to disk."""

    def test_translate_file_writes_tree(
        self, example_yaml_path: pathlib.Path, tmp_path: pathlib.Path
    ) -> None:
        out = tmp_path / "out"
        report = DiagramTranslator().translate_file(example_yaml_path, output_dir=out)
        assert report.success, report.summary()
        assert (out / "database_schema.sql").is_file()
        assert (out / "postman_collection.json").is_file()
        assert (out / "tienda-online-SpringBoot" / "pom.xml").is_file()
        assert (out / "TiendaOnline_flutter" / "pubspec.yaml").is_file()

        manifest = json.loads((out / MANIFEST_FILE).read_text(encoding="utf-8"))
        assert manifest["total_files"] == report.manifest.total_files
        assert manifest["targets"] == ["schema", "backend", "mobile", "api-collection"]
        assert all(len(f["sha256"]) == 64 for f in manifest["files"])

    def test_translate_file_missing(self, tmp_path: pathlib.Path) -> None:
        report = DiagramTranslator().translate_file(tmp_path / "absent.yaml")
        assert report.success is False
        assert "not found" in report.input_errors[0]

    def test_zip_archives(self, example_yaml_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        out = tmp_path / "zipped"
        report = DiagramTranslator(zip_archives=True).translate_file(
            example_yaml_path, targets=["schema", "backend"], output_dir=out
        )
        assert report.success, report.summary()
        archive = out / "tienda-online-SpringBoot.zip"
        assert archive.is_file()
        assert not (out / "tienda-online-SpringBoot").exists()
        with zipfile.ZipFile(archive) as zf:
            assert "tienda-online-SpringBoot/pom.xml" in zf.namelist()
        assert (out / "database_schema.sql").is_file()

    def test_clean_output_keeps_git_files(
        self, example_dict: Dict[str, Any], tmp_path: pathlib.Path
    ) -> None:
        out = tmp_path / "clean"
        out.mkdir()
        (out / "stale.txt").write_text("old", encoding="utf-8")
        (out / ".gitkeep").write_text("", encoding="utf-8")
        report = DiagramTranslator(clean_output=True).translate(
            example_dict, targets=["schema"], output_dir=out
        )
        assert report.success
        assert not (out / "stale.txt").exists()
        assert (out / ".gitkeep").exists()

    def test_failed_results_are_skipped(
        self, example_context: GenerationContext, tmp_path: pathlib.Path
    ) -> None:
        ok = run_generator(example_context, "schema")
        failed = ok.model_copy(update={"target": "xmi", "success": False, "error": "boom", "files": {}})
        exporter = ProjectExporter(
            TranslationConfig.from_title("Tienda Online"), tmp_path, generate_manifest=False
        )
        result = exporter.export([ok, failed])
        assert result.success
        assert result.manifest.targets == ["schema"]
        assert any("xmi" in w for w in result.warnings)
        assert not (tmp_path / MANIFEST_FILE).exists()


class TestArchiveHelpers:
    """Path validation and zip determinism."""

    @pytest.mark.parametrize("path", ["../escape.txt", "/abs/path.txt", "a/../../b", ""])
    def test_unsafe_paths(self, path: str) -> None:
        with pytest.raises(ValueError, match="Unsafe artifact path"):
            safe_relative_path(path)

    def test_backslashes_normalised(self) -> None:
        assert str(safe_relative_path("lib\\models\\x.dart")) == "lib/models/x.dart"

    def test_build_zip_is_deterministic(self) -> None:
        files = {"b.txt": "dos", "a/uno.txt": "uno"}
        first = build_zip(files, root="proyecto")
        assert first == build_zip(dict(reversed(list(files.items()))), root="proyecto")
        with zipfile.ZipFile(io.BytesIO(first)) as zf:
            assert zf.namelist() == ["proyecto/a/uno.txt", "proyecto/b.txt"]
            assert zf.getinfo("proyecto/b.txt").date_time == (1980, 1, 1, 0, 0, 0)
            assert zf.read("proyecto/a/uno.txt") == b"uno"

    def test_build_zip_rejects_unsafe_entry(self) -> None:
        with pytest.raises(ValueError):
            build_zip({"../x": "nope"})
