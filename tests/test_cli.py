"""
tests/test_cli.py
Tests for the umlforge command-line interface (umlforge.cli.cli_main).

Every run ends in ``SystemExit``; tests assert on the exit code and on
the captured stdout/stderr.
"""

from __future__ import annotations

import json
import logging
import pathlib
from typing import Any, Dict, Iterator, List

import pytest

from umlforge.cli import (
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    cli_main,
)


@pytest.fixture(autouse=True)
def restore_umlforge_logger() -> Iterator[None]:
    """cli_main reconfigures the package logger; put it back afterwards."""
    package_logger = logging.getLogger("umlforge")
    saved = (list(package_logger.handlers), package_logger.level, package_logger.propagate)
    yield
    package_logger.handlers[:] = saved[0]
    package_logger.setLevel(saved[1])
    package_logger.propagate = saved[2]


def _run(argv: List[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        cli_main(argv)
    return excinfo.value.code


@pytest.fixture()
def reserved_json_path(tmp_path: pathlib.Path) -> pathlib.Path:
    snapshot: Dict[str, Any] = {"classes": [{"name": "Value", "attributes": ["+ x: int"]}]}
    path = tmp_path / "reserved.json"
    path.write_text(json.dumps(snapshot), encoding="utf-8")
    return path


# ===========================================================================
# Argument errors
# ===========================================================================


class TestArguments:
    """Bad invocations exit with the input error code."""

    def test_no_input(self) -> None:
        assert _run([]) == EXIT_INPUT_ERROR

    def test_diagram_and_image_together(self, example_yaml_path: pathlib.Path) -> None:
        assert _run(["-d", str(example_yaml_path), "--image", "x.png", "--dry-run"]) == EXIT_INPUT_ERROR

    def test_output_required_for_generation(self, example_yaml_path: pathlib.Path) -> None:
        assert _run(["-d", str(example_yaml_path)]) == EXIT_INPUT_ERROR

    def test_missing_diagram_file(
        self, tmp_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["-d", str(tmp_path / "absent.yaml"), "--validate-only"]) == EXIT_INPUT_ERROR
        assert "Diagram file not found" in capsys.readouterr().err

    def test_unknown_target_rejected_by_parser(self, example_yaml_path: pathlib.Path) -> None:
        assert _run(["-d", str(example_yaml_path), "-t", "cobol", "--dry-run"]) == 2

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--version"]) == EXIT_SUCCESS
        assert "NexaFlow UMLForge v" in capsys.readouterr().out

    def test_unsupported_image(
        self, tmp_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        image = tmp_path / "board.gif"
        image.write_bytes(b"GIF89a")
        assert _run(["--image", str(image), "--dry-run"]) == EXIT_INPUT_ERROR
        assert "Unsupported image type" in capsys.readouterr().err


# ===========================================================================
# Modes
# ===========================================================================


class TestModes:
    """Validate-only, dry-run, JSON envelope and real output."""

    def test_validate_only(
        self, example_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["-d", str(example_yaml_path), "--validate-only"]) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "Translation Report" in out
        assert "MANY_TO_MANY_JOIN_TABLE" in out

    def test_dry_run_lists_files(
        self, example_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        argv = ["-d", str(example_yaml_path), "--dry-run", "-t", "schema", "-t", "backend"]
        assert _run(argv + ["--package-name", "com.demo"]) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "[schema] database_schema.sql" in out
        assert "[backend] tienda-online-SpringBoot/src/main/java/com/demo/" in out

    def test_json_envelope(
        self, example_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        argv = ["-d", str(example_yaml_path), "--dry-run", "--json", "-t", "api-collection"]
        assert _run(argv) == EXIT_SUCCESS
        envelope = json.loads(capsys.readouterr().out)
        assert envelope["success"] is True
        assert envelope["counts"] == {"classes": 6, "relationships": 5}

    def test_writes_output(self, example_yaml_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        out = tmp_path / "out"
        argv = ["-d", str(example_yaml_path), "-o", str(out), "--zip", "-t", "mobile", "-t", "schema"]
        assert _run(argv) == EXIT_SUCCESS
        assert (out / "TiendaOnline_flutter.zip").is_file()
        assert (out / "database_schema.sql").is_file()
        assert (out / "umlforge_manifest.json").is_file()


# ===========================================================================
# Validation outcomes
# ===========================================================================


class TestValidationExitCodes:
    """Strictness flags decide between exit 0 and exit 1."""

    def test_strict_validation_error(
        self, example_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        argv = ["-d", str(example_yaml_path), "--dry-run", "--json", "--base-url", "localhost"]
        assert _run(argv) == EXIT_VALIDATION_ERROR
        envelope = json.loads(capsys.readouterr().out)
        assert envelope["success"] is False
        assert "INVALID_BASE_URL" in envelope["error"]

    def test_no_strict_generates_anyway(self, example_yaml_path: pathlib.Path) -> None:
        argv = ["-d", str(example_yaml_path), "--dry-run", "--no-strict", "-t", "schema"]
        assert _run(argv + ["--base-url", "localhost"]) == EXIT_SUCCESS

    def test_reserved_table_name_is_not_fatal(
        self, reserved_json_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["-d", str(reserved_json_path), "--dry-run", "-t", "schema"]) == EXIT_SUCCESS
        assert "TABLE_NAME_SQL_RESERVED" in capsys.readouterr().out

    def test_fail_on_warnings(self, example_yaml_path: pathlib.Path) -> None:
        argv = ["-d", str(example_yaml_path), "--validate-only", "--fail-on-warnings"]
        assert _run(argv) == EXIT_VALIDATION_ERROR
