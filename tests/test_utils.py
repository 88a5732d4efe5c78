"""
tests/test_utils.py
Unit tests for umlforge.utils helpers.
"""

from __future__ import annotations

import time

from umlforge.utils import (
    Timer,
    build_java_imports,
    count_lines,
    indent_lines,
    java_string,
    sql_string,
)


class TestFormatting:
    """Source-formatting helpers."""

    def test_indent_lines_skips_blank(self) -> None:
        assert indent_lines(["a", "", "b"], level=2) == ["        a", "", "        b"]

    def test_java_string_escapes(self) -> None:
        assert java_string('di "hola"\\') == '"di \\"hola\\"\\\\"'

    def test_sql_string_doubles_quotes(self) -> None:
        assert sql_string("O'Brien") == "'O''Brien'"

    def test_java_imports_grouped(self) -> None:
        lines = build_java_imports(
            ["java.util.List", "jakarta.persistence.Entity", "java.util.List", "", "lombok.Data"]
        )
        assert lines == [
            "import jakarta.persistence.Entity;",
            "import lombok.Data;",
            "",
            "import java.util.List;",
        ]

    def test_java_imports_single_group(self) -> None:
        assert build_java_imports(["java.util.Set"]) == ["import java.util.Set;"]


class TestMetrics:
    """Line counting and timing."""

    def test_count_lines(self) -> None:
        assert count_lines("") == 0
        assert count_lines("a") == 1
        assert count_lines("a\nb\n") == 2
        assert count_lines("a\nb") == 2

    def test_timer(self) -> None:
        with Timer("nap") as timer:
            time.sleep(0.01)
        assert timer.elapsed > 0
        assert "nap" in repr(timer)
