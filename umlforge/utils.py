# File: umlforge/utils.py
"""
NexaFlow UMLForge - Utility Functions & Helpers
================================================
Timing, line-count and source-formatting helpers shared by the
generators, the orchestrator and the exporter.

No external dependencies beyond the Python standard library.
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.utils")


# ---------------------------------------------------------------------------
# Indentation & source formatting helpers
# ---------------------------------------------------------------------------


def indent_lines(lines: Sequence[str], level: int = 1, size: int = 4) -> List[str]:
    """Indent a list of lines, returning a new list. O(n)."""
    prefix: str = " " * (level * size)
    return [prefix + line if line.strip() else line for line in lines]


def java_string(value: str) -> str:
    """Quote a value as a Java / Dart string literal."""
    escaped: str = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def sql_string(value: str) -> str:
    """Quote a value as a SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def build_java_imports(imports: Iterable[str]) -> List[str]:
    """
    Build a sorted, de-duplicated Java import block.

    ``java.*`` / ``javax.*`` imports are grouped after the
    third-party ones, separated by a blank line.
    """
    unique: List[str] = sorted(set(i for i in imports if i))
    std: List[str] = [i for i in unique if i.startswith(("java.", "javax."))]
    other: List[str] = [i for i in unique if i not in std]
    lines: List[str] = [f"import {i};" for i in other]
    if other and std:
        lines.append("")
    lines.extend(f"import {i};" for i in std)
    return lines


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


def count_lines(content: str) -> int:
    """Count the number of lines in a string. O(n)."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling translation steps.

    Usage:
        with Timer("resolve relationships") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.info(
            "Timer [%s]: %.4f seconds",
            self.label,
            self.elapsed,
        )

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "indent_lines",
    "java_string",
    "sql_string",
    "build_java_imports",
    "count_lines",
    "Timer",
]

logger.debug("umlforge.utils loaded.")
