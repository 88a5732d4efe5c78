# File: umlforge/__main__.py
"""
NexaFlow UMLForge - Module entry point.

Allows running the translator directly via::

    python -m umlforge -d diagram.yaml -o ./out

This module simply delegates to the CLI entry point defined in ``umlforge.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from umlforge.cli import cli_main

    cli_main()


if __name__ == "__main__":
    main()
