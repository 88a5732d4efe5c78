# File: umlforge/cli.py
"""
NexaFlow UMLForge - Command-Line Interface
===========================================

Built on the standard-library ``argparse`` module.

Usage examples::

    # SQL schema + Spring Boot backend into ./out
    python -m umlforge -d tienda.yaml -t schema -t backend -o ./out

    # Every default target, multi-file projects zipped
    python -m umlforge -d tienda.json -o ./out --zip

    # Validate only (no file output)
    python -m umlforge -d tienda.yaml --validate-only

    # Read a photo of a diagram through the vision service
    UMLFORGE_VISION_API_KEY=... python -m umlforge --image board.png \\
        -t interchange -o ./out

Exit codes:
    0 success
    1 validation error
    2 generation error
    3 export error
    4 input/argument error
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from umlforge.models import TargetKind

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``umlforge`` logger.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s", datefmt="%H:%M:%S"
        )
    )

    root_logger: logging.Logger = logging.getLogger("umlforge")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from umlforge import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="umlforge",
        description=(
            "NexaFlow UMLForge - UML class diagram translator.\n\n"
            "Turns a class diagram (JSON/YAML snapshot, XMI, or an image read "
            "by a vision model) into a SQL schema, a Spring Boot backend, a "
            "Flutter app, a Postman collection and interchange documents."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -d tienda.yaml -t schema -t backend -o ./out\n"
            "  %(prog)s -d tienda.json -o ./out --zip\n"
            "  %(prog)s -d tienda.xmi --validate-only\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"NexaFlow UMLForge v{__version__}",
    )

    # --- Input ---
    input_group = parser.add_argument_group("input")
    input_group.add_argument(
        "-d", "--diagram",
        type=str,
        default=None,
        metavar="PATH",
        help="Diagram file (.json, .yaml/.yml or .xmi).",
    )
    input_group.add_argument(
        "--image",
        type=str,
        default=None,
        metavar="PATH",
        help=(
            "Diagram image (PNG/JPEG/WEBP) read by the vision service. "
            "The API key comes from $UMLFORGE_VISION_API_KEY."
        ),
    )

    # --- Output ---
    parser.add_argument(
        "-t", "--target",
        dest="targets",
        action="append",
        default=None,
        choices=[t.value for t in TargetKind],
        help=(
            "Artifact to generate; repeat for several. "
            "Default: schema, backend, mobile, api-collection."
        ),
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Output directory. Required unless --validate-only or --dry-run is set.",
    )
    parser.add_argument(
        "--zip",
        action="store_true",
        default=False,
        help="Package the backend and mobile projects as zip archives.",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the diagram without generating anything.",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run every generator but don't write files; list what would be written.",
    )
    mode_group.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        default=False,
        help="Print the result envelope as JSON instead of the report.",
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--project-name", type=str, default=None, metavar="NAME",
        help="Override the project name derived from the diagram title.",
    )
    config_group.add_argument(
        "--package-name", type=str, default=None, metavar="PKG",
        help="Override the root Java package (e.g. 'com.tienda').",
    )
    config_group.add_argument(
        "--project-version", type=str, default=None, metavar="VER",
        help="Override the project version (e.g. '2.0.0').",
    )
    config_group.add_argument(
        "--base-url", type=str, default=None, metavar="URL",
        help="Backend base URL used by the API collection and the web build.",
    )
    config_group.add_argument(
        "--vision-endpoint", type=str, default=None, metavar="URL",
        help="OpenAI-compatible chat completions endpoint for --image.",
    )
    config_group.add_argument(
        "--vision-model", type=str, default=None, metavar="MODEL",
        help="Vision model name for --image.",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--clean",
        action="store_true",
        default=False,
        help="Clean output directory before writing.",
    )
    behaviour_group.add_argument(
        "--no-strict",
        action="store_true",
        default=False,
        help="Generate even if validation reports errors.",
    )
    behaviour_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat validation warnings as errors.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Config overrides from CLI arguments; unset flags are left out."""
    candidates: Dict[str, Any] = {
        "project_name": args.project_name,
        "package_name": args.package_name,
        "project_version": args.project_version,
        "base_url": args.base_url,
        "vision_endpoint": args.vision_endpoint,
        "vision_model": args.vision_model,
    }
    return {k: v for k, v in candidates.items() if v is not None}


# ---------------------------------------------------------------------------
# Input loading
# ---------------------------------------------------------------------------


def _import_image(image_path: Path, overrides: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Run the vision import; ``None`` on failure (already logged)."""
    from umlforge.models import TranslationConfig
    from umlforge.vision import API_KEY_ENV, VisionClient

    config: TranslationConfig = TranslationConfig.from_title(None, **overrides)
    client: VisionClient = VisionClient.from_config(config, api_key=os.environ.get(API_KEY_ENV))
    result = asyncio.run(client.import_image(image_path))
    if not result.success:
        logger.error("Image import failed: %s", result.error)
        print(f"✗ {result.error}", file=sys.stderr)
        return None
    logger.info(result.message)
    return result.snapshot


def _load_input(args: argparse.Namespace, overrides: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    from umlforge.generator import load_diagram_file

    if args.image:
        return _import_image(Path(args.image).resolve(), overrides)

    diagram_path: Path = Path(args.diagram).resolve()
    try:
        raw: Dict[str, Any] = load_diagram_file(diagram_path)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to load diagram: %s", exc)
        print(f"✗ {exc}", file=sys.stderr)
        return None
    logger.info("Diagram: %s", diagram_path)
    return raw


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def _exit_code_for(report: Any) -> int:
    if report.success:
        return EXIT_SUCCESS
    if report.input_errors:
        return EXIT_INPUT_ERROR
    if report.validation_errors and not report.results:
        return EXIT_VALIDATION_ERROR
    if report.generation_errors:
        return EXIT_GENERATION_ERROR
    if report.export_errors:
        return EXIT_EXPORT_ERROR
    if report.validation_errors or report.validation_warnings:
        return EXIT_VALIDATION_ERROR
    return EXIT_GENERATION_ERROR


def _print_dry_run(report: Any) -> None:
    print("\nFiles that would be written:")
    for name, result in report.results.items():
        prefix: str = ""
        if result.archive_name:
            prefix = result.archive_name.removesuffix(".zip") + "/"
        for rel_path in sorted(result.files):
            print(f"  [{name}] {prefix}{rel_path}")


# ---------------------------------------------------------------------------
# Banner
# ---------------------------------------------------------------------------


def _print_banner() -> None:
    """Print the UMLForge banner."""
    banner: str = r"""
    ╔═══════════════════════════════════════════════════╗
    ║                                                   ║
    ║    NexaFlow UMLForge                              ║
    ║    UML class diagram → schema, backend, mobile    ║
    ║                                                   ║
    ╚═══════════════════════════════════════════════════╝
    """
    print(banner, file=sys.stderr)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    from umlforge.generator import DiagramTranslator, TranslationReport

    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    # --- Verbosity ---
    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)
    if verbosity >= 1:
        _print_banner()

    # --- Argument checks ---
    if bool(args.diagram) == bool(args.image):
        logger.error("Give exactly one of -d/--diagram or --image.")
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    writes: bool = not (args.validate_only or args.dry_run)
    if writes and args.output is None:
        logger.error(
            "Output directory is required for generation. "
            "Use -o/--output, --dry-run or --validate-only."
        )
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    overrides: Dict[str, Any] = _build_config_overrides(args)
    raw: Optional[Dict[str, Any]] = _load_input(args, overrides)
    if raw is None:
        sys.exit(EXIT_INPUT_ERROR)

    translator: DiagramTranslator = DiagramTranslator(
        strict_validation=not args.no_strict,
        fail_on_warnings=args.fail_on_warnings,
        zip_archives=args.zip,
        clean_output=args.clean,
    )

    report: TranslationReport
    if args.validate_only:
        report = translator.validate(raw, config_overrides=overrides)
    else:
        output_dir: Optional[Path] = Path(args.output).resolve() if writes else None
        if output_dir is not None:
            logger.info("Output:  %s", output_dir)
        report = translator.translate(
            raw,
            targets=args.targets,
            output_dir=output_dir,
            config_overrides=overrides,
        )

    if args.json_output:
        print(json.dumps(report.envelope(), indent=2, ensure_ascii=False))
    elif not args.quiet:
        print(report.summary())
        if args.dry_run:
            _print_dry_run(report)

    exit_code: int = _exit_code_for(report)
    if exit_code == EXIT_SUCCESS:
        logger.info("Translation completed successfully.")
    else:
        logger.error("Translation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("umlforge.cli loaded.")
