"""PolicyPulse exporter -- command-line entry point.

Pipeline: Fetch -> Normalize -> Score -> Render charts -> Compose -> Paginate -> PDF

Usage:
    python -m policypulse.main --bill 42                       # Single-bill report
    python -m policypulse.main --bill 42 --bill 57 --bill 63   # Comparative report
    python -m policypulse.main --bill "HB 12" --input bills.json --format a4
    python -m policypulse.main --bill 42 --no-charts --orientation landscape
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from policypulse.config import load_config
from policypulse.export.controller import ExportCallbacks, ExportController
from policypulse.schemas.models import ExportOptions, Orientation, PageFormat
from policypulse.sources.api import ApiAnalysisSource
from policypulse.sources.static import StaticAnalysisSource

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="PolicyPulse -- Export bill impact analyses as paginated PDF reports"
    )
    parser.add_argument("--bill", action="append", required=True, metavar="ID",
                        help="Bill id to export (repeat for a comparative report)")
    parser.add_argument("--input", type=Path, metavar="FILE",
                        help="Read bills and analyses from a JSON file instead of the API")
    parser.add_argument("--format", choices=[f.value for f in PageFormat], default=PageFormat.LETTER.value,
                        help="Page format (default: letter)")
    parser.add_argument("--orientation", choices=[o.value for o in Orientation],
                        default=Orientation.PORTRAIT.value, help="Page orientation (default: portrait)")
    parser.add_argument("--no-charts", action="store_true", help="Omit charts")
    parser.add_argument("--no-tables", action="store_true", help="Omit score and comparison tables")
    parser.add_argument("--no-recommendations", action="store_true",
                        help="Omit recommended actions and resource needs")
    parser.add_argument("--no-details", action="store_true", help="Omit per-category impact details")
    parser.add_argument("--output-dir", type=Path, help="Directory for the generated PDF")
    parser.add_argument("--config", type=Path, help="Path to pulse_config.json")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    return parser


def options_from_args(args: argparse.Namespace) -> ExportOptions:
    return ExportOptions(
        include_charts=not args.no_charts,
        include_tables=not args.no_tables,
        include_recommendations=not args.no_recommendations,
        include_impact_details=not args.no_details,
        page_format=PageFormat(args.format),
        orientation=Orientation(args.orientation),
    )


def _print_callbacks() -> ExportCallbacks:
    return ExportCallbacks(
        on_progress=lambda message: print(f"  {message}"),
        on_complete=lambda filename: print(f"\nReport written: {filename}"),
        on_error=lambda reason: print(f"\nError: {reason}", file=sys.stderr),
    )


async def run_export(config: dict, args: argparse.Namespace) -> Path | None:
    """Run one export as described by the parsed CLI arguments."""
    options = options_from_args(args)
    if args.input:
        source = StaticAnalysisSource.from_file(args.input)
        return await _export(source, config, args, options)

    async with ApiAnalysisSource(config) as source:
        return await _export(source, config, args, options)


async def _export(source, config: dict, args: argparse.Namespace, options: ExportOptions) -> Path | None:
    controller = ExportController(source, config=config, output_dir=args.output_dir)
    callbacks = _print_callbacks()
    if len(args.bill) == 1:
        print(f"Exporting analysis for bill {args.bill[0]}...")
        return await controller.export_bill(args.bill[0], options, callbacks)
    print(f"Exporting comparison of {len(args.bill)} bills...")
    return await controller.export_comparison(args.bill, options, callbacks)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"Error: could not load config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        path = asyncio.run(run_export(config, args))
    except (OSError, ValueError) as e:
        print(f"Error: could not read input: {e}", file=sys.stderr)
        sys.exit(1)
    if path is None:
        sys.exit(1)
    print(f"  Path: {path}")


if __name__ == "__main__":
    main()
