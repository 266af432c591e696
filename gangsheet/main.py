#!/usr/bin/env python3
"""
Gang Sheet - Command Line Entry Point

Run with: gangsheet <command> ... or python -m gangsheet.main
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import SHEET_SIZES, REFERENCE_PPI, EditorSettings, ExportSettings
from .geometry import find_overlaps, inches_to_units
from .image import Compositor, CompositorError, ExportRequest
from .io import ProjectFormatError, load_project

logger = logging.getLogger(__name__)


def _load_design(path: str):
    try:
        return load_project(path)
    except OSError as e:
        raise SystemExit(f"Cannot read {path}: {e.strerror or e}")
    except ProjectFormatError as e:
        raise SystemExit(f"Invalid design {path}: {e}")


def cmd_export(args) -> int:
    design = _load_design(args.design)
    compositor = Compositor(ExportSettings.from_env())
    try:
        result = compositor.export(ExportRequest(sheet=design.sheet, objects=design.objects))
    except CompositorError as e:
        print(f"Export failed: {e}", file=sys.stderr)
        return 1

    output = Path(args.output) if args.output else Path(result.filename)
    output.write_bytes(result.png_bytes)

    print(f"Wrote {output} ({result.width}x{result.height} px at {result.dpi:g} DPI)")
    print(f"Images: {result.succeeded}/{result.total} rendered, {result.skipped} skipped "
          f"in {result.elapsed_seconds:.2f}s")
    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    for obj_id, reason in result.failures:
        print(f"  {obj_id}: {reason}", file=sys.stderr)
    return 0


def cmd_check(args) -> int:
    design = _load_design(args.design)
    buffer_in = args.buffer if args.buffer is not None else EditorSettings().overlap_buffer_inches
    pairs = find_overlaps(design.objects, inches_to_units(buffer_in, REFERENCE_PPI))
    if not pairs:
        print(f"No overlaps ({len(design.objects)} objects, buffer {buffer_in:g} in)")
        return 0
    print(f"{len(pairs)} overlapping pair(s) with buffer {buffer_in:g} in:")
    for id_a, id_b in sorted(pairs):
        print(f"  {id_a} <-> {id_b}")
    return 1


def cmd_sizes(args) -> int:
    for sheet in SHEET_SIZES:
        print(f"{sheet.label:<12} {sheet.width:g} x {sheet.height:g} units")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gangsheet",
        description="Gang sheet builder: print export and layout checks",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser("export", help="Render a design to a print PNG")
    export.add_argument("design", help="Design JSON file")
    export.add_argument("-o", "--output", help="Output PNG path")
    export.set_defaults(func=cmd_export)

    check = subparsers.add_parser("check", help="List overlapping objects")
    check.add_argument("design", help="Design JSON file")
    check.add_argument("--buffer", type=float, default=None,
                       help="Spacing buffer per object, in inches")
    check.set_defaults(func=cmd_check)

    sizes = subparsers.add_parser("sizes", help="List the sheet size catalog")
    sizes.set_defaults(func=cmd_sizes)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the gangsheet command."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
