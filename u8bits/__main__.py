"""Command line entry point: generate accessor modules from YAML layouts.

Usage:
    python -m u8bits generate layouts.yaml -o registers.py
    python -m u8bits check layouts.yaml
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from u8bits.codegen.emitter import emit_module
from u8bits.core.exceptions import U8BitsError
from u8bits.utils.config_loader import load_layouts

logger = logging.getLogger("u8bits")


def _generate(args: argparse.Namespace) -> None:
    layout_file = load_layouts(args.layouts)
    source = emit_module(layout_file.layouts, source=Path(args.layouts).name)
    if args.output:
        Path(args.output).write_text(source, encoding="utf-8")
        logger.info("Wrote %d layouts to %s", len(layout_file.layouts), args.output)
    else:
        sys.stdout.write(source)


def _check(args: argparse.Namespace) -> None:
    layout_file = load_layouts(args.layouts)
    # Rendering runs the full validation of every field
    emit_module(layout_file.layouts)
    for layout in layout_file.layouts:
        logger.info("%s: %d fields, %d bytes", layout.name, len(layout.fields), layout.size)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="u8bits",
        description="Generate bit field accessors for byte buffer types",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug output",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="Emit a Python module from a layout file")
    generate.add_argument("layouts", help="YAML layout file")
    generate.add_argument("-o", "--output", help="Output .py file (default: stdout)")
    generate.set_defaults(handler=_generate)

    check = commands.add_parser("check", help="Validate a layout file without writing")
    check.add_argument("layouts", help="YAML layout file")
    check.set_defaults(handler=_check)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        args.handler(args)
    except U8BitsError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
