from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from src.config.api import Config
from src.errors.api import MergeError
from src.jobcontroller.api import MergeController

__version__ = "1.0.0"

DEFAULT_OUTPUT = "merged.pdf"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-merger",
        description="Merge a main PDF and additional PDFs into one document.",
        add_help=False,
    )
    parser.add_argument("-input", metavar="PATHS", help="comma separated input files, main file first (at least 2)")
    parser.add_argument("-output", metavar="PATH", default=DEFAULT_OUTPUT, help=f"output file (default {DEFAULT_OUTPUT})")
    parser.add_argument("-version", action="version", version=f"pdf-merger {__version__}")
    parser.add_argument("-help", "-h", action="help", help="show this help and exit")
    return parser


def split_inputs(value: str) -> List[str]:
    return [p.strip() for p in value.split(",") if p.strip()]


def print_progress(pct: float, status: str, detail: str) -> None:
    line = f"progress: {pct * 100:.0f}% - {status}"
    if detail:
        line += f": {detail}"
    print(line, flush=True)


def main(argv: Optional[List[str]] = None, config: Optional[Config] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.input:
        parser.error("-input is required")

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    paths = split_inputs(args.input)
    if len(paths) < 2:
        print("error: at least two input files are required (main file plus additional files)", file=sys.stderr)
        return 1

    controller = MergeController(config)
    try:
        controller.validate_files(paths)
    except MergeError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    controller.bus.on_progress(print_progress)
    try:
        result = controller.merge_pdfs(paths[0], paths[1:], args.output)
    except MergeError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if not result.ok:
        print(f"error: {result.details.get('error', 'merge failed')}", file=sys.stderr)
        return 1

    print(f"merged {len(paths)} files into {result.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
