"""Command-line entry point: render a Mandelbrot PNG or run a YAML sweep."""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import List, Optional

from .computation import ESCAPE_LIMIT
from .config import (
    RenderConfig,
    load_named_sweep_configs,
    parse_complex,
    parse_pair,
    parse_unsigned,
)
from .execution import run_single_render, run_sweep

DEFAULT_THREADS = 8


class _ArgumentParser(argparse.ArgumentParser):
    """Treat tokens like ``-1.20,0.35`` as positionals rather than options."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._negative_number_matcher = re.compile(r"^-\.?\d.*$")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="mandelbrot",
        description="Plots the Mandelbrot set to a grayscale PNG.",
        usage="%(prog)s FILE PIXELS UPPERLEFT LOWERRIGHT [options]",
        epilog="example: %(prog)s mandel.png 1024x768 -1.20,0.35 -1,0.20",
    )
    parser.add_argument("positional", nargs="*", metavar="ARG", help=argparse.SUPPRESS)
    parser.add_argument("--threads", type=int, default=DEFAULT_THREADS, help="Worker threads / bands")
    parser.add_argument("--limit", type=int, default=ESCAPE_LIMIT, help="Escape-time iteration cap")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--track", action="store_true", help="Log the render to MLflow")
    parser.add_argument("--tracking-uri", type=str, help="MLflow tracking URI")

    parser.add_argument("--sweep", type=str, help="Path to sweep YAML file")
    parser.add_argument("--suite", type=str, help="Name of suite/experiment within sweep file")
    parser.add_argument("--list-suites", action="store_true", help="List suites in sweep file")
    parser.add_argument("--task-id", type=int, help="Run specific config index (for HPC arrays)")
    return parser


def print_usage(prog: str) -> None:
    print(f"{prog} - plots the Mandelbrot set", file=sys.stderr)
    print(f"usage: {prog} FILE PIXELS UPPERLEFT LOWERRIGHT", file=sys.stderr)
    print(f"example: {prog} mandel.png 1024x768 -1.20,0.35 -1,0.20", file=sys.stderr)


def config_from_positionals(positional: List[str], threads: int, limit: int) -> RenderConfig:
    """Build a render config from ``FILE PIXELS UPPERLEFT LOWERRIGHT``.

    Exits the process with a diagnostic when a pair cannot be parsed.
    """
    filename, pixels, upper_left_arg, lower_right_arg = positional

    bounds = parse_pair(pixels, "x", parse_unsigned)
    if bounds is None:
        sys.exit("ERROR: error parsing image dimensions")
    upper_left = parse_complex(upper_left_arg)
    if upper_left is None:
        sys.exit("ERROR: error parsing upper left corner point")
    lower_right = parse_complex(lower_right_arg)
    if lower_right is None:
        sys.exit("ERROR: error parsing lower right corner point")

    try:
        return RenderConfig(
            output=filename,
            width=bounds[0],
            height=bounds[1],
            upper_left=upper_left,
            lower_right=lower_right,
            threads=threads,
            limit=limit,
        )
    except ValueError as exc:
        sys.exit(f"ERROR: {exc}")


def _run_sweep_command(args: argparse.Namespace) -> int:
    sweep_path = Path(args.sweep)

    if args.list_suites:
        for name, configs in load_named_sweep_configs(sweep_path):
            print(f"{name or sweep_path.stem}: {len(configs)} configurations")
        return 0

    if args.task_id is not None and args.suite is None:
        sys.exit("ERROR: --task-id requires --suite")

    suites = load_named_sweep_configs(sweep_path, args.suite)

    exit_code = 0
    for suite_name, configs in suites:
        descriptor = f"{sweep_path}::{suite_name}" if suite_name else str(sweep_path)
        rc = run_sweep(
            configs,
            args.task_id,
            suite_name,
            descriptor,
            track=args.track,
            tracking_uri=args.tracking_uri,
            verbose=not args.quiet,
        )
        exit_code = exit_code or rc
    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)

    if args.sweep:
        if args.positional:
            sys.exit("ERROR: --sweep does not take positional arguments")
        return _run_sweep_command(args)

    if args.suite or args.list_suites or args.task_id is not None:
        sys.exit("ERROR: --suite, --list-suites and --task-id require --sweep")

    if len(args.positional) != 4:
        print_usage(parser.prog)
        print(
            f"ERROR: wrong number of arguments: expected 4, got {len(args.positional)}",
            file=sys.stderr,
        )
        return 1

    config = config_from_positionals(args.positional, args.threads, args.limit)

    try:
        run_single_render(
            config,
            track=args.track,
            tracking_uri=args.tracking_uri,
            verbose=not args.quiet,
        )
    except OSError as exc:
        print(f"ERROR: error writing image: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
