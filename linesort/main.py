#!/usr/bin/env python3
"""
linesort - sort the lines of a text file into a new file, or check their order.

This module exposes three pipeline stages:
- load_lines()
- order_pipeline()
- render_outputs()

Each stage takes explicit parameter objects and returns explicit outputs.
Only render_outputs() touches stdout or writes files.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import pandas as pd

# Support both package and script execution modes
try:
    # When run as a package: python -m linesort.main
    from .comparators import (
        TRAILING_WHITESPACE_PATTERN,
        OrderingMode,
        comparison_values,
        order_by_values,
        ordering_for,
        sentinel_count,
        values_ordered,
    )
    from .line_reader import LineFileReader, LineSortError, write_lines
    from .utils import (
        build_effective_parameters,
        canonical_json_dumps,
        normalize_abs_posix,
        sorted_output_path,
    )
except ImportError:
    # When run directly: python linesort/main.py
    from comparators import (
        TRAILING_WHITESPACE_PATTERN,
        OrderingMode,
        comparison_values,
        order_by_values,
        ordering_for,
        sentinel_count,
        values_ordered,
    )
    from line_reader import LineFileReader, LineSortError, write_lines
    from utils import (
        build_effective_parameters,
        canonical_json_dumps,
        normalize_abs_posix,
        sorted_output_path,
    )

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

SORTED_MESSAGE = "Lines are sorted."
NOT_SORTED_MESSAGE = "Lines are not sorted."


class StepResult:
    """Container for pipeline step results and diagnostics."""

    def __init__(self, label: Optional[str] = None) -> None:
        self.label: Optional[str] = label

        # Line counters
        self.input_lines: int = 0
        self.output_lines: int = 0

        # Diagnostics
        self.warnings: list[str] = []
        self.events: list[str] = []
        self.metrics: dict[str, int | float | str] = {}
        self.skipped_reason: Optional[str] = None

        # Timing
        self.started_at: Optional[float] = None
        self.finished_at: Optional[float] = None
        self.elapsed_ms: Optional[float] = None

    def start(self) -> None:
        import time

        self.started_at = time.perf_counter()

    def stop(self) -> None:
        import time

        self.finished_at = time.perf_counter()
        if self.started_at is not None:
            self.elapsed_ms = (self.finished_at - self.started_at) * 1000.0

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)
        logger.warning(message)

    def add_event(self, message: str) -> None:
        """Add an info-level event message."""
        self.events.append(message)
        logger.info(message)

    def add_metric(self, name: str, value: int | float | str) -> None:
        self.metrics[name] = value

    def set_skipped(self, reason: str, verbose: bool = False) -> None:
        """Mark the step as skipped with a reason."""
        self.skipped_reason = reason
        if verbose:
            self.add_event(f"Step skipped: {reason}")

    def summarize(self) -> str:
        """Produce a concise summary string for diagnostics."""
        lbl = f"{self.label} " if self.label else ""
        parts = [f"{lbl}result: {self.input_lines} → {self.output_lines}"]
        if self.skipped_reason:
            parts.append(f"skipped={self.skipped_reason}")
        if self.elapsed_ms is not None:
            parts.append(f"elapsed_ms={self.elapsed_ms:.1f}")
        if self.metrics:
            parts.append(f"metrics={self.metrics}")
        return " | ".join(parts)


@dataclass
class LoadParams:
    """
    Parameters used when loading the input file.

    Attributes:
        input_path: Path to the text file to read.
        ignore_trailing_blanks: Strip trailing whitespace from every line after loading.
        encoding: Text encoding of the input (and of the sorted output).
        verbose: Log a summary of the trim step.
    """

    input_path: Optional[Path]
    ignore_trailing_blanks: bool = False
    encoding: str = "utf-8"
    verbose: bool = False


@dataclass
class OrderParams:
    """
    Parameters for ordering the loaded lines.

    Attributes:
        mode: Comparator strategy; exactly one per run.
        column: 1-based whitespace column used as the key, or None for the whole line.
            Values below 1 or beyond a line's token count fall back to the whole line.
        reverse: Reverse the final order (sort mode) or check for descending order (check mode).
        unique: Collapse adjacent identical lines after sorting (sort mode only).
        check_only: Report whether the lines are already ordered instead of sorting.
        verbose: Log a summary for every pipeline step.
    """

    mode: OrderingMode = OrderingMode.LEXICOGRAPHIC
    column: Optional[int] = 1
    reverse: bool = False
    unique: bool = False
    check_only: bool = False
    verbose: bool = False


@dataclass
class OrderOutputs:
    lines: pd.Series
    # Set only in check mode
    is_sorted: Optional[bool] = None
    steps: List[StepResult] = field(default_factory=list)


def get_default_params() -> tuple[LoadParams, OrderParams]:
    """Default parameter objects; the CLI overrides only what the user passes."""
    return LoadParams(input_path=None), OrderParams()


def mode_from_flags(numeric: bool, month: bool, suffix: bool) -> OrderingMode:
    """
    Map the mutually exclusive mode flags to a single OrderingMode.

    Raises:
        ValueError: If more than one flag is set
    """
    chosen = [
        mode
        for flag, mode in (
            (numeric, OrderingMode.NUMERIC),
            (month, OrderingMode.MONTH_NAME),
            (suffix, OrderingMode.SUFFIX_SCALED),
        )
        if flag
    ]
    if len(chosen) > 1:
        names = ", ".join(m.name for m in chosen)
        raise ValueError(f"Ordering modes are mutually exclusive, got: {names}")
    return chosen[0] if chosen else OrderingMode.LEXICOGRAPHIC


def _finish_step(result: StepResult, verbose: bool) -> StepResult:
    result.stop()
    if verbose:
        logger.info(result.summarize())
    return result


def trim_trailing_blanks(
    lines: pd.Series, verbose: bool = False
) -> tuple[pd.Series, StepResult]:
    """Strip trailing whitespace from every line."""
    result = StepResult("Trim trailing blanks")
    result.start()
    result.input_lines = len(lines)
    if len(lines):
        trimmed = lines.str.replace(TRAILING_WHITESPACE_PATTERN, "", regex=True)
    else:
        trimmed = lines.copy()
    result.output_lines = len(trimmed)
    changed = int((trimmed != lines).sum())
    result.add_metric("changed_lines", changed)
    if not changed:
        result.set_skipped("no trailing whitespace", verbose)
    return trimmed, _finish_step(result, verbose)


def dedup_adjacent(
    lines: pd.Series, verbose: bool = False
) -> tuple[pd.Series, StepResult]:
    """
    Drop every line that equals the line immediately before it.

    Only neighbours are compared: ["a", "a", "b", "a"] -> ["a", "b", "a"].
    """
    result = StepResult("Adjacent dedup")
    result.start()
    result.input_lines = len(lines)
    kept = lines[lines.ne(lines.shift())].reset_index(drop=True)
    result.output_lines = len(kept)
    removed = result.input_lines - result.output_lines
    result.add_metric("removed_lines", removed)
    if not removed:
        result.set_skipped("no adjacent duplicates", verbose)
    return kept, _finish_step(result, verbose)


def reverse_lines(
    lines: pd.Series, verbose: bool = False
) -> tuple[pd.Series, StepResult]:
    result = StepResult("Reverse")
    result.start()
    result.input_lines = len(lines)
    reversed_lines = lines.iloc[::-1].reset_index(drop=True)
    result.output_lines = len(reversed_lines)
    if len(lines) < 2:
        result.set_skipped("fewer than two lines", verbose)
    return reversed_lines, _finish_step(result, verbose)


def _report_sentinels(result: StepResult, values, params: OrderParams) -> None:
    n_sentinel = sentinel_count(values, params.mode)
    result.add_metric("sentinel_keys", n_sentinel)
    if n_sentinel:
        result.add_warning(
            f"{params.mode.name}: {n_sentinel} of {len(values)} keys "
            f"fell back to sentinel {ordering_for(params.mode).sentinel}"
        )


def load_lines(params: LoadParams) -> pd.Series:
    """
    Load every line of params.input_path into memory.
    No prints; raises exceptions on error.
    """
    if params.input_path is None:
        raise FileNotFoundError("No input file given")
    with LineFileReader(params.input_path, encoding=params.encoding) as reader:
        lines = reader.read_lines()
    logger.debug("Loaded %d lines from %s", len(lines), params.input_path)
    if params.ignore_trailing_blanks:
        lines, _ = trim_trailing_blanks(lines, verbose=params.verbose)
    return lines


def order_pipeline(lines: pd.Series, params: OrderParams) -> OrderOutputs:
    """
    Sort or check lines according to params.

    Check mode evaluates the selected mode (descending when params.reverse) and
    leaves the lines untouched. Sort mode sorts, then optionally collapses
    adjacent duplicates, then optionally reverses.
    """
    steps: List[StepResult] = []
    values = comparison_values(lines, params.mode, params.column)

    if params.check_only:
        result = StepResult(f"Check {params.mode.name}")
        result.start()
        result.input_lines = result.output_lines = len(lines)
        _report_sentinels(result, values, params)
        ok = values_ordered(values, reverse=params.reverse)
        result.add_metric("sorted", str(ok))
        result.add_metric("direction", "descending" if params.reverse else "ascending")
        steps.append(_finish_step(result, params.verbose))
        return OrderOutputs(lines=lines, is_sorted=ok, steps=steps)

    result = StepResult(f"Sort {params.mode.name}")
    result.start()
    result.input_lines = len(lines)
    _report_sentinels(result, values, params)
    ordered = order_by_values(lines, values)
    result.output_lines = len(ordered)
    result.add_metric("column", str(params.column))
    steps.append(_finish_step(result, params.verbose))

    if params.unique:
        ordered, step = dedup_adjacent(ordered, verbose=params.verbose)
        steps.append(step)

    if params.reverse:
        ordered, step = reverse_lines(ordered, verbose=params.verbose)
        steps.append(step)

    return OrderOutputs(lines=ordered, steps=steps)


def verdict_message(is_sorted: bool) -> str:
    return SORTED_MESSAGE if is_sorted else NOT_SORTED_MESSAGE


def render_outputs(
    outputs: OrderOutputs, params_load: LoadParams, params_order: OrderParams
) -> Optional[Path]:
    """
    Emit the result: the check verdict on stdout, or the sorted lines to
    sorted_<input name> next to the input file.

    Returns:
        Path of the written file in sort mode, None in check mode.
    """
    if params_order.check_only:
        print(verdict_message(bool(outputs.is_sorted)))
        return None

    output_path = sorted_output_path(params_load.input_path)
    write_lines(outputs.lines, output_path, encoding=params_load.encoding)
    logger.info("Wrote %d lines to %s", len(outputs.lines), str(output_path))
    return output_path


def _orchestrate(params_load: LoadParams, params_order: OrderParams) -> Optional[Path]:
    """
    Run the full pipeline given explicit parameter objects.
    Split from main() so the CLI can remain thin and tests can call this directly.
    """
    effective = build_effective_parameters(params_load, params_order)
    logger.debug("Effective parameters: %s", canonical_json_dumps(effective))

    lines = load_lines(params_load)
    outputs = order_pipeline(lines, params_order)
    return render_outputs(outputs, params_load, params_order)


def _column_index(value: str) -> Optional[int]:
    """
    argparse type for -k. Non-negative integers are taken as given; anything
    else means "no column" and the whole line is used as the key.
    """
    text = value
    if text.startswith("+"):
        text = text[1:]
    if text.isascii() and text.isdigit():
        return int(text)
    return None


def _build_cli_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="linesort",
        description="Sort the lines of FILENAME into sorted_FILENAME, or check their order.",
        # -h selects suffix-scaled ordering, so help is long-form only.
        add_help=False,
    )
    parser.add_argument(
        "--help", action="help", help="Show this help message and exit."
    )
    parser.add_argument("filename", help="Input text file.")
    parser.add_argument(
        "-k",
        dest="column",
        type=_column_index,
        default="1",
        metavar="N",
        help="1-based whitespace-separated column used as the sort key (default: 1).",
    )

    g_mode = parser.add_mutually_exclusive_group()
    g_mode.add_argument(
        "-n", dest="numeric", action="store_true", help="Compare keys as numbers."
    )
    g_mode.add_argument(
        "-M", dest="month", action="store_true", help="Compare keys by month name."
    )
    g_mode.add_argument(
        "-h",
        dest="suffix",
        action="store_true",
        help="Compare keys as human-readable sizes (K, M, G).",
    )

    parser.add_argument(
        "-r", dest="reverse", action="store_true", help="Reverse the result."
    )
    parser.add_argument(
        "-u",
        dest="unique",
        action="store_true",
        help="Drop lines equal to the line before them after sorting.",
    )
    parser.add_argument(
        "-b",
        dest="ignore_trailing_blanks",
        action="store_true",
        help="Ignore trailing whitespace on every line.",
    )
    parser.add_argument(
        "-c",
        dest="check",
        action="store_true",
        help="Check whether the input is sorted; requires -M, -h and -n.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log a summary for every pipeline step.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show full tracebacks for debugging (also LINESORT_DEBUG=1).",
    )
    return parser


def _validate_args(parser, args) -> None:
    # -c is only accepted together with all three mode flags, which the mode
    # group never allows, so check mode is unreachable from the command line.
    if args.check and not (args.month and args.suffix and args.numeric):
        parser.error("argument -c: requires -M, -h and -n")


def _args_to_params(args) -> tuple[LoadParams, OrderParams]:
    """
    Merge CLI args over defaults to build parameter objects.
    Only override values explicitly provided by user; otherwise keep defaults.
    """
    d_load, d_order = get_default_params()

    params_load = LoadParams(
        input_path=(
            Path(args.filename) if getattr(args, "filename", None) else d_load.input_path
        ),
        ignore_trailing_blanks=bool(
            getattr(args, "ignore_trailing_blanks", d_load.ignore_trailing_blanks)
        ),
        encoding=d_load.encoding,
        verbose=bool(getattr(args, "verbose", d_load.verbose)),
    )
    params_order = OrderParams(
        mode=mode_from_flags(
            getattr(args, "numeric", False),
            getattr(args, "month", False),
            getattr(args, "suffix", False),
        ),
        column=getattr(args, "column", d_order.column),
        reverse=bool(getattr(args, "reverse", d_order.reverse)),
        unique=bool(getattr(args, "unique", d_order.unique)),
        check_only=bool(getattr(args, "check", d_order.check_only)),
        verbose=bool(getattr(args, "verbose", d_order.verbose)),
    )
    return params_load, params_order


def main(argv: Optional[List[str]] = None) -> None:
    """
    CLI entry point. Parses arguments, builds parameter objects, then orchestrates.
    """
    import sys

    if argv is None:
        argv = sys.argv[1:]

    parser = _build_cli_parser()
    args = parser.parse_args(argv)
    _validate_args(parser, args)

    debug_mode = bool(
        getattr(args, "debug", False) or os.getenv("LINESORT_DEBUG", "") == "1"
    )
    if debug_mode:
        logger.setLevel(logging.DEBUG)

    params_load, params_order = _args_to_params(args)
    logger.debug("Input file: %s", normalize_abs_posix(params_load.input_path))

    try:
        _orchestrate(params_load, params_order)
    except (FileNotFoundError, LineSortError) as e:
        # Concise, user-facing errors for missing or unreadable files.
        logger.info("User-facing error: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:
        # Unexpected/internal errors: log full exception. Show traceback only when debugging.
        logger.exception("Unhandled exception during execution")
        if debug_mode:
            import traceback

            traceback.print_exc()
        else:
            print(f"Unexpected error: {e}", file=sys.stderr)
            print(
                "Run with --debug or set LINESORT_DEBUG=1 to see the full traceback.",
                file=sys.stderr,
            )
        sys.exit(1)


if __name__ == "__main__":
    main()
