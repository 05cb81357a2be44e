"""
Comparator subsystem for linesort.

Every ordering is expressed as a single "key extraction + value parse" step that
produces one comparable value per line. Both the sort form and the check form
are built on that one step, so a sequence produced by sort_lines() is always
accepted by is_ordered() for the same mode and column.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Iterable, Optional

import numpy as np
import pandas as pd

MONTHS: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

# Substituted for keys that do not parse as a number: orders them first when ascending.
FLOAT_SENTINEL: float = float(np.finfo(np.float64).min)

# Substituted for keys that contain no month abbreviation: orders them after Dec.
MONTH_SENTINEL: int = 13

SUFFIX_SCALES: dict[str, float] = {
    "K": 1_000.0,
    "k": 1_000.0,
    "M": 1_000_000.0,
    "m": 1_000_000.0,
    "G": 1_000_000_000.0,
    "g": 1_000_000_000.0,
}

# Characters with the Unicode White_Space property. Narrower than str.split(),
# which also treats the separators U+001C..U+001F as whitespace.
WHITESPACE_CHARS = (
    "\t\n\x0b\x0c\r \x85\xa0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000"
)
_WHITESPACE_RE = re.compile(f"[{WHITESPACE_CHARS}]+")
TRAILING_WHITESPACE_PATTERN = f"[{WHITESPACE_CHARS}]+\\Z"

# Accepted float syntax: no surrounding blanks, no underscores, no hex.
_FLOAT_RE = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)",
    re.IGNORECASE,
)


class OrderingError(ValueError):
    """Raised when a parsed value cannot take part in a total order (NaN)."""

    pass


class OrderingMode(Enum):
    """The four mutually exclusive comparator strategies."""

    LEXICOGRAPHIC = auto()
    NUMERIC = auto()
    MONTH_NAME = auto()
    SUFFIX_SCALED = auto()


# -------------------------
# Column extraction
# -------------------------
def extract_column(line: str, column: Optional[int]) -> str:
    """
    Return the comparison key for a line.

    With column None the whole line is the key, whitespace included. Otherwise
    the line is split on runs of whitespace and the 1-based token is returned.
    A column below 1 or beyond the token count falls back to the whole line.
    """
    if column is None or column < 1:
        return line
    tokens = [t for t in _WHITESPACE_RE.split(line) if t]
    if column > len(tokens):
        return line
    return tokens[column - 1]


# -------------------------
# Value parsers
# -------------------------
def _parse_float(text: str) -> Optional[float]:
    if not _FLOAT_RE.fullmatch(text):
        return None
    return float(text)


def parse_numeric(key: str) -> float:
    """Parse key as a float; unparseable keys map to FLOAT_SENTINEL."""
    value = _parse_float(key)
    return FLOAT_SENTINEL if value is None else value


def parse_with_suffix(key: str) -> float:
    """
    Parse a human-readable size such as "10K", "2.5M" or "3G".

    Rules:
    - empty key -> FLOAT_SENTINEL
    - single character -> plain float parse, FLOAT_SENTINEL on failure
    - otherwise the last character is the suffix candidate; the prefix is parsed
      as a float with 0.0 (not the sentinel) when it does not parse, then scaled
      by K/M/G (either case). Any other trailing character is dropped and the
      prefix value is returned unscaled.
    """
    if len(key) == 0:
        return FLOAT_SENTINEL
    if len(key) == 1:
        return parse_numeric(key)
    prefix, suffix = key[:-1], key[-1]
    number = _parse_float(prefix)
    if number is None:
        number = 0.0
    return number * SUFFIX_SCALES.get(suffix, 1.0)


def month_rank(key: str) -> int:
    """Index of the first month abbreviation contained in key, else MONTH_SENTINEL."""
    for rank, month in enumerate(MONTHS):
        if month in key:
            return rank
    return MONTH_SENTINEL


# -------------------------
# Generic ordering
# -------------------------
@dataclass(frozen=True)
class Ordering:
    """Value parser plus the numpy dtype its values are compared in."""

    mode: OrderingMode
    parse: Callable[[str], Any]
    dtype: Any
    sentinel: Optional[Any] = None


_ORDERINGS: dict[OrderingMode, Ordering] = {
    OrderingMode.LEXICOGRAPHIC: Ordering(OrderingMode.LEXICOGRAPHIC, str, object),
    OrderingMode.NUMERIC: Ordering(
        OrderingMode.NUMERIC, parse_numeric, np.float64, FLOAT_SENTINEL
    ),
    OrderingMode.MONTH_NAME: Ordering(
        OrderingMode.MONTH_NAME, month_rank, np.int64, MONTH_SENTINEL
    ),
    OrderingMode.SUFFIX_SCALED: Ordering(
        OrderingMode.SUFFIX_SCALED, parse_with_suffix, np.float64, FLOAT_SENTINEL
    ),
}


def ordering_for(mode: OrderingMode) -> Ordering:
    return _ORDERINGS[mode]


def comparison_values(
    lines: Iterable[str], mode: OrderingMode, column: Optional[int]
) -> np.ndarray:
    """
    Compute the parsed value of every line's comparison key.

    Raises:
        OrderingError: If a float value is NaN, since NaN has no place in a total order
    """
    ordering = ordering_for(mode)
    values = np.array(
        [ordering.parse(extract_column(line, column)) for line in lines],
        dtype=ordering.dtype,
    )
    if values.dtype == np.float64 and values.size and np.isnan(values).any():
        bad = int(np.flatnonzero(np.isnan(values))[0])
        raise OrderingError(
            f"Key on line {bad + 1} parses to NaN; {mode.name} ordering is undefined"
        )
    return values


def sentinel_count(values: np.ndarray, mode: OrderingMode) -> int:
    """Number of values that fell back to the mode's sentinel (0 for text)."""
    sentinel = ordering_for(mode).sentinel
    if sentinel is None or not values.size:
        return 0
    return int(np.count_nonzero(values == sentinel))


def order_by_values(lines: pd.Series, values: np.ndarray) -> pd.Series:
    """Reorder lines by precomputed values; unstable for equal values."""
    order = np.argsort(values, kind="quicksort")
    return lines.iloc[order].reset_index(drop=True)


def values_ordered(values: np.ndarray, reverse: bool = False) -> bool:
    """
    True if no adjacent pair of values breaks the order.

    Ascending: a strict decrease between neighbours fails. Descending
    (reverse=True): a strict increase fails. Equal neighbours always pass.
    """
    if values.size < 2:
        return True
    previous, current = values[:-1], values[1:]
    if reverse:
        broken = previous < current
    else:
        broken = current < previous
    return not bool(np.any(broken))


def sort_lines(
    lines: pd.Series, mode: OrderingMode, column: Optional[int] = None
) -> pd.Series:
    """
    Return lines in non-decreasing order of their parsed key values.

    The sort is not stable: lines with equal values may come out in any order.
    """
    return order_by_values(lines, comparison_values(lines, mode, column))


def is_ordered(
    lines: Iterable[str],
    mode: OrderingMode,
    column: Optional[int] = None,
    reverse: bool = False,
) -> bool:
    """True if lines are already in order for mode (descending when reverse)."""
    return values_ordered(comparison_values(lines, mode, column), reverse=reverse)
