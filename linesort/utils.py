from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any

# Fixed prefix of the output file name in sort mode.
OUTPUT_PREFIX = "sorted_"


# -------------------------
# Path utilities
# -------------------------
def normalize_abs_posix(path: str | Path) -> str:
    """
    Return an absolute POSIX-style path string for the given input.
    Ensures deterministic representation across platforms.
    """
    p = Path(path).resolve()
    return p.as_posix()


def sorted_output_path(input_path: str | Path) -> Path:
    """
    Output path for a sorted copy of input_path: same directory, name
    prefixed with OUTPUT_PREFIX (e.g. data/words.txt -> data/sorted_words.txt).
    """
    p = Path(input_path)
    return p.with_name(f"{OUTPUT_PREFIX}{p.name}")


# -------------------------
# Parameter serialization
# -------------------------
def _sanitize_for_json(obj: Any) -> Any:
    """
    Recursively convert parameter values into JSON-serializable primitives.

    - pathlib.Path -> normalized POSIX string
    - Enums -> member name
    - dicts/lists/tuples -> sanitized containers
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, Path):
        return normalize_abs_posix(obj)
    if hasattr(obj, "name") and isinstance(getattr(obj, "name"), str):
        return obj.name
    if isinstance(obj, dict):
        return {str(k): _sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [_sanitize_for_json(x) for x in obj]
    return str(obj)


def build_effective_parameters(load: Any, order: Any) -> dict[str, Any]:
    """
    Build a JSON-serializable mapping {"load": {...}, "order": {...}} from the
    LoadParams and OrderParams dataclass instances.
    """
    return {
        "load": _sanitize_for_json(dataclasses.asdict(load)),
        "order": _sanitize_for_json(dataclasses.asdict(order)),
    }


def canonical_json_dumps(payload: dict[str, Any]) -> str:
    """
    Deterministic JSON string:
    - separators=(',', ':')
    - sort_keys=True
    - ensure_ascii=False
    """
    return json.dumps(
        payload, ensure_ascii=False, separators=(",", ":"), sort_keys=True
    )
