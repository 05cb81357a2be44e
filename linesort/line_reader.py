#!/usr/bin/env python3
"""
Line File Reader
Whole-file line loading and sorted-output writing for linesort, with
consistent error reporting for unreadable or unwritable files.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

DEFAULT_ENCODING = "utf-8"


class LineSortError(Exception):
    """Base exception for linesort file errors."""

    pass


class FileAccessError(LineSortError):
    """Raised when a file cannot be read, decoded or written."""

    pass


def split_lines(text: str) -> list[str]:
    """
    Split text into lines on '\\n'.

    A trailing '\\r' is dropped from each line and a terminating newline does
    not produce an extra empty line. Other separators such as form feeds or
    Unicode line separators stay inside the line.
    """
    if not text:
        return []
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [p[:-1] if p.endswith("\r") else p for p in parts]


class LineFileReader:
    """
    Loads every line of a text file into memory as a pandas Series.

    The whole file is materialised at once; there is no streaming.
    """

    def __init__(
        self, file_path: Union[str, Path], encoding: str = DEFAULT_ENCODING
    ) -> None:
        """
        Initialize the reader with a file path.

        Args:
            file_path: Path to the text file to read
            encoding: Text encoding of the file

        Raises:
            FileNotFoundError: If the specified file does not exist
            FileAccessError: If the path is not a regular file
        """
        self.file_path = Path(file_path)
        self.encoding = encoding
        if not self.file_path.exists():
            raise FileNotFoundError(f"Input file not found: {self.file_path}")
        if not self.file_path.is_file():
            raise FileAccessError(f"Path is not a file: {self.file_path}")

    def read_text(self) -> str:
        """
        Read the raw file contents.

        Raises:
            FileAccessError: If the file cannot be read or decoded
        """
        try:
            return self.file_path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise FileAccessError(f"Error reading {self.file_path}: {e}") from e

    def read_lines(self) -> pd.Series:
        """
        Read all lines of the file.

        Returns:
            pd.Series: One str element per line, indexed 0..n-1
        """
        return pd.Series(split_lines(self.read_text()), dtype=object)

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        pass


def write_lines(
    lines: Iterable[str],
    output_path: Union[str, Path],
    encoding: str = DEFAULT_ENCODING,
) -> Path:
    """
    Write lines joined by '\\n' (no trailing newline) to output_path.

    Args:
        lines: Lines to write, in order
        output_path: Destination file; created or truncated
        encoding: Text encoding for the output

    Returns:
        Path: The path written

    Raises:
        FileAccessError: If the file cannot be written
    """
    output_path = Path(output_path)
    try:
        output_path.write_text("\n".join(lines), encoding=encoding)
    except OSError as e:
        raise FileAccessError(f"Error writing {output_path}: {e}") from e
    return output_path
