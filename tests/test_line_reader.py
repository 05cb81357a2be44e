from pathlib import Path

import pytest

from linesort.line_reader import (
    FileAccessError,
    LineFileReader,
    LineSortError,
    split_lines,
    write_lines,
)
from linesort.utils import (
    build_effective_parameters,
    canonical_json_dumps,
    normalize_abs_posix,
    sorted_output_path,
)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("", []),
        ("\n", [""]),
        ("a", ["a"]),
        ("a\n", ["a"]),
        ("a\nb", ["a", "b"]),
        ("a\n\nb\n", ["a", "", "b"]),
        ("a\r\nb\r\n", ["a", "b"]),
        # Only '\n' separates lines
        ("a\x0cb c", ["a\x0cb c"]),
    ],
)
def test_split_lines(text, expected):
    assert split_lines(text) == expected


def test_reader_returns_series(tmp_path: Path):
    path = tmp_path / "in.txt"
    path.write_text("b\n a\nc", encoding="utf-8")
    with LineFileReader(path) as reader:
        lines = reader.read_lines()
    assert lines.tolist() == ["b", " a", "c"]
    assert list(lines.index) == [0, 1, 2]


def test_reader_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        LineFileReader(tmp_path / "absent.txt")


def test_reader_rejects_directory(tmp_path: Path):
    with pytest.raises(FileAccessError) as excinfo:
        LineFileReader(tmp_path)
    assert "not a file" in str(excinfo.value)
    assert isinstance(excinfo.value, LineSortError)


def test_reader_custom_encoding(tmp_path: Path):
    path = tmp_path / "latin.txt"
    path.write_bytes("caf\xe9\n".encode("latin-1"))
    with pytest.raises(FileAccessError):
        LineFileReader(path).read_lines()
    assert LineFileReader(path, encoding="latin-1").read_lines().tolist() == ["café"]


def test_write_lines_no_trailing_newline(tmp_path: Path):
    out = write_lines(["x", "y"], tmp_path / "out.txt")
    assert out.read_text(encoding="utf-8") == "x\ny"


def test_write_lines_unwritable(tmp_path: Path):
    with pytest.raises(FileAccessError):
        write_lines(["x"], tmp_path / "no_such_dir" / "out.txt")


def test_sorted_output_path_keeps_directory(tmp_path: Path):
    assert sorted_output_path(tmp_path / "words.txt") == tmp_path / "sorted_words.txt"
    assert sorted_output_path("words.txt") == Path("sorted_words.txt")


def test_effective_parameters_are_json_ready(tmp_path: Path):
    from linesort.main import LoadParams, OrderParams

    effective = build_effective_parameters(
        LoadParams(input_path=tmp_path / "in.txt"), OrderParams(column=None)
    )
    assert effective["load"]["input_path"] == normalize_abs_posix(tmp_path / "in.txt")
    assert effective["order"]["mode"] == "LEXICOGRAPHIC"
    assert effective["order"]["column"] is None
    dumped = canonical_json_dumps(effective)
    assert '"mode":"LEXICOGRAPHIC"' in dumped
