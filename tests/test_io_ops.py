"""
Tests for line-oriented file I/O, CSV and map files
"""

import pytest

import io_ops
from errors import AppError, InvalidArgumentError


def test_read_file_options(text_file):
    path = text_file("  first  \n\n# comment\nlast\n")
    assert io_ops.read_file(path) == ["  first  ", "", "# comment", "last"]
    assert io_ops.read_file(path, skip_empty_lines=True, skip_comment_lines=True,
                            trim_lines=True) == ["first", "last"]


def test_read_file_window_is_inclusive(text_file):
    path = text_file("a\nb\nc\nd\n")
    assert io_ops.read_file(path, begin=1, end=2) == ["b", "c"]
    assert io_ops.read_file(path, begin=2) == ["c", "d"]


def test_read_file_shorter_than_window(text_file):
    path = text_file("a\nb\n")
    with pytest.raises(AppError, match="fewer lines than 5"):
        io_ops.read_file(path, end=4)


def test_read_file_bad_window(text_file):
    path = text_file("a\n")
    with pytest.raises(AppError):
        io_ops.read_file(path, begin=-1)
    with pytest.raises(AppError):
        io_ops.read_file(path, begin=2, end=1)


def test_read_file_regex_keeps_full_matches(text_file):
    path = text_file("1\nx1\n22\n")
    assert io_ops.read_file(path, regex=r"\d+") == ["1", "22"]
    # An invalid expression is ignored
    assert io_ops.read_file(path, regex="(") == ["1", "x1", "22"]


def test_read_file_missing(tmp_path):
    with pytest.raises(AppError, match="does not exist"):
        io_ops.read_file(tmp_path / "missing.txt")


def test_read_text(text_file):
    assert io_ops.read_text(text_file("line 1\nline 2\n")) == "line 1\nline 2"


def test_process_csv_line():
    assert io_ops.process_csv_line('a,"b,c",d') == ["a", "b,c", "d"]
    assert io_ops.process_csv_line('"x",y') == ["x", "y"]
    assert io_ops.process_csv_line('a,"b"') == ["a", "b"]
    assert io_ops.process_csv_line("a,,b") == ["a", "", "b"]


def test_read_csv_file_column_count(text_file):
    path = text_file("name,size\nfoo,1\n\n\"bar, baz\",2\n")
    assert io_ops.read_csv_file(path) == [["name", "size"], ["foo", "1"], ["bar, baz", "2"]]

    bad = text_file("a,b\nc\n", name="bad.csv")
    with pytest.raises(AppError, match="has 1 columns instead of 2"):
        io_ops.read_csv_file(bad)


def test_to_csv_line():
    assert io_ops.to_csv_line(["a", "b,c", 1]) == 'a,"b,c",1'
    with pytest.raises(AppError):
        io_ops.to_csv_line([])


def test_export_to_csv(tmp_path):
    path = tmp_path / "out.csv"
    io_ops.export_to_csv(["image", "text"], [["a.png", "hello, world"]], path)
    assert path.read_text(encoding="utf-8") == 'image,text\na.png,"hello, world"\n'
    assert io_ops.read_csv_file(path)[1] == ["a.png", "hello, world"]


def test_export_to_csv_width_mismatch(tmp_path):
    with pytest.raises(AppError):
        io_ops.export_to_csv(["a", "b"], [["1"]], tmp_path / "out.csv")
    with pytest.raises(AppError):
        io_ops.export_to_csv(None, [], tmp_path / "out.csv")


def test_read_map_from_file(text_file):
    path = text_file("b : 2\na: 1\n\nno delimiter\n")
    mapping = io_ops.read_map_from_file(path, sort_by_key=True)
    assert mapping == {"a": "1", "b": "2"}
    assert list(mapping) == ["a", "b"]

    reversed_map = io_ops.read_map_from_file(path, reverse=True, sort_by_key=True)
    assert list(reversed_map.items()) == [("1", "a"), ("2", "b")]


def test_read_map_from_file_errors(text_file):
    path = text_file("a:1\na:2\n")
    with pytest.raises(AppError, match="already exists"):
        io_ops.read_map_from_file(path)
    with pytest.raises(AppError):
        io_ops.read_map_from_file(path, sort_by_key=True, sort_by_value=True)


def test_write_file(tmp_path):
    path = tmp_path / "out.txt"
    assert io_ops.write_file(path, ["a", "b"], add_new_line=True)
    io_ops.write_file(path, "c", append=True)
    assert path.read_text(encoding="utf-8") == "a\nb\nc"


def test_write_file_into_directory(tmp_path):
    with pytest.raises(AppError, match="cannot be written"):
        io_ops.write_file(tmp_path, "x")


def test_output_buffer(tmp_path):
    io_ops.output_lines.clear()
    io_ops.append_output("first")
    io_ops.append_output("second")
    path = tmp_path / "report.txt"
    io_ops.flush_output(path)
    assert path.read_text(encoding="utf-8") == "first\nsecond\n"
    assert io_ops.output_lines == []


def test_remove_text_from_file(text_file, tmp_path):
    src = text_file("foo bar\nbaz\n")
    dest = tmp_path / "dest.txt"
    assert io_ops.remove_text_from_file(src, dest, ["bar"])
    assert dest.read_text(encoding="utf-8") == "foo \nbaz\n"

    assert io_ops.remove_text_from_file(src, dest, ["bar"], skip_line=True)
    assert dest.read_text(encoding="utf-8") == "baz\n"


def test_remove_text_from_file_no_match(text_file, tmp_path):
    src = text_file("foo\n")
    dest = tmp_path / "dest.txt"
    assert not io_ops.remove_text_from_file(src, dest, ["bar"])
    assert not dest.exists()


def test_remove_text_from_file_bad_arguments(text_file, tmp_path):
    src = text_file("foo\n")
    with pytest.raises(AppError):
        io_ops.remove_text_from_file(src, tmp_path / "dest.txt", [])
    with pytest.raises(AppError):
        io_ops.remove_text_from_file(src, tmp_path / "dest.txt", ["a", None])
    with pytest.raises(AppError, match="is a directory"):
        io_ops.remove_text_from_file(src, tmp_path, ["foo"])


def test_bad_window_is_invalid_argument(text_file):
    with pytest.raises(InvalidArgumentError):
        io_ops.read_file(text_file("a\n"), begin=3, end=1)
