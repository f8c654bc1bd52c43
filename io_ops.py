import logging
import os
import re
import shutil
import tempfile

import file_ops
from errors import AppError, InvalidArgumentError

logger = logging.getLogger(__name__)

COMMENT_IDENTIFIER = "#"

# Lines collected with append_output() until flush_output() writes them
output_lines = []


def read_text(file_path, trim_lines=False):
    """Reads a file and returns its contents as a single string."""
    return "\n".join(read_file(file_path, trim_lines=trim_lines))


def read_file(file_path, skip_empty_lines=False, skip_comment_lines=False,
              trim_lines=False, begin=None, end=None, regex=None):
    """
    Reads a file and returns a list with its lines.

    Args:
        file_path: The file to read
        skip_empty_lines: Skip blank lines
        skip_comment_lines: Skip lines that start with '#'
        trim_lines: Strip leading and trailing whitespace from each line
        begin: Index of the first line to read (0-based, inclusive)
        end: Index of the last line to read (inclusive)
        regex: Keep only the lines that fully match this expression
    """
    if file_path is None:
        raise AppError("The path name for the file to read is None")
    if begin is not None and begin < 0:
        raise InvalidArgumentError(f"Negative begin line index: {begin}")
    if end is not None and end < 0:
        raise InvalidArgumentError(f"Negative end line index: {end}")
    if begin is not None and end is not None and begin > end:
        raise InvalidArgumentError(f"The begin line index ({begin}) exceeds the end line index ({end})")

    pattern = None
    if regex is not None:
        try:
            pattern = re.compile(regex)
        except re.error as e:
            logger.warning(f"Invalid syntax for pattern '{regex}': {e}")

    first = begin or 0
    lines = []
    lines_read = 0
    try:
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            for index, line in enumerate(f):
                if index < first:
                    continue
                if end is not None and index > end:
                    break
                lines_read += 1
                line = line.rstrip("\r\n")
                if trim_lines:
                    line = line.strip()
                if skip_empty_lines and not line.strip():
                    continue
                if skip_comment_lines and line.startswith(COMMENT_IDENTIFIER):
                    continue
                if pattern is not None and not pattern.fullmatch(line):
                    continue
                lines.append(line)
    except OSError as e:
        raise AppError(f"File '{file_path}' does not exist, is a directory rather than a "
                       f"regular file, or cannot be opened for reading: {e}")

    if end is not None and lines_read < end - first + 1:
        raise AppError(f"The file has fewer lines than {end - first + 1}")
    return lines


def process_csv_line(line):
    """
    Splits a CSV line into its columns. A column wrapped in double quotes
    may contain commas; the quotes are dropped.
    """
    columns = []
    begin = 0
    within_quotes = False
    for i, char in enumerate(line):
        if char == '"':
            if within_quotes:
                columns.append(line[begin:i])
            within_quotes = not within_quotes
            begin = i + 1
        elif char == "," and not within_quotes:
            # A comma right after a closing quote ends a column already added
            if i == 0 or line[i - 1] != '"':
                columns.append(line[begin:i])
            begin = i + 1
    if begin <= len(line) and not (line.endswith('"') and begin == len(line)):
        columns.append(line[begin:])
    return columns


def read_csv_file(file_path):
    """
    Reads a CSV file and returns a list of rows, each a list of columns.
    Every row must have the same number of columns as the first one.
    """
    rows = []
    num_columns = None
    for line in read_file(file_path, skip_empty_lines=True, trim_lines=True):
        row = process_csv_line(line)
        if num_columns is None:
            num_columns = len(row)
        elif len(row) != num_columns:
            raise AppError(f"Line '{line}' has {len(row)} columns instead of {num_columns}")
        rows.append(row)
    return rows


def to_csv_line(columns):
    if not columns:
        raise AppError("None or empty list of line columns")
    values = []
    for value in columns:
        value = str(value)
        if "," in value:
            value = f'"{value}"'
        values.append(value)
    return ",".join(values)


def export_to_csv(header, rows, file_path):
    """Writes the header (optional) and rows to a CSV file."""
    if not rows:
        raise AppError("No CSV content to export")
    output = []
    if header:
        num_columns = len(header)
        output.append(to_csv_line(header))
    else:
        if not rows[0]:
            raise AppError("The first CSV row is empty")
        num_columns = len(rows[0])
    for row in rows:
        line = to_csv_line(row)
        if len(row) != num_columns:
            raise AppError(f"Row {row} has {len(row)} columns instead of {num_columns}")
        output.append(line)
    write_file(file_path, output, add_new_line=True)


def read_map_from_file(file_path, delimiter=":", reverse=False,
                       sort_by_key=False, sort_by_value=False):
    """
    Reads a file with one '<key><delimiter><value>' pair per line into a dict.
    With reverse=True the values in the file become the keys.
    """
    if file_path is None:
        raise AppError("The path name for the file to read the map from is None")
    if sort_by_key and sort_by_value:
        raise InvalidArgumentError("Cannot sort the map by the first and the second token at the same time")

    mapping = {}
    for line in read_file(file_path, skip_empty_lines=True, trim_lines=True):
        index = line.find(delimiter)
        if index == -1:
            continue
        key = line[:index].strip()
        value = line[index + len(delimiter):].strip()
        if reverse:
            key, value = value, key
        if key in mapping:
            raise AppError(f"Key '{key}' already exists in the map")
        mapping[key] = value

    # Sorting is by the first/second token in the file, which swap under reverse
    if sort_by_key or sort_by_value:
        by_key = sort_by_key != reverse
        mapping = dict(sorted(mapping.items(), key=lambda kv: kv[0] if by_key else kv[1]))
    return mapping


def write_file(file_path, contents, append=False, add_new_line=False):
    """
    Writes a string or a sequence of strings to a file.
    With add_new_line each string is followed by a newline.
    """
    if file_path is None:
        raise AppError("The path name for the file to write is None")
    if isinstance(contents, str):
        contents = [contents]
    mode = "a" if append else "w"
    try:
        with open(file_path, mode, encoding="utf-8") as f:
            for item in contents:
                f.write(item)
                if add_new_line:
                    f.write("\n")
    except OSError as e:
        raise AppError(f"File '{file_path}' cannot be written: {e}")
    return True


def append_output(line):
    output_lines.append(line + "\n")


def print_output():
    for line in output_lines:
        logger.info(line.rstrip("\n"))


def flush_output(file_path):
    write_file(file_path, output_lines)
    output_lines.clear()


def remove_text_from_file(src_path, dest_path, strings, skip_line=False):
    """
    Removes every occurrence of the given strings from the file, or the
    whole line when skip_line is True, and saves the result to dest_path.

    Returns False (and leaves dest_path alone) if none of the strings occurs
    in the file.
    """
    if not strings:
        raise AppError("The list of strings to exclude is None or empty")
    if any(s is None for s in strings):
        raise AppError("A string in the list of strings to exclude is None")
    file_ops.validate_file_to_read(src_path)
    if dest_path is None:
        raise AppError("The output file path name is None")
    if os.path.isdir(dest_path):
        raise AppError("The output file exists and is a directory")

    changed = False
    fd, temp_path = tempfile.mkstemp(prefix=os.path.basename(src_path), suffix=".tmp")
    try:
        with open(src_path, "r", encoding="utf-8", errors="replace") as src, \
                os.fdopen(fd, "w", encoding="utf-8") as temp:
            for line in src:
                line = line.rstrip("\r\n")
                match = any(s in line for s in strings)
                if match:
                    changed = True
                    if skip_line:
                        continue
                    for s in strings:
                        line = line.replace(s, "")
                temp.write(line + "\n")
        if not changed:
            return False
        shutil.move(temp_path, dest_path)
        return True
    except OSError as e:
        raise AppError(f"I/O error while processing '{src_path}': {e}")
    finally:
        if os.path.exists(temp_path):
            os.remove(temp_path)
