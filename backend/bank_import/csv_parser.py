"""
CSV parsing utilities for bank exports.

This module turns raw export bytes/text into a header row and a list of
RawRow dictionaries. Bank exports disagree on delimiters and encodings, so
the delimiter is detected from the header line and decoding falls back to
latin-1 when the file is not UTF-8.
"""

import csv
import logging
import re
from typing import Iterable, List, NamedTuple, Optional

from . import config
from .errors import FileDecodeError, FileEmptyError, FileTooLargeError, TooManyRowsError
from .models import RawRow

logger = logging.getLogger(__name__)

DELIMITERS = (",", ";", "\t", "|")
LINE_SPLIT = re.compile(r"\r?\n")


class ParsedFile(NamedTuple):
    headers: List[str]
    rows: List[RawRow]


def check_file_size(size: int, max_size: Optional[int] = None) -> None:
    """
    Reject empty or oversized uploads before anything is parsed.

    Args:
        size: Size of the upload in bytes
        max_size: Limit in bytes (defaults to the configured cap)
    """
    max_size = config.MAX_FILE_SIZE if max_size is None else max_size
    if size == 0:
        raise FileEmptyError("File is empty")
    if size > max_size:
        raise FileTooLargeError(size, max_size)


def decode(contents: bytes) -> str:
    """
    Decode an uploaded file.

    UTF-8 (with or without BOM) is tried first; many European bank exports
    are ISO-8859-1, so that is the fallback. Binary content is rejected.
    """
    try:
        text = contents.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("Upload is not valid UTF-8, decoding as latin-1")
        text = contents.decode("latin-1")
    if "\x00" in text:
        raise FileDecodeError(
            "File encoding error. Please upload a text (CSV) export"
        )
    return text


def detect_delimiter(header_line: str) -> str:
    """
    Pick the delimiter with the most unquoted occurrences in the header line.

    Ties and lines without any candidate fall back to a comma.
    """
    best = ","
    best_count = 0
    for delimiter in DELIMITERS:
        count = 0
        in_quotes = False
        for char in header_line:
            if char == '"':
                in_quotes = not in_quotes
            elif char == delimiter and not in_quotes:
                count += 1
        if count > best_count:
            best_count = count
            best = delimiter
    return best


def split_lines(text: str) -> List[str]:
    """Split text into lines, dropping blank ones."""
    return [line for line in LINE_SPLIT.split(text) if line.strip()]


def tokenize(lines: Iterable[str], delimiter: str) -> List[List[str]]:
    """
    Tokenize lines with quote handling.

    A doubled quote inside a quoted field is a literal quote and a delimiter
    inside quotes is part of the value. Quote state never carries over to
    the next line, so an unbalanced quote only affects its own row.
    """
    records = []
    for line in lines:
        reader = csv.reader([line], delimiter=delimiter, quotechar='"', doublequote=True)
        records.append(next(reader, []))
    return records


def parse(text: str) -> ParsedFile:
    """
    Parse export text into headers and rows.

    Args:
        text: Decoded file contents

    Returns:
        ParsedFile with trimmed headers and one RawRow per data line, in
        file order

    Raises:
        FileEmptyError: If the text has no non-blank lines
    """
    lines = split_lines(text or "")
    if not lines:
        raise FileEmptyError()

    delimiter = detect_delimiter(lines[0])
    records = tokenize(lines, delimiter)
    headers = [h.strip() for h in records[0]]

    rows: List[RawRow] = []
    for values in records[1:]:
        row: RawRow = {}
        for index, header in enumerate(headers):
            row[header] = values[index].strip() if index < len(values) else ""
        rows.append(row)

    logger.debug(
        "Parsed %d rows with %d columns (delimiter %r)", len(rows), len(headers), delimiter
    )
    return ParsedFile(headers=headers, rows=rows)


def check_row_count(rows: List[RawRow], max_rows: Optional[int] = None) -> None:
    max_rows = config.MAX_ROWS if max_rows is None else max_rows
    if len(rows) > max_rows:
        raise TooManyRowsError(len(rows), max_rows)


def parse_upload(contents: bytes, max_size: Optional[int] = None, max_rows: Optional[int] = None) -> ParsedFile:
    """Size check, decode, parse and row-count check for an uploaded file."""
    check_file_size(len(contents), max_size)
    parsed = parse(decode(contents))
    check_row_count(parsed.rows, max_rows)
    return parsed
