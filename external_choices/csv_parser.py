"""CSV source parser: delimiter and encoding detection, quoted fields."""

from __future__ import annotations

import csv
import io
from typing import List

from .columns import rows_to_choices
from .errors import EmptyData, MalformedCsv
from .models import Choice
from .normalize import detect_delimiter, normalize_text


def _read_rows(text: str, delimiter: str) -> List[List[str]]:
    # csv handles quoted delimiters and embedded newlines; line splitting would not
    inp = io.StringIO(text, newline="")
    reader = csv.reader(inp, delimiter=delimiter)
    try:
        return list(reader)
    except csv.Error as exc:
        raise MalformedCsv(f"line {reader.line_num}: {exc}") from exc


def parse(data: bytes, label_column: str = "", value_column: str = "") -> List[Choice]:
    if not data:
        raise EmptyData("CSV data is empty.")

    text = normalize_text(data)
    delimiter = detect_delimiter(text)
    rows = _read_rows(text, delimiter)

    return rows_to_choices(rows, label_column, value_column, source="CSV")


def get_columns(data: bytes) -> List[str]:
    if not data:
        raise EmptyData("CSV data is empty.")

    text = normalize_text(data)
    delimiter = detect_delimiter(text)

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    try:
        header = next(reader, [])
    except csv.Error as exc:
        raise MalformedCsv(str(exc)) from exc

    return [name.strip() for name in header]
