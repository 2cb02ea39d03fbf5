"""
XLSX source parser.

An XLSX workbook is a zip archive of XML parts. Only the first worksheet is
read; text cells usually point into the shared-string table.
"""

from __future__ import annotations

import logging
import posixpath
import re
import zipfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Union

from .columns import rows_to_choices
from .errors import EmptyData, FileNotFound, NoWorksheet, NoZipSupport, XmlParseFailed, ZipOpenFailed
from .models import Choice

try:
    import zlib
except ImportError:  # interpreter built without zlib
    zlib = None

logger = logging.getLogger(__name__)

SHARED_STRINGS_PART = "xl/sharedStrings.xml"
WORKBOOK_PART = "xl/workbook.xml"
WORKBOOK_RELS_PART = "xl/_rels/workbook.xml.rels"
DEFAULT_SHEET_PART = "xl/worksheets/sheet1.xml"

# XFD, the last column a worksheet can address
MAX_COLUMN_INDEX = 16383

_COLUMN_RE = re.compile(r"^([A-Z]+)")


def _local(tag: str) -> str:
    """Element name without its ``{namespace}`` prefix."""
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if _local(child.tag) == name]


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _attr(element: ET.Element, name: str) -> str:
    """Attribute by local name (relationship ids carry a namespace)."""
    for key, value in element.attrib.items():
        if _local(key) == name:
            return value
    return ""


def column_to_index(cell_ref: str) -> int:
    """Zero-based column of a cell reference: A1 -> 0, Z9 -> 25, AA1 -> 26."""
    match = _COLUMN_RE.match(cell_ref.upper())
    letters = match.group(1) if match else "A"

    index = 0
    for letter in letters:
        index = index * 26 + (ord(letter) - ord("A") + 1)
    return index - 1


def _run_text(si: ET.Element) -> str:
    t = _child(si, "t")
    if t is not None:
        return t.text or ""
    # rich text: concatenate each run
    return "".join(
        (run_t.text or "")
        for run in _children(si, "r")
        for run_t in _children(run, "t")
    )


def load_shared_strings(archive: zipfile.ZipFile) -> List[str]:
    try:
        content = archive.read(SHARED_STRINGS_PART)
    except KeyError:
        return []

    try:
        root = ET.fromstring(content)
    except ET.ParseError:
        logger.warning("Unreadable shared-string table, text cells will be empty")
        return []

    return [_run_text(si) for si in _children(root, "si")]


def _first_sheet_part(archive: zipfile.ZipFile) -> str:
    """Part name of the first sheet listed in the workbook."""
    try:
        workbook = ET.fromstring(archive.read(WORKBOOK_PART))
        rels = ET.fromstring(archive.read(WORKBOOK_RELS_PART))
    except (KeyError, ET.ParseError):
        return DEFAULT_SHEET_PART

    sheets = _child(workbook, "sheets")
    first = _child(sheets, "sheet") if sheets is not None else None
    if first is None:
        return DEFAULT_SHEET_PART

    rel_id = _attr(first, "id")
    for rel in _children(rels, "Relationship"):
        if rel.get("Id") == rel_id:
            target = rel.get("Target", "")
            if target.startswith("/"):
                return target.lstrip("/")
            return posixpath.normpath(posixpath.join("xl", target))

    return DEFAULT_SHEET_PART


def _cell_value(cell: ET.Element, shared_strings: List[str]) -> str:
    cell_type = cell.get("t", "")
    v = _child(cell, "v")
    raw = (v.text or "") if v is not None else ""

    if cell_type == "s":
        try:
            return shared_strings[int(raw)]
        except (ValueError, IndexError):
            return ""

    if cell_type == "inlineStr":
        inline = _child(cell, "is")
        return _run_text(inline) if inline is not None else ""

    if cell_type == "b":
        return "TRUE" if raw == "1" else "FALSE"

    if cell_type == "e":
        return ""

    return raw


def parse_sheet(sheet_xml: bytes, shared_strings: List[str]) -> List[List[str]]:
    try:
        root = ET.fromstring(sheet_xml)
    except ET.ParseError as exc:
        raise XmlParseFailed() from exc

    sheet_data = _child(root, "sheetData")
    if sheet_data is None:
        return []

    rows: List[List[str]] = []
    for row_element in _children(sheet_data, "row"):
        row: List[str] = []
        next_col = 0

        for cell in _children(row_element, "c"):
            ref = cell.get("r")
            col = column_to_index(ref) if ref else next_col
            next_col = col + 1
            if col > MAX_COLUMN_INDEX:
                raise XmlParseFailed("Cell column is beyond the last worksheet column (XFD).")

            if len(row) <= col:
                row.extend([""] * (col + 1 - len(row)))
            row[col] = _cell_value(cell, shared_strings)

        rows.append(row)

    return rows


def extract_rows(file_path: Union[str, Path]) -> List[List[str]]:
    if zlib is None:
        raise NoZipSupport()

    path = Path(file_path)
    if not path.is_file():
        raise FileNotFound("XLSX file not found.")

    try:
        archive = zipfile.ZipFile(path)
    except (zipfile.BadZipFile, OSError) as exc:
        raise ZipOpenFailed() from exc

    with archive:
        try:
            shared_strings = load_shared_strings(archive)
            sheet_xml = archive.read(_first_sheet_part(archive))
        except KeyError as exc:
            raise NoWorksheet() from exc
        except (zipfile.BadZipFile, zlib.error) as exc:
            raise ZipOpenFailed() from exc

    return parse_sheet(sheet_xml, shared_strings)


def parse(file_path: Union[str, Path], label_column: str = "", value_column: str = "") -> List[Choice]:
    rows = extract_rows(file_path)
    return rows_to_choices(rows, label_column, value_column, source="XLSX")


def get_columns(file_path: Union[str, Path]) -> List[str]:
    rows = extract_rows(file_path)
    if not rows:
        raise EmptyData("XLSX file is empty.")
    return [name.strip() for name in rows[0]]
