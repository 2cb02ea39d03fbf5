"""
Column/property resolution and the tabular row pipeline shared by CSV and XLSX.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from .errors import NoChoices, NoDataRows
from .models import Choice

logger = logging.getLogger(__name__)


def resolve_column_index(header: Sequence[str], selector: str, default: int = 0) -> int:
    """
    Map a selector onto a header position.

    Empty selector -> ``default``. A non-negative integer inside the header is
    used as a position. Otherwise an exact, case-sensitive name match.
    Anything unresolvable silently becomes ``default``.
    """
    if selector == "":
        return default

    if selector.isascii() and selector.isdigit():
        index = int(selector)
        if index < len(header):
            return index
        logger.debug("Column index %s out of range (%d columns)", selector, len(header))
        return default

    for index, name in enumerate(header):
        if name == selector:
            return index

    logger.debug("Column %r not in header, using column %d", selector, default)
    return default


def resolve_property_name(properties: Sequence[str], selector: str, default_index: int = 0) -> str:
    if selector != "" and selector in properties:
        return selector

    if default_index < len(properties):
        return properties[default_index]

    return properties[0] if properties else ""


def _cell(row: Sequence[str], index: int) -> str:
    return row[index].strip() if index < len(row) else ""


def rows_to_choices(
    rows: List[List[str]],
    label_selector: str = "",
    value_selector: str = "",
    source: str = "source",
) -> List[Choice]:
    """Turn header + data rows into choices, in row order."""
    if len(rows) < 2:
        raise NoDataRows(f"{source} must have a header row and at least one data row.")

    header = [name.strip() for name in rows[0]]

    label_index = resolve_column_index(header, label_selector, 0)
    value_index = resolve_column_index(header, value_selector, label_index)

    single_column = len(header) == 1

    choices: List[Choice] = []
    for row in rows[1:]:
        if not row or all(cell.strip() == "" for cell in row):
            continue

        label = _cell(row, label_index)
        if label == "":
            continue

        value = label if single_column else _cell(row, value_index)

        choices.append(Choice(label=label, value=value))

    if not choices:
        raise NoChoices(f"No valid choices found in {source}.")

    return choices
