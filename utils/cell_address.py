"""
Spreadsheet cell addressing helpers.

Converts between numeric (row, column) pairs and A1-style references such as
"B7". Column letters follow the usual bijective base-26 scheme (A..Z, AA..ZZ,
AAA..XFD) and are delegated to openpyxl's cached lookup tables.
"""
import re
from typing import Tuple

from openpyxl.utils.cell import column_index_from_string, get_column_letter

_REFERENCE_PATTERN = re.compile(r"^\$?([A-Za-z]{1,3})\$?([1-9][0-9]*)$")


def column_letter(index: int) -> str:
    """Return the column letters for a 1-based column index (28 -> "AB")."""
    return get_column_letter(index)


def cell_reference(row: int, column: int) -> str:
    """Build an A1-style reference from a 1-based row and column."""
    if row < 1:
        raise ValueError(f"Row index must be positive, got {row}")
    return f"{column_letter(column)}{row}"


def split_reference(reference: str) -> Tuple[int, int]:
    """
    Parse an A1-style reference into a (row, column) pair.

    Absolute markers ("$B$7") are ignored.

    Raises:
        ValueError: If the text is not a single-cell reference.
    """
    match = _REFERENCE_PATTERN.match(reference.strip())
    if match is None:
        raise ValueError(f"'{reference}' is not a valid cell reference")
    letters, digits = match.groups()
    return int(digits), column_index_from_string(letters)
