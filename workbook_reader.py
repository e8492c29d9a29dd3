"""
Read-only access to the first worksheet of an uploaded workbook.

ZIP-based packages (.xlsx) are parsed with openpyxl and legacy OLE2 workbooks
(.xls) with xlrd. Both are reduced to the same small view: rows of present
cells with resolved text and, where the cell carries one, the absolute target
of its hyperlink.
"""
import datetime
import logging
from dataclasses import dataclass, field
from io import BytesIO
from itertools import groupby
from typing import Dict, Iterator, List, Optional, Tuple
from xml.etree.ElementTree import ParseError
from zipfile import BadZipFile

import openpyxl
import xlrd
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet._read_only import ReadOnlyWorksheet
from xlrd.compdoc import CompDocError

from utils.cell_address import cell_reference, split_reference
from utils.result import Result

logger = logging.getLogger(__name__)

ZIP_SIGNATURE = b"\x50\x4B\x03\x04"
OLE2_SIGNATURE = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"


@dataclass(frozen=True)
class SheetCell:
    """A present cell: position, resolved text and optional hyperlink target."""
    row: int
    column: int
    text: str
    hyperlink: Optional[str] = None

    @property
    def address(self) -> str:
        return cell_reference(self.row, self.column)


@dataclass(frozen=True)
class SheetRow:
    index: int
    cells: List[SheetCell]

    def cell_at(self, column: int) -> Optional[SheetCell]:
        for cell in self.cells:
            if cell.column == column:
                return cell
        return None

    def text_at(self, column: int) -> str:
        cell = self.cell_at(column)
        return cell.text if cell is not None else ""

    def has_data(self) -> bool:
        """True when at least one cell holds non-blank text."""
        return any(cell.text.strip() for cell in self.cells)


@dataclass(frozen=True)
class HeaderMatch:
    row_index: int
    column_index: int


@dataclass
class SheetView:
    """
    Rows of one worksheet, in row order, with a hyperlink lookup by address.

    Attributes:
        title: Worksheet name
        source_format: "xlsx" or "xls"
    """
    title: str
    source_format: str
    _rows: List[SheetRow] = field(default_factory=list, repr=False)
    _hyperlinks: Dict[Tuple[int, int], str] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        for row in self._rows:
            for cell in row.cells:
                if cell.hyperlink:
                    self._hyperlinks[(cell.row, cell.column)] = cell.hyperlink

    def rows(self) -> Iterator[SheetRow]:
        """Iterate rows in index order; every call starts from the first row."""
        return iter(self._rows)

    def row(self, index: int) -> Optional[SheetRow]:
        for candidate in self._rows:
            if candidate.index == index:
                return candidate
        return None

    def hyperlink_for(self, address: str) -> Optional[str]:
        """
        Return the absolute hyperlink target of the cell at address, if any.

        Lower-case letters and absolute markers ("$A$2") are accepted.

        Raises:
            ValueError: If address is not a single-cell reference.
        """
        return self._hyperlinks.get(split_reference(address))

    def find_column(self, column_name: str, max_rows: int) -> Optional[HeaderMatch]:
        """
        Locate a header cell by name within the first max_rows rows.

        Rows are scanned in order and cells in stored order; the first cell
        whose text equals column_name, ignoring case, wins. A blank name never
        matches.

        Args:
            column_name: Header text to look for
            max_rows: Highest row index searched

        Returns:
            The header's row and column, or None when not found
        """
        if not column_name or not column_name.strip():
            return None

        target = column_name.casefold()
        for row in self._rows:
            if row.index > max_rows:
                break
            for cell in row.cells:
                if cell.text.casefold() == target:
                    return HeaderMatch(row_index=row.index, column_index=cell.column)
        return None


def resolve_cell_text(value) -> str:
    """
    Turn a stored cell value into the text shown to the user.

    The parsing libraries have already dereferenced shared-string indices, so
    the value is a literal: None, str, bool, int, float or a date/time.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime.datetime):
        if value.time() == datetime.time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def open_workbook(data: bytes) -> Result[SheetView]:
    """
    Parse the first worksheet of a workbook held in memory.

    Args:
        data: The complete file contents, already checked for a known signature

    Returns:
        Result[SheetView]: The worksheet view, or an E003 failure when the
        package cannot be parsed
    """
    if data.startswith(OLE2_SIGNATURE):
        return _open_xls(data)
    return _open_xlsx(data)


def _open_xlsx(data: bytes) -> Result[SheetView]:
    try:
        try:
            workbook = openpyxl.load_workbook(BytesIO(data), data_only=True)
        except KeyError as e:
            # A hyperlink pointing at a missing relationship id aborts the full
            # load; the read-only loader skips hyperlinks, so every link is absent
            logger.warning(
                "Unresolved relationship in package, reading cell values only",
                extra={"error": str(e)}
            )
            workbook = openpyxl.load_workbook(BytesIO(data), data_only=True, read_only=True)
    except (BadZipFile, InvalidFileException, KeyError, ParseError) as e:
        logger.error(
            "Failed to parse spreadsheet package",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return Result.processing_error(
            f"The spreadsheet package could not be parsed: {e}",
            "Open the file in Excel and save it again as .xlsx."
        )

    try:
        if not workbook.worksheets:
            return Result.processing_error("The workbook does not contain any worksheet.")
        worksheet = workbook.worksheets[0]
        rows = _xlsx_rows(worksheet)
    finally:
        workbook.close()

    logger.debug("Parsed xlsx worksheet", extra={"sheet": worksheet.title, "row_count": len(rows)})
    return Result.ok(SheetView(title=worksheet.title, source_format="xlsx", _rows=rows))


def _stored_cells(worksheet) -> Iterator:
    """Yield the cells actually stored in the sheet, in (row, column) order."""
    if isinstance(worksheet, ReadOnlyWorksheet):
        # Unsized, the streaming reader pads a row only up to its last stored cell
        worksheet.reset_dimensions()
        for row_cells in worksheet.iter_rows():
            for cell in row_cells:
                # EmptyCell padding has no position
                if getattr(cell, "row", None) is not None:
                    yield cell
        return

    # iter_rows() would create a Cell for every position of the used range
    cells = worksheet._cells
    for key in sorted(cells):
        yield cells[key]


def _xlsx_rows(worksheet) -> List[SheetRow]:
    rows = []
    for row_index, row_cells in groupby(_stored_cells(worksheet), key=lambda cell: cell.row):
        cells = []
        for cell in row_cells:
            hyperlink = getattr(cell, "hyperlink", None)
            link = hyperlink.target if hyperlink is not None else None
            if cell.value is None and not link:
                continue
            cells.append(SheetCell(
                row=cell.row,
                column=cell.column,
                text=resolve_cell_text(cell.value),
                hyperlink=link or None,
            ))
        if cells:
            rows.append(SheetRow(index=row_index, cells=cells))
    return rows


def _open_xls(data: bytes) -> Result[SheetView]:
    try:
        book = xlrd.open_workbook(file_contents=data, formatting_info=True)
    except (xlrd.XLRDError, CompDocError) as e:
        logger.error(
            "Failed to parse legacy workbook",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return Result.processing_error(
            f"The legacy .xls workbook could not be parsed: {e}",
            "Open the file in Excel and save it as .xlsx."
        )

    if book.nsheets == 0:
        return Result.processing_error("The workbook does not contain any worksheet.")
    sheet = book.sheet_by_index(0)
    links = getattr(sheet, "hyperlink_map", {}) or {}

    rows = []
    for rowx in range(sheet.nrows):
        cells = []
        for colx, cell in enumerate(sheet.row(rowx)):
            link = links.get((rowx, colx))
            target = link.url_or_path if link is not None and link.type == "url" else None
            if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK) and not target:
                continue
            cells.append(SheetCell(
                row=rowx + 1,
                column=colx + 1,
                text=resolve_cell_text(_xls_value(cell, book.datemode)),
                hyperlink=target or None,
            ))
        if cells:
            rows.append(SheetRow(index=rowx + 1, cells=cells))

    logger.debug("Parsed xls worksheet", extra={"sheet": sheet.name, "row_count": len(rows)})
    return Result.ok(SheetView(title=sheet.name, source_format="xls", _rows=rows))


def _xls_value(cell, datemode: int):
    """Convert an xlrd cell to the plain Python value resolve_cell_text expects."""
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return xlrd.error_text_from_code.get(cell.value, "#ERROR")
    if cell.ctype == xlrd.XL_CELL_DATE:
        try:
            return xlrd.xldate_as_datetime(cell.value, datemode)
        except (xlrd.XLDateError, ValueError, OverflowError):
            return cell.value
    return cell.value
