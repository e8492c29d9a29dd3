"""
Output workbook construction.

Every output document gets its own style palette and its own worksheet
relationships; nothing is shared between calls. Serialization pins the
document-property and ZIP entry timestamps so that the same content always
produces the same bytes.
"""
import datetime
import logging
from io import BytesIO
from typing import Dict, NamedTuple, Optional, Tuple
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.writer.excel import ExcelWriter

from utils.cell_address import column_letter

logger = logging.getLogger(__name__)

# Palette positions referenced by the extract, merge and template builders
STYLE_DEFAULT = 0
STYLE_BOLD = 1
STYLE_HYPERLINK = 2
STYLE_EXTRACT_HEADER = 3
STYLE_CAPTION = 4
STYLE_MERGE_HEADER = 5

HYPERLINK_BLUE = "FF0000FF"
CAPTION_GRAY = "FF888888"
EXTRACT_HEADER_FILL = "FFD9EAF7"
MERGE_HEADER_FILL = "FFD9F7E8"

FIXED_DOCUMENT_TIMESTAMP = datetime.datetime(2000, 1, 1, 0, 0, 0)
FIXED_ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class CellStyle(NamedTuple):
    font: Font
    fill: PatternFill


def build_style_palette() -> Tuple[CellStyle, ...]:
    """
    Build a fresh style palette for one output document.

    Positions are fixed: 0 default, 1 bold, 2 hyperlink (bold, blue, underlined),
    3 bold on light blue (extraction header), 4 gray text (captions),
    5 bold on light green (merge header).
    """
    no_fill = PatternFill(fill_type=None)
    return (
        CellStyle(Font(name="Calibri", size=11), no_fill),
        CellStyle(Font(name="Calibri", size=11, bold=True), no_fill),
        CellStyle(Font(name="Calibri", size=11, bold=True, color=HYPERLINK_BLUE, underline="single"), no_fill),
        CellStyle(Font(name="Calibri", size=11, bold=True),
                  PatternFill(fill_type="solid", fgColor=EXTRACT_HEADER_FILL)),
        CellStyle(Font(name="Calibri", size=11, color=CAPTION_GRAY), no_fill),
        CellStyle(Font(name="Calibri", size=11, bold=True),
                  PatternFill(fill_type="solid", fgColor=MERGE_HEADER_FILL)),
    )


class WorkbookWriter:
    """
    Single-sheet workbook under construction.

    Args:
        sheet_title: Name of the only worksheet
    """

    def __init__(self, sheet_title: str):
        self._workbook = Workbook()
        self._sheet = self._workbook.active
        self._sheet.title = sheet_title
        self._palette = build_style_palette()

    @property
    def sheet_title(self) -> str:
        return self._sheet.title

    def write_cell(
        self,
        row: int,
        column: int,
        value: str,
        style: int = STYLE_DEFAULT,
        hyperlink: Optional[str] = None
    ) -> None:
        """
        Write a text cell, replacing whatever was written there before.

        Args:
            row: 1-based row index
            column: 1-based column index
            value: Cell text, always stored as a string
            style: Palette position to apply
            hyperlink: Absolute URL to attach as an external hyperlink
        """
        cell = self._sheet.cell(row=row, column=column)
        cell.value = value
        cell.data_type = "s"
        cell.hyperlink = hyperlink
        palette_entry = self._palette[style]
        cell.font = palette_entry.font
        cell.fill = palette_entry.fill

    def set_column_widths(self, widths: Dict[int, float]) -> None:
        for column, width in widths.items():
            self._sheet.column_dimensions[column_letter(column)].width = width

    def to_bytes(self) -> bytes:
        """Serialize the workbook to an .xlsx package with pinned timestamps."""
        properties = self._workbook.properties
        properties.created = FIXED_DOCUMENT_TIMESTAMP
        properties.modified = FIXED_DOCUMENT_TIMESTAMP

        staging = BytesIO()
        # ExcelWriter.save() closes the archive
        archive = ZipFile(staging, "w", ZIP_DEFLATED, allowZip64=True)
        ExcelWriter(self._workbook, archive).save()

        content = _repack_with_fixed_timestamps(staging.getvalue())
        logger.debug("Serialized workbook", extra={"sheet": self.sheet_title, "output_bytes": len(content)})
        return content


def _repack_with_fixed_timestamps(package: bytes) -> bytes:
    output = BytesIO()
    with ZipFile(BytesIO(package)) as source, ZipFile(output, "w", ZIP_DEFLATED) as target:
        for info in source.infolist():
            entry = ZipInfo(info.filename, date_time=FIXED_ZIP_TIMESTAMP)
            entry.compress_type = ZIP_DEFLATED
            entry.external_attr = 0o600 << 16
            target.writestr(entry, source.read(info.filename))
    return output.getvalue()
