"""
Sample workbooks offered for download.

Both templates are built from constants only, so repeated calls return
byte-identical packages. Memoizing them is left to the caller.
"""
import logging

from workbook_writer import (
    STYLE_CAPTION,
    STYLE_DEFAULT,
    STYLE_EXTRACT_HEADER,
    STYLE_HYPERLINK,
    STYLE_MERGE_HEADER,
    WorkbookWriter,
)

logger = logging.getLogger(__name__)

TEMPLATE_SHEET_TITLE = "Data"
TEMPLATE_COLUMN_WIDTHS = {1: 30, 2: 50}

EXTRACTION_SAMPLES = (
    ("Example Link 1", "https://www.example.com"),
    ("Example Link 2", "https://www.google.com"),
)
EXTRACTION_CAPTION = "Add hyperlinks to Title column. URLs will be extracted automatically."

MERGE_SAMPLES = (
    ("Google", "https://www.google.com"),
    ("GitHub", "https://github.com"),
    ("Stack Overflow", "https://stackoverflow.com"),
)
MERGE_CAPTION = "Add your Title and URL values. URLs will be converted to hyperlinks."


def extraction_template() -> bytes:
    """
    Workbook showing the layout expected by link extraction.

    Title cells carry real hyperlinks; the URL column is left empty for the
    extractor to fill. A gray caption sits below the samples after one blank row.
    """
    writer = WorkbookWriter(TEMPLATE_SHEET_TITLE)
    writer.write_cell(1, 1, "Title", STYLE_EXTRACT_HEADER)
    writer.write_cell(1, 2, "URL", STYLE_EXTRACT_HEADER)

    row = 2
    for title, url in EXTRACTION_SAMPLES:
        writer.write_cell(row, 1, title, STYLE_HYPERLINK, hyperlink=url)
        row += 1

    writer.write_cell(row + 1, 1, EXTRACTION_CAPTION, STYLE_CAPTION)
    writer.set_column_widths(TEMPLATE_COLUMN_WIDTHS)

    content = writer.to_bytes()
    logger.debug("Built extraction template", extra={"output_bytes": len(content)})
    return content


def merge_template() -> bytes:
    """Workbook with Title and URL as plain text, ready to be merged into hyperlinks."""
    writer = WorkbookWriter(TEMPLATE_SHEET_TITLE)
    writer.write_cell(1, 1, "Title", STYLE_MERGE_HEADER)
    writer.write_cell(1, 2, "URL", STYLE_MERGE_HEADER)

    row = 2
    for title, url in MERGE_SAMPLES:
        writer.write_cell(row, 1, title, STYLE_DEFAULT)
        writer.write_cell(row, 2, url, STYLE_DEFAULT)
        row += 1

    writer.write_cell(row + 1, 1, MERGE_CAPTION, STYLE_CAPTION)
    writer.set_column_widths(TEMPLATE_COLUMN_WIDTHS)

    content = writer.to_bytes()
    logger.debug("Built merge template", extra={"output_bytes": len(content)})
    return content
