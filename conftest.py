"""
Pytest configuration file.

This file is automatically loaded by pytest and provides global test configuration.
It ensures the project's source directory is added to the Python path so that
modules can be imported properly during test execution, and provides fixtures
that build small workbooks in memory.
"""
import datetime
import os
import sys
from io import BytesIO

import pytest

# Add the current directory to the Python path
# This ensures imports work correctly when running tests
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from openpyxl import Workbook, load_workbook  # noqa: E402

from processing_config import ProcessingOptions  # noqa: E402


def build_xlsx(rows, hyperlinks=None, title="Sheet1"):
    """
    Build an .xlsx package from a dict of {(row, column): value}.

    Args:
        rows: Cell values keyed by 1-based (row, column)
        hyperlinks: Hyperlink targets keyed by 1-based (row, column)
        title: Worksheet name

    Returns:
        bytes: The serialized workbook
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = title
    for (row, column), value in rows.items():
        sheet.cell(row=row, column=column, value=value)
    for (row, column), target in (hyperlinks or {}).items():
        sheet.cell(row=row, column=column).hyperlink = target
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def read_xlsx(content):
    """Load an output package back with openpyxl and return its active sheet."""
    return load_workbook(BytesIO(content)).active


@pytest.fixture
def options():
    """
    Fixture providing default processing limits independent of the environment.

    Returns:
        ProcessingOptions: Default limits
    """
    return ProcessingOptions(max_file_size_mb=10, max_header_search_rows=10, max_url_length=2000)


@pytest.fixture
def linked_workbook():
    """
    Fixture providing a workbook with a Title column of hyperlinks.

    Layout: header row 1 (Title, Notes), rows 2-3 linked titles, row 4
    unlinked, row 5 blank, row 6 linked.
    """
    return build_xlsx(
        {
            (1, 1): "Title", (1, 2): "Notes",
            (2, 1): "Example", (2, 2): "first",
            (3, 1): "Google",
            (4, 1): "Plain text", (4, 2): "no link",
            (6, 1): "GitHub", (6, 2): "last",
        },
        hyperlinks={
            (2, 1): "https://www.example.com",
            (3, 1): "https://www.google.com",
            (6, 1): "https://github.com",
        },
    )


@pytest.fixture
def merge_workbook():
    """
    Fixture providing a workbook with Title and URL columns as plain text.

    Row 4 has an unsanitizable URL, row 5 is blank and row 6 has a bare host.
    """
    return build_xlsx({
        (1, 1): "Title", (1, 2): "URL",
        (2, 1): "Google", (2, 2): "https://www.google.com",
        (3, 1): "  GitHub  ", (3, 2): "  https://github.com  ",
        (4, 1): "Bad", (4, 2): "javascript:alert(1)",
        (6, 1): "Example", (6, 2): "example.com",
    })


@pytest.fixture
def make_xlsx():
    """
    Fixture providing the in-memory workbook builder.

    Returns:
        Callable: build_xlsx(rows, hyperlinks=None, title="Sheet1") -> bytes
    """
    return build_xlsx


@pytest.fixture
def open_output():
    """
    Fixture providing a loader for output packages.

    Returns:
        Callable: read_xlsx(content) -> openpyxl worksheet
    """
    return read_xlsx


@pytest.fixture
def legacy_workbook():
    """
    Fixture providing a real OLE2 .xls workbook written with xlwt.

    Layout: header row 1 (Title, URL, Added), rows 2-3 plain-text titles and
    URLs with a date in column C, row 4 an unsanitizable URL.
    """
    xlwt = pytest.importorskip("xlwt")

    workbook = xlwt.Workbook()
    sheet = workbook.add_sheet("Legacy")
    date_style = xlwt.XFStyle()
    date_style.num_format_str = "YYYY-MM-DD"
    for column, header in enumerate(["Title", "URL", "Added"]):
        sheet.write(0, column, header)
    rows = [
        ("Google", "google.com", datetime.datetime(2024, 5, 1)),
        ("GitHub", "https://github.com", datetime.datetime(2023, 3, 15)),
        ("Bad", "javascript:alert(1)", None),
    ]
    for row, (title, url, added) in enumerate(rows, start=1):
        sheet.write(row, 0, title)
        sheet.write(row, 1, url)
        if added is not None:
            sheet.write(row, 2, added, date_style)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
