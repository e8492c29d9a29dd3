"""
Excel Link Extractor Application

This package provides an API for working with hyperlinks in Excel files.
It extracts the hyperlink targets of a named column into a new workbook,
merges Title and URL columns into clickable hyperlinks, and serves two
sample template workbooks.

Key modules:
- main.py: FastAPI application with API endpoints
- link_processor.py: Extract and merge operations with boundary error handling
- workbook_reader.py: Worksheet parsing (.xlsx via openpyxl, .xls via xlrd) and header lookup
- workbook_writer.py: Output workbook styles and deterministic serialization
- workbook_templates.py: Sample extraction and merge templates
- processing_config.py: Environment-driven processing limits
- utils/result.py: Result pattern implementation and error codes
- utils/url_sanitizer.py: URL validation and canonicalization
- utils/cell_address.py: A1-style cell reference helpers
"""
