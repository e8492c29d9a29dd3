import logging
import time
import uuid
from typing import BinaryIO, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from processing_config import ProcessingOptions, get_options
from utils.result import ErrorCode, Result
from utils.url_sanitizer import sanitize_url
from workbook_reader import OLE2_SIGNATURE, ZIP_SIGNATURE, SheetView, open_workbook
from workbook_writer import (
    STYLE_BOLD,
    STYLE_DEFAULT,
    STYLE_HYPERLINK,
    STYLE_MERGE_HEADER,
    WorkbookWriter,
)

# Configure logger with more structured format
logger = logging.getLogger(__name__)

EXTRACT_SHEET_TITLE = "Extracted Links"
MERGE_SHEET_TITLE = "Merged Links"
EXTRACT_COLUMN_WIDTHS = {1: 30, 2: 50}
MERGE_COLUMN_WIDTHS = {1: 40, 2: 60}
# Output column that receives the extracted URL as plain text
EXTRACTED_URL_COLUMN = 2

TITLE_HEADER = "Title"
URL_HEADER = "URL"

Source = Union[bytes, bytearray, memoryview, BinaryIO]


class LogContext:
    """Context manager for tracking and logging operation metrics"""
    def __init__(self, operation_name: str, **kwargs):
        self.operation_name = operation_name
        self.start_time = None
        self.request_id = kwargs.get('request_id', str(uuid.uuid4())[:8])
        self.extra = {key: value for key, value in kwargs.items() if key != 'request_id'}

    def __enter__(self):
        self.start_time = time.perf_counter()
        logger.debug(f"Starting {self.operation_name}", extra={"request_id": self.request_id, **self.extra})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.perf_counter() - self.start_time
        if exc_type:
            logger.error(
                f"Failed {self.operation_name} in {duration:.2f}s: {str(exc_val)}",
                extra={"request_id": self.request_id, "duration": duration, **self.extra},
                exc_info=(exc_type, exc_val, exc_tb)
            )
        else:
            logger.debug(
                f"Completed {self.operation_name} in {duration:.2f}s",
                extra={"request_id": self.request_id, "duration": duration, **self.extra}
            )


class LinkRecord(BaseModel):
    """
    One extracted or merged hyperlink.

    Attributes:
        row: Source row index for extraction, output row index for merging
        title: Display text of the linked cell
        url: Hyperlink target
    """
    row: int
    title: str
    url: str


class ExtractionResult(BaseModel):
    """
    Outcome of a link extraction.

    Exactly one of output_file and error_message is set once the call returns.

    Attributes:
        total_rows: Data rows written to the output workbook
        links_found: Hyperlinks found in the target column
        links: The hyperlinks, in source row order
        output_file: The "Extracted Links" workbook
        error_message: Coded error text ("E002: ...") when the call failed
        error_code: The code of error_message
        input_bytes: Size of the input that was read
        duration_seconds: Wall time spent in the call
    """
    total_rows: int = 0
    links_found: int = 0
    links: List[LinkRecord] = Field(default_factory=list)
    output_file: Optional[bytes] = None
    error_message: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    input_bytes: int = 0
    duration_seconds: float = 0.0

    def is_success(self) -> bool:
        return self.error_message is None and self.output_file is not None


class MergeResult(BaseModel):
    """
    Outcome of a Title/URL merge.

    Attributes:
        total_rows: Non-blank rows written to the output workbook
        links_created: Rows whose URL was sanitized and attached as a hyperlink
        links: The hyperlinks, keyed by output row
        output_file: The "Merged Links" workbook
        error_message: Coded error text when the call failed
        error_code: The code of error_message
        input_bytes: Size of the input that was read
        duration_seconds: Wall time spent in the call
    """
    total_rows: int = 0
    links_created: int = 0
    links: List[LinkRecord] = Field(default_factory=list)
    output_file: Optional[bytes] = None
    error_message: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    input_bytes: int = 0
    duration_seconds: float = 0.0

    def is_success(self) -> bool:
        return self.error_message is None and self.output_file is not None


class LinkProcessor:
    """
    Extracts hyperlinks from, and merges hyperlinks into, spreadsheet files.

    The public methods never raise: every failure, including I/O and memory
    errors, comes back as a result record carrying a coded error message.
    All state lives in the call, so any number of calls may run concurrently.
    """

    @staticmethod
    def extract_links(
        source: Source,
        column_name: str = TITLE_HEADER,
        options: Optional[ProcessingOptions] = None
    ) -> ExtractionResult:
        """
        Copy the first worksheet and collect the hyperlinks of one column.

        Args:
            source: The workbook as bytes or as a readable binary stream
            column_name: Header of the column whose hyperlinks are extracted
            options: Processing limits; defaults to the environment configuration

        Returns:
            ExtractionResult: Counts, links and the output workbook, or a coded error
        """
        options = options or get_options()
        log_context = {
            "request_id": str(uuid.uuid4())[:8],
            "operation": "extract",
            "column_name": column_name,
            "input_bytes": 0,
        }
        logger.info("Extracting links from spreadsheet", extra=log_context)

        started = time.perf_counter()
        result = LinkProcessor._guard(
            lambda: LinkProcessor._extract(source, column_name, options, log_context),
            log_context
        )
        duration = time.perf_counter() - started

        if result.is_success():
            record = result.data
        else:
            record = ExtractionResult(error_message=result.error, error_code=result.code)
        record = record.model_copy(update={
            "input_bytes": log_context["input_bytes"],
            "duration_seconds": duration,
        })
        LinkProcessor._log_outcome("extract", record.total_rows, record.error_code, duration, log_context)
        return record

    @staticmethod
    def merge_links(source: Source, options: Optional[ProcessingOptions] = None) -> MergeResult:
        """
        Turn the Title and URL columns of a workbook into hyperlinked titles.

        Args:
            source: The workbook as bytes or as a readable binary stream
            options: Processing limits; defaults to the environment configuration

        Returns:
            MergeResult: Counts, links and the output workbook, or a coded error
        """
        options = options or get_options()
        log_context = {
            "request_id": str(uuid.uuid4())[:8],
            "operation": "merge",
            "input_bytes": 0,
        }
        logger.info("Merging Title and URL columns", extra=log_context)

        started = time.perf_counter()
        result = LinkProcessor._guard(
            lambda: LinkProcessor._merge(source, options, log_context),
            log_context
        )
        return LinkProcessor._finish_merge(result, started, log_context)

    @staticmethod
    def merge_lists(
        titles: List[str],
        urls: List[str],
        options: Optional[ProcessingOptions] = None
    ) -> MergeResult:
        """
        Build the merged workbook from two parallel lists instead of a file.

        Args:
            titles: Display texts
            urls: URLs, one per title
            options: Processing limits; defaults to the environment configuration

        Returns:
            MergeResult: E003 when the lists differ in length
        """
        options = options or get_options()
        log_context = {
            "request_id": str(uuid.uuid4())[:8],
            "operation": "merge_lists",
            "input_bytes": 0,
            "title_count": len(titles),
            "url_count": len(urls),
        }
        logger.info("Merging title and URL lists", extra=log_context)

        def build() -> Result[MergeResult]:
            if len(titles) != len(urls):
                return Result.processing_error(
                    f"Titles and URLs must have the same number of items "
                    f"(got {len(titles)} titles and {len(urls)} URLs)."
                )
            with LogContext("merged workbook generation", **log_context):
                return LinkProcessor._write_merged_rows(zip(titles, urls), options)

        started = time.perf_counter()
        result = LinkProcessor._guard(build, log_context)
        return LinkProcessor._finish_merge(result, started, log_context)

    @staticmethod
    def _guard(operation, log_context: dict) -> Result:
        """
        Run an operation and turn any exception it raises into a coded failure.

        PermissionError is tested before OSError because it is a subclass of it.
        """
        try:
            return operation()
        except MemoryError:
            logger.error("Out of memory while processing spreadsheet", extra=log_context)
            return Result.out_of_memory()
        except PermissionError as e:
            logger.error("Permission denied reading input", extra={**log_context, "error": str(e)})
            return Result.permission_denied()
        except OSError as e:
            logger.error("I/O error reading input", extra={**log_context, "error": str(e)})
            return Result.io_error(str(e))
        except Exception as e:
            logger.exception("Unexpected error during spreadsheet processing", extra={**log_context, "error": str(e)})
            return Result.unexpected(str(e))

    @staticmethod
    def _finish_merge(result: Result[MergeResult], started: float, log_context: dict) -> MergeResult:
        duration = time.perf_counter() - started
        if result.is_success():
            record = result.data
        else:
            record = MergeResult(error_message=result.error, error_code=result.code)
        record = record.model_copy(update={
            "input_bytes": log_context["input_bytes"],
            "duration_seconds": duration,
        })
        LinkProcessor._log_outcome(log_context["operation"], record.total_rows, record.error_code, duration, log_context)
        return record

    @staticmethod
    def _log_outcome(
        operation: str,
        rows: int,
        error_code: Optional[ErrorCode],
        duration: float,
        log_context: dict
    ) -> None:
        extra = {
            **log_context,
            "rows": rows,
            "duration": duration,
            "error_code": error_code.value if error_code else None,
        }
        if error_code is None:
            logger.info(f"Completed {operation} with {rows} rows in {duration:.2f}s", extra=extra)
        else:
            logger.warning(f"Failed {operation} with {error_code.value} in {duration:.2f}s", extra=extra)

    @staticmethod
    def _read_source(source: Source, options: ProcessingOptions) -> bytes:
        """
        Load the input into memory.

        Streams are read up to one byte past the size limit, which is enough
        for validation to reject them without holding an arbitrarily large body.
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            return bytes(source)
        data = source.read(options.max_file_size_bytes + 1)
        return bytes(data or b"")

    @staticmethod
    def _validate_file(data: bytes, options: ProcessingOptions) -> Result[bytes]:
        """
        Check size and signature before any parsing is attempted.

        Args:
            data: The complete input
            options: Limits to enforce

        Returns:
            Result[bytes]: The same data, or an E001 failure
        """
        if len(data) == 0:
            logger.error("Input file is empty")
            return Result.invalid_file_format(
                "The file is empty.",
                "Upload a spreadsheet that contains data."
            )

        if len(data) > options.max_file_size_bytes:
            logger.error(
                "Input file exceeds size limit",
                extra={"input_bytes": len(data), "max_file_size_bytes": options.max_file_size_bytes}
            )
            return Result.invalid_file_format(
                f"File size exceeds maximum allowed size of {options.max_file_size_mb} MB.",
                "Reduce the file size or split the data into several files."
            )

        if len(data) < len(ZIP_SIGNATURE):
            logger.error("Input file too small to hold a signature", extra={"input_bytes": len(data)})
            return Result.invalid_file_format(
                "The file is too small to be a valid Excel file.",
                "Upload an .xlsx or .xls file saved from Excel."
            )

        if not (data.startswith(ZIP_SIGNATURE) or data.startswith(OLE2_SIGNATURE)):
            logger.error("Unrecognized file signature", extra={"signature": data[:8].hex()})
            return Result.invalid_file_format(
                "The file is not a valid Excel file (unrecognized file signature).",
                "Upload an .xlsx or .xls file saved from Excel."
            )

        return Result.ok(data)

    @staticmethod
    def _load_sheet(source: Source, options: ProcessingOptions, log_context: dict) -> Result[SheetView]:
        data = LinkProcessor._read_source(source, options)
        log_context["input_bytes"] = len(data)

        with LogContext("file validation", **log_context):
            validation_result = LinkProcessor._validate_file(data, options)
        if not validation_result.is_success():
            logger.warning(f"File validation failed: {validation_result.error}", extra=log_context)
            return validation_result

        with LogContext("workbook parsing", **log_context):
            return open_workbook(data)

    @staticmethod
    def _extract(
        source: Source,
        column_name: str,
        options: ProcessingOptions,
        log_context: dict
    ) -> Result[ExtractionResult]:
        sheet_result = LinkProcessor._load_sheet(source, options, log_context)
        if not sheet_result.is_success():
            return sheet_result
        sheet = sheet_result.data

        header = sheet.find_column(column_name, options.max_header_search_rows)
        if header is None:
            logger.warning(
                "Target column not found",
                extra={**log_context, "max_header_search_rows": options.max_header_search_rows}
            )
            return Result.column_not_found(column_name, options.max_header_search_rows)
        log_context["header_row"] = header.row_index
        log_context["target_column"] = header.column_index

        with LogContext("link extraction", **log_context):
            writer = WorkbookWriter(EXTRACT_SHEET_TITLE)
            for cell in sheet.row(header.row_index).cells:
                writer.write_cell(1, cell.column, cell.text, STYLE_BOLD)

            links = []
            output_row = 1
            for row in sheet.rows():
                if row.index <= header.row_index:
                    continue

                extracted_url = None
                for cell in row.cells:
                    target = sheet.hyperlink_for(cell.address)
                    if target and cell.column == header.column_index:
                        links.append(LinkRecord(row=row.index, title=cell.text, url=target))
                        extracted_url = target

                if not row.has_data():
                    continue

                output_row += 1
                for cell in row.cells:
                    style = STYLE_HYPERLINK if cell.hyperlink else STYLE_DEFAULT
                    writer.write_cell(output_row, cell.column, cell.text, style)
                if extracted_url is not None:
                    writer.write_cell(output_row, EXTRACTED_URL_COLUMN, extracted_url)

            writer.set_column_widths(EXTRACT_COLUMN_WIDTHS)
            output_file = writer.to_bytes()

        return Result.ok(ExtractionResult(
            total_rows=output_row - 1,
            links_found=len(links),
            links=links,
            output_file=output_file,
        ))

    @staticmethod
    def _merge(source: Source, options: ProcessingOptions, log_context: dict) -> Result[MergeResult]:
        sheet_result = LinkProcessor._load_sheet(source, options, log_context)
        if not sheet_result.is_success():
            return sheet_result
        sheet = sheet_result.data

        max_rows = options.max_header_search_rows
        title_header = sheet.find_column(TITLE_HEADER, max_rows)
        url_header = sheet.find_column(URL_HEADER, max_rows)

        if title_header is None and url_header is None:
            logger.warning("Neither Title nor URL column found", extra=log_context)
            return Result.processing_error(
                f"Columns '{TITLE_HEADER}' and '{URL_HEADER}' not found in the first {max_rows} rows "
                f"of the spreadsheet.",
                f"Tip: Add a header row with '{TITLE_HEADER}' and '{URL_HEADER}' columns in rows 1-{max_rows}."
            )
        if title_header is None:
            logger.warning("Title column not found", extra=log_context)
            return Result.column_not_found(TITLE_HEADER, max_rows)
        if url_header is None:
            logger.warning("URL column not found", extra=log_context)
            return Result.column_not_found(URL_HEADER, max_rows)

        # Headers may sit on different rows; data starts below the lower one
        data_start = max(title_header.row_index, url_header.row_index)
        log_context["header_row"] = data_start

        pairs = (
            (row.text_at(title_header.column_index), row.text_at(url_header.column_index))
            for row in sheet.rows()
            if row.index > data_start
        )
        with LogContext("merged workbook generation", **log_context):
            return LinkProcessor._write_merged_rows(pairs, options)

    @staticmethod
    def _write_merged_rows(pairs: Iterable[Tuple[str, str]], options: ProcessingOptions) -> Result[MergeResult]:
        """
        Write Title/URL pairs into a new "Merged Links" workbook.

        Rows with both values blank are skipped. Rows whose URL fails
        sanitization are kept as plain text; the others get a hyperlinked
        title and the sanitized URL.
        """
        writer = WorkbookWriter(MERGE_SHEET_TITLE)
        writer.write_cell(1, 1, TITLE_HEADER, STYLE_MERGE_HEADER)
        writer.write_cell(1, 2, URL_HEADER, STYLE_MERGE_HEADER)

        links = []
        output_row = 1
        for raw_title, raw_url in pairs:
            title = (raw_title or "").strip()
            url = (raw_url or "").strip()
            if not title and not url:
                continue

            output_row += 1
            sanitized = sanitize_url(url, options.max_url_length)
            if sanitized is None:
                writer.write_cell(output_row, 1, title)
                writer.write_cell(output_row, 2, url)
                continue

            writer.write_cell(output_row, 1, title, STYLE_HYPERLINK, hyperlink=sanitized)
            writer.write_cell(output_row, 2, sanitized)
            links.append(LinkRecord(row=output_row, title=title, url=sanitized))

        writer.set_column_widths(MERGE_COLUMN_WIDTHS)
        return Result.ok(MergeResult(
            total_rows=output_row - 1,
            links_created=len(links),
            links=links,
            output_file=writer.to_bytes(),
        ))
