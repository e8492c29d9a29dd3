from enum import Enum
from typing import Generic, TypeVar, Optional, Dict
from http import HTTPStatus

T = TypeVar('T')  # Generic type variable


class ErrorCode(str, Enum):
    """
    Stable error codes reported by the link processing operations.

    The value of each member is the prefix written in front of the error
    message ("E002: Column 'Title' not found ..."), so callers can match on it
    programmatically.
    """
    INVALID_FILE_FORMAT = "E001"
    INVALID_COLUMN = "E002"
    PROCESSING_ERROR = "E003"
    OUT_OF_MEMORY = "E010"
    IO_ERROR = "E011"
    PERMISSION_DENIED = "E012"
    UNEXPECTED = "E999"


# HTTP status reported for each error code by the API layer
ERROR_STATUS: Dict[ErrorCode, HTTPStatus] = {
    ErrorCode.INVALID_FILE_FORMAT: HTTPStatus.BAD_REQUEST,
    ErrorCode.INVALID_COLUMN: HTTPStatus.NOT_FOUND,
    ErrorCode.PROCESSING_ERROR: HTTPStatus.UNPROCESSABLE_ENTITY,
    ErrorCode.OUT_OF_MEMORY: HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
    ErrorCode.IO_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
    ErrorCode.PERMISSION_DENIED: HTTPStatus.FORBIDDEN,
    ErrorCode.UNEXPECTED: HTTPStatus.INTERNAL_SERVER_ERROR,
}


def status_for(code: Optional[ErrorCode]) -> HTTPStatus:
    """
    Map an error code to the HTTP status the API reports for it.

    Args:
        code (Optional[ErrorCode]): The error code, or None for a success

    Returns:
        HTTPStatus: 200 for None, otherwise the mapped status (500 if unknown)
    """
    if code is None:
        return HTTPStatus.OK
    return ERROR_STATUS.get(code, HTTPStatus.INTERNAL_SERVER_ERROR)


class Result(Generic[T]):
    """
    A generic result class that represents the outcome of an operation.

    This class can be used to return either successful results with data
    or failed results with a coded error message in a type-safe manner.

    Attributes:
        success (bool): Indicates if the operation was successful
        data (Optional[T]): The result data (only present when success is True)
        code (Optional[ErrorCode]): Error code (only present when success is False)
        message (Optional[str]): Error description without code or hint
        hint (Optional[str]): Remediation suggestion appended to the error message
    """
    def __init__(
        self,
        success: bool,
        data: Optional[T] = None,
        code: Optional[ErrorCode] = None,
        message: Optional[str] = None,
        hint: Optional[str] = None
    ):
        """
        Initialize a Result object.

        Args:
            success (bool): Whether the operation succeeded
            data (Optional[T], optional): The data returned by a successful operation. Defaults to None.
            code (Optional[ErrorCode], optional): Error code of a failed operation. Defaults to None.
            message (Optional[str], optional): Error description of a failed operation. Defaults to None.
            hint (Optional[str], optional): Remediation suggestion. Defaults to None.
        """
        self.success = success
        self.data = data
        self.code = code
        self.message = message
        self.hint = hint

    @property
    def error(self) -> Optional[str]:
        """
        Full error text: "<code>: <message> <hint>".

        Returns:
            Optional[str]: The formatted error, or None for a successful Result
        """
        if self.success:
            return None
        code = (self.code or ErrorCode.UNEXPECTED).value
        text = f"{code}: {self.message or 'Operation failed'}"
        if self.hint:
            text = f"{text} {self.hint}"
        return text

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        """
        Create a successful Result with the provided data.

        Args:
            data (T): The data to be wrapped in the Result

        Returns:
            Result[T]: A successful Result containing the provided data
        """
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, message: str, hint: Optional[str] = None) -> "Result[T]":
        """
        Create a failed Result with the provided error code and message.

        Args:
            code (ErrorCode): The error category
            message (str): The error message describing the failure
            hint (Optional[str], optional): Remediation suggestion. Defaults to None.

        Returns:
            Result[T]: A failed Result carrying the code and message
        """
        return cls(success=False, code=code, message=message, hint=hint)

    @classmethod
    def invalid_file_format(cls, message: str, hint: Optional[str] = None) -> "Result[T]":
        """
        Create a failed Result for input that is not an acceptable spreadsheet (E001).

        Args:
            message (str): What is wrong with the file
            hint (Optional[str], optional): How the user can fix it. Defaults to None.

        Returns:
            Result[T]: A failed Result (HTTP 400 at the API)
        """
        return cls.fail(ErrorCode.INVALID_FILE_FORMAT, message, hint)

    @classmethod
    def column_not_found(cls, column_name: str, max_search_rows: int) -> "Result[T]":
        """
        Create a failed Result for a header that is missing from the search window (E002).

        Args:
            column_name (str): The header that was searched for
            max_search_rows (int): How many rows were searched

        Returns:
            Result[T]: A failed Result (HTTP 404 at the API)
        """
        return cls.fail(
            ErrorCode.INVALID_COLUMN,
            f"Column '{column_name}' not found in the first {max_search_rows} rows of the spreadsheet.",
            f"Tip: Move the header row containing '{column_name}' to rows 1-{max_search_rows}, "
            f"or check the column name spelling."
        )

    @classmethod
    def processing_error(cls, message: str, hint: Optional[str] = None) -> "Result[T]":
        """
        Create a failed Result for a structural problem with the workbook (E003).

        Args:
            message (str): The error message.
            hint (Optional[str], optional): Remediation suggestion. Defaults to None.

        Returns:
            Result[T]: A failed Result (HTTP 422 at the API)
        """
        return cls.fail(ErrorCode.PROCESSING_ERROR, message, hint)

    @classmethod
    def out_of_memory(cls) -> "Result[T]":
        """
        Create a failed Result for input too large to hold while processing (E010).

        Returns:
            Result[T]: A failed Result (HTTP 413 at the API)
        """
        return cls.fail(
            ErrorCode.OUT_OF_MEMORY,
            "File is too large to process. Please reduce the file size and try again."
        )

    @classmethod
    def io_error(cls, details: str) -> "Result[T]":
        """
        Create a failed Result for an input stream that could not be read (E011).

        Args:
            details (str): The underlying error text

        Returns:
            Result[T]: A failed Result (HTTP 500 at the API)
        """
        return cls.fail(
            ErrorCode.IO_ERROR,
            f"Could not read the file. Check if it is corrupted or locked. Details: {details}"
        )

    @classmethod
    def permission_denied(cls) -> "Result[T]":
        """
        Create a failed Result for an input stream that refused access (E012).

        Returns:
            Result[T]: A failed Result (HTTP 403 at the API)
        """
        return cls.fail(
            ErrorCode.PERMISSION_DENIED,
            "Permission denied while reading the file. Please check file permissions."
        )

    @classmethod
    def unexpected(cls, details: str) -> "Result[T]":
        """
        Create a failed Result for an error that fits no other category (E999).

        Args:
            details (str): The underlying error text

        Returns:
            Result[T]: A failed Result (HTTP 500 at the API)
        """
        return cls.fail(ErrorCode.UNEXPECTED, f"Error processing file: {details}")

    def is_success(self) -> bool:
        """
        Check if the Result represents a successful operation.

        Returns:
            bool: True if the Result is successful, False otherwise
        """
        return self.success

