from http import HTTPStatus

import pytest

from utils.result import ERROR_STATUS, ErrorCode, Result, status_for


class TestErrorStatus:
    """
    Tests for the error code to HTTP status mapping.
    """

    @pytest.mark.parametrize(
        "code, expected",
        [
            (ErrorCode.INVALID_FILE_FORMAT, HTTPStatus.BAD_REQUEST),
            (ErrorCode.INVALID_COLUMN, HTTPStatus.NOT_FOUND),
            (ErrorCode.PROCESSING_ERROR, HTTPStatus.UNPROCESSABLE_ENTITY),
            (ErrorCode.OUT_OF_MEMORY, HTTPStatus.REQUEST_ENTITY_TOO_LARGE),
            (ErrorCode.IO_ERROR, HTTPStatus.INTERNAL_SERVER_ERROR),
            (ErrorCode.PERMISSION_DENIED, HTTPStatus.FORBIDDEN),
            (ErrorCode.UNEXPECTED, HTTPStatus.INTERNAL_SERVER_ERROR),
        ]
    )
    def test_status_for_each_code(self, code, expected):
        assert status_for(code) == expected

    def test_every_code_is_mapped(self):
        assert set(ERROR_STATUS) == set(ErrorCode)

    def test_none_maps_to_ok(self):
        assert status_for(None) == HTTPStatus.OK


class TestResult:
    """
    Tests for Result construction and helpers.
    """

    def test_ok_result(self):
        """Test that a successful Result carries data and no error."""
        result = Result.ok(42)

        assert result.is_success()
        assert result.data == 42
        assert result.error is None

    def test_column_not_found_message_and_hint(self):
        """
        Test the coded message of a missing column.

        The hint names the search window so the user knows where to move the header.
        """
        result = Result.column_not_found("Title", 10)

        assert not result.is_success()
        assert result.code == ErrorCode.INVALID_COLUMN
        assert result.error.startswith("E002: Column 'Title' not found in the first 10 rows")
        assert "rows 1-10" in result.error

    @pytest.mark.parametrize(
        "factory, code, fragment",
        [
            (lambda: Result.out_of_memory(), "E010", "too large to process"),
            (lambda: Result.io_error("disk gone"), "E011", "Details: disk gone"),
            (lambda: Result.permission_denied(), "E012", "Permission denied"),
            (lambda: Result.unexpected("boom"), "E999", "Error processing file: boom"),
            (lambda: Result.processing_error("bad package"), "E003", "bad package"),
            (lambda: Result.invalid_file_format("empty", "upload data"), "E001", "empty upload data"),
        ],
        ids=["memory", "io", "permission", "unexpected", "processing", "format"]
    )
    def test_failure_factories(self, factory, code, fragment):
        """
        Test that each factory prefixes its code and keeps the message.

        Args:
            factory: Callable creating the failure
            code: Expected code prefix
            fragment: Text expected in the error
        """
        result = factory()

        assert result.error.startswith(f"{code}: ")
        assert fragment in result.error

