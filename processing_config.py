"""
Configuration for spreadsheet link processing.

Options are read from environment variables prefixed with EXCEL_PROCESSING_
(or from a .env file) and validated once when the settings object is built.

Environment Variables:
    EXCEL_PROCESSING_MAX_FILE_SIZE_MB: Largest accepted upload in MB (default: 10)
    EXCEL_PROCESSING_MAX_HEADER_SEARCH_ROWS: Rows scanned for header cells (default: 10)
    EXCEL_PROCESSING_MAX_URL_LENGTH: Longest URL turned into a hyperlink (default: 2000, at most 10000)
"""
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_URL_LENGTH_CEILING = 10000


class ProcessingOptions(BaseSettings):
    """
    Immutable limits applied to every extract and merge call.

    Attributes:
        max_file_size_mb: Largest accepted input file in megabytes
        max_header_search_rows: Number of leading rows searched for header cells
        max_url_length: Longest URL accepted by the sanitizer
    """
    model_config = SettingsConfigDict(
        env_prefix="EXCEL_PROCESSING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    max_file_size_mb: int = Field(default=10, gt=0)
    max_header_search_rows: int = Field(default=10, gt=0)
    max_url_length: int = Field(default=2000, gt=0)

    @field_validator("max_url_length")
    @classmethod
    def validate_max_url_length(cls, v: int) -> int:
        if v > MAX_URL_LENGTH_CEILING:
            raise ValueError(f"max_url_length must be <= {MAX_URL_LENGTH_CEILING}.")
        return v

    @property
    def max_file_size_bytes(self) -> int:
        """Maximum file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024


@lru_cache
def get_options() -> ProcessingOptions:
    """Return the process-wide options loaded from the environment."""
    return ProcessingOptions()
