"""
Error taxonomy for the import pipeline.

File-level errors abort a whole request. Every other kind is caught at row
(or batch item) granularity and reported next to that row.
"""

from typing import List, Optional


class ImportPipelineError(Exception):
    """Base class for all import pipeline errors."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class FileError(ImportPipelineError):
    """The uploaded file cannot be processed at all."""


class FileEmptyError(FileError):
    def __init__(self, message: str = "CSV file is empty"):
        super().__init__(message)


class FileTooLargeError(FileError):
    def __init__(self, size: int, max_size: int):
        super().__init__(
            f"File too large. Maximum size is {max_size // 1024 // 1024}MB"
        )
        self.size = size
        self.max_size = max_size


class FileDecodeError(FileError):
    pass


class TooManyRowsError(FileError):
    def __init__(self, row_count: int, max_rows: int):
        super().__init__(f"Too many rows. Maximum is {max_rows} rows per import.")
        self.row_count = row_count
        self.max_rows = max_rows


class MappingError(ImportPipelineError):
    """A field required by the active bank or strategy has no column."""

    def __init__(self, missing_fields: List[str]):
        super().__init__(
            f"Missing column mapping for: {', '.join(missing_fields)}",
            field=missing_fields[0] if missing_fields else None,
        )
        self.missing_fields = missing_fields


class StrategyError(ImportPipelineError):
    """Data needed by the active type/date strategy is missing or ambiguous."""


class DateParseError(StrategyError):
    def __init__(self, raw_value: str, expected: str, field: str = "transactionDate"):
        super().__init__(
            f"Invalid date format: {raw_value}. Expected {expected}", field=field
        )
        self.raw_value = raw_value
        self.expected = expected


class TransactionValidationError(ImportPipelineError):
    """Schema or required-field violation for a single transaction."""


class PersistenceError(ImportPipelineError):
    """Tag or transaction write failure."""


class TagConflictError(PersistenceError):
    """A tag with the same name already exists for the owner."""
