"""Domain errors and failure typing."""


class TelecheckError(Exception):
    """Base class for recoverable, user-facing failures."""

    error_code = "TELECHECK_ERROR"


class ConfigError(TelecheckError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class IngestError(TelecheckError):
    """Raised when patient postcode input cannot be turned into a dataset."""

    error_code = "INGEST_ERROR"


class EmptyFileError(IngestError):
    error_code = "EMPTY_FILE"


class NoValidPostcodesFound(IngestError):
    error_code = "NO_VALID_POSTCODES"


class DatasetTooLargeError(IngestError):
    error_code = "DATASET_TOO_LARGE"


class FileTooLargeError(IngestError):
    error_code = "FILE_TOO_LARGE"


class UnsupportedFileFormat(IngestError):
    error_code = "UNSUPPORTED_FILE_FORMAT"


class ReconcileError(TelecheckError):
    """Raised for disaster reconciliation misuse."""

    error_code = "RECONCILE_ERROR"


class NoChangesSelected(ReconcileError):
    error_code = "NO_CHANGES_SELECTED"


class ScannerError(TelecheckError):
    """Raised when the remote disaster scanner function reports a failure."""

    error_code = "SCANNER_ERROR"


class UsageError(TelecheckError):
    """Raised for missing or malformed command line arguments."""

    error_code = "USAGE_ERROR"
