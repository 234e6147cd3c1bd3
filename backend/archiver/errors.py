"""
Error taxonomy for the archiver.

Per-record errors (ParseError, DecodeError, MissingIdentifierError,
NoBodyFoundError, and StoreError raised while handling one record) are caught
by the processor and counted as failures. ConfigError, and a StoreError raised
while listing, abort the run.
"""


class ArchiverError(Exception):
    """Base class for all archiver errors."""
    def __init__(self, message: str, error_code: str):
        super().__init__(message)
        self.error_code = error_code
        self.message = message


class ConfigError(ArchiverError, ValueError):
    """Raised when required configuration is missing or invalid."""
    def __init__(self, message: str):
        super().__init__(message, "config_error")


class ParseError(ArchiverError):
    """Raised when a JSONL line is not valid UTF-8 JSON."""
    def __init__(self, message: str):
        super().__init__(message, "parse_error")


class DecodeError(ArchiverError):
    """Raised when base64url body data cannot be decoded to UTF-8 text."""
    def __init__(self, message: str):
        super().__init__(message, "decode_error")


class MissingIdentifierError(ArchiverError):
    """Raised when a record carries no message id."""
    def __init__(self, message: str = "Missing message id"):
        super().__init__(message, "missing_id")


class NoBodyFoundError(ArchiverError):
    """Raised when no part in the payload tree carries body data."""
    def __init__(self, message: str = "No body found"):
        super().__init__(message, "no_body")


class StoreError(ArchiverError):
    """Raised when an object store call fails (other than a not-found existence check)."""
    def __init__(self, message: str, key: str | None = None):
        super().__init__(message, "store_error")
        self.key = key
