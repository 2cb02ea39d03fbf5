"""Exception hierarchy for fetching, parsing, and validating external choices.

Every failure is terminal and user-displayable. Callers can react to the
broad category (a source that cannot be resolved, a fetch that failed, an
unsupported format, a parse failure, a list that breaks the choice rules)
while the concrete subclass and its ``code`` identify the exact cause.
Nothing here is retried and nothing here is ever cached.
"""

from __future__ import annotations

from typing import Optional, Sequence

from .rules import ERROR_DISPLAY_LIMIT, MAX_CHOICES, MAX_FILE_SIZE

__all__ = [
    "ExternalChoicesError",
    "SourceError",
    "NoSource",
    "FetchError",
    "NetworkError",
    "HttpStatusError",
    "FileTooLarge",
    "FileNotFound",
    "ReadFailed",
    "FormatError",
    "UnknownFormat",
    "XlsxRequiresUpload",
    "ParseError",
    "EmptyData",
    "MalformedCsv",
    "NoDataRows",
    "NoChoices",
    "JsonParseError",
    "InvalidStructure",
    "EmptyArray",
    "NestedNotSupported",
    "NoZipSupport",
    "ZipOpenFailed",
    "NoWorksheet",
    "XmlParseFailed",
    "ValidationError",
    "InvalidType",
    "EmptyChoices",
    "TooManyChoices",
    "DuplicateValues",
    "InvalidCharacters",
]


def format_value_list(values: Sequence[str], limit: int = ERROR_DISPLAY_LIMIT) -> str:
    """Join up to ``limit`` values, appending ``...`` when more were found."""
    shown = ", ".join(values[:limit])
    return shown + ("..." if len(values) > limit else "")


def _format_size(size: int) -> str:
    mebibyte = 1024 * 1024
    if size >= mebibyte and size % mebibyte == 0:
        return f"{size // mebibyte} MB"
    return f"{size} bytes"


class ExternalChoicesError(RuntimeError):
    """Base exception for every failure while building a choice list."""

    code = "external_choices_error"
    status_code = 422
    default_message = "External choices could not be loaded."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# --- Source ---


class SourceError(ExternalChoicesError):
    """Raised when no usable source can be resolved from a descriptor."""

    code = "source_error"
    status_code = 400


class NoSource(SourceError):
    code = "no_source"
    default_message = "No external source configured."


# --- Fetch ---


class FetchError(ExternalChoicesError):
    """Raised when the raw bytes of a source cannot be retrieved."""

    code = "fetch_error"
    status_code = 502


class NetworkError(FetchError):
    code = "fetch_failed"

    def __init__(self, cause: str) -> None:
        super().__init__(f"Failed to fetch URL: {cause}")
        self.cause = cause


class HttpStatusError(FetchError):
    code = "http_error"

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP error: {status_code}")
        self.http_status = status_code


class FileTooLarge(FetchError):
    code = "file_too_large"

    def __init__(self, max_size: int = MAX_FILE_SIZE) -> None:
        super().__init__(f"File exceeds maximum size of {_format_size(max_size)}.")
        self.max_size = max_size


class FileNotFound(FetchError):
    code = "file_not_found"
    default_message = "Media file not found."


class ReadFailed(FetchError):
    code = "read_failed"
    default_message = "Failed to read media file."


# --- Format ---


class FormatError(ExternalChoicesError):
    """Raised when the source cannot be routed to a parser."""

    code = "format_error"


class UnknownFormat(FormatError):
    code = "unknown_format"
    default_message = "Unknown file format."


class XlsxRequiresUpload(FormatError):
    code = "xlsx_no_file"
    default_message = "XLSX files must be uploaded to the media library."


# --- Parse ---


class ParseError(ExternalChoicesError):
    """Raised when the fetched bytes cannot be turned into choices."""

    code = "parse_error"


class EmptyData(ParseError):
    code = "empty_data"
    default_message = "Source data is empty."


class MalformedCsv(ParseError):
    code = "csv_parse_error"

    def __init__(self, detail: str) -> None:
        super().__init__(f"CSV parse error: {detail}")


class NoDataRows(ParseError):
    code = "no_data_rows"
    default_message = "Source must have a header row and at least one data row."


class NoChoices(ParseError):
    code = "no_choices"
    default_message = "No valid choices found."


class JsonParseError(ParseError):
    code = "json_parse_error"

    def __init__(self, detail: str) -> None:
        super().__init__(f"JSON parse error: {detail}")
        self.detail = detail


class InvalidStructure(ParseError):
    code = "invalid_structure"
    default_message = "JSON must be an array at the root level."


class EmptyArray(ParseError):
    code = "empty_array"
    default_message = "JSON array is empty."


class NestedNotSupported(ParseError):
    code = "nested_not_supported"
    default_message = "JSON must contain flat objects only. Nested objects are not supported."


class NoZipSupport(ParseError):
    code = "no_zip_support"
    default_message = "zlib support is required to read XLSX files."


class ZipOpenFailed(ParseError):
    code = "zip_open_failed"
    default_message = "Failed to open XLSX file."


class NoWorksheet(ParseError):
    code = "no_worksheet"
    default_message = "No worksheet found in XLSX file."


class XmlParseFailed(ParseError):
    code = "xml_parse_failed"
    default_message = "Failed to parse worksheet XML."


# --- Validation ---


class ValidationError(ExternalChoicesError):
    """Raised when a parsed list breaks the choice rules."""

    code = "validation_error"


class InvalidType(ValidationError):
    code = "invalid_type"
    default_message = "Choices must be a list."


class EmptyChoices(ValidationError):
    code = "empty_choices"
    default_message = "No choices provided."


class TooManyChoices(ValidationError):
    code = "too_many_choices"
    default_message = f"Too many choices. Maximum allowed is {MAX_CHOICES}."


class DuplicateValues(ValidationError):
    code = "duplicate_values"

    def __init__(self, values: Sequence[str]) -> None:
        super().__init__(
            f"Duplicate values found: {format_value_list(values)}. Each value must be unique."
        )
        self.values = tuple(values[:ERROR_DISPLAY_LIMIT])


class InvalidCharacters(ValidationError):
    code = "invalid_characters"

    def __init__(self, values: Sequence[str]) -> None:
        super().__init__(
            f"Invalid characters in values: {format_value_list(values)}. "
            "The characters < > \" ' & \\ are not allowed."
        )
        self.values = tuple(values[:ERROR_DISPLAY_LIMIT])
