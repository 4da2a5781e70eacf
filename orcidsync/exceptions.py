from __future__ import annotations

import socket

import requests

__all__ = [
    "MappingError",
    "RecordNotFoundError",
    "HTTP_ERRORS",
    "TIMEOUT_ERRORS",
    "NETWORK_ERRORS",
    "DECODE_ERRORS",
    "PARSE_ERRORS",
    "ALL_FETCH_ERRORS",
    "ALL_API_ERRORS",
    "FILE_IO_ERRORS",
    "NUMERIC_ERRORS",
    "FILE_READ_ERRORS",
    "FILE_WRITE_ERRORS",
]


class MappingError(ValueError):
    """
    The researcher mapping document is missing, unreadable, or empty. This is
    the only error that stops a run.
    """


class RecordNotFoundError(LookupError):
    """
    A bibliographic lookup answered successfully but described no work.
    """


# errors raised by requests when an HTTP request fails or a URL cannot be reached
HTTP_ERRORS = (requests.exceptions.RequestException,)

# errors that signal an operation has taken too long and hit a timeout at the OS or socket level
TIMEOUT_ERRORS = (TimeoutError, socket.timeout)

# umbrella group for network-related failures, combining HTTP issues, timeouts,
# and unexpected runtime errors
NETWORK_ERRORS = HTTP_ERRORS + TIMEOUT_ERRORS + (RuntimeError,)

# errors that occur when converting response bytes into text using a specific encoding
DECODE_ERRORS = (UnicodeDecodeError, UnicodeError)

# errors raised while interpreting structured data such as JSON or response fields
PARSE_ERRORS = (ValueError, TypeError, KeyError)

# common API-facing errors focused on connectivity and decoding, usually raised before any parsing logic runs
ALL_API_ERRORS = NETWORK_ERRORS + DECODE_ERRORS

# combined set of errors that may happen while fetching data from remote services
# and turning responses into usable structures
ALL_FETCH_ERRORS = NETWORK_ERRORS + DECODE_ERRORS + PARSE_ERRORS + (RecordNotFoundError,)

# file system operation errors when reading the mapping or the publication store
# Note: FileNotFoundError is a subclass of OSError, so both are included for clarity
FILE_IO_ERRORS = (FileNotFoundError, OSError)

# numeric conversion errors raised during year, put-code, or count parsing
NUMERIC_ERRORS = (TypeError, ValueError, OverflowError)

# combined file read errors including I/O failures, encoding issues, and malformed data
FILE_READ_ERRORS = FILE_IO_ERRORS + DECODE_ERRORS + PARSE_ERRORS

# file write operation errors including permissions, disk full, and encoding issues
FILE_WRITE_ERRORS = (OSError, TypeError, UnicodeEncodeError)

