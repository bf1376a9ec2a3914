"""Scrape error taxonomy."""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Why a single metric fetch failed."""

    REQUEST_BUILD = "request_build"
    TRANSPORT = "transport"
    NO_DATA = "no_data"
    PARSE_FAILURE = "parse_failure"


class ScrapeError(Exception):
    """Base class for failures of a single metric fetch.

    None of these are retried within a scrape pass; the next scrape is the
    only recovery.
    """

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RequestBuildError(ScrapeError):
    """The statistics query could not be built, encoded or signed."""

    kind = ErrorKind.REQUEST_BUILD


class TransportError(ScrapeError):
    """Network failure or a non-success response from the API."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, status_code: Optional[int] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class NoDataError(ScrapeError):
    """The API answered with zero data points."""

    kind = ErrorKind.NO_DATA


class ParseFailureError(ScrapeError):
    """A timestamp, value or response body could not be decoded."""

    kind = ErrorKind.PARSE_FAILURE
