"""Tests for the scrape error taxonomy."""

import pytest

from nifcloud_nas_exporter.utils.errors import (
    ErrorKind,
    NoDataError,
    ParseFailureError,
    RequestBuildError,
    ScrapeError,
    TransportError,
)


@pytest.mark.parametrize("error_class, kind", [
    (RequestBuildError, ErrorKind.REQUEST_BUILD),
    (TransportError, ErrorKind.TRANSPORT),
    (NoDataError, ErrorKind.NO_DATA),
    (ParseFailureError, ErrorKind.PARSE_FAILURE),
])
def test_each_error_carries_its_kind(error_class, kind):
    error = error_class("failed")

    assert isinstance(error, ScrapeError)
    assert error.kind == kind
    assert error.message == str(error) == "failed"


def test_transport_error_details_are_optional():
    error = TransportError("request failed")

    assert error.status_code is None
    assert error.error_code is None


def test_transport_error_keeps_vendor_details():
    error = TransportError("HTTP 400", status_code=400, error_code="Client.InvalidParameter")

    assert error.status_code == 400
    assert error.error_code == "Client.InvalidParameter"
