"""Shared pytest configuration and fixtures."""

import time
from datetime import datetime, timezone

import pytest

from nifcloud_nas_exporter.config.models import TargetConfig
from nifcloud_nas_exporter.utils.errors import TransportError
from nifcloud_nas_exporter.utils.logger import setup_logger


FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class StubFetcher:
    """
    Fetcher double keyed by vendor metric name.

    Each entry is (delay_seconds, value_or_exception). Metrics without an
    entry fail with a TransportError.
    """

    def __init__(self, outcomes=None):
        self.outcomes = outcomes or {}
        self.calls = []

    def fetch(self, metric_name, instance_identifier, region):
        self.calls.append((metric_name, instance_identifier, region))
        delay, outcome = self.outcomes.get(
            metric_name, (0, TransportError(f"no stub for {metric_name}"))
        )
        if delay:
            time.sleep(delay)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test")


@pytest.fixture
def target():
    return TargetConfig(nas_instance_id="nas001", region="jp-east-1")


@pytest.fixture
def stub_fetcher_factory():
    return StubFetcher


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


def datapoints_xml(points, root="GetMetricStatisticsResponse"):
    """Render a GetMetricStatistics response body for (timestamp, sum) pairs."""
    members = "".join(
        f"<member><Timestamp>{ts}</Timestamp><SampleCount>1</SampleCount><Sum>{value}</Sum></member>"
        for ts, value in points
    )
    return (
        f'<{root} xmlns="https://nas.api.nifcloud.com/doc/2016-02-24/">'
        "<GetMetricStatisticsResult>"
        "<Label>FreeStorageSpace</Label>"
        f"<Datapoints>{members}</Datapoints>"
        "</GetMetricStatisticsResult>"
        "<ResponseMetadata><RequestId>req-1</RequestId></ResponseMetadata>"
        f"</{root}>"
    ).encode("utf-8")


@pytest.fixture
def response_xml():
    return datapoints_xml
