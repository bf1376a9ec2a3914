"""Fetch the latest value of one metric from the statistics API."""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

from ..services.nas_client import NASClient
from ..utils.errors import NoDataError, ParseFailureError, RequestBuildError
from ..utils.metrics import DataPoint
from .definitions import METRIC_NAMES


# Long enough to see at least one point despite publishing lag
DEFAULT_WINDOW_SECONDS = 180

# RFC 3339 date-time: extended format, "T" separator, mandatory offset
RFC3339_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})"
)


def parse_datapoint(raw: Dict[str, str]) -> DataPoint:
    """
    Decode one raw data point.

    Args:
        raw: {"Timestamp": RFC 3339 string, "Sum": numeric string}

    Returns:
        DataPoint: Parsed point with an aware timestamp

    Raises:
        ParseFailureError: If the timestamp or the sum is malformed or missing
    """
    raw_timestamp = raw.get("Timestamp")
    if not isinstance(raw_timestamp, str) or not RFC3339_PATTERN.fullmatch(raw_timestamp):
        raise ParseFailureError(f"could not parse timestamp {raw_timestamp!r}: not an RFC 3339 date-time")
    try:
        timestamp = datetime.fromisoformat(raw_timestamp)
    except ValueError as e:
        raise ParseFailureError(f"could not parse timestamp {raw_timestamp!r}: {e}") from e

    raw_sum = raw.get("Sum")
    try:
        value = float(raw_sum)
    except (TypeError, ValueError) as e:
        raise ParseFailureError(f"could not parse sum {raw_sum!r}: {e}") from e

    return DataPoint(timestamp=timestamp, value=value)


def select_latest(datapoints: Iterable[DataPoint]) -> DataPoint:
    """
    Pick the point with the strictly latest timestamp.

    Input order is irrelevant except on equal timestamps, where the first
    point seen wins.

    Raises:
        NoDataError: If there are no points
    """
    latest: Optional[DataPoint] = None
    for point in datapoints:
        if latest is None or point.timestamp > latest.timestamp:
            latest = point
    if latest is None:
        raise NoDataError("fetched no datapoints")
    return latest


class MetricFetcher:
    """Query a trailing window for one metric and return its latest value."""

    def __init__(
        self,
        client: NASClient,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize fetcher.

        Args:
            client: Signed statistics API client
            window_seconds: Length of the trailing query window
            clock: Returns the current aware UTC time (tests pin it)
            logger: Logger instance
        """
        self.client = client
        self.window = timedelta(seconds=window_seconds)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = (logger or logging.getLogger(__name__)).getChild(self.__class__.__name__)

    def fetch(self, metric_name: str, instance_identifier: str, region: str) -> float:
        """
        Fetch the most recent value of a metric.

        Args:
            metric_name: One of the tracked vendor metric names
            instance_identifier: Target NAS instance identifier
            region: Region hosting the instance

        Returns:
            float: Value at the latest timestamp in the window

        Raises:
            RequestBuildError: Invalid arguments or unsignable request
            TransportError: Network failure or non-success response
            NoDataError: The window contained no data points
            ParseFailureError: A data point could not be decoded
        """
        if metric_name not in METRIC_NAMES:
            raise RequestBuildError(f"unknown metric name {metric_name!r}")
        if not instance_identifier:
            raise RequestBuildError("instance identifier must not be empty")

        end_time = self.clock().astimezone(timezone.utc)
        start_time = end_time - self.window

        response = self.client.get_metric_statistics(
            metric_name, instance_identifier, region, start_time, end_time
        )

        raw_datapoints: List[Dict[str, str]] = response.get("Datapoints", [])
        self.logger.debug(f"Fetched {len(raw_datapoints)} datapoint(s) for {metric_name}")

        # Every point is decoded so a malformed one fails the fetch even if it is not the latest
        datapoints = [parse_datapoint(raw) for raw in raw_datapoints]
        return select_latest(datapoints).value
