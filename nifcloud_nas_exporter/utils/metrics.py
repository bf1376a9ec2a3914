"""Metric data structures for collectors."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class MetricDefinition:
    """A tracked metric: vendor-side name plus its exposition identity."""

    name: str  # Name understood by GetMetricStatistics
    metric_name: str  # Fully qualified exposition name
    documentation: str


@dataclass(frozen=True)
class DataPoint:
    """One timestamped sample returned by the statistics API."""

    timestamp: datetime
    value: float


@dataclass
class ScrapeResult:
    """Outcome of fetching one metric during a scrape pass."""

    definition: MetricDefinition
    duration: float  # Seconds spent on the fetch
    success: bool
    value: Optional[float] = None
    error: Optional[str] = None
