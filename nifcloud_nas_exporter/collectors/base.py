"""Base collector: concurrent per-metric scrape passes for prometheus_client."""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterator, List, Sequence
import asyncio
import logging
import time

from prometheus_client.core import GaugeMetricFamily, Metric

from ..utils.errors import ScrapeError
from ..utils.metrics import MetricDefinition, ScrapeResult
from .definitions import (
    META_LABELS,
    SCRAPE_DURATION_HELP,
    SCRAPE_DURATION_NAME,
    SCRAPE_SUCCESS_HELP,
    SCRAPE_SUCCESS_NAME,
)


class BaseCollector(ABC):
    """
    Abstract base class for collectors that scrape a fixed metric list.

    Each pass runs one fetch per metric on a dedicated thread pool and waits
    for all of them. Every metric always yields a duration and a success
    sample; its value is only emitted when the fetch succeeded.
    """

    def __init__(self, definitions: Sequence[MetricDefinition], logger: logging.Logger):
        """
        Initialize base collector.

        Args:
            definitions: Metrics scraped on every pass
            logger: Logger instance
        """
        if not definitions:
            raise ValueError("At least one metric definition is required")
        self.definitions = tuple(definitions)
        self.logger = logger.getChild(self.__class__.__name__)

    @abstractmethod
    def scrape(self, definition: MetricDefinition) -> float:
        """
        Fetch the current value of one metric.

        Raises:
            Exception: Any failure (isolated and reported by _collect_metric)
        """

    @property
    @abstractmethod
    def value_labels(self) -> Dict[str, str]:
        """Labels attached to every metric value."""

    def _collect_metric(self, definition: MetricDefinition) -> ScrapeResult:
        """Scrape one metric, timing it and turning failures into a result."""
        begin = time.perf_counter()
        try:
            value = self.scrape(definition)
        except Exception as e:
            duration = time.perf_counter() - begin
            kind = e.kind.value if isinstance(e, ScrapeError) else type(e).__name__
            self.logger.error(
                f"Scrape {definition.name!r} failed after {duration:f}s: {e}",
                extra={
                    "metric_name": definition.name,
                    "duration_seconds": duration,
                    "error_kind": kind,
                },
            )
            return ScrapeResult(definition=definition, duration=duration, success=False, error=str(e))

        duration = time.perf_counter() - begin
        return ScrapeResult(definition=definition, duration=duration, success=True, value=value)

    async def collect_async(self) -> List[ScrapeResult]:
        """
        Run one scrape pass, one concurrent task per metric.

        Returns:
            List[ScrapeResult]: One result per definition, in definition order
        """
        loop = asyncio.get_event_loop()
        # Per-pass pool: concurrent passes never share workers
        with ThreadPoolExecutor(max_workers=len(self.definitions), thread_name_prefix="scrape") as executor:
            tasks = [
                loop.run_in_executor(executor, self._collect_metric, definition)
                for definition in self.definitions
            ]
            results = await asyncio.gather(*tasks, return_exceptions=True)

        # Handle exceptions from gather
        final_results = []
        for definition, result in zip(self.definitions, results):
            if isinstance(result, BaseException):
                self.logger.error(f"Scrape task for {definition.name!r} crashed: {result}")
                final_results.append(ScrapeResult(
                    definition=definition,
                    duration=0.0,
                    success=False,
                    error=str(result)
                ))
            else:
                final_results.append(result)

        return final_results

    def scrape_pass(self) -> List[ScrapeResult]:
        """Blocking wrapper around collect_async for the exposition thread."""
        return asyncio.run(self.collect_async())

    def describe(self) -> Iterator[Metric]:
        """Yield every family this collector can ever emit."""
        labels = list(self.value_labels)
        for definition in self.definitions:
            yield GaugeMetricFamily(definition.metric_name, definition.documentation, labels=labels)
        yield GaugeMetricFamily(SCRAPE_DURATION_NAME, SCRAPE_DURATION_HELP, labels=list(META_LABELS))
        yield GaugeMetricFamily(SCRAPE_SUCCESS_NAME, SCRAPE_SUCCESS_HELP, labels=list(META_LABELS))

    def collect(self) -> Iterator[Metric]:
        """Run a full scrape pass and yield its metric families."""
        yield from self.families(self.scrape_pass())

    def families(self, results: Sequence[ScrapeResult]) -> Iterator[Metric]:
        """
        Convert scrape results into metric families.

        Args:
            results: Results of one scrape pass

        Yields:
            Metric: Value families for successful metrics, then the duration
            and success families covering every metric
        """
        labels = self.value_labels
        duration = GaugeMetricFamily(SCRAPE_DURATION_NAME, SCRAPE_DURATION_HELP, labels=list(META_LABELS))
        success = GaugeMetricFamily(SCRAPE_SUCCESS_NAME, SCRAPE_SUCCESS_HELP, labels=list(META_LABELS))

        for result in results:
            definition = result.definition
            if result.success:
                family = GaugeMetricFamily(
                    definition.metric_name,
                    definition.documentation,
                    labels=list(labels)
                )
                family.add_metric(list(labels.values()), result.value)
                yield family
            duration.add_metric([definition.name], result.duration)
            success.add_metric([definition.name], 1.0 if result.success else 0.0)

        yield duration
        yield success
