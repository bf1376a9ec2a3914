"""NAS instance metrics collector via the statistics API."""

import logging
from typing import Dict, Optional, Sequence

from ..config.models import TargetConfig
from ..utils.metrics import MetricDefinition
from .base import BaseCollector
from .definitions import METRICS
from .fetcher import MetricFetcher


class NASCollector(BaseCollector):
    """Collector for a single NIFCLOUD NAS instance."""

    def __init__(
        self,
        target: TargetConfig,
        fetcher: MetricFetcher,
        logger: logging.Logger,
        definitions: Optional[Sequence[MetricDefinition]] = None
    ):
        """
        Initialize NAS collector.

        Args:
            target: Instance identifier and region to scrape
            fetcher: Anything with a MetricFetcher-compatible fetch()
            logger: Logger instance
            definitions: Metrics to scrape (defaults to all tracked NAS metrics)
        """
        super().__init__(METRICS if definitions is None else definitions, logger)
        self.target = target
        self.fetcher = fetcher

    @property
    def value_labels(self) -> Dict[str, str]:
        return {"instance": self.target.nas_instance_id, "region": self.target.region}

    def scrape(self, definition: MetricDefinition) -> float:
        return self.fetcher.fetch(definition.name, self.target.nas_instance_id, self.target.region)
