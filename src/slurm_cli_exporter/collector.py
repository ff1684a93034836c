"""Prometheus collector implementation using composition pattern.

Provides a reusable collector that separates concerns between data fetching,
metric description and metric generation through dependency injection.
"""

import time
from collections.abc import Callable, Iterator
from typing import Generic, TypeAlias, TypeVar

import structlog
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

logger = structlog.get_logger(__name__)

T = TypeVar("T")


Fetcher: TypeAlias = Callable[[], T]
MetricsDescriber: TypeAlias = Callable[[], Iterator[Metric]]
MetricsGenerator: TypeAlias = Callable[[T], Iterator[Metric]]


class SlurmCollector(Collector, Generic[T]):
    """Prometheus collector for SLURM metrics using composition pattern.

    Separates concerns through dependency injection:
    - Data fetching and aggregation (via Fetcher function with injected
      dependencies)
    - Metric shapes (via MetricsDescriber function)
    - Metric generation (via MetricsGenerator function)

    Each collector instance is configured with specific functions, making it
    reusable for different metric types (partitions, qos, fairshare).
    Nothing is cached: every collect() runs the fetcher again.
    """

    def __init__(
        self,
        fetcher: Fetcher[T],
        describer: MetricsDescriber,
        generator: MetricsGenerator[T],
        metric_prefix: str,
    ):
        """Initialize the SLURM collector.

        Args:
            fetcher: Function that fetches and aggregates data (with
                dependencies pre-injected).
            describer: Function that yields the metric families this
                collector exports, without samples.
            generator: Function that generates Prometheus metrics from data.
            metric_prefix: Collector name used in logs (e.g., "partition").
        """
        self._fetcher = fetcher
        self._describer = describer
        self._generator = generator
        self._metric_prefix = metric_prefix

    def describe(self) -> Iterator[Metric]:
        """Describe the metrics this collector exports.

        Called by the registry on registration. Never runs the fetcher.

        Yields:
            Prometheus Metric objects without samples.
        """
        yield from self._describer()

    def collect(self) -> Iterator[Metric]:
        """Collect metrics for Prometheus scrape.

        Called by Prometheus client during each scrape. Fetches fresh data
        and yields the metrics produced by the configured generator.

        Yields:
            Prometheus Metric objects.

        Raises:
            SlurmCommandError: If fetching fails. No metrics are yielded.
        """
        start = time.time()
        try:
            data = self._fetcher()
        except Exception:
            logger.exception(
                "Failed to fetch metrics for collection",
                metric_prefix=self._metric_prefix,
            )
            raise

        logger.debug(
            "Fetched fresh data",
            metric_prefix=self._metric_prefix,
            duration_seconds=round(time.time() - start, 3),
        )
        yield from self._generator(data)
