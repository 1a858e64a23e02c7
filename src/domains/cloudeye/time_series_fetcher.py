import time
from typing import Callable

from domains.cloudeye.clients.ces_client import CesClient
from domains.cloudeye.models import DataPoint, MetricDefinition, TimeSeriesBatch
from utils.logging.logging_manager import LogManager
from utils.retry import RetryExecutor


class TimeSeriesFetcher:
    """Retrieves the data points of many metric definitions with one windowed batch query."""

    def __init__(
        self,
        ces_client: CesClient,
        retry_executor: RetryExecutor,
        clock_ms: Callable[[], int] = lambda: int(time.time() * 1000),
    ):
        self.ces_client = ces_client
        self.retry_executor = retry_executor
        self._clock_ms = clock_ms
        self.logger = LogManager.get_instance().get_logger("TimeSeriesFetcher")

    def fetch(self, metrics: list[MetricDefinition], window_ms: int, period_seconds: int) -> list[DataPoint]:
        """Queries the last `window_ms` milliseconds of every queryable definition.

        Definitions without a name, a namespace or dimensions are dropped. When none is left
        no request is sent.

        Raises:
            OperationFailedError: When the batch request fails.
        """
        queryable = []
        for metric in metrics:
            if metric.is_queryable():
                queryable.append(metric)
            else:
                self.logger.debug(f"Skipping unqueryable metric definition: {metric}")

        skipped = len(metrics) - len(queryable)
        if skipped:
            self.logger.warning(f"Skipped {skipped} metric definitions without name, namespace or dimensions")
        if not queryable:
            return []

        now_ms = self._clock_ms()
        batch = TimeSeriesBatch(
            metrics=queryable,
            window_start_ms=now_ms - window_ms,
            window_end_ms=now_ms,
            period_seconds=period_seconds,
        )
        data_points = self.retry_executor.execute(
            lambda: self.ces_client.batch_query(batch),
            f"batch query {len(queryable)} metrics",
        )
        self.logger.info(f"Fetched {len(data_points)} data points for {len(queryable)} metrics")
        return data_points
