"""Tests for the windowed batch query."""

import pytest

from conftest import FakeCesClient, make_data_point, make_definition
from domains.cloudeye.clients.error import CloudApiError
from domains.cloudeye.models import MetricDefinition
from domains.cloudeye.time_series_fetcher import TimeSeriesFetcher
from utils.retry import OperationFailedError

NOW_MS = 1_700_000_000_000


def test_issues_one_batch_request_with_window(retry_executor):
    ces = FakeCesClient(data_points=[make_data_point(instance_id="vm-1")])
    fetcher = TimeSeriesFetcher(ces, retry_executor, clock_ms=lambda: NOW_MS)
    metrics = [make_definition("cpu_util", instance_id="vm-1"), make_definition("mem_util", instance_id="vm-1")]

    data_points = fetcher.fetch(metrics, window_ms=3_600_000, period_seconds=1)

    assert len(data_points) == 1
    assert len(ces.batch_calls) == 1
    batch = ces.batch_calls[0]
    assert batch.window_end_ms == NOW_MS
    assert batch.window_start_ms == NOW_MS - 3_600_000
    assert batch.period_seconds == 1
    assert batch.aggregation == "average"
    assert [m.metric_name for m in batch.metrics] == ["cpu_util", "mem_util"]


def test_drops_malformed_definitions(retry_executor):
    """Definitions without name, namespace or dimensions never reach the batch."""
    ces = FakeCesClient()
    fetcher = TimeSeriesFetcher(ces, retry_executor, clock_ms=lambda: NOW_MS)
    metrics = [
        make_definition("cpu_util", instance_id="vm-1"),
        make_definition("", instance_id="vm-1"),
        make_definition("cpu_util", namespace="", instance_id="vm-1"),
        MetricDefinition(namespace="SYS.ECS", metric_name="disk_util"),
    ]

    fetcher.fetch(metrics, window_ms=60_000, period_seconds=1)

    assert [m.metric_name for m in ces.batch_calls[0].metrics] == ["cpu_util"]


def test_no_remote_call_when_nothing_is_queryable(retry_executor):
    ces = FakeCesClient()
    fetcher = TimeSeriesFetcher(ces, retry_executor)

    assert fetcher.fetch([MetricDefinition(namespace="SYS.ECS", metric_name="cpu_util")], 60_000, 1) == []
    assert fetcher.fetch([], 60_000, 1) == []
    assert ces.batch_calls == []


def test_transient_failure_retries_whole_batch(retry_executor):
    ces = FakeCesClient(batch_error=CloudApiError("gateway", endpoint="/batch", status_code=502))
    fetcher = TimeSeriesFetcher(ces, retry_executor)

    with pytest.raises(OperationFailedError):
        fetcher.fetch([make_definition(instance_id="vm-1")], 60_000, 1)

    assert len(ces.batch_calls) == 3
