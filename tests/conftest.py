"""Shared test fixtures for all test modules."""

import os
from pathlib import Path

import pytest

# Logging is configured at import time of the project modules
os.environ.setdefault("LOG_OUTPUT", "console")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_DIR", str(Path(__file__).parent / ".logs"))

import log_config  # noqa: E402,F401
from domains.cloudeye.clients.clients import CloudClients  # noqa: E402
from domains.cloudeye.config import CloudEyeConfig  # noqa: E402
from domains.cloudeye.models import (  # noqa: E402
    DataPoint,
    Dimension,
    InventoryPage,
    InventoryRecord,
    MetricDefinition,
    MetricDefinitionPage,
    Volume,
)
from utils.cache_manager import EnrichmentCache  # noqa: E402
from utils.retry import RetryExecutor, RetryPolicy  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeCesClient:
    def __init__(self, pages=None, data_points=None, batch_error=None, list_error=None):
        self.pages = pages or {}
        self.data_points = data_points or []
        self.batch_error = batch_error
        self.list_error = list_error
        self.list_calls = []
        self.batch_calls = []

    def list_metric_definitions(self, namespace, limit, marker=None):
        self.list_calls.append((namespace, limit, marker))
        if self.list_error is not None:
            raise self.list_error
        return self.pages.get((namespace, marker), MetricDefinitionPage())

    def batch_query(self, batch):
        self.batch_calls.append(batch)
        if self.batch_error is not None:
            raise self.batch_error
        return list(self.data_points)


class FakeRmsClient:
    def __init__(self, records=None, error=None):
        self.records = records or []
        self.error = error
        self.calls = []

    def search(self, resource_id=None, name=None, marker=None, limit=200):
        self.calls.append((resource_id, name, marker))
        if self.error is not None:
            raise self.error
        return InventoryPage(resources=list(self.records))


class FakeEvsClient:
    def __init__(self, volumes=None, error=None):
        self.volumes = volumes or []
        self.error = error
        self.calls = 0

    def list_volumes(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.volumes)


class FakeObsClient:
    def __init__(self, tags=None, locations=None, tags_error=None, location_error=None):
        self.tags = tags or {}
        self.locations = locations or {}
        self.tags_error = tags_error
        self.location_error = location_error
        self.tag_calls = []
        self.location_calls = []

    def get_bucket_tags(self, bucket):
        self.tag_calls.append(bucket)
        if self.tags_error is not None:
            raise self.tags_error
        return dict(self.tags.get(bucket, {}))

    def get_bucket_location(self, bucket):
        self.location_calls.append(bucket)
        if self.location_error is not None:
            raise self.location_error
        return {"location": self.locations.get(bucket, "")}


def make_definition(metric_name="cpu_util", namespace="SYS.ECS", **dimensions) -> MetricDefinition:
    return MetricDefinition(
        namespace=namespace,
        metric_name=metric_name,
        dimensions=[Dimension(name=k, value=v) for k, v in dimensions.items()],
    )


def make_data_point(metric_name="cpu_util", namespace="SYS.ECS", unit="", samples=None, **dimensions) -> DataPoint:
    return DataPoint(
        namespace=namespace,
        metric_name=metric_name,
        dimensions=[Dimension(name=k, value=v) for k, v in dimensions.items()],
        unit=unit,
        samples=samples or [],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> list[float]:
    """Records every backoff delay instead of sleeping."""
    return []


@pytest.fixture
def retry_executor(sleeps) -> RetryExecutor:
    policy = RetryPolicy(max_retries=2, initial_backoff=1.0, max_backoff=10.0, multiplier=2.0)
    return RetryExecutor(policy, sleep=sleeps.append)


@pytest.fixture
def inventory_cache(clock) -> EnrichmentCache:
    return EnrichmentCache("inventory", ttl_seconds=900, sweep_interval_seconds=1800, clock=clock)


@pytest.fixture
def bucket_cache(clock) -> EnrichmentCache:
    return EnrichmentCache("bucket", ttl_seconds=900, sweep_interval_seconds=1800, clock=clock)


@pytest.fixture
def cloud_config() -> CloudEyeConfig:
    config = CloudEyeConfig()
    config.auth.project_id = "project-1"
    config.auth.project_name = "eu-de_project"
    config.auth.domain_name = "OTC-EU-DE-0001"
    config.scrape.max_workers = 4
    return config


@pytest.fixture
def fake_clients():
    """Factory building a CloudClients bundle around in-memory fakes."""

    def build(ces=None, rms=None, evs=None, obs=None, project_id="project-1"):
        return CloudClients(
            ces=ces or FakeCesClient(),
            rms=rms or FakeRmsClient(),
            evs=evs or FakeEvsClient(),
            obs=obs or FakeObsClient(),
            project_id=project_id,
            project_name="eu-de_project",
            domain_name="OTC-EU-DE-0001",
        )

    return build


__all__ = [
    "FakeCesClient",
    "FakeClock",
    "FakeEvsClient",
    "FakeObsClient",
    "FakeRmsClient",
    "InventoryRecord",
    "Volume",
    "make_data_point",
    "make_definition",
]
