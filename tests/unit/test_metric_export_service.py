"""Tests for namespace scrape orchestration."""

from datetime import datetime, timezone

from conftest import FakeCesClient, FakeObsClient, FakeRmsClient, make_data_point, make_definition
from domains.cloudeye.clients.error import CloudApiError
from domains.cloudeye.export_assembler import ExportAssembler
from domains.cloudeye.metric_export_service import (
    MetricExportService,
    count_unique_series,
    filter_supported_namespaces,
    should_skip_metric,
)
from domains.cloudeye.models import ExportRecord, InventoryRecord, MetricDefinitionPage, Sample

SAMPLE_MS = 1_700_000_000_000


def make_service(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor, **clients):
    return MetricExportService(
        fake_clients(**clients), cloud_config, inventory_cache, bucket_cache, retry_executor
    )


def ces_for(namespace, definitions, data_points):
    return FakeCesClient(
        pages={(namespace, None): MetricDefinitionPage(definitions=definitions)},
        data_points=data_points,
    )


def test_end_to_end_without_inventory_match(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor):
    """cpu_util of vm-1 with one sample exports one record with sentinel resource name."""
    ces = ces_for(
        "NS.EXAMPLE",
        [make_definition("cpu_util", "NS.EXAMPLE", instance_id="vm-1")],
        [
            make_data_point(
                "cpu_util", "NS.EXAMPLE", unit="%", samples=[Sample(timestamp_ms=SAMPLE_MS, average=42.5)], instance_id="vm-1"
            )
        ],
    )
    service = make_service(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor, ces=ces)

    records = service.export_namespace("NS.EXAMPLE")

    assert len(records) == 1
    record = records[0]
    assert record.metric_name == "cpu_util"
    assert record.value == 42.5
    assert record.unit == "%"
    assert record.timestamp == datetime.fromtimestamp(SAMPLE_MS / 1000, tz=timezone.utc)
    assert record.labels["namespace"] == "NS.EXAMPLE"
    assert record.labels["resource_id"] == "vm-1"
    assert record.labels["resource_name"] == "unknown"
    assert record.labels["unit"] == "%"
    assert set(record.labels) == {"namespace", "resource_id", "resource_name", "unit", "instance_id"}


def test_inventory_match_enriches_records(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor):
    ces = ces_for(
        "SYS.ECS",
        [make_definition("cpu_util", instance_id="vm-1")],
        [make_data_point("cpu_util", samples=[Sample(timestamp_ms=SAMPLE_MS, average=1.0)], instance_id="vm-1")],
    )
    rms = FakeRmsClient([InventoryRecord(id="vm-1", name="web-1", tags={"app": "shop"})])
    service = make_service(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor, ces=ces, rms=rms)

    (record,) = service.export_namespace("SYS.ECS")

    assert record.labels["resource_name"] == "web-1"
    assert record.labels["tag_app"] == "shop"
    assert record.labels["project_id"] == "project-1"
    assert record.labels["domain_name"] == "OTC-EU-DE-0001"


def test_object_storage_bucket_metrics_get_bucket_labels(
    fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor
):
    ces = ces_for(
        "SYS.OBS",
        [make_definition("download_bytes", "SYS.OBS", bucket_name="logs")],
        [make_data_point("download_bytes", "SYS.OBS", bucket_name="logs")],
    )
    obs = FakeObsClient(tags={"logs": {"team": "ops"}}, locations={"logs": "eu-de"})
    service = make_service(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor, ces=ces, obs=obs)

    (record,) = service.export_namespace("SYS.OBS")

    assert record.labels["bucket_name"] == "logs"
    assert record.labels["tag_team"] == "ops"
    assert record.labels["location"] == "eu-de"
    assert record.value == 0.0


def test_agent_duplicate_metrics_are_filtered(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor):
    ces = ces_for(
        "AGT.ECS",
        [make_definition("d_cpu_usage", "AGT.ECS", instance_id="vm-1")],
        [
            make_data_point("d_cpu_usage", "AGT.ECS", instance_id="vm-1"),
            make_data_point("id_cpu_usage", "AGT.ECS", instance_id="vm-1"),
            make_data_point("", "AGT.ECS", instance_id="vm-1"),
        ],
    )
    service = make_service(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor, ces=ces)

    records = service.export_namespace("AGT.ECS")

    assert [r.metric_name for r in records] == ["d_cpu_usage"]


def test_catalog_failure_yields_no_records(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor):
    ces = FakeCesClient(list_error=CloudApiError("denied", endpoint="/metrics", status_code=403))
    service = make_service(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor, ces=ces)

    assert service.export_namespace("SYS.ECS") == []
    assert ces.batch_calls == []


def test_batch_failure_yields_no_records(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor):
    ces = ces_for("SYS.ECS", [make_definition(instance_id="vm-1")], [])
    ces.batch_error = CloudApiError("bad request", endpoint="/batch", status_code=400)
    service = make_service(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor, ces=ces)

    assert service.export_namespace("SYS.ECS") == []


def test_invalid_inputs_make_no_remote_calls(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor):
    ces = FakeCesClient()
    service = MetricExportService(
        fake_clients(ces=ces, project_id=""), cloud_config, inventory_cache, bucket_cache, retry_executor
    )

    assert service.export_namespace("SYS.ECS") == []
    assert service.export_namespace("") == []
    assert ces.list_calls == []


def test_failing_data_point_is_dropped(fake_clients, cloud_config, inventory_cache, bucket_cache, retry_executor):
    """One failing task does not abort the others."""

    class FlakyAssembler(ExportAssembler):
        def assemble(self, data_point, labels, unit):
            if labels.get("resource_id") == "vm-bad":
                raise RuntimeError("boom")
            return super().assemble(data_point, labels, unit)

    ces = ces_for(
        "SYS.ECS",
        [make_definition(instance_id="vm-1")],
        [make_data_point(instance_id="vm-1"), make_data_point(instance_id="vm-bad"), make_data_point(instance_id="vm-2")],
    )
    service = MetricExportService(
        fake_clients(ces=ces), cloud_config, inventory_cache, bucket_cache, retry_executor, assembler=FlakyAssembler()
    )

    records = service.export_namespace("SYS.ECS")

    assert sorted(r.labels["resource_id"] for r in records) == ["vm-1", "vm-2"]


def test_filter_supported_namespaces_drops_unknown_and_repeats():
    assert filter_supported_namespaces(["SYS.ECS", "NS.EXAMPLE", "SYS.EVS", "SYS.ECS"]) == ["SYS.ECS", "SYS.EVS"]


def test_should_skip_metric_only_for_agent_prefix():
    assert should_skip_metric("id_cpu_usage", "AGT.ECS") is True
    assert should_skip_metric("id_cpu_usage", "SYS.ECS") is False
    assert should_skip_metric("d_cpu_usage", "AGT.ECS") is False


def test_count_unique_series_ignores_unit():
    now = datetime.now(timezone.utc)
    records = [
        ExportRecord(metric_name="cpu_util", labels={"resource_id": "vm-1", "unit": "%"}, value=1, unit="%", timestamp=now),
        ExportRecord(metric_name="cpu_util", labels={"resource_id": "vm-1"}, value=2, timestamp=now),
        ExportRecord(metric_name="cpu_util", labels={"resource_id": "vm-2"}, value=3, timestamp=now),
    ]

    assert count_unique_series(records) == 2
