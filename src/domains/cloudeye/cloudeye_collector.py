import re
from typing import Iterable

from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from domains.cloudeye.constants import (
    CONSTANT_LABELS,
    LABEL_RESOURCE_ID,
    LABEL_RESOURCE_NAME,
    LABEL_UNIT,
    RESOURCE_ID_UNKNOWN,
)
from domains.cloudeye.metric_export_service import MetricExportService, filter_supported_namespaces
from domains.cloudeye.models import ExportRecord
from utils.logging.logging_manager import LogManager

METRIC_DOCUMENTATION = "CloudEye metric"

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_:]")
_INVALID_LABEL_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_metric_name(name: str) -> str:
    sanitized = _INVALID_NAME_CHARS.sub("_", name)
    if not sanitized or sanitized[0].isdigit():
        sanitized = f"_{sanitized}"
    return sanitized


def sanitize_label_name(name: str) -> str:
    sanitized = _INVALID_LABEL_CHARS.sub("_", name)
    if not sanitized or sanitized[0].isdigit():
        sanitized = f"_{sanitized}"
    # Names starting with "__" are reserved by Prometheus
    if sanitized.startswith("__"):
        sanitized = f"_{sanitized.lstrip('_')}"
    return sanitized


def build_metric_name(namespace: str, metric_name: str) -> str:
    """"SYS.ECS" + "cpu_util" -> "ecs_cpu_util"."""
    service = namespace.split(".")[-1].lower()
    return sanitize_metric_name(f"{service}_{metric_name.lower()}")


def series_key(metric_name: str, record: ExportRecord) -> str:
    """Deduplication key: exported name, resource id, resource name, unit and raw metric name."""
    resource_id, resource_name, unit = constant_label_values(record)
    return "|".join((metric_name, resource_id, resource_name, unit, record.metric_name))


def constant_label_values(record: ExportRecord) -> tuple[str, str, str]:
    return (
        record.labels.get(LABEL_RESOURCE_ID) or RESOURCE_ID_UNKNOWN,
        record.labels.get(LABEL_RESOURCE_NAME) or RESOURCE_ID_UNKNOWN,
        record.unit or RESOURCE_ID_UNKNOWN,
    )


class CloudEyeCollector(Collector):
    """Prometheus collector publishing one gauge sample per deduplicated CloudEye series.

    Metrics are dynamic, so `describe` announces nothing and every `collect` runs a scrape.
    """

    def __init__(self, export_service: MetricExportService, namespaces: list[str]):
        self.export_service = export_service
        self.namespaces = filter_supported_namespaces(namespaces)
        self.logger = LogManager.get_instance().get_logger("CloudEyeCollector")

    def describe(self) -> Iterable[Metric]:
        return []

    def collect(self) -> Iterable[Metric]:
        families: dict[str, Metric] = {}
        for namespace in self.namespaces:
            records = self.export_service.export_namespace(namespace)
            published = self.add_records(families, namespace, records)
            self.logger.info(f"Published {published} of {len(records)} records for namespace {namespace}")
        return list(families.values())

    def add_records(self, families: dict[str, Metric], namespace: str, records: list[ExportRecord]) -> int:
        """Adds the first record of every series to its gauge family; later duplicates are dropped."""
        seen: set[str] = set()
        published = 0
        for record in records:
            metric_name = build_metric_name(namespace, record.metric_name)
            key = series_key(metric_name, record)
            if key in seen:
                continue
            seen.add(key)

            labels = {
                sanitize_label_name(k): v for k, v in record.labels.items() if k not in CONSTANT_LABELS
            }
            resource_id, resource_name, unit = constant_label_values(record)
            labels.update({LABEL_RESOURCE_ID: resource_id, LABEL_RESOURCE_NAME: resource_name, LABEL_UNIT: unit})

            family = families.get(metric_name)
            if family is None:
                family = Metric(metric_name, METRIC_DOCUMENTATION, "gauge")
                families[metric_name] = family
            self.logger.debug(f"Publishing metric: {metric_name} value={record.value:.2f} labels={labels}")
            family.add_sample(metric_name, labels, record.value)
            published += 1
        return published
