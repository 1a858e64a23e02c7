from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from domains.cloudeye.constants import AGGREGATION_AVERAGE, TAG_LABEL_PREFIX


class Dimension(BaseModel):
    """A name/value pair identifying which resource a metric belongs to."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str = ""


class MetricDefinition(BaseModel):
    """Model for one metric definition listed by the monitoring API.

    Attributes:
        namespace (str): Namespace the metric belongs to, e.g. "SYS.ECS".
        metric_name (str): Metric name, e.g. "cpu_util".
        dimensions (list[Dimension]): Ordered dimensions identifying the resource.
        unit (str): Unit reported by the catalog, may be empty.
    """

    model_config = ConfigDict(frozen=True)

    namespace: str = ""
    metric_name: str = ""
    dimensions: list[Dimension] = Field(default_factory=list)
    unit: str = ""

    def is_queryable(self) -> bool:
        """True when the definition can be part of a batch query."""
        return bool(self.metric_name) and bool(self.namespace) and bool(self.dimensions)


class MetricDefinitionPage(BaseModel):
    definitions: list[MetricDefinition] = Field(default_factory=list)
    next_marker: str | None = None


class TimeSeriesBatch(BaseModel):
    """One windowed batch query covering many metric definitions.

    Attributes:
        metrics (list[MetricDefinition]): Definitions to query.
        window_start_ms (int): Window start, epoch milliseconds.
        window_end_ms (int): Window end, epoch milliseconds.
        period_seconds (int): Aggregation period; 1 requests raw data.
        aggregation (str): Aggregation function, always "average".
    """

    model_config = ConfigDict(frozen=True)

    metrics: list[MetricDefinition]
    window_start_ms: int
    window_end_ms: int
    period_seconds: int
    aggregation: str = AGGREGATION_AVERAGE


class Sample(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp_ms: int
    average: float | None = None


class DataPoint(BaseModel):
    """One metric definition's samples within the queried window."""

    model_config = ConfigDict(frozen=True)

    namespace: str = ""
    metric_name: str = ""
    dimensions: list[Dimension] = Field(default_factory=list)
    unit: str = ""
    samples: list[Sample] = Field(default_factory=list)

    def dimension_value(self, name: str) -> str:
        """Returns the value of the first dimension called `name` (case-insensitive), or ""."""
        for dimension in self.dimensions:
            if dimension.name.lower() == name:
                return dimension.value
        return ""


class ResolutionSource(str, Enum):
    GENERIC = "generic"
    BLOCK_STORAGE = "block-storage"
    OBJECT_STORAGE = "object-storage"


class ResourceIdentity(BaseModel):
    """The resolved identity of the resource a data point describes.

    Attributes:
        raw_dimension_labels (dict[str, str]): Labels built straight from the dimensions.
        labels (dict[str, str]): Working label set after namespace-specific resolution.
        canonical_id (str): Stable resource id, or "unknown".
        canonical_name (Optional[str]): Resource name when resolution already knows it.
        source (ResolutionSource): Strategy that produced the identity.
    """

    raw_dimension_labels: dict[str, str]
    labels: dict[str, str]
    canonical_id: str
    canonical_name: str | None = None
    source: ResolutionSource = ResolutionSource.GENERIC


class VolumeAttachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    server_id: str = ""
    device: str = ""


class Volume(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    attachments: list[VolumeAttachment] = Field(default_factory=list)


class InventoryRecord(BaseModel):
    """A resource as described by the resource inventory (RMS).

    Built through an explicit mapping per upstream schema version so that renamed or added
    upstream fields never leak into label sets unnoticed.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    provider: str = ""
    type: str = ""
    region_id: str = ""
    project_id: str = ""
    project_name: str = ""
    tags: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_rms_v1(cls, raw: dict[str, Any]) -> "InventoryRecord":
        """Maps a resource entity of the RMS v1 "all-resources" listing."""
        tags = raw.get("tags") or {}
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            provider=str(raw.get("provider") or ""),
            type=str(raw.get("type") or ""),
            region_id=str(raw.get("region_id") or ""),
            project_id=str(raw.get("project_id") or ""),
            project_name=str(raw.get("project_name") or ""),
            tags={str(k): "" if v is None else str(v) for k, v in tags.items()} if isinstance(tags, dict) else {},
        )

    def matches(self, resource_id: str | None, name: str | None) -> bool:
        if resource_id and self.id == resource_id:
            return True
        return bool(name) and self.name == name

    def to_payload(self) -> dict[str, str]:
        """Flattens the record into the string map stored in the enrichment cache."""
        payload = {
            "id": self.id,
            "name": self.name,
            "provider": self.provider,
            "type": self.type,
            "region_id": self.region_id,
            "project_id": self.project_id,
            "project_name": self.project_name,
        }
        for key, value in self.tags.items():
            payload[f"{TAG_LABEL_PREFIX}{key}"] = value
        return payload


class InventoryPage(BaseModel):
    resources: list[InventoryRecord] = Field(default_factory=list)
    next_marker: str | None = None


class ExportRecord(BaseModel):
    """The immutable unit handed to the metrics bridge and other consumers.

    Attributes:
        metric_name (str): Raw CloudEye metric name.
        labels (dict[str, str]): Labels owned by this record alone.
        value (float): Sample value.
        unit (str): Unit of the value, may be empty.
        timestamp (datetime): Sample time (UTC).
    """

    model_config = ConfigDict(frozen=True)

    metric_name: str
    labels: dict[str, str]
    value: float
    unit: str = ""
    timestamp: datetime
