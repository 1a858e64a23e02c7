from typing import Any

from domains.cloudeye.clients.base_api_client import BaseApiClient
from domains.cloudeye.models import DataPoint, Dimension, MetricDefinition, MetricDefinitionPage, Sample, TimeSeriesBatch


class CesClient(BaseApiClient):
    """Client for the CloudEye (CES) v1 monitoring API."""

    def __init__(self, base_url: str, auth_token: str, project_id: str, **kwargs):
        super().__init__(base_url, auth_token, **kwargs)
        self.project_id = project_id

    def list_metric_definitions(self, namespace: str, limit: int, marker: str | None = None) -> MetricDefinitionPage:
        """Lists one page of metric definitions of a namespace.

        Args:
            namespace (str): Namespace such as "SYS.ECS".
            limit (int): Page size.
            marker (Optional[str]): Continuation marker returned by the previous page.

        Returns:
            MetricDefinitionPage: The definitions and the marker of the next page, if any.
        """
        params: dict[str, Any] = {"namespace": namespace, "limit": limit}
        if marker:
            params["start"] = marker
        body = self._request("GET", f"/V1.0/{self.project_id}/metrics", params=params)

        definitions = [
            MetricDefinition(
                namespace=item.get("namespace") or "",
                metric_name=item.get("metric_name") or "",
                dimensions=self._parse_dimensions(item.get("dimensions")),
                unit=item.get("unit") or "",
            )
            for item in body.get("metrics") or []
        ]
        meta_data = body.get("meta_data") or {}
        return MetricDefinitionPage(definitions=definitions, next_marker=meta_data.get("marker") or None)

    def batch_query(self, batch: TimeSeriesBatch) -> list[DataPoint]:
        """Queries the data points of every metric in the batch with one request."""
        payload = {
            "metrics": [
                {
                    "namespace": metric.namespace,
                    "metric_name": metric.metric_name,
                    "dimensions": [{"name": d.name, "value": d.value} for d in metric.dimensions],
                }
                for metric in batch.metrics
            ],
            "from": batch.window_start_ms,
            "to": batch.window_end_ms,
            "period": str(batch.period_seconds),
            "filter": batch.aggregation,
        }
        body = self._request("POST", f"/V1.0/{self.project_id}/batch-query-metric-data", json=payload)

        data_points = []
        for item in body.get("metrics") or []:
            samples = [
                Sample(timestamp_ms=int(point.get("timestamp") or 0), average=point.get(batch.aggregation))
                for point in item.get("datapoints") or []
            ]
            data_points.append(
                DataPoint(
                    namespace=item.get("namespace") or "",
                    metric_name=item.get("metric_name") or "",
                    dimensions=self._parse_dimensions(item.get("dimensions")),
                    unit=item.get("unit") or "",
                    samples=samples,
                )
            )
        return data_points

    @staticmethod
    def _parse_dimensions(raw: list[dict[str, Any]] | None) -> list[Dimension]:
        return [
            Dimension(name=str(d.get("name") or ""), value=str(d.get("value") or ""))
            for d in raw or []
            if d.get("name")
        ]
