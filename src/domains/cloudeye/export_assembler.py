from datetime import datetime, timezone
from typing import Callable

from domains.cloudeye.constants import LABEL_UNIT
from domains.cloudeye.models import DataPoint, ExportRecord


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExportAssembler:
    """Converts a resolved, enriched data point into export records."""

    def __init__(self, clock: Callable[[], datetime] = _utc_now):
        self._clock = clock

    def assemble(self, data_point: DataPoint, labels: dict[str, str], unit: str) -> list[ExportRecord]:
        """Builds one record per sample.

        A data point without samples still yields one record, valued 0 at assembly time, so the
        series stays visible. Every record owns its own copy of the labels.
        """
        if not data_point.samples:
            return [self._record(data_point.metric_name, labels, unit, 0.0, self._clock())]

        return [
            self._record(
                data_point.metric_name,
                labels,
                unit,
                sample.average if sample.average is not None else 0.0,
                datetime.fromtimestamp(sample.timestamp_ms / 1000, tz=timezone.utc),
            )
            for sample in data_point.samples
        ]

    @staticmethod
    def _record(metric_name: str, labels: dict[str, str], unit: str, value: float, timestamp: datetime) -> ExportRecord:
        record_labels = dict(labels)
        if unit:
            record_labels[LABEL_UNIT] = unit
        return ExportRecord(metric_name=metric_name, labels=record_labels, value=value, unit=unit, timestamp=timestamp)
