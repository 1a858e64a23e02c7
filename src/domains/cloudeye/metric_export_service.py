import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

from domains.cloudeye.clients.clients import CloudClients
from domains.cloudeye.config import CloudEyeConfig
from domains.cloudeye.constants import (
    ALL_NAMESPACES,
    DIMENSION_BUCKET_NAME,
    DUPLICATE_METRIC_PREFIXES,
    LABEL_RESOURCE_ID,
    LABEL_RESOURCE_NAME,
    LABEL_UNIT,
    NAMESPACE_OBS,
    RESOURCE_ID_UNKNOWN,
)
from domains.cloudeye.enrichment_service import BucketEnricher, InventoryEnricher
from domains.cloudeye.error import MetricExportError
from domains.cloudeye.export_assembler import ExportAssembler
from domains.cloudeye.metric_catalog import MetricCatalog
from domains.cloudeye.models import DataPoint, ExportRecord
from domains.cloudeye.resource_resolver import ResourceResolver, VolumeDirectory
from domains.cloudeye.time_series_fetcher import TimeSeriesFetcher
from log_config import log_manager
from utils.cache_manager import EnrichmentCache
from utils.retry import OperationFailedError, RetryExecutor

logger = log_manager.get_logger("MetricExportService")


def filter_supported_namespaces(namespaces: list[str]) -> list[str]:
    """Keeps the well-known namespaces, in request order and without repeats."""
    supported = []
    for namespace in namespaces:
        if namespace not in ALL_NAMESPACES:
            logger.warning(f"Unsupported namespace {namespace}, skipping")
            continue
        if namespace not in supported:
            supported.append(namespace)
    return supported


def should_skip_metric(metric_name: str, namespace: str) -> bool:
    """True for metrics that duplicate another series of the same namespace."""
    return metric_name.startswith(DUPLICATE_METRIC_PREFIXES.get(namespace, ()))


def count_unique_series(records: list[ExportRecord]) -> int:
    """Counts distinct (metric name, label set) pairs, ignoring the unit label."""
    unique = set()
    for record in records:
        label_pairs = sorted(f"{k}={v}" for k, v in record.labels.items() if k != LABEL_UNIT)
        unique.add(f"{record.metric_name}|{'|'.join(label_pairs)}")
    return len(unique)


class MetricExportService:
    """Runs one namespace scrape: catalog, batch fetch, then resolve, enrich and assemble per data point."""

    def __init__(
        self,
        clients: CloudClients,
        config: CloudEyeConfig,
        inventory_cache: EnrichmentCache,
        bucket_cache: EnrichmentCache,
        retry_executor: RetryExecutor,
        assembler: ExportAssembler | None = None,
        fetcher: TimeSeriesFetcher | None = None,
    ):
        """
        Args:
            clients (CloudClients): Remote clients and the project they act for.
            config (CloudEyeConfig): Exporter configuration.
            inventory_cache (EnrichmentCache): Cache of inventory lookups, shared across scrapes.
            bucket_cache (EnrichmentCache): Cache of bucket metadata, shared across scrapes.
            retry_executor (RetryExecutor): Executor wrapping every remote call.
            assembler (Optional[ExportAssembler]): Record assembler, replaceable in tests.
            fetcher (Optional[TimeSeriesFetcher]): Batch fetcher, replaceable in tests.
        """
        self.clients = clients
        self.config = config
        self.retry_executor = retry_executor
        self.catalog = MetricCatalog(clients.ces, retry_executor, config.query.page_limit)
        self.fetcher = fetcher or TimeSeriesFetcher(clients.ces, retry_executor)
        self.assembler = assembler or ExportAssembler()
        self.inventory_enricher = InventoryEnricher(
            clients.rms,
            inventory_cache,
            retry_executor,
            config.enrichment,
            project_id=clients.project_id,
            project_name=clients.project_name,
            domain_name=clients.domain_name,
        )
        self.bucket_enricher = BucketEnricher(clients.obs, bucket_cache, retry_executor)

    def export_namespace(self, namespace: str) -> list[ExportRecord]:
        """Exports every series of `namespace`.

        Catalog or batch failures are logged and yield no records; a failing data point is
        logged and dropped while the others are still exported.
        """
        if not namespace or not self.clients.project_id:
            logger.error(
                f"Input validation failed for namespace '{namespace}': namespace and project id must be set"
            )
            return []

        try:
            data_points = self._fetch_data_points(namespace)
        except MetricExportError as e:
            logger.error(e.message)
            return []
        if not data_points:
            return []

        results = self._process_data_points(namespace, data_points)
        unique_count = count_unique_series(results)
        logger.info(f"Exported {unique_count} metric series for namespace {namespace}")
        return results

    def _fetch_data_points(self, namespace: str) -> list[DataPoint]:
        try:
            definitions = self.catalog.list_definitions(namespace)
        except OperationFailedError as e:
            raise MetricExportError(
                f"Failed to fetch metric definitions for namespace {namespace}: {e}",
                namespace=namespace,
                operation="list metric definitions",
            ) from e

        if not definitions:
            logger.warning(f"No metrics found in namespace {namespace} in project {self.clients.project_id}")
            return []
        logger.info(f"Listed {len(definitions)} metrics in namespace {namespace}")

        try:
            data_points = self.fetcher.fetch(definitions, self.config.query.window_ms, self.config.query.period_seconds)
        except OperationFailedError as e:
            raise MetricExportError(
                f"Failed to fetch time series data for namespace {namespace}: {e}",
                namespace=namespace,
                operation="batch query",
            ) from e

        if not data_points:
            logger.warning(f"No time series data returned for namespace {namespace}")
        return data_points

    def _process_data_points(self, namespace: str, data_points: list[DataPoint]) -> list[ExportRecord]:
        resolver = ResourceResolver(VolumeDirectory(self.clients.evs, self.retry_executor))
        results: list[ExportRecord] = []
        results_lock = threading.Lock()

        def process(data_point: DataPoint):
            records = self.process_data_point(data_point, namespace, resolver)
            with results_lock:
                results.extend(records)

        eligible = []
        for data_point in data_points:
            if not data_point.metric_name:
                logger.warning("Metric with empty name found, skipping")
                continue
            if should_skip_metric(data_point.metric_name, namespace):
                logger.debug(f"Skipping duplicate metric: {data_point.metric_name} in namespace {namespace}")
                continue
            eligible.append(data_point)

        if not eligible:
            return results

        with ThreadPoolExecutor(max_workers=min(self.config.scrape.max_workers, len(eligible))) as executor:
            future_to_point = {executor.submit(process, data_point): data_point for data_point in eligible}
            for future in as_completed(future_to_point):
                data_point = future_to_point[future]
                try:
                    future.result()
                except Exception as e:
                    logger.error(
                        f"Failed to process metric {data_point.metric_name} in namespace {namespace}: {e}",
                        exc_info=True,
                    )
        return results

    def process_data_point(
        self, data_point: DataPoint, namespace: str, resolver: ResourceResolver
    ) -> list[ExportRecord]:
        """Resolves, enriches and assembles one data point."""
        identity = resolver.resolve(data_point, namespace)
        labels = identity.labels

        if namespace == NAMESPACE_OBS:
            bucket_name = data_point.dimension_value(DIMENSION_BUCKET_NAME)
            if bucket_name:
                self.bucket_enricher.enrich(labels, bucket_name)

        self.inventory_enricher.enrich(labels, labels.get(LABEL_RESOURCE_ID, identity.canonical_id), namespace)

        labels.setdefault(LABEL_RESOURCE_NAME, RESOURCE_ID_UNKNOWN)
        return self.assembler.assemble(data_point, labels, data_point.unit)
