from domains.cloudeye.clients.obs_client import ObsClient
from domains.cloudeye.clients.rms_client import RmsClient
from domains.cloudeye.config import EnrichmentConfig
from domains.cloudeye.constants import (
    LABEL_BUCKET_NAME,
    LABEL_DOMAIN_NAME,
    LABEL_PROJECT_ID,
    LABEL_PROJECT_NAME,
    LABEL_RESOURCE_ID,
    LABEL_RESOURCE_NAME,
    NAMESPACE_OBS,
    OBS_OPERATIONS,
    RESOURCE_ID_TOTAL,
    RESOURCE_ID_UNKNOWN,
    RMS_LABEL_TAGS,
    TAG_LABEL_PREFIX,
)
from domains.cloudeye.models import InventoryRecord
from utils.cache_manager import EnrichmentCache
from utils.logging.logging_manager import LogManager
from utils.retry import OperationFailedError, RetryExecutor

ID_KEY = "id"
NAME_KEY = "name"
BUCKET_TAGS_KEY = "bucket-tags"
BUCKET_INFO_KEY = "bucket-info"


class InventoryEnricher:
    """Adds resource inventory (RMS) metadata to a label map.

    Lookups go cache first; on a miss the inventory is searched and the match is stored under
    every key it can be found by, so later lookups hit regardless of which key missed.
    """

    def __init__(
        self,
        rms_client: RmsClient,
        cache: EnrichmentCache,
        retry_executor: RetryExecutor,
        settings: EnrichmentConfig,
        project_id: str = "",
        project_name: str = "",
        domain_name: str = "",
    ):
        self.rms_client = rms_client
        self.cache = cache
        self.retry_executor = retry_executor
        self.settings = settings
        self.project_id = project_id
        self.project_name = project_name
        self.domain_name = domain_name
        self.logger = LogManager.get_instance().get_logger("InventoryEnricher")

    @staticmethod
    def should_enrich(resource_id: str, namespace: str) -> bool:
        """False for ids that are synthetic and never exist in the inventory."""
        if not resource_id or resource_id in (RESOURCE_ID_UNKNOWN, RESOURCE_ID_TOTAL):
            return False
        if namespace == NAMESPACE_OBS and resource_id in OBS_OPERATIONS:
            return False
        return True

    def enrich(self, labels: dict[str, str], resource_id: str, namespace: str) -> dict[str, str]:
        """Applies inventory fields to `labels` in place and returns it.

        A failed lookup is logged as a warning and leaves the labels untouched.
        """
        if not self.should_enrich(resource_id, namespace):
            return labels

        try:
            payload = self.lookup(resource_id)
        except OperationFailedError as e:
            self.logger.warning(f"Failed to fetch RMS info for {resource_id} after retries: {e}")
            return labels

        if payload is None:
            self.logger.debug(f"No inventory record found for {resource_id}")
            return labels
        return self.apply(labels, payload)

    def lookup(self, resource_id: str) -> dict[str, str] | None:
        """Returns the cached or freshly searched inventory payload of `resource_id`, if any."""
        query_key = self.cache.build_key(ID_KEY, resource_id)
        payload, found = self.cache.get(query_key)
        if found:
            return payload

        record = self._search(resource_id)
        if record is None:
            return None

        payload = record.to_payload()
        self.cache.set(query_key, payload)
        if record.id:
            self.cache.set(self.cache.build_key(ID_KEY, record.id), payload)
        if record.name:
            self.cache.set(self.cache.build_key(NAME_KEY, record.name), payload)
        return payload

    def _search(self, resource_id: str) -> InventoryRecord | None:
        marker = None
        seen_markers: set[str] = set()
        while True:
            current_marker = marker
            page = self.retry_executor.execute(
                lambda: self.rms_client.search(resource_id=resource_id, marker=current_marker),
                f"get RMS resource info for {resource_id}",
            )
            for record in page.resources:
                if record.matches(resource_id, resource_id):
                    return record
            if not page.resources or not page.next_marker or page.next_marker in seen_markers:
                return None
            seen_markers.add(page.next_marker)
            marker = page.next_marker

    def apply(self, labels: dict[str, str], payload: dict[str, str]) -> dict[str, str]:
        if self.settings.is_enabled(LABEL_RESOURCE_NAME) and payload.get("name"):
            labels[LABEL_RESOURCE_NAME] = payload["name"]
        if self.settings.is_enabled(LABEL_PROJECT_ID):
            labels[LABEL_PROJECT_ID] = payload.get("project_id") or self.project_id
        if self.settings.is_enabled(LABEL_PROJECT_NAME):
            labels[LABEL_PROJECT_NAME] = payload.get("project_name") or self.project_name
        if self.settings.is_enabled(LABEL_DOMAIN_NAME):
            labels[LABEL_DOMAIN_NAME] = self.domain_name
        if self.settings.is_enabled(RMS_LABEL_TAGS):
            for key, value in payload.items():
                if key.startswith(TAG_LABEL_PREFIX) and value:
                    labels[key] = value
        if payload.get("id"):
            labels[LABEL_RESOURCE_ID] = payload["id"]
        return labels


class BucketEnricher:
    """Adds object-storage bucket tags and location to a label map.

    Tags and bucket info are cached and fetched independently; either may fail without
    affecting the other.
    """

    def __init__(self, obs_client: ObsClient, cache: EnrichmentCache, retry_executor: RetryExecutor):
        self.obs_client = obs_client
        self.cache = cache
        self.retry_executor = retry_executor
        self.logger = LogManager.get_instance().get_logger("BucketEnricher")

    def enrich(self, labels: dict[str, str], bucket_name: str) -> dict[str, str]:
        if not bucket_name:
            return labels
        labels[LABEL_BUCKET_NAME] = bucket_name

        tags = self._cached_fetch(
            BUCKET_TAGS_KEY, bucket_name, lambda: self.obs_client.get_bucket_tags(bucket_name), "tags"
        )
        if tags is not None:
            for key, value in tags.items():
                labels[f"{TAG_LABEL_PREFIX}{key}"] = value
            self.logger.debug(f"Added {len(tags)} bucket tags to labels for bucket {bucket_name}")

        info = self._cached_fetch(
            BUCKET_INFO_KEY, bucket_name, lambda: self.obs_client.get_bucket_location(bucket_name), "info"
        )
        if info is not None:
            labels.update(info)
            self.logger.debug(f"Added bucket info labels for bucket {bucket_name}")
        return labels

    def _cached_fetch(self, kind: str, bucket_name: str, fetch, description: str) -> dict[str, str] | None:
        key = self.cache.build_key(kind, bucket_name)
        payload, found = self.cache.get(key)
        if found:
            return payload
        try:
            payload = self.retry_executor.execute(fetch, f"get OBS bucket {description} for {bucket_name}")
        except OperationFailedError as e:
            self.logger.warning(f"Could not fetch {description} for OBS bucket {bucket_name}: {e}")
            return None
        self.cache.set(key, payload)
        return payload
