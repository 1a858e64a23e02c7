import threading
from typing import Callable

from domains.cloudeye.clients.evs_client import EvsClient
from domains.cloudeye.constants import (
    DEVICE_PATH_PREFIX,
    DIMENSION_API_NAME,
    DIMENSION_BUCKET_NAME,
    LABEL_DISK_NAME,
    LABEL_NAMESPACE,
    LABEL_OPERATION,
    LABEL_RESOURCE_ID,
    LABEL_RESOURCE_NAME,
    LABEL_SCOPE,
    META_DIMENSION_KEYS,
    NAMESPACE_OBS,
    RESOURCE_ID_TOTAL,
    RESOURCE_ID_UNKNOWN,
)
from domains.cloudeye.models import DataPoint, ResolutionSource, ResourceIdentity, Volume
from log_config import log_manager
from utils.retry import OperationFailedError, RetryExecutor

logger = log_manager.get_logger("ResourceResolver")


class VolumeDirectory:
    """Index of block-storage attachments, listed at most once per scrape.

    The listing is lazy: the first lookup fetches every volume through the retry executor,
    concurrent lookups wait for it. A failed listing is logged and leaves the index empty
    for the rest of the scrape.
    """

    def __init__(self, evs_client: EvsClient, retry_executor: RetryExecutor):
        self.evs_client = evs_client
        self.retry_executor = retry_executor
        self._index: dict[tuple[str, str], Volume] | None = None
        self._lock = threading.Lock()

    def find(self, server_id: str, device_path: str) -> Volume | None:
        """Returns the volume attached to `server_id` at `device_path`, if any."""
        return self._load().get((server_id, device_path))

    def _load(self) -> dict[tuple[str, str], Volume]:
        with self._lock:
            if self._index is None:
                self._index = {}
                try:
                    volumes = self.retry_executor.execute(self.evs_client.list_volumes, "list EVS volumes")
                except OperationFailedError as e:
                    logger.error(f"Error fetching EVS volumes: {e}")
                    return self._index
                for volume in volumes:
                    for attachment in volume.attachments:
                        self._index.setdefault((attachment.server_id, attachment.device), volume)
                logger.debug(f"Indexed {len(self._index)} volume attachments")
            return self._index


def decode_compound_volume_id(raw_id: str) -> tuple[str, str] | None:
    """Splits "<serverId>-<device>" at the last dash.

    Returns:
        Optional[tuple[str, str]]: (server id, device) or None when there is no dash,
        or the dash is the first or last character.
    """
    last_dash = raw_id.rfind("-")
    if last_dash <= 0 or last_dash >= len(raw_id) - 1:
        return None
    return raw_id[:last_dash], raw_id[last_dash + 1 :]


def build_dimension_labels(data_point: DataPoint, namespace: str) -> dict[str, str]:
    labels = {LABEL_NAMESPACE: namespace}
    for dimension in data_point.dimensions:
        labels[dimension.name.lower()] = dimension.value.strip()
    return labels


def _usable(value: str) -> bool:
    return bool(value) and value != RESOURCE_ID_UNKNOWN


def find_resource_id(labels: dict[str, str]) -> str:
    """Picks the candidate resource id from a dimension label map.

    Keys ending in "_id" win over any other key; both scans run in sorted key order so
    that the choice does not depend on dimension ordering.
    """
    for key in sorted(labels):
        if key.endswith("_id") and key not in META_DIMENSION_KEYS and _usable(labels[key]):
            return labels[key]
    for key in sorted(labels):
        if key not in META_DIMENSION_KEYS and key != LABEL_NAMESPACE and _usable(labels[key]):
            return labels[key]
    return ""


def resolve_generic(identity: ResourceIdentity, data_point: DataPoint, directory: VolumeDirectory | None):
    return identity


def resolve_object_storage(identity: ResourceIdentity, data_point: DataPoint, directory: VolumeDirectory | None):
    """Service-scope and per-operation metrics of object storage have no bucket to point at."""
    api_name = data_point.dimension_value(DIMENSION_API_NAME)
    bucket_name = data_point.dimension_value(DIMENSION_BUCKET_NAME)
    labels = identity.labels

    if api_name:
        identity.canonical_id = api_name
        labels[LABEL_OPERATION] = api_name
    elif not bucket_name:
        identity.canonical_id = RESOURCE_ID_TOTAL
        identity.canonical_name = RESOURCE_ID_TOTAL
        labels[LABEL_SCOPE] = RESOURCE_ID_TOTAL

    if not bucket_name and identity.canonical_name is None and identity.canonical_id:
        identity.canonical_name = identity.canonical_id
    identity.source = ResolutionSource.OBJECT_STORAGE
    return identity


def resolve_block_storage(identity: ResourceIdentity, data_point: DataPoint, directory: VolumeDirectory | None):
    """Replaces the "<serverId>-<device>" id reported for attached disks with the real volume id."""
    raw_id = identity.canonical_id
    decoded = decode_compound_volume_id(raw_id)
    if decoded is None or directory is None:
        return identity

    server_id, device = decoded
    volume = directory.find(server_id, f"{DEVICE_PATH_PREFIX}{device}")
    if volume is None:
        logger.warning(f"Failed to resolve EVS disk ID for {raw_id}")
        return identity

    identity.canonical_id = volume.id
    if volume.name:
        identity.labels[LABEL_DISK_NAME] = volume.name
    identity.source = ResolutionSource.BLOCK_STORAGE
    return identity


Strategy = Callable[[ResourceIdentity, DataPoint, VolumeDirectory | None], ResourceIdentity]

# Matched in order; the first predicate accepting the namespace wins
RESOLUTION_STRATEGIES: list[tuple[Callable[[str], bool], Strategy]] = [
    (lambda namespace: namespace == NAMESPACE_OBS, resolve_object_storage),
    (lambda namespace: "EVS" in namespace, resolve_block_storage),
]


def select_strategy(namespace: str) -> Strategy:
    for accepts, strategy in RESOLUTION_STRATEGIES:
        if accepts(namespace):
            return strategy
    return resolve_generic


class ResourceResolver:
    """Turns a data point's dimensions into a label map and a canonical resource id."""

    def __init__(self, volume_directory: VolumeDirectory | None = None):
        """
        Args:
            volume_directory (Optional[VolumeDirectory]): Attachment index of the current scrape,
                required to decode block-storage ids.
        """
        self.volume_directory = volume_directory

    def resolve(self, data_point: DataPoint, namespace: str) -> ResourceIdentity:
        labels = build_dimension_labels(data_point, namespace)
        identity = ResourceIdentity(
            raw_dimension_labels=dict(labels),
            labels=labels,
            canonical_id=find_resource_id(labels),
        )

        identity = select_strategy(namespace)(identity, data_point, self.volume_directory)

        if not identity.canonical_id:
            identity.canonical_id = RESOURCE_ID_UNKNOWN
            logger.warning(
                f"No valid resource_id found for metric {data_point.metric_name}, using '{RESOURCE_ID_UNKNOWN}'"
            )
        identity.labels[LABEL_RESOURCE_ID] = identity.canonical_id
        if identity.canonical_name is not None:
            identity.labels[LABEL_RESOURCE_NAME] = identity.canonical_name
        return identity
