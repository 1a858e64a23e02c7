"""Tests for resource identity resolution."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

from conftest import FakeEvsClient, make_data_point
from domains.cloudeye.clients.error import CloudApiError
from domains.cloudeye.models import ResolutionSource, Volume, VolumeAttachment
from domains.cloudeye.resource_resolver import (
    ResourceResolver,
    VolumeDirectory,
    decode_compound_volume_id,
    find_resource_id,
)


def make_directory(retry_executor, volumes=None, error=None):
    evs = FakeEvsClient(volumes=volumes, error=error)
    return evs, VolumeDirectory(evs, retry_executor)


def test_generic_resolution_uses_id_dimension():
    data_point = make_data_point(instance_id=" vm-1 ", Tenant_Id="tenant-1")

    identity = ResourceResolver().resolve(data_point, "SYS.ECS")

    assert identity.canonical_id == "vm-1"
    assert identity.source == ResolutionSource.GENERIC
    assert identity.labels == {
        "namespace": "SYS.ECS",
        "instance_id": "vm-1",
        "tenant_id": "tenant-1",
        "resource_id": "vm-1",
    }
    assert "resource_id" not in identity.raw_dimension_labels


def test_meta_and_unknown_ids_are_skipped():
    labels = {"namespace": "SYS.RDS", "project_id": "p-1", "rds_cluster_id": "unknown", "rds_instance_id": "rds-1"}

    assert find_resource_id(labels) == "rds-1"


def test_fallback_scan_is_deterministic():
    """Without an *_id key, the first usable non-meta key in sorted order wins."""
    forward = make_data_point(zeta="z-1", alpha="a-1")
    backward = make_data_point(alpha="a-1", zeta="z-1")

    assert ResourceResolver().resolve(forward, "SYS.ELB").canonical_id == "a-1"
    assert ResourceResolver().resolve(backward, "SYS.ELB").canonical_id == "a-1"


def test_missing_identity_falls_back_to_unknown():
    identity = ResourceResolver().resolve(make_data_point(project_id="p-1"), "SYS.ECS")

    assert identity.canonical_id == "unknown"
    assert identity.labels["resource_id"] == "unknown"


def test_object_storage_service_scope():
    """An object-storage metric without bucket or api name is a service-scope total."""
    identity = ResourceResolver().resolve(make_data_point("download_bytes", "SYS.OBS", tenant_id="t-1"), "SYS.OBS")

    assert identity.canonical_id == "total"
    assert identity.labels["resource_id"] == "total"
    assert identity.labels["resource_name"] == "total"
    assert identity.labels["scope"] == "total"
    assert identity.source == ResolutionSource.OBJECT_STORAGE


def test_object_storage_operation_metric():
    identity = ResourceResolver().resolve(
        make_data_point("request_count", "SYS.OBS", api_name="PUT_OBJECT"), "SYS.OBS"
    )

    assert identity.canonical_id == "PUT_OBJECT"
    assert identity.labels["operation"] == "PUT_OBJECT"
    assert identity.labels["resource_name"] == "PUT_OBJECT"


def test_object_storage_bucket_metric_keeps_bucket_as_id():
    identity = ResourceResolver().resolve(make_data_point("download_bytes", "SYS.OBS", bucket_name="logs"), "SYS.OBS")

    assert identity.canonical_id == "logs"
    assert "resource_name" not in identity.labels


def test_block_storage_compound_id_resolves_to_volume(retry_executor):
    """"i-12345-vdb" resolves through the attachment of server i-12345 at /dev/vdb."""
    volume = Volume(id="vol-9", name="data-disk", attachments=[VolumeAttachment(server_id="i-12345", device="/dev/vdb")])
    _, directory = make_directory(retry_executor, volumes=[volume])

    identity = ResourceResolver(directory).resolve(make_data_point("disk_read", "SYS.EVS", disk_name="i-12345-vdb"), "SYS.EVS")

    assert identity.canonical_id == "vol-9"
    assert identity.labels["resource_id"] == "vol-9"
    assert identity.labels["disk_name"] == "data-disk"
    assert identity.source == ResolutionSource.BLOCK_STORAGE


def test_block_storage_without_match_keeps_raw_id(retry_executor):
    _, directory = make_directory(retry_executor, volumes=[])

    identity = ResourceResolver(directory).resolve(make_data_point("disk_read", "SYS.EVS", disk_name="i-1-vdc"), "SYS.EVS")

    assert identity.canonical_id == "i-1-vdc"


def test_decode_rejects_ids_without_usable_dash():
    assert decode_compound_volume_id("abc") is None
    assert decode_compound_volume_id("abc-") is None
    assert decode_compound_volume_id("-vdb") is None
    assert decode_compound_volume_id("i-12345-vdb") == ("i-12345", "vdb")


def test_undecodable_ids_are_left_unresolved(retry_executor):
    evs, directory = make_directory(retry_executor)
    resolver = ResourceResolver(directory)

    assert resolver.resolve(make_data_point("disk_read", "SYS.EVS", disk_name="abc"), "SYS.EVS").canonical_id == "abc"
    assert resolver.resolve(make_data_point("disk_read", "SYS.EVS", disk_name="abc-"), "SYS.EVS").canonical_id == "abc-"
    assert evs.calls == 0


def test_volume_directory_lists_once(retry_executor):
    volume = Volume(id="vol-1", attachments=[VolumeAttachment(server_id="i-1", device="/dev/vda")])
    evs, directory = make_directory(retry_executor, volumes=[volume])

    assert directory.find("i-1", "/dev/vda") == volume
    assert directory.find("i-1", "/dev/vdb") is None
    assert evs.calls == 1


def test_volume_directory_lists_once_under_concurrent_lookups(retry_executor):
    """Lookups racing on an unloaded index share a single volume listing."""
    volume = Volume(id="vol-1", attachments=[VolumeAttachment(server_id="i-1", device="/dev/vda")])

    class SlowEvsClient(FakeEvsClient):
        def list_volumes(self):
            time.sleep(0.05)
            return super().list_volumes()

    evs = SlowEvsClient(volumes=[volume])
    directory = VolumeDirectory(evs, retry_executor)
    workers = 8
    barrier = threading.Barrier(workers)

    def lookup(_):
        barrier.wait()
        return directory.find("i-1", "/dev/vda")

    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(lookup, range(workers)))

    assert results == [volume] * workers
    assert evs.calls == 1


def test_volume_directory_failure_yields_empty_index(retry_executor):
    evs, directory = make_directory(retry_executor, error=CloudApiError("forbidden", endpoint="/v2", status_code=403))

    assert directory.find("i-1", "/dev/vda") is None
    assert directory.find("i-1", "/dev/vda") is None
    assert evs.calls == 1
