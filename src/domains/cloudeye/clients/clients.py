from dataclasses import dataclass

from domains.cloudeye.clients.ces_client import CesClient
from domains.cloudeye.clients.evs_client import EvsClient
from domains.cloudeye.clients.obs_client import ObsClient
from domains.cloudeye.clients.rms_client import RmsClient
from domains.cloudeye.config import CloudEyeConfig


@dataclass
class CloudClients:
    """The remote clients of one project, plus the identity they act for."""

    ces: CesClient
    rms: RmsClient
    evs: EvsClient
    obs: ObsClient
    project_id: str
    project_name: str = ""
    domain_name: str = ""


def build_clients(config: CloudEyeConfig) -> CloudClients:
    """Builds every client from configuration."""
    auth = config.auth
    endpoints = config.endpoints
    http_options = {
        "timeout": endpoints.request_timeout_seconds,
        "proxy_url": endpoints.proxy_url,
        "verify_ssl": not endpoints.ignore_ssl_verify,
    }
    return CloudClients(
        ces=CesClient(endpoints.resolve("ces", auth.region), auth.auth_token, auth.project_id, **http_options),
        rms=RmsClient(endpoints.resolve("rms", auth.region), auth.auth_token, auth.domain_id, **http_options),
        evs=EvsClient(endpoints.resolve("evs", auth.region), auth.auth_token, auth.project_id, **http_options),
        obs=ObsClient(
            endpoints.resolve("obs", auth.region),
            auth.access_key,
            auth.secret_key,
            auth.region,
            **http_options,
        ),
        project_id=auth.project_id,
        project_name=auth.project_name,
        domain_name=auth.domain_name,
    )
