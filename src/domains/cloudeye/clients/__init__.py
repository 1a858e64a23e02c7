from .ces_client import CesClient
from .clients import CloudClients, build_clients
from .error import CloudApiConnectionError, CloudApiError
from .evs_client import EvsClient
from .obs_client import ObsClient
from .rms_client import RmsClient

__all__ = [
    "CesClient",
    "CloudApiConnectionError",
    "CloudApiError",
    "CloudClients",
    "EvsClient",
    "ObsClient",
    "RmsClient",
    "build_clients",
]
