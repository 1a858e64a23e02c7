from typing import Any

from domains.cloudeye.clients.base_api_client import BaseApiClient
from domains.cloudeye.constants import EVS_PAGE_LIMIT
from domains.cloudeye.models import Volume, VolumeAttachment


class EvsClient(BaseApiClient):
    """Client for the Elastic Volume Service (EVS) block-storage API."""

    def __init__(self, base_url: str, auth_token: str, project_id: str, **kwargs):
        super().__init__(base_url, auth_token, **kwargs)
        self.project_id = project_id

    def list_volumes(self, limit: int = EVS_PAGE_LIMIT) -> list[Volume]:
        """Lists every volume of the project, following the marker until the last page."""
        volumes: list[Volume] = []
        marker = None
        while True:
            params: dict[str, Any] = {"limit": limit}
            if marker:
                params["marker"] = marker
            body = self._request("GET", f"/v2/{self.project_id}/cloudvolumes/detail", params=params)
            page = [self._parse_volume(item) for item in body.get("volumes") or []]
            volumes.extend(page)

            # A short page is the last one; the marker is the id of the last volume seen
            if len(page) < limit or page[-1].id == marker:
                break
            marker = page[-1].id

        self.logger.debug(f"Listed {len(volumes)} volumes")
        return volumes

    @staticmethod
    def _parse_volume(item: dict[str, Any]) -> Volume:
        return Volume(
            id=str(item.get("id") or ""),
            name=str(item.get("name") or ""),
            attachments=[
                VolumeAttachment(server_id=str(a.get("server_id") or ""), device=str(a.get("device") or ""))
                for a in item.get("attachments") or []
            ],
        )
