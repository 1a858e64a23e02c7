from typing import Any

from domains.cloudeye.clients.base_api_client import BaseApiClient
from domains.cloudeye.constants import RMS_PAGE_LIMIT
from domains.cloudeye.models import InventoryPage, InventoryRecord


class RmsClient(BaseApiClient):
    """Client for the Resource Management Service (RMS) inventory."""

    def __init__(self, base_url: str, auth_token: str, domain_id: str, **kwargs):
        super().__init__(base_url, auth_token, **kwargs)
        self.domain_id = domain_id

    def search(
        self,
        resource_id: str | None = None,
        name: str | None = None,
        marker: str | None = None,
        limit: int = RMS_PAGE_LIMIT,
    ) -> InventoryPage:
        """Lists one page of inventory resources, optionally filtered by id or name."""
        params: dict[str, Any] = {"limit": limit}
        if resource_id:
            params["id"] = resource_id
        if name:
            params["name"] = name
        if marker:
            params["marker"] = marker
        body = self._request("GET", f"/v1/resource-manager/domains/{self.domain_id}/all-resources", params=params)

        resources = [InventoryRecord.from_rms_v1(item) for item in body.get("resources") or []]
        page_info = body.get("page_info") or {}
        return InventoryPage(resources=resources, next_marker=page_info.get("next_marker") or None)
