from __future__ import annotations

import base64
from datetime import datetime
from typing import Any

from rolloutscorer.clients.base import BaseHTTPClient

API_VERSION = "7.1"


class AzureDevOpsClient(BaseHTTPClient):
    """Azure DevOps build API client authenticated with a PAT."""

    def __init__(
        self,
        organization: str,
        project: str,
        pat: str,
        *,
        base_url: str = "https://dev.azure.com",
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
    ) -> None:
        super().__init__(
            f"{base_url.rstrip('/')}/{organization}/{project}",
            timeout=timeout,
            max_retries=max_retries,
            backoff_factor=backoff_factor,
        )
        self.organization = organization
        self.project = project
        self._pat = pat

    def _headers(self) -> dict[str, str]:
        credentials = base64.b64encode(f":{self._pat}".encode("utf-8")).decode("ascii")
        return {
            "Content-Type": "application/json",
            "Authorization": f"Basic {credentials}",
        }

    async def list_builds(
        self,
        *,
        definition_id: int | None = None,
        min_time: datetime | None = None,
        branch_name: str | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"api-version": API_VERSION}
        if definition_id is not None:
            params["definitions"] = definition_id
        if min_time is not None:
            params["minTime"] = min_time.isoformat()
        if branch_name is not None:
            params["branchName"] = branch_name
        data = await self.get("/_apis/build/builds", params=params)
        return list(data.get("value", []))

    async def get_build_timeline(self, build_id: int) -> dict[str, Any]:
        return await self.get(
            f"/_apis/build/builds/{build_id}/timeline",
            params={"api-version": API_VERSION},
        )
