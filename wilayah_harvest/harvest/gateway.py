"""Remote gateway for the BPS bridging API."""

from __future__ import annotations

import asyncio
from typing import Any

from wilayah_harvest.common.errors import MalformedPayloadError
from wilayah_harvest.common.http import HttpClient, TimeoutConfig
from wilayah_harvest.common.models import LevelNode

PERIODS_PATH = "/rest-drop-down/getperiode"
CHILDREN_PATH = "/rest-bridging/getwilayah"
POSTAL_PATH = "/rest-bridging-pos/getwilayah"


def _ensure_list(payload: Any, url: str) -> list[dict[str, Any]]:
    if not isinstance(payload, list):
        raise MalformedPayloadError(f"Expected a JSON array from {url}, got {type(payload).__name__}")
    return [item for item in payload if isinstance(item, dict)]


class RemoteGateway:
    """Async facade over the blocking HTTP client.

    Every call runs on a worker thread so the traversal loop keeps
    interleaving branches while a request is in flight.
    """

    def __init__(self, client: HttpClient, base_url: str, *, timeout: TimeoutConfig | None = None) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _get_list(self, path: str, params: dict[str, str] | None = None) -> list[dict[str, Any]]:
        url = f"{self.base_url}{path}"
        payload = await asyncio.to_thread(self.client.get_json, url, params=params, timeout=self.timeout)
        return _ensure_list(payload, url)

    async def list_periods(self) -> list[dict[str, Any]]:
        return await self._get_list(PERIODS_PATH)

    async def list_children(self, level: LevelNode, parent_code: str, period_code: str) -> list[dict[str, Any]]:
        return await self._get_list(
            CHILDREN_PATH,
            {"level": level.name, "parent": parent_code, "periode_merge": period_code},
        )

    async def list_postal(self, level: LevelNode, parent_code: str, period_code: str) -> list[dict[str, Any]]:
        return await self._get_list(
            POSTAL_PATH,
            {"level": level.postal_name, "parent": parent_code, "periode_merge": period_code},
        )
