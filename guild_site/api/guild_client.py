"""
Async client for the guild site REST API

Mirrors the four read endpoints. Errors surface to the caller as APIError;
there is no retry or backoff at this layer.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from ..core.constants import DEFAULT_GUILD_NAME, DEFAULT_REALM, DEFAULT_REGION, DEFAULT_DIFFICULTY
from ..utils.errors import APIError

logger = logging.getLogger(__name__)


class GuildSiteClient:
    """Typed wrappers over /api/guild, /api/roster, /api/raid-progress and /api/raid-bosses"""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def api_request(self, method: str, path: str, data: Optional[Any] = None) -> httpx.Response:
        """
        Issue a request and fail on any non-2xx status

        Raises:
            APIError: carrying the status code and response body
        """
        response = await self._client.request(method, path, json=data)
        if not response.is_success:
            body = response.text
            raise APIError(
                f"{response.status_code}: {body or response.reason_phrase}",
                status_code=response.status_code,
                endpoint=path,
                body=body
            )
        return response

    async def _get_json(self, path: str, params: Dict[str, str]) -> Dict[str, Any]:
        response = await self.api_request("GET", f"{path}?{urlencode(params)}")
        return response.json()

    async def fetch_guild_info(
        self,
        guild_name: str = DEFAULT_GUILD_NAME,
        realm: str = DEFAULT_REALM,
        region: str = DEFAULT_REGION
    ) -> Dict[str, Any]:
        """Guild record as JSON"""
        return await self._get_json("/api/guild", {"name": guild_name, "realm": realm, "region": region})

    async def fetch_guild_roster(
        self,
        guild_name: str = DEFAULT_GUILD_NAME,
        realm: str = DEFAULT_REALM,
        region: str = DEFAULT_REGION
    ) -> Dict[str, Any]:
        """{characters, apiStatus, lastUpdated}"""
        return await self._get_json("/api/roster", {"name": guild_name, "realm": realm, "region": region})

    async def fetch_raid_progress(
        self,
        guild_name: str = DEFAULT_GUILD_NAME,
        realm: str = DEFAULT_REALM,
        region: str = DEFAULT_REGION
    ) -> Dict[str, Any]:
        """{progresses, apiStatus, lastUpdated}"""
        return await self._get_json("/api/raid-progress", {"name": guild_name, "realm": realm, "region": region})

    async def fetch_raid_bosses(
        self,
        guild_name: str = DEFAULT_GUILD_NAME,
        realm: str = DEFAULT_REALM,
        raid_name: Optional[str] = None,
        difficulty: str = DEFAULT_DIFFICULTY,
        region: str = DEFAULT_REGION
    ) -> Dict[str, Any]:
        """{bosses, apiStatus, difficulty, lastUpdated} for one raid and difficulty"""
        if not raid_name:
            raise ValueError("raid_name is required")
        return await self._get_json("/api/raid-bosses", {
            "raid": raid_name,
            "name": guild_name,
            "realm": realm,
            "region": region,
            "difficulty": difficulty,
        })
