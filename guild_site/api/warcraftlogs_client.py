"""
WarcraftLogs v2 API client

Client credentials OAuth plus a thin GraphQL wrapper.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import httpx

from .base_client import BaseAPIClient
from ..core.constants import WARCRAFTLOGS_API_URL, WARCRAFTLOGS_TOKEN_URL
from ..utils.errors import APIError, ErrorType, GuildSiteError

logger = logging.getLogger(__name__)

ZONE_ENCOUNTERS_QUERY = """
query ZoneEncounters($name: String) {
  worldData {
    zone(name: $name) {
      id
      name
      encounters { id name }
    }
  }
}
"""


class WarcraftLogsClient(BaseAPIClient):
    """WarcraftLogs GraphQL client"""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        api_url: str = WARCRAFTLOGS_API_URL,
        token_url: str = WARCRAFTLOGS_TOKEN_URL,
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(api_url, timeout=timeout, transport=transport)
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url

        self._access_token: Optional[str] = None
        self._token_expires: Optional[datetime] = None

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def get_access_token(self) -> str:
        """Get OAuth2 access token using client credentials flow"""
        if self._access_token and self._token_expires and datetime.now() < self._token_expires:
            return self._access_token

        if not self.configured:
            raise GuildSiteError(
                ErrorType.API_AUTHENTICATION,
                "WarcraftLogs API credentials not configured"
            )

        token_data = await self.post(
            self.token_url,
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret)
        )
        access_token = token_data.get("access_token")
        if not access_token:
            raise APIError("WarcraftLogs token response had no access_token", endpoint=self.token_url)

        expires_in = token_data.get("expires_in", 3600)
        self._access_token = access_token
        self._token_expires = datetime.now() + timedelta(seconds=expires_in - 60)  # 1 minute buffer
        logger.info("Obtained WarcraftLogs access token")
        return access_token

    async def query(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a GraphQL query and return its data block"""
        token = await self.get_access_token()
        payload = await self.post(
            self.base_url,
            json={"query": query, "variables": variables or {}},
            headers={"Authorization": f"Bearer {token}"}
        )
        if payload.get("errors"):
            messages = "; ".join(err.get("message", "unknown") for err in payload["errors"])
            raise APIError(f"WarcraftLogs query failed: {messages}", endpoint=self.base_url)
        return payload.get("data") or {}

    async def get_zone_encounters(self, zone_name: str) -> List[Dict[str, Any]]:
        """Encounters (id, name) for a raid zone, empty when the zone is unknown"""
        data = await self.query(ZONE_ENCOUNTERS_QUERY, {"name": zone_name})
        zone = (data.get("worldData") or {}).get("zone") or {}
        return zone.get("encounters") or []
