"""
Raider.IO API client
"""

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception

from .base_client import BaseAPIClient
from ..core.constants import (
    RAIDERIO_BASE_URL,
    GUILD_PROFILE_FIELDS,
    CHARACTER_PROFILE_FIELDS,
    API_MAX_RETRIES,
)
from ..utils.errors import APIError
from ..utils.wow_utils import realm_slug

logger = logging.getLogger(__name__)


def _is_throttled(exc: BaseException) -> bool:
    """Rate limits and server errors are worth another attempt"""
    return isinstance(exc, APIError) and exc.status_code is not None and (
        exc.status_code == 429 or exc.status_code >= 500
    )


class RaiderIOClient(BaseAPIClient):
    """Public Raider.IO endpoints; no authentication required"""

    def __init__(
        self,
        base_url: str = RAIDERIO_BASE_URL,
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(base_url, timeout=timeout, transport=transport)

    async def get_guild_profile(
        self,
        name: str,
        realm: str,
        region: str = "eu",
        fields: str = GUILD_PROFILE_FIELDS
    ) -> Dict[str, Any]:
        """
        Fetch a guild profile

        Args:
            name: Guild name
            realm: Realm display name, slugged before sending
            region: Region code
            fields: Comma separated optional fields (members, raid_progression, ...)
        """
        logger.info(f"Fetching Raider.IO guild profile for {name} @ {realm} ({region})")
        return await self.get(
            "guilds/profile",
            params={"region": region, "realm": realm_slug(realm), "name": name, "fields": fields}
        )

    @retry(
        stop=stop_after_attempt(API_MAX_RETRIES + 1),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception(_is_throttled),
        reraise=True
    )
    async def get_character_profile(
        self,
        name: str,
        realm: str,
        region: str = "eu",
        fields: str = CHARACTER_PROFILE_FIELDS
    ) -> Dict[str, Any]:
        """Fetch a character profile including the current Mythic+ score"""
        return await self.get(
            "characters/profile",
            params={"region": region, "realm": realm_slug(realm), "name": name, "fields": fields}
        )
