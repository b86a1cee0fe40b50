"""
Battle.net OAuth2 strategy

Authorization-code flow against oauth.battle.net: build the authorize URL,
trade the callback code for tokens, read the account profile.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
from urllib.parse import urlencode

import aiohttp

from ..utils.errors import APIError

logger = logging.getLogger(__name__)

OAUTH_HOSTS = {
    "us": "https://oauth.battle.net",
    "eu": "https://oauth.battle.net",
    "kr": "https://oauth.battle.net",
    "tw": "https://oauth.battle.net",
    "cn": "https://oauth.battlenet.com.cn",
}

DEFAULT_SCOPE = "openid wow.profile"


@dataclass
class BnetStrategyOptions:
    client_id: str
    client_secret: str
    callback_url: str
    region: str = "eu"
    scope: str = DEFAULT_SCOPE


@dataclass
class BnetProfile:
    id: str
    battletag: str
    region: Optional[str] = None
    avatar: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_userinfo(cls, data: Dict[str, Any], region: str) -> "BnetProfile":
        known = {"id", "sub", "battletag", "battle_tag", "region", "avatar"}
        return cls(
            id=str(data.get("id") or data.get("sub") or ""),
            battletag=data.get("battletag") or data.get("battle_tag") or "",
            region=data.get("region") or region,
            avatar=data.get("avatar"),
            extra={k: v for k, v in data.items() if k not in known},
        )


# (access_token, refresh_token, profile) -> user
VerifyCallback = Callable[[str, Optional[str], BnetProfile], Awaitable[Any]]


class BnetStrategy:
    """Battle.net login strategy"""

    name = "bnet"

    def __init__(self, options: BnetStrategyOptions, verify: Optional[VerifyCallback] = None, timeout: int = 30):
        if not options.client_id or not options.client_secret:
            raise ValueError("BLIZZARD_CLIENT_ID and BLIZZARD_CLIENT_SECRET must be set")
        self.options = options
        self.verify = verify
        self.region = options.region.lower()
        self.oauth_host = OAUTH_HOSTS.get(self.region, OAUTH_HOSTS["eu"])
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def authorize_url(self) -> str:
        return f"{self.oauth_host}/authorize"

    @property
    def token_url(self) -> str:
        return f"{self.oauth_host}/token"

    @property
    def userinfo_url(self) -> str:
        if self.region == "cn":
            return f"{self.oauth_host}/oauth/userinfo"
        return f"https://{self.region}.battle.net/oauth/userinfo"

    def authorization_url(self, state: str) -> str:
        """URL the browser is redirected to for login"""
        params = {
            "client_id": self.options.client_id,
            "redirect_uri": self.options.callback_url,
            "response_type": "code",
            "scope": self.options.scope,
            "state": state,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def _post_token(self, data: Dict[str, str]) -> Dict[str, Any]:
        auth = aiohttp.BasicAuth(self.options.client_id, self.options.client_secret)
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.token_url, auth=auth, data=data) as response:
                    if response.status != 200:
                        raise APIError(
                            f"Failed to get access token: {response.status}",
                            status_code=response.status,
                            endpoint=self.token_url,
                            body=await response.text()
                        )
                    return await response.json()
        except aiohttp.ClientError as e:
            raise APIError(f"Network error getting access token: {str(e)}", endpoint=self.token_url) from e

    async def _get_userinfo(self, access_token: str) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(self.userinfo_url, headers=headers) as response:
                    if response.status != 200:
                        raise APIError(
                            f"Failed to fetch Battle.net profile: {response.status}",
                            status_code=response.status,
                            endpoint=self.userinfo_url,
                            body=await response.text()
                        )
                    return await response.json()
        except aiohttp.ClientError as e:
            raise APIError(f"Network error fetching profile: {str(e)}", endpoint=self.userinfo_url) from e

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """Trade an authorization code for tokens"""
        return await self._post_token({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.options.callback_url,
            "scope": self.options.scope,
        })

    async def fetch_profile(self, access_token: str) -> BnetProfile:
        data = await self._get_userinfo(access_token)
        return BnetProfile.from_userinfo(data, self.region)

    async def authenticate(self, code: str) -> Tuple[Dict[str, Any], BnetProfile, Any]:
        """
        Complete a login

        Returns:
            (token data, profile, result of the verify callback or None)
        """
        tokens = await self.exchange_code(code)
        access_token = tokens.get("access_token")
        if not access_token:
            raise APIError("Battle.net token response had no access_token", endpoint=self.token_url)
        profile = await self.fetch_profile(access_token)
        logger.info(f"Battle.net login for {profile.battletag or profile.id}")

        user = None
        if self.verify is not None:
            user = await self.verify(access_token, tokens.get("refresh_token"), profile)
        return tokens, profile, user
