"""
Base API Client

Shared httpx plumbing for the external game-data services.
"""

import logging
from typing import Optional, Dict, Any

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from ..utils.errors import APIError

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """Base API client with common functionality."""

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize base API client.

        Args:
            base_url: Base URL for API
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Enter async context."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context."""
        await self.close()

    async def initialize(self) -> None:
        """Initialize HTTP client."""
        if not self._client:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=self._get_default_headers(),
                transport=self._transport
            )
            logger.debug(f"API client initialized for {self.base_url}")

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_default_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True
    )
    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> httpx.Response:
        """Make HTTP request, retrying transient network failures."""
        if not self._client:
            await self.initialize()

        url = endpoint if endpoint.startswith('http') else f"{self.base_url}/{endpoint.lstrip('/')}"
        logger.debug(f"{method} {url}")

        response = await self._client.request(method=method, url=url, **kwargs)

        if not response.is_success:
            raise APIError(
                f"{method} {url} failed with status {response.status_code}",
                status_code=response.status_code,
                endpoint=endpoint,
                body=response.text
            )
        return response

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """Make GET request."""
        try:
            response = await self._make_request("GET", endpoint, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise APIError(f"Network error calling {endpoint}: {str(e)}", endpoint=endpoint) from e
        return response.json()

    async def post(
        self,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[Any] = None
    ) -> Dict[str, Any]:
        """Make POST request."""
        extra = {"auth": auth} if auth is not None else {}
        try:
            response = await self._make_request(
                "POST", endpoint, data=data, json=json, headers=headers, **extra
            )
        except httpx.HTTPError as e:
            raise APIError(f"Network error calling {endpoint}: {str(e)}", endpoint=endpoint) from e
        return response.json()
