"""
Minimal async client for the *arr family (Sonarr, Radarr, Prowlarr) REST APIs.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

import httpx

from ..exceptions import APIError
from ..utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_S = 10.0


class ArrClient:
    """Talks to ``{base_url}/api/{api_version}/...`` with an ``X-Api-Key`` header."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_version: str = "v3",
        timeout: float = DEFAULT_TIMEOUT_S,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.api_version = api_version
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/api/{self.api_version}/{endpoint.lstrip('/')}"

    @property
    def _headers(self) -> Dict[str, str]:
        return {"X-Api-Key": self.api_key}

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Sequence[Tuple[str, str]]] = None,
        json: Any = None,
    ) -> Any:
        url = self._url(endpoint)
        try:
            resp = await self._client.request(
                method, url, params=params, json=json, headers=self._headers
            )
        except httpx.TimeoutException as e:
            raise APIError(f"{method} {url} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise APIError(f"HTTP error: {e}") from e

        if not resp.is_success:
            raise APIError(f"API error ({resp.status_code}): {resp.text}")

        try:
            return resp.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON from {url}: {e}") from e

    async def get(self, endpoint: str) -> Any:
        return await self._request("GET", endpoint)

    async def get_with_params(self, endpoint: str, params: Sequence[Tuple[str, str]]) -> Any:
        return await self._request("GET", endpoint, params=params)

    async def post(self, endpoint: str, body: Any) -> Any:
        return await self._request("POST", endpoint, json=body)

    async def health(self) -> bool:
        """True when the health endpoint answers 2xx. Never raises."""
        try:
            resp = await self._client.get(self._url("health"), headers=self._headers)
        except httpx.HTTPError as e:
            logger.debug(f"Health probe to {self.base_url} failed: {e}")
            return False
        return resp.is_success

    async def aclose(self) -> None:
        await self._client.aclose()
