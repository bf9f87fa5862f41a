"""
Unraid GraphQL API client.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..exceptions import APIError

DEFAULT_TIMEOUT_S = 10.0


class UnraidClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT_S,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        # Unraid serves a self-signed certificate by default
        self._client = client or httpx.AsyncClient(timeout=timeout, verify=False)

    async def query(self, query: str) -> Dict[str, Any]:
        """Run a GraphQL query and return its ``data`` object."""
        try:
            resp = await self._client.post(
                self.base_url,
                json={"query": query},
                headers={"x-api-key": self.api_key},
            )
        except httpx.TimeoutException as e:
            raise APIError(f"Unraid query timed out: {e}") from e
        except httpx.HTTPError as e:
            raise APIError(f"HTTP request failed: {e}") from e

        if not resp.is_success:
            raise APIError(f"API error ({resp.status_code}): {resp.text}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON from Unraid: {e}") from e

        errors = payload.get("errors")
        if errors:
            messages = "; ".join(str(err.get("message", err)) for err in errors)
            raise APIError(f"GraphQL error: {messages}")

        data = payload.get("data")
        if data is None:
            raise APIError("GraphQL error: No data in response")
        return data

    async def aclose(self) -> None:
        await self._client.aclose()
