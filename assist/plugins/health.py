"""
/health: probe every configured service concurrently.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import List, Optional

import httpx

from ..types import Command, CommandSpec, Reply
from .base import Plugin


@dataclass(frozen=True)
class ServiceTarget:
    name: str
    url: str
    api_key: Optional[str] = None
    key_header: Optional[str] = None


class HealthPlugin(Plugin):
    def __init__(
        self,
        services: List[ServiceTarget],
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.services = services
        self._client = client or httpx.AsyncClient(timeout=timeout, verify=False)

    @property
    def name(self) -> str:
        return "health"

    def register_commands(self) -> List[CommandSpec]:
        return [CommandSpec(name="health", description="Check health of all configured services")]

    async def check(self, service: ServiceTarget) -> str:
        headers = {}
        if service.api_key and service.key_header:
            headers[service.key_header] = service.api_key
        start = time.monotonic()
        try:
            resp = await self._client.get(service.url, headers=headers)
        except httpx.TimeoutException:
            return f"- {service.name}: [DOWN] (timeout)"
        except httpx.HTTPError:
            return f"- {service.name}: [DOWN] (connection error)"
        ms = int((time.monotonic() - start) * 1000)
        if resp.is_success:
            return f"- {service.name}: [UP] ({ms}ms)"
        return f"- {service.name}: [DOWN] (HTTP {resp.status_code})"

    async def check_all(self) -> str:
        lines = ["**Service Health**"]
        lines.extend(await asyncio.gather(*(self.check(s) for s in self.services)))
        if not self.services:
            lines.append("No services configured.")
        return "\n".join(lines)

    async def handle_command(self, command: Command) -> Optional[Reply]:
        if command.name != "health":
            return None
        return Reply(content=await self.check_all())

    async def aclose(self) -> None:
        await self._client.aclose()
