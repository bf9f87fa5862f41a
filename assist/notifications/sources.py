"""
State sources the pollers read from, and their adapters over the service clients.
[CA]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from ..clients import ArrClient, UnraidClient
from ..exceptions import APIError


@dataclass(frozen=True)
class HistoryRecord:
    id: int
    event_type: str
    source_title: Optional[str] = None


@dataclass(frozen=True)
class Reading:
    name: str
    value: Optional[float]


@dataclass(frozen=True)
class Snapshot:
    mode: str
    entities: Dict[str, str] = field(default_factory=dict)
    readings: List[Reading] = field(default_factory=list)


class HistorySource(Protocol):
    async def fetch_recent_history(self, page_size: int) -> List[HistoryRecord]:  # noqa: D401
        """Most recent history records, newest first."""
        ...


class SnapshotSource(Protocol):
    async def fetch_snapshot(self) -> Snapshot:  # noqa: D401
        """Current state of the monitored system."""
        ...


class ArrHistorySource:
    """Sonarr/Radarr ``/history`` as a :class:`HistorySource`."""

    def __init__(self, client: ArrClient):
        self.client = client

    async def fetch_recent_history(self, page_size: int) -> List[HistoryRecord]:
        payload = await self.client.get_with_params(
            "history",
            [
                ("pageSize", str(page_size)),
                ("sortDirection", "descending"),
                ("sortKey", "date"),
            ],
        )
        try:
            return [
                HistoryRecord(
                    id=int(record["id"]),
                    event_type=str(record.get("eventType", "")),
                    source_title=record.get("sourceTitle"),
                )
                for record in payload["records"]
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise APIError(f"Unexpected history payload: {e}") from e

    async def aclose(self) -> None:
        await self.client.aclose()


UNRAID_POLL_QUERY = """{
    array { state }
    disks { name temperature }
    docker { containers { names state } }
}"""


def container_display_name(names: List[str]) -> str:
    """First Docker name without its leading slash."""
    if not names:
        return "unknown"
    return names[0][1:] if names[0].startswith("/") else names[0]


class UnraidSnapshotSource:
    """Unraid array state, disk temperatures and container states as one snapshot."""

    def __init__(self, client: UnraidClient):
        self.client = client

    async def fetch_snapshot(self) -> Snapshot:
        data: Dict[str, Any] = await self.client.query(UNRAID_POLL_QUERY)
        try:
            containers = data["docker"]["containers"]
            return Snapshot(
                mode=data["array"]["state"],
                entities={
                    container_display_name(c.get("names") or []): c["state"]
                    for c in containers
                },
                readings=[
                    Reading(name=disk["name"], value=disk.get("temperature"))
                    for disk in data["disks"]
                ],
            )
        except (KeyError, TypeError) as e:
            raise APIError(f"Unexpected Unraid payload: {e}") from e

    async def aclose(self) -> None:
        await self.client.aclose()
