"""
Resolution of notification categories to concrete Discord channels.

Runs once at engine start. In legacy mode a single fallback channel receives
everything; otherwise a "Notifications" category is found or created in the
guild and one text channel per category is found or created under it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from ..exceptions import DestinationResolutionError
from ..utils.logging import get_logger
from .events import NotificationCategory, NotificationEvent

logger = get_logger(__name__)

CATEGORY_NAME = "Notifications"
GRABS_CHANNEL = "media-grabs"
IMPORTS_CHANNEL = "media-imports"
ALERTS_CHANNEL = "server-alerts"


@dataclass(frozen=True)
class ChannelInfo:
    id: int
    name: str
    is_category: bool = False
    parent_id: Optional[int] = None


@dataclass(frozen=True)
class DestinationOverrides:
    grabs: Optional[int] = None
    imports: Optional[int] = None
    alerts: Optional[int] = None


@dataclass(frozen=True)
class DestinationMap:
    grabs: int
    imports: int
    alerts: int

    @classmethod
    def single(cls, channel_id: int) -> "DestinationMap":
        return cls(grabs=channel_id, imports=channel_id, alerts=channel_id)

    def for_category(self, category: NotificationCategory) -> int:
        if category is NotificationCategory.GRAB:
            return self.grabs
        if category is NotificationCategory.IMPORT:
            return self.imports
        return self.alerts


class ChatSink(Protocol):
    """What the notification subsystem needs from the chat platform."""

    async def fetch_channels(self, guild_id: int) -> List[ChannelInfo]: ...

    async def create_category(self, guild_id: int, name: str) -> int: ...

    async def create_text_channel(self, guild_id: int, name: str, category_id: int) -> int: ...

    async def send_notification(self, channel_id: int, event: NotificationEvent) -> None: ...


async def find_or_create_category(
    sink: ChatSink, guild_id: int, existing: Sequence[ChannelInfo], name: str = CATEGORY_NAME
) -> int:
    for channel in existing:
        if channel.is_category and channel.name.lower() == name.lower():
            logger.info(f"Found existing {name} category", extra={"subsys": "notify"})
            return channel.id
    category_id = await sink.create_category(guild_id, name)
    logger.info(f"Created {name} category", extra={"subsys": "notify", "event": "category_created"})
    return category_id


async def find_or_create_channel(
    sink: ChatSink,
    guild_id: int,
    existing: Sequence[ChannelInfo],
    category_id: int,
    name: str,
    override_id: Optional[int] = None,
) -> int:
    if override_id is not None:
        return override_id
    for channel in existing:
        if not channel.is_category and channel.name == name and channel.parent_id == category_id:
            return channel.id
    channel_id = await sink.create_text_channel(guild_id, name, category_id)
    logger.info(f"Created #{name} channel", extra={"subsys": "notify", "event": "channel_created"})
    return channel_id


async def resolve_destinations(
    sink: ChatSink,
    guild_id: Optional[int],
    overrides: DestinationOverrides = DestinationOverrides(),
    fallback_channel_id: Optional[int] = None,
) -> DestinationMap:
    """Resolve the grabs/imports/alerts channels.

    Raises :class:`DestinationResolutionError` on any failure; the engine cannot
    run without somewhere to post.
    """
    if fallback_channel_id is not None:
        return DestinationMap.single(fallback_channel_id)

    if guild_id is None:
        raise DestinationResolutionError(
            "Notifications: neither guild id nor fallback channel configured"
        )

    try:
        existing = await sink.fetch_channels(guild_id)
        category_id = await find_or_create_category(sink, guild_id, existing)
        return DestinationMap(
            grabs=await find_or_create_channel(
                sink, guild_id, existing, category_id, GRABS_CHANNEL, overrides.grabs
            ),
            imports=await find_or_create_channel(
                sink, guild_id, existing, category_id, IMPORTS_CHANNEL, overrides.imports
            ),
            alerts=await find_or_create_channel(
                sink, guild_id, existing, category_id, ALERTS_CHANNEL, overrides.alerts
            ),
        )
    except DestinationResolutionError:
        raise
    except Exception as e:
        raise DestinationResolutionError(f"Failed to set up notification channels: {e}") from e
