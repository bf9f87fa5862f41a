"""
discord.py implementation of the notification :class:`ChatSink`.
"""

from __future__ import annotations

from typing import List

import discord

from ..exceptions import PlatformDeliveryError
from ..notifications.destinations import ChannelInfo
from ..notifications.events import NotificationEvent


class DiscordSink:
    def __init__(self, client: discord.Client):
        self.client = client

    async def _guild(self, guild_id: int) -> discord.Guild:
        guild = self.client.get_guild(guild_id)
        if guild is None:
            guild = await self.client.fetch_guild(guild_id)
        return guild

    async def fetch_channels(self, guild_id: int) -> List[ChannelInfo]:
        guild = await self._guild(guild_id)
        channels = await guild.fetch_channels()
        return [
            ChannelInfo(
                id=channel.id,
                name=channel.name,
                is_category=isinstance(channel, discord.CategoryChannel),
                parent_id=getattr(channel, "category_id", None),
            )
            for channel in channels
        ]

    async def create_category(self, guild_id: int, name: str) -> int:
        guild = await self._guild(guild_id)
        category = await guild.create_category(name)
        return category.id

    async def create_text_channel(self, guild_id: int, name: str, category_id: int) -> int:
        guild = await self._guild(guild_id)
        category = guild.get_channel(category_id)
        if not isinstance(category, discord.CategoryChannel):
            category = await self.client.fetch_channel(category_id)
        channel = await guild.create_text_channel(name, category=category)
        return channel.id

    async def send_notification(self, channel_id: int, event: NotificationEvent) -> None:
        channel = self.client.get_channel(channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            raise PlatformDeliveryError(f"Channel {channel_id} cannot receive messages")
        embed = discord.Embed(
            title=event.title,
            description=event.body,
            color=discord.Color(event.color),
        )
        await channel.send(embed=embed)
