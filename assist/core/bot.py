"""Core bot implementation: Discord wiring around the router and notifications."""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, List, Optional, Sequence

import discord
from discord.ext import commands
from rich.console import Console
from rich.panel import Panel
from rich.tree import Tree

from ..config import NotificationSettings
from ..exceptions import ProtocolError
from ..notifications import NotificationService
from ..plugins.base import Plugin
from ..router import CommandRouter
from ..selection_cache import DEFAULT_TTL_SECONDS
from ..types import Reply
from ..utils.logging import get_logger
from .commands import build_app_command
from .render import command_from_interaction, component_from_interaction, reply_kwargs
from .sink import DiscordSink


def log_commands_setup(console: Console, plugin_commands: List[tuple]) -> None:
    """Print a Rich tree of plugins and the slash commands each registered."""
    tree = Tree("🎬 Commands Setup")
    total = 0
    for plugin_name, names in plugin_commands:
        branch = tree.add(f"📦 {plugin_name}")
        for name in names:
            branch.add(f"✅ /{name}")
        total += len(names)
    tree.add(f"📋 Total commands registered: {total}")
    console.print(Panel(tree, title="Command Setup Report", border_style="blue", padding=(1, 2)))


class AssistBot(commands.Bot):
    """Owner-only assistant bot: slash commands via plugins, plus notifications."""

    def __init__(
        self,
        *args,
        config: Optional[Dict[str, Any]] = None,
        plugins: Sequence[Plugin] = (),
        **kwargs,
    ):
        if "command_prefix" not in kwargs:
            kwargs["command_prefix"] = os.getenv("COMMAND_PREFIX", "!")
        if "intents" not in kwargs:
            kwargs["intents"] = discord.Intents.default()

        super().__init__(*args, **kwargs)
        self.config = config or {}
        self.logger = get_logger(__name__)
        self.plugins = list(plugins)
        self.router = CommandRouter(self.plugins, owner_id=self.config.get("OWNER_ID") or 0)
        self.view_timeout = self.config.get("SELECTION_TTL_S", DEFAULT_TTL_SECONDS)
        self.notifications: Optional[NotificationService] = None
        self.console = Console()
        self._boot_completed = False
        self._is_ready = asyncio.Event()

    async def setup_hook(self) -> None:
        """Register plugin commands and start the notification engine."""
        if self._boot_completed:
            self.logger.debug("🔄 Setup hook called but boot already completed, skipping")
            return
        self._boot_completed = True
        self.logger.info("🔧 Starting bot setup", extra={"subsys": "core"})

        await self.register_plugin_commands()

        if self.config.get("NOTIFY_ENABLED", True):
            settings = NotificationSettings.from_config(self.config)
            self.notifications = NotificationService(settings, DiscordSink(self))
        else:
            self.logger.info("Notifications disabled (NOTIFY_ENABLED=false)", extra={"subsys": "notify"})

    async def register_plugin_commands(self) -> None:
        report = []
        for plugin in self.plugins:
            specs = plugin.register_commands()
            self.logger.info(
                f"Registering {len(specs)} commands from plugin '{plugin.name}'",
                extra={"subsys": "core", "plugin": plugin.name},
            )
            for spec in specs:
                self.tree.add_command(build_app_command(spec, self.handle_app_command), override=True)
            report.append((plugin.name, [spec.name for spec in specs]))
        log_commands_setup(self.console, report)

        guild_id = self.config.get("GUILD_ID")
        try:
            if guild_id:
                guild = discord.Object(id=guild_id)
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                self.logger.info(f"Registered {len(synced)} guild commands", extra={"subsys": "core"})
            else:
                synced = await self.tree.sync()
                self.logger.info(f"Registered {len(synced)} global commands", extra={"subsys": "core"})
        except discord.HTTPException as e:
            self.logger.error(f"✖ Failed to register commands: {e}", exc_info=True, extra={"subsys": "core"})

    async def on_ready(self):
        if not self._is_ready.is_set():
            self.logger.info(f"🤖 Logged in as {self.user} (ID: {self.user.id})", extra={"subsys": "core"})
            self._is_ready.set()
            if self.notifications is not None and not self.notifications.running:
                self.notifications.start()
            self.logger.info("🎉 Bot is ready to receive commands!", extra={"subsys": "core"})

    async def handle_app_command(self, interaction: discord.Interaction, options: dict) -> None:
        command = command_from_interaction(interaction, options)
        reply = await self.router.dispatch(command)
        await self.send_reply(interaction, reply)

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        if interaction.type is not discord.InteractionType.component:
            return
        try:
            component = component_from_interaction(interaction)
        except ProtocolError as e:
            self.logger.warning(f"⚠ Malformed component interaction: {e}", extra={"subsys": "core"})
            await self.send_reply(interaction, Reply(content=e.user_message, ephemeral=True))
            return
        if component is None:
            return
        reply = await self.router.dispatch_component(component)
        await self.send_reply(interaction, reply)

    async def send_reply(self, interaction: discord.Interaction, reply: Reply) -> None:
        try:
            if interaction.response.is_done():
                await interaction.followup.send(**reply_kwargs(reply, view_timeout=self.view_timeout))
            else:
                await interaction.response.send_message(**reply_kwargs(reply, view_timeout=self.view_timeout))
        except (discord.HTTPException, ProtocolError) as e:
            self.logger.error(
                f"✖ Failed to respond to interaction {interaction.id}: {e}",
                extra={"subsys": "core", "user_id": interaction.user.id, "event": "respond_failed"},
            )

    async def close(self) -> None:
        if self.notifications is not None:
            await self.notifications.stop()
        for plugin in self.plugins:
            aclose = getattr(plugin, "aclose", None)
            if aclose is not None:
                try:
                    await aclose()
                except Exception as e:
                    self.logger.warning(f"⚠ Error closing plugin '{plugin.name}': {e}")
        await super().close()
