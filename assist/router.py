"""
Ordered-fallback command router.

Every command passes the owner check, then is offered to each plugin in
registration order until one claims it. At most one plugin ever responds to a
command, and adding a plugin never changes how the others are routed.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Sequence, Union

from .exceptions import PluginError, SelectionExpired
from .plugins.base import Plugin
from .types import Command, ComponentInteraction, Reply
from .utils.logging import get_logger

UNAUTHORIZED_MESSAGE = "You are not authorized to use this bot."
UNKNOWN_COMMAND_MESSAGE = "Unknown command."

Inbound = Union[Command, ComponentInteraction]


class CommandRouter:
    """Routes commands and component interactions to the first willing plugin."""

    def __init__(
        self,
        plugins: Sequence[Plugin],
        owner_id: int,
        logger: Optional[logging.Logger] = None,
    ):
        self.plugins = tuple(plugins)
        self.owner_id = owner_id
        self.logger = logger or get_logger(__name__)

    def is_owner(self, user_id: int) -> bool:
        return user_id == self.owner_id

    async def dispatch(self, command: Command) -> Reply:
        """Route a slash command."""
        return await self._route(command, lambda plugin: plugin.handle_command(command))

    async def dispatch_component(self, interaction: ComponentInteraction) -> Reply:
        """Route a button click or select-menu choice."""
        return await self._route(
            interaction, lambda plugin: plugin.handle_component(interaction)
        )

    async def _route(
        self,
        inbound: Inbound,
        call: Callable[[Plugin], Awaitable[Optional[Reply]]],
    ) -> Reply:
        extra = {"subsys": "router", "user_id": inbound.user_id, "channel_id": inbound.channel_id}

        if not self.is_owner(inbound.user_id):
            self.logger.warning(
                f"Unauthorized command attempt by {inbound.user_name} ({inbound.user_id})",
                extra={**extra, "event": "unauthorized"},
            )
            return Reply(content=UNAUTHORIZED_MESSAGE, ephemeral=True)

        for plugin in self.plugins:
            try:
                reply = await call(plugin)
            except SelectionExpired as e:
                self.logger.info(
                    f"Plugin '{plugin.name}': selection expired for '{inbound.name}': {e}",
                    extra={**extra, "plugin": plugin.name, "event": "selection_expired"},
                )
                return Reply(content=e.user_message, ephemeral=True)
            except PluginError as e:
                self.logger.error(
                    f"Plugin '{plugin.name}' error handling '{inbound.name}': {e}",
                    exc_info=True,
                    extra={**extra, "plugin": plugin.name, "event": "plugin_error"},
                )
                return Reply(content=e.user_message, ephemeral=True)
            except Exception as e:  # [REH] nothing unwinds past the router
                self.logger.error(
                    f"Plugin '{plugin.name}' crashed handling '{inbound.name}': {e}",
                    exc_info=True,
                    extra={**extra, "plugin": plugin.name, "event": "plugin_crash"},
                )
                return Reply(content=PluginError.user_message, ephemeral=True)

            if reply is not None:
                self.logger.debug(
                    f"Plugin '{plugin.name}' handled '{inbound.name}'",
                    extra={**extra, "plugin": plugin.name, "event": "handled"},
                )
                return reply

        self.logger.warning(
            f"No plugin handled command: {inbound.name}",
            extra={**extra, "event": "unhandled"},
        )
        return Reply(content=UNKNOWN_COMMAND_MESSAGE, ephemeral=True)
