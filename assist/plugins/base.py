"""
Base interface for capability plugins.
[CA]
"""

from __future__ import annotations

import abc
from typing import List, Optional

from ..types import Command, CommandSpec, ComponentInteraction, Reply


class Plugin(abc.ABC):
    """A self-contained handler for one family of slash commands.

    ``handle_command`` returns a :class:`Reply` when the plugin claims the
    command, ``None`` to let the router try the next plugin, and raises a
    :class:`~assist.exceptions.PluginError` when it claimed the command but
    failed.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def register_commands(self) -> List[CommandSpec]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    async def handle_command(self, command: Command) -> Optional[Reply]:  # pragma: no cover
        raise NotImplementedError

    async def handle_component(self, interaction: ComponentInteraction) -> Optional[Reply]:
        """Continue a multi-step flow. Plugins without one never claim components."""
        return None
