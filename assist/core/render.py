"""
Translation between Discord interaction objects and the router's neutral types.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import discord

from ..interactions import confirm_custom_id, parse_custom_id, select_custom_id
from ..selection_cache import DEFAULT_TTL_SECONDS
from ..types import Command, ComponentInteraction, Reply

# Discord limits for select menus
MAX_SELECT_OPTIONS = 25
MAX_LABEL_LENGTH = 100


def build_view(reply: Reply, timeout: float = DEFAULT_TTL_SECONDS) -> Optional[discord.ui.View]:
    """Components for a reply, or ``None`` for plain text.

    The view times out with the selection it points at, which drops it from
    discord.py's view store.

    Clicks are not handled by the view's own callbacks; the bot receives them
    through ``on_interaction`` and parses the custom id.
    """
    if reply.select_menu is None and not reply.buttons:
        return None

    view = discord.ui.View(timeout=timeout)
    if reply.select_menu is not None:
        menu = reply.select_menu
        view.add_item(
            discord.ui.Select(
                custom_id=select_custom_id(menu.session_id),
                placeholder=menu.placeholder,
                options=[
                    discord.SelectOption(
                        label=option.label[:MAX_LABEL_LENGTH],
                        value=option.value,
                        description=option.description[:MAX_LABEL_LENGTH] if option.description else None,
                    )
                    for option in menu.options[:MAX_SELECT_OPTIONS]
                ],
            )
        )
    for button in reply.buttons:
        view.add_item(
            discord.ui.Button(
                label=button.label,
                custom_id=confirm_custom_id(button.callback),
                style=discord.ButtonStyle.primary,
            )
        )
    return view


def reply_kwargs(reply: Reply, view_timeout: float = DEFAULT_TTL_SECONDS) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"content": reply.content, "ephemeral": reply.ephemeral}
    view = build_view(reply, timeout=view_timeout)
    if view is not None:
        kwargs["view"] = view
    return kwargs


def command_from_interaction(interaction: discord.Interaction, options: Dict[str, Any]) -> Command:
    return Command(
        name=interaction.command.name if interaction.command else str(interaction.data.get("name", "")),
        user_id=interaction.user.id,
        user_name=interaction.user.name,
        channel_id=interaction.channel_id,
        interaction_id=interaction.id,
        options={k: v for k, v in options.items() if v is not None},
    )


def component_from_interaction(interaction: discord.Interaction) -> Optional[ComponentInteraction]:
    """Parse a component interaction we own. ``None`` for foreign custom ids.

    Raises :class:`~assist.exceptions.ProtocolError` for malformed ids of ours.
    """
    data = interaction.data or {}
    callback = parse_custom_id(str(data.get("custom_id", "")), data.get("values") or ())
    if callback is None:
        return None
    return ComponentInteraction(
        callback=callback,
        user_id=interaction.user.id,
        user_name=interaction.user.name,
        channel_id=interaction.channel_id,
    )
