"""
Builds discord.py application commands from plugin :class:`CommandSpec`s.

Every command gets the same generic callback that packs the string options into
a :class:`Command` and hands it to the router.
"""

from __future__ import annotations

import inspect
from typing import Awaitable, Callable, Optional

import discord
from discord import app_commands

from ..types import CommandSpec

InteractionHandler = Callable[[discord.Interaction, dict], Awaitable[None]]


def build_app_command(spec: CommandSpec, handler: InteractionHandler) -> app_commands.Command:
    async def callback(interaction: discord.Interaction, **options) -> None:
        await handler(interaction, options)

    parameters = [
        inspect.Parameter(
            "interaction",
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
            annotation=discord.Interaction,
        )
    ]
    for option in spec.options:
        parameters.append(
            inspect.Parameter(
                option.name,
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                annotation=str if option.required else Optional[str],
                default=inspect.Parameter.empty if option.required else None,
            )
        )
    callback.__signature__ = inspect.Signature(parameters)

    descriptions = {option.name: option.description for option in spec.options}
    if descriptions:
        callback = app_commands.describe(**descriptions)(callback)

    return app_commands.Command(name=spec.name, description=spec.description, callback=callback)
