"""
/request: search Prowlarr, pick a result, add it to Sonarr or Radarr.

The flow spans three Discord round trips. Search results are parked in the
:class:`SelectionCache` under the originating interaction id; the select menu
reads them back, and the final button takes them so a selection is consumed
at most once even if the button is clicked twice.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from ..clients import ArrClient
from ..exceptions import APIError, ConfigurationError, PluginError, SelectionExpired
from ..selection_cache import SelectableItem, SelectionCache
from ..types import (
    Button,
    Command,
    CommandSpec,
    ComponentInteraction,
    ConfirmCallback,
    MenuOption,
    OptionSpec,
    Reply,
    SelectCallback,
    SelectMenu,
)
from ..utils.logging import get_logger
from .base import Plugin

logger = get_logger(__name__)

MAX_RESULTS = 25
MAX_LABEL = 100

# target key -> (display name, lookup endpoint, add endpoint, add options)
TARGETS: Dict[str, Tuple[str, str, str, Dict[str, Any]]] = {
    "sonarr": ("Sonarr", "series/lookup", "series", {"searchForMissingEpisodes": True}),
    "radarr": ("Radarr", "movie/lookup", "movie", {"searchForMovie": True}),
}


def truncate_string(s: str, max_len: int) -> str:
    if len(s) <= max_len:
        return s
    return s[: max(0, max_len - 3)] + "..."


def format_size(size: Optional[int]) -> str:
    if size is None:
        return ""
    return f" ({size / 1_048_576:.1f} MB)"


class RequestPlugin(Plugin):
    def __init__(
        self,
        prowlarr: ArrClient,
        sonarr: Optional[ArrClient] = None,
        radarr: Optional[ArrClient] = None,
        cache: Optional[SelectionCache] = None,
    ):
        self.prowlarr = prowlarr
        self.targets: Dict[str, Optional[ArrClient]] = {"sonarr": sonarr, "radarr": radarr}
        self.cache = cache or SelectionCache()

    @property
    def name(self) -> str:
        return "request"

    def register_commands(self) -> List[CommandSpec]:
        return [
            CommandSpec(
                name="request",
                description="Search and add media to Sonarr/Radarr",
                options=(OptionSpec("title", "Title to search for"),),
            )
        ]

    async def handle_command(self, command: Command) -> Optional[Reply]:
        if command.name != "request":
            return None
        title = command.option("title")
        if not title:
            raise PluginError("Missing title")
        session_id = str(command.interaction_id) if command.interaction_id is not None else None
        if session_id is None:
            raise PluginError("Request command without an interaction id")
        return await self.search(session_id, title)

    async def handle_component(self, interaction: ComponentInteraction) -> Optional[Reply]:
        callback = interaction.callback
        if isinstance(callback, SelectCallback):
            return self.select(callback)
        if isinstance(callback, ConfirmCallback):
            return await self.confirm(callback)
        return None

    async def search(self, session_id: str, title: str) -> Reply:
        results = await self.prowlarr.get_with_params("search", [("query", title)])
        if not isinstance(results, list):
            raise APIError(f"Unexpected Prowlarr search payload: {type(results).__name__}")
        if not results:
            return Reply(content=f'No results found for "{title}"')

        items = [
            SelectableItem(
                title=str(r.get("title", "")),
                size=r.get("size"),
                source_label=r.get("indexer") or "unknown",
            )
            for r in results[:MAX_RESULTS]
        ]
        self.cache.put(session_id, items)
        logger.debug(f"Stored {len(items)} results for session {session_id}", extra={"plugin": self.name})

        options = tuple(
            MenuOption(
                label=truncate_string(item.title, MAX_LABEL),
                value=str(i),
                description=truncate_string(f"{item.source_label}{format_size(item.size)}", MAX_LABEL),
            )
            for i, item in enumerate(items)
        )
        return Reply(
            content=f'**Search results for "{title}":**',
            select_menu=SelectMenu(session_id=session_id, options=options),
        )

    def _item(self, items: Tuple[SelectableItem, ...], index: int) -> SelectableItem:
        if index >= len(items):
            raise PluginError(f"Invalid selection index {index} of {len(items)}")
        return items[index]

    def select(self, callback: SelectCallback) -> Reply:
        items = self.cache.get(callback.session_id)
        if items is None:
            raise SelectionExpired(f"session {callback.session_id}")
        item = self._item(items, callback.choice_index)

        buttons = tuple(
            Button(
                label=f"Add to {TARGETS[key][0]}",
                callback=ConfirmCallback(callback.session_id, key, callback.choice_index),
            )
            for key, client in self.targets.items()
            if client is not None
        )
        if not buttons:
            return Reply(content="No target services configured (Sonarr/Radarr).", ephemeral=True)

        return Reply(
            content=f"**Selected:** {item.title}{format_size(item.size)}\nWhere would you like to add it?",
            buttons=buttons,
        )

    async def confirm(self, callback: ConfirmCallback) -> Reply:
        client = self.targets.get(callback.target)
        if callback.target not in TARGETS or client is None:
            raise ConfigurationError(f"{callback.target} is not configured")

        # Taken, not read: a second click on the same button finds nothing
        items = self.cache.take(callback.session_id)
        if items is None:
            raise SelectionExpired(f"session {callback.session_id}")
        item = self._item(items, callback.choice_index)
        await self.add(client, callback.target, item)

        display_name = TARGETS[callback.target][0]
        logger.info(f"Added '{item.title}' to {display_name}", extra={"plugin": self.name, "event": "added"})
        return Reply(content=f"Added **{item.title}** to {display_name}!")

    async def add(self, client: ArrClient, target: str, item: SelectableItem) -> None:
        display_name, lookup_endpoint, add_endpoint, add_options = TARGETS[target]

        root_folders = await client.get("rootfolder")
        if not root_folders:
            raise ConfigurationError(f"No root folder configured in {display_name}")
        profiles = await client.get("qualityprofile")
        if not profiles:
            raise ConfigurationError(f"No quality profile configured in {display_name}")

        matches = await client.get_with_params(lookup_endpoint, [("term", item.title)])
        if not matches:
            raise PluginError(f'Could not find "{item.title}" in {display_name}')

        body = dict(matches[0])
        body.update(
            {
                "rootFolderPath": root_folders[0]["path"],
                "qualityProfileId": profiles[0]["id"],
                "monitored": True,
                "addOptions": add_options,
            }
        )
        await client.post(add_endpoint, body)

    async def aclose(self) -> None:
        await self.prowlarr.aclose()
        for client in self.targets.values():
            if client is not None:
                await client.aclose()
