"""
Platform-neutral types passed between the Discord layer, the router and plugins.
[CA]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class SelectCallback:
    """User picked ``choice_index`` from the select menu of ``session_id``."""

    session_id: str
    choice_index: int


@dataclass(frozen=True)
class ConfirmCallback:
    """User confirmed adding item ``choice_index`` of ``session_id`` to ``target``."""

    session_id: str
    target: str
    choice_index: int


InteractionCallback = Union[SelectCallback, ConfirmCallback]


@dataclass(frozen=True)
class OptionSpec:
    name: str
    description: str
    required: bool = True


@dataclass(frozen=True)
class CommandSpec:
    """A slash command declared by a plugin."""

    name: str
    description: str
    options: Tuple[OptionSpec, ...] = ()


@dataclass(frozen=True)
class Command:
    """An incoming slash command, stripped of Discord objects."""

    name: str
    user_id: int
    user_name: str = ""
    channel_id: Optional[int] = None
    interaction_id: Optional[int] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def option(self, name: str) -> Optional[Any]:
        return self.options.get(name)


@dataclass(frozen=True)
class ComponentInteraction:
    """A button click or menu selection that continues a multi-step flow."""

    callback: InteractionCallback
    user_id: int
    user_name: str = ""
    channel_id: Optional[int] = None

    @property
    def name(self) -> str:
        return type(self.callback).__name__


@dataclass(frozen=True)
class MenuOption:
    label: str
    value: str
    description: Optional[str] = None


@dataclass(frozen=True)
class SelectMenu:
    session_id: str
    options: Tuple[MenuOption, ...]
    placeholder: str = "Select a result..."


@dataclass(frozen=True)
class Button:
    label: str
    callback: ConfirmCallback


@dataclass(frozen=True)
class Reply:
    """What the bot sends back for a command or component interaction."""

    content: str
    ephemeral: bool = False
    select_menu: Optional[SelectMenu] = None
    buttons: Tuple[Button, ...] = ()
