"""
Encoding of interaction callbacks into Discord ``custom_id`` strings and back.

This is the only place that knows the string layout; everything past the Discord
boundary works with :class:`SelectCallback` / :class:`ConfirmCallback`.

Layout::

    req_sel:<session_id>                      (selected index arrives in values[0])
    req_add:<session_id>:<target>:<index>
"""

from __future__ import annotations

from typing import Optional, Sequence

from .exceptions import ProtocolError
from .types import ConfirmCallback, InteractionCallback, SelectCallback

SELECT_PREFIX = "req_sel:"
CONFIRM_PREFIX = "req_add:"

# Discord caps custom_id at 100 characters
MAX_CUSTOM_ID_LENGTH = 100


def select_custom_id(session_id: str) -> str:
    return f"{SELECT_PREFIX}{session_id}"


def confirm_custom_id(callback: ConfirmCallback) -> str:
    custom_id = f"{CONFIRM_PREFIX}{callback.session_id}:{callback.target}:{callback.choice_index}"
    if len(custom_id) > MAX_CUSTOM_ID_LENGTH:
        raise ProtocolError(f"custom_id too long ({len(custom_id)} chars): {custom_id[:40]}...")
    return custom_id


def _parse_index(raw: str) -> int:
    try:
        index = int(raw)
    except (TypeError, ValueError):
        raise ProtocolError(f"Invalid selection index: {raw!r}") from None
    if index < 0:
        raise ProtocolError(f"Invalid selection index: {raw!r}")
    return index


def parse_custom_id(
    custom_id: str, values: Sequence[str] = ()
) -> Optional[InteractionCallback]:
    """Parse a component ``custom_id`` into a callback.

    Returns ``None`` for ids this bot does not own. Raises :class:`ProtocolError`
    for ids that carry our prefix but are malformed.
    """
    if custom_id.startswith(SELECT_PREFIX):
        session_id = custom_id[len(SELECT_PREFIX):]
        if not session_id:
            raise ProtocolError("Select interaction without a session id")
        if not values:
            raise ProtocolError("Select interaction without a selected value")
        return SelectCallback(session_id=session_id, choice_index=_parse_index(values[0]))

    if custom_id.startswith(CONFIRM_PREFIX):
        parts = custom_id[len(CONFIRM_PREFIX):].split(":")
        if len(parts) != 3 or not parts[0] or not parts[1]:
            raise ProtocolError(f"Malformed confirm custom_id: {custom_id!r}")
        session_id, target, raw_index = parts
        return ConfirmCallback(
            session_id=session_id, target=target, choice_index=_parse_index(raw_index)
        )

    return None
