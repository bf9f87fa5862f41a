"""
Short-lived server-side state for the search -> select -> confirm workflow.

Entries expire a fixed TTL after creation. Expiry is enforced lazily: every
operation sweeps stale entries first, so nothing depends on a background timer.
A session id that has been taken or swept never resolves again.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

from .utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 900  # 15 minutes


@dataclass(frozen=True)
class SelectableItem:
    title: str
    size: Optional[int]
    source_label: str


@dataclass(frozen=True)
class PendingSelection:
    session_id: str
    items: Tuple[SelectableItem, ...]
    created_at: float


class SelectionCache:
    """Lock-protected map of session id -> :class:`PendingSelection`."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, PendingSelection] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_expired(self, entry: PendingSelection, now: float) -> bool:
        return now - entry.created_at >= self.ttl_seconds

    def _sweep_locked(self, now: float) -> int:
        stale = [sid for sid, entry in self._entries.items() if self._is_expired(entry, now)]
        for sid in stale:
            del self._entries[sid]
        if stale:
            logger.debug(f"Swept {len(stale)} expired selection(s)", extra={"subsys": "selection"})
        return len(stale)

    def sweep_expired(self, now: Optional[float] = None) -> int:
        """Remove every entry older than the TTL. Returns how many were removed."""
        with self._lock:
            return self._sweep_locked(self._clock() if now is None else now)

    def put(self, session_id: str, items: Sequence[SelectableItem]) -> None:
        """Store a selection, replacing any existing entry under ``session_id``."""
        with self._lock:
            now = self._clock()
            self._sweep_locked(now)
            self._entries[session_id] = PendingSelection(
                session_id=session_id,
                items=tuple(items),
                created_at=now,
            )

    def get_entry(self, session_id: str) -> Optional[PendingSelection]:
        with self._lock:
            now = self._clock()
            self._sweep_locked(now)
            return self._entries.get(session_id)

    def get(self, session_id: str) -> Optional[Tuple[SelectableItem, ...]]:
        """Read a selection without removing it. ``None`` means expired or unknown."""
        entry = self.get_entry(session_id)
        return entry.items if entry is not None else None

    def take_entry(self, session_id: str) -> Optional[PendingSelection]:
        with self._lock:
            self._sweep_locked(self._clock())
            return self._entries.pop(session_id, None)

    def take(self, session_id: str) -> Optional[Tuple[SelectableItem, ...]]:
        """Read and remove a selection. At most one caller ever gets the items."""
        entry = self.take_entry(session_id)
        return entry.items if entry is not None else None
