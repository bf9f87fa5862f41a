"""
Change-detection pollers.

Each poller remembers what it last observed and turns the next observation into
only the *new* events. The first successful poll establishes a baseline and
emits nothing, so state that existed before the bot started is never replayed.

Pollers are owned by the notification engine and are never polled
concurrently with themselves, so their state needs no locking.
"""

from __future__ import annotations

import abc
from typing import Dict, List, Optional, Set

from ..utils.logging import get_logger
from .events import (
    COLOR_ALERT_CRIT,
    COLOR_ALERT_WARN,
    COLOR_GRAB,
    COLOR_IMPORT,
    NotificationCategory,
    NotificationEvent,
)
from .sources import HistoryRecord, HistorySource, Snapshot, SnapshotSource

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_SEEN_IDS = 1000
HEALTHY_STATE = "RUNNING"


class Poller(abc.ABC):
    name: str

    @abc.abstractmethod
    async def poll(self) -> List[NotificationEvent]:  # pragma: no cover
        """Fetch, diff against remembered state and return new events.

        Must not raise: fetch failures are logged and yield no events.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release whatever the poller's source holds open."""
        aclose = getattr(getattr(self, "source", None), "aclose", None)
        if aclose is not None:
            await aclose()


class HistoryPoller(Poller):
    """Diffs a reverse-chronological event log by remembering seen record ids.

    The seen set is bounded: once it holds more than ``max_seen`` ids it is
    replaced by the ids of the current page. An id that later falls off the page
    and reappears will be reported again; that is the price of O(page) memory.
    """

    def __init__(
        self,
        service_name: str,
        source: HistorySource,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_seen: int = MAX_SEEN_IDS,
    ):
        self.name = service_name
        self.source = source
        self.page_size = page_size
        self.max_seen = max_seen
        self.seen_ids: Set[int] = set()
        self.first_poll = True

    def _classify(self, record: HistoryRecord) -> Optional[NotificationEvent]:
        title = record.source_title or "Unknown"
        if record.event_type == "grabbed":
            return NotificationEvent(
                category=NotificationCategory.GRAB,
                title=f"{self.name} Grab",
                body=f"Grabbed: {title}",
                color=COLOR_GRAB,
            )
        if record.event_type == "downloadFolderImported":
            return NotificationEvent(
                category=NotificationCategory.IMPORT,
                title=f"{self.name} Import",
                body=f"Imported: {title}",
                color=COLOR_IMPORT,
            )
        return None

    async def poll(self) -> List[NotificationEvent]:
        try:
            records = await self.source.fetch_recent_history(self.page_size)
        except Exception as e:
            logger.warning(
                f"⚠ {self.name} history poll failed: {e}",
                extra={"subsys": "notify", "event": "poll_failed"},
            )
            return []

        events: List[NotificationEvent] = []

        if self.first_poll:
            self.seen_ids.update(record.id for record in records)
            self.first_poll = False
            logger.debug(f"{self.name}: baseline of {len(records)} history records")
            return events

        for record in records:
            if record.id in self.seen_ids:
                continue
            self.seen_ids.add(record.id)
            event = self._classify(record)
            if event is not None:
                events.append(event)

        # Keep seen_ids from growing unbounded
        if len(self.seen_ids) > self.max_seen:
            self.seen_ids = {record.id for record in records}

        return events


class SnapshotPoller(Poller):
    """Diffs full-state snapshots: mode changes, hot readings and entity crashes.

    - a mode change fires once per change;
    - a reading at or above the threshold fires on *every* poll while it stays
      there, so a sustained problem keeps being flagged;
    - an entity fires only on the transition away from ``RUNNING``.
    """

    def __init__(self, source: SnapshotSource, threshold: float, name: str = "Unraid"):
        self.name = name
        self.source = source
        self.threshold = threshold
        self.last_mode: Optional[str] = None
        self.last_entity_states: Dict[str, str] = {}
        self.first_poll = True

    async def poll(self) -> List[NotificationEvent]:
        try:
            snapshot = await self.source.fetch_snapshot()
        except Exception as e:
            logger.warning(
                f"⚠ {self.name} poll failed: {e}",
                extra={"subsys": "notify", "event": "poll_failed"},
            )
            return []

        if self.first_poll:
            self._remember(snapshot)
            self.first_poll = False
            return []

        events: List[NotificationEvent] = []

        if self.last_mode is not None and self.last_mode != snapshot.mode:
            events.append(
                NotificationEvent(
                    category=NotificationCategory.ALERT,
                    title="Array State Changed",
                    body=f"{self.last_mode} -> {snapshot.mode}",
                    color=COLOR_ALERT_WARN,
                )
            )

        for reading in snapshot.readings:
            if reading.value is not None and reading.value >= self.threshold:
                events.append(
                    NotificationEvent(
                        category=NotificationCategory.ALERT,
                        title="Disk Temperature Warning",
                        body=f"{reading.name}: {reading.value:.0f}C (threshold: {self.threshold:.0f}C)",
                        color=COLOR_ALERT_CRIT,
                    )
                )

        for name, state in snapshot.entities.items():
            last_state = self.last_entity_states.get(name)
            if last_state == HEALTHY_STATE and state != HEALTHY_STATE:
                events.append(
                    NotificationEvent(
                        category=NotificationCategory.ALERT,
                        title="Container Down",
                        body=f"{name}: {last_state} -> {state}",
                        color=COLOR_ALERT_CRIT,
                    )
                )

        self._remember(snapshot)
        return events

    def _remember(self, snapshot: Snapshot) -> None:
        self.last_mode = snapshot.mode
        self.last_entity_states = dict(snapshot.entities)
