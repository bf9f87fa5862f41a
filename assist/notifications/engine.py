"""
The notification engine: a single background loop that ticks every poller.

Ticks never overlap. Within a tick pollers run one after another in
registration order and their events are posted in that order. Delivery is best
effort: a failed post is logged and the tick carries on. Shutdown is checked
before every poll and every post; events already posted stay posted.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import List, Optional, Sequence

from ..exceptions import PlatformDeliveryError
from ..utils.logging import get_logger
from .destinations import ChatSink, DestinationMap
from .events import NotificationEvent
from .pollers import Poller

logger = get_logger(__name__)


class EngineState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"


class NotificationEngine:
    def __init__(
        self,
        sink: ChatSink,
        destinations: DestinationMap,
        pollers: Sequence[Poller],
        poll_interval: float,
        shutdown: Optional[asyncio.Event] = None,
        send_timeout: float = 10.0,
    ):
        self.sink = sink
        self.destinations = destinations
        self.pollers: List[Poller] = list(pollers)
        self.poll_interval = poll_interval
        self.shutdown = shutdown or asyncio.Event()
        self.send_timeout = send_timeout
        self.state = EngineState.STARTING
        self.ticks = 0

    async def _deliver(self, event: NotificationEvent) -> bool:
        channel_id = self.destinations.for_category(event.category)
        try:
            await asyncio.wait_for(
                self.sink.send_notification(channel_id, event), timeout=self.send_timeout
            )
            return True
        except Exception as e:
            err = PlatformDeliveryError(f"Failed to send notification to {channel_id}: {e}")
            logger.error(
                f"✖ {err}",
                extra={"subsys": "notify", "channel_id": channel_id, "event": "delivery_failed"},
            )
            return False

    async def tick(self) -> int:
        """Poll every poller once and post the results. Returns events delivered."""
        delivered = 0
        for poller in self.pollers:
            if self.shutdown.is_set():
                break
            try:
                events = await poller.poll()
            except Exception as e:  # [REH] a broken poller must not stop the others
                logger.warning(
                    f"⚠ Poller '{getattr(poller, 'name', poller)}' raised: {e}",
                    exc_info=True,
                    extra={"subsys": "notify", "event": "poller_crash"},
                )
                continue
            for event in events:
                if self.shutdown.is_set():
                    break
                if await self._deliver(event):
                    delivered += 1
        self.ticks += 1
        return delivered

    async def _wait_for_next_tick(self) -> bool:
        """Sleep for the interval. True when shutdown was signalled instead."""
        try:
            await asyncio.wait_for(self.shutdown.wait(), timeout=self.poll_interval)
            return True
        except asyncio.TimeoutError:
            return False

    async def run(self) -> None:
        self.state = EngineState.RUNNING
        logger.info(
            f"Notification manager started, polling every {self.poll_interval}s "
            f"with {len(self.pollers)} poller(s)",
            extra={"subsys": "notify", "event": "engine_started"},
        )
        try:
            while not self.shutdown.is_set():
                await self.tick()
                if await self._wait_for_next_tick():
                    break
        finally:
            self.state = EngineState.STOPPED
            logger.info(
                "Notification manager shutting down",
                extra={"subsys": "notify", "event": "engine_stopped"},
            )

    def stop(self) -> None:
        self.shutdown.set()
