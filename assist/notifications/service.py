"""
Process boundary of the notification subsystem: start with a settings bundle
and a chat sink, stop with a single call from the host's shutdown path.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

from ..clients import ArrClient, UnraidClient
from ..config import NotificationSettings
from ..exceptions import DestinationResolutionError
from ..utils.logging import get_logger
from .destinations import ChatSink, DestinationOverrides, resolve_destinations
from .engine import NotificationEngine
from .pollers import HistoryPoller, Poller, SnapshotPoller
from .sources import ArrHistorySource, UnraidSnapshotSource

logger = get_logger(__name__)


def build_pollers(settings: NotificationSettings) -> List[Poller]:
    """One poller per configured source, in a fixed order."""
    pollers: List[Poller] = []
    timeout = settings.http_timeout_s

    for service_name, creds in (("Sonarr", settings.sonarr), ("Radarr", settings.radarr)):
        if creds is None:
            continue
        url, key = creds
        client = ArrClient(url, key, api_version="v3", timeout=timeout)
        pollers.append(
            HistoryPoller(service_name, ArrHistorySource(client), page_size=settings.history_page_size)
        )
        logger.info(f"Notifications: added {service_name} history poller", extra={"subsys": "notify"})

    if settings.unraid is not None:
        url, key = settings.unraid
        source = UnraidSnapshotSource(UnraidClient(url, key, timeout=timeout))
        pollers.append(SnapshotPoller(source, settings.temp_threshold_c))
        logger.info("Notifications: added Unraid poller", extra={"subsys": "notify"})

    return pollers


class NotificationService:
    def __init__(self, settings: NotificationSettings, sink: ChatSink):
        self.settings = settings
        self.sink = sink
        self.shutdown = asyncio.Event()
        self.engine: Optional[NotificationEngine] = None
        self.pollers: List[Poller] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        try:
            destinations = await resolve_destinations(
                self.sink,
                self.settings.guild_id,
                DestinationOverrides(
                    grabs=self.settings.grabs_channel_id,
                    imports=self.settings.imports_channel_id,
                    alerts=self.settings.alerts_channel_id,
                ),
                self.settings.fallback_channel_id,
            )
        except DestinationResolutionError as e:
            logger.error(
                f"✖ {e}; notifications disabled",
                exc_info=True,
                extra={"subsys": "notify", "event": "resolve_failed"},
            )
            return

        logger.info(
            f"Notification channels: grabs={destinations.grabs}, "
            f"imports={destinations.imports}, alerts={destinations.alerts}",
            extra={"subsys": "notify"},
        )
        self.pollers = build_pollers(self.settings)
        self.engine = NotificationEngine(
            self.sink,
            destinations,
            self.pollers,
            poll_interval=self.settings.poll_interval_s,
            shutdown=self.shutdown,
            send_timeout=self.settings.send_timeout_s,
        )
        await self.engine.run()

    def start(self) -> asyncio.Task:
        if self.running:
            logger.warning("Notification service already running")
            return self._task
        self._task = asyncio.create_task(self._run(), name="notification-engine")
        return self._task

    async def _close_pollers(self) -> None:
        pollers, self.pollers = self.pollers, []
        for poller in pollers:
            try:
                await poller.aclose()
            except Exception as e:
                logger.warning(
                    f"⚠ Error closing poller '{poller.name}': {e}",
                    extra={"subsys": "notify", "event": "poller_close_failed"},
                )

    async def stop(self, timeout: float = 10.0) -> None:
        """Signal shutdown, wait for the loop (cancelling it if it overruns) and
        close the pollers' HTTP clients."""
        self.shutdown.set()
        try:
            if self._task is None:
                return
            try:
                await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Notification engine did not stop within {timeout}s, cancelling")
                self._task.cancel()
                await asyncio.gather(self._task, return_exceptions=True)
        finally:
            await self._close_pollers()
