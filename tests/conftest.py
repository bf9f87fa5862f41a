"""
Pytest configuration and shared fakes for the router, pollers and engine.

The fakes stand in for the network-facing collaborators (service APIs and the
Discord channel API) so tests exercise the diffing and routing logic directly.
"""

import os
from typing import Dict, List, Optional

import pytest

# Keep the JSONL sink out of the repo when a test initialises logging
os.environ.setdefault("LOG_JSONL_PATH", os.path.join(os.getcwd(), ".pytest_logs", "assist.jsonl"))

from assist.notifications.destinations import ChannelInfo
from assist.notifications.events import NotificationEvent
from assist.notifications.sources import HistoryRecord, Snapshot


class FakeHistorySource:
    """Returns queued pages in order; an Exception in the queue is raised."""

    def __init__(self, pages=None):
        self.pages: List = list(pages or [])
        self.calls: List[int] = []
        self.closed = False

    def queue(self, page) -> None:
        self.pages.append(page)

    async def fetch_recent_history(self, page_size: int) -> List[HistoryRecord]:
        self.calls.append(page_size)
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page

    async def aclose(self) -> None:
        self.closed = True


class FakeSnapshotSource:
    def __init__(self, snapshots=None):
        self.snapshots: List = list(snapshots or [])
        self.closed = False

    def queue(self, snapshot) -> None:
        self.snapshots.append(snapshot)

    async def fetch_snapshot(self) -> Snapshot:
        snapshot = self.snapshots.pop(0)
        if isinstance(snapshot, Exception):
            raise snapshot
        return snapshot

    async def aclose(self) -> None:
        self.closed = True


class FakeSink:
    """In-memory chat platform: channel listing, creation and posted events."""

    def __init__(self, channels: Optional[List[ChannelInfo]] = None, fail_channels=()):
        self.channels: List[ChannelInfo] = list(channels or [])
        self.sent: List[tuple] = []
        self.created: List[tuple] = []
        self.fail_channels = set(fail_channels)
        self.fetch_error: Optional[Exception] = None
        self._next_id = 9000

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    async def fetch_channels(self, guild_id: int) -> List[ChannelInfo]:
        if self.fetch_error is not None:
            raise self.fetch_error
        return list(self.channels)

    async def create_category(self, guild_id: int, name: str) -> int:
        channel = ChannelInfo(id=self._new_id(), name=name, is_category=True)
        self.channels.append(channel)
        self.created.append(("category", name, None))
        return channel.id

    async def create_text_channel(self, guild_id: int, name: str, category_id: int) -> int:
        channel = ChannelInfo(id=self._new_id(), name=name, parent_id=category_id)
        self.channels.append(channel)
        self.created.append(("text", name, category_id))
        return channel.id

    async def send_notification(self, channel_id: int, event: NotificationEvent) -> None:
        if channel_id in self.fail_channels:
            raise RuntimeError(f"channel {channel_id} unavailable")
        self.sent.append((channel_id, event))

    def sent_to(self, channel_id: int) -> List[NotificationEvent]:
        return [event for cid, event in self.sent if cid == channel_id]


def record(id: int, event_type: str = "grabbed", title: Optional[str] = "Show A") -> HistoryRecord:
    return HistoryRecord(id=id, event_type=event_type, source_title=title)


def snapshot(mode="STARTED", entities: Optional[Dict[str, str]] = None, readings=()) -> Snapshot:
    return Snapshot(mode=mode, entities=dict(entities or {}), readings=list(readings))


@pytest.fixture
def history_source():
    return FakeHistorySource()


@pytest.fixture
def snapshot_source():
    return FakeSnapshotSource()


@pytest.fixture
def sink():
    return FakeSink()
