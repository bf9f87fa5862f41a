"""
Tests for the notification engine loop: routing, delivery failures and shutdown.
"""
import asyncio

import pytest

from assist.notifications.destinations import DestinationMap
from assist.notifications.engine import EngineState, NotificationEngine
from assist.notifications.events import NotificationCategory, NotificationEvent
from assist.notifications.pollers import HistoryPoller, Poller

from conftest import FakeSink, record

GRABS, IMPORTS, ALERTS = 101, 102, 103


def destinations():
    return DestinationMap(grabs=GRABS, imports=IMPORTS, alerts=ALERTS)


def event(category, title):
    return NotificationEvent(category=category, title=title, body=title, color=0)


class ScriptedPoller(Poller):
    """Returns scripted event batches; optionally signals shutdown when polled."""

    def __init__(self, name, batches=None, on_poll=None):
        self.name = name
        self.batches = list(batches or [])
        self.on_poll = on_poll
        self.polls = 0

    async def poll(self):
        self.polls += 1
        if self.on_poll is not None:
            self.on_poll()
        return self.batches.pop(0) if self.batches else []


class ExplodingPoller(Poller):
    name = "exploding"

    async def poll(self):
        raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_grab_then_import_scenario(history_source, sink):
    """First history page is the baseline, the next new import lands in the imports channel."""
    history_source.queue([record(1, "grabbed", "Show A")])
    history_source.queue([record(2, "downloadFolderImported", "Show A"), record(1, "grabbed", "Show A")])
    poller = HistoryPoller("Sonarr", history_source)
    engine = NotificationEngine(sink, destinations(), [poller], poll_interval=60)

    assert await engine.tick() == 0
    assert sink.sent == []

    assert await engine.tick() == 1
    assert len(sink.sent) == 1
    channel_id, posted = sink.sent[0]
    assert channel_id == IMPORTS
    assert posted.title == "Sonarr Import"
    assert posted.body == "Imported: Show A"


@pytest.mark.asyncio
async def test_events_routed_by_category_in_poller_order(sink):
    first = ScriptedPoller("first", [[
        event(NotificationCategory.GRAB, "g1"),
        event(NotificationCategory.ALERT, "a1"),
    ]])
    second = ScriptedPoller("second", [[event(NotificationCategory.IMPORT, "i1")]])
    engine = NotificationEngine(sink, destinations(), [first, second], poll_interval=60)

    assert await engine.tick() == 3

    assert [(cid, e.title) for cid, e in sink.sent] == [
        (GRABS, "g1"),
        (ALERTS, "a1"),
        (IMPORTS, "i1"),
    ]


@pytest.mark.asyncio
async def test_delivery_failure_is_logged_and_tick_continues(caplog):
    sink = FakeSink(fail_channels={GRABS})
    poller = ScriptedPoller("p", [[
        event(NotificationCategory.GRAB, "lost"),
        event(NotificationCategory.IMPORT, "kept"),
    ]])
    engine = NotificationEngine(sink, destinations(), [poller], poll_interval=60)

    assert await engine.tick() == 1

    assert [e.title for _, e in sink.sent] == ["kept"]
    assert "Failed to send notification" in caplog.text


@pytest.mark.asyncio
async def test_slow_delivery_times_out(caplog):
    class SlowSink(FakeSink):
        async def send_notification(self, channel_id, event):
            await asyncio.sleep(5)

    poller = ScriptedPoller("p", [[event(NotificationCategory.ALERT, "slow")]])
    engine = NotificationEngine(SlowSink(), destinations(), [poller], poll_interval=60, send_timeout=0.01)

    assert await engine.tick() == 0
    assert "Failed to send notification" in caplog.text


@pytest.mark.asyncio
async def test_raising_poller_does_not_block_others(sink):
    good = ScriptedPoller("good", [[event(NotificationCategory.GRAB, "g")]])
    engine = NotificationEngine(sink, destinations(), [ExplodingPoller(), good], poll_interval=60)

    assert await engine.tick() == 1
    assert good.polls == 1


@pytest.mark.asyncio
async def test_shutdown_mid_tick_skips_remaining_pollers(sink):
    shutdown = asyncio.Event()
    first = ScriptedPoller("first", [[event(NotificationCategory.GRAB, "dropped")]], on_poll=shutdown.set)
    second = ScriptedPoller("second", [[event(NotificationCategory.GRAB, "never")]])
    engine = NotificationEngine(sink, destinations(), [first, second], poll_interval=60, shutdown=shutdown)

    await engine.tick()

    assert sink.sent == []
    assert second.polls == 0


@pytest.mark.asyncio
async def test_shutdown_during_batch_stops_posting():
    shutdown = asyncio.Event()

    class StoppingSink(FakeSink):
        async def send_notification(self, channel_id, event):
            await super().send_notification(channel_id, event)
            shutdown.set()

    sink = StoppingSink()
    batch = [event(NotificationCategory.IMPORT, f"i{n}") for n in range(5)]
    engine = NotificationEngine(
        sink, destinations(), [ScriptedPoller("p", [batch])], poll_interval=60, shutdown=shutdown
    )

    assert await engine.tick() == 1

    # The event posted before the signal stays posted, the rest are dropped
    assert [e.title for _, e in sink.sent] == ["i0"]


@pytest.mark.asyncio
async def test_run_transitions_states_and_stops_promptly(sink):
    engine = NotificationEngine(sink, destinations(), [ScriptedPoller("p")], poll_interval=3600)
    assert engine.state is EngineState.STARTING

    task = asyncio.create_task(engine.run())
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert engine.state is EngineState.RUNNING

    engine.stop()
    await asyncio.wait_for(task, timeout=1)

    assert engine.state is EngineState.STOPPED
    assert engine.ticks == 1


@pytest.mark.asyncio
async def test_run_ticks_repeatedly_until_stopped(sink):
    shutdown = asyncio.Event()
    polls = {"n": 0}

    def count():
        polls["n"] += 1
        if polls["n"] == 3:
            shutdown.set()

    poller = ScriptedPoller("p", on_poll=count)
    engine = NotificationEngine(sink, destinations(), [poller], poll_interval=0.01, shutdown=shutdown)

    await asyncio.wait_for(engine.run(), timeout=2)

    assert poller.polls == 3
    assert engine.state is EngineState.STOPPED


@pytest.mark.asyncio
async def test_already_signalled_shutdown_never_ticks(sink):
    shutdown = asyncio.Event()
    shutdown.set()
    poller = ScriptedPoller("p")
    engine = NotificationEngine(sink, destinations(), [poller], poll_interval=60, shutdown=shutdown)

    await engine.run()

    assert poller.polls == 0
    assert engine.state is EngineState.STOPPED
