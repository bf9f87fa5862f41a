"""
Tests for the notification service lifecycle and poller construction.
"""
import asyncio

import httpx
import pytest

from assist.clients import ArrClient, UnraidClient
from assist.config import NotificationSettings
from assist.notifications.engine import EngineState
from assist.notifications.pollers import HistoryPoller, SnapshotPoller
from assist.notifications import service as service_module
from assist.notifications.service import NotificationService, build_pollers
from assist.notifications.sources import ArrHistorySource, UnraidSnapshotSource

from conftest import FakeHistorySource


def test_build_pollers_order_and_skips_unconfigured():
    settings = NotificationSettings(
        sonarr=("http://sonarr:8989", "s-key"),
        radarr=("http://radarr:7878", "r-key"),
        unraid=("https://tower/graphql", "u-key"),
        history_page_size=30,
        temp_threshold_c=55,
    )

    pollers = build_pollers(settings)

    assert [type(p) for p in pollers] == [HistoryPoller, HistoryPoller, SnapshotPoller]
    assert [p.name for p in pollers] == ["Sonarr", "Radarr", "Unraid"]
    assert pollers[0].page_size == 30
    assert pollers[2].threshold == 55

    only_radarr = build_pollers(NotificationSettings(radarr=("http://radarr:7878", "r-key")))
    assert [p.name for p in only_radarr] == ["Radarr"]


def test_settings_from_config_clamps_interval():
    settings = NotificationSettings.from_config(
        {"NOTIFY_POLL_INTERVAL_S": 0, "NOTIFY_CHANNEL_ID": 5, "SONARR_URL": "http://s", "SONARR_KEY": "k"}
    )
    assert settings.poll_interval_s == 1
    assert settings.fallback_channel_id == 5
    assert settings.sonarr == ("http://s", "k")
    assert settings.radarr is None


@pytest.mark.asyncio
async def test_resolution_failure_never_starts_engine(sink, caplog):
    service = NotificationService(NotificationSettings(), sink)

    await asyncio.wait_for(service.start(), timeout=1)

    assert service.engine is None
    assert not service.running
    assert "notifications disabled" in caplog.text


@pytest.mark.asyncio
async def test_start_and_stop_with_fallback_channel(sink):
    service = NotificationService(
        NotificationSettings(fallback_channel_id=77, poll_interval_s=3600), sink
    )

    service.start()
    for _ in range(5):
        await asyncio.sleep(0)
    assert service.running
    assert service.engine is not None
    assert service.engine.destinations.alerts == 77

    await service.stop(timeout=1)

    assert not service.running
    assert service.engine.state is EngineState.STOPPED


@pytest.mark.asyncio
async def test_stop_before_start_is_noop(sink):
    service = NotificationService(NotificationSettings(fallback_channel_id=1), sink)
    await service.stop()
    assert service.shutdown.is_set()


def mock_transport_pollers():
    """Real pollers and clients, with HTTP answered in-process."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/history"):
            return httpx.Response(200, json={"records": [{"id": 1, "eventType": "grabbed"}]})
        return httpx.Response(
            200,
            json={"data": {"array": {"state": "STARTED"}, "disks": [], "docker": {"containers": []}}},
        )

    def client():
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return [
        HistoryPoller("Sonarr", ArrHistorySource(ArrClient("http://sonarr:8989", "s", client=client()))),
        SnapshotPoller(UnraidSnapshotSource(UnraidClient("https://tower/graphql", "u", client=client())), 50),
    ]


async def wait_for_first_tick(service):
    for _ in range(100):
        if service.engine is not None and service.engine.ticks >= 1:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("engine never completed a tick")


@pytest.mark.asyncio
async def test_stop_closes_poller_http_clients(sink, monkeypatch):
    pollers = mock_transport_pollers()
    monkeypatch.setattr(service_module, "build_pollers", lambda settings: pollers)
    service = NotificationService(
        NotificationSettings(fallback_channel_id=77, poll_interval_s=3600), sink
    )

    service.start()
    await wait_for_first_tick(service)
    await service.stop(timeout=1)

    assert [p.source.client._client.is_closed for p in pollers] == [True, True]
    assert service.pollers == []


@pytest.mark.asyncio
async def test_stop_closes_pollers_even_when_engine_overruns(sink, monkeypatch):
    class HangingSource(FakeHistorySource):
        async def fetch_recent_history(self, page_size):
            self.calls.append(page_size)
            await asyncio.sleep(60)

    source = HangingSource()
    monkeypatch.setattr(service_module, "build_pollers", lambda settings: [HistoryPoller("Sonarr", source)])
    service = NotificationService(NotificationSettings(fallback_channel_id=77), sink)

    service.start()
    for _ in range(100):
        if source.calls:
            break
        await asyncio.sleep(0.01)
    await service.stop(timeout=0.05)

    assert not service.running
    assert source.closed is True
