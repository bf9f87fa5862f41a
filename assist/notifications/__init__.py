"""
Background notification subsystem: pollers, engine, destination resolution.
"""
from .destinations import ChatSink, DestinationMap, DestinationOverrides, resolve_destinations
from .engine import EngineState, NotificationEngine
from .events import NotificationCategory, NotificationEvent
from .pollers import HistoryPoller, Poller, SnapshotPoller
from .service import NotificationService, build_pollers

__all__ = [
    "ChatSink",
    "DestinationMap",
    "DestinationOverrides",
    "resolve_destinations",
    "EngineState",
    "NotificationEngine",
    "NotificationCategory",
    "NotificationEvent",
    "HistoryPoller",
    "Poller",
    "SnapshotPoller",
    "NotificationService",
    "build_pollers",
]
