"""
Notification event types.
[CMV]
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

COLOR_GRAB = 0xF5C518  # yellow
COLOR_IMPORT = 0x2ECC71  # green
COLOR_ALERT_WARN = 0xE67E22  # orange
COLOR_ALERT_CRIT = 0xE74C3C  # red


class NotificationCategory(str, Enum):
    GRAB = "grab"
    IMPORT = "import"
    ALERT = "alert"


@dataclass(frozen=True)
class NotificationEvent:
    category: NotificationCategory
    title: str
    body: str
    color: int
