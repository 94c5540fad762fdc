"""Change notification emitted by the store after every mutation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable


class ChangeReason(str, Enum):
    ADDED = "added"
    RESOLVED = "resolved"
    SNOOZED = "snoozed"
    UPDATED = "updated"


@dataclass(frozen=True, slots=True)
class AlertsChanged:
    reason: ChangeReason
    alert_id: str


Listener = Callable[[AlertsChanged], None]
