"""AlertStore — the single source of truth for the active alert list.

Alerts keep their insertion order. Every successful mutation is followed by
an :class:`AlertsChanged` message to all subscribers; no-op calls (unknown id)
emit nothing.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable

from src.contracts.alert import Alert
from src.store.errors import DuplicateAlertError
from src.store.events import AlertsChanged, ChangeReason, Listener

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AlertStore:
    def __init__(self, alerts: list[Alert] | None = None, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._alerts: list[Alert] = []
        self._listeners: list[Listener] = []
        self.resolved_count = 0
        for alert in alerts or []:
            self.add(alert)

    # ── subscription ──────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, reason: ChangeReason, alert_id: str) -> None:
        event = AlertsChanged(reason=reason, alert_id=alert_id)
        for listener in list(self._listeners):
            listener(event)

    # ── read access ───────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._alerts)

    def __contains__(self, alert_id: object) -> bool:
        return self._index(alert_id) is not None

    def _index(self, alert_id: object) -> int | None:
        for i, alert in enumerate(self._alerts):
            if alert.id == alert_id:
                return i
        return None

    def get(self, alert_id: str) -> Alert | None:
        idx = self._index(alert_id)
        return self._alerts[idx] if idx is not None else None

    def alerts(self) -> list[Alert]:
        """Snapshot of all active alerts, snoozed ones included."""
        return list(self._alerts)

    def visible_alerts(self, now: datetime | None = None) -> list[Alert]:
        """Alerts whose snooze (if any) has expired, evaluated at *now*."""
        now = now if now is not None else self._clock()
        return [a for a in self._alerts if a.is_visible(now)]

    # ── mutations ─────────────────────────────────────────────────────────

    def add(self, alert: Alert) -> None:
        if alert.id in self:
            raise DuplicateAlertError(alert.id)
        self._alerts.append(alert)
        log.debug("Alert %s added (%s, %s)", alert.id, alert.type, alert.severity.value)
        self._emit(ChangeReason.ADDED, alert.id)

    def resolve(self, alert_id: str) -> bool:
        """Remove the alert. Returns False (and does nothing) if it is unknown."""
        idx = self._index(alert_id)
        if idx is None:
            return False
        del self._alerts[idx]
        self.resolved_count += 1
        log.info("Alert %s resolved", alert_id)
        self._emit(ChangeReason.RESOLVED, alert_id)
        return True

    def snooze(self, alert_id: str, duration_minutes: float) -> bool:
        idx = self._index(alert_id)
        if idx is None:
            return False
        until = self._clock() + timedelta(minutes=duration_minutes)
        self._alerts[idx] = replace(self._alerts[idx], snoozed_until=until)
        log.info("Alert %s snoozed until %s", alert_id, until.isoformat())
        self._emit(ChangeReason.SNOOZED, alert_id)
        return True

    def update(self, alert: Alert) -> bool:
        """Replace the stored alert with the same id by *alert*, in place."""
        idx = self._index(alert.id)
        if idx is None:
            log.debug("Update for unknown alert %s ignored", alert.id)
            return False
        self._alerts[idx] = alert
        self._emit(ChangeReason.UPDATED, alert.id)
        return True
