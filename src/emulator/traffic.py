"""Mock traffic and host statistics for the overview panel."""

from __future__ import annotations

import random as _random_mod
from collections import deque
from datetime import datetime, timedelta

from src.contracts.telemetry import SystemStats, TrafficPoint


def _label(dt: datetime) -> str:
    return dt.strftime("%H:%M:%S")


class TrafficMonitor:
    """Rolling window of one-second traffic samples."""

    def __init__(self, rng: _random_mod.Random, now: datetime, window: int = 21) -> None:
        self.rng = rng
        self.window = window
        self._points: deque[TrafficPoint] = deque(maxlen=window)
        # back-fill with a quieter baseline, oldest first
        for i in range(window - 1, -1, -1):
            self._points.append(TrafficPoint(
                time=_label(now - timedelta(seconds=i)),
                inbound_mb=rng.randint(10, 59),
                outbound_mb=rng.randint(5, 34),
                packets=rng.randint(0, 999),
            ))

    @property
    def points(self) -> list[TrafficPoint]:
        return list(self._points)

    def tick(self, now: datetime) -> TrafficPoint:
        point = TrafficPoint(
            time=_label(now),
            inbound_mb=self.rng.randint(20, 79),
            outbound_mb=self.rng.randint(10, 49),
            packets=self.rng.randint(0, 999),
        )
        self._points.append(point)
        return point


def _clamp(value: int, lo: int, hi: int) -> int:
    return min(hi, max(lo, value))


class StatsMonitor:
    """Random walk over CPU / memory / connection counts."""

    def __init__(self, rng: _random_mod.Random, initial: SystemStats | None = None) -> None:
        self.rng = rng
        self.stats = initial or SystemStats(
            cpu=12, memory=45, active_connections=124, blocked_today=89
        )

    def tick(self, blocked_today: int | None = None) -> SystemStats:
        s = self.stats
        self.stats = SystemStats(
            cpu=_clamp(s.cpu + self.rng.randint(-2, 2), 5, 100),
            memory=_clamp(s.memory + self.rng.randint(-1, 1), 10, 100),
            active_connections=max(50, s.active_connections + self.rng.randint(-5, 4)),
            blocked_today=s.blocked_today if blocked_today is None else blocked_today,
        )
        return self.stats
