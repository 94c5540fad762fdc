"""Mock telemetry records shown next to the alert list."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TrafficPoint:
    """One second of simulated network throughput."""

    time: str           # "HH:MM:SS"
    inbound_mb: int
    outbound_mb: int
    packets: int


@dataclass(slots=True)
class SystemStats:
    cpu: int                    # percent
    memory: int                 # percent
    active_connections: int
    blocked_today: int
