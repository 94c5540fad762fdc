"""Shared fixtures for Sentinel tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.contracts.alert import Alert
from src.contracts.enums import AlertStatus, Protocol, Severity
from src.shared.settings import AnalysisSettings

T0 = datetime(2026, 2, 26, 10, 0, 0, tzinfo=timezone.utc)

# ── Helper: create Alert with sensible defaults ─────────────────────────


def make_alert(
    *,
    id: str = "TX-2234",
    timestamp: datetime = T0,
    source_ip: str = "172.16.0.4",
    destination_ip: str = "10.0.0.8",
    protocol: Protocol = Protocol.UDP,
    severity: Severity = Severity.MEDIUM,
    type: str = "Port Scan",
    payload: str = "NMAP SCAN [Ports 20-443]",
    status: AlertStatus = AlertStatus.NEW,
    analysis: str | None = None,
    snoozed_until: datetime | None = None,
) -> Alert:
    return Alert(
        id=id,
        timestamp=timestamp,
        source_ip=source_ip,
        destination_ip=destination_ip,
        protocol=protocol,
        severity=severity,
        type=type,
        payload=payload,
        status=status,
        analysis=analysis,
        snoozed_until=snoozed_until,
    )


# ── Clock ────────────────────────────────────────────────────────────────


class FakeClock:
    """Manually advanced clock, injectable wherever ``utc_now`` is used."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ── Analyzer doubles ─────────────────────────────────────────────────────


class FakeAnalyzer:
    """Records calls; optionally blocks until ``release()`` so tests can
    observe the in-flight state."""

    def __init__(
        self,
        result: str = "**Intent:** reconnaissance.\n- Block 172.16.0.4",
        exc: Exception | None = None,
        gated: bool = False,
    ) -> None:
        self.result = result
        self.exc = exc
        self.gated = gated
        self.calls: list[str] = []
        self.active: dict[str, int] = {}
        self.peak: dict[str, int] = {}
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def __call__(self, alert: Alert) -> str:
        self.calls.append(alert.id)
        self.active[alert.id] = self.active.get(alert.id, 0) + 1
        self.peak[alert.id] = max(self.peak.get(alert.id, 0), self.active[alert.id])
        try:
            if self.gated:
                await self._gate.wait()
            else:
                await asyncio.sleep(0)
            if self.exc is not None:
                raise self.exc
            return self.result
        finally:
            self.active[alert.id] -= 1


@pytest.fixture
def analysis_settings() -> AnalysisSettings:
    return AnalysisSettings(
        api_key="test-key",
        model="gemini-2.5-flash",
        base_url="https://ai.test/v1beta",
        timeout_sec=5.0,
    )


@pytest.fixture
def config_dict() -> dict:
    """Minimal sentinel.yaml equivalent."""
    return {
        "analysis": {"model": "gemini-2.5-flash", "timeout_sec": 10},
        "emulator": {
            "alert_probability": 0.5,
            "traffic_window": 5,
            "destination_ips": ["10.0.0.5"],
            "seed_alerts": [
                {
                    "id": "TX-9901",
                    "age_sec": 0,
                    "source_ip": "192.168.1.105",
                    "destination_ip": "10.0.0.5",
                    "protocol": "TCP",
                    "severity": "HIGH",
                    "type": "SQL Injection Attempt",
                    "payload": "' OR '1'='1' --",
                },
                {
                    "id": "TX-2234",
                    "age_sec": 120,
                    "source_ip": "172.16.0.4",
                    "destination_ip": "10.0.0.8",
                    "protocol": "udp",
                    "severity": "medium",
                    "type": "Port Scan",
                    "payload": "NMAP SCAN [Ports 20-443]",
                },
            ],
            "catalogue": [
                {
                    "type": "ICMP Flood",
                    "protocol": "ICMP",
                    "severity": "LOW",
                    "payloads": ["ECHO REQUEST burst"],
                },
            ],
        },
        "runtime": {"tick_interval_sec": 0.5, "ticks": 3},
    }
