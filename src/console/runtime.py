"""Console runtime — one simulated SOC session.

Wires the pieces together and drives them on a fixed tick:

  AlertStore ──AlertsChanged──▶ AnalysisOrchestrator ──▶ ThreatAnalyzer (HTTP)
      ▲
      └── AlertGenerator (random new alerts)      TrafficMonitor / StatsMonitor

After the last tick every in-flight analysis is awaited, then snapshots are
written to ``out_dir``.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from pathlib import Path

from src.analysis.client import ThreatAnalyzer
from src.analysis.orchestrator import AnalysisOrchestrator, Analyzer
from src.contracts.alert import Alert
from src.contracts.telemetry import SystemStats, TrafficPoint
from src.console.reporter import write_alerts_csv, write_alerts_jsonl, write_report_txt
from src.emulator.alerts import AlertGenerator, seed_alerts
from src.emulator.traffic import StatsMonitor, TrafficMonitor
from src.shared.settings import Settings
from src.store.alert_store import AlertStore, Clock, utc_now

log = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionResult:
    alerts: list[Alert]
    visible: list[Alert]
    stats: SystemStats
    traffic: list[TrafficPoint]
    ticks: int


class ConsoleSession:
    """Everything one run needs, built from :class:`Settings`."""

    def __init__(
        self,
        settings: Settings,
        rng: random.Random,
        analyzer: Analyzer,
        clock: Clock = utc_now,
    ) -> None:
        self.settings = settings
        self.clock = clock
        now = clock()
        self.store = AlertStore(seed_alerts(settings.emulator.seed_alerts, now), clock=clock)
        self.orchestrator = AnalysisOrchestrator(self.store, analyzer)
        self.traffic = TrafficMonitor(rng, now, window=settings.emulator.traffic_window)
        self.stats = StatsMonitor(rng)
        self._blocked_base = self.stats.stats.blocked_today
        self.generator: AlertGenerator | None = None
        if settings.emulator.catalogue:
            self.generator = AlertGenerator(
                settings.emulator.catalogue,
                settings.emulator.destination_ips,
                rng,
                probability=settings.emulator.alert_probability,
                taken_ids={a.id for a in self.store.alerts()},
            )

    def tick(self) -> Alert | None:
        """Advance telemetry by one step; maybe inject a new alert."""
        now = self.clock()
        self.traffic.tick(now)
        self.stats.tick(blocked_today=self._blocked_base + self.store.resolved_count)
        new_alert = self.generator.maybe_generate(now) if self.generator else None
        if new_alert is not None:
            self.store.add(new_alert)
            log.info(
                "New alert %s: %s [%s] from %s",
                new_alert.id, new_alert.type, new_alert.severity.value, new_alert.source_ip,
            )
        return new_alert

    def result(self, ticks: int) -> SessionResult:
        return SessionResult(
            alerts=self.store.alerts(),
            visible=self.store.visible_alerts(),
            stats=self.stats.stats,
            traffic=self.traffic.points,
            ticks=ticks,
        )

    async def run(self, ticks: int, interval_sec: float) -> SessionResult:
        runner = asyncio.create_task(self.orchestrator.run(), name="orchestrator")
        done = 0
        try:
            for done in range(1, ticks + 1):
                await asyncio.sleep(interval_sec)
                self.tick()
                log.debug(
                    "Tick %d/%d: %d alerts (%d visible), %d analysing, cpu=%d%%",
                    done, ticks, len(self.store), len(self.store.visible_alerts()),
                    len(self.orchestrator.in_flight), self.stats.stats.cpu,
                )
        finally:
            self.orchestrator.stop()
            await runner
            await self.orchestrator.drain()
        return self.result(done)


def write_outputs(result: SessionResult, out_dir: str, clock: Clock = utc_now) -> None:
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    write_alerts_csv(result.alerts, str(out / "alerts.csv"))
    write_alerts_jsonl(result.alerts, str(out / "alerts.jsonl"))
    write_report_txt(
        result.alerts, result.visible, result.stats, result.traffic, clock(),
        str(out / "report.txt"),
    )


async def run_session(
    settings: Settings,
    *,
    ticks: int,
    interval_sec: float,
    out_dir: str | None,
    rng: random.Random,
    clock: Clock = utc_now,
) -> SessionResult:
    """Run a full session with the real HTTP analyzer and write outputs."""
    async with ThreatAnalyzer(settings.analysis) as analyzer:
        session = ConsoleSession(settings, rng, analyzer, clock=clock)
        result = await session.run(ticks, interval_sec)
    if out_dir:
        write_outputs(result, out_dir, clock)
    log.info(
        "Session complete: %d ticks, %d alerts, %d analysed",
        result.ticks, len(result.alerts),
        sum(1 for a in result.alerts if a.analysis is not None),
    )
    return result
