"""Analysis Orchestrator — per-alert analysis state machine.

    Idle ──(auto scan | manual request)──▶ InFlight ──(settle)──▶ Done(text, is_error)
                                              ▲                     │
                                              └──(manual request)───┘

The orchestrator owns an explicit ``alert_id -> AnalysisState`` map. An
``InFlight`` entry is the only gate against duplicate calls: the check and the
insert happen in one synchronous step on the event loop thread, so two
requests for the same id can never both pass it.

Store side effects:
  * entering InFlight   -> ``status = ANALYZING``
  * settling            -> ``analysis = text``, ``status = NEW``

Failures never propagate as exceptions: the analyzer returns sentinel text and
anything it raises anyway is stored as ``ORCHESTRATION_ERROR``. There is no
automatic retry; a stored error is retried only through
:meth:`AnalysisOrchestrator.request_analysis`.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import replace
from typing import Awaitable, Callable

from src.contracts.alert import Alert, is_analysis_error
from src.contracts.analysis import AnalysisState, Done, Idle, InFlight
from src.contracts.enums import AlertStatus
from src.store.alert_store import AlertStore
from src.store.events import AlertsChanged, ChangeReason

log = logging.getLogger(__name__)

ORCHESTRATION_ERROR = "Error: Analysis sequence failed. Check connection."

Analyzer = Callable[[Alert], Awaitable[str]]


class AnalysisOrchestrator:
    def __init__(self, store: AlertStore, analyzer: Analyzer) -> None:
        self._store = store
        self._analyzer = analyzer
        self._states: dict[str, AnalysisState] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._inbox: asyncio.Queue[AlertsChanged | None] = asyncio.Queue()
        store.subscribe(self.notify)

    # ── introspection ─────────────────────────────────────────────────────

    @property
    def in_flight(self) -> frozenset[str]:
        return frozenset(k for k, v in self._states.items() if isinstance(v, InFlight))

    def is_in_flight(self, alert_id: str) -> bool:
        return isinstance(self._states.get(alert_id), InFlight)

    def state(self, alert_id: str) -> AnalysisState:
        if alert_id in self._states:
            return self._states[alert_id]
        alert = self._store.get(alert_id)
        return alert.analysis_state if alert is not None else Idle()

    @property
    def pending_messages(self) -> int:
        return self._inbox.qsize()

    # ── messages ──────────────────────────────────────────────────────────

    def notify(self, event: AlertsChanged) -> None:
        """Store listener: queue the change for the next scan."""
        self._inbox.put_nowait(event)

    def handle(self, *events: AlertsChanged) -> list[asyncio.Task[None]]:
        """Process change messages: forget resolved alerts, then scan once."""
        for event in events:
            self._forget_resolved(event)
        return self.scan()

    def _forget_resolved(self, event: AlertsChanged) -> None:
        if event.reason is ChangeReason.RESOLVED and not self.is_in_flight(event.alert_id):
            self._states.pop(event.alert_id, None)

    async def run(self) -> None:
        """Consume change messages until :meth:`stop` is called.

        Messages that piled up while a scan ran are coalesced into one scan.
        """
        log.info("Orchestrator started (%d alerts in store)", len(self._store))
        self.scan()
        while True:
            batch = [await self._inbox.get()]
            while not self._inbox.empty():
                batch.append(self._inbox.get_nowait())
            events = [e for e in batch if e is not None]
            if events:
                log.debug("Scan triggered by %d change message(s)", len(events))
                self.handle(*events)
            if len(events) != len(batch):
                break
        log.info("Orchestrator stopped")

    def stop(self) -> None:
        self._inbox.put_nowait(None)

    async def drain(self) -> None:
        """Wait until no analysis is in flight (new ones started meanwhile included)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    # ── transitions ───────────────────────────────────────────────────────

    def scan(self) -> list[asyncio.Task[None]]:
        """Start one analysis for every alert without a result that is not in flight."""
        candidates = [
            a for a in self._store.alerts()
            if a.analysis is None and not self.is_in_flight(a.id)
        ]
        started: list[asyncio.Task[None]] = []
        for alert in candidates:
            try:
                task = self._start(alert)
            except Exception:
                log.exception("Could not start analysis of %s", alert.id)
                continue
            if task is not None:
                started.append(task)
        if started:
            log.info("Auto-analysis started for %d alert(s)", len(started))
        return started

    def request_analysis(self, alert_id: str) -> asyncio.Task[None] | None:
        """Manual (re-)analysis. Returns None if unknown or already in flight."""
        alert = self._store.get(alert_id)
        if alert is None:
            log.warning("Analysis requested for unknown alert %s", alert_id)
            return None
        if self.is_in_flight(alert_id):
            log.debug("Analysis of %s already in flight, request ignored", alert_id)
            return None
        log.info("Manual analysis requested for %s", alert_id)
        return self._start(alert)

    def _start(self, alert: Alert) -> asyncio.Task[None] | None:
        if self.is_in_flight(alert.id):
            return None
        self._states[alert.id] = InFlight()
        try:
            self._store.update(replace(alert, status=AlertStatus.ANALYZING))
        except Exception:
            current = self._store.get(alert.id)
            if current is None or current.status is not AlertStatus.ANALYZING:
                del self._states[alert.id]
                raise
            # status already written; keep the gate so it matches the store
            log.exception("Change listener failed after %s was marked ANALYZING", alert.id)
        task = asyncio.get_running_loop().create_task(
            self._run(alert), name=f"analyze-{alert.id}"
        )
        self._tasks[alert.id] = task
        task.add_done_callback(functools.partial(self._on_task_done, alert.id))
        return task

    async def _run(self, alert: Alert) -> None:
        text = ORCHESTRATION_ERROR
        try:
            text = await self._analyzer(alert)
        except Exception:
            log.exception("Analyzer raised for %s", alert.id)
        finally:
            self._settle(alert.id, text)

    def _settle(self, alert_id: str, text: str) -> None:
        done = Done(text, is_analysis_error(text))
        try:
            current = self._store.get(alert_id)
            if current is None:
                log.info("Alert %s resolved during analysis, result dropped", alert_id)
            else:
                self._store.update(replace(current, analysis=text, status=AlertStatus.NEW))
                if done.is_error:
                    log.warning("Analysis of %s failed: %s", alert_id, text)
                else:
                    log.info("Analysis of %s complete (%d chars)", alert_id, len(text))
        finally:
            if alert_id in self._store:
                self._states[alert_id] = done
            else:
                self._states.pop(alert_id, None)
            self._tasks.pop(alert_id, None)

    def _on_task_done(self, alert_id: str, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            # cancelled before its first step: _run never reached its finally
            if self.is_in_flight(alert_id) and self._tasks.get(alert_id) is task:
                log.warning("Analysis of %s cancelled", alert_id)
                try:
                    self._settle(alert_id, ORCHESTRATION_ERROR)
                except Exception:
                    log.exception("Could not record cancellation of %s", alert_id)
            return
        exc = task.exception()
        if exc is not None:
            log.error("Analysis task %s failed: %r", task.get_name(), exc)
