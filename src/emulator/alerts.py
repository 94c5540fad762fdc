"""Synthetic alert source.

``seed_alerts`` builds the start-up alert list from config; ``AlertGenerator``
draws new random alerts from the catalogue. Neither performs any real
detection.
"""

from __future__ import annotations

import logging
import random as _random_mod
from datetime import datetime, timedelta
from typing import Any

from src.contracts.alert import Alert
from src.contracts.enums import Protocol, Severity

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _pick(rng: _random_mod.Random, seq: list[Any]) -> Any:
    return seq[rng.randint(0, len(seq) - 1)]


def _private_ip(rng: _random_mod.Random) -> str:
    block = rng.randint(0, 2)
    if block == 0:
        return f"192.168.{rng.randint(0, 255)}.{rng.randint(1, 254)}"
    if block == 1:
        return f"172.{rng.randint(16, 31)}.{rng.randint(0, 255)}.{rng.randint(1, 254)}"
    return f"10.{rng.randint(0, 255)}.{rng.randint(0, 255)}.{rng.randint(1, 254)}"


# ---------------------------------------------------------------------------
# Seed alerts
# ---------------------------------------------------------------------------

def seed_alerts(entries: list[dict[str, Any]], now: datetime) -> list[Alert]:
    """Build alerts from config entries; ``age_sec`` is subtracted from *now*."""
    alerts: list[Alert] = []
    for entry in entries:
        row = dict(entry)
        row.setdefault("timestamp", now - timedelta(seconds=float(row.pop("age_sec", 0))))
        alerts.append(Alert.from_dict(row))
    log.info("Seeded %d alerts", len(alerts))
    return alerts


# ---------------------------------------------------------------------------
# Random generator
# ---------------------------------------------------------------------------

class AlertGenerator:
    """Random alerts drawn from a catalogue of attack templates.

    Ids are ``TX-####`` and never repeat within one generator.
    """

    def __init__(
        self,
        catalogue: list[dict[str, Any]],
        destination_ips: list[str],
        rng: _random_mod.Random,
        probability: float = 0.1,
        taken_ids: set[str] | None = None,
    ) -> None:
        if not catalogue:
            raise ValueError("Alert catalogue is empty")
        self.catalogue = catalogue
        self.destination_ips = destination_ips or ["10.0.0.1"]
        self.rng = rng
        self.probability = probability
        self._used: set[str] = set(taken_ids or ())

    def _next_id(self) -> str:
        if len(self._used) >= 9000:
            raise RuntimeError("Alert id space exhausted")
        while True:
            candidate = f"TX-{self.rng.randint(1000, 9999)}"
            if candidate not in self._used:
                self._used.add(candidate)
                return candidate

    def generate(self, now: datetime) -> Alert:
        tpl = _pick(self.rng, self.catalogue)
        payloads = tpl.get("payloads") or [""]
        return Alert(
            id=self._next_id(),
            timestamp=now,
            source_ip=_private_ip(self.rng),
            destination_ip=_pick(self.rng, self.destination_ips),
            protocol=Protocol(str(tpl.get("protocol", "TCP")).upper()),
            severity=Severity(str(tpl.get("severity", "LOW")).upper()),
            type=str(tpl["type"]),
            payload=str(_pick(self.rng, payloads)),
        )

    def maybe_generate(self, now: datetime) -> Alert | None:
        """Roll against ``probability``; return a new alert on success."""
        if self.rng.random() >= self.probability:
            return None
        return self.generate(now)
