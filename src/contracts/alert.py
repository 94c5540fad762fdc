"""Alert model: one simulated intrusion event plus its workflow fields."""

from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.contracts.analysis import AnalysisState, Done, Idle, InFlight
from src.contracts.enums import AlertStatus, Protocol, Severity

# CSV column order for alert snapshots
ALERT_CSV_COLUMNS: list[str] = [
    "id",
    "timestamp",
    "source_ip",
    "destination_ip",
    "protocol",
    "severity",
    "type",
    "payload",
    "status",
    "analysis",
    "snoozed_until",
]

# Markers that identify a sentinel (failure) text stored in ``analysis``.
ERROR_PREFIX = "Error"
ERROR_MARKERS: tuple[str, ...] = ("API Key missing", "No analysis")


def is_analysis_error(text: str | None) -> bool:
    """True when *text* is one of the failure sentinels, not a real assessment."""
    if not text:
        return False
    return text.startswith(ERROR_PREFIX) or any(m in text for m in ERROR_MARKERS)


def _iso(dt: datetime | None) -> str:
    return dt.isoformat().replace("+00:00", "Z") if dt is not None else ""


def _parse_ts(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass(slots=True)
class Alert:
    """One detected (here: simulated) security event."""

    # ── identity + immutable description ──
    id: str                 # e.g. "TX-9901"
    timestamp: datetime     # tz-aware
    source_ip: str
    destination_ip: str
    protocol: Protocol
    severity: Severity
    type: str               # free-text classification, e.g. "Port Scan"
    payload: str            # packet content / signature

    # ── workflow ──
    status: AlertStatus = AlertStatus.NEW
    analysis: str | None = None
    snoozed_until: datetime | None = None

    def is_visible(self, now: datetime) -> bool:
        return self.snoozed_until is None or now > self.snoozed_until

    @property
    def analysis_state(self) -> AnalysisState:
        if self.status is AlertStatus.ANALYZING:
            return InFlight()
        if self.analysis is not None:
            return Done(self.analysis, is_analysis_error(self.analysis))
        return Idle()

    # ── serialisation ─────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": _iso(self.timestamp),
            "source_ip": self.source_ip,
            "destination_ip": self.destination_ip,
            "protocol": self.protocol.value,
            "severity": self.severity.value,
            "type": self.type,
            "payload": self.payload,
            "status": self.status.value,
            "analysis": self.analysis,
            "snoozed_until": _iso(self.snoozed_until) or None,
        }

    def to_json(self) -> str:
        """Return compact JSON string."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    def to_csv_row(self) -> str:
        """Return a single CSV line (no trailing newline)."""
        data = self.to_dict()
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(["" if data[c] is None else data[c] for c in ALERT_CSV_COLUMNS])
        return buf.getvalue().rstrip("\r\n")

    @staticmethod
    def csv_header() -> str:
        return ",".join(ALERT_CSV_COLUMNS)

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> Alert:
        """Build an Alert from a plain mapping (YAML seed entry or JSON object).

        ``protocol``, ``severity`` and ``status`` are matched case-insensitively.
        """
        return cls(
            id=str(row["id"]),
            timestamp=_parse_ts(row["timestamp"]),
            source_ip=str(row.get("source_ip", "")),
            destination_ip=str(row.get("destination_ip", "")),
            protocol=Protocol(str(row.get("protocol", "TCP")).upper()),
            severity=Severity(str(row.get("severity", "LOW")).upper()),
            type=str(row.get("type", "")),
            payload=str(row.get("payload", "")),
            status=AlertStatus(str(row.get("status", "NEW")).upper()),
            analysis=row.get("analysis") or None,
            snoozed_until=_parse_ts(row.get("snoozed_until")),
        )
