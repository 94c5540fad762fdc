"""Звітування: запис CSV, JSONL, TXT."""

from __future__ import annotations

import logging
import os
import tempfile
from collections import Counter
from datetime import datetime
from pathlib import Path

from src.contracts.alert import Alert, is_analysis_error
from src.contracts.telemetry import SystemStats, TrafficPoint

log = logging.getLogger(__name__)


def _atomic_write(path: str, content: str) -> None:
    """Атомарно записує content у файл path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(
        dir=str(target.parent),
        prefix=f".{target.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


# ═══════════════════════════════════════════════════════════════════════════
#  Alert snapshots
# ═══════════════════════════════════════════════════════════════════════════


def write_alerts_csv(alerts: list[Alert], path: str) -> None:
    lines = [Alert.csv_header()]
    lines.extend(a.to_csv_row() for a in alerts)
    _atomic_write(path, "\n".join(lines) + "\n")
    log.info("Wrote alerts → %s (%d rows)", path, len(alerts))


def write_alerts_jsonl(alerts: list[Alert], path: str) -> None:
    content = "".join(a.to_json() + "\n" for a in alerts)
    _atomic_write(path, content)
    log.info("Wrote alerts → %s (%d lines)", path, len(alerts))


# ═══════════════════════════════════════════════════════════════════════════
#  TXT report
# ═══════════════════════════════════════════════════════════════════════════


def render_report(
    alerts: list[Alert],
    visible: list[Alert],
    stats: SystemStats,
    traffic: list[TrafficPoint],
    generated_at: datetime,
) -> str:
    """Build the plain-text console report."""
    lines: list[str] = []
    lines.append("=" * 60)
    lines.append("  Sentinel Threat Console Report")
    lines.append(f"  Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S %Z')}")
    lines.append("=" * 60)
    lines.append("")

    lines.append("--- System ---")
    lines.append(f"  CPU load:           {stats.cpu}%")
    lines.append(f"  Memory:             {stats.memory}%")
    lines.append(f"  Active connections: {stats.active_connections}")
    lines.append(f"  Blocked today:      {stats.blocked_today}")
    if traffic:
        avg_in = sum(p.inbound_mb for p in traffic) / len(traffic)
        avg_out = sum(p.outbound_mb for p in traffic) / len(traffic)
        lines.append(f"  Traffic (avg):      in {avg_in:.1f} Mb/s, out {avg_out:.1f} Mb/s")
    lines.append("")

    by_sev = Counter(a.severity.value for a in alerts)
    analysed = [a for a in alerts if a.analysis is not None]
    failed = [a for a in analysed if is_analysis_error(a.analysis)]
    lines.append("--- Alerts ---")
    lines.append(f"  Active:    {len(alerts)} ({len(visible)} visible, "
                 f"{len(alerts) - len(visible)} snoozed)")
    lines.append("  By severity: " + ", ".join(f"{k}={v}" for k, v in sorted(by_sev.items())))
    lines.append(f"  Analysed:  {len(analysed) - len(failed)} ok, {len(failed)} failed")
    lines.append("")

    for a in sorted(alerts, key=lambda x: (x.severity, x.timestamp), reverse=True):
        mark = "" if a in visible else "  [snoozed]"
        lines.append(f"[{a.severity.value:<8}] {a.id}  {a.type}  "
                     f"{a.source_ip} -> {a.destination_ip} ({a.protocol.value}){mark}")
        if a.analysis is None:
            lines.append("    analysis: pending")
        elif is_analysis_error(a.analysis):
            lines.append(f"    analysis FAILED (retry available): {a.analysis}")
        else:
            for text_line in a.analysis.strip().splitlines():
                lines.append(f"    {text_line}")
        lines.append("")

    return "\n".join(lines) + "\n"


def write_report_txt(
    alerts: list[Alert],
    visible: list[Alert],
    stats: SystemStats,
    traffic: list[TrafficPoint],
    generated_at: datetime,
    path: str,
) -> None:
    _atomic_write(path, render_report(alerts, visible, stats, traffic, generated_at))
    log.info("Wrote report → %s", path)
