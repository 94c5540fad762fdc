"""Alert contract — canonical data structures shared by all modules."""

from src.contracts.alert import Alert, is_analysis_error
from src.contracts.analysis import AnalysisState, Done, Idle, InFlight
from src.contracts.enums import AlertStatus, Protocol, Severity
from src.contracts.telemetry import SystemStats, TrafficPoint

__all__ = [
    "Alert",
    "AlertStatus",
    "AnalysisState",
    "Done",
    "Idle",
    "InFlight",
    "Protocol",
    "Severity",
    "SystemStats",
    "TrafficPoint",
    "is_analysis_error",
]
