"""Typed settings built from ``config/sentinel.yaml`` and the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from src.shared.config_loader import load_yaml, section

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "sentinel.yaml"

# Checked in order; the first non-empty one wins.
DEFAULT_API_KEY_ENV: tuple[str, ...] = ("API_KEY", "GEMINI_API_KEY")

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_DESTINATION_IPS: tuple[str, ...] = ("10.0.0.2", "10.0.0.5", "10.0.0.8")


@dataclass(frozen=True, slots=True)
class AnalysisSettings:
    api_key: str = ""
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout_sec: float = 30.0
    max_words: int = 150

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True, slots=True)
class EmulatorSettings:
    seed_alerts: list[dict[str, Any]] = field(default_factory=list)
    catalogue: list[dict[str, Any]] = field(default_factory=list)
    destination_ips: list[str] = field(default_factory=lambda: list(DEFAULT_DESTINATION_IPS))
    alert_probability: float = 0.1
    traffic_window: int = 21


@dataclass(frozen=True, slots=True)
class RuntimeSettings:
    tick_interval_sec: float = 1.0
    ticks: int = 30


@dataclass(frozen=True, slots=True)
class Settings:
    analysis: AnalysisSettings
    emulator: EmulatorSettings
    runtime: RuntimeSettings


def resolve_api_key(
    env: Mapping[str, str] | None = None,
    names: tuple[str, ...] = DEFAULT_API_KEY_ENV,
) -> str:
    env = os.environ if env is None else env
    for name in names:
        value = env.get(name, "").strip()
        if value:
            return value
    return ""


def _positive(name: str, value: float) -> float:
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value


def build_settings(
    cfg: dict[str, Any],
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Convert a raw config dict into :class:`Settings`.

    The credential is never read from YAML; ``analysis.api_key_env`` may list
    the environment variables to look in.
    """
    a = section(cfg, "analysis")
    e = section(cfg, "emulator")
    r = section(cfg, "runtime")

    key_env = a.get("api_key_env") or list(DEFAULT_API_KEY_ENV)
    if isinstance(key_env, str):
        key_env = [key_env]

    analysis = AnalysisSettings(
        api_key=resolve_api_key(env, tuple(key_env)),
        model=str(a.get("model", DEFAULT_MODEL)),
        base_url=str(a.get("base_url", DEFAULT_BASE_URL)).rstrip("/"),
        timeout_sec=_positive("analysis.timeout_sec", float(a.get("timeout_sec", 30.0))),
        max_words=int(_positive("analysis.max_words", int(a.get("max_words", 150)))),
    )

    prob = float(e.get("alert_probability", 0.1))
    if not 0.0 <= prob <= 1.0:
        raise ValueError(f"emulator.alert_probability must be in [0, 1], got {prob}")
    emulator = EmulatorSettings(
        seed_alerts=list(e.get("seed_alerts", [])),
        catalogue=list(e.get("catalogue", [])),
        destination_ips=list(e.get("destination_ips", DEFAULT_DESTINATION_IPS)),
        alert_probability=prob,
        traffic_window=int(_positive("emulator.traffic_window", int(e.get("traffic_window", 21)))),
    )

    runtime = RuntimeSettings(
        tick_interval_sec=_positive(
            "runtime.tick_interval_sec", float(r.get("tick_interval_sec", 1.0))
        ),
        ticks=int(r.get("ticks", 30)),
    )

    if not analysis.has_credential:
        log.warning("No API key in %s, threat analysis will be skipped", "/".join(key_env))
    return Settings(analysis=analysis, emulator=emulator, runtime=runtime)


def load_settings(
    path: str | Path = DEFAULT_CONFIG_PATH,
    env: Mapping[str, str] | None = None,
) -> Settings:
    return build_settings(load_yaml(path), env)
