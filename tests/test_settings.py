"""Tests for src.shared — YAML loading and typed settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.shared.config_loader import load_yaml, section
from src.shared.seed import init_seed
from src.shared.settings import (
    DEFAULT_CONFIG_PATH,
    build_settings,
    load_settings,
    resolve_api_key,
)


class TestLoadYaml:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "nope.yaml")

    def test_empty_file_is_empty_dict(self, tmp_path):
        p = tmp_path / "empty.yaml"
        p.write_text("", encoding="utf-8")
        assert load_yaml(p) == {}

    def test_non_mapping_rejected(self, tmp_path):
        p = tmp_path / "list.yaml"
        p.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_yaml(p)

    def test_section(self):
        assert section({"a": {"x": 1}}, "a") == {"x": 1}
        assert section({}, "a") == {}
        with pytest.raises(ValueError):
            section({"a": [1, 2]}, "a")


class TestApiKey:
    def test_first_non_empty_wins(self):
        env = {"API_KEY": "", "GEMINI_API_KEY": "g-key"}
        assert resolve_api_key(env) == "g-key"

    def test_primary_preferred(self):
        env = {"API_KEY": "primary", "GEMINI_API_KEY": "g-key"}
        assert resolve_api_key(env) == "primary"

    def test_absent(self):
        assert resolve_api_key({}) == ""

    def test_whitespace_only_is_absent(self):
        assert resolve_api_key({"API_KEY": "   "}) == ""


class TestBuildSettings:
    def test_values(self, config_dict):
        s = build_settings(config_dict, env={"API_KEY": "k"})
        assert s.analysis.api_key == "k"
        assert s.analysis.has_credential
        assert s.analysis.model == "gemini-2.5-flash"
        assert s.analysis.timeout_sec == 10.0
        assert s.emulator.alert_probability == 0.5
        assert s.emulator.traffic_window == 5
        assert len(s.emulator.seed_alerts) == 2
        assert s.runtime.ticks == 3
        assert s.runtime.tick_interval_sec == 0.5

    def test_defaults_from_empty_config(self):
        s = build_settings({}, env={})
        assert not s.analysis.has_credential
        assert s.analysis.base_url == "https://generativelanguage.googleapis.com/v1beta"
        assert s.analysis.max_words == 150
        assert s.emulator.destination_ips == ["10.0.0.2", "10.0.0.5", "10.0.0.8"]
        assert s.runtime.ticks == 30

    def test_custom_key_env(self):
        cfg = {"analysis": {"api_key_env": "MY_KEY"}}
        assert build_settings(cfg, env={"MY_KEY": "x", "API_KEY": "y"}).analysis.api_key == "x"

    def test_key_never_read_from_yaml(self):
        cfg = {"analysis": {"api_key": "leaked"}}
        assert build_settings(cfg, env={}).analysis.api_key == ""

    def test_trailing_slash_stripped(self):
        cfg = {"analysis": {"base_url": "https://ai.test/v1/"}}
        assert build_settings(cfg, env={}).analysis.base_url == "https://ai.test/v1"

    @pytest.mark.parametrize(
        "cfg",
        [
            {"analysis": {"timeout_sec": 0}},
            {"emulator": {"alert_probability": 1.5}},
            {"emulator": {"traffic_window": 0}},
            {"runtime": {"tick_interval_sec": -1}},
        ],
    )
    def test_invalid_values(self, cfg):
        with pytest.raises(ValueError):
            build_settings(cfg, env={})


class TestShippedConfig:
    def test_default_path_exists(self):
        assert Path(DEFAULT_CONFIG_PATH).exists()

    def test_loads(self):
        s = load_settings(env={})
        assert [a["id"] for a in s.emulator.seed_alerts] == ["TX-9901", "TX-8211", "TX-2234"]
        assert s.emulator.catalogue


class TestSeed:
    def test_same_seed_same_sequence(self):
        a = init_seed(42)
        b = init_seed(42)
        assert [a.random() for _ in range(5)] == [b.random() for _ in range(5)]

    def test_none_gives_instance(self):
        assert init_seed(None).random() < 1.0
