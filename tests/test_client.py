"""Tests for src.analysis.client — prompt, sentinels, HTTP handling."""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace

import httpx
import pytest

from src.analysis.client import (
    MISSING_CREDENTIAL,
    NO_ANALYSIS,
    SERVICE_ERROR,
    ThreatAnalyzer,
    analyze_threat,
    build_prompt,
)
from src.contracts.alert import is_analysis_error
from src.contracts.enums import AlertStatus
from tests.conftest import make_alert


def _gemini_body(*texts: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": t} for t in texts]}}]}


def _run(alert, settings, handler):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            return await analyze_threat(alert, settings, http)

    return asyncio.run(go())


# ═══════════════════════════════════════════════════════════════════════════
#  Prompt
# ═══════════════════════════════════════════════════════════════════════════


class TestBuildPrompt:
    def test_contains_descriptive_fields(self):
        prompt = build_prompt(make_alert())
        assert "- Type: Port Scan" in prompt
        assert "- Severity: MEDIUM" in prompt
        assert "- Protocol: UDP" in prompt
        assert "- Source IP: 172.16.0.4" in prompt
        assert '"NMAP SCAN [Ports 20-443]"' in prompt
        assert "max 150 words" in prompt
        assert "Markdown" in prompt

    def test_ignores_workflow_fields(self):
        a = make_alert()
        b = replace(a, status=AlertStatus.ANALYZING, analysis="previous text")
        assert build_prompt(a) == build_prompt(b)

    def test_word_cap_configurable(self):
        assert "max 80 words" in build_prompt(make_alert(), max_words=80)

    def test_deterministic(self):
        assert build_prompt(make_alert()) == build_prompt(make_alert())


# ═══════════════════════════════════════════════════════════════════════════
#  analyze_threat
# ═══════════════════════════════════════════════════════════════════════════


class TestAnalyzeThreat:
    def test_missing_credential_makes_no_call(self, analysis_settings):
        calls: list[httpx.Request] = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=_gemini_body("x"))

        settings = replace(analysis_settings, api_key="")
        assert _run(make_alert(), settings, handler) == MISSING_CREDENTIAL
        assert calls == []

    def test_success_returns_text_verbatim(self, analysis_settings):
        seen: dict = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_gemini_body("### Intent\n", "Recon of UDP ports."))

        text = _run(make_alert(), analysis_settings, handler)
        assert text == "### Intent\nRecon of UDP ports."
        assert not is_analysis_error(text)
        assert seen["url"] == "https://ai.test/v1beta/models/gemini-2.5-flash:generateContent"
        assert seen["key"] == "test-key"
        prompt = seen["body"]["contents"][0]["parts"][0]["text"]
        assert "Port Scan" in prompt

    def test_empty_text_gives_no_analysis(self, analysis_settings):
        text = _run(make_alert(), analysis_settings,
                    lambda r: httpx.Response(200, json=_gemini_body("  ")))
        assert text == NO_ANALYSIS
        assert is_analysis_error(text)

    def test_no_candidates_gives_no_analysis(self, analysis_settings):
        text = _run(make_alert(), analysis_settings,
                    lambda r: httpx.Response(200, json={"candidates": []}))
        assert text == NO_ANALYSIS

    @pytest.mark.parametrize("status", [400, 401, 429, 500, 503])
    def test_http_error_status(self, analysis_settings, status):
        text = _run(make_alert(), analysis_settings,
                    lambda r: httpx.Response(status, json={"error": {"code": status}}))
        assert text == SERVICE_ERROR
        assert text.startswith("Error")

    def test_network_failure(self, analysis_settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert _run(make_alert(), analysis_settings, handler) == SERVICE_ERROR

    def test_timeout(self, analysis_settings):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert _run(make_alert(), analysis_settings, handler) == SERVICE_ERROR

    def test_malformed_json(self, analysis_settings):
        text = _run(make_alert(), analysis_settings,
                    lambda r: httpx.Response(200, content=b"<html>oops</html>"))
        assert text == SERVICE_ERROR

    def test_unexpected_shape(self, analysis_settings):
        text = _run(make_alert(), analysis_settings,
                    lambda r: httpx.Response(200, json=["not", "an", "object"]))
        assert text == SERVICE_ERROR


class TestThreatAnalyzer:
    def test_callable_with_injected_client(self, analysis_settings):
        async def go():
            transport = httpx.MockTransport(
                lambda r: httpx.Response(200, json=_gemini_body("assessment"))
            )
            async with httpx.AsyncClient(transport=transport) as http:
                analyzer = ThreatAnalyzer(analysis_settings, http)
                result = await analyzer(make_alert())
                await analyzer.aclose()
                # injected client is not closed by the analyzer
                assert not http.is_closed
                return result

        assert asyncio.run(go()) == "assessment"

    def test_missing_credential_via_context_manager(self, analysis_settings):
        async def go():
            async with ThreatAnalyzer(replace(analysis_settings, api_key="")) as analyzer:
                return await analyzer(make_alert())

        assert asyncio.run(go()) == MISSING_CREDENTIAL
