"""Threat Analysis Client — one generateContent call per alert.

The client never raises: a missing credential, a transport error or an
unusable response are all reported as one of the sentinel strings below, so
callers detect failure by inspecting the text (see
:func:`src.contracts.alert.is_analysis_error`).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.contracts.alert import Alert
from src.shared.settings import AnalysisSettings

log = logging.getLogger(__name__)

MISSING_CREDENTIAL = "API Key missing. Cannot analyze threat."
NO_ANALYSIS = "No analysis could be generated."
SERVICE_ERROR = "Error contacting AI analysis service. Please try again later."

_PROMPT_TEMPLATE = """\
You are a senior cybersecurity analyst (SOC). Analyze the following Intrusion Detection System (IDS) alert.

Alert Details:
- Type: {type}
- Severity: {severity}
- Protocol: {protocol}
- Source IP: {source_ip}
- Payload/Signature: "{payload}"

Please provide a concise response (max {max_words} words) covering:
1. What is this attack attempting to do?
2. How dangerous is it realistically?
3. Recommended immediate mitigation step (e.g., block IP, patch service).

Format as Markdown.
"""


def build_prompt(alert: Alert, max_words: int = 150) -> str:
    """Render the analyst prompt from the alert's descriptive fields only."""
    return _PROMPT_TEMPLATE.format(
        type=alert.type,
        severity=alert.severity.value,
        protocol=alert.protocol.value,
        source_ip=alert.source_ip,
        payload=alert.payload,
        max_words=max_words,
    )


def _extract_text(body: Any) -> str:
    """Concatenate ``candidates[0].content.parts[*].text``.

    Raises ValueError if the body does not have that shape.
    """
    try:
        candidates = body.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(str(p.get("text", "")) for p in parts)
    except AttributeError as exc:
        raise ValueError(f"unexpected response shape: {exc}") from exc


async def analyze_threat(
    alert: Alert,
    settings: AnalysisSettings,
    http: httpx.AsyncClient | None = None,
) -> str:
    """Ask the model for a short threat assessment of *alert*.

    Args:
        alert:    Alert to assess (only immutable fields are used).
        settings: Model, endpoint, timeout and credential.
        http:     Optional shared client; a short-lived one is created if omitted.

    Returns:
        The model's Markdown text, or one of ``MISSING_CREDENTIAL``,
        ``NO_ANALYSIS``, ``SERVICE_ERROR``.
    """
    if not settings.has_credential:
        log.warning("Analysis of %s skipped: API key not configured", alert.id)
        return MISSING_CREDENTIAL

    url = f"{settings.base_url}/models/{settings.model}:generateContent"
    payload = {"contents": [{"parts": [{"text": build_prompt(alert, settings.max_words)}]}]}
    headers = {"x-goog-api-key": settings.api_key, "Content-Type": "application/json"}

    try:
        if http is None:
            async with httpx.AsyncClient(timeout=settings.timeout_sec) as client:
                response = await client.post(url, json=payload, headers=headers)
        else:
            response = await http.post(url, json=payload, headers=headers)
        response.raise_for_status()
        text = _extract_text(response.json())
    except httpx.TimeoutException:
        log.error("Analysis of %s failed: request timed out", alert.id)
        return SERVICE_ERROR
    except httpx.HTTPStatusError as exc:
        log.error(
            "Analysis of %s failed: HTTP %d from %s",
            alert.id, exc.response.status_code, settings.model,
        )
        return SERVICE_ERROR
    except Exception as exc:
        log.error("Analysis of %s failed: %s", alert.id, exc)
        return SERVICE_ERROR

    if not text.strip():
        log.warning("Analysis of %s returned no content", alert.id)
        return NO_ANALYSIS
    log.debug("Analysis of %s: %d chars", alert.id, len(text))
    return text


class ThreatAnalyzer:
    """Callable wrapper binding settings and a shared ``httpx.AsyncClient``.

    Use as an async context manager so the connection pool is closed::

        async with ThreatAnalyzer(settings) as analyzer:
            text = await analyzer(alert)
    """

    def __init__(
        self,
        settings: AnalysisSettings,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self._http = http
        self._owns_http = http is None

    async def __aenter__(self) -> ThreatAnalyzer:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.settings.timeout_sec)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __call__(self, alert: Alert) -> str:
        return await analyze_threat(alert, self.settings, self._http)
