"""
Gemini Detector — LLM-as-judge AI-content detection.

Uses the google.genai SDK. The client is created lazily, so the app
starts without an API key and only this provider fails when called.

Retry policy lives here, not in the consensus engine:
- transient errors retried with exponential backoff
- model fallback chain: configured model, then gemini-2.5-flash
- circuit breaker: after consecutive failures (timeouts included), fail fast
  for 60s
"""

from __future__ import annotations

import asyncio
import json
import os
import time
from typing import Optional

from google import genai
from google.genai import types

from contentshield.errors import ProviderTimeout, ProviderUnavailable
from contentshield.logging import get_logger
from contentshield.providers import DetectorProvider

logger = get_logger("providers.gemini")

FALLBACK_MODEL = "gemini-2.5-flash"

_CB_FAILURE_THRESHOLD = 3
_CB_RECOVERY_TIMEOUT = 60

_TRANSIENT_MARKERS = (
    "429", "500", "503", "rate", "quota", "timeout",
    "connection", "unavailable", "overloaded",
)

DETECTION_PROMPT = """You are an AI-generated text detector.

Estimate the probability that the text below was written by a language model
rather than a person. Judge uniform sentence rhythm, generic hedging, list-like
structure, absence of concrete personal detail and stock transitions.

Return ONLY a JSON object:
- "probability": number from 0 to 100
- "confidence": "low" | "medium" | "high"

## Text
{text}"""


class CircuitBreaker:
    """closed -> open after N consecutive failures -> half-open after a cool-down."""

    def __init__(
        self,
        failure_threshold: int = _CB_FAILURE_THRESHOLD,
        recovery_timeout: float = _CB_RECOVERY_TIMEOUT,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._failures = 0
        self._opened_at: float = 0
        self._state = "closed"

    @property
    def state(self) -> str:
        if self._state == "open" and time.monotonic() - self._opened_at >= self.recovery_timeout:
            self._state = "half-open"
        return self._state

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    def record_success(self) -> None:
        self._failures = 0
        self._state = "closed"

    def record_failure(self) -> None:
        self._failures += 1
        if self._failures >= self.failure_threshold or self._state == "half-open":
            self._state = "open"
            self._opened_at = time.monotonic()
            logger.warning(
                "Gemini circuit breaker open after %d consecutive failures; "
                "failing fast for %ds",
                self._failures, self.recovery_timeout,
                extra={"provider_id": "gemini"},
            )


def _is_transient(error: Exception) -> bool:
    text = str(error).lower()
    return any(marker in text for marker in _TRANSIENT_MARKERS)


def parse_verdict(raw: str) -> tuple[float, Optional[str]]:
    """Parse the model's JSON answer. Raises ValueError on garbage."""
    if not raw:
        raise ValueError("model returned an empty response")
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[-1].rsplit("```", 1)[0].strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ValueError(f"model returned invalid JSON: {raw[:200]}") from e
    if not isinstance(data, dict) or "probability" not in data:
        raise ValueError(f"model answer lacks a probability: {raw[:200]}")

    return float(data["probability"]), data.get("confidence")


class GeminiDetector(DetectorProvider):
    """Google Gemini acting as one voting detector."""

    provider_id = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_retries: int = 2,
    ):
        self._api_key = api_key or os.getenv("GEMINI_API_KEY", "")
        self._model = model or os.getenv("GEMINI_MODEL", FALLBACK_MODEL)
        self._max_retries = max_retries
        self._client: Optional[genai.Client] = None
        self.circuit_breaker = CircuitBreaker()

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise ProviderUnavailable(self.provider_id, "GEMINI_API_KEY not set")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def _call_model(self, model: str, prompt: str, retries: int) -> str:
        client = self._get_client()
        config = types.GenerateContentConfig(
            temperature=0.0,
            response_mime_type="application/json",
        )
        for attempt in range(retries):
            try:
                response = await client.aio.models.generate_content(
                    model=model, contents=prompt, config=config,
                )
                return response.text
            except Exception as e:
                if _is_transient(e) and attempt < retries - 1:
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise
        raise ProviderUnavailable(self.provider_id, "no attempts made")

    async def _detect(self, text: str) -> tuple[float, Optional[str]]:
        if self.circuit_breaker.is_open:
            raise ProviderUnavailable(self.provider_id, "circuit breaker open")

        prompt = DETECTION_PROMPT.format(text=text)
        try:
            raw = await self._call_model(self._model, prompt, self._max_retries)
        except ProviderUnavailable:
            raise
        except Exception as primary_err:
            if self._model == FALLBACK_MODEL:
                self.circuit_breaker.record_failure()
                raise
            logger.warning(
                "Primary model %s failed (%s), falling back to %s",
                self._model, primary_err, FALLBACK_MODEL,
                extra={"provider_id": self.provider_id},
            )
            try:
                raw = await self._call_model(FALLBACK_MODEL, prompt, 1)
            except Exception as fallback_err:
                self.circuit_breaker.record_failure()
                raise fallback_err from primary_err

        self.circuit_breaker.record_success()
        return parse_verdict(raw)

    async def detect(self, text: str, timeout: float):
        try:
            return await super().detect(text, timeout)
        except ProviderTimeout:
            # the deadline cancels _detect, so its own bookkeeping never sees this
            self.circuit_breaker.record_failure()
            raise
