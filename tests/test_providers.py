"""
Provider Tests

  1. DetectorProvider contract (timeout, validation, error mapping)
  2. HTTP detectors against httpx.MockTransport
  3. Gemini verdict parsing and circuit breaker
  4. Simulated detector reproducibility
  5. Factory wiring
"""

from __future__ import annotations

import asyncio
import json
import random
from dataclasses import replace

import httpx
import pytest

from contentshield.config import Settings
from contentshield.errors import ProviderInvalid, ProviderTimeout, ProviderUnavailable
from contentshield.providers import DetectorProvider, confidence_from_probability
from contentshield.providers.factory import build_providers, get_provider
from contentshield.providers.gemini import CircuitBreaker, GeminiDetector, parse_verdict
from contentshield.providers.http import (
    CopyleaksDetector,
    GPTZeroDetector,
    HTTPDetector,
    HuggingFaceDetector,
    SaplingDetector,
    ZeroGPTDetector,
)
from contentshield.providers.simulated import SimulatedDetector


class StubDetector(DetectorProvider):
    provider_id = "stub"

    def __init__(self, answer=(50.0, None), delay=0.0, error=None):
        self.answer = answer
        self.delay = delay
        self.error = error

    async def _detect(self, text):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.answer


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ============================================================
# BASE CONTRACT
# ============================================================

class TestDetectorContract:

    @pytest.mark.asyncio
    async def test_success_builds_result(self):
        result = await StubDetector((72.5, "medium")).detect("text", timeout=1.0)
        assert result.provider_id == "stub"
        assert result.probability == 72.5
        assert result.confidence == "medium"
        assert result.response_time_ms >= 0

    @pytest.mark.asyncio
    async def test_missing_confidence_is_derived(self):
        result = await StubDetector((95.0, None)).detect("text", timeout=1.0)
        assert result.confidence == "high"

    @pytest.mark.asyncio
    async def test_confidence_label_is_normalised(self):
        result = await StubDetector((10.0, "HIGH")).detect("text", timeout=1.0)
        assert result.confidence == "high"

    @pytest.mark.asyncio
    async def test_timeout(self):
        with pytest.raises(ProviderTimeout) as exc_info:
            await StubDetector(delay=1.0).detect("text", timeout=0.05)
        assert exc_info.value.provider_id == "stub"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", [
        (101.0, None), (-0.1, None), ("high", None), (float("nan"), None), (True, None),
        (50.0, "certain"),
    ])
    async def test_invalid_answers(self, answer):
        with pytest.raises(ProviderInvalid):
            await StubDetector(answer).detect("text", timeout=1.0)

    @pytest.mark.asyncio
    async def test_parse_errors_are_invalid(self):
        with pytest.raises(ProviderInvalid):
            await StubDetector(error=KeyError("score")).detect("text", timeout=1.0)

    @pytest.mark.asyncio
    async def test_other_errors_are_unavailable(self):
        with pytest.raises(ProviderUnavailable):
            await StubDetector(error=ConnectionResetError("reset")).detect("text", timeout=1.0)

    @pytest.mark.parametrize("probability, label", [
        (50, "low"), (64.9, "low"), (65, "medium"), (30, "medium"), (85, "high"), (0, "high"),
    ])
    def test_confidence_from_probability(self, probability, label):
        assert confidence_from_probability(probability) == label


# ============================================================
# HTTP DETECTORS
# ============================================================

class TestHTTPDetectors:

    @pytest.mark.asyncio
    async def test_gptzero(self):
        def handler(request):
            assert request.headers["x-api-key"] == "k"
            assert json.loads(request.content) == {"document": "hello world"}
            return httpx.Response(200, json={"documents": [
                {"completely_generated_prob": 0.82, "confidence_category": "high"},
            ]})

        detector = GPTZeroDetector("k", client=mock_client(handler))
        result = await detector.detect("hello world", timeout=1.0)
        assert result.probability == pytest.approx(82)
        assert result.confidence == "high"

    @pytest.mark.asyncio
    async def test_sapling(self):
        def handler(request):
            assert json.loads(request.content)["key"] == "k"
            return httpx.Response(200, json={"score": 0.31})

        result = await SaplingDetector("k", client=mock_client(handler)).detect("t", 1.0)
        assert result.probability == pytest.approx(31)
        assert result.confidence == "low"

    @pytest.mark.asyncio
    async def test_copyleaks(self):
        def handler(request):
            assert request.headers["authorization"] == "Bearer k"
            return httpx.Response(200, json={"summary": {"ai": 0.6, "human": 0.4}})

        result = await CopyleaksDetector("k", client=mock_client(handler)).detect("t", 1.0)
        assert result.probability == pytest.approx(60)

    @pytest.mark.asyncio
    async def test_huggingface(self):
        def handler(request):
            assert request.url.path.endswith("/models/some/model")
            return httpx.Response(200, json=[[
                {"label": "Real", "score": 0.1}, {"label": "Fake", "score": 0.9},
            ]])

        detector = HuggingFaceDetector("k", model="some/model", client=mock_client(handler))
        result = await detector.detect("t", 1.0)
        assert result.probability == pytest.approx(90)

    @pytest.mark.asyncio
    async def test_zerogpt(self):
        def handler(request):
            return httpx.Response(200, json={"data": {"fakePercentage": 44.5}})

        result = await ZeroGPTDetector("k", client=mock_client(handler)).detect("t", 1.0)
        assert result.probability == pytest.approx(44.5)

    @pytest.mark.asyncio
    async def test_http_error_is_unavailable(self):
        detector = SaplingDetector("k", client=mock_client(lambda r: httpx.Response(503)))
        with pytest.raises(ProviderUnavailable) as exc_info:
            await detector.detect("t", 1.0)
        assert "503" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProviderUnavailable):
            await SaplingDetector("k", client=mock_client(handler)).detect("t", 1.0)

    @pytest.mark.asyncio
    async def test_non_json_body_is_invalid(self):
        detector = SaplingDetector("k", client=mock_client(lambda r: httpx.Response(200, text="<html>")))
        with pytest.raises(ProviderInvalid):
            await detector.detect("t", 1.0)

    @pytest.mark.asyncio
    async def test_unexpected_shape_is_invalid(self):
        detector = SaplingDetector("k", client=mock_client(lambda r: httpx.Response(200, json={})))
        with pytest.raises(ProviderInvalid):
            await detector.detect("t", 1.0)

    @pytest.mark.asyncio
    async def test_missing_key_is_unavailable(self):
        with pytest.raises(ProviderUnavailable):
            await GPTZeroDetector("").detect("t", 1.0)


# ============================================================
# GEMINI
# ============================================================

class TestGemini:

    def test_parse_plain_json(self):
        assert parse_verdict('{"probability": 77, "confidence": "medium"}') == (77.0, "medium")

    def test_parse_fenced_json(self):
        raw = '```json\n{"probability": 12.5}\n```'
        assert parse_verdict(raw) == (12.5, None)

    def test_parse_garbage(self):
        with pytest.raises(ValueError):
            parse_verdict("I think it's AI")

    def test_parse_missing_probability(self):
        with pytest.raises(ValueError):
            parse_verdict('{"confidence": "high"}')

    @pytest.mark.asyncio
    async def test_missing_api_key_is_unavailable(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(ProviderUnavailable):
            await GeminiDetector(api_key="").detect("text", timeout=1.0)

    @pytest.mark.asyncio
    async def test_open_circuit_fails_fast(self):
        detector = GeminiDetector(api_key="k")
        for _ in range(3):
            detector.circuit_breaker.record_failure()
        with pytest.raises(ProviderUnavailable) as exc_info:
            await detector.detect("text", timeout=1.0)
        assert "circuit" in exc_info.value.message

    def test_circuit_breaker_states(self):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=0)
        assert breaker.state == "closed"
        breaker.record_failure()
        assert breaker.state == "closed"
        breaker.record_failure()
        # recovery_timeout=0: immediately half-open
        assert breaker.state == "half-open"
        breaker.record_success()
        assert breaker.state == "closed"

    def test_circuit_breaker_opens(self):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        breaker.record_failure()
        assert breaker.is_open


# ============================================================
# SIMULATED
# ============================================================

class TestSimulated:

    @pytest.mark.asyncio
    async def test_same_seed_same_answers(self):
        a = SimulatedDetector("x", rng=random.Random(42), latency_ms=(0, 1))
        b = SimulatedDetector("x", rng=random.Random(42), latency_ms=(0, 1))
        first = [(await a.detect("t", 1.0)).probability for _ in range(3)]
        second = [(await b.detect("t", 1.0)).probability for _ in range(3)]
        assert first == second
        assert all(0 <= p <= 100 for p in first)

    @pytest.mark.asyncio
    async def test_failure_rate_one_always_fails(self):
        detector = SimulatedDetector("x", rng=random.Random(1), latency_ms=(0, 1), failure_rate=1.0)
        with pytest.raises(ProviderUnavailable):
            await detector.detect("t", 1.0)


# ============================================================
# FACTORY
# ============================================================

class TestFactory:

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            get_provider("nope", Settings())

    def test_build_rejects_unknown_ids(self):
        with pytest.raises(ValueError):
            build_providers(["nope"], Settings())

    def test_missing_keys_are_simulated(self):
        config = replace(Settings(), SIMULATE_MISSING=True, SAPLING_API_KEY="", GPTZERO_API_KEY="live")
        providers = build_providers(["sapling", "gptzero"], config, rng=random.Random(0))
        assert isinstance(providers["sapling"], SimulatedDetector)
        assert isinstance(providers["gptzero"], GPTZeroDetector)

    def test_simulation_off_builds_real_detectors(self):
        config = replace(Settings(), SIMULATE_MISSING=False, SAPLING_API_KEY="")
        providers = build_providers(["sapling"], config)
        assert isinstance(providers["sapling"], SaplingDetector)

    @pytest.mark.asyncio
    async def test_seeded_builds_are_reproducible(self):
        config = replace(Settings(), SIMULATE_MISSING=True, SAPLING_API_KEY="")
        one = build_providers(["sapling"], config, rng=random.Random(7))["sapling"]
        two = build_providers(["sapling"], config, rng=random.Random(7))["sapling"]
        one._latency_ms = two._latency_ms = (0, 1)
        assert (await one.detect("t", 1.0)).probability == (await two.detect("t", 1.0)).probability


# ============================================================
# DEADLINES AND MALFORMED BODIES
# ============================================================

class TestDeadlines:

    def test_owned_client_has_no_transport_timeout(self):
        client = SaplingDetector("k")._get_client()
        assert client.timeout.read is None
        assert client.timeout.connect is None

    @pytest.mark.asyncio
    async def test_slow_vendor_within_deadline_succeeds(self):
        async def handler(request):
            await asyncio.sleep(0.2)
            return httpx.Response(200, json={"score": 0.9})

        detector = SaplingDetector("k", client=mock_client(handler))
        result = await detector.detect("t", timeout=2.0)
        assert result.probability == pytest.approx(90)

    @pytest.mark.asyncio
    async def test_slow_vendor_past_deadline_is_timeout(self):
        async def handler(request):
            await asyncio.sleep(1.0)
            return httpx.Response(200, json={"score": 0.9})

        detector = SaplingDetector("k", client=mock_client(handler))
        with pytest.raises(ProviderTimeout):
            await detector.detect("t", timeout=0.05)

    @pytest.mark.asyncio
    async def test_transport_timeout_is_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        detector = SaplingDetector("k", client=mock_client(handler))
        with pytest.raises(ProviderTimeout):
            await detector.detect("t", timeout=1.0)


class TestMalformedBodies:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"documents": []},
        {"documents": ["not a document"]},
        {"documents": [{"completely_generated_prob": None}]},
    ])
    async def test_gptzero_malformed_is_invalid(self, body):
        detector = GPTZeroDetector("k", client=mock_client(lambda r: httpx.Response(200, json=body)))
        with pytest.raises(ProviderInvalid):
            await detector.detect("t", 1.0)

    @pytest.mark.asyncio
    async def test_huggingface_empty_list_is_invalid(self):
        detector = HuggingFaceDetector("k", client=mock_client(lambda r: httpx.Response(200, json=[])))
        with pytest.raises(ProviderInvalid):
            await detector.detect("t", 1.0)

    def test_parse_empty_model_response(self):
        with pytest.raises(ValueError):
            parse_verdict(None)

    def test_incomplete_http_detector_cannot_be_built(self):
        class NoParser(HTTPDetector):
            provider_id = "noparser"

        with pytest.raises(TypeError):
            NoParser("k")


class TestGeminiTimeouts:

    @pytest.mark.asyncio
    async def test_timeouts_trip_the_breaker(self):
        detector = GeminiDetector(api_key="k")

        async def hanging(model, prompt, retries):
            await asyncio.sleep(5)

        detector._call_model = hanging
        for _ in range(3):
            with pytest.raises(ProviderTimeout):
                await detector.detect("text", timeout=0.01)
        assert detector.circuit_breaker.is_open

        with pytest.raises(ProviderUnavailable):
            await detector.detect("text", timeout=1.0)

    @pytest.mark.asyncio
    async def test_success_resets_after_timeout(self):
        detector = GeminiDetector(api_key="k")
        answers = iter([None, '{"probability": 40}'])

        async def flaky(model, prompt, retries):
            answer = next(answers)
            if answer is None:
                await asyncio.sleep(5)
            return answer

        detector._call_model = flaky
        with pytest.raises(ProviderTimeout):
            await detector.detect("text", timeout=0.01)
        result = await detector.detect("text", timeout=1.0)
        assert result.probability == 40
        assert detector.circuit_breaker.state == "closed"
