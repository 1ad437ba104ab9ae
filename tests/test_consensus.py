"""
Consensus Engine Tests

Covers the whole analyze() path with fake detectors:
  1. Weight redistribution and the weighted probability
  2. Spread, consensus score and confidence tiers
  3. Partial and total provider failure
  4. Strategy resolution (no provider calls on an unknown name)
  5. Ordering, timeouts, determinism and cancellation
"""

from __future__ import annotations

import asyncio
import time

import pytest

from contentshield.consensus import ConsensusEngine, consensus_confidence, weighted_probability
from contentshield.errors import (
    Cancelled,
    ProviderError,
    ProviderInvalid,
    ProviderTimeout,
    ProviderUnavailable,
    UnknownStrategy,
)
from contentshield.models import ProviderResult
from contentshield.providers import DetectorProvider
from contentshield.strategies import Strategy, StrategyRegistry


# ============================================================
# FAKE DETECTOR
# ============================================================

class FakeDetector(DetectorProvider):
    """Detector returning a fixed answer after an optional delay."""

    def __init__(self, provider_id, probability=50.0, confidence=None, delay=0.0, error=None):
        self.provider_id = provider_id
        self.probability = probability
        self.confidence = confidence
        self.delay = delay
        self.error = error
        self.calls = []
        self.cancelled = False

    async def _detect(self, text):
        self.calls.append(text)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.probability, self.confidence


THREE_WAY = Strategy(
    name="three",
    provider_ids=("a", "b", "c"),
    weights={"a": 0.4, "b": 0.35, "c": 0.25},
    threshold=0.7,
)
TWO_WAY = Strategy(
    name="two",
    provider_ids=("a", "b"),
    weights={"a": 0.5, "b": 0.5},
    threshold=0.5,
)


def make_engine(providers, strategies=(THREE_WAY, TWO_WAY), timeout=1.0):
    return ConsensusEngine(
        StrategyRegistry(strategies),
        {p.provider_id: p for p in providers},
        timeout=timeout,
    )


# ============================================================
# WEIGHTED CONSENSUS
# ============================================================

class TestWeightedConsensus:

    @pytest.mark.asyncio
    async def test_all_succeed_weighted_mean(self):
        engine = make_engine([
            FakeDetector("a", 90), FakeDetector("b", 80), FakeDetector("c", 70),
        ])
        result = await engine.analyze("some text", "three")
        expected = 0.4 * 90 + 0.35 * 80 + 0.25 * 70
        assert result.overall_probability == pytest.approx(expected)
        assert len(result.succeeded) == 3
        assert result.failed == ()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("probs", [
        (0, 0, 0),
        (100, 100, 100),
        (3.5, 97.2, 50),
        (12, 88, 40),
        (70, 70.0001, 69.9999),
    ])
    async def test_overall_within_min_max_when_all_succeed(self, probs):
        engine = make_engine([FakeDetector(pid, p) for pid, p in zip("abc", probs)])
        result = await engine.analyze("text", "three")
        assert min(probs) - 1e-9 <= result.overall_probability <= max(probs) + 1e-9
        assert 0 <= result.consensus_score <= 1

    @pytest.mark.asyncio
    async def test_failed_provider_weight_is_redistributed(self):
        """A=90 (0.4), B=85 (0.35) succeed, C (0.25) fails."""
        engine = make_engine([
            FakeDetector("a", 90),
            FakeDetector("b", 85),
            FakeDetector("c", error=ConnectionError("down")),
        ])
        result = await engine.analyze("text", "three")

        assert result.overall_probability == pytest.approx(87.67, abs=0.01)
        assert result.confidence == "high"
        assert result.consensus_score == pytest.approx(0.95)
        assert [type(o) for o in result.per_provider] == [
            ProviderResult, ProviderResult, ProviderUnavailable,
        ]

    def test_weighted_probability_renormalises(self):
        results = (
            ProviderResult("a", 90, "high", 1.0),
            ProviderResult("b", 85, "high", 1.0),
        )
        value = weighted_probability(results, THREE_WAY.weights)
        assert value == pytest.approx(0.4 / 0.75 * 90 + 0.35 / 0.75 * 85)


# ============================================================
# CONFIDENCE
# ============================================================

class TestConfidence:

    @pytest.mark.asyncio
    async def test_single_success_is_low(self):
        engine = make_engine([
            FakeDetector("a", 95),
            FakeDetector("b", error=ProviderUnavailable("b", "down")),
            FakeDetector("c", error=ProviderUnavailable("c", "down")),
        ])
        result = await engine.analyze("text", "three")
        assert result.overall_probability == pytest.approx(95)
        assert result.confidence == "low"
        assert result.consensus_score == 1.0

    @pytest.mark.asyncio
    async def test_wide_spread_is_low(self):
        engine = make_engine([FakeDetector("a", 90), FakeDetector("b", 50)])
        result = await engine.analyze("text", "two")
        assert result.confidence == "low"
        assert result.consensus_score == pytest.approx(0.6)

    @pytest.mark.asyncio
    async def test_moderate_spread_is_medium(self):
        engine = make_engine([FakeDetector("a", 80), FakeDetector("b", 60)])
        result = await engine.analyze("text", "two")
        assert result.confidence == "medium"

    @pytest.mark.asyncio
    async def test_spread_of_exactly_thirty_is_not_low(self):
        engine = make_engine([FakeDetector("a", 90), FakeDetector("b", 60)])
        result = await engine.analyze("text", "two")
        assert result.confidence == "medium"

    @pytest.mark.asyncio
    async def test_tight_spread_straddling_threshold_is_medium(self):
        """Spread 6 but providers sit on both sides of 50."""
        engine = make_engine([FakeDetector("a", 53), FakeDetector("b", 47)])
        result = await engine.analyze("text", "two")
        assert result.overall_probability == pytest.approx(50)
        assert result.confidence == "medium"

    @pytest.mark.asyncio
    async def test_tight_spread_below_threshold_is_high(self):
        engine = make_engine([FakeDetector("a", 12), FakeDetector("b", 20)])
        result = await engine.analyze("text", "two")
        assert result.confidence == "high"
        assert result.is_ai_generated is False

    def test_spread_of_exactly_ten_can_be_high(self):
        results = (
            ProviderResult("a", 80, "high", 1.0),
            ProviderResult("b", 90, "high", 1.0),
        )
        assert consensus_confidence(85, results, threshold=0.7) == "high"


# ============================================================
# FAILURES
# ============================================================

class TestFailures:

    @pytest.mark.asyncio
    async def test_all_fail_returns_degraded_fallback(self):
        engine = make_engine([
            FakeDetector("a", error=ProviderUnavailable("a", "down")),
            FakeDetector("b", error=RuntimeError("boom")),
            FakeDetector("c", error=ValueError("garbage")),
        ])
        result = await engine.analyze("text", "three")

        assert result.overall_probability == 0
        assert result.confidence == "low"
        assert result.consensus_score == 0
        assert result.degraded is True
        assert len(result.per_provider) == 3
        assert all(isinstance(o, ProviderError) for o in result.per_provider)

    @pytest.mark.asyncio
    async def test_error_kinds_are_mapped(self):
        engine = make_engine([
            FakeDetector("a", delay=0.5),
            FakeDetector("b", 150),
            FakeDetector("c", error=OSError("refused")),
        ], timeout=0.05)
        result = await engine.analyze("text", "three")
        a, b, c = result.per_provider
        assert isinstance(a, ProviderTimeout) and a.kind == "timeout"
        assert isinstance(b, ProviderInvalid) and b.kind == "invalid"
        assert isinstance(c, ProviderUnavailable) and c.kind == "unavailable"

    @pytest.mark.asyncio
    async def test_unconfigured_provider_is_unavailable(self):
        engine = make_engine([FakeDetector("a", 40), FakeDetector("b", 44)])
        result = await engine.analyze("text", "three")
        assert isinstance(result.per_provider[2], ProviderUnavailable)
        assert result.per_provider[2].provider_id == "c"
        assert len(result.succeeded) == 2

    @pytest.mark.asyncio
    async def test_timeout_does_not_cancel_siblings(self):
        slow = FakeDetector("a", 90, delay=2.0)
        b = FakeDetector("b", 60, delay=0.01)
        c = FakeDetector("c", 65, delay=0.02)
        engine = make_engine([slow, b, c], timeout=0.1)

        start = time.perf_counter()
        result = await engine.analyze("text", "three")
        elapsed = time.perf_counter() - start

        assert elapsed < 1.0
        assert isinstance(result.per_provider[0], ProviderTimeout)
        assert not b.cancelled and not c.cancelled
        assert [r.provider_id for r in result.succeeded] == ["b", "c"]
        assert result.overall_probability == pytest.approx((0.35 * 60 + 0.25 * 65) / 0.6)


# ============================================================
# STRATEGY RESOLUTION
# ============================================================

class TestStrategyResolution:

    @pytest.mark.asyncio
    async def test_unknown_strategy_issues_no_calls(self):
        providers = [FakeDetector(pid, 50) for pid in "abc"]
        engine = make_engine(providers)
        with pytest.raises(UnknownStrategy):
            await engine.analyze("text", "does-not-exist")
        assert sum(len(p.calls) for p in providers) == 0

    @pytest.mark.asyncio
    async def test_strategy_lookup_is_case_sensitive(self):
        engine = make_engine([FakeDetector(pid, 50) for pid in "abc"])
        with pytest.raises(UnknownStrategy):
            await engine.analyze("text", "THREE")

    @pytest.mark.asyncio
    async def test_only_strategy_providers_are_called(self):
        providers = [FakeDetector(pid, 50) for pid in "abc"]
        engine = make_engine(providers)
        await engine.analyze("text", "two")
        assert [len(p.calls) for p in providers] == [1, 1, 0]


# ============================================================
# ORDERING / DETERMINISM
# ============================================================

class TestOrderingAndDeterminism:

    @pytest.mark.asyncio
    async def test_per_provider_keeps_configured_order(self):
        engine = make_engine([
            FakeDetector("a", 10, delay=0.06),
            FakeDetector("b", 20, delay=0.0),
            FakeDetector("c", 30, delay=0.03),
        ])
        result = await engine.analyze("text", "three")
        assert [o.provider_id for o in result.per_provider] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_providers_run_concurrently(self):
        engine = make_engine([FakeDetector(pid, 50, delay=0.2) for pid in "abc"])
        start = time.perf_counter()
        result = await engine.analyze("text", "three")
        elapsed = time.perf_counter() - start
        assert elapsed < 0.5
        assert result.processing_time_ms >= 150

    @pytest.mark.asyncio
    async def test_repeated_calls_are_identical(self):
        engine = make_engine([
            FakeDetector("a", 71.3), FakeDetector("b", 64.8), FakeDetector("c", 80.1),
        ])
        first = await engine.analyze("same text", "three")
        second = await engine.analyze("same text", "three")
        assert first.overall_probability == second.overall_probability
        assert first.confidence == second.confidence
        assert first.consensus_score == second.consensus_score

    @pytest.mark.asyncio
    async def test_result_serialises(self):
        engine = make_engine([
            FakeDetector("a", 90), FakeDetector("b", 85),
            FakeDetector("c", error=ProviderUnavailable("c", "down")),
        ])
        data = (await engine.analyze("text", "three")).to_dict()
        assert data["strategy"] == "three"
        assert data["provider_count"] == 2
        assert [r["status"] for r in data["results"]] == ["ok", "ok", "error"]
        assert data["results"][2]["kind"] == "unavailable"


# ============================================================
# CANCELLATION
# ============================================================

class TestCancellation:

    @pytest.mark.asyncio
    async def test_cancel_event_raises_cancelled(self):
        providers = [FakeDetector(pid, 50, delay=5.0) for pid in "abc"]
        engine = make_engine(providers, timeout=10.0)
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, event.set)

        start = time.perf_counter()
        with pytest.raises(Cancelled):
            await engine.analyze("text", "three", cancel_event=event)
        assert time.perf_counter() - start < 1.0

        assert all(p.cancelled for p in providers)
        await asyncio.sleep(0.05)
        assert [len(p.calls) for p in providers] == [1, 1, 1]

    @pytest.mark.asyncio
    async def test_event_already_set_cancels_immediately(self):
        providers = [FakeDetector(pid, 50, delay=1.0) for pid in "abc"]
        engine = make_engine(providers)
        event = asyncio.Event()
        event.set()
        with pytest.raises(Cancelled):
            await engine.analyze("text", "three", cancel_event=event)

    @pytest.mark.asyncio
    async def test_task_cancellation_reaches_providers(self):
        providers = [FakeDetector(pid, 50, delay=5.0) for pid in "abc"]
        engine = make_engine(providers, timeout=10.0)

        task = asyncio.create_task(engine.analyze("text", "three"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert all(p.cancelled for p in providers)

    @pytest.mark.asyncio
    async def test_event_not_set_returns_result(self):
        engine = make_engine([FakeDetector(pid, 50) for pid in "abc"])
        result = await engine.analyze("text", "three", cancel_event=asyncio.Event())
        assert len(result.succeeded) == 3
