"""
Consensus Engine — multi-provider AI-detection verdict.

One analyze() call:
  1. resolves the strategy (UnknownStrategy before any provider is called)
  2. fans out to every provider of the strategy, settle-all
  3. drops failed providers and renormalises the surviving weights
  4. scores agreement from the probability spread
  5. labels confidence from agreement and the strategy threshold

When every provider fails the result is a degraded fallback
(probability 0, confidence low, consensus 0), not an error.
"""

from __future__ import annotations

import asyncio
import math
import time
from typing import Mapping, Optional

from contentshield.concurrency import settle_all
from contentshield.errors import ProviderError, ProviderUnavailable
from contentshield.logging import get_logger
from contentshield.models import ConsensusResult, ProviderOutcome, ProviderResult
from contentshield.providers import DetectorProvider
from contentshield.strategies import Strategy, StrategyRegistry

logger = get_logger("consensus")

DEFAULT_PROVIDER_TIMEOUT = 8.0

# Spread (in probability points) bounding each confidence tier
HIGH_CONFIDENCE_MAX_SPREAD = 10.0
LOW_CONFIDENCE_MIN_SPREAD = 30.0


def weighted_probability(
    results: tuple[ProviderResult, ...],
    weights: Mapping[str, float],
) -> float:
    """Weighted mean over surviving providers, weights renormalised to 1."""
    available = math.fsum(weights[r.provider_id] for r in results)
    total = math.fsum(
        (weights[r.provider_id] / available) * r.probability for r in results
    )
    return min(100.0, max(0.0, total))


def probability_spread(results: tuple[ProviderResult, ...]) -> float:
    if len(results) < 2:
        return 0.0
    probabilities = [r.probability for r in results]
    return max(probabilities) - min(probabilities)


def consensus_confidence(
    overall: float,
    results: tuple[ProviderResult, ...],
    threshold: float,
) -> str:
    spread = probability_spread(results)
    if len(results) < 2 or spread > LOW_CONFIDENCE_MIN_SPREAD:
        return "low"

    boundary = threshold * 100
    overall_side = overall >= boundary
    same_side = all((r.probability >= boundary) == overall_side for r in results)
    if spread <= HIGH_CONFIDENCE_MAX_SPREAD and same_side:
        return "high"
    return "medium"


class ConsensusEngine:
    """Runs strategies against a fixed set of detector providers."""

    def __init__(
        self,
        registry: StrategyRegistry,
        providers: Mapping[str, DetectorProvider],
        timeout: float = DEFAULT_PROVIDER_TIMEOUT,
    ):
        self.registry = registry
        self.providers = dict(providers)
        self.timeout = timeout

    async def analyze(
        self,
        text: str,
        strategy_name: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ConsensusResult:
        strategy = self.registry.get(strategy_name)

        start = time.perf_counter()
        outcomes = await settle_all(
            [self._call(pid, text) for pid in strategy.provider_ids],
            cancel_event=cancel_event,
        )
        per_provider = tuple(
            self._as_outcome(pid, outcome)
            for pid, outcome in zip(strategy.provider_ids, outcomes)
        )
        elapsed_ms = (time.perf_counter() - start) * 1000

        result = self._combine(strategy, per_provider, elapsed_ms)
        logger.info(
            "Consensus complete: strategy=%s probability=%.1f confidence=%s",
            strategy.name, result.overall_probability, result.confidence,
            extra={
                "strategy": strategy.name,
                "probability": round(result.overall_probability, 2),
                "confidence": result.confidence,
                "consensus_score": round(result.consensus_score, 3),
                "succeeded": len(result.succeeded),
                "failed": len(result.failed),
                "duration_ms": round(elapsed_ms, 1),
            },
        )
        return result

    async def _call(self, provider_id: str, text: str) -> ProviderResult:
        provider = self.providers.get(provider_id)
        if provider is None:
            raise ProviderUnavailable(provider_id, "provider not configured")
        return await provider.detect(text, self.timeout)

    @staticmethod
    def _as_outcome(provider_id: str, outcome) -> ProviderOutcome:
        if isinstance(outcome, ProviderResult):
            return outcome
        if isinstance(outcome, ProviderError):
            logger.warning(
                "Provider %s failed: %s", provider_id, outcome.message,
                extra={"provider_id": provider_id, "error_kind": outcome.kind},
            )
            return outcome
        # Anything else escaped the provider contract
        logger.error(
            "Provider %s raised outside its contract: %r", provider_id, outcome,
            extra={"provider_id": provider_id, "error_type": type(outcome).__name__},
        )
        return ProviderUnavailable(provider_id, f"{type(outcome).__name__}: {outcome}")

    @staticmethod
    def _combine(
        strategy: Strategy,
        per_provider: tuple[ProviderOutcome, ...],
        elapsed_ms: float,
    ) -> ConsensusResult:
        succeeded = tuple(o for o in per_provider if isinstance(o, ProviderResult))

        if not succeeded:
            logger.warning(
                "All providers failed for strategy %s; returning fallback verdict",
                strategy.name, extra={"strategy": strategy.name},
            )
            return ConsensusResult(
                strategy_name=strategy.name,
                overall_probability=0.0,
                confidence="low",
                per_provider=per_provider,
                consensus_score=0.0,
                processing_time_ms=elapsed_ms,
                threshold=strategy.threshold,
            )

        overall = weighted_probability(succeeded, strategy.weights)
        spread = probability_spread(succeeded)
        return ConsensusResult(
            strategy_name=strategy.name,
            overall_probability=overall,
            confidence=consensus_confidence(overall, succeeded, strategy.threshold),
            per_provider=per_provider,
            consensus_score=min(1.0, max(0.0, 1 - spread / 100)),
            processing_time_ms=elapsed_ms,
            threshold=strategy.threshold,
        )

    async def aclose(self) -> None:
        for provider in self.providers.values():
            await provider.aclose()
