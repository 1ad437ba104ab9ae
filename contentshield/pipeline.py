"""
Analysis Pipeline — the full compliance verdict for one text.

The four assessments (AI detection via the consensus engine, originality,
copyright, SEO) run concurrently under settle-all. A failed assessment is
replaced by its documented default instead of failing the request; only
UnknownStrategy and Cancelled reach the caller.

Precondition (enforced by the HTTP layer): trimmed content is 10-5000
characters. Not re-validated here.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from contentshield.analyzers import STOCK_PHRASES, find_phrases
from contentshield.analyzers.copyright import assess_copyright_risk
from contentshield.analyzers.disclosure import generate_disclosure
from contentshield.analyzers.originality import check_originality
from contentshield.analyzers.seo import assess_seo_risk
from contentshield.concurrency import settle_all
from contentshield.config import Settings, settings
from contentshield.consensus import ConsensusEngine
from contentshield.logging import get_logger
from contentshield.models import (
    AIDetection,
    AnalysisBundle,
    CopyrightRisk,
    Originality,
    SEOAssessment,
)
from contentshield.providers.factory import build_providers
from contentshield.risk import score_breakdown
from contentshield.strategies import StrategyRegistry

logger = get_logger("pipeline")

MIN_CONTENT_LENGTH = 10
MAX_CONTENT_LENGTH = 5000

# Defaults used when an assessment fails
FALLBACK_AI_DETECTION = AIDetection(
    probability=0.0,
    confidence="low",
    reasoning="AI detection service unavailable",
)
FALLBACK_ORIGINALITY = Originality(originality_score=100.0)
FALLBACK_COPYRIGHT = CopyrightRisk(risk_level="low")
FALLBACK_SEO = SEOAssessment(score=3)


@dataclass(frozen=True)
class Analyzers:
    """Pluggable sibling assessments."""
    originality: Callable[[str], Awaitable[Originality]] = check_originality
    copyright: Callable[[str], Awaitable[CopyrightRisk]] = assess_copyright_risk
    seo: Callable[[str], Awaitable[SEOAssessment]] = assess_seo_risk
    disclosure: Callable[[str, float, str], Awaitable[str]] = generate_disclosure


class ContentAnalyzer:
    """Orchestrates one analysis request end to end."""

    def __init__(
        self,
        engine: ConsensusEngine,
        default_strategy: str = "conservative",
        analyzers: Optional[Analyzers] = None,
    ):
        self.engine = engine
        self.default_strategy = default_strategy
        self.analyzers = analyzers or Analyzers()

    async def detect_ai(
        self,
        content: str,
        strategy_name: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AIDetection:
        result = await self.engine.analyze(content, strategy_name, cancel_event=cancel_event)
        if result.degraded:
            return AIDetection.from_consensus(result)
        phrases = [
            {**hit, "reason": "Stock phrasing common in machine-written text"}
            for hit in find_phrases(content, STOCK_PHRASES)
        ]
        return AIDetection.from_consensus(result, highlighted_phrases=tuple(phrases))

    async def analyze(
        self,
        content: str,
        strategy_name: Optional[str] = None,
        content_type: str = "general",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AnalysisBundle:
        strategy_name = strategy_name or self.default_strategy
        # Call-level failure: resolve before launching anything
        self.engine.registry.get(strategy_name)

        outcomes = await settle_all(
            [
                self.detect_ai(content, strategy_name),
                self.analyzers.originality(content),
                self.analyzers.copyright(content),
                self.analyzers.seo(content),
            ],
            cancel_event=cancel_event,
        )
        ai_detection = _settled("ai_detection", outcomes[0], FALLBACK_AI_DETECTION)
        originality = _settled("originality", outcomes[1], FALLBACK_ORIGINALITY)
        copyright_risk = _settled("copyright", outcomes[2], FALLBACK_COPYRIGHT)
        seo = _settled("seo", outcomes[3], FALLBACK_SEO)

        breakdown = score_breakdown(
            ai_detection.probability,
            originality.originality_score,
            copyright_risk.risk_level,
            seo.score,
        )

        try:
            disclosure = await self.analyzers.disclosure(
                content, ai_detection.probability, content_type,
            )
        except Exception as e:
            logger.warning(
                "Disclosure generation failed: %s", e,
                extra={"assessment": "disclosure", "error_type": type(e).__name__},
            )
            disclosure = ""

        logger.info(
            "Analysis complete: overall_risk=%s", breakdown["overall_risk"],
            extra={
                "strategy": strategy_name,
                "overall_risk": breakdown["overall_risk"],
                "risk_points": breakdown["total"],
                "probability": round(ai_detection.probability, 2),
                "content_type": content_type,
                "content_length": len(content),
            },
        )

        return AnalysisBundle(
            ai_detection=ai_detection,
            originality=originality,
            copyright_risk=copyright_risk,
            seo_assessment=seo,
            overall_risk=breakdown["overall_risk"],
            timestamp=datetime.now(timezone.utc).isoformat(),
            disclosure_statement=disclosure,
            risk_breakdown=breakdown,
        )


def _settled(name: str, outcome, fallback):
    if isinstance(outcome, BaseException):
        logger.warning(
            "%s assessment failed, using default: %s", name, outcome,
            extra={"assessment": name, "error_type": type(outcome).__name__},
        )
        return fallback
    return outcome


def build_content_analyzer(
    config: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
) -> ContentAnalyzer:
    """Wire registry, providers and engine from settings. Call once at startup."""
    config = config or settings
    if config.STRATEGIES_FILE:
        registry = StrategyRegistry.from_file(config.STRATEGIES_FILE)
    else:
        registry = StrategyRegistry()
    # Fail at startup, not on the first request
    registry.get(config.DEFAULT_STRATEGY)

    providers = build_providers(registry.provider_ids, config, rng=rng)
    engine = ConsensusEngine(registry, providers, timeout=config.PROVIDER_TIMEOUT)
    return ContentAnalyzer(engine, default_strategy=config.DEFAULT_STRATEGY)
