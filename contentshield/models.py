"""
Result types shared by the engine, the analyzers and the API.

All results are frozen: produced once per call and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

from contentshield.errors import ProviderError

Confidence = Literal["low", "medium", "high"]
RiskLevel = Literal["low", "medium", "high"]

CONFIDENCE_LEVELS: tuple[str, ...] = ("low", "medium", "high")
RISK_LEVELS: tuple[str, ...] = ("low", "medium", "high")


# ============================================================
# AI DETECTION
# ============================================================

@dataclass(frozen=True)
class ProviderResult:
    """One successful detector answer."""
    provider_id: str
    probability: float        # 0-100, likelihood the text is AI-generated
    confidence: Confidence
    response_time_ms: float

    def to_dict(self) -> dict:
        return {
            "provider_id": self.provider_id,
            "status": "ok",
            "probability": round(self.probability, 2),
            "confidence": self.confidence,
            "response_time_ms": round(self.response_time_ms, 1),
        }


ProviderOutcome = Union[ProviderResult, ProviderError]


@dataclass(frozen=True)
class ConsensusResult:
    """Weighted verdict over the providers of one strategy."""
    strategy_name: str
    overall_probability: float
    confidence: Confidence
    per_provider: tuple[ProviderOutcome, ...]
    consensus_score: float    # 1.0 = perfect agreement
    processing_time_ms: float
    threshold: float = 0.5

    @property
    def succeeded(self) -> tuple[ProviderResult, ...]:
        return tuple(o for o in self.per_provider if isinstance(o, ProviderResult))

    @property
    def failed(self) -> tuple[ProviderError, ...]:
        return tuple(o for o in self.per_provider if isinstance(o, ProviderError))

    @property
    def degraded(self) -> bool:
        """True when no provider answered and the fallback verdict was used."""
        return not self.succeeded

    @property
    def is_ai_generated(self) -> bool:
        return not self.degraded and self.overall_probability >= self.threshold * 100

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy_name,
            "overall_probability": round(self.overall_probability, 2),
            "confidence": self.confidence,
            "is_ai_generated": self.is_ai_generated,
            "consensus_score": round(self.consensus_score, 3),
            "provider_count": len(self.succeeded),
            "results": [o.to_dict() for o in self.per_provider],
            "processing_time_ms": round(self.processing_time_ms, 1),
        }


@dataclass(frozen=True)
class AIDetection:
    """The AI-detection slice of an analysis bundle."""
    probability: float
    confidence: Confidence
    is_ai_generated: bool = False
    strategy: str = ""
    consensus_score: float = 0.0
    provider_count: int = 0
    reasoning: str = ""
    providers: tuple[dict, ...] = ()
    highlighted_phrases: tuple[dict, ...] = ()  # {text, start_index, end_index, reason}

    @classmethod
    def from_consensus(
        cls,
        result: ConsensusResult,
        highlighted_phrases: tuple[dict, ...] = (),
    ) -> "AIDetection":
        ok = len(result.succeeded)
        total = len(result.per_provider)
        if result.degraded:
            reasoning = "No detection provider responded; verdict is a low-confidence fallback."
        else:
            verdict = "likely AI-generated" if result.is_ai_generated else "likely human-written"
            reasoning = (
                f"{ok} of {total} detectors responded under the '{result.strategy_name}' "
                f"strategy; weighted consensus {result.overall_probability:.1f}% "
                f"({verdict}, agreement {result.consensus_score:.2f})."
            )
        return cls(
            probability=result.overall_probability,
            confidence=result.confidence,
            is_ai_generated=result.is_ai_generated,
            strategy=result.strategy_name,
            consensus_score=result.consensus_score,
            provider_count=ok,
            reasoning=reasoning,
            providers=tuple(o.to_dict() for o in result.per_provider),
            highlighted_phrases=tuple(highlighted_phrases),
        )


# ============================================================
# SIBLING ASSESSMENTS
# ============================================================

@dataclass(frozen=True)
class Originality:
    originality_score: float  # 0-100, 100 = fully original
    is_plagiarized: bool = False
    matched_sources: tuple[dict, ...] = ()
    highlighted_matches: tuple[dict, ...] = ()


@dataclass(frozen=True)
class CopyrightRisk:
    risk_level: RiskLevel
    detected_content: tuple[dict, ...] = ()
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class SEOAssessment:
    score: int                # 1-5, 5 = no E-E-A-T concerns
    eeat_violations: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()


# ============================================================
# BUNDLE
# ============================================================

@dataclass(frozen=True)
class AnalysisBundle:
    """Everything one analysis request produced."""
    ai_detection: AIDetection
    originality: Originality
    copyright_risk: CopyrightRisk
    seo_assessment: SEOAssessment
    overall_risk: RiskLevel
    timestamp: str
    disclosure_statement: str = ""
    risk_breakdown: dict = field(default_factory=dict)
