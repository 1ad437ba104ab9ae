"""
ContentShield — AI-Content Compliance Checks

Assembles a compliance verdict for a block of text from four signals:
AI-generation likelihood, originality, copyright risk and SEO / E-E-A-T risk.

Public API:
  - ConsensusEngine:   multi-provider AI detection with weight redistribution
  - StrategyRegistry:  immutable named detector configurations
  - DetectorProvider:  abstract detector interface for provider swapping
  - ContentAnalyzer:   runs all four assessments and aggregates the risk
  - combine:           overall risk from the fixed point table

Usage:
    from contentshield import build_content_analyzer
    analyzer = build_content_analyzer()
    bundle = await analyzer.analyze(text, strategy_name="fast")
"""

__version__ = "1.0.0"

from contentshield.errors import (
    Cancelled,
    ContentShieldError,
    InvalidStrategyWeights,
    ProviderError,
    ProviderInvalid,
    ProviderTimeout,
    ProviderUnavailable,
    UnknownStrategy,
)
from contentshield.models import (
    AIDetection,
    AnalysisBundle,
    ConsensusResult,
    CopyrightRisk,
    Originality,
    ProviderResult,
    SEOAssessment,
)
from contentshield.strategies import BUILTIN_STRATEGIES, Strategy, StrategyRegistry
from contentshield.providers import DetectorProvider
from contentshield.consensus import ConsensusEngine
from contentshield.risk import combine, score_breakdown
from contentshield.pipeline import Analyzers, ContentAnalyzer, build_content_analyzer

__all__ = [
    "Cancelled",
    "ContentShieldError",
    "InvalidStrategyWeights",
    "ProviderError",
    "ProviderInvalid",
    "ProviderTimeout",
    "ProviderUnavailable",
    "UnknownStrategy",
    "AIDetection",
    "AnalysisBundle",
    "ConsensusResult",
    "CopyrightRisk",
    "Originality",
    "ProviderResult",
    "SEOAssessment",
    "BUILTIN_STRATEGIES",
    "Strategy",
    "StrategyRegistry",
    "DetectorProvider",
    "ConsensusEngine",
    "combine",
    "score_breakdown",
    "Analyzers",
    "ContentAnalyzer",
    "build_content_analyzer",
]
