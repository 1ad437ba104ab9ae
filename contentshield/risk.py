"""
Overall Risk Aggregator

Folds the four assessment signals into one ordinal risk level with a
fixed point table. Each dimension contributes 0-3 points (sum 0-12):

  AI probability:     >80 = 3, >50 = 2, >20 = 1, else 0
  Originality score:  <60 = 3, <80 = 2, <95 = 1, else 0
  Copyright risk:     high = 3, medium = 2, low = 0   (no 1-point tier)
  SEO score:          <=2 = 3, <=3 = 2, <=4 = 1, else 0

  sum >= 8 -> high, sum >= 4 -> medium, else low

Pure and deterministic; the table is policy and is matched exactly.
"""

from __future__ import annotations

from contentshield.models import RiskLevel

HIGH_RISK_POINTS = 8
MEDIUM_RISK_POINTS = 4

_COPYRIGHT_POINTS = {"high": 3, "medium": 2, "low": 0}


def ai_points(probability: float) -> int:
    if probability > 80:
        return 3
    if probability > 50:
        return 2
    if probability > 20:
        return 1
    return 0


def originality_points(originality_score: float) -> int:
    if originality_score < 60:
        return 3
    if originality_score < 80:
        return 2
    if originality_score < 95:
        return 1
    return 0


def copyright_points(risk_level: str) -> int:
    return _COPYRIGHT_POINTS.get(risk_level, 0)


def seo_points(seo_score: float) -> int:
    if seo_score <= 2:
        return 3
    if seo_score <= 3:
        return 2
    if seo_score <= 4:
        return 1
    return 0


def risk_level_for(points: int) -> RiskLevel:
    if points >= HIGH_RISK_POINTS:
        return "high"
    if points >= MEDIUM_RISK_POINTS:
        return "medium"
    return "low"


def score_breakdown(
    ai_probability: float,
    originality_score: float,
    copyright_risk: str,
    seo_score: float,
) -> dict:
    """Points per dimension, their total and the resulting level."""
    points = {
        "ai_detection": ai_points(ai_probability),
        "originality": originality_points(originality_score),
        "copyright": copyright_points(copyright_risk),
        "seo": seo_points(seo_score),
    }
    total = sum(points.values())
    return {**points, "total": total, "overall_risk": risk_level_for(total)}


def combine(
    ai_probability: float,
    originality_score: float,
    copyright_risk: str,
    seo_score: float,
) -> RiskLevel:
    """Overall risk level for one analysis."""
    return score_breakdown(
        ai_probability, originality_score, copyright_risk, seo_score,
    )["overall_risk"]
