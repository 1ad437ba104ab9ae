"""
API Schemas — Request and Response Models

Pydantic models for the ContentShield API. Every response uses the
{success, data, message} envelope.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from contentshield.pipeline import MAX_CONTENT_LENGTH, MIN_CONTENT_LENGTH

CONTENT_TYPE_PATTERN = "^(general|blog|academic|marketing|social|news)$"


# ============================================================
# REQUESTS
# ============================================================

class ContentRequest(BaseModel):
    """Body shared by every endpoint that takes text."""
    content: str = Field(..., max_length=MAX_CONTENT_LENGTH,
                         description="Text to analyze (10-5,000 characters).")

    @field_validator("content")
    @classmethod
    def content_long_enough(cls, v: str) -> str:
        if len(v.strip()) < MIN_CONTENT_LENGTH:
            raise ValueError(
                f"Content must be at least {MIN_CONTENT_LENGTH} characters long "
                "for meaningful analysis"
            )
        return v


class AnalysisRequest(ContentRequest):
    """POST /api/analyze request body."""
    content_type: str = Field("general", alias="contentType", pattern=CONTENT_TYPE_PATTERN)
    language: str = "en"
    strategy: Optional[str] = Field(None, description="Detection strategy; server default if omitted.")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {"examples": [
            {"content": "In today's fast-paced world, it is important to note that ...",
             "contentType": "blog", "strategy": "conservative"},
        ]},
    }


class DetectionRequest(ContentRequest):
    """POST /api/ai-detection and /api/detection/strategy request body."""
    strategy: Optional[str] = None


class DisclosureRequest(ContentRequest):
    """POST /api/generate-disclosure request body."""
    style: str = Field("general", pattern=CONTENT_TYPE_PATTERN)
    ai_probability: Optional[float] = Field(None, ge=0, le=100, alias="aiProbability")

    model_config = {"populate_by_name": True}


# ============================================================
# RESULT PAYLOADS
# ============================================================

class ProviderOutcomeOut(BaseModel):
    provider_id: str
    status: str                      # "ok" | "error"
    probability: Optional[float] = None
    confidence: Optional[str] = None
    response_time_ms: Optional[float] = None
    kind: Optional[str] = None       # timeout | unavailable | invalid
    error: Optional[str] = None


class AIDetectionOut(BaseModel):
    probability: float = Field(..., ge=0, le=100)
    confidence: str
    is_ai_generated: bool
    strategy: str
    consensus_score: float = Field(..., ge=0, le=1)
    provider_count: int
    reasoning: str
    providers: list[ProviderOutcomeOut] = []
    highlighted_phrases: list[dict] = []


class ConsensusOut(BaseModel):
    strategy: str
    overall_probability: float = Field(..., ge=0, le=100)
    confidence: str
    is_ai_generated: bool
    consensus_score: float = Field(..., ge=0, le=1)
    provider_count: int
    results: list[ProviderOutcomeOut]
    processing_time_ms: float


class OriginalityOut(BaseModel):
    originality_score: float = Field(..., ge=0, le=100)
    is_plagiarized: bool
    matched_sources: list[dict] = []
    highlighted_matches: list[dict] = []


class CopyrightRiskOut(BaseModel):
    risk_level: str
    detected_content: list[dict] = []
    recommendations: list[str] = []


class SEOAssessmentOut(BaseModel):
    score: int = Field(..., ge=1, le=5)
    eeat_violations: list[str] = []
    recommendations: list[str] = []
    risk_factors: list[str] = []


class AnalysisOut(BaseModel):
    ai_detection: AIDetectionOut
    originality: OriginalityOut
    copyright_risk: CopyrightRiskOut
    seo_assessment: SEOAssessmentOut
    disclosure_statement: str
    overall_risk: str
    risk_breakdown: dict
    timestamp: str


class StrategyOut(BaseModel):
    name: str
    description: str
    providers: list[str]
    weights: dict[str, float]
    threshold: float


class DisclosureOut(BaseModel):
    disclosure: str
    ai_probability: float
    style: str


# ============================================================
# ENVELOPES
# ============================================================

class Envelope(BaseModel):
    success: bool = True
    message: Optional[str] = None


class AnalysisResponse(Envelope):
    data: AnalysisOut


class AIDetectionResponse(Envelope):
    data: AIDetectionOut


class ConsensusResponse(Envelope):
    data: ConsensusOut


class OriginalityResponse(Envelope):
    data: OriginalityOut


class CopyrightRiskResponse(Envelope):
    data: CopyrightRiskOut


class SEOAssessmentResponse(Envelope):
    data: SEOAssessmentOut


class StrategyListResponse(Envelope):
    data: list[StrategyOut]


class DisclosureResponse(Envelope):
    data: DisclosureOut


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class HealthResponse(BaseModel):
    status: str
    version: str
    default_strategy: str
    strategies: list[str]
    providers: dict[str, str]        # provider id -> "live" | "simulated"
