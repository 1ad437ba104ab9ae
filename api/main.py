"""
ContentShield API — Main Application

POST /api/analyze              — Full compliance analysis (all four signals)
POST /api/ai-detection         — AI-detection consensus only
POST /api/originality          — Originality / plagiarism check
POST /api/copyright-risk       — Copyright risk check
POST /api/seo-assessment       — SEO / E-E-A-T assessment
POST /api/generate-disclosure  — AI disclosure statement
GET  /api/detection/strategy   — List detection strategies
POST /api/detection/strategy   — Run one strategy with per-provider detail
GET  /health                   — Health check
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager, suppress
from dataclasses import asdict
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contentshield import __version__
from contentshield.auth import require_api_key
from contentshield.config import settings
from contentshield.errors import Cancelled, UnknownStrategy
from contentshield.logging import get_logger, setup_logging
from contentshield.pipeline import ContentAnalyzer, build_content_analyzer
from contentshield.providers.simulated import SimulatedDetector
from contentshield.rate_limit import check_rate_limit
from contentshield.schemas.analyze import (
    AIDetectionResponse,
    AnalysisRequest,
    AnalysisResponse,
    ConsensusResponse,
    ContentRequest,
    CopyrightRiskResponse,
    DetectionRequest,
    DisclosureRequest,
    DisclosureResponse,
    HealthResponse,
    OriginalityResponse,
    SEOAssessmentResponse,
    StrategyListResponse,
)

logger = get_logger("api")

# Status used when the client went away mid-analysis (nginx convention)
CLIENT_CLOSED_REQUEST = 499
DISCONNECT_POLL_SECONDS = 0.25


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the analyzer once; the strategy registry is fixed from here on."""
    setup_logging()
    app.state.analyzer = build_content_analyzer(settings)
    logger.info(
        "ContentShield API starting",
        extra={"strategy": settings.DEFAULT_STRATEGY},
    )
    yield
    await app.state.analyzer.engine.aclose()
    logger.info("ContentShield API shutting down")


app = FastAPI(
    title="ContentShield API",
    description="AI-content compliance checks: AI detection consensus, originality, "
                "copyright and SEO risk",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["X-API-Key", "Content-Type", "Authorization"],
    allow_credentials=False,
)


def get_analyzer(request: Request) -> ContentAnalyzer:
    return request.app.state.analyzer


# ============================================================
# ERROR HANDLERS
# ============================================================

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": message.removeprefix("Value error, ")},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(UnknownStrategy)
async def unknown_strategy_handler(request: Request, exc: UnknownStrategy):
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


@app.exception_handler(Cancelled)
async def cancelled_handler(request: Request, exc: Cancelled):
    logger.info(
        "Request cancelled by client",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=CLIENT_CLOSED_REQUEST,
        content={"success": False, "error": "Request cancelled"},
    )


@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions — return structured error, don't leak internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error during analysis"},
    )


async def _watch_disconnect(request: Request, event: asyncio.Event) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)
    event.set()


# ============================================================
# ROUTES
# ============================================================

@app.get("/", include_in_schema=False)
async def root():
    return JSONResponse({"message": "ContentShield API", "docs": "/docs"})


@app.post("/api/analyze", response_model=AnalysisResponse)
async def analyze_content(
    body: AnalysisRequest,
    request: Request,
    analyzer: ContentAnalyzer = Depends(get_analyzer),
    key_id: Optional[str] = Depends(require_api_key),
):
    """Run every assessment and return the combined verdict."""
    check_rate_limit(key_id)

    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
    try:
        bundle = await analyzer.analyze(
            body.content,
            strategy_name=body.strategy,
            content_type=body.content_type,
            cancel_event=cancel_event,
        )
    finally:
        watcher.cancel()
        with suppress(asyncio.CancelledError):
            await watcher

    return {
        "success": True,
        "data": asdict(bundle),
        "message": "Analysis completed successfully",
    }


@app.get("/api/analyze")
async def analyze_info():
    return {
        "message": "ContentShield Analysis API",
        "version": __version__,
        "endpoints": {
            "analyze": "POST /api/analyze",
            "aiDetection": "POST /api/ai-detection",
            "originality": "POST /api/originality",
            "copyrightRisk": "POST /api/copyright-risk",
            "seoAssessment": "POST /api/seo-assessment",
            "generateDisclosure": "POST /api/generate-disclosure",
            "strategies": "GET /api/detection/strategy",
        },
    }


@app.post("/api/ai-detection", response_model=AIDetectionResponse)
async def ai_detection(
    body: DetectionRequest,
    analyzer: ContentAnalyzer = Depends(get_analyzer),
    key_id: Optional[str] = Depends(require_api_key),
):
    check_rate_limit(key_id)
    result = await analyzer.detect_ai(
        body.content, body.strategy or analyzer.default_strategy,
    )
    return {"success": True, "data": asdict(result), "message": "AI detection completed"}


@app.post("/api/originality", response_model=OriginalityResponse)
async def originality(
    body: ContentRequest,
    analyzer: ContentAnalyzer = Depends(get_analyzer),
    key_id: Optional[str] = Depends(require_api_key),
):
    check_rate_limit(key_id)
    result = await analyzer.analyzers.originality(body.content)
    return {"success": True, "data": asdict(result), "message": "Originality check completed"}


@app.post("/api/copyright-risk", response_model=CopyrightRiskResponse)
async def copyright_risk(
    body: ContentRequest,
    analyzer: ContentAnalyzer = Depends(get_analyzer),
    key_id: Optional[str] = Depends(require_api_key),
):
    check_rate_limit(key_id)
    result = await analyzer.analyzers.copyright(body.content)
    return {"success": True, "data": asdict(result), "message": "Copyright risk assessed"}


@app.post("/api/seo-assessment", response_model=SEOAssessmentResponse)
async def seo_assessment(
    body: ContentRequest,
    analyzer: ContentAnalyzer = Depends(get_analyzer),
    key_id: Optional[str] = Depends(require_api_key),
):
    check_rate_limit(key_id)
    result = await analyzer.analyzers.seo(body.content)
    return {"success": True, "data": asdict(result), "message": "SEO assessment completed"}


@app.post("/api/generate-disclosure", response_model=DisclosureResponse)
async def generate_disclosure(
    body: DisclosureRequest,
    analyzer: ContentAnalyzer = Depends(get_analyzer),
    key_id: Optional[str] = Depends(require_api_key),
):
    """Disclosure text; runs AI detection first when no probability is supplied."""
    check_rate_limit(key_id)
    probability = body.ai_probability
    if probability is None:
        detection = await analyzer.detect_ai(body.content, analyzer.default_strategy)
        probability = detection.probability

    statement = await analyzer.analyzers.disclosure(body.content, probability, body.style)
    return {
        "success": True,
        "data": {"disclosure": statement, "ai_probability": probability, "style": body.style},
        "message": "Disclosure generated",
    }


@app.get("/api/detection/strategy", response_model=StrategyListResponse)
async def list_strategies(analyzer: ContentAnalyzer = Depends(get_analyzer)):
    return {
        "success": True,
        "data": [s.to_dict() for s in analyzer.engine.registry.list()],
        "message": "Detection strategies retrieved successfully",
    }


@app.post("/api/detection/strategy", response_model=ConsensusResponse)
async def run_strategy(
    body: DetectionRequest,
    analyzer: ContentAnalyzer = Depends(get_analyzer),
    key_id: Optional[str] = Depends(require_api_key),
):
    """Run a strategy and return the raw consensus with every provider outcome."""
    check_rate_limit(key_id)
    result = await analyzer.engine.analyze(
        body.content, body.strategy or analyzer.default_strategy,
    )
    return {"success": True, "data": result.to_dict(), "message": "Multi-API detection completed"}


@app.get("/health", response_model=HealthResponse)
async def health(analyzer: ContentAnalyzer = Depends(get_analyzer)):
    """Health check — no auth required."""
    providers = {
        pid: "simulated" if isinstance(p, SimulatedDetector) else "live"
        for pid, p in analyzer.engine.providers.items()
    }
    return {
        "status": "operational",
        "version": __version__,
        "default_strategy": analyzer.default_strategy,
        "strategies": list(analyzer.engine.registry.names),
        "providers": providers,
    }


# --- Security + Version Headers Middleware ---
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-ContentShield-Version"] = __version__
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# --- Request Logging Middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with method, path, status, duration."""
    path = request.url.path
    if path == "/health":
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 1)

    logger.info(
        f"{request.method} {path} → {response.status_code} ({duration_ms}ms)",
        extra={
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response
