"""
Structured Logging — JSON Output for Production

Each log line carries timestamp, level, logger and message, plus any
whitelisted context fields passed through ``extra``.

Usage:
    from contentshield.logging import get_logger
    logger = get_logger("consensus")
    logger.info("Consensus complete", extra={"strategy": "fast", "probability": 71.2})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone


LOG_LEVEL = os.getenv("CONTENTSHIELD_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("CONTENTSHIELD_LOG_FORMAT", "json")  # "json" or "text"

CONTEXT_FIELDS = (
    "strategy", "provider_id", "error_kind", "probability", "confidence",
    "consensus_score", "succeeded", "failed", "overall_risk", "risk_points",
    "assessment", "content_type", "content_length", "key_id", "error",
    "error_type", "duration_ms", "status_code", "method", "path",
)


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in CONTEXT_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable format for development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging():
    """Configure the package logger. Call once at app startup."""
    root = logging.getLogger("contentshield")
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if LOG_FORMAT == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())
    root.addHandler(handler)

    # Provider HTTP chatter
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the contentshield namespace."""
    return logging.getLogger(f"contentshield.{name}")
