"""
ContentShield Configuration

Central settings loaded from environment variables (and a local .env file).
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _env_seed() -> Optional[int]:
    raw = os.getenv("CONTENTSHIELD_RANDOM_SEED", "").strip()
    return int(raw) if raw else None


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Detection ---
    DEFAULT_STRATEGY: str = os.getenv("CONTENTSHIELD_DEFAULT_STRATEGY", "conservative")
    PROVIDER_TIMEOUT: float = float(os.getenv("CONTENTSHIELD_PROVIDER_TIMEOUT", "8.0"))
    STRATEGIES_FILE: str = os.getenv("CONTENTSHIELD_STRATEGIES_FILE", "")

    # Providers without an API key get a simulated stand-in (demo mode)
    SIMULATE_MISSING: bool = _env_bool("CONTENTSHIELD_SIMULATE_MISSING", "true")
    RANDOM_SEED: Optional[int] = _env_seed()

    # --- Provider credentials ---
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GPTZERO_API_KEY: str = os.getenv("GPTZERO_API_KEY", "")
    SAPLING_API_KEY: str = os.getenv("SAPLING_API_KEY", "")
    COPYLEAKS_API_KEY: str = os.getenv("COPYLEAKS_API_KEY", "")
    HUGGINGFACE_API_KEY: str = os.getenv("HUGGINGFACE_API_KEY", "")
    HUGGINGFACE_MODEL: str = os.getenv(
        "HUGGINGFACE_MODEL", "openai-community/roberta-base-openai-detector",
    )
    ZEROGPT_API_KEY: str = os.getenv("ZEROGPT_API_KEY", "")

    # --- Server ---
    HOST: str = os.getenv("CONTENTSHIELD_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("CONTENTSHIELD_PORT", "8000"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("CONTENTSHIELD_CORS_ORIGINS", "*")

    def api_key_for(self, provider_id: str) -> str:
        """Credential for a detector id, empty string when not configured."""
        return getattr(self, f"{provider_id.upper()}_API_KEY", "")


settings = Settings()
