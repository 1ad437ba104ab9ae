"""
Provider factory — builds the detector id -> provider map at startup.
"""

from __future__ import annotations

import random
from typing import Iterable, Optional

from contentshield.config import Settings
from contentshield.logging import get_logger
from contentshield.providers import DetectorProvider

logger = get_logger("providers.factory")

KNOWN_PROVIDERS = ("gemini", "gptzero", "sapling", "copyleaks", "huggingface", "zerogpt")


def get_provider(provider_id: str, settings: Settings) -> DetectorProvider:
    """Factory — returns the real detector for a provider id."""
    api_key = settings.api_key_for(provider_id)
    if provider_id == "gemini":
        from contentshield.providers.gemini import GeminiDetector
        return GeminiDetector(api_key=api_key, model=settings.GEMINI_MODEL)
    elif provider_id == "gptzero":
        from contentshield.providers.http import GPTZeroDetector
        return GPTZeroDetector(api_key)
    elif provider_id == "sapling":
        from contentshield.providers.http import SaplingDetector
        return SaplingDetector(api_key)
    elif provider_id == "copyleaks":
        from contentshield.providers.http import CopyleaksDetector
        return CopyleaksDetector(api_key)
    elif provider_id == "huggingface":
        from contentshield.providers.http import HuggingFaceDetector
        return HuggingFaceDetector(api_key, model=settings.HUGGINGFACE_MODEL)
    elif provider_id == "zerogpt":
        from contentshield.providers.http import ZeroGPTDetector
        return ZeroGPTDetector(api_key)
    else:
        raise ValueError(f"Unknown detection provider: {provider_id}")


def build_providers(
    provider_ids: Iterable[str],
    settings: Settings,
    rng: Optional[random.Random] = None,
) -> dict[str, DetectorProvider]:
    """Build one provider per id.

    Ids without credentials get a SimulatedDetector when
    ``settings.SIMULATE_MISSING`` is on; otherwise the real detector is
    still built and reports itself unavailable when called.
    """
    from contentshield.providers.simulated import SimulatedDetector

    rng = rng or random.Random(settings.RANDOM_SEED)
    providers: dict[str, DetectorProvider] = {}
    for provider_id in provider_ids:
        if provider_id not in KNOWN_PROVIDERS:
            raise ValueError(f"Unknown detection provider: {provider_id}")
        if settings.SIMULATE_MISSING and not settings.api_key_for(provider_id):
            providers[provider_id] = SimulatedDetector(
                provider_id, rng=random.Random(rng.getrandbits(64)),
            )
            simulated = True
        else:
            providers[provider_id] = get_provider(provider_id, settings)
            simulated = False
        logger.info(
            "Detector %s configured (%s)",
            provider_id, "simulated" if simulated else "live",
            extra={"provider_id": provider_id},
        )
    return providers
