"""
Simulated Detector — demo stand-in for detectors without credentials.

Probability and latency come from an injected ``random.Random`` so runs
are reproducible under a fixed seed. Never used when a real key exists.
"""

from __future__ import annotations

import asyncio
import random
from typing import Optional

from contentshield.errors import ProviderUnavailable
from contentshield.providers import DetectorProvider


class SimulatedDetector(DetectorProvider):
    """Returns a random score after a random delay."""

    def __init__(
        self,
        provider_id: str,
        rng: Optional[random.Random] = None,
        latency_ms: tuple[float, float] = (200.0, 700.0),
        failure_rate: float = 0.0,
    ):
        self.provider_id = provider_id
        self._rng = rng or random.Random()
        self._latency_ms = latency_ms
        self._failure_rate = failure_rate

    async def _detect(self, text: str) -> tuple[float, Optional[str]]:
        low, high = self._latency_ms
        delay = self._rng.uniform(low, high) / 1000
        fails = self._rng.random() < self._failure_rate
        probability = self._rng.uniform(0, 100)

        await asyncio.sleep(delay)
        if fails:
            raise ProviderUnavailable(self.provider_id, "simulated outage")
        return probability, None
