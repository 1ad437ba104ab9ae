"""
Detector Provider — Abstract Interface

Every external AI-content detector sits behind this interface. The base
class owns the contract: the timeout, the response-time measurement,
validation of the raw answer, and the mapping of failures onto
ProviderTimeout / ProviderUnavailable / ProviderInvalid. Subclasses only
talk to their service.
"""

from __future__ import annotations

import asyncio
import math
import time
from abc import ABC, abstractmethod
from typing import Optional

from contentshield.errors import (
    ProviderError,
    ProviderInvalid,
    ProviderTimeout,
    ProviderUnavailable,
)
from contentshield.models import CONFIDENCE_LEVELS, ProviderResult


def confidence_from_probability(probability: float) -> str:
    """Derive a confidence label from how far a score sits from a coin flip."""
    distance = abs(probability - 50)
    if distance >= 35:
        return "high"
    if distance >= 15:
        return "medium"
    return "low"


class DetectorProvider(ABC):
    """Abstract base for AI-content detectors."""

    provider_id: str = ""

    @abstractmethod
    async def _detect(self, text: str) -> tuple[float, Optional[str]]:
        """Return (probability 0-100, confidence label or None)."""
        ...

    async def detect(self, text: str, timeout: float) -> ProviderResult:
        """Run one detection bounded by ``timeout`` seconds.

        Raises a ProviderError subclass on any failure. Cancellation is
        not a failure and propagates untouched.
        """
        start = time.perf_counter()
        try:
            probability, confidence = await asyncio.wait_for(self._detect(text), timeout)
        except asyncio.TimeoutError:
            raise ProviderTimeout(
                self.provider_id, f"no response within {timeout:.1f}s",
            ) from None
        except ProviderError:
            raise
        except (LookupError, ValueError, TypeError, AttributeError) as e:
            raise ProviderInvalid(self.provider_id, f"malformed response: {e}") from e
        except Exception as e:
            raise ProviderUnavailable(
                self.provider_id, f"{type(e).__name__}: {e}",
            ) from e
        elapsed_ms = (time.perf_counter() - start) * 1000

        return ProviderResult(
            provider_id=self.provider_id,
            probability=self._validate_probability(probability),
            confidence=self._validate_confidence(confidence, probability),
            response_time_ms=max(0.0, elapsed_ms),
        )

    def _validate_probability(self, probability) -> float:
        if isinstance(probability, bool) or not isinstance(probability, (int, float)):
            raise ProviderInvalid(
                self.provider_id, f"probability is not numeric: {probability!r}",
            )
        value = float(probability)
        if math.isnan(value) or not 0 <= value <= 100:
            raise ProviderInvalid(
                self.provider_id, f"probability out of range: {probability!r}",
            )
        return value

    def _validate_confidence(self, confidence, probability: float) -> str:
        if confidence is None:
            return confidence_from_probability(float(probability))
        label = str(confidence).lower()
        if label not in CONFIDENCE_LEVELS:
            raise ProviderInvalid(
                self.provider_id, f"unknown confidence label: {confidence!r}",
            )
        return label

    async def aclose(self) -> None:
        """Release network resources. Default: nothing to release."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider_id={self.provider_id!r})"
