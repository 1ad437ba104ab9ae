"""
HTTP Detectors — commercial and hosted AI-text detection APIs.

Each detector differs only in endpoint, credentials, payload and how the
score is read out of the response; transport and error mapping are
shared. Scores are normalised to the 0-100 "probability AI" scale.

The owned client has no transport timeout: the per-provider deadline is
enforced once, by ``DetectorProvider.detect``.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Optional

import httpx

from contentshield.errors import ProviderInvalid, ProviderTimeout, ProviderUnavailable
from contentshield.providers import DetectorProvider


class HTTPDetector(DetectorProvider):
    """Base for detectors reached over a JSON HTTP API."""

    url: str = ""

    def __init__(self, api_key: str, client: Optional[httpx.AsyncClient] = None):
        self._api_key = api_key
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=None)
        return self._client

    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def payload(self, text: str) -> dict[str, Any]:
        return {"text": text}

    @abstractmethod
    def parse(self, data: Any) -> tuple[float, Optional[str]]:
        """Read (probability 0-100, confidence or None) out of the JSON body."""
        ...

    async def _detect(self, text: str) -> tuple[float, Optional[str]]:
        if not self._api_key:
            raise ProviderUnavailable(self.provider_id, "API key not configured")

        client = self._get_client()
        try:
            response = await client.post(
                self.url, json=self.payload(text), headers=self.headers(),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderUnavailable(
                self.provider_id, f"HTTP {e.response.status_code}",
            ) from e
        except httpx.TimeoutException as e:
            # only reachable with an injected client that sets its own timeout
            raise ProviderTimeout(self.provider_id, f"{type(e).__name__}: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable(self.provider_id, f"{type(e).__name__}: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderInvalid(self.provider_id, "response body is not JSON") from e
        return self.parse(data)

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


class GPTZeroDetector(HTTPDetector):
    provider_id = "gptzero"
    url = "https://api.gptzero.me/v2/predict/text"

    def headers(self) -> dict[str, str]:
        return {**super().headers(), "x-api-key": self._api_key}

    def payload(self, text: str) -> dict[str, Any]:
        return {"document": text}

    def parse(self, data: Any) -> tuple[float, Optional[str]]:
        doc = data["documents"][0]
        probability = float(doc["completely_generated_prob"]) * 100
        return probability, doc.get("confidence_category")


class SaplingDetector(HTTPDetector):
    provider_id = "sapling"
    url = "https://api.sapling.ai/api/v1/aidetect"

    def payload(self, text: str) -> dict[str, Any]:
        return {"key": self._api_key, "text": text}

    def parse(self, data: Any) -> tuple[float, Optional[str]]:
        return float(data["score"]) * 100, None


class CopyleaksDetector(HTTPDetector):
    provider_id = "copyleaks"
    url = "https://api.copyleaks.com/v2/writer-detector/scan"

    def headers(self) -> dict[str, str]:
        return {**super().headers(), "Authorization": f"Bearer {self._api_key}"}

    def parse(self, data: Any) -> tuple[float, Optional[str]]:
        summary = data["summary"]
        return float(summary["ai"]) * 100, None


class HuggingFaceDetector(HTTPDetector):
    """Hosted inference for a binary real/fake text classifier."""

    provider_id = "huggingface"

    def __init__(
        self,
        api_key: str,
        model: str = "openai-community/roberta-base-openai-detector",
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_key, client=client)
        self.url = f"https://api-inference.huggingface.co/models/{model}"

    def headers(self) -> dict[str, str]:
        return {**super().headers(), "Authorization": f"Bearer {self._api_key}"}

    def payload(self, text: str) -> dict[str, Any]:
        return {"inputs": text}

    def parse(self, data: Any) -> tuple[float, Optional[str]]:
        # [[{"label": "Fake", "score": 0.93}, {"label": "Real", "score": 0.07}]]
        labels = data[0] if data and isinstance(data[0], list) else data
        for entry in labels:
            if str(entry["label"]).lower() in ("fake", "ai", "label_1", "machine"):
                return float(entry["score"]) * 100, None
        raise ValueError(f"no AI label in classifier output: {labels!r}")


class ZeroGPTDetector(HTTPDetector):
    provider_id = "zerogpt"
    url = "https://api.zerogpt.com/api/detect/detectText"

    def headers(self) -> dict[str, str]:
        return {**super().headers(), "ApiKey": self._api_key}

    def payload(self, text: str) -> dict[str, Any]:
        return {"input_text": text}

    def parse(self, data: Any) -> tuple[float, Optional[str]]:
        return float(data["data"]["fakePercentage"]), None
