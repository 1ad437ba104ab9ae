"""
Error taxonomy.

Call-level failures (UnknownStrategy, InvalidStrategyWeights, Cancelled)
surface to the caller. Provider failures never do: the consensus engine
records them per provider and redistributes weight around them.
"""

from __future__ import annotations


class ContentShieldError(Exception):
    """Base class for every error raised by the package."""


class UnknownStrategy(ContentShieldError):
    """Requested strategy name is not registered."""

    def __init__(self, name: str, available: tuple[str, ...] = ()):
        self.name = name
        self.available = available
        hint = f" (available: {', '.join(available)})" if available else ""
        super().__init__(f"Unknown detection strategy: {name!r}{hint}")


class InvalidStrategyWeights(ContentShieldError):
    """Strategy configuration is inconsistent. Raised at registration time."""


class Cancelled(ContentShieldError):
    """The request was aborted before all assessments settled."""


class ProviderError(ContentShieldError):
    """A single detector call failed.

    Instances double as the failure record kept in
    ``ConsensusResult.per_provider``.
    """

    kind = "unavailable"

    def __init__(self, provider_id: str, message: str = ""):
        self.provider_id = provider_id
        self.message = message or self.kind
        super().__init__(f"{provider_id}: {self.message}")

    def to_dict(self) -> dict:
        return {
            "provider_id": self.provider_id,
            "status": "error",
            "kind": self.kind,
            "error": self.message,
        }

    def __eq__(self, other):
        if not isinstance(other, ProviderError):
            return NotImplemented
        return (self.provider_id, self.kind) == (other.provider_id, other.kind)

    def __hash__(self):
        return hash((self.provider_id, self.kind))


class ProviderTimeout(ProviderError):
    kind = "timeout"


class ProviderUnavailable(ProviderError):
    kind = "unavailable"


class ProviderInvalid(ProviderError):
    """Provider answered, but the answer is unusable."""

    kind = "invalid"
