"""
Strategy Registry

A strategy is a named, fixed set of detectors, a weight per detector and
a decision threshold. The registry is built once at startup and is
read-only afterwards; a bad strategy fails registration, never a request.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Union

from contentshield.errors import InvalidStrategyWeights, UnknownStrategy

WEIGHT_TOLERANCE = 1e-6


@dataclass(frozen=True)
class Strategy:
    """A validated detector configuration."""
    name: str
    provider_ids: tuple[str, ...]
    weights: Mapping[str, float]
    threshold: float
    description: str = ""

    def __post_init__(self):
        ids = tuple(self.provider_ids)
        weights = dict(self.weights)

        if not self.name:
            raise InvalidStrategyWeights("Strategy name must not be empty")
        if not ids:
            raise InvalidStrategyWeights(f"{self.name}: no providers configured")
        if len(set(ids)) != len(ids):
            raise InvalidStrategyWeights(f"{self.name}: duplicate provider ids {ids}")
        if set(weights) != set(ids):
            missing = sorted(set(ids) - set(weights))
            extra = sorted(set(weights) - set(ids))
            raise InvalidStrategyWeights(
                f"{self.name}: weights do not match providers "
                f"(missing={missing}, unexpected={extra})"
            )
        for provider_id, w in weights.items():
            if not isinstance(w, (int, float)) or not 0 < w <= 1:
                raise InvalidStrategyWeights(
                    f"{self.name}: weight for {provider_id} must be in (0, 1], got {w!r}"
                )
        total = math.fsum(weights.values())
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise InvalidStrategyWeights(
                f"{self.name}: weights sum to {total}, expected 1.0"
            )
        if not 0 <= self.threshold <= 1:
            raise InvalidStrategyWeights(
                f"{self.name}: threshold must be in [0, 1], got {self.threshold}"
            )

        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "provider_ids", ids)
        object.__setattr__(
            self, "weights",
            MappingProxyType({pid: float(weights[pid]) for pid in ids}),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Strategy":
        try:
            return cls(
                name=data["name"],
                provider_ids=tuple(data["providers"]),
                weights=data["weights"],
                threshold=float(data["threshold"]),
                description=data.get("description", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidStrategyWeights(f"Malformed strategy definition: {e}") from e

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "providers": list(self.provider_ids),
            "weights": dict(self.weights),
            "threshold": self.threshold,
        }


BUILTIN_STRATEGIES: tuple[Strategy, ...] = (
    Strategy(
        name="conservative",
        description="Uses multiple detectors and requires consensus for high confidence",
        provider_ids=("gemini", "gptzero", "sapling"),
        weights={"gemini": 0.4, "gptzero": 0.35, "sapling": 0.25},
        threshold=0.7,
    ),
    Strategy(
        name="aggressive",
        description="Uses all available detectors and weights results by accuracy",
        provider_ids=("gemini", "gptzero", "sapling", "copyleaks", "huggingface"),
        weights={
            "gemini": 0.3, "gptzero": 0.25, "sapling": 0.2,
            "copyleaks": 0.15, "huggingface": 0.1,
        },
        threshold=0.5,
    ),
    Strategy(
        name="fast",
        description="Uses the fastest detectors for quick results",
        provider_ids=("gemini", "huggingface"),
        weights={"gemini": 0.7, "huggingface": 0.3},
        threshold=0.6,
    ),
)


class StrategyRegistry:
    """Immutable name -> Strategy lookup."""

    def __init__(self, strategies: Iterable[Strategy] = BUILTIN_STRATEGIES):
        entries: dict[str, Strategy] = {}
        for strategy in strategies:
            if strategy.name in entries:
                raise InvalidStrategyWeights(f"Duplicate strategy name: {strategy.name}")
            entries[strategy.name] = strategy
        self._strategies = MappingProxyType(entries)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        include_builtins: bool = True,
    ) -> "StrategyRegistry":
        """Load extra strategies from a JSON list of strategy objects."""
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidStrategyWeights(f"Cannot read strategies from {path}: {e}") from e
        if not isinstance(raw, list):
            raise InvalidStrategyWeights(f"{path}: expected a JSON list of strategies")

        loaded = [Strategy.from_dict(item) for item in raw]
        base = list(BUILTIN_STRATEGIES) if include_builtins else []
        return cls(base + loaded)

    def list(self) -> tuple[Strategy, ...]:
        return tuple(self._strategies.values())

    def get(self, name: str) -> Strategy:
        try:
            return self._strategies[name]
        except KeyError:
            raise UnknownStrategy(name, self.names) from None

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._strategies)

    @property
    def provider_ids(self) -> tuple[str, ...]:
        """Every provider id referenced by any strategy, first-seen order."""
        seen: dict[str, None] = {}
        for strategy in self._strategies.values():
            for pid in strategy.provider_ids:
                seen.setdefault(pid)
        return tuple(seen)

    def __contains__(self, name: object) -> bool:
        return name in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)
