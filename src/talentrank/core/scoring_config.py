"""Weight vectors and numeric helpers shared by every scorer."""

from __future__ import annotations

import math
from typing import Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T", bound="WeightVector")


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, matching stored score semantics."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return int(clamp(round_half_up(value), 0, 100))


def _clean(value: float | None) -> float:
    if value is None:
        return 0.0
    numeric = float(value)
    if math.isnan(numeric) or math.isinf(numeric):
        return 0.0
    return max(0.0, numeric)


def normalize_weights(
    weights: Mapping[str, float | None],
    *,
    fallback: Mapping[str, float] | None = None,
) -> dict[str, float]:
    """Scale a weight mapping so it sums to 1.

    Negative and non-finite entries are floored at 0. When nothing positive
    remains the fallback is normalized instead, or the weight is split
    evenly when no fallback is given.
    """
    cleaned = {key: _clean(value) for key, value in weights.items()}
    total = sum(cleaned.values())
    if total <= 0:
        if fallback is not None:
            return normalize_weights(fallback)
        if not cleaned:
            return {}
        share = 1.0 / len(cleaned)
        return {key: share for key in cleaned}
    return {key: value / total for key, value in cleaned.items()}


class WeightVector(BaseModel):
    """Named non-negative weights; ``normalized()`` returns a copy summing to 1."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    def as_dict(self) -> dict[str, float]:
        return {name: float(getattr(self, name)) for name in type(self).model_fields}

    def normalized(self: T, fallback: T | None = None) -> T:
        normalized = normalize_weights(
            self.as_dict(),
            fallback=fallback.as_dict() if fallback is not None else None,
        )
        return type(self)(**normalized)

    def total(self) -> float:
        return sum(self.as_dict().values())


class MatchScoringWeights(WeightVector):
    """Composite weights for the match score sub-signals."""

    skills: float = Field(default=0.60, ge=0.0)
    seniority: float = Field(default=0.20, ge=0.0)
    location: float = Field(default=0.10, ge=0.0)
    candidate_signals: float = Field(default=0.10, ge=0.0)


class CandidateSignalWeights(WeightVector):
    """Weights for the engagement sub-signals."""

    recent_activity: float = Field(default=0.40, ge=0.0)
    outreach_interactions: float = Field(default=0.30, ge=0.0)
    status_progression: float = Field(default=0.30, ge=0.0)


class ConfidenceThresholds(BaseModel):
    high: float = 75.0
    medium: float = 50.0

    model_config = ConfigDict(extra="forbid", frozen=True)


DEFAULT_MATCH_WEIGHTS = MatchScoringWeights()
DEFAULT_SIGNAL_WEIGHTS = CandidateSignalWeights()
DEFAULT_CONFIDENCE_THRESHOLDS = ConfidenceThresholds()


class ScoringConfig(BaseModel):
    """Scorer-level settings that are not tenant guardrails."""

    match_weights: MatchScoringWeights = Field(default_factory=MatchScoringWeights)
    signal_weights: CandidateSignalWeights = Field(default_factory=CandidateSignalWeights)
    confidence_thresholds: ConfidenceThresholds = Field(default_factory=ConfidenceThresholds)
    partial_credit_similarity: float | None = Field(default=90.0, ge=0.0, le=100.0)
    top_reasons_limit: int = Field(default=5, ge=1)

    model_config = ConfigDict(extra="forbid", frozen=True)


__all__ = [
    "clamp",
    "clamp_score",
    "round_half_up",
    "normalize_weights",
    "WeightVector",
    "MatchScoringWeights",
    "CandidateSignalWeights",
    "ConfidenceThresholds",
    "ScoringConfig",
    "DEFAULT_MATCH_WEIGHTS",
    "DEFAULT_SIGNAL_WEIGHTS",
    "DEFAULT_CONFIDENCE_THRESHOLDS",
]
