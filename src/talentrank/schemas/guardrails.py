"""Tenant guardrail documents.

Stored documents use camelCase keys (``minMatchScore``); Python callers may
use either the alias or the snake_case field name. The ``scoring`` section
is a tagged union on ``strategy`` so each strategy carries its own weight
defaults.
"""

from __future__ import annotations

import copy
from types import MappingProxyType
from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..errors import GuardrailValidationError
from .tradeoffs import TradeoffDeclaration

PresetName = Literal["conservative", "balanced", "aggressive", "demo-safe"]
ScoringStrategy = Literal["weighted", "simple"]
ShortlistStrategy = Literal["quality", "strict"]
ExplainVerbosity = Literal["compact", "detailed"]

PRESET_NAMES: tuple[str, ...] = ("conservative", "balanced", "aggressive", "demo-safe")


class _GuardrailSection(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SignalWeights(_GuardrailSection):
    """Per-signal weights on a 0-100 scale; renormalized before use."""

    must_have: float = Field(default=40.0, ge=0.0)
    nice_to_have: float = Field(default=20.0, ge=0.0)
    experience: float = Field(default=25.0, ge=0.0)
    location: float = Field(default=15.0, ge=0.0)
    candidate_signals: float | None = Field(default=None, ge=0.0)


class Thresholds(_GuardrailSection):
    min_match_score: float = Field(default=60.0, ge=0.0, le=100.0)
    shortlist_min_score: float = Field(default=75.0, ge=0.0, le=100.0)
    shortlist_max_candidates: int | None = Field(default=10, ge=1)

    @field_validator("shortlist_min_score")
    @classmethod
    def _not_below_min_match(cls, value: float, info: ValidationInfo) -> float:
        minimum = info.data.get("min_match_score")
        if minimum is not None and value < minimum:
            raise ValueError(
                f"shortlistMinScore ({value:g}) must be greater than or equal to "
                f"minMatchScore ({minimum:g})"
            )
        return value


class WeightedScoring(_GuardrailSection):
    strategy: Literal["weighted"] = "weighted"
    weights: SignalWeights = Field(default_factory=SignalWeights)
    thresholds: Thresholds = Field(default_factory=Thresholds)
    tradeoffs: TradeoffDeclaration | None = None


class SimpleScoring(_GuardrailSection):
    strategy: Literal["simple"] = "simple"
    weights: SignalWeights = Field(
        default_factory=lambda: SignalWeights(
            must_have=70.0, nice_to_have=30.0, experience=0.0, location=0.0
        )
    )
    thresholds: Thresholds = Field(default_factory=Thresholds)
    tradeoffs: TradeoffDeclaration | None = None


ScoringSettings = Annotated[Union[WeightedScoring, SimpleScoring], Field(discriminator="strategy")]


class ExplainSettings(_GuardrailSection):
    verbosity: ExplainVerbosity = "compact"
    include_weights: bool = True


class SafetySettings(_GuardrailSection):
    require_must_haves: bool = True
    exclude_internal_candidates: bool = False


class ShortlistSettings(_GuardrailSection):
    strategy: ShortlistStrategy = "quality"
    max_candidates: int | None = Field(default=None, ge=1)
    min_confidence: float = Field(default=75.0, ge=0.0, le=100.0)


class GuardrailConfig(BaseModel):
    """Validated guardrail bundle for one tenant."""

    preset: PresetName | None = None
    scoring: ScoringSettings = Field(default_factory=WeightedScoring)
    explain: ExplainSettings = Field(default_factory=ExplainSettings)
    safety: SafetySettings = Field(default_factory=SafetySettings)
    shortlist: ShortlistSettings = Field(default_factory=ShortlistSettings)

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _default_strategy(cls, data: Any) -> Any:
        if isinstance(data, dict):
            scoring = data.get("scoring")
            if isinstance(scoring, dict) and "strategy" not in scoring:
                data = {**data, "scoring": {**scoring, "strategy": "weighted"}}
        return data

    @property
    def thresholds(self) -> Thresholds:
        return self.scoring.thresholds

    @property
    def max_candidates(self) -> int | None:
        if self.shortlist.max_candidates is not None:
            return self.shortlist.max_candidates
        return self.scoring.thresholds.shortlist_max_candidates

    def to_document(self) -> dict[str, Any]:
        """Serialize with stored (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True)


def _preset(payload: dict[str, Any]) -> GuardrailConfig:
    return GuardrailConfig.model_validate(payload)


GUARDRAIL_PRESETS: Mapping[str, GuardrailConfig] = MappingProxyType(
    {
        "conservative": _preset(
            {
                "preset": "conservative",
                "scoring": {
                    "strategy": "weighted",
                    "weights": {"mustHave": 50, "niceToHave": 15, "experience": 25, "location": 10},
                    "thresholds": {
                        "minMatchScore": 70,
                        "shortlistMinScore": 85,
                        "shortlistMaxCandidates": 5,
                    },
                },
                "explain": {"verbosity": "detailed", "includeWeights": True},
                "safety": {"requireMustHaves": True, "excludeInternalCandidates": True},
                "shortlist": {"strategy": "strict", "minConfidence": 75},
            }
        ),
        "balanced": _preset({"preset": "balanced"}),
        "aggressive": _preset(
            {
                "preset": "aggressive",
                "scoring": {
                    "strategy": "weighted",
                    "weights": {"mustHave": 35, "niceToHave": 25, "experience": 20, "location": 20},
                    "thresholds": {
                        "minMatchScore": 50,
                        "shortlistMinScore": 60,
                        "shortlistMaxCandidates": 20,
                    },
                },
                "safety": {"requireMustHaves": False, "excludeInternalCandidates": False},
                "shortlist": {"strategy": "quality", "minConfidence": 50},
            }
        ),
        "demo-safe": _preset(
            {
                "preset": "demo-safe",
                "scoring": {
                    "strategy": "simple",
                    "thresholds": {
                        "minMatchScore": 55,
                        "shortlistMinScore": 70,
                        "shortlistMaxCandidates": 5,
                    },
                },
                "explain": {"verbosity": "detailed", "includeWeights": False},
                "safety": {"requireMustHaves": True, "excludeInternalCandidates": True},
            }
        ),
    }
)

DEFAULT_GUARDRAILS: GuardrailConfig = GuardrailConfig()


def merge_config(base: Mapping[str, Any], override: Any) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``; non-mapping overrides are ignored."""
    result: dict[str, Any] = copy.deepcopy(dict(base))
    if not isinstance(override, Mapping):
        return result
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = merge_config(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _canonical(payload: Mapping[str, Any]) -> dict[str, Any]:
    # Re-key snake_case input so it merges onto camelCase preset documents.
    canonical: dict[str, Any] = {}
    for key, value in payload.items():
        camel = to_camel(key) if isinstance(key, str) and "_" in key else key
        canonical[camel] = _canonical(value) if isinstance(value, Mapping) else value
    return canonical


def parse_guardrails(
    payload: Mapping[str, Any] | None,
    *,
    base: GuardrailConfig | None = None,
) -> GuardrailConfig:
    """Merge a (possibly partial) payload over its preset and validate it.

    The payload's own ``preset`` wins over ``base``; without either the
    defaults are used. Raises :class:`GuardrailValidationError` with
    field-qualified messages.
    """
    if payload is not None and not isinstance(payload, Mapping):
        raise GuardrailValidationError([("<root>", "guardrails payload must be a mapping")])
    override = _canonical(payload or {})
    preset_name = override.get("preset")
    if preset_name is not None and preset_name not in GUARDRAIL_PRESETS:
        raise GuardrailValidationError(
            [("preset", f"unknown preset {preset_name!r}; expected one of {', '.join(PRESET_NAMES)}")]
        )
    if preset_name is not None:
        seed = GUARDRAIL_PRESETS[preset_name]
    else:
        seed = base or DEFAULT_GUARDRAILS
    merged = merge_config(seed.to_document(), override)
    try:
        return GuardrailConfig.model_validate(merged)
    except ValidationError as exc:
        raise GuardrailValidationError.from_pydantic(exc) from exc


__all__ = [
    "PresetName",
    "ScoringStrategy",
    "ShortlistStrategy",
    "ExplainVerbosity",
    "PRESET_NAMES",
    "SignalWeights",
    "Thresholds",
    "WeightedScoring",
    "SimpleScoring",
    "ScoringSettings",
    "ExplainSettings",
    "SafetySettings",
    "ShortlistSettings",
    "GuardrailConfig",
    "GUARDRAIL_PRESETS",
    "DEFAULT_GUARDRAILS",
    "merge_config",
    "parse_guardrails",
]
