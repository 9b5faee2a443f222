"""Business tradeoffs mapped onto match weight perturbations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import structlog
from pydantic import ValidationError

from ..errors import TradeoffValidationError
from ..schemas import DEFAULT_TRADEOFF_DECLARATION, GuardrailConfig, TradeoffDeclaration
from .scoring_config import DEFAULT_MATCH_WEIGHTS, MatchScoringWeights, normalize_weights

logger = structlog.get_logger(__name__)

# Candidate-signal share used when a tenant leaves ``candidateSignals`` unset,
# on the guardrail 0-100 weight scale.
DEFAULT_CANDIDATE_SIGNAL_SHARE = DEFAULT_MATCH_WEIGHTS.candidate_signals * 100


@dataclass(slots=True)
class TradeoffAdjustment:
    weights: MatchScoringWeights
    min_score_adjustment: int
    rationale: list[str] = field(default_factory=list)


def _as_mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, TradeoffDeclaration):
        return value.model_dump()
    if isinstance(value, Mapping):
        return dict(value)
    return {}


def parse_tradeoffs(
    overrides: Mapping[str, Any] | TradeoffDeclaration | None,
    *,
    defaults: TradeoffDeclaration = DEFAULT_TRADEOFF_DECLARATION,
) -> TradeoffDeclaration:
    """Merge overrides onto ``defaults`` and validate.

    Raises :class:`TradeoffValidationError` naming each invalid field.
    """
    if overrides is not None and not isinstance(overrides, (Mapping, TradeoffDeclaration)):
        raise TradeoffValidationError([("tradeoffs", "tradeoff overrides must be a mapping")])
    merged = {**defaults.model_dump(by_alias=True), **_as_mapping(overrides)}
    # Defaults are dumped with camelCase keys; drop them where the override used snake_case.
    for name, info in TradeoffDeclaration.model_fields.items():
        if name in merged and info.alias in merged:
            merged.pop(info.alias)
    try:
        return TradeoffDeclaration.model_validate(merged)
    except ValidationError as exc:
        raise TradeoffValidationError.from_pydantic(exc, prefix="tradeoffs") from exc


def resolve_tradeoffs(
    defaults: TradeoffDeclaration = DEFAULT_TRADEOFF_DECLARATION,
    overrides: Mapping[str, Any] | TradeoffDeclaration | None = None,
) -> TradeoffDeclaration:
    """Lenient variant of :func:`parse_tradeoffs`: invalid overrides yield ``defaults``."""
    try:
        return parse_tradeoffs(overrides, defaults=defaults)
    except TradeoffValidationError as exc:
        logger.warning("tradeoffs.invalid_override", errors=exc.errors)
        return defaults


def extract_tradeoff_defaults(scoring: Mapping[str, Any] | None) -> TradeoffDeclaration:
    """Read tenant tradeoff defaults from a scoring section.

    Accepts ``{"tradeoffs": {...}}`` or ``{"tradeoffs": {"defaults": {...}}}``.
    """
    raw = scoring.get("tradeoffs") if isinstance(scoring, Mapping) else None
    if isinstance(raw, Mapping) and "defaults" in raw:
        raw = raw.get("defaults")
    return resolve_tradeoffs(DEFAULT_TRADEOFF_DECLARATION, raw if isinstance(raw, Mapping) else None)


def format_tradeoff_declaration(tradeoffs: TradeoffDeclaration) -> str:
    phrases = [
        "Speed over quality" if tradeoffs.speed_quality == "speed" else "Quality over speed",
        "Rate efficiency over experience" if tradeoffs.rate_experience == "rate" else "Experience over rate",
        "Availability over domain fit"
        if tradeoffs.availability_fit == "availability"
        else "Domain fit over availability",
        "Risk controls over upside" if tradeoffs.risk_upside == "risk" else "Upside over risk controls",
    ]
    return "; ".join(phrases)


def weights_from_guardrails(
    guardrails: GuardrailConfig,
    *,
    candidate_signal_share: float = DEFAULT_CANDIDATE_SIGNAL_SHARE,
) -> MatchScoringWeights:
    """Project tenant signal weights onto the match composite vector."""
    weights = guardrails.scoring.weights
    signals = weights.candidate_signals if weights.candidate_signals is not None else candidate_signal_share
    return MatchScoringWeights(
        skills=weights.must_have + weights.nice_to_have,
        seniority=weights.experience,
        location=weights.location,
        candidate_signals=signals,
    ).normalized(fallback=DEFAULT_MATCH_WEIGHTS)


def apply_tradeoffs_to_weights(
    base_weights: MatchScoringWeights,
    tradeoffs: TradeoffDeclaration,
) -> TradeoffAdjustment:
    """Perturb ``base_weights`` per declaration and renormalize.

    The rationale always has four entries in a fixed order.
    """
    bias = {"skills": 0.0, "seniority": 0.0, "location": 0.0, "candidate_signals": 0.0}
    rationale: list[str] = []
    min_score_adjustment = 0

    if tradeoffs.speed_quality == "speed":
        bias["candidate_signals"] += 0.08
        bias["skills"] -= 0.05
        rationale.append("Prioritized speed over deep quality review (more signal weight).")
    else:
        rationale.append("Quality favored over speed (skill weighting preserved).")

    if tradeoffs.rate_experience == "rate":
        bias["seniority"] -= 0.06
        bias["candidate_signals"] += 0.02
        rationale.append("Rate sensitivity enabled (reduced experience weighting).")
    else:
        rationale.append("Experience favored over rate sensitivity.")

    if tradeoffs.availability_fit == "availability":
        bias["location"] += 0.05
        bias["skills"] -= 0.02
        rationale.append("Availability emphasized over domain fit (location and signals nudged up).")
    else:
        rationale.append("Domain fit prioritized over immediate availability.")

    if tradeoffs.risk_upside == "risk":
        min_score_adjustment += 5
        bias["skills"] += 0.02
        rationale.append("Risk controls tightened (slightly higher bar).")
    else:
        min_score_adjustment -= 5
        bias["candidate_signals"] += 0.03
        rationale.append("Upside-seeking bias enabled (stretch candidates allowed).")

    base = base_weights.as_dict()
    adjusted = normalize_weights(
        {name: max(0.0, base[name] + delta) for name, delta in bias.items()},
        fallback=DEFAULT_MATCH_WEIGHTS.as_dict(),
    )
    return TradeoffAdjustment(
        weights=MatchScoringWeights(**adjusted),
        min_score_adjustment=min_score_adjustment,
        rationale=rationale,
    )


__all__ = [
    "TradeoffDeclaration",
    "TradeoffAdjustment",
    "DEFAULT_TRADEOFF_DECLARATION",
    "parse_tradeoffs",
    "resolve_tradeoffs",
    "extract_tradeoff_defaults",
    "format_tradeoff_declaration",
    "weights_from_guardrails",
    "apply_tradeoffs_to_weights",
]
