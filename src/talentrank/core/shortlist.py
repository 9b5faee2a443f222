"""Guardrail-governed shortlist selection."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Literal

import structlog

from ..schemas import DEFAULT_GUARDRAILS, GuardrailConfig, Job
from .matcher import MatchScore
from .modes import FIRE_DRILL_NOTE, OperatingMode, apply_fire_drill_thresholds, mode_profile
from .scoring_config import clamp

logger = structlog.get_logger(__name__)

ShortlistStrategy = Literal["quality", "strict"]

MISSING_CONFIDENCE_NOTE = "Confidence unavailable; using match score only."


@dataclass(slots=True)
class ScoredCandidate:
    """One pool member as seen by the selector."""

    candidate_id: str
    score: int
    confidence: int | None = None
    missing_required_skills: list[str] = field(default_factory=list)
    is_internal: bool = False
    match: MatchScore | None = None

    @classmethod
    def from_match(
        cls,
        match: MatchScore,
        *,
        confidence: int | None = None,
        is_internal: bool = False,
    ) -> "ScoredCandidate":
        return cls(
            candidate_id=match.candidate_id,
            score=match.score,
            confidence=confidence,
            missing_required_skills=match.missing_required_skills,
            is_internal=is_internal,
            match=match,
        )


@dataclass(slots=True)
class ShortlistEntry:
    candidate_id: str
    score: int
    confidence: int | None
    shortlisted: bool
    rank: int | None = None
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class ShortlistResult:
    job_id: str
    strategy: ShortlistStrategy
    shortlisted: list[ShortlistEntry]
    not_shortlisted: list[ShortlistEntry]
    notes: list[str] = field(default_factory=list)
    cutoff_score: float = 0.0

    @property
    def shortlisted_candidates(self) -> list[str]:
        return [entry.candidate_id for entry in self.shortlisted]

    @property
    def not_shortlisted_candidates(self) -> list[str]:
        return [entry.candidate_id for entry in self.not_shortlisted]

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "strategy": self.strategy,
            "cutoff_score": self.cutoff_score,
            "shortlisted": [entry.to_dict() for entry in self.shortlisted],
            "not_shortlisted": [entry.to_dict() for entry in self.not_shortlisted],
            "notes": list(self.notes),
        }


def _excluded(candidate: ScoredCandidate, reason: str) -> ShortlistEntry:
    return ShortlistEntry(
        candidate_id=candidate.candidate_id,
        score=candidate.score,
        confidence=candidate.confidence,
        shortlisted=False,
        reason=reason,
    )


def _safety_reason(candidate: ScoredCandidate, guardrails: GuardrailConfig, cutoff: float) -> str | None:
    if guardrails.safety.exclude_internal_candidates and candidate.is_internal:
        return "Excluded: internal candidate"
    if guardrails.safety.require_must_haves and candidate.missing_required_skills:
        return f"Missing required skill(s): {', '.join(candidate.missing_required_skills)}"
    if candidate.score < cutoff:
        return f"Match score {candidate.score} below minimum {cutoff:g}"
    return None


def run_shortlist(
    job: Job,
    pool: Iterable[ScoredCandidate],
    guardrails: GuardrailConfig = DEFAULT_GUARDRAILS,
    mode: OperatingMode | str | None = OperatingMode.PILOT,
    *,
    min_score_adjustment: int = 0,
) -> ShortlistResult:
    """Select the shortlist for ``job`` from an already-scored pool.

    Every pool member ends up in exactly one of ``shortlisted`` or
    ``not_shortlisted``; the latter carry the reason they were dropped.
    """
    candidates = list(pool)
    profile = mode_profile(mode)
    notes: list[str] = []

    if profile.forces_preset:
        guardrails = apply_fire_drill_thresholds(guardrails)
        notes.append(FIRE_DRILL_NOTE)
    strategy: ShortlistStrategy = profile.forced_shortlist_strategy or guardrails.shortlist.strategy

    confidence_available = any(candidate.confidence is not None for candidate in candidates)
    if candidates and not confidence_available:
        notes.append(MISSING_CONFIDENCE_NOTE)

    def effective_confidence(candidate: ScoredCandidate) -> int:
        return candidate.confidence if candidate.confidence is not None else candidate.score

    thresholds = guardrails.thresholds
    cutoff = clamp(thresholds.min_match_score + min_score_adjustment, 0.0, 100.0)

    eligible: list[ScoredCandidate] = []
    dropped: list[ShortlistEntry] = []
    for candidate in candidates:
        reason = _safety_reason(candidate, guardrails, cutoff)
        if reason is None:
            eligible.append(candidate)
        else:
            dropped.append(_excluded(candidate, reason))

    selected: list[ScoredCandidate] = []
    if strategy == "strict":
        score_floor = max(thresholds.shortlist_min_score, cutoff)
        confidence_floor = guardrails.shortlist.min_confidence
        for candidate in eligible:
            if candidate.score < score_floor:
                dropped.append(
                    _excluded(candidate, f"Match score {candidate.score} below shortlist floor {score_floor:g}")
                )
            elif confidence_available and effective_confidence(candidate) < confidence_floor:
                dropped.append(
                    _excluded(
                        candidate,
                        f"Confidence {effective_confidence(candidate)} below floor {confidence_floor:g}",
                    )
                )
            else:
                selected.append(candidate)
        selected.sort(key=lambda c: (-c.score, c.candidate_id))
    else:
        if confidence_available:
            ranked = sorted(eligible, key=lambda c: (-c.score, -effective_confidence(c), c.candidate_id))
        else:
            ranked = sorted(eligible, key=lambda c: (-c.score, c.candidate_id))
        limit = guardrails.max_candidates
        selected = ranked if limit is None else ranked[:limit]
        for candidate in ranked[len(selected) :]:
            dropped.append(_excluded(candidate, f"Outside top {limit} candidates"))

    shortlisted = [
        ShortlistEntry(
            candidate_id=candidate.candidate_id,
            score=candidate.score,
            confidence=candidate.confidence,
            shortlisted=True,
            rank=index,
            reason="Shortlisted",
        )
        for index, candidate in enumerate(selected, start=1)
    ]
    dropped.sort(key=lambda entry: (-entry.score, entry.candidate_id))

    logger.info(
        "shortlist.completed",
        job_id=job.job_id,
        strategy=strategy,
        mode=profile.mode.value,
        pool_size=len(candidates),
        shortlisted=len(shortlisted),
        not_shortlisted=len(dropped),
    )
    return ShortlistResult(
        job_id=job.job_id,
        strategy=strategy,
        shortlisted=shortlisted,
        not_shortlisted=dropped,
        notes=notes,
        cutoff_score=cutoff,
    )


__all__ = [
    "MISSING_CONFIDENCE_NOTE",
    "ScoredCandidate",
    "ShortlistEntry",
    "ShortlistResult",
    "run_shortlist",
]
