"""Confidence scoring from profile completeness, skill overlap and recency."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Literal

from ..schemas import Candidate, Job
from ..timeutils import days_since, resolve_as_of
from .scoring_config import DEFAULT_CONFIDENCE_THRESHOLDS, ConfidenceThresholds, clamp, round_half_up

ConfidenceCategory = Literal["HIGH", "MEDIUM", "LOW"]

COMPLETENESS_MAX = 40
SKILL_COVERAGE_MAX = 40
RECENCY_MAX = 20

FRESH_DAYS = 30
STALE_DAYS = 180
STALE_FLOOR_FACTOR = 0.2
EXPIRED_FACTOR = 0.1
NEUTRAL_RECENCY_FACTOR = 0.5


@dataclass(slots=True, frozen=True)
class ConfidenceContext:
    """Inputs to the confidence score."""

    job_skills: tuple[str, ...]
    candidate_skills: tuple[str, ...]
    has_title: bool = False
    has_location: bool = False
    created_at: datetime | None = None

    @classmethod
    def build(
        cls,
        *,
        job_skills: Iterable[str],
        candidate_skills: Iterable[str],
        has_title: bool = False,
        has_location: bool = False,
        created_at: datetime | None = None,
    ) -> "ConfidenceContext":
        return cls(
            job_skills=tuple(job_skills),
            candidate_skills=tuple(candidate_skills),
            has_title=has_title,
            has_location=has_location,
            created_at=created_at,
        )


@dataclass(slots=True, frozen=True)
class ConfidenceBreakdown:
    data_completeness: int
    skill_coverage: int
    recency: int
    total: int


@dataclass(slots=True)
class MatchConfidence:
    score: int
    category: ConfidenceCategory
    breakdown: ConfidenceBreakdown
    reasons: list[str] = field(default_factory=list)


def _jaccard(left: Iterable[str], right: Iterable[str]) -> float:
    set_a = {item.strip().lower() for item in left if item and item.strip()}
    set_b = {item.strip().lower() for item in right if item and item.strip()}
    if not set_a or not set_b:
        return 0.0
    intersection = len(set_a & set_b)
    union = len(set_a | set_b)
    return intersection / union if union else 0.0


def recency_factor(created_at: datetime | None, as_of: datetime) -> float:
    """1.0 up to 30 days, linear to 0.2 at 180 days, 0.1 beyond; 0.5 when unknown."""
    if created_at is None:
        return NEUTRAL_RECENCY_FACTOR
    age_days = days_since(created_at, as_of)
    if age_days <= FRESH_DAYS:
        return 1.0
    if age_days > STALE_DAYS:
        return EXPIRED_FACTOR
    progress = (age_days - FRESH_DAYS) / (STALE_DAYS - FRESH_DAYS)
    return clamp(1.0 - progress * (1.0 - STALE_FLOOR_FACTOR), STALE_FLOOR_FACTOR, 1.0)


def _completeness(context: ConfidenceContext) -> int:
    score = 0
    if context.has_title:
        score += 15
    if context.has_location:
        score += 5
    skill_count = len(context.candidate_skills)
    if skill_count >= 5:
        score += 20
    elif skill_count >= 3:
        score += 10
    elif skill_count >= 1:
        score += 5
    return int(clamp(score, 0, COMPLETENESS_MAX))


def compute_confidence_score(
    context: ConfidenceContext,
    *,
    as_of: datetime | None = None,
) -> ConfidenceBreakdown:
    """Return the 0-100 confidence breakdown.

    Each component is rounded and clamped to its band before summing, so the
    total is always the sum of the reported parts.
    """
    reference = resolve_as_of(as_of)

    completeness = _completeness(context)
    skill_coverage = int(
        clamp(round_half_up(_jaccard(context.job_skills, context.candidate_skills) * SKILL_COVERAGE_MAX), 0, SKILL_COVERAGE_MAX)
    )
    recency = int(clamp(round_half_up(recency_factor(context.created_at, reference) * RECENCY_MAX), 0, RECENCY_MAX))
    total = int(clamp(completeness + skill_coverage + recency, 0, 100))

    return ConfidenceBreakdown(
        data_completeness=completeness,
        skill_coverage=skill_coverage,
        recency=recency,
        total=total,
    )


def confidence_category(
    score: float,
    thresholds: ConfidenceThresholds = DEFAULT_CONFIDENCE_THRESHOLDS,
) -> ConfidenceCategory:
    if score >= thresholds.high:
        return "HIGH"
    if score >= thresholds.medium:
        return "MEDIUM"
    return "LOW"


def _confidence_reasons(
    candidate: Candidate,
    job: Job,
    breakdown: ConfidenceBreakdown,
    category: ConfidenceCategory,
) -> list[str]:
    reasons = [
        "Candidate title present improves data completeness."
        if candidate.has_title
        else "Missing candidate title reduces data completeness.",
        "Candidate location recorded supports location-aware confidence."
        if candidate.has_location
        else "Missing candidate location lowers location confidence.",
        f"Skill overlap contributes {breakdown.skill_coverage}/{SKILL_COVERAGE_MAX} from "
        f"{len(candidate.skills)} candidate skill(s) against {len(job.skills)} job skill(s).",
    ]
    touched = candidate.last_touched_at
    if touched is not None:
        reasons.append(
            f"Profile recency contributes {breakdown.recency}/{RECENCY_MAX} "
            f"(last updated {touched.date().isoformat()})."
        )
    else:
        reasons.append(
            f"Profile recency contributes {breakdown.recency}/{RECENCY_MAX} (no recent update available)."
        )
    reasons.append(f"Overall confidence categorized as {category}.")
    return reasons


def compute_match_confidence(
    job: Job,
    candidate: Candidate,
    *,
    as_of: datetime | None = None,
    thresholds: ConfidenceThresholds = DEFAULT_CONFIDENCE_THRESHOLDS,
) -> MatchConfidence:
    """Confidence for a job/candidate pair with category and reasons."""
    context = ConfidenceContext.build(
        job_skills=job.skill_keys(),
        candidate_skills=candidate.skill_keys(),
        has_title=candidate.has_title,
        has_location=candidate.has_location,
        created_at=candidate.last_touched_at,
    )
    breakdown = compute_confidence_score(context, as_of=as_of)
    category = confidence_category(breakdown.total, thresholds)
    return MatchConfidence(
        score=breakdown.total,
        category=category,
        breakdown=breakdown,
        reasons=_confidence_reasons(candidate, job, breakdown, category),
    )
