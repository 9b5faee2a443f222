"""Multi-signal match scoring with deterministic explanations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from rapidfuzz import fuzz

from ..schemas import Candidate, CandidateSkill, Job, JobCandidateLink, JobSkill
from .explanation import MatchExplanation, Reason, SkillOverlap, Verbosity, build_explanation
from .scoring_config import (
    DEFAULT_MATCH_WEIGHTS,
    CandidateSignalWeights,
    MatchScoringWeights,
    ScoringConfig,
    clamp,
    clamp_score,
    normalize_weights,
    round_half_up,
)
from .signals import SignalResult, compute_candidate_signal_score

ScoringStrategy = Literal["weighted", "simple"]

PARTIAL_CREDIT = 0.5
NEUTRAL_SCORE = 50
NEUTRAL_SIGNAL_REASON = "Candidate engagement signals not supplied; using neutral score."

SENIORITY_LADDER: tuple[str, ...] = (
    "intern",
    "junior",
    "mid",
    "senior",
    "lead",
    "principal",
    "director",
    "executive",
)
SENIORITY_ALIASES: dict[str, str] = {
    "entry": "junior",
    "entry-level": "junior",
    "associate": "junior",
    "jr": "junior",
    "graduate": "junior",
    "intermediate": "mid",
    "mid-level": "mid",
    "midlevel": "mid",
    "sr": "senior",
    "staff": "lead",
    "manager": "lead",
    "head": "director",
    "vp": "executive",
    "chief": "executive",
    "c-level": "executive",
}
# Score by ladder distance; anything further apart scores the floor.
_SENIORITY_DISTANCE_SCORES = (100, 70, 40)
_SENIORITY_FLOOR = 20

LOCATION_REMOTE_SCORE = 80
LOCATION_REGION_SCORE = 70
LOCATION_MISMATCH_SCORE = 30
LOCATION_FUZZY_THRESHOLD = 85.0

_LOCATION_SPLIT = re.compile(r"[,/-]")


@dataclass(slots=True)
class MatchContext:
    job: Job
    candidate: Candidate


@dataclass(slots=True)
class MatchOptions:
    """Per-call scoring knobs.

    ``candidate_signals`` wins over ``link``/``outreach_count``; when neither it
    nor ``as_of`` is given the engagement sub-score is neutral so the result
    never depends on the wall clock.
    """

    weights: MatchScoringWeights | None = None
    strategy: ScoringStrategy = "weighted"
    skill_split: tuple[float, float] = (0.7, 0.3)
    candidate_signals: SignalResult | None = None
    link: JobCandidateLink | None = None
    outreach_count: int = 0
    signal_weights: CandidateSignalWeights | None = None
    as_of: datetime | None = None
    partial_credit_similarity: float | None = 90.0
    top_reasons_limit: int = 5
    verbosity: Verbosity = "compact"
    include_weights: bool = False


@dataclass(slots=True)
class SkillAssessment:
    score: int
    required_coverage: float
    optional_coverage: float
    overlap: list[SkillOverlap] = field(default_factory=list)
    missing_required: list[str] = field(default_factory=list)
    reasons: list[Reason] = field(default_factory=list)
    risks: list[str] = field(default_factory=list)


@dataclass(slots=True)
class AlignmentAssessment:
    score: int
    reason: Reason | None = None
    risk: str | None = None


@dataclass(slots=True)
class MatchScore:
    candidate_id: str
    job_id: str
    score: int
    skill_score: int
    seniority_score: int
    location_score: int
    candidate_signal_score: int
    required_coverage: float
    optional_coverage: float
    weights: dict[str, float]
    strategy: ScoringStrategy
    explanation: MatchExplanation
    candidate_signals: SignalResult | None = None

    @property
    def missing_required_skills(self) -> list[str]:
        return list(self.explanation.missing_skills)

    @property
    def has_all_required_skills(self) -> bool:
        return self.required_coverage >= 100.0


def _normalize(value: str | None) -> str:
    return (value or "").strip().lower()


def normalize_seniority(value: str | None) -> str | None:
    """Map a free-text level onto the seniority ladder, or ``None`` if unknown."""
    text = _normalize(value).replace("_", " ")
    if not text:
        return None
    if text in SENIORITY_LADDER:
        return text
    if text in SENIORITY_ALIASES:
        return SENIORITY_ALIASES[text]
    for token in re.split(r"[\s/]+", text):
        if token in SENIORITY_LADDER:
            return token
        if token in SENIORITY_ALIASES:
            return SENIORITY_ALIASES[token]
    return None


def _closest_candidate_skill(
    job_skill: JobSkill,
    candidate_skills: list[CandidateSkill],
    threshold: float,
) -> CandidateSkill | None:
    best: CandidateSkill | None = None
    best_score = threshold
    for skill in candidate_skills:
        similarity = fuzz.ratio(job_skill.key, skill.key)
        if similarity >= best_score and (best is None or similarity > best_score):
            best, best_score = skill, similarity
    return best


def assess_skills(
    job: Job,
    candidate: Candidate,
    *,
    skills_weight: float = 1.0,
    partial_credit_similarity: float | None = 90.0,
) -> SkillAssessment:
    """Required-weight skill score plus the per-skill overlap map."""
    candidate_by_key: dict[str, CandidateSkill] = {}
    for skill in candidate.skills:
        if skill.key and skill.key not in candidate_by_key:
            candidate_by_key[skill.key] = skill
    candidate_skills = list(candidate_by_key.values())

    job_skills = [skill for skill in job.skills if skill.key and skill.weight > 0]
    total_required = sum(skill.weight for skill in job_skills if skill.required)
    total_optional = sum(skill.weight for skill in job_skills if not skill.required)
    total_all = total_required + total_optional

    matched_required = 0.0
    matched_optional = 0.0
    overlap: list[SkillOverlap] = []
    missing_required: list[str] = []
    reasons: list[Reason] = []
    risks: list[str] = []

    for job_skill in job_skills:
        importance = "required" if job_skill.required else "preferred"
        label = "Required" if job_skill.required else "Nice-to-have"
        credit = 0.0
        partner: CandidateSkill | None = candidate_by_key.get(job_skill.key)
        if partner is not None:
            credit = 1.0
            status = "matched"
            note = f"Candidate lists {partner.name}."
        else:
            partner = (
                _closest_candidate_skill(job_skill, candidate_skills, partial_credit_similarity)
                if partial_credit_similarity is not None
                else None
            )
            if partner is not None:
                credit = PARTIAL_CREDIT
                status = "partial"
                note = f"Closest candidate skill is {partner.name}."
            else:
                status = "missing"
                note = "Not listed on candidate profile."

        overlap.append(
            SkillOverlap(
                skill=job_skill.name,
                status=status,
                importance=importance,
                weight=job_skill.weight,
                note=note,
            )
        )

        if job_skill.required:
            matched_required += job_skill.weight * credit
            share = job_skill.weight / total_required
        else:
            matched_optional += job_skill.weight * credit
            # Optional skills only move the score when nothing is required.
            share = job_skill.weight / total_optional if total_required == 0 else job_skill.weight / total_all / 2
        strength = skills_weight * share * credit * 100

        if status == "matched":
            reasons.append(Reason(f"{label} skill matched: {job_skill.name}", strength))
        elif status == "partial":
            reasons.append(
                Reason(f"{label} skill partially matched: {job_skill.name} via {partner.name}", strength)
            )
            if job_skill.required:
                risks.append(
                    f"Partial match for required skill: {job_skill.name} (candidate lists {partner.name})"
                )
        elif job_skill.required:
            missing_required.append(job_skill.name)
            risks.append(f"Missing required skill: {job_skill.name}")
        else:
            reasons.append(Reason(f"Missing nice-to-have skill: {job_skill.name}"))

    required_coverage = matched_required / total_required * 100 if total_required else 100.0
    optional_coverage = matched_optional / total_optional * 100 if total_optional else 100.0

    if not job_skills:
        score = 100
    elif not candidate_skills:
        score = 0
    elif total_required:
        score = clamp_score(required_coverage)
    else:
        score = clamp_score(optional_coverage)

    return SkillAssessment(
        score=score,
        required_coverage=required_coverage,
        optional_coverage=optional_coverage,
        overlap=overlap,
        missing_required=missing_required,
        reasons=reasons,
        risks=risks,
    )


def experience_alignment(job: Job, candidate: Candidate) -> float | None:
    """0-1 fit of total years against the job range; ``None`` if not comparable."""
    years = candidate.total_experience_years
    minimum = job.min_experience_years
    maximum = job.max_experience_years
    if years is None or (minimum is None and maximum is None):
        return None
    if minimum is not None and years < minimum:
        return clamp(years / max(minimum, 1.0), 0.0, 1.0)
    if maximum is not None and years > maximum:
        return clamp(max(maximum, 0.0) / max(years, 1.0), 0.0, 1.0)
    return 1.0


def assess_seniority(job: Job, candidate: Candidate, *, weight: float = 1.0) -> AlignmentAssessment:
    candidate_raw = (candidate.seniority_level or "").strip()
    job_raw = (job.seniority_level or "").strip()

    distance: int | None = None
    if candidate_raw and job_raw:
        candidate_level = normalize_seniority(candidate_raw)
        job_level = normalize_seniority(job_raw)
        if candidate_level is not None and job_level is not None:
            distance = abs(SENIORITY_LADDER.index(candidate_level) - SENIORITY_LADDER.index(job_level))
        elif _normalize(candidate_raw) == _normalize(job_raw):
            distance = 0

    # Off-ladder labels that differ are not comparable; use the experience range instead.
    if distance is not None:
        score = (
            _SENIORITY_DISTANCE_SCORES[distance]
            if distance < len(_SENIORITY_DISTANCE_SCORES)
            else _SENIORITY_FLOOR
        )
        if distance == 0:
            return AlignmentAssessment(score, Reason(f"Seniority aligns: {candidate_raw}", weight * score))
        if distance == 1:
            return AlignmentAssessment(
                score,
                Reason(f"Seniority close: candidate is {candidate_raw}, job requires {job_raw}", weight * score),
            )
        return AlignmentAssessment(
            score,
            risk=f"Seniority mismatch: candidate is {candidate_raw}, job requires {job_raw}",
        )

    alignment = experience_alignment(job, candidate)
    if alignment is None:
        return AlignmentAssessment(
            NEUTRAL_SCORE, Reason("Seniority comparison is limited due to missing data")
        )

    score = clamp_score(alignment * 100)
    years = candidate.total_experience_years
    if alignment >= 1.0:
        return AlignmentAssessment(
            score, Reason(f"Experience of {years:g} year(s) fits the required range", weight * score)
        )
    if job.min_experience_years is not None and years < job.min_experience_years:
        risk = (
            f"Experience below required range: {years:g} year(s) vs minimum "
            f"{job.min_experience_years:g}"
        )
    else:
        risk = (
            f"Experience above required range: {years:g} year(s) vs maximum "
            f"{job.max_experience_years:g}"
        )
    return AlignmentAssessment(score, risk=risk)


def _location_parts(value: str) -> set[str]:
    return {part.strip() for part in _LOCATION_SPLIT.split(value) if part.strip()}


def assess_location(job: Job, candidate: Candidate, *, weight: float = 1.0) -> AlignmentAssessment:
    candidate_raw = (candidate.location or "").strip()
    job_raw = (job.location or "").strip()
    candidate_loc = _normalize(candidate_raw)
    job_loc = _normalize(job_raw)

    if not candidate_loc or not job_loc:
        return AlignmentAssessment(
            NEUTRAL_SCORE, Reason("Location comparison is limited due to missing data")
        )
    if candidate_loc == job_loc:
        return AlignmentAssessment(100, Reason(f"Location matches: {candidate_raw}", weight * 100))
    if "remote" in candidate_loc or "remote" in job_loc:
        return AlignmentAssessment(
            LOCATION_REMOTE_SCORE,
            Reason(
                f"Remote-compatible location: candidate in {candidate_raw}, job in {job_raw}",
                weight * LOCATION_REMOTE_SCORE,
            ),
        )
    if _location_parts(candidate_loc) & _location_parts(job_loc) or (
        fuzz.token_set_ratio(candidate_loc, job_loc) >= LOCATION_FUZZY_THRESHOLD
    ):
        return AlignmentAssessment(
            LOCATION_REGION_SCORE,
            Reason(
                f"Location in same region: candidate in {candidate_raw}, job in {job_raw}",
                weight * LOCATION_REGION_SCORE,
            ),
        )
    return AlignmentAssessment(
        LOCATION_MISMATCH_SCORE,
        risk=f"Location mismatch: candidate in {candidate_raw}, job in {job_raw}",
    )


def _resolve_signals(candidate: Candidate, options: MatchOptions) -> SignalResult | None:
    if options.candidate_signals is not None:
        return options.candidate_signals
    if options.as_of is None:
        return None
    return compute_candidate_signal_score(
        candidate,
        options.link,
        options.outreach_count,
        options.signal_weights,
        as_of=options.as_of,
    )


def _signal_reasons(signals: SignalResult, weight: float) -> list[Reason]:
    sub_weights = signals.weights
    return [
        Reason(signals.recent_activity.reason, weight * sub_weights.recent_activity * signals.recent_activity.score),
        Reason(
            signals.outreach_interactions.reason,
            weight * sub_weights.outreach_interactions * signals.outreach_interactions.score,
        ),
        Reason(
            signals.status_progression.reason,
            weight * sub_weights.status_progression * signals.status_progression.score,
        ),
    ]


def compute_match_score(context: MatchContext, options: MatchOptions | None = None) -> MatchScore:
    """Score one candidate against one job.

    The explanation is built from the same intermediate values as the score,
    so identical inputs always produce identical output.
    """
    opts = options or MatchOptions()
    job, candidate = context.job, context.candidate
    weights = (opts.weights or DEFAULT_MATCH_WEIGHTS).normalized(fallback=DEFAULT_MATCH_WEIGHTS)

    skills = assess_skills(
        job,
        candidate,
        skills_weight=weights.skills,
        partial_credit_similarity=opts.partial_credit_similarity,
    )
    seniority = assess_seniority(job, candidate, weight=weights.seniority)
    location = assess_location(job, candidate, weight=weights.location)

    signals = _resolve_signals(candidate, opts)
    signal_score = signals.score if signals is not None else NEUTRAL_SCORE

    if opts.strategy == "simple":
        coverage = {"must_have": skills.required_coverage, "nice_to_have": skills.optional_coverage}
        # Only blend the skill classes the job actually lists.
        applicable = {
            key: share
            for key, share in zip(coverage, opts.skill_split)
            if (job.required_skills if key == "must_have" else job.optional_skills)
        }
        if applicable:
            split = normalize_weights(applicable, fallback={key: 1.0 for key in applicable})
            score = clamp_score(sum(coverage[key] * share for key, share in split.items()))
        else:
            split = normalize_weights(
                dict(zip(coverage, opts.skill_split)),
                fallback={"must_have": 0.5, "nice_to_have": 0.5},
            )
            score = 100
        applied_weights = {key: split.get(key, 0.0) for key in coverage}
    else:
        score = clamp_score(
            skills.score * weights.skills
            + seniority.score * weights.seniority
            + location.score * weights.location
            + signal_score * weights.candidate_signals
        )
        applied_weights = weights.as_dict()

    reasons: list[Reason] = list(skills.reasons)
    risks: list[str] = list(skills.risks)
    for assessment in (seniority, location):
        if assessment.reason is not None:
            reasons.append(assessment.reason)
        if assessment.risk is not None:
            risks.append(assessment.risk)
    if signals is not None:
        reasons.extend(_signal_reasons(signals, weights.candidate_signals))
    else:
        reasons.append(Reason(NEUTRAL_SIGNAL_REASON))

    explanation = build_explanation(
        reasons=reasons,
        skill_overlap=skills.overlap,
        missing_skills=skills.missing_required,
        risk_areas=risks,
        overall_score=score,
        limit=opts.top_reasons_limit,
        verbosity=opts.verbosity,
        weights={name: round(value, 4) for name, value in applied_weights.items()}
        if opts.include_weights
        else None,
    )

    return MatchScore(
        candidate_id=candidate.candidate_id,
        job_id=job.job_id,
        score=score,
        skill_score=skills.score,
        seniority_score=seniority.score,
        location_score=location.score,
        candidate_signal_score=signal_score,
        required_coverage=skills.required_coverage,
        optional_coverage=skills.optional_coverage,
        weights=applied_weights,
        strategy=opts.strategy,
        explanation=explanation,
        candidate_signals=signals,
    )


class MatchScorer:
    """Scorer bound to a :class:`ScoringConfig`, for dependency wiring."""

    def __init__(self, *, config: ScoringConfig | None = None) -> None:
        self._config = config or ScoringConfig()

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def options(self, **overrides) -> MatchOptions:
        base = {
            "weights": self._config.match_weights,
            "signal_weights": self._config.signal_weights,
            "partial_credit_similarity": self._config.partial_credit_similarity,
            "top_reasons_limit": self._config.top_reasons_limit,
        }
        base.update({key: value for key, value in overrides.items() if value is not None})
        return MatchOptions(**base)

    def score(self, job: Job, candidate: Candidate, **overrides) -> MatchScore:
        return compute_match_score(MatchContext(job=job, candidate=candidate), self.options(**overrides))


__all__ = [
    "MatchContext",
    "MatchOptions",
    "MatchScore",
    "MatchScorer",
    "SkillAssessment",
    "assess_skills",
    "assess_seniority",
    "assess_location",
    "experience_alignment",
    "normalize_seniority",
    "compute_match_score",
]
