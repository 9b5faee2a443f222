"""Engagement score from recent activity, outreach and pipeline status."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..schemas import Candidate, JobCandidateLink, JobCandidateStatus
from ..timeutils import days_since, resolve_as_of
from .scoring_config import DEFAULT_SIGNAL_WEIGHTS, CandidateSignalWeights, clamp_score, round_half_up

NEUTRAL_ACTIVITY_SCORE = 50
NEUTRAL_STATUS_SCORE = 45
UNASSIGNED = "UNASSIGNED"

# (max days since activity, score); anything older scores 35.
_ACTIVITY_BUCKETS: tuple[tuple[int, int], ...] = ((7, 100), (30, 85), (90, 70), (180, 55))
_STALE_ACTIVITY_SCORE = 35

# (min interactions, score); none scores 30.
_OUTREACH_BUCKETS: tuple[tuple[int, int], ...] = ((5, 100), (3, 85), (1, 70))
_NO_OUTREACH_SCORE = 30

STATUS_SCORES: dict[JobCandidateStatus, int] = {
    JobCandidateStatus.POTENTIAL: 40,
    JobCandidateStatus.SHORTLISTED: 65,
    JobCandidateStatus.SUBMITTED: 75,
    JobCandidateStatus.INTERVIEWING: 90,
    JobCandidateStatus.HIRED: 100,
    JobCandidateStatus.REJECTED: 20,
}


@dataclass(slots=True, frozen=True)
class RecentActivitySignal:
    score: int
    days_since_activity: int | None
    reason: str


@dataclass(slots=True, frozen=True)
class OutreachSignal:
    score: int
    interactions: int
    reason: str


@dataclass(slots=True, frozen=True)
class StatusSignal:
    score: int
    status: str
    reason: str


@dataclass(slots=True)
class SignalResult:
    score: int
    recent_activity: RecentActivitySignal
    outreach_interactions: OutreachSignal
    status_progression: StatusSignal
    weights: CandidateSignalWeights
    reasons: list[str] = field(default_factory=list)


def score_recent_activity(
    candidate: Candidate,
    link: JobCandidateLink | None,
    as_of: datetime,
) -> RecentActivitySignal:
    moments = [
        moment
        for moment in (
            link.updated_at if link is not None else None,
            candidate.updated_at,
            candidate.created_at,
        )
        if moment is not None
    ]
    if not moments:
        return RecentActivitySignal(
            score=NEUTRAL_ACTIVITY_SCORE,
            days_since_activity=None,
            reason="No recent activity available; using neutral score.",
        )

    latest = max(moments)
    days = max(0, round_half_up(days_since(latest, as_of)))
    score = _STALE_ACTIVITY_SCORE
    for limit, bucket_score in _ACTIVITY_BUCKETS:
        if days <= limit:
            score = bucket_score
            break

    return RecentActivitySignal(
        score=score,
        days_since_activity=days,
        reason=f"Recent activity {days} day(s) ago influences engagement.",
    )


def score_outreach(interactions: int = 0) -> OutreachSignal:
    count = max(0, int(interactions))
    score = _NO_OUTREACH_SCORE
    for minimum, bucket_score in _OUTREACH_BUCKETS:
        if count >= minimum:
            score = bucket_score
            break

    reason = (
        f"Outreach interactions recorded: {count}."
        if count > 0
        else "No outreach interactions recorded yet."
    )
    return OutreachSignal(score=score, interactions=count, reason=reason)


def score_status(link: JobCandidateLink | None) -> StatusSignal:
    if link is None:
        return StatusSignal(
            score=NEUTRAL_STATUS_SCORE,
            status=UNASSIGNED,
            reason="No job-specific status yet; using neutral signal.",
        )
    return StatusSignal(
        score=STATUS_SCORES.get(link.status, NEUTRAL_STATUS_SCORE),
        status=link.status.value,
        reason=f"Current status {link.status.value} contributes to engagement.",
    )


def compute_candidate_signal_score(
    candidate: Candidate,
    link: JobCandidateLink | None = None,
    outreach_count: int = 0,
    weights: CandidateSignalWeights | None = None,
    *,
    as_of: datetime | None = None,
) -> SignalResult:
    """Blend activity, outreach and status into a 0-100 engagement score.

    Weights are renormalized so they always sum to 1.
    """
    normalized = (weights or DEFAULT_SIGNAL_WEIGHTS).normalized(fallback=DEFAULT_SIGNAL_WEIGHTS)
    reference = resolve_as_of(as_of)

    activity = score_recent_activity(candidate, link, reference)
    outreach = score_outreach(outreach_count)
    status = score_status(link)

    score = clamp_score(
        activity.score * normalized.recent_activity
        + outreach.score * normalized.outreach_interactions
        + status.score * normalized.status_progression
    )

    return SignalResult(
        score=score,
        recent_activity=activity,
        outreach_interactions=outreach,
        status_progression=status,
        weights=normalized,
        reasons=[activity.reason, outreach.reason, status.reason],
    )
