from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from talentrank.core import CandidateSignalWeights, compute_candidate_signal_score
from talentrank.core.signals import score_outreach, score_recent_activity, score_status
from talentrank.schemas import Candidate, JobCandidateLink, JobCandidateStatus

AS_OF = datetime(2024, 6, 1, tzinfo=timezone.utc)


def build_candidate(**kwargs: Any) -> Candidate:
    defaults: dict[str, Any] = {"candidate_id": "C-001"}
    defaults.update(kwargs)
    return Candidate(**defaults)


@pytest.mark.parametrize(
    ("days_ago", "expected"),
    [(0, 100), (7, 100), (8, 85), (30, 85), (90, 70), (180, 55), (181, 35)],
)
def test_recent_activity_buckets(days_ago: int, expected: int):
    candidate = build_candidate(updated_at=AS_OF - timedelta(days=days_ago))

    signal = score_recent_activity(candidate, None, AS_OF)

    assert signal.score == expected
    assert signal.days_since_activity == days_ago
    assert signal.reason == f"Recent activity {days_ago} day(s) ago influences engagement."


def test_recent_activity_uses_latest_timestamp():
    candidate = build_candidate(
        created_at=AS_OF - timedelta(days=400),
        updated_at=AS_OF - timedelta(days=40),
    )
    link = JobCandidateLink(status=JobCandidateStatus.POTENTIAL, updated_at=AS_OF - timedelta(days=5))

    assert score_recent_activity(candidate, link, AS_OF).score == 100
    assert score_recent_activity(candidate, None, AS_OF).score == 70


def test_recent_activity_is_neutral_without_timestamps():
    signal = score_recent_activity(build_candidate(), None, AS_OF)

    assert signal.score == 50
    assert signal.days_since_activity is None
    assert signal.reason == "No recent activity available; using neutral score."


@pytest.mark.parametrize(
    ("count", "expected"),
    [(-2, 30), (0, 30), (1, 70), (2, 70), (3, 85), (4, 85), (5, 100), (12, 100)],
)
def test_outreach_buckets(count: int, expected: int):
    assert score_outreach(count).score == expected


def test_outreach_reasons():
    assert score_outreach(0).reason == "No outreach interactions recorded yet."
    assert score_outreach(4).reason == "Outreach interactions recorded: 4."


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (JobCandidateStatus.POTENTIAL, 40),
        (JobCandidateStatus.SHORTLISTED, 65),
        (JobCandidateStatus.SUBMITTED, 75),
        (JobCandidateStatus.INTERVIEWING, 90),
        (JobCandidateStatus.HIRED, 100),
        (JobCandidateStatus.REJECTED, 20),
    ],
)
def test_status_lookup(status: JobCandidateStatus, expected: int):
    signal = score_status(JobCandidateLink(status=status))

    assert signal.score == expected
    assert signal.reason == f"Current status {status.value} contributes to engagement."


def test_status_is_neutral_without_link():
    signal = score_status(None)

    assert signal.score == 45
    assert signal.reason == "No job-specific status yet; using neutral signal."


def test_weighted_signal_score():
    candidate = build_candidate(updated_at=AS_OF - timedelta(days=2))
    link = JobCandidateLink(status="INTERVIEWING")

    result = compute_candidate_signal_score(candidate, link, 1, as_of=AS_OF)

    # 0.4 * 100 + 0.3 * 70 + 0.3 * 90
    assert result.score == 88
    assert result.reasons == [
        "Recent activity 2 day(s) ago influences engagement.",
        "Outreach interactions recorded: 1.",
        "Current status INTERVIEWING contributes to engagement.",
    ]


def test_weights_are_renormalized():
    candidate = build_candidate(updated_at=AS_OF - timedelta(days=2))
    link = JobCandidateLink(status="INTERVIEWING")
    weights = CandidateSignalWeights(recent_activity=2, outreach_interactions=1, status_progression=1)

    result = compute_candidate_signal_score(candidate, link, 1, weights, as_of=AS_OF)

    assert result.weights.total() == pytest.approx(1.0)
    assert result.weights.recent_activity == pytest.approx(0.5)
    # 0.5 * 100 + 0.25 * 70 + 0.25 * 90
    assert result.score == 90


def test_zero_weights_fall_back_to_defaults():
    weights = CandidateSignalWeights(recent_activity=0, outreach_interactions=0, status_progression=0)

    link = JobCandidateLink(status="POTENTIAL")

    result = compute_candidate_signal_score(build_candidate(), link, 0, weights, as_of=AS_OF)

    assert result.weights.recent_activity == pytest.approx(0.4)
    # 0.4 * 50 + 0.3 * 30 + 0.3 * 40
    assert result.score == 41
