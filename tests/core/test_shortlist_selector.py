from __future__ import annotations

from typing import Any

import pytest

from talentrank.core import ScoredCandidate, run_shortlist
from talentrank.core.modes import FIRE_DRILL_NOTE
from talentrank.core.shortlist import MISSING_CONFIDENCE_NOTE
from talentrank.schemas import GUARDRAIL_PRESETS, Job, parse_guardrails

JOB = Job(id="J-001")


def build_guardrails(**sections: Any):
    return parse_guardrails(sections)


def pool(*entries: tuple[str, int, int | None]) -> list[ScoredCandidate]:
    return [ScoredCandidate(candidate_id=cid, score=score, confidence=conf) for cid, score, conf in entries]


def test_quality_strategy_takes_top_candidates_and_records_the_rest():
    guardrails = build_guardrails(scoring={"thresholds": {"minMatchScore": 50, "shortlistMaxCandidates": 2}})

    result = run_shortlist(JOB, pool(("C-1", 80, 90), ("C-2", 70, 75), ("C-3", 60, 95)), guardrails, "pilot")

    assert result.strategy == "quality"
    assert result.shortlisted_candidates == ["C-1", "C-2"]
    assert result.not_shortlisted_candidates == ["C-3"]
    assert result.not_shortlisted[0].shortlisted is False
    assert result.not_shortlisted[0].reason == "Outside top 2 candidates"
    assert [entry.rank for entry in result.shortlisted] == [1, 2]


def test_quality_strategy_breaks_ties_by_confidence_then_id():
    guardrails = build_guardrails(scoring={"thresholds": {"minMatchScore": 50}})

    result = run_shortlist(
        JOB,
        pool(("C-9", 80, 60), ("C-3", 80, 90), ("C-2", 80, 90), ("C-1", 75, 99)),
        guardrails,
    )

    assert result.shortlisted_candidates == ["C-2", "C-3", "C-9", "C-1"]


def test_ranking_ignores_pool_order():
    guardrails = build_guardrails(scoring={"thresholds": {"minMatchScore": 50}})
    entries = [("C-1", 70, 80), ("C-2", 90, 70), ("C-3", 70, 80), ("C-4", 85, None)]

    forward = run_shortlist(JOB, pool(*entries), guardrails)
    backward = run_shortlist(JOB, pool(*reversed(entries)), guardrails)

    assert forward.to_dict() == backward.to_dict()


def test_strict_strategy_applies_score_and_confidence_floors():
    guardrails = build_guardrails(
        scoring={"thresholds": {"minMatchScore": 60, "shortlistMinScore": 75, "shortlistMaxCandidates": 1}},
        shortlist={"strategy": "strict", "minConfidence": 75},
    )

    result = run_shortlist(
        JOB,
        pool(("C-1", 90, 80), ("C-2", 78, 60), ("C-3", 70, 90), ("C-4", 88, 76)),
        guardrails,
    )

    assert result.strategy == "strict"
    # No fixed cap under strict: everyone clearing both floors is kept.
    assert result.shortlisted_candidates == ["C-1", "C-4"]
    reasons = {entry.candidate_id: entry.reason for entry in result.not_shortlisted}
    assert reasons["C-2"] == "Confidence 60 below floor 75"
    assert reasons["C-3"] == "Match score 70 below shortlist floor 75"


def test_missing_confidence_falls_back_to_match_score():
    guardrails = build_guardrails(
        scoring={"thresholds": {"minMatchScore": 60, "shortlistMinScore": 70}},
        shortlist={"strategy": "strict", "minConfidence": 99},
    )

    result = run_shortlist(JOB, pool(("C-1", 72, None), ("C-2", 90, None)), guardrails)

    assert MISSING_CONFIDENCE_NOTE in result.notes
    assert result.shortlisted_candidates == ["C-2", "C-1"]


def test_no_note_when_some_confidence_is_present():
    result = run_shortlist(JOB, pool(("C-1", 80, None), ("C-2", 70, 80)), build_guardrails())

    assert MISSING_CONFIDENCE_NOTE not in result.notes


def test_minimum_score_adjustment_raises_cutoff():
    guardrails = build_guardrails(scoring={"thresholds": {"minMatchScore": 60}})

    result = run_shortlist(JOB, pool(("C-1", 62, 90), ("C-2", 66, 90)), guardrails, min_score_adjustment=5)

    assert result.cutoff_score == 65
    assert result.shortlisted_candidates == ["C-2"]
    assert result.not_shortlisted[0].reason == "Match score 62 below minimum 65"


def test_safety_rules_exclude_and_record_candidates():
    guardrails = build_guardrails(
        scoring={"thresholds": {"minMatchScore": 0, "shortlistMinScore": 0}},
        safety={"requireMustHaves": True, "excludeInternalCandidates": True},
    )
    candidates = [
        ScoredCandidate(candidate_id="C-1", score=95, confidence=90, is_internal=True),
        ScoredCandidate(candidate_id="C-2", score=90, confidence=90, missing_required_skills=["Go", "SQL"]),
        ScoredCandidate(candidate_id="C-3", score=70, confidence=90),
    ]

    result = run_shortlist(JOB, candidates, guardrails)

    assert result.shortlisted_candidates == ["C-3"]
    reasons = {entry.candidate_id: entry.reason for entry in result.not_shortlisted}
    assert reasons == {
        "C-1": "Excluded: internal candidate",
        "C-2": "Missing required skill(s): Go, SQL",
    }


def test_must_haves_optional_when_disabled():
    guardrails = build_guardrails(
        scoring={"thresholds": {"minMatchScore": 0, "shortlistMinScore": 0}},
        safety={"requireMustHaves": False},
    )
    candidates = [ScoredCandidate(candidate_id="C-1", score=90, confidence=90, missing_required_skills=["Go"])]

    assert run_shortlist(JOB, candidates, guardrails).shortlisted_candidates == ["C-1"]


@pytest.mark.parametrize("preset", ["aggressive", "balanced", "demo-safe"])
def test_fire_drill_forces_strict_strategy(preset: str):
    result = run_shortlist(
        JOB,
        pool(("C-1", 95, 90), ("C-2", 80, 90), ("C-3", 90, 50)),
        GUARDRAIL_PRESETS[preset],
        "fire_drill",
    )

    assert result.strategy == "strict"
    assert FIRE_DRILL_NOTE in result.notes
    assert result.shortlisted_candidates == ["C-1"]
    assert set(result.not_shortlisted_candidates) == {"C-2", "C-3"}


def test_every_pool_member_is_accounted_for():
    entries = [(f"C-{i}", 40 + i * 5, 50 + i) for i in range(12)]

    result = run_shortlist(JOB, pool(*entries), GUARDRAIL_PRESETS["balanced"])

    accounted = result.shortlisted_candidates + result.not_shortlisted_candidates
    assert sorted(accounted) == sorted(cid for cid, _, _ in entries)
    assert len(result.shortlisted) <= 10


def test_empty_pool():
    result = run_shortlist(JOB, [], GUARDRAIL_PRESETS["balanced"])

    assert result.shortlisted == []
    assert result.not_shortlisted == []
    assert result.notes == []
