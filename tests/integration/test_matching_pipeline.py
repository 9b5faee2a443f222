from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from talentrank.core import MatchScorer
from talentrank.core.modes import FIRE_DRILL_NOTE, PipelineStep
from talentrank.core.shortlist import MISSING_CONFIDENCE_NOTE
from talentrank.pipeline import AuditLogger, MatchingPipeline, PoolMember
from talentrank.policy import GuardrailPolicy, InMemoryGuardrailStore
from talentrank.schemas import Candidate, Job

AS_OF = "2024-06-01"


def build_job(**kwargs: Any) -> Job:
    defaults: dict[str, Any] = {
        "id": "J-1",
        "title": "Senior Data Engineer",
        "location": "Berlin",
        "seniority_level": "senior",
        "skills": [
            {"name": "Python", "required": True, "weight": 2},
            {"name": "SQL", "required": True, "weight": 1},
            {"name": "Airflow", "required": False},
        ],
    }
    defaults.update(kwargs)
    return Job.model_validate(defaults)


def candidate_records() -> list[dict[str, Any]]:
    return [
        {
            "id": "C-1",
            "title": "Senior Data Engineer",
            "location": "Berlin",
            "seniority_level": "senior",
            "skills": ["Python", "SQL", "Airflow"],
            "updated_at": "2024-05-30T00:00:00Z",
        },
        {
            "id": "C-2",
            "title": "Data Engineer",
            "location": "Berlin",
            "seniority_level": "mid",
            "skills": ["Python", "SQL"],
            "updated_at": "2024-05-01T00:00:00Z",
        },
        {
            "id": "C-3",
            "title": "Junior Developer",
            "location": "Tokyo",
            "seniority_level": "junior",
            "skills": ["Python"],
        },
    ]


def build_pool() -> list[PoolMember]:
    return [PoolMember(candidate=Candidate.model_validate(record)) for record in candidate_records()]


def build_pipeline(records: dict[str, Any] | None = None, **kwargs: Any) -> MatchingPipeline:
    store = InMemoryGuardrailStore(records if records is not None else {"acme": {"preset": "balanced"}})
    return MatchingPipeline(scorer=MatchScorer(), policy=GuardrailPolicy(store), **kwargs)


def test_rank_scores_pool_and_selects_shortlist():
    result = build_pipeline().rank(build_job(), build_pool(), tenant_id="acme", mode="pilot", as_of=AS_OF)

    assert result.executed_steps == [
        PipelineStep.MATCH,
        PipelineStep.CONFIDENCE,
        PipelineStep.EXPLAIN,
        PipelineStep.SHORTLIST,
    ]
    assert result.skipped_steps == []
    assert result.shortlist.strategy == "quality"
    assert result.shortlist.shortlisted_candidates[:2] == ["C-1", "C-2"]
    assert result.min_score_adjustment == 5
    assert result.shortlist.cutoff_score == 65

    dropped = {entry.candidate_id: entry.reason for entry in result.shortlist.not_shortlisted}
    assert dropped == {"C-3": "Missing required skill(s): SQL"}

    by_id = {outcome.match.candidate_id: outcome for outcome in result.candidates}
    assert by_id["C-1"].match.score > by_id["C-2"].match.score > by_id["C-3"].match.score
    assert by_id["C-1"].confidence is not None
    assert by_id["C-3"].match.missing_required_skills == ["SQL"]
    assert sum(result.weights.values()) == pytest.approx(1.0, abs=1e-3)


def test_rank_output_is_serializable():
    result = build_pipeline().rank(build_job(), build_pool(), tenant_id="acme", as_of=AS_OF)

    payload = json.loads(json.dumps(result.to_dict()))

    assert payload["mode"] == "pilot"
    assert payload["tradeoffs"].startswith("Quality over speed")
    assert len(payload["rationale"]) == 4
    assert payload["candidates"][0]["explanation"]["top_reasons"]
    assert payload["shortlist"]["shortlisted"][0]["rank"] == 1


def test_tradeoff_overrides_change_cutoff():
    result = build_pipeline().rank(
        build_job(),
        build_pool(),
        tenant_id="acme",
        tradeoffs={"riskUpside": "upside"},
        as_of=AS_OF,
    )

    assert result.min_score_adjustment == -5
    assert result.shortlist.cutoff_score == 55
    assert result.rationale[3].startswith("Upside-seeking")


def test_fire_drill_skips_confidence_and_explanations():
    result = build_pipeline({"acme": {"preset": "aggressive"}}).rank(
        build_job(),
        build_pool(),
        tenant_id="acme",
        mode="fire_drill",
        as_of=AS_OF,
    )

    assert result.shortlist.strategy == "strict"
    assert result.skipped_steps == [PipelineStep.CONFIDENCE, PipelineStep.EXPLAIN]
    assert FIRE_DRILL_NOTE in result.notes
    assert MISSING_CONFIDENCE_NOTE in result.notes
    assert result.notes.count(FIRE_DRILL_NOTE) == 1
    assert "C-1" in result.shortlist.shortlisted_candidates
    assert "C-3" in result.shortlist.not_shortlisted_candidates

    payload = result.to_dict()
    assert all(item["explanation"] is None for item in payload["candidates"])
    assert all(item["confidence"] is None for item in payload["candidates"])
    assert payload["skipped_steps"][0] == {"step": "CONFIDENCE", "reason": "Step disabled during Fire Drill mode"}


def test_production_without_record_uses_conservative_preset():
    result = build_pipeline({}).rank(build_job(), build_pool(), tenant_id="acme", mode="production", as_of=AS_OF)

    assert result.shortlist.strategy == "strict"
    assert result.notes == []


def test_parallel_scoring_matches_sequential():
    sequential = build_pipeline().rank(build_job(), build_pool(), tenant_id="acme", as_of=AS_OF)
    parallel = build_pipeline(max_workers=4).rank(build_job(), build_pool(), tenant_id="acme", as_of=AS_OF)

    assert parallel.to_dict() == sequential.to_dict()


def test_run_reads_files_and_reports_partial_load(tmp_path: Path):
    candidates_path = tmp_path / "candidates.jsonl"
    job_path = tmp_path / "job.json"
    output_path = tmp_path / "out" / "results.json"
    audit_path = tmp_path / "audit.jsonl"

    records = candidate_records()
    lines = [
        json.dumps(records[0]),
        json.dumps({"candidate": records[1], "link": {"status": "INTERVIEWING", "updated_at": "2024-05-20T00:00:00Z"}, "outreach_count": 2}),
        "{not json",
        json.dumps({"title": "missing id"}),
        json.dumps(records[2]),
    ]
    candidates_path.write_text("\n".join(lines), encoding="utf-8")
    job_path.write_text(json.dumps(build_job().model_dump(mode="json")), encoding="utf-8")

    payload = build_pipeline().run(
        candidates_path=candidates_path,
        job_path=job_path,
        output_path=output_path,
        tenant_id="acme",
        as_of=AS_OF,
        audit_logger=AuditLogger(audit_path),
    )

    metadata = payload["metadata"]
    assert metadata["candidate_count"] == 3
    assert len(metadata["errors"]) == 2
    assert metadata["errors"][0].startswith("line 3: invalid JSON")
    assert metadata["errors"][1].startswith("line 4:")

    written = json.loads(output_path.read_text(encoding="utf-8"))
    assert written["job_id"] == "J-1"
    assert [item["candidate_id"] for item in written["candidates"]] == ["C-1", "C-2", "C-3"]

    audit = [json.loads(line) for line in audit_path.read_text(encoding="utf-8").splitlines()]
    assert [entry["candidate_id"] for entry in audit] == ["C-1", "C-2", "C-3"]
    assert all(entry["tenant_id"] == "acme" for entry in audit)
    assert {entry["candidate_id"] for entry in audit if entry["shortlisted"]} >= {"C-1"}


def test_pool_member_from_record_accepts_both_shapes():
    bare = PoolMember.from_record({"id": "C-9", "skills": ["Go"]})
    wrapped = PoolMember.from_record(
        {"candidate": {"id": "C-9"}, "link": {"status": "SHORTLISTED"}, "outreachCount": 3}
    )

    assert bare.link is None and bare.outreach_count == 0
    assert wrapped.link is not None
    assert wrapped.link.status.value == "SHORTLISTED"
    assert wrapped.outreach_count == 3
