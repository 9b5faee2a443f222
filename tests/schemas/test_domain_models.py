from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from talentrank.schemas import Candidate, Job, RunSnapshot
from talentrank.schemas.config import AppConfig, load_config


def test_job_skills_are_trimmed_deduplicated_and_weighted():
    job = Job.model_validate(
        {
            "id": "J-1",
            "skills": [
                {"name": " Python ", "required": True},
                {"name": "python", "required": False, "weight": 5},
                {"name": "SQL", "weight": 0},
                {"name": "  "},
            ],
        }
    )

    assert job.job_id == "J-1"
    assert [(skill.name, skill.key, skill.required, skill.weight) for skill in job.skills] == [
        ("Python", "python", True, 2.0),
        ("SQL", "sql", False, 1.0),
    ]
    assert [skill.name for skill in job.required_skills] == ["Python"]
    assert [skill.name for skill in job.optional_skills] == ["SQL"]


def test_candidate_accepts_plain_string_skills():
    candidate = Candidate.model_validate({"id": "C-1", "title": "Engineer", "skills": [" Go ", {"name": "Rust"}]})

    assert candidate.candidate_id == "C-1"
    assert candidate.has_title
    assert not candidate.has_location
    assert candidate.skill_keys() == ["go", "rust"]


def test_candidate_timestamps_are_timezone_aware():
    candidate = Candidate(candidate_id="C-1", created_at=datetime(2024, 1, 1), updated_at=None)

    assert candidate.created_at is not None
    assert candidate.created_at.tzinfo is not None
    assert candidate.last_touched_at == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_run_snapshot_normalizes_status():
    run = RunSnapshot.model_validate({"agentName": "MATCHER", "status": " FAILED ", "durationMs": 12})

    assert run.failed
    assert run.output_complete is True

    with pytest.raises(ValidationError):
        RunSnapshot.model_validate({"agentName": "MATCHER", "status": "pending", "durationMs": 12})


def test_app_config_defaults_and_settings():
    config = load_config(None)

    assert config.guardrails.tenant_id == "default"
    assert config.guardrails.mode == "pilot"
    assert config.to_settings() == {}


def test_app_config_to_settings_keeps_only_overrides():
    config = load_config(
        {
            "scoring": {"top_reasons_limit": 3, "match_weights": {"skills": 0.6}},
            "watchdog": {"window_size": 10},
            "guardrails": {"store_dir": "/tmp/guardrails", "tenant_id": "acme"},
            "pipeline": {"max_workers": 4},
        }
    )

    assert config.guardrails.tenant_id == "acme"
    assert config.to_settings() == {
        "scoring": {"match_weights": {"skills": 0.6}, "top_reasons_limit": 3},
        "watchdog": {"window_size": 10},
        "guardrails": {"store_dir": "/tmp/guardrails"},
        "pipeline": {"max_workers": 4},
    }


def test_app_config_rejects_unknown_keys_and_non_mappings():
    with pytest.raises(ValidationError):
        load_config({"scoring": {"unknown": 1}})
    with pytest.raises(ValidationError):
        load_config(["not", "a", "mapping"])
    assert isinstance(load_config({}), AppConfig)
