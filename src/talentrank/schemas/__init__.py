"""Pydantic schema definitions for jobs, candidates, guardrails and run snapshots."""

from __future__ import annotations

from .candidate import Candidate, CandidateSkill, JobCandidateLink, JobCandidateStatus
from .guardrails import (
    DEFAULT_GUARDRAILS,
    GUARDRAIL_PRESETS,
    ExplainSettings,
    GuardrailConfig,
    SafetySettings,
    ShortlistSettings,
    SignalWeights,
    SimpleScoring,
    Thresholds,
    WeightedScoring,
    parse_guardrails,
)
from .job import Job, JobSkill, normalize_job_skills, normalize_skill_name
from .runs import RunSnapshot
from .tradeoffs import DEFAULT_TRADEOFF_DECLARATION, TradeoffDeclaration

__all__ = [
    "Candidate",
    "CandidateSkill",
    "JobCandidateLink",
    "JobCandidateStatus",
    "Job",
    "JobSkill",
    "normalize_job_skills",
    "normalize_skill_name",
    "GuardrailConfig",
    "SignalWeights",
    "Thresholds",
    "WeightedScoring",
    "SimpleScoring",
    "ExplainSettings",
    "SafetySettings",
    "ShortlistSettings",
    "DEFAULT_GUARDRAILS",
    "GUARDRAIL_PRESETS",
    "parse_guardrails",
    "RunSnapshot",
    "TradeoffDeclaration",
    "DEFAULT_TRADEOFF_DECLARATION",
]
