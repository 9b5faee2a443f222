"""Core scoring, shortlist and watchdog components."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

# NOTE: keep imports explicit for export clarity.
from .confidence import (
    ConfidenceBreakdown,
    ConfidenceContext,
    MatchConfidence,
    compute_confidence_score,
    compute_match_confidence,
    confidence_category,
)
from .explanation import MatchExplanation, Reason, SkillOverlap, build_explanation, render_exportable_text
from .matcher import MatchContext, MatchOptions, MatchScore, MatchScorer, compute_match_score
from .modes import ModeProfile, OperatingMode, PipelineStep, apply_fire_drill_thresholds, mode_profile
from .scoring_config import (
    CandidateSignalWeights,
    ConfidenceThresholds,
    MatchScoringWeights,
    ScoringConfig,
    normalize_weights,
)
from .shortlist import ScoredCandidate, ShortlistEntry, ShortlistResult, run_shortlist
from .signals import SignalResult, compute_candidate_signal_score
from .tradeoffs import (
    TradeoffAdjustment,
    apply_tradeoffs_to_weights,
    extract_tradeoff_defaults,
    format_tradeoff_declaration,
    parse_tradeoffs,
    resolve_tradeoffs,
    weights_from_guardrails,
)
from .watchdog import DEFAULT_WATCHDOG_CONFIG, WatchdogAlert, WatchdogConfig, WatchdogReport, evaluate_watchdog


@runtime_checkable
class Scorer(Protocol):
    """Contract for anything that scores a candidate against a job."""

    def score(self, job, candidate, **overrides) -> MatchScore:
        """Return the match score for ``candidate`` under ``job``."""


__all__ = [
    "Scorer",
    "ConfidenceBreakdown",
    "ConfidenceContext",
    "MatchConfidence",
    "compute_confidence_score",
    "compute_match_confidence",
    "confidence_category",
    "MatchExplanation",
    "Reason",
    "SkillOverlap",
    "build_explanation",
    "render_exportable_text",
    "MatchContext",
    "MatchOptions",
    "MatchScore",
    "MatchScorer",
    "compute_match_score",
    "ModeProfile",
    "OperatingMode",
    "PipelineStep",
    "apply_fire_drill_thresholds",
    "mode_profile",
    "CandidateSignalWeights",
    "ConfidenceThresholds",
    "MatchScoringWeights",
    "ScoringConfig",
    "normalize_weights",
    "ScoredCandidate",
    "ShortlistEntry",
    "ShortlistResult",
    "run_shortlist",
    "SignalResult",
    "compute_candidate_signal_score",
    "TradeoffAdjustment",
    "apply_tradeoffs_to_weights",
    "extract_tradeoff_defaults",
    "format_tradeoff_declaration",
    "parse_tradeoffs",
    "resolve_tradeoffs",
    "weights_from_guardrails",
    "DEFAULT_WATCHDOG_CONFIG",
    "WatchdogAlert",
    "WatchdogConfig",
    "WatchdogReport",
    "evaluate_watchdog",
]
