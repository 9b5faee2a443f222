from __future__ import annotations

import pytest

from talentrank.core import OperatingMode, PipelineStep, apply_fire_drill_thresholds, mode_profile
from talentrank.schemas import GUARDRAIL_PRESETS, parse_guardrails


@pytest.mark.parametrize(
    ("mode", "preset"),
    [("pilot", "balanced"), ("production", "conservative"), ("sandbox", "aggressive"), ("fire_drill", "conservative")],
)
def test_mode_presets(mode: str, preset: str):
    assert mode_profile(mode).preset == preset


def test_fire_drill_disables_confidence_and_explain():
    profile = mode_profile(OperatingMode.FIRE_DRILL)

    assert profile.forces_preset
    assert profile.forced_shortlist_strategy == "strict"
    assert profile.is_enabled(PipelineStep.MATCH)
    assert profile.is_enabled(PipelineStep.SHORTLIST)
    assert profile.disabled_steps == [PipelineStep.CONFIDENCE, PipelineStep.EXPLAIN]


def test_regular_modes_enable_every_step():
    for mode in ("pilot", "production", "sandbox"):
        assert mode_profile(mode).disabled_steps == []


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("FIRE-DRILL", OperatingMode.FIRE_DRILL),
        (" Production ", OperatingMode.PRODUCTION),
        ("unknown", OperatingMode.PILOT),
        (None, OperatingMode.PILOT),
        (OperatingMode.SANDBOX, OperatingMode.SANDBOX),
    ],
)
def test_mode_coercion(value, expected: OperatingMode):
    assert OperatingMode.coerce(value) == expected


@pytest.mark.parametrize("preset", ["balanced", "aggressive", "demo-safe", "conservative"])
def test_fire_drill_forces_conservative_strict(preset: str):
    effective = apply_fire_drill_thresholds(GUARDRAIL_PRESETS[preset])

    assert effective.preset == "conservative"
    assert effective.shortlist.strategy == "strict"
    assert effective.scoring.strategy == "weighted"
    assert effective.thresholds.min_match_score >= 70
    assert effective.thresholds.shortlist_min_score >= 85
    assert effective.max_candidates is not None and effective.max_candidates <= 5


def test_fire_drill_keeps_stricter_tenant_thresholds():
    tenant = parse_guardrails(
        {
            "preset": "aggressive",
            "scoring": {
                "thresholds": {"minMatchScore": 80, "shortlistMinScore": 90, "shortlistMaxCandidates": 3}
            },
            "shortlist": {"minConfidence": 90},
        }
    )

    effective = apply_fire_drill_thresholds(tenant)

    assert effective.thresholds.min_match_score == 80
    assert effective.thresholds.shortlist_min_score == 90
    assert effective.thresholds.shortlist_max_candidates == 3
    assert effective.shortlist.min_confidence == 90
    assert effective.safety.exclude_internal_candidates is True
