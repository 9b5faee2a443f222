"""Operating modes and the pipeline steps/presets they govern."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..schemas import GUARDRAIL_PRESETS, GuardrailConfig

FIRE_DRILL_NOTE = "Fire Drill mode active: using strict shortlist strategy and conservative thresholds."
STEP_DISABLED_NOTE = "Step disabled during Fire Drill mode"


class OperatingMode(str, Enum):
    PILOT = "pilot"
    PRODUCTION = "production"
    SANDBOX = "sandbox"
    FIRE_DRILL = "fire_drill"

    @classmethod
    def coerce(cls, value: "OperatingMode | str | None") -> "OperatingMode":
        """Unknown or empty values resolve to ``pilot``."""
        if isinstance(value, cls):
            return value
        text = (value or "").strip().lower().replace("-", "_")
        for mode in cls:
            if mode.value == text:
                return mode
        return cls.PILOT


class PipelineStep(str, Enum):
    MATCH = "MATCH"
    CONFIDENCE = "CONFIDENCE"
    EXPLAIN = "EXPLAIN"
    SHORTLIST = "SHORTLIST"


ALL_STEPS: tuple[PipelineStep, ...] = tuple(PipelineStep)


@dataclass(frozen=True, slots=True)
class ModeProfile:
    mode: OperatingMode
    preset: str
    enabled_steps: frozenset[PipelineStep]
    forces_preset: bool = False
    forced_shortlist_strategy: str | None = None

    def is_enabled(self, step: PipelineStep) -> bool:
        return step in self.enabled_steps

    @property
    def disabled_steps(self) -> list[PipelineStep]:
        return [step for step in ALL_STEPS if step not in self.enabled_steps]


_PROFILES: dict[OperatingMode, ModeProfile] = {
    OperatingMode.PILOT: ModeProfile(OperatingMode.PILOT, "balanced", frozenset(ALL_STEPS)),
    OperatingMode.PRODUCTION: ModeProfile(OperatingMode.PRODUCTION, "conservative", frozenset(ALL_STEPS)),
    OperatingMode.SANDBOX: ModeProfile(OperatingMode.SANDBOX, "aggressive", frozenset(ALL_STEPS)),
    OperatingMode.FIRE_DRILL: ModeProfile(
        OperatingMode.FIRE_DRILL,
        "conservative",
        frozenset({PipelineStep.MATCH, PipelineStep.SHORTLIST}),
        forces_preset=True,
        forced_shortlist_strategy="strict",
    ),
}


def mode_profile(mode: OperatingMode | str | None) -> ModeProfile:
    return _PROFILES[OperatingMode.coerce(mode)]


def apply_fire_drill_thresholds(guardrails: GuardrailConfig) -> GuardrailConfig:
    """Force the conservative preset, keeping whichever thresholds are stricter.

    Floors take the higher value and the candidate cap the lower one. The
    result always uses the ``strict`` shortlist strategy, whatever the
    tenant chose.
    """
    conservative = GUARDRAIL_PRESETS["conservative"]
    tenant = guardrails.thresholds
    floor = conservative.thresholds

    caps = [
        value
        for value in (tenant.shortlist_max_candidates, floor.shortlist_max_candidates)
        if value is not None
    ]
    min_match = max(tenant.min_match_score, floor.min_match_score)
    thresholds = floor.model_copy(
        update={
            "min_match_score": min_match,
            "shortlist_min_score": max(tenant.shortlist_min_score, floor.shortlist_min_score, min_match),
            "shortlist_max_candidates": min(caps) if caps else None,
        }
    )
    shortlist = conservative.shortlist.model_copy(
        update={
            "strategy": "strict",
            "min_confidence": max(guardrails.shortlist.min_confidence, conservative.shortlist.min_confidence),
        }
    )
    return conservative.model_copy(
        update={
            "scoring": conservative.scoring.model_copy(update={"thresholds": thresholds}),
            "shortlist": shortlist,
        }
    )


__all__ = [
    "OperatingMode",
    "PipelineStep",
    "ModeProfile",
    "ALL_STEPS",
    "FIRE_DRILL_NOTE",
    "STEP_DISABLED_NOTE",
    "mode_profile",
    "apply_fire_drill_thresholds",
]
