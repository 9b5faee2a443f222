"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ScoringSection(BaseModel):
    match_weights: dict[str, float] | None = None
    signal_weights: dict[str, float] | None = None
    confidence_thresholds: dict[str, float] | None = None
    partial_credit_similarity: float | None = None
    top_reasons_limit: int | None = None

    model_config = ConfigDict(extra="forbid")


class GuardrailSection(BaseModel):
    store_dir: str | None = None
    tenant_id: str = "default"
    mode: str = "pilot"

    model_config = ConfigDict(extra="forbid")


class PipelineSection(BaseModel):
    max_workers: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    scoring: ScoringSection = Field(default_factory=ScoringSection)
    watchdog: dict[str, Any] | None = None
    guardrails: GuardrailSection = Field(default_factory=GuardrailSection)
    pipeline: PipelineSection = Field(default_factory=PipelineSection)

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        scoring = self.scoring.model_dump(exclude_none=True)
        if scoring:
            settings["scoring"] = scoring
        if self.watchdog:
            settings["watchdog"] = dict(self.watchdog)
        if self.guardrails.store_dir:
            settings["guardrails"] = {"store_dir": self.guardrails.store_dir}
        if self.pipeline.max_workers:
            settings["pipeline"] = {"max_workers": self.pipeline.max_workers}
        return settings


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
