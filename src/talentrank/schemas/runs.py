from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..timeutils import ensure_aware

RunStatus = Literal["success", "failed"]


class RunSnapshot(BaseModel):
    """Outcome of a single agent run, as consumed by the watchdog."""

    agent_name: str = Field(validation_alias=AliasChoices("agent_name", "agentName"))
    status: RunStatus
    duration_ms: float = Field(ge=0.0, validation_alias=AliasChoices("duration_ms", "durationMs"))
    output_complete: bool = Field(
        default=True, validation_alias=AliasChoices("output_complete", "outputComplete")
    )
    error_category: str | None = Field(
        default=None, validation_alias=AliasChoices("error_category", "errorCategory")
    )
    timestamp: datetime | None = None

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    @field_validator("status", mode="before")
    @classmethod
    def _lower_status(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("timestamp")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        return ensure_aware(value) if value is not None else None

    @property
    def failed(self) -> bool:
        return self.status == "failed"
