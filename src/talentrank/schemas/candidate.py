from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from ..timeutils import ensure_aware
from .job import normalize_skill_name


class JobCandidateStatus(str, Enum):
    """Pipeline status of a candidate for a specific job."""

    POTENTIAL = "POTENTIAL"
    SHORTLISTED = "SHORTLISTED"
    SUBMITTED = "SUBMITTED"
    INTERVIEWING = "INTERVIEWING"
    HIRED = "HIRED"
    REJECTED = "REJECTED"


class CandidateSkill(BaseModel):
    """Skill listed on a candidate profile."""

    name: str
    normalized_name: str = ""
    proficiency: str | None = None
    years: float | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _fill_normalized(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data.strip(), "normalized_name": normalize_skill_name(data)}
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        payload["name"] = str(payload.get("name") or "").strip()
        payload["normalized_name"] = normalize_skill_name(
            payload.get("normalized_name") or payload["name"]
        )
        return payload

    @property
    def key(self) -> str:
        return self.normalized_name


class Candidate(BaseModel):
    """Provider-neutral candidate document. Never mutated by the scorers."""

    candidate_id: str = Field(validation_alias=AliasChoices("candidate_id", "id"))
    name: str | None = None
    current_title: str | None = Field(
        default=None, validation_alias=AliasChoices("current_title", "title")
    )
    summary: str | None = None
    location: str | None = None
    seniority_level: str | None = None
    total_experience_years: float | None = None
    skills: list[CandidateSkill] = Field(default_factory=list)
    is_internal: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        return ensure_aware(value) if value is not None else None

    @property
    def has_title(self) -> bool:
        return bool((self.current_title or "").strip())

    @property
    def has_location(self) -> bool:
        return bool((self.location or "").strip())

    @property
    def last_touched_at(self) -> datetime | None:
        return self.updated_at or self.created_at

    def skill_keys(self) -> list[str]:
        return [skill.key for skill in self.skills if skill.key]


class JobCandidateLink(BaseModel):
    """Job-specific pipeline record for a candidate."""

    status: JobCandidateStatus
    updated_at: datetime | None = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("updated_at")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        return ensure_aware(value) if value is not None else None
