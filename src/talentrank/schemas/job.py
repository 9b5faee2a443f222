from __future__ import annotations

from typing import Any, Iterable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

REQUIRED_SKILL_DEFAULT_WEIGHT = 2.0
OPTIONAL_SKILL_DEFAULT_WEIGHT = 1.0


def normalize_skill_name(name: str | None) -> str:
    """Lower-cased, trimmed skill name used as the overlap join key."""
    return (name or "").strip().lower()


def default_skill_weight(required: bool) -> float:
    return REQUIRED_SKILL_DEFAULT_WEIGHT if required else OPTIONAL_SKILL_DEFAULT_WEIGHT


class JobSkill(BaseModel):
    """Skill requirement attached to a job requisition."""

    name: str
    normalized_name: str = ""
    required: bool = False
    weight: float = OPTIONAL_SKILL_DEFAULT_WEIGHT

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        name = str(payload.get("name") or "")
        required = bool(payload.get("required", False))
        payload["name"] = name.strip()
        payload["required"] = required
        payload["normalized_name"] = normalize_skill_name(payload.get("normalized_name") or name)
        weight = payload.get("weight")
        if weight is None or float(weight) <= 0:
            payload["weight"] = default_skill_weight(required)
        return payload

    @property
    def key(self) -> str:
        return self.normalized_name


class Job(BaseModel):
    """Provider-neutral job requisition supplied by the caller."""

    job_id: str = Field(validation_alias=AliasChoices("job_id", "id"))
    title: str | None = None
    location: str | None = None
    seniority_level: str | None = None
    min_experience_years: float | None = None
    max_experience_years: float | None = None
    skills: list[JobSkill] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    @field_validator("skills")
    @classmethod
    def _dedupe_skills(cls, value: list[JobSkill]) -> list[JobSkill]:
        return normalize_job_skills(value)

    @property
    def required_skills(self) -> list[JobSkill]:
        return [skill for skill in self.skills if skill.required]

    @property
    def optional_skills(self) -> list[JobSkill]:
        return [skill for skill in self.skills if not skill.required]

    def skill_keys(self) -> list[str]:
        return [skill.key for skill in self.skills if skill.key]


def normalize_job_skills(skills: Iterable[dict[str, Any] | JobSkill]) -> list[JobSkill]:
    """Trim, de-duplicate and weight raw job skills.

    The first occurrence of a normalized name wins; empty names are dropped.
    """
    unique: dict[str, JobSkill] = {}
    for raw in skills:
        skill = raw if isinstance(raw, JobSkill) else JobSkill.model_validate(raw)
        if not skill.key or skill.key in unique:
            continue
        unique[skill.key] = skill
    return list(unique.values())
