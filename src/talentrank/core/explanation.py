"""Structured, deterministic match explanations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Literal, Sequence

SkillStatus = Literal["matched", "partial", "missing"]
SkillImportance = Literal["required", "preferred"]
Verbosity = Literal["compact", "detailed"]

DEFAULT_TOP_REASONS = 5

_STATUS_ORDER = {"matched": 0, "partial": 1, "missing": 2}


@dataclass(slots=True, frozen=True)
class SkillOverlap:
    skill: str
    status: SkillStatus
    importance: SkillImportance
    weight: float
    note: str


@dataclass(slots=True, frozen=True)
class Reason:
    """A positive or neutral reason with the score points it accounts for."""

    text: str
    strength: float = 0.0


@dataclass(slots=True)
class MatchExplanation:
    top_reasons: list[str]
    all_reasons: list[str]
    skill_overlap: list[SkillOverlap]
    missing_skills: list[str]
    risk_areas: list[str]
    overall_score: int
    verbosity: Verbosity = "compact"
    weights: dict[str, float] | None = None
    exportable_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def _overlap_sort_key(entry: SkillOverlap) -> tuple[str, int, int, float]:
    return (
        entry.skill.lower(),
        0 if entry.importance == "required" else 1,
        _STATUS_ORDER[entry.status],
        entry.weight,
    )


def rank_reasons(reasons: Sequence[Reason], limit: int = DEFAULT_TOP_REASONS) -> list[str]:
    """Strongest positive reasons first; equal strengths keep input order."""
    seen: set[str] = set()
    unique: list[Reason] = []
    for reason in reasons:
        if reason.text in seen:
            continue
        seen.add(reason.text)
        unique.append(reason)
    ranked = sorted((r for r in unique if r.strength > 0), key=lambda r: -r.strength)
    return [reason.text for reason in ranked[:limit]]


def render_exportable_text(explanation: MatchExplanation) -> str:
    """Render the structured fields as plain text. Adds nothing they do not hold."""
    parts = [f"Top reasons: {'; '.join(explanation.top_reasons) or 'None'}."]
    parts.append(
        f"Missing skills: {', '.join(explanation.missing_skills)}."
        if explanation.missing_skills
        else "Missing skills: None."
    )
    if explanation.verbosity == "detailed":
        if explanation.skill_overlap:
            overlap = "; ".join(
                f"{entry.skill} ({entry.importance}) - {entry.status}" for entry in explanation.skill_overlap
            )
            parts.append(f"Skill overlap: {overlap}.")
        else:
            parts.append("Skill overlap: No additional details recorded.")
    parts.append(
        f"Risk areas: {'; '.join(explanation.risk_areas)}."
        if explanation.risk_areas
        else "Risk areas: None recorded."
    )
    if explanation.weights:
        rendered = ", ".join(f"{name}={value:.2f}" for name, value in explanation.weights.items())
        parts.append(f"Weights: {rendered}.")
    parts.append(f"Overall score: {explanation.overall_score}.")
    return " ".join(parts)


def build_explanation(
    *,
    reasons: Sequence[Reason],
    skill_overlap: Sequence[SkillOverlap],
    missing_skills: Sequence[str],
    risk_areas: Sequence[str],
    overall_score: int,
    limit: int = DEFAULT_TOP_REASONS,
    verbosity: Verbosity = "compact",
    weights: dict[str, float] | None = None,
) -> MatchExplanation:
    explanation = MatchExplanation(
        top_reasons=rank_reasons(reasons, limit),
        all_reasons=_dedupe(reason.text for reason in reasons),
        skill_overlap=sorted(skill_overlap, key=_overlap_sort_key),
        missing_skills=_dedupe(missing_skills),
        risk_areas=_dedupe(risk_areas),
        overall_score=overall_score,
        verbosity=verbosity,
        weights=dict(weights) if weights else None,
    )
    explanation.exportable_text = render_exportable_text(explanation)
    return explanation
