"""Match/shortlist pipeline assembly and execution."""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping

import pendulum
import structlog

from . import __version__
from .core import (
    ConfidenceThresholds,
    MatchConfidence,
    MatchScore,
    MatchScorer,
    OperatingMode,
    PipelineStep,
    ScoredCandidate,
    ShortlistResult,
    apply_tradeoffs_to_weights,
    compute_match_confidence,
    format_tradeoff_declaration,
    resolve_tradeoffs,
    run_shortlist,
    weights_from_guardrails,
)
from .core.modes import STEP_DISABLED_NOTE
from .policy import GuardrailPolicy
from .schemas import DEFAULT_TRADEOFF_DECLARATION, Candidate, Job, JobCandidateLink, RunSnapshot
from .timeutils import resolve_as_of


@dataclass(slots=True)
class PoolMember:
    """A candidate plus its job-specific engagement inputs."""

    candidate: Candidate
    link: JobCandidateLink | None = None
    outreach_count: int = 0

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PoolMember":
        if "candidate" in record:
            link = record.get("link")
            return cls(
                candidate=Candidate.model_validate(record["candidate"]),
                link=JobCandidateLink.model_validate(link) if link else None,
                outreach_count=int(record.get("outreach_count", record.get("outreachCount", 0)) or 0),
            )
        return cls(candidate=Candidate.model_validate(record))


@dataclass(slots=True)
class CandidateOutcome:
    match: MatchScore
    confidence: MatchConfidence | None = None
    include_explanation: bool = True

    def to_dict(self) -> dict[str, Any]:
        match = self.match
        payload: dict[str, Any] = {
            "candidate_id": match.candidate_id,
            "score": match.score,
            "skill_score": match.skill_score,
            "seniority_score": match.seniority_score,
            "location_score": match.location_score,
            "candidate_signal_score": match.candidate_signal_score,
            "missing_skills": match.missing_required_skills,
            "confidence": asdict(self.confidence) if self.confidence is not None else None,
            "explanation": match.explanation.to_dict() if self.include_explanation else None,
        }
        return payload


@dataclass(slots=True)
class PipelineResult:
    job_id: str
    tenant_id: str
    mode: OperatingMode
    tradeoffs: str
    rationale: list[str]
    weights: dict[str, float]
    min_score_adjustment: int
    executed_steps: list[PipelineStep]
    skipped_steps: list[PipelineStep]
    candidates: list[CandidateOutcome]
    shortlist: ShortlistResult
    notes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "tenant_id": self.tenant_id,
            "mode": self.mode.value,
            "tradeoffs": self.tradeoffs,
            "rationale": list(self.rationale),
            "weights": dict(self.weights),
            "min_score_adjustment": self.min_score_adjustment,
            "executed_steps": [step.value for step in self.executed_steps],
            "skipped_steps": [
                {"step": step.value, "reason": STEP_DISABLED_NOTE} for step in self.skipped_steps
            ],
            "candidates": [outcome.to_dict() for outcome in self.candidates],
            "shortlist": self.shortlist.to_dict(),
            "notes": list(self.notes),
        }


class CandidateLoadError(ValueError):
    """Raised when candidate loading encounters invalid records."""

    def __init__(self, errors: list[str], partial: list[PoolMember]):
        super().__init__("Candidate loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Candidate loading failed: {self.errors}"


def _read_jsonl(path: Path) -> Iterable[tuple[int, Any, str | None]]:
    with path.open("r", encoding="utf-8") as handle:
        for idx, line in enumerate(handle, start=1):
            raw = line.strip()
            if not raw:
                continue
            try:
                yield idx, json.loads(raw), None
            except json.JSONDecodeError as exc:
                yield idx, None, f"line {idx}: invalid JSON ({exc})"


class CandidateLoader:
    """Load pool members from JSON lines."""

    def load(self, path: Path) -> list[PoolMember]:
        members: list[PoolMember] = []
        errors: list[str] = []
        for idx, record, error in _read_jsonl(path):
            if error:
                errors.append(error)
                continue
            if not isinstance(record, dict):
                errors.append(f"line {idx}: expected a JSON object")
                continue
            try:
                members.append(PoolMember.from_record(record))
            except Exception as exc:  # noqa: BLE001
                errors.append(f"line {idx}: {exc}")
        if errors:
            raise CandidateLoadError(errors, members)
        return members


class JobLoader:
    """Load job requisition documents."""

    def load(self, path: Path) -> Job:
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid job JSON: {exc}") from exc
        return Job.model_validate(data)


class RunLoader:
    """Load agent run snapshots from JSON lines; invalid lines are skipped and reported."""

    def load(self, path: Path) -> tuple[list[RunSnapshot], list[str]]:
        runs: list[RunSnapshot] = []
        errors: list[str] = []
        for idx, record, error in _read_jsonl(path):
            if error:
                errors.append(error)
                continue
            try:
                runs.append(RunSnapshot.model_validate(record))
            except Exception as exc:  # noqa: BLE001
                errors.append(f"line {idx}: {exc}")
        return runs, errors


class OutputWriter:
    """Persist pipeline outcomes."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, default=_json_default),
            encoding="utf-8",
        )


class MatchingPipeline:
    """Resolve guardrails, score a pool and select the shortlist."""

    def __init__(
        self,
        *,
        scorer: MatchScorer,
        policy: GuardrailPolicy,
        confidence_thresholds: ConfidenceThresholds | None = None,
        max_workers: int | None = None,
        candidate_loader: CandidateLoader | None = None,
        job_loader: JobLoader | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._scorer = scorer
        self._policy = policy
        self._confidence_thresholds = confidence_thresholds or scorer.config.confidence_thresholds
        self._max_workers = max_workers
        self._candidates = candidate_loader or CandidateLoader()
        self._jobs = job_loader or JobLoader()
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    @property
    def policy(self) -> GuardrailPolicy:
        return self._policy

    def rank(
        self,
        job: Job,
        pool: Iterable[PoolMember | Candidate],
        *,
        tenant_id: str = "default",
        mode: OperatingMode | str | None = None,
        tradeoffs: Mapping[str, Any] | None = None,
        as_of: Any = None,
        audit_logger: "AuditLogger | None" = None,
    ) -> PipelineResult:
        members = [m if isinstance(m, PoolMember) else PoolMember(candidate=m) for m in pool]
        effective = self._policy.resolve(tenant_id, mode)
        guardrails = effective.config
        profile = effective.profile
        reference = resolve_as_of(as_of)

        declared = resolve_tradeoffs(
            guardrails.scoring.tradeoffs or DEFAULT_TRADEOFF_DECLARATION,
            tradeoffs,
        )
        base_weights = weights_from_guardrails(guardrails)
        adjustment = apply_tradeoffs_to_weights(base_weights, declared)

        options: dict[str, Any] = {
            "strategy": guardrails.scoring.strategy,
            "as_of": reference,
            "verbosity": guardrails.explain.verbosity,
            "include_weights": guardrails.explain.include_weights,
        }
        if guardrails.scoring.strategy == "simple":
            # Tradeoff weight deltas only apply to the weighted composite.
            options["weights"] = base_weights
            options["skill_split"] = (
                guardrails.scoring.weights.must_have,
                guardrails.scoring.weights.nice_to_have,
            )
        else:
            options["weights"] = adjustment.weights

        matches = self._score_pool(job, members, options)

        executed = [PipelineStep.MATCH]
        skipped: list[PipelineStep] = []
        confidences: list[MatchConfidence | None] = [None] * len(members)
        if profile.is_enabled(PipelineStep.CONFIDENCE):
            executed.append(PipelineStep.CONFIDENCE)
            confidences = [
                compute_match_confidence(
                    job,
                    member.candidate,
                    as_of=reference,
                    thresholds=self._confidence_thresholds,
                )
                for member in members
            ]
        else:
            skipped.append(PipelineStep.CONFIDENCE)

        include_explanation = profile.is_enabled(PipelineStep.EXPLAIN)
        if include_explanation:
            executed.append(PipelineStep.EXPLAIN)
        else:
            skipped.append(PipelineStep.EXPLAIN)
        for step in skipped:
            self._logger.info(
                "pipeline.step_skipped",
                step=step.value,
                mode=profile.mode.value,
                reason=STEP_DISABLED_NOTE,
            )

        outcomes = [
            CandidateOutcome(match=match, confidence=confidence, include_explanation=include_explanation)
            for match, confidence in zip(matches, confidences)
        ]
        scored = [
            ScoredCandidate.from_match(
                outcome.match,
                confidence=outcome.confidence.score if outcome.confidence is not None else None,
                is_internal=member.candidate.is_internal,
            )
            for outcome, member in zip(outcomes, members)
        ]

        shortlist = run_shortlist(
            job,
            scored,
            guardrails,
            profile.mode,
            min_score_adjustment=adjustment.min_score_adjustment,
        )
        executed.append(PipelineStep.SHORTLIST)

        notes: list[str] = []
        for note in [*effective.notes, *shortlist.notes]:
            if note not in notes:
                notes.append(note)

        result = PipelineResult(
            job_id=job.job_id,
            tenant_id=tenant_id,
            mode=profile.mode,
            tradeoffs=format_tradeoff_declaration(declared),
            rationale=adjustment.rationale,
            weights=dict(matches[0].weights) if matches else adjustment.weights.as_dict(),
            min_score_adjustment=adjustment.min_score_adjustment,
            executed_steps=executed,
            skipped_steps=skipped,
            candidates=outcomes,
            shortlist=shortlist,
            notes=notes,
        )

        shortlisted = set(shortlist.shortlisted_candidates)
        for outcome in outcomes:
            if audit_logger:
                audit_logger.append(
                    {
                        "tenant_id": tenant_id,
                        "job_id": job.job_id,
                        "candidate_id": outcome.match.candidate_id,
                        "mode": profile.mode.value,
                        "score": outcome.match.score,
                        "confidence": outcome.confidence.score if outcome.confidence else None,
                        "shortlisted": outcome.match.candidate_id in shortlisted,
                        "strategy": shortlist.strategy,
                    }
                )
            self._logger.info(
                "pipeline.result",
                candidate_id=outcome.match.candidate_id,
                job_id=job.job_id,
                score=outcome.match.score,
                shortlisted=outcome.match.candidate_id in shortlisted,
            )
        return result

    def _score_pool(
        self,
        job: Job,
        members: list[PoolMember],
        options: dict[str, Any],
    ) -> list[MatchScore]:
        def score(member: PoolMember) -> MatchScore:
            return self._scorer.score(
                job,
                member.candidate,
                link=member.link,
                outreach_count=member.outreach_count,
                **options,
            )

        if self._max_workers and self._max_workers > 1 and len(members) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                # map() yields in submission order regardless of completion order.
                return list(executor.map(score, members))
        return [score(member) for member in members]

    def run(
        self,
        *,
        candidates_path: Path,
        job_path: Path,
        output_path: Path,
        tenant_id: str = "default",
        mode: OperatingMode | str | None = None,
        tradeoffs: Mapping[str, Any] | None = None,
        as_of: str | None = None,
        audit_logger: "AuditLogger | None" = None,
    ) -> dict[str, Any]:
        job = self._jobs.load(job_path)
        load_errors: list[str] = []
        try:
            members = self._candidates.load(candidates_path)
        except CandidateLoadError as exc:
            members = exc.partial
            load_errors.extend(exc.errors)
            self._logger.warning("candidates.partial_load", errors=exc.errors)

        result = self.rank(
            job,
            members,
            tenant_id=tenant_id,
            mode=mode,
            tradeoffs=tradeoffs,
            as_of=as_of,
            audit_logger=audit_logger,
        )

        metadata = {
            "job_id": job.job_id,
            "tenant_id": tenant_id,
            "candidate_count": len(members),
            "errors": load_errors,
            "timestamp": pendulum.now().to_iso8601_string(),
            "app_version": __version__,
        }
        payload = {"metadata": metadata, **result.to_dict()}
        self._writer.write(output_path, payload)
        return payload


def _json_default(value):  # type: ignore[override]
    if isinstance(value, pendulum.DateTime):
        return value.to_iso8601_string()
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False, default=_json_default))
            handle.write("\n")
