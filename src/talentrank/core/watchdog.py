"""Rolling-window anomaly detection over agent run outcomes."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..schemas import RunSnapshot

logger = structlog.get_logger(__name__)

UNKNOWN_CATEGORY = "unknown"
MAX_ERROR_TAGS = 3
SLOWEST_RUNS = 3


class WatchdogConfig(BaseModel):
    window_size: int = Field(default=25, ge=1)
    min_window: int = Field(default=5, ge=0)
    failure_rate_threshold: float = Field(default=0.2, ge=0.0)
    latency_p95_threshold_ms: float = Field(default=60_000.0, ge=0.0)
    incomplete_rate_threshold: float = Field(default=0.1, ge=0.0)
    rate_jitter_tolerance: float = Field(default=0.05, ge=0.0)
    latency_jitter_tolerance_ms: float = Field(default=500.0, ge=0.0)

    model_config = ConfigDict(extra="forbid", frozen=True)


DEFAULT_WATCHDOG_CONFIG = WatchdogConfig()


class AlertType(str, Enum):
    FAILURE_RATE = "FAILURE_RATE"
    LATENCY = "LATENCY"
    INCOMPLETE_OUTPUT = "INCOMPLETE_OUTPUT"


@dataclass(slots=True)
class WatchdogAlert:
    type: AlertType
    metric: float
    threshold: float
    sample_size: int
    tags: list[str]
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class WatchdogSummary:
    sample_size: int
    failure_rate: float
    latency_p95_ms: float
    incomplete_output_rate: float


@dataclass(slots=True)
class WatchdogReport:
    summary: WatchdogSummary
    alerts: list[WatchdogAlert] = field(default_factory=list)

    def alert(self, alert_type: AlertType | str) -> WatchdogAlert | None:
        wanted = AlertType(alert_type)
        return next((alert for alert in self.alerts if alert.type == wanted), None)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        for alert in payload["alerts"]:
            alert["type"] = alert["type"].value
        return payload


def percentile(values: Iterable[float], rank: float) -> float:
    """Nearest-rank percentile: ``sorted[ceil(rank * n) - 1]``, no interpolation."""
    ordered = sorted(values)
    if not ordered:
        return 0.0
    index = math.ceil(rank * len(ordered)) - 1
    return ordered[max(0, index)]


def error_histogram(window: list[RunSnapshot]) -> list[dict[str, Any]]:
    counts: dict[str, int] = {}
    for run in window:
        if not run.failed:
            continue
        category = (run.error_category or "").strip() or UNKNOWN_CATEGORY
        counts[category] = counts.get(category, 0) + 1
    return [
        {"category": category, "count": count}
        for category, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def _base_context(window: list[RunSnapshot]) -> dict[str, Any]:
    slowest = sorted(window, key=lambda run: -run.duration_ms)[:SLOWEST_RUNS]
    return {
        "sample_size": len(window),
        "window_start": _iso(window[0].timestamp) if window else None,
        "window_end": _iso(window[-1].timestamp) if window else None,
        "recent_errors": error_histogram(window),
        "slowest_runs": [
            {"duration_ms": run.duration_ms, "status": run.status, "timestamp": _iso(run.timestamp)}
            for run in slowest
        ],
    }


def _failure_tags(histogram: list[dict[str, Any]]) -> list[str]:
    return ["failure-rate", *(f"error:{entry['category']}" for entry in histogram[:MAX_ERROR_TAGS])]


def _coerce_runs(snapshots: Iterable[RunSnapshot | Mapping[str, Any]]) -> list[RunSnapshot]:
    return [
        snapshot if isinstance(snapshot, RunSnapshot) else RunSnapshot.model_validate(snapshot)
        for snapshot in snapshots
    ]


def evaluate_watchdog(
    snapshots: Iterable[RunSnapshot | Mapping[str, Any]],
    config: WatchdogConfig | Mapping[str, Any] | None = None,
) -> WatchdogReport:
    """Evaluate the trailing window and return a summary plus any alerts.

    An alert fires only when the window holds at least ``min_window`` runs
    and the metric is strictly above threshold plus its jitter tolerance.
    """
    if config is None:
        settings = DEFAULT_WATCHDOG_CONFIG
    elif isinstance(config, WatchdogConfig):
        settings = config
    else:
        settings = WatchdogConfig.model_validate({**DEFAULT_WATCHDOG_CONFIG.model_dump(), **config})

    window = _coerce_runs(snapshots)[-settings.window_size :]
    sample_size = len(window)

    failed = [run for run in window if run.failed]
    incomplete = [run for run in window if not run.output_complete]
    failure_rate = len(failed) / sample_size if sample_size else 0.0
    incomplete_rate = len(incomplete) / sample_size if sample_size else 0.0
    latency_p95 = percentile((run.duration_ms for run in window), 0.95)

    summary = WatchdogSummary(
        sample_size=sample_size,
        failure_rate=failure_rate,
        latency_p95_ms=latency_p95,
        incomplete_output_rate=incomplete_rate,
    )
    report = WatchdogReport(summary=summary)
    if sample_size < settings.min_window:
        return report

    context = _base_context(window)

    if failure_rate > settings.failure_rate_threshold + settings.rate_jitter_tolerance:
        report.alerts.append(
            WatchdogAlert(
                type=AlertType.FAILURE_RATE,
                metric=failure_rate,
                threshold=settings.failure_rate_threshold,
                sample_size=sample_size,
                tags=_failure_tags(context["recent_errors"]),
                context={**context, "failed_runs": len(failed), "failure_rate": failure_rate},
            )
        )

    if latency_p95 > settings.latency_p95_threshold_ms + settings.latency_jitter_tolerance_ms:
        report.alerts.append(
            WatchdogAlert(
                type=AlertType.LATENCY,
                metric=latency_p95,
                threshold=settings.latency_p95_threshold_ms,
                sample_size=sample_size,
                tags=["latency", "p95"],
                context={**context, "latency_p95_ms": latency_p95},
            )
        )

    if incomplete_rate > settings.incomplete_rate_threshold + settings.rate_jitter_tolerance:
        report.alerts.append(
            WatchdogAlert(
                type=AlertType.INCOMPLETE_OUTPUT,
                metric=incomplete_rate,
                threshold=settings.incomplete_rate_threshold,
                sample_size=sample_size,
                tags=["output:incomplete", "quality"],
                context={**context, "incomplete_output_rate": incomplete_rate},
            )
        )

    for alert in report.alerts:
        logger.warning(
            "watchdog.alert",
            alert_type=alert.type.value,
            metric=alert.metric,
            threshold=alert.threshold,
            sample_size=sample_size,
            tags=alert.tags,
        )
    return report


__all__ = [
    "AlertType",
    "WatchdogConfig",
    "DEFAULT_WATCHDOG_CONFIG",
    "WatchdogAlert",
    "WatchdogSummary",
    "WatchdogReport",
    "percentile",
    "error_histogram",
    "evaluate_watchdog",
]
