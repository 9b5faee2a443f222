from __future__ import annotations

from datetime import datetime, timezone

import pytest

from talentrank.core import WatchdogConfig, evaluate_watchdog
from talentrank.core.watchdog import AlertType, error_histogram, percentile
from talentrank.schemas import RunSnapshot


def build_runs() -> list[RunSnapshot]:
    return [
        RunSnapshot(
            agent_name="MATCHER",
            status="FAILED" if index % 3 == 0 else "SUCCESS",
            duration_ms=1200 + index * 10,
            output_complete=index % 3 != 0,
            error_category="AI" if index % 4 == 0 else None,
            timestamp=datetime(2024, 4, 10 + index, 12, tzinfo=timezone.utc),
        )
        for index in range(12)
    ]


def steady_runs(count: int, *, failed: int = 0, duration_ms: float = 1200) -> list[RunSnapshot]:
    return [
        RunSnapshot(
            agent_name="SHORTLISTER",
            status="failed" if index < failed else "success",
            duration_ms=duration_ms,
        )
        for index in range(count)
    ]


def test_breaches_raise_tagged_alerts():
    report = evaluate_watchdog(
        build_runs(),
        WatchdogConfig(
            window_size=12,
            failure_rate_threshold=0.2,
            incomplete_rate_threshold=0.2,
            latency_p95_threshold_ms=1250,
            rate_jitter_tolerance=0.03,
            latency_jitter_tolerance_ms=10,
        ),
    )

    failure = report.alert(AlertType.FAILURE_RATE)
    latency = report.alert(AlertType.LATENCY)
    incomplete = report.alert(AlertType.INCOMPLETE_OUTPUT)

    assert failure is not None and latency is not None and incomplete is not None
    assert failure.metric == pytest.approx(1 / 3)
    assert failure.tags == ["failure-rate", "error:unknown", "error:AI"]
    assert failure.context["failed_runs"] == 4
    assert failure.context["recent_errors"] == [
        {"category": "unknown", "count": 3},
        {"category": "AI", "count": 1},
    ]
    assert latency.metric == 1310
    assert latency.tags == ["latency", "p95"]
    assert incomplete.metric == pytest.approx(1 / 3)
    assert incomplete.tags == ["output:incomplete", "quality"]


def test_alert_context_describes_window():
    report = evaluate_watchdog(build_runs(), {"window_size": 12, "latency_p95_threshold_ms": 100})

    latency = report.alert("LATENCY")
    assert latency is not None
    assert latency.sample_size == 12
    assert latency.context["window_start"] == "2024-04-10T12:00:00+00:00"
    assert latency.context["window_end"] == "2024-04-21T12:00:00+00:00"
    assert [run["duration_ms"] for run in latency.context["slowest_runs"]] == [1310, 1300, 1290]


def test_small_samples_never_alert():
    runs = steady_runs(3, failed=3, duration_ms=999_999)

    report = evaluate_watchdog(runs, {"min_window": 5})

    assert report.alerts == []
    assert report.summary.failure_rate == 1.0


def test_jitter_tolerance_suppresses_borderline_breaches():
    runs = steady_runs(8, failed=2)

    jitter = evaluate_watchdog(runs, {"failure_rate_threshold": 0.2, "rate_jitter_tolerance": 0.05})
    clear = evaluate_watchdog(runs, {"failure_rate_threshold": 0.2, "rate_jitter_tolerance": 0.02})

    assert jitter.alert(AlertType.FAILURE_RATE) is None
    assert [alert.type for alert in clear.alerts] == [AlertType.FAILURE_RATE]


def test_latency_jitter_tolerance():
    runs = steady_runs(10, duration_ms=60_400)

    assert evaluate_watchdog(runs).alerts == []
    assert evaluate_watchdog(runs, {"latency_jitter_tolerance_ms": 100}).alert("LATENCY") is not None


def test_only_trailing_window_is_considered():
    runs = steady_runs(10, failed=10) + steady_runs(20)

    report = evaluate_watchdog(runs, {"window_size": 20})

    assert report.summary.sample_size == 20
    assert report.summary.failure_rate == 0.0
    assert report.alerts == []


def test_accepts_camel_case_mappings():
    raw = [
        {"agentName": "MATCHER", "status": "FAILED", "durationMs": 10, "outputComplete": False}
        for _ in range(6)
    ]

    report = evaluate_watchdog(raw)

    assert {alert.type for alert in report.alerts} == {AlertType.FAILURE_RATE, AlertType.INCOMPLETE_OUTPUT}


def test_empty_input_reports_zeroes():
    report = evaluate_watchdog([])

    assert report.summary.sample_size == 0
    assert report.summary.latency_p95_ms == 0
    assert report.alerts == []
    assert report.to_dict()["alerts"] == []


def test_percentile_uses_sorted_index():
    assert percentile([5, 1, 3, 2, 4, 10, 9, 8, 7, 6], 0.95) == 10
    assert percentile([3, 1, 2], 0.5) == 2
    assert percentile([], 0.95) == 0


def test_error_histogram_orders_by_count_then_category():
    runs = [
        RunSnapshot(agent_name="A", status="failed", duration_ms=1, error_category=category)
        for category in ["timeout", "db", "timeout", "db", "auth", " "]
    ]

    assert error_histogram(runs) == [
        {"category": "db", "count": 2},
        {"category": "timeout", "count": 2},
        {"category": "auth", "count": 1},
        {"category": "unknown", "count": 1},
    ]


def test_report_serializes_alert_types():
    report = evaluate_watchdog(steady_runs(6, failed=6))

    payload = report.to_dict()

    assert payload["alerts"][0]["type"] == "FAILURE_RATE"
    assert payload["summary"]["sample_size"] == 6
