"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

HTTP_REQUESTS_TOTAL = Counter(
    "psyrisk_http_requests_total",
    "Total number of HTTP requests.",
    ["method", "route", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "psyrisk_http_request_duration_seconds",
    "HTTP request duration in seconds.",
    ["method", "route", "status"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

REMINDERS_PROCESSED_TOTAL = Counter(
    "psyrisk_reminders_processed_total",
    "Reminder work items processed by the dispatcher.",
    ["reminder_type", "outcome"],
)

REMINDER_DISPATCH_DURATION_SECONDS = Histogram(
    "psyrisk_reminder_dispatch_duration_seconds",
    "Duration of one reminder dispatch cycle in seconds.",
    buckets=(0.05, 0.1, 0.5, 1.0, 5.0, 15.0, 60.0),
)

REMINDERS_SCHEDULED_TOTAL = Counter(
    "psyrisk_reminders_scheduled_total",
    "Reminder work items created by the scheduler.",
    ["reminder_type"],
)

TOKEN_VALIDATIONS_TOTAL = Counter(
    "psyrisk_token_validations_total",
    "Portal access token checks by outcome.",
    ["mode", "outcome"],
)

ASSESSMENTS_COMPLETED_TOTAL = Counter(
    "psyrisk_assessments_completed_total",
    "Completed assessments by risk tier.",
    ["risk_tier"],
)


def observe_http_request(
    *,
    method: str,
    route: str,
    status_code: int,
    duration_ms: float,
) -> None:
    status = str(status_code)
    HTTP_REQUESTS_TOTAL.labels(method=method, route=route, status=status).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(
        method=method, route=route, status=status
    ).observe(duration_ms / 1000.0)


def observe_reminder(reminder_type: str, outcome: str) -> None:
    REMINDERS_PROCESSED_TOTAL.labels(reminder_type=reminder_type, outcome=outcome).inc()


def observe_token_validation(mode: str, outcome: str) -> None:
    TOKEN_VALIDATIONS_TOTAL.labels(mode=mode, outcome=outcome).inc()
