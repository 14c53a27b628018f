"""Celery application configuration."""

from __future__ import annotations

import logging
import os
from contextvars import Token
from datetime import timedelta

from celery import Celery
from celery.signals import task_postrun, task_prerun

from src.core.config import get_settings
from src.core.request_context import reset_request_id, set_request_id

logger = logging.getLogger(__name__)
_task_tokens: dict[str, Token[str | None]] = {}


def _get_broker_url() -> str:
    return os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")


def _get_backend_url() -> str:
    return os.getenv("CELERY_RESULT_BACKEND", _get_broker_url())


celery_app = Celery(
    "psyrisk",
    broker=_get_broker_url(),
    backend=_get_backend_url(),
    include=["src.tasks.reminder_task"],
)

celery_app.conf.update(
    timezone="UTC",
    enable_utc=True,
    task_acks_late=False,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "reminder-dispatch": {
            "task": "src.tasks.reminder_task.dispatch_reminders",
            "schedule": timedelta(minutes=get_settings().reminder_dispatch_interval_minutes),
        }
    },
)


@task_prerun.connect
def _attach_correlation_id(
    task_id: str | None = None,
    **_: object,
) -> None:
    """Attach a correlation ID to the task execution context for logging."""

    if not task_id:
        return
    _task_tokens[task_id] = set_request_id(task_id)


@task_postrun.connect
def _detach_correlation_id(
    task_id: str | None = None,
    **_: object,
) -> None:
    """Detach the task correlation ID from the execution context."""

    if not task_id:
        return
    token = _task_tokens.pop(task_id, None)
    if not token:
        return
    try:
        reset_request_id(token)
    except ValueError:
        logger.exception("Failed to reset task correlation ID")
