"""Small structured logging helper.

Every component logs one JSON object per line so the API, the Celery worker
and the beat scheduler can be read by the same log collector.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from src.core.request_context import get_request_id

SERVICE_NAME = "psyrisk"


def log_json(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """Emit a single JSON log line with optional request/task correlation ID."""

    if not logger.isEnabledFor(level):
        return

    payload: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "service": SERVICE_NAME,
        "logger": logger.name,
        "event": event,
    }
    request_id = get_request_id()
    if request_id:
        payload["request_id"] = request_id

    payload.update(fields)
    logger.log(level, json.dumps(payload, default=str))
