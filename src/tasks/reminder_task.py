"""Celery task for reminder delivery."""

import asyncio
import logging
import time

from src.core.database import create_worker_sessionmaker, wait_for_database
from src.core.structured_logging import log_json
from src.services.reminder_dispatcher import ReminderDispatcher
from src.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


async def run_dispatch_cycle() -> dict[str, int]:
    """One dispatcher cycle on a private engine (one event loop per task)."""
    engine, session_factory = create_worker_sessionmaker()
    try:
        await wait_for_database(engine)
        async with session_factory() as session:
            try:
                report = await ReminderDispatcher(session).run_cycle()
                await session.commit()
                return report.as_dict()
            except Exception:
                await session.rollback()
                raise
    finally:
        await engine.dispose()


@celery_app.task(name="src.tasks.reminder_task.dispatch_reminders")
def dispatch_reminders() -> dict[str, int]:
    """Deliver reminder work items whose fire time has passed.

    Runs every ``REMINDER_DISPATCH_INTERVAL_MINUTES`` via Celery Beat (see
    `src.tasks.celery_app`). Overlapping runs are safe; items are claimed
    one by one.
    """

    started = time.perf_counter()
    log_json(logger, logging.INFO, "reminder_dispatch_start")

    try:
        report = asyncio.run(run_dispatch_cycle())
    except Exception as exc:
        duration_ms = (time.perf_counter() - started) * 1000
        log_json(
            logger,
            logging.ERROR,
            "reminder_dispatch_error",
            duration_ms=round(duration_ms, 2),
            error=str(exc),
            exception=exc.__class__.__name__,
        )
        raise

    duration_ms = (time.perf_counter() - started) * 1000
    log_json(
        logger,
        logging.INFO,
        "reminder_dispatch_done",
        duration_ms=round(duration_ms, 2),
        **report,
    )
    return report
