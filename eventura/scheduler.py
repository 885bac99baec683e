"""Periodic triggers for the lifecycle and reminder jobs."""

from __future__ import annotations

import logging
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler

from eventura.core.config import Settings

logger = logging.getLogger(__name__)

TRANSITION_JOB_ID = "auto_transition_past_events"
REMINDER_JOB_ID = "send_upcoming_reminders"


def build_scheduler(
    settings: Settings,
    transition_job: Callable[[], object],
    reminder_job: Callable[[], object],
) -> BackgroundScheduler:
    """Register both jobs on an interval trigger without starting the scheduler.

    ``max_instances=1`` keeps two runs of the same job from overlapping in
    this process; ``coalesce`` merges runs missed while the process was down.
    """
    scheduler = BackgroundScheduler(timezone="UTC")
    for job_id, func in (
        (TRANSITION_JOB_ID, transition_job),
        (REMINDER_JOB_ID, reminder_job),
    ):
        scheduler.add_job(
            func,
            trigger="interval",
            minutes=settings.job_interval_minutes,
            id=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
    return scheduler


def start_scheduler(
    settings: Settings,
    transition_job: Callable[[], object],
    reminder_job: Callable[[], object],
) -> BackgroundScheduler | None:
    if not settings.enable_scheduler:
        logger.info("Scheduler disabled via settings (ENABLE_SCHEDULER=False)")
        return None

    scheduler = build_scheduler(settings, transition_job, reminder_job)
    scheduler.start()
    logger.info(
        "Scheduler started: lifecycle and reminder jobs every %d minute(s)",
        settings.job_interval_minutes,
    )
    return scheduler
