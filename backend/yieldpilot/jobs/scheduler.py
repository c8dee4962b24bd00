# yieldpilot/jobs/scheduler.py
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..config import settings
from ..db import async_session
from .rank import run_rank_job

log = logging.getLogger(__name__)


async def _run_rank() -> None:
    # fresh session per run: weights are re-read every invocation
    async with async_session() as session:
        try:
            res = await run_rank_job(session=session, job_name="rank_scheduled")
        except Exception:
            log.exception("scheduled rank recalculation failed")
            return
    log.info("scheduled rank recalculation: %s", res)


def build_scheduler(interval_minutes: int | None = None) -> AsyncIOScheduler:
    sched = AsyncIOScheduler()

    minutes = int(interval_minutes or settings.SCHED_RANK_INTERVAL_MINUTES)
    sched.add_job(
        _run_rank,
        "interval",
        minutes=minutes,
        id="rank_recalculate",
        max_instances=1,
        coalesce=True,
    )

    return sched
