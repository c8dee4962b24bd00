# yieldpilot/service_layer/jobruns.py
from __future__ import annotations

import json
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import JobRun, JobRunStatus, utcnow


async def start_job(session: AsyncSession, job_name: str, params: dict[str, Any] | None = None) -> JobRun:
    """Open a running job_runs row; `params` (page size, weights) seed summary_json."""
    jr = JobRun(
        job_name=job_name,
        started_at=utcnow(),
        status=JobRunStatus.running,
        summary_json=json.dumps(params or {}),
    )
    session.add(jr)
    await session.flush()
    return jr


async def finish_job_success(session: AsyncSession, jr: JobRun, summary: dict[str, Any]) -> None:
    jr.status = JobRunStatus.success
    jr.finished_at = utcnow()
    jr.summary_json = json.dumps(summary)
    jr.error = None
    await session.flush()


async def finish_job_fail(session: AsyncSession, jr: JobRun, err: Exception) -> None:
    jr.status = JobRunStatus.failed
    jr.finished_at = utcnow()
    jr.error = str(err)[:4000]
    await session.flush()
