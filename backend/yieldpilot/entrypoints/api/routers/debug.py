# yieldpilot/entrypoints/api/routers/debug.py
from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import require_api_key
from ....config import settings
from ....db import get_session
from ....models import JobRun
from ....schemas import JobRunOut

router = APIRouter(tags=["debug"])


@router.get("/debug/config", dependencies=[Depends(require_api_key)])
def debug_config() -> dict[str, Any]:
    """
    IMPORTANT: This reads the *running server's* settings, not your shell's.
    Safe to expose because secrets are reduced to a flag.
    """
    return {
        "ENV": settings.ENV,
        "YIELDPILOT_DB_URL": settings.YIELDPILOT_DB_URL,
        "RANKING_WEIGHTS_FLAG_KEY": settings.RANKING_WEIGHTS_FLAG_KEY,
        "RANK_BATCH_PAGE_SIZE": settings.RANK_BATCH_PAGE_SIZE,
        "SCHED_RANK_INTERVAL_MINUTES": settings.SCHED_RANK_INTERVAL_MINUTES,
        "API_KEY_SET": bool(settings.API_KEY),
    }


def _summary(raw: str | None) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return {"raw": raw[:1200]}
    return data if isinstance(data, dict) else {"value": data}


@router.get("/debug/job_runs/latest", response_model=list[JobRunOut], dependencies=[Depends(require_api_key)])
async def debug_job_runs_latest(
    limit: int = Query(default=5, ge=1, le=50),
    session: AsyncSession = Depends(get_session),
) -> list[JobRunOut]:
    rows = (
        (await session.execute(select(JobRun).order_by(JobRun.id.desc()).limit(int(limit))))
        .scalars()
        .all()
    )
    return [
        JobRunOut(
            id=r.id,
            job_name=r.job_name,
            status=r.status.value,
            started_at=r.started_at,
            finished_at=r.finished_at,
            error=(r.error or "")[:1200] or None,
            summary=_summary(r.summary_json),
        )
        for r in rows
    ]
