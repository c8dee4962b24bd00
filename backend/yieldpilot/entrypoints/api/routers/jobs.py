# yieldpilot/entrypoints/api/routers/jobs.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import require_api_key
from ....db import get_session
from ....jobs.rank import run_rank_job
from ....schemas import RecalculateResult

router = APIRouter(tags=["jobs"])


@router.post("/jobs/rank/recalculate", response_model=RecalculateResult, dependencies=[Depends(require_api_key)])
async def jobs_rank_recalculate(
    page_size: int | None = Query(None, ge=1, le=5000),
    session: AsyncSession = Depends(get_session),
) -> RecalculateResult:
    res = await run_rank_job(session, job_name="rank_api", page_size=page_size)
    return RecalculateResult(**res)
