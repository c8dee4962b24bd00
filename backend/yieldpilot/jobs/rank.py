# yieldpilot/jobs/rank.py
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..domain.types import RankingWeights
from ..service_layer.jobruns import finish_job_fail, finish_job_success, start_job
from ..service_layer.ranking import recalculate_all
from ..service_layer.weights import FlagStoreWeightsProvider

log = logging.getLogger(__name__)

JOB_NAME = "rank_recalculate"


async def run_rank_job(
    session: AsyncSession,
    *,
    job_name: str = JOB_NAME,
    weights: RankingWeights | None = None,
    page_size: int | None = None,
) -> dict[str, Any]:
    """
    recalculate_all() wrapped in a job_runs row. The row is committed before
    the batch starts because the batch commits/rolls back per record.

    Weights and page size are resolved here so the job run records exactly
    what the batch used.
    """
    size = max(1, int(page_size or settings.RANK_BATCH_PAGE_SIZE))
    if weights is None:
        weights = await FlagStoreWeightsProvider(session).get_ranking_weights()

    params = {"page_size": size, "weights": weights.to_dict()}
    jr = await start_job(session, job_name, params)
    await session.commit()

    try:
        res = await recalculate_all(session, weights, page_size=size)
    except Exception as e:
        await session.rollback()
        await finish_job_fail(session, jr, e)
        await session.commit()
        raise

    # per-record rollbacks expire jr, so the summary is rebuilt, not read back
    await finish_job_success(session, jr, {**params, **res})
    await session.commit()
    return res
