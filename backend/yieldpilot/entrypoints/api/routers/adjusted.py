# yieldpilot/entrypoints/api/routers/adjusted.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import require_api_key
from ....db import get_session
from ....domain.errors import ListingNotFound
from ....schemas import (
    AdjustedMetricsOut,
    AdjustedRecomputeRequest,
    AdjustedRecomputeResult,
    EpcAdviceOut,
    EpcAdviceRequest,
)
from ....service_layer.adjusted import get_adjusted_metrics, recompute_adjusted_metrics
from ....service_layer.epc_advisor import get_epc_advice

router = APIRouter(tags=["adjusted"])


@router.get("/listings/{listing_id}/adjusted-metrics", response_model=AdjustedMetricsOut)
async def read_adjusted_metrics(
    listing_id: str,
    session: AsyncSession = Depends(get_session),
) -> AdjustedMetricsOut:
    m = await get_adjusted_metrics(session, listing_id)
    if m is None:
        raise HTTPException(status_code=404, detail=f"No adjusted metrics for listing {listing_id}")
    return AdjustedMetricsOut(
        listing_id=m.listing_id,
        adjusted_net_yield_pct=m.adjusted_net_yield_pct,
        after_tax_cashflow=m.after_tax_cashflow,
        tax_due=m.tax_due,
        epc_upgrade_annual=m.epc_upgrade_annual,
        score_adjusted=m.score_adjusted,
        explain_json=m.explain_json,
    )


@router.post("/adjusted/recompute", response_model=AdjustedRecomputeResult, dependencies=[Depends(require_api_key)])
async def adjusted_recompute(
    body: AdjustedRecomputeRequest | None = None,
    session: AsyncSession = Depends(get_session),
) -> AdjustedRecomputeResult:
    body = body or AdjustedRecomputeRequest()
    try:
        res = await recompute_adjusted_metrics(session, body.listing_id, body.batch_size)
    except ListingNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return AdjustedRecomputeResult(**res)


@router.post("/listings/{listing_id}/epc-advice", response_model=EpcAdviceOut, dependencies=[Depends(require_api_key)])
async def epc_advice(
    listing_id: str,
    body: EpcAdviceRequest | None = None,
    session: AsyncSession = Depends(get_session),
) -> EpcAdviceOut:
    body = body or EpcAdviceRequest()
    try:
        advice = await get_epc_advice(session, listing_id, body.target)
    except ListingNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    await session.commit()
    return EpcAdviceOut(**advice.to_dict())
