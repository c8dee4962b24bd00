# yieldpilot/entrypoints/api/routers/ranking.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import require_api_key
from ....db import get_session
from ....domain.errors import ListingMetricsNotFound
from ....domain.ranking import explain
from ....domain.types import EnrichmentSnapshot, KpiSnapshot, RankingWeights, RankResult
from ....schemas import (
    EnrichmentIn,
    KpisIn,
    ListingRankOut,
    RankFactorsOut,
    RankingWeightsIO,
    RankListingRequest,
    RankResultOut,
    ScoreRequest,
)
from ....service_layer.ranking import rank_listing, score_snapshots
from ....service_layer.weights import StaticWeightsProvider, get_ranking_weights, set_ranking_weights

router = APIRouter(tags=["ranking"])


def _kpis(body: KpisIn | None) -> KpiSnapshot | None:
    if body is None:
        return None
    return KpiSnapshot.from_dict(body.model_dump())


def _enrichment(body: EnrichmentIn | None) -> EnrichmentSnapshot | None:
    if body is None:
        return None
    return EnrichmentSnapshot.from_dict(body.model_dump())


def _result_out(result: RankResult, weights: RankingWeights) -> dict:
    return {
        "score": result.score,
        "factors": RankFactorsOut(**result.factors.to_dict()),
        "explain": explain(result, weights),
    }


@router.get("/ranking/weights", response_model=RankingWeightsIO)
async def read_weights(session: AsyncSession = Depends(get_session)) -> RankingWeightsIO:
    weights = await get_ranking_weights(session)
    return RankingWeightsIO(**weights.to_dict())


@router.put("/ranking/weights", response_model=RankingWeightsIO, dependencies=[Depends(require_api_key)])
async def write_weights(
    body: RankingWeightsIO,
    session: AsyncSession = Depends(get_session),
) -> RankingWeightsIO:
    await set_ranking_weights(session, RankingWeights(**body.model_dump()))
    await session.commit()
    return body


@router.post("/ranking/score", response_model=RankResultOut)
async def score(
    body: ScoreRequest,
    session: AsyncSession = Depends(get_session),
) -> RankResultOut:
    """Calculation only; nothing is written."""
    if body.weights is not None:
        weights = RankingWeights(**body.weights.model_dump())
    else:
        weights = await get_ranking_weights(session)

    result = score_snapshots(_kpis(body.kpis), _enrichment(body.enrichment), weights)
    return RankResultOut(**_result_out(result, weights))


@router.post(
    "/ranking/listings/{listing_id}",
    response_model=ListingRankOut,
    dependencies=[Depends(require_api_key)],
)
async def rank_one(
    listing_id: str,
    body: RankListingRequest | None = None,
    session: AsyncSession = Depends(get_session),
) -> ListingRankOut:
    body = body or RankListingRequest()
    # resolve once so the explain string matches what was used
    weights = await get_ranking_weights(session)
    try:
        result = await rank_listing(
            session,
            listing_id,
            _kpis(body.kpis),
            _enrichment(body.enrichment),
            weights_provider=StaticWeightsProvider(weights),
        )
    except ListingMetricsNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    await session.commit()
    return ListingRankOut(listing_id=listing_id, **_result_out(result, weights))
