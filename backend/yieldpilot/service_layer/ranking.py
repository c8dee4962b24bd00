# yieldpilot/service_layer/ranking.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.repos.listing_metrics import ListingMetricsRepository, MetricsRow, decode_json_object
from ..config import settings
from ..domain.errors import ListingMetricsNotFound
from ..domain.ranking import calculate_rank_score, explain
from ..domain.types import EnrichmentSnapshot, KpiSnapshot, RankingWeights, RankResult
from ..models import utcnow
from .weights import FlagStoreWeightsProvider, WeightsProvider

log = logging.getLogger(__name__)

# Applied before scoring when the enrichment has no grade.
# (calculate_rank_score itself scores a missing grade as 50.)
DEFAULT_EPC_RATING = "E"


def with_caller_defaults(enrichment: EnrichmentSnapshot) -> EnrichmentSnapshot:
    if enrichment.epc_rating:
        return enrichment
    return replace(enrichment, epc_rating=DEFAULT_EPC_RATING)


def _snapshots_from_row(row: MetricsRow) -> tuple[KpiSnapshot, EnrichmentSnapshot]:
    kpis = KpiSnapshot.from_dict(decode_json_object(row.kpis_json))
    enrichment = EnrichmentSnapshot.from_dict(decode_json_object(row.enrichment_json))
    return kpis, enrichment


def score_snapshots(kpis: KpiSnapshot, enrichment: EnrichmentSnapshot, weights: RankingWeights) -> RankResult:
    return calculate_rank_score(kpis, with_caller_defaults(enrichment), weights)


async def rank_listing(
    session: AsyncSession,
    listing_id: str,
    kpis: KpiSnapshot | None = None,
    enrichment: EnrichmentSnapshot | None = None,
    *,
    weights_provider: WeightsProvider | None = None,
) -> RankResult:
    """
    Recompute and persist one listing's rank.

    Supplied snapshots replace the stored ones (so a later batch pass agrees);
    omitted snapshots are read from the record. Raises ListingMetricsNotFound
    if there is no listing_metrics row. Caller commits.
    """
    repo = ListingMetricsRepository(session)
    row = await repo.get_by_listing_id(listing_id)
    if row is None:
        raise ListingMetricsNotFound(listing_id)

    provider = weights_provider or FlagStoreWeightsProvider(session)
    weights = await provider.get_ranking_weights()

    if kpis is None:
        kpis = KpiSnapshot.from_dict(decode_json_object(row.kpis_json))
    else:
        await repo.upsert_snapshots(listing_id, kpis=kpis.to_dict())
    if enrichment is None:
        enrichment = EnrichmentSnapshot.from_dict(decode_json_object(row.enrichment_json))
    else:
        await repo.upsert_snapshots(listing_id, enrichment=enrichment.to_dict())

    result = score_snapshots(kpis, enrichment, weights)

    written = await repo.write_rank(row.id, rank_score=result.score, factors=result.factors.to_dict())
    if written != 1:
        raise ListingMetricsNotFound(listing_id)

    log.debug("ranked listing %s: %s", listing_id, explain(result, weights))
    return result


async def recalculate_all(
    session: AsyncSession,
    weights: RankingWeights | None = None,
    *,
    weights_provider: WeightsProvider | None = None,
    page_size: int | None = None,
) -> dict[str, Any]:
    """
    Batch recompute over every listing_metrics row.

    Weights are resolved once for the whole invocation. Each record is
    committed on its own; a failing record is rolled back, logged and counted
    in `errors`, and the batch moves on. `processed` counts successful writes.
    """
    if weights is None:
        provider = weights_provider or FlagStoreWeightsProvider(session)
        weights = await provider.get_ranking_weights()

    log.info("[RANKER] using weights: %s", weights.to_dict())

    repo = ListingMetricsRepository(session)
    size = max(1, int(page_size or settings.RANK_BATCH_PAGE_SIZE))

    processed = 0
    errors = 0

    async for page in repo.iter_pages(size):
        for row in page:
            try:
                kpis, enrichment = _snapshots_from_row(row)
                result = score_snapshots(kpis, enrichment, weights)
                await repo.write_rank(
                    row.id,
                    rank_score=result.score,
                    factors=result.factors.to_dict(),
                    updated_at=utcnow(),
                )
                await session.commit()
                processed += 1
            except Exception:
                log.exception("error ranking listing %s", row.listing_id)
                await session.rollback()
                errors += 1

    log.info("[RANKER] processed=%d errors=%d", processed, errors)
    return {"processed": processed, "errors": errors}
