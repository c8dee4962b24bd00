# tests/test_rank_listing.py
import json

import pytest
from sqlalchemy import select

from yieldpilot.adapters.repos.listing_metrics import ListingMetricsRepository
from yieldpilot.domain.errors import ListingMetricsNotFound
from yieldpilot.domain.types import DEFAULT_WEIGHTS, EnrichmentSnapshot, KpiSnapshot, RankingWeights
from yieldpilot.models import ListingMetrics
from yieldpilot.service_layer.ranking import rank_listing
from yieldpilot.service_layer.weights import StaticWeightsProvider, set_ranking_weights


async def _row(async_session_maker, listing_id):
    async with async_session_maker() as s:
        q = select(ListingMetrics).where(ListingMetrics.listing_id == listing_id)
        return (await s.execute(q)).scalars().first()


@pytest.mark.asyncio
async def test_missing_record_raises(session):
    with pytest.raises(ListingMetricsNotFound):
        await rank_listing(session, "nope")


@pytest.mark.asyncio
async def test_ranks_from_stored_snapshots(session, add_metrics, async_session_maker):
    await add_metrics(
        "L1",
        kpis={"net_yield": 0.12, "dscr": 1.5, "cashflow_pm": 500},
        enrichment={"epc_rating": "A", "flood_risk": "none"},
    )

    res = await rank_listing(session, "L1")
    await session.commit()

    assert res.score == pytest.approx(100.0)

    row = await _row(async_session_maker, "L1")
    assert row.rank_score == pytest.approx(100.0)
    factors = json.loads(row.factors_json)
    assert set(factors) == {"net_yield_score", "dscr_score", "cashflow_score", "epc_score", "risk_score", "total"}
    assert factors["total"] == pytest.approx(row.rank_score)
    assert row.updated_at is not None


@pytest.mark.asyncio
async def test_missing_grade_defaults_to_e(session, add_metrics):
    await add_metrics("L2", kpis={}, enrichment={})

    res = await rank_listing(session, "L2", weights_provider=StaticWeightsProvider(DEFAULT_WEIGHTS))

    assert res.factors.epc_score == pytest.approx(100.0 / 3)
    # 0 - 50 + 0 + 3.33 + 10
    assert res.score == pytest.approx(-50.0 + 10.0 / 3 + 10.0)


@pytest.mark.asyncio
async def test_supplied_snapshots_replace_stored(session, add_metrics, async_session_maker):
    await add_metrics("L3", kpis={"net_yield": 0.01}, enrichment={"epc_rating": "G"})

    res = await rank_listing(
        session,
        "L3",
        KpiSnapshot(net_yield=0.06, dscr=1.25, cashflow_pm=250),
        EnrichmentSnapshot(epc_rating="D", flood_risk="medium"),
    )
    await session.commit()

    assert res.factors.net_yield_score == pytest.approx(50.0)
    assert res.factors.risk_score == 85.0

    row = await _row(async_session_maker, "L3")
    assert json.loads(row.kpis_json) == {"net_yield": 0.06, "dscr": 1.25, "cashflow_pm": 250}
    assert json.loads(row.enrichment_json) == {"epc_rating": "D", "flood_risk": "medium"}
    assert row.rank_score == pytest.approx(res.score)


@pytest.mark.asyncio
async def test_uses_flag_weights(session, add_metrics):
    await add_metrics("L4", kpis={"net_yield": 0.12}, enrichment={"epc_rating": "A"})
    await set_ranking_weights(session, RankingWeights(net_yield=1, dscr=0, cashflow_pm=0, epc=0, risk=0))
    await session.commit()

    res = await rank_listing(session, "L4")
    assert res.score == pytest.approx(100.0)


@pytest.mark.asyncio
async def test_rejected_write_raises(session, add_metrics, monkeypatch):
    await add_metrics("L5", kpis={"net_yield": 0.12})

    async def _no_rows(self, metrics_id, **kw):
        return 0

    monkeypatch.setattr(ListingMetricsRepository, "write_rank", _no_rows)

    with pytest.raises(ListingMetricsNotFound):
        await rank_listing(session, "L5")


@pytest.mark.asyncio
async def test_write_error_propagates_without_retry(session, add_metrics, monkeypatch):
    await add_metrics("L6", kpis={"net_yield": 0.12})
    calls = []

    async def _boom(self, metrics_id, **kw):
        calls.append(metrics_id)
        raise RuntimeError("disk full")

    monkeypatch.setattr(ListingMetricsRepository, "write_rank", _boom)

    with pytest.raises(RuntimeError, match="disk full"):
        await rank_listing(session, "L6")
    assert len(calls) == 1
