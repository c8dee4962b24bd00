# tests/test_adjusted_and_epc.py
import json
from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from yieldpilot.domain.errors import ListingNotFound
from yieldpilot.models import AdjustedMetrics, AdviceAudit, EpcUpgradeCost
from yieldpilot.service_layer.adjusted import get_adjusted_metrics, recompute_adjusted_metrics
from yieldpilot.service_layer.epc_advisor import get_epc_advice


async def _add_adjusted(session, listing_id, calculated_at=None, explain=None):
    session.add(
        AdjustedMetrics(
            listing_id=listing_id,
            adjusted_net_yield_pct=5.4,
            after_tax_cashflow=2400.0,
            tax_due=600.0,
            epc_upgrade_annual=350.0,
            score_adjusted=61.5,
            explain_json=explain,
            calculated_at=calculated_at or datetime(2026, 1, 1),
        )
    )
    await session.commit()


@pytest.mark.asyncio
async def test_adjusted_metrics_absent(session):
    assert await get_adjusted_metrics(session, "missing") is None


@pytest.mark.asyncio
async def test_adjusted_metrics_pass_through(session):
    await _add_adjusted(session, "L1", explain=json.dumps({"tax_method": "section_24", "epc_gap": True}))

    m = await get_adjusted_metrics(session, "L1")
    assert m is not None
    assert m.adjusted_net_yield_pct == 5.4
    assert m.tax_due == 600.0
    assert m.explain_json == {"tax_method": "section_24", "epc_gap": True}


@pytest.mark.asyncio
async def test_adjusted_metrics_bad_explain_is_dropped(session):
    await _add_adjusted(session, "L2", explain="{{{")
    m = await get_adjusted_metrics(session, "L2")
    assert m.explain_json == {}


@pytest.mark.asyncio
async def test_recompute_single_and_batch(session):
    base = datetime(2026, 3, 1)
    for i in range(3):
        await _add_adjusted(session, f"L{i}", calculated_at=base + timedelta(hours=i))

    single = await recompute_adjusted_metrics(session, "L1")
    assert single["success"] is True
    assert single["processed"] == 1

    batch = await recompute_adjusted_metrics(session, batch_size=2)
    assert batch["processed"] == 2
    assert batch["duration_ms"] >= 0

    with pytest.raises(ListingNotFound):
        await recompute_adjusted_metrics(session, "nope")


@pytest.mark.asyncio
async def test_epc_advice_missing_listing(session):
    with pytest.raises(ListingNotFound):
        await get_epc_advice(session, "nope")


@pytest.mark.asyncio
async def test_epc_advice_uses_cost_table_and_audits(session, add_listing):
    await add_listing("L1", country="UK", property_type="flat", epc_rating="E", price=200000.0, estimated_rent=1000.0)
    session.add(EpcUpgradeCost(country="UK", property_type="flat", current_epc="E", target_epc="C", est_cost_min=6000.0, est_cost_max=12000.0))
    await session.commit()

    advice = await get_epc_advice(session, "L1")
    await session.commit()

    assert advice.target_epc == "C"
    assert advice.cost_estimate_median == 9000.0
    assert advice.payback_years == 125
    assert not advice.is_fallback

    audits = (await session.execute(select(AdviceAudit))).scalars().all()
    assert len(audits) == 1
    assert audits[0].advice_type == "epc_retrofit"
    assert json.loads(audits[0].request_json) == {"target": "C"}


@pytest.mark.asyncio
async def test_epc_advice_fallback_not_audited(session, add_listing):
    await add_listing("L2", country=None, epc_rating="F", price=150000.0)

    advice = await get_epc_advice(session, "L2", "C")
    await session.commit()

    assert advice.is_fallback
    assert advice.epc_gap == 3
    assert (await session.execute(select(AdviceAudit))).scalars().all() == []


@pytest.mark.asyncio
async def test_epc_advice_already_compliant(session, add_listing):
    await add_listing("L3", epc_rating="B", price=100000.0)
    advice = await get_epc_advice(session, "L3", "C")
    assert advice.epc_gap == 0
    assert advice.message
