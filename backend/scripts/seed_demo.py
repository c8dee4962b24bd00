# scripts/seed_demo.py
from __future__ import annotations

import argparse
import asyncio
import json

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from yieldpilot.db import async_session, engine
from yieldpilot.domain.types import DEFAULT_WEIGHTS
from yieldpilot.adapters.repos.listing_metrics import ListingMetricsRepository
from yieldpilot.models import AdjustedMetrics, Base, EpcUpgradeCost, Listing
from yieldpilot.service_layer.weights import set_ranking_weights

DEMO_LISTINGS: list[dict] = [
    {
        "id": "demo-leeds-1",
        "country": "UK",
        "property_type": "terraced",
        "epc_rating": "E",
        "price": 145000.0,
        "estimated_rent": 950.0,
        "kpis": {"net_yield": 0.071, "dscr": 1.32, "cashflow_pm": 310.0},
        "enrichment": {"epc_rating": "E", "flood_risk": "none", "crime_score": 55, "lease_years": 999, "days_on_market": 21},
    },
    {
        "id": "demo-hull-2",
        "country": "UK",
        "property_type": "flat",
        "epc_rating": "C",
        "price": 82000.0,
        "estimated_rent": 625.0,
        "kpis": {"net_yield": 0.094, "dscr": 1.61, "cashflow_pm": 405.0},
        "enrichment": {"epc_rating": "C", "flood_risk": "medium", "crime_score": 74, "lease_years": 85, "days_on_market": 140},
    },
    {
        "id": "demo-york-3",
        "country": "UK",
        "property_type": "semi_detached",
        "epc_rating": None,
        "price": 265000.0,
        "estimated_rent": 1250.0,
        "kpis": {"net_yield": 0.038, "dscr": 0.92, "cashflow_pm": -85.0},
        "enrichment": {"flood_risk": "high"},
    },
]

DEMO_COSTS: list[tuple[str, str, float, float]] = [
    ("E", "C", 6500.0, 11000.0),
    ("D", "C", 3500.0, 7000.0),
    ("F", "C", 9000.0, 16000.0),
]


async def _ensure_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _upsert_listing(session: AsyncSession, item: dict) -> None:
    listing = await session.get(Listing, item["id"])
    if listing is None:
        listing = Listing(id=item["id"])
        session.add(listing)
    listing.country = item["country"]
    listing.property_type = item["property_type"]
    listing.epc_rating = item["epc_rating"]
    listing.price = item["price"]
    listing.estimated_rent = item["estimated_rent"]

    await ListingMetricsRepository(session).upsert_snapshots(
        item["id"], kpis=item["kpis"], enrichment=item["enrichment"]
    )

    adj = (await session.execute(select(AdjustedMetrics).where(AdjustedMetrics.listing_id == item["id"]))).scalars().first()
    if adj is None:
        adj = AdjustedMetrics(listing_id=item["id"])
        session.add(adj)
    net_pct = item["kpis"]["net_yield"] * 100.0
    adj.adjusted_net_yield_pct = round(net_pct * 0.82, 2)
    adj.after_tax_cashflow = round(item["kpis"]["cashflow_pm"] * 12 * 0.8, 2)
    adj.tax_due = round(item["kpis"]["cashflow_pm"] * 12 * 0.2, 2)
    adj.epc_upgrade_annual = 0.0
    adj.score_adjusted = round(net_pct * 8.0, 2)
    adj.explain_json = json.dumps({"tax_method": "section_24", "penalties_applied": []})
    await session.flush()


async def _seed_costs(session: AsyncSession) -> None:
    for current, target, lo, hi in DEMO_COSTS:
        exists = (
            await session.execute(
                select(EpcUpgradeCost)
                .where(EpcUpgradeCost.country == "UK")
                .where(EpcUpgradeCost.current_epc == current)
                .where(EpcUpgradeCost.target_epc == target)
            )
        ).scalars().first()
        if exists is None:
            session.add(
                EpcUpgradeCost(
                    country="UK",
                    property_type="any",
                    current_epc=current,
                    target_epc=target,
                    est_cost_min=lo,
                    est_cost_max=hi,
                )
            )
    await session.flush()


async def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--with-weights", action="store_true", help="Also write the default ranking_weights flag")
    args = parser.parse_args()

    await _ensure_schema()

    async with async_session() as session:
        for item in DEMO_LISTINGS:
            await _upsert_listing(session, item)
        await _seed_costs(session)
        if args.with_weights:
            await set_ranking_weights(session, DEFAULT_WEIGHTS)
        await session.commit()

    print(f"Seeded {len(DEMO_LISTINGS)} demo listings. weights_flag={args.with_weights}")


if __name__ == "__main__":
    asyncio.run(main())
