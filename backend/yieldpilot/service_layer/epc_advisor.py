# yieldpilot/service_layer/epc_advisor.py
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.repos.listings import ListingRepository
from ..config import settings
from ..domain.epc import CostBand, EpcAdvice, ListingFacts, advise, current_grade
from ..domain.errors import ListingNotFound

log = logging.getLogger(__name__)

DEFAULT_COUNTRY = "UK"


async def get_epc_advice(
    session: AsyncSession,
    listing_id: str,
    target: str | None = None,
) -> EpcAdvice:
    """
    Retrofit advice for moving a listing from its current EPC grade to `target`.
    Uses epc_upgrade_costs when a matching row exists, fallback estimates otherwise.
    Table-backed advice is recorded in advice_audit. Caller commits.
    """
    target = target or settings.EPC_DEFAULT_TARGET
    repo = ListingRepository(session)

    listing = await repo.get(listing_id)
    if listing is None:
        raise ListingNotFound(listing_id)

    facts = ListingFacts(
        listing_id=listing.id,
        epc_rating=listing.epc_rating,
        price=listing.price,
        estimated_rent=listing.estimated_rent,
    )
    current = current_grade(listing.epc_rating)

    cost_row = await repo.find_upgrade_cost(
        country=listing.country or DEFAULT_COUNTRY,
        current_epc=current,
        target_epc=target,
    )
    cost = CostBand(cost_row.est_cost_min, cost_row.est_cost_max) if cost_row else None

    advice = advise(facts, target, cost, amort_years=settings.EPC_AMORT_YEARS)

    if advice.epc_gap > 0 and not advice.is_fallback:
        await repo.add_advice_audit(
            listing_id=listing_id,
            advice_type="epc_retrofit",
            request={"target": target},
            response=advice.to_dict(),
        )
        log.info(
            "EPC advice for %s: %s->%s, cost £%.0f",
            listing_id,
            advice.current_epc,
            advice.target_epc,
            advice.cost_estimate_median,
        )

    return advice
