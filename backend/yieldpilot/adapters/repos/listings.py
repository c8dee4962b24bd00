# yieldpilot/adapters/repos/listings.py
from __future__ import annotations

import json
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import AdjustedMetrics, AdviceAudit, EpcUpgradeCost, Listing


class ListingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, listing_id: str) -> Listing | None:
        return await self.session.get(Listing, listing_id)

    async def find_upgrade_cost(
        self,
        *,
        country: str,
        current_epc: str,
        target_epc: str,
    ) -> EpcUpgradeCost | None:
        q = (
            select(EpcUpgradeCost)
            .where(EpcUpgradeCost.country == country)
            .where(EpcUpgradeCost.current_epc == current_epc)
            .where(EpcUpgradeCost.target_epc == target_epc)
            .order_by(EpcUpgradeCost.property_type.asc())
            .limit(1)
        )
        return (await self.session.execute(q)).scalars().first()

    async def add_advice_audit(
        self,
        *,
        listing_id: str,
        advice_type: str,
        request: dict[str, Any],
        response: dict[str, Any],
    ) -> AdviceAudit:
        row = AdviceAudit(
            listing_id=listing_id,
            advice_type=advice_type,
            request_json=json.dumps(request),
            response_json=json.dumps(response),
        )
        self.session.add(row)
        await self.session.flush()
        return row


class AdjustedMetricsRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, listing_id: str) -> AdjustedMetrics | None:
        q = select(AdjustedMetrics).where(AdjustedMetrics.listing_id == listing_id)
        return (await self.session.execute(q)).scalars().first()

    async def latest(self, limit: int) -> list[AdjustedMetrics]:
        q = select(AdjustedMetrics).order_by(AdjustedMetrics.calculated_at.desc()).limit(limit)
        return list((await self.session.execute(q)).scalars().all())
