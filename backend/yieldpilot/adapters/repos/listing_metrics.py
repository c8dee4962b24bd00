# yieldpilot/adapters/repos/listing_metrics.py
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import ListingMetrics, utcnow


@dataclass(frozen=True)
class MetricsRow:
    """Plain snapshot of a listing_metrics row (detached from the session)."""

    id: int
    listing_id: str
    kpis_json: str | None
    enrichment_json: str | None


def decode_json_object(raw: str | None) -> dict[str, Any]:
    """
    None/"" -> {}. Anything that isn't a JSON object raises ValueError.
    """
    if not raw:
        return {}
    data = json.loads(raw)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"expected JSON object, got {type(data).__name__}")
    return data


class ListingMetricsRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_listing_id(self, listing_id: str) -> ListingMetrics | None:
        q = select(ListingMetrics).where(ListingMetrics.listing_id == listing_id)
        return (await self.session.execute(q)).scalars().first()

    async def iter_pages(self, page_size: int) -> AsyncIterator[list[MetricsRow]]:
        """
        Keyset pagination over the whole table (id > last_id ORDER BY id).
        Rows are materialized as MetricsRow so callers can commit/rollback
        between records without expiring what they're iterating.
        """
        last_id = 0
        while True:
            q = (
                select(
                    ListingMetrics.id,
                    ListingMetrics.listing_id,
                    ListingMetrics.kpis_json,
                    ListingMetrics.enrichment_json,
                )
                .where(ListingMetrics.id > last_id)
                .order_by(ListingMetrics.id.asc())
                .limit(page_size)
            )
            rows = (await self.session.execute(q)).all()
            if not rows:
                return

            page = [MetricsRow(id=r[0], listing_id=r[1], kpis_json=r[2], enrichment_json=r[3]) for r in rows]
            yield page

            last_id = page[-1].id
            if len(page) < page_size:
                return

    async def write_rank(
        self,
        metrics_id: int,
        *,
        rank_score: float,
        factors: dict[str, float],
        updated_at: datetime | None = None,
    ) -> int:
        """Wholesale overwrite of rank_score/factors_json/updated_at. Returns rowcount."""
        stmt = (
            update(ListingMetrics)
            .where(ListingMetrics.id == metrics_id)
            .values(
                rank_score=float(rank_score),
                factors_json=json.dumps(factors),
                updated_at=updated_at or utcnow(),
            )
        )
        res = await self.session.execute(stmt)
        return int(res.rowcount or 0)

    async def upsert_snapshots(
        self,
        listing_id: str,
        *,
        kpis: dict[str, Any] | None = None,
        enrichment: dict[str, Any] | None = None,
    ) -> ListingMetrics:
        """Used by seeding/tests and upstream producers to store input snapshots."""
        row = await self.get_by_listing_id(listing_id)
        if row is None:
            row = ListingMetrics(listing_id=listing_id)
            self.session.add(row)

        if kpis is not None:
            row.kpis_json = json.dumps(kpis)
        if enrichment is not None:
            row.enrichment_json = json.dumps(enrichment)
        await self.session.flush()
        return row
