# scripts/smoke_top_listings.py
import asyncio

from sqlalchemy import select

from yieldpilot.db import async_session
from yieldpilot.models import ListingMetrics


async def main():
    async with async_session() as session:
        rows = (await session.execute(
            select(ListingMetrics).where(ListingMetrics.rank_score.isnot(None)).order_by(ListingMetrics.rank_score.desc()).limit(10)
        )).scalars().all()

        for m in rows:
            print(m.listing_id, f"{m.rank_score:.2f}", m.factors_json)


if __name__ == "__main__":
    asyncio.run(main())
