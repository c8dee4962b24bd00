# scripts/recalculate_ranks.py
from __future__ import annotations

import argparse
import asyncio
import json

from yieldpilot.db import async_session
from yieldpilot.jobs.rank import run_rank_job
from yieldpilot.logging_config import configure_logging
from yieldpilot.service_layer.ranking import rank_listing


async def main() -> None:
    parser = argparse.ArgumentParser(description="Recompute rank_score/factors for listing metrics")
    parser.add_argument("--listing", help="Only re-rank this listing id")
    parser.add_argument("--page-size", type=int, default=None, help="Rows per page for the batch cursor")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    configure_logging(args.log_level)

    async with async_session() as session:
        if args.listing:
            result = await rank_listing(session, args.listing)
            await session.commit()
            print(json.dumps({"listing_id": args.listing, "score": result.score, "factors": result.factors.to_dict()}))
            return

        res = await run_rank_job(session, job_name="rank_manual", page_size=args.page_size)
        print(json.dumps(res))


if __name__ == "__main__":
    asyncio.run(main())
