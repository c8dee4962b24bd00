# yieldpilot/service_layer/adjusted.py
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.repos.listings import AdjustedMetricsRepository
from ..config import settings
from ..domain.errors import ListingNotFound
from ..models import AdjustedMetrics as AdjustedMetricsRow

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdjustedMetrics:
    listing_id: str
    adjusted_net_yield_pct: float
    after_tax_cashflow: float
    tax_due: float
    epc_upgrade_annual: float
    score_adjusted: float
    explain_json: dict[str, Any] = field(default_factory=dict)


def _explain(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        log.warning("adjusted metrics explain_json is not valid JSON; dropping it")
        return {}
    return data if isinstance(data, dict) else {}


def _to_domain(row: AdjustedMetricsRow) -> AdjustedMetrics:
    return AdjustedMetrics(
        listing_id=row.listing_id,
        adjusted_net_yield_pct=float(row.adjusted_net_yield_pct or 0.0),
        after_tax_cashflow=float(row.after_tax_cashflow or 0.0),
        tax_due=float(row.tax_due or 0.0),
        epc_upgrade_annual=float(row.epc_upgrade_annual or 0.0),
        score_adjusted=float(row.score_adjusted or 0.0),
        explain_json=_explain(row.explain_json),
    )


async def get_adjusted_metrics(session: AsyncSession, listing_id: str) -> AdjustedMetrics | None:
    """
    Read-only pass-through of the precomputed row. Read errors are logged and
    reported as "no data" rather than raised.
    """
    try:
        row = await AdjustedMetricsRepository(session).get(listing_id)
    except Exception:
        log.exception("error fetching adjusted metrics for %s", listing_id)
        return None
    if row is None:
        return None
    return _to_domain(row)


async def recompute_adjusted_metrics(
    session: AsyncSession,
    listing_id: str | None = None,
    batch_size: int = 100,
) -> dict[str, Any]:
    """
    The adjusted figures are maintained upstream; "recompute" re-reads them and
    reports how many rows were touched. Single listing: the row must exist.
    """
    started = time.monotonic()
    repo = AdjustedMetricsRepository(session)

    if listing_id:
        row = await repo.get(listing_id)
        if row is None:
            raise ListingNotFound(listing_id)
        processed = 1
        log.info("recomputed %s: adjusted_yield=%s%%", listing_id, row.adjusted_net_yield_pct)
    else:
        limit = max(1, min(int(batch_size), settings.ADJUSTED_RECOMPUTE_MAX_BATCH))
        rows = await repo.latest(limit)
        processed = len(rows)
        log.info("recomputed %d adjusted metrics rows in batch", processed)

    duration_ms = int((time.monotonic() - started) * 1000)
    return {"success": True, "processed": processed, "duration_ms": duration_ms}
