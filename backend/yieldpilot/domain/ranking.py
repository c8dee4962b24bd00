# yieldpilot/domain/ranking.py
from __future__ import annotations

import math

from .types import EnrichmentSnapshot, FloodRisk, KpiSnapshot, RankFactors, RankingWeights, RankResult

# Worst -> best; position is the grade's index
EPC_RATINGS: tuple[str, ...] = ("G", "F", "E", "D", "C", "B", "A")

TARGET_NET_YIELD = 0.12  # 12% net yield = 100 points
DSCR_FLOOR = 1.0
DSCR_SPAN = 0.5  # DSCR 1.5+ = 100 points
TARGET_CASHFLOW_PM = 500.0  # £500/mo = 100 points
EPC_UNKNOWN_SCORE = 50.0

FLOOD_HIGH_PENALTY = 30.0
FLOOD_MEDIUM_PENALTY = 15.0
CRIME_THRESHOLD = 70.0
CRIME_PENALTY = 20.0
SHORT_LEASE_YEARS = 90
SHORT_LEASE_PENALTY = 25.0
STALE_DAYS_ON_MARKET = 120
STALE_LISTING_PENALTY = 10.0


def _num(x: float | None) -> float:
    if x is None:
        return 0.0
    try:
        v = float(x)
    except (TypeError, ValueError):
        return 0.0
    return v if math.isfinite(v) else 0.0


def _finite(v: float) -> float:
    # overflow of a huge-but-finite input (or inf * 0 = nan) scores as 0
    return v if math.isfinite(v) else 0.0


def yield_score(net_yield: float | None) -> float:
    return _finite(min(100.0, (_num(net_yield) / TARGET_NET_YIELD) * 100.0))


def dscr_score(dscr: float | None) -> float:
    # no lower clamp: DSCR below 1.0 goes negative
    return _finite(min(100.0, ((_num(dscr) - DSCR_FLOOR) / DSCR_SPAN) * 100.0))


def cashflow_score(cashflow_pm: float | None) -> float:
    return min(100.0, max(0.0, (_num(cashflow_pm) / TARGET_CASHFLOW_PM) * 100.0))


def epc_score(epc_rating: str | None) -> float:
    if epc_rating not in EPC_RATINGS:
        return EPC_UNKNOWN_SCORE
    idx = EPC_RATINGS.index(epc_rating)
    return (idx / (len(EPC_RATINGS) - 1)) * 100.0


def risk_score(enrichment: EnrichmentSnapshot) -> float:
    """
    Higher is better (= lower risk). Starts at 100 and subtracts penalties:
      flood high -30 / medium -15, crime > 70 -20,
      lease under 90 years -25, more than 120 days on market -10.
    """
    score = 100.0

    if enrichment.flood_risk == FloodRisk.high.value:
        score -= FLOOD_HIGH_PENALTY
    if enrichment.flood_risk == FloodRisk.medium.value:
        score -= FLOOD_MEDIUM_PENALTY
    if _num(enrichment.crime_score) > CRIME_THRESHOLD:
        score -= CRIME_PENALTY
    # zero lease years means "unknown", not "expired"
    lease = _num(enrichment.lease_years)
    if lease and lease < SHORT_LEASE_YEARS:
        score -= SHORT_LEASE_PENALTY
    if _num(enrichment.days_on_market) > STALE_DAYS_ON_MARKET:
        score -= STALE_LISTING_PENALTY

    return max(0.0, score)


def calculate_rank_score(
    kpis: KpiSnapshot,
    enrichment: EnrichmentSnapshot,
    weights: RankingWeights,
) -> RankResult:
    """
    Weighted sum of five 0-100 sub-scores.

    The total is deliberately NOT clamped: weights that don't sum to 1, or a
    negative dscr_score, carry straight through to rank_score. Only a result that
    overflows to inf or nan is replaced by 0, so the score is always finite.
    """
    y = yield_score(kpis.net_yield)
    d = dscr_score(kpis.dscr)
    c = cashflow_score(kpis.cashflow_pm)
    e = epc_score(enrichment.epc_rating)
    r = risk_score(enrichment)

    total = _finite(
        _finite(y * weights.net_yield)
        + _finite(d * weights.dscr)
        + _finite(c * weights.cashflow_pm)
        + _finite(e * weights.epc)
        + _finite(r * weights.risk)
    )

    factors = RankFactors(
        net_yield_score=y,
        dscr_score=d,
        cashflow_score=c,
        epc_score=e,
        risk_score=r,
        total=total,
    )
    return RankResult(score=total, factors=factors)


def explain(result: RankResult, weights: RankingWeights) -> str:
    """
    Human-debuggable explanation string.

    Example:
      yield=0.0x0.35 | dscr=-200.0x0.25 | cashflow=0.0x0.20 | epc=50.0x0.10 | risk=100.0x0.10 | total=-35.00
    """
    f = result.factors
    bits = [
        f"yield={f.net_yield_score:.1f}x{weights.net_yield:.2f}",
        f"dscr={f.dscr_score:.1f}x{weights.dscr:.2f}",
        f"cashflow={f.cashflow_score:.1f}x{weights.cashflow_pm:.2f}",
        f"epc={f.epc_score:.1f}x{weights.epc:.2f}",
        f"risk={f.risk_score:.1f}x{weights.risk:.2f}",
        f"total={f.total:.2f}",
    ]
    return " | ".join(bits)
