# yieldpilot/domain/epc.py
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any

from .ranking import EPC_RATINGS

DEFAULT_CURRENT_EPC = "D"
YIELD_UPLIFT_PER_BAND_PCT = 0.3  # typical 0.2-0.5% per band improvement

RETROFIT_MEASURES: tuple[str, ...] = (
    "Loft insulation (270mm+)",
    "Cavity wall insulation",
    "Double glazing upgrade",
    "Condensing boiler replacement",
    "LED lighting throughout",
    "Smart heating controls",
)

GENERIC_MEASURES: tuple[str, ...] = (
    "Insulation (loft/wall/floor)",
    "Double/Triple glazing",
    "Energy-efficient boiler",
    "LED lighting",
)

FALLBACK_COST_PER_BAND_MIN = 3000.0
FALLBACK_COST_PER_BAND_MAX = 6000.0
FALLBACK_NOTE = "Using fallback estimates - no specific data for this property type"


@dataclass(frozen=True)
class ListingFacts:
    listing_id: str
    epc_rating: str | None
    price: float | None
    estimated_rent: float | None


@dataclass(frozen=True)
class CostBand:
    est_cost_min: float
    est_cost_max: float


@dataclass(frozen=True)
class EpcAdvice:
    listing_id: str
    current_epc: str
    target_epc: str
    epc_gap: int
    recommended_measures: list[str] = field(default_factory=list)
    cost_estimate_min: float = 0.0
    cost_estimate_max: float = 0.0
    cost_estimate_median: float = 0.0
    amort_years: int = 0
    monthly_cost: float = 0.0
    expected_yield_uplift_pct: float = 0.0
    payback_years: float = 0.0
    note: str | None = None
    message: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.note == FALLBACK_NOTE

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _safe_div(num: float, den: float) -> float:
    if not den or not math.isfinite(den):
        return 0.0
    return num / den


def current_grade(epc_rating: str | None) -> str:
    if epc_rating in EPC_RATINGS:
        return epc_rating
    return DEFAULT_CURRENT_EPC


def epc_gap(current: str, target: str) -> int:
    """Number of bands between current and target (positive = upgrade needed)."""
    return EPC_RATINGS.index(target) - EPC_RATINGS.index(current)


def advise(
    listing: ListingFacts,
    target: str,
    cost: CostBand | None,
    *,
    amort_years: int = 7,
) -> EpcAdvice:
    if target not in EPC_RATINGS:
        raise ValueError(f"Unknown EPC target grade: {target!r}")

    current = current_grade(listing.epc_rating)
    gap = epc_gap(current, target)

    if gap <= 0:
        return EpcAdvice(
            listing_id=listing.listing_id,
            current_epc=current,
            target_epc=target,
            epc_gap=0,
            message="Property already meets or exceeds target EPC rating",
        )

    price = listing.price or 0.0

    if cost is None:
        lo = gap * FALLBACK_COST_PER_BAND_MIN
        hi = gap * FALLBACK_COST_PER_BAND_MAX
        median = (lo + hi) / 2
        return EpcAdvice(
            listing_id=listing.listing_id,
            current_epc=current,
            target_epc=target,
            epc_gap=gap,
            recommended_measures=list(GENERIC_MEASURES),
            cost_estimate_min=lo,
            cost_estimate_max=hi,
            cost_estimate_median=median,
            amort_years=amort_years,
            monthly_cost=round_half_up(_safe_div(median, amort_years * 12)),
            expected_yield_uplift_pct=YIELD_UPLIFT_PER_BAND_PCT,
            payback_years=round_half_up(_safe_div(median, price * 0.003)),
            note=FALLBACK_NOTE,
        )

    median = (cost.est_cost_min + cost.est_cost_max) / 2
    uplift = gap * YIELD_UPLIFT_PER_BAND_PCT
    monthly_rent = listing.estimated_rent or price * 0.005
    annual_rent = monthly_rent * 12

    return EpcAdvice(
        listing_id=listing.listing_id,
        current_epc=current,
        target_epc=target,
        epc_gap=gap,
        recommended_measures=list(RETROFIT_MEASURES[: gap + 2]),
        cost_estimate_min=cost.est_cost_min,
        cost_estimate_max=cost.est_cost_max,
        cost_estimate_median=median,
        amort_years=amort_years,
        monthly_cost=round_half_up(_safe_div(median, amort_years * 12)),
        expected_yield_uplift_pct=uplift,
        payback_years=round_half_up(_safe_div(median, annual_rent * (uplift / 100))),
    )
