# yieldpilot/domain/types.py
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Mapping


class FloodRisk(str, Enum):
    none = "none"
    medium = "medium"
    high = "high"


def coerce_float(x: Any) -> float | None:
    """
    Loose numeric coercion for JSON-sourced snapshot values.
    Returns None for missing, unparseable, NaN or infinite values.
    """
    if x is None or x == "" or isinstance(x, bool):
        return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(v):
        return None
    return v


def coerce_int(x: Any) -> int | None:
    v = coerce_float(x)
    if v is None:
        return None
    return int(v)


@dataclass(frozen=True)
class RankingWeights:
    net_yield: float
    dscr: float
    cashflow_pm: float
    epc: float
    risk: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


DEFAULT_WEIGHTS = RankingWeights(
    net_yield=0.35,
    dscr=0.25,
    cashflow_pm=0.2,
    epc=0.1,
    risk=0.1,
)


@dataclass(frozen=True)
class KpiSnapshot:
    """Finance-calculator output for one listing. net_yield is a fraction (0.12 = 12%)."""

    net_yield: float | None = None
    dscr: float | None = None
    cashflow_pm: float | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "KpiSnapshot":
        d = data or {}
        return cls(
            net_yield=coerce_float(d.get("net_yield")),
            dscr=coerce_float(d.get("dscr")),
            cashflow_pm=coerce_float(d.get("cashflow_pm")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class EnrichmentSnapshot:
    epc_rating: str | None = None
    flood_risk: str | None = None
    crime_score: float | None = None
    lease_years: int | None = None
    days_on_market: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "EnrichmentSnapshot":
        d = data or {}
        epc = d.get("epc_rating")
        flood = d.get("flood_risk")
        return cls(
            epc_rating=epc if isinstance(epc, str) and epc else None,
            flood_risk=flood if isinstance(flood, str) and flood else None,
            crime_score=coerce_float(d.get("crime_score")),
            lease_years=coerce_int(d.get("lease_years")),
            days_on_market=coerce_int(d.get("days_on_market")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class RankFactors:
    net_yield_score: float
    dscr_score: float
    cashflow_score: float
    epc_score: float
    risk_score: float
    total: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class RankResult:
    score: float
    factors: RankFactors
