from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

EpcGrade = Literal["A", "B", "C", "D", "E", "F", "G"]


class RankingWeightsIO(BaseModel):
    net_yield: float
    dscr: float
    cashflow_pm: float
    epc: float
    risk: float


class KpisIn(BaseModel):
    net_yield: float | None = None
    dscr: float | None = None
    cashflow_pm: float | None = None


class EnrichmentIn(BaseModel):
    epc_rating: str | None = None
    flood_risk: str | None = None
    crime_score: float | None = None
    lease_years: int | None = None
    days_on_market: int | None = None


class ScoreRequest(BaseModel):
    kpis: KpisIn = Field(default_factory=KpisIn)
    enrichment: EnrichmentIn = Field(default_factory=EnrichmentIn)
    # None -> current flag-store weights
    weights: RankingWeightsIO | None = None


class RankListingRequest(BaseModel):
    # omitted snapshots are read from the stored listing_metrics row
    kpis: KpisIn | None = None
    enrichment: EnrichmentIn | None = None


class RankFactorsOut(BaseModel):
    net_yield_score: float
    dscr_score: float
    cashflow_score: float
    epc_score: float
    risk_score: float
    total: float


class RankResultOut(BaseModel):
    score: float
    factors: RankFactorsOut
    explain: str


class ListingRankOut(RankResultOut):
    listing_id: str


class RecalculateResult(BaseModel):
    processed: int = Field(..., ge=0)
    errors: int = Field(..., ge=0)


class AdjustedMetricsOut(BaseModel):
    listing_id: str
    adjusted_net_yield_pct: float
    after_tax_cashflow: float
    tax_due: float
    epc_upgrade_annual: float
    score_adjusted: float
    explain_json: dict[str, Any]


class AdjustedRecomputeRequest(BaseModel):
    listing_id: str | None = None
    batch_size: int = Field(100, ge=1, le=1000)


class AdjustedRecomputeResult(BaseModel):
    success: bool
    processed: int
    duration_ms: int


class EpcAdviceRequest(BaseModel):
    target: EpcGrade | None = None


class EpcAdviceOut(BaseModel):
    listing_id: str
    current_epc: str
    target_epc: str
    epc_gap: int
    recommended_measures: list[str]
    cost_estimate_min: float
    cost_estimate_max: float
    cost_estimate_median: float
    amort_years: int
    monthly_cost: float
    expected_yield_uplift_pct: float
    payback_years: float
    note: str | None = None
    message: str | None = None


class JobRunOut(BaseModel):
    id: int
    job_name: str
    status: str
    started_at: datetime
    finished_at: datetime | None = None
    error: str | None = None
    summary: dict[str, Any] | None = None
