# yieldpilot/models.py
from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    DateTime,
    Enum,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    # naive UTC, matching how SQLite stores DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


# -----------------------------
# Core enums
# -----------------------------
class JobRunStatus(str, enum.Enum):
    running = "running"
    success = "success"
    failed = "failed"


# -----------------------------
# Models
# -----------------------------
class FeatureFlag(Base):
    """
    Generic key/value flag store. value_json holds arbitrary JSON
    (e.g. the ranking weight vector under key "ranking_weights").
    """
    __tablename__ = "feature_flags"
    __table_args__ = (UniqueConstraint("key", name="uq_feature_flag_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    key: Mapped[str] = mapped_column(String(120), index=True)
    value_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Listing(Base):
    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    country: Mapped[str | None] = mapped_column(String(8), nullable=True)
    property_type: Mapped[str | None] = mapped_column(String(40), nullable=True)
    epc_rating: Mapped[str | None] = mapped_column(String(2), nullable=True)

    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimated_rent: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class ListingMetrics(Base):
    """
    One row per listing. kpis_json / enrichment_json are written by upstream
    producers; rank_score / factors_json are overwritten wholesale by the ranker.
    """
    __tablename__ = "listing_metrics"
    __table_args__ = (UniqueConstraint("listing_id", name="uq_listing_metrics_listing"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    listing_id: Mapped[str] = mapped_column(String(64), index=True)

    kpis_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    enrichment_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    rank_score: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    factors_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class AdjustedMetrics(Base):
    """
    Precomputed regulation-adjusted figures (tax, licensing, EPC upgrade cost).
    Produced upstream; this service only reads them.
    """
    __tablename__ = "adjusted_metrics"
    __table_args__ = (UniqueConstraint("listing_id", name="uq_adjusted_metrics_listing"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    listing_id: Mapped[str] = mapped_column(String(64), index=True)

    adjusted_net_yield_pct: Mapped[float] = mapped_column(Float, default=0.0)
    after_tax_cashflow: Mapped[float] = mapped_column(Float, default=0.0)
    tax_due: Mapped[float] = mapped_column(Float, default=0.0)
    epc_upgrade_annual: Mapped[float] = mapped_column(Float, default=0.0)
    score_adjusted: Mapped[float] = mapped_column(Float, default=0.0)

    # {"tax_method": ..., "epc_gap": ..., "penalties_applied": [...]}
    explain_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    calculated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


class EpcUpgradeCost(Base):
    __tablename__ = "epc_upgrade_costs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    country: Mapped[str] = mapped_column(String(8), default="UK", index=True)
    property_type: Mapped[str | None] = mapped_column(String(40), nullable=True)

    current_epc: Mapped[str] = mapped_column(String(2))
    target_epc: Mapped[str] = mapped_column(String(2))

    est_cost_min: Mapped[float] = mapped_column(Float)
    est_cost_max: Mapped[float] = mapped_column(Float)


class AdviceAudit(Base):
    __tablename__ = "advice_audit"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    listing_id: Mapped[str] = mapped_column(String(64), index=True)
    advice_type: Mapped[str] = mapped_column(String(40))

    request_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    response_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class JobRun(Base):
    """
    Tracks job executions (rank recalculation, adjusted recompute, ...).
    """
    __tablename__ = "job_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    job_name: Mapped[str] = mapped_column(String(80), index=True)

    status: Mapped[JobRunStatus] = mapped_column(Enum(JobRunStatus), default=JobRunStatus.running, index=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # store error message
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    # {"processed": ..., "errors": ...}
    summary_json: Mapped[str | None] = mapped_column(Text, nullable=True)
