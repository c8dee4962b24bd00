# yieldpilot/service_layer/weights.py
from __future__ import annotations

import logging
import math
from dataclasses import fields
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.repos.flags import FeatureFlagRepository
from ..config import settings
from ..domain.types import DEFAULT_WEIGHTS, RankingWeights

log = logging.getLogger(__name__)

_WEIGHT_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(RankingWeights))


class WeightsProvider(Protocol):
    async def get_ranking_weights(self) -> RankingWeights: ...


def parse_weights(value: Any) -> RankingWeights | None:
    """
    Flag value -> RankingWeights, or None if the value is unusable.

    Only shape is checked (object with five finite numbers). Negative weights
    or vectors that don't sum to 1 are passed through untouched.
    """
    if not isinstance(value, dict):
        return None

    out: dict[str, float] = {}
    for name in _WEIGHT_FIELDS:
        raw = value.get(name)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            return None
        v = float(raw)
        if not math.isfinite(v):
            return None
        out[name] = v
    return RankingWeights(**out)


class StaticWeightsProvider:
    """Fixed weights; used by tests and dry-run scoring."""

    def __init__(self, weights: RankingWeights = DEFAULT_WEIGHTS) -> None:
        self.weights = weights

    async def get_ranking_weights(self) -> RankingWeights:
        return self.weights


class FlagStoreWeightsProvider:
    """
    Reads the weight vector from feature_flags on every call (no caching),
    so a hot-swapped flag applies to the next scoring pass.
    """

    def __init__(self, session: AsyncSession, key: str | None = None) -> None:
        self.repo = FeatureFlagRepository(session)
        self.key = key or settings.RANKING_WEIGHTS_FLAG_KEY

    async def get_ranking_weights(self) -> RankingWeights:
        try:
            value = await self.repo.get_value(self.key)
        except Exception as e:
            log.warning("ranking weights unavailable (key=%s): %s; using defaults", self.key, e)
            return DEFAULT_WEIGHTS

        if value is None:
            return DEFAULT_WEIGHTS

        weights = parse_weights(value)
        if weights is None:
            log.warning("ranking weights flag %s is malformed: %r; using defaults", self.key, value)
            return DEFAULT_WEIGHTS
        return weights


async def get_ranking_weights(session: AsyncSession) -> RankingWeights:
    return await FlagStoreWeightsProvider(session).get_ranking_weights()


async def set_ranking_weights(session: AsyncSession, weights: RankingWeights, key: str | None = None) -> None:
    repo = FeatureFlagRepository(session)
    await repo.set_value(key or settings.RANKING_WEIGHTS_FLAG_KEY, weights.to_dict())
    log.info("ranking weights updated: %s", weights.to_dict())
