# yieldpilot/entrypoints/fastapi_app.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from ..db import engine
from ..models import Base
from .api.routers import adjusted, debug, health, jobs, ranking


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Single place where DB tables are created in dev.
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield


def create_app(*, create_tables: bool = True) -> FastAPI:
    app = FastAPI(
        title="YieldPilot - Deal Ranking",
        lifespan=_lifespan if create_tables else None,
    )

    # Routers
    app.include_router(health.router)
    app.include_router(ranking.router)
    app.include_router(jobs.router)
    app.include_router(adjusted.router)
    app.include_router(debug.router)

    return app
