# tests/conftest.py
import json

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from yieldpilot.db import get_session
from yieldpilot.entrypoints.fastapi_app import create_app
from yieldpilot.models import Base, Listing, ListingMetrics


@pytest.fixture
async def engine():
    """
    Fresh in-memory DB per test. StaticPool makes all connections share the same
    in-memory database for the lifetime of this engine fixture.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def async_session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=True)


@pytest.fixture
async def session(async_session_maker):
    async with async_session_maker() as session:
        yield session


@pytest.fixture
def add_metrics(async_session_maker):
    """Insert listing_metrics rows. kpis/enrichment may be dicts or raw JSON text."""

    async def _add(listing_id: str, kpis=None, enrichment=None) -> int:
        def _text(v):
            if v is None or isinstance(v, str):
                return v
            return json.dumps(v)

        async with async_session_maker() as s:
            row = ListingMetrics(
                listing_id=listing_id,
                kpis_json=_text(kpis),
                enrichment_json=_text(enrichment),
            )
            s.add(row)
            await s.commit()
            return row.id

    return _add


@pytest.fixture
def add_listing(async_session_maker):
    async def _add(listing_id: str, **fields) -> None:
        async with async_session_maker() as s:
            s.add(Listing(id=listing_id, **fields))
            await s.commit()

    return _add


@pytest.fixture
async def client(async_session_maker):
    app = create_app(create_tables=False)

    async def _session_override():
        async with async_session_maker() as s:
            yield s

    app.dependency_overrides[get_session] = _session_override

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
