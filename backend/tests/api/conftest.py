"""API test fixtures — FastAPI test client over a migrated in-memory database.

Invariants:
    - db_manager module global points at the per-test manager (routes and probes use it)
    - dependency overrides and the global are restored after each test
    - the lifespan is not run: no sweep task, no on-disk database
"""

import pytest
from httpx import ASGITransport, AsyncClient

import rona.infrastructure.database as db_module
from rona.main import app


@pytest.fixture
async def client(db_manager):
    """FastAPI test client bound to the test database."""
    original_manager = db_module.db_manager
    db_module.db_manager = db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def unbound_client():
    """Client with no database initialized (readiness must fail)."""
    original_manager = db_module.db_manager
    db_module.db_manager = None

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    db_module.db_manager = original_manager
