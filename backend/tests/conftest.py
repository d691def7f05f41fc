"""Root conftest — shared test configuration and database fixtures.

Invariants:
    - Every test gets a fresh, migrated in-memory SQLite database
    - Services can be pinned to any instant via service_at (no global clock)
"""

import os
from datetime import datetime, timezone

import pytest

# Keep tests off the on-disk default database and the background sweep
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("EXPIRY_SWEEP_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")

from rona.core.domain_types import fixed_clock  # noqa: E402
from rona.infrastructure.database import DatabaseSessionManager  # noqa: E402
from rona.services.quicktest_service import QuickTestService  # noqa: E402

MEMORY_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def db_manager():
    manager = DatabaseSessionManager(MEMORY_URL)
    await manager.migrate()
    yield manager
    await manager.close()


@pytest.fixture
def service(db_manager) -> QuickTestService:
    return QuickTestService(db_manager)


@pytest.fixture
def service_at(db_manager):
    """Factory: a QuickTestService whose units of work run at a fixed instant."""
    def _at(when: datetime) -> QuickTestService:
        return QuickTestService(db_manager, clock=fixed_clock(when))
    return _at


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture(params=["memory", "file"])
async def any_db_manager(request, tmp_path):
    """A migrated manager on each supported SQLite location."""
    url = MEMORY_URL if request.param == "memory" else (
        f"sqlite+aiosqlite:///{tmp_path / 'rona.db'}"
    )
    manager = DatabaseSessionManager(url)
    await manager.migrate()
    yield manager
    await manager.close()
