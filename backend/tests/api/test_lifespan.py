"""Application lifespan — startup migrates, shutdown releases everything."""

import rona.infrastructure.database as db_module
from rona.main import app, lifespan


async def test_lifespan_migrates_and_cleans_up():
    original_manager = db_module.db_manager
    try:
        async with lifespan(app):
            manager = db_module.db_manager
            assert manager is not None
            assert await manager.current_revision() == "002_add_expired"
            assert app.state.expiry_sweep.running is False
        assert db_module.db_manager is None
    finally:
        db_module.db_manager = original_manager
