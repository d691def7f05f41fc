"""Health Probes — process liveness and database readiness.

Invariants:
    - GET /health/ answers 200 whenever the process is serving requests
    - GET /health/ready answers 503 until the database is reachable and migrated
    - Readiness reports the applied schema revision and whether the sweep is running
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

import rona.infrastructure.database as db_module

router = APIRouter(prefix="/api/v1/health", tags=["health"])


def _not_ready(reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "reason": reason},
    )


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": "rona-api", "version": "1.0.0"}


@router.get("/ready")
async def readiness(request: Request):
    """503 with a reason, or 200 with the schema revision."""
    manager = db_module.db_manager
    if manager is None or not await manager.health_check():
        return _not_ready("database_unavailable")
    revision = await manager.current_revision()
    if revision is None:
        return _not_ready("database_not_migrated")
    sweep = getattr(request.app.state, "expiry_sweep", None)
    return {
        "status": "ready",
        "checks": {
            "database": "healthy",
            "schema_revision": revision,
            "expiry_sweep": "running" if sweep is not None and sweep.running else "stopped",
        },
    }
