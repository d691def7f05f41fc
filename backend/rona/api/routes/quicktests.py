"""QuickTest Routes — HTTP mapping onto the lifecycle engine.

Invariants:
    - Routes never contain business rules; RonaError propagates to the global handler
    - Fixed paths (/stats, /expire-outdated) are declared before /{quicktest_id}
    - Handlers depend on QuickTestServiceProtocol, overridable in tests
"""

from fastapi import APIRouter, Depends, Response, status

from rona.config import Settings, get_settings
from rona.core.quicktest import QuickTestRegistration
from rona.core.repository_protocols import QuickTestServiceProtocol
from rona.infrastructure.database import get_db_manager
from rona.schemas.quicktest import (
    ExpireOutdatedResponse, QuickTestCountsResponse,
    QuickTestCreate, QuickTestRegister, QuickTestResponse,
)
from rona.services.quicktest_service import QuickTestService

router = APIRouter(prefix="/api/v1/quicktests", tags=["quicktests"])


def get_quicktest_service() -> QuickTestService:
    return QuickTestService(get_db_manager())


@router.post(
    "", response_model=list[QuickTestResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_quicktests(
    body: QuickTestCreate,
    service: QuickTestServiceProtocol = Depends(get_quicktest_service),
):
    """Create a batch of unregistered quick tests."""
    quicktests = await service.create_many_quicktests(body.ids)
    return [QuickTestResponse.from_domain(qt) for qt in quicktests]


@router.get("/stats", response_model=QuickTestCountsResponse)
async def quicktest_stats(
    service: QuickTestService = Depends(get_quicktest_service),
):
    """Counts per lifecycle state."""
    return QuickTestCountsResponse.from_domain(await service.count_quicktests())


@router.post("/expire-outdated", response_model=ExpireOutdatedResponse)
async def expire_outdated_quicktests(
    service: QuickTestServiceProtocol = Depends(get_quicktest_service),
    settings: Settings = Depends(get_settings),
):
    """Run one expiry pass with the configured validity window."""
    affected = await service.expire_outdated_quicktests(settings.quicktest_validity)
    return ExpireOutdatedResponse(expired=affected)


@router.get("/{quicktest_id}", response_model=QuickTestResponse)
async def get_quicktest(
    quicktest_id: str,
    service: QuickTestServiceProtocol = Depends(get_quicktest_service),
):
    quicktest = await service.find_quicktest_by_id(quicktest_id)
    return QuickTestResponse.from_domain(quicktest)


@router.post("/{quicktest_id}/register", response_model=QuickTestResponse)
async def register_quicktest(
    quicktest_id: str,
    body: QuickTestRegister,
    service: QuickTestServiceProtocol = Depends(get_quicktest_service),
):
    """Bind a registrant to the kit."""
    quicktest = await service.register_quicktest(
        QuickTestRegistration(id=quicktest_id, person=body.person),
    )
    return QuickTestResponse.from_domain(quicktest)


@router.post(
    "/{quicktest_id}/expire", status_code=status.HTTP_204_NO_CONTENT,
)
async def expire_quicktest(
    quicktest_id: str,
    service: QuickTestServiceProtocol = Depends(get_quicktest_service),
):
    """Scrub the registrant from the kit."""
    await service.expire_quicktest(quicktest_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
