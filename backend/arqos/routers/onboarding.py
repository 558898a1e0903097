"""Onboarding status endpoints.

  GET    /api/onboarding/status    → SetupStatus
  PUT    /api/onboarding/status    → record the current step  {step}
  DELETE /api/onboarding/status    → skip the setup
  POST   /api/onboarding/complete  → write the final configuration
  GET    /api/onboarding/config    → organization name + settings blob
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from arqos.auth.deps import get_current_profile
from arqos.database import get_db
from arqos.middleware.exceptions import exception_from_service_error
from arqos.models.profile import Profile
from arqos.onboarding.schemas import (
    CompleteSetupData,
    CompleteSetupResponse,
    OrganizationConfig,
    ServiceResult,
    SetupStatus,
    StepResponse,
    UpdateStepRequest,
)
from arqos.onboarding.service import OnboardingService

router = APIRouter()


def get_onboarding_service(
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
) -> OnboardingService:
    return OnboardingService(db, profile)


def _unwrap(result: ServiceResult):
    if result.error:
        raise exception_from_service_error(result.error.message, result.error.code)
    return result.data


@router.get("/status", response_model=SetupStatus)
async def get_status(service: OnboardingService = Depends(get_onboarding_service)):
    return _unwrap(await service.get_setup_status())


@router.put("/status", response_model=StepResponse)
async def update_step(
    body: UpdateStepRequest,
    service: OnboardingService = Depends(get_onboarding_service),
):
    return _unwrap(await service.update_setup_step(body.step))


@router.delete("/status")
async def skip_setup(service: OnboardingService = Depends(get_onboarding_service)):
    _unwrap(await service.skip_setup())
    return {"success": True}


@router.post("/complete", response_model=CompleteSetupResponse)
async def complete_setup(
    body: CompleteSetupData,
    service: OnboardingService = Depends(get_onboarding_service),
):
    data = _unwrap(await service.complete_setup(body))
    return CompleteSetupResponse(organization_id=data["organization_id"])


@router.get("/config", response_model=OrganizationConfig)
async def get_config(service: OnboardingService = Depends(get_onboarding_service)):
    return _unwrap(await service.get_organization_config())
