"""Server-driven setup wizard, one session per authenticated profile.

Every request rebuilds the wizard from the profile's recovery snapshot
(Redis) plus the remote setup status, applies one operation, and returns
the full `WizardView`. Errors raised by the flow itself (failed step
save, invalid submission) come back inside the view as `error` / `issues`
with status 200; once the setup is completed or skipped the view carries
`redirectTo` and mutations are ignored.

  GET    /api/wizard/                       current view
  PUT    /api/wizard/size | name | margin | positioning
  POST   /api/wizard/team                   add member
  PUT    /api/wizard/team/{index}           replace member
  DELETE /api/wizard/team/{index}           remove member
  PUT    /api/wizard/costs                  replace all costs
  PUT    /api/wizard/costs/{field}          set one cost field
  PUT    /api/wizard/services               replace selection
  POST   /api/wizard/services/{id}/toggle   toggle one service
  POST   /api/wizard/next | prev | goto/{step} | save | complete | skip | reset
"""

from typing import AsyncIterator

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from arqos.auth.deps import get_current_profile
from arqos.database import get_db
from arqos.models.profile import Profile
from arqos.onboarding.schemas import (
    CamelModel,
    CostKey,
    OfficeCosts,
    OfficeSize,
    PositioningId,
    ServiceId,
    TeamMemberData,
)
from arqos.onboarding.service import OnboardingService
from arqos.onboarding.snapshot import (
    RedisSnapshotStore,
    SnapshotStore,
    get_redis,
    snapshot_key,
)
from arqos.onboarding.views import WizardView, build_wizard_view
from arqos.onboarding.wizard import SetupWizard

router = APIRouter()


# ── Request bodies ───────────────────────────────────────────

class SizeBody(CamelModel):
    office_size: OfficeSize


class NameBody(CamelModel):
    office_name: str


class MarginBody(CamelModel):
    margin: float


class PositioningBody(CamelModel):
    positioning: PositioningId


class CostValueBody(CamelModel):
    value: float = Field(ge=0)


class ServicesBody(CamelModel):
    services: list[ServiceId]


# ── Dependencies ─────────────────────────────────────────────

async def get_snapshot_store() -> SnapshotStore:
    return RedisSnapshotStore(await get_redis())


async def get_wizard(
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
    store: SnapshotStore = Depends(get_snapshot_store),
) -> AsyncIterator[SetupWizard]:
    wizard = SetupWizard(
        OnboardingService(db, profile),
        store,
        key=snapshot_key(profile.id),
    )
    await wizard.load()
    try:
        yield wizard
    finally:
        await wizard.close()


def _active(wizard: SetupWizard) -> bool:
    """Whether the session still accepts operations."""
    return wizard.redirect_to is None and wizard.error is None


# ── View ─────────────────────────────────────────────────────

@router.get("/", response_model=WizardView)
async def get_view(wizard: SetupWizard = Depends(get_wizard)):
    return build_wizard_view(wizard)


# ── Step data ────────────────────────────────────────────────

@router.put("/size", response_model=WizardView)
async def set_size(body: SizeBody, wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.set_office_size(body.office_size)
    return build_wizard_view(wizard)


@router.put("/name", response_model=WizardView)
async def set_name(body: NameBody, wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.set_office_name(body.office_name)
    return build_wizard_view(wizard)


@router.post("/team", response_model=WizardView)
async def add_member(body: TeamMemberData, wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.add_team_member(body)
    return build_wizard_view(wizard)


@router.put("/team/{index}", response_model=WizardView)
async def update_member(
    index: int,
    body: TeamMemberData,
    wizard: SetupWizard = Depends(get_wizard),
):
    if _active(wizard):
        await wizard.update_team_member(index, body)
    return build_wizard_view(wizard)


@router.delete("/team/{index}", response_model=WizardView)
async def remove_member(index: int, wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.remove_team_member(index)
    return build_wizard_view(wizard)


@router.put("/costs", response_model=WizardView)
async def set_costs(body: OfficeCosts, wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.set_costs(body)
    return build_wizard_view(wizard)


@router.put("/costs/{field}", response_model=WizardView)
async def set_cost_field(
    field: CostKey,
    body: CostValueBody,
    wizard: SetupWizard = Depends(get_wizard),
):
    if _active(wizard):
        await wizard.set_cost_field(field, body.value)
    return build_wizard_view(wizard)


@router.put("/services", response_model=WizardView)
async def set_services(body: ServicesBody, wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.set_services(body.services)
    return build_wizard_view(wizard)


@router.post("/services/{service_id}/toggle", response_model=WizardView)
async def toggle_service(
    service_id: ServiceId,
    wizard: SetupWizard = Depends(get_wizard),
):
    if _active(wizard):
        await wizard.toggle_service(service_id)
    return build_wizard_view(wizard)


@router.put("/margin", response_model=WizardView)
async def set_margin(body: MarginBody, wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.set_margin(body.margin)
    return build_wizard_view(wizard)


@router.put("/positioning", response_model=WizardView)
async def set_positioning(
    body: PositioningBody,
    wizard: SetupWizard = Depends(get_wizard),
):
    if _active(wizard):
        await wizard.set_positioning(body.positioning)
    return build_wizard_view(wizard)


# ── Navigation & actions ─────────────────────────────────────

@router.post("/next", response_model=WizardView)
async def next_step(wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.next_step()
    return build_wizard_view(wizard)


@router.post("/prev", response_model=WizardView)
async def prev_step(wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.prev_step()
    return build_wizard_view(wizard)


@router.post("/goto/{step}", response_model=WizardView)
async def go_to_step(step: int, wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.go_to_step(step)
    return build_wizard_view(wizard)


@router.post("/save", response_model=WizardView)
async def save_progress(wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.save_progress()
    return build_wizard_view(wizard)


@router.post("/complete", response_model=WizardView)
async def complete(wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.complete()
    return build_wizard_view(wizard)


@router.post("/skip", response_model=WizardView)
async def skip(wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.skip()
    return build_wizard_view(wizard)


@router.post("/reset", response_model=WizardView)
async def reset(wizard: SetupWizard = Depends(get_wizard)):
    if _active(wizard):
        await wizard.reset()
    return build_wizard_view(wizard)
