"""Onboarding persistence service.

Reads and writes setup progress on the acting profile's organization.
Every public method returns a `ServiceResult` and never raises: the
caller inspects `result.error` (`{message, code}`).

Error codes:
  UNAUTHENTICATED  no acting profile
  NOT_FOUND        the profile's organization row is missing
  VALIDATION_ERROR step number outside 1..6
  DATABASE_ERROR   SQLAlchemy failure (message passed through)
"""

import asyncio
import functools
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from arqos.models.organization import Organization
from arqos.models.profile import Profile
from arqos.onboarding.constants import TOTAL_STEPS
from arqos.onboarding.org_settings import merge_settings, parse_settings, utc_now_iso
from arqos.onboarding.schemas import (
    CompleteSetupData,
    OrganizationConfig,
    ServiceResult,
    SetupStatus,
    TeamMemberData,
)

logger = logging.getLogger(__name__)

UNAUTHENTICATED_MESSAGE = "Usuário não autenticado"
NOT_FOUND_MESSAGE = "Organização não encontrada"


class _MissingContext(Exception):
    def __init__(self, message: str, code: str):
        self.message = message
        self.code = code
        super().__init__(message)


def _service_call(func):
    """Turn context and database failures into a failed ServiceResult."""

    @functools.wraps(func)
    async def wrapper(self: "OnboardingService", *args, **kwargs) -> ServiceResult:
        try:
            return await func(self, *args, **kwargs)
        except _MissingContext as exc:
            logger.warning("%s: %s (%s)", func.__name__, exc.message, exc.code)
            return ServiceResult.failure(exc.message, exc.code)
        except SQLAlchemyError as exc:
            logger.exception("%s failed", func.__name__)
            await self.db.rollback()
            return ServiceResult.failure(str(exc), "DATABASE_ERROR")
        except asyncio.CancelledError:
            # A cancelled call must not leave half-applied changes for the
            # request transaction to commit.
            logger.warning("%s cancelled, rolling back", func.__name__)
            await asyncio.shield(self.db.rollback())
            raise

    return wrapper


def is_same_person(member: TeamMemberData, profile: Profile) -> bool:
    """A team member is the acting profile when email or name match."""
    if member.email and profile.email and member.email == profile.email.lower():
        return True
    return member.name.strip().lower() == (profile.full_name or "").strip().lower()


class OnboardingService:
    def __init__(self, db: AsyncSession, profile: Profile | None):
        self.db = db
        self.profile = profile

    async def _organization(self) -> Organization:
        if self.profile is None:
            raise _MissingContext(UNAUTHENTICATED_MESSAGE, "UNAUTHENTICATED")
        org = None
        if self.profile.organization_id:
            org = await self.db.get(Organization, self.profile.organization_id)
        if org is None:
            raise _MissingContext(NOT_FOUND_MESSAGE, "NOT_FOUND")
        return org

    @_service_call
    async def get_setup_status(self) -> ServiceResult[SetupStatus]:
        org = await self._organization()
        settings = parse_settings(org.settings)
        return ServiceResult.success(
            SetupStatus(
                is_completed=settings.is_completed,
                is_skipped=settings.is_skipped,
                current_step=settings.resume_step,
                organization_id=org.id,
                organization_name=org.name,
            )
        )

    @_service_call
    async def update_setup_step(self, step: int) -> ServiceResult[dict]:
        if not 1 <= step <= TOTAL_STEPS:
            return ServiceResult.failure(
                f"Etapa inválida: {step}", "VALIDATION_ERROR"
            )
        org = await self._organization()
        org.settings = merge_settings(org.settings, onboarding={"setup_step": step})
        await self.db.flush()
        logger.info("Organization %s setup step -> %d", org.id, step)
        return ServiceResult.success({"step": step})

    @_service_call
    async def skip_setup(self) -> ServiceResult[None]:
        """Mark the setup skipped and commit."""
        org = await self._organization()
        org.settings = merge_settings(
            org.settings, onboarding={"setup_skipped_at": utc_now_iso()}
        )
        await self.db.commit()
        logger.info("Organization %s skipped setup", org.id)
        return ServiceResult.success(None)

    @_service_call
    async def complete_setup(self, data: CompleteSetupData) -> ServiceResult[dict]:
        """Write the final configuration in one committed transaction.

        Success means the write is durable, so the caller may drop its
        recovery copy of the wizard data.

        The team member matching the acting profile updates that profile;
        everyone else is kept as `pending_team` until they sign up.
        """
        org = await self._organization()
        profile = self.profile

        settings = merge_settings(
            org.settings,
            onboarding={
                "setup_completed_at": utc_now_iso(),
                "setup_step": TOTAL_STEPS,
            },
            office=data.office.model_dump(mode="json", by_alias=True),
        )

        actor = next((m for m in data.team if is_same_person(m, profile)), None)
        if actor is not None:
            profile.full_name = actor.name
            profile.role = actor.role
            profile.metadata_ = {
                **(profile.metadata_ or {}),
                "salary": actor.salary,
                "monthly_hours": actor.monthly_hours,
            }

        pending = [
            m.model_dump(mode="json", by_alias=True, exclude_none=True)
            for m in data.team
            if not is_same_person(m, profile)
        ]
        if pending:
            settings = merge_settings(settings, pending_team=pending)

        org.name = data.organization_name
        org.settings = settings
        await self.db.commit()

        logger.info(
            "Organization %s completed setup (%d pending team members)",
            org.id,
            len(pending),
        )
        return ServiceResult.success({"organization_id": org.id})

    @_service_call
    async def get_organization_config(self) -> ServiceResult[OrganizationConfig]:
        org = await self._organization()
        return ServiceResult.success(
            OrganizationConfig(id=org.id, name=org.name, settings=org.settings or {})
        )
