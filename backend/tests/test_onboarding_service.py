"""Onboarding persistence service against a real (SQLite) session."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from arqos.models.profile import Profile
from arqos.onboarding.schemas import CompleteSetupData, OfficeCosts, TeamMemberData, WizardState
from arqos.onboarding.service import OnboardingService, is_same_person
from arqos.onboarding.snapshot import InMemorySnapshotStore, snapshot_key
from arqos.onboarding.wizard import TIMEOUT_MESSAGE, SetupWizard


def _submission(team: list[dict] | None = None, **overrides) -> CompleteSetupData:
    data = {
        "office": {
            "size": "small",
            "margin": 35,
            "services": ["decorexpress", "producao"],
            "costs": {"rent": 3000, "software": 500},
            "positioning": "premium",
        },
        "team": team
        or [
            {"name": "Ana Souza", "role": "owner", "salary": 12000, "monthlyHours": 150,
             "email": "ana@studio.com"},
            {"name": "Bruno Lima", "role": "architect", "salary": 6000, "monthlyHours": 160,
             "email": "bruno@studio.com"},
        ],
        "organizationName": "Studio Ana Interiores",
    }
    data.update(overrides)
    return CompleteSetupData.model_validate(data)


@pytest.mark.unit
class TestIsSamePerson:
    def test_matches_email(self):
        profile = Profile(email="ana@studio.com", full_name="Someone Else")
        member = TeamMemberData(
            name="Ana", role="owner", salary=1, monthly_hours=1, email="ANA@studio.com"
        )
        assert is_same_person(member, profile)

    def test_matches_name_ignoring_case_and_spaces(self):
        profile = Profile(email="ana@studio.com", full_name="Ana Souza")
        member = TeamMemberData(name="  ana souza ", role="owner", salary=1, monthly_hours=1)
        assert is_same_person(member, profile)

    def test_other_member(self):
        profile = Profile(email="ana@studio.com", full_name="Ana Souza")
        member = TeamMemberData(
            name="Bruno", role="owner", salary=1, monthly_hours=1, email="bruno@studio.com"
        )
        assert not is_same_person(member, profile)


@pytest.mark.integration
@pytest.mark.asyncio
class TestOnboardingService:
    async def test_initial_status(self, db_session: AsyncSession, test_profile, test_organization):
        result = await OnboardingService(db_session, test_profile).get_setup_status()

        assert result.ok
        status = result.data
        assert status.is_completed is False
        assert status.is_skipped is False
        assert status.current_step == 1
        assert status.organization_id == test_organization.id
        assert status.organization_name == "Studio Ana"

    async def test_update_step_preserves_other_settings(self, db_session, test_profile, test_organization):
        service = OnboardingService(db_session, test_profile)

        result = await service.update_setup_step(3)

        assert result.ok
        assert result.data == {"step": 3}
        await db_session.refresh(test_organization)
        assert test_organization.settings == {"theme": "dark", "setup_step": 3}
        assert (await service.get_setup_status()).data.current_step == 3

    @pytest.mark.parametrize("step", [0, 7])
    async def test_update_step_out_of_range(self, db_session, test_profile, step):
        result = await OnboardingService(db_session, test_profile).update_setup_step(step)
        assert result.error.code == "VALIDATION_ERROR"

    async def test_skip(self, db_session, test_profile, test_organization):
        service = OnboardingService(db_session, test_profile)

        assert (await service.skip_setup()).ok

        status = (await service.get_setup_status()).data
        assert status.is_skipped
        assert not status.is_completed
        await db_session.refresh(test_organization)
        assert test_organization.settings["theme"] == "dark"

    async def test_complete_writes_office_profile_and_pending_team(
        self, db_session, test_profile, test_organization
    ):
        service = OnboardingService(db_session, test_profile)

        result = await service.complete_setup(_submission())

        assert result.ok
        assert result.data == {"organization_id": test_organization.id}

        await db_session.refresh(test_organization)
        await db_session.refresh(test_profile)
        settings = test_organization.settings
        assert test_organization.name == "Studio Ana Interiores"
        assert settings["theme"] == "dark"
        assert settings["setup_step"] == 6
        assert settings["setup_completed_at"]
        assert settings["office"] == {
            "size": "small",
            "margin": 35.0,
            "services": ["decorexpress", "producao"],
            "costs": {
                "rent": 3000.0, "utilities": 0.0, "software": 500.0, "marketing": 0.0,
                "accountant": 0.0, "internet": 0.0, "others": 0.0,
            },
            "positioning": "premium",
        }
        assert settings["pending_team"] == [
            {"name": "Bruno Lima", "role": "architect", "salary": 6000.0,
             "monthlyHours": 160.0, "email": "bruno@studio.com"},
        ]

        assert test_profile.full_name == "Ana Souza"
        assert test_profile.role == "owner"
        assert test_profile.metadata_ == {"salary": 12000.0, "monthly_hours": 150.0}

        status = (await service.get_setup_status()).data
        assert status.is_completed

    async def test_complete_solo_has_no_pending_team(self, db_session, test_profile, test_organization):
        team = [{"name": "Ana Souza", "role": "owner", "salary": 9000, "monthlyHours": 160}]
        result = await OnboardingService(db_session, test_profile).complete_setup(
            _submission(team=team)
        )

        assert result.ok
        await db_session.refresh(test_organization)
        assert "pending_team" not in test_organization.settings

    async def test_organization_config(self, db_session, test_profile, test_organization):
        result = await OnboardingService(db_session, test_profile).get_organization_config()
        assert result.data.id == test_organization.id
        assert result.data.name == "Studio Ana"
        assert result.data.settings == {"theme": "dark"}

    async def test_missing_profile(self, db_session):
        result = await OnboardingService(db_session, None).get_setup_status()
        assert result.error.code == "UNAUTHENTICATED"
        assert result.error.message == "Usuário não autenticado"

    async def test_profile_without_organization(self, db_session: AsyncSession):
        profile = Profile(email="solo@studio.com", full_name="Sem Org", is_active=True)
        db_session.add(profile)
        await db_session.flush()

        result = await OnboardingService(db_session, profile).skip_setup()

        assert result.error.code == "NOT_FOUND"
        assert result.error.message == "Organização não encontrada"

    async def test_database_error_becomes_result(self, db_session, test_profile):
        service = OnboardingService(db_session, test_profile)
        db_session.flush = AsyncMock(
            side_effect=OperationalError("UPDATE organizations", {}, Exception("locked"))
        )
        db_session.rollback = AsyncMock()

        result = await service.update_setup_step(2)

        assert result.error.code == "DATABASE_ERROR"
        db_session.rollback.assert_awaited_once()

    @pytest.mark.parametrize(
        "settings",
        [
            {"setup_completed_at": 1700000000},
            {"setup_step": "three"},
            {"pending_team": {"a": 1}},
        ],
    )
    async def test_status_with_foreign_typed_settings(
        self, db_session, test_profile, test_organization, settings
    ):
        test_organization.settings = {"theme": "dark", **settings}
        await db_session.flush()

        result = await OnboardingService(db_session, test_profile).get_setup_status()

        assert result.ok
        assert 1 <= result.data.current_step <= 6

    async def test_numeric_completion_timestamp_counts(self, db_session, test_profile, test_organization):
        test_organization.settings = {"setup_completed_at": 1700000000}
        await db_session.flush()

        result = await OnboardingService(db_session, test_profile).get_setup_status()

        assert result.data.is_completed is True

    async def test_cancelled_call_rolls_back_and_propagates(self, test_profile):
        db = AsyncMock()
        db.get.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await OnboardingService(db, test_profile).skip_setup()

        db.rollback.assert_awaited_once()

    async def test_commit_failure_becomes_result(self, db_session, test_profile, test_organization):
        await db_session.commit()
        service = OnboardingService(db_session, test_profile)
        db_session.commit = AsyncMock(
            side_effect=OperationalError("COMMIT", {}, Exception("disk full"))
        )
        db_session.rollback = AsyncMock()

        result = await service.complete_setup(_submission())

        assert result.error.code == "DATABASE_ERROR"
        db_session.rollback.assert_awaited_once()

    async def test_timed_out_completion_leaves_nothing_to_commit(
        self, db_session, test_profile, test_organization, monkeypatch
    ):
        # Persist the fixtures so the rollback only discards the wizard's writes
        await db_session.commit()
        key = snapshot_key(test_profile.id)
        store = InMemorySnapshotStore()
        state = WizardState(
            current_step=6,
            office_size="small",
            office_name="Outro Nome",
            team=[TeamMemberData(name="Ana Souza", role="owner", salary=9000, monthly_hours=160)],
            costs=OfficeCosts(rent=3000),
            services=["decorexpress"],
            margin=30,
        )
        await store.save(key, state.model_dump(mode="json", by_alias=True))

        wizard = SetupWizard(
            OnboardingService(db_session, test_profile),
            store,
            key=key,
            timeout=0.05,
            on_navigate=lambda path: None,
        )
        await wizard.load()

        real_commit = db_session.commit

        async def slow_commit():
            await asyncio.sleep(0.2)
            await real_commit()

        monkeypatch.setattr(db_session, "commit", slow_commit)

        assert await wizard.complete() is False
        assert wizard.error == TIMEOUT_MESSAGE

        # The request transaction commits whatever is left in the session
        monkeypatch.undo()
        await db_session.commit()
        await db_session.refresh(test_organization)
        assert test_organization.name == "Studio Ana"
        assert test_organization.settings == {"theme": "dark"}
        assert await store.load(key) is not None
