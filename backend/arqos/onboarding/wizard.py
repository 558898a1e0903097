"""Setup wizard controller: the six-step onboarding state machine.

Steps (fixed order): size → name → team → costs → services → margin.

Transitions:
  go_to_step(n)  jump anywhere in 1..6, no validation; ignored while saving
  next_step()    only when the current step is valid; persists the new
                 step number remotely, then advances. On step 6 it
                 completes the setup instead.
  prev_step()    always allowed above step 1, no persistence
  complete()     requires an office size, validates the full submission,
                 then writes it; on success clears the snapshot and
                 navigates away
  skip()         no validation; marks the setup skipped and navigates away

State sources on load():
  - the local snapshot wins for field content and the step pointer
  - remote completed/skipped always wins: navigate away, drop the snapshot
  - the remote step is only a resume pointer when no snapshot exists

A failed step update leaves `current_step` where it was and surfaces the
error; the user retries with the same action.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Protocol

from arqos.config import settings
from arqos.onboarding.constants import (
    COST_KEYS,
    DEFAULT_POSITIONING,
    MAX_MARGIN,
    MIN_MARGIN,
    TOTAL_STEPS,
)
from arqos.onboarding.schemas import (
    CompleteSetupData,
    OfficeCosts,
    ServiceId,
    ServiceResult,
    SetupStatus,
    TeamMemberData,
    ValidationIssue,
    WizardState,
    validate,
)
from arqos.onboarding.snapshot import SnapshotStore, snapshot_key

logger = logging.getLogger(__name__)

SIZE_MISSING_MESSAGE = "Tamanho do escritório não definido"
INVALID_DATA_MESSAGE = "Dados inválidos"
TIMEOUT_MESSAGE = "Tempo limite excedido ao contatar o servidor"
CANCELLED_MESSAGE = "Operação cancelada"
LOAD_ERROR_MESSAGE = "Erro ao carregar configuração"
SAVE_ERROR_MESSAGE = "Erro ao salvar progresso"
COMPLETE_ERROR_MESSAGE = "Erro ao concluir configuração"
SKIP_ERROR_MESSAGE = "Erro ao pular configuração"


class SetupPersistence(Protocol):
    """What the wizard needs from the backend (see OnboardingService)."""

    async def get_setup_status(self) -> ServiceResult[SetupStatus]: ...

    async def update_setup_step(self, step: int) -> ServiceResult[dict]: ...

    async def complete_setup(self, data: CompleteSetupData) -> ServiceResult[dict]: ...

    async def skip_setup(self) -> ServiceResult[None]: ...


def is_step_valid(state: WizardState, step: int) -> bool:
    """Whether `state` allows leaving `step` forward."""
    if step == 1:
        return state.office_size is not None
    if step == 2:
        return len(state.office_name.strip()) >= 2
    if step == 3:
        return len(state.team) > 0
    if step == 4:
        return True  # zero costs are a complete answer
    if step == 5:
        return len(state.services) > 0
    if step == 6:
        return MIN_MARGIN <= state.margin <= MAX_MARGIN
    return False


def build_submission(state: WizardState) -> dict:
    """Assemble the CompleteSetupData payload from wizard state."""
    return {
        "office": {
            "size": state.office_size,
            "margin": state.margin,
            "services": list(state.services),
            "costs": state.costs.model_dump(),
            "positioning": state.positioning,
        },
        "team": [m.model_dump() for m in state.team],
        "organization_name": state.office_name,
    }


class SetupWizard:
    def __init__(
        self,
        persistence: SetupPersistence,
        store: SnapshotStore,
        *,
        key: str | None = None,
        timeout: float | None = None,
        redirect_path: str | None = None,
        on_navigate: Callable[[str], None] | None = None,
    ):
        self.persistence = persistence
        self.store = store
        self.key = key or snapshot_key()
        self.timeout = (
            timeout if timeout is not None
            else settings.wizard_persistence_timeout_seconds
        )
        self.redirect_path = redirect_path or settings.post_setup_redirect
        self.on_navigate = on_navigate

        self.state = WizardState()
        self.is_loading = True
        self.is_saving = False
        self.error: str | None = None
        self.issues: list[ValidationIssue] = []
        self.redirect_to: str | None = None

        self._inflight: asyncio.Future | None = None
        self._closed = False

    # ── Derived flags ───────────────────────────────────────

    @property
    def can_go_next(self) -> bool:
        return is_step_valid(self.state, self.state.current_step)

    @property
    def can_go_prev(self) -> bool:
        return self.state.current_step > 1

    # ── Lifecycle ───────────────────────────────────────────

    async def load(self) -> None:
        """Restore the local snapshot, then reconcile with the remote status."""
        self.is_loading = True
        try:
            restored = await self._restore_snapshot()
            result = await self._call(
                self.persistence.get_setup_status(), LOAD_ERROR_MESSAGE
            )
            if result.error:
                self.error = result.error.message
                return

            status: SetupStatus = result.data
            if status.is_completed or status.is_skipped:
                logger.info("Setup already %s, leaving wizard",
                            "completed" if status.is_completed else "skipped")
                await self._clear_snapshot()
                self._navigate_away()
                return

            changes = {}
            if not restored:
                changes["current_step"] = min(max(status.current_step, 1), TOTAL_STEPS)
            if not self.state.office_name:
                changes["office_name"] = status.organization_name
            self.state = self.state.model_copy(update=changes)
        finally:
            self.is_loading = False

        await self._write_snapshot()

    async def close(self) -> None:
        """Tear down the session: cancel any in-flight persistence call."""
        self._closed = True
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self.is_saving = False

    # ── Navigation ──────────────────────────────────────────

    async def go_to_step(self, step: int) -> None:
        if self.is_saving:
            return
        if 1 <= step <= TOTAL_STEPS:
            await self._set_state(current_step=step)

    async def next_step(self) -> bool:
        """Advance one step (or complete on the last one). Returns success."""
        if not self.can_go_next or self.is_saving:
            return False

        next_num = self.state.current_step + 1
        if next_num > TOTAL_STEPS:
            return await self.complete()

        self.error = None
        result = await self._saving(
            self.persistence.update_setup_step(next_num), SAVE_ERROR_MESSAGE
        )
        if result.error:
            self.error = result.error.message
            return False

        await self._set_state(current_step=next_num)
        return True

    async def prev_step(self) -> None:
        if self.can_go_prev:
            await self._set_state(current_step=self.state.current_step - 1)

    # ── Step 1: office size ─────────────────────────────────

    async def set_office_size(self, size: str) -> None:
        await self._set_state(office_size=size)

    # ── Step 2: office name ─────────────────────────────────

    async def set_office_name(self, name: str) -> None:
        await self._set_state(office_name=name)

    # ── Step 3: team ────────────────────────────────────────

    async def add_team_member(self, member: TeamMemberData) -> None:
        await self._set_state(team=[*self.state.team, member])

    async def update_team_member(self, index: int, member: TeamMemberData) -> None:
        if not 0 <= index < len(self.state.team):
            return
        team = list(self.state.team)
        team[index] = member
        await self._set_state(team=team)

    async def remove_team_member(self, index: int) -> None:
        if not 0 <= index < len(self.state.team):
            return
        await self._set_state(
            team=[m for i, m in enumerate(self.state.team) if i != index]
        )

    # ── Step 4: costs ───────────────────────────────────────

    async def set_costs(self, costs: OfficeCosts) -> None:
        await self._set_state(costs=costs)

    async def set_cost_field(self, key: str, value: float) -> None:
        if key not in COST_KEYS:
            raise KeyError(f"Unknown cost field: {key}")
        costs = self.state.costs.model_copy(update={key: value})
        await self._set_state(costs=costs)

    # ── Step 5: services ────────────────────────────────────

    async def toggle_service(self, service_id: ServiceId) -> None:
        services = self.state.services
        if service_id in services:
            services = [s for s in services if s != service_id]
        else:
            services = [*services, service_id]
        await self._set_state(services=services)

    async def set_services(self, services: list[ServiceId]) -> None:
        await self._set_state(services=list(services))

    # ── Step 6: margin & positioning ────────────────────────

    async def set_margin(self, margin: float) -> None:
        await self._set_state(margin=margin)

    async def set_positioning(self, positioning: str = DEFAULT_POSITIONING) -> None:
        await self._set_state(positioning=positioning)

    # ── Actions ─────────────────────────────────────────────

    async def save_progress(self) -> bool:
        """Persist the current step number without moving."""
        if self.is_saving:
            return False
        self.error = None
        result = await self._saving(
            self.persistence.update_setup_step(self.state.current_step),
            SAVE_ERROR_MESSAGE,
        )
        if result.error:
            self.error = result.error.message
            return False
        return True

    async def complete(self) -> bool:
        if self.state.office_size is None:
            self.error = SIZE_MISSING_MESSAGE
            return False
        if self.is_saving:
            return False

        self.error = None
        self.issues = []
        checked = validate(CompleteSetupData, build_submission(self.state))
        if not checked.success:
            self.issues = checked.issues
            self.error = INVALID_DATA_MESSAGE
            return False

        result = await self._saving(
            self.persistence.complete_setup(checked.data), COMPLETE_ERROR_MESSAGE
        )
        if result.error:
            self.error = result.error.message
            return False

        await self._clear_snapshot()
        self._navigate_away()
        return True

    async def skip(self) -> bool:
        if self.is_saving:
            return False
        self.error = None
        result = await self._saving(
            self.persistence.skip_setup(), SKIP_ERROR_MESSAGE
        )
        if result.error:
            self.error = result.error.message
            return False

        await self._clear_snapshot()
        self._navigate_away()
        return True

    async def reset(self) -> None:
        await self._clear_snapshot()
        self.state = WizardState()
        self.error = None
        self.issues = []

    # ── Internals ───────────────────────────────────────────

    async def _set_state(self, **changes) -> None:
        self.state = self.state.model_copy(update=changes)
        await self._write_snapshot()

    def _navigate_away(self) -> None:
        self.redirect_to = self.redirect_path
        if self.on_navigate is not None:
            self.on_navigate(self.redirect_path)

    async def _saving(
        self, call: Awaitable[ServiceResult], fallback_message: str
    ) -> ServiceResult:
        self.is_saving = True
        try:
            return await self._call(call, fallback_message)
        finally:
            self.is_saving = False

    async def _call(
        self, call: Awaitable[ServiceResult], fallback_message: str
    ) -> ServiceResult:
        """Await a persistence call with a timeout, never raising."""
        task = asyncio.ensure_future(call)
        self._inflight = task
        try:
            return await asyncio.wait_for(task, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Persistence call timed out after %.1fs", self.timeout)
            return ServiceResult.failure(TIMEOUT_MESSAGE, "TIMEOUT")
        except asyncio.CancelledError:
            if not self._closed:
                raise
            return ServiceResult.failure(CANCELLED_MESSAGE, "CANCELLED")
        except Exception:
            logger.exception("Persistence call failed")
            return ServiceResult.failure(fallback_message, "UNEXPECTED_ERROR")
        finally:
            self._inflight = None

    async def _restore_snapshot(self) -> bool:
        try:
            raw = await self.store.load(self.key)
        except Exception:
            logger.warning("Could not read wizard snapshot %s", self.key, exc_info=True)
            return False
        if raw is None:
            return False

        checked = validate(WizardState, raw)
        if not checked.success:
            logger.warning(
                "Dropping invalid wizard snapshot %s: %s",
                self.key,
                ", ".join(i.field for i in checked.issues),
            )
            await self._clear_snapshot()
            return False

        self.state = checked.data
        return True

    async def _write_snapshot(self) -> None:
        if self.is_loading:
            return
        try:
            await self.store.save(
                self.key, self.state.model_dump(mode="json", by_alias=True)
            )
        except Exception:
            logger.warning("Could not write wizard snapshot %s", self.key, exc_info=True)

    async def _clear_snapshot(self) -> None:
        try:
            await self.store.delete(self.key)
        except Exception:
            logger.warning("Could not delete wizard snapshot %s", self.key, exc_info=True)
