"""Pydantic schemas for the 6-step setup wizard.

One schema per step, one for the assembled submission, and `WizardState`
for the in-memory / snapshot state. API payloads use camelCase aliases
(`officeSize`, `monthlyHours`) and also accept the snake_case names.

`WizardState` carries types only: data entry never validates, so a state
may legitimately hold e.g. `margin=5` or a one-letter office name. The
`StepN` schemas gate advancement and `CompleteSetupData` gates submission.
"""

import uuid
from typing import Any, Generic, Literal, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from arqos.onboarding.constants import (
    DEFAULT_COSTS,
    DEFAULT_MARGIN,
    DEFAULT_POSITIONING,
    MAX_MARGIN,
    MAX_MONTHLY_HOURS,
    MIN_MARGIN,
    TOTAL_STEPS,
)
from arqos.validators import sanitize_string, validate_email

T = TypeVar("T")

OfficeSize = Literal["solo", "small", "medium", "large"]
TeamRole = Literal["owner", "coordinator", "architect", "intern", "admin"]
ServiceId = Literal["decorexpress", "projetexpress", "producao", "consultoria"]
CostKey = Literal[
    "rent", "utilities", "software", "marketing", "accountant", "internet", "others"
]
PositioningId = Literal[
    "iniciante", "estruturado", "bem_posicionado", "premium", "ultra_premium"
]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Building blocks ─────────────────────────────────────────

class OfficeCosts(CamelModel):
    rent: float = Field(DEFAULT_COSTS["rent"], ge=0)
    utilities: float = Field(DEFAULT_COSTS["utilities"], ge=0)
    software: float = Field(DEFAULT_COSTS["software"], ge=0)
    marketing: float = Field(DEFAULT_COSTS["marketing"], ge=0)
    accountant: float = Field(DEFAULT_COSTS["accountant"], ge=0)
    internet: float = Field(DEFAULT_COSTS["internet"], ge=0)
    others: float = Field(DEFAULT_COSTS["others"], ge=0)


class TeamMemberData(CamelModel):
    id: uuid.UUID | None = None
    name: str = Field(min_length=2)
    role: TeamRole
    salary: float = Field(ge=0)
    monthly_hours: float = Field(ge=1, le=MAX_MONTHLY_HOURS)
    email: str | None = None

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        # An empty string means "no email", same as omitting it
        if v is None or v == "":
            return v
        return validate_email(v)


# ── Per-step schemas ────────────────────────────────────────

class StepSize(CamelModel):
    office_size: OfficeSize


class StepName(CamelModel):
    office_name: str = Field(min_length=2, max_length=100)

    @field_validator("office_name", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class StepTeam(CamelModel):
    team: list[TeamMemberData] = Field(min_length=1)


class StepCosts(CamelModel):
    costs: OfficeCosts = Field(default_factory=OfficeCosts)


class StepServices(CamelModel):
    services: list[ServiceId] = Field(min_length=1)


class StepMargin(CamelModel):
    margin: float = Field(ge=MIN_MARGIN, le=MAX_MARGIN)


STEP_SCHEMAS: dict[int, type[BaseModel]] = {
    1: StepSize,
    2: StepName,
    3: StepTeam,
    4: StepCosts,
    5: StepServices,
    6: StepMargin,
}


# ── Submission ──────────────────────────────────────────────

class OfficeConfig(CamelModel):
    size: OfficeSize
    margin: float = Field(ge=MIN_MARGIN, le=MAX_MARGIN)
    services: list[ServiceId] = Field(min_length=1)
    costs: OfficeCosts = Field(default_factory=OfficeCosts)
    positioning: PositioningId = DEFAULT_POSITIONING


class CompleteSetupData(CamelModel):
    office: OfficeConfig
    team: list[TeamMemberData] = Field(min_length=1)
    organization_name: str = Field(min_length=2, max_length=100)

    @field_validator("organization_name", mode="before")
    @classmethod
    def _clean_name(cls, v: Any) -> Any:
        return sanitize_string(v, max_length=100) if isinstance(v, str) else v


class UpdateStepRequest(CamelModel):
    step: int = Field(ge=1, le=TOTAL_STEPS)


# ── Wizard state ────────────────────────────────────────────

class WizardState(CamelModel):
    """Everything the six steps have collected, plus the step pointer."""

    current_step: int = Field(1, ge=1, le=TOTAL_STEPS)
    office_size: OfficeSize | None = None
    office_name: str = ""
    team: list[TeamMemberData] = Field(default_factory=list)
    costs: OfficeCosts = Field(default_factory=OfficeCosts)
    services: list[ServiceId] = Field(default_factory=list)
    margin: float = DEFAULT_MARGIN
    positioning: PositioningId = DEFAULT_POSITIONING


# ── Status / service results ────────────────────────────────

class SetupStatus(CamelModel):
    is_completed: bool
    is_skipped: bool
    current_step: int
    organization_id: str
    organization_name: str


class ServiceError(BaseModel):
    message: str
    code: str


class ServiceResult(BaseModel, Generic[T]):
    """`{data, error}` envelope returned by the persistence service.

    Exactly one of `data` / `error` is meaningful: `error` set means the
    operation did not apply.
    """

    data: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any = None) -> "ServiceResult":
        return cls(data=data)

    @classmethod
    def failure(cls, message: str, code: str) -> "ServiceResult":
        return cls(error=ServiceError(message=message, code=code))


class StepResponse(BaseModel):
    step: int


class CompleteSetupResponse(CamelModel):
    success: bool = True
    organization_id: str


class OrganizationConfig(BaseModel):
    id: str
    name: str
    settings: dict


# ── Validation helpers ──────────────────────────────────────

class ValidationIssue(BaseModel):
    field: str
    message: str
    type: str


class ValidationResult(BaseModel):
    success: bool
    data: Any = None
    issues: list[ValidationIssue] = Field(default_factory=list)


def issues_from_error(exc: ValidationError) -> list[ValidationIssue]:
    return [
        ValidationIssue(
            field=".".join(str(loc) for loc in err["loc"]),
            message=err["msg"],
            type=err["type"],
        )
        for err in exc.errors()
    ]


def validate(schema: type[BaseModel], data: Any) -> ValidationResult:
    """Validate `data` against `schema` without raising.

    Returns the normalized model (defaults applied) on success, or the
    field-level issues on failure.
    """
    try:
        value = schema.model_validate(data)
    except ValidationError as exc:
        return ValidationResult(success=False, issues=issues_from_error(exc))
    return ValidationResult(success=True, data=value)


def validate_step(step: int, state: WizardState) -> ValidationResult:
    """Validate the slice of `state` that step `step` collects."""
    schema = STEP_SCHEMAS.get(step)
    if schema is None:
        return ValidationResult(
            success=False,
            issues=[
                ValidationIssue(
                    field="currentStep",
                    message=f"Etapa inválida: {step}",
                    type="value_error",
                )
            ],
        )
    return validate(schema, state.model_dump())
