"""View models for the wizard UI: progress indicator and per-step views.

Pure functions of wizard state; the API returns these so the client only
renders and calls back into the wizard endpoints.
"""

from typing import TYPE_CHECKING

from pydantic import Field
from pydantic.alias_generators import to_camel

from arqos.onboarding.constants import (
    COST_FIELDS,
    MAX_MARGIN,
    MIN_MARGIN,
    OFFICE_SIZES,
    POSITIONING_OPTIONS,
    SERVICES,
    TEAM_ROLES,
    WIZARD_STEPS,
    calculate_total_costs,
    format_currency,
    get_recommended_team_size,
    get_role_name,
)
from arqos.onboarding.pricing import PricingPreview, calculate_pricing
from arqos.onboarding.schemas import CamelModel, ValidationIssue, WizardState

if TYPE_CHECKING:
    from arqos.onboarding.wizard import SetupWizard

MARGIN_PRESETS = [20, 30, 40, 50]
MARGIN_STEP = 5
RECOMMENDED_MARGIN = 30


class ProgressItem(CamelModel):
    id: int
    name: str
    description: str
    is_completed: bool
    is_current: bool


class StepView(CamelModel):
    step: int
    key: str
    title: str
    data: dict = Field(default_factory=dict)


class WizardView(CamelModel):
    state: WizardState
    can_go_next: bool
    can_go_prev: bool
    is_saving: bool
    error: str | None = None
    issues: list[ValidationIssue] = Field(default_factory=list)
    redirect_to: str | None = None
    progress: list[ProgressItem]
    step: StepView


def build_progress(current_step: int) -> list[ProgressItem]:
    return [
        ProgressItem(
            id=step["id"],
            name=step["name"],
            description=step["description"],
            is_completed=current_step > step["id"],
            is_current=current_step == step["id"],
        )
        for step in WIZARD_STEPS
    ]


def _camelize(entry: dict) -> dict:
    return {to_camel(k): v for k, v in entry.items()}


def _size_view(state: WizardState) -> dict:
    return {
        "options": [
            {**_camelize(size), "selected": size["id"] == state.office_size}
            for size in OFFICE_SIZES
        ]
    }


def _name_view(state: WizardState) -> dict:
    return {"officeName": state.office_name, "minLength": 2, "maxLength": 100}


def _team_view(state: WizardState) -> dict:
    low, high = get_recommended_team_size(state.office_size)
    return {
        "members": [
            {
                **member.model_dump(mode="json", by_alias=True),
                "index": i,
                "roleName": get_role_name(member.role),
            }
            for i, member in enumerate(state.team)
        ],
        "roles": [_camelize(role) for role in TEAM_ROLES],
        "recommendedSize": {"min": low, "max": high},
    }


def _costs_view(state: WizardState) -> dict:
    costs = state.costs.model_dump()
    total = calculate_total_costs(costs)
    return {
        "fields": [
            {**_camelize(field), "value": costs[field["key"]]}
            for field in COST_FIELDS
        ],
        "total": total,
        "totalFormatted": format_currency(total),
    }


def _services_view(state: WizardState) -> dict:
    return {
        "options": [
            {**_camelize(service), "selected": service["id"] in state.services}
            for service in SERVICES
        ]
    }


def _margin_view(state: WizardState) -> dict:
    pricing: PricingPreview = calculate_pricing(
        state.costs, state.team, state.margin, state.positioning
    )
    data = {
        "margin": state.margin,
        "min": MIN_MARGIN,
        "max": MAX_MARGIN,
        "step": MARGIN_STEP,
        "presets": MARGIN_PRESETS,
        "recommended": RECOMMENDED_MARGIN,
        "positioning": state.positioning,
        "positioningOptions": [_camelize(p) for p in POSITIONING_OPTIONS],
        # Below 2x the long-term profitability warning is shown
        "lowPositioningWarning": pricing.positioning_multiplier < 2.0,
        "pricing": pricing.model_dump(by_alias=True),
    }
    if pricing.cost_per_hour > 0:
        data["formatted"] = {
            "costPerHour": format_currency(pricing.cost_per_hour),
            "priceWithMargin": format_currency(pricing.price_with_margin),
            "salePricePerHour": format_currency(pricing.sale_price_per_hour),
        }
    return data


_STEP_BUILDERS = {
    1: _size_view,
    2: _name_view,
    3: _team_view,
    4: _costs_view,
    5: _services_view,
    6: _margin_view,
}


def build_step_view(state: WizardState) -> StepView:
    meta = WIZARD_STEPS[state.current_step - 1]
    return StepView(
        step=meta["id"],
        key=meta["key"],
        title=meta["description"],
        data=_STEP_BUILDERS[meta["id"]](state),
    )


def build_wizard_view(wizard: "SetupWizard") -> WizardView:
    """Everything the client needs to render the wizard right now."""
    return WizardView(
        state=wizard.state,
        can_go_next=wizard.can_go_next,
        can_go_prev=wizard.can_go_prev,
        is_saving=wizard.is_saving,
        error=wizard.error,
        issues=wizard.issues,
        redirect_to=wizard.redirect_to,
        progress=build_progress(wizard.state.current_step),
        step=build_step_view(wizard.state),
    )
