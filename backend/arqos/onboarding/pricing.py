"""Hourly price preview shown on the margin step.

    monthly cost  = fixed costs + team salaries
    cost / hour   = monthly cost / team hours   (160h when the team is empty)
    with margin   = cost / hour × (1 + margin / 100)
    sale / hour   = with margin × positioning multiplier
"""

from pydantic import BaseModel

from arqos.onboarding.constants import (
    DEFAULT_MONTHLY_HOURS,
    DEFAULT_POSITIONING,
    calculate_total_costs,
    get_positioning_multiplier,
)
from arqos.onboarding.schemas import CamelModel, OfficeCosts, TeamMemberData


class PricingPreview(CamelModel):
    total_costs: float
    total_salaries: float
    total_hours: float
    monthly_cost: float
    cost_per_hour: float
    margin_factor: float
    price_with_margin: float
    positioning_multiplier: float
    sale_price_per_hour: float


def calculate_pricing(
    costs: OfficeCosts | dict,
    team: list[TeamMemberData],
    margin: float,
    positioning: str = DEFAULT_POSITIONING,
) -> PricingPreview:
    if isinstance(costs, BaseModel):
        costs = costs.model_dump()

    total_costs = calculate_total_costs(costs)
    total_salaries = sum(m.salary for m in team)
    total_hours = sum(m.monthly_hours for m in team) or DEFAULT_MONTHLY_HOURS

    monthly_cost = total_costs + total_salaries
    cost_per_hour = monthly_cost / total_hours
    margin_factor = 1 + margin / 100
    with_margin = cost_per_hour * margin_factor
    multiplier = get_positioning_multiplier(positioning)

    return PricingPreview(
        total_costs=total_costs,
        total_salaries=total_salaries,
        total_hours=total_hours,
        monthly_cost=monthly_cost,
        cost_per_hour=cost_per_hour,
        margin_factor=margin_factor,
        price_with_margin=with_margin,
        positioning_multiplier=multiplier,
        sale_price_per_hour=with_margin * multiplier,
    )
