"""Investment heuristics computed from price and rent inputs.

All functions are pure; rates are taken from the run's ``AnalysisConfig``.
Nothing here rounds except ``round_half_up`` itself.
"""

from __future__ import annotations

import math
from typing import Optional

from ..config import AnalysisConfig

ONE_PERCENT = 0.01


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves upward (2.5 -> 3, -2.5 -> -2) instead of to the nearest even."""

    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def gross_yield(annual_rent: float, price: Optional[float]) -> float:
    """Annual rent as a percentage of price; 0 when price is missing or zero."""

    if not price:
        return 0.0
    return (annual_rent / price) * 100


def monthly_cash_flow(monthly_rent: float, price: float, analysis: AnalysisConfig) -> float:
    """Rent less taxes, vacancy and management.

    Financing is left out on purpose since it depends on the buyer.
    """

    monthly_taxes = (price * analysis.property_tax_rate) / 12
    vacancy_loss = monthly_rent * analysis.vacancy_rate
    management_cost = monthly_rent * analysis.management_fee
    return monthly_rent - (monthly_taxes + vacancy_loss + management_cost)


def gross_rent_multiplier(price: float, annual_rent: float) -> Optional[float]:
    if not annual_rent or annual_rent <= 0:
        return None
    return price / annual_rent


def meets_one_percent_rule(monthly_rent: float, price: float) -> bool:
    return monthly_rent >= price * ONE_PERCENT


def heuristic_yield(square_footage: float, price: Optional[float], analysis: AnalysisConfig) -> float:
    """Gross yield using the flat $/sqft rent guess instead of a real estimate."""

    estimated_monthly_rent = square_footage * analysis.heuristic_rent_per_sqft
    return gross_yield(estimated_monthly_rent * 12, price)


__all__ = [
    "gross_rent_multiplier",
    "gross_yield",
    "heuristic_yield",
    "meets_one_percent_rule",
    "monthly_cash_flow",
    "round_half_up",
]
