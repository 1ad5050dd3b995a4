# solar_proposal/services/bill_estimator.py

from __future__ import annotations

import math

from solar_proposal.errors import InvalidInput
from solar_proposal.services.estimator import round_half_up


# Average residential $/kWh, keyed by CARE enrollment.
UTILITY_RATES = {
    "PG&E": {False: 0.45, True: 0.31},
    "SDG&E": {False: 0.385, True: 0.2695},
    "SCE": {False: 0.42, True: 0.294},
}

SUMMER_MONTHS = 3
WINTER_MONTHS = 3
SHOULDER_MONTHS = 6


def _positive(value) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def estimate_annual_consumption(monthly_bill: float, utility_rate: float) -> int:
    """Annual kWh implied by an average monthly bill at a flat $/kWh rate."""
    if not _positive(monthly_bill) or not _positive(utility_rate):
        raise InvalidInput("Please enter valid values for Utility Rate and Monthly Bill.")
    return round_half_up(monthly_bill / utility_rate * 12)


def estimate_utility_rate(provider: str, care_enrolled: bool = False) -> float:
    rates = UTILITY_RATES.get((provider or "").strip().upper())
    if rates is None:
        known = ", ".join(sorted(UTILITY_RATES))
        raise InvalidInput(f"Unknown utility provider '{provider}' (expected one of: {known}).", field="provider")
    return rates[bool(care_enrolled)]


def estimate_monthly_bill(summer_bill: float, winter_bill: float, fall_spring_bill: float) -> float:
    """Season-weighted average monthly bill, rounded to cents."""
    bills = (summer_bill, winter_bill, fall_spring_bill)
    if any(b is None or not math.isfinite(b) or b < 0 for b in bills):
        raise InvalidInput("Please enter valid values for all seasonal bills.")
    weighted = (
        summer_bill * SUMMER_MONTHS
        + winter_bill * WINTER_MONTHS
        + fall_spring_bill * SHOULDER_MONTHS
    ) / 12
    return round_half_up(weighted * 100) / 100


def percentage_of_original_cost(monthly_with_solar: float, current_monthly_bill: float | None) -> str:
    if not current_monthly_bill or current_monthly_bill <= 0:
        return "N/A"
    pct = monthly_with_solar / current_monthly_bill * 100
    return f"{round_half_up(pct * 100) / 100:.2f}%"
