# solar_proposal/services/estimator.py

from __future__ import annotations

import math
from typing import Any, Optional

from solar_proposal.models.estimate import (
    BATTERY_UNIT_KWH,
    CostInputs,
    CostResult,
    RedlineBreakdown,
    SizingRequest,
    SizingResult,
    SystemEstimate,
)


# ============================================================================
# Fixed model constants
# ============================================================================

PERFORMANCE_RATIO = 0.70
DAYS_PER_YEAR = 365
PANEL_KW = 0.44
SYSTEM_COST_PER_KW = 2000
BATTERY_COST_PER_KWH = 1000
AMORTIZATION_MONTHS = 300

BATTERY_STORAGE_RATIO = 2.0
BATTERY_MIN_RATIO = 1.9
BATTERY_ROUNDING_BAND = 0.10

SHADING_FACTORS = {
    "none": 1.0,
    "light": 0.95,
    "medium": 0.875,
    "heavy": 0.80,
}

ORIENTATION_FACTORS = {
    "S": 1.0,
    "SE": 0.90,
    "SW": 0.90,
    "E": 0.80,
    "W": 0.80,
    "NE": 0.70,
    "NW": 0.70,
    "N": 0.60,
    "MIX": 0.85,
}


# ============================================================================
# Rounding helpers (half-up, matching the proposal UI)
# ============================================================================

def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


# ============================================================================
# Lookups
# ============================================================================

def normalize_shading(shading: Any) -> str:
    if isinstance(shading, str) and shading.strip().lower() in SHADING_FACTORS:
        return shading.strip().lower()
    return "none"


def normalize_orientation(orientation: Any) -> Optional[str]:
    if isinstance(orientation, str) and orientation.strip().upper() in ORIENTATION_FACTORS:
        return orientation.strip().upper()
    return None


def orientation_factor(orientation: Any) -> float:
    key = normalize_orientation(orientation)
    # Unknown directions fall back to full efficiency, never zero.
    return ORIENTATION_FACTORS[key] if key else 1.0


def clamp_battery_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, count)


# ============================================================================
# Pipeline stages
# ============================================================================

def normalize_irradiance(raw_irradiance: float, shading: Any) -> float:
    """Apply the shading derate to a raw kWh/m2/day irradiance figure."""
    return raw_irradiance * SHADING_FACTORS[normalize_shading(shading)]


def size_array(desired_annual_production_kwh: float, adjusted_irradiance: float, panel_orientation: Any) -> float:
    """
    Required array capacity in kW.

    Annual yield per installed kW is irradiance * 365 * performance ratio *
    orientation derate; dividing the desired production by it gives the size.
    """
    factor = orientation_factor(panel_orientation)
    return desired_annual_production_kwh / (
        adjusted_irradiance * DAYS_PER_YEAR * PERFORMANCE_RATIO * factor
    )


def estimate_production(solar_size_kw: float, adjusted_irradiance: float) -> int:
    return round_half_up(solar_size_kw * adjusted_irradiance * DAYS_PER_YEAR * PERFORMANCE_RATIO)


def energy_offset(desired_production_kwh: float, current_consumption_kwh: Optional[float]) -> str:
    if current_consumption_kwh is None:
        return "N/A"
    try:
        current = float(current_consumption_kwh)
    except (TypeError, ValueError):
        return "N/A"
    if math.isnan(current) or current <= 0:
        return "N/A"
    return f"{round1(desired_production_kwh / current * 100):.1f}%"


def panel_count(solar_size_kw: float) -> int:
    return math.ceil(solar_size_kw / PANEL_KW)


def summarize_sizing(
    solar_size_kw: float,
    adjusted_irradiance: float,
    current_consumption_kwh: Optional[float],
    desired_production_kwh: float,
) -> SizingResult:
    return SizingResult(
        solar_size_kw=round1(solar_size_kw),
        panel_count=panel_count(solar_size_kw),
        estimated_annual_production_kwh=estimate_production(solar_size_kw, adjusted_irradiance),
        energy_offset_percent=energy_offset(desired_production_kwh, current_consumption_kwh),
    )


# ============================================================================
# Costs
# ============================================================================

def calculate_redline_costs(
    solar_size_kw: float,
    battery_size_kwh: float,
    sales_redline: float,
    adder_costs: float = 0.0,
    sales_commission: float = 0.0,
) -> RedlineBreakdown:
    solar_cost = solar_size_kw * 1000 * sales_redline
    battery_cost = battery_size_kwh * BATTERY_COST_PER_KWH
    adders = adder_costs or 0.0
    commission = sales_commission or 0.0
    return RedlineBreakdown(
        sales_redline=sales_redline,
        solar_cost=solar_cost,
        battery_cost=battery_cost,
        adder_costs=adders,
        sales_commission=commission,
        total_cost=solar_cost + battery_cost + adders + commission,
    )


def derive_sales_redline(
    total_cost: float,
    solar_size_kw: float,
    battery_size_kwh: float,
    adder_costs: float = 0.0,
    sales_commission: float = 0.0,
) -> Optional[float]:
    """Back out the $/W redline implied by a quoted total price."""
    if solar_size_kw <= 0:
        return None
    solar_cost = (
        total_cost
        - battery_size_kwh * BATTERY_COST_PER_KWH
        - (adder_costs or 0.0)
        - (sales_commission or 0.0)
    )
    return solar_cost / (solar_size_kw * 1000)


def calculate_costs(
    solar_size_kw: float,
    battery_count: Any,
    current_consumption_kwh: Optional[float],
    desired_production_kwh: float,
    cost_inputs: CostInputs,
) -> CostResult:
    """
    Flat $/W pricing, or redline pricing when a sales redline is supplied.

    The two modes never mix: in redline mode the system cost override is
    ignored and the solar cost comes from the redline alone. The monthly
    override applies in both modes.
    """
    count = clamp_battery_count(battery_count)
    battery_size_kwh = count * BATTERY_UNIT_KWH
    battery_cost = round_half_up(battery_size_kwh * BATTERY_COST_PER_KWH)

    redline: Optional[RedlineBreakdown] = None
    if cost_inputs.redline_mode:
        redline = calculate_redline_costs(
            solar_size_kw,
            battery_size_kwh,
            cost_inputs.sales_redline,
            cost_inputs.adder_costs or 0.0,
            cost_inputs.sales_commission or 0.0,
        )
        system_cost = round_half_up(redline.solar_cost)
        total_cost = round_half_up(redline.total_cost)
    else:
        system_cost = round_half_up(solar_size_kw * SYSTEM_COST_PER_KW)
        override = cost_inputs.user_system_cost_override
        if override is not None and override > 0:
            system_cost = round_half_up(override)
        total_cost = system_cost + battery_cost

    monthly = round_half_up(total_cost / AMORTIZATION_MONTHS)
    monthly_override = cost_inputs.user_monthly_cost_override
    if monthly_override is not None and monthly_override > 0:
        monthly = round_half_up(monthly_override)

    return CostResult(
        battery_count=count,
        battery_size_kwh=battery_size_kwh,
        system_cost_usd=system_cost,
        battery_cost_usd=battery_cost,
        total_cost_usd=total_cost,
        monthly_with_solar_usd=monthly,
        current_monthly_bill_usd=cost_inputs.current_monthly_average_bill,
        redline=redline,
    )


def calculate_system_params(
    solar_size_kw: float,
    adjusted_irradiance: float,
    current_consumption_kwh: Optional[float],
    desired_production_kwh: float,
    cost_inputs: CostInputs,
) -> SystemEstimate:
    sizing = summarize_sizing(
        solar_size_kw,
        adjusted_irradiance,
        current_consumption_kwh,
        desired_production_kwh,
    )
    costs = calculate_costs(
        solar_size_kw,
        cost_inputs.battery_count,
        current_consumption_kwh,
        desired_production_kwh,
        cost_inputs,
    )
    return SystemEstimate(sizing=sizing, costs=costs, adjusted_irradiance=adjusted_irradiance)


def estimate_system(request: SizingRequest, cost_inputs: CostInputs) -> SystemEstimate:
    adjusted = normalize_irradiance(request.raw_irradiance, request.shading)
    solar_size_kw = size_array(
        request.desired_annual_production_kwh,
        adjusted,
        request.panel_orientation,
    )
    return calculate_system_params(
        solar_size_kw,
        adjusted,
        request.current_annual_consumption_kwh,
        request.desired_annual_production_kwh,
        cost_inputs,
    )


# ============================================================================
# Battery recommendation
# ============================================================================

def recommend_battery_count(solar_size_kw: float) -> int:
    """
    Batteries for a 2:1 storage-to-array target, using the 10% rounding rule.

    Round down when the target sits within 10% above the lower multiple of
    16 kWh and that lower storage still keeps a 1.9:1 ratio; otherwise round
    up. Any positive array gets at least one battery.
    """
    if solar_size_kw <= 0:
        return 0

    target_kwh = solar_size_kw * BATTERY_STORAGE_RATIO
    lower = math.floor(target_kwh / BATTERY_UNIT_KWH)
    upper = math.ceil(target_kwh / BATTERY_UNIT_KWH)

    count = upper
    if lower >= 1:
        lower_kwh = lower * BATTERY_UNIT_KWH
        within_band = target_kwh <= lower_kwh * (1 + BATTERY_ROUNDING_BAND)
        meets_ratio = lower_kwh / solar_size_kw >= BATTERY_MIN_RATIO
        if within_band and meets_ratio:
            count = lower

    return max(1, count)
