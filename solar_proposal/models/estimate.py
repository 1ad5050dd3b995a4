# solar_proposal/models/estimate.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

BATTERY_UNIT_KWH = 16


@dataclass(frozen=True)
class SizingRequest:
    desired_annual_production_kwh: float
    current_annual_consumption_kwh: float
    panel_orientation: Optional[str]  # S, SE, SW, E, W, NE, NW, N, MIX
    shading: Optional[str]            # none, light, medium, heavy
    raw_irradiance: float             # kWh/m2/day


@dataclass(frozen=True)
class CostInputs:
    battery_count: int = 0
    user_system_cost_override: Optional[float] = None
    user_monthly_cost_override: Optional[float] = None
    current_monthly_average_bill: Optional[float] = None
    sales_redline: Optional[float] = None  # $/W
    adder_costs: Optional[float] = None
    sales_commission: Optional[float] = None

    @property
    def redline_mode(self) -> bool:
        return self.sales_redline is not None


@dataclass(frozen=True)
class SizingResult:
    solar_size_kw: float
    panel_count: int
    estimated_annual_production_kwh: int
    energy_offset_percent: str


@dataclass(frozen=True)
class RedlineBreakdown:
    sales_redline: float
    solar_cost: float
    battery_cost: float
    adder_costs: float
    sales_commission: float
    total_cost: float


@dataclass(frozen=True)
class CostResult:
    battery_count: int
    battery_size_kwh: int
    system_cost_usd: int
    battery_cost_usd: int
    total_cost_usd: int
    monthly_with_solar_usd: int
    current_monthly_bill_usd: Optional[float]
    redline: Optional[RedlineBreakdown] = None  # set only in redline pricing mode


@dataclass(frozen=True)
class SystemEstimate:
    sizing: SizingResult
    costs: CostResult
    adjusted_irradiance: float

    @property
    def redline(self) -> Optional[RedlineBreakdown]:
        return self.costs.redline

    def as_params(self) -> Dict[str, Any]:
        """Presentation keys consumed by the slide renderer and the web UI."""
        costs = self.costs
        bill = costs.current_monthly_bill_usd
        params: Dict[str, Any] = {
            "solarSize": f"{self.sizing.solar_size_kw:.1f}",
            "batterySize": (
                f"{costs.battery_size_kwh} kWh "
                f"({costs.battery_count}x {BATTERY_UNIT_KWH} kWh)"
            ),
            "panelCount": self.sizing.panel_count,
            "systemCost": str(costs.system_cost_usd),
            "batteryCost": str(costs.battery_cost_usd),
            "totalCost": str(costs.total_cost_usd),
            "currentMonthlyBill": _format_bill(bill),
            "monthlyWithSolar": str(costs.monthly_with_solar_usd),
            "estimatedAnnualProduction": self.sizing.estimated_annual_production_kwh,
            "energyOffset": self.sizing.energy_offset_percent,
        }
        if self.redline is not None:
            params["costBreakdown"] = {
                "salesRedline": self.redline.sales_redline,
                "solarCost": self.redline.solar_cost,
                "batteryCost": self.redline.battery_cost,
                "adderCosts": self.redline.adder_costs,
                "salesCommission": self.redline.sales_commission,
                "totalCost": self.redline.total_cost,
            }
        return params


def _format_bill(bill: Optional[float]) -> Any:
    if bill is None:
        return 0
    if float(bill).is_integer():
        return int(bill)
    return bill
