# solar_proposal/services/validation.py

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from solar_proposal.errors import InvalidInput
from solar_proposal.models.estimate import CostInputs, SizingRequest
from solar_proposal.services.estimator import normalize_orientation, normalize_shading


@dataclass(frozen=True)
class ValidatedRequest:
    desired_production_kwh: float
    current_consumption_kwh: float
    panel_direction: Optional[str]
    shading: str
    full_address: str
    cost_inputs: CostInputs

    @property
    def wants_full_proposal(self) -> bool:
        """False for the "Build System" call, which only needs the array size."""
        ci = self.cost_inputs
        return bool(
            ci.current_monthly_average_bill
            or ci.user_system_cost_override
            or ci.user_monthly_cost_override
            or ci.redline_mode
        )

    def sizing_request(self, raw_irradiance: float) -> SizingRequest:
        return SizingRequest(
            desired_annual_production_kwh=self.desired_production_kwh,
            current_annual_consumption_kwh=self.current_consumption_kwh,
            panel_orientation=self.panel_direction,
            shading=self.shading,
            raw_irradiance=raw_irradiance,
        )


def _parse_number(value: Any) -> Optional[float]:
    """None for missing/blank values, NaN for anything non-numeric or non-finite."""
    if value is None:
        return None
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    elif not isinstance(value, (int, float)):
        return math.nan
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return math.nan
    return number if math.isfinite(number) else math.nan


def _required_positive(raw: Any, message: str, field: str) -> float:
    value = _parse_number(raw)
    if value is None or math.isnan(value) or value <= 0:
        raise InvalidInput(message, field=field)
    return value


def _optional(raw: Any, message: str, field: str, *, allow_zero: bool) -> Optional[float]:
    value = _parse_number(raw)
    # Zero and blank both mean "not supplied".
    if value is None or value == 0:
        return None
    if math.isnan(value) or value < 0 or (not allow_zero and value <= 0):
        raise InvalidInput(message, field=field)
    return value


def _as_mapping(payload: Any) -> Mapping[str, Any]:
    if hasattr(payload, "model_dump"):
        return payload.model_dump()
    if isinstance(payload, Mapping):
        return payload
    raise InvalidInput("Request body must be a JSON object.")


def validate_process_request(payload: Any) -> ValidatedRequest:
    data = _as_mapping(payload)

    desired = _required_positive(
        data.get("desiredProduction"),
        "Invalid desired annual kWh production.",
        "desiredProduction",
    )
    current = _required_positive(
        data.get("currentConsumption"),
        "Invalid current annual kWh consumption.",
        "currentConsumption",
    )

    address = data.get("fullAddress")
    address = address.strip() if isinstance(address, str) else ""
    if not address:
        raise InvalidInput("Full address is required.", field="fullAddress")

    battery_raw = _parse_number(data.get("batteryCount"))
    if battery_raw is not None and (math.isnan(battery_raw) or battery_raw < 0):
        raise InvalidInput("Battery count must be a non-negative number.", field="batteryCount")
    battery_count = int(battery_raw) if battery_raw is not None else 0

    monthly_bill = _optional(
        data.get("currentMonthlyAverageBill"),
        "Invalid current monthly average bill.",
        "currentMonthlyAverageBill",
        allow_zero=False,
    )
    system_cost = _optional(
        data.get("systemCost"),
        "System cost must be a non-negative number.",
        "systemCost",
        allow_zero=True,
    )
    monthly_cost = _optional(
        data.get("monthlyCost"),
        "Monthly cost with solar must be a non-negative number.",
        "monthlyCost",
        allow_zero=True,
    )
    sales_redline = _optional(
        data.get("salesRedline"),
        "Sales redline must be a non-negative number.",
        "salesRedline",
        allow_zero=True,
    )
    adder_costs = _optional(
        data.get("adderCosts"),
        "Adder costs must be a non-negative number.",
        "adderCosts",
        allow_zero=True,
    )
    commission = _optional(
        data.get("salesCommission"),
        "Sales commission must be a non-negative number.",
        "salesCommission",
        allow_zero=True,
    )

    cost_inputs = CostInputs(
        battery_count=battery_count,
        user_system_cost_override=system_cost,
        user_monthly_cost_override=monthly_cost,
        current_monthly_average_bill=monthly_bill,
        sales_redline=sales_redline,
        adder_costs=adder_costs,
        sales_commission=commission,
    )

    return ValidatedRequest(
        desired_production_kwh=desired,
        current_consumption_kwh=current,
        panel_direction=normalize_orientation(data.get("panelDirection")),
        shading=normalize_shading(data.get("shading")),
        full_address=address,
        cost_inputs=cost_inputs,
    )
