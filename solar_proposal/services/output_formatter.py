# solar_proposal/services/output_formatter.py

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from solar_proposal.models.estimate import SystemEstimate
from solar_proposal.services.bill_estimator import percentage_of_original_cost


def _estimate_to_dict(estimate: SystemEstimate, *, raw_irradiance: Optional[float] = None) -> dict:
    payload = {
        "raw_irradiance": raw_irradiance,
        "adjusted_irradiance": estimate.adjusted_irradiance,
        "params": estimate.as_params(),
    }
    bill = estimate.costs.current_monthly_bill_usd
    if bill:
        payload["percentage_of_original_cost"] = percentage_of_original_cost(
            estimate.costs.monthly_with_solar_usd,
            bill,
        )
    return payload


def emit_json(payload: Mapping[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str))


def emit_estimate_json(estimate: SystemEstimate, *, raw_irradiance: Optional[float] = None) -> None:
    emit_json(_estimate_to_dict(estimate, raw_irradiance=raw_irradiance))


def format_estimate_human(
    estimate: SystemEstimate,
    *,
    current_consumption_kwh: Optional[float] = None,
    raw_irradiance: Optional[float] = None,
) -> list[str]:
    sizing = estimate.sizing
    costs = estimate.costs
    lines = []

    if raw_irradiance is not None:
        lines.append(
            f"Irradiance: {raw_irradiance:.2f} kWh/m2/day "
            f"(adjusted {estimate.adjusted_irradiance:.2f})"
        )

    lines.append("System Overview")
    lines.append(f"  Solar System Size: {sizing.solar_size_kw:.1f} kW")
    lines.append(
        f"  Battery Size: {costs.battery_size_kwh} kWh ({costs.battery_count} x 16 kWh)"
    )
    lines.append(f"  Number of Panels: {sizing.panel_count}")

    lines.append("Energy Overview")
    lines.append(f"  Estimated Annual Production: {sizing.estimated_annual_production_kwh:,} kWh")
    if current_consumption_kwh is not None:
        lines.append(f"  Annual Consumption Before Solar: {current_consumption_kwh:,.0f} kWh")
    lines.append(f"  Energy Offset: {sizing.energy_offset_percent}")

    lines.append("Cost Summary")
    redline = estimate.redline
    if redline is not None:
        lines.append(f"  Sales Redline: ${redline.sales_redline:.2f}/W")
        lines.append(f"  Solar Cost: ${redline.solar_cost:,.0f}")
        lines.append(f"  Battery Cost: ${redline.battery_cost:,.0f}")
        lines.append(f"  Adders Cost: ${redline.adder_costs:,.0f}")
        lines.append(f"  Commission: ${redline.sales_commission:,.0f}")
    else:
        lines.append(f"  System Cost: ${costs.system_cost_usd:,}")
        lines.append(f"  Battery Cost: ${costs.battery_cost_usd:,}")
    lines.append(f"  Total Cost: ${costs.total_cost_usd:,}")

    lines.append("Solar Savings")
    bill = costs.current_monthly_bill_usd
    if bill:
        lines.append(f"  Monthly Cost Without Solar: ${bill:,.2f}")
    lines.append(f"  Monthly Cost With Solar: ${costs.monthly_with_solar_usd:,}")
    if bill:
        pct = percentage_of_original_cost(costs.monthly_with_solar_usd, bill)
        lines.append(
            f"  {sizing.energy_offset_percent} of the electricity you're used to, "
            f"while only paying {pct} of what you're used to"
        )
    return lines


def emit_human(lines: list[str]) -> None:
    for line in lines:
        print(line)
