# solar_proposal/cli.py
import argparse

from solar_proposal.services.estimator import ORIENTATION_FACTORS, SHADING_FACTORS


def build_parser():
    parser = argparse.ArgumentParser(
        prog="solar-proposal",
        description="Residential solar + battery sizing and proposal generator"
    )

    parser.add_argument(
        "--config",
        default="solar_proposal.conf",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress log output"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON instead of human-readable text"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # HTTP API
    cmd_serve = sub.add_parser("serve", help="Run the proposal HTTP API")
    cmd_serve.add_argument("--host", help="Override [server] host")
    cmd_serve.add_argument("--port", type=int, help="Override [server] port")

    # One-shot estimate
    cmd_est = sub.add_parser("estimate", help="Size and price a system")
    cmd_est.add_argument("--desired", type=float, required=True, help="Desired annual production (kWh)")
    cmd_est.add_argument("--consumption", type=float, required=True, help="Current annual consumption (kWh)")
    cmd_est.add_argument(
        "--orientation",
        choices=sorted(ORIENTATION_FACTORS),
        type=str.upper,
        help="Panel orientation (default: S)",
    )
    cmd_est.add_argument(
        "--shading",
        choices=sorted(SHADING_FACTORS),
        type=str.lower,
        default="none",
        help="Shading condition",
    )
    source = cmd_est.add_mutually_exclusive_group(required=True)
    source.add_argument("--irradiance", type=float, help="Annual irradiance (kWh/m2/day)")
    source.add_argument("--address", help="Look up irradiance for this address")
    cmd_est.add_argument("--batteries", type=int, default=0, help="Number of 16 kWh batteries")
    cmd_est.add_argument("--system-cost", type=float, help="Quoted system cost override ($)")
    cmd_est.add_argument("--monthly-cost", type=float, help="Monthly payment with solar override ($)")
    cmd_est.add_argument("--monthly-bill", type=float, help="Current monthly average bill ($)")
    cmd_est.add_argument("--redline", type=float, help="Sales redline ($/W); enables redline pricing")
    cmd_est.add_argument("--adders", type=float, help="Adder costs ($), redline pricing only")
    cmd_est.add_argument("--commission", type=float, help="Sales commission ($), redline pricing only")

    # Battery recommendation
    cmd_bat = sub.add_parser("battery", help="Recommend a battery count for an array size")
    cmd_bat.add_argument("--solar-size", type=float, required=True, help="Array size (kW)")

    # Bill helpers
    cmd_usage = sub.add_parser("usage", help="Estimate annual consumption from a monthly bill")
    cmd_usage.add_argument("--monthly-bill", type=float, required=True)
    cmd_usage.add_argument("--rate", type=float, required=True, help="Utility rate ($/kWh)")

    cmd_rate = sub.add_parser("rate", help="Look up an average utility rate")
    cmd_rate.add_argument("--provider", required=True, help="PG&E, SDG&E or SCE")
    cmd_rate.add_argument("--care", action="store_true", help="Customer is enrolled in CARE")

    cmd_bill = sub.add_parser("bill", help="Average monthly bill from seasonal bills")
    cmd_bill.add_argument("--summer", type=float, required=True)
    cmd_bill.add_argument("--winter", type=float, required=True)
    cmd_bill.add_argument("--fall-spring", type=float, required=True)

    # Template inspection
    cmd_inspect = sub.add_parser(
        "inspect-slides",
        help="Print the current text of the template placeholders",
    )
    cmd_inspect.add_argument(
        "--ids",
        nargs="*",
        help="Placeholder object ids (default: all)",
    )

    return parser
