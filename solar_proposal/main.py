# solar_proposal/main.py

from pathlib import Path
import math
import sys

from dotenv import load_dotenv

from .cli import build_parser
from .config import Config
from .errors import InvalidInput, RenderError
from .logging import ConsoleLog
from .models.estimate import BATTERY_UNIT_KWH, CostInputs, SizingRequest

from .services import bill_estimator, estimator
from .services.geocoding_client import GeocodingClient
from .services.irradiance_client import IrradianceClient
from .services.output_formatter import (
    emit_estimate_json,
    emit_human,
    emit_json,
    format_estimate_human,
)
from .services.slides_renderer import SlidesRenderer


def _load_config(path: str, log_missing: bool = True):
    if Path(path).exists():
        return Config.load(path)
    if log_missing:
        print(f"Config file {path} not found; using defaults.", file=sys.stderr)
    return Config.defaults()


def _positive(value: float, message: str) -> float:
    if not math.isfinite(value) or value <= 0:
        raise InvalidInput(message)
    return value


def _optional_amount(value, message: str):
    # Zero means "not supplied", as in the web form.
    if value is None or value == 0:
        return None
    if not math.isfinite(value) or value < 0:
        raise InvalidInput(message)
    return value


def _resolve_irradiance(args, app_cfg, log) -> float:
    if args.irradiance is not None:
        return _positive(args.irradiance, "Irradiance must be greater than 0.")

    geocoder = GeocodingClient(app_cfg.google_maps, log)
    if not geocoder.enabled:
        raise InvalidInput("Google Maps API Key is missing.")
    location = geocoder.geocode(args.address)
    if location is None:
        raise InvalidInput("Invalid address. Please enter a valid one.")
    return IrradianceClient(app_cfg.nrel, log).annual_irradiance(location.latitude, location.longitude)


def run_estimate(args, app_cfg, log) -> None:
    desired = _positive(args.desired, "Invalid desired annual kWh production.")
    consumption = _positive(args.consumption, "Invalid current annual kWh consumption.")
    if args.batteries < 0:
        raise InvalidInput("Battery count must be a non-negative number.")

    cost_inputs = CostInputs(
        battery_count=args.batteries,
        user_system_cost_override=_optional_amount(
            args.system_cost, "System cost must be a non-negative number."
        ),
        user_monthly_cost_override=_optional_amount(
            args.monthly_cost, "Monthly cost with solar must be a non-negative number."
        ),
        current_monthly_average_bill=_optional_amount(
            args.monthly_bill, "Invalid current monthly average bill."
        ),
        sales_redline=_optional_amount(args.redline, "Sales redline must be a non-negative number."),
        adder_costs=_optional_amount(args.adders, "Adder costs must be a non-negative number."),
        sales_commission=_optional_amount(
            args.commission, "Sales commission must be a non-negative number."
        ),
    )

    raw_irradiance = _resolve_irradiance(args, app_cfg, log)
    request = SizingRequest(
        desired_annual_production_kwh=desired,
        current_annual_consumption_kwh=consumption,
        panel_orientation=args.orientation,
        shading=args.shading,
        raw_irradiance=raw_irradiance,
    )
    estimate = estimator.estimate_system(request, cost_inputs)

    if args.json:
        emit_estimate_json(estimate, raw_irradiance=raw_irradiance)
    else:
        emit_human(
            format_estimate_human(
                estimate,
                current_consumption_kwh=args.consumption,
                raw_irradiance=raw_irradiance,
            )
        )


def run_battery(args) -> None:
    _positive(args.solar_size, "Invalid system size. Please ensure the system size is calculated correctly.")
    count = estimator.recommend_battery_count(args.solar_size)
    storage = count * BATTERY_UNIT_KWH
    if args.json:
        emit_json({"solar_size_kw": args.solar_size, "battery_count": count, "storage_kwh": storage})
    else:
        emit_human([f"Recommended batteries: {count} ({storage} kWh) for a {args.solar_size:.1f} kW array"])


def run_bill_helper(args) -> None:
    if args.command == "usage":
        value = bill_estimator.estimate_annual_consumption(args.monthly_bill, args.rate)
        text = f"Estimated annual consumption: {value:,} kWh"
    elif args.command == "rate":
        value = bill_estimator.estimate_utility_rate(args.provider, args.care)
        text = f"Estimated utility rate: ${value:.4f}/kWh"
    else:
        value = bill_estimator.estimate_monthly_bill(args.summer, args.winter, args.fall_spring)
        text = f"Estimated monthly bill: ${value:,.2f}"

    if args.json:
        emit_json({"command": args.command, "value": value})
    else:
        emit_human([text])


def run_inspect(args, app_cfg, log) -> None:
    renderer = SlidesRenderer(app_cfg.slides, log)
    found = renderer.inspect(args.ids)
    if args.json:
        emit_json(found)
        return
    for object_id, text in found.items():
        shown = text.strip() if text else "(no text)"
        emit_human([f"{object_id}: {shown}"])


def run_server(args, app_cfg, log) -> None:
    import uvicorn

    from .api import create_app

    host = args.host or app_cfg.server.host
    port = args.port or app_cfg.server.port
    app = create_app(app_cfg, log=log)
    log.info("Server running on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_config=None)


def main(argv=None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    app_cfg = _load_config(args.config, log_missing=args.command in {"serve", "inspect-slides"})
    console_logger = ConsoleLog(
        level="DEBUG" if args.debug else app_cfg.logging.console_level,
        quiet=args.quiet or app_cfg.logging.console_quiet,
        debug_modules=app_cfg.logging.debug_modules,
    )
    log = console_logger.setup()

    try:
        if args.command == "serve":
            run_server(args, app_cfg, log)
        elif args.command == "estimate":
            run_estimate(args, app_cfg, log)
        elif args.command == "battery":
            run_battery(args)
        elif args.command in {"usage", "rate", "bill"}:
            run_bill_helper(args)
        elif args.command == "inspect-slides":
            run_inspect(args, app_cfg, log)
        else:
            raise ValueError(f"Unsupported command: {args.command}")
    except InvalidInput as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 2
    except RenderError as exc:
        log.error("%s", exc)
        return 3

    return 0


if __name__ == "__main__":
    sys.exit(main())
