from __future__ import annotations

import json
import logging
from typing import Optional

import requests

from solar_proposal.config import NRELConfig


class IrradianceClient:
    """
    NREL PVWatts lookup for a site's annual solar radiation.

    PVWatts models a 1 kW reference array at the configured tilt/azimuth, so
    outputs.solrad_annual already reflects location and panel geometry. Any
    failure falls back to the configured default irradiance.
    """

    def __init__(self, cfg: NRELConfig, log, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()
        self.last_error: str | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.cfg.api_key)

    def _params(self, lat: float, lon: float) -> dict:
        return {
            "api_key": self.cfg.api_key,
            "lat": lat,
            "lon": lon,
            "system_capacity": 1,
            "module_type": self.cfg.module_type,
            "losses": self.cfg.losses_pct,
            "array_type": self.cfg.array_type,
            "tilt": self.cfg.tilt_deg,
            "azimuth": self.cfg.azimuth_deg,
        }

    def _fallback(self, reason: str) -> float:
        self.last_error = reason
        self.log.warning("%s; using default irradiance of %.2f", reason, self.cfg.default_irradiance)
        return self.cfg.default_irradiance

    def annual_irradiance(self, lat: float, lon: float) -> float:
        """Annual average kWh/m2/day for the site."""
        self.last_error = None

        if not self.enabled:
            return self._fallback("No NREL API key configured")

        try:
            resp = self.session.get(self.cfg.base_url, params=self._params(lat, lon), timeout=self.cfg.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            return self._fallback(f"Failed to fetch solar data: {exc}")

        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug("PVWatts response: %s", json.dumps(data, default=str)[:2000])

        errors = data.get("errors") if isinstance(data, dict) else None
        if errors:
            detail = "; ".join(errors) if isinstance(errors, list) else str(errors)
            return self._fallback(f"PVWatts reported errors: {detail}")

        outputs = data.get("outputs") if isinstance(data, dict) else None
        solrad = (outputs or {}).get("solrad_annual")
        try:
            value = float(solrad)
        except (TypeError, ValueError):
            return self._fallback("No annual solar data found")

        if value <= 0:
            return self._fallback("PVWatts returned non-positive solrad_annual")

        return value
