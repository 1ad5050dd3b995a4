from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from solar_proposal.config import GoogleMapsConfig
from solar_proposal.models.location import GeocodeResult


class GeocodingClient:
    """Google Geocoding API wrapper; address in, first matching lat/lon out."""

    def __init__(self, cfg: GoogleMapsConfig, log, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    @property
    def enabled(self) -> bool:
        return bool(self.cfg.api_key)

    # ------------------------------------------------------------------
    def _get(self, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        query = dict(params)
        query["key"] = self.cfg.api_key

        try:
            resp = self.session.get(self.cfg.base_url, params=query, timeout=self.cfg.timeout)
        except requests.RequestException as exc:
            self.log.warning("Geocoding request failed: %s", exc)
            return None

        if resp.status_code != 200:
            self.log.warning("Geocoding API returned HTTP %s", resp.status_code)
            return None

        try:
            data = resp.json()
        except ValueError:
            self.log.warning("Geocoding API returned non-JSON payload")
            return None

        if not isinstance(data, dict):
            self.log.warning("Geocoding API response was not an object")
            return None

        return data

    # ------------------------------------------------------------------
    def geocode(self, address: str) -> Optional[GeocodeResult]:
        if not self.enabled:
            self.log.warning("Google Maps API key missing; cannot geocode address.")
            return None

        self.log.debug("Geocoding address: %s", address)
        data = self._get({"address": address})
        if data is None:
            return None

        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            self.log.warning("Invalid or unrecognized address (status=%s).", data.get("status"))
            return None

        first = results[0] if isinstance(results[0], dict) else {}
        location = (first.get("geometry") or {}).get("location") or {}
        try:
            lat = float(location["lat"])
            lng = float(location["lng"])
        except (KeyError, TypeError, ValueError):
            self.log.warning("Geocoding result missing geometry.location")
            return None

        self.log.info("Address geocoded: lat %s, lon %s", lat, lng)
        return GeocodeResult(
            latitude=lat,
            longitude=lng,
            formatted_address=first.get("formatted_address"),
        )
