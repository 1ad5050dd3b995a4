# solar_proposal/services/proposal_service.py

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from solar_proposal.config import AppConfig
from solar_proposal.errors import InvalidInput, RenderError
from solar_proposal.logging import RequestLogEntry, StructuredLog
from solar_proposal.models.location import GeocodeResult
from solar_proposal.services import estimator
from solar_proposal.services.geocoding_client import GeocodingClient
from solar_proposal.services.irradiance_client import IrradianceClient
from solar_proposal.services.pdf_store import PdfStore
from solar_proposal.services.slides_renderer import SlidesRenderer
from solar_proposal.services.validation import ValidatedRequest


@dataclass
class ProposalResult:
    ppt_url: Optional[str]
    pdf_view_url: Optional[str]
    params: Dict[str, Any]

    def as_response(self) -> Dict[str, Any]:
        return {"pptUrl": self.ppt_url, "pdfViewUrl": self.pdf_view_url, "params": self.params}


class ProposalService:
    """Address -> irradiance -> sizing/costs -> (optional) rendered proposal."""

    def __init__(
        self,
        geocoder: GeocodingClient,
        irradiance: IrradianceClient,
        renderer: Optional[SlidesRenderer],
        pdf_store: Optional[PdfStore],
        log,
        structured_log: Optional[StructuredLog] = None,
    ):
        self.geocoder = geocoder
        self.irradiance = irradiance
        self.renderer = renderer
        self.pdf_store = pdf_store
        self.log = log
        self.structured_log = structured_log

    @classmethod
    def from_config(cls, app_cfg: AppConfig, log, pdf_store: Optional[PdfStore] = None) -> "ProposalService":
        return cls(
            geocoder=GeocodingClient(app_cfg.google_maps, log),
            irradiance=IrradianceClient(app_cfg.nrel, log),
            renderer=SlidesRenderer(app_cfg.slides, log),
            pdf_store=pdf_store,
            log=log,
            structured_log=StructuredLog(
                app_cfg.logging.structured_path,
                app_cfg.logging.structured_enabled,
            ),
        )

    # ------------------------------------------------------------------
    def process(self, request: ValidatedRequest, base_url: str) -> ProposalResult:
        location = self.geocoder.geocode(request.full_address)
        if location is None:
            message = "Invalid address. Please enter a valid one."
            self._record(request, error=message)
            raise InvalidInput(message, field="fullAddress")

        raw_irradiance = self.irradiance.annual_irradiance(location.latitude, location.longitude)
        if not raw_irradiance or raw_irradiance <= 0:
            message = "Could not retrieve solar data."
            self._record(request, location=location, raw_irradiance=raw_irradiance, error=message)
            raise InvalidInput(message)
        self.log.info("Original solar irradiance: %.2f kWh/m2/day", raw_irradiance)

        # Set when the lookup failed and the default irradiance was used.
        lookup_error = self.irradiance.last_error
        if lookup_error:
            self.log.info("Irradiance lookup degraded: %s", lookup_error)

        sizing_request = request.sizing_request(raw_irradiance)
        adjusted = estimator.normalize_irradiance(raw_irradiance, sizing_request.shading)
        self.log.info(
            "Adjusted solar irradiance after %s shading: %.2f kWh/m2/day",
            sizing_request.shading,
            adjusted,
        )

        solar_size_kw = estimator.size_array(
            sizing_request.desired_annual_production_kwh,
            adjusted,
            sizing_request.panel_orientation,
        )
        self.log.debug(
            "Sizing: desired=%s irradiance=%.4f orientation=%s -> %.2f kW",
            sizing_request.desired_annual_production_kwh,
            adjusted,
            sizing_request.panel_orientation or "default",
            solar_size_kw,
        )

        ppt_url = None
        pdf_view_url = None
        pdf_file_id = None

        if request.wants_full_proposal:
            system = estimator.calculate_system_params(
                solar_size_kw,
                adjusted,
                request.current_consumption_kwh,
                request.desired_production_kwh,
                request.cost_inputs,
            )
            params = system.as_params()
            self.log.info("Final system parameters: %s", params)
            ppt_url, pdf_file_id = self._render(params)
            if pdf_file_id:
                pdf_view_url = f"{base_url.rstrip('/')}/view/pdf?fileId={pdf_file_id}"
        else:
            params = {"solarSize": f"{estimator.round1(solar_size_kw):.1f}"}
            self.log.info("Minimal parameters (solarSize only): %s", params)

        self._record(
            request,
            location=location,
            raw_irradiance=raw_irradiance,
            adjusted=adjusted,
            params=params,
            ppt_url=ppt_url,
            pdf_file_id=pdf_file_id,
            error=lookup_error,
        )

        return ProposalResult(ppt_url=ppt_url, pdf_view_url=pdf_view_url, params=params)

    # ------------------------------------------------------------------
    def _record(
        self,
        request: ValidatedRequest,
        location: Optional[GeocodeResult] = None,
        raw_irradiance: Optional[float] = None,
        adjusted: Optional[float] = None,
        params: Optional[Dict[str, Any]] = None,
        ppt_url: Optional[str] = None,
        pdf_file_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        if self.structured_log is None or not self.structured_log.enabled:
            return
        self.structured_log.write(
            RequestLogEntry(
                timestamp=datetime.now(timezone.utc).isoformat(),
                address=request.full_address,
                latitude=location.latitude if location else None,
                longitude=location.longitude if location else None,
                raw_irradiance=raw_irradiance,
                adjusted_irradiance=adjusted,
                request=asdict(request),
                params=params,
                ppt_url=ppt_url,
                pdf_file_id=pdf_file_id,
                error=error,
            )
        )

    # ------------------------------------------------------------------
    def _render(self, params: Dict[str, Any]) -> tuple[Optional[str], Optional[str]]:
        if self.renderer is None or not self.renderer.enabled:
            self.log.info("Slides rendering disabled; returning parameters only.")
            return None, None

        try:
            ppt_url = self.renderer.render(params)
        except RenderError as exc:
            self.log.error("PowerPoint generation failed: %s", exc)
            return None, None
        self.log.info("PowerPoint URL: %s", ppt_url)

        if self.pdf_store is None:
            return ppt_url, None

        # A failed export keeps the deck link.
        try:
            pdf_bytes = self.renderer.export_pdf()
            file_id = self.pdf_store.save(pdf_bytes)
        except (RenderError, OSError) as exc:
            self.log.error("PDF export failed, proceeding with pptUrl: %s", exc)
            return ppt_url, None
        return ppt_url, file_id
