# solar_proposal/services/slides_renderer.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from solar_proposal.config import SlidesConfig
from solar_proposal.errors import RenderError


SCOPES = [
    "https://www.googleapis.com/auth/presentations",
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/drive.readonly",
]

TEXT_COLOR = {"red": 0.843, "green": 0.831, "blue": 0.8}


@dataclass(frozen=True)
class TextStyle:
    bold: bool
    font_family: str
    font_size_pt: float


@dataclass(frozen=True)
class Placeholder:
    object_id: str
    template: str
    style: str


STYLES = {
    "headline": TextStyle(bold=True, font_family="Comfortaa", font_size_pt=51),
    "detail": TextStyle(bold=False, font_family="Raleway", font_size_pt=19),
    "comparison": TextStyle(bold=True, font_family="Comfortaa", font_size_pt=21.5),
}

# Slide 4: system overview, slide 5: system details, slide 6: cost comparison.
PLACEHOLDERS = [
    Placeholder("p4_i4", "{solarSize} kW", "headline"),
    Placeholder("p4_i7", "{batterySize}", "headline"),
    Placeholder("p4_i10", "{systemCostMoney}", "headline"),
    Placeholder("p5_i6", "{solarSize} kW system size", "detail"),
    Placeholder("p5_i7", "{energyOffset} Energy Offset", "detail"),
    Placeholder("p5_i8", "{panelCount} Jinko Solar panels", "detail"),
    Placeholder("p5_i19", "{systemCostMoney} financed", "detail"),
    Placeholder("p5_i20", "${monthlyWithSolar} monthly payments", "detail"),
    Placeholder("p6_i5", "${monthlyWithSolar}", "comparison"),
    Placeholder("p6_i10", "${currentMonthlyBill}", "comparison"),
]


def format_money(value: Any) -> str:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return f"${value}"
    if amount.is_integer():
        return f"${int(amount):,}"
    return f"${amount:,.2f}"


def _template_values(params: Mapping[str, Any]) -> Dict[str, Any]:
    values = dict(params)
    values["systemCostMoney"] = format_money(params.get("systemCost"))
    return values


def _style_request(object_id: str, style: TextStyle) -> dict:
    return {
        "updateTextStyle": {
            "objectId": object_id,
            "textRange": {"type": "ALL"},
            "style": {
                "bold": style.bold,
                "fontFamily": style.font_family,
                "fontSize": {"magnitude": style.font_size_pt, "unit": "PT"},
                "foregroundColor": {"opaqueColor": {"rgbColor": dict(TEXT_COLOR)}},
            },
            "fields": "bold,fontFamily,fontSize,foregroundColor",
        }
    }


def build_text_requests(params: Mapping[str, Any]) -> List[dict]:
    """Replace-and-restyle requests for every placeholder text box."""
    values = _template_values(params)
    requests: List[dict] = []
    for ph in PLACEHOLDERS:
        try:
            text = ph.template.format(**values)
        except KeyError as exc:
            raise RenderError(f"Missing presentation value {exc} for {ph.object_id}") from exc
        requests.append({"deleteText": {"objectId": ph.object_id, "textRange": {"type": "ALL"}}})
        requests.append({"insertText": {"objectId": ph.object_id, "text": text}})
        requests.append(_style_request(ph.object_id, STYLES[ph.style]))
    return requests


def _element_text(element: Mapping[str, Any]) -> Optional[str]:
    shape = element.get("shape") or {}
    text = shape.get("text") or {}
    runs = text.get("textElements")
    if runs is None:
        return None
    return "".join(
        (te.get("textRun") or {}).get("content", "")
        for te in runs
        if isinstance(te, dict)
    )


class SlidesRenderer:
    """Fills the proposal template deck and exports it as PDF."""

    def __init__(self, cfg: SlidesConfig, log, slides_service=None, drive_service=None):
        self.cfg = cfg
        self.log = log
        self._slides = slides_service
        self._drive = drive_service

    # ------------------------------------------------------------------
    @property
    def enabled(self) -> bool:
        return bool(self.cfg.enabled and self.cfg.presentation_id)

    @property
    def share_url(self) -> str:
        return f"https://docs.google.com/presentation/d/{self.cfg.presentation_id}/edit?usp=sharing"

    # ------------------------------------------------------------------
    def _credentials(self):
        return service_account.Credentials.from_service_account_file(
            self.cfg.credentials_path,
            scopes=SCOPES,
        )

    def _services(self):
        if self._slides is None or self._drive is None:
            try:
                creds = self._credentials()
                if self._slides is None:
                    self._slides = build("slides", "v1", credentials=creds, cache_discovery=False)
                if self._drive is None:
                    self._drive = build("drive", "v3", credentials=creds, cache_discovery=False)
            except (GoogleAuthError, OSError, ValueError) as exc:
                raise RenderError(f"Authentication with Google Slides API failed: {exc}") from exc
            self.log.info("Authenticated with Google Slides API")
        return self._slides, self._drive

    def _get_presentation(self, slides) -> dict:
        try:
            return slides.presentations().get(presentationId=self.cfg.presentation_id).execute()
        except (HttpError, OSError) as exc:
            raise RenderError(f"Failed to access presentation: {exc}") from exc

    # ------------------------------------------------------------------
    def render(self, params: Mapping[str, Any]) -> str:
        if not self.enabled:
            raise RenderError("Slides rendering is disabled or no presentation_id is configured")

        requests = build_text_requests(params)
        slides, _ = self._services()

        presentation = self._get_presentation(slides)
        self.log.info("Presentation found: %s", presentation.get("title"))

        self.log.debug("Sending %d slide update requests", len(requests))
        try:
            slides.presentations().batchUpdate(
                presentationId=self.cfg.presentation_id,
                body={"requests": requests},
            ).execute()
        except (HttpError, OSError) as exc:
            raise RenderError(f"Failed to generate PowerPoint: {exc}") from exc

        self.log.info("Slides updated")
        return self.share_url

    # ------------------------------------------------------------------
    def export_pdf(self) -> bytes:
        if not self.enabled:
            raise RenderError("Slides rendering is disabled or no presentation_id is configured")
        _, drive = self._services()
        try:
            data = drive.files().export(
                fileId=self.cfg.presentation_id,
                mimeType="application/pdf",
            ).execute()
        except (HttpError, OSError) as exc:
            raise RenderError(f"PDF export failed: {exc}") from exc
        if not data:
            raise RenderError("PDF export returned no data")
        self.log.info("PDF export successful (%d bytes)", len(data))
        return data

    # ------------------------------------------------------------------
    def inspect(self, object_ids: Optional[Iterable[str]] = None) -> Dict[str, Optional[str]]:
        """Current text of the given placeholders (defaults to all of them)."""
        if not self.cfg.presentation_id:
            raise RenderError("No presentation_id is configured")
        wanted = list(object_ids) if object_ids else [ph.object_id for ph in PLACEHOLDERS]
        slides, _ = self._services()
        presentation = self._get_presentation(slides)

        found: Dict[str, Optional[str]] = {oid: None for oid in wanted}
        for slide in presentation.get("slides") or []:
            for element in slide.get("pageElements") or []:
                oid = element.get("objectId")
                if oid in found:
                    found[oid] = _element_text(element)
        missing = [oid for oid, text in found.items() if text is None]
        if missing:
            self.log.warning("Placeholders without text or not found: %s", ", ".join(missing))
        return found
