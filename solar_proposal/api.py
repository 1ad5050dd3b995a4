# solar_proposal/api.py

import logging
from typing import Optional, Union

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from pydantic import BaseModel
from starlette.background import BackgroundTask

from solar_proposal.config import AppConfig
from solar_proposal.errors import InvalidInput
from solar_proposal.services.pdf_store import PdfStore
from solar_proposal.services.proposal_service import ProposalService
from solar_proposal.services.validation import validate_process_request

Number = Union[float, str]


class ProcessRequest(BaseModel):
    """Body of POST /api/process; field names match the web form."""

    desiredProduction: Optional[Number] = None
    currentConsumption: Optional[Number] = None
    panelDirection: Optional[str] = None
    batteryCount: Optional[Number] = None
    fullAddress: Optional[str] = None
    currentMonthlyAverageBill: Optional[Number] = None
    systemCost: Optional[Number] = None
    monthlyCost: Optional[Number] = None
    shading: Optional[str] = None
    salesRedline: Optional[Number] = None
    adderCosts: Optional[Number] = None
    salesCommission: Optional[Number] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    app_cfg: AppConfig,
    service: Optional[ProposalService] = None,
    pdf_store: Optional[PdfStore] = None,
    log: Optional[logging.Logger] = None,
) -> FastAPI:
    log = log or logging.getLogger("solar_proposal.api")
    pdf_store = pdf_store or PdfStore(app_cfg.server.temp_dir, log)
    service = service or ProposalService.from_config(app_cfg, log, pdf_store=pdf_store)

    app = FastAPI(title="Solar Proposal API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(app_cfg.server.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        log.warning("Rejected malformed request body: %s", exc.errors())
        return _error(400, "Invalid request body.")

    @app.get("/health")
    def health():
        return {"status": "healthy", "service": "solar-proposal"}

    @app.post("/api/process")
    def process(body: ProcessRequest, request: Request):
        log.info("Received request body: %s", body.model_dump())
        try:
            validated = validate_process_request(body)
        except InvalidInput as exc:
            return _error(400, exc.message)
        log.debug("Validated shading value: %s", validated.shading)

        if not service.geocoder.enabled:
            return _error(500, "Google Maps API Key is missing.")

        base_url = app_cfg.server.public_base_url or str(request.base_url).rstrip("/")
        try:
            result = service.process(validated, base_url)
        except InvalidInput as exc:
            return _error(400, exc.message)
        except Exception as exc:
            log.exception("Server error while processing proposal")
            return _error(500, f"Failed to process the request: {exc}")

        log.info("Sending response: %s", result.as_response())
        return result.as_response()

    def _serve_pdf(file_id: Optional[str], *, inline: bool):
        if not file_id:
            return PlainTextResponse("Missing fileId", status_code=400)
        path = pdf_store.path_for(file_id)
        if path is None:
            log.warning("PDF not found for fileId=%s", file_id)
            return PlainTextResponse("File not found", status_code=404)

        cleanup = BackgroundTask(pdf_store.discard, file_id)
        if inline:
            return FileResponse(
                path,
                media_type="application/pdf",
                headers={"Content-Disposition": "inline; filename=presentation.pdf"},
                background=cleanup,
            )
        return FileResponse(
            path,
            media_type="application/pdf",
            filename="presentation.pdf",
            background=cleanup,
        )

    @app.get("/view/pdf")
    def view_pdf(fileId: Optional[str] = Query(default=None)):
        return _serve_pdf(fileId, inline=True)

    @app.get("/download/pdf")
    def download_pdf(fileId: Optional[str] = Query(default=None)):
        return _serve_pdf(fileId, inline=False)

    return app
