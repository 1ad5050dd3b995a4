# solar_proposal/tests/test_proposal_service.py

import json

import pytest

from solar_proposal.errors import InvalidInput
from solar_proposal.logging import StructuredLog, get_logger
from solar_proposal.services.pdf_store import PdfStore
from solar_proposal.services.proposal_service import ProposalService
from solar_proposal.services.validation import validate_process_request
from solar_proposal.tests.fakes import FakeGeocoder, FakeIrradiance, FakeRenderer


LOG = get_logger("proposal-test")
BASE_URL = "http://localhost:3000"


def _request(**overrides):
    body = {
        "desiredProduction": 12000,
        "currentConsumption": 10000,
        "panelDirection": "S",
        "batteryCount": 2,
        "fullAddress": "1 Market St, San Francisco, CA",
        "currentMonthlyAverageBill": 250,
        "shading": "none",
    }
    body.update(overrides)
    return validate_process_request(body)


def _service(tmp_path, geocoder=None, irradiance=None, renderer=None, structured_log=None):
    return ProposalService(
        geocoder=geocoder or FakeGeocoder(),
        irradiance=irradiance or FakeIrradiance(6.02),
        renderer=renderer or FakeRenderer(),
        pdf_store=PdfStore(tmp_path / "temp", LOG),
        log=LOG,
        structured_log=structured_log,
    )


def test_full_proposal(tmp_path):
    renderer = FakeRenderer()
    service = _service(tmp_path, renderer=renderer)

    result = service.process(_request(), BASE_URL)

    assert result.params["solarSize"] == "7.8"
    assert result.params["batterySize"] == "32 kWh (2x 16 kWh)"
    assert result.params["batteryCost"] == "32000"
    assert result.params["currentMonthlyBill"] == 250
    assert result.ppt_url.startswith("https://docs.google.com/presentation/")
    assert result.pdf_view_url.startswith(f"{BASE_URL}/view/pdf?fileId=")
    assert renderer.rendered == [result.params]

    file_id = result.pdf_view_url.split("fileId=")[1]
    assert service.pdf_store.path_for(file_id).read_bytes() == b"%PDF-1.4 fake"


def test_build_system_returns_size_only(tmp_path):
    renderer = FakeRenderer()
    service = _service(tmp_path, renderer=renderer)

    result = service.process(_request(currentMonthlyAverageBill=None), BASE_URL)

    assert result.params == {"solarSize": "7.8"}
    assert result.ppt_url is None
    assert result.pdf_view_url is None
    assert renderer.rendered == []


def test_shading_and_orientation_affect_size(tmp_path):
    service = _service(tmp_path)
    south = service.process(_request(currentMonthlyAverageBill=None), BASE_URL)
    shaded = service.process(_request(currentMonthlyAverageBill=None, shading="heavy", panelDirection="N"), BASE_URL)
    assert float(shaded.params["solarSize"]) > float(south.params["solarSize"])


def test_unknown_address(tmp_path):
    service = _service(tmp_path, geocoder=FakeGeocoder(result=None))
    with pytest.raises(InvalidInput) as exc:
        service.process(_request(), BASE_URL)
    assert exc.value.message == "Invalid address. Please enter a valid one."


def test_no_solar_data(tmp_path):
    service = _service(tmp_path, irradiance=FakeIrradiance(0))
    with pytest.raises(InvalidInput, match="Could not retrieve solar data."):
        service.process(_request(), BASE_URL)


def test_render_failure_still_returns_params(tmp_path):
    service = _service(tmp_path, renderer=FakeRenderer(render_error="quota exceeded"))
    result = service.process(_request(), BASE_URL)
    assert result.ppt_url is None
    assert result.pdf_view_url is None
    assert result.params["totalCost"]


def test_export_failure_keeps_deck_link(tmp_path):
    service = _service(tmp_path, renderer=FakeRenderer(export_error="export failed"))
    result = service.process(_request(), BASE_URL)
    assert result.ppt_url is not None
    assert result.pdf_view_url is None


def test_disabled_renderer_skips_rendering(tmp_path):
    service = _service(tmp_path, renderer=FakeRenderer(enabled=False))
    result = service.process(_request(), BASE_URL)
    assert result.ppt_url is None
    assert result.as_response() == {"pptUrl": None, "pdfViewUrl": None, "params": result.params}


def test_redline_request(tmp_path):
    service = _service(tmp_path)
    result = service.process(_request(salesRedline=3.0, systemCost=99999), BASE_URL)
    breakdown = result.params["costBreakdown"]
    assert breakdown["salesRedline"] == 3.0
    assert result.params["systemCost"] != "99999"


def test_structured_log_records_request(tmp_path):
    log_path = tmp_path / "requests.jsonl"
    service = _service(tmp_path, structured_log=StructuredLog(str(log_path), enabled=True))

    service.process(_request(), BASE_URL)

    entry = json.loads(log_path.read_text(encoding="utf-8").strip())
    assert entry["address"] == "1 Market St, San Francisco, CA"
    assert entry["raw_irradiance"] == 6.02
    assert entry["request"]["cost_inputs"]["battery_count"] == 2
    assert entry["params"]["solarSize"] == "7.8"


def test_redline_without_bill_still_prices(tmp_path):
    service = _service(tmp_path)
    result = service.process(
        _request(currentMonthlyAverageBill=None, salesRedline=3.0, adderCosts=500),
        BASE_URL,
    )
    assert result.params["costBreakdown"]["salesRedline"] == 3.0
    assert result.params["costBreakdown"]["adderCosts"] == 500
    assert result.params["currentMonthlyBill"] == 0


def test_structured_log_records_rejected_address(tmp_path):
    log_path = tmp_path / "requests.jsonl"
    service = _service(
        tmp_path,
        geocoder=FakeGeocoder(result=None),
        structured_log=StructuredLog(str(log_path), enabled=True),
    )

    with pytest.raises(InvalidInput):
        service.process(_request(), BASE_URL)

    entry = json.loads(log_path.read_text(encoding="utf-8").strip())
    assert entry["error"] == "Invalid address. Please enter a valid one."
    assert entry["latitude"] is None
    assert entry["params"] is None


def test_structured_log_records_missing_solar_data(tmp_path):
    log_path = tmp_path / "requests.jsonl"
    service = _service(
        tmp_path,
        irradiance=FakeIrradiance(0),
        structured_log=StructuredLog(str(log_path), enabled=True),
    )

    with pytest.raises(InvalidInput):
        service.process(_request(), BASE_URL)

    entry = json.loads(log_path.read_text(encoding="utf-8").strip())
    assert entry["error"] == "Could not retrieve solar data."
    assert entry["latitude"] == 37.77


def test_structured_log_notes_irradiance_fallback(tmp_path):
    log_path = tmp_path / "requests.jsonl"
    service = _service(
        tmp_path,
        irradiance=FakeIrradiance(6.02, error="No NREL API key configured"),
        structured_log=StructuredLog(str(log_path), enabled=True),
    )

    result = service.process(_request(), BASE_URL)

    assert result.params["solarSize"] == "7.8"
    entry = json.loads(log_path.read_text(encoding="utf-8").strip())
    assert entry["error"] == "No NREL API key configured"
    assert entry["raw_irradiance"] == 6.02
