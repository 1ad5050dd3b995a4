# solar_proposal/tests/test_api.py

import pytest
from fastapi.testclient import TestClient

from solar_proposal.api import create_app
from solar_proposal.config import Config
from solar_proposal.logging import get_logger
from solar_proposal.services.pdf_store import PdfStore
from solar_proposal.services.proposal_service import ProposalService
from solar_proposal.tests.fakes import FakeGeocoder, FakeIrradiance, FakeRenderer


LOG = get_logger("api-test")

BODY = {
    "desiredProduction": "12000",
    "currentConsumption": "10000",
    "panelDirection": "S",
    "batteryCount": "2",
    "fullAddress": "1 Market St, San Francisco, CA",
    "currentMonthlyAverageBill": "250",
    "systemCost": "",
    "monthlyCost": "",
    "shading": "none",
}


class ExplodingIrradiance:
    def annual_irradiance(self, lat, lon):
        raise RuntimeError("boom")


def _client(tmp_path, geocoder=None, irradiance=None, renderer=None):
    app_cfg = Config.defaults()
    app_cfg.server.public_base_url = "https://proposals.example.com"
    store = PdfStore(tmp_path, LOG)
    service = ProposalService(
        geocoder=geocoder or FakeGeocoder(),
        irradiance=irradiance or FakeIrradiance(6.02),
        renderer=renderer or FakeRenderer(),
        pdf_store=store,
        log=LOG,
    )
    return TestClient(create_app(app_cfg, service=service, pdf_store=store, log=LOG)), store


@pytest.fixture
def client(tmp_path):
    test_client, _ = _client(tmp_path)
    return test_client


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy", "service": "solar-proposal"}


def test_process_full_proposal(client):
    resp = client.post("/api/process", json=BODY)
    assert resp.status_code == 200
    data = resp.json()
    assert data["params"]["solarSize"] == "7.8"
    assert data["params"]["panelCount"] == 18
    assert data["pptUrl"].startswith("https://docs.google.com/")
    assert data["pdfViewUrl"].startswith("https://proposals.example.com/view/pdf?fileId=")


def test_process_build_system(client):
    body = dict(BODY, currentMonthlyAverageBill="")
    resp = client.post("/api/process", json=body)
    assert resp.status_code == 200
    assert resp.json() == {"pptUrl": None, "pdfViewUrl": None, "params": {"solarSize": "7.8"}}


def test_process_validation_error(client):
    resp = client.post("/api/process", json=dict(BODY, desiredProduction="abc"))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid desired annual kWh production."}


def test_process_malformed_body(client):
    resp = client.post("/api/process", json=["not", "an", "object"])
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body."}


def test_process_bad_address(tmp_path):
    client, _ = _client(tmp_path, geocoder=FakeGeocoder(result=None))
    resp = client.post("/api/process", json=BODY)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid address. Please enter a valid one."}


def test_process_missing_maps_key(tmp_path):
    client, _ = _client(tmp_path, geocoder=FakeGeocoder(enabled=False))
    resp = client.post("/api/process", json=BODY)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Google Maps API Key is missing."}


def test_process_unexpected_error(tmp_path):
    client, _ = _client(tmp_path, irradiance=ExplodingIrradiance())
    resp = client.post("/api/process", json=BODY)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to process the request: boom"}


def test_view_pdf_requires_file_id(client):
    resp = client.get("/view/pdf")
    assert resp.status_code == 400
    assert resp.text == "Missing fileId"


def test_view_pdf_unknown_file(client):
    resp = client.get("/view/pdf", params={"fileId": "f" * 32})
    assert resp.status_code == 404
    assert resp.text == "File not found"


def test_view_pdf_serves_inline_then_deletes(tmp_path):
    client, store = _client(tmp_path)
    file_id = store.save(b"%PDF-1.4 inline")

    resp = client.get("/view/pdf", params={"fileId": file_id})

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.headers["content-disposition"].startswith("inline")
    assert resp.content == b"%PDF-1.4 inline"
    assert store.path_for(file_id) is None


def test_download_pdf_is_attachment(tmp_path):
    client, store = _client(tmp_path)
    file_id = store.save(b"%PDF-1.4 download")

    resp = client.get("/download/pdf", params={"fileId": file_id})

    assert resp.status_code == 200
    assert resp.headers["content-disposition"].startswith("attachment")
    assert "presentation.pdf" in resp.headers["content-disposition"]
    assert store.path_for(file_id) is None


@pytest.mark.parametrize(
    "field,value,message",
    [
        ("batteryCount", "inf", "Battery count must be a non-negative number."),
        ("desiredProduction", "1e400", "Invalid desired annual kWh production."),
        ("currentConsumption", "nan", "Invalid current annual kWh consumption."),
        ("systemCost", "Infinity", "System cost must be a non-negative number."),
    ],
)
def test_process_rejects_non_finite_numbers(client, field, value, message):
    resp = client.post("/api/process", json=dict(BODY, **{field: value}))
    assert resp.status_code == 400
    assert resp.json() == {"error": message}


def test_process_redline_without_bill_returns_full_pricing(client):
    body = dict(BODY, currentMonthlyAverageBill="", salesRedline="3.0")
    resp = client.post("/api/process", json=body)
    assert resp.status_code == 200
    params = resp.json()["params"]
    assert params["costBreakdown"]["salesRedline"] == 3.0
    assert params["systemCost"] == "23405"
