# solar_proposal/tests/fakes.py

import requests

from solar_proposal.errors import RenderError
from solar_proposal.models.location import GeocodeResult


class FakeResponse:
    def __init__(self, status_code=200, payload=None, bad_json=False):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeGeocoder:
    def __init__(self, result=GeocodeResult(37.77, -122.42, "San Francisco, CA, USA"), enabled=True):
        self.result = result
        self.enabled = enabled
        self.addresses = []

    def geocode(self, address):
        self.addresses.append(address)
        return self.result


class FakeIrradiance:
    def __init__(self, value=6.02, error=None):
        self.value = value
        self.error = error
        self.last_error = None
        self.calls = []

    def annual_irradiance(self, lat, lon):
        self.calls.append((lat, lon))
        self.last_error = self.error
        return self.value


class FakeRenderer:
    def __init__(self, enabled=True, render_error=None, export_error=None, pdf=b"%PDF-1.4 fake"):
        self.enabled = enabled
        self.render_error = render_error
        self.export_error = export_error
        self.pdf = pdf
        self.rendered = []

    def render(self, params):
        if self.render_error:
            raise RenderError(self.render_error)
        self.rendered.append(dict(params))
        return "https://docs.google.com/presentation/d/deck/edit?usp=sharing"

    def export_pdf(self):
        if self.export_error:
            raise RenderError(self.export_error)
        return self.pdf


class FakeExecutable:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def execute(self):
        if self.error:
            raise self.error
        return self.result


class FakePresentations:
    def __init__(self, presentation, batch_error=None):
        self.presentation = presentation
        self.batch_error = batch_error
        self.batches = []

    def get(self, presentationId):
        return FakeExecutable(self.presentation)

    def batchUpdate(self, presentationId, body):
        self.batches.append({"presentationId": presentationId, "body": body})
        return FakeExecutable({"replies": []}, self.batch_error)


class FakeSlidesService:
    def __init__(self, presentation=None, batch_error=None):
        self._presentations = FakePresentations(presentation or {"title": "Proposal"}, batch_error)

    def presentations(self):
        return self._presentations


class FakeFiles:
    def __init__(self, data, error=None):
        self.data = data
        self.error = error
        self.exports = []

    def export(self, fileId, mimeType):
        self.exports.append({"fileId": fileId, "mimeType": mimeType})
        return FakeExecutable(self.data, self.error)


class FakeDriveService:
    def __init__(self, data=b"%PDF-1.4 deck", error=None):
        self._files = FakeFiles(data, error)

    def files(self):
        return self._files
