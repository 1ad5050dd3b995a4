from dataclasses import dataclass


@dataclass
class GeocodeResult:
    latitude: float
    longitude: float
    formatted_address: str | None
