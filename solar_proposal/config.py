# solar_proposal/config.py
from dataclasses import dataclass, field
from pathlib import Path
import configparser
import os


DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:5500",
    "http://127.0.0.1:5501",
]


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origins: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    temp_dir: str = "temp"
    public_base_url: str | None = None


@dataclass
class GoogleMapsConfig:
    api_key: str | None = None
    base_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    timeout: float = 10.0


@dataclass
class NRELConfig:
    api_key: str | None = None
    base_url: str = "https://developer.nrel.gov/api/pvwatts/v6.json"
    timeout: float = 10.0
    default_irradiance: float = 6.02
    tilt_deg: float = 20.0
    azimuth_deg: float = 180.0
    losses_pct: float = 14.0
    module_type: int = 1
    array_type: int = 1


@dataclass
class SlidesConfig:
    enabled: bool = False
    presentation_id: str | None = None
    credentials_path: str = "credentials.json"


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)
    structured_enabled: bool = False
    structured_path: str | None = None


@dataclass
class AppConfig:
    server: ServerConfig
    google_maps: GoogleMapsConfig
    nrel: NRELConfig
    slides: SlidesConfig
    logging: LoggingConfig


def _as_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def _split_list(raw: str) -> list[str]:
    return [x.strip() for x in raw.split(",") if x.strip()]


def _apply_env_keys(app_cfg: AppConfig) -> AppConfig:
    # Environment variables only fill in keys the config file left blank.
    if not app_cfg.google_maps.api_key:
        app_cfg.google_maps.api_key = os.environ.get("GOOGLE_MAPS_API_KEY") or None
    if not app_cfg.nrel.api_key:
        app_cfg.nrel.api_key = os.environ.get("NREL_API_KEY") or None
    return app_cfg


class Config:
    def __init__(self, path: str):
        self.path = Path(path)
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        read = self.parser.read(self.path)
        if not read:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def defaults(cls) -> AppConfig:
        """All-default configuration, used when no config file is present."""
        return _apply_env_keys(
            AppConfig(
                server=ServerConfig(),
                google_maps=GoogleMapsConfig(),
                nrel=NRELConfig(),
                slides=SlidesConfig(),
                logging=LoggingConfig(),
            )
        )

    @classmethod
    def load(cls, path: str) -> AppConfig:
        cfg = cls(path)

        p = cfg.parser

        # --- Server ---
        server_kwargs = {}
        if "server" in p:
            server_sec = p["server"]
            if "host" in server_sec:
                server_kwargs["host"] = server_sec["host"]
            if "port" in server_sec:
                server_kwargs["port"] = int(server_sec["port"])
            if "allowed_origins" in server_sec:
                server_kwargs["allowed_origins"] = _split_list(server_sec["allowed_origins"])
            if "temp_dir" in server_sec:
                server_kwargs["temp_dir"] = server_sec["temp_dir"]
            base_url = server_sec.get("public_base_url", "").strip()
            if base_url:
                server_kwargs["public_base_url"] = base_url.rstrip("/")
        server_cfg = ServerConfig(**server_kwargs)

        # --- Google Maps ---
        maps_kwargs = {}
        if "google_maps" in p:
            maps_sec = p["google_maps"]
            api_key = maps_sec.get("api_key", "").strip()
            if api_key:
                maps_kwargs["api_key"] = api_key
            if "base_url" in maps_sec:
                maps_kwargs["base_url"] = maps_sec["base_url"]
            if "timeout" in maps_sec:
                maps_kwargs["timeout"] = float(maps_sec["timeout"])
        maps_cfg = GoogleMapsConfig(**maps_kwargs)

        # --- NREL PVWatts ---
        nrel_kwargs = {}
        if "nrel" in p:
            nrel_sec = p["nrel"]
            api_key = nrel_sec.get("api_key", "").strip()
            if api_key:
                nrel_kwargs["api_key"] = api_key
            if "base_url" in nrel_sec:
                nrel_kwargs["base_url"] = nrel_sec["base_url"]
            if "timeout" in nrel_sec:
                nrel_kwargs["timeout"] = float(nrel_sec["timeout"])
            if "default_irradiance" in nrel_sec:
                nrel_kwargs["default_irradiance"] = float(nrel_sec["default_irradiance"])
            if "tilt_deg" in nrel_sec:
                nrel_kwargs["tilt_deg"] = float(nrel_sec["tilt_deg"])
            if "azimuth_deg" in nrel_sec:
                nrel_kwargs["azimuth_deg"] = float(nrel_sec["azimuth_deg"])
            if "losses_pct" in nrel_sec:
                nrel_kwargs["losses_pct"] = float(nrel_sec["losses_pct"])
            if "module_type" in nrel_sec:
                nrel_kwargs["module_type"] = int(nrel_sec["module_type"])
            if "array_type" in nrel_sec:
                nrel_kwargs["array_type"] = int(nrel_sec["array_type"])
        nrel_cfg = NRELConfig(**nrel_kwargs)

        # --- Slides ---
        slides_kwargs = {}
        if "slides" in p:
            slides_sec = p["slides"]
            if "enabled" in slides_sec:
                slides_kwargs["enabled"] = _as_bool(slides_sec["enabled"])
            presentation_id = slides_sec.get("presentation_id", "").strip()
            if presentation_id:
                slides_kwargs["presentation_id"] = presentation_id
            if "credentials_path" in slides_sec:
                slides_kwargs["credentials_path"] = slides_sec["credentials_path"]
        slides_cfg = SlidesConfig(**slides_kwargs)

        # --- Logging ---
        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                logging_kwargs["debug_modules"] = _split_list(logging_sec["debug_modules"])
            if "structured_enabled" in logging_sec:
                logging_kwargs["structured_enabled"] = _as_bool(logging_sec["structured_enabled"])
            if "structured_path" in logging_sec:
                logging_kwargs["structured_path"] = logging_sec["structured_path"]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return _apply_env_keys(
            AppConfig(
                server=server_cfg,
                google_maps=maps_cfg,
                nrel=nrel_cfg,
                slides=slides_cfg,
                logging=logging_cfg,
            )
        )
