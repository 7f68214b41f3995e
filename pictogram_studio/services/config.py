from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional


logger = logging.getLogger(__name__)


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring malformed %s=%r, using no value", name, value)
        return None


@dataclass(frozen=True)
class Settings:
    public_dir: str = os.getenv("PICTOGRAM_PUBLIC_DIR", "public")
    public_hostname: str = os.getenv("PICTOGRAM_PUBLIC_HOSTNAME", "smithinator100.github.io")
    public_base_path: str = os.getenv("PICTOGRAM_PUBLIC_BASE_PATH", "/pictogram-poc")
    hostname: str = os.getenv("PICTOGRAM_HOSTNAME", "localhost")
    asset_base_url: str = os.getenv("PICTOGRAM_ASSET_BASE_URL", "")
    default_preset: str = os.getenv("PICTOGRAM_DEFAULT_PRESET", "slide-in-bottom.json")
    default_pictogram: str = os.getenv("PICTOGRAM_DEFAULT_PICTOGRAM", "pictogram-placeholder.svg")
    fetch_timeout_s: Optional[float] = _env_float("PICTOGRAM_FETCH_TIMEOUT_S")
    log_level: str = os.getenv("PICTOGRAM_LOG_LEVEL", "INFO")
    api_host: str = os.getenv("PICTOGRAM_API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("PICTOGRAM_API_PORT", "8000"))


settings = Settings()

PUBLIC_DIR = settings.public_dir
DEFAULT_PRESET = settings.default_preset
DEFAULT_PICTOGRAM = settings.default_pictogram
FETCH_TIMEOUT_S = settings.fetch_timeout_s

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)
