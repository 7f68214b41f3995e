"""Environment-aware URL prefixing.

Every fetch the engine, the catalog loader or the UI issues is built here so
that the public deployment (served under a repository sub-path) and local
development (served at the root) resolve the same logical paths.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

from pictogram_studio.services import config


_SLASHES_RE = re.compile(r"/+")

ICON_DIR = "/images/"
OVERLAY_DIR = "/images/"
MOTION_DIR = "/lottie/"
MOTION_IMAGE_DIR = "/lottie/images/"


def _collapse_slashes(path: str) -> str:
    return _SLASHES_RE.sub("/", path)


@dataclass(frozen=True)
class PathResolver:
    hostname: str = field(default_factory=lambda: config.settings.hostname)
    public_hostname: str = field(default_factory=lambda: config.settings.public_hostname)
    public_base_path: str = field(default_factory=lambda: config.settings.public_base_path)

    @classmethod
    def from_url(cls, url: str) -> "PathResolver":
        return cls(hostname=urlsplit(url).hostname or "")

    @property
    def base_path(self) -> str:
        if self.hostname != self.public_hostname:
            return ""
        stripped = self.public_base_path.strip("/")
        return f"/{stripped}" if stripped else ""

    def normalize_asset_prefix(self, path: Optional[str]) -> str:
        """Prefix ``path`` with the base path once; applying it again is a no-op."""

        normalized = _collapse_slashes("/" + (path or ""))
        base = self.base_path
        if not base or normalized == base or normalized.startswith(base + "/"):
            return normalized
        return _collapse_slashes(base + normalized)

    def create_path(self, path: str) -> str:
        return self.normalize_asset_prefix(path)

    def create_api_path(self, endpoint: str) -> str:
        return self.create_path(f"/api/{endpoint.lstrip('/')}")

    def create_asset_path(self, asset_path: str) -> str:
        return self.create_path(asset_path)

    def motion_path(self, filename: str) -> str:
        return self.create_asset_path(MOTION_DIR + filename)

    def image_path(self, filename: str) -> str:
        return self.create_asset_path(ICON_DIR + filename)

    def data_path(self, filename: str) -> str:
        return self.create_asset_path(f"/data/{filename}")

    @property
    def icon_prefix(self) -> str:
        return self.create_asset_path(ICON_DIR)

    @property
    def overlay_prefix(self) -> str:
        return self.create_asset_path(OVERLAY_DIR)

    @property
    def motion_image_prefix(self) -> str:
        return self.create_asset_path(MOTION_IMAGE_DIR)
