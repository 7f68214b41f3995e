from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from pictogram_studio.api import schemas
from pictogram_studio.api.errors import FetchError, ParseError
from pictogram_studio.compiler.catalog import list_catalog
from pictogram_studio.services import config
from pictogram_studio.services.paths import PathResolver


logger = logging.getLogger(__name__)


def _parse_json(text: str, path: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ParseError(f"Invalid JSON at {path}: {exc}", details={"path": path}) from exc


def _parse_catalog(payload: Any, path: str) -> List[schemas.CatalogEntry]:
    if not isinstance(payload, list):
        raise ParseError(f"Catalog at {path} is not a list", details={"path": path})
    try:
        return [schemas.CatalogEntry.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise ParseError(f"Malformed catalog entry at {path}", details={"path": path}) from exc


class AssetSource:
    """Fetches base animations, overlay SVGs and catalog listings by resolved path."""

    resolver: PathResolver

    async def fetch_text(self, path: str) -> str:
        raise NotImplementedError

    async def fetch_json(self, path: str) -> Any:
        return _parse_json(await self.fetch_text(path), path)

    async def fetch_catalog(self, kind: schemas.CatalogKind) -> List[schemas.CatalogEntry]:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class HttpAssetSource(AssetSource):
    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        resolver: Optional[PathResolver] = None,
        timeout: Optional[float] = config.FETCH_TIMEOUT_S,
    ) -> None:
        self.base_url = base_url
        self.resolver = resolver or PathResolver.from_url(base_url)
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def fetch_text(self, path: str) -> str:
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as exc:
            raise FetchError(f"Request for {path} failed: {exc}", details={"path": path}) from exc

        if not response.is_success:
            raise FetchError(
                f"Request for {path} returned HTTP {response.status_code}",
                details={"path": path, "status": response.status_code},
            )
        return response.text

    async def fetch_catalog(self, kind: schemas.CatalogKind) -> List[schemas.CatalogEntry]:
        path = self.resolver.create_api_path(kind.value)
        return _parse_catalog(await self.fetch_json(path), path)

    async def aclose(self) -> None:
        await self._client.aclose()


class FileAssetSource(AssetSource):
    """Serves resolved paths from a local public directory (static export layout)."""

    def __init__(self, root: Path | str, resolver: Optional[PathResolver] = None) -> None:
        self.root = Path(root)
        self.resolver = resolver or PathResolver()

    def _local_path(self, path: str) -> Path:
        base = self.resolver.base_path
        relative = path[len(base) :] if base and path.startswith(base + "/") else path
        root = self.root.resolve()
        target = (root / relative.lstrip("/")).resolve()
        if target != root and root not in target.parents:
            raise FetchError(f"Path {path} escapes the public directory", details={"path": path})
        return target

    async def fetch_text(self, path: str) -> str:
        target = self._local_path(path)
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FetchError(f"Could not read {path}: {exc}", details={"path": path}) from exc

    async def fetch_catalog(self, kind: schemas.CatalogKind) -> List[schemas.CatalogEntry]:
        path = self.resolver.data_path(kind.data_file)
        if self._local_path(path).is_file():
            return _parse_catalog(await self.fetch_json(path), path)
        logger.debug("No generated %s, scanning %s", kind.data_file, self.root)
        return list_catalog(kind, self.root)


def default_source() -> AssetSource:
    if config.settings.asset_base_url:
        return HttpAssetSource(config.settings.asset_base_url)
    return FileAssetSource(config.PUBLIC_DIR)
