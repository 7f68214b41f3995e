"""HTTP surface: catalog listings plus static serving of the public media tree.

The engine fetches ``/lottie/*.json`` and ``/images/*.svg`` from the same
origin, so the public directory is mounted at the root after the API routes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import uvicorn

from pictogram_studio.api import schemas
from pictogram_studio.api.errors import CatalogUnavailable
from pictogram_studio.compiler.catalog import catalog_directory, list_catalog
from pictogram_studio.services import config


logger = logging.getLogger(__name__)

SERVICE_NAME = "pictogram-studio-api"
VERSION = "0.1.0"


def _catalog_response(kind: schemas.CatalogKind, public_dir: Path) -> List[schemas.CatalogEntry] | JSONResponse:
    try:
        return list_catalog(kind, public_dir)
    except CatalogUnavailable as exc:
        directory = catalog_directory(kind, public_dir)
        logger.error("Error reading %s directory: %s", directory.name, exc)
        body = schemas.ErrorResponse(error=f"Failed to read {directory.name} directory", code=exc.code)
        return JSONResponse(status_code=500, content=body.model_dump())


def create_app(public_dir: Optional[Path | str] = None, serve_static: bool = True) -> FastAPI:
    public_path = Path(public_dir or config.PUBLIC_DIR)
    app = FastAPI(title="Pictogram Studio", version=VERSION)
    error_responses = {500: {"model": schemas.ErrorResponse}}

    @app.get("/api/health", response_model=schemas.HealthResponse, tags=["System"])
    async def health() -> schemas.HealthResponse:
        return schemas.HealthResponse(service=SERVICE_NAME, version=VERSION)

    @app.get("/api/pictograms", response_model=List[schemas.CatalogEntry], responses=error_responses, tags=["Catalog"])
    async def list_pictograms():
        return _catalog_response(schemas.CatalogKind.pictograms, public_path)

    @app.get("/api/extras", response_model=List[schemas.CatalogEntry], responses=error_responses, tags=["Catalog"])
    async def list_extras():
        return _catalog_response(schemas.CatalogKind.extras, public_path)

    @app.get(
        "/api/lottie-animations",
        response_model=List[schemas.CatalogEntry],
        responses=error_responses,
        tags=["Catalog"],
    )
    async def list_lottie_animations():
        return _catalog_response(schemas.CatalogKind.lottie_animations, public_path)

    if serve_static:
        mount_public_dir(app, public_path)

    return app


def mount_public_dir(app: FastAPI, public_dir: Optional[Path | str] = None) -> FastAPI:
    """Serve the media tree at the root; mount it after every other route it must not shadow."""

    public_path = Path(public_dir or config.PUBLIC_DIR)
    if public_path.is_dir():
        app.mount("/", StaticFiles(directory=public_path), name="public")
    else:
        logger.warning("Public directory %s not found, static assets are not served", public_path)
    return app


def main() -> None:
    config.configure_logging()
    uvicorn.run(create_app(), host=config.settings.api_host, port=config.settings.api_port)


if __name__ == "__main__":
    main()
