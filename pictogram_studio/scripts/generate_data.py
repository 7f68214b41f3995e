"""Write the static catalog listings served by exported (API-less) deployments."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pictogram_studio.api import schemas
from pictogram_studio.api.errors import CatalogUnavailable
from pictogram_studio.compiler.catalog import DATA_SUBDIR, list_catalog
from pictogram_studio.services import config


logger = logging.getLogger(__name__)


def generate_catalog_file(kind: schemas.CatalogKind, public_dir: Path) -> List[schemas.CatalogEntry]:
    entries = list_catalog(kind, public_dir)
    output_path = public_dir / DATA_SUBDIR / kind.data_file
    payload = [entry.model_dump() for entry in entries]
    output_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("Generated %s with %d items", kind.data_file, len(entries))
    return entries


def generate_all(public_dir: Path | str) -> Dict[schemas.CatalogKind, List[schemas.CatalogEntry]]:
    public_path = Path(public_dir)
    (public_path / DATA_SUBDIR).mkdir(parents=True, exist_ok=True)
    logger.info("Generating static data files in %s", public_path / DATA_SUBDIR)
    return {kind: generate_catalog_file(kind, public_path) for kind in schemas.CatalogKind}


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate catalog JSON files for static hosting")
    parser.add_argument("--public-dir", default=config.PUBLIC_DIR, help="public media directory (default: %(default)s)")
    parser.add_argument("--log-level", default=None, help="logging level (default: PICTOGRAM_LOG_LEVEL)")
    args = parser.parse_args(argv)

    config.configure_logging(args.log_level)
    try:
        generate_all(args.public_dir)
    except CatalogUnavailable as exc:
        logger.error("Error generating data files: %s", exc)
        return 1
    logger.info("All data files generated successfully")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
