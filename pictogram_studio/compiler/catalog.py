from __future__ import annotations

import logging
import os
from pathlib import Path
import re
from typing import Callable, Dict, List

from pictogram_studio.api import schemas
from pictogram_studio.api.errors import CatalogUnavailable


logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".svg", ".png", ".jpg", ".jpeg", ".gif", ".webp")
MOTION_EXTENSIONS = (".json",)

IMAGES_SUBDIR = "images"
MOTION_SUBDIR = "lottie"
DATA_SUBDIR = "data"

_EXTENSION_RE = re.compile(r"\.[^/.]+$")
_WORD_SPLIT_RE = re.compile(r"[-_]")


def format_display_name(filename: str) -> str:
    stem = _EXTENSION_RE.sub("", filename)
    return " ".join(word[:1].upper() + word[1:].lower() for word in _WORD_SPLIT_RE.split(stem))


def _image_with_prefix(prefix: str) -> Callable[[str], bool]:
    def _match(filename: str) -> bool:
        lowered = filename.lower()
        return lowered.startswith(prefix) and lowered.endswith(IMAGE_EXTENSIONS)

    return _match


def _is_motion_preset(filename: str) -> bool:
    return filename.lower().endswith(MOTION_EXTENSIONS)


CATALOG_RULES: Dict[schemas.CatalogKind, tuple[str, Callable[[str], bool]]] = {
    schemas.CatalogKind.pictograms: (IMAGES_SUBDIR, _image_with_prefix("pictogram")),
    schemas.CatalogKind.extras: (IMAGES_SUBDIR, _image_with_prefix("extra")),
    schemas.CatalogKind.lottie_animations: (MOTION_SUBDIR, _is_motion_preset),
}


def catalog_directory(kind: schemas.CatalogKind, public_dir: Path | str) -> Path:
    subdir, _ = CATALOG_RULES[kind]
    return Path(public_dir) / subdir


def list_catalog(kind: schemas.CatalogKind | str, public_dir: Path | str) -> List[schemas.CatalogEntry]:
    """Scan the media directory backing ``kind`` under ``public_dir``.

    Entries are sorted by filename so listings are stable across platforms.
    Raises ``CatalogUnavailable`` when the directory cannot be read.
    """

    kind = schemas.CatalogKind(kind)
    directory = catalog_directory(kind, public_dir)
    _, accepts = CATALOG_RULES[kind]

    try:
        filenames = os.listdir(directory)
    except OSError as exc:
        raise CatalogUnavailable(
            f"Failed to read {directory}",
            details={"kind": kind.value, "directory": str(directory)},
        ) from exc

    return [
        schemas.CatalogEntry(name=format_display_name(filename), filename=filename)
        for filename in sorted(filenames)
        if accepts(filename) and (directory / filename).is_file()
    ]


def safe_list_catalog(kind: schemas.CatalogKind | str, public_dir: Path | str) -> List[schemas.CatalogEntry]:
    try:
        return list_catalog(kind, public_dir)
    except CatalogUnavailable as exc:
        logger.warning("Catalog %s unavailable, treating as empty: %s", schemas.CatalogKind(kind).value, exc)
        return []
