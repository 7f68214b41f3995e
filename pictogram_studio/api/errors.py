"""Error taxonomy shared by the engine, the catalog reader and the HTTP layer."""

from __future__ import annotations

from typing import Any, Dict, Optional


class PictogramError(Exception):
    """Base class for domain errors; ``code`` is the stable identifier reported to callers."""

    code = "PICTOGRAM_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": [self.details] if self.details else []}


class FetchError(PictogramError):
    """The source was unreachable or answered with a non-success status."""

    code = "FETCH_FAILED"


class ParseError(PictogramError):
    """The fetched body is not valid JSON or not an animation description."""

    code = "PARSE_FAILED"


class CatalogUnavailable(PictogramError):
    code = "CATALOG_UNAVAILABLE"


class SvgRecolorFailure(PictogramError):
    code = "SVG_RECOLOR_FAILED"


class InvalidColorFormat(PictogramError, ValueError):
    code = "INVALID_COLOR_FORMAT"
