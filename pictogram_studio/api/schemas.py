from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pictogram_studio.compiler.color import normalize_hex
from pictogram_studio.services import config


class CatalogKind(str, Enum):
    pictograms = "pictograms"
    extras = "extras"
    lottie_animations = "lottie-animations"

    @property
    def data_file(self) -> str:
        return f"{self.value}.json"


class AssetRole(str, Enum):
    icon_slot = "icon-slot"
    overlay_slot = "overlay-slot"
    composition = "composition"
    embedded = "embedded"
    decorative = "decorative"


class CatalogEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    filename: str


class LottieAsset(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | int
    u: Optional[str] = None
    p: Optional[str] = None
    nm: Optional[str] = None
    layers: Optional[List[Dict[str, Any]]] = None


class AnimationDocument(BaseModel):
    """Shape check for a fetched Lottie document; unknown keys are allowed and ignored."""

    model_config = ConfigDict(extra="allow")

    assets: List[LottieAsset] = Field(default_factory=list)
    layers: List[Dict[str, Any]] = Field(default_factory=list)


class Configuration(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    pictogramFilename: str = Field(min_length=1)
    extraFilename: Optional[str] = None
    extraBackgroundColorHex: Optional[str] = None
    extraIconColorHex: Optional[str] = None
    showExtra: bool = True
    showFlair: bool = True
    showSparkles: bool = True
    animationPresetFilename: str = config.DEFAULT_PRESET

    @field_validator("extraFilename", "extraBackgroundColorHex", "extraIconColorHex", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("extraBackgroundColorHex", "extraIconColorHex")
    @classmethod
    def _valid_hex(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return normalize_hex(value)


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error: str
    code: Optional[str] = None


class HealthResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: str = "healthy"
    service: str
    version: str
