from __future__ import annotations

from dataclasses import dataclass
import re
from typing import List, Optional, Sequence

from pictogram_studio.api import schemas
from pictogram_studio.services import config


TRANSPARENT = "transparent"
DARK_ICON_COLOR = "#92540C"


@dataclass(frozen=True)
class ColorOption:
    name: str
    value: str
    hex: str


COLOR_OPTIONS = (
    ColorOption("Alert Yellow", "alert-yellow", "#FFD000"),
    ColorOption("Yellow", "yellow", "#FFCC33"),
    ColorOption("Alert Red", "alert-red", "#EE1025"),
    ColorOption("Alert Green", "alert-green", "#21C000"),
    ColorOption("Blue", "blue", "#557FF3"),
    ColorOption("Red", "red", "#DE5833"),
    ColorOption("Purple", "purple", "#876ECB"),
    ColorOption("Grey", "grey", "#999999"),
    ColorOption("None", "none", TRANSPARENT),
)

LIGHT_MODE_OPTIONS = (
    ColorOption("Primary", "primary-light", "#F2F2F2"),
    ColorOption("Secondary", "secondary-light", "#F9F9F9"),
    ColorOption("Tertiary", "tertiary-light", "#FFFFFF"),
    ColorOption("Canvas", "canvas-light", "#FAFAFA"),
)

DARK_MODE_OPTIONS = (
    ColorOption("Primary", "primary-dark", "#282828"),
    ColorOption("Secondary", "secondary-dark", "#373737"),
    ColorOption("Tertiary", "tertiary-dark", "#474747"),
    ColorOption("Canvas", "canvas-dark", "#1C1C1C"),
)

# Light badge colours need a dark glyph to stay legible.
DARK_ICON_BACKGROUNDS = frozenset({"yellow", "alert-yellow"})

DEFAULT_COLOR = "blue"
DEFAULT_CANVAS = "tertiary-light"
DEFAULT_CANVAS_HEX = "#FFFFFF"

SIZE_MIN = 20
SIZE_MAX = 200
SIZE_STEP = 5
DEFAULT_SIZE = 100


def _find(options: Sequence[ColorOption], value: str) -> Optional[ColorOption]:
    return next((option for option in options if option.value == value), None)


def background_hex(color_value: str) -> Optional[str]:
    option = _find(COLOR_OPTIONS, color_value)
    if option is None or option.hex == TRANSPARENT:
        return None
    return option.hex


def extra_icon_color(color_value: str) -> Optional[str]:
    return DARK_ICON_COLOR if color_value in DARK_ICON_BACKGROUNDS else None


def canvas_hex(canvas_value: str) -> str:
    option = _find(LIGHT_MODE_OPTIONS + DARK_MODE_OPTIONS, canvas_value)
    return option.hex if option else DEFAULT_CANVAS_HEX


def clamp_size(size: float) -> int:
    return int(max(SIZE_MIN, min(SIZE_MAX, round(float(size) / SIZE_STEP) * SIZE_STEP)))


def display_label(name: str, word: str) -> str:
    return re.sub(rf"{re.escape(word)}[-\s]*", "", name, flags=re.IGNORECASE).strip()


def color_choices() -> List[tuple[str, str]]:
    return [(f"{option.name} ({'0% opacity' if option.hex == TRANSPARENT else option.hex})", option.value) for option in COLOR_OPTIONS]


def canvas_choices() -> List[tuple[str, str]]:
    light = [(f"Light mode / {option.name} ({option.hex})", option.value) for option in LIGHT_MODE_OPTIONS]
    dark = [(f"Dark mode / {option.name} ({option.hex})", option.value) for option in DARK_MODE_OPTIONS]
    return light + dark


def default_pictogram(entries: Sequence[schemas.CatalogEntry]) -> Optional[str]:
    if not entries:
        return None
    for entry in entries:
        if entry.filename == config.DEFAULT_PICTOGRAM:
            return entry.filename
    return entries[0].filename


def default_preset(entries: Sequence[schemas.CatalogEntry]) -> str:
    filenames = [entry.filename for entry in entries]
    if not filenames or config.DEFAULT_PRESET in filenames:
        return config.DEFAULT_PRESET
    return filenames[0]
