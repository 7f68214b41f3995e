from __future__ import annotations

import re
from typing import Any, List, Sequence
from urllib.parse import quote
import xml.etree.ElementTree as ET

from pictogram_studio.api.errors import InvalidColorFormat, SvgRecolorFailure


SVG_NS = "http://www.w3.org/2000/svg"
SVG_DATA_URI_PREFIX = "data:image/svg+xml,"

# Characters JavaScript's encodeURIComponent leaves alone, beyond quote()'s defaults.
_URI_COMPONENT_SAFE = "!*'()"

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")
_STYLE_FILL_RE = re.compile(r"(?<![\w-])fill\s*:\s*[^;]*")

RED_MIN = 0.8
GREEN_MAX = 0.5
BLUE_MAX = 0.5


def hex_to_normalized_rgba(hex_color: Any) -> List[float]:
    """Convert ``#RRGGBB`` (leading ``#`` optional) to Lottie ``[r, g, b, 1]`` channels."""

    if not isinstance(hex_color, str):
        raise InvalidColorFormat(f"Expected a hex colour string, got {type(hex_color).__name__}")
    match = _HEX_RE.match(hex_color.strip())
    if match is None:
        raise InvalidColorFormat(f"Invalid hex colour '{hex_color}'", details={"value": hex_color})

    digits = match.group(1)
    channels = [int(digits[idx : idx + 2], 16) / 255 for idx in (0, 2, 4)]
    return channels + [1.0]


def normalize_hex(hex_color: str) -> str:
    """Canonical ``#RRGGBB`` form of a valid hex colour."""
    hex_to_normalized_rgba(hex_color)
    return "#" + hex_color.strip().lstrip("#").upper()


def is_approximately_red(channels: Sequence[float]) -> bool:
    # Tuned to the #E45656 family used by the bundled burst presets.
    if len(channels) < 3:
        return False
    r, g, b = (float(value) for value in channels[:3])
    return r > RED_MIN and g < GREEN_MAX and b < BLUE_MAX


def svg_data_uri(svg_text: str) -> str:
    return SVG_DATA_URI_PREFIX + quote(svg_text, safe=_URI_COMPONENT_SAFE)


def _recolor_style(style: str, new_color: str) -> str:
    return _STYLE_FILL_RE.sub(f"fill:{new_color}", style)


def recolor_svg_markup(svg_text: str, new_color: str) -> str:
    """Set every fill of an SVG document to ``new_color`` and return it as an inline data URI.

    Both ``fill`` attributes and ``fill:`` declarations inside ``style`` attributes
    are rewritten, on any element. Raises ``SvgRecolorFailure`` when the markup
    cannot be parsed or serialised; callers are expected to fall back to the
    original asset reference.
    """

    try:
        root = ET.fromstring(svg_text)
    except ET.ParseError as exc:
        raise SvgRecolorFailure(f"Could not parse SVG markup: {exc}") from exc

    qualified = root.tag == f"{{{SVG_NS}}}svg"
    if not qualified and root.tag != "svg":
        raise SvgRecolorFailure(f"Root element is not <svg>: {root.tag}")

    for node in root.iter():
        if "fill" in node.attrib:
            node.set("fill", new_color)
        style = node.attrib.get("style")
        if style:
            node.set("style", _recolor_style(style, new_color))

    try:
        markup = ET.tostring(root, encoding="unicode", default_namespace=SVG_NS if qualified else None)
    except (TypeError, ValueError) as exc:
        raise SvgRecolorFailure(f"Could not serialise recoloured SVG: {exc}") from exc
    return svg_data_uri(markup)
