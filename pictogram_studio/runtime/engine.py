from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from pictogram_studio.api import schemas
from pictogram_studio.api.errors import FetchError, ParseError, SvgRecolorFailure
from pictogram_studio.compiler.asset_index import IndexedAsset, assets_with_role, index_assets
from pictogram_studio.compiler.color import hex_to_normalized_rgba, is_approximately_red, recolor_svg_markup
from pictogram_studio.runtime.sources import AssetSource
from pictogram_studio.services import config


logger = logging.getLogger(__name__)

DEFAULT_ANIMATION = config.DEFAULT_PRESET
BURST_PRESET_FILENAME = "scale-in-burst.json"

SPARKLE_COMPOSITION_NAME = "sparkles"
FLAIR_COMPOSITION_NAMES = frozenset({"flair", "flair-burst", "burst"})

EXTRA_LAYER_NAMES = frozenset({"extra-mask", "extra", "extra-mask-bg", "extra-bg", "cutout-mask"})
FLAIR_LAYER_NAME = "flair"
SPARKLES_LAYER_NAME = "sparkles"
EXTRA_BACKGROUND_LAYER_NAME = "extra-bg"

SHAPE_GROUP = "gr"
SHAPE_FILL = "fl"
SHAPE_STROKE = "st"

Color = List[float]
Reference = Tuple[Optional[str], str]


def _static(value: Any) -> Dict[str, Any]:
    return {"a": 0, "k": value}


def _map_list(items: List[Any], fn: Callable[[Any], Any]) -> List[Any]:
    """Apply ``fn`` to each item; return ``items`` itself when nothing was replaced."""

    replaced: Optional[List[Any]] = None
    for idx, item in enumerate(items):
        updated = fn(item)
        if updated is not item:
            if replaced is None:
                replaced = list(items)
            replaced[idx] = updated
    return items if replaced is None else replaced


def _is_channels(value: Any) -> bool:
    return (
        isinstance(value, list)
        and len(value) >= 3
        and all(isinstance(channel, (int, float)) and not isinstance(channel, bool) for channel in value[:3])
    )


def _is_keyframed(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and isinstance(value[0], dict)


def _retint_keyframe(frame: Any, target: Color) -> Any:
    if not isinstance(frame, dict):
        return frame
    updated = frame
    for key in ("s", "e"):
        channels = frame.get(key)
        if _is_channels(channels) and is_approximately_red(channels):
            if updated is frame:
                updated = dict(frame)
            updated[key] = list(target)
    return updated


def _retint_color(color: Any, target: Color) -> Any:
    if not isinstance(color, dict):
        return color
    value = color.get("k")
    if _is_keyframed(value):
        frames = _map_list(value, lambda frame: _retint_keyframe(frame, target))
        return color if frames is value else {**color, "k": frames}
    if _is_channels(value) and is_approximately_red(value):
        return {**color, "k": list(target)}
    return color


def _retint_shape(item: Any, target: Color) -> Any:
    if not isinstance(item, dict):
        return item
    kind = item.get("ty")
    if kind in (SHAPE_FILL, SHAPE_STROKE):
        color = _retint_color(item.get("c"), target)
        return item if color is item.get("c") else {**item, "c": color}
    if kind == SHAPE_GROUP and isinstance(item.get("it"), list):
        children = _map_list(item["it"], lambda child: _retint_shape(child, target))
        return item if children is item["it"] else {**item, "it": children}
    return item


def _retint_layer(layer: Any, target: Color) -> Any:
    if not isinstance(layer, dict) or not isinstance(layer.get("shapes"), list):
        return layer
    shapes = _map_list(layer["shapes"], lambda item: _retint_shape(item, target))
    return layer if shapes is layer["shapes"] else {**layer, "shapes": shapes}


def _paint_fill(item: Any, color: Optional[Color], opacity: float) -> Any:
    if not isinstance(item, dict):
        return item
    kind = item.get("ty")
    if kind == SHAPE_FILL:
        painted = {**item, "o": _static(opacity)}
        if color is not None:
            painted["c"] = {**(item.get("c") or {}), "a": 0, "k": list(color)}
        return painted
    if kind == SHAPE_GROUP and isinstance(item.get("it"), list):
        children = _map_list(item["it"], lambda child: _paint_fill(child, color, opacity))
        return item if children is item["it"] else {**item, "it": children}
    return item


def _with_layer_opacity(layer: Dict[str, Any], value: float) -> Dict[str, Any]:
    transform = layer.get("ks")
    transform = transform if isinstance(transform, dict) else {}
    return {**layer, "ks": {**transform, "o": _static(value)}}


def _with_reference(asset: Dict[str, Any], reference: Reference) -> Dict[str, Any]:
    prefix, filename = reference
    if asset.get("u") == prefix and asset.get("p") == filename:
        return asset
    return {**asset, "u": prefix, "p": filename}


class RecompositionEngine:
    """Rewrites a base Lottie document for one ``Configuration``.

    The fetched document is never mutated: rewritten nodes are fresh dicts and
    lists, untouched nodes are shared with the input.
    """

    def __init__(self, source: AssetSource) -> None:
        self.source = source

    @property
    def resolver(self):
        return self.source.resolver

    async def load_base_animation(self, base_animation_id: Optional[str]) -> Dict[str, Any]:
        filename = (base_animation_id or "").strip() or DEFAULT_ANIMATION
        path = self.resolver.motion_path(filename)
        try:
            payload = await self.source.fetch_json(path)
        except (FetchError, ParseError) as exc:
            logger.error("Failed to load base animation %s: %s", path, exc)
            raise

        if not isinstance(payload, dict):
            logger.error("Base animation %s is not a JSON object", path)
            raise ParseError(f"Animation at {path} is not a JSON object", details={"path": path})
        try:
            schemas.AnimationDocument.model_validate(payload)
        except ValidationError as exc:
            logger.error("Base animation %s has an invalid shape: %s", path, exc)
            raise ParseError(f"Animation at {path} has an invalid shape", details={"path": path}) from exc
        return payload

    async def recompose(self, base_animation_id: Optional[str], configuration: schemas.Configuration) -> Dict[str, Any]:
        preset = (base_animation_id or "").strip() or DEFAULT_ANIMATION
        logger.debug("Recomposing %s with %s", preset, configuration.model_dump())

        source = await self.load_base_animation(preset)
        index = index_assets(source.get("assets") or [])

        overlay_reference: Optional[Reference] = None
        if configuration.extraFilename and assets_with_role(index, schemas.AssetRole.overlay_slot):
            overlay_reference = await self._overlay_reference(configuration)

        composition_color: Optional[Color] = None
        if preset == BURST_PRESET_FILENAME and configuration.extraBackgroundColorHex:
            composition_color = hex_to_normalized_rgba(configuration.extraBackgroundColorHex)

        assets = [self._rewrite_asset(item, configuration, overlay_reference, composition_color) for item in index]
        layers = _map_list(list(source.get("layers") or []), lambda layer: self._rewrite_layer(layer, configuration))

        logger.debug("Recomposed %s: %d assets, %d layers", preset, len(assets), len(layers))
        result = dict(source)
        if "assets" in source:
            result["assets"] = assets
        if "layers" in source:
            result["layers"] = layers
        return result

    def _default_reference(self, asset: Dict[str, Any]) -> Dict[str, Any]:
        if asset.get("u") is None:
            return asset
        return _with_reference(asset, (self.resolver.motion_image_prefix, asset.get("p")))

    def _rewrite_asset(
        self,
        item: IndexedAsset,
        configuration: schemas.Configuration,
        overlay_reference: Optional[Reference],
        composition_color: Optional[Color],
    ) -> Dict[str, Any]:
        asset = item.asset
        role = item.role

        if role == schemas.AssetRole.icon_slot:
            return _with_reference(asset, (self.resolver.icon_prefix, configuration.pictogramFilename))

        if role == schemas.AssetRole.overlay_slot:
            if overlay_reference is not None:
                return _with_reference(asset, overlay_reference)
            return self._default_reference(asset)

        if role == schemas.AssetRole.composition:
            if composition_color is None or not self._composition_is_tintable(item.name):
                return asset
            layers = _map_list(asset["layers"], lambda layer: _retint_layer(layer, composition_color))
            return asset if layers is asset["layers"] else {**asset, "layers": layers}

        return self._default_reference(asset)

    @staticmethod
    def _composition_is_tintable(name: Optional[str]) -> bool:
        if name is None:
            return True
        if name == SPARKLE_COMPOSITION_NAME:
            return False
        return name in FLAIR_COMPOSITION_NAMES

    async def _overlay_reference(self, configuration: schemas.Configuration) -> Reference:
        filename = configuration.extraFilename
        plain: Reference = (self.resolver.overlay_prefix, filename)
        if not configuration.extraIconColorHex:
            return plain

        path = self.resolver.image_path(filename)
        try:
            svg_text = await self.source.fetch_text(path)
            return "", recolor_svg_markup(svg_text, configuration.extraIconColorHex)
        except (FetchError, SvgRecolorFailure) as exc:
            logger.warning("Recolouring overlay %s failed, using original: %s", filename, exc)
            return plain

    def _rewrite_layer(self, layer: Any, configuration: schemas.Configuration) -> Any:
        if not isinstance(layer, dict):
            return layer
        name = layer.get("nm")

        # Independent checks; when several match, the last one applied wins.
        rules = (
            (EXTRA_LAYER_NAMES, configuration.showExtra),
            ((FLAIR_LAYER_NAME,), configuration.showFlair),
            ((SPARKLES_LAYER_NAME,), configuration.showSparkles),
        )
        for names, visible in rules:
            if not visible and name in names:
                layer = _with_layer_opacity(layer, 0)

        if name == EXTRA_BACKGROUND_LAYER_NAME and isinstance(layer.get("shapes"), list):
            color = (
                hex_to_normalized_rgba(configuration.extraBackgroundColorHex)
                if configuration.extraBackgroundColorHex
                else None
            )
            opacity = 100 if color is not None else 0
            shapes = _map_list(layer["shapes"], lambda item: _paint_fill(item, color, opacity))
            if shapes is not layer["shapes"]:
                layer = {**layer, "shapes": shapes}

        return layer
