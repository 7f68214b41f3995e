from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from pictogram_studio.api import schemas


# Placeholder filenames the bundled presets use to mark the swappable image slots.
ICON_SLOT_FILENAME = "img_3.png"
OVERLAY_SLOT_FILENAME = "img_1.png"


@dataclass(frozen=True)
class IndexedAsset:
    position: int
    role: schemas.AssetRole
    asset: Dict[str, Any]

    @property
    def name(self) -> str | None:
        return self.asset.get("nm")


def asset_role(asset: Dict[str, Any]) -> schemas.AssetRole:
    if asset.get("layers") is not None:
        return schemas.AssetRole.composition

    filename = asset.get("p")
    if filename == ICON_SLOT_FILENAME:
        return schemas.AssetRole.icon_slot
    if filename == OVERLAY_SLOT_FILENAME:
        return schemas.AssetRole.overlay_slot
    if asset.get("u") is None:
        return schemas.AssetRole.embedded
    return schemas.AssetRole.decorative


def index_assets(assets: Sequence[Dict[str, Any]]) -> List[IndexedAsset]:
    return [IndexedAsset(position=idx, role=asset_role(asset), asset=asset) for idx, asset in enumerate(assets)]


def assets_with_role(index: Sequence[IndexedAsset], role: schemas.AssetRole) -> List[IndexedAsset]:
    return [item for item in index if item.role == role]
