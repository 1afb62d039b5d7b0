"""Asset descriptors shown in the palette and carried by drag gestures."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple


class AssetCategory(enum.Enum):
    MESH = "mesh"
    LIGHT = "light"
    MATERIAL = "material"


@dataclass(frozen=True)
class AssetIdentity:
    """Immutable descriptor attached to a draggable palette entry."""

    id: int
    name: str
    category: AssetCategory


@dataclass(frozen=True)
class DragPayload:
    """The part of an :class:`AssetIdentity` transmitted through a drag."""

    asset_id: int
    asset_name: str

    @classmethod
    def from_identity(cls, identity: AssetIdentity) -> "DragPayload":
        return cls(asset_id=identity.id, asset_name=identity.name)


# Palette groups as shown in the editor's asset browser.
DEFAULT_PALETTE: Tuple[Tuple[str, AssetCategory, Tuple[str, ...]], ...] = (
    ("Shapes", AssetCategory.MESH, ("Triangle", "Plane", "Cube", "Sphere")),
    ("Lights", AssetCategory.LIGHT, ("Sun Light", "Point Light", "Spherical Light", "Environment Light")),
    ("Materials", AssetCategory.MATERIAL, ("Diffuse", "Glass", "Cloth", "PBR")),
)


def build_catalog(
    palette: Sequence[Tuple[str, AssetCategory, Sequence[str]]] = DEFAULT_PALETTE,
) -> Dict[str, List[AssetIdentity]]:
    """Create the asset identities for each palette group.

    Ids are the position of the entry inside its group, so ``Cube`` is
    ``AssetIdentity(2, "Cube", AssetCategory.MESH)``.
    """
    catalog: Dict[str, List[AssetIdentity]] = {}
    for group, category, names in palette:
        catalog[group] = [AssetIdentity(i, name, category) for i, name in enumerate(names)]
    return catalog
