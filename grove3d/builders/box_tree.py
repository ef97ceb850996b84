"""Lightweight trees made of a handful of randomly stretched boxes."""

from __future__ import annotations

import numpy as np

from grove3d.models.scene import Material, Mesh, SceneNode
from grove3d.utils import colors
from grove3d.utils.rng import RandomSource, ensure_rng, pick

# corner i has coordinates (bit 0, bit 1, bit 2) of i, centred on the origin
_UNIT_CORNERS = np.array(
    [((i >> 0) & 1, (i >> 1) & 1, (i >> 2) & 1) for i in range(8)], dtype=float
) - 0.5

# two triangles per face, wound so normals point out of the box
_BOX_FACES = np.array(
    (
        (0, 4, 6), (0, 6, 2),  # -x
        (1, 3, 7), (1, 7, 5),  # +x
        (0, 1, 5), (0, 5, 4),  # -y
        (2, 6, 7), (2, 7, 3),  # +y
        (0, 2, 3), (0, 3, 1),  # -z
        (4, 5, 7), (4, 7, 6),  # +z
    )
)

# name, position, per-axis (low, high) size ranges, material slot
BOX_PARTS = (
    ("leaves_dark", (0.0, 1.2, 0.0), ((0.9, 1.2), (1.7, 2.2), (0.9, 1.2)), "dark"),
    ("leaves_light", (0.0, 1.2, 0.0), ((1.0, 1.3), (0.4, 0.6), (1.0, 1.3)), "light"),
    ("leaf_square", (0.5, 1.6, 0.5), ((0.7, 1.1),) * 3, "dark"),
    ("leaf_square", (-0.4, 1.3, -0.4), ((0.6, 0.9),) * 3, "dark"),
    ("leaf_square", (0.4, 1.7, -0.5), ((0.6, 0.9),) * 3, "dark"),
    ("ground", (0.0, -1.0, 0.0), ((2.0, 2.7), (0.7, 0.9), (2.0, 2.7)), "ground"),
    ("stem", (0.0, 0.0, 0.0), ((0.25, 0.4), (1.2, 1.9), (0.25, 0.4)), "stem"),
)


def box_mesh(size, material: Material) -> Mesh:
    """Axis-aligned box of the given (x, y, z) size, centred on the origin."""
    return Mesh(_UNIT_CORNERS * np.asarray(size, dtype=float), _BOX_FACES, material)


class BoxTree:
    """A stem, leaf boxes and a patch of ground, about three units tall.

    Attributes:
        node: scene node holding one child node per box
        palette: hex color of each material slot (dark, light, ground, stem)
    """

    def __init__(self, node: SceneNode, palette: dict[str, int]):
        self.node = node
        self.palette = palette

    @property
    def vertex_count(self) -> int:
        return sum(mesh.num_vertices for mesh in self.node.meshes())

    @classmethod
    def build(cls, rng: RandomSource | int | None = None) -> BoxTree:
        """Draws slot colors, then one size per axis for every box."""
        rng = ensure_rng(rng)
        slots = {
            "dark": pick(rng, colors.BOX_LEAVES),
            "light": pick(rng, colors.BOX_LEAVES),
            "ground": pick(rng, colors.BOX_LEAVES),
            "stem": pick(rng, colors.STEMS),
        }
        materials = {slot: Material(color) for slot, color in slots.items()}

        node = SceneNode("box_tree")
        for name, position, ranges, slot in BOX_PARTS:
            size = [float(rng.uniform(low, high)) for low, high in ranges]
            node.add(
                SceneNode(name, mesh=box_mesh(size, materials[slot]), position=position)
            )
        return cls(node, slots)
