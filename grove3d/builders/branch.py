"""Tapered branches, optionally carrying foliage."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from grove3d.builders.foliage import Foliage
from grove3d.builders.revolution import build_revolution
from grove3d.models.scene import Material, Mesh, SceneNode
from grove3d.utils import colors
from grove3d.utils.checks import require_positive
from grove3d.utils.geometry import euler_matrix, tapered_profile
from grove3d.utils.rng import RandomSource, ensure_rng, pick, randint

RADIAL_SEGMENTS = 8
BASE_RATIO = 0.7
MAX_BEND = 0.2


class Branch:
    """A capped, tapered cylinder lying across its local up axis.

    The mesh is centred on the node origin with its axis along local Y; the
    node rotation turns that axis by pi/2 about X and adds a small random
    bend about Y and Z.
    """

    def __init__(
        self,
        length: float,
        radius: float,
        mesh: Mesh,
        node: SceneNode,
        foliage: list[Foliage],
    ):
        self.length = length
        self.radius = radius
        self.mesh = mesh
        self.node = node
        self.foliage = foliage

    @classmethod
    def build(
        cls,
        length: float,
        radius: float,
        trunk_color: int | None = None,
        foliage_palette: Sequence[int] | None = None,
        complex: bool = False,
        rng: RandomSource | int | None = None,
    ) -> Branch:
        """Builds a branch of top radius `radius` and base radius 0.7 * radius.

        When `complex` and a palette is given, 1 to 3 foliage blobs colored
        from the palette are spread evenly along the branch axis.

        Raises InvalidParameterError for a non-positive length or radius.
        """
        require_positive(length=length, radius=radius)
        rng = ensure_rng(rng)

        material = Material(
            trunk_color if trunk_color is not None else colors.GREY_D,
            roughness=0.8,
            metalness=0.1,
        )
        mesh = build_revolution(
            tapered_profile(length, radius, BASE_RATIO), RADIAL_SEGMENTS, material
        )
        mesh.translate((0.0, -length / 2, 0.0))

        bend_z = float(rng.uniform(-MAX_BEND, MAX_BEND))
        bend_y = float(rng.uniform(-MAX_BEND, MAX_BEND))
        node = SceneNode(
            "branch", mesh=mesh, rotation=euler_matrix(math.pi / 2, bend_y, bend_z)
        )

        foliage = []
        if complex and foliage_palette:
            count = randint(rng, 1, 3)
            for i in range(count):
                leaf = Foliage.build(
                    radius * float(rng.uniform(0.5, 1.0)),
                    pick(rng, foliage_palette),
                    rng=rng,
                )
                leaf.node.position = np.array((0.0, (i / count - 0.5) * length, 0.0))
                node.add(leaf.node)
                foliage.append(leaf)

        return cls(length, radius, mesh, node, foliage)
