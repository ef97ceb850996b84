"""Leaf blobs: noisy low-poly spheres, optionally clustered."""

from __future__ import annotations

import logging
import math

from grove3d.builders.revolution import build_revolution
from grove3d.models.params import AttachmentKind, AttachmentSpec
from grove3d.models.scene import Material, Mesh, SceneNode
from grove3d.utils import colors
from grove3d.utils.attachments import plan_attachments
from grove3d.utils.checks import require_positive
from grove3d.utils.geometry import euler_matrix, sphere_profile
from grove3d.utils.noise import apply_noise
from grove3d.utils.rng import RandomSource, ensure_rng, pick, randint

logger = logging.getLogger(__name__)

SUB_BLOB_BAND = (0.2, 0.9)
SUB_BLOB_TILT = math.pi / 8


def sphere_mesh(
    radius: float, width_segments: int, height_segments: int, material: Material
) -> Mesh:
    """UV sphere centred on the origin."""
    mesh = build_revolution(
        sphere_profile(radius, height_segments), width_segments, material
    )
    mesh.translate((0.0, -radius, 0.0))
    return mesh


class Foliage:
    """A roughly spherical cluster of leaves.

    Attributes:
        base_radius: radius of the main sphere
        color: hex color of the main sphere
        complex: whether sub-blobs were scattered over the surface
        mesh: the main sphere
        node: scene node holding the main sphere and the sub-blob nodes
        sub_blobs: nodes of the smaller spheres, empty unless complex
    """

    def __init__(
        self,
        base_radius: float,
        color: int,
        complex: bool,
        mesh: Mesh,
        node: SceneNode,
        sub_blobs: list[SceneNode],
    ):
        self.base_radius = base_radius
        self.color = color
        self.complex = complex
        self.mesh = mesh
        self.node = node
        self.sub_blobs = sub_blobs

    @classmethod
    def build(
        cls,
        base_radius: float,
        color: int,
        complex: bool = False,
        rng: RandomSource | int | None = None,
    ) -> Foliage:
        """Builds one leaf blob.

        Complex blobs get a finer sphere, a fixed noise of 5% of the radius and
        3 to 6 sub-blobs of 0.3 to 0.5 times the radius in leaf colors. Simple
        blobs get noise between 1/20 and 1/5 of the radius.

        Raises InvalidParameterError for a non-positive radius.
        """
        require_positive(base_radius=base_radius)
        rng = ensure_rng(rng)

        width_segments = randint(rng, 3, 10) if complex else randint(rng, 3, 5)
        height_segments = randint(rng, 3, 6)
        if complex:
            noise = 0.05 * base_radius
        else:
            noise = float(rng.uniform(base_radius / 20, base_radius / 5))

        mesh = sphere_mesh(
            base_radius,
            width_segments,
            height_segments,
            Material(color, flat_shading=False),
        )
        node = SceneNode("foliage", mesh=mesh)

        sub_blobs = []
        if complex:
            sub_blobs = _scatter_sub_blobs(node, mesh, base_radius, rng)

        apply_noise(mesh, noise, rng)
        return cls(base_radius, color, complex, mesh, node, sub_blobs)


def _sub_blob(radius: float, rng: RandomSource) -> SceneNode:
    mesh = sphere_mesh(
        radius,
        randint(rng, 3, 4),
        randint(rng, 2, 4),
        Material(pick(rng, colors.LEAVES)),
    )
    return SceneNode("sub_foliage", mesh=mesh)


def _scatter_sub_blobs(
    parent: SceneNode, mesh: Mesh, base_radius: float, rng: RandomSource
) -> list[SceneNode]:
    """Places smaller spheres on surface vertices of `mesh`."""
    spec = AttachmentSpec(
        kind=AttachmentKind.LEAF,
        count=randint(rng, 3, 6),
        min_height_fraction=SUB_BLOB_BAND[0],
        max_height_fraction=SUB_BLOB_BAND[1],
    )
    blobs = []
    for point in plan_attachments(mesh, [spec], rng):
        blob = _sub_blob(float(rng.uniform(0.3 * base_radius, 0.5 * base_radius)), rng)
        blob.position = mesh.positions[point.vertex_index].copy()
        blob.rotation = euler_matrix(
            float(rng.uniform(-SUB_BLOB_TILT, SUB_BLOB_TILT)),
            0.0,
            float(rng.uniform(-SUB_BLOB_TILT, SUB_BLOB_TILT)),
        )
        blobs.append(parent.add(blob))

    logger.debug("Scattered %d sub-blobs on foliage", len(blobs))
    return blobs
