"""Tree trunks decorated with branches, leaves and fruit."""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np
from pydantic import ValidationError

from grove3d.builders.branch import Branch
from grove3d.builders.foliage import Foliage
from grove3d.builders.revolution import build_trunk_mesh
from grove3d.errors import InvalidParameterError
from grove3d.models.params import AttachmentKind, AttachmentPoint, TrunkParams
from grove3d.models.profile import ProfileCurve
from grove3d.models.scene import Material, Mesh, SceneNode
from grove3d.utils import colors
from grove3d.utils.attachments import Strategy, plan_attachments
from grove3d.utils.geometry import align_up_to
from grove3d.utils.noise import apply_noise
from grove3d.utils.rng import RandomSource, ensure_rng

logger = logging.getLogger(__name__)

Part = Branch | Foliage


def _elbow_branch(params: TrunkParams, vertex: np.ndarray, rng: RandomSource) -> Part:
    # thicker the closer the vertex is to the ground; y is measured in
    # unscaled units so the thickness scales like the trunk
    h, r, s, y = params.height, params.start_radius, params.scale, float(vertex[1])
    return Branch.build(
        float(rng.uniform(h * 0.05, h * 0.15)),
        float(rng.uniform(r * 40 * s / (s + y), r * 60 * s / (s + y))),
        trunk_color=params.color,
        foliage_palette=params.foliage_palette,
        complex=params.complex,
        rng=rng,
    )


def _branch(params: TrunkParams, vertex: np.ndarray, rng: RandomSource) -> Part:
    h, r = params.height, params.start_radius
    return Branch.build(
        float(rng.uniform(h * 0.03, h * 0.06)),
        float(rng.uniform(r * 0.2, r * 0.4)),
        trunk_color=params.color,
        foliage_palette=params.foliage_palette,
        complex=params.complex,
        rng=rng,
    )


def _leaf(params: TrunkParams, vertex: np.ndarray, rng: RandomSource) -> Part:
    size = float(rng.uniform(1, 2)) * params.start_radius / 4
    return Foliage.build(size, colors.GREEN_D, rng=rng)


def _fruit(params: TrunkParams, vertex: np.ndarray, rng: RandomSource) -> Part:
    size = float(rng.uniform(2, 4)) * params.start_radius / 4
    return Foliage.build(size, colors.RED_D, rng=rng)


ATTACHMENT_BUILDERS: dict[
    AttachmentKind, Callable[[TrunkParams, np.ndarray, RandomSource], Part]
] = {
    AttachmentKind.ELBOW_BRANCH: _elbow_branch,
    AttachmentKind.BRANCH: _branch,
    AttachmentKind.LEAF: _leaf,
    AttachmentKind.FRUIT: _fruit,
}


class Trunc:
    """A revolved trunk with parts attached at chosen surface vertices.

    Each part hangs under its own attachment node, positioned at the chosen
    vertex and rotated so the part's local up follows the vertex normal.
    Surface noise is applied to the trunk after attachment, so parts keep the
    pre-noise vertex positions.

    Attributes:
        params: the numeric parameters the trunk was built from
        profile: revolved (radius, height) profile
        mesh: trunk mesh
        node: scene node holding the trunk mesh and the attachment nodes
        attachments: resolved attachment points, in the order of the specs
        parts: built branches and foliage, parallel to `attachments`
    """

    def __init__(
        self,
        params: TrunkParams,
        profile: ProfileCurve,
        mesh: Mesh,
        node: SceneNode,
        attachments: list[AttachmentPoint],
        parts: list[Part],
    ):
        self.params = params
        self.profile = profile
        self.mesh = mesh
        self.node = node
        self.attachments = attachments
        self.parts = parts

    @property
    def height(self) -> float:
        return self.params.height

    @classmethod
    def build(
        cls,
        complex: bool = False,
        scale: float = 1.0,
        rng: RandomSource | int | None = None,
        strategy: Strategy = "pool",
    ) -> Trunc:
        """Draws trunk parameters and builds the decorated trunk.

        Parameters
        ----------
        complex : bool
            complex trunks have fixed height 100 and radius 4, finer
            segmentation, 15 attachments and pink foliage; simple trunks draw
            height in [70, 100], radius in [2, 4] and carry 4 attachments
        scale : numeric
            multiplies height, radius, bulge and noise
        rng : RandomSource, int or None
            random source, or a seed for a fresh numpy Generator
        strategy : "pool" or "rejection"
            how attachment vertices are sampled

        Raises
        ------
        InvalidParameterError
            if the drawn parameters are invalid (e.g. `scale <= 0`)
        """
        rng = ensure_rng(rng)
        try:
            params = TrunkParams.sample(complex, rng, scale)
        except ValidationError as exc:
            raise InvalidParameterError(str(exc)) from exc
        return cls.from_params(params, rng, strategy)

    @classmethod
    def from_params(
        cls,
        params: TrunkParams,
        rng: RandomSource | int | None = None,
        strategy: Strategy = "pool",
    ) -> Trunc:
        """Builds a trunk from fixed parameters."""
        rng = ensure_rng(rng)
        profile, mesh = build_trunk_mesh(
            height=params.height,
            start_radius=params.start_radius,
            vertical_segments=params.vertical_segments,
            radial_segments=params.radial_segments,
            angle_start=params.angle_start,
            amplitude=params.amplitude,
            material=Material(params.color),
        )
        node = SceneNode("trunc", mesh=mesh)

        attachments = plan_attachments(mesh, params.attachment_specs, rng, strategy)
        parts = []
        for point in attachments:
            vertex = mesh.positions[point.vertex_index].copy()
            part = ATTACHMENT_BUILDERS[point.kind](params, vertex, rng)
            holder = SceneNode(
                f"{point.kind.value}_attachment",
                position=vertex,
                rotation=align_up_to(mesh.normals[point.vertex_index]),
            )
            holder.add(part.node)
            node.add(holder)
            parts.append(part)

        apply_noise(mesh, params.noise, rng)
        logger.debug(
            "Built %s trunc: height=%.1f, %d vertices, %d attachments",
            "complex" if params.complex else "simple",
            params.height,
            mesh.num_vertices,
            len(attachments),
        )
        return cls(params, profile, mesh, node, attachments, parts)
