"""Laying out many trees on the ground with a minimum spacing."""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Sequence

import numpy as np
import pandas as pd
from pydantic import ValidationError
from shapely.geometry import MultiPoint, Point

from grove3d.builders.box_tree import BoxTree
from grove3d.builders.trunc import Trunc
from grove3d.errors import InvalidParameterError
from grove3d.models.params import ForestParams
from grove3d.models.scene import SceneNode
from grove3d.utils.geometry import get_elevation, rotation_x, rotation_y, rotation_z
from grove3d.utils.rng import RandomSource, ensure_rng

logger = logging.getLogger(__name__)

MAX_TILT = 0.1
SWAY_AMPLITUDE = 0.05
SWAY_FREQUENCY = 1.5


Body = Trunc | BoxTree


class Tree:
    """Places one tree body in the world and sways it in the wind.

    The group node carries the world position, a uniform scale, a random yaw
    and a slight tilt; `update` adds a sway about the local Z axis on top.
    """

    def __init__(
        self,
        body: Body,
        position: Sequence[float],
        scale: float = 1.0,
        rng: RandomSource | int | None = None,
    ):
        rng = ensure_rng(rng)
        self.body = body
        self.position = np.array(position, dtype=float)
        self.scale = float(scale)
        self.sway = 0.0
        self._elapsed = 0.0
        self._phase = float(rng.uniform(0, 2 * math.pi))
        self._rest_rotation = rotation_y(
            float(rng.uniform(0, 2 * math.pi))
        ) @ rotation_x(float(rng.uniform(-MAX_TILT, MAX_TILT)))

        self.group = SceneNode(
            "tree",
            position=self.position,
            rotation=self._rest_rotation,
            scale=self.scale,
        )
        self.group.add(body.node)

    def update(self, delta_time: float, wind_strength: float) -> None:
        """Advances the idle sway by `delta_time` seconds."""
        self._elapsed += delta_time
        self.sway = (
            SWAY_AMPLITUDE
            * wind_strength
            * math.sin(SWAY_FREQUENCY * self._elapsed + self._phase)
        )
        self.group.rotation = self._rest_rotation @ rotation_z(self.sway)


def _far_enough(
    x: float, z: float, placed: list[tuple[float, float]], params: ForestParams
) -> bool:
    if not placed:
        return True
    if params.spacing == "planar":
        return MultiPoint(placed).distance(Point(x, z)) >= params.min_distance
    # only the X coordinate is compared
    return all(abs(x - px) >= params.min_distance for px, _ in placed)


def layout_positions(
    params: ForestParams, rng: RandomSource
) -> tuple[list[tuple[float, float]], int]:
    """Samples `params.count` ground positions by rejection sampling.

    Each position gets up to `params.max_attempts` uniform candidates inside
    the area; the first one far enough from every earlier position wins, and
    when none qualifies the last candidate is kept anyway.

    Returns
    -------
    positions : list of (x, z)
        one per tree, in placement order
    crowded : int
        how many positions were accepted without meeting the spacing
    """
    min_x, min_z, max_x, max_z = params.area.bounds
    placed: list[tuple[float, float]] = []
    crowded = 0

    for _ in range(params.count):
        for _ in range(params.max_attempts):
            x = float(rng.uniform(min_x, max_x))
            z = float(rng.uniform(min_z, max_z))
            if _far_enough(x, z, placed, params):
                break
        else:
            crowded += 1
            logger.debug("No spaced position after %d attempts", params.max_attempts)
        placed.append((x, z))

    return placed, crowded


class Forest:
    """Trees laid out on a rectangle, all attached to one root group."""

    def __init__(self, params: ForestParams, trees: list[Tree], group: SceneNode):
        self.params = params
        self.trees = trees
        self.group = group

    @property
    def positions(self) -> np.ndarray:
        """Base positions of the trees, shape (count, 3)."""
        if not self.trees:
            return np.zeros((0, 3))
        return np.array([tree.position for tree in self.trees])

    @classmethod
    def build(
        cls,
        count: int = 30,
        area_x: tuple[float, float] = (-200.0, 200.0),
        area_z: tuple[float, float] = (-400.0, -200.0),
        base_height: float = -100.0,
        scale_range: tuple[float, float] | float = (0.7, 1.2),
        min_distance: float = 50.0,
        *,
        max_attempts: int = 100,
        spacing: str = "x",
        complex: bool = False,
        kind: str = "trunc",
        dem: str | os.PathLike | None = None,
        rng: RandomSource | int | None = None,
    ) -> Forest:
        """Validates the layout options and builds the forest.

        See `ForestParams` for the meaning of each option.

        Raises
        ------
        InvalidParameterError
            for an invalid configuration, or from any tree body that fails
            to build; no partial forest is returned
        """
        try:
            params = ForestParams(
                count=count,
                area_x=area_x,
                area_z=area_z,
                base_height=base_height,
                scale_range=scale_range,
                min_distance=min_distance,
                max_attempts=max_attempts,
                spacing=spacing,
                complex=complex,
                kind=kind,
                dem=dem,
            )
        except ValidationError as exc:
            raise InvalidParameterError(str(exc)) from exc
        return cls.from_params(params, rng)

    @classmethod
    def from_params(
        cls, params: ForestParams, rng: RandomSource | int | None = None
    ) -> Forest:
        """Builds the forest described by validated parameters."""
        rng = ensure_rng(rng)
        positions, crowded = layout_positions(params, rng)

        if params.dem is not None and positions:
            xs, zs = np.array(positions).T
            ground = np.asarray(get_elevation(params.dem, xs, zs), dtype=float)
        else:
            ground = np.zeros(len(positions))

        group = SceneNode("forest")
        trees = []
        for (x, z), elevation in zip(positions, ground):
            scale = float(rng.uniform(*params.scale_range))
            if params.kind == "box":
                body = BoxTree.build(rng)
            else:
                body = Trunc.build(complex=params.complex, rng=rng)
            tree = Tree(body, (x, params.base_height + elevation, z), scale, rng)
            group.add(tree.group)
            trees.append(tree)

        logger.info(
            "Built forest of %d %s trees (%d placed closer than %.1f)",
            len(trees),
            params.kind,
            crowded,
            params.min_distance,
        )
        return cls(params, trees, group)

    def update(self, delta_time: float, wind_strength: float) -> None:
        """Advances the idle sway of every tree."""
        for tree in self.trees:
            tree.update(delta_time, wind_strength)

    def layout_table(self) -> pd.DataFrame:
        """One row per tree: base position, scale and mesh statistics."""
        records = [
            {
                "kind": self.params.kind,
                "x": tree.position[0],
                "y": tree.position[1],
                "z": tree.position[2],
                "scale": tree.scale,
                **_body_stats(tree.body),
            }
            for tree in self.trees
        ]
        columns = [
            "kind",
            "x",
            "y",
            "z",
            "scale",
            "complex",
            "vertex_count",
            "attachment_count",
        ]
        return pd.DataFrame.from_records(records, columns=columns)


def _body_stats(body: Body) -> dict:
    if isinstance(body, BoxTree):
        return {
            "complex": False,
            "vertex_count": body.vertex_count,
            "attachment_count": 0,
        }
    return {
        "complex": body.params.complex,
        "vertex_count": body.mesh.num_vertices,
        "attachment_count": len(body.attachments),
    }
