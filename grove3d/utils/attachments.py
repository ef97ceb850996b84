"""Choosing the vertices where branches, leaves and fruit are attached."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Literal, get_args

import numpy as np

from grove3d.errors import InvalidParameterError
from grove3d.models.params import AttachmentPoint, AttachmentSpec
from grove3d.models.scene import Mesh
from grove3d.utils.geometry import height_fractions
from grove3d.utils.rng import RandomSource

logger = logging.getLogger(__name__)

Strategy = Literal["pool", "rejection"]


def _band_pool(fractions: np.ndarray, spec: AttachmentSpec) -> np.ndarray:
    """Indices of vertices whose height fraction lies inside the band of `spec`."""
    in_band = (fractions >= spec.min_height_fraction) & (
        fractions <= spec.max_height_fraction
    )
    return np.flatnonzero(in_band)


def _draw_from_pool(
    pool: np.ndarray, count: int, rng: RandomSource
) -> list[int]:
    return [int(pool[int(rng.integers(0, len(pool)))]) for _ in range(count)]


def _draw_by_rejection(
    fractions: np.ndarray,
    spec: AttachmentSpec,
    rng: RandomSource,
    max_draws: int,
) -> list[int]:
    """Draws over the whole vertex set until an in-band vertex turns up.

    After `max_draws` misses the last draw is kept, so the result can fall
    outside the band on meshes where the band holds few vertices.
    """
    chosen = []
    for _ in range(spec.count):
        index = int(rng.integers(0, len(fractions)))
        for _ in range(max_draws - 1):
            if spec.min_height_fraction <= fractions[index] <= spec.max_height_fraction:
                break
            index = int(rng.integers(0, len(fractions)))
        chosen.append(index)
    return chosen


def plan_attachments(
    mesh: Mesh,
    specs: Iterable[AttachmentSpec],
    rng: RandomSource,
    strategy: Strategy = "pool",
    max_draws: int = 100,
) -> list[AttachmentPoint]:
    """Resolves attachment specs into vertex indices of `mesh`.

    Parameters
    ----------
    mesh : Mesh
        parent mesh, usually a trunk standing on y=0
    specs : iterable of AttachmentSpec
        what to attach, how many, and in which height band
    rng : RandomSource
        random source for the vertex draws
    strategy : "pool" or "rejection"
        "pool" precomputes the in-band vertices of each spec and samples them
        uniformly (an empty band falls back to every vertex); "rejection"
        samples all vertices and keeps in-band ones, giving up after
        `max_draws` draws per point
    max_draws : int
        number of draws allowed per point for the "rejection" strategy

    Returns
    -------
    points : list of AttachmentPoint
        one per requested unit, in the order of the specs; empty for a mesh without
        vertices

    Raises
    ------
    InvalidParameterError
        for an unknown `strategy`, whatever the specs and mesh
    """
    if strategy not in get_args(Strategy):
        raise InvalidParameterError(f"unknown attachment strategy: {strategy!r}")

    specs = list(specs)
    if mesh.num_vertices == 0:
        logger.debug("Mesh has no vertices; skipping %d attachment specs", len(specs))
        return []

    fractions = height_fractions(mesh.positions)
    all_vertices = np.arange(mesh.num_vertices)
    points: list[AttachmentPoint] = []

    for spec in specs:
        if spec.count == 0:
            continue
        if strategy == "pool":
            pool = _band_pool(fractions, spec)
            if pool.size == 0:
                logger.debug(
                    "No vertex in band [%.2f, %.2f] for %s; using all vertices",
                    spec.min_height_fraction,
                    spec.max_height_fraction,
                    spec.kind.value,
                )
                pool = all_vertices
            indices = _draw_from_pool(pool, spec.count, rng)
        else:
            indices = _draw_by_rejection(fractions, spec, rng, max_draws)

        points.extend(AttachmentPoint(vertex_index=i, kind=spec.kind) for i in indices)

    return points
