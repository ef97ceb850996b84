"""Random per-vertex jitter that breaks the symmetry of revolved meshes."""

from __future__ import annotations

import logging

import numpy as np

from grove3d.errors import InvalidParameterError
from grove3d.models.scene import Mesh
from grove3d.utils.rng import RandomSource

logger = logging.getLogger(__name__)


def apply_noise(mesh: Mesh, intensity: float, rng: RandomSource) -> Mesh:
    """Displaces every vertex by up to `intensity / 2` along each axis.

    Offsets are independent uniform draws in `[-intensity/2, intensity/2]`.
    Normals are recomputed afterwards; faces are left untouched. An
    intensity of 0 changes nothing and consumes no random draws.

    Returns the same (mutated) mesh for chaining.
    """
    if not np.isfinite(intensity) or intensity < 0:
        raise InvalidParameterError(
            f"noise intensity must be finite and >= 0, got {intensity!r}."
        )
    if intensity == 0 or mesh.num_vertices == 0:
        return mesh

    half = intensity / 2
    offsets = np.asarray(
        rng.uniform(-half, half, size=mesh.positions.shape), dtype=float
    )
    mesh.set_positions(mesh.positions + offsets)
    logger.debug("Applied noise %.3f to %d vertices", intensity, mesh.num_vertices)
    return mesh
