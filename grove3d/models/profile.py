from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from jax import tree_util
from jax.typing import ArrayLike


@tree_util.register_dataclass
@dataclass(frozen=True)
class ProfileCurve:
    """A 2D (radius, height) profile revolved around the vertical axis.

    Points are ordered bottom to top. Heights must be strictly increasing and
    radii non-negative; a radius of 0 at either end closes the revolved
    surface at that end (a trunk's base and tip).

    The container is PyTree-friendly so profiles can be stacked and passed to
    `vmap`/`jit` workflows. Fields may be lists, NumPy arrays or JAX arrays;
    they are converted with `jnp.asarray()` inside the revolution code.
    Use `grove3d.utils.checks.check_profile` to validate values.
    """

    radii: ArrayLike
    heights: ArrayLike

    def __len__(self) -> int:
        return int(np.shape(self.radii)[0])

    @property
    def height(self) -> float:
        """Height of the last profile point."""
        return float(np.asarray(self.heights)[-1])

    @classmethod
    def from_points(cls, points) -> ProfileCurve:
        """Builds a profile from a sequence of (radius, height) pairs."""
        arr = np.asarray(points, dtype=float).reshape(-1, 2)
        return cls(radii=arr[:, 0], heights=arr[:, 1])
