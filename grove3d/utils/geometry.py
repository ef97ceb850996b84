"""Functions for building revolved surfaces, normals and transforms."""

from __future__ import annotations

import os

import jax
import jax.numpy as jnp
import numpy as np
import rasterio
from jax import Array
from jax.typing import ArrayLike
from rasterio.transform import rowcol
from shapely.geometry import Polygon, box

from grove3d.models.profile import ProfileCurve

_EPS = 1e-12
UP = np.array((0.0, 1.0, 0.0))


def _arrays_equal_shape(*args: ArrayLike, raise_exc: bool = True) -> bool:
    """Confirms all inputs, when converted to arrays, have equal shape.

    Parameters
    -----------
    args : array-like
        any arguments that can be converted to arrays with np.asanyarray
    raise_exc : boolean
        whether to raise a ValueError exception

    Returns:
    --------
    result : bool
        whether or not all args have same shape
    """
    shapes = [np.asanyarray(arg).shape for arg in args]
    equal_shapes = all(shape == shapes[0] for shape in shapes)

    if not equal_shapes and raise_exc:
        message = f"Input shapes mismatch: {shapes}"
        raise ValueError(message)

    return equal_shapes


def trunk_profile(
    height: float,
    start_radius: float,
    vertical_segments: int,
    angle_start: float,
    amplitude: float,
) -> ProfileCurve:
    """Builds the bulging profile of a trunk, closed at base and tip.

    Shape point `i` (of `vertical_segments`) has radius
    `sin(angle_start + i * freq) * amplitude + start_radius`, with
    `freq = (pi - angle_start) / vertical_segments`, and sits at height
    `(i + 1) * height / (vertical_segments + 1)`. Negative radii are replaced
    by the straight line running from `start_radius` at the base to 0 at the
    tip.

    Parameters
    ----------
    height : numeric
        height of the tip above the base
    start_radius : numeric
        radius added to every shape point
    vertical_segments : int
        number of shape points between the two apexes
    angle_start : numeric
        phase of the sine shaping function, in radians
    amplitude : numeric
        amplitude of the sine shaping function

    Returns
    -------
    profile : ProfileCurve
        `vertical_segments + 2` points, starting at (0, 0) and ending at
        (0, height)
    """
    steps = jnp.arange(vertical_segments)
    freq = (jnp.pi - angle_start) / vertical_segments
    fractions = (steps + 1) / (vertical_segments + 1)

    radii = jnp.sin(angle_start + steps * freq) * amplitude + start_radius
    fallback = start_radius * (1 - fractions)
    radii = jnp.where(radii < 0, fallback, radii)

    return ProfileCurve(
        radii=np.concatenate(([0.0], np.asarray(radii, dtype=float), [0.0])),
        heights=np.concatenate(
            ([0.0], np.asarray(fractions * height, dtype=float), [float(height)])
        ),
    )


def sphere_profile(radius: float, height_segments: int) -> ProfileCurve:
    """Half-circle profile whose revolution is a sphere resting on y=0."""
    phis = np.linspace(0.0, np.pi, height_segments + 1)
    radii = radius * np.sin(phis)
    radii[[0, -1]] = 0.0
    heights = radius * (1.0 - np.cos(phis))
    return ProfileCurve(radii=radii, heights=heights)


def tapered_profile(
    length: float, top_radius: float, base_ratio: float = 0.7
) -> ProfileCurve:
    """Two-ring profile of a cylinder narrowing towards its base."""
    return ProfileCurve(
        radii=np.array((top_radius * base_ratio, top_radius)),
        heights=np.array((0.0, length)),
    )


def _revolve_points(radii: ArrayLike, heights: ArrayLike, num_theta: int) -> Array:
    """Rotates every profile point around the Y axis in `num_theta` steps.

    Returns
    -------
    points : jax.Array, shape (len(radii) * num_theta, 3)
        ring-major: point `j` of ring `i` is at index `i * num_theta + j`
    """
    radii = jnp.asarray(radii)
    heights = jnp.asarray(heights)
    thetas = jnp.arange(num_theta) * (2 * jnp.pi / num_theta)

    def _ring(theta: Array) -> Array:
        return jnp.stack(
            (radii * jnp.cos(theta), heights, radii * jnp.sin(theta)), axis=-1
        )

    rings = jax.vmap(_ring)(thetas)  # (num_theta, n_points, 3)
    return jnp.transpose(rings, (1, 0, 2)).reshape(-1, 3)


def _grid_triangles(n_rows: int, n_cols: int, wrap_cols: bool) -> np.ndarray:
    """Generates triangles for a grid.

    Args:
        n_rows : int
            The number of rows in the grid.
        n_cols : int
            The number of columns in the grid.
        wrap_cols : bool
            Whether the last column connects back to the first one.

    Returns:
        np.ndarray of shape (2 * (n_rows - 1) * n_cols, 3) when wrapping
    """
    # vertex ids laid out like the grid
    vid = np.arange(n_rows * n_cols, dtype=np.int64).reshape(n_rows, n_cols)

    if wrap_cols:
        v00 = vid[:-1, :]  # (r, c)
        v10 = vid[1:, :]  # (r+1, c)
        v01 = np.roll(vid[:-1, :], -1, axis=1)  # (r, c+1 mod n_cols)
        v11 = np.roll(vid[1:, :], -1, axis=1)  # (r+1, c+1 mod n_cols)
    else:
        v00 = vid[:-1, :-1]
        v10 = vid[1:, :-1]
        v01 = vid[:-1, 1:]
        v11 = vid[1:, 1:]

    # two triangles per quad: (v00, v10, v01) and (v01, v10, v11)
    t1 = np.stack([v00, v10, v01], axis=-1).reshape(-1, 3)
    t2 = np.stack([v01, v10, v11], axis=-1).reshape(-1, 3)
    return np.vstack([t1, t2])


def _revolution_triangles(n_rings: int, n_theta: int) -> np.ndarray:
    """Side quads between rings plus the two pole fans, wound outward."""
    sides = _grid_triangles(n_rings, n_theta, wrap_cols=True)

    ring = np.arange(n_theta)
    ring_next = np.roll(ring, -1)
    bottom_pole = n_rings * n_theta
    top_pole = bottom_pole + 1
    top_ring = (n_rings - 1) * n_theta

    bottom = np.column_stack((np.full(n_theta, bottom_pole), ring, ring_next))
    top = np.column_stack(
        (np.full(n_theta, top_pole), top_ring + ring_next, top_ring + ring)
    )
    return np.vstack((sides, bottom, top)).astype(np.int64)


def revolve(profile: ProfileCurve, radial_segments: int) -> tuple[np.ndarray, np.ndarray]:
    """Builds the surface of revolution of a profile.

    Inputs are not validated here; see `grove3d.utils.checks.check_profile`.

    Parameters
    ----------
    profile : ProfileCurve
        (radius, height) points ordered bottom to top
    radial_segments : int
        number of vertices per ring

    Returns
    -------
    positions : numpy.ndarray, shape (len(profile) * radial_segments + 2, 3)
        one ring per profile point, then the bottom and top pole vertices
    faces : numpy.ndarray, shape (2 * len(profile) * radial_segments, 3)
        triangles whose normals face away from the axis
    """
    heights = np.asarray(profile.heights, dtype=float)
    rings = np.asarray(
        _revolve_points(profile.radii, profile.heights, radial_segments), dtype=float
    )
    poles = np.array(((0.0, heights[0], 0.0), (0.0, heights[-1], 0.0)))
    positions = np.vstack((rings, poles))
    faces = _revolution_triangles(len(profile), radial_segments)
    return positions, faces


def vertex_normals(positions: ArrayLike, faces: ArrayLike) -> Array:
    """Area-weighted unit vertex normals.

    Vertices touching only degenerate triangles (e.g. the poles of a profile
    closed at radius 0) point away from the centroid of the mesh instead.

    Returns
    -------
    normals : jax.Array, shape (N, 3)
    """
    points = jnp.asarray(positions)
    tris = jnp.asarray(faces).reshape(-1, 3)

    corners = points[tris]
    face_normals = jnp.cross(
        corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0]
    )
    summed = (
        jnp.zeros_like(points)
        .at[tris.reshape(-1)]
        .add(jnp.repeat(face_normals, 3, axis=0))
    )
    lengths = jnp.linalg.norm(summed, axis=1, keepdims=True)

    away = points - points.mean(axis=0)
    away_lengths = jnp.linalg.norm(away, axis=1, keepdims=True)
    fallback = jnp.where(
        away_lengths > _EPS,
        away / jnp.where(away_lengths > _EPS, away_lengths, 1.0),
        jnp.asarray(UP, dtype=points.dtype),
    )
    return jnp.where(
        lengths > _EPS, summed / jnp.where(lengths > _EPS, lengths, 1.0), fallback
    )


def height_fractions(positions: np.ndarray) -> np.ndarray:
    """Normalized vertex heights, 0 at the lowest vertex and 1 at the highest."""
    ys = np.asarray(positions)[:, 1]
    if ys.size == 0:
        return ys
    span = ys.max() - ys.min()
    if span <= 0:
        return np.zeros_like(ys)
    return (ys - ys.min()) / span


def rotation_x(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array(((1.0, 0.0, 0.0), (0.0, c, -s), (0.0, s, c)))


def rotation_y(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array(((c, 0.0, s), (0.0, 1.0, 0.0), (-s, 0.0, c)))


def rotation_z(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array(((c, -s, 0.0), (s, c, 0.0), (0.0, 0.0, 1.0)))


def euler_matrix(x: float, y: float, z: float) -> np.ndarray:
    """Rotation matrix for intrinsic XYZ Euler angles, in radians."""
    return rotation_x(x) @ rotation_y(y) @ rotation_z(z)


def align_up_to(direction: ArrayLike) -> np.ndarray:
    """Rotation matrix taking the local +Y axis onto `direction`.

    Parameters
    ----------
    direction : array with shape (3,)
        target direction, need not be normalized

    Returns
    -------
    rotation : numpy.ndarray, shape (3, 3)
        identity for a zero-length direction
    """
    direction = np.asarray(direction, dtype=float)
    length = np.linalg.norm(direction)
    if length < _EPS:
        return np.eye(3)
    direction = direction / length

    cos_angle = float(np.dot(UP, direction))
    if cos_angle < -1.0 + 1e-9:
        # antiparallel: half turn about X
        return rotation_x(np.pi)

    axis = np.cross(UP, direction)
    skew = np.array(
        (
            (0.0, -axis[2], axis[1]),
            (axis[2], 0.0, -axis[0]),
            (-axis[1], axis[0], 0.0),
        )
    )
    return np.eye(3) + skew + skew @ skew / (1.0 + cos_angle)


def area_polygon(
    area_x: tuple[float, float], area_z: tuple[float, float]
) -> Polygon:
    """Rectangle on the ground plane, in (x, z) coordinates."""
    return box(area_x[0], area_z[0], area_x[1], area_z[1])


def get_elevation(
    dem: str | os.PathLike, x: float | np.ndarray, y: float | np.ndarray
) -> float | np.ndarray:
    """Calculates elevations from a DEM at specified (x, y) coordinates.

    Parameters
    ----------
    dem : string, path to file
        A digital elevation model in a format that can be read by rasterio.
    x : numeric, or numpy array of numeric values
        x-coordinate(s) of points to query
    y : numeric, or numpy array of numeric values
        y-coordinate(s) of points to query

    Returns:
    --------
    elev : numeric or numpy array
        elevation at specified (x, y) coordinates
    """
    x, y = np.asanyarray(x, dtype=float), np.asanyarray(y, dtype=float)
    # check that inputs are equal shape
    _arrays_equal_shape(x, y)

    with rasterio.open(dem) as src:
        BAND_ONE = 1
        terrain = src.read(BAND_ONE)
        bounds = src.bounds
        rows, cols = rowcol(
            src.transform, np.atleast_1d(x), np.atleast_1d(y)
        )

    rows = np.asarray(rows)
    cols = np.asarray(cols)
    n_rows, n_cols = terrain.shape
    # numpy would silently wrap negative indices
    outside = (rows < 0) | (rows >= n_rows) | (cols < 0) | (cols >= n_cols)
    if np.any(outside):
        error_msg = f"""
        (x,y) location outside bounds of elevation raster:
        {bounds}"""
        raise IndexError(error_msg)

    elev = terrain[rows, cols]
    if x.ndim == 0:
        return float(elev[0])
    return elev.reshape(x.shape)
