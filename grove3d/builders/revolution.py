"""Builders turning profile curves into meshes."""

from __future__ import annotations

import logging

from grove3d.models.profile import ProfileCurve
from grove3d.models.scene import Material, Mesh
from grove3d.utils.checks import check_profile, require_count, require_positive
from grove3d.utils.geometry import revolve, trunk_profile

logger = logging.getLogger(__name__)


def build_revolution(
    profile: ProfileCurve, radial_segments: int, material: Material
) -> Mesh:
    """Revolves `profile` around the vertical axis into a closed mesh.

    Raises InvalidParameterError before allocating anything if the profile
    or the resolution is invalid.
    """
    check_profile(profile, radial_segments)
    positions, faces = revolve(profile, int(radial_segments))
    return Mesh(positions, faces, material)


def build_trunk_mesh(
    height: float,
    start_radius: float,
    vertical_segments: int,
    radial_segments: int,
    angle_start: float,
    amplitude: float,
    material: Material,
) -> tuple[ProfileCurve, Mesh]:
    """Builds the revolved shell of a trunk standing on the origin.

    Returns
    -------
    profile, mesh : ProfileCurve, Mesh
        the profile is returned so callers can recover per-ring radii; the
        mesh has `radial_segments * (vertical_segments + 2) + 2` vertices
    """
    require_positive(height=height, start_radius=start_radius)
    require_count("vertical_segments", vertical_segments, 1)
    require_count("radial_segments", radial_segments, 3)

    profile = trunk_profile(
        height=height,
        start_radius=start_radius,
        vertical_segments=int(vertical_segments),
        angle_start=angle_start,
        amplitude=amplitude,
    )
    mesh = build_revolution(profile, radial_segments, material)
    logger.debug(
        "Trunk mesh: height=%.2f, %d rings x %d segments",
        height,
        len(profile),
        radial_segments,
    )
    return profile, mesh
