import math

import numpy as np
import pytest
import rasterio
from jax.experimental import checkify
from rasterio.transform import from_origin

from grove3d.builders.revolution import build_revolution, build_trunk_mesh
from grove3d.errors import InvalidParameterError
from grove3d.models.profile import ProfileCurve
from grove3d.models.scene import Material
from grove3d.utils.checks import check_profile, profile_checked
from grove3d.utils.geometry import (
    UP,
    align_up_to,
    euler_matrix,
    get_elevation,
    height_fractions,
    sphere_profile,
    trunk_profile,
)

MATERIAL = Material(0x444444)
CYLINDER = ProfileCurve(
    radii=np.array((0.0, 1.0, 1.0, 1.0, 0.0)),
    heights=np.array((0.0, 1.0, 2.0, 3.0, 4.0)),
)


def _ring_radii(positions, ring, radial_segments):
    ring_points = positions[ring * radial_segments : (ring + 1) * radial_segments]
    return np.hypot(ring_points[:, 0], ring_points[:, 2])


@pytest.mark.parametrize("radial_segments", [3, 6, 10])
def test_revolution_vertex_and_face_counts(radial_segments):
    mesh = build_revolution(CYLINDER, radial_segments, MATERIAL)
    assert mesh.num_vertices == len(CYLINDER) * radial_segments + 2
    assert mesh.faces.shape == (2 * len(CYLINDER) * radial_segments, 3)
    assert mesh.normals.shape == mesh.positions.shape


def test_revolution_rings_follow_profile():
    radial_segments = 7
    profile = ProfileCurve.from_points([(0, 0), (2, 1), (3, 2), (1.5, 4), (0, 5)])
    mesh = build_revolution(profile, radial_segments, MATERIAL)

    for ring, (radius, height) in enumerate(zip(profile.radii, profile.heights)):
        assert np.allclose(
            _ring_radii(mesh.positions, ring, radial_segments), radius, atol=1e-5
        )
        ring_points = mesh.positions[
            ring * radial_segments : (ring + 1) * radial_segments
        ]
        assert np.allclose(ring_points[:, 1], height, atol=1e-5)


def test_revolution_poles_close_the_surface():
    mesh = build_revolution(CYLINDER, 5, MATERIAL)
    assert np.allclose(mesh.positions[-2], (0, 0, 0))
    assert np.allclose(mesh.positions[-1], (0, 4, 0))


def test_revolution_normals_face_outward():
    radial_segments = 8
    mesh = build_revolution(CYLINDER, radial_segments, MATERIAL)

    middle = slice(2 * radial_segments, 3 * radial_segments)
    radial = mesh.positions[middle] * np.array((1.0, 0.0, 1.0))
    dots = np.sum(mesh.normals[middle] * radial, axis=1)
    assert np.all(dots > 0)
    assert np.allclose(np.linalg.norm(mesh.normals, axis=1), 1.0, atol=1e-4)


def test_trunk_profile_shape():
    profile = trunk_profile(
        height=10, start_radius=1, vertical_segments=4, angle_start=math.pi / 4,
        amplitude=0.5,
    )
    radii = np.asarray(profile.radii)
    heights = np.asarray(profile.heights)

    assert len(profile) == 6
    assert radii[0] == 0 and radii[-1] == 0
    assert heights[0] == 0 and heights[-1] == 10
    assert np.all(np.diff(heights) > 0)
    assert radii[1] == pytest.approx(math.sin(math.pi / 4) * 0.5 + 1, rel=1e-4)


def test_trunk_profile_replaces_negative_radii():
    profile = trunk_profile(
        height=10, start_radius=1, vertical_segments=4, angle_start=math.pi / 2,
        amplitude=-5,
    )
    radii = np.asarray(profile.radii)
    assert np.all(radii >= 0)
    # first shape point: sin(pi/2) * -5 + 1 < 0, so the linear taper is used
    assert radii[1] == pytest.approx(1 * (1 - 1 / 5), rel=1e-4)


def test_trunk_mesh_vertex_count():
    profile, mesh = build_trunk_mesh(
        height=10,
        start_radius=1,
        vertical_segments=4,
        radial_segments=6,
        angle_start=math.pi / 4,
        amplitude=0.5,
        material=MATERIAL,
    )
    assert len(profile) == 6
    assert mesh.num_vertices == 6 * (4 + 2) + 2
    assert np.isclose(mesh.positions[:, 1].max(), 10)


@pytest.mark.parametrize(
    "bad",
    [
        {"vertical_segments": 0},
        {"radial_segments": 2},
        {"height": 0},
        {"start_radius": -1},
        {"height": float("nan")},
        {"vertical_segments": None},
        {"vertical_segments": float("nan")},
        {"vertical_segments": 2.5},
        {"radial_segments": float("inf")},
    ],
)
def test_trunk_mesh_rejects_invalid_parameters(bad):
    values = dict(
        height=10,
        start_radius=1,
        vertical_segments=4,
        radial_segments=6,
        angle_start=math.pi / 4,
        amplitude=0.5,
        material=MATERIAL,
    ) | bad
    with pytest.raises(InvalidParameterError):
        build_trunk_mesh(**values)


@pytest.mark.parametrize(
    "profile, match",
    [
        (ProfileCurve(radii=np.array([]), heights=np.array([])), "at least 2"),
        (ProfileCurve.from_points([(1, 0)]), "at least 2"),
        (ProfileCurve(radii=np.ones(3), heights=np.ones(2)), "equal length"),
        (ProfileCurve.from_points([(1, 0), (1, 2), (1, 1)]), "strictly increasing"),
        (ProfileCurve.from_points([(1, 0), (-1, 1)]), ">= 0"),
        (ProfileCurve.from_points([(1, 0), (np.nan, 1)]), "finite"),
    ],
)
def test_check_profile_rejects_bad_profiles(profile, match):
    with pytest.raises(InvalidParameterError, match=match):
        check_profile(profile, 6)


def test_check_profile_accepts_valid_profile():
    check_profile(CYLINDER, 3)
    err, radii = profile_checked(CYLINDER)
    assert err.get() is None
    assert np.allclose(radii, CYLINDER.radii)


def test_profile_checks_are_traced_once_per_length(monkeypatch):
    """Profiles of an already seen length reuse the compiled checks."""
    rng = np.random.default_rng(0)

    def random_profile():
        return ProfileCurve(
            radii=rng.uniform(0.5, 2.0, size=7),
            heights=np.cumsum(rng.uniform(0.5, 1.5, size=7)),
        )

    check_profile(random_profile(), 6)

    traced = []
    original_check = checkify.check

    def counting_check(*args, **kwargs):
        traced.append(args[1])
        return original_check(*args, **kwargs)

    monkeypatch.setattr(checkify, "check", counting_check)
    for _ in range(5):
        check_profile(random_profile(), 6)
    assert traced == []

    # an unseen length is traced once
    tall = ProfileCurve(radii=np.ones(23), heights=np.arange(23.0))
    check_profile(tall, 6)
    assert "profile heights must be strictly increasing." in traced


def test_sphere_profile_is_closed():
    profile = sphere_profile(2.0, 4)
    assert len(profile) == 5
    assert profile.radii[0] == 0 and profile.radii[-1] == 0
    assert profile.heights[0] == 0
    assert profile.heights[-1] == pytest.approx(4.0)


def test_height_fractions():
    positions = np.array([[0, 2, 0], [0, 4, 0], [0, 6, 0]], dtype=float)
    assert np.allclose(height_fractions(positions), (0, 0.5, 1))
    assert np.allclose(height_fractions(np.zeros((3, 3))), 0)


@pytest.mark.parametrize(
    "direction", [(1, 0, 0), (0, 0, -3), (1, 2, 3), (0, 1, 0), (0.1, -1, 0)]
)
def test_align_up_to_maps_up_onto_direction(direction):
    rotation = align_up_to(direction)
    expected = np.asarray(direction, dtype=float) / np.linalg.norm(direction)
    assert np.allclose(rotation @ UP, expected)
    assert np.allclose(rotation @ rotation.T, np.eye(3))
    assert np.isclose(np.linalg.det(rotation), 1.0)


def test_align_up_to_antiparallel_and_zero():
    assert np.allclose(align_up_to((0, -1, 0)) @ UP, (0, -1, 0))
    assert np.allclose(align_up_to((0, 0, 0)), np.eye(3))


def test_euler_matrix_is_rotation():
    rotation = euler_matrix(0.3, -0.2, 1.1)
    assert np.allclose(rotation @ rotation.T, np.eye(3))
    assert np.allclose(euler_matrix(0, 0, 0), np.eye(3))


@pytest.fixture
def dem_path(tmp_path):
    """10 x 50 raster covering x in [-250, 250], y in [-50, 50]; value = column."""
    path = tmp_path / "dem.tif"
    data = np.tile(np.arange(50, dtype=np.float32), (10, 1))
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=10,
        width=50,
        count=1,
        dtype="float32",
        transform=from_origin(-250, 50, 10, 10),
    ) as dst:
        dst.write(data, 1)
    return path


def test_get_elevation_scalar_and_array(dem_path):
    assert get_elevation(dem_path, 5.0, 0.0) == 25
    elevations = get_elevation(dem_path, np.array((-245.0, 245.0)), np.array((0, 0)))
    assert np.allclose(elevations, (0, 49))


def test_get_elevation_outside_raster(dem_path):
    with pytest.raises(IndexError):
        get_elevation(dem_path, 1000.0, 0.0)


def test_get_elevation_shape_mismatch(dem_path):
    with pytest.raises(ValueError, match="mismatch"):
        get_elevation(dem_path, np.zeros(2), np.zeros(3))
