import numpy as np
import pytest

from grove3d.builders.revolution import build_revolution
from grove3d.errors import InvalidParameterError
from grove3d.models.profile import ProfileCurve
from grove3d.models.scene import Material, Mesh
from grove3d.utils.noise import apply_noise

PROFILE = ProfileCurve.from_points([(0, 0), (2, 1), (2, 3), (1, 5), (0, 6)])


@pytest.fixture
def mesh():
    return build_revolution(PROFILE, 6, Material(0x444444))


def test_zero_intensity_is_a_no_op(mesh, no_draws):
    before = mesh.positions.copy()
    assert apply_noise(mesh, 0.0, no_draws) is mesh
    assert np.array_equal(mesh.positions, before)


def test_offsets_stay_within_half_intensity(mesh):
    before = mesh.positions.copy()
    apply_noise(mesh, 2.0, np.random.default_rng(0))

    delta = mesh.positions - before
    assert np.all(np.abs(delta) <= 1.0)
    assert not np.allclose(delta, 0)


def test_noise_keeps_topology_and_refreshes_normals(mesh):
    faces = mesh.faces.copy()
    normals = mesh.normals.copy()
    apply_noise(mesh, 0.5, np.random.default_rng(1))

    assert np.array_equal(mesh.faces, faces)
    assert mesh.positions.shape == (6 * len(PROFILE) + 2, 3)
    assert not np.allclose(mesh.normals, normals)


def test_noise_with_lower_bound_draws_shifts_uniformly(mesh, min_rng):
    before = mesh.positions.copy()
    apply_noise(mesh, 1.0, min_rng)
    assert np.allclose(mesh.positions - before, -0.5)


def test_empty_mesh_is_left_alone(no_draws):
    empty = Mesh(np.zeros((0, 3)), np.zeros((0, 3), dtype=int), Material(0))
    assert apply_noise(empty, 1.0, no_draws).num_vertices == 0


@pytest.mark.parametrize("intensity", [-0.1, float("nan"), float("inf")])
def test_invalid_intensity_raises(mesh, intensity):
    with pytest.raises(InvalidParameterError):
        apply_noise(mesh, intensity, np.random.default_rng(0))
