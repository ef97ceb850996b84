import numpy as np
import pytest

from grove3d.builders.branch import BASE_RATIO, RADIAL_SEGMENTS, Branch
from grove3d.builders.foliage import Foliage, sphere_mesh
from grove3d.errors import InvalidParameterError
from grove3d.models.scene import Material
from grove3d.utils import colors


def _ring_radii(positions, ring):
    points = positions[ring * RADIAL_SEGMENTS : (ring + 1) * RADIAL_SEGMENTS]
    return np.hypot(points[:, 0], points[:, 2])


def test_sphere_mesh_is_centred():
    mesh = sphere_mesh(3.0, 8, 6, Material(colors.GREEN_D))
    assert np.isclose(mesh.positions[:, 1].min(), -3.0, atol=1e-5)
    assert np.isclose(mesh.positions[:, 1].max(), 3.0, atol=1e-5)
    assert np.all(np.linalg.norm(mesh.positions, axis=1) <= 3.0 + 1e-5)


def test_simple_foliage_has_no_sub_blobs():
    for seed in range(5):
        foliage = Foliage.build(2.0, colors.RED_D, rng=seed)
        assert foliage.sub_blobs == []
        assert foliage.node.children == []
        assert foliage.mesh.color == colors.RED_D
        assert not foliage.mesh.material.flat_shading


def test_complex_foliage_scatters_three_to_six_sub_blobs():
    counts = set()
    for seed in range(20):
        foliage = Foliage.build(2.0, colors.PINK_L, complex=True, rng=seed)
        assert 3 <= len(foliage.sub_blobs) <= 6
        assert foliage.node.children == foliage.sub_blobs
        assert all(blob.mesh.color in colors.LEAVES for blob in foliage.sub_blobs)
        counts.add(len(foliage.sub_blobs))
    assert len(counts) > 1


def test_complex_foliage_sub_blob_sizes(min_rng):
    foliage = Foliage.build(2.0, colors.PINK_L, complex=True, rng=min_rng)
    assert len(foliage.sub_blobs) == 3
    for blob in foliage.sub_blobs:
        # lower-bound draws give sub-blobs of 0.3 times the base radius
        extent = np.ptp(blob.mesh.positions[:, 1])
        assert extent == pytest.approx(2 * 0.3 * 2.0, abs=1e-5)


def test_simple_foliage_noise_bound(min_rng):
    foliage = Foliage.build(2.0, colors.RED_D, rng=min_rng)
    # lower-bound noise is radius / 20, shifting every vertex by half of it
    assert np.isclose(foliage.mesh.positions[:, 1].max(), 2.0 - 0.05, atol=1e-5)


def test_foliage_rejects_non_positive_radius():
    with pytest.raises(InvalidParameterError):
        Foliage.build(0.0, colors.RED_D, rng=0)


def test_branch_tapers_towards_its_base():
    branch = Branch.build(10.0, 2.0, rng=0)
    positions = branch.mesh.positions

    assert branch.mesh.num_vertices == 2 * RADIAL_SEGMENTS + 2
    assert np.allclose(_ring_radii(positions, 0), 2.0 * BASE_RATIO, atol=1e-5)
    assert np.allclose(_ring_radii(positions, 1), 2.0, atol=1e-5)
    assert np.isclose(positions[:, 1].min(), -5.0, atol=1e-5)
    assert np.isclose(positions[:, 1].max(), 5.0, atol=1e-5)


def test_branch_lies_across_its_parent_axis(min_rng):
    branch = Branch.build(10.0, 2.0, rng=min_rng)
    axis = branch.node.rotation @ np.array((0.0, 1.0, 0.0))
    # pi/2 about X plus a small bend keeps the axis mostly horizontal
    assert abs(axis[1]) < 0.25
    assert branch.mesh.color == colors.GREY_D
    assert branch.foliage == []


def test_complex_branch_carries_foliage_along_its_axis():
    for seed in range(10):
        branch = Branch.build(
            10.0,
            2.0,
            trunk_color=colors.WHITE_D,
            foliage_palette=colors.YELLOWS,
            complex=True,
            rng=seed,
        )
        assert 1 <= len(branch.foliage) <= 3
        assert branch.mesh.color == colors.WHITE_D
        for leaf in branch.foliage:
            assert leaf.color in colors.YELLOWS
            assert 1.0 <= leaf.base_radius <= 2.0
            assert leaf.node.position[0] == 0 and leaf.node.position[2] == 0
            assert -5.0 <= leaf.node.position[1] < 5.0


def test_complex_branch_without_palette_has_no_foliage():
    branch = Branch.build(10.0, 2.0, complex=True, rng=0)
    assert branch.foliage == []


@pytest.mark.parametrize("length, radius", [(0.0, 1.0), (5.0, -1.0)])
def test_branch_rejects_non_positive_dimensions(length, radius):
    with pytest.raises(InvalidParameterError):
        Branch.build(length, radius, rng=0)
