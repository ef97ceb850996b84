"""Minimal scene graph handed to renderers.

Generation code only ever creates meshes and nodes, sets local transforms and
attaches children. Renderers read the result through `SceneNode.walk` or
`batch_by_color`; nothing is read back into generation.

Coordinate convention:
    - Y-up, trees grow along +Y from their origin
    - rotations are 3x3 matrices, applied before translation
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy as np

from grove3d.utils.geometry import vertex_normals


@dataclass(frozen=True)
class Material:
    """Surface description passed through to the renderer."""

    color: int
    roughness: float = 0.8
    metalness: float = 0.1
    flat_shading: bool = True


@dataclass(eq=False)
class Mesh:
    """Triangle mesh with per-vertex normals.

    Attributes:
        positions: vertex positions, shape (N, 3)
        faces: triangle vertex indices, shape (F, 3); read-only after
            construction
        material: surface description
        normals: unit vertex normals, shape (N, 3); recomputed by
            `set_positions`
    """

    positions: np.ndarray
    faces: np.ndarray
    material: Material
    normals: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        self.positions = np.array(self.positions, dtype=float).reshape(-1, 3)
        faces = np.array(self.faces, dtype=np.int64).reshape(-1, 3)
        if faces.size and (faces.min() < 0 or faces.max() >= len(self.positions)):
            raise ValueError("face indices out of range for mesh vertices")
        faces.setflags(write=False)
        self.faces = faces
        self.recompute_normals()

    @property
    def num_vertices(self) -> int:
        return int(self.positions.shape[0])

    @property
    def color(self) -> int:
        return self.material.color

    def recompute_normals(self) -> None:
        if self.num_vertices == 0:
            self.normals = np.zeros((0, 3))
            return
        self.normals = np.array(vertex_normals(self.positions, self.faces), dtype=float)

    def set_positions(self, positions: np.ndarray) -> None:
        """Replaces vertex positions, keeping topology, and refreshes normals."""
        positions = np.array(positions, dtype=float)
        if positions.shape != self.positions.shape:
            raise ValueError(
                f"expected positions of shape {self.positions.shape}, "
                f"got {positions.shape}"
            )
        self.positions = positions
        self.recompute_normals()

    def translate(self, offset) -> None:
        self.set_positions(self.positions + np.asarray(offset, dtype=float))


@dataclass(eq=False)
class SceneNode:
    """A grouping node with an optional mesh and a local transform."""

    name: str
    mesh: Mesh | None = None
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    scale: float = 1.0
    children: list[SceneNode] = field(default_factory=list)

    def __post_init__(self):
        self.position = np.array(self.position, dtype=float).reshape(3)
        self.rotation = np.array(self.rotation, dtype=float).reshape(3, 3)

    def add(self, child: SceneNode) -> SceneNode:
        """Attaches `child` and returns it."""
        self.children.append(child)
        return child

    def local_matrix(self) -> np.ndarray:
        """4x4 matrix of translate * rotate * scale."""
        matrix = np.eye(4)
        matrix[:3, :3] = self.rotation * self.scale
        matrix[:3, 3] = self.position
        return matrix

    def walk(
        self, parent_matrix: np.ndarray | None = None
    ) -> Iterator[tuple[SceneNode, np.ndarray]]:
        """Yields every node of the subtree with its world matrix, depth first."""
        world = self.local_matrix()
        if parent_matrix is not None:
            world = parent_matrix @ world
        yield self, world
        for child in self.children:
            yield from child.walk(world)

    def meshes(self) -> list[Mesh]:
        return [node.mesh for node, _ in self.walk() if node.mesh is not None]


def batch_by_color(root: SceneNode) -> dict[int, tuple[np.ndarray, np.ndarray]]:
    """Merges all meshes under `root` into one world-space mesh per color.

    Returns:
        dict mapping color -> (vertices (N, 3) float32, indices (F, 3) uint32)
    """
    verts_by_color: dict[int, list[np.ndarray]] = {}
    faces_by_color: dict[int, list[np.ndarray]] = {}
    offsets: dict[int, int] = {}

    for node, world in root.walk():
        mesh = node.mesh
        if mesh is None or mesh.num_vertices == 0:
            continue
        color = mesh.color
        homogeneous = np.column_stack([mesh.positions, np.ones(mesh.num_vertices)])
        world_positions = (homogeneous @ world.T)[:, :3]

        offset = offsets.get(color, 0)
        verts_by_color.setdefault(color, []).append(world_positions)
        faces_by_color.setdefault(color, []).append(mesh.faces + offset)
        offsets[color] = offset + mesh.num_vertices

    return {
        color: (
            np.vstack(verts_by_color[color]).astype(np.float32),
            np.vstack(faces_by_color[color]).astype(np.uint32),
        )
        for color in verts_by_color
    }
