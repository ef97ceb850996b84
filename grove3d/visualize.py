"""Functions for generating interactive visualizations of generated trees."""

from __future__ import annotations

import k3d
import numpy as np
from ipywidgets import Checkbox, HBox, IntSlider, Layout, VBox, interactive_output

from grove3d.builders.forest import Forest
from grove3d.builders.trunc import Trunc
from grove3d.models.scene import SceneNode, batch_by_color

GROUND_COLOR = 0x8B4513


def _add_meshes(plot: k3d.Plot, root: SceneNode) -> dict[int, k3d.objects.Mesh]:
    """Adds one k3d mesh per color found under `root` and returns them."""
    meshes = {}
    for color, (vertices, indices) in batch_by_color(root).items():
        mesh = k3d.mesh(
            vertices=vertices,
            indices=indices,
            color=color,
            flat_shading=True,
            wireframe=False,
            opacity=1.0,
        )
        plot += mesh
        meshes[color] = mesh
    return meshes


def plot_forest(forest: Forest, show_ground: bool = True) -> k3d.Plot:
    """Plots an interactive 3D view of a forest.

    Meshes are batched by color to keep the number of k3d objects small.

    Parameters
    -----------
    forest (Forest): a built forest
    show_ground (bool): draw a flat surface at the forest's base height,
        spanning its sampling area
    """
    plot = k3d.plot(grid_visible=False, height=700)

    if show_ground:
        params = forest.params
        flat = np.full((50, 50), float(params.base_height), dtype=np.float32)
        ground = k3d.surface(
            flat,
            xmin=float(params.area_x[0]),
            xmax=float(params.area_x[1]),
            ymin=float(params.area_z[0]),
            ymax=float(params.area_z[1]),
            color=GROUND_COLOR,
            opacity=0.6,
            wireframe=False,
        )
        # k3d surfaces lie in the XY plane; turn it onto the Y-up ground
        ground.model_matrix = np.array(
            (
                (1.0, 0.0, 0.0, 0.0),
                (0.0, 0.0, 1.0, 0.0),
                (0.0, 1.0, 0.0, 0.0),
                (0.0, 0.0, 0.0, 1.0),
            ),
            dtype=np.float32,
        )
        plot += ground

    _add_meshes(plot, forest.group)
    return plot


def plot_single_tree_interactive(seed: int = 0, complex: bool = False) -> VBox:
    """Plots one trunk with k3d, regenerated from a seed slider."""
    seed_slider = IntSlider(value=seed, min=0, max=1000, step=1, description="seed")
    complex_box = Checkbox(value=complex, description="complex")
    controls = {"seed": seed_slider, "complex": complex_box}

    plot = k3d.plot(grid_visible=False, height=600)
    plot.layout = Layout(
        width="100%",
        min_width="0px",
        height="600px",
        flex="1 1 auto",
    )

    def update(seed, complex):
        trunc = Trunc.build(complex=complex, rng=seed)
        with plot.hold_sync():
            for obj in list(plot.objects):
                plot -= obj
            _add_meshes(plot, trunc.node)

    out = interactive_output(update, controls)
    out.layout.display = "none"  # keep it alive, but don’t show an empty output area

    update(**{k: w.value for k, w in controls.items()})

    return VBox(
        [
            HBox(
                [VBox([seed_slider, complex_box]), plot],
                layout=Layout(
                    width="100%",
                    display="flex",
                    align_items="stretch",
                    justify_content="space-between",
                    gap="12px",
                ),
            ),
            out,
        ],
        layout=Layout(width="100%"),
    )
