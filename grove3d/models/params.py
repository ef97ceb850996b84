from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from shapely.geometry import Polygon

from grove3d.utils import colors
from grove3d.utils.geometry import area_polygon
from grove3d.utils.rng import RandomSource, pick, randint


class AttachmentKind(str, Enum):
    """What gets attached at a chosen trunk vertex."""

    ELBOW_BRANCH = "elbow_branch"
    BRANCH = "branch"
    LEAF = "leaf"
    FRUIT = "fruit"


class AttachmentSpec(BaseModel):
    """Request for `count` attachments of one kind inside a height band.

    Attributes:
    -----------
    kind : AttachmentKind
        what to attach
    count : int
        how many attachment points to resolve
    min_height_fraction, max_height_fraction : numeric
        band of normalized height, 0 at the lowest vertex of the parent mesh
        and 1 at its highest
    """

    model_config = ConfigDict(frozen=True)

    kind: AttachmentKind
    count: int = Field(ge=0)
    min_height_fraction: float = Field(default=0.0, ge=0, le=1)
    max_height_fraction: float = Field(default=1.0, ge=0, le=1)

    @model_validator(mode="after")
    def band_is_ordered(self):
        """Rejects bands whose lower bound sits above the upper bound."""
        if self.min_height_fraction > self.max_height_fraction:
            raise ValueError(
                "min_height_fraction must not exceed max_height_fraction "
                f"({self.min_height_fraction} > {self.max_height_fraction})"
            )
        return self


@dataclass(frozen=True)
class AttachmentPoint:
    """A resolved attachment: a vertex of the parent mesh and what goes there."""

    vertex_index: int
    kind: AttachmentKind


def _band(kind: AttachmentKind, count: int, low: float, high: float) -> AttachmentSpec:
    return AttachmentSpec(
        kind=kind, count=count, min_height_fraction=low, max_height_fraction=high
    )


COMPLEX_ATTACHMENTS = (
    _band(AttachmentKind.ELBOW_BRANCH, 5, 0.75, 0.95),
    _band(AttachmentKind.BRANCH, 1, 0.45, 0.75),
    _band(AttachmentKind.LEAF, 5, 0.30, 0.90),
    _band(AttachmentKind.FRUIT, 4, 0.30, 0.80),
)

SIMPLE_ATTACHMENTS = (
    _band(AttachmentKind.ELBOW_BRANCH, 1, 0.75, 0.90),
    _band(AttachmentKind.BRANCH, 1, 0.45, 0.70),
    _band(AttachmentKind.FRUIT, 2, 0.30, 0.80),
)


class TrunkParams(BaseModel):
    """Numeric parameters of one trunk.

    Attributes:
    -----------
    complex : bool
        complex trunks are taller, finer and carry more attachments
    height : numeric
        height of the trunk tip above its base
    start_radius : numeric
        base radius added to the sine-shaped bulge
    vertical_segments : int
        number of profile rings between base and tip
    radial_segments : int
        number of vertices per ring
    angle_start : numeric
        phase of the bulge, in radians
    amplitude : numeric
        amplitude of the bulge
    noise : numeric
        surface noise intensity applied after attachment
    scale : numeric
        factor the linear dimensions above were scaled by; elbow branch
        thickness uses it to stay proportional to the trunk
    color : int
        hex color of the trunk and its branches
    foliage_palette : tuple of int
        hex colors for foliage carried by branches
    """

    model_config = ConfigDict(frozen=True)

    complex: bool = False
    height: float = Field(gt=0)
    start_radius: float = Field(gt=0)
    vertical_segments: int = Field(ge=1)
    radial_segments: int = Field(ge=3)
    angle_start: float = Field(default=math.pi / 4)
    amplitude: float = Field(default=1.0)
    noise: float = Field(default=0.0, ge=0)
    scale: float = Field(default=1.0, gt=0)
    color: int = colors.GREY_D
    foliage_palette: tuple[int, ...] = colors.PINKS

    @classmethod
    def sample(
        cls, complex: bool, rng: RandomSource, scale: float = 1.0
    ) -> TrunkParams:
        """Draws trunk parameters; complex trunks fix height, radius and noise."""
        if complex:
            color = colors.GREY_D
            height = 100.0
            start_radius = 4.0
            vertical_segments = randint(rng, 9, 12)
            radial_segments = randint(rng, 6, 10)
        else:
            color = pick(rng, colors.TRUNC)
            height = float(rng.uniform(70, 100))
            start_radius = float(rng.uniform(2, 4))
            vertical_segments = randint(rng, 3, 5)
            radial_segments = randint(rng, 4, 6)

        angle_start = float(rng.uniform(math.pi / 4, math.pi / 2))
        amplitude = float(rng.uniform(start_radius / 4, start_radius * 6))
        if complex:
            noise = 0.5
            foliage_palette = colors.PINKS
        else:
            noise = float(rng.uniform(start_radius / 8, start_radius / 4))
            foliage_palette = pick(rng, colors.FOLIAGE_PALETTES)

        return cls(
            complex=complex,
            height=height * scale,
            start_radius=start_radius * scale,
            vertical_segments=vertical_segments,
            radial_segments=radial_segments,
            angle_start=angle_start,
            amplitude=amplitude * scale,
            noise=noise * scale,
            scale=scale,
            color=color,
            foliage_palette=foliage_palette,
        )

    @property
    def attachment_specs(self) -> tuple[AttachmentSpec, ...]:
        return COMPLEX_ATTACHMENTS if self.complex else SIMPLE_ATTACHMENTS


class ForestParams(BaseModel):
    """Configuration of a forest layout.

    Attributes:
    -----------
    count : int
        number of trees
    area_x, area_z : (min, max)
        rectangle in which tree bases are sampled
    base_height : numeric
        y-coordinate of every tree base (offset by the DEM if given)
    scale_range : (min, max)
        uniform scale drawn per tree; a single number fixes the scale
    min_distance : numeric
        desired spacing between tree bases
    max_attempts : int
        candidate positions tried per tree before accepting the last one
    spacing : "x" or "planar"
        compare only X coordinates, or full (X, Z) distance
    kind : "trunc" or "box"
        revolved trunks with attachments, or lightweight box trees
    complex : bool
        build complex trunks; ignored for box trees
    dem : path to file, optional
        elevation raster readable by rasterio, sampled at each (x, z)
    """

    model_config = ConfigDict(frozen=True)

    count: int = Field(default=30, ge=0)
    area_x: tuple[float, float] = (-200.0, 200.0)
    area_z: tuple[float, float] = (-400.0, -200.0)
    base_height: float = -100.0
    scale_range: tuple[float, float] = (0.7, 1.2)
    min_distance: float = Field(default=50.0, ge=0)
    max_attempts: int = Field(default=100, ge=1)
    spacing: Literal["x", "planar"] = "x"
    kind: Literal["trunc", "box"] = "trunc"
    complex: bool = False
    dem: Path | None = None

    @model_validator(mode="before")
    @classmethod
    def fixed_scale_to_range(cls, data):
        """Expands a single scale value into a (scale, scale) range."""
        if isinstance(data, dict) and isinstance(data.get("scale_range"), (int, float)):
            data = dict(data)
            data["scale_range"] = (data["scale_range"], data["scale_range"])
        return data

    @model_validator(mode="after")
    def ranges_are_ordered(self):
        """Checks that every (min, max) pair is ordered and scales are positive."""
        for name in ("area_x", "area_z", "scale_range"):
            low, high = getattr(self, name)
            if low > high:
                raise ValueError(f"{name} must be ordered (min, max), got {(low, high)}")
        if self.scale_range[0] <= 0:
            raise ValueError(f"scale_range must be > 0, got {self.scale_range}")
        return self

    @property
    def area(self) -> Polygon:
        """Sampling rectangle in (x, z) ground coordinates."""
        return area_polygon(self.area_x, self.area_z)
