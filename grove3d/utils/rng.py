"""The random source threaded through every builder."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, TypeVar

import numpy as np

T = TypeVar("T")


class RandomSource(Protocol):
    """Subset of the `numpy.random.Generator` API used by the builders.

    Any `np.random.Generator` satisfies it; tests substitute stubs with fixed
    outputs.
    """

    def uniform(self, low: float = 0.0, high: float = 1.0, size: Any = None) -> Any:
        ...

    def integers(
        self, low: int, high: int | None = None, size: Any = None, endpoint: bool = False
    ) -> Any:
        ...


def ensure_rng(rng: RandomSource | int | None = None) -> RandomSource:
    """Returns `rng` unchanged, or a numpy Generator seeded from an int / None."""
    if rng is None or isinstance(rng, (int, np.integer)):
        return np.random.default_rng(rng)
    return rng


def randint(rng: RandomSource, low: int, high: int) -> int:
    """Uniform integer in the closed interval [low, high]."""
    return int(rng.integers(low, high, endpoint=True))


def pick(rng: RandomSource, palette: Sequence[T]) -> T:
    """Uniformly picks one item of a non-empty sequence."""
    return palette[int(rng.integers(0, len(palette)))]
