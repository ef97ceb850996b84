import numpy as np
import pytest


class MinRandom:
    """Random source that always returns the lower bound of every draw."""

    def uniform(self, low=0.0, high=1.0, size=None):
        if size is None:
            return low
        return np.full(size, low, dtype=float)

    def integers(self, low, high=None, size=None, endpoint=False):
        if high is None:
            low = 0
        if size is None:
            return low
        return np.full(size, low, dtype=np.int64)


class NoDraws:
    """Random source that fails the test if anything is drawn from it."""

    def uniform(self, *args, **kwargs):
        raise AssertionError("unexpected uniform draw")

    def integers(self, *args, **kwargs):
        raise AssertionError("unexpected integer draw")


@pytest.fixture
def min_rng():
    return MinRandom()


@pytest.fixture
def no_draws():
    return NoDraws()
