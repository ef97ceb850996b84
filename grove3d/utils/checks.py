"""Fail-fast validation for the revolution and mesh builders.

Profile value checks are written with `checkify` so the same assertions can
be functionalized under `jit`; `check_profile` runs them eagerly and turns a
failure into an `InvalidParameterError`.
"""

from __future__ import annotations

import math

import jax
import jax.numpy as jnp
from jax import Array
from jax.experimental import checkify
from jax.typing import ArrayLike

from grove3d.errors import InvalidParameterError
from grove3d.models.profile import ProfileCurve


def require_positive(**values: float) -> None:
    """Raises InvalidParameterError unless every keyword value is finite and > 0."""
    for name, value in values.items():
        if value is None or not math.isfinite(value) or value <= 0:
            raise InvalidParameterError(f"{name} must be finite and > 0, got {value!r}.")


def require_count(name: str, value: int, minimum: int) -> None:
    """Raises InvalidParameterError unless `value` is an integer >= `minimum`.

    Integral floats such as `4.0` are accepted; `None`, NaN, infinities and
    fractional values are not.
    """
    try:
        integral = int(value) == value
    except (TypeError, ValueError, OverflowError):
        integral = False
    if not integral or value < minimum:
        raise InvalidParameterError(f"{name} must be an integer >= {minimum}, got {value!r}.")


def _profile_checks(radii: ArrayLike, heights: ArrayLike) -> Array:
    radii_array = jnp.asarray(radii)
    heights_array = jnp.asarray(heights)

    checkify.check(
        jnp.all(jnp.isfinite(radii_array)),
        "profile radii must be finite (no NaN/inf).",
    )
    checkify.check(jnp.all(radii_array >= 0), "profile radii must be >= 0.")
    checkify.check(
        jnp.all(jnp.isfinite(heights_array)),
        "profile heights must be finite (no NaN/inf).",
    )
    checkify.check(jnp.all(heights_array >= 0), "profile heights must be >= 0.")
    checkify.check(
        jnp.all(jnp.diff(heights_array) > 0),
        "profile heights must be strictly increasing.",
    )
    return radii_array


# compiled once per profile length and reused by every builder
_checked_profile = jax.jit(
    checkify.checkify(_profile_checks, errors=checkify.user_checks)
)


def profile_checked(profile: ProfileCurve) -> tuple[checkify.Error, Array]:
    """Checks profile values, returning `(err, radii)` instead of raising.

    Intended for `jit` workflows; call `err.throw()` or `err.get()` outside.
    """
    return _checked_profile(
        jnp.asarray(profile.radii, dtype=jnp.float32),
        jnp.asarray(profile.heights, dtype=jnp.float32),
    )


def check_profile(profile: ProfileCurve, radial_segments: int) -> None:
    """Validates a profile and rotational resolution before revolving it.

    Raises
    ------
    InvalidParameterError
        if the profile has fewer than two points, radii are negative or not
        finite, heights are not strictly increasing, or `radial_segments < 3`
    """
    require_count("radial_segments", radial_segments, 3)

    # shapes are static under jax, so the point count is checked eagerly
    if jnp.ndim(profile.radii) != 1 or jnp.shape(profile.radii) != jnp.shape(
        profile.heights
    ):
        raise InvalidParameterError(
            "profile radii and heights must be 1D sequences of equal length."
        )
    if len(profile) < 2:
        raise InvalidParameterError(
            f"profile needs at least 2 points, got {len(profile)}."
        )

    err, _ = profile_checked(profile)
    message = err.get()
    if message is not None:
        raise InvalidParameterError(message)
