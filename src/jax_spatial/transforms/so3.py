"""so(3) helpers in JAX used by the quaternion rate equations."""

import jax
import jax.numpy as jnp

Array = jax.Array


def skew_symmetric(v: Array) -> Array:
    """
    Convert 3D vector(s) to the cross-product matrix [v]x.

    Args:
        v: (..., 3) vector

    Returns:
        (..., 3, 3) skew-symmetric matrix with [v]x @ u == cross(v, u)
    """
    v = jnp.asarray(v, dtype=float)
    x, y, z = v[..., 0], v[..., 1], v[..., 2]
    zeros = jnp.zeros_like(x)

    return jnp.stack([
        jnp.stack([zeros, -z, y], axis=-1),
        jnp.stack([z, zeros, -x], axis=-1),
        jnp.stack([-y, x, zeros], axis=-1),
    ], axis=-2)


def vex(S: Array) -> Array:
    """Inverse of :func:`skew_symmetric` for (..., 3, 3) skew-symmetric input."""
    return jnp.stack([S[..., 2, 1], S[..., 0, 2], S[..., 1, 0]], axis=-1)
