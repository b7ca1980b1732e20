"""SO(2) and so(2) operations in JAX.

Planar rotations are represented as (..., 2, 2) orthonormal matrices and their
generators as scalar angles. All functions are pure and batch over leading
dimensions.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def rot2(theta: Array) -> Array:
    """
    Rotation matrix for a planar angle.

    Args:
        theta: (...,) array of angles in radians

    Returns:
        (..., 2, 2) array of rotation matrices
    """
    theta = jnp.asarray(theta, dtype=float)
    c, s = jnp.cos(theta), jnp.sin(theta)
    return jnp.stack([
        jnp.stack([c, -s], axis=-1),
        jnp.stack([s, c], axis=-1),
    ], axis=-2)


def skew2(omega: Array) -> Array:
    """
    so(2) generator [[0, -w], [w, 0]] for angular rate(s) ``omega``.

    Args:
        omega: (...,) array

    Returns:
        (..., 2, 2) skew-symmetric matrices
    """
    omega = jnp.asarray(omega, dtype=float)
    zeros = jnp.zeros_like(omega)
    return jnp.stack([
        jnp.stack([zeros, -omega], axis=-1),
        jnp.stack([omega, zeros], axis=-1),
    ], axis=-2)


def exp(theta: Array) -> Array:
    """SO(2) exponential map, identical to :func:`rot2`."""
    return rot2(theta)


def log(R: Array) -> Array:
    """
    SO(2) logarithm map.

    Args:
        R: (..., 2, 2) rotation matrices

    Returns:
        (...,) angles in (-pi, pi]
    """
    return jnp.arctan2(R[..., 1, 0], R[..., 0, 0])


def inverse(R: Array) -> Array:
    return jnp.swapaxes(R, -1, -2)


def multiply(R1: Array, R2: Array) -> Array:
    return jnp.matmul(R1, R2)


def apply(R: Array, v: Array) -> Array:
    """
    Rotate planar vector(s).

    Args:
        R: (..., 2, 2) rotation matrix
        v: (..., 2) vector(s)

    Returns:
        (..., 2) rotated vector(s)
    """
    return jnp.einsum("...ij,...j->...i", R, v)
