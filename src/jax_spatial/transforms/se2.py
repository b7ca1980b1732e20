"""SE(2) and se(2) Lie group operations in JAX.

This module implements planar rigid body transforms using 3x3 homogeneous
matrices and 3D twist vectors [vx, vy, w]. All functions are pure, JIT-able,
and operate on batched JAX arrays. The log/exp maps use closed forms with
series expansions near zero rotation.
"""

import jax
import jax.numpy as jnp

from ..config import DEFAULT_CONFIG
from . import so2

Array = jax.Array


def from_position_and_rotation(p: Array, R: Array) -> Array:
    """
    Construct SE(2) transform from position and rotation.

    Args:
        p: (..., 2) position vector
        R: (..., 2, 2) rotation matrix

    Returns:
        (..., 3, 3) homogeneous transformation matrix
    """
    p = jnp.asarray(p, dtype=float)
    R = jnp.asarray(R, dtype=float)
    batch_shape = jnp.broadcast_shapes(p.shape[:-1], R.shape[:-2])
    p = jnp.broadcast_to(p, batch_shape + (2,))
    R = jnp.broadcast_to(R, batch_shape + (2, 2))

    T = jnp.zeros(batch_shape + (3, 3), dtype=p.dtype)
    T = T.at[..., :2, :2].set(R)
    T = T.at[..., :2, 2].set(p)
    T = T.at[..., 2, 2].set(1.0)
    return T


def from_xyt(xyt: Array) -> Array:
    """
    Construct SE(2) transform(s) from (..., 3) rows of [x, y, theta].
    """
    xyt = jnp.asarray(xyt, dtype=float)
    return from_position_and_rotation(xyt[..., :2], so2.rot2(xyt[..., 2]))


def identity(batch_shape=()) -> Array:
    return jnp.broadcast_to(jnp.eye(3, dtype=float), tuple(batch_shape) + (3, 3))


def hat(twist: Array) -> Array:
    """
    Map twist vector(s) [vx, vy, w] to se(2) generator matrices.

    Args:
        twist: (..., 3) twist vectors

    Returns:
        (..., 3, 3) matrices [[0, -w, vx], [w, 0, vy], [0, 0, 0]]
    """
    twist = jnp.asarray(twist, dtype=float)
    X = jnp.zeros(twist.shape[:-1] + (3, 3), dtype=twist.dtype)
    X = X.at[..., :2, :2].set(so2.skew2(twist[..., 2]))
    X = X.at[..., :2, 2].set(twist[..., :2])
    return X


def vee(X: Array) -> Array:
    """Inverse of :func:`hat`."""
    return jnp.stack([X[..., 0, 2], X[..., 1, 2], X[..., 1, 0]], axis=-1)


def exp(twist: Array, small_angle: float = DEFAULT_CONFIG.small_angle) -> Array:
    """
    SE(2) exponential map: convert twist to transformation matrix.

    Args:
        twist: (..., 3) array of twists [vx, vy, w]
        small_angle: below this |w| the V matrix coefficients use their
                     Taylor expansions

    Returns:
        (..., 3, 3) array of transformation matrices
    """
    twist = jnp.asarray(twist, dtype=float)
    v, w = twist[..., :2], twist[..., 2]

    is_small_angle = jnp.abs(w) < small_angle
    w_safe = jnp.where(is_small_angle, 1.0, w)
    w_sq = w * w

    # A = sin(w) / w, B = (1 - cos(w)) / w
    A = jnp.where(is_small_angle, 1.0 - w_sq / 6.0, jnp.sin(w) / w_safe)
    B = jnp.where(is_small_angle, w / 2.0 - w * w_sq / 24.0, (1.0 - jnp.cos(w)) / w_safe)

    # V = A*I + B*J with J the unit so(2) generator
    t = jnp.stack([A * v[..., 0] - B * v[..., 1], B * v[..., 0] + A * v[..., 1]], axis=-1)

    return from_position_and_rotation(t, so2.rot2(w))


def log(T: Array, small_angle: float = DEFAULT_CONFIG.small_angle) -> Array:
    """
    SE(2) logarithm map: convert transformation matrix to twist.

    Args:
        T: (..., 3, 3) array of transformation matrices

    Returns:
        (..., 3) array of twists [vx, vy, w], with w in (-pi, pi]
    """
    w = so2.log(T[..., :2, :2])
    t = T[..., :2, 2]

    is_small_angle = jnp.abs(w) < small_angle
    half_angle = w / 2.0
    tan_half = jnp.where(is_small_angle, 1.0, jnp.tan(half_angle))

    # V_inv = alpha*I - (w/2)*J, alpha = (w/2) cot(w/2) -> 1 - w^2/12
    alpha = jnp.where(is_small_angle, 1.0 - w * w / 12.0, half_angle / tan_half)

    v = jnp.stack([
        alpha * t[..., 0] + half_angle * t[..., 1],
        -half_angle * t[..., 0] + alpha * t[..., 1],
    ], axis=-1)

    return jnp.concatenate([v, w[..., None]], axis=-1)


def multiply(T1: Array, T2: Array) -> Array:
    """
    Multiply two SE(2) transformation matrices.

    Args:
        T1: (..., 3, 3) first transformation matrix
        T2: (..., 3, 3) second transformation matrix

    Returns:
        (..., 3, 3) result of T1 @ T2
    """
    return jnp.matmul(T1, T2)


def inverse(T: Array) -> Array:
    """
    Compute inverse of SE(2) transformation matrix.

    Uses the block structure: T^-1 = [[R^T, -R^T @ t], [0, 1]]

    Args:
        T: (..., 3, 3) transformation matrix

    Returns:
        (..., 3, 3) inverse transformation matrix
    """
    R_inv = so2.inverse(T[..., :2, :2])
    t_inv = -jnp.einsum("...ij,...j->...i", R_inv, T[..., :2, 2])
    return from_position_and_rotation(t_inv, R_inv)


def apply(T: Array, points: Array) -> Array:
    """
    Apply SE(2) transformation to points.

    Args:
        T: (..., 3, 3) transformation matrix
        points: (..., 2) or (..., N, 2) points to transform

    Returns:
        (..., 2) or (..., N, 2) transformed points
    """
    points = jnp.asarray(points, dtype=float)
    if points.ndim == T.ndim - 1:
        return jnp.einsum("...ij,...j->...i", T[..., :2, :2], points) + T[..., :2, 2]
    return jnp.einsum("...ij,...nj->...ni", T[..., :2, :2], points) + T[..., None, :2, 2]


def get_position(T: Array) -> Array:
    return T[..., :2, 2]


def get_rotation(T: Array) -> Array:
    return T[..., :2, :2]


def get_angle(T: Array) -> Array:
    return so2.log(T[..., :2, :2])


def to_xyt(T: Array) -> Array:
    """(..., 3, 3) transforms to (..., 3) rows of [x, y, theta]."""
    return jnp.concatenate([get_position(T), get_angle(T)[..., None]], axis=-1)


def to_se3(T: Array) -> Array:
    """
    Embed planar transform(s) in SE(3) as rotations about the z-axis.

    Args:
        T: (..., 3, 3) transformation matrix

    Returns:
        (..., 4, 4) homogeneous transformation matrix
    """
    M = jnp.broadcast_to(jnp.eye(4, dtype=T.dtype), T.shape[:-2] + (4, 4))
    M = M.at[..., :2, :2].set(T[..., :2, :2])
    M = M.at[..., :2, 3].set(T[..., :2, 2])
    return M
