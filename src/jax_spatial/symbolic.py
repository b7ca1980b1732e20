"""Symbolic SE(2) kernels backed by casadi.

Transforms built from symbolic arguments hold one casadi ``SX`` 3x3 matrix per
element instead of a numeric JAX stack. The functions here mirror
:mod:`jax_spatial.transforms.se2` for a single such matrix. Promotion goes one
way only: numeric data is lifted into ``SX`` when it meets a symbolic operand,
and symbolic data is never lowered back.
"""

import logging
from typing import Any, Tuple

import casadi as ca
import numpy as np

from .config import DEFAULT_CONFIG

_LOG: logging.Logger = logging.getLogger(__name__)


def is_symbolic(x: Any) -> bool:
    """True if ``x`` is an ``SX`` expression or a list/tuple containing one."""
    if isinstance(x, ca.SX):
        return True
    if isinstance(x, (list, tuple)):
        return any(is_symbolic(item) for item in x)
    return False


def to_sx(x: Any) -> ca.SX:
    """
    Convert a raw operand to an ``SX`` matrix.

    Flat lists become column vectors and nested lists become matrices row by
    row. Numeric arrays of at most two dimensions are converted directly.
    """
    if isinstance(x, ca.SX):
        return x
    if isinstance(x, (list, tuple)):
        if len(x) > 0 and all(isinstance(row, (list, tuple)) for row in x):
            return ca.vertcat(*[ca.horzcat(*[to_sx(e) for e in row]) for row in x])
        return ca.vertcat(*[to_sx(e) for e in x])
    arr = np.asarray(x, dtype=float)
    if arr.ndim == 0:
        return ca.SX(float(arr))
    if arr.ndim == 1:
        arr = arr[:, None]
    return ca.SX(arr)


def column(x: Any, n: int) -> ca.SX:
    """``x`` as an n x 1 ``SX`` column."""
    return ca.reshape(to_sx(x), n, 1)


def promote(stack: Any) -> Tuple[ca.SX, ...]:
    """Lift a numeric (N, 3, 3) stack, or pass through a tuple of ``SX``."""
    if isinstance(stack, tuple):
        return stack
    _LOG.debug("Promoting %d numeric transform(s) to symbolic", len(stack))
    return tuple(ca.SX(np.asarray(m, dtype=float)) for m in stack)


def rot2(theta: Any) -> ca.SX:
    c, s = ca.cos(theta), ca.sin(theta)
    return ca.vertcat(ca.horzcat(c, -s), ca.horzcat(s, c))


def from_position_and_rotation(p: Any, R: Any) -> ca.SX:
    T = ca.SX.eye(3)
    T[0:2, 0:2] = to_sx(R)
    T[0:2, 2] = column(p, 2)
    return T


def from_xyt(x: Any, y: Any, theta: Any) -> ca.SX:
    return from_position_and_rotation(ca.vertcat(x, y), rot2(theta))


def multiply(T1: ca.SX, T2: ca.SX) -> ca.SX:
    return ca.mtimes(T1, T2)


def inverse(T: ca.SX) -> ca.SX:
    R_inv = T[0:2, 0:2].T
    return from_position_and_rotation(-ca.mtimes(R_inv, T[0:2, 2]), R_inv)


def angle(T: ca.SX) -> ca.SX:
    return ca.atan2(T[1, 0], T[0, 0])


def apply(T: ca.SX, points: Any) -> ca.SX:
    """Transform a 2 x M block of points given as columns."""
    P = to_sx(points)
    return ca.mtimes(T[0:2, 0:2], P) + ca.repmat(T[0:2, 2], 1, P.shape[1])


def exp(twist: Any, small_angle: float = DEFAULT_CONFIG.small_angle) -> ca.SX:
    """Closed-form SE(2) exponential of a 3 x 1 twist [vx, vy, w]."""
    xi = column(twist, 3)
    v, w = xi[0:2], xi[2]
    small = ca.fabs(w) < small_angle
    w_safe = ca.if_else(small, 1.0, w)
    A = ca.if_else(small, 1.0 - w ** 2 / 6.0, ca.sin(w) / w_safe)
    B = ca.if_else(small, w / 2.0 - w ** 3 / 24.0, (1.0 - ca.cos(w)) / w_safe)
    V = ca.vertcat(ca.horzcat(A, -B), ca.horzcat(B, A))
    return from_position_and_rotation(ca.mtimes(V, v), rot2(w))


def log(T: ca.SX, small_angle: float = DEFAULT_CONFIG.small_angle) -> ca.SX:
    """Closed-form SE(2) logarithm as a 3 x 1 twist [vx, vy, w]."""
    w = angle(T)
    half = w / 2.0
    small = ca.fabs(w) < small_angle
    tan_half = ca.if_else(small, 1.0, ca.tan(half))
    alpha = ca.if_else(small, 1.0 - w ** 2 / 12.0, half / tan_half)
    V_inv = ca.vertcat(ca.horzcat(alpha, half), ca.horzcat(-half, alpha))
    return ca.vertcat(ca.mtimes(V_inv, T[0:2, 2]), w)


def hat(twist: Any) -> ca.SX:
    xi = column(twist, 3)
    X = ca.SX.zeros(3, 3)
    X[0, 1] = -xi[2]
    X[1, 0] = xi[2]
    X[0:2, 2] = xi[0:2]
    return X


def vee(X: ca.SX) -> ca.SX:
    return ca.vertcat(X[0, 2], X[1, 2], X[1, 0])


def simplify(T: ca.SX) -> ca.SX:
    return ca.simplify(T)


def equal(A: ca.SX, B: ca.SX) -> bool:
    """Exact equality: the simplified difference is structurally zero."""
    return bool(ca.simplify(to_sx(A) - to_sx(B)).is_zero())
