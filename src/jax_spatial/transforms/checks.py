"""Validity predicates for raw rotation and homogeneous transform matrices.

The resolver uses these as classification guards, so they report invalid or
unusable input as ``False`` and never raise. Stacks follow the batch-first
convention: N planar rotations are an (N, 2, 2) array.

* shape mode (``valid=False``) only inspects the trailing dimensions
* strict mode (``valid=True``) also requires, for every slice,
  ``||R^T R - I||_2 <= k*eps`` and ``|det(R) - 1| <= k*eps``
"""

from typing import Any, Optional, Tuple

import jax
import jax.numpy as jnp
import numpy as np

from ..config import DEFAULT_CONFIG
from .. import symbolic


def _shape(M: Any) -> Optional[Tuple[int, ...]]:
    if symbolic.is_symbolic(M):
        return tuple(symbolic.to_sx(M).shape)
    if isinstance(M, (jax.Array, np.ndarray)):
        return tuple(M.shape) if M.dtype.kind in "biuf" else None
    if isinstance(M, (list, tuple)):
        try:
            arr = np.asarray(M, dtype=float)
        except (TypeError, ValueError):
            return None
        return arr.shape
    return None


def _has_shape(M: Any, n: int) -> bool:
    shape = _shape(M)
    if shape is None:
        return False
    return len(shape) in (2, 3) and shape[-2:] == (n, n)


def _orthonormal(R: Any, n: int, tol_factor: float) -> bool:
    """Strict check on the leading n x n block of every slice."""
    if symbolic.is_symbolic(R):
        return False
    R = jnp.asarray(R, dtype=float)[..., :n, :n]
    if R.ndim == 2:
        R = R[None]
    tol = tol_factor * float(jnp.finfo(jnp.float64).eps)
    eye = jnp.eye(n, dtype=R.dtype)
    for RR in R:
        if not bool(jnp.isfinite(RR).all()):
            return False
        e = jnp.matmul(RR.T, RR) - eye
        if float(jnp.linalg.norm(e, ord=2)) > tol:
            return False
        if abs(float(jnp.linalg.det(RR)) - 1.0) > tol:
            return False
    return True


def isrot2(M: Any, valid: bool = False, tol_factor: float = DEFAULT_CONFIG.tolerance_factor) -> bool:
    """True if ``M`` is a (2, 2) or (N, 2, 2) SO(2) matrix (stack)."""
    if not _has_shape(M, 2):
        return False
    return _orthonormal(M, 2, tol_factor) if valid else True


def ishomog2(M: Any, valid: bool = False, tol_factor: float = DEFAULT_CONFIG.tolerance_factor) -> bool:
    """True if ``M`` is a (3, 3) or (N, 3, 3) SE(2) matrix (stack)."""
    if not _has_shape(M, 3):
        return False
    return _orthonormal(M, 2, tol_factor) if valid else True


def isrot(M: Any, valid: bool = False, tol_factor: float = DEFAULT_CONFIG.tolerance_factor) -> bool:
    """True if ``M`` is a (3, 3) or (N, 3, 3) SO(3) matrix (stack)."""
    if not _has_shape(M, 3):
        return False
    return _orthonormal(M, 3, tol_factor) if valid else True


def ishomog(M: Any, valid: bool = False, tol_factor: float = DEFAULT_CONFIG.tolerance_factor) -> bool:
    """True if ``M`` is a (4, 4) or (N, 4, 4) SE(3) matrix (stack)."""
    if not _has_shape(M, 4):
        return False
    return _orthonormal(M, 3, tol_factor) if valid else True
