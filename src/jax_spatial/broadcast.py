"""Operand rules shared by every binary operator on value arrays.

Two operands of lengths ``n`` and ``m`` pair up when ``n == m`` (elementwise),
or when either has length one (that element is applied to every element of the
other, in order). Any other combination is a :class:`LengthMismatch`.
"""

import math
import numbers
from typing import Any, List, Sequence, Tuple, TypeVar

import jax
import numpy as np

from .errors import LengthMismatch, NonIntegerExponent

L = TypeVar("L")
R = TypeVar("R")


def broadcast_length(n: int, m: int, op: str) -> int:
    """Result length of a binary ``op`` between lengths ``n`` and ``m``."""
    if n == m:
        return n
    if n == 1:
        return m
    if m == 1:
        return n
    raise LengthMismatch(f"invalid operand lengths to {op} operator: {n} and {m}")


def broadcast_pairs(left: Sequence[L], right: Sequence[R], op: str) -> List[Tuple[L, R]]:
    """Aligned ``(left, right)`` element pairs under the broadcasting rule."""
    n = broadcast_length(len(left), len(right), op)
    return [
        (left[0 if len(left) == 1 else i], right[0 if len(right) == 1 else i])
        for i in range(n)
    ]


def integer_exponent(n: Any, op: str) -> int:
    """
    Validate the exponent of a power computed by repeated multiplication.

    Integral floats such as ``2.0`` are accepted.

    Raises:
        NonIntegerExponent: for booleans, non-real or non-integral values
    """
    if isinstance(n, bool) or not isinstance(n, (numbers.Real, np.ndarray, jax.Array)):
        raise NonIntegerExponent(f"{op} exponent must be an integer, got {n!r}")
    if np.ndim(n) != 0 or not np.isfinite(float(n)) or float(n) != math.floor(float(n)):
        raise NonIntegerExponent(f"{op} exponent must be an integer, got {n!r}")
    return int(n)
