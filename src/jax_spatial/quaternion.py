"""Quaternion values and their Hamilton-product algebra.

A :class:`Quaternion` is an immutable array of N >= 1 quaternions, each a real
scalar part ``s`` and a real 3-vector part ``v``, stored batch-first as arrays
of shape (N,) and (N, 3). There is no unit-norm invariant. Binary operators
pair elements by the broadcasting rule in :mod:`jax_spatial.broadcast`.

Equality is raw 4-tuple equality: ``q`` and ``-q`` represent the same rotation
but compare unequal.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Sequence

import jax
import jax.numpy as jnp
import numpy as np
from jax.tree_util import register_pytree_node_class

from .broadcast import broadcast_length, integer_exponent
from .config import DEFAULT_CONFIG
from .errors import InvalidOperandType, MalformedComponent, UnrecognizedArgument
from .transforms import so3

Array = jax.Array


def _squeeze(x: Array) -> Array:
    return x[0] if x.shape[0] == 1 else x


def _real_array(x: Any, name: str) -> Array:
    if isinstance(x, (str, bytes)):
        raise MalformedComponent(f"{name} must be real, got {x!r}")
    try:
        arr = np.asarray(x)
    except (TypeError, ValueError):
        raise MalformedComponent(f"{name} must be real, got {type(x).__name__}")
    if arr.dtype.kind not in "iuf":
        raise MalformedComponent(f"{name} must be real, got dtype {arr.dtype}")
    return jnp.asarray(arr, dtype=float)


def _components(s: Any, v: Any):
    """Validate and batch a scalar part and a vector part."""
    scalar = _real_array(s, "s")
    if scalar.ndim > 1:
        raise MalformedComponent(f"s must be a real scalar, got shape {scalar.shape}")
    scalar = scalar.reshape(-1)

    vector = _real_array(v, "v")
    if vector.size == 3 and (vector.ndim == 1 or (vector.ndim == 2 and 1 in vector.shape)):
        vector = vector.reshape(1, 3)
    if vector.ndim != 2 or vector.shape[1] != 3:
        raise MalformedComponent(f"v must be a real 3-vector, got shape {vector.shape}")

    if scalar.shape[0] != vector.shape[0]:
        raise MalformedComponent(
            f"s and v describe different numbers of quaternions: {scalar.shape[0]} and {vector.shape[0]}"
        )
    return scalar, vector


def _real_scalar(x: Any) -> Optional[float]:
    """``x`` as a float if it is a real number or 0-d real array, else None."""
    if isinstance(x, bool):
        return None
    if isinstance(x, numbers.Real):
        return float(x)
    if isinstance(x, (np.ndarray, jax.Array)) and x.ndim == 0 and x.dtype.kind in "iuf":
        return float(x)
    return None


def _is_numeric(x: Any) -> bool:
    if isinstance(x, (str, bytes)):
        return False
    try:
        return np.asarray(x).dtype.kind in "iufc"
    except (TypeError, ValueError):
        return False


@register_pytree_node_class
@dataclass(frozen=True, init=False, eq=False, repr=False)
class Quaternion:
    """Immutable quaternion(s) ``s <<vx, vy, vz>>``.

    Construction::

        Quaternion()            zero quaternion
        Quaternion(q)           copy of a Quaternion
        Quaternion(s, v)        scalar and 3-vector, or (N,) and (N, 3)
        Quaternion(wxyz)        4-vector [s, vx, vy, vz], or (N, 4) rows
    """
    scalar: Array  # (N,)
    vector: Array  # (N, 3)

    # Avoid numpy broadcasting over Quaternion operands, so scalars reach __rmul__
    __array_ufunc__ = None

    def __init__(self, *args):
        if len(args) == 0:
            scalar, vector = jnp.zeros(1, dtype=float), jnp.zeros((1, 3), dtype=float)
        elif len(args) == 1 and isinstance(args[0], Quaternion):
            scalar, vector = args[0].scalar, args[0].vector
        elif len(args) == 1:
            scalar, vector = self._from_wxyz(args[0])
        elif len(args) == 2:
            scalar, vector = _components(*args)
        else:
            raise UnrecognizedArgument(f"bad arguments to Quaternion constructor: {len(args)} arguments")
        object.__setattr__(self, "scalar", scalar)
        object.__setattr__(self, "vector", vector)

    @staticmethod
    def _from_wxyz(x: Any):
        if not _is_numeric(x):
            raise UnrecognizedArgument(f"bad argument to Quaternion constructor: {type(x).__name__}")
        arr = np.asarray(x)
        if arr.size == 4 and (arr.ndim == 1 or (arr.ndim == 2 and 1 in arr.shape)):
            arr = arr.reshape(1, 4)
        if arr.ndim != 2 or arr.shape[1] != 4:
            raise UnrecognizedArgument(f"bad argument to Quaternion constructor: shape {arr.shape}")
        return _components(arr[:, 0], arr[:, 1:])

    @classmethod
    def _wrap(cls, scalar: Array, vector: Array) -> "Quaternion":
        obj = object.__new__(cls)
        object.__setattr__(obj, "scalar", scalar)
        object.__setattr__(obj, "vector", vector)
        return obj

    # PyTree boiler-plate
    def tree_flatten(self):
        return (self.scalar, self.vector), None

    @classmethod
    def tree_unflatten(cls, aux, children):
        scalar, vector = children
        return cls._wrap(scalar, vector)

    # Alternative constructors
    @classmethod
    def identity(cls, n: int = 1) -> "Quaternion":
        return cls._wrap(jnp.ones(n, dtype=float), jnp.zeros((n, 3), dtype=float))

    @classmethod
    def pure(cls, v: Any) -> "Quaternion":
        """Pure quaternion 0 <<v>> from a 3-vector."""
        vector = _real_array(v, "v")
        if vector.size != 3:
            raise MalformedComponent(f"v must be a real 3-vector, got shape {vector.shape}")
        return cls(0.0, vector.reshape(3))

    @classmethod
    def stack(cls, items: Sequence["Quaternion"]) -> "Quaternion":
        """Array formed from the elements of ``items``, in order."""
        items = list(items)
        if not items or not all(isinstance(q, Quaternion) for q in items):
            raise UnrecognizedArgument("Quaternion.stack expects a non-empty sequence of Quaternions")
        return cls._wrap(
            jnp.concatenate([q.scalar for q in items]),
            jnp.concatenate([q.vector for q in items]),
        )

    # Array access
    def __len__(self) -> int:
        return self.scalar.shape[0]

    def __getitem__(self, index) -> "Quaternion":
        if isinstance(index, slice):
            return self._wrap(self.scalar[index], self.vector[index])
        i = range(len(self))[index]
        return self._wrap(self.scalar[i:i + 1], self.vector[i:i + 1])

    def __iter__(self) -> Iterator["Quaternion"]:
        for i in range(len(self)):
            yield self[i]

    # Accessors
    @property
    def s(self) -> Array:
        return _squeeze(self.scalar)

    @property
    def v(self) -> Array:
        return _squeeze(self.vector)

    @property
    def vec(self) -> Array:
        """Elements as [s, vx, vy, vz], shape (4,) or (N, 4)."""
        return _squeeze(jnp.concatenate([self.scalar[:, None], self.vector], axis=-1))

    def with_s(self, s: Any) -> "Quaternion":
        return Quaternion(s, self.vector)

    def with_v(self, v: Any) -> "Quaternion":
        return Quaternion(self.scalar, v)

    # Unary operations
    def conj(self) -> "Quaternion":
        return self._wrap(self.scalar, -self.vector)

    def _norm_sq(self) -> Array:
        return self.scalar ** 2 + jnp.sum(self.vector ** 2, axis=-1)

    def norm(self) -> Array:
        """Euclidean norm of each element written as a 4-vector."""
        return _squeeze(jnp.sqrt(self._norm_sq()))

    def inv(self) -> "Quaternion":
        """Inverse conj(q) / ||q||^2 of each element."""
        n2 = self._norm_sq()
        return self._wrap(self.scalar / n2, -self.vector / n2[:, None])

    def unit(self) -> "Quaternion":
        n = jnp.sqrt(self._norm_sq())
        return self._wrap(self.scalar / n, self.vector / n[:, None])

    def inner(self, other: "Quaternion") -> Array:
        """Inner product of the 4-vector forms; ``q.inner(q) == q.norm() ** 2``."""
        if not isinstance(other, Quaternion):
            raise InvalidOperandType(f"inner product needs a Quaternion, got {type(other).__name__}")
        broadcast_length(len(self), len(other), "inner")
        products = self.scalar * other.scalar + jnp.sum(self.vector * other.vector, axis=-1)
        return _squeeze(products)

    def dot(self, omega: Any) -> "Quaternion":
        """
        Rate of change of attitude ``q`` under angular velocity ``omega``.

        Not a group operation: the result is a raw rate packaged as a
        quaternion, with scalar part -v.w/2 and vector part E w/2 where
        E = s I - [v]x.
        """
        if not _is_numeric(omega) or np.size(omega) != 3:
            raise InvalidOperandType("omega must be a real 3-vector")
        omega = jnp.asarray(omega, dtype=float).reshape(3)
        E = self.scalar[:, None, None] * jnp.eye(3) - so3.skew_symmetric(self.vector)
        return self._wrap(
            -0.5 * jnp.einsum("ni,i->n", self.vector, omega),
            0.5 * jnp.einsum("nij,j->ni", E, omega),
        )

    # Arithmetic operators
    def _scaled(self, k: float) -> "Quaternion":
        return self._wrap(self.scalar * k, self.vector * k)

    def __mul__(self, other: Any) -> "Quaternion":
        """Hamilton product with a Quaternion, or elementwise product with a real scalar."""
        if isinstance(other, Quaternion):
            broadcast_length(len(self), len(other), "*")
            s1, v1 = self.scalar, self.vector
            s2, v2 = other.scalar, other.vector
            return self._wrap(
                s1 * s2 - jnp.sum(v1 * v2, axis=-1),
                s1[:, None] * v2 + s2[:, None] * v1 + jnp.cross(v1, v2),
            )
        k = _real_scalar(other)
        if k is not None:
            return self._scaled(k)
        if _is_numeric(other):
            raise InvalidOperandType("quaternion-number product: the number must be a real scalar")
        raise InvalidOperandType(f"quaternion product: incorrect right hand operand {type(other).__name__}")

    def __rmul__(self, other: Any) -> "Quaternion":
        k = _real_scalar(other)
        if k is None:
            raise InvalidOperandType(f"quaternion product: incorrect left hand operand {type(other).__name__}")
        return self._scaled(k)

    def __truediv__(self, other: Any) -> "Quaternion":
        """``q1 * q2.inv()`` for a Quaternion, elementwise division for a real scalar."""
        if isinstance(other, Quaternion):
            broadcast_length(len(self), len(other), "/")
            return self * other.inv()
        k = _real_scalar(other)
        if k is not None:
            return self._wrap(self.scalar / k, self.vector / k)
        if _is_numeric(other):
            raise InvalidOperandType("quaternion-number quotient: the number must be a real scalar")
        raise InvalidOperandType(f"quaternion quotient: incorrect right hand operand {type(other).__name__}")

    def __pow__(self, n: Any) -> "Quaternion":
        """Integer power by repeated multiplication; negative powers invert."""
        n = integer_exponent(n, "quaternion")
        result = Quaternion.identity(len(self))
        for _ in range(abs(n)):
            result = result * self
        return result.inv() if n < 0 else result

    def __add__(self, other: Any) -> "Quaternion":
        """Elementwise sum with a Quaternion or a raw 4-vector; not a group operation."""
        if isinstance(other, Quaternion):
            broadcast_length(len(self), len(other), "+")
            return self._wrap(self.scalar + other.scalar, self.vector + other.vector)
        if _is_numeric(other) and np.size(other) == 4:
            q = Quaternion(other)
            return self._wrap(self.scalar + q.scalar, self.vector + q.vector)
        raise InvalidOperandType(f"quaternion sum: incorrect right hand operand {type(other).__name__}")

    __radd__ = __add__

    def __sub__(self, other: Any) -> "Quaternion":
        """Elementwise difference; not a group operation."""
        if not isinstance(other, Quaternion):
            raise InvalidOperandType(f"quaternion difference: incorrect right hand operand {type(other).__name__}")
        broadcast_length(len(self), len(other), "-")
        return self._wrap(self.scalar - other.scalar, self.vector - other.vector)

    # Relational operators
    def _equal(self, other: "Quaternion") -> Any:
        n = broadcast_length(len(self), len(other), "==")
        eq = (self.scalar == other.scalar) & jnp.all(self.vector == other.vector, axis=-1)
        return bool(eq[0]) if n == 1 else jnp.broadcast_to(eq, (n,))

    def __eq__(self, other: Any) -> Any:
        if not isinstance(other, Quaternion):
            return NotImplemented
        return self._equal(other)

    def __ne__(self, other: Any) -> Any:
        if not isinstance(other, Quaternion):
            return NotImplemented
        eq = self._equal(other)
        return (not eq) if isinstance(eq, bool) else ~eq

    # Display
    def __str__(self) -> str:
        p = DEFAULT_CONFIG.display_precision
        return "\n".join(
            f"{s:.{p}g} << {v[0]:.{p}g}, {v[1]:.{p}g}, {v[2]:.{p}g} >>"
            for s, v in zip(np.asarray(self.scalar), np.asarray(self.vector))
        )

    def __repr__(self) -> str:
        return f"Quaternion({str(self)!r})" if len(self) == 1 else f"Quaternion<{len(self)}>({str(self)!r})"
