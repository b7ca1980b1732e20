"""SE(2) rigid-body transform values.

An :class:`SE2` is an immutable array of N >= 1 planar homogeneous transforms.
Numeric values hold a float64 (N, 3, 3) JAX stack; values built from symbolic
arguments hold a tuple of casadi ``SX`` matrices. Every operator returns a new
value and broadcasts a length-1 operand against the other one.
"""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass
from typing import Any, Iterator, Sequence

import casadi as ca
import jax
import jax.numpy as jnp
import numpy as np
from flax import struct
from jax.tree_util import register_pytree_node_class

from . import symbolic
from .broadcast import broadcast_length, broadcast_pairs, integer_exponent
from .config import DEFAULT_CONFIG
from .errors import InvalidOperandType, UnrecognizedArgument
from .resolve import resolve_se2
from .transforms import checks, se2

Array = jax.Array

_LOG: logging.Logger = logging.getLogger(__name__)


def _squeeze(items: Any) -> Any:
    return items[0] if len(items) == 1 else items


def _is_generator(X: Array) -> bool:
    """True if every (3, 3) slice is [[0, -w, vx], [w, 0, vy], [0, 0, 0]]."""
    return bool(
        jnp.all(X[..., 2, :] == 0.0)
        & jnp.all(X[..., 0, 0] == 0.0)
        & jnp.all(X[..., 1, 1] == 0.0)
        & jnp.all(X[..., 0, 1] == -X[..., 1, 0])
    )


@struct.dataclass
class Twist:
    """se(2) generator vector(s) [vx, vy, w] produced by :meth:`SE2.log`.

    ``vector`` is an (N, 3) array, or a tuple of N ``SX`` 3x1 columns.
    """
    vector: Any

    @property
    def is_symbolic(self) -> bool:
        return isinstance(self.vector, tuple)

    def __len__(self) -> int:
        return len(self.vector)

    @property
    def v(self) -> Any:
        if self.is_symbolic:
            return _squeeze([xi[0:2] for xi in self.vector])
        return _squeeze(self.vector[:, :2])

    @property
    def omega(self) -> Any:
        if self.is_symbolic:
            return _squeeze([xi[2] for xi in self.vector])
        return _squeeze(self.vector[:, 2])

    def matrix(self) -> Any:
        """se(2) matrices [[0, -w, vx], [w, 0, vy], [0, 0, 0]]."""
        if self.is_symbolic:
            return _squeeze([symbolic.hat(xi) for xi in self.vector])
        return _squeeze(se2.hat(self.vector))


@register_pytree_node_class
@dataclass(frozen=True, init=False, eq=False, repr=False)
class SE2:
    """Immutable planar homogeneous transform(s).

    Construction accepts, with an optional ``"deg"`` flag or ``unit="deg"``::

        SE2()                   identity
        SE2(x, y)               translation
        SE2(x, y, theta)        translation and rotation
        SE2([x, y])             translation
        SE2([x, y, theta])      translation and rotation
        SE2(xy, theta)          translation vector and rotation
        SE2(R)                  (2, 2) or (N, 2, 2) rotation
        SE2(R, xy)              rotation and translation
        SE2(T)                  (3, 3) or (N, 3, 3) homogeneous matrix
        SE2(other)              copy of an SE2 or a sequence of them
        SE2(rows)               (N, 2) or (N, 3) array, one transform per row
    """
    data: Any  # (N, 3, 3) array, or tuple of N SX matrices

    # Avoid numpy broadcasting over SE2 operands, so ndarray * SE2 reaches __rmul__
    __array_ufunc__ = None

    def __init__(self, *args, **options):
        object.__setattr__(self, "data", resolve_se2(args, options).data)

    @classmethod
    def _wrap(cls, data: Any) -> "SE2":
        obj = object.__new__(cls)
        object.__setattr__(obj, "data", data)
        return obj

    # PyTree boiler-plate
    def tree_flatten(self):
        return (self.data,), None

    @classmethod
    def tree_unflatten(cls, aux, children):
        (data,) = children
        return cls._wrap(data)

    # Alternative constructors
    @classmethod
    def identity(cls, n: int = 1) -> "SE2":
        return cls._wrap(se2.identity((n,)))

    @classmethod
    def concat(cls, items: Sequence["SE2"]) -> "SE2":
        """Array formed from the elements of ``items``, in order."""
        return cls(list(items))

    @classmethod
    def exp(cls, twist: Any) -> "SE2":
        """
        Transform(s) from the SE(2) exponential map.

        Args:
            twist: a :class:`Twist`, a 3-vector or (N, 3) array of [vx, vy, w],
                   or a (3, 3) / (N, 3, 3) se(2) generator matrix

        A (3, 3) array is read as a generator only when it has generator
        structure; otherwise its rows are three twists.
        """
        if isinstance(twist, Twist):
            twist = twist.vector
            if not isinstance(twist, tuple):
                return cls._wrap(se2.exp(twist))
        if isinstance(twist, tuple) or symbolic.is_symbolic(twist):
            items = twist if isinstance(twist, tuple) else (symbolic.to_sx(twist),)
            items = tuple(symbolic.vee(x) if x.shape == (3, 3) else x for x in items)
            return cls._wrap(tuple(symbolic.exp(xi) for xi in items))

        arr = jnp.asarray(twist, dtype=float)
        if arr.ndim == 3 and arr.shape[-2:] == (3, 3):
            if not _is_generator(arr):
                raise UnrecognizedArgument("expecting (N, 3, 3) se(2) generator matrices")
            arr = se2.vee(arr)
        elif arr.shape == (3, 3) and _is_generator(arr):
            arr = se2.vee(arr)
        if arr.shape[-1] != 3 or arr.ndim > 2:
            raise UnrecognizedArgument(f"expecting twist vector(s) or se(2) matrices, got shape {arr.shape}")
        return cls._wrap(se2.exp(arr.reshape(-1, 3)))

    @staticmethod
    def isa(M: Any, valid: bool = False) -> bool:
        """True if ``M`` is a raw (3, 3) or (N, 3, 3) homogeneous matrix."""
        return checks.ishomog2(M, valid)

    @classmethod
    def check(cls, tr: Any) -> "SE2":
        """Coerce an SE2 or a raw homogeneous matrix to an SE2."""
        if isinstance(tr, SE2):
            return tr
        if checks.ishomog2(tr):
            return cls(tr)
        raise InvalidOperandType("expecting an SE2 or 3x3 matrix")

    # Array access
    @property
    def is_symbolic(self) -> bool:
        return isinstance(self.data, tuple)

    def __len__(self) -> int:
        return len(self.data)

    def __getitem__(self, index) -> "SE2":
        if isinstance(index, slice):
            return self._wrap(self.data[index])
        i = range(len(self))[index]
        return self._wrap(self.data[i:i + 1])

    def __iter__(self) -> Iterator["SE2"]:
        for i in range(len(self)):
            yield self[i]

    # Accessors
    def T(self) -> Any:
        """All elements as an (N, 3, 3) stack, or a tuple of SX matrices."""
        return self.data

    @property
    def matrix(self) -> Any:
        return _squeeze(self.data)

    @property
    def R(self) -> Any:
        if self.is_symbolic:
            return _squeeze([m[0:2, 0:2] for m in self.data])
        return _squeeze(se2.get_rotation(self.data))

    @property
    def t(self) -> Any:
        if self.is_symbolic:
            return _squeeze([m[0:2, 2] for m in self.data])
        return _squeeze(se2.get_position(self.data))

    @property
    def theta(self) -> Any:
        if self.is_symbolic:
            return _squeeze([symbolic.angle(m) for m in self.data])
        return _squeeze(se2.get_angle(self.data))

    def xyt(self) -> Any:
        """[x, y, theta] per element."""
        if self.is_symbolic:
            return _squeeze([ca.vertcat(m[0:2, 2], symbolic.angle(m)) for m in self.data])
        return _squeeze(se2.to_xyt(self.data))

    def se3(self) -> Any:
        """Embed as (4, 4) SE(3) matrices rotating about the z-axis."""
        if self.is_symbolic:
            embedded = []
            for m in self.data:
                M = ca.SX.eye(4)
                M[0:2, 0:2] = m[0:2, 0:2]
                M[0:2, 3] = m[0:2, 2]
                embedded.append(M)
            return _squeeze(embedded)
        return _squeeze(se2.to_se3(self.data))

    def with_t(self, t: Any) -> "SE2":
        """Copy with every translation replaced by ``t`` (2-vector or (N, 2))."""
        if self.is_symbolic or symbolic.is_symbolic(t):
            replaced = []
            for m in symbolic.promote(self.data):
                m = ca.SX(m)
                m[0:2, 2] = symbolic.column(t, 2)
                replaced.append(m)
            return self._wrap(tuple(replaced))
        t = jnp.asarray(t, dtype=float)
        return self._wrap(self.data.at[:, :2, 2].set(jnp.broadcast_to(t.reshape(-1, 2), (len(self), 2))))

    def simplify(self) -> "SE2":
        if self.is_symbolic:
            return self._wrap(tuple(symbolic.simplify(m) for m in self.data))
        return self

    # Group operations
    def inv(self) -> "SE2":
        """Inverse via the block structure R^T, -R^T t."""
        if self.is_symbolic:
            return self._wrap(tuple(symbolic.inverse(m) for m in self.data))
        return self._wrap(se2.inverse(self.data))

    def log(self) -> Twist:
        """SE(2) logarithm as a :class:`Twist`."""
        if self.is_symbolic:
            return Twist(tuple(symbolic.log(m) for m in self.data))
        return Twist(se2.log(self.data))

    @staticmethod
    def _multiply(a: Any, b: Any, op: str = "*") -> Any:
        if not isinstance(a, tuple) and not isinstance(b, tuple):
            broadcast_length(len(a), len(b), op)
            return se2.multiply(a, b)
        pairs = broadcast_pairs(symbolic.promote(a), symbolic.promote(b), op)
        return tuple(symbolic.multiply(x, y) for x, y in pairs)

    def compose(self, other: Any) -> Any:
        """
        Self ∘ other.

        ``other`` may be an SE2 or a raw homogeneous matrix (stack), giving an
        SE2; a 2-vector or a (2, M) block of column points, giving transformed
        points; or a 3-vector, giving the raw homogeneous product.
        """
        if isinstance(other, SE2):
            return self._wrap(self._multiply(self.data, other.data))
        if checks.ishomog2(other):
            return self._wrap(self._multiply(self.data, SE2(other).data))
        if self.is_symbolic or symbolic.is_symbolic(other):
            return self._compose_symbolic_points(other)

        try:
            p = jnp.asarray(np.asarray(other, dtype=float))
        except (TypeError, ValueError):
            raise InvalidOperandType(f"invalid right operand to SE2 *: {type(other).__name__}")

        R, t = se2.get_rotation(self.data), se2.get_position(self.data)
        if p.ndim == 1 and p.shape[0] == 2:
            return _squeeze(jnp.einsum("nij,j->ni", R, p) + t)
        if p.ndim == 2 and p.shape[0] == 2:
            return _squeeze(jnp.einsum("nij,jm->nim", R, p) + t[..., None])
        if p.size == 3 and (p.ndim == 1 or (p.ndim == 2 and 1 in p.shape)):
            return _squeeze(jnp.einsum("nij,j->ni", self.data, p.reshape(3)))
        raise InvalidOperandType(f"invalid right operand to SE2 *: shape {p.shape}")

    def _compose_symbolic_points(self, other: Any) -> Any:
        P = symbolic.to_sx(other)
        if P.shape == (1, 2):
            P = P.T
        if P.shape[0] == 2:
            return _squeeze([symbolic.apply(m, P) for m in symbolic.promote(self.data)])
        if P.numel() == 3:
            return _squeeze([ca.mtimes(m, symbolic.column(P, 3)) for m in symbolic.promote(self.data)])
        raise InvalidOperandType(f"invalid right operand to SE2 *: shape {P.shape}")

    def __mul__(self, other: Any) -> Any:
        return self.compose(other)

    def __rmul__(self, other: Any) -> "SE2":
        if checks.ishomog2(other):
            return SE2(other).compose(self)
        raise InvalidOperandType(f"invalid left operand to SE2 *: {type(other).__name__}")

    def __truediv__(self, other: Any) -> "SE2":
        if not isinstance(other, SE2):
            raise InvalidOperandType(f"right-hand argument to SE2 / must be SE2, got {type(other).__name__}")
        return self._wrap(self._multiply(self.data, other.inv().data, "/"))

    def __pow__(self, n: Any) -> "SE2":
        n = integer_exponent(n, "SE2")
        _LOG.debug("Expanding SE2 power %d by repeated composition", n)
        result = SE2.identity(len(self))
        for _ in range(abs(n)):
            result = result * self
        return result.inv() if n < 0 else result

    # Relational operators
    def _equal(self, other: "SE2") -> Any:
        if not self.is_symbolic and not other.is_symbolic:
            n = broadcast_length(len(self), len(other), "==")
            eq = jnp.all(self.data == other.data, axis=(-2, -1))
            return bool(eq[0]) if n == 1 else jnp.broadcast_to(eq, (n,))
        pairs = broadcast_pairs(symbolic.promote(self.data), symbolic.promote(other.data), "==")
        eq = [symbolic.equal(a, b) for a, b in pairs]
        return eq[0] if len(eq) == 1 else jnp.array(eq)

    def __eq__(self, other: Any) -> Any:
        if not isinstance(other, SE2):
            return NotImplemented
        return self._equal(other)

    def __ne__(self, other: Any) -> Any:
        if not isinstance(other, SE2):
            return NotImplemented
        eq = self._equal(other)
        return (not eq) if isinstance(eq, bool) else ~eq

    # Display
    def __str__(self) -> str:
        p = DEFAULT_CONFIG.display_precision
        lines = []
        if self.is_symbolic:
            for m in self.data:
                theta = symbolic.angle(m) * 180.0 / math.pi
                lines.append(f"t = ({m[0, 2]}, {m[1, 2]}), theta = {theta} deg")
        else:
            for x, y, theta in np.asarray(se2.to_xyt(self.data)):
                lines.append(f"t = ({x:.{p}g}, {y:.{p}g}), theta = {math.degrees(theta):.{p}g} deg")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"SE2({str(self)!r})" if len(self) == 1 else f"SE2<{len(self)}>({str(self)!r})"

    def print(self, file=None) -> None:
        """Write one ``t = (x, y), theta = ... deg`` line per element."""
        (file or sys.stdout).write(str(self) + "\n")
