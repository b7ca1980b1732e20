"""Resolution of free-form SE(2) constructor arguments.

Constructor input is first classified into an :class:`InputKind` and then
built into the canonical representation: a numeric (N, 3, 3) float64 stack, or
a tuple of N casadi ``SX`` 3x3 matrices when any argument is symbolic.

Single-argument forms are tried in this order, so vector readings win over
matrix readings for degenerate shapes:

1. length-2 vector               -> pure translation
2. length-3 vector [x, y, theta] -> translation and rotation
3. (2, 2) or (N, 2, 2) block     -> pure rotation
4. (3, 3) or (N, 3, 3) block     -> homogeneous matrix
5. SE2 value or sequence of them -> clone
6. (N, 2) or (N, 3) matrix       -> one transform per row, read as 1. or 2.
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import Any, Sequence, Tuple

import jax
import jax.numpy as jnp
import numpy as np

from . import symbolic
from .errors import UnrecognizedArgument
from .options import parse_options
from .transforms import checks, se2

Array = jax.Array

_LOG: logging.Logger = logging.getLogger(__name__)

SE2_OPTIONS = {"unit": ("rad", "deg")}


class InputKind(enum.Enum):
    IDENTITY = "identity"
    TRANSLATION = "translation"
    XY_THETA = "xy_theta"
    ROTATION = "rotation"
    HOMOGENEOUS = "homogeneous"
    CLONE = "clone"
    ROWS = "rows"
    XY = "xy"
    TRANSLATION_THETA = "translation_theta"
    ROTATION_TRANSLATION = "rotation_translation"
    XY_THETA_SCALARS = "xy_theta_scalars"


@dataclass(frozen=True)
class Resolved:
    """Outcome of resolving one argument list.

    Attributes:
        kind: construction mode that matched
        data: (N, 3, 3) numeric stack or tuple of N ``SX`` matrices
    """
    kind: InputKind
    data: Any

    @property
    def is_symbolic(self) -> bool:
        return isinstance(self.data, tuple)

    def __len__(self) -> int:
        return len(self.data)


def _is_transform(a: Any) -> bool:
    from .pose import SE2
    return isinstance(a, SE2)


def _is_transform_sequence(a: Any) -> bool:
    return isinstance(a, (list, tuple)) and len(a) > 0 and all(_is_transform(x) for x in a)


def _operand(a: Any) -> Any:
    """Raw argument as a JAX array, an ``SX`` matrix, a transform, or None."""
    if _is_transform(a) or _is_transform_sequence(a):
        return a
    if symbolic.is_symbolic(a):
        return symbolic.to_sx(a)
    try:
        arr = np.asarray(a, dtype=float)
    except (TypeError, ValueError):
        return None
    return jnp.asarray(arr)


def _shape(x: Any) -> Tuple[int, ...]:
    return tuple(x.shape)


def _is_raw(x: Any) -> bool:
    return x is not None and not _is_transform(x) and not _is_transform_sequence(x)


def _is_vec(x: Any, n: int) -> bool:
    if not _is_raw(x):
        return False
    shape = _shape(x)
    return len(shape) <= 2 and math.prod(shape) == n and sum(d != 1 for d in shape) <= 1


def _is_scalar(x: Any) -> bool:
    return _is_raw(x) and len(_shape(x)) <= 2 and math.prod(_shape(x)) == 1


def classify(args: Sequence[Any]) -> InputKind:
    """
    Name the construction mode for an option-free argument list.

    Raises:
        UnrecognizedArgument: if no supported form matches
    """
    ops = [_operand(a) for a in args]

    if len(ops) == 0:
        return InputKind.IDENTITY

    if any(_is_raw(op) and 0 in _shape(op) for op in ops):
        raise UnrecognizedArgument("empty array argument to SE2")

    if len(ops) == 1:
        a = ops[0]
        if _is_vec(a, 2):
            return InputKind.TRANSLATION
        if _is_vec(a, 3):
            return InputKind.XY_THETA
        if _is_raw(a) and checks.isrot2(a):
            return InputKind.ROTATION
        if _is_raw(a) and checks.ishomog2(a):
            return InputKind.HOMOGENEOUS
        if _is_transform(a) or _is_transform_sequence(a):
            return InputKind.CLONE
        if _is_raw(a) and len(_shape(a)) == 2 and _shape(a)[1] in (2, 3) and _shape(a)[0] > 1:
            return InputKind.ROWS

    elif len(ops) == 2:
        a, b = ops
        if _is_scalar(a) and _is_scalar(b):
            return InputKind.XY
        if _is_vec(a, 2) and _is_scalar(b):
            return InputKind.TRANSLATION_THETA
        if _is_raw(a) and len(_shape(a)) == 2 and checks.isrot2(a) and _is_vec(b, 2):
            return InputKind.ROTATION_TRANSLATION

    elif len(ops) == 3:
        if all(_is_scalar(x) for x in ops):
            return InputKind.XY_THETA_SCALARS

    raise UnrecognizedArgument(f"unknown arguments to SE2: {len(args)} argument(s) of unsupported form")


def _check_rotation(R: Any) -> None:
    if not isinstance(R, tuple) and not symbolic.is_symbolic(R) and not checks.isrot2(R, valid=True):
        raise UnrecognizedArgument("rotation block is not a valid SO(2) matrix")


def _build_numeric(kind: InputKind, ops: Sequence[Any], scale: float) -> Array:
    eye2 = jnp.eye(2, dtype=float)
    zeros2 = jnp.zeros(2, dtype=float)

    if kind is InputKind.IDENTITY:
        return se2.identity((1,))
    if kind is InputKind.TRANSLATION:
        return se2.from_position_and_rotation(ops[0].reshape(2), eye2)[None]
    if kind is InputKind.XY_THETA:
        x, y, theta = ops[0].reshape(3)
        return se2.from_xyt(jnp.stack([x, y, theta * scale]))[None]
    if kind is InputKind.ROTATION:
        R = ops[0]
        _check_rotation(R)
        return se2.from_position_and_rotation(zeros2, R if R.ndim == 3 else R[None])
    if kind is InputKind.HOMOGENEOUS:
        T = ops[0]
        return T if T.ndim == 3 else T[None]
    if kind is InputKind.XY:
        return se2.from_position_and_rotation(jnp.stack([ops[0].reshape(()), ops[1].reshape(())]), eye2)[None]
    if kind is InputKind.TRANSLATION_THETA:
        return se2.from_xyt(jnp.append(ops[0].reshape(2), ops[1].reshape(()) * scale))[None]
    if kind is InputKind.ROTATION_TRANSLATION:
        _check_rotation(ops[0])
        return se2.from_position_and_rotation(ops[1].reshape(2), ops[0])[None]
    if kind is InputKind.XY_THETA_SCALARS:
        x, y, theta = (op.reshape(()) for op in ops)
        return se2.from_xyt(jnp.stack([x, y, theta * scale]))[None]
    raise UnrecognizedArgument(f"cannot build {kind.value} numerically")


def _build_symbolic(kind: InputKind, ops: Sequence[Any], scale: float) -> Tuple[Any, ...]:
    ops = [symbolic.to_sx(op) for op in ops]

    def scaled(theta):
        return theta if scale == 1.0 else theta * scale

    if kind is InputKind.TRANSLATION:
        return (symbolic.from_position_and_rotation(ops[0], np.eye(2)),)
    if kind is InputKind.XY_THETA:
        c = symbolic.column(ops[0], 3)
        return (symbolic.from_xyt(c[0], c[1], scaled(c[2])),)
    if kind is InputKind.ROTATION:
        return (symbolic.from_position_and_rotation(np.zeros(2), ops[0]),)
    if kind is InputKind.HOMOGENEOUS:
        return (ops[0],)
    if kind is InputKind.XY:
        return (symbolic.from_position_and_rotation([ops[0], ops[1]], np.eye(2)),)
    if kind is InputKind.TRANSLATION_THETA:
        c = symbolic.column(ops[0], 2)
        return (symbolic.from_xyt(c[0], c[1], scaled(ops[1])),)
    if kind is InputKind.ROTATION_TRANSLATION:
        return (symbolic.from_position_and_rotation(ops[1], ops[0]),)
    if kind is InputKind.XY_THETA_SCALARS:
        return (symbolic.from_xyt(ops[0], ops[1], scaled(ops[2])),)
    raise UnrecognizedArgument(f"cannot build {kind.value} symbolically")


def _clone(a: Any) -> Any:
    items = a if isinstance(a, (list, tuple)) else [a]
    if any(item.is_symbolic for item in items):
        return tuple(m for item in items for m in symbolic.promote(item.data))
    return jnp.concatenate([item.data for item in items], axis=0)


def _build(kind: InputKind, args: Sequence[Any], scale: float) -> Any:
    if kind is InputKind.IDENTITY:
        return se2.identity((1,))
    if kind is InputKind.CLONE:
        return _clone(args[0])

    ops = [_operand(a) for a in args]

    if kind is InputKind.ROWS:
        rows = ops[0]
        row_kind = InputKind.TRANSLATION if _shape(rows)[1] == 2 else InputKind.XY_THETA
        parts = [_build(row_kind, (rows[i, :],), scale) for i in range(_shape(rows)[0])]
        if any(isinstance(p, tuple) for p in parts):
            return tuple(m for p in parts for m in symbolic.promote(p))
        return jnp.concatenate(parts, axis=0)

    if any(symbolic.is_symbolic(op) for op in ops):
        _LOG.debug("Building %s transform in the symbolic domain", kind.value)
        return _build_symbolic(kind, ops, scale)
    return _build_numeric(kind, ops, scale)


def resolve_se2(args: Sequence[Any], kwargs: dict = None) -> Resolved:
    """
    Resolve an SE2 constructor argument list.

    Args:
        args: positional arguments, optionally including ``"deg"``/``"rad"``
        kwargs: keyword options; ``unit`` selects ``"rad"`` (default) or
                ``"deg"`` for every angle argument

    Returns:
        Resolved kind and canonical data

    Raises:
        UnrecognizedArgument: if the arguments match no supported form, or a
            numeric rotation block fails the strict SO(2) check
    """
    opts, residue = parse_options(SE2_OPTIONS, args, kwargs)
    scale = math.pi / 180.0 if opts["unit"] == "deg" else 1.0

    kind = classify(residue)
    data = _build(kind, residue, scale)
    _LOG.debug("Resolved SE2 arguments as %s (%d element(s))", kind.value, len(data))
    return Resolved(kind, data)
