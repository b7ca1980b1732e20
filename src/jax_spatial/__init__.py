"""
JAX Spatial: planar rigid-body transforms and quaternions as value types.

This library provides immutable, array-valued SE(2) transforms and quaternions
built on batch-friendly JAX kernels, with constructor argument resolution,
group operators and broadcasting over arrays of values.
"""

from .config import enable_x64
enable_x64()

# Import core modules
from . import transforms
from .errors import (
    InvalidOperandType,
    LengthMismatch,
    MalformedComponent,
    NonIntegerExponent,
    SpatialError,
    UnrecognizedArgument,
)
from .pose import SE2, Twist
from .quaternion import Quaternion

__version__ = "0.1.0"
__all__ = [
    "transforms",
    "SE2",
    "Twist",
    "Quaternion",
    "SpatialError",
    "UnrecognizedArgument",
    "LengthMismatch",
    "InvalidOperandType",
    "NonIntegerExponent",
    "MalformedComponent",
]
