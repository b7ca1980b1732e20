"""
JAX-based planar transform kernels and matrix validity predicates.

This module provides pure, batch-friendly implementations of:
- SO(2) rotations (so2 module)
- SE(2) rigid body transforms (se2 module)
- so(3) cross-product matrices (so3 module)
- rotation / homogeneous matrix predicates (checks module)
"""

from . import so2
from . import se2
from . import so3
from . import checks

__all__ = [
    "so2",
    "se2",
    "so3",
    "checks",
]
