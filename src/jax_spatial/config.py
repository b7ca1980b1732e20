"""Numerical configuration shared by the predicates and group kernels."""

from dataclasses import dataclass

import jax
import jax.numpy as jnp


def enable_x64() -> None:
    """Switch JAX to double precision.

    Strict rotation checks compare against a few multiples of float64 machine
    epsilon, which is below float32 resolution.
    """
    jax.config.update("jax_enable_x64", True)


@dataclass(frozen=True)
class SpatialConfig:
    """Immutable tolerances and display settings.

    Attributes:
        tolerance_factor: multiple of machine epsilon allowed for ``RᵀR - I``
                          and ``det(R) - 1`` in strict rotation checks.
        small_angle: below this angle the SE(2) log/exp maps switch to
                     truncated series.
        display_precision: significant digits used by ``str()``.
    """
    tolerance_factor: float = 10.0
    small_angle: float = 1e-6
    display_precision: int = 4

    @property
    def tolerance(self) -> float:
        return self.tolerance_factor * float(jnp.finfo(jnp.float64).eps)


DEFAULT_CONFIG = SpatialConfig()
