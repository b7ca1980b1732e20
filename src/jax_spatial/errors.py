"""Exceptions raised by the jax_spatial value types.

Every error is a boundary-validation failure raised at the offending call.
"""


class SpatialError(Exception):
    """Base class for all jax_spatial errors."""


class UnrecognizedArgument(SpatialError, ValueError):
    """Constructor or option input matches none of the supported forms."""


class LengthMismatch(SpatialError, ValueError):
    """Two operand arrays have incompatible lengths."""


class InvalidOperandType(SpatialError, TypeError):
    """An operator received a right-hand operand it does not support."""


class NonIntegerExponent(SpatialError, ValueError):
    """Power operator invoked with a non-integer exponent."""


class MalformedComponent(SpatialError, ValueError):
    """A quaternion scalar or vector part has the wrong type or shape."""
